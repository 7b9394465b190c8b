# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Test suite for entityseed.

This package contains tests for all components of the generator:
- Unit tests for converters, settings, dialects and the generator state
- Descriptor tests for mapping, inheritance and cyclic entity classes
- End-to-end tests for statement ordering and reference resolution
"""
