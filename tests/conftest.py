# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Pytest configuration and shared fixtures for entityseed tests.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

import pytest

from entityseed import EntitySqlGenerator, GeneratorContext, SettingsKeys


@pytest.fixture
def make_context() -> Callable[..., GeneratorContext]:
    """Factory for contexts, keyword arguments are settings keys of :class:`SettingsKeys`."""

    def factory(settings: Optional[Dict[str, Any]] = None, **options: Any) -> GeneratorContext:
        values: Dict[str, Any] = dict(settings or {})
        for name, value in options.items():
            values[getattr(SettingsKeys, name.upper())] = value
        return GeneratorContext(values)

    return factory


@pytest.fixture
def context(make_context) -> GeneratorContext:
    """Context with the default settings (H2, Hibernate, database generated ids)."""
    return make_context()


@pytest.fixture
def make_generator(make_context) -> Callable[..., EntitySqlGenerator]:
    """Factory for generators on fresh contexts."""

    def factory(settings: Optional[Dict[str, Any]] = None, **options: Any) -> EntitySqlGenerator:
        return EntitySqlGenerator(make_context(settings, **options))

    return factory