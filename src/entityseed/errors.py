# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Error taxonomy of the generator.

Every error aborts the processing of the current entity. The classes also
derive from the builtin exception that matches their nature, so callers that
only know ``ValueError``/``TypeError`` keep working.
"""

from __future__ import annotations

from typing import Any, Optional


class EntitySeedError(Exception):
    """Base class for all generator errors."""

    def __init__(self, message: str, *, entity: Optional[Any] = None, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.entity = entity
        self.field = field


class ConfigurationError(EntitySeedError, ValueError):
    """Unknown dialect or provider, or a malformed setting value."""


class MappingError(EntitySeedError, TypeError):
    """An entity class can't be described, raised while its description is built."""


class MissingValueError(EntitySeedError, ValueError):
    """A required value is absent when its entity is written."""


class InconsistentStateError(EntitySeedError, RuntimeError):
    """The generator was asked for state that can't exist."""


__all__ = [
    "EntitySeedError",
    "ConfigurationError",
    "MappingError",
    "MissingValueError",
    "InconsistentStateError",
]
