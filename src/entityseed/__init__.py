# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
entityseed: SQL statements for in-memory graphs of pydantic entities.

Identifiers are simulated instead of being fetched from a database, references
to entities that are not written yet are deferred until the referenced entity
is written.
"""

from __future__ import annotations

from .constants import (
    EnumType,
    GenerationType,
    SettingsKeys,
    TemporalType,
    UniquePropertyQuality,
)
from .context import GeneratorContext
from .converters import ConverterRegistry, ValueConverter
from .dialects import (
    DialectRegistry,
    GeneratorDialect,
    H2Dialect,
    MySqlDialect,
    OracleDialect,
    PostgresDialect,
    SQLiteDialect,
)
from .entity_class import EntityClass
from .errors import (
    ConfigurationError,
    EntitySeedError,
    InconsistentStateError,
    MappingError,
    MissingValueError,
)
from .generator import EntitySqlGenerator
from .mapping import (
    EntityBase,
    SequenceGenerator,
    collection,
    column,
    embeddable,
    embedded,
    entity,
    reference,
)
from .providers import EclipseLinkProvider, HibernateProvider, MetadataProvider, ProviderRegistry
from .settings import GeneratorSettings
from .state import GeneratorStateStore
from .statements import EntityStatement, InsertStatement, PlainStatement, UpdateStatement

__version__ = "0.1.0"

__all__ = [
    # Mapping
    "entity",
    "embeddable",
    "column",
    "reference",
    "collection",
    "embedded",
    "EntityBase",
    "SequenceGenerator",
    "GenerationType",
    "TemporalType",
    "EnumType",
    "UniquePropertyQuality",
    # Generation
    "GeneratorContext",
    "GeneratorSettings",
    "SettingsKeys",
    "EntitySqlGenerator",
    "EntityClass",
    "GeneratorStateStore",
    # Statements
    "EntityStatement",
    "InsertStatement",
    "UpdateStatement",
    "PlainStatement",
    # Collaborators
    "ConverterRegistry",
    "ValueConverter",
    "DialectRegistry",
    "GeneratorDialect",
    "H2Dialect",
    "PostgresDialect",
    "MySqlDialect",
    "OracleDialect",
    "SQLiteDialect",
    "ProviderRegistry",
    "MetadataProvider",
    "HibernateProvider",
    "EclipseLinkProvider",
    # Errors
    "EntitySeedError",
    "ConfigurationError",
    "MappingError",
    "MissingValueError",
    "InconsistentStateError",
]
