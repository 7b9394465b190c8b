# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Constants module for entityseed.

This module centralizes the setting keys, SQL keywords, enumerations and
message templates used throughout the generator. No magic values are allowed
elsewhere.

:module: constants
:synopsis: Centralized constants and configuration for entityseed
"""

from __future__ import annotations

from enum import Enum, StrEnum
from typing import Final


# ============================================================================
# IDENTIFIER GENERATION
# ============================================================================

class GenerationType(StrEnum):
    """
    Strategies that assign a row its primary key value.

    :class: GenerationType
    :synopsis: Enumeration of identifier generation strategies
    """

    SEQUENCE = "sequence"    # Database sequence with name, initial value and allocation size
    IDENTITY = "identity"    # Identity / auto-increment column
    ASSIGNED = "assigned"    # Value set by the application


class UniquePropertyQuality(StrEnum):
    """
    Which properties may stand in for an unknown identifier, least to most strict.

    :class: UniquePropertyQuality
    :synopsis: Quality tiers for unique-property predicates
    """

    ONLY_PRIMITIVES = "onlyPrimitives"
    ONLY_REQUIRED_PRIMITIVES = "onlyRequiredPrimitives"
    ONLY_IDENTIFYING_PRIMITIVES = "onlyIdentifyingPrimitives"

    @property
    def needs_required(self) -> bool:
        return self is not UniquePropertyQuality.ONLY_PRIMITIVES

    @property
    def needs_immutable(self) -> bool:
        return self is UniquePropertyQuality.ONLY_IDENTIFYING_PRIMITIVES


class TemporalType(StrEnum):
    """Column representation of date and time values."""

    DATE = "date"
    TIME = "time"
    TIMESTAMP = "timestamp"


class EnumType(StrEnum):
    """Column representation of enum values."""

    STRING = "string"
    ORDINAL = "ordinal"


class GenerationStateKind(Enum):
    """
    Write status of a single entity.

    An entity that is missing from the state map is not written yet.
    """

    PERSISTED = "persisted"
    PENDING = "pending"


# ============================================================================
# SETTINGS KEYS
# ============================================================================

class SettingsKeys:
    """Keys of the flat settings map consumed by the generator context."""

    # @@ STEP 1: Define collaborator selection keys
    DIALECT: Final[str] = "entityseed.generator.dialect"
    PROVIDER: Final[str] = "entityseed.generator.provider"
    SETTINGS_FILE: Final[str] = "entityseed.generator.settings.file"

    # @@ STEP 2: Define generation policy keys
    EXPLICIT_IDS: Final[str] = "entityseed.generator.explicit.ids"
    NULL_VALUES: Final[str] = "entityseed.generator.null.values"
    UNIQUE_PROPERTIES_QUALITY: Final[str] = "entityseed.generator.unique.properties.quality"
    UNIQUE_PROPERTIES_MAX: Final[str] = "entityseed.generator.unique.properties.max"
    PREFER_SEQUENCE_CURRENT_VALUE: Final[str] = "entityseed.generator.prefer.sequence.current.value"

    # @@ STEP 3: Define settings file layout
    SETTINGS_FILE_TABLE: Final[str] = "settings"


class SettingsDefaults:
    """Defaults for missing settings keys."""

    DIALECT: Final[str] = "H2Dialect"
    PROVIDER: Final[str] = "HibernateProvider"
    EXPLICIT_IDS: Final[bool] = False
    NULL_VALUES: Final[bool] = False
    UNIQUE_PROPERTIES_QUALITY: Final[UniquePropertyQuality] = UniquePropertyQuality.ONLY_REQUIRED_PRIMITIVES
    UNIQUE_PROPERTIES_MAX: Final[int] = 1
    PREFER_SEQUENCE_CURRENT_VALUE: Final[bool] = True


# ============================================================================
# MODEL METADATA CONSTANTS
# ============================================================================

class ModelMetadataConstants:
    """Model metadata attribute constants."""

    # @@ STEP 1: Define entity class attributes
    ENTITY_NAME: Final[str] = "__entityseed_entity_name__"
    ENTITY_TABLE: Final[str] = "__entityseed_table__"
    ENTITY_UNIQUE_CONSTRAINTS: Final[str] = "__entityseed_unique_constraints__"
    IS_ENTITY: Final[str] = "__entityseed_is_entity__"

    # @@ STEP 2: Define embeddable class attributes
    IS_EMBEDDABLE: Final[str] = "__entityseed_is_embeddable__"

    # @@ STEP 3: Define field metadata key inside json_schema_extra
    FIELD_METADATA: Final[str] = "entityseed_metadata"


# ============================================================================
# SQL CONSTANTS
# ============================================================================

class SQLConstants:
    """SQL keywords and formatting used when rendering statements."""

    # @@ STEP 1: Define statement keywords
    INSERT_INTO: Final[str] = "INSERT INTO"
    VALUES: Final[str] = "VALUES"
    UPDATE: Final[str] = "UPDATE"
    SET: Final[str] = "SET"
    WHERE: Final[str] = "WHERE"
    SELECT: Final[str] = "SELECT"
    FROM: Final[str] = "FROM"
    AND: Final[str] = " AND "
    DEFAULT_VALUES: Final[str] = "DEFAULT VALUES"

    # @@ STEP 2: Define literal keywords
    NULL: Final[str] = "NULL"
    IS_NULL: Final[str] = "IS NULL"
    EQUALS: Final[str] = " = "

    # @@ STEP 3: Define formatting constants
    FIELD_SEPARATOR: Final[str] = ", "
    STATEMENT_SEPARATOR: Final[str] = ";"
    QUOTE_CHAR: Final[str] = "'"
    ESCAPED_QUOTE: Final[str] = "''"
    COLUMN_ID_SEPARATOR: Final[str] = "."
    JOIN_TABLE_SEPARATOR: Final[str] = "_"


class TemporalFormats:
    """Fixed literal formats, independent of locale and local timezone."""

    DATE: Final[str] = "%Y-%m-%d"
    TIME: Final[str] = "%H:%M:%S"
    TIMESTAMP: Final[str] = "%Y-%m-%d %H:%M:%S.%f"


# ============================================================================
# ERROR MESSAGE CONSTANTS
# ============================================================================

class ErrorMessages:
    """Error message constants."""

    # @@ STEP 1: Define configuration errors
    UNKNOWN_DIALECT: Final[str] = "Can't instantiate dialect: {name}"
    UNKNOWN_PROVIDER: Final[str] = "Can't instantiate provider: {name}"
    INVALID_SETTINGS: Final[str] = "Invalid generator settings: {errors}"

    # @@ STEP 2: Define mapping errors
    NOT_AN_ENTITY_CLASS: Final[str] = "{class_name} is not an entity class"
    MISSING_IDENTIFIER: Final[str] = "Entity {entity_name} has no identifier property"
    DUPLICATE_IDENTIFIER: Final[str] = "Entity {entity_name} declares more than one identifier: {fields}"
    UNSUPPORTED_TYPE: Final[str] = "Unsupported type {type_name} for field {field}"
    UNKNOWN_UNIQUE_PROPERTY: Final[str] = "Unique constraint of {entity_name} names unknown field {field_name}"
    SEQUENCES_NOT_SUPPORTED: Final[str] = (
        "Dialect {dialect} has no sequences, but {field} is generated from sequence {sequence}"
    )
    INVALID_REFERENCE_TYPE: Final[str] = "Reference {field} must point to an entity class, got {type_name}"
    INVALID_COLLECTION_TYPE: Final[str] = "Collection {field} must be a list, set, tuple or dict, got {type_name}"
    GENERATED_EMBEDDED_ID: Final[str] = "Embedded identifier {field} can't use a generated value"
    NOT_AN_EMBEDDABLE: Final[str] = "Embedded field {field} must be an @embeddable model, got {type_name}"
    EMBEDDED_ID_MEMBER: Final[str] = "Embedded identifier {field} may only contain primitive columns, got {member}"
    GENERATED_NON_ID_COLUMN: Final[str] = "Only identifier columns can be generated, got {generation} for {field}"
    NOT_A_DECORATED_MODEL: Final[str] = "@{decorator} requires a pydantic model, got {value}"
    INVALID_DEFAULT_VALUE: Final[str] = "Invalid default value {value} for field {field}: {error}"

    # @@ STEP 3: Define missing value errors
    MISSING_REQUIRED_VALUE: Final[str] = "Required field {field} of {entity} was not set"
    UNRESOLVABLE_REQUIRED_REFERENCE: Final[str] = (
        "Required reference {field} of {entity} points to an entity that is not written yet"
    )
    NULL_ENTITY: Final[str] = "Can't inspect null entity"
    NON_FINITE_NUMBER: Final[str] = "Number {value} has no SQL literal"

    # @@ STEP 4: Define inconsistent state errors
    NO_CURRENT_IDENTITY_VALUE: Final[str] = "No current value for: {column_id}"
    ALREADY_WRITTEN: Final[str] = "Entity {entity} was already written"
    COMPOSITE_ID_REFERENCE: Final[str] = "Entity {entity} has a composite identifier, a reference needs the id field"


class LoggingMessages:
    """Log message templates."""

    CONTEXT_CREATED: Final[str] = "Created generator context with dialect %s and provider %s"
    DESCRIPTION_BUILT: Final[str] = "Built description for entity %s (table %s, %d properties)"
    DESCRIPTION_ALIASED: Final[str] = "Using description of %s for subclass %s"
    PENDING_UPDATE: Final[str] = "Deferred %s.%s until %s is written"
    PENDING_FLUSH: Final[str] = "Flushing %d deferred statements for %s"
    UNIQUE_GROUP_SKIPPED: Final[str] = "Skipping unique properties %s of %s for references: %s"
    SETTINGS_FILE_FAILED: Final[str] = "Could not read %s: %s"
    ALIGNMENT: Final[str] = "Aligning %s to %s"
    ENTITY_SKIPPED: Final[str] = "Skipping %s, it exists already"


__all__ = [
    "GenerationType",
    "UniquePropertyQuality",
    "TemporalType",
    "EnumType",
    "GenerationStateKind",
    "SettingsKeys",
    "SettingsDefaults",
    "ModelMetadataConstants",
    "SQLConstants",
    "TemporalFormats",
    "ErrorMessages",
    "LoggingMessages",
]
