# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Parsing of the flat settings map.

The generator is configured with a string-keyed map, e.g. the properties of a
build tool or environment. :class:`GeneratorSettings` validates that map once;
the resulting object is frozen for the lifetime of a generation session.
"""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .constants import (
    ErrorMessages,
    LoggingMessages,
    SettingsDefaults,
    SettingsKeys,
    UniquePropertyQuality,
)
from .errors import ConfigurationError

logger = logging.getLogger(__name__)


class GeneratorSettings(BaseModel):
    """
    Validated generator settings.

    Field aliases are the keys of the settings map, unknown keys are ignored
    and missing keys take their defaults.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        use_enum_values=False,
    )

    dialect: str = Field(default=SettingsDefaults.DIALECT, alias=SettingsKeys.DIALECT, min_length=1)
    provider: str = Field(default=SettingsDefaults.PROVIDER, alias=SettingsKeys.PROVIDER, min_length=1)
    settings_file: Optional[str] = Field(default=None, alias=SettingsKeys.SETTINGS_FILE)
    explicit_ids: bool = Field(default=SettingsDefaults.EXPLICIT_IDS, alias=SettingsKeys.EXPLICIT_IDS)
    write_null_values: bool = Field(default=SettingsDefaults.NULL_VALUES, alias=SettingsKeys.NULL_VALUES)
    unique_property_quality: UniquePropertyQuality = Field(
        default=SettingsDefaults.UNIQUE_PROPERTIES_QUALITY,
        alias=SettingsKeys.UNIQUE_PROPERTIES_QUALITY,
    )
    max_unique_properties: int = Field(
        default=SettingsDefaults.UNIQUE_PROPERTIES_MAX,
        alias=SettingsKeys.UNIQUE_PROPERTIES_MAX,
        ge=0,
    )
    prefer_sequence_current_value: bool = Field(
        default=SettingsDefaults.PREFER_SEQUENCE_CURRENT_VALUE,
        alias=SettingsKeys.PREFER_SEQUENCE_CURRENT_VALUE,
    )

    @field_validator("unique_property_quality", mode="before")
    @classmethod
    def parse_quality(cls, value: Any) -> Any:
        """Accept the tier by value (``onlyRequiredPrimitives``) or by member name."""
        if isinstance(value, str):
            stripped = value.strip()
            for quality in UniquePropertyQuality:
                if stripped == quality.value or stripped.upper() == quality.name:
                    return quality
        return value

    @field_validator("explicit_ids", "write_null_values", "prefer_sequence_current_value", mode="before")
    @classmethod
    def strip_flags(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value

    @classmethod
    def from_mapping(cls, settings: Optional[Mapping[str, Any]] = None) -> "GeneratorSettings":
        """
        Validate a settings map, merging the optional settings file.

        :raises ConfigurationError: if a value is malformed
        """
        values: Dict[str, Any] = dict(settings or {})
        settings_file = values.get(SettingsKeys.SETTINGS_FILE)
        if settings_file:
            for key, value in read_settings_file(Path(str(settings_file))).items():
                # Explicit settings win over the file
                values.setdefault(key, value)
        try:
            return cls.model_validate(values)
        except ValidationError as e:
            raise ConfigurationError(ErrorMessages.INVALID_SETTINGS.format(errors=_format_errors(e))) from e


def read_settings_file(path: Path) -> Dict[str, str]:
    """
    Read the ``[settings]`` table of a TOML file as a flat map.

    Nested tables are flattened with dots, so ``[settings.entityseed.generator]``
    with ``dialect = "postgres"`` yields ``entityseed.generator.dialect``.
    A missing or unreadable file is logged and yields no settings.
    """
    try:
        with path.open("rb") as f:
            document = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.error(LoggingMessages.SETTINGS_FILE_FAILED, path, e)
        return {}

    table = document.get(SettingsKeys.SETTINGS_FILE_TABLE, {})
    flat: Dict[str, str] = {}

    def flatten(prefix: str, node: Mapping[str, Any]) -> None:
        for key, value in node.items():
            full_key = f"{prefix}.{key}" if prefix else key
            if isinstance(value, Mapping):
                flatten(full_key, value)
            elif isinstance(value, bool):
                flat[full_key] = "true" if value else "false"
            else:
                flat[full_key] = str(value)

    if isinstance(table, Mapping):
        flatten("", table)
    return flat


def _format_errors(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(loc) for loc in item.get("loc", ()))
        parts.append(f"{location}: {item.get('msg')} (got {item.get('input')!r})")
    return "; ".join(parts)


__all__ = [
    "GeneratorSettings",
    "read_settings_file",
]
