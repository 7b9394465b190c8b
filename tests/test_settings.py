# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Tests for settings parsing, the settings file and collaborator resolution.
"""

from __future__ import annotations

import logging

import pytest

from entityseed import (
    ConfigurationError,
    EclipseLinkProvider,
    GeneratorContext,
    GeneratorSettings,
    H2Dialect,
    HibernateProvider,
    MySqlDialect,
    PostgresDialect,
    SettingsKeys,
    UniquePropertyQuality,
)
from entityseed.dialects import DialectRegistry
from entityseed.providers import ProviderRegistry
from entityseed.settings import read_settings_file


class TestGeneratorSettings:
    """Test validation of the flat settings map."""

    def test_defaults(self):
        """Missing keys take their defaults."""
        settings = GeneratorSettings.from_mapping({})
        assert settings.dialect == "H2Dialect"
        assert settings.provider == "HibernateProvider"
        assert settings.explicit_ids is False
        assert settings.write_null_values is False
        assert settings.unique_property_quality is UniquePropertyQuality.ONLY_REQUIRED_PRIMITIVES
        assert settings.max_unique_properties == 1
        assert settings.prefer_sequence_current_value is True

    def test_string_values(self):
        """Values of the map are strings, as they come from a properties source."""
        settings = GeneratorSettings.from_mapping(
            {
                SettingsKeys.EXPLICIT_IDS: " true ",
                SettingsKeys.NULL_VALUES: "1",
                SettingsKeys.UNIQUE_PROPERTIES_MAX: "3",
                SettingsKeys.UNIQUE_PROPERTIES_QUALITY: "onlyIdentifyingPrimitives",
                SettingsKeys.PREFER_SEQUENCE_CURRENT_VALUE: "false",
            }
        )
        assert settings.explicit_ids is True
        assert settings.write_null_values is True
        assert settings.max_unique_properties == 3
        assert settings.unique_property_quality is UniquePropertyQuality.ONLY_IDENTIFYING_PRIMITIVES
        assert settings.prefer_sequence_current_value is False

    def test_quality_by_member_name(self):
        settings = GeneratorSettings.from_mapping({SettingsKeys.UNIQUE_PROPERTIES_QUALITY: "only_primitives"})
        assert settings.unique_property_quality is UniquePropertyQuality.ONLY_PRIMITIVES

    def test_unknown_keys_are_ignored(self):
        settings = GeneratorSettings.from_mapping({"some.other.tool": "x"})
        assert settings == GeneratorSettings()

    @pytest.mark.parametrize(
        "key, value",
        [
            (SettingsKeys.EXPLICIT_IDS, "sometimes"),
            (SettingsKeys.UNIQUE_PROPERTIES_MAX, "-1"),
            (SettingsKeys.UNIQUE_PROPERTIES_MAX, "many"),
            (SettingsKeys.UNIQUE_PROPERTIES_QUALITY, "anything"),
            (SettingsKeys.DIALECT, ""),
        ],
    )
    def test_malformed_values(self, key, value):
        """Malformed values raise a configuration error naming the key."""
        with pytest.raises(ConfigurationError) as exc_info:
            GeneratorSettings.from_mapping({key: value})
        assert key in str(exc_info.value)
        assert isinstance(exc_info.value, ValueError)

    def test_settings_are_frozen(self):
        settings = GeneratorSettings.from_mapping({})
        with pytest.raises(Exception):
            settings.explicit_ids = True


class TestSettingsFile:
    """Test the optional TOML settings file."""

    def test_read_nested_tables(self, tmp_path):
        """Nested tables are flattened into dotted keys."""
        path = tmp_path / "entityseed.toml"
        path.write_text(
            "[settings.entityseed.generator]\n"
            'dialect = "postgres"\n'
            '"explicit.ids" = true\n'
            '"unique.properties.max" = 2\n',
            encoding="utf-8",
        )
        assert read_settings_file(path) == {
            SettingsKeys.DIALECT: "postgres",
            SettingsKeys.EXPLICIT_IDS: "true",
            SettingsKeys.UNIQUE_PROPERTIES_MAX: "2",
        }

    def test_file_values_are_merged(self, tmp_path):
        """The file fills missing keys, explicit settings win."""
        path = tmp_path / "entityseed.toml"
        path.write_text(
            "[settings]\n"
            '"entityseed.generator.dialect" = "postgres"\n'
            '"entityseed.generator.null.values" = true\n',
            encoding="utf-8",
        )
        settings = GeneratorSettings.from_mapping(
            {SettingsKeys.SETTINGS_FILE: str(path), SettingsKeys.DIALECT: "oracle"}
        )
        assert settings.dialect == "oracle"
        assert settings.write_null_values is True

    def test_missing_file_is_logged(self, tmp_path, caplog):
        """An unreadable file is logged and the explicit settings are used."""
        path = tmp_path / "missing.toml"
        with caplog.at_level(logging.ERROR, logger="entityseed.settings"):
            settings = GeneratorSettings.from_mapping(
                {SettingsKeys.SETTINGS_FILE: str(path), SettingsKeys.EXPLICIT_IDS: "true"}
            )
        assert settings.explicit_ids is True
        assert "missing.toml" in caplog.text

    def test_invalid_toml_is_logged(self, tmp_path, caplog):
        path = tmp_path / "broken.toml"
        path.write_text("[settings\n", encoding="utf-8")
        with caplog.at_level(logging.ERROR, logger="entityseed.settings"):
            assert read_settings_file(path) == {}
        assert "broken.toml" in caplog.text

    def test_file_without_settings_table(self, tmp_path):
        path = tmp_path / "other.toml"
        path.write_text('[tool]\nname = "x"\n', encoding="utf-8")
        assert read_settings_file(path) == {}


class TestCollaboratorResolution:
    """Test resolution of dialect and provider names."""

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("H2Dialect", H2Dialect),
            ("h2", H2Dialect),
            ("postgres", PostgresDialect),
            ("PostgreSQL", PostgresDialect),
            ("MySql", MySqlDialect),
            ("mariadb", MySqlDialect),
            ("entityseed.dialects.PostgresDialect", PostgresDialect),
        ],
    )
    def test_dialect_names(self, name, expected):
        assert type(DialectRegistry.resolve(name)) is expected

    def test_unknown_dialect(self):
        with pytest.raises(ConfigurationError, match="nosuch"):
            DialectRegistry.resolve("nosuch")
        with pytest.raises(ConfigurationError):
            DialectRegistry.resolve("entityseed.nosuch.Dialect")
        with pytest.raises(ConfigurationError):
            DialectRegistry.resolve("entityseed.providers.HibernateProvider")

    def test_provider_names(self):
        assert type(ProviderRegistry.resolve("HibernateProvider")) is HibernateProvider
        assert type(ProviderRegistry.resolve("eclipselink")) is EclipseLinkProvider
        with pytest.raises(ConfigurationError, match="nosuch"):
            ProviderRegistry.resolve("nosuch")

    def test_context_uses_the_settings(self, make_context):
        """The context resolves its collaborators once from the settings."""
        context = make_context(dialect="postgres", provider="eclipselink", explicit_ids="true")
        assert isinstance(context.dialect, PostgresDialect)
        assert isinstance(context.provider, EclipseLinkProvider)
        assert context.explicit_ids is True
        assert context.provider.get_default_sequence().allocation_size == 50

    def test_context_accepts_validated_settings(self):
        settings = GeneratorSettings(explicit_ids=True)
        context = GeneratorContext(settings)
        assert context.settings is settings
        assert context.explicit_ids is True

    def test_context_rejects_unknown_dialect(self, make_context):
        with pytest.raises(ConfigurationError):
            make_context(dialect="nosuch")
