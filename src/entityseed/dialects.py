# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
SQL dialects.

A dialect encapsulates everything that differs between databases when a
literal or a generator expression is written: string escaping, boolean and
temporal literals, large objects, sequence access and the statements that
align sequences and identity columns after a generation run.
"""

from __future__ import annotations

import datetime
import importlib
import logging
from typing import Dict, List, Optional, Type, Union

from .constants import ErrorMessages, SQLConstants, TemporalFormats, TemporalType
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

TemporalValue = Union[datetime.date, datetime.datetime, datetime.time]


class GeneratorDialect:
    """
    Base dialect, writes standard SQL.

    :class: GeneratorDialect
    :synopsis: Database specific rendering of literals and generator expressions
    """

    name: str = "standard"

    # -------------------------------------------------------------------------
    # Literals
    # -------------------------------------------------------------------------

    def quote_string(self, value: str) -> str:
        """Quote a string literal, escaping embedded quotes."""
        safe = value.replace(SQLConstants.QUOTE_CHAR, SQLConstants.ESCAPED_QUOTE)
        return f"{SQLConstants.QUOTE_CHAR}{safe}{SQLConstants.QUOTE_CHAR}"

    def convert_boolean(self, value: bool) -> str:
        return "TRUE" if value else "FALSE"

    def format_temporal(self, value: TemporalValue, temporal: TemporalType) -> str:
        """
        Format a date/time value with the fixed format of its temporal type.

        Timezone-aware values are normalized to UTC first.
        """
        if isinstance(value, datetime.datetime):
            if value.tzinfo is not None:
                value = value.astimezone(datetime.timezone.utc).replace(tzinfo=None)
            if temporal == TemporalType.DATE:
                return value.strftime(TemporalFormats.DATE)
            if temporal == TemporalType.TIME:
                return value.strftime(TemporalFormats.TIME)
            return value.strftime(TemporalFormats.TIMESTAMP)
        if isinstance(value, datetime.date):
            if temporal == TemporalType.TIMESTAMP:
                return datetime.datetime.combine(value, datetime.time()).strftime(TemporalFormats.TIMESTAMP)
            return value.strftime(TemporalFormats.DATE)
        if isinstance(value, datetime.time):
            if value.tzinfo is not None:
                value = value.replace(tzinfo=None)
            return value.strftime(TemporalFormats.TIME)
        raise TypeError(f"Not a temporal value: {type(value).__name__}")

    def convert_temporal_value(self, value: TemporalValue, temporal: TemporalType) -> str:
        """Write a date/time literal (``DATE '...'``, ``TIME '...'``, ``TIMESTAMP '...'``)."""
        keyword = temporal.value.upper()
        return f"{keyword} {self.quote_string(self.format_temporal(value, temporal))}"

    def create_blob_expression(self, data: bytes) -> str:
        return f"X'{data.hex().upper()}'"

    def create_clob_expression(self, text: str) -> str:
        return self.quote_string(text)

    # -------------------------------------------------------------------------
    # Generators
    # -------------------------------------------------------------------------

    def is_sequence_supported(self) -> bool:
        return True

    def build_next_sequence_value(self, sequence_name: str, increment: int) -> str:
        return f"NEXT VALUE FOR {sequence_name}"

    def build_current_sequence_value(self, sequence_name: str, increment: int) -> str:
        return f"CURRENT VALUE FOR {sequence_name}"

    def adjust_next_sequence_value(self, sequence_name: str, current_value: int, next_value: int) -> List[str]:
        """Statements that make the next database value of the sequence ``next_value``."""
        return [f"ALTER SEQUENCE {sequence_name} RESTART WITH {next_value}"]

    def adjust_next_identity_value(self, table: str, column: str, next_value: int) -> List[str]:
        return [f"ALTER TABLE {table} ALTER COLUMN {column} RESTART WITH {next_value}"]

    # -------------------------------------------------------------------------
    # Statements
    # -------------------------------------------------------------------------

    def create_empty_insert(self, table: str) -> str:
        return f"{SQLConstants.INSERT_INTO} {table} {SQLConstants.DEFAULT_VALUES}"

    def __repr__(self) -> str:
        return type(self).__name__


class H2Dialect(GeneratorDialect):
    """Dialect for H2."""

    name = "h2"


class PostgresDialect(GeneratorDialect):
    """Dialect for PostgreSQL."""

    name = "postgres"

    def build_next_sequence_value(self, sequence_name: str, increment: int) -> str:
        return f"nextval('{sequence_name}')"

    def build_current_sequence_value(self, sequence_name: str, increment: int) -> str:
        return f"currval('{sequence_name}')"

    def create_blob_expression(self, data: bytes) -> str:
        return f"decode('{data.hex()}', 'hex')"

    def adjust_next_sequence_value(self, sequence_name: str, current_value: int, next_value: int) -> List[str]:
        return [f"SELECT setval('{sequence_name}', {next_value}, false)"]


class MySqlDialect(GeneratorDialect):
    """Dialect for MySQL and MariaDB. No sequences."""

    name = "mysql"

    def quote_string(self, value: str) -> str:
        return super().quote_string(value.replace("\\", "\\\\"))

    def is_sequence_supported(self) -> bool:
        return False

    def convert_temporal_value(self, value: TemporalValue, temporal: TemporalType) -> str:
        return self.quote_string(self.format_temporal(value, temporal))

    def adjust_next_identity_value(self, table: str, column: str, next_value: int) -> List[str]:
        return [f"ALTER TABLE {table} AUTO_INCREMENT = {next_value}"]

    def create_empty_insert(self, table: str) -> str:
        return f"{SQLConstants.INSERT_INTO} {table} () {SQLConstants.VALUES} ()"


class OracleDialect(GeneratorDialect):
    """Dialect for Oracle 12c and later."""

    name = "oracle"

    def convert_boolean(self, value: bool) -> str:
        return "1" if value else "0"

    def convert_temporal_value(self, value: TemporalValue, temporal: TemporalType) -> str:
        if temporal == TemporalType.TIME:
            return self.quote_string(self.format_temporal(value, temporal))
        return super().convert_temporal_value(value, temporal)

    def create_blob_expression(self, data: bytes) -> str:
        return f"hextoraw('{data.hex().upper()}')"

    def build_next_sequence_value(self, sequence_name: str, increment: int) -> str:
        return f"{sequence_name}.nextval"

    def build_current_sequence_value(self, sequence_name: str, increment: int) -> str:
        return f"{sequence_name}.currval"

    def adjust_next_sequence_value(self, sequence_name: str, current_value: int, next_value: int) -> List[str]:
        return [f"ALTER SEQUENCE {sequence_name} RESTART START WITH {next_value}"]

    def adjust_next_identity_value(self, table: str, column: str, next_value: int) -> List[str]:
        return [f"ALTER TABLE {table} MODIFY {column} GENERATED BY DEFAULT AS IDENTITY (START WITH {next_value})"]


class SQLiteDialect(GeneratorDialect):
    """Dialect for SQLite. No sequences, temporal values are stored as text."""

    name = "sqlite"

    def is_sequence_supported(self) -> bool:
        return False

    def convert_boolean(self, value: bool) -> str:
        return "1" if value else "0"

    def convert_temporal_value(self, value: TemporalValue, temporal: TemporalType) -> str:
        return self.quote_string(self.format_temporal(value, temporal))

    def adjust_next_identity_value(self, table: str, column: str, next_value: int) -> List[str]:
        return [
            f"DELETE FROM sqlite_sequence WHERE name = {self.quote_string(table)}",
            f"INSERT INTO sqlite_sequence (name, seq) VALUES ({self.quote_string(table)}, {next_value - 1})",
        ]


# -----------------------------------------------------------------------------
# Dialect registry
# -----------------------------------------------------------------------------

class DialectRegistry:
    """Registry resolving dialect names from the settings."""

    _dialects: Dict[str, Type[GeneratorDialect]] = {}

    @classmethod
    def register(cls, dialect_class: Type[GeneratorDialect], *aliases: str) -> None:
        """Register a dialect under its class name, its short name and any aliases."""
        for key in (dialect_class.__name__, dialect_class.name, *aliases):
            cls._dialects[key.lower()] = dialect_class

    @classmethod
    def resolve(cls, name: str) -> GeneratorDialect:
        """
        Instantiate a dialect by name.

        Accepts registered names (``h2``, ``H2Dialect``, ``postgresql``),
        names without the ``Dialect`` suffix and dotted import paths.

        :raises ConfigurationError: if the name can't be resolved
        """
        key = name.strip()
        dialect_class: Optional[Type[GeneratorDialect]] = cls._dialects.get(key.lower())
        if dialect_class is None and not key.lower().endswith("dialect"):
            dialect_class = cls._dialects.get(f"{key}Dialect".lower())
        if dialect_class is None and "." in key:
            dialect_class = import_class(key)
        if dialect_class is None or not (isinstance(dialect_class, type) and issubclass(dialect_class, GeneratorDialect)):
            raise ConfigurationError(ErrorMessages.UNKNOWN_DIALECT.format(name=name))
        return dialect_class()


def import_class(path: str) -> Optional[type]:
    module_name, _, class_name = path.rpartition(".")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        logger.debug("Can't import %s: %s", module_name, e)
        return None
    found = getattr(module, class_name, None)
    return found if isinstance(found, type) else None


DialectRegistry.register(GeneratorDialect)
DialectRegistry.register(H2Dialect)
DialectRegistry.register(PostgresDialect, "postgresql", "PostgreSQLDialect")
DialectRegistry.register(MySqlDialect, "mariadb", "MySQLDialect")
DialectRegistry.register(OracleDialect)
DialectRegistry.register(SQLiteDialect, "sqlite3")


__all__ = [
    "GeneratorDialect",
    "H2Dialect",
    "PostgresDialect",
    "MySqlDialect",
    "OracleDialect",
    "SQLiteDialect",
    "DialectRegistry",
]
