# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Structured statements produced by the generator.

Values are already rendered SQL expressions; rendering a statement only
assembles them, so the same statement can be written for any dialect that
produced its expressions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict

from .constants import SQLConstants

if TYPE_CHECKING:
    from .dialects import GeneratorDialect


class EntityStatement:
    """Base class of all statements."""

    def to_sql(self, dialect: "GeneratorDialect") -> str:
        raise NotImplementedError


@dataclass
class InsertStatement(EntityStatement):
    """
    ``INSERT`` of one row.

    :class: InsertStatement
    :synopsis: Table plus ordered column to expression pairs
    """
    table: str
    values: Dict[str, str] = field(default_factory=dict)

    def add_value(self, column: str, expression: str) -> None:
        self.values[column] = expression

    def to_sql(self, dialect: "GeneratorDialect") -> str:
        if not self.values:
            return dialect.create_empty_insert(self.table)
        columns = SQLConstants.FIELD_SEPARATOR.join(self.values.keys())
        expressions = SQLConstants.FIELD_SEPARATOR.join(self.values.values())
        return f"{SQLConstants.INSERT_INTO} {self.table} ({columns}) {SQLConstants.VALUES} ({expressions})"


@dataclass
class UpdateStatement(EntityStatement):
    """``UPDATE`` of the rows matching ``predicate``."""
    table: str
    predicate: str
    values: Dict[str, str] = field(default_factory=dict)

    def add_value(self, column: str, expression: str) -> None:
        self.values[column] = expression

    def to_sql(self, dialect: "GeneratorDialect") -> str:
        assignments = SQLConstants.FIELD_SEPARATOR.join(
            f"{column}{SQLConstants.EQUALS}{expression}" for column, expression in self.values.items()
        )
        return (
            f"{SQLConstants.UPDATE} {self.table} {SQLConstants.SET} {assignments} "
            f"{SQLConstants.WHERE} {self.predicate}"
        )


@dataclass
class PlainStatement(EntityStatement):
    """A statement that is already SQL, e.g. a sequence adjustment."""
    sql: str

    def to_sql(self, dialect: "GeneratorDialect") -> str:
        return self.sql


__all__ = [
    "EntityStatement",
    "InsertStatement",
    "UpdateStatement",
    "PlainStatement",
]
