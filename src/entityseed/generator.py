# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Statement generation for graphs of entities.

:class:`EntitySqlGenerator` writes one entity at a time to completion: the
entities it requires, its ``INSERT``, the deferred updates that waited for it,
the entities it references and finally the rows of its collections.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional, Set, TextIO

from .constants import LoggingMessages, SQLConstants
from .context import GeneratorContext
from .statements import EntityStatement, PlainStatement

logger = logging.getLogger(__name__)


class EntitySqlGenerator:
    """
    Generates the SQL statements that create a graph of entities.

    :class: EntitySqlGenerator
    :synopsis: Orders statements and resolves references between entities

    Statements are collected in :attr:`statements`. If a text stream is given,
    every statement is also written to it as soon as it is created, terminated
    by ``;`` on its own line.
    """

    def __init__(self, context: Optional[GeneratorContext] = None, writer: Optional[TextIO] = None) -> None:
        self.context = context if context is not None else GeneratorContext()
        self.writer = writer
        self.statements: List[EntityStatement] = []
        self._in_progress: Set[int] = set()

    def write(self, entity: Any) -> None:
        """
        Write an entity and all entities reachable from it.

        Entities that are written already, or that exist in the database
        according to their identifier, are skipped.

        :param entity: The entity to write
        :raises MissingValueError: if a required value is missing
        :raises MappingError: if the entity class can't be described
        """
        description = self.context.get_description(entity)
        if id(entity) in self._in_progress:
            return
        if not description.is_new(entity):
            logger.debug(LoggingMessages.ENTITY_SKIPPED, description.describe(entity))
            return

        self._in_progress.add(id(entity))
        try:
            properties = list(description.properties.values())

            # @@ STEP 1: Write the entities that are needed for the INSERT
            required: List[Any] = []
            for prop in properties:
                required.extend(prop.find_required_entities(entity))
            for referenced in required:
                self.write(referenced)

            # @@ STEP 2: Write the INSERT
            self.write_statement(description.create_insert_statement(entity))

            # @@ STEP 3: Mark as written and flush the updates that waited for this entity
            for statement in description.mark_existing_entity(entity):
                self.write_statement(statement)

            # @@ STEP 4: Write all other referenced entities
            required_ids = {id(referenced) for referenced in required}
            for prop in properties:
                for referenced in prop.find_referenced_entities(entity):
                    if id(referenced) not in required_ids:
                        self.write(referenced)

            # @@ STEP 5: Write the rows of join and collection tables
            for prop in properties:
                for statement in prop.build_additional_statements(entity):
                    self.write_statement(statement)
        finally:
            self._in_progress.discard(id(entity))

    def write_all(self, entities: Iterable[Any]) -> None:
        for entity in entities:
            self.write(entity)

    def write_statement(self, statement: EntityStatement) -> None:
        """Add a statement to the output, and to the text stream if one was given."""
        self.statements.append(statement)
        if self.writer is not None:
            self.writer.write(statement.to_sql(self.context.dialect))
            self.writer.write(f"{SQLConstants.STATEMENT_SEPARATOR}\n")

    def write_alignment_statements(self) -> List[EntityStatement]:
        """
        Move every used sequence and identity column behind the generated values.

        Only needed when identifiers are written explicitly, otherwise the
        database generated them itself.

        :returns: The statements that were written
        """
        if not self.context.explicit_ids:
            return []
        dialect = self.context.dialect
        state = self.context.state
        sqls: List[str] = []

        if dialect.is_sequence_supported():
            for sequence_name, current_value in state.sequences.items():
                next_value = current_value + state.get_allocation_size(sequence_name)
                logger.debug(LoggingMessages.ALIGNMENT, sequence_name, next_value)
                sqls.extend(dialect.adjust_next_sequence_value(sequence_name, current_value, next_value))

        for column_id, current_value in state.identities.items():
            table, _, column = column_id.rpartition(SQLConstants.COLUMN_ID_SEPARATOR)
            logger.debug(LoggingMessages.ALIGNMENT, column_id, current_value + 1)
            sqls.extend(dialect.adjust_next_identity_value(table, column, current_value + 1))

        statements: List[EntityStatement] = [PlainStatement(sql) for sql in sqls]
        for statement in statements:
            self.write_statement(statement)
        return statements

    def to_sql(self) -> List[str]:
        """Render all statements written so far."""
        return [statement.to_sql(self.context.dialect) for statement in self.statements]

    def __repr__(self) -> str:
        return f"EntitySqlGenerator({self.context.dialect}, {len(self.statements)} statements)"


__all__ = [
    "EntitySqlGenerator",
]
