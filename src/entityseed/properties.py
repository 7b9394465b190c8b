# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Property model: the description of one mapped field of an entity class.

Every property knows how it contributes to the ``INSERT`` of its entity, which
additional statements it needs (join tables, collection tables), how it
references the entity in a predicate and which statements it produces once a
referenced entity that was pending is written.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Tuple, Type

from pydantic import BaseModel

from .constants import ErrorMessages, GenerationType, SQLConstants
from .converters import (
    ConverterRegistry,
    EntityConverter,
    UnsupportedTypeConverter,
    ValueConverter,
)
from .errors import MappingError, MissingValueError
from .mapping import (
    CollectionMetadata,
    ColumnMetadata,
    EmbeddedMetadata,
    FieldAccessor,
    ReferenceMetadata,
    is_embeddable_class,
    is_mapped_class,
)
from .statements import EntityStatement, InsertStatement, UpdateStatement

if TYPE_CHECKING:
    from .entity_class import EntityClass


#: Column name and id field of the referenced entity (``None`` for simple ids)
ReferenceColumn = Tuple[str, Optional[str]]


class Property:
    """
    Base class for the description of properties of an entity class.

    :class: Property
    :synopsis: One mapped field, bound to its owning entity description
    """

    def __init__(self, owner: "EntityClass", accessor: FieldAccessor) -> None:
        self.owner = owner
        self.context = owner.context
        self.accessor = accessor

    @property
    def name(self) -> str:
        return self.accessor.name

    def get_value(self, entity: Any) -> Any:
        """Current value of this property, ``None`` if ``entity`` is ``None``."""
        return self.accessor.get(entity)

    def set_value(self, entity: Any, value: Any) -> None:
        self.accessor.set(entity, value)

    def is_required(self) -> bool:
        """The value needs to exist when the ``INSERT`` is written."""
        return False

    def is_table_column(self) -> bool:
        """:meth:`add_insert_expression` adds values to the owner's ``INSERT``."""
        raise NotImplementedError

    def add_insert_expression(self, entity: Any, statement: InsertStatement) -> None:
        pass

    def add_null_expression(self, statement: InsertStatement) -> None:
        """Add explicit ``NULL`` values for the columns of this property."""

    def build_additional_statements(self, entity: Any) -> List[EntityStatement]:
        """Statements written after the owner's ``INSERT``, e.g. rows of mapping tables."""
        return []

    def check_targets(self) -> None:
        """Describe the entity classes this property points to, raising their mapping errors."""

    def find_referenced_entities(self, entity: Any) -> List[Any]:
        return []

    def find_required_entities(self, entity: Any) -> List[Any]:
        """Referenced entities that must be written before the owner."""
        if self.is_required():
            return self.find_referenced_entities(entity)
        return []

    def generate_pending_statements(self, entity: Any, written_entity: Any, *arguments: Any) -> List[EntityStatement]:
        """
        Generate the statements for ``entity`` that had to wait for ``written_entity``.

        Only called if this property registered a pending update for ``written_entity`` before.

        :param entity: The entity that needs to be updated
        :param written_entity: The entity that exists now in the database
        :param arguments: Additional arguments given when the update was registered
        """
        return []

    def get_expression(self, entity: Any, where: bool = False) -> Optional[str]:
        """
        Expression for the current value of this property.

        :param entity: The entity
        :param where: The expression is used in a predicate
        :returns: The expression or ``None`` if none exists
        """
        return None

    def get_predicate(self, entity: Any) -> Optional[str]:
        """Predicate that matches the rows with the same value as ``entity``, if any."""
        return None

    def fail_if_required(self, entity: Any) -> None:
        if self.is_required():
            raise MissingValueError(
                ErrorMessages.MISSING_REQUIRED_VALUE.format(field=self.accessor, entity=self.owner.describe(entity)),
                entity=entity,
                field=self.name,
            )

    def __str__(self) -> str:
        return str(self.accessor)

    __repr__ = __str__


# -----------------------------------------------------------------------------
# Primitive columns
# -----------------------------------------------------------------------------

class PrimitiveProperty(Property):
    """
    A column with a primitive value.

    A value is written through the converter; without a value the default
    literal is used, then ``NULL`` if the session writes nulls.
    """

    def __init__(self, owner: "EntityClass", accessor: FieldAccessor, metadata: ColumnMetadata) -> None:
        super().__init__(owner, accessor)
        self.metadata = metadata
        self.table = owner.table
        self.column = metadata.name or accessor.name
        self.default_value = metadata.default_value
        self.required = (not metadata.nullable) or accessor.is_required or not accessor.allows_none

        self.converter: ValueConverter = ConverterRegistry.create_converter(
            accessor.value_type, metadata, field=str(accessor)
        )
        if isinstance(self.converter, UnsupportedTypeConverter):
            raise self.converter.error()

        if self.default_value is not None:
            try:
                self.converter.parse_default(self.default_value)
            except (ValueError, KeyError, TypeError) as e:
                raise MappingError(
                    ErrorMessages.INVALID_DEFAULT_VALUE.format(
                        value=repr(self.default_value), field=accessor, error=e
                    ),
                    field=accessor.name,
                ) from e

    @property
    def unique(self) -> bool:
        return self.metadata.unique

    @property
    def immutable(self) -> bool:
        return self.metadata.immutable

    def is_required(self) -> bool:
        return self.required

    def is_table_column(self) -> bool:
        return True

    def _value_expression(self, entity: Any) -> Optional[str]:
        value = self.get_value(entity)
        if value is not None:
            return self.converter.get_expression(value, self.context)
        if self.default_value is not None:
            return self.converter.get_default_expression(self.default_value, self.context)
        return None

    def add_insert_expression(self, entity: Any, statement: InsertStatement) -> None:
        expression = self._value_expression(entity)
        if expression is not None:
            statement.add_value(self.column, expression)
            return
        self.fail_if_required(entity)
        if self.context.write_null_values:
            statement.add_value(self.column, SQLConstants.NULL)

    def add_null_expression(self, statement: InsertStatement) -> None:
        statement.add_value(self.column, SQLConstants.NULL)

    def get_expression(self, entity: Any, where: bool = False) -> Optional[str]:
        expression = self._value_expression(entity)
        return SQLConstants.NULL if expression is None else expression

    def get_predicate(self, entity: Any) -> Optional[str]:
        expression = self._value_expression(entity)
        if expression is None:
            return f"{self.column} {SQLConstants.IS_NULL}"
        return f"{self.column}{SQLConstants.EQUALS}{expression}"

    def has_value(self, entity: Any) -> bool:
        return self.get_value(entity) is not None or self.default_value is not None


class GeneratedIdProperty(PrimitiveProperty):
    """
    An identifier generated by a sequence or an identity column.

    The value is allocated from the generator state when the entity is written
    and set on the entity, so later references can compute it.
    """

    def __init__(self, owner: "EntityClass", accessor: FieldAccessor, metadata: ColumnMetadata) -> None:
        super().__init__(owner, accessor, metadata)
        self.required = False
        self.generation = metadata.generation
        self.sequence = None
        if self.generation == GenerationType.SEQUENCE:
            self.sequence = metadata.sequence or self.context.provider.get_default_sequence()
            if not self.context.dialect.is_sequence_supported() and not self.context.explicit_ids:
                raise MappingError(
                    ErrorMessages.SEQUENCES_NOT_SUPPORTED.format(
                        dialect=self.context.dialect, field=accessor, sequence=self.sequence.sequence_name
                    ),
                    field=accessor.name,
                )
        value_type = accessor.value_type
        if not (isinstance(value_type, type) and issubclass(value_type, int) and value_type is not bool):
            raise MappingError(
                ErrorMessages.UNSUPPORTED_TYPE.format(type_name=getattr(value_type, "__name__", value_type), field=accessor),
                field=accessor.name,
            )

    def is_required(self) -> bool:
        return False

    def allocate(self, entity: Any) -> int:
        """Allocate the next value from the generator state and set it on ``entity``."""
        state = self.context.state
        if self.sequence is not None:
            value = state.next_sequence_value(
                self.sequence.sequence_name, self.sequence.initial_value, self.sequence.allocation_size
            )
        else:
            value = state.next_identity_value(self.table, self.column)
        self.set_value(entity, value)
        return value

    def add_insert_expression(self, entity: Any, statement: InsertStatement) -> None:
        value = self.get_value(entity)
        if value is None:
            value = self.allocate(entity)
        if self.context.explicit_ids:
            statement.add_value(self.column, str(value))
        elif self.sequence is not None:
            statement.add_value(
                self.column,
                self.context.dialect.build_next_sequence_value(
                    self.sequence.sequence_name, self.sequence.allocation_size
                ),
            )
        # Identity columns are filled by the database

    def literal_expression(self, value: int) -> str:
        return str(value)

    def is_current_value(self, value: int) -> bool:
        """Check if ``value`` is the latest value of the sequence."""
        if self.sequence is None:
            return False
        return self.context.state.current_sequence_value(self.sequence.sequence_name) == value

    def current_value_expression(self) -> str:
        return self.context.dialect.build_current_sequence_value(
            self.sequence.sequence_name, self.sequence.allocation_size
        )

    def relative_expression(self, value: int) -> str:
        """Expression of ``value`` relative to the latest value of the generator."""
        state = self.context.state
        if self.sequence is not None:
            difference = state.current_sequence_value(self.sequence.sequence_name) - value
            current = self.current_value_expression()
            return current if difference == 0 else f"({current} - {difference})"
        difference = state.current_identity_value(self.table, self.column) - value
        maximum = f"max({self.column})" if difference == 0 else f"max({self.column}) - {difference}"
        return f"({SQLConstants.SELECT} {maximum} {SQLConstants.FROM} {self.table})"


# -----------------------------------------------------------------------------
# Singular references
# -----------------------------------------------------------------------------

class EntityProperty(Property):
    """
    A singular reference to another entity.

    Stored as foreign key column(s) of the owner table or, with a join table,
    as one row in that table. References to entities that are not written yet
    are deferred until the target is written.
    """

    def __init__(
        self,
        owner: "EntityClass",
        accessor: FieldAccessor,
        metadata: ReferenceMetadata,
        target_class: Type[Any],
    ) -> None:
        super().__init__(owner, accessor)
        if not is_mapped_class(target_class):
            raise MappingError(
                ErrorMessages.INVALID_REFERENCE_TYPE.format(
                    field=accessor, type_name=getattr(target_class, "__name__", target_class)
                ),
                field=accessor.name,
            )
        self.metadata = metadata
        self.target_class = target_class
        self.join_table = metadata.join_table
        self.mapped_by = metadata.mapped_by
        self.required = (not metadata.nullable) or accessor.is_required or not accessor.allows_none
        self._columns: Optional[List[ReferenceColumn]] = None
        self._owner_columns: Optional[List[ReferenceColumn]] = None

    @property
    def columns(self) -> List[ReferenceColumn]:
        # Resolved on first use, the target description may still be under construction
        if self._columns is None:
            target = self.context.get_description(self.target_class)
            self._columns = target.reference_columns(self.accessor.name, self.metadata.column)
        return self._columns

    @property
    def owner_columns(self) -> List[ReferenceColumn]:
        if self._owner_columns is None:
            self._owner_columns = self.owner.reference_columns(self.owner.entity_name, self.metadata.join_column)
        return self._owner_columns

    def is_required(self) -> bool:
        return self.required

    def is_table_column(self) -> bool:
        return self.join_table is None and self.mapped_by is None

    def check_targets(self) -> None:
        self.context.get_description(self.target_class)

    def add_insert_expression(self, entity: Any, statement: InsertStatement) -> None:
        if not self.is_table_column():
            return
        target = self.get_value(entity)
        if target is None:
            self.fail_if_required(entity)
            if self.context.write_null_values:
                self.add_null_expression(statement)
            return

        description = self.context.get_description(target)
        if description.is_new(target):
            if self.required:
                raise MissingValueError(
                    ErrorMessages.UNRESOLVABLE_REQUIRED_REFERENCE.format(
                        field=self.accessor, entity=self.owner.describe(entity)
                    ),
                    entity=entity,
                    field=self.name,
                )
            if self.context.write_null_values:
                self.add_null_expression(statement)
            description.mark_pending_update(target, entity, self)
            return

        for column, id_field in self.columns:
            statement.add_value(column, description.get_entity_reference(target, id_field, False))

    def add_null_expression(self, statement: InsertStatement) -> None:
        if self.is_table_column():
            for column, _ in self.columns:
                statement.add_value(column, SQLConstants.NULL)

    def build_additional_statements(self, entity: Any) -> List[EntityStatement]:
        if self.join_table is None or self.mapped_by is not None:
            return []
        target = self.get_value(entity)
        if target is None:
            return []
        description = self.context.get_description(target)
        if description.is_new(target):
            description.mark_pending_update(target, entity, self)
            return []
        return [self._join_table_row(entity, target)]

    def _join_table_row(self, entity: Any, target: Any) -> InsertStatement:
        statement = InsertStatement(self.join_table)
        for column, id_field in self.owner_columns:
            statement.add_value(column, self.owner.get_entity_reference(entity, id_field, False))
        description = self.context.get_description(target)
        for column, id_field in self.columns:
            statement.add_value(column, description.get_entity_reference(target, id_field, False))
        return statement

    def find_referenced_entities(self, entity: Any) -> List[Any]:
        target = self.get_value(entity)
        return [] if target is None else [target]

    def generate_pending_statements(self, entity: Any, written_entity: Any, *arguments: Any) -> List[EntityStatement]:
        if self.join_table is not None:
            return [self._join_table_row(entity, written_entity)]
        description = self.context.get_description(written_entity)
        update = UpdateStatement(self.owner.table, self.owner.get_predicate(entity))
        for column, id_field in self.columns:
            update.add_value(column, description.get_entity_reference(written_entity, id_field, False))
        return [update]

    def get_expression(self, entity: Any, where: bool = False) -> Optional[str]:
        if len(self.columns) != 1:
            return None
        return EntityConverter().get_expression(self.get_value(entity), self.context)

    def get_predicate(self, entity: Any) -> Optional[str]:
        if not self.is_table_column():
            return None
        target = self.get_value(entity)
        if target is None:
            return SQLConstants.AND.join(f"{column} {SQLConstants.IS_NULL}" for column, _ in self.columns)
        description = self.context.get_description(target)
        parts = []
        for column, id_field in self.columns:
            reference = description.get_entity_reference(target, id_field, True)
            if reference is None:
                return None
            parts.append(f"{column}{SQLConstants.EQUALS}{reference}")
        return SQLConstants.AND.join(parts)


# -----------------------------------------------------------------------------
# Collections and maps
# -----------------------------------------------------------------------------

class CollectionProperty(Property):
    """
    A collection of entities or primitive values.

    Entities are linked through a join table or, without one, through a join
    column in the table of the target. Primitive values are rows of a
    collection table. The inverse side (``mapped_by``) writes nothing.
    """

    def __init__(
        self,
        owner: "EntityClass",
        accessor: FieldAccessor,
        metadata: CollectionMetadata,
        element_type: Any,
    ) -> None:
        super().__init__(owner, accessor)
        self.metadata = metadata
        self.element_type = element_type
        self.mapped_by = metadata.mapped_by
        self.is_entity_collection = is_mapped_class(element_type)
        self.converter: Optional[ValueConverter] = None
        if not self.is_entity_collection:
            self.converter = ConverterRegistry.create_converter(element_type, metadata, field=str(accessor))
            if isinstance(self.converter, UnsupportedTypeConverter):
                raise self.converter.error()
        self.uses_join_table = metadata.use_join_table or not self.is_entity_collection
        self._table: Optional[str] = None
        self._owner_columns: Optional[List[ReferenceColumn]] = None
        self._value_columns: Optional[List[ReferenceColumn]] = None

    # -------------------------------------------------------------------------
    # Table layout, resolved on first use
    # -------------------------------------------------------------------------

    @property
    def table(self) -> str:
        if self._table is None:
            if self.metadata.join_table:
                self._table = self.metadata.join_table
            elif self.is_entity_collection and self.uses_join_table:
                target = self.context.get_description(self.element_type)
                self._table = f"{self.owner.table}{SQLConstants.JOIN_TABLE_SEPARATOR}{target.table}"
            elif self.is_entity_collection:
                self._table = self.context.get_description(self.element_type).table
            else:
                self._table = f"{self.owner.table}{SQLConstants.JOIN_TABLE_SEPARATOR}{self.accessor.name}"
        return self._table

    @property
    def owner_columns(self) -> List[ReferenceColumn]:
        if self._owner_columns is None:
            prefix = self.owner.entity_name if self.uses_join_table else self.accessor.name
            self._owner_columns = self.owner.reference_columns(prefix, self.metadata.join_column)
        return self._owner_columns

    @property
    def value_columns(self) -> List[ReferenceColumn]:
        if self._value_columns is None:
            if self.is_entity_collection:
                target = self.context.get_description(self.element_type)
                self._value_columns = target.reference_columns(self.accessor.name, self.metadata.inverse_join_column)
            else:
                self._value_columns = [(self.metadata.inverse_join_column or self.accessor.name, None)]
        return self._value_columns

    def is_table_column(self) -> bool:
        return False

    def check_targets(self) -> None:
        if self.is_entity_collection:
            self.context.get_description(self.element_type)

    # -------------------------------------------------------------------------
    # Statements
    # -------------------------------------------------------------------------

    def _entries(self, entity: Any) -> List[Tuple[Any, Any]]:
        """Position and element of every entry, positions are list indices."""
        values = self.get_value(entity)
        if values is None:
            return []
        elements = [element for element in values if element is not None]
        if isinstance(values, (set, frozenset)) and self.converter is not None:
            elements.sort(key=lambda element: self.converter.get_expression(element, self.context))
        return list(enumerate(elements))

    def _add_position(self, statement: Any, position: Any) -> None:
        if self.metadata.order_column:
            statement.add_value(self.metadata.order_column, str(position))

    def _add_owner_reference(self, statement: Any, entity: Any) -> None:
        for column, id_field in self.owner_columns:
            statement.add_value(column, self.owner.get_entity_reference(entity, id_field, False))

    def _build_row(self, entity: Any, position: Any, element: Any) -> EntityStatement:
        if not self.is_entity_collection:
            statement = InsertStatement(self.table)
            self._add_owner_reference(statement, entity)
            self._add_position(statement, position)
            statement.add_value(self.value_columns[0][0], self.converter.get_expression(element, self.context))
            return statement

        description = self.context.get_description(element)
        if self.uses_join_table:
            statement = InsertStatement(self.table)
            self._add_owner_reference(statement, entity)
            self._add_position(statement, position)
            for column, id_field in self.value_columns:
                statement.add_value(column, description.get_entity_reference(element, id_field, False))
            return statement

        update = UpdateStatement(description.table, description.get_predicate(element))
        self._add_owner_reference(update, entity)
        self._add_position(update, position)
        return update

    def build_additional_statements(self, entity: Any) -> List[EntityStatement]:
        if self.mapped_by is not None:
            return []
        statements: List[EntityStatement] = []
        for position, element in self._entries(entity):
            if self.is_entity_collection:
                description = self.context.get_description(element)
                if description.is_new(element):
                    description.mark_pending_update(element, entity, self, position)
                    continue
            statements.append(self._build_row(entity, position, element))
        return statements

    def generate_pending_statements(self, entity: Any, written_entity: Any, *arguments: Any) -> List[EntityStatement]:
        position = arguments[0] if arguments else None
        return [self._build_row(entity, position, written_entity)]

    def find_referenced_entities(self, entity: Any) -> List[Any]:
        if not self.is_entity_collection:
            return []
        return [element for _, element in self._entries(entity)]


class MapProperty(CollectionProperty):
    """
    A dict from primitive keys to entities or primitive values.

    Every entry is one row of the map table with the key in ``key_column``.
    """

    def __init__(
        self,
        owner: "EntityClass",
        accessor: FieldAccessor,
        metadata: CollectionMetadata,
        key_type: Any,
        value_type: Any,
    ) -> None:
        super().__init__(owner, accessor, metadata, value_type)
        self.uses_join_table = True
        self.key_converter = ConverterRegistry.create_converter(key_type, metadata, map_key=True, field=str(accessor))
        if isinstance(self.key_converter, UnsupportedTypeConverter):
            raise self.key_converter.error()
        self.key_column = metadata.key_column or f"{accessor.name}{SQLConstants.JOIN_TABLE_SEPARATOR}KEY"

    @property
    def table(self) -> str:
        if self._table is None:
            self._table = (
                self.metadata.join_table
                or f"{self.owner.table}{SQLConstants.JOIN_TABLE_SEPARATOR}{self.accessor.name}"
            )
        return self._table

    def _entries(self, entity: Any) -> List[Tuple[Any, Any]]:
        values = self.get_value(entity)
        if values is None:
            return []
        return [(key, value) for key, value in values.items() if value is not None]

    def _add_position(self, statement: Any, position: Any) -> None:
        statement.add_value(self.key_column, self.key_converter.get_expression(position, self.context))


# -----------------------------------------------------------------------------
# Embedded groups
# -----------------------------------------------------------------------------

class EmbeddedProperty(Property):
    """
    A group of columns stored in the table of the owner.

    The properties of the embedded model read their values through the field
    of the owner, so they work on the owning entity directly.
    """

    def __init__(
        self,
        owner: "EntityClass",
        accessor: FieldAccessor,
        metadata: EmbeddedMetadata,
        embeddable_class: Type[BaseModel],
    ) -> None:
        super().__init__(owner, accessor)
        if not is_embeddable_class(embeddable_class):
            raise MappingError(
                ErrorMessages.NOT_AN_EMBEDDABLE.format(
                    field=accessor, type_name=getattr(embeddable_class, "__name__", embeddable_class)
                ),
                field=accessor.name,
            )
        self.metadata = metadata
        self.embeddable_class = embeddable_class
        self.primary_key = metadata.primary_key
        self.required = self.primary_key or accessor.is_required or not accessor.allows_none

        self.properties: Dict[str, Property] = {}
        for name, field_info in embeddable_class.model_fields.items():
            inner = FieldAccessor(embeddable_class, name, field_info, parent=accessor)
            self.properties[name] = owner.build_property(inner, metadata.overrides.get(name))

        if self.primary_key:
            self._check_id_members()

    def _check_id_members(self) -> None:
        for prop in self.properties.values():
            if isinstance(prop, GeneratedIdProperty):
                raise MappingError(ErrorMessages.GENERATED_EMBEDDED_ID.format(field=self.accessor), field=self.name)
            if not isinstance(prop, PrimitiveProperty):
                raise MappingError(
                    ErrorMessages.EMBEDDED_ID_MEMBER.format(field=self.accessor, member=prop),
                    field=self.name,
                )

    def get_component(self, id_field: str) -> Property:
        return self.properties[id_field]

    def is_required(self) -> bool:
        return self.required

    def is_table_column(self) -> bool:
        return any(prop.is_table_column() for prop in self.properties.values())

    def check_targets(self) -> None:
        for prop in self.properties.values():
            prop.check_targets()

    def add_insert_expression(self, entity: Any, statement: InsertStatement) -> None:
        if self.get_value(entity) is None:
            self.fail_if_required(entity)
            if self.context.write_null_values:
                self.add_null_expression(statement)
            return
        for prop in self.properties.values():
            if prop.is_table_column():
                prop.add_insert_expression(entity, statement)

    def add_null_expression(self, statement: InsertStatement) -> None:
        for prop in self.properties.values():
            prop.add_null_expression(statement)

    def build_additional_statements(self, entity: Any) -> List[EntityStatement]:
        if self.get_value(entity) is None:
            return []
        return [statement for prop in self.properties.values() for statement in prop.build_additional_statements(entity)]

    def find_referenced_entities(self, entity: Any) -> List[Any]:
        if self.get_value(entity) is None:
            return []
        return _chain(prop.find_referenced_entities(entity) for prop in self.properties.values())

    def find_required_entities(self, entity: Any) -> List[Any]:
        if self.get_value(entity) is None:
            return []
        return _chain(prop.find_required_entities(entity) for prop in self.properties.values())

    def get_predicate(self, entity: Any) -> Optional[str]:
        parts = []
        for prop in self.properties.values():
            if not prop.is_table_column():
                continue
            predicate = prop.get_predicate(entity)
            if predicate is None:
                return None
            parts.append(predicate)
        return SQLConstants.AND.join(parts) if parts else None


def _chain(groups: Iterable[List[Any]]) -> List[Any]:
    return [item for group in groups for item in group]


__all__ = [
    "Property",
    "PrimitiveProperty",
    "GeneratedIdProperty",
    "EntityProperty",
    "CollectionProperty",
    "MapProperty",
    "EmbeddedProperty",
]
