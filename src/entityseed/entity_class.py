# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Entity descriptions.

An :class:`EntityClass` describes one mapped model: its table, its properties
in field declaration order, the identifier and the unique properties that can
stand in for an identifier that is not known yet. It is the bridge between the
properties and the generator state of its entities.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING, Any, Dict, Hashable, List, Optional, Sequence, Type

from pydantic import BaseModel

from .constants import (
    ErrorMessages,
    GenerationType,
    LoggingMessages,
    ModelMetadataConstants,
    SQLConstants,
)
from .errors import InconsistentStateError, MappingError
from .mapping import (
    CollectionMetadata,
    ColumnMetadata,
    EmbeddedMetadata,
    FieldAccessor,
    ReferenceMetadata,
    collection_element_types,
    describe_entity,
    get_field_metadata,
    is_embeddable_class,
    is_mapped_class,
    unwrap_optional,
)
from .properties import (
    CollectionProperty,
    EmbeddedProperty,
    EntityProperty,
    GeneratedIdProperty,
    MapProperty,
    PrimitiveProperty,
    Property,
    ReferenceColumn,
)
from .state import PERSISTED, EntityKey, GenerationState, PendingState
from .statements import EntityStatement, InsertStatement

if TYPE_CHECKING:
    from .context import GeneratorContext

logger = logging.getLogger(__name__)


class EntityClass:
    """
    Description of a mapped entity class.

    :class: EntityClass
    :synopsis: Table, properties, identifier and unique properties of one entity class

    Instances are created by :meth:`GeneratorContext.get_description`, which
    caches the instance before :meth:`build` resolves the properties, so
    entity classes may reference each other.
    """

    def __init__(self, context: "GeneratorContext", entity_class: Type[BaseModel]) -> None:
        self.context = context
        self.entity_class = entity_class
        self.entity_name: str = getattr(entity_class, ModelMetadataConstants.ENTITY_NAME)
        self.table: str = getattr(entity_class, ModelMetadataConstants.ENTITY_TABLE)
        self.properties: Dict[str, Property] = {}
        self.id_property: Optional[Property] = None
        self.unique_properties: Optional[List[PrimitiveProperty]] = None

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    def build(self) -> None:
        """
        Resolve the properties of the entity class.

        :raises MappingError: if a field can't be mapped, the identifier is missing
            or a referenced entity class can't be described
        """
        # @@ STEP 1: Build the properties in declaration order
        id_candidates: List[Property] = []
        for name, field_info in self.entity_class.model_fields.items():
            accessor = FieldAccessor(self.entity_class, name, field_info)
            prop = self.build_property(accessor)
            self.properties[name] = prop
            if self._is_id_property(prop):
                id_candidates.append(prop)

        # @@ STEP 2: Exactly one identifier
        if not id_candidates:
            raise MappingError(ErrorMessages.MISSING_IDENTIFIER.format(entity_name=self.entity_name))
        if len(id_candidates) > 1:
            raise MappingError(
                ErrorMessages.DUPLICATE_IDENTIFIER.format(
                    entity_name=self.entity_name, fields=", ".join(prop.name for prop in id_candidates)
                )
            )
        self.id_property = id_candidates[0]

        # @@ STEP 3: Pick the unique properties
        self.unique_properties = self._build_unique_properties()

        # @@ STEP 4: Describe the targets of references and entity collections
        for prop in self.properties.values():
            prop.check_targets()

        logger.debug(LoggingMessages.DESCRIPTION_BUILT, self.entity_name, self.table, len(self.properties))

    @staticmethod
    def _is_id_property(prop: Property) -> bool:
        if isinstance(prop, PrimitiveProperty):
            return prop.metadata.primary_key
        if isinstance(prop, EmbeddedProperty):
            return prop.primary_key
        return False

    def build_property(self, accessor: FieldAccessor, column_name: Optional[str] = None) -> Property:
        """
        Create the property for a field, from its metadata or from its annotation.

        Args:
            accessor: Accessor of the field
            column_name: Column name that overrides the mapping, used by embedded groups

        Returns:
            The property
        """
        metadata = get_field_metadata(accessor.field_info)
        value_type = accessor.value_type

        # @@ STEP 1: Embedded groups
        if isinstance(metadata, EmbeddedMetadata) or (metadata is None and is_embeddable_class(value_type)):
            return EmbeddedProperty(self, accessor, metadata or EmbeddedMetadata(), value_type)

        # @@ STEP 2: Collections and maps
        element_types = collection_element_types(accessor.annotation)
        if isinstance(metadata, CollectionMetadata) or (metadata is None and element_types is not None):
            if element_types is None:
                raise MappingError(
                    ErrorMessages.INVALID_COLLECTION_TYPE.format(field=accessor, type_name=value_type),
                    field=accessor.name,
                )
            key_type, element_type = element_types
            collection_metadata = metadata or CollectionMetadata()
            if key_type is not None:
                return MapProperty(self, accessor, collection_metadata, key_type, unwrap_optional(element_type))
            return CollectionProperty(self, accessor, collection_metadata, unwrap_optional(element_type))

        # @@ STEP 3: Singular references
        if isinstance(metadata, ReferenceMetadata) or (metadata is None and is_mapped_class(value_type)):
            reference_metadata = metadata or ReferenceMetadata()
            if column_name is not None:
                reference_metadata = dataclasses.replace(reference_metadata, column=column_name)
            return EntityProperty(self, accessor, reference_metadata, value_type)

        # @@ STEP 4: Primitive columns
        column_metadata = metadata if isinstance(metadata, ColumnMetadata) else ColumnMetadata()
        if column_name is not None:
            column_metadata = dataclasses.replace(column_metadata, name=column_name)
        if column_metadata.primary_key and column_metadata.generation not in (None, GenerationType.ASSIGNED):
            return GeneratedIdProperty(self, accessor, column_metadata)
        return PrimitiveProperty(self, accessor, column_metadata)

    def _build_unique_properties(self) -> Optional[List[PrimitiveProperty]]:
        """
        Find the first unique group that is allowed to reference an entity.

        Groups are the single ``unique`` columns in declaration order, followed by
        the ``unique_constraints`` of the entity declaration.
        """
        groups: List[Sequence[str]] = [
            (name,)
            for name, prop in self.properties.items()
            if isinstance(prop, PrimitiveProperty) and prop.unique and prop is not self.id_property
        ]
        groups.extend(getattr(self.entity_class, ModelMetadataConstants.ENTITY_UNIQUE_CONSTRAINTS, []))

        quality = self.context.unique_property_quality
        maximum = self.context.max_unique_properties
        for group in groups:
            for field_name in group:
                if field_name not in self.properties:
                    raise MappingError(
                        ErrorMessages.UNKNOWN_UNIQUE_PROPERTY.format(entity_name=self.entity_name, field_name=field_name)
                    )
            if not group or len(group) > maximum:
                continue
            members = [self.properties[field_name] for field_name in group]
            if all(self._is_unique_candidate(prop, quality) for prop in members):
                return members
            logger.warning(LoggingMessages.UNIQUE_GROUP_SKIPPED, list(group), self.entity_name, quality.value)
        return None

    @staticmethod
    def _is_unique_candidate(prop: Property, quality: Any) -> bool:
        if not isinstance(prop, PrimitiveProperty) or isinstance(prop, GeneratedIdProperty):
            return False
        if quality.needs_required and not prop.is_required():
            return False
        if quality.needs_immutable and not prop.immutable:
            return False
        return True

    # -------------------------------------------------------------------------
    # Identifier columns
    # -------------------------------------------------------------------------

    def get_id_columns(self) -> List[ReferenceColumn]:
        """Identifier columns with the id field of each column (``None`` for simple ids)."""
        if isinstance(self.id_property, EmbeddedProperty):
            return [
                (prop.column, name)
                for name, prop in self.id_property.properties.items()
                if isinstance(prop, PrimitiveProperty)
            ]
        return [(self.id_property.column, None)]

    def reference_columns(self, prefix: str, column_name: Optional[str] = None) -> List[ReferenceColumn]:
        """
        Columns of a foreign key to this entity.

        :param prefix: Prefix for the default names (``<prefix>_<id column>``)
        :param column_name: Explicit name for a simple identifier, or the prefix for a composite one
        """
        id_columns = self.get_id_columns()
        if column_name is not None and len(id_columns) == 1:
            return [(column_name, None)]
        prefix = column_name or prefix
        return [
            (f"{prefix}{SQLConstants.JOIN_TABLE_SEPARATOR}{column}", id_field) for column, id_field in id_columns
        ]

    # -------------------------------------------------------------------------
    # Generation state
    # -------------------------------------------------------------------------

    @property
    def states(self) -> Dict[Hashable, GenerationState]:
        return self.context.state.get_states(self.entity_name)

    def get_state_key(self, entity: Any) -> Hashable:
        """
        Key of an entity in the generation state.

        Entities with generated identifiers are tracked by object identity, their
        identifier is unknown until they are written. All others use their identifier.
        """
        if isinstance(self.id_property, GeneratedIdProperty):
            return EntityKey(entity)
        value = self.id_property.get_value(entity)
        if value is None:
            return EntityKey(entity)
        return _freeze(value)

    def is_new(self, entity: Any) -> bool:
        """
        Check if an entity still needs to be written.

        An entity with a generated identifier that is already set counts as
        existing in the database.
        """
        if self.states.get(self.get_state_key(entity)) is PERSISTED:
            return False
        if isinstance(self.id_property, GeneratedIdProperty):
            return self.id_property.get_value(entity) is None
        return True

    def describe(self, entity: Any) -> str:
        """Entity for messages, by its identifier value once one is known."""
        value = self.id_property.get_value(entity) if self.id_property is not None else None
        return describe_entity(entity, value)

    def _is_preexisting(self, entity: Any) -> bool:
        return self.states.get(self.get_state_key(entity)) is not PERSISTED

    def mark_pending_update(self, entity: Any, owner_entity: Any, prop: Property, *arguments: Any) -> None:
        """
        Register an update for ``owner_entity`` that waits until ``entity`` is written.

        :param entity: The referenced entity that is not written yet
        :param owner_entity: The entity that needs the update
        :param prop: The property that generates the update
        :param arguments: Additional arguments for :meth:`Property.generate_pending_statements`
        """
        states = self.states
        key = self.get_state_key(entity)
        state = states.get(key)
        if state is PERSISTED:
            raise InconsistentStateError(
                ErrorMessages.ALREADY_WRITTEN.format(entity=self.describe(entity)), entity=entity
            )
        if state is None:
            state = PendingState()
            states[key] = state
        state.add_update(owner_entity, prop, tuple(arguments))
        logger.debug(LoggingMessages.PENDING_UPDATE, type(owner_entity).__name__, prop.name, self.describe(entity))

    def mark_existing_entity(self, entity: Any) -> List[EntityStatement]:
        """
        Mark an entity as written.

        :returns: The pending updates of other entities that waited for this one,
            in registration order
        :raises InconsistentStateError: if the entity was marked already
        """
        states = self.states
        key = self.get_state_key(entity)
        state = states.get(key)
        if state is PERSISTED:
            raise InconsistentStateError(
                ErrorMessages.ALREADY_WRITTEN.format(entity=self.describe(entity)), entity=entity
            )
        states[key] = PERSISTED

        statements: List[EntityStatement] = []
        if isinstance(state, PendingState):
            logger.debug(LoggingMessages.PENDING_FLUSH, len(state.updates), self.describe(entity))
            for update in state.updates:
                statements.extend(update.property.generate_pending_statements(update.entity, entity, *update.arguments))
        return statements

    # -------------------------------------------------------------------------
    # References
    # -------------------------------------------------------------------------

    def create_insert_statement(self, entity: Any) -> InsertStatement:
        """
        Build the ``INSERT`` of a new entity.

        A sequence value is allocated first, ``NEXT VALUE FOR`` runs before the
        other expressions of the row. An identity value is allocated last: while
        the other columns are computed, the row does not exist in its table.
        """
        id_property = self.id_property
        allocate_last = isinstance(id_property, GeneratedIdProperty) and id_property.sequence is None

        statement = InsertStatement(self.table)
        if not allocate_last:
            id_property.add_insert_expression(entity, statement)
        columns = InsertStatement(self.table)
        for prop in self.properties.values():
            if prop is not id_property and prop.is_table_column():
                prop.add_insert_expression(entity, columns)
        if allocate_last:
            id_property.add_insert_expression(entity, statement)
        statement.values.update(columns.values)
        return statement

    def get_unique_predicate(self, entity: Any) -> Optional[str]:
        """Predicate from the unique properties, ``None`` if a value is missing."""
        if not self.unique_properties:
            return None
        if not all(prop.has_value(entity) for prop in self.unique_properties):
            return None
        return SQLConstants.AND.join(prop.get_predicate(entity) for prop in self.unique_properties)

    def _generated_reference(self, entity: Any) -> str:
        id_property = self.id_property
        value = id_property.get_value(entity)

        # @@ STEP 1: Known values
        if self.context.explicit_ids or self._is_preexisting(entity):
            return id_property.literal_expression(value)

        # @@ STEP 2: Latest value of the sequence
        if self.context.prefer_sequence_current_value and id_property.is_current_value(value):
            return id_property.current_value_expression()

        # @@ STEP 3: Unique properties
        unique = self.get_unique_predicate(entity)
        if unique is not None:
            return (
                f"({SQLConstants.SELECT} {id_property.column} {SQLConstants.FROM} {self.table} "
                f"{SQLConstants.WHERE} {unique})"
            )

        # @@ STEP 4: Relative to the latest value
        return id_property.relative_expression(value)

    def get_entity_reference(self, entity: Any, id_field: Optional[str] = None, where: bool = False) -> Optional[str]:
        """
        Create the expression that references an entity.

        :param entity: The entity
        :param id_field: The component of a composite identifier
        :param where: The reference is used in a predicate
        :returns: The expression or ``None`` if the entity was not written yet
        """
        if self.is_new(entity):
            return None
        if isinstance(self.id_property, GeneratedIdProperty):
            return self._generated_reference(entity)
        if isinstance(self.id_property, EmbeddedProperty):
            if id_field is None:
                raise InconsistentStateError(
                    ErrorMessages.COMPOSITE_ID_REFERENCE.format(entity=self.describe(entity)), entity=entity
                )
            return self.id_property.get_component(id_field).get_expression(entity, where)
        return self.id_property.get_expression(entity, where)

    def get_predicate(self, entity: Any) -> str:
        """Predicate that selects the row of an entity that was written."""
        id_property = self.id_property
        if not isinstance(id_property, GeneratedIdProperty):
            return id_property.get_predicate(entity)

        value = id_property.get_value(entity)
        known = self.context.explicit_ids or self._is_preexisting(entity)
        current = self.context.prefer_sequence_current_value and id_property.is_current_value(value)
        if not known and not current:
            unique = self.get_unique_predicate(entity)
            if unique is not None:
                return unique
        return f"{id_property.column}{SQLConstants.EQUALS}{self._generated_reference(entity)}"

    def __repr__(self) -> str:
        return f"EntityClass({self.entity_name}, table={self.table})"


def _freeze(value: Any) -> Hashable:
    """Hashable form of an identifier value, embedded identifiers become tuples."""
    if isinstance(value, BaseModel):
        return (type(value),) + tuple(_freeze(item) for item in value.__dict__.values())
    return value


__all__ = [
    "EntityClass",
]
