# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Explicit mapping declarations for entity models.

Entities are pydantic models decorated with :func:`entity`. Their fields carry
mapping metadata through the helpers :func:`column`, :func:`reference`,
:func:`collection` and :func:`embedded`, which attach a metadata object to the
pydantic ``json_schema_extra`` of the field. The generator context reads that
metadata once per class when it builds the entity description.
"""

from __future__ import annotations

import collections.abc as abc
import types
from dataclasses import dataclass, field
from typing import (
    Any,
    Callable,
    Dict,
    Optional,
    Sequence,
    Tuple,
    Type,
    TypeVar,
    Union,
    get_args,
    get_origin,
)

from pydantic import BaseModel, ConfigDict, Field
from pydantic.fields import FieldInfo

from .constants import (
    EnumType,
    ErrorMessages,
    GenerationType,
    ModelMetadataConstants,
    TemporalType,
)
from .errors import MappingError


T = TypeVar("T")


# -----------------------------------------------------------------------------
# Field-level metadata
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class SequenceGenerator:
    """
    Declaration of a database sequence that generates identifiers.

    :class: SequenceGenerator
    :synopsis: Name, initial value and allocation size of a sequence
    """
    sequence_name: str
    initial_value: int = 1
    allocation_size: int = 1


@dataclass
class ColumnMetadata:
    """
    Metadata of a primitive column.

    :class: ColumnMetadata
    :synopsis: Column name, nullability, uniqueness, conversion options and id generation
    """
    name: Optional[str] = None
    nullable: bool = True
    unique: bool = False
    immutable: bool = False
    lob: bool = False
    temporal: Optional[TemporalType] = None
    enumerated: EnumType = EnumType.STRING
    default_value: Optional[str] = None
    primary_key: bool = False
    generation: Optional[GenerationType] = None
    sequence: Optional[SequenceGenerator] = None


@dataclass
class ReferenceMetadata:
    """
    Metadata of a singular reference to another entity.

    Without ``join_table`` the reference is a foreign key column of the owner
    table, otherwise one row in the join table links owner and target.
    """
    column: Optional[str] = None
    nullable: bool = True
    join_table: Optional[str] = None
    join_column: Optional[str] = None
    mapped_by: Optional[str] = None


@dataclass
class CollectionMetadata:
    """
    Metadata of a collection or map property.

    Entity elements are linked through ``join_table`` (the default) or, with
    ``use_join_table=False``, through the ``join_column`` of the target table.
    Primitive elements are stored in a collection table. ``mapped_by`` marks
    the inverse side, which produces no statements.
    """
    join_table: Optional[str] = None
    join_column: Optional[str] = None
    inverse_join_column: Optional[str] = None
    use_join_table: bool = True
    mapped_by: Optional[str] = None
    order_column: Optional[str] = None
    key_column: Optional[str] = None
    lob: bool = False
    temporal: Optional[TemporalType] = None
    enumerated: EnumType = EnumType.STRING
    key_temporal: Optional[TemporalType] = None
    key_enumerated: EnumType = EnumType.STRING


@dataclass
class EmbeddedMetadata:
    """Metadata of an embedded group, with optional column name overrides."""
    overrides: Dict[str, str] = field(default_factory=dict)
    primary_key: bool = False


FieldMetadata = Union[ColumnMetadata, ReferenceMetadata, CollectionMetadata, EmbeddedMetadata]


def _metadata_field(
    metadata: FieldMetadata,
    default: Any,
    default_factory: Optional[Callable[[], Any]],
    alias: Optional[str],
    description: Optional[str],
    json_schema_extra: Optional[Dict[str, Any]],
) -> Any:
    if type(json_schema_extra) is not dict:
        json_schema_extra = {}
    # Store the metadata object itself to keep enum and dataclass types intact
    json_schema_extra[ModelMetadataConstants.FIELD_METADATA] = metadata

    field_kwargs: Dict[str, Any] = {
        "json_schema_extra": json_schema_extra,
        "alias": alias,
        "description": description,
    }
    if default_factory is not None:
        return Field(default_factory=default_factory, **field_kwargs)
    return Field(default=default, **field_kwargs)


def column(
    default: Any = ...,
    *,
    name: Optional[str] = None,
    nullable: bool = True,
    unique: bool = False,
    immutable: bool = False,
    lob: bool = False,
    temporal: Optional[TemporalType] = None,
    enumerated: EnumType = EnumType.STRING,
    default_value: Optional[str] = None,
    primary_key: bool = False,
    generation: Optional[GenerationType] = None,
    sequence: Optional[SequenceGenerator] = None,
    default_factory: Optional[Callable[[], Any]] = None,
    alias: Optional[str] = None,
    description: Optional[str] = None,
    json_schema_extra: Optional[Dict[str, Any]] = None,
) -> Any:
    """
    Create a pydantic Field describing a primitive column.

    Args:
        default: Python-side default of the field
        name: Column name, the field name if not given
        nullable: ``False`` marks the column as required
        unique: The column identifies its row on its own
        immutable: The value never changes after the row was created
        lob: Render the value as large object, regardless of its type
        temporal: Column representation of date/time values
        enumerated: Column representation of enum values
        default_value: SQL default used when the value is ``None``
        primary_key: The column is the identifier of the entity
        generation: How the identifier is generated
        sequence: Sequence for ``GenerationType.SEQUENCE``
    """
    if sequence is not None and generation is None:
        generation = GenerationType.SEQUENCE
    if generation is not None and not primary_key:
        raise MappingError(ErrorMessages.GENERATED_NON_ID_COLUMN.format(generation=generation, field=name))

    metadata = ColumnMetadata(
        name=name,
        nullable=nullable,
        unique=unique,
        immutable=immutable,
        lob=lob,
        temporal=temporal,
        enumerated=enumerated,
        default_value=default_value,
        primary_key=primary_key,
        generation=generation,
        sequence=sequence,
    )

    # Generated identifiers stay unset until the generator allocates them
    if generation is not None and generation != GenerationType.ASSIGNED and default is ...:
        default = None
    return _metadata_field(metadata, default, default_factory, alias, description, json_schema_extra)


def reference(
    default: Any = None,
    *,
    column: Optional[str] = None,
    nullable: bool = True,
    join_table: Optional[str] = None,
    join_column: Optional[str] = None,
    mapped_by: Optional[str] = None,
    alias: Optional[str] = None,
    description: Optional[str] = None,
    json_schema_extra: Optional[Dict[str, Any]] = None,
) -> Any:
    """Create a pydantic Field describing a singular reference to another entity."""
    metadata = ReferenceMetadata(
        column=column,
        nullable=nullable,
        join_table=join_table,
        join_column=join_column,
        mapped_by=mapped_by,
    )
    return _metadata_field(metadata, default, None, alias, description, json_schema_extra)


def collection(
    *,
    join_table: Optional[str] = None,
    join_column: Optional[str] = None,
    inverse_join_column: Optional[str] = None,
    use_join_table: bool = True,
    mapped_by: Optional[str] = None,
    order_column: Optional[str] = None,
    key_column: Optional[str] = None,
    lob: bool = False,
    temporal: Optional[TemporalType] = None,
    enumerated: EnumType = EnumType.STRING,
    key_temporal: Optional[TemporalType] = None,
    key_enumerated: EnumType = EnumType.STRING,
    default_factory: Optional[Callable[[], Any]] = list,
    alias: Optional[str] = None,
    description: Optional[str] = None,
    json_schema_extra: Optional[Dict[str, Any]] = None,
) -> Any:
    """Create a pydantic Field describing a collection (list, set, tuple) or a dict."""
    metadata = CollectionMetadata(
        join_table=join_table,
        join_column=join_column,
        inverse_join_column=inverse_join_column,
        use_join_table=use_join_table,
        mapped_by=mapped_by,
        order_column=order_column,
        key_column=key_column,
        lob=lob,
        temporal=temporal,
        enumerated=enumerated,
        key_temporal=key_temporal,
        key_enumerated=key_enumerated,
    )
    return _metadata_field(metadata, None, default_factory, alias, description, json_schema_extra)


def embedded(
    default: Any = None,
    *,
    overrides: Optional[Dict[str, str]] = None,
    primary_key: bool = False,
    default_factory: Optional[Callable[[], Any]] = None,
    alias: Optional[str] = None,
    description: Optional[str] = None,
    json_schema_extra: Optional[Dict[str, Any]] = None,
) -> Any:
    """Create a pydantic Field describing an embedded group of columns."""
    metadata = EmbeddedMetadata(overrides=dict(overrides or {}), primary_key=primary_key)
    if primary_key and default is None and default_factory is None:
        default = ...
    return _metadata_field(metadata, default, default_factory, alias, description, json_schema_extra)


def get_field_metadata(field_info: FieldInfo) -> Optional[FieldMetadata]:
    """
    Get the mapping metadata attached to a pydantic field.

    :param field_info: Pydantic field info
    :type field_info: FieldInfo
    :returns: Mapping metadata or None for plain pydantic fields
    """
    extra = field_info.json_schema_extra
    if extra and isinstance(extra, dict):
        metadata = extra.get(ModelMetadataConstants.FIELD_METADATA)
        if isinstance(metadata, (ColumnMetadata, ReferenceMetadata, CollectionMetadata, EmbeddedMetadata)):
            return metadata
    return None


# -----------------------------------------------------------------------------
# Field access
# -----------------------------------------------------------------------------

class FieldAccessor:
    """
    Typed get/set pair for one field of a model, resolved once per description.

    :class: FieldAccessor
    :synopsis: Accessor for a mapped field of a domain object
    """

    __slots__ = ("owner", "name", "field_info", "annotation", "parent", "_get", "_set")

    def __init__(
        self,
        owner: Type[Any],
        name: str,
        field_info: FieldInfo,
        parent: Optional["FieldAccessor"] = None,
    ) -> None:
        self.owner = owner
        self.name = name
        self.field_info = field_info
        self.annotation = field_info.annotation
        # Fields of embedded groups are read through the field of the embedding model
        self.parent = parent

        if parent is None:
            def _get(instance: Any) -> Any:
                return instance.__dict__.get(name)

            def _set(instance: Any, value: Any) -> None:
                setattr(instance, name, value)
        else:
            def _get(instance: Any) -> Any:
                container = parent.get(instance)
                return None if container is None else container.__dict__.get(name)

            def _set(instance: Any, value: Any) -> None:
                setattr(parent.get(instance), name, value)

        self._get = _get
        self._set = _set

    def get(self, instance: Any) -> Any:
        if instance is None:
            return None
        return self._get(instance)

    def set(self, instance: Any, value: Any) -> None:
        self._set(instance, value)

    @property
    def is_required(self) -> bool:
        """The model can't be created without a value for this field."""
        return self.field_info.is_required()

    @property
    def allows_none(self) -> bool:
        return allows_none(self.annotation)

    @property
    def value_type(self) -> Any:
        return unwrap_optional(self.annotation)

    def __str__(self) -> str:
        if self.parent is not None:
            return f"{self.parent}.{self.name}"
        return f"{self.owner.__name__}.{self.name}"

    __repr__ = __str__


# -----------------------------------------------------------------------------
# Annotation helpers
# -----------------------------------------------------------------------------

_UNION_TYPES: Tuple[Any, ...] = (Union, types.UnionType)


def allows_none(annotation: Any) -> bool:
    """Check if an annotation accepts ``None``."""
    if annotation is None or annotation is type(None) or annotation is Any:
        return True
    if get_origin(annotation) in _UNION_TYPES:
        return type(None) in get_args(annotation)
    return False


def unwrap_optional(annotation: Any) -> Any:
    """Strip ``Optional[...]`` from an annotation."""
    if get_origin(annotation) in _UNION_TYPES:
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def collection_element_types(annotation: Any) -> Optional[Tuple[Optional[Any], Any]]:
    """
    Split a collection annotation into key and element type.

    :returns: ``(None, element)`` for list/set/tuple, ``(key, value)`` for dict,
        ``None`` for anything else
    """
    annotation = unwrap_optional(annotation)
    origin = get_origin(annotation)
    args = get_args(annotation)
    if origin in (list, set, frozenset, abc.Sequence, abc.Set, abc.Collection) and len(args) == 1:
        return None, args[0]
    if origin is tuple and len(args) == 2 and args[1] is Ellipsis:
        return None, args[0]
    if origin is dict and len(args) == 2:
        return args[0], args[1]
    return None


# -----------------------------------------------------------------------------
# Decorators
# -----------------------------------------------------------------------------

def entity(
    name: Optional[str] = None,
    table: Optional[str] = None,
    unique_constraints: Optional[Sequence[Sequence[str]]] = None,
) -> Callable[[Type[T]], Type[T]]:
    """
    Decorator to mark a pydantic model as an entity.

    :param name: Entity name, the class name if not given
    :param table: Table name, the entity name if not given
    :param unique_constraints: Groups of field names that identify a row together
    """

    def decorator(cls: Type[T]) -> Type[T]:
        if not (isinstance(cls, type) and issubclass(cls, BaseModel)):
            raise MappingError(ErrorMessages.NOT_A_DECORATED_MODEL.format(decorator="entity", value=repr(cls)))
        entity_name = name if name is not None else cls.__name__

        setattr(cls, ModelMetadataConstants.ENTITY_NAME, entity_name)
        setattr(cls, ModelMetadataConstants.ENTITY_TABLE, table if table is not None else entity_name)
        setattr(
            cls,
            ModelMetadataConstants.ENTITY_UNIQUE_CONSTRAINTS,
            [tuple(group) for group in (unique_constraints or [])],
        )
        setattr(cls, ModelMetadataConstants.IS_ENTITY, True)
        return cls

    return decorator


def embeddable(cls: Type[T]) -> Type[T]:
    """Decorator to mark a pydantic model as a group of columns embedded into entities."""
    if not (isinstance(cls, type) and issubclass(cls, BaseModel)):
        raise MappingError(ErrorMessages.NOT_A_DECORATED_MODEL.format(decorator="embeddable", value=repr(cls)))
    setattr(cls, ModelMetadataConstants.IS_EMBEDDABLE, True)
    return cls


def is_entity_class(cls: Any) -> bool:
    """Check if a class carries its own ``@entity`` declaration (inherited ones don't count)."""
    return isinstance(cls, type) and cls.__dict__.get(ModelMetadataConstants.IS_ENTITY, False) is True


def is_mapped_class(cls: Any) -> bool:
    """Check if a class is an entity or a subclass of one."""
    return isinstance(cls, type) and getattr(cls, ModelMetadataConstants.IS_ENTITY, False) is True


def is_embeddable_class(cls: Any) -> bool:
    return isinstance(cls, type) and cls.__dict__.get(ModelMetadataConstants.IS_EMBEDDABLE, False) is True


# -----------------------------------------------------------------------------
# Base model
# -----------------------------------------------------------------------------

class EntityBase(BaseModel):
    """
    Base model for entities.

    Entities are compared and hashed by object identity: two instances are the
    same row only if the generator sees the same object, and object graphs may
    contain cycles that a field-wise comparison would never leave.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True, validate_assignment=True, use_enum_values=False
    )

    def __hash__(self) -> int:
        return id(self)

    def __eq__(self, other: object) -> bool:
        return self is other

    def __repr__(self) -> str:
        # Field-wise repr would follow reference cycles
        return f"<{type(self).__name__} at {id(self):#x}>"


def describe_entity(instance: Any, id_value: Any = None) -> str:
    """Short, cycle-safe description of an entity instance for messages."""
    if id_value is None:
        return f"{type(instance).__name__}@{id(instance):#x}"
    return f"{type(instance).__name__}#{id_value}"


__all__ = [
    "SequenceGenerator",
    "ColumnMetadata",
    "ReferenceMetadata",
    "CollectionMetadata",
    "EmbeddedMetadata",
    "FieldMetadata",
    "column",
    "reference",
    "collection",
    "embedded",
    "get_field_metadata",
    "FieldAccessor",
    "allows_none",
    "unwrap_optional",
    "collection_element_types",
    "entity",
    "embeddable",
    "is_entity_class",
    "is_mapped_class",
    "is_embeddable_class",
    "EntityBase",
    "describe_entity",
]
