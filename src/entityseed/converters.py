# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Value converters render a runtime value of a primitive column as a literal
SQL expression. Converters are selected once per property by
:meth:`ConverterRegistry.create_converter` and are side-effect free.
"""

from __future__ import annotations

import datetime
import decimal
import enum
import math
import uuid
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Type, Union

from .constants import EnumType, ErrorMessages, SQLConstants, TemporalType
from .errors import MappingError, MissingValueError
from .mapping import CollectionMetadata, ColumnMetadata, unwrap_optional

if TYPE_CHECKING:
    from .context import GeneratorContext


class ValueConverter:
    """
    Base class of all converters.

    :class: ValueConverter
    :synopsis: Renders values of one Python type as SQL literals
    """

    def get_expression(self, value: Any, context: "GeneratorContext") -> str:
        raise NotImplementedError

    def parse_default(self, literal: str) -> Any:
        """Convert a default literal from the mapping into a value of the column type."""
        return literal

    def get_default_expression(self, literal: str, context: "GeneratorContext") -> str:
        """
        Render a default literal exactly like an explicit value of the same type.

        :param literal: Default value from the mapping
        :param context: Current generator context
        :returns: The SQL expression
        """
        return self.get_expression(self.parse_default(literal), context)

    def __repr__(self) -> str:
        return type(self).__name__


class StringConverter(ValueConverter):
    """Strings and single characters."""

    def get_expression(self, value: Any, context: "GeneratorContext") -> str:
        return context.dialect.quote_string(str(value))


class BooleanConverter(ValueConverter):
    _TRUE = frozenset({"true", "1", "yes", "y", "on"})
    _FALSE = frozenset({"false", "0", "no", "n", "off"})

    def get_expression(self, value: Any, context: "GeneratorContext") -> str:
        return context.dialect.convert_boolean(bool(value))

    def parse_default(self, literal: str) -> bool:
        normalized = literal.strip().lower()
        if normalized in self._TRUE:
            return True
        if normalized in self._FALSE:
            return False
        raise ValueError(f"Not a boolean: {literal!r}")


class NumberConverter(ValueConverter):
    """Integers, floats and decimals."""

    def __init__(self, number_type: type = int) -> None:
        self.number_type = number_type

    def get_expression(self, value: Any, context: "GeneratorContext") -> str:
        if isinstance(value, decimal.Decimal):
            return format(self._finite(value), "f")
        if isinstance(value, float):
            return repr(self._finite(value))
        return str(int(value))

    def parse_default(self, literal: str) -> Any:
        value = self.number_type(literal.strip())
        if isinstance(value, (float, decimal.Decimal)):
            self._finite(value)
        return value

    @staticmethod
    def _finite(value: Any) -> Any:
        """NaN and infinities have no literal in SQL."""
        finite = value.is_finite() if isinstance(value, decimal.Decimal) else math.isfinite(value)
        if not finite:
            raise MissingValueError(ErrorMessages.NON_FINITE_NUMBER.format(value=value))
        return value


class DateConverter(ValueConverter):
    """
    Date and time values.

    Literals use the fixed formats of :class:`~entityseed.constants.TemporalFormats`,
    never the locale or the local timezone.
    """

    _NATURAL_TEMPORAL: Dict[type, TemporalType] = {
        datetime.datetime: TemporalType.TIMESTAMP,
        datetime.date: TemporalType.DATE,
        datetime.time: TemporalType.TIME,
    }

    #: Defaults that are passed to the database unchanged
    _SQL_KEYWORDS = frozenset({"CURRENT_DATE", "CURRENT_TIME", "CURRENT_TIMESTAMP", "LOCALTIME", "LOCALTIMESTAMP"})

    def __init__(self, value_type: type, temporal: Optional[TemporalType] = None) -> None:
        self.value_type = value_type
        self.temporal = temporal or self._natural_temporal(value_type)

    @classmethod
    def _natural_temporal(cls, value_type: type) -> TemporalType:
        for base in value_type.__mro__:
            if base in cls._NATURAL_TEMPORAL:
                return cls._NATURAL_TEMPORAL[base]
        return TemporalType.TIMESTAMP

    def get_expression(self, value: Any, context: "GeneratorContext") -> str:
        return context.dialect.convert_temporal_value(value, self.temporal)

    def parse_default(self, literal: str) -> Any:
        keyword = literal.strip().upper()
        if keyword in self._SQL_KEYWORDS:
            return keyword
        return self.value_type.fromisoformat(literal.strip())

    def get_default_expression(self, literal: str, context: "GeneratorContext") -> str:
        value = self.parse_default(literal)
        if isinstance(value, str):
            return value
        return self.get_expression(value, context)


class EnumConverter(ValueConverter):
    """Enum members, written by name or by their ordinal in declaration order."""

    def __init__(self, enum_class: Type[enum.Enum], enum_type: EnumType = EnumType.STRING) -> None:
        self.enum_class = enum_class
        self.enum_type = enum_type
        self._members = list(enum_class)

    def get_expression(self, value: Any, context: "GeneratorContext") -> str:
        if not isinstance(value, self.enum_class):
            value = self.enum_class(value)
        if self.enum_type == EnumType.ORDINAL:
            return str(self._members.index(value))
        return context.dialect.quote_string(value.name)

    def parse_default(self, literal: str) -> enum.Enum:
        literal = literal.strip()
        if literal in self.enum_class.__members__:
            return self.enum_class[literal]
        if self.enum_type == EnumType.ORDINAL and literal.isdigit():
            return self._members[int(literal)]
        return self.enum_class(literal)


class UUIDConverter(ValueConverter):

    def get_expression(self, value: Any, context: "GeneratorContext") -> str:
        return context.dialect.quote_string(str(value))

    def parse_default(self, literal: str) -> uuid.UUID:
        return uuid.UUID(literal.strip())


class LobConverter(ValueConverter):
    """Large objects: bytes become BLOB literals, everything else a CLOB literal."""

    def get_expression(self, value: Any, context: "GeneratorContext") -> str:
        if isinstance(value, (bytes, bytearray, memoryview)):
            return context.dialect.create_blob_expression(bytes(value))
        return context.dialect.create_clob_expression(str(value))


class UnsupportedTypeConverter(ValueConverter):
    """Stands in for types without converter and refuses to write them."""

    def __init__(self, value_type: Any, field: str = "?") -> None:
        self.value_type = value_type
        self.field = field

    def error(self) -> MappingError:
        type_name = getattr(self.value_type, "__name__", repr(self.value_type))
        return MappingError(
            ErrorMessages.UNSUPPORTED_TYPE.format(type_name=type_name, field=self.field),
            field=self.field,
        )

    def get_expression(self, value: Any, context: "GeneratorContext") -> str:
        raise self.error()


class EntityConverter(ValueConverter):
    """
    Renders a reference to another entity through the description of that entity.

    The result is ``NULL`` for ``None`` and for entities that are not written yet,
    callers that need to distinguish these cases ask the description directly.
    """

    def get_expression(self, value: Any, context: "GeneratorContext") -> str:
        if value is None:
            return SQLConstants.NULL
        reference = context.get_description(value).get_entity_reference(value, None, True)
        return SQLConstants.NULL if reference is None else reference


# -----------------------------------------------------------------------------
# Converter registry
# -----------------------------------------------------------------------------

ConverterFactory = Callable[[type, Optional[TemporalType], EnumType], ValueConverter]


class ConverterRegistry:
    """
    Registry for type-specific converters.

    Dispatch walks the MRO of the field type, so ``bool`` resolves before ``int``
    and ``datetime`` before ``date``.
    """

    _factories: Dict[type, ConverterFactory] = {}

    @classmethod
    def register(cls, value_type: type, factory: ConverterFactory) -> None:
        """Register a converter factory for a specific type and its subclasses."""
        cls._factories[value_type] = factory

    @classmethod
    def create_converter(
        cls,
        field_type: Any,
        metadata: Union[ColumnMetadata, CollectionMetadata, None] = None,
        map_key: bool = False,
        field: str = "?",
    ) -> ValueConverter:
        """
        Select the converter for a field.

        :param field_type: Declared type of the value, ``Optional`` is ignored
        :param metadata: Column or collection metadata with the conversion options
        :param map_key: Use the key options of a map
        :param field: Field name for error messages
        :returns: The converter, an :class:`UnsupportedTypeConverter` if none matches
        """
        field_type = unwrap_optional(field_type)

        # @@ STEP 1: Extract conversion options
        lob = False
        temporal: Optional[TemporalType] = None
        enumerated = EnumType.STRING
        if metadata is not None:
            if map_key and isinstance(metadata, CollectionMetadata):
                temporal = metadata.key_temporal
                enumerated = metadata.key_enumerated
            else:
                lob = metadata.lob
                temporal = metadata.temporal
                enumerated = metadata.enumerated

        # @@ STEP 2: Large objects override the type
        if lob:
            return LobConverter()

        if not isinstance(field_type, type):
            return UnsupportedTypeConverter(field_type, field)

        # @@ STEP 3: Enums before their mixin types (IntEnum, StrEnum)
        if issubclass(field_type, enum.Enum):
            return EnumConverter(field_type, enumerated)

        # @@ STEP 4: Dispatch on the MRO
        for base in field_type.__mro__:
            factory = cls._factories.get(base)
            if factory is not None:
                return factory(field_type, temporal, enumerated)
        return UnsupportedTypeConverter(field_type, field)


ConverterRegistry.register(str, lambda t, temporal, enumerated: StringConverter())
ConverterRegistry.register(bool, lambda t, temporal, enumerated: BooleanConverter())
ConverterRegistry.register(int, lambda t, temporal, enumerated: NumberConverter(t))
ConverterRegistry.register(float, lambda t, temporal, enumerated: NumberConverter(t))
ConverterRegistry.register(decimal.Decimal, lambda t, temporal, enumerated: NumberConverter(t))
ConverterRegistry.register(datetime.date, lambda t, temporal, enumerated: DateConverter(t, temporal))
ConverterRegistry.register(datetime.time, lambda t, temporal, enumerated: DateConverter(t, temporal))
ConverterRegistry.register(uuid.UUID, lambda t, temporal, enumerated: UUIDConverter())
ConverterRegistry.register(bytes, lambda t, temporal, enumerated: LobConverter())
ConverterRegistry.register(bytearray, lambda t, temporal, enumerated: LobConverter())


__all__ = [
    "ValueConverter",
    "StringConverter",
    "BooleanConverter",
    "NumberConverter",
    "DateConverter",
    "EnumConverter",
    "UUIDConverter",
    "LobConverter",
    "UnsupportedTypeConverter",
    "EntityConverter",
    "ConverterRegistry",
]
