# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Generator state: the simulated database counters and the write status of
every entity seen during a generation session.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Tuple, Union

from .constants import ErrorMessages, GenerationStateKind, SQLConstants
from .errors import InconsistentStateError

if TYPE_CHECKING:
    from .properties import Property


#: Marks an entity that exists in the database
PERSISTED = GenerationStateKind.PERSISTED


class EntityKey:
    """
    Identity-based state key for entities without a usable identifier value.

    Holds the entity itself, so the key stays valid while the state lives.
    """

    __slots__ = ("entity",)

    def __init__(self, entity: Any) -> None:
        self.entity = entity

    def __hash__(self) -> int:
        return id(self.entity)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, EntityKey) and other.entity is self.entity

    def __repr__(self) -> str:
        return f"EntityKey({type(self.entity).__name__}@{id(self.entity):#x})"


@dataclass(frozen=True)
class PendingUpdate:
    """An update for ``entity`` that waits until the referenced entity is written."""
    entity: Any
    property: "Property"
    arguments: Tuple[Any, ...] = ()


@dataclass
class PendingState:
    """State of an entity that is not written yet, but referenced already."""
    updates: List[PendingUpdate] = field(default_factory=list)
    kind: GenerationStateKind = GenerationStateKind.PENDING

    def add_update(self, entity: Any, prop: "Property", arguments: Tuple[Any, ...]) -> None:
        self.updates.append(PendingUpdate(entity, prop, arguments))


GenerationState = Union[GenerationStateKind, PendingState]


class GeneratorStateStore:
    """
    Counters of sequences and identity columns plus the entity states.

    :class: GeneratorStateStore
    :synopsis: Process-lifetime state of a generation session

    Values only ever grow: a sequence advances by its allocation size, an
    identity column by one.
    """

    def __init__(self) -> None:
        self._sequences: Dict[str, int] = {}
        self._allocation_sizes: Dict[str, int] = {}
        self._identities: Dict[str, int] = {}
        self._states: Dict[str, Dict[Any, GenerationState]] = {}

    # -------------------------------------------------------------------------
    # Sequences
    # -------------------------------------------------------------------------

    def next_sequence_value(self, sequence_name: str, initial_value: int, allocation_size: int) -> int:
        """
        Allocate the next value of a sequence.

        :param sequence_name: Name of the sequence
        :param initial_value: Value of the first allocation
        :param allocation_size: Increment of every following allocation
        :returns: The allocated value
        """
        current = self._sequences.get(sequence_name)
        value = initial_value if current is None else current + allocation_size
        self._sequences[sequence_name] = value
        self._allocation_sizes[sequence_name] = allocation_size
        return value

    def current_sequence_value(self, sequence_name: str) -> Optional[int]:
        """The last allocated value, ``None`` if the sequence has not produced a row yet."""
        return self._sequences.get(sequence_name)

    def get_allocation_size(self, sequence_name: str) -> int:
        return self._allocation_sizes.get(sequence_name, 1)

    # -------------------------------------------------------------------------
    # Identity columns
    # -------------------------------------------------------------------------

    @staticmethod
    def _column_id(table: str, column: str) -> str:
        return f"{table}{SQLConstants.COLUMN_ID_SEPARATOR}{column}"

    def next_identity_value(self, table: str, column: str) -> int:
        """Allocate the next value of an identity column, starting with ``0``."""
        column_id = self._column_id(table, column)
        current = self._identities.get(column_id)
        value = 0 if current is None else current + 1
        self._identities[column_id] = value
        return value

    def current_identity_value(self, table: str, column: str) -> int:
        """
        The last allocated value of an identity column.

        :raises InconsistentStateError: if no value was allocated yet
        """
        column_id = self._column_id(table, column)
        if column_id not in self._identities:
            raise InconsistentStateError(ErrorMessages.NO_CURRENT_IDENTITY_VALUE.format(column_id=column_id))
        return self._identities[column_id]

    # -------------------------------------------------------------------------
    # Entity states
    # -------------------------------------------------------------------------

    def get_states(self, entity_name: str) -> Dict[Any, GenerationState]:
        """The mutable state map of one entity name, keyed by identifier or :class:`EntityKey`."""
        return self._states.setdefault(entity_name, {})

    @property
    def sequences(self) -> Mapping[str, int]:
        return MappingProxyType(self._sequences)

    @property
    def identities(self) -> Mapping[str, int]:
        return MappingProxyType(self._identities)


__all__ = [
    "PERSISTED",
    "EntityKey",
    "PendingUpdate",
    "PendingState",
    "GenerationState",
    "GeneratorStateStore",
]
