# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Tests for the generator state store and the structured statements.
"""

from __future__ import annotations

import pytest

from entityseed import (
    GeneratorStateStore,
    H2Dialect,
    InconsistentStateError,
    InsertStatement,
    MySqlDialect,
    PlainStatement,
    UpdateStatement,
)
from entityseed.state import PERSISTED, EntityKey, PendingState

from ._models import Person


class TestSequenceAllocation:
    """Test the simulated sequences."""

    def setup_method(self):
        self.state = GeneratorStateStore()

    def test_first_value_is_initial_value(self):
        assert self.state.current_sequence_value("seq") is None
        assert self.state.next_sequence_value("seq", 10, 5) == 10
        assert self.state.current_sequence_value("seq") == 10

    def test_allocation_size_steps(self):
        """The n-th allocation returns initial + (n - 1) * allocation size."""
        values = [self.state.next_sequence_value("seq", 3, 7) for _ in range(5)]
        assert values == [3 + n * 7 for n in range(5)]
        assert self.state.get_allocation_size("seq") == 7

    def test_sequences_are_independent(self):
        self.state.next_sequence_value("a", 1, 1)
        self.state.next_sequence_value("a", 1, 1)
        assert self.state.next_sequence_value("b", 100, 1) == 100
        assert self.state.current_sequence_value("a") == 2

    def test_unused_sequence_has_allocation_size_one(self):
        assert self.state.get_allocation_size("unused") == 1


class TestIdentityAllocation:
    """Test the simulated identity columns."""

    def setup_method(self):
        self.state = GeneratorStateStore()

    def test_identity_starts_at_zero(self):
        """The n-th allocation returns n - 1."""
        assert [self.state.next_identity_value("T", "id") for _ in range(3)] == [0, 1, 2]
        assert self.state.current_identity_value("T", "id") == 2

    def test_columns_are_independent(self):
        self.state.next_identity_value("T", "id")
        assert self.state.next_identity_value("U", "id") == 0
        assert self.state.identities == {"T.id": 0, "U.id": 0}

    def test_current_value_before_allocation(self):
        with pytest.raises(InconsistentStateError, match="T.id"):
            self.state.current_identity_value("T", "id")

    def test_views_are_read_only(self):
        self.state.next_sequence_value("seq", 1, 1)
        with pytest.raises(TypeError):
            self.state.sequences["seq"] = 5
        with pytest.raises(TypeError):
            self.state.identities["T.id"] = 5


class TestEntityStates:
    """Test the keys and values of the entity state maps."""

    def test_entity_key_uses_identity(self):
        first = Person(name="Ada")
        second = Person(name="Ada")
        assert EntityKey(first) == EntityKey(first)
        assert EntityKey(first) != EntityKey(second)
        assert len({EntityKey(first), EntityKey(first), EntityKey(second)}) == 2

    def test_states_per_entity_name(self):
        state = GeneratorStateStore()
        state.get_states("Person")["x"] = PERSISTED
        assert state.get_states("Person") == {"x": PERSISTED}
        assert state.get_states("Book") == {}

    def test_pending_state_keeps_order(self):
        pending = PendingState()
        pending.add_update("a", None, ())
        pending.add_update("b", None, (1,))
        assert [update.entity for update in pending.updates] == ["a", "b"]
        assert pending.updates[1].arguments == (1,)


class TestStatements:
    """Test rendering of the structured statements."""

    def test_insert(self):
        statement = InsertStatement("T")
        statement.add_value("a", "1")
        statement.add_value("b", "'x'")
        assert statement.to_sql(H2Dialect()) == "INSERT INTO T (a, b) VALUES (1, 'x')"

    def test_empty_insert(self):
        """Inserts without values use the syntax of the dialect."""
        assert InsertStatement("T").to_sql(H2Dialect()) == "INSERT INTO T DEFAULT VALUES"
        assert InsertStatement("T").to_sql(MySqlDialect()) == "INSERT INTO T () VALUES ()"

    def test_update(self):
        statement = UpdateStatement("T", "id = 4")
        statement.add_value("a", "1")
        statement.add_value("b", "NULL")
        assert statement.to_sql(H2Dialect()) == "UPDATE T SET a = 1, b = NULL WHERE id = 4"

    def test_plain(self):
        assert PlainStatement("ALTER SEQUENCE s RESTART WITH 5").to_sql(H2Dialect()) == (
            "ALTER SEQUENCE s RESTART WITH 5"
        )
