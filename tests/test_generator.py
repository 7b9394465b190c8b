# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
End-to-end tests for statement generation.

Tests cover:
- Single entities, mutual references and deferred updates
- Null handling, required values and default literals
- Pre-existing entities and repeated writes
- Determinism across sessions, the text stream and alignment statements
"""

from __future__ import annotations

import datetime
import io

import pytest

from entityseed import (
    EntitySqlGenerator,
    InconsistentStateError,
    MissingValueError,
    PlainStatement,
)

from ._models import (
    A,
    B,
    Book,
    Chicken,
    Egg,
    Hub,
    Item,
    Member,
    PaperBook,
    Person,
    Spoke,
    Status,
    Ticket,
)


class TestSingleEntity:
    """Test the INSERT of a single entity."""

    def test_identity_entity(self, make_generator):
        """The identity column is left to the database, its value is simulated."""
        generator = make_generator()
        person = Person(name="Ada")
        generator.write(person)

        assert generator.to_sql() == ["INSERT INTO Person (name) VALUES ('Ada')"]
        assert person.id == 0
        assert generator.context.state.current_identity_value("Person", "id") == 0

    def test_explicit_identifier(self, make_generator):
        generator = make_generator(explicit_ids="true")
        generator.write(Person(name="Ada"))
        generator.write(Person(name="Grace"))
        assert generator.to_sql() == [
            "INSERT INTO Person (id, name) VALUES (0, 'Ada')",
            "INSERT INTO Person (id, name) VALUES (1, 'Grace')",
        ]

    def test_provider_sequence(self, make_generator):
        """A sequence without generator uses the sequence of the provider."""
        generator = make_generator()
        ticket = Ticket(subject="x")
        generator.write(ticket)
        assert generator.to_sql() == ["INSERT INTO tickets (id, subject) VALUES (NEXT VALUE FOR hibernate_sequence, 'x')"]
        assert ticket.id == 1

    def test_provider_allocation_size(self, make_generator):
        generator = make_generator(provider="eclipselink")
        tickets = [Ticket(), Ticket()]
        generator.write_all(tickets)
        assert [ticket.id for ticket in tickets] == [1, 51]

    def test_subclass_is_written_to_ancestor_table(self, make_generator):
        """Fields that the ancestor doesn't map are not written."""
        generator = make_generator()
        generator.write(PaperBook(title="Dune", pages=412))
        assert generator.to_sql() == ["INSERT INTO Book (title) VALUES ('Dune')"]

    def test_entity_is_written_once(self, make_generator):
        generator = make_generator()
        person = Person(name="Ada")
        generator.write(person)
        generator.write(person)
        assert len(generator.statements) == 1

    def test_pre_existing_entity_is_skipped(self, make_generator):
        """An entity with a generated identifier that is already set exists in the database."""
        generator = make_generator()
        generator.write(Book(id=42, title="Existing"))
        assert generator.statements == []

    def test_marking_twice_fails(self, make_generator):
        generator = make_generator()
        person = Person(name="Ada")
        generator.write(person)
        with pytest.raises(InconsistentStateError, match="Person#0"):
            generator.context.get_description(Person).mark_existing_entity(person)


class TestNullHandling:
    """Test absent values, required values and defaults."""

    def test_absent_values_are_omitted(self, make_generator):
        """Defaults are rendered like explicit values, other absent values are omitted."""
        generator = make_generator()
        generator.write(Member(id=1, email="a@b.c"))
        assert generator.to_sql() == [
            "INSERT INTO Member (id, status, born, email) VALUES (1, 'ACTIVE', DATE '1970-01-01', 'a@b.c')"
        ]

    def test_absent_values_as_null(self, make_generator):
        generator = make_generator(null_values="true")
        generator.write(Member(id=1, email="a@b.c"))
        assert generator.to_sql() == [
            "INSERT INTO Member (id, nickname, status, born, email) "
            "VALUES (1, NULL, 'ACTIVE', DATE '1970-01-01', 'a@b.c')"
        ]

    def test_default_matches_explicit_value(self, make_generator):
        """A default literal renders exactly like the same value set explicitly."""
        defaults = make_generator()
        defaults.write(Member(id=1, email="x"))
        explicit = make_generator()
        explicit.write(Member(id=1, email="x", status=Status.ACTIVE, born=datetime.date(1970, 1, 1)))
        assert defaults.to_sql() == explicit.to_sql()

    def test_values_replace_defaults(self, make_generator):
        generator = make_generator()
        generator.write(Member(id=2, nickname="Al", status=Status.RETIRED, born=datetime.date(1999, 12, 31), email="x"))
        assert generator.to_sql() == [
            "INSERT INTO Member (id, nickname, status, born, email) "
            "VALUES (2, 'Al', 'RETIRED', DATE '1999-12-31', 'x')"
        ]

    @pytest.mark.parametrize("null_values", ["false", "true"])
    def test_required_value_is_enforced(self, make_generator, null_values):
        """A required column without value fails, whether nulls are written or not."""
        generator = make_generator(null_values=null_values)
        with pytest.raises(MissingValueError, match="email") as exc_info:
            generator.write(Member(id=3))
        assert exc_info.value.field == "email"
        assert "Member#3" in str(exc_info.value)
        assert generator.statements == []

    def test_escaping(self, make_generator):
        generator = make_generator(dialect="mysql")
        generator.write(Person(name="O'Brien \\ Co"))
        assert generator.to_sql() == ["INSERT INTO Person (name) VALUES ('O''Brien \\\\ Co')"]


class TestMutualReferences:
    """Test entities that reference each other."""

    def setup_method(self):
        self.a = A()
        self.b = B(a_ref=self.a)
        self.a.b_ref = self.b

    def test_deferred_update(self, make_generator):
        """The UPDATE for A follows the INSERT of B immediately."""
        generator = make_generator()
        generator.write(self.a)
        assert generator.to_sql() == [
            "INSERT INTO A DEFAULT VALUES",
            "INSERT INTO B (a_ref_id) VALUES ((SELECT max(id) FROM A))",
            "UPDATE A SET b_ref_id = (SELECT max(id) FROM B) WHERE id = (SELECT max(id) FROM A)",
        ]

    def test_deferred_update_with_explicit_ids(self, make_generator):
        generator = make_generator(explicit_ids="true")
        generator.write(self.a)
        assert generator.to_sql() == [
            "INSERT INTO A (id) VALUES (0)",
            "INSERT INTO B (id, a_ref_id) VALUES (0, 0)",
            "UPDATE A SET b_ref_id = 0 WHERE id = 0",
        ]

    def test_deferred_reference_as_null(self, make_generator):
        generator = make_generator(explicit_ids="true", null_values="true")
        generator.write(self.a)
        assert generator.to_sql()[0] == "INSERT INTO A (id, b_ref_id) VALUES (0, NULL)"
        assert generator.to_sql()[2] == "UPDATE A SET b_ref_id = 0 WHERE id = 0"

    def test_flush_in_registration_order(self, make_generator):
        """Updates that wait for the same entity follow its INSERT in registration order."""
        first = Spoke()
        second = Spoke()
        hub = Hub(first=first, second=second)
        first.hub = hub
        second.hub = hub

        generator = make_generator(explicit_ids="true")
        generator.write(hub)
        assert generator.to_sql() == [
            "INSERT INTO Spoke (id) VALUES (0)",
            "INSERT INTO Spoke (id) VALUES (1)",
            "INSERT INTO Hub (id, first_id, second_id) VALUES (0, 0, 1)",
            "UPDATE Spoke SET hub_id = 0 WHERE id = 0",
            "UPDATE Spoke SET hub_id = 0 WHERE id = 1",
        ]

    def test_required_cycle(self, make_generator):
        """A cycle of required references can't be written."""
        chicken = Chicken()
        egg = Egg(chicken=chicken)
        chicken.egg = egg
        with pytest.raises(MissingValueError, match="chicken"):
            make_generator().write(chicken)


class TestSessions:
    """Test the output of whole sessions."""

    @staticmethod
    def build_graph():
        a = A()
        b = B(a_ref=a)
        a.b_ref = b
        first = Item(code="first")
        second = Item(code="second", parent=first)
        return [a, Person(name="Ada"), second, Member(id=5, email="m")]

    def test_determinism(self, make_generator):
        """Two fresh sessions over equal graphs produce identical statements."""
        first = make_generator()
        first.write_all(self.build_graph())
        second = make_generator()
        second.write_all(self.build_graph())
        assert first.to_sql() == second.to_sql()
        assert len(first.statements) == 8

    def test_text_stream(self, make_context):
        """Statements are written to the stream as they are created."""
        stream = io.StringIO()
        generator = EntitySqlGenerator(make_context(), stream)
        generator.write(Person(name="Ada"))
        assert stream.getvalue() == "INSERT INTO Person (name) VALUES ('Ada');\n"
        generator.write(Person(name="Grace"))
        assert stream.getvalue().count(";\n") == 2

    def test_default_context(self):
        generator = EntitySqlGenerator()
        generator.write(Person(name="Ada"))
        assert generator.to_sql() == ["INSERT INTO Person (name) VALUES ('Ada')"]
        assert repr(generator) == "EntitySqlGenerator(H2Dialect, 1 statements)"

    def test_sessions_share_context_state(self, make_context):
        """Generators on one context continue its counters."""
        context = make_context(explicit_ids="true")
        EntitySqlGenerator(context).write(Person(name="Ada"))
        generator = EntitySqlGenerator(context)
        generator.write(Person(name="Grace"))
        assert generator.to_sql() == ["INSERT INTO Person (id, name) VALUES (1, 'Grace')"]


class TestAlignment:
    """Test the statements that move sequences and identities behind the generated values."""

    def write_graph(self, generator):
        generator.write_all([Item(code="a"), Item(code="b"), Person(name="Ada")])

    def test_without_explicit_ids(self, make_generator):
        """The database generated the values itself, nothing to align."""
        generator = make_generator()
        self.write_graph(generator)
        assert generator.write_alignment_statements() == []

    def test_h2(self, make_generator):
        generator = make_generator(explicit_ids="true")
        self.write_graph(generator)
        statements = generator.write_alignment_statements()
        assert all(isinstance(statement, PlainStatement) for statement in statements)
        assert generator.to_sql()[-2:] == [
            "ALTER SEQUENCE item_seq RESTART WITH 20",
            "ALTER TABLE Person ALTER COLUMN id RESTART WITH 1",
        ]

    def test_postgres(self, make_generator):
        generator = make_generator(dialect="postgres", explicit_ids="true")
        self.write_graph(generator)
        generator.write_alignment_statements()
        assert generator.to_sql()[-2:] == [
            "SELECT setval('item_seq', 20, false)",
            "ALTER TABLE Person ALTER COLUMN id RESTART WITH 1",
        ]

    def test_dialect_without_sequences(self, make_generator):
        """Only identity columns are aligned when the dialect has no sequences."""
        generator = make_generator(dialect="mysql", explicit_ids="true")
        self.write_graph(generator)
        statements = generator.write_alignment_statements()
        assert [statement.sql for statement in statements] == ["ALTER TABLE Person AUTO_INCREMENT = 1"]
