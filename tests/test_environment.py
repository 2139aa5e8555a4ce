"""Tests for typing environments."""

import pytest

from dotsub.environment import Env
from dotsub.errors import UnboundVariableError
from dotsub.syntax import (
    Bind,
    Boolean,
    Bottom,
    BoundSelection,
    Member,
    Selection,
    Top,
)


class TestLookup:
    """Tests for looking up positions."""

    def test_positions_follow_insertion_order(self) -> None:
        env = Env.of(Boolean(), Top())
        assert env.lookup(0) == Boolean()
        assert env.lookup(1) == Top()
        assert len(env) == 2
        assert env.fresh == 2

    def test_missing_position(self) -> None:
        env = Env.of(Boolean())
        assert env.lookup(1) is None
        assert not env.contains(1)

    def test_index_raises_for_unbound(self) -> None:
        with pytest.raises(UnboundVariableError) as exc_info:
            Env().index(0)
        assert exc_info.value.var == 0
        assert exc_info.value.env_size == 0


class TestUpdate:
    """Tests for replacing entries in place."""

    def test_keeps_length_and_order(self) -> None:
        env = Env.of(Boolean(), Top(), Bottom())
        updated = env.update(1, Boolean())
        assert len(updated) == 3
        assert [p for p, _ in updated.entries] == [0, 1, 2]
        assert updated.lookup(1) == Boolean()
        assert env.lookup(1) == Top()

    def test_absent_position_is_identity(self) -> None:
        env = Env.of(Boolean())
        assert env.update(4, Top()) == env

    def test_commutes_with_extend(self) -> None:
        env = Env.of(Boolean(), Top())
        assert env.extend(Bottom()).update(0, Top()) == env.update(0, Top()).extend(Bottom())


class TestInsertShifted:
    """Tests for inserting below existing entries."""

    def test_at_end_is_extend(self) -> None:
        env = Env.of(Boolean())
        assert env.insert_shifted(1, Top()) == env.extend(Top())

    def test_renumbers_entries_and_selections(self) -> None:
        env = Env.of(Member(Bottom(), Top()), Member(Bottom(), Selection(0)))
        inserted = env.insert_shifted(1, Boolean())
        assert inserted.entries == (
            (0, Member(Bottom(), Top())),
            (1, Boolean()),
            (2, Member(Bottom(), Selection(0))),
        )

    def test_selection_above_cutoff_is_shifted(self) -> None:
        env = Env.of(Boolean(), Member(Bottom(), Selection(1)))
        inserted = env.insert_shifted(1, Top())
        assert inserted.lookup(2) == Member(Bottom(), Selection(2))


class TestWellScoped:
    """Tests for environment well-scopedness."""

    def test_selections_must_resolve(self) -> None:
        assert Env.of(Boolean(), Member(Bottom(), Selection(0))).well_scoped()
        assert not Env.of(Member(Bottom(), Selection(3))).well_scoped()

    def test_self_reference_allowed(self) -> None:
        assert Env.of(Member(Selection(0), Top())).well_scoped()

    def test_entries_must_be_closed(self) -> None:
        assert Env.of(Bind(Member(BoundSelection(0), Top()))).well_scoped()
        assert not Env.of(Member(BoundSelection(0), Top())).well_scoped()


class TestFormatting:
    """Tests for the environment string form."""

    def test_empty(self) -> None:
        assert str(Env()) == "Env()"

    def test_entries(self) -> None:
        env = Env.of(Member(Bottom(), Top()))
        assert str(env) == "Env(\n  x0: {type: Bot..Top}\n)"
