"""Tests for type expressions and binder operations."""

from dotsub.syntax import (
    And,
    Bind,
    Boolean,
    Bottom,
    BoundSelection,
    Function,
    Member,
    NoMembers,
    Selection,
    Top,
    closed_at,
    format_type,
    free_vars,
    open_type,
    shift_vars,
)


class TestClosedAt:
    """Tests for the closedness predicate."""

    def test_ground_types_are_closed(self) -> None:
        for t in (Top(), Bottom(), Boolean(), NoMembers(), Selection(3)):
            assert closed_at(0, t)

    def test_bound_selection_needs_a_binder(self) -> None:
        assert not closed_at(0, BoundSelection(0))
        assert closed_at(1, BoundSelection(0))
        assert not closed_at(1, BoundSelection(1))

    def test_bind_enters_one_level(self) -> None:
        assert closed_at(0, Bind(Member(BoundSelection(0), Top())))
        assert not closed_at(0, Bind(Member(BoundSelection(1), Top())))
        assert closed_at(0, Bind(Bind(Function(0, BoundSelection(1), BoundSelection(0)))))

    def test_escaping_index_deep_inside(self) -> None:
        t = And(Boolean(), Function(0, Top(), Member(Bottom(), BoundSelection(0))))
        assert not closed_at(0, t)


class TestOpenType:
    """Tests for opening bound selections."""

    def test_replaces_outermost_index(self) -> None:
        body = Member(BoundSelection(0), Member(BoundSelection(0), Top()))
        assert open_type(4, body) == Member(Selection(4), Member(Selection(4), Top()))

    def test_nested_bind_targets_shifted_index(self) -> None:
        body = Bind(Function(0, BoundSelection(1), BoundSelection(0)))
        assert open_type(2, body) == Bind(Function(0, Selection(2), BoundSelection(0)))

    def test_other_indices_untouched(self) -> None:
        assert open_type(0, BoundSelection(1)) == BoundSelection(1)
        assert open_type(0, BoundSelection(0), depth=1) == BoundSelection(0)

    def test_closed_type_is_unchanged(self) -> None:
        t = Bind(And(Member(Bottom(), BoundSelection(0)), Selection(1)))
        assert closed_at(0, t)
        assert open_type(7, t) == t

    def test_opening_closes_one_level(self) -> None:
        body = And(BoundSelection(0), Bind(Member(BoundSelection(1), BoundSelection(0))))
        assert closed_at(1, body)
        assert not closed_at(0, body)
        assert closed_at(0, open_type(0, body))


class TestFreeVars:
    """Tests for collecting selected positions."""

    def test_collects_selections(self) -> None:
        t = And(Selection(0), Function(1, Selection(2), Bind(Member(Selection(0), Top()))))
        assert free_vars(t) == frozenset({0, 2})

    def test_bound_selections_are_not_free(self) -> None:
        assert free_vars(Bind(Member(BoundSelection(0), Top()))) == frozenset()


class TestShiftVars:
    """Tests for renumbering free positions."""

    def test_shifts_at_and_above_cutoff(self) -> None:
        t = And(Selection(0), And(Selection(1), Selection(2)))
        assert shift_vars(t, 1) == And(Selection(0), And(Selection(2), Selection(3)))

    def test_leaves_bound_selections_alone(self) -> None:
        t = Bind(Member(BoundSelection(0), Selection(5)))
        assert shift_vars(t, 0, by=2) == Bind(Member(BoundSelection(0), Selection(7)))

    def test_shift_commutes_with_open_above_cutoff(self) -> None:
        body = Member(BoundSelection(0), Selection(0))
        assert shift_vars(open_type(3, body), 1) == open_type(4, shift_vars(body, 1))


class TestFormatType:
    """Tests for human-readable type strings."""

    def test_base_types(self) -> None:
        assert format_type(Top()) == "Top"
        assert format_type(Bottom()) == "Bot"
        assert format_type(Boolean()) == "Bool"
        assert format_type(NoMembers()) == "{}"

    def test_members_and_selections(self) -> None:
        assert format_type(Member(Bottom(), Top())) == "{type: Bot..Top}"
        assert format_type(Selection(2)) == "x2.Type"
        assert format_type(BoundSelection(0)) == "z0.Type"

    def test_recursive_function(self) -> None:
        t = Bind(Function(0, Selection(1), BoundSelection(0)))
        assert format_type(t) == "{z => def m0(x1.Type): z0.Type}"

    def test_intersection_parenthesizes_compound_operands(self) -> None:
        t = And(Boolean(), And(Function(0, Boolean(), Boolean()), NoMembers()))
        assert format_type(t) == "Bool & ((def m0(Bool): Bool) & {})"
