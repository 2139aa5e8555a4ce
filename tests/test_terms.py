"""Tests for terms and object types."""

from dotsub.syntax import (
    And,
    Bind,
    Boolean,
    BoundSelection,
    Function,
    NoMembers,
    Selection,
)
from dotsub.terms import (
    App,
    BoolLiteral,
    BoundVar,
    MethodDef,
    Obj,
    Var,
    declarations_type,
    format_term,
    object_type,
    open_term,
    term_closed_at,
)


def _identity_object() -> Obj:
    """``new { z => def m0(_: Bool): Bool = <param> }``."""
    return Obj((MethodDef(0, Boolean(), Boolean(), BoundVar(0)),))


class TestOpenTerm:
    """Tests for opening term binders."""

    def test_replaces_variable(self) -> None:
        assert open_term(3, BoundVar(0)) == Var(3)
        assert open_term(3, BoundVar(1)) == BoundVar(1)

    def test_application(self) -> None:
        t = App(BoundVar(0), 1, BoolLiteral(value=True))
        assert open_term(2, t) == App(Var(2), 1, BoolLiteral(value=True))

    def test_object_shifts_signatures_and_bodies(self) -> None:
        method = MethodDef(0, BoundSelection(1), BoundSelection(0), BoundVar(2))
        opened = open_term(5, Obj((method,)))
        assert opened == Obj((MethodDef(0, Selection(5), BoundSelection(0), Var(5)),))


class TestTermClosedAt:
    """Tests for term closedness."""

    def test_variables(self) -> None:
        assert term_closed_at(0, Var(0))
        assert not term_closed_at(0, BoundVar(0))
        assert term_closed_at(1, BoundVar(0))

    def test_method_body_sees_self_and_parameter(self) -> None:
        assert term_closed_at(0, _identity_object())
        self_call = Obj((MethodDef(0, Boolean(), Boolean(), App(BoundVar(1), 0, BoundVar(0))),))
        assert term_closed_at(0, self_call)

    def test_escaping_body_variable(self) -> None:
        escaping = Obj((MethodDef(0, Boolean(), Boolean(), BoundVar(2)),))
        assert not term_closed_at(0, escaping)

    def test_escaping_signature_selection(self) -> None:
        escaping = Obj((MethodDef(0, BoundSelection(1), Boolean(), BoolLiteral(value=False)),))
        assert not term_closed_at(0, escaping)


class TestObjectType:
    """Tests for the type of an object literal."""

    def test_empty_declarations(self) -> None:
        assert declarations_type(()) == NoMembers()
        assert object_type(Obj()) == Bind(NoMembers())

    def test_declarations_in_order(self) -> None:
        methods = (
            MethodDef(0, Boolean(), Boolean(), BoundVar(0)),
            MethodDef(1, Boolean(), BoundSelection(0), BoundVar(1)),
        )
        expected = And(
            Function(0, Boolean(), Boolean()),
            And(Function(1, Boolean(), BoundSelection(0)), NoMembers()),
        )
        assert declarations_type(methods) == expected
        assert object_type(Obj(methods)) == Bind(expected)


class TestFormatTerm:
    """Tests for human-readable term strings."""

    def test_simple_terms(self) -> None:
        assert format_term(Var(1)) == "x1"
        assert format_term(BoolLiteral(value=False)) == "false"
        assert format_term(App(Var(0), 2, BoolLiteral(value=True))) == "x0.m2(true)"

    def test_object(self) -> None:
        assert format_term(_identity_object()) == "new { z => def m0(_: Bool): Bool = z0 }"
