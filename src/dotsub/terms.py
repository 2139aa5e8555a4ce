"""Terms of the calculus.

Terms only matter to the subtyping engine through the types they carry:
an object literal's declarations determine its recursive self-type. Term
typing itself lives outside this package.

Binders:
    ``Obj`` binds its self variable for every method declaration, and a
    method body additionally binds the method parameter. Both kinds of
    binder share one index space with ``BoundSelection`` in the types they
    contain, so a signature sees self at index 0 and a body sees the
    parameter at index 0 and self at index 1.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias

from dotsub.syntax import (
    And,
    Bind,
    Function,
    NoMembers,
    Type,
    closed_at,
    format_type,
    open_type,
)


@dataclass(frozen=True)
class Var:
    """A variable bound in the environment at an absolute position."""

    position: int


@dataclass(frozen=True)
class BoundVar:
    """A variable bound by the ``index``-th enclosing term binder."""

    index: int


@dataclass(frozen=True)
class BoolLiteral:
    """``true`` or ``false``."""

    value: bool


@dataclass(frozen=True)
class MethodDef:
    """``def m<label>(x: param): result = body`` inside an object literal."""

    label: int
    param: Type
    result: Type
    body: Term


@dataclass(frozen=True)
class Obj:
    """Object literal ``new { z => methods }``."""

    methods: tuple[MethodDef, ...] = ()


@dataclass(frozen=True)
class App:
    """Method call ``receiver.m<label>(argument)``."""

    receiver: Term
    label: int
    argument: Term


Term: TypeAlias = Var | BoundVar | BoolLiteral | Obj | App


def open_term(var: int, t: Term, depth: int = 0) -> Term:
    """Replace the bound variable at ``depth`` with ``Var(var)``.

    Signatures inside an object are opened one binder deeper (self),
    method bodies two binders deeper (self and parameter).
    """
    match t:
        case BoundVar(index=i) if i == depth:
            return Var(var)
        case App(receiver=r, label=label, argument=a):
            return App(open_term(var, r, depth), label, open_term(var, a, depth))
        case Obj(methods=methods):
            return Obj(tuple(_open_method(var, m, depth + 1) for m in methods))
        case _:
            return t


def _open_method(var: int, m: MethodDef, depth: int) -> MethodDef:
    return MethodDef(
        m.label,
        open_type(var, m.param, depth),
        open_type(var, m.result, depth),
        open_term(var, m.body, depth + 1),
    )


def term_closed_at(depth: int, t: Term) -> bool:
    """Check that every bound variable in ``t`` refers to an enclosing binder."""
    match t:
        case BoundVar(index=i):
            return i < depth
        case App(receiver=r, argument=a):
            return term_closed_at(depth, r) and term_closed_at(depth, a)
        case Obj(methods=methods):
            return all(
                closed_at(depth + 1, m.param)
                and closed_at(depth + 1, m.result)
                and term_closed_at(depth + 2, m.body)
                for m in methods
            )
        case _:
            return True


def declarations_type(methods: tuple[MethodDef, ...]) -> Type:
    """Build the intersection of method signatures, ended by ``NoMembers``.

    Examples:
        >>> declarations_type(())
        NoMembers()

    """
    result: Type = NoMembers()
    for m in reversed(methods):
        result = And(Function(m.label, m.param, m.result), result)
    return result


def object_type(obj: Obj) -> Bind:
    """The recursive self-type of an object literal."""
    return Bind(declarations_type(obj.methods))


def format_term(t: Term) -> str:
    """Convert a term to a human-readable string."""
    match t:
        case Var(position=p):
            return f"x{p}"
        case BoundVar(index=i):
            return f"z{i}"
        case BoolLiteral(value=v):
            return "true" if v else "false"
        case App(receiver=r, label=label, argument=a):
            return f"{format_term(r)}.m{label}({format_term(a)})"
        case Obj(methods=methods):
            defs = "; ".join(
                f"def m{m.label}(_: {format_type(m.param)}): "
                f"{format_type(m.result)} = {format_term(m.body)}"
                for m in methods
            )
            return f"new {{ z => {defs} }}"
