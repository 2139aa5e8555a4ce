"""Type expressions of the calculus and their binder operations.

Types use a locally-nameless encoding: variables bound by an enclosing
recursive self-type (``Bind``) are de Bruijn indices (``BoundSelection``),
while variables bound in an environment are absolute positions
(``Selection``). Opening a ``Bind`` body replaces its outermost index with a
concrete position.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias


@dataclass(frozen=True)
class Top:
    """Supertype of everything."""


@dataclass(frozen=True)
class Bottom:
    """Subtype of everything."""


@dataclass(frozen=True)
class Boolean:
    """The base type of boolean values."""


@dataclass(frozen=True)
class And:
    """Intersection of two types."""

    left: Type
    right: Type


@dataclass(frozen=True)
class Function:
    """A method signature ``def m<label>(arg): result``.

    The label is compared exactly; there is no width subtyping on labels.
    """

    label: int
    arg: Type
    result: Type


@dataclass(frozen=True)
class Member:
    """Bounds ``lower .. upper`` of an abstract type member."""

    lower: Type
    upper: Type


@dataclass(frozen=True)
class Selection:
    """Path-dependent type ``x.Type`` for the environment position ``var``."""

    var: int


@dataclass(frozen=True)
class BoundSelection:
    """``z.Type`` where ``z`` is bound by the ``index``-th enclosing ``Bind``."""

    index: int


@dataclass(frozen=True)
class Bind:
    """Recursive self-type ``{ z => body }``."""

    body: Type


@dataclass(frozen=True)
class NoMembers:
    """End marker of a method declaration list."""


Type: TypeAlias = (
    Top
    | Bottom
    | Boolean
    | And
    | Function
    | Member
    | Selection
    | BoundSelection
    | Bind
    | NoMembers
)
"""Union type for type expressions."""


def closed_at(depth: int, t: Type) -> bool:
    """Check that every bound selection in ``t`` refers to an enclosing binder.

    Args:
        depth: Number of ``Bind`` constructors already entered.
        t: The type to inspect.

    Returns:
        True if every ``BoundSelection(i)`` has ``i`` below the binder depth
        at its occurrence.

    """
    match t:
        case BoundSelection(index=i):
            return i < depth
        case Bind(body=body):
            return closed_at(depth + 1, body)
        case And(left=a, right=b) | Member(lower=a, upper=b):
            return closed_at(depth, a) and closed_at(depth, b)
        case Function(arg=a, result=b):
            return closed_at(depth, a) and closed_at(depth, b)
        case _:
            return True


def open_type(var: int, t: Type, depth: int = 0) -> Type:
    """Replace the bound selection at ``depth`` with ``Selection(var)``.

    Opening a ``Bind`` body is ``open_type(x, body)``: its own self reference
    is ``BoundSelection(0)``, and inside a nested ``Bind`` the same variable
    is one index further away.

    Args:
        var: The environment position substituted in.
        t: The type to open.
        depth: Index of the binder being opened, relative to ``t``.

    Returns:
        The opened type. Types closed at ``depth`` are returned unchanged.

    """
    match t:
        case BoundSelection(index=i) if i == depth:
            return Selection(var)
        case Bind(body=body):
            return Bind(open_type(var, body, depth + 1))
        case And(left=a, right=b):
            return And(open_type(var, a, depth), open_type(var, b, depth))
        case Member(lower=a, upper=b):
            return Member(open_type(var, a, depth), open_type(var, b, depth))
        case Function(label=label, arg=a, result=b):
            return Function(label, open_type(var, a, depth), open_type(var, b, depth))
        case _:
            return t


def free_vars(t: Type) -> frozenset[int]:
    """Collect the environment positions selected anywhere in ``t``."""
    match t:
        case Selection(var=v):
            return frozenset({v})
        case Bind(body=body):
            return free_vars(body)
        case And(left=a, right=b) | Member(lower=a, upper=b):
            return free_vars(a) | free_vars(b)
        case Function(arg=a, result=b):
            return free_vars(a) | free_vars(b)
        case _:
            return frozenset()


def shift_vars(t: Type, cutoff: int, by: int = 1) -> Type:
    """Renumber free positions at or above ``cutoff`` by ``by``.

    Used when an environment entry is inserted below existing positions.
    """
    match t:
        case Selection(var=v) if v >= cutoff:
            return Selection(v + by)
        case Bind(body=body):
            return Bind(shift_vars(body, cutoff, by))
        case And(left=a, right=b):
            return And(shift_vars(a, cutoff, by), shift_vars(b, cutoff, by))
        case Member(lower=a, upper=b):
            return Member(shift_vars(a, cutoff, by), shift_vars(b, cutoff, by))
        case Function(label=label, arg=a, result=b):
            return Function(label, shift_vars(a, cutoff, by), shift_vars(b, cutoff, by))
        case _:
            return t


def format_type(t: Type) -> str:
    """Convert a type to a human-readable string.

    Examples:
        >>> format_type(Member(Bottom(), Top()))
        '{type: Bot..Top}'
        >>> format_type(Bind(Function(0, Selection(1), BoundSelection(0))))
        '{z => def m0(x1.Type): z0.Type}'

    """
    match t:
        case Top():
            return "Top"
        case Bottom():
            return "Bot"
        case Boolean():
            return "Bool"
        case NoMembers():
            return "{}"
        case And(left=a, right=b):
            return f"{_format_operand(a)} & {_format_operand(b)}"
        case Function(label=label, arg=a, result=b):
            return f"def m{label}({format_type(a)}): {format_type(b)}"
        case Member(lower=a, upper=b):
            return f"{{type: {format_type(a)}..{format_type(b)}}}"
        case Selection(var=v):
            return f"x{v}.Type"
        case BoundSelection(index=i):
            return f"z{i}.Type"
        case Bind(body=body):
            return f"{{z => {format_type(body)}}}"


def _format_operand(t: Type) -> str:
    if isinstance(t, (And, Function)):
        return f"({format_type(t)})"
    return format_type(t)
