"""Subtyping derivations.

A derivation is an immutable proof tree for a judgment
``env |- left <: right``. Every rule is strict except ``WrapRule`` and
``TransRule``: a strict derivation never ends in a transitivity step, a
relaxed one may. Relaxed premises appear only where a rule allows them
(contravariant positions) and at the root.

Sizes over-approximate derivation depth and drive transitivity
elimination: a node's size is one more than the sum of its premises'
sizes, except ``WrapRule`` whose size is that of its payload.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, fields, replace
from enum import Enum, auto
from functools import cached_property
from typing import TYPE_CHECKING, Any, ClassVar

from dotsub.syntax import Selection, Type, format_type

if TYPE_CHECKING:
    from dotsub.environment import Env


class Mode(Enum):
    """Whether a derivation may end in an explicit transitivity step."""

    STRICT = auto()
    RELAXED = auto()


@dataclass(frozen=True)
class Derivation:
    """Base class of all derivation nodes.

    Attributes:
        env: Environment the judgment holds in.
        left: The subtype.
        right: The supertype.

    """

    env: Env
    left: Type
    right: Type

    mode: ClassVar[Mode] = Mode.STRICT

    @property
    def premises(self) -> tuple[Derivation, ...]:
        """Sub-derivations, in rule order."""
        return ()

    @cached_property
    def size(self) -> int:
        """Induction metric: premise sizes plus one."""
        return 1 + sum(p.size for p in self.premises)

    @property
    def strict(self) -> bool:
        """True unless the derivation may end in a transitivity step."""
        return self.mode is Mode.STRICT

    @property
    def rule(self) -> str:
        """Name of the rule at the root."""
        return type(self).__name__

    def judgment(self) -> str:
        """The conclusion as ``left <: right``."""
        return f"{format_type(self.left)} <: {format_type(self.right)}"


@dataclass(frozen=True)
class BottomRule(Derivation):
    """``Bot <: T``."""


@dataclass(frozen=True)
class TopRule(Derivation):
    """``T <: Top``."""


@dataclass(frozen=True)
class BooleanRule(Derivation):
    """``Bool <: Bool``."""


@dataclass(frozen=True)
class NoMembersRule(Derivation):
    """``{} <: {}``."""


@dataclass(frozen=True)
class SelectionReflRule(Derivation):
    """``x.Type <: x.Type``, without consulting the environment."""


@dataclass(frozen=True)
class FunctionRule(Derivation):
    """``def m(A1): R1 <: def m(A2): R2`` from ``A2 <: A1`` and ``R1 <: R2``."""

    arg: Derivation
    result: Derivation

    @property
    def premises(self) -> tuple[Derivation, ...]:
        return (self.arg, self.result)


@dataclass(frozen=True)
class MemberRule(Derivation):
    """``{type: L1..U1} <: {type: L2..U2}`` from ``L2 <: L1`` and ``U1 <: U2``."""

    lower: Derivation
    upper: Derivation

    @property
    def premises(self) -> tuple[Derivation, ...]:
        return (self.lower, self.upper)


def _selected(d: Derivation, t: Type) -> int:
    if not isinstance(t, Selection):
        msg = f"{d.rule} must select a variable, got {format_type(t)}"
        raise TypeError(msg)
    return t.var


@dataclass(frozen=True)
class SelectionLowerRule(Derivation):
    """``T <: x.Type`` from ``env[x] <: {type: T..Top}``."""

    bound: Derivation

    @property
    def var(self) -> int:
        """The selected position."""
        return _selected(self, self.right)

    @property
    def premises(self) -> tuple[Derivation, ...]:
        return (self.bound,)


@dataclass(frozen=True)
class SelectionUpperRule(Derivation):
    """``x.Type <: T`` from ``env[x] <: {type: Bot..T}``."""

    bound: Derivation

    @property
    def var(self) -> int:
        """The selected position."""
        return _selected(self, self.left)

    @property
    def premises(self) -> tuple[Derivation, ...]:
        return (self.bound,)


@dataclass(frozen=True)
class BindRule(Derivation):
    """``{z => A1} <: {z => A2}``.

    The body premise holds in the environment extended with a fresh
    position ``x`` bound to ``A1`` opened at ``x``, and relates both bodies
    opened at ``x``.
    """

    body: Derivation

    @property
    def fresh(self) -> int:
        """The position of the self variable introduced by this rule."""
        return len(self.env)

    @property
    def premises(self) -> tuple[Derivation, ...]:
        return (self.body,)


@dataclass(frozen=True)
class AndLeftRule(Derivation):
    """``A0 & A1 <: T`` from ``A<which> <: T``."""

    premise: Derivation
    which: int

    @property
    def premises(self) -> tuple[Derivation, ...]:
        return (self.premise,)


@dataclass(frozen=True)
class AndRightRule(Derivation):
    """``T <: A & B`` from ``T <: A`` and ``T <: B``."""

    first: Derivation
    second: Derivation

    @property
    def premises(self) -> tuple[Derivation, ...]:
        return (self.first, self.second)


@dataclass(frozen=True)
class WrapRule(Derivation):
    """Lifts a strict derivation to the relaxed mode."""

    inner: Derivation

    mode: ClassVar[Mode] = Mode.RELAXED

    @property
    def premises(self) -> tuple[Derivation, ...]:
        return (self.inner,)

    @cached_property
    def size(self) -> int:
        return self.inner.size


@dataclass(frozen=True)
class TransRule(Derivation):
    """``T1 <: T3`` from a strict ``T1 <: T2`` and a relaxed ``T2 <: T3``."""

    first: Derivation
    second: Derivation

    mode: ClassVar[Mode] = Mode.RELAXED

    @property
    def middle(self) -> Type:
        """The intermediate type ``T2``."""
        return self.first.right

    @property
    def premises(self) -> tuple[Derivation, ...]:
        return (self.first, self.second)


def wrap(d: Derivation) -> Derivation:
    """Return ``d`` as a relaxed derivation, wrapping it when it is strict."""
    if d.strict:
        return WrapRule(d.env, d.left, d.right, d)
    return d


def unwrap(d: Derivation) -> Derivation:
    """Strip ``WrapRule`` layers; explicit transitivity steps stay."""
    while isinstance(d, WrapRule):
        d = d.inner
    return d


def rebuild(
    d: Derivation,
    premise: Callable[[Derivation], Derivation],
    **changes: Any,
) -> Derivation:
    """Copy ``d`` with every premise mapped through ``premise``.

    Keyword arguments replace the remaining fields (typically ``env``,
    ``left`` and ``right``).
    """
    mapped = {
        f.name: premise(value)
        for f in fields(d)
        if isinstance(value := getattr(d, f.name), Derivation)
    }
    return replace(d, **mapped, **changes)


def format_derivation(d: Derivation, indent: int = 0) -> str:
    """Render a derivation as an indented tree, premises below conclusions.

    Examples:
        MemberRule  {type: Bot..Bool} <: {type: Bot..Top}  [3]
          WrapRule  Bot <: Bot  [1]
            BottomRule  Bot <: Bot  [1]
          TopRule  Bool <: Top  [1]

    """
    pad = "  " * indent
    lines = [f"{pad}{d.rule}  {d.judgment()}  [{d.size}]"]
    lines.extend(format_derivation(p, indent + 1) for p in d.premises)
    return "\n".join(lines)
