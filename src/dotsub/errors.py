"""Error types for the subtyping engine.

Failures fall in two families. A ``RuleFailure`` is local: the rule being
tried does not apply, and a search trying several rules moves on to the
next one. An ``AbortError`` ends the whole decision, because continuing
would not terminate or would rely on a broken precondition.

The ``SubtypeResult`` at the end of this module is what the public query
API returns.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from dotsub.syntax import Type, format_type

if TYPE_CHECKING:
    from dotsub.subtyping.derivations import Derivation

# Constant for error message truncation
_MAX_CAUSES_SHOWN = 4


class DotError(Exception):
    """Base class for all errors raised by the engine."""

    def format(self) -> str:
        """Format the error for display."""
        return str(self)


class RuleFailure(DotError):
    """A rule (or every rule) failed to apply to a judgment."""


class AbortError(DotError):
    """A condition that ends the whole subtyping decision."""


class UnboundVariableError(RuleFailure):
    """A selection refers to a position with no environment entry."""

    def __init__(self, var: int, env_size: int) -> None:
        self.var = var
        self.env_size = env_size
        super().__init__(f"Unbound variable x{var} (environment has {env_size} entries)")


class NotExpandableError(RuleFailure):
    """A type has no member-bound reduction."""

    def __init__(self, t: Type, reason: str = "") -> None:
        self.type = t
        self.reason = reason
        msg = f"Cannot expand {format_type(t)} to a type member"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


class ShapeMismatchError(RuleFailure):
    """No rule relates the head constructors of the two types."""

    def __init__(self, left: Type, right: Type, reason: str = "") -> None:
        self.left = left
        self.right = right
        self.reason = reason
        super().__init__(f"{format_type(left)} is not a subtype of {format_type(right)}")

    def format(self) -> str:
        """Format the mismatch for display."""
        lines = [
            "Type is not a subtype",
            f"  Type:     {format_type(self.left)}",
            f"  Expected: {format_type(self.right)}",
        ]
        if self.reason:
            lines.append(f"  Reason:   {self.reason}")
        return "\n".join(lines)


class NoDerivationError(RuleFailure):
    """Several rules applied to a judgment and all of them failed."""

    def __init__(
        self,
        left: Type,
        right: Type,
        causes: tuple[RuleFailure, ...],
    ) -> None:
        self.left = left
        self.right = right
        self.causes = causes
        super().__init__(
            f"No derivation of {format_type(left)} <: {format_type(right)} "
            f"({len(causes)} rule(s) tried)",
        )

    def format(self) -> str:
        """Format the error together with the failure of each rule tried."""
        lines = [str(self)]
        for cause in self.causes[:_MAX_CAUSES_SHOWN]:
            lines.extend(f"  | {line}" for line in cause.format().splitlines())
        if len(self.causes) > _MAX_CAUSES_SHOWN:
            lines.append(f"  ... ({len(self.causes)} total)")
        return "\n".join(lines)


class RealizabilityViolationError(AbortError):
    """An environment entry's expanded bounds are not related.

    Transitivity elimination through a selection needs the declared type of
    the selected variable to have a lower bound below its upper bound.
    """

    def __init__(self, var: int, declared: Type, reason: str) -> None:
        self.var = var
        self.declared = declared
        self.reason = reason
        super().__init__(
            f"Entry x{var}: {format_type(declared)} is not realizable: {reason}",
        )


class BudgetExceededError(AbortError):
    """A recursion budget ran out (cyclic bindings or a non-terminating case)."""

    def __init__(self, operation: str, budget: int) -> None:
        self.operation = operation
        self.budget = budget
        super().__init__(f"{operation} exceeded its budget of {budget}")


class NarrowingUnsupportedError(DotError):
    """Narrowing was requested at a position the environment does not hold."""

    def __init__(self, position: int, env_size: int) -> None:
        self.position = position
        self.env_size = env_size
        super().__init__(
            f"Cannot narrow position {position} in an environment of {env_size} entries",
        )


class InvalidDerivationError(DotError):
    """A derivation node does not follow the rule it claims to use."""

    def __init__(self, rule: str, message: str) -> None:
        self.rule = rule
        super().__init__(f"{rule}: {message}")


class IllScopedTypeError(DotError, ValueError):
    """A type given to a public entry point is not closed in its environment."""

    def __init__(self, t: Type, message: str) -> None:
        self.type = t
        super().__init__(f"{format_type(t)}: {message}")


@dataclass
class SubtypeResult:
    """Result of a subtyping query.

    Contains the success flag and either the derivation that proves the
    judgment or the error that explains why none was found.
    """

    success: bool
    left: Type
    right: Type
    derivation: Derivation | None = None
    error: DotError | None = field(default=None)

    def __bool__(self) -> bool:
        return self.success

    def format_error(self) -> str:
        """Format the outcome for display.

        Returns:
            A multi-line string describing the failure, or a short
            confirmation when the query succeeded.

        """
        if self.success:
            return f"{format_type(self.left)} <: {format_type(self.right)} holds."
        if self.error is None:
            return "Subtype check failed."
        return self.error.format()
