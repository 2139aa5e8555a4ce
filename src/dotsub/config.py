"""Budgets and switches for the subtyping engine."""

from __future__ import annotations

from dataclasses import dataclass

# Nesting depth of the rule search and of selection chains during expansion.
DEFAULT_MAX_DEPTH = 96
# Recursion fuel for transitivity elimination and narrowing.
DEFAULT_FUEL = 128


@dataclass(frozen=True)
class CheckerConfig:
    """Configuration shared by the checker, elimination and narrowing.

    Attributes:
        max_depth: Deepest nesting of rule applications the search explores
            before giving up with ``BudgetExceededError``. Also bounds the
            length of selection chains followed by ``expand``.
        fuel: Recursion fuel for transitivity elimination and narrowing.
        check_scope: Validate that types handed to public entry points are
            closed, that is free of dangling ``BoundSelection`` indices.

    """

    max_depth: int = DEFAULT_MAX_DEPTH
    fuel: int = DEFAULT_FUEL
    check_scope: bool = True


DEFAULT_CONFIG = CheckerConfig()
