"""Decision procedure for subtyping.

The checker searches for a strict derivation of ``env |- left <: right``.
Rules whose applicability is decided by the head constructors alone are
tried first and commit; the intersection-left rules and the two selection
rules may overlap, so they are tried in turn and the first that succeeds
wins.

Relaxed queries get the strict derivation wrapped. Transitivity
elimination turns every relaxed derivation into a strict one, so searching
for explicit transitivity steps would find nothing new.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from dotsub.config import DEFAULT_CONFIG, CheckerConfig
from dotsub.errors import (
    AbortError,
    BudgetExceededError,
    IllScopedTypeError,
    NoDerivationError,
    RuleFailure,
    ShapeMismatchError,
    SubtypeResult,
)
from dotsub.subtyping.derivations import (
    AndLeftRule,
    AndRightRule,
    BindRule,
    BooleanRule,
    BottomRule,
    Derivation,
    FunctionRule,
    MemberRule,
    Mode,
    NoMembersRule,
    SelectionLowerRule,
    SelectionReflRule,
    SelectionUpperRule,
    TopRule,
    wrap,
)
from dotsub.syntax import (
    And,
    Bind,
    Boolean,
    Bottom,
    Function,
    Member,
    NoMembers,
    Selection,
    Top,
    Type,
    closed_at,
    format_type,
    open_type,
)

if TYPE_CHECKING:
    from dotsub.environment import Env

logger = logging.getLogger(__name__)


def check_scope(t: Type) -> None:
    """Reject types with a bound selection outside its binder.

    Raises:
        IllScopedTypeError: If ``t`` is not closed at depth 0.

    """
    if not closed_at(0, t):
        raise IllScopedTypeError(t, "bound selection escapes its binder")


@dataclass
class SubtypeChecker:
    """Searches for subtyping derivations.

    The checker holds no state between queries besides its configuration;
    one instance can answer any number of queries.
    """

    config: CheckerConfig = DEFAULT_CONFIG

    def derive(
        self,
        env: Env,
        left: Type,
        right: Type,
        mode: Mode = Mode.STRICT,
    ) -> Derivation:
        """Find a derivation of ``env |- left <: right``.

        Args:
            env: The environment selections are resolved in.
            left: The candidate subtype.
            right: The candidate supertype.
            mode: ``Mode.RELAXED`` wraps the strict derivation found.

        Returns:
            A derivation in the requested mode.

        Raises:
            RuleFailure: No derivation exists.
            AbortError: The search ran out of budget.
            IllScopedTypeError: A type is not closed (when scope checks
                are enabled).

        """
        if self.config.check_scope:
            check_scope(left)
            check_scope(right)
        d = self._strict(env, left, right, self.config.max_depth)
        return d if mode is Mode.STRICT else wrap(d)

    def check(
        self,
        env: Env,
        left: Type,
        right: Type,
        mode: Mode = Mode.STRICT,
    ) -> SubtypeResult:
        """Answer a subtyping query without raising for a negative answer.

        Returns:
            SubtypeResult carrying the derivation on success or the error
            on failure.

        """
        try:
            d = self.derive(env, left, right, mode)
        except (RuleFailure, AbortError) as err:
            logger.debug("%s <: %s fails: %s", format_type(left), format_type(right), err)
            return SubtypeResult(success=False, left=left, right=right, error=err)
        return SubtypeResult(success=True, left=left, right=right, derivation=d)

    def _strict(self, env: Env, left: Type, right: Type, depth: int) -> Derivation:  # noqa: PLR0911
        """Core search: a strict derivation or a ``RuleFailure``."""
        if depth <= 0:
            logger.warning(
                "subtype search depth exhausted at %s <: %s",
                format_type(left),
                format_type(right),
            )
            raise BudgetExceededError("subtype search", self.config.max_depth)
        nested = depth - 1

        match (left, right):
            case (_, Top()):
                return TopRule(env, left, right)
            case (Bottom(), _):
                return BottomRule(env, left, right)
            case (_, And(left=a, right=b)):
                first = self._strict(env, left, a, nested)
                second = self._strict(env, left, b, nested)
                return AndRightRule(env, left, right, first, second)
            case (Boolean(), Boolean()):
                return BooleanRule(env, left, right)
            case (NoMembers(), NoMembers()):
                return NoMembersRule(env, left, right)
            case (Selection(var=x), Selection(var=y)) if x == y:
                return SelectionReflRule(env, left, right)
            case (Function(), Function()):
                return self._function(env, left, right, nested)
            case (Member(), Member()):
                return self._member(env, left, right, nested)
            case (Bind(), Bind()):
                return self._bind(env, left, right, nested)

        alternatives: list[Callable[[], Derivation]] = []
        if isinstance(left, And):
            alternatives.append(lambda: self._and_left(env, left, right, 0, nested))
            alternatives.append(lambda: self._and_left(env, left, right, 1, nested))
        if isinstance(left, Selection):
            alternatives.append(lambda: self._selection_upper(env, left, right, nested))
        if isinstance(right, Selection):
            alternatives.append(lambda: self._selection_lower(env, left, right, nested))

        if not alternatives:
            raise ShapeMismatchError(left, right, "no rule relates these constructors")
        return self._first_success(left, right, alternatives)

    def _first_success(
        self,
        left: Type,
        right: Type,
        alternatives: list[Callable[[], Derivation]],
    ) -> Derivation:
        """Return the first alternative that succeeds.

        A ``RuleFailure`` only rules out its own alternative; an
        ``AbortError`` ends the search.
        """
        failures: list[RuleFailure] = []
        for attempt in alternatives:
            try:
                return attempt()
            except RuleFailure as err:
                logger.debug(
                    "alternative %d for %s <: %s failed: %s",
                    len(failures),
                    format_type(left),
                    format_type(right),
                    err,
                )
                failures.append(err)

        if len(failures) == 1:
            raise failures[0]
        raise NoDerivationError(left, right, tuple(failures))

    def _function(self, env: Env, left: Function, right: Function, depth: int) -> Derivation:
        if left.label != right.label:
            reason = f"method labels differ (m{left.label} vs m{right.label})"
            raise ShapeMismatchError(left, right, reason)
        arg = wrap(self._strict(env, right.arg, left.arg, depth))
        result = self._strict(env, left.result, right.result, depth)
        return FunctionRule(env, left, right, arg, result)

    def _member(self, env: Env, left: Member, right: Member, depth: int) -> Derivation:
        lower = wrap(self._strict(env, right.lower, left.lower, depth))
        upper = self._strict(env, left.upper, right.upper, depth)
        return MemberRule(env, left, right, lower, upper)

    def _bind(self, env: Env, left: Bind, right: Bind, depth: int) -> Derivation:
        x = env.fresh
        opened_left = open_type(x, left.body)
        opened_right = open_type(x, right.body)
        body = self._strict(env.extend(opened_left), opened_left, opened_right, depth)
        return BindRule(env, left, right, body)

    def _and_left(
        self,
        env: Env,
        left: And,
        right: Type,
        which: int,
        depth: int,
    ) -> Derivation:
        component = left.left if which == 0 else left.right
        premise = self._strict(env, component, right, depth)
        return AndLeftRule(env, left, right, premise, which)

    def _selection_upper(
        self,
        env: Env,
        left: Selection,
        right: Type,
        depth: int,
    ) -> Derivation:
        declared = env.index(left.var)
        bound = self._strict(env, declared, Member(Bottom(), right), depth)
        return SelectionUpperRule(env, left, right, bound)

    def _selection_lower(
        self,
        env: Env,
        left: Type,
        right: Selection,
        depth: int,
    ) -> Derivation:
        declared = env.index(right.var)
        bound = self._strict(env, declared, Member(left, Top()), depth)
        return SelectionLowerRule(env, left, right, bound)


def derive_subtype(
    env: Env,
    left: Type,
    right: Type,
    mode: Mode = Mode.STRICT,
    config: CheckerConfig = DEFAULT_CONFIG,
) -> Derivation:
    """Find a derivation of ``env |- left <: right`` or raise.

    Convenience wrapper around ``SubtypeChecker.derive``.
    """
    return SubtypeChecker(config).derive(env, left, right, mode)


def check_subtype(
    env: Env,
    left: Type,
    right: Type,
    mode: Mode = Mode.STRICT,
    config: CheckerConfig = DEFAULT_CONFIG,
) -> SubtypeResult:
    """Check ``env |- left <: right`` and report the outcome.

    Example:
        env = Env.of(Member(Bottom(), Member(Bottom(), Top())))
        result = check_subtype(env, Selection(0), Top())
        if not result:
            print(result.format_error())

    """
    return SubtypeChecker(config).check(env, left, right, mode)


def is_subtype(
    env: Env,
    left: Type,
    right: Type,
    mode: Mode = Mode.STRICT,
    config: CheckerConfig = DEFAULT_CONFIG,
) -> bool:
    """Return True if ``env |- left <: right`` is derivable."""
    return check_subtype(env, left, right, mode, config).success
