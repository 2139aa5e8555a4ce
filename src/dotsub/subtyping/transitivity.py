"""Transitivity elimination.

Given a strict derivation of ``T1 <: T2`` and any derivation of
``T2 <: T3`` under the same environment, ``eliminate`` builds a strict
derivation of ``T1 <: T3`` without an explicit transitivity step at its
root. The algorithm case-splits on the root rules of both inputs:

- a ``Top`` on the right or a ``Bot`` on the left absorbs the other side;
- a selection upper bound on the left, or a selection lower bound on the
  right, is pushed into the declared bound of the selected variable;
- intersections distribute (right) or project (left);
- same-shaped functions and members compose componentwise, with the
  contravariant side composed in the opposite order;
- recursive types compose after narrowing the right premise into the
  environment of the left one;
- the cross case ``T1 <: y.Type <: T3`` inverts both bounds of ``y`` to its
  expanded member ``L..U`` and needs a witness ``L <: U``: this is where the
  environment must be realizable.

Recursion is bounded by explicit fuel that every nested call decreases;
running out raises ``BudgetExceededError``.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from dotsub.config import DEFAULT_CONFIG, CheckerConfig
from dotsub.errors import (
    BudgetExceededError,
    InvalidDerivationError,
    NotExpandableError,
    RealizabilityViolationError,
    RuleFailure,
)
from dotsub.subtyping.checker import SubtypeChecker
from dotsub.subtyping.derivations import (
    AndLeftRule,
    AndRightRule,
    BindRule,
    BooleanRule,
    BottomRule,
    Derivation,
    FunctionRule,
    MemberRule,
    NoMembersRule,
    SelectionLowerRule,
    SelectionReflRule,
    SelectionUpperRule,
    TopRule,
    TransRule,
    WrapRule,
    unwrap,
    wrap,
)
from dotsub.subtyping.expansion import try_expand
from dotsub.syntax import And, Bottom, Member, Selection, Top, Type, format_type

if TYPE_CHECKING:
    from dotsub.environment import Env

logger = logging.getLogger(__name__)


def invert_member(d: Derivation) -> MemberRule:
    """Expansion inversion.

    If ``d`` proves ``T <: {type: L'..U'}`` strictly and ``T`` expands to
    ``{type: L..U}``, return a derivation of
    ``{type: L..U} <: {type: L'..U'}`` whose size does not exceed ``d``'s.

    Raises:
        NotExpandableError: The root rule of ``d`` does not come from a type
            that expands (an intersection, for instance).
        ValueError: ``d`` does not conclude in a member type or is not
            strict.

    """
    d = unwrap(d)
    if not d.strict or not isinstance(d.right, Member):
        msg = f"Expected a strict derivation into a member type, got {d.rule}"
        raise ValueError(msg)

    match d:
        case MemberRule():
            return d
        case SelectionUpperRule(bound=bound):
            # env[x] <: {Bot..{L'..U'}} gives env[x]'s upper bound <: {L'..U'}
            outer = invert_member(bound)
            return invert_member(outer.upper)
        case _:
            reason = f"{d.rule} does not relate a member type"
            raise NotExpandableError(d.left, reason)


def eliminate(
    first: Derivation,
    second: Derivation,
    config: CheckerConfig = DEFAULT_CONFIG,
    fuel: int | None = None,
) -> Derivation:
    """Compose ``T1 <: T2`` (strict) with ``T2 <: T3`` into a strict ``T1 <: T3``.

    Args:
        first: Strict derivation of ``T1 <: T2``.
        second: Derivation of ``T2 <: T3`` in either mode.
        config: Supplies the default fuel and the search depth used for
            realizability witnesses.
        fuel: Remaining recursion fuel; defaults to ``config.fuel``.

    Returns:
        A strict derivation of ``T1 <: T3`` under the same environment.

    Raises:
        ValueError: The derivations do not chain.
        RealizabilityViolationError: A selection in the middle has bounds
            that cannot be related.
        BudgetExceededError: The fuel ran out.

    """
    if fuel is None:
        fuel = config.fuel
    first = unwrap(first)
    if not first.strict:
        msg = f"Left derivation must be strict, got {first.rule}"
        raise ValueError(msg)
    if first.right != second.left:
        msg = (
            f"Derivations do not chain: {format_type(first.right)} "
            f"vs {format_type(second.left)}"
        )
        raise ValueError(msg)
    if first.env != second.env:
        msg = "Derivations hold in different environments"
        raise ValueError(msg)
    return _eliminate(first, normalize(second, config, fuel), config, fuel)


def normalize(
    d: Derivation,
    config: CheckerConfig = DEFAULT_CONFIG,
    fuel: int | None = None,
) -> Derivation:
    """Turn any derivation into a strict derivation of the same judgment.

    ``WrapRule`` layers are removed and every ``TransRule`` is replaced by
    the elimination of its two premises.
    """
    if fuel is None:
        fuel = config.fuel
    _spend(fuel, config)
    match d:
        case WrapRule(inner=inner):
            return normalize(inner, config, fuel - 1)
        case TransRule(first=first, second=second):
            rest = normalize(second, config, fuel - 1)
            return _eliminate(normalize(first, config, fuel - 1), rest, config, fuel - 1)
        case _:
            return d


def transitivity(
    first: Derivation,
    second: Derivation,
    config: CheckerConfig = DEFAULT_CONFIG,
) -> Derivation:
    """Relaxed ``T1 <: T3`` from strict ``T1 <: T2`` and ``T2 <: T3``.

    The result is a wrapped strict derivation rather than a ``TransRule``.
    """
    return wrap(eliminate(first, second, config))


def realizability_witness(
    env: Env,
    var: int,
    config: CheckerConfig = DEFAULT_CONFIG,
) -> Derivation:
    """Derive ``L <: U`` for the expanded bounds of the type declared at ``var``.

    Raises:
        RealizabilityViolationError: The declared type has no member
            bounds, or its bounds are not related.

    """
    declared = env.index(var)
    try:
        bounds = try_expand(env, declared, config)
    except RuleFailure as err:
        raise RealizabilityViolationError(var, declared, str(err)) from err
    if bounds is None:
        raise RealizabilityViolationError(var, declared, "it declares no type member")

    checker = SubtypeChecker(replace(config, check_scope=False))
    try:
        return checker.derive(env, bounds.lower, bounds.upper)
    except RuleFailure as err:
        reason = f"{format_type(bounds.lower)} <: {format_type(bounds.upper)} does not hold"
        raise RealizabilityViolationError(var, declared, reason) from err


def check_realizable(
    env: Env,
    config: CheckerConfig = DEFAULT_CONFIG,
) -> list[RealizabilityViolationError]:
    """Find the entries that can be selected through but are not realizable.

    An entry is selected through whenever a member type is reachable from
    it through intersections or selections. Such an entry is reported when
    it does not expand (an intersection like ``{type: Bool..Bool} & def
    m0(Bool): Bool``) or when its expanded bounds are not related. Entries
    with no reachable member (such as ``Bool``) are skipped.

    Returns:
        One error per offending entry, in position order.

    """
    violations: list[RealizabilityViolationError] = []
    for position, declared in env.entries:
        try:
            if not _selectable(declared):
                continue
            realizability_witness(env, position, config)
        except RealizabilityViolationError as err:
            violations.append(err)
        except (RuleFailure, BudgetExceededError) as err:
            violations.append(RealizabilityViolationError(position, declared, str(err)))
    return violations


def _selectable(t: Type) -> bool:
    match t:
        case Member() | Selection():
            return True
        case And(left=a, right=b):
            return _selectable(a) or _selectable(b)
        case _:
            return False


def _spend(fuel: int, config: CheckerConfig) -> None:
    if fuel <= 0:
        logger.warning("transitivity elimination ran out of fuel")
        raise BudgetExceededError("transitivity elimination", config.fuel)


def _eliminate(  # noqa: C901, PLR0911
    d1: Derivation,
    d2: Derivation,
    config: CheckerConfig,
    fuel: int,
) -> Derivation:
    """Core elimination on two strict derivations that chain."""
    _spend(fuel, config)
    env, t1, t3 = d1.env, d1.left, d2.right
    fuel -= 1

    match (d1, d2):
        case (_, TopRule()):
            return TopRule(env, t1, t3)
        case (BottomRule(), _):
            return BottomRule(env, t1, t3)
        case (SelectionReflRule(), _):
            return d2
        case (_, SelectionReflRule()):
            return d1
        case (SelectionUpperRule(bound=bound), _):
            # x.Type <: T2 <: T3: widen the upper bound of x to T3
            widen = MemberRule(
                env,
                Member(Bottom(), d1.right),
                Member(Bottom(), t3),
                wrap(BottomRule(env, Bottom(), Bottom())),
                d2,
            )
            return SelectionUpperRule(env, t1, t3, _eliminate(bound, widen, config, fuel))
        case (_, SelectionLowerRule(bound=bound)):
            # T1 <: T2 <: y.Type: lower the lower bound of y to T1
            lower = MemberRule(
                env,
                Member(d2.left, Top()),
                Member(t1, Top()),
                wrap(d1),
                TopRule(env, Top(), Top()),
            )
            return SelectionLowerRule(env, t1, t3, _eliminate(bound, lower, config, fuel))
        case (_, AndRightRule(first=f, second=s)):
            return AndRightRule(
                env,
                t1,
                t3,
                _eliminate(d1, f, config, fuel),
                _eliminate(d1, s, config, fuel),
            )
        case (AndLeftRule(premise=p, which=which), _):
            return AndLeftRule(env, t1, t3, _eliminate(p, d2, config, fuel), which)
        case (AndRightRule(first=f, second=s), AndLeftRule(premise=p, which=which)):
            return _eliminate(f if which == 0 else s, p, config, fuel)
        case (BooleanRule(), BooleanRule()) | (NoMembersRule(), NoMembersRule()):
            return d1
        case (FunctionRule(), FunctionRule()):
            arg = _eliminate(
                normalize(d2.arg, config, fuel),
                normalize(d1.arg, config, fuel),
                config,
                fuel,
            )
            result = _eliminate(d1.result, d2.result, config, fuel)
            return FunctionRule(env, t1, t3, wrap(arg), result)
        case (MemberRule(), MemberRule()):
            lower = _eliminate(
                normalize(d2.lower, config, fuel),
                normalize(d1.lower, config, fuel),
                config,
                fuel,
            )
            upper = _eliminate(d1.upper, d2.upper, config, fuel)
            return MemberRule(env, t1, t3, wrap(lower), upper)
        case (BindRule(body=body1), BindRule(body=body2)):
            return BindRule(env, t1, t3, _compose_binders(d1, body1, body2, config, fuel))
        case (SelectionLowerRule(), SelectionUpperRule()):
            return _cross(d1, d2, config, fuel)

    msg = f"cannot follow {d1.judgment()} with {d2.judgment()} ({d2.rule})"
    raise InvalidDerivationError(d1.rule, msg)


def _compose_binders(
    d1: BindRule,
    body1: Derivation,
    body2: Derivation,
    config: CheckerConfig,
    fuel: int,
) -> Derivation:
    """Compose the bodies of two recursive-type derivations.

    ``body2`` assumes the self variable has the middle body; narrowing it
    with ``body1`` rebinds the self variable to the left body, the
    environment ``body1`` already holds in.
    """
    # Import here to avoid circular dependency
    from dotsub.subtyping.narrowing import narrow  # noqa: PLC0415

    logger.debug("composing recursive types at x%d", d1.fresh)
    narrowed = narrow(body2, d1.fresh, body1.left, body1, config, fuel)
    return _eliminate(body1, narrowed, config, fuel)


def _cross(
    d1: SelectionLowerRule,
    d2: SelectionUpperRule,
    config: CheckerConfig,
    fuel: int,
) -> Derivation:
    """``T1 <: y.Type <: T3`` through the bounds ``L..U`` of ``y``.

    Inverting the two bound derivations gives ``T1 <: L`` and ``U <: T3``;
    the realizability witness ``L <: U`` joins them.
    """
    env, var = d1.env, d1.var
    logger.debug("eliminating through selection x%d", var)
    try:
        below = invert_member(d1.bound)
        above = invert_member(d2.bound)
    except NotExpandableError as err:
        raise RealizabilityViolationError(var, env.index(var), str(err)) from err

    witness = realizability_witness(env, var, config)
    to_upper = _eliminate(normalize(below.lower, config, fuel), witness, config, fuel)
    return _eliminate(to_upper, above.upper, config, fuel)
