"""Expansion of types to their type-member bounds.

``expand(env, T)`` answers "which type member do values of type ``T``
carry?". A member type carries itself. A selection ``x.Type`` is bounded
above by the upper bound of ``x``'s declared member, so its values carry
whatever that upper bound expands to.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from dotsub.config import DEFAULT_CONFIG, CheckerConfig
from dotsub.errors import BudgetExceededError, NotExpandableError
from dotsub.syntax import Member, Selection, Type, format_type

if TYPE_CHECKING:
    from dotsub.environment import Env


def expand(env: Env, t: Type, config: CheckerConfig = DEFAULT_CONFIG) -> Member:
    """Compute the member bounds of ``t`` under ``env``.

    Args:
        env: The environment selections are resolved in.
        t: The type to expand.
        config: Supplies the bound on selection chain length.

    Returns:
        The ``Member`` that ``t`` reduces to. The result is unique, since
        at most one rule applies to each type.

    Raises:
        UnboundVariableError: A selection's variable is not bound.
        NotExpandableError: ``t`` (or a bound it depends on) is not a
            member type or a selection.
        BudgetExceededError: The selection chain is longer than
            ``config.max_depth``, which happens for cyclic bindings.

    """
    return _expand(env, t, config.max_depth, config.max_depth)


def try_expand(
    env: Env,
    t: Type,
    config: CheckerConfig = DEFAULT_CONFIG,
) -> Member | None:
    """Like ``expand``, but return None when ``t`` has no member bounds."""
    try:
        return expand(env, t, config)
    except NotExpandableError:
        return None


def _expand(env: Env, t: Type, depth: int, limit: int) -> Member:
    if depth <= 0:
        raise BudgetExceededError("expansion", limit)
    match t:
        case Member():
            return t
        case Selection(var=x):
            declared = env.index(x)
            outer = _expand(env, declared, depth - 1, limit)
            try:
                return _expand(env, outer.upper, depth - 1, limit)
            except NotExpandableError as err:
                reason = f"upper bound {format_type(outer.upper)} of x{x} has no members"
                raise NotExpandableError(t, reason) from err
        case _:
            raise NotExpandableError(t)
