"""Environment narrowing and weakening of derivations.

Narrowing re-derives a judgment after an environment entry's type has been
replaced by a subtype. Only two rules need more than a copy with the new
environment: the selection rules at the narrowed position, whose bound is
now proved for the new type by composing with the supplied proof, and the
recursive-type rule, which extends the environment and so needs the proof
weakened into the extension.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from dotsub.config import DEFAULT_CONFIG, CheckerConfig
from dotsub.errors import BudgetExceededError, NarrowingUnsupportedError
from dotsub.subtyping.derivations import (
    BindRule,
    Derivation,
    SelectionLowerRule,
    SelectionUpperRule,
    rebuild,
    unwrap,
)
from dotsub.subtyping.transitivity import eliminate
from dotsub.syntax import Type, format_type, shift_vars

logger = logging.getLogger(__name__)


def narrow(  # noqa: PLR0913
    d: Derivation,
    position: int,
    new_type: Type,
    proof: Derivation,
    config: CheckerConfig = DEFAULT_CONFIG,
    fuel: int | None = None,
) -> Derivation:
    """Re-derive ``d`` with the entry at ``position`` replaced by ``new_type``.

    Args:
        d: Derivation of ``env |- T1 <: T2``, in either mode.
        position: The environment position being narrowed.
        new_type: The tighter type for that position.
        proof: Strict derivation of ``new_type <: env[position]`` under
            the updated environment ``env.update(position, new_type)``.
        config: Supplies the default fuel.
        fuel: Remaining recursion fuel; defaults to ``config.fuel``.

    Returns:
        A derivation of ``T1 <: T2`` in the same mode under the updated
        environment.

    Raises:
        NarrowingUnsupportedError: ``position`` is not bound in ``d.env``.
        ValueError: ``proof`` does not prove the required judgment.

    """
    if fuel is None:
        fuel = config.fuel
    env = d.env
    old_type = env.lookup(position)
    if old_type is None:
        raise NarrowingUnsupportedError(position, len(env))

    proof = unwrap(proof)
    if not proof.strict:
        msg = f"Narrowing proof must be strict, got {proof.rule}"
        raise ValueError(msg)
    if proof.left != new_type or proof.right != old_type:
        msg = (
            f"Narrowing proof concludes {proof.judgment()}, expected "
            f"{format_type(new_type)} <: {format_type(old_type)}"
        )
        raise ValueError(msg)
    if proof.env != env.update(position, new_type):
        msg = "Narrowing proof must hold in the narrowed environment"
        raise ValueError(msg)

    logger.debug(
        "narrowing x%d from %s to %s",
        position,
        format_type(old_type),
        format_type(new_type),
    )
    return _narrow(d, position, new_type, proof, config, fuel)


def weaken(d: Derivation, t: Type) -> Derivation:
    """Re-derive ``d`` under ``d.env.extend(t)``.

    Recursive-type rules inside ``d`` bind their self variable at the end
    of their environment; after the extension that position is one higher,
    so everything introduced above the old length is renumbered.
    """
    return _weaken(d, len(d.env), t)


def _weaken(d: Derivation, cutoff: int, t: Type) -> Derivation:
    return rebuild(
        d,
        lambda p: _weaken(p, cutoff, t),
        env=d.env.insert_shifted(cutoff, t),
        left=shift_vars(d.left, cutoff),
        right=shift_vars(d.right, cutoff),
    )


def _narrow(  # noqa: PLR0913
    d: Derivation,
    position: int,
    new_type: Type,
    proof: Derivation,
    config: CheckerConfig,
    fuel: int,
) -> Derivation:
    if fuel <= 0:
        logger.warning("narrowing ran out of fuel at x%d", position)
        raise BudgetExceededError("narrowing", config.fuel)
    env = d.env.update(position, new_type)
    fuel -= 1

    match d:
        case SelectionUpperRule(bound=bound) | SelectionLowerRule(bound=bound) if (
            d.var == position
        ):
            # the bound was proved for the old type; route it through the proof
            narrowed = _narrow(bound, position, new_type, proof, config, fuel)
            return replace(d, env=env, bound=eliminate(proof, narrowed, config, fuel))
        case BindRule(body=body):
            entry = body.env.index(d.fresh)
            extended_proof = weaken(proof, entry)
            return replace(
                d,
                env=env,
                body=_narrow(body, position, new_type, extended_proof, config, fuel),
            )
        case _:
            return rebuild(
                d,
                lambda p: _narrow(p, position, new_type, proof, config, fuel),
                env=env,
            )
