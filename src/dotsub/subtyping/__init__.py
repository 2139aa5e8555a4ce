"""Subtyping engine: expansion, derivation search, transitivity, narrowing.

The engine decides ``env |- left <: right`` by searching for a strict
derivation, a proof tree without a trailing transitivity step. Proofs are
first-class values: they can be composed (``eliminate``), moved to a
narrower environment (``narrow``) and re-checked (``verify``).

Example usage:
    from dotsub import Env, Member, Bottom, Top, Selection
    from dotsub.subtyping import check_subtype

    env = Env.of(Member(Bottom(), Member(Bottom(), Top())))
    result = check_subtype(env, Selection(0), Top())
    if not result:
        print(result.format_error())
"""

from __future__ import annotations

from dotsub.subtyping.checker import (
    SubtypeChecker,
    check_subtype,
    derive_subtype,
    is_subtype,
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
    TransRule,
    WrapRule,
    format_derivation,
    unwrap,
    wrap,
)
from dotsub.subtyping.expansion import expand, try_expand
from dotsub.subtyping.narrowing import narrow, weaken
from dotsub.subtyping.transitivity import (
    check_realizable,
    eliminate,
    invert_member,
    normalize,
    realizability_witness,
    transitivity,
)
from dotsub.subtyping.verify import is_valid, verify

__all__ = [
    # Rules
    "AndLeftRule",
    "AndRightRule",
    "BindRule",
    "BooleanRule",
    "BottomRule",
    "Derivation",
    "FunctionRule",
    "MemberRule",
    "Mode",
    "NoMembersRule",
    "SelectionLowerRule",
    "SelectionReflRule",
    "SelectionUpperRule",
    # Search
    "SubtypeChecker",
    "TopRule",
    "TransRule",
    "WrapRule",
    "check_realizable",
    "check_subtype",
    "derive_subtype",
    # Elimination and narrowing
    "eliminate",
    # Expansion
    "expand",
    "format_derivation",
    "invert_member",
    "is_subtype",
    "is_valid",
    "narrow",
    "normalize",
    "realizability_witness",
    "transitivity",
    "try_expand",
    "unwrap",
    # Verification
    "verify",
    "weaken",
    "wrap",
]
