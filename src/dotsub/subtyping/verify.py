"""Independent checker for derivations.

``verify`` re-checks a derivation node by node against the rule each node
claims to use. It trusts nothing computed by the search, elimination or
narrowing, which makes it the oracle the tests use for those algorithms.
"""

from __future__ import annotations

from dotsub.errors import InvalidDerivationError
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
    open_type,
)


def verify(d: Derivation) -> None:
    """Check every node of ``d``.

    Raises:
        InvalidDerivationError: At the first node (in pre-order) that does
            not follow its rule.

    """
    _check_node(d)
    for premise in d.premises:
        verify(premise)


def is_valid(d: Derivation) -> bool:
    """Return True if ``d`` passes ``verify``."""
    try:
        verify(d)
    except InvalidDerivationError:
        return False
    return True


def _require(condition: bool, d: Derivation, message: str) -> None:  # noqa: FBT001
    if not condition:
        raise InvalidDerivationError(d.rule, f"{message} in {d.judgment()}")


def _concludes(p: Derivation, d: Derivation, left: object, right: object) -> None:
    """Check that premise ``p`` of ``d`` proves ``left <: right``."""
    _require(p.left == left and p.right == right, d, f"premise proves {p.judgment()}")


def _check_node(d: Derivation) -> None:  # noqa: C901
    if not isinstance(d, BindRule):
        for p in d.premises:
            _require(p.env == d.env, d, "premise holds in another environment")

    match d:
        case (
            TopRule(right=Top())
            | BottomRule(left=Bottom())
            | BooleanRule(left=Boolean(), right=Boolean())
            | NoMembersRule(left=NoMembers(), right=NoMembers())
        ):
            return
        case SelectionReflRule(left=Selection() as left, right=right):
            _require(left == right, d, "not the same selection")
        case FunctionRule(
            left=Function() as left,
            right=Function() as right,
            arg=arg,
            result=result,
        ):
            _require(left.label == right.label, d, "method labels differ")
            _concludes(arg, d, right.arg, left.arg)
            _concludes(result, d, left.result, right.result)
            _require(result.strict, d, "result premise must be strict")
        case MemberRule(
            left=Member() as left,
            right=Member() as right,
            lower=lower,
            upper=upper,
        ):
            _concludes(lower, d, right.lower, left.lower)
            _concludes(upper, d, left.upper, right.upper)
            _require(upper.strict, d, "upper premise must be strict")
        case SelectionLowerRule(right=Selection(var=x), bound=bound):
            declared = d.env.lookup(x)
            _require(declared is not None, d, f"x{x} is unbound")
            _concludes(bound, d, declared, Member(d.left, Top()))
            _require(bound.strict, d, "bound premise must be strict")
        case SelectionUpperRule(left=Selection(var=x), bound=bound):
            declared = d.env.lookup(x)
            _require(declared is not None, d, f"x{x} is unbound")
            _concludes(bound, d, declared, Member(Bottom(), d.right))
            _require(bound.strict, d, "bound premise must be strict")
        case BindRule(left=Bind() as left, right=Bind() as right, body=body):
            opened = open_type(d.fresh, left.body)
            _require(
                body.env == d.env.extend(opened),
                d,
                "body environment is not the self extension",
            )
            _concludes(body, d, opened, open_type(d.fresh, right.body))
            _require(body.strict, d, "body premise must be strict")
        case AndLeftRule(left=And() as left, premise=premise, which=0 | 1 as which):
            component = left.left if which == 0 else left.right
            _concludes(premise, d, component, d.right)
            _require(premise.strict, d, "premise must be strict")
        case AndRightRule(right=And() as right, first=first, second=second):
            _concludes(first, d, d.left, right.left)
            _concludes(second, d, d.left, right.right)
            _require(first.strict and second.strict, d, "premises must be strict")
        case WrapRule(inner=inner):
            _concludes(inner, d, d.left, d.right)
            _require(inner.strict, d, "wrapped derivation must be strict")
        case TransRule(first=first, second=second):
            _require(first.left == d.left, d, "first premise starts elsewhere")
            _require(first.right == second.left, d, "premises do not chain")
            _require(second.right == d.right, d, "second premise ends elsewhere")
            _require(first.strict, d, "first premise must be strict")
        case _:
            raise InvalidDerivationError(d.rule, f"conclusion {d.judgment()} does not fit the rule")
