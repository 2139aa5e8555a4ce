"""Property-based tests for the subtyping engine.

Tests the laws the engine must satisfy:
- Reflexivity: every type is a strict subtype of itself
- Expansion uniqueness: inverting a bound derivation recovers the expansion
- Transitivity: elimination composes any two chaining derivations
- Narrowing: derivations survive narrowing an entry to a subtype
- Opening: opening a closed type changes nothing
"""

from hypothesis import HealthCheck, assume, given, settings
from hypothesis import strategies as st

from dotsub.environment import Env
from dotsub.subtyping import (
    Mode,
    check_subtype,
    derive_subtype,
    eliminate,
    invert_member,
    narrow,
    verify,
)
from dotsub.subtyping.derivations import BottomRule
from dotsub.subtyping.expansion import try_expand
from dotsub.syntax import (
    And,
    Bind,
    Boolean,
    Bottom,
    BoundSelection,
    Function,
    Member,
    NoMembers,
    Selection,
    Top,
    Type,
    closed_at,
    open_type,
)

BASE_TYPES = st.sampled_from([Top(), Bottom(), Boolean(), NoMembers()])


def types(positions: int) -> st.SearchStrategy[Type]:
    """Closed types selecting only positions below ``positions``."""
    leaves = BASE_TYPES
    if positions:
        leaves = st.one_of(BASE_TYPES, st.integers(0, positions - 1).map(Selection))
    return st.recursive(
        leaves,
        lambda inner: st.one_of(
            st.builds(And, inner, inner),
            st.builds(Function, st.integers(0, 1), inner, inner),
            st.builds(Member, inner, inner),
            st.builds(Bind, inner),
        ),
        max_leaves=5,
    )


def open_types() -> st.SearchStrategy[Type]:
    """Types that may contain bound selections, closed or not."""
    leaves = st.one_of(BASE_TYPES, st.integers(0, 2).map(BoundSelection))
    return st.recursive(
        leaves,
        lambda inner: st.one_of(
            st.builds(And, inner, inner),
            st.builds(Member, inner, inner),
            st.builds(Bind, inner),
        ),
        max_leaves=6,
    )


@st.composite
def environments(draw: st.DrawFn, max_size: int = 3) -> Env:
    """Realizable environments: every entry is ``{type: Bot..U}``.

    Each entry selects only earlier positions, so bound chains end.
    """
    env = Env()
    for position in range(draw(st.integers(0, max_size))):
        env = env.extend(Member(Bottom(), draw(types(position))))
    return env


@st.composite
def related_pairs(draw: st.DrawFn, env: Env) -> tuple[Type, Type]:
    """Two types that are often, but not always, subtypes."""
    left = draw(types(len(env)))
    right = draw(st.one_of(st.just(left), st.just(Top()), types(len(env))))
    return left, right


PROPERTY_SETTINGS = settings(
    max_examples=100,
    deadline=None,
    suppress_health_check=[HealthCheck.filter_too_much, HealthCheck.too_slow],
)


class TestReflexivity:
    """Every type is a subtype of itself."""

    @given(data=st.data())
    @PROPERTY_SETTINGS
    def test_strict_reflexivity(self, data: st.DataObject) -> None:
        env = data.draw(environments())
        t = data.draw(types(len(env)))
        d = derive_subtype(env, t, t)
        assert d.strict
        verify(d)


class TestExpansionUniqueness:
    """Inversion of a bound derivation recovers the expanded member."""

    @given(env=environments())
    @PROPERTY_SETTINGS
    def test_inversion_agrees_with_expansion(self, env: Env) -> None:
        for position in range(len(env)):
            bounds = try_expand(env, Selection(position))
            if bounds is None:
                continue
            assert try_expand(env, Selection(position)) == bounds
            d = derive_subtype(env, Selection(position), bounds)
            inverted = invert_member(d)
            assert inverted.left == bounds
            assert inverted.size <= d.size


class TestTransitivity:
    """Elimination composes derivations that chain."""

    @given(data=st.data())
    @PROPERTY_SETTINGS
    def test_elimination(self, data: st.DataObject) -> None:
        env = data.draw(environments())
        t2 = data.draw(types(len(env)))
        t1 = data.draw(st.one_of(st.just(t2), st.just(Bottom()), types(len(env))))
        t3 = data.draw(st.one_of(st.just(t2), st.just(Top()), types(len(env))))
        first = check_subtype(env, t1, t2)
        second = check_subtype(env, t2, t3, Mode.RELAXED)
        assume(first.success and second.success)
        assert first.derivation is not None
        assert second.derivation is not None

        result = eliminate(first.derivation, second.derivation)

        verify(result)
        assert result.strict
        assert (result.env, result.left, result.right) == (env, t1, t3)


class TestNarrowing:
    """Derivations survive narrowing an entry to a subtype."""

    @given(data=st.data())
    @PROPERTY_SETTINGS
    def test_narrow_to_bottom(self, data: st.DataObject) -> None:
        env = data.draw(environments(max_size=3).filter(len))
        left, right = data.draw(related_pairs(env))
        result = check_subtype(env, left, right)
        assume(result.success)
        assert result.derivation is not None
        position = data.draw(st.integers(0, len(env) - 1))
        narrowed_env = env.update(position, Bottom())
        proof = BottomRule(narrowed_env, Bottom(), env.index(position))

        narrowed = narrow(result.derivation, position, Bottom(), proof)

        verify(narrowed)
        assert narrowed.env == narrowed_env
        assert (narrowed.left, narrowed.right) == (left, right)


class TestOpening:
    """Binder operations on closed and open types."""

    @given(t=open_types(), var=st.integers(0, 5))
    @PROPERTY_SETTINGS
    def test_closed_types_are_fixed_points(self, t: Type, var: int) -> None:
        if closed_at(0, t):
            assert open_type(var, t) == t

    @given(t=open_types(), var=st.integers(0, 5))
    @PROPERTY_SETTINGS
    def test_opening_closes_one_binder(self, t: Type, var: int) -> None:
        if closed_at(1, t):
            assert closed_at(0, open_type(var, t))
