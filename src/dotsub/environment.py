"""Typing environments indexed by absolute position.

An environment behaves like a stack whose entries keep a stable identity:
the entry pushed onto an environment of length ``n`` is at position ``n``
for as long as it exists. ``update`` replaces an entry in place, so it
keeps both length and order, which makes extending and updating commute.
"""

from __future__ import annotations

from dataclasses import dataclass

from dotsub.errors import UnboundVariableError
from dotsub.syntax import Type, closed_at, format_type, free_vars, shift_vars


@dataclass(frozen=True)
class Env:
    """Immutable sequence of ``(position, type)`` entries, oldest first."""

    entries: tuple[tuple[int, Type], ...] = ()

    @staticmethod
    def of(*types: Type) -> Env:
        """Build an environment by extending the empty one with each type."""
        env = Env()
        for t in types:
            env = env.extend(t)
        return env

    def __len__(self) -> int:
        return len(self.entries)

    def __str__(self) -> str:
        if not self.entries:
            return "Env()"
        lines = "".join(f"  x{p}: {format_type(t)}\n" for p, t in self.entries)
        return f"Env(\n{lines})"

    @property
    def fresh(self) -> int:
        """The position the next ``extend`` will bind."""
        return len(self.entries)

    def lookup(self, position: int) -> Type | None:
        """Find the type bound at ``position``, or None if it is unbound."""
        for p, t in reversed(self.entries):
            if p == position:
                return t
        return None

    def contains(self, position: int) -> bool:
        """Check whether ``position`` is bound."""
        return self.lookup(position) is not None

    def index(self, position: int) -> Type:
        """Find the type bound at ``position``.

        Raises:
            UnboundVariableError: If the position is not bound.

        """
        t = self.lookup(position)
        if t is None:
            raise UnboundVariableError(position, len(self))
        return t

    def update(self, position: int, t: Type) -> Env:
        """Replace the type at ``position``.

        Length and order are preserved. An absent position leaves the
        environment unchanged, so callers check ``contains`` first.
        """
        return Env(tuple((p, t if p == position else old) for p, old in self.entries))

    def extend(self, t: Type) -> Env:
        """Bind ``t`` at the fresh position ``len(self)``."""
        return Env((*self.entries, (len(self.entries), t)))

    def insert_shifted(self, cutoff: int, t: Type) -> Env:
        """Insert ``t`` at position ``cutoff``, renumbering entries above it.

        Every stored type is shifted as well, so selections keep pointing at
        the same entries. Inserting at ``len(self)`` is plain ``extend``.
        """
        shifted = tuple(
            (p if p < cutoff else p + 1, shift_vars(ty, cutoff))
            for p, ty in self.entries
        )
        below = tuple(e for e in shifted if e[0] < cutoff)
        above = tuple(e for e in shifted if e[0] > cutoff)
        return Env((*below, (cutoff, t), *above))

    def well_scoped(self) -> bool:
        """Check that every stored type is closed and its selections resolve.

        An entry may select its own position, as the self-binding pushed by
        the recursive-type rule does.
        """
        return all(
            closed_at(0, t) and all(self.contains(v) for v in free_vars(t))
            for _, t in self.entries
        )
