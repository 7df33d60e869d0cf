"""Connection Graph — pure helpers over the directed rows that store the symmetric relation.

Invariants:
    - Each confirmed connection is stored as two directed edges (a→b and b→a)
    - A self edge (a→a) is never valid
    - pair_key is order-independent: pair_key(a, b) == pair_key(b, a)

Design Decisions:
    - Detection is pure and the repair is done by the shell: the reconciliation pass
      can be unit-tested with plain tuples
"""

from collections.abc import Iterable
from uuid import UUID

Edge = tuple[UUID, UUID]


def pair_key(a: UUID, b: UUID) -> str:
    """Canonical key for an unordered pair of accounts."""
    low, high = sorted((str(a), str(b)))
    return f"{low}:{high}"


def find_self_edges(edges: Iterable[Edge]) -> list[Edge]:
    return [(a, b) for a, b in edges if a == b]


def find_missing_mirrors(edges: Iterable[Edge]) -> list[Edge]:
    """Return the reverse edges that must be inserted to make the relation symmetric.

    Self edges are ignored (they are deleted, not mirrored). Output is sorted so
    repeated runs over the same data do the same work in the same order.
    """
    present = {(a, b) for a, b in edges if a != b}
    missing = {(b, a) for a, b in present if (b, a) not in present}
    return sorted(missing, key=lambda e: (str(e[0]), str(e[1])))
