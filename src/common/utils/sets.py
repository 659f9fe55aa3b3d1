"""Order-independent collection comparisons."""

from typing import Hashable, Iterable


def sets_are_identical(left: Iterable[Hashable], right: Iterable[Hashable]) -> bool:
    """Return True when both iterables hold exactly the same members.

    Order and repetition are ignored: ``["a", "b", "a"]`` equals ``["b", "a"]``.
    """
    return set(left) == set(right)
