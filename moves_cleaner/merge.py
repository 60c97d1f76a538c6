from __future__ import annotations

from typing import Callable, List, Sequence, TypeVar

T = TypeVar("T")


def merge_adjacent(
    items: Sequence[T],
    mergeable: Callable[[T, T], bool],
    merge: Callable[[T, T], T],
) -> List[T]:
    """Collapse runs of adjacent mergeable items into one item each.

    A run starts at its anchor and grows while ``mergeable(anchor, item)``
    holds. Membership is always tested against the anchor, never against the
    partially merged value. The run is then folded left to right through
    ``merge``.
    """

    merged: List[T] = []
    start = 0
    count = len(items)
    while start < count:
        anchor = items[start]
        end = start + 1
        while end < count and mergeable(anchor, items[end]):
            end += 1

        accumulated = anchor
        for index in range(start + 1, end):
            accumulated = merge(accumulated, items[index])
        merged.append(accumulated)
        start = end
    return merged
