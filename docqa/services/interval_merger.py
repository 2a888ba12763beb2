"""Page-interval merging for citation display."""

from __future__ import annotations

from collections.abc import Iterable

from docqa.models.citation import PageInterval
from docqa.utils.errors import InvalidInputError


class IntervalMerger:
    """Collapses page intervals into a minimal sorted covering set.

    Overlapping intervals merge, and so do adjacent ones: ``[1, 3]`` and
    ``[4, 6]`` become ``[1, 6]``.  The output is sorted, pairwise disjoint,
    and any two consecutive intervals are at least two pages apart.
    Merging is idempotent.
    """

    def merge(self, intervals: Iterable[PageInterval] | None) -> list[PageInterval]:
        """Return the merged form of *intervals*.

        Raises
        ------
        InvalidInputError
            If any interval has ``from_page > to_page``.
        """
        if not intervals:
            return []

        items = list(intervals)
        for interval in items:
            if not interval.is_valid():
                raise InvalidInputError(
                    f"Invalid page interval: from_page {interval.from_page} "
                    f"> to_page {interval.to_page}"
                )

        items.sort(key=lambda i: (i.from_page, i.to_page))

        merged: list[PageInterval] = []
        current = items[0]
        for nxt in items[1:]:
            if current.to_page + 1 >= nxt.from_page:
                current = PageInterval(
                    from_page=current.from_page,
                    to_page=max(current.to_page, nxt.to_page),
                )
            else:
                merged.append(current)
                current = nxt
        merged.append(current)
        return merged
