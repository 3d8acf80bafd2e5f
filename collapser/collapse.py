"""Collapse records that describe the same thing into single survivors.

Two entry points share the same output rules: one survivor per group, the
survivor is the first record seen for that group, and groups keep the order
in which they first appeared. The sequence is rewritten in place and is left
untouched when nothing collapsed.

:func:`collapse` groups by a derived key in a single pass.
:func:`collapse_matching` groups by a pairwise predicate for records that
cannot produce a key.
"""

from __future__ import annotations

import logging
from collections.abc import Hashable, MutableSequence
from typing import Protocol, TypeVar

log = logging.getLogger(__name__)


class Collapsible(Protocol):
    """A record that can be grouped by key and absorb its duplicates."""

    def key(self) -> Hashable:
        """Grouping key. Must not change before the record is merged."""
        ...

    def merge_with(self, other) -> bool:
        """Absorb *other* into this record. Returns whether it was accepted."""
        ...


class MatchCollapsible(Protocol):
    """A record that decides pairwise whether another one is a duplicate."""

    def should_collapse_with(self, other) -> bool:
        ...

    def collapse_with(self, other) -> bool:
        ...


T = TypeVar("T", bound=Collapsible)
M = TypeVar("M", bound=MatchCollapsible)


def collapse(items: MutableSequence[T]) -> None:
    """Fold records sharing a key into the first record with that key.

    Later records are absorbed through ``merge_with`` and dropped from
    *items* whatever ``merge_with`` returns. Exceptions from ``key`` or
    ``merge_with`` propagate; in that case *items* keeps its original
    membership but survivors keep the merges already applied.
    """
    survivors: dict[Hashable, T] = {}

    for item in items:
        k = item.key()
        if k not in survivors:
            # dicts keep insertion order, so this is also the first-seen order
            survivors[k] = item
        else:
            survivors[k].merge_with(item)

    if len(survivors) == len(items):
        return

    log.debug("Collapsed %d record(s) into %d", len(items), len(survivors))
    items[:] = list(survivors.values())


def collapse_matching(items: MutableSequence[M]) -> None:
    """Fold each record into the first earlier survivor that accepts it.

    Survivors are asked in first-seen order via ``should_collapse_with``.
    A record no survivor accepts becomes a survivor itself. Runs in
    O(n * groups).
    """
    survivors: list[M] = []

    for item in items:
        for survivor in survivors:
            if survivor.should_collapse_with(item):
                survivor.collapse_with(item)
                break
        else:
            survivors.append(item)

    if len(survivors) == len(items):
        return

    log.debug("Collapsed %d record(s) into %d by matching", len(items), len(survivors))
    items[:] = survivors
