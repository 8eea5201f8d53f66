"""In-memory catalog owned by the service, with a single-writer lock."""

from __future__ import annotations

import threading
from collections import Counter
from collections.abc import Iterable, Iterator
from contextlib import contextmanager

from .models import BudgetTier, Posting, VfxNeedsLevel


class Catalog:
    """Holds the current postings. Reads return copies; writes go through write_lock()."""

    def __init__(self, postings: Iterable[Posting] = ()):
        self._postings: list[Posting] = list(postings)
        self._lock = threading.RLock()

    @contextmanager
    def write_lock(self) -> Iterator["Catalog"]:
        """Hold for the whole snapshot → merge → replace sequence."""
        with self._lock:
            yield self

    def snapshot(self) -> list[Posting]:
        with self._lock:
            return list(self._postings)

    def replace(self, postings: Iterable[Posting]) -> None:
        with self._lock:
            self._postings = list(postings)

    def __len__(self) -> int:
        return len(self._postings)

    def by_tier(self, tier: str) -> list[Posting]:
        return [p for p in self.snapshot() if p.tier.value == tier]

    def tier_counts(self) -> dict[str, int]:
        counts = Counter(p.tier for p in self.snapshot())
        return {tier.value: counts.get(tier, 0) for tier in BudgetTier}

    def vfx_needs_counts(self) -> dict[str, int]:
        counts = Counter(p.vfx_needs for p in self.snapshot())
        return {level.value.lower(): counts.get(level, 0) for level in VfxNeedsLevel}
