"""Per-source scrape status: an explicit state machine plus per-source locks.

    idle ──start──▶ scraping ──succeed──▶ active
                       └─────fail──────▶ error

active and error both return to scraping on the next start.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Union

from .models import ScrapeState, SourceStatus, utc_now

logger = logging.getLogger(__name__)


class StatusTransitionError(RuntimeError):
    """An event arrived in a state that does not accept it."""


@dataclass(frozen=True)
class ScrapeStarted:
    at: datetime


@dataclass(frozen=True)
class ScrapeSucceeded:
    posting_count: int


@dataclass(frozen=True)
class ScrapeFailed:
    error: str


ScrapeEvent = Union[ScrapeStarted, ScrapeSucceeded, ScrapeFailed]

_STARTABLE = {ScrapeState.idle, ScrapeState.active, ScrapeState.error}


def apply_transition(status: SourceStatus, event: ScrapeEvent) -> SourceStatus:
    """Return the status after `event`. Never mutates `status`."""
    if isinstance(event, ScrapeStarted):
        if status.state not in _STARTABLE:
            raise StatusTransitionError(f"cannot start a scrape while {status.state.value}")
        return status.model_copy(update={"state": ScrapeState.scraping, "last_scrape_at": event.at})

    if status.state is not ScrapeState.scraping:
        raise StatusTransitionError(
            f"{type(event).__name__} is only valid while scraping, not {status.state.value}"
        )
    if isinstance(event, ScrapeSucceeded):
        if event.posting_count < 0:
            raise StatusTransitionError("posting count cannot be negative")
        return status.model_copy(update={"state": ScrapeState.active, "posting_count": event.posting_count})
    if isinstance(event, ScrapeFailed):
        return status.model_copy(update={"state": ScrapeState.error})

    raise StatusTransitionError(f"unknown event {event!r}")


class SourceStatusTracker:
    """One SourceStatus and one lock per known source, for the life of the process."""

    def __init__(self, source_ids: Iterable[str], initial: Mapping[str, SourceStatus] | None = None):
        initial = initial or {}
        self._statuses: dict[str, SourceStatus] = {}
        self._locks: dict[str, threading.Lock] = {}
        for source_id in source_ids:
            status = initial.get(source_id) or SourceStatus()
            if status.state is ScrapeState.scraping:
                # A cycle was cut short by a restart
                logger.warning("Source %s was left mid-scrape, marking as error", source_id)
                status = status.model_copy(update={"state": ScrapeState.error})
            self._statuses[source_id] = status
            self._locks[source_id] = threading.Lock()
        self._guard = threading.Lock()

    def __contains__(self, source_id: str) -> bool:
        return source_id in self._statuses

    def get(self, source_id: str) -> SourceStatus:
        return self._statuses[source_id]

    def snapshot(self) -> dict[str, SourceStatus]:
        with self._guard:
            return dict(self._statuses)

    @contextmanager
    def source_lock(self, source_id: str) -> Iterator[None]:
        """Serialize scrape cycles for one source."""
        with self._locks[source_id]:
            yield

    def apply(self, source_id: str, event: ScrapeEvent) -> SourceStatus:
        with self._guard:
            status = apply_transition(self._statuses[source_id], event)
            self._statuses[source_id] = status
        logger.debug("Source %s → %s", source_id, status.state.value)
        return status

    def start(self, source_id: str, at: datetime | None = None) -> SourceStatus:
        return self.apply(source_id, ScrapeStarted(at or utc_now()))

    def succeed(self, source_id: str, posting_count: int) -> SourceStatus:
        return self.apply(source_id, ScrapeSucceeded(posting_count))

    def fail(self, source_id: str, error: str) -> SourceStatus:
        return self.apply(source_id, ScrapeFailed(error))
