"""One scrape cycle: status → retrieve → classify + merge → status → persist."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Optional

from .catalog import Catalog
from .config import AppConfig, load_config
from .merge import merge
from .models import RawPosting, ScrapeOutcome, SourceStatus
from .sources import RetrievalError, SourceAdapter, SourceRegistry, build_registry
from .status import SourceStatusTracker
from .store import JsonStore, PersistenceError

logger = logging.getLogger(__name__)


class ScrapePipeline:
    """Owns the catalog, the status tracker and the adapter registry for one process."""

    def __init__(
        self,
        registry: SourceRegistry,
        catalog: Catalog,
        tracker: SourceStatusTracker,
        store: Optional[JsonStore] = None,
        retrieval_timeout: float = 60,
    ):
        self.registry = registry
        self.catalog = catalog
        self.tracker = tracker
        self.store = store
        self.retrieval_timeout = retrieval_timeout

    # --- Persistence (best-effort) ---

    def _persist_catalog(self) -> None:
        if self.store is None:
            return
        try:
            self.store.save_catalog(self.catalog.snapshot())
        except PersistenceError as exc:
            logger.warning("Could not write catalog, using memory only: %s", exc)

    def _persist_statuses(self) -> None:
        if self.store is None:
            return
        try:
            self.store.save_statuses(self.tracker.snapshot())
        except PersistenceError as exc:
            logger.warning("Could not write source status, using memory only: %s", exc)

    # --- Retrieval ---

    def _retrieve(self, adapter: SourceAdapter) -> list[RawPosting]:
        pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"retrieve-{adapter.source_id}")
        try:
            future = pool.submit(adapter.retrieve)
            try:
                return list(future.result(timeout=self.retrieval_timeout))
            except FutureTimeout as exc:
                future.cancel()
                raise RetrievalError(
                    f"{adapter.source_id}: retrieval timed out after {self.retrieval_timeout:g}s"
                ) from exc
        finally:
            pool.shutdown(wait=False)

    # --- Cycle ---

    def scrape(self, source_id: str) -> ScrapeOutcome:
        """Run one scrape cycle for `source_id`.

        Raises UnknownSourceError for unregistered sources; any adapter or
        merge failure marks the source as error and is re-raised.
        """
        adapter = self.registry[source_id]

        with self.tracker.source_lock(source_id):
            self.tracker.start(source_id)
            self._persist_statuses()

            try:
                raw_postings = self._retrieve(adapter)
                logger.info("Retrieved %d postings from %s", len(raw_postings), source_id)

                with self.catalog.write_lock():
                    result = merge(self.catalog.snapshot(), raw_postings, source_id)
                    self.catalog.replace(result.catalog)
                    total = len(result.catalog)
            except Exception as exc:
                logger.error("Error scraping %s: %s", source_id, exc)
                self.tracker.fail(source_id, str(exc))
                self._persist_statuses()
                raise

            self._persist_catalog()
            self.tracker.succeed(source_id, len(raw_postings))
            self._persist_statuses()

        logger.info("%s: %d added, %d total", source_id, result.added_count, total)
        return ScrapeOutcome(projects_added=result.added_count, total_projects=total, source=source_id)

    def statuses(self) -> dict[str, SourceStatus]:
        return self.tracker.snapshot()


def build_pipeline(config: Optional[AppConfig] = None) -> ScrapePipeline:
    """Wire registry, catalog, tracker and store from config, loading persisted state."""
    if config is None:
        config = load_config()

    registry = build_registry(config)
    store = JsonStore(config.resolved_data_dir)
    catalog = Catalog(store.load_catalog())
    statuses = store.load_statuses({source_id: SourceStatus() for source_id in registry})
    tracker = SourceStatusTracker(registry, statuses)

    return ScrapePipeline(
        registry,
        catalog,
        tracker,
        store=store,
        retrieval_timeout=config.retrieval_timeout,
    )
