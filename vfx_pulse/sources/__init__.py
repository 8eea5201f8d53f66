"""Source adapters and the static registry the pipeline dispatches through."""

from __future__ import annotations

from collections.abc import Mapping

from ..config import AppConfig, SourceConfig
from .backstage import BackstageSource
from .base import RetrievalError, SourceAdapter, normalize_raw_posting, normalize_records
from .feed import FeedSource

ADAPTER_KINDS: dict[str, type[FeedSource]] = {
    "backstage": BackstageSource,
    "feed": FeedSource,
}


class UnknownSourceError(KeyError):
    """No adapter registered under a source id."""

    def __str__(self) -> str:
        return f"Unknown source: {self.args[0]!r}"


class SourceRegistry(Mapping[str, SourceAdapter]):
    """Immutable source_id → adapter map, built once at startup."""

    def __init__(self, adapters: Mapping[str, SourceAdapter]):
        self._adapters = dict(adapters)

    def __getitem__(self, source_id: str) -> SourceAdapter:
        try:
            return self._adapters[source_id]
        except KeyError:
            raise UnknownSourceError(source_id) from None

    def __iter__(self):
        return iter(self._adapters)

    def __len__(self) -> int:
        return len(self._adapters)


def build_adapter(source_id: str, cfg: SourceConfig) -> SourceAdapter:
    cls = ADAPTER_KINDS.get(cfg.kind)
    if cls is None:
        raise ValueError(f"Unknown adapter kind {cfg.kind!r} for source {source_id!r}")
    return cls(source_id, url=cfg.url, timeout=cfg.timeout)


def build_registry(config: AppConfig) -> SourceRegistry:
    return SourceRegistry(
        {
            source_id: build_adapter(source_id, cfg)
            for source_id, cfg in config.sources.items()
            if cfg.enabled
        }
    )


__all__ = [
    "BackstageSource",
    "FeedSource",
    "RetrievalError",
    "SourceAdapter",
    "SourceRegistry",
    "UnknownSourceError",
    "build_registry",
    "normalize_raw_posting",
    "normalize_records",
]
