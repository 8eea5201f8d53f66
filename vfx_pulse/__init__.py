"""vfx_pulse: production postings aggregated and classified by VFX workload and budget."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

__version__ = "1.0.0"

from .config import AppConfig, load_config  # noqa: E402
from .models import ScrapeOutcome  # noqa: E402
from .pipeline import ScrapePipeline, build_pipeline  # noqa: E402


def scrape_source(
    source_id: str,
    config_path: Optional[Path] = None,
    config: Optional[AppConfig] = None,
) -> ScrapeOutcome:
    """Run one scrape cycle for a source against the persisted catalog. This is the public API.

    Args:
        source_id: Registered source id, e.g. "backstage".
        config_path: Path to a YAML config override.
        config: Pre-built config (takes precedence over config_path).
    """
    if config is None:
        config = load_config(config_path)
    return build_pipeline(config).scrape(source_id)


__all__ = ["AppConfig", "ScrapeOutcome", "ScrapePipeline", "build_pipeline", "load_config", "scrape_source"]
