"""VFX Market Pulse FastAPI backend."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .pipeline import ScrapePipeline
from .sources import UnknownSourceError

logger = logging.getLogger(__name__)


def _statuses_json(pipeline: ScrapePipeline) -> dict:
    return {source_id: s.to_json_dict() for source_id, s in pipeline.statuses().items()}


def create_app(pipeline: ScrapePipeline, environment: str = "development") -> FastAPI:
    app = FastAPI(title="VFX Market Pulse API", version=__version__)
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])
    app.state.pipeline = pipeline
    started = time.monotonic()

    # ---------------------------------------------------------------------------
    # Index + health
    # ---------------------------------------------------------------------------
    @app.get("/")
    def index():
        return {
            "name": "VFX Market Pulse API",
            "version": __version__,
            "status": "running",
            "endpoints": {
                "health": "/health",
                "projects": "/api/projects",
                "projectsByTier": "/api/projects/tier/:tier",
                "sources": "/api/sources",
                "scrape": "POST /api/scrape/:source",
                "stats": "/api/stats",
            },
        }

    @app.get("/health")
    def health():
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": environment,
            "uptime": round(time.monotonic() - started, 3),
        }

    # ---------------------------------------------------------------------------
    # API: Projects
    # ---------------------------------------------------------------------------
    @app.get("/api/projects")
    def list_projects():
        return [p.to_json_dict() for p in pipeline.catalog.snapshot()]

    @app.get("/api/projects/tier/{tier}")
    def projects_by_tier(tier: str):
        return [p.to_json_dict() for p in pipeline.catalog.by_tier(tier)]

    # ---------------------------------------------------------------------------
    # API: Sources + scraping
    # ---------------------------------------------------------------------------
    @app.get("/api/sources")
    def list_sources():
        return _statuses_json(pipeline)

    @app.post("/api/scrape/{source}")
    def scrape(source: str):
        try:
            outcome = pipeline.scrape(source)
        except UnknownSourceError as exc:
            return JSONResponse({"error": str(exc)}, status_code=404)
        except Exception as exc:
            logger.error("Scrape of %s failed: %s", source, exc)
            return JSONResponse({"error": str(exc)}, status_code=500)
        return outcome.to_json_dict()

    # ---------------------------------------------------------------------------
    # API: Stats
    # ---------------------------------------------------------------------------
    @app.get("/api/stats")
    def stats():
        catalog = pipeline.catalog
        return {
            "totalProjects": len(catalog),
            "byTier": catalog.tier_counts(),
            "byVFXNeeds": catalog.vfx_needs_counts(),
            "sources": _statuses_json(pipeline),
            "lastUpdated": datetime.now(timezone.utc).isoformat(),
        }

    return app
