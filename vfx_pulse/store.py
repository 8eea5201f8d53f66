"""JSON-file persistence for the catalog and source statuses."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterable, Mapping
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from .models import Posting, SourceStatus

logger = logging.getLogger(__name__)

PROJECTS_FILE = "projects.json"
SOURCES_FILE = "sources.json"

_POSTINGS = TypeAdapter(list[Posting])
_STATUSES = TypeAdapter(dict[str, SourceStatus])


class PersistenceError(Exception):
    """A store write failed. In-memory state stays authoritative."""


class JsonStore:
    """Whole-file JSON blobs: projects.json (array) and sources.json (object by source id)."""

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.projects_path = self.data_dir / PROJECTS_FILE
        self.sources_path = self.data_dir / SOURCES_FILE

    # --- Load ---

    def _read(self, path: Path, adapter: TypeAdapter, default):
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.warning("Could not read %s, using defaults: %s", path, exc)
            return default
        try:
            return adapter.validate_python(json.loads(raw))
        except (ValueError, ValidationError) as exc:
            logger.warning("Corrupt %s, using defaults: %s", path, exc)
            return default

    def load_catalog(self) -> list[Posting]:
        postings = self._read(self.projects_path, _POSTINGS, [])
        if postings is None:
            postings = []
            self._initialise(self.projects_path, [])
        logger.info("Loaded %d postings from %s", len(postings), self.projects_path)
        return postings

    def load_statuses(self, defaults: Mapping[str, SourceStatus]) -> dict[str, SourceStatus]:
        statuses = self._read(self.sources_path, _STATUSES, dict(defaults))
        if statuses is None:
            statuses = dict(defaults)
            self._initialise(self.sources_path, {k: v.to_json_dict() for k, v in statuses.items()})
        return statuses

    def _initialise(self, path: Path, payload) -> None:
        try:
            self._write(path, payload)
        except PersistenceError as exc:
            logger.warning("Using in-memory storage (file system not available): %s", exc)

    # --- Save ---

    def _write(self, path: Path, payload) -> None:
        tmp = path.with_suffix(path.suffix + ".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            os.replace(tmp, path)
        except OSError as exc:
            raise PersistenceError(f"could not write {path}: {exc}") from exc

    def save_catalog(self, postings: Iterable[Posting]) -> None:
        self._write(self.projects_path, [p.to_json_dict() for p in postings])

    def save_statuses(self, statuses: Mapping[str, SourceStatus]) -> None:
        self._write(self.sources_path, {k: v.to_json_dict() for k, v in statuses.items()})
