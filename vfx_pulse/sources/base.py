from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any, Optional

from pydantic import ValidationError

from ..models import Contact, RawPosting

logger = logging.getLogger(__name__)

# Source field name → RawPosting field, first present key wins
_FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "title": ("title", "name", "project", "projectTitle"),
    "description": ("description", "summary", "details", "body"),
    "budget": ("budget", "budgetRange", "budget_range"),
    "location": ("location", "city", "region"),
    "stage": ("stage", "productionStage", "production_stage", "status"),
    "company": ("company", "studio", "productionCompany", "production_company"),
    "timeline": ("timeline", "schedule", "shootDates", "shoot_dates"),
    "posted_at": ("postedAt", "posted_at", "postedDate", "posted_date", "date"),
}


class RetrievalError(Exception):
    """A source could not produce data: unreachable, auth-required, or unparsable."""


class SourceAdapter(ABC):
    """
    One external listing source.

    Contract:
      - retrieve() returns every posting the source currently lists (may be empty).
      - Raise RetrievalError when the source cannot be read; an empty list
        means "reachable, nothing listed".
      - No classification, dedupe, or catalog access here.
    """

    source_id: str = ""

    @abstractmethod
    def retrieve(self) -> list[RawPosting]:
        raise NotImplementedError


def _pick(item: Mapping[str, Any], field: str) -> Any:
    for key in _FIELD_ALIASES[field]:
        value = item.get(key)
        if value not in (None, ""):
            return value
    return None


def _clean_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = " ".join(str(value).split())
    return text or None


def _parse_posted_at(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
    except ValueError:
        logger.debug("Unparseable posting date %r", value)
        return None


def _parse_contacts(value: Any) -> list[Contact]:
    if not isinstance(value, list):
        return []
    contacts = []
    for entry in value:
        if isinstance(entry, Mapping):
            contacts.append(
                Contact(
                    name=_clean_text(entry.get("name")) or "",
                    role=_clean_text(entry.get("role")) or "",
                    email=_clean_text(entry.get("email")) or "",
                )
            )
    return contacts


def normalize_raw_posting(item: Mapping[str, Any]) -> RawPosting | None:
    """Map one source record onto RawPosting. Returns None for records without a title."""
    title = _clean_text(_pick(item, "title"))
    if not title:
        logger.warning("Skipping record without a title: %r", dict(item))
        return None

    try:
        return RawPosting(
            title=title,
            description=_clean_text(_pick(item, "description")),
            budget=_clean_text(_pick(item, "budget")),
            location=_clean_text(_pick(item, "location")) or "",
            stage=_clean_text(_pick(item, "stage")) or "",
            company=_clean_text(_pick(item, "company")) or "",
            timeline=_clean_text(_pick(item, "timeline")) or "Contact for details",
            posted_at=_parse_posted_at(_pick(item, "posted_at")),
            contacts=_parse_contacts(item.get("contacts")),
        )
    except ValidationError as exc:
        logger.warning("Skipping malformed record '%s': %s", title, exc)
        return None


def normalize_records(items: Iterable[Any]) -> list[RawPosting]:
    postings: list[RawPosting] = []
    for item in items:
        if not isinstance(item, Mapping):
            logger.warning("Skipping non-object record: %r", item)
            continue
        posting = normalize_raw_posting(item)
        if posting is not None:
            postings.append(posting)
    return postings
