"""Title-keyed, append-only merge of freshly scraped postings into the catalog."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from datetime import datetime
from typing import NamedTuple, Optional

from .classifier import ClassificationError, classify, extract_shot_count, fallback_classification
from .models import Posting, RawPosting, utc_now

logger = logging.getLogger(__name__)


class MergeResult(NamedTuple):
    catalog: list[Posting]
    added_count: int


def new_posting_id() -> str:
    return uuid.uuid4().hex


def build_posting(raw: RawPosting, source_id: str, scraped_at: datetime) -> Posting:
    """Classify a raw posting into a catalog entry with a fresh id."""
    try:
        result = classify(raw.description, raw.budget)
    except ClassificationError as exc:
        logger.warning("Could not classify '%s' from %s: %s", raw.title, source_id, exc)
        result = fallback_classification(raw.budget)

    return Posting(
        **raw.model_dump(exclude={"budget"}),
        id=new_posting_id(),
        source=source_id,
        tier=result.tier,
        budget=result.budget,
        vfx_needs=result.vfx_needs,
        vfx_needs_rationale=result.rationale,
        shot_count=extract_shot_count(raw.description),
        cross_source_data={source_id: raw.description} if raw.description else {},
        scraped_at=scraped_at,
    )


def merge(
    existing: Sequence[Posting],
    incoming: Sequence[RawPosting],
    source_id: str,
    now: Optional[datetime] = None,
) -> MergeResult:
    """Append incoming postings whose title is not yet in the catalog.

    Existing entries are returned untouched and in order; the first posting
    seen for a title wins permanently.
    """
    scraped_at = now or utc_now()
    catalog = list(existing)
    titles = {p.title for p in catalog}
    added = 0

    for raw in incoming:
        posting = build_posting(raw, source_id, scraped_at)
        if posting.title in titles:
            logger.debug("Duplicate title from %s, discarded: %s", source_id, posting.title)
            continue
        titles.add(posting.title)
        catalog.append(posting)
        added += 1

    return MergeResult(catalog, added)
