"""Backstage casting/production board."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from ..models import Contact, RawPosting
from .feed import FeedSource

logger = logging.getLogger(__name__)

# Backstage listings sit behind a login; until a feed URL is configured the
# adapter serves these representative postings.
SAMPLE_LISTINGS: list[dict] = [
    {
        "title": "Sci-Fi Feature Film - VFX Heavy",
        "description": (
            "Looking for VFX house for extensive VFX work including creature design, "
            "environments, and 500+ shots"
        ),
        "budget": "$15M",
        "location": "Los Angeles, CA",
        "stage": "Pre-Production",
        "company": "Independent Studio",
    },
    {
        "title": "Horror Short Film",
        "description": "Need VFX for creature effects and environmental enhancements, approximately 50 shots",
        "budget": "$250K",
        "location": "New York, NY",
        "stage": "Development",
        "company": "Indie Productions",
    },
    {
        "title": "Commercial - Tech Brand",
        "description": "VFX needed for product visualization and motion graphics",
        "budget": "$80K",
        "location": "Remote",
        "stage": "Production",
        "company": "Ad Agency",
    },
]

_PLATFORM_CONTACT = Contact(name="Contact via Backstage", role="Producer", email="Apply through platform")


class BackstageSource(FeedSource):
    def __init__(self, source_id: str = "backstage", url: str | None = None, **kwargs):
        super().__init__(source_id, url=url, **kwargs)

    def retrieve(self) -> list[RawPosting]:
        if self.url:
            postings = self.fetch_feed(self.url)
        else:
            logger.info("No Backstage feed URL configured, serving sample listings")
            posted_at = datetime.now(timezone.utc)
            postings = [
                RawPosting(**item, posted_at=posted_at) for item in SAMPLE_LISTINGS
            ]
        return [
            p if p.contacts else p.model_copy(update={"contacts": [_PLATFORM_CONTACT]})
            for p in postings
        ]
