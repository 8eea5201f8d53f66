"""Data models for the production catalog."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BudgetTier(str, Enum):
    tier1 = "tier1"
    tier2 = "tier2"
    tier3 = "tier3"
    tier4 = "tier4"


class VfxNeedsLevel(str, Enum):
    extreme = "Extreme"
    high = "High"
    medium = "Medium"
    low = "Low"


class ScrapeState(str, Enum):
    idle = "idle"
    scraping = "scraping"
    active = "active"
    error = "error"


class _CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire and on disk."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class Contact(_CamelModel):
    name: str = ""
    role: str = ""
    email: str = ""


class RawPosting(_CamelModel):
    """A listing as handed back by a source adapter (pre-classification)."""

    title: str = Field(min_length=1)
    description: Optional[str] = None
    budget: Optional[str] = None
    location: str = ""
    stage: str = ""
    company: str = ""
    timeline: str = "Contact for details"
    posted_at: Optional[datetime] = None
    contacts: list[Contact] = Field(default_factory=list)


class Posting(RawPosting):
    """A classified, catalog-resident production listing."""

    id: str
    source: str
    tier: BudgetTier
    budget: str = "TBD"
    vfx_needs: VfxNeedsLevel
    vfx_needs_rationale: str
    shot_count: str = "TBD"
    vfx_budget: str = "TBD"
    cross_source_data: dict[str, str] = Field(default_factory=dict)
    scraped_at: datetime = Field(default_factory=utc_now)


class SourceStatus(_CamelModel):
    """Scrape health of one source."""

    last_scrape_at: Optional[datetime] = None
    posting_count: int = Field(default=0, ge=0)
    state: ScrapeState = ScrapeState.idle


class ScrapeOutcome(_CamelModel):
    """Result of one successful scrape cycle."""

    success: bool = True
    projects_added: int = 0
    total_projects: int = 0
    source: str
