"""Posting classification: VFX needs → budget extraction → budget tier → shot count."""

from __future__ import annotations

import re
from typing import NamedTuple, Optional

from .models import BudgetTier, VfxNeedsLevel

# Priority order matters: first level with a matching keyword wins
VFX_KEYWORDS: list[tuple[VfxNeedsLevel, tuple[str, ...]]] = [
    (
        VfxNeedsLevel.extreme,
        ("extensive vfx", "heavy vfx", "full cgi", "green screen", "500+ shots", "creature work"),
    ),
    (
        VfxNeedsLevel.high,
        ("vfx supervisor", "vfx heavy", "visual effects", "cgi", "compositing", "200+ shots"),
    ),
    (
        VfxNeedsLevel.medium,
        ("vfx", "visual effects", "post production", "effects"),
    ),
]

UNKNOWN = "TBD"
INSUFFICIENT_DATA = "insufficient data"

# "$15M", "$250,000", "$80k"
_CURRENCY_PATTERN = re.compile(r"\$[\d,]+[KMk]?")
# "250k - 500k", "50-100"
_RANGE_PATTERN = re.compile(r"(\d+)k?\s*-\s*(\d+)k?", re.I)
_LEADING_NUMBER = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+))")
_SHOT_COUNT_PATTERN = re.compile(r"(\d[\d,]*)\s*(\+)?\s*shots?\b", re.I)

# Thresholds in thousands of currency units, evaluated high to low
_TIER_THRESHOLDS: list[tuple[float, BudgetTier]] = [
    (10_000, BudgetTier.tier1),  # $10M+
    (1_000, BudgetTier.tier2),  # $1M - $10M
    (100, BudgetTier.tier3),  # $100K - $1M
]


class ClassificationError(ValueError):
    """A posting lacks the text needed to classify it."""


class Classification(NamedTuple):
    vfx_needs: VfxNeedsLevel
    tier: BudgetTier
    budget: str
    rationale: str


def classify_vfx_needs(description: str) -> tuple[VfxNeedsLevel, str]:
    """Return the VFX needs level and a rationale citing the matched keyword."""
    text = description.lower()
    for level, keywords in VFX_KEYWORDS:
        for kw in keywords:
            if kw in text:
                return level, f"{level.value} VFX needs: description mentions '{kw}'"
    return VfxNeedsLevel.low, f"{VfxNeedsLevel.low.value} VFX needs: no VFX keywords in description (default)"


def extract_budget(text: str) -> str:
    """Pull a budget string out of free text, or "TBD".

    E.g. "budget of $2,500,000" → "$2,500,000", "150k - 300k range" → "$150K-300K".
    """
    m = _CURRENCY_PATTERN.search(text)
    if m:
        return m.group(0)
    m = _RANGE_PATTERN.search(text)
    if m:
        return f"${m.group(1)}K-{m.group(2)}K"
    return UNKNOWN


def budget_in_thousands(budget: Optional[str]) -> float | None:
    """Numeric magnitude of a budget string in thousands, or None when unknown.

    Ranges resolve to their lower bound ("$250K-500K" → 250).
    """
    if not budget or budget.strip() == UNKNOWN:
        return None
    cleaned = re.sub(r"[$,K]", "", budget)
    m = _LEADING_NUMBER.match(cleaned)
    if not m:
        return None
    amount = float(m.group(1))
    if "M" in budget:
        amount *= 1000
    return amount


def determine_tier(budget: Optional[str]) -> BudgetTier:
    """Map a budget string to a tier. Unknown budgets are assumed mid-tier (tier3)."""
    amount = budget_in_thousands(budget)
    if amount is None:
        return BudgetTier.tier3
    for threshold, tier in _TIER_THRESHOLDS:
        if amount >= threshold:
            return tier
    return BudgetTier.tier4


def extract_shot_count(text: str | None) -> str:
    """Return "500+" for "500+ shots", "50" for "approximately 50 shots", else "TBD"."""
    if not text:
        return UNKNOWN
    m = _SHOT_COUNT_PATTERN.search(text)
    if not m:
        return UNKNOWN
    return m.group(1).replace(",", "") + (m.group(2) or "")


def classify(description: str | None, budget_text: str | None = None) -> Classification:
    """Classify a posting. Pure: same input, same output.

    A missing budget is extracted from the description. Raises
    ClassificationError when the description is missing or blank.
    """
    if not isinstance(description, str) or not description.strip():
        raise ClassificationError("posting has no description")

    vfx_needs, rationale = classify_vfx_needs(description)
    budget = budget_text.strip() if budget_text and budget_text.strip() else extract_budget(description)
    return Classification(vfx_needs, determine_tier(budget), budget, rationale)


def fallback_classification(budget_text: str | None = None) -> Classification:
    """Classification used for records that cannot be classified."""
    budget = budget_text.strip() if budget_text and budget_text.strip() else UNKNOWN
    return Classification(
        VfxNeedsLevel.low,
        BudgetTier.tier4,
        budget,
        f"{VfxNeedsLevel.low.value} VFX needs: {INSUFFICIENT_DATA}",
    )
