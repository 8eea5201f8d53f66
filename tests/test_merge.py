import unittest
from datetime import datetime, timezone

from vfx_pulse.merge import build_posting, merge
from vfx_pulse.models import BudgetTier, RawPosting, VfxNeedsLevel

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def raw(title, description="motion graphics", budget="$80K", **kw):
    return RawPosting(title=title, description=description, budget=budget, **kw)


class TestMerge(unittest.TestCase):
    def test_scenario_extreme_tier1(self):
        result = merge([], [raw("A", "creature work, 500+ shots", "$15M")], "backstage", now=NOW)
        self.assertEqual(result.added_count, 1)
        posting = result.catalog[0]
        self.assertEqual(posting.tier, BudgetTier.tier1)
        self.assertEqual(posting.vfx_needs, VfxNeedsLevel.extreme)
        self.assertEqual(posting.source, "backstage")
        self.assertEqual(posting.shot_count, "500+")
        self.assertEqual(posting.cross_source_data, {"backstage": "creature work, 500+ shots"})
        self.assertEqual(posting.scraped_at, NOW)
        self.assertTrue(posting.id)

    def test_scenario_low_tier4(self):
        posting = merge([], [raw("B")], "backstage").catalog[0]
        self.assertEqual(posting.tier, BudgetTier.tier4)
        self.assertEqual(posting.vfx_needs, VfxNeedsLevel.low)

    def test_idempotent(self):
        batch = [raw("A", "green screen"), raw("B"), raw("C", "cgi", "$3M")]
        first = merge([], batch, "mandy")
        second = merge(first.catalog, batch, "mandy")
        self.assertEqual(second.added_count, 0)
        self.assertEqual(second.catalog, first.catalog)

    def test_existing_entries_preserved(self):
        existing = merge([], [raw("A", "motion graphics", "$80K")], "backstage").catalog
        result = merge(existing, [raw("A", "full cgi", "$50M"), raw("D")], "vitrina")
        self.assertEqual(result.added_count, 1)
        self.assertEqual(result.catalog[0], existing[0])
        self.assertEqual(result.catalog[0].source, "backstage")
        self.assertEqual([p.title for p in result.catalog], ["A", "D"])

    def test_added_count_counts_absent_titles(self):
        existing = merge([], [raw("A"), raw("B")], "backstage").catalog
        result = merge(existing, [raw("B"), raw("C"), raw("E")], "mandy")
        self.assertEqual(result.added_count, 2)
        self.assertEqual(len(result.catalog), 4)

    def test_titles_case_sensitive(self):
        result = merge([], [raw("Horror Short"), raw("horror short")], "backstage")
        self.assertEqual(result.added_count, 2)

    def test_duplicate_titles_within_batch(self):
        result = merge([], [raw("A", "vfx"), raw("A", "full cgi")], "backstage")
        self.assertEqual(result.added_count, 1)
        self.assertEqual(result.catalog[0].vfx_needs, VfxNeedsLevel.medium)

    def test_ids_unique(self):
        result = merge([], [raw(str(i)) for i in range(20)], "backstage")
        self.assertEqual(len({p.id for p in result.catalog}), 20)

    def test_unclassifiable_record_does_not_block_batch(self):
        batch = [raw("A", None, "$5M"), raw("B", "heavy vfx", "$20M")]
        result = merge([], batch, "backstage")
        self.assertEqual(result.added_count, 2)
        bad, good = result.catalog
        self.assertEqual(bad.vfx_needs, VfxNeedsLevel.low)
        self.assertEqual(bad.tier, BudgetTier.tier4)
        self.assertIn("insufficient data", bad.vfx_needs_rationale)
        self.assertEqual(bad.cross_source_data, {})
        self.assertEqual(good.tier, BudgetTier.tier1)

    def test_build_posting_keeps_raw_fields(self):
        posting = build_posting(
            raw("Pilot", "visual effects", None, location="Atlanta", company="Studio", stage="Development"),
            "productionWeekly",
            NOW,
        )
        self.assertEqual(posting.location, "Atlanta")
        self.assertEqual(posting.company, "Studio")
        self.assertEqual(posting.budget, "TBD")
        self.assertEqual(posting.tier, BudgetTier.tier3)
        self.assertEqual(posting.vfx_needs, VfxNeedsLevel.high)


if __name__ == "__main__":
    unittest.main()
