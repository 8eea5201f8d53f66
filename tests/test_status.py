import unittest
from datetime import datetime, timezone

from vfx_pulse.models import ScrapeState, SourceStatus
from vfx_pulse.status import (
    ScrapeFailed,
    ScrapeStarted,
    ScrapeSucceeded,
    SourceStatusTracker,
    StatusTransitionError,
    apply_transition,
)

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)
T1 = datetime(2026, 1, 2, tzinfo=timezone.utc)


class TestApplyTransition(unittest.TestCase):
    def test_start_from_idle(self):
        status = apply_transition(SourceStatus(), ScrapeStarted(T0))
        self.assertEqual(status.state, ScrapeState.scraping)
        self.assertEqual(status.last_scrape_at, T0)
        self.assertEqual(status.posting_count, 0)

    def test_success_sets_cycle_yield(self):
        status = SourceStatus(state=ScrapeState.active, posting_count=9, last_scrape_at=T0)
        status = apply_transition(status, ScrapeStarted(T1))
        status = apply_transition(status, ScrapeSucceeded(3))
        self.assertEqual(status.state, ScrapeState.active)
        self.assertEqual(status.posting_count, 3)
        self.assertEqual(status.last_scrape_at, T1)

    def test_failure_keeps_count(self):
        status = SourceStatus(state=ScrapeState.active, posting_count=7, last_scrape_at=T0)
        status = apply_transition(status, ScrapeStarted(T1))
        status = apply_transition(status, ScrapeFailed("boom"))
        self.assertEqual(status.state, ScrapeState.error)
        self.assertEqual(status.posting_count, 7)
        self.assertEqual(status.last_scrape_at, T1)

    def test_error_can_restart(self):
        status = SourceStatus(state=ScrapeState.error)
        self.assertEqual(apply_transition(status, ScrapeStarted(T0)).state, ScrapeState.scraping)

    def test_does_not_mutate(self):
        status = SourceStatus()
        apply_transition(status, ScrapeStarted(T0))
        self.assertEqual(status.state, ScrapeState.idle)
        self.assertIsNone(status.last_scrape_at)

    def test_illegal_transitions(self):
        with self.assertRaises(StatusTransitionError):
            apply_transition(SourceStatus(), ScrapeSucceeded(1))
        with self.assertRaises(StatusTransitionError):
            apply_transition(SourceStatus(state=ScrapeState.active), ScrapeFailed("x"))
        with self.assertRaises(StatusTransitionError):
            apply_transition(SourceStatus(state=ScrapeState.scraping), ScrapeStarted(T0))


class TestTracker(unittest.TestCase):
    def test_initial_idle(self):
        tracker = SourceStatusTracker(["a", "b"])
        self.assertEqual({s.state for s in tracker.snapshot().values()}, {ScrapeState.idle})
        self.assertIn("a", tracker)
        self.assertNotIn("c", tracker)

    def test_interrupted_scrape_loaded_as_error(self):
        tracker = SourceStatusTracker(
            ["a"], {"a": SourceStatus(state=ScrapeState.scraping, posting_count=4)}
        )
        self.assertEqual(tracker.get("a").state, ScrapeState.error)
        self.assertEqual(tracker.get("a").posting_count, 4)

    def test_ignores_unregistered_persisted_sources(self):
        tracker = SourceStatusTracker(["a"], {"gone": SourceStatus(state=ScrapeState.active)})
        self.assertEqual(list(tracker.snapshot()), ["a"])

    def test_cycle(self):
        tracker = SourceStatusTracker(["a"])
        tracker.start("a", at=T0)
        self.assertEqual(tracker.get("a").state, ScrapeState.scraping)
        tracker.succeed("a", 5)
        self.assertEqual(tracker.get("a"), SourceStatus(last_scrape_at=T0, posting_count=5, state=ScrapeState.active))

    def test_source_lock_is_exclusive(self):
        tracker = SourceStatusTracker(["a"])
        with tracker.source_lock("a"):
            self.assertFalse(tracker._locks["a"].acquire(blocking=False))
        self.assertTrue(tracker._locks["a"].acquire(blocking=False))
        tracker._locks["a"].release()


if __name__ == "__main__":
    unittest.main()
