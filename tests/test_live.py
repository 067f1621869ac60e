import threading
import unittest

from pianojury.live import ResultsBoard, ScoringChangeFilter
from pianojury.prize_assignment import ParticipantRef, PrizeTierConfig, RawScoreRow
from pianojury.sources import Scope

SCOPE = Scope("event-1", "cat-1", "sub-1")


class FakeSource:
    """In-memory score and prize configuration source."""

    def __init__(self) -> None:
        self.people = [ParticipantRef("r1", "Alice"), ParticipantRef("r2", "Ben")]
        self.rows = [RawScoreRow("r1", "j1", "Jury One", 90.0)]
        self.tiers = [PrizeTierConfig("Gold", 1, 1)]
        self.fail = False
        self.calls = 0

    def participants(self, scope):
        self.calls += 1
        if self.fail:
            raise ConnectionError("backend unavailable")
        return list(self.people)

    def score_rows(self, participant_ids):
        return [row for row in self.rows if row.participant_id in participant_ids]

    def remarks(self, participant_ids):
        return {}

    def prize_tiers(self, scope):
        return list(self.tiers)


class TestScoringChangeFilter(unittest.TestCase):
    def setUp(self) -> None:
        self.change_filter = ScoringChangeFilter.for_scope(SCOPE)

    def test_scoring_change_in_scope(self):
        payload = {"eventType": "UPDATE", "new": {"category_id": "cat-1", "subcategory_id": "sub-1"}}
        self.assertTrue(self.change_filter.matches_scoring_change(payload))

    def test_scoring_change_other_subcategory(self):
        payload = {"eventType": "INSERT", "new": {"category_id": "cat-1", "subcategory_id": "sub-2"}}
        self.assertFalse(self.change_filter.matches_scoring_change(payload))

    def test_delete_uses_old_row(self):
        payload = {"eventType": "DELETE", "new": {}, "old": {"category_id": "cat-9"}}
        self.assertFalse(self.change_filter.matches_scoring_change(payload))

    def test_rows_without_scope_columns_are_relevant(self):
        self.assertTrue(self.change_filter.matches_scoring_change({"new": {"id": "x"}}))

    def test_event_wide_filter_accepts_every_scope(self):
        event_wide = ScoringChangeFilter("event-1")
        payload = {"new": {"category_id": "other", "subcategory_id": "other"}}
        self.assertTrue(event_wide.matches_scoring_change(payload))

    def test_history_change(self):
        ok = {"new": {"event_id": "event-1", "category_id": "cat-1", "subcategory_id": "sub-1"}}
        other_event = {"new": {"event_id": "event-2"}}
        other_scope = {"new": {"event_id": "event-1", "category_id": "cat-2", "subcategory_id": "sub-1"}}

        self.assertTrue(self.change_filter.matches_history_change(ok))
        self.assertFalse(self.change_filter.matches_history_change(other_event))
        self.assertFalse(self.change_filter.matches_history_change(other_scope))


class TestResultsBoard(unittest.TestCase):
    def setUp(self) -> None:
        self.source = FakeSource()
        self.updates = []
        self.board = ResultsBoard(
            self.source,
            self.source,
            SCOPE,
            tie_precision=1,
            on_update=self.updates.append,
        )

    def test_refresh_publishes_results(self):
        results = self.board.refresh()

        self.assertIs(self.board.results, results)
        self.assertEqual(self.updates, [results])
        self.assertEqual(
            [row.rank_label for row in results.projected.rows], ["Gold", "#2"]
        )
        self.assertFalse(self.board.stale)

    def test_change_triggers_fresh_recompute(self):
        self.board.refresh()
        self.source.rows.append(RawScoreRow("r2", "j1", "Jury One", 95.0))

        handled = self.board.handle_scoring_change(
            {"new": {"category_id": "cat-1", "subcategory_id": "sub-1"}}
        )

        self.assertTrue(handled)
        self.assertEqual(self.board.results.projected.rows[0].participant.name, "Ben")

    def test_irrelevant_change_ignored(self):
        handled = self.board.handle_scoring_change(
            {"new": {"category_id": "cat-1", "subcategory_id": "sub-2"}}
        )
        self.assertFalse(handled)
        self.assertEqual(self.source.calls, 0)
        self.assertIsNone(self.board.results)

    def test_failure_keeps_previous_results(self):
        first = self.board.refresh()
        self.source.fail = True

        with self.assertLogs("pianojury.live", level="ERROR"):
            with self.assertRaises(ConnectionError):
                self.board.refresh()

        self.assertIs(self.board.results, first)
        self.assertTrue(self.board.stale)

        self.source.fail = False
        self.board.refresh()
        self.assertFalse(self.board.stale)

    def test_older_refresh_is_discarded(self):
        started = threading.Event()
        release = threading.Event()
        slow_results = []

        class SlowSource(FakeSource):
            def participants(inner_self, scope):
                started.set()
                release.wait(timeout=5)
                return super().participants(scope)

        slow = SlowSource()
        board = ResultsBoard(slow, self.source, SCOPE, tie_precision=1)
        worker = threading.Thread(target=lambda: slow_results.append(board.refresh()))
        worker.start()
        started.wait(timeout=5)

        # A newer refresh completes while the first is still in flight.
        board._score_source = self.source
        newer = board.refresh()
        release.set()
        worker.join(timeout=5)

        self.assertEqual(slow_results, [None])
        self.assertIs(board.results, newer)

    def test_older_failure_does_not_mark_newer_results_stale(self):
        started = threading.Event()
        release = threading.Event()
        errors = []

        class FailingSlowSource(FakeSource):
            def participants(inner_self, scope):
                started.set()
                release.wait(timeout=5)
                raise ConnectionError("backend unavailable")

        board = ResultsBoard(FailingSlowSource(), self.source, SCOPE, tie_precision=1)

        def run_slow():
            try:
                board.refresh()
            except ConnectionError as exc:
                errors.append(exc)

        worker = threading.Thread(target=run_slow)
        with self.assertLogs("pianojury.live", level="ERROR"):
            worker.start()
            started.wait(timeout=5)
            board._score_source = self.source
            newer = board.refresh()
            release.set()
            worker.join(timeout=5)

        self.assertEqual(len(errors), 1)
        self.assertIs(board.results, newer)
        self.assertFalse(board.stale)

    def test_history_forwarded_when_relevant(self):
        seen = []
        board = ResultsBoard(self.source, self.source, SCOPE, on_history=seen.append)
        payload = {"new": {"event_id": "event-1"}}

        self.assertTrue(board.handle_history_change(payload))
        self.assertFalse(board.handle_history_change({"new": {"event_id": "event-2"}}))
        self.assertEqual(seen, [payload])


if __name__ == "__main__":
    unittest.main()
