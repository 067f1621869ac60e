import unittest
from datetime import datetime, timezone

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from pianojury.history import (
    SCORING_DETAILS_TABLE,
    SCORING_TABLE,
    format_history_entry,
    get_scoring_history,
    log_scoring_history,
)
from pianojury.models import Base, EventScoringHistory


class HistoryTests(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(
            bind=self.engine, future=True, expire_on_commit=False
        )

    def tearDown(self) -> None:
        self.engine.dispose()

    def _log(self, session, *, changed_at: datetime, **kwargs) -> EventScoringHistory:
        params = {
            "table_name": SCORING_TABLE,
            "record_id": "score-1",
            "operation": "INSERT",
            "changed_by": "jury-1",
            "jury_name": "Jury One",
            "event_id": "event-1",
            "registration_id": "reg-1",
            "participant_name": "Alice",
        }
        params.update(kwargs)
        entry = log_scoring_history(session, **params)
        entry.changed_at = changed_at
        session.flush()
        return entry

    def test_scope_copied_from_after_data(self):
        with self.Session.begin() as session:
            entry = self._log(
                session,
                changed_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
                after_data={"category_id": "cat", "subcategory_id": "sub", "final_score": 80},
            )
            self.assertEqual((entry.category_id, entry.subcategory_id), ("cat", "sub"))

    def test_rejects_unknown_operation(self):
        with self.Session.begin() as session:
            with self.assertRaises(ValueError):
                log_scoring_history(
                    session,
                    table_name=SCORING_TABLE,
                    record_id="score-1",
                    operation="UPSERT",
                    changed_by="jury-1",
                )

    def test_filters_and_newest_first(self):
        with self.Session.begin() as session:
            self._log(session, changed_at=datetime(2025, 1, 1, 9, 0), operation="INSERT")
            self._log(session, changed_at=datetime(2025, 1, 1, 10, 0), operation="UPDATE")
            self._log(
                session,
                changed_at=datetime(2025, 1, 1, 11, 0),
                changed_by="jury-2",
                registration_id="reg-2",
            )
            self._log(session, changed_at=datetime(2025, 1, 1, 12, 0), event_id="event-2")

            entries = get_scoring_history(session, event_id="event-1")
            self.assertEqual([e.changed_by for e in entries], ["jury-2", "jury-1", "jury-1"])

            mine = get_scoring_history(session, event_id="event-1", changed_by="jury-1")
            self.assertEqual([e.operation for e in mine], ["UPDATE", "INSERT"])

            latest = get_scoring_history(session, registration_id="reg-1", limit=1)
            self.assertEqual(len(latest), 1)
            self.assertEqual(latest[0].event_id, "event-2")

    def test_format_score_update(self):
        entry = EventScoringHistory(
            table_name=SCORING_TABLE,
            record_id="score-1",
            operation="UPDATE",
            changed_by="jury-1",
            jury_name="Jury One",
            participant_name="Alice",
            before_data={"final_score": 80.0, "remarks": "Good"},
            after_data={"final_score": 85.5, "remarks": "Good"},
            changed_at=datetime(2025, 3, 1, 8, 30),
        )
        summary = format_history_entry(entry)

        self.assertEqual(summary.title, "Score Updated")
        self.assertEqual(summary.description, "Jury One updated the score for Alice")
        self.assertEqual(len(summary.changes), 1)
        self.assertEqual(
            (summary.changes[0].field, summary.changes[0].before, summary.changes[0].after),
            ("final_score", 80.0, 85.5),
        )
        self.assertEqual(summary.changed_at, "2025-03-01T08:30:00+00:00")

    def test_format_new_score_lists_set_fields(self):
        entry = EventScoringHistory(
            table_name=SCORING_TABLE,
            record_id="score-1",
            operation="INSERT",
            changed_by="jury-1",
            after_data={"final_score": 90.0, "remarks": None},
        )
        summary = format_history_entry(entry)

        self.assertEqual(summary.title, "New Score Submitted")
        self.assertEqual(summary.description, "Unknown Jury submitted a score for Unknown Participant")
        self.assertEqual([c.field for c in summary.changes], ["final_score"])

    def test_format_aspect_score(self):
        entry = EventScoringHistory(
            table_name=SCORING_DETAILS_TABLE,
            record_id="detail-1",
            operation="INSERT",
            changed_by="jury-1",
            jury_name="Jury One",
            participant_name="Alice",
            after_data={"score": 8},
        )
        summary = format_history_entry(entry)

        self.assertEqual(summary.title, "Aspect Score Added")
        self.assertEqual(summary.changes[0].after, 8)


if __name__ == "__main__":
    unittest.main()
