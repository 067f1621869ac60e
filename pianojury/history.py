"""Audit trail of jury score changes."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from .db.utils import dt_iso
from .models import EventScoringHistory

logger = logging.getLogger(__name__)

SCORING_TABLE = "event_scoring"
SCORING_DETAILS_TABLE = "event_scoring_details"
OPERATIONS = ("INSERT", "UPDATE", "DELETE")

# Fields of a scoring row worth showing to administrators.
_MEANINGFUL_FIELDS = ("final_score", "remarks")


@dataclass(frozen=True)
class FieldChange:
    field: str
    before: Any
    after: Any


@dataclass(frozen=True)
class HistorySummary:
    title: str
    description: str
    changes: list[FieldChange] = field(default_factory=list)
    changed_at: Optional[str] = None


def log_scoring_history(
    session: Session,
    *,
    table_name: str,
    record_id: str,
    operation: str,
    changed_by: str,
    before_data: Optional[dict] = None,
    after_data: Optional[dict] = None,
    jury_name: Optional[str] = None,
    event_id: Optional[str] = None,
    registration_id: Optional[str] = None,
    participant_name: Optional[str] = None,
) -> EventScoringHistory:
    """Append a history entry describing a change to a scoring row.

    For ``event_scoring`` changes the category and subcategory are copied
    from ``after_data`` so history can be filtered per scope.

    Raises
    ------
    ValueError
        If ``operation`` is not one of ``INSERT``, ``UPDATE`` or ``DELETE``.
    """
    if operation not in OPERATIONS:
        raise ValueError(f"Unsupported history operation '{operation}'")

    category_id = None
    subcategory_id = None
    if table_name == SCORING_TABLE and after_data:
        category_id = after_data.get("category_id")
        subcategory_id = after_data.get("subcategory_id")

    entry = EventScoringHistory(
        table_name=table_name,
        record_id=record_id,
        operation=operation,
        before_data=before_data,
        after_data=after_data,
        changed_by=changed_by,
        jury_name=jury_name,
        event_id=event_id,
        registration_id=registration_id,
        participant_name=participant_name,
        category_id=category_id,
        subcategory_id=subcategory_id,
    )
    session.add(entry)
    session.flush()
    logger.debug(f"Recorded {operation} on {table_name} {record_id}")
    return entry


def get_scoring_history(
    session: Session,
    *,
    event_id: Optional[str] = None,
    registration_id: Optional[str] = None,
    changed_by: Optional[str] = None,
    limit: Optional[int] = None,
) -> list[EventScoringHistory]:
    """Return history entries, newest first, narrowed by the given filters."""
    stmt = select(EventScoringHistory)
    if event_id:
        stmt = stmt.where(EventScoringHistory.event_id == event_id)
    if registration_id:
        stmt = stmt.where(EventScoringHistory.registration_id == registration_id)
    if changed_by:
        stmt = stmt.where(EventScoringHistory.changed_by == changed_by)
    stmt = stmt.order_by(
        EventScoringHistory.changed_at.desc(), EventScoringHistory.id.desc()
    )
    if limit:
        stmt = stmt.limit(limit)
    return list(session.scalars(stmt).all())


def format_history_entry(entry: EventScoringHistory) -> HistorySummary:
    """Describe ``entry`` for display: a title, a sentence and field changes."""
    participant = entry.participant_name or "Unknown Participant"
    jury = entry.jury_name or "Unknown Jury"
    before = entry.before_data or {}
    after = entry.after_data or {}

    title = ""
    description = ""
    changes: list[FieldChange] = []

    if entry.table_name == SCORING_TABLE:
        if entry.operation == "INSERT":
            title = "New Score Submitted"
            description = f"{jury} submitted a score for {participant}"
            for name in _MEANINGFUL_FIELDS:
                if after.get(name) is not None:
                    changes.append(FieldChange(name, None, after[name]))
        elif entry.operation == "UPDATE":
            title = "Score Updated"
            description = f"{jury} updated the score for {participant}"
            if entry.before_data and entry.after_data:
                for name in _MEANINGFUL_FIELDS:
                    if before.get(name) != after.get(name):
                        changes.append(FieldChange(name, before.get(name), after.get(name)))
    elif entry.table_name == SCORING_DETAILS_TABLE:
        if entry.operation == "INSERT":
            title = "Aspect Score Added"
            description = f"{jury} added an aspect score for {participant}"
        elif entry.operation == "UPDATE":
            title = "Aspect Score Updated"
            description = f"{jury} updated an aspect score for {participant}"

        if entry.before_data and entry.after_data:
            if before.get("score") != after.get("score"):
                changes.append(FieldChange("score", before.get("score"), after.get("score")))
        elif entry.after_data and entry.operation == "INSERT":
            changes.append(FieldChange("score", None, after.get("score")))

    return HistorySummary(
        title=title,
        description=description,
        changes=changes,
        changed_at=dt_iso(entry.changed_at),
    )


__all__ = [
    "FieldChange",
    "HistorySummary",
    "format_history_entry",
    "get_scoring_history",
    "log_scoring_history",
]
