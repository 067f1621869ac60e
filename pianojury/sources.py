"""Snapshot sources feeding the prize assignment core.

The core never reaches for a database or HTTP client itself; callers hand
it one of the sources below (or any object with the same methods).
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING, Iterable, Optional, Protocol, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from .models import EventScoring, PrizeConfiguration, Registration
from .prize_assignment.types import ParticipantRef, PrizeTierConfig, RawScoreRow

if TYPE_CHECKING:
    from .backend.api import BackendClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Scope:
    """The (event, category, subcategory) triple prizes are configured for."""

    event_id: str
    category_id: str
    subcategory_id: str


class ScoreSource(Protocol):
    def participants(self, scope: Scope) -> list[ParticipantRef]: ...

    def score_rows(self, participant_ids: Sequence[str]) -> list[RawScoreRow]: ...

    def remarks(self, participant_ids: Sequence[str]) -> dict[str, dict[str, str]]: ...


class PrizeConfigSource(Protocol):
    def prize_tiers(self, scope: Scope) -> list[PrizeTierConfig]: ...


def _collect_remarks(
    entries: Iterable[tuple[str, Optional[str], Optional[str]]],
) -> dict[str, dict[str, str]]:
    """Group ``(participant_id, jury_name, remarks)`` into nested dicts."""
    collected: dict[str, dict[str, str]] = {}
    for participant_id, jury_name, remarks in entries:
        if not jury_name or not remarks:
            continue
        collected.setdefault(participant_id, {})[jury_name] = remarks
    return collected


class SqlSource:
    """Score and prize configuration source backed by a SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def participants(self, scope: Scope) -> list[ParticipantRef]:
        registrations = Registration.for_scope(
            self._session, scope.category_id, scope.subcategory_id
        )
        return [registration.to_participant_ref() for registration in registrations]

    def score_rows(self, participant_ids: Sequence[str]) -> list[RawScoreRow]:
        if not participant_ids:
            return []
        stmt = select(EventScoring).where(
            EventScoring.registration_id.in_(list(participant_ids))
        )
        return [row.to_raw_row() for row in self._session.scalars(stmt).all()]

    def remarks(self, participant_ids: Sequence[str]) -> dict[str, dict[str, str]]:
        if not participant_ids:
            return {}
        stmt = select(
            EventScoring.registration_id,
            EventScoring.jury_name,
            EventScoring.remarks,
        ).where(
            EventScoring.registration_id.in_(list(participant_ids)),
            EventScoring.remarks.isnot(None),
        )
        return _collect_remarks(self._session.execute(stmt).all())

    def prize_tiers(self, scope: Scope) -> list[PrizeTierConfig]:
        configs = PrizeConfiguration.for_scope(
            self._session, scope.event_id, scope.category_id, scope.subcategory_id
        )
        return [config.to_tier() for config in configs]


class RestSource:
    """Score and prize configuration source backed by the hosted table API."""

    def __init__(self, client: "BackendClient") -> None:
        self._client = client

    def participants(self, scope: Scope) -> list[ParticipantRef]:
        rows = self._client.select(
            "registrations",
            filters={
                "category_id": scope.category_id,
                "subcategory_id": scope.subcategory_id,
            },
            order=["created_at.asc"],
        )
        return [
            ParticipantRef(
                id=row["id"],
                name=row.get("participant_name") or "",
                piece=row.get("song_title") or "Not specified",
                duration=row.get("song_duration") or "Not specified",
            )
            for row in rows
        ]

    def score_rows(self, participant_ids: Sequence[str]) -> list[RawScoreRow]:
        if not participant_ids:
            return []
        rows = self._client.select(
            "event_scoring",
            columns="id,registration_id,jury_id,jury_name,final_score,finalized",
            filters={"registration_id": list(participant_ids)},
        )
        logger.debug(f"Fetched {len(rows)} score rows for {len(participant_ids)} participants")
        return [RawScoreRow.from_record(row) for row in rows]

    def remarks(self, participant_ids: Sequence[str]) -> dict[str, dict[str, str]]:
        if not participant_ids:
            return {}
        rows = self._client.select(
            "event_scoring",
            columns="registration_id,jury_name,remarks",
            filters={"registration_id": list(participant_ids)},
        )
        return _collect_remarks(
            (row["registration_id"], row.get("jury_name"), row.get("remarks"))
            for row in rows
        )

    def prize_tiers(self, scope: Scope) -> list[PrizeTierConfig]:
        rows = self._client.select(
            "event_prize_configurations",
            filters={
                "event_id": scope.event_id,
                "category_id": scope.category_id,
                "subcategory_id": scope.subcategory_id,
                "active": True,
            },
            order=["display_order.asc"],
        )
        return [PrizeTierConfig.from_record(row) for row in rows]


__all__ = [
    "PrizeConfigSource",
    "RestSource",
    "Scope",
    "ScoreSource",
    "SqlSource",
]
