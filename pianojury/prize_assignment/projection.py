"""Flatten allocation results into display and export ready rows."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from .types import AssignmentResult, ScoredParticipant, ScoreRange


@dataclass(frozen=True)
class ResultRow:
    """A participant's line in the results table.

    ``rank_label`` is the prize level for winners and ``#<position>``
    otherwise.
    """

    position: int
    rank_label: str
    participant: ScoredParticipant

    @property
    def prize_level(self) -> Optional[str]:
        return self.participant.prize_level


@dataclass(frozen=True)
class TierSummary:
    """How a tier was filled compared to its configuration."""

    prize_level: str
    display_order: int
    winner_count: int
    max_winners: int
    over_cap: bool
    configured_range: ScoreRange
    achieved_min: Optional[float]
    achieved_max: Optional[float]


@dataclass(frozen=True)
class ProjectedResults:
    rows: tuple[ResultRow, ...]
    tiers: tuple[TierSummary, ...]


def _rows(participants: Iterable[ScoredParticipant]) -> tuple[ResultRow, ...]:
    rows: list[ResultRow] = []
    for position, participant in enumerate(participants, start=1):
        label = participant.prize_level or f"#{position}"
        rows.append(ResultRow(position=position, rank_label=label, participant=participant))
    return tuple(rows)


def project_results(result: AssignmentResult) -> ProjectedResults:
    """Return the flat results table and per-tier summary of ``result``."""
    summaries: list[TierSummary] = []
    for assignment in result.tiers:
        scores = [winner.average_score for winner in assignment.winners]
        summaries.append(
            TierSummary(
                prize_level=assignment.prize_level,
                display_order=assignment.display_order,
                winner_count=len(assignment.winners),
                max_winners=assignment.max_winners,
                over_cap=assignment.over_cap,
                configured_range=assignment.score_range,
                achieved_min=min(scores) if scores else None,
                achieved_max=max(scores) if scores else None,
            )
        )
    return ProjectedResults(rows=_rows(result.participants), tiers=tuple(summaries))


__all__ = [
    "ProjectedResults",
    "ResultRow",
    "TierSummary",
    "project_results",
]
