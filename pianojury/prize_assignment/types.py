"""Value objects shared by the aggregator, allocator and projector."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional

DEFAULT_RANGE_MIN = 0.0
DEFAULT_RANGE_MAX = 100.0
UNKNOWN_JURY_NAME = "Unknown Jury"


def _pick(record: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first key present in ``record`` (camelCase or snake_case)."""
    for key in keys:
        if key in record:
            return record[key]
    return default


@dataclass(frozen=True)
class RawScoreRow:
    """A single jury's score row as delivered by the score source.

    Attributes
    ----------
    participant_id : str
        Registration the score belongs to.
    jury_id : str
        Identity of the jury member.
    jury_name : str
        Display name of the jury member.
    score : Optional[float]
        Submitted score, ``None`` while the jury has not scored yet.
    finalized : bool
        Whether the row has been locked by an administrator.
    id : Optional[str]
        Identifier of the row in the backend, if known.
    """

    participant_id: str
    jury_id: str
    jury_name: str
    score: Optional[float]
    finalized: bool = False
    id: Optional[str] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "RawScoreRow":
        """Build a row from the backend's ``event_scoring`` record shape."""
        score = _pick(record, "finalScore", "final_score", "score")
        return cls(
            id=_pick(record, "id"),
            participant_id=_pick(
                record, "registrationId", "registration_id", "participantId"
            ),
            jury_id=_pick(record, "juryId", "jury_id"),
            jury_name=_pick(record, "juryName", "jury_name") or UNKNOWN_JURY_NAME,
            score=None if score is None else float(score),
            finalized=bool(_pick(record, "finalized", default=False)),
        )


@dataclass(frozen=True)
class ParticipantRef:
    """Identity of a participant the aggregator reports on."""

    id: str
    name: str
    piece: Optional[str] = None
    duration: Optional[str] = None


@dataclass(frozen=True)
class JuryScore:
    jury_id: str
    jury_name: str
    score: float


@dataclass(frozen=True)
class ScoredParticipant:
    """A participant together with their derived scoring summary.

    ``average_score`` is meaningless when ``score_count`` is zero. Prize
    annotations are only set on copies produced by the allocator.
    """

    id: str
    name: str
    average_score: float = 0.0
    score_count: int = 0
    jury_scores: tuple[JuryScore, ...] = ()
    is_finalized: bool = False
    piece: Optional[str] = None
    duration: Optional[str] = None
    prize_level: Optional[str] = None
    prize_display_order: Optional[int] = None

    @property
    def has_score(self) -> bool:
        return self.score_count > 0

    def with_prize(
        self, prize_level: Optional[str], display_order: Optional[int]
    ) -> "ScoredParticipant":
        """Return a copy annotated with the given prize (or none)."""
        return replace(
            self, prize_level=prize_level, prize_display_order=display_order
        )


@dataclass(frozen=True)
class ScoreRange:
    min: float
    max: float


@dataclass(frozen=True)
class PrizeTierConfig:
    """Read-only definition of one prize tier.

    Attributes
    ----------
    prize_level : str
        Display label of the prize.
    display_order : int
        Processing rank; lower values are allocated first.
    max_winners : int
        Winner cap, exceeded only by a leading tie.
    min_score, max_score : Optional[float]
        Inclusive bounds of eligible averages; ``None`` is unbounded.
    active : bool
        Inactive tiers are filtered out before allocation.
    id : Optional[str]
        Backend identifier, if the tier was loaded from storage.
    """

    prize_level: str
    display_order: int
    max_winners: int
    min_score: Optional[float] = None
    max_score: Optional[float] = None
    active: bool = True
    id: Optional[str] = None

    def contains(self, score: float) -> bool:
        """Return ``True`` when ``score`` lies within the tier's bounds."""
        if self.min_score is not None and score < self.min_score:
            return False
        if self.max_score is not None and score > self.max_score:
            return False
        return True

    def effective_range(self) -> ScoreRange:
        """Bounds reported to users, with open ends shown as 0 and 100."""
        return ScoreRange(
            min=DEFAULT_RANGE_MIN if self.min_score is None else self.min_score,
            max=DEFAULT_RANGE_MAX if self.max_score is None else self.max_score,
        )

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "PrizeTierConfig":
        """Build a tier from an ``event_prize_configurations`` record."""
        min_score = _pick(record, "min_score", "minScore")
        max_score = _pick(record, "max_score", "maxScore")
        return cls(
            id=_pick(record, "id"),
            prize_level=_pick(record, "prize_level", "prizeLevel"),
            display_order=int(_pick(record, "display_order", "displayOrder")),
            max_winners=int(_pick(record, "max_winners", "maxWinners")),
            min_score=None if min_score is None else float(min_score),
            max_score=None if max_score is None else float(max_score),
            active=bool(_pick(record, "active", default=True)),
        )


@dataclass(frozen=True)
class PrizeAssignment:
    """Allocator output for a single tier."""

    prize_level: str
    display_order: int
    max_winners: int
    winners: tuple[ScoredParticipant, ...]
    score_range: ScoreRange

    @property
    def over_cap(self) -> bool:
        """``True`` when a leading tie pushed the tier past its cap."""
        return len(self.winners) > self.max_winners


@dataclass(frozen=True)
class AssignmentResult:
    """Complete allocation for one scope.

    Attributes
    ----------
    tiers : tuple[PrizeAssignment, ...]
        One entry per configured tier, in processing order.
    participants : tuple[ScoredParticipant, ...]
        Every participant exactly once: tier winners tier by tier, then
        scored participants without a prize, then participants without a
        score.
    unassigned : tuple[ScoredParticipant, ...]
        Scored participants that received no prize.
    no_score : tuple[ScoredParticipant, ...]
        Participants no jury has scored.
    """

    tiers: tuple[PrizeAssignment, ...] = ()
    participants: tuple[ScoredParticipant, ...] = ()
    unassigned: tuple[ScoredParticipant, ...] = ()
    no_score: tuple[ScoredParticipant, ...] = ()

    @property
    def winners(self) -> list[ScoredParticipant]:
        return [winner for tier in self.tiers for winner in tier.winners]


__all__ = [
    "AssignmentResult",
    "JuryScore",
    "ParticipantRef",
    "PrizeAssignment",
    "PrizeTierConfig",
    "RawScoreRow",
    "ScoreRange",
    "ScoredParticipant",
]
