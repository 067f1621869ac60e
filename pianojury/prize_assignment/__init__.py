"""Pure prize assignment core: aggregation, allocation and projection."""

from .aggregation import aggregate_scores, rank_participants
from .allocator import (
    DEFAULT_TIE_PRECISION,
    PrizeTierAllocator,
    compute_prize_assignments,
    tie_key,
)
from .projection import (
    ProjectedResults,
    ResultRow,
    TierSummary,
    project_results,
)
from .types import (
    AssignmentResult,
    JuryScore,
    ParticipantRef,
    PrizeAssignment,
    PrizeTierConfig,
    RawScoreRow,
    ScoredParticipant,
    ScoreRange,
)

__all__ = [
    "AssignmentResult",
    "DEFAULT_TIE_PRECISION",
    "JuryScore",
    "ParticipantRef",
    "PrizeAssignment",
    "PrizeTierAllocator",
    "PrizeTierConfig",
    "ProjectedResults",
    "RawScoreRow",
    "ResultRow",
    "ScoreRange",
    "ScoredParticipant",
    "TierSummary",
    "aggregate_scores",
    "compute_prize_assignments",
    "project_results",
    "rank_participants",
    "tie_key",
]
