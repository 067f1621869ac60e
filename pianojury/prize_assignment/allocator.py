"""Greedy allocation of ranked participants into ordered prize tiers."""

from __future__ import annotations

from collections import Counter
from decimal import ROUND_HALF_UP, Decimal
import logging
from typing import Hashable, Iterable, Optional, Sequence

from .aggregation import rank_participants
from .types import (
    AssignmentResult,
    PrizeAssignment,
    PrizeTierConfig,
    ScoredParticipant,
)

logger = logging.getLogger(__name__)

DEFAULT_TIE_PRECISION = 1


def tie_key(score: float, precision: Optional[int] = DEFAULT_TIE_PRECISION) -> Hashable:
    """Return the value two scores must share to be considered tied.

    Parameters
    ----------
    score : float
        Average score of a participant.
    precision : Optional[int], default: 1
        Number of decimal places the score is rounded to (half-up) before
        comparison. ``None`` compares the raw floats.
    """
    if precision is None:
        return score
    quantum = Decimal(1).scaleb(-precision)
    return Decimal(str(score)).quantize(quantum, rounding=ROUND_HALF_UP)


class PrizeTierAllocator:
    """Assign participants to prize tiers, keeping tied participants together.

    The allocator keeps the ranked pool in a single list and marks entries
    as claimed instead of removing them, so intermediate state can be
    inspected with :meth:`remaining`.
    """

    def __init__(self, *, tie_precision: Optional[int] = DEFAULT_TIE_PRECISION) -> None:
        """Create an allocator.

        Parameters
        ----------
        tie_precision : Optional[int], default: 1
            Decimal places used when grouping equal averages, see
            :func:`tie_key`.
        """
        self._tie_precision = tie_precision
        self._pool: list[ScoredParticipant] = []
        self._claimed: list[bool] = []

    def allocate(
        self,
        participants: Iterable[ScoredParticipant],
        tiers: Iterable[PrizeTierConfig],
    ) -> AssignmentResult:
        """Allocate ``participants`` to ``tiers`` and return the full result.

        Parameters
        ----------
        participants : Iterable[ScoredParticipant]
            Aggregated participants in any order. Their incoming order is
            the tie-break among equal averages and the order of the
            no-score tail.
        tiers : Iterable[PrizeTierConfig]
            Tiers of a single scope. They are processed in ascending
            ``display_order``; equal orders keep their incoming order.

        Returns
        -------
        AssignmentResult
            One :class:`PrizeAssignment` per tier plus the flattened list of
            every participant.

        Notes
        -----
        For each tier, in order:

        1. Unclaimed participants are keyed by :func:`tie_key`; those whose
           key lies within the tier's inclusive bounds are grouped by it.
        2. Groups are taken from the highest score down while the whole
           group fits under ``max_winners``.
        3. A group that does not fit is taken anyway when the tier has no
           winner yet; otherwise allocation for the tier stops and the
           group stays in the pool for the next tier.

        Nothing here raises for questionable configuration such as
        overlapping ranges; inputs are never mutated.
        """
        participants = list(participants)
        ordered_tiers = sorted(tiers, key=lambda tier: tier.display_order)
        self._warn_on_duplicate_orders(ordered_tiers)

        self._pool = rank_participants(p for p in participants if p.has_score)
        self._claimed = [False] * len(self._pool)
        no_score = [p.with_prize(None, None) for p in participants if not p.has_score]

        assignments = [self._allocate_tier(tier) for tier in ordered_tiers]
        unassigned = [p.with_prize(None, None) for p in self.remaining()]

        flattened: list[ScoredParticipant] = []
        for assignment in assignments:
            flattened.extend(assignment.winners)
        flattened.extend(unassigned)
        flattened.extend(no_score)

        winner_count = len(flattened) - len(unassigned) - len(no_score)
        logger.debug(
            f"Allocated {winner_count} winners across {len(assignments)} tiers "
            f"({len(unassigned)} unassigned, {len(no_score)} without score)"
        )
        return AssignmentResult(
            tiers=tuple(assignments),
            participants=tuple(flattened),
            unassigned=tuple(unassigned),
            no_score=tuple(no_score),
        )

    def remaining(self) -> list[ScoredParticipant]:
        """Return unclaimed participants of the current pool in ranked order."""
        return [
            participant
            for participant, claimed in zip(self._pool, self._claimed)
            if not claimed
        ]

    def _allocate_tier(self, tier: PrizeTierConfig) -> PrizeAssignment:
        groups: dict[Hashable, list[int]] = {}
        for index, participant in enumerate(self._pool):
            if self._claimed[index]:
                continue
            key = tie_key(participant.average_score, self._tie_precision)
            # Bounds see the same rounded value as tie grouping so a tie
            # cannot straddle a tier boundary.
            if not tier.contains(float(key)):
                continue
            groups.setdefault(key, []).append(index)

        selected: list[int] = []
        for key in sorted(groups, reverse=True):
            group = groups[key]
            if len(selected) + len(group) <= tier.max_winners:
                selected.extend(group)
                continue
            if not selected:
                # A leading tie is never split, even past the cap.
                selected.extend(group)
            break

        for index in selected:
            self._claimed[index] = True

        return PrizeAssignment(
            prize_level=tier.prize_level,
            display_order=tier.display_order,
            max_winners=tier.max_winners,
            winners=tuple(
                self._pool[index].with_prize(tier.prize_level, tier.display_order)
                for index in selected
            ),
            score_range=tier.effective_range(),
        )

    @staticmethod
    def _warn_on_duplicate_orders(tiers: Sequence[PrizeTierConfig]) -> None:
        counts = Counter(tier.display_order for tier in tiers)
        duplicates = sorted(order for order, count in counts.items() if count > 1)
        if duplicates:
            logger.warning(
                f"Prize tiers share display_order {duplicates}; "
                "processing them in input order"
            )


def compute_prize_assignments(
    participants: Iterable[ScoredParticipant],
    tiers: Iterable[PrizeTierConfig],
    *,
    tie_precision: Optional[int] = DEFAULT_TIE_PRECISION,
) -> AssignmentResult:
    """Allocate prizes for one scope.

    Pure, synchronous and idempotent; see :meth:`PrizeTierAllocator.allocate`.
    """
    return PrizeTierAllocator(tie_precision=tie_precision).allocate(participants, tiers)


__all__ = [
    "DEFAULT_TIE_PRECISION",
    "PrizeTierAllocator",
    "compute_prize_assignments",
    "tie_key",
]
