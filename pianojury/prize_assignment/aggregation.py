"""Reduce raw jury score rows into one summary per participant."""

from __future__ import annotations

from typing import Iterable, Sequence

from .types import JuryScore, ParticipantRef, RawScoreRow, ScoredParticipant


def rank_participants(
    participants: Iterable[ScoredParticipant],
) -> list[ScoredParticipant]:
    """Return ``participants`` ordered by descending average score.

    The sort is stable, so equal averages keep their incoming order.
    """
    return sorted(participants, key=lambda p: -p.average_score)


def aggregate_scores(
    participants: Sequence[ParticipantRef],
    rows: Iterable[RawScoreRow],
) -> list[ScoredParticipant]:
    """Build one :class:`ScoredParticipant` per entry in ``participants``.

    Parameters
    ----------
    participants : Sequence[ParticipantRef]
        Participants to report on, in registration order. That order is
        the tie-break among equal averages.
    rows : Iterable[RawScoreRow]
        Score rows from the score source. Rows referring to participants
        not listed in ``participants`` are ignored.

    Returns
    -------
    list[ScoredParticipant]
        Summaries ordered by descending ``average_score``. Participants
        without any non-null score have ``score_count == 0`` and an
        average of ``0``.

    Notes
    -----
    Rows with a ``None`` score still count towards ``is_finalized``; they
    only drop out of the average.
    """
    rows_by_participant: dict[str, list[RawScoreRow]] = {
        participant.id: [] for participant in participants
    }
    for row in rows:
        bucket = rows_by_participant.get(row.participant_id)
        if bucket is not None:
            bucket.append(row)

    summaries: list[ScoredParticipant] = []
    for participant in participants:
        jury_scores: list[JuryScore] = []
        total = 0.0
        is_finalized = False
        for row in rows_by_participant[participant.id]:
            if row.score is not None:
                jury_scores.append(
                    JuryScore(
                        jury_id=row.jury_id,
                        jury_name=row.jury_name,
                        score=row.score,
                    )
                )
                total += row.score
            if row.finalized:
                is_finalized = True

        count = len(jury_scores)
        summaries.append(
            ScoredParticipant(
                id=participant.id,
                name=participant.name,
                average_score=total / count if count else 0.0,
                score_count=count,
                jury_scores=tuple(jury_scores),
                is_finalized=is_finalized,
                piece=participant.piece,
                duration=participant.duration,
            )
        )

    return rank_participants(summaries)


__all__ = ["aggregate_scores", "rank_participants"]
