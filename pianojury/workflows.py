from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
import logging
import os
from typing import Iterable, Optional, Sequence, Union

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from .history import SCORING_TABLE, log_scoring_history
from .models import EventScoring, EventWinner, PrizeConfiguration, Registration
from .prize_assignment import (
    DEFAULT_TIE_PRECISION,
    AssignmentResult,
    ProjectedResults,
    PrizeTierConfig,
    ScoredParticipant,
    aggregate_scores,
    compute_prize_assignments,
    project_results,
)
from .sources import PrizeConfigSource, Scope, ScoreSource

logger = logging.getLogger(__name__)

# Marks an omitted tie_precision; None is a real value (exact comparison).
UNSET = object()

MIN_SCORE_EXCLUSIVE = 0.0
MAX_SCORE = 100.0


class PrizeConfigurationError(ValueError):
    """Raised when a prize tier would leave its scope inconsistent."""


class ScoreValidationError(ValueError):
    """Raised when a submitted score is missing or out of range."""


class ScoresFinalizedError(RuntimeError):
    """Raised when writing to a scope whose scores are locked."""


def default_tie_precision() -> Optional[int]:
    """Return the tie precision configured via ``PIANOJURY_TIE_PRECISION``.

    ``none`` selects exact float comparison; unset falls back to one
    decimal place.
    """
    raw = os.getenv("PIANOJURY_TIE_PRECISION")
    if raw is None or not raw.strip():
        return DEFAULT_TIE_PRECISION
    if raw.strip().lower() == "none":
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(
            f"PIANOJURY_TIE_PRECISION must be an integer or 'none', got {raw!r}"
        ) from exc


# -------- scoring --------


def normalize_score(value: Optional[float]) -> float:
    """Round a jury score to one decimal place and check it is in (0, 100].

    Raises
    ------
    ScoreValidationError
        If ``value`` is missing, not numeric, or outside the accepted range.
    """
    if value is None:
        raise ScoreValidationError("Please enter a score")
    try:
        rounded = Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise ScoreValidationError(f"Score must be a number, got {value!r}") from exc
    if not rounded.is_finite():
        raise ScoreValidationError(f"Score must be a number, got {value!r}")
    score = float(rounded)
    if score <= MIN_SCORE_EXCLUSIVE or score > MAX_SCORE:
        raise ScoreValidationError("Score must be greater than 0 and at most 100")
    return score


def submit_score(
    session: Session,
    registration: Registration,
    *,
    jury_id: str,
    jury_name: str,
    score: Optional[float],
    remarks: Optional[str] = None,
) -> EventScoring:
    """Create or update ``jury_id``'s score for ``registration``.

    The score is normalized with :func:`normalize_score` and the change is
    written to the scoring history.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session.
    registration : Registration
        Persisted registration being scored.
    jury_id : str
        Identity of the jury member submitting the score.
    jury_name : str
        Display name stored alongside the score.
    score : Optional[float]
        Submitted score; must be in ``(0, 100]``.
    remarks : Optional[str]
        Optional comments; blank strings are stored as ``None``.

    Returns
    -------
    EventScoring
        The inserted or updated row.

    Raises
    ------
    ValueError
        If the registration has not been persisted.
    ScoreValidationError
        If the score is invalid.
    ScoresFinalizedError
        If the jury's existing score has been finalized.
    """
    if registration.id is None:
        raise ValueError("Registration must be persisted before it can be scored")

    final_score = normalize_score(score)
    remarks = remarks.strip() if remarks and remarks.strip() else None

    scoring = EventScoring.get_for_jury(session, registration.id, jury_id)
    if scoring is not None and scoring.finalized:
        raise ScoresFinalizedError(
            "Scores for this participant have been finalized and can no longer be edited"
        )

    before_data = None
    if scoring is None:
        operation = "INSERT"
        scoring = EventScoring(
            registration_id=registration.id,
            category_id=registration.category_id,
            subcategory_id=registration.subcategory_id,
            jury_id=jury_id,
        )
        session.add(scoring)
    else:
        operation = "UPDATE"
        before_data = scoring.to_snapshot()

    scoring.jury_name = jury_name
    scoring.final_score = final_score
    scoring.remarks = remarks
    session.flush()

    log_scoring_history(
        session,
        table_name=SCORING_TABLE,
        record_id=scoring.id,
        operation=operation,
        before_data=before_data,
        after_data=scoring.to_snapshot(),
        changed_by=jury_id,
        jury_name=jury_name,
        event_id=registration.event_id,
        registration_id=registration.id,
        participant_name=registration.participant_name,
    )
    return scoring


# -------- prize configuration --------


def _ranges_overlap(a: PrizeTierConfig, b: PrizeTierConfig) -> bool:
    """Inclusive overlap test; only fully bounded ranges can overlap."""
    bounds = (a.min_score, a.max_score, b.min_score, b.max_score)
    if any(bound is None for bound in bounds):
        return False
    return a.min_score <= b.max_score and a.max_score >= b.min_score


def validate_prize_tier(
    candidate: PrizeTierConfig,
    existing: Iterable[PrizeTierConfig],
    *,
    editing_id: Optional[str] = None,
) -> None:
    """Check that ``candidate`` can join the tiers already in its scope.

    Parameters
    ----------
    candidate : PrizeTierConfig
        Tier about to be created or saved.
    existing : Iterable[PrizeTierConfig]
        Tiers currently stored for the same scope. Display orders are
        unique across all of them; ranges only have to be disjoint among
        active tiers.
    editing_id : Optional[str]
        Id of the tier being edited, excluded from the comparison.

    Raises
    ------
    PrizeConfigurationError
        If the prize level is blank, ``max_winners`` is below one, the
        minimum exceeds the maximum, the range overlaps another tier, or
        the display order is already taken.
    """
    if not candidate.prize_level or not candidate.prize_level.strip():
        raise PrizeConfigurationError("Prize level is required")
    if candidate.max_winners < 1:
        raise PrizeConfigurationError("Maximum winners must be at least 1")
    if (
        candidate.min_score is not None
        and candidate.max_score is not None
        and candidate.min_score > candidate.max_score
    ):
        raise PrizeConfigurationError(
            "Minimum score cannot be greater than maximum score"
        )

    for other in existing:
        if editing_id is not None and other.id == editing_id:
            continue
        if other.display_order == candidate.display_order:
            raise PrizeConfigurationError(
                f"Display order {candidate.display_order} is already used by "
                f"'{other.prize_level}'"
            )
        if not (candidate.active and other.active):
            continue
        if _ranges_overlap(candidate, other):
            raise PrizeConfigurationError(
                f"Score range overlaps with existing prize configuration "
                f"'{other.prize_level}'"
            )


def _scope_tiers(session: Session, scope: Scope) -> list[PrizeTierConfig]:
    return [
        config.to_tier()
        for config in PrizeConfiguration.for_scope(
            session,
            scope.event_id,
            scope.category_id,
            scope.subcategory_id,
            active_only=False,
        )
    ]


def create_prize_tier(
    session: Session,
    scope: Scope,
    *,
    prize_level: str,
    display_order: int,
    max_winners: int = 1,
    min_score: Optional[float] = None,
    max_score: Optional[float] = None,
) -> PrizeConfiguration:
    """Validate and persist a new active prize tier for ``scope``."""
    candidate = PrizeTierConfig(
        prize_level=prize_level,
        display_order=display_order,
        max_winners=max_winners,
        min_score=min_score,
        max_score=max_score,
    )
    validate_prize_tier(candidate, _scope_tiers(session, scope))

    config = PrizeConfiguration(
        event_id=scope.event_id,
        category_id=scope.category_id,
        subcategory_id=scope.subcategory_id,
        prize_level=prize_level.strip(),
        display_order=display_order,
        max_winners=max_winners,
        min_score=min_score,
        max_score=max_score,
    )
    session.add(config)
    session.flush()
    logger.info(f"Created prize tier '{config.prize_level}' ({config.id})")
    return config


_EDITABLE_TIER_FIELDS = frozenset(
    {"prize_level", "display_order", "max_winners", "min_score", "max_score", "active"}
)


def update_prize_tier(
    session: Session, config: PrizeConfiguration, **changes
) -> PrizeConfiguration:
    """Apply ``changes`` to ``config`` after validating the resulting tier.

    Only ``prize_level``, ``display_order``, ``max_winners``, ``min_score``,
    ``max_score`` and ``active`` may be changed.
    """
    unknown = set(changes) - _EDITABLE_TIER_FIELDS
    if unknown:
        raise ValueError(f"Cannot update prize tier fields: {sorted(unknown)}")
    if config.id is None:
        raise ValueError("Prize configuration must be persisted before updating")
    if isinstance(changes.get("prize_level"), str):
        changes["prize_level"] = changes["prize_level"].strip()

    current = config.to_tier()
    candidate = PrizeTierConfig(
        id=config.id,
        prize_level=changes.get("prize_level", current.prize_level),
        display_order=changes.get("display_order", current.display_order),
        max_winners=changes.get("max_winners", current.max_winners),
        min_score=changes.get("min_score", current.min_score),
        max_score=changes.get("max_score", current.max_score),
        active=changes.get("active", current.active),
    )
    scope = Scope(config.event_id, config.category_id, config.subcategory_id)
    validate_prize_tier(candidate, _scope_tiers(session, scope), editing_id=config.id)

    for name, value in changes.items():
        setattr(config, name, value)
    session.flush()
    return config


def delete_prize_tier(session: Session, config: PrizeConfiguration) -> None:
    session.delete(config)
    session.flush()


def copy_prize_tiers(
    session: Session,
    source: Scope,
    targets: Iterable[Scope],
) -> dict[Scope, list[PrizeConfiguration]]:
    """Replace the tiers of every target scope with copies of ``source``'s.

    Existing tiers of a target are deleted first. The source scope is
    skipped if it appears among the targets.

    Raises
    ------
    ValueError
        If the source scope has no active tiers.
    """
    source_configs = PrizeConfiguration.for_scope(
        session, source.event_id, source.category_id, source.subcategory_id
    )
    if not source_configs:
        raise ValueError("Source scope has no prize configurations to copy")

    copied: dict[Scope, list[PrizeConfiguration]] = {}
    for target in targets:
        if target == source:
            continue
        session.execute(
            delete(PrizeConfiguration).where(
                PrizeConfiguration.event_id == target.event_id,
                PrizeConfiguration.category_id == target.category_id,
                PrizeConfiguration.subcategory_id == target.subcategory_id,
            )
        )
        clones = [
            PrizeConfiguration(
                event_id=target.event_id,
                category_id=target.category_id,
                subcategory_id=target.subcategory_id,
                prize_level=config.prize_level,
                display_order=config.display_order,
                max_winners=config.max_winners,
                min_score=config.min_score,
                max_score=config.max_score,
                active=config.active,
            )
            for config in source_configs
        ]
        session.add_all(clones)
        copied[target] = clones

    session.flush()
    logger.info(
        f"Copied {len(source_configs)} prize tiers to {len(copied)} scopes"
    )
    return copied


# -------- results --------


@dataclass(frozen=True)
class ScopeResults:
    """Everything the results view needs for one scope snapshot.

    Attributes
    ----------
    scope : Scope
        Scope the snapshot was taken for.
    participants : list[ScoredParticipant]
        Aggregated participants in descending average order.
    tiers : list[PrizeTierConfig]
        Active tiers the allocation ran with.
    assignment : AssignmentResult
        Allocator output.
    projected : ProjectedResults
        Display/export rows and tier summaries.
    """

    scope: Scope
    participants: list[ScoredParticipant]
    tiers: list[PrizeTierConfig]
    assignment: AssignmentResult
    projected: ProjectedResults

    @property
    def is_finalized(self) -> bool:
        return any(participant.is_finalized for participant in self.participants)


def load_scored_participants(
    score_source: ScoreSource, scope: Scope
) -> list[ScoredParticipant]:
    """Fetch participants and score rows of ``scope`` and aggregate them."""
    participants = score_source.participants(scope)
    rows = score_source.score_rows([participant.id for participant in participants])
    logger.debug(
        f"Aggregating {len(rows)} score rows for {len(participants)} participants"
    )
    return aggregate_scores(participants, rows)


def load_prize_tiers(
    config_source: PrizeConfigSource, scope: Scope
) -> list[PrizeTierConfig]:
    """Return the active tiers of ``scope`` ordered by ``display_order``."""
    tiers = [tier for tier in config_source.prize_tiers(scope) if tier.active]
    return sorted(tiers, key=lambda tier: tier.display_order)


def compute_scope_results(
    score_source: ScoreSource,
    config_source: PrizeConfigSource,
    scope: Scope,
    *,
    tie_precision: Union[int, None, object] = UNSET,
) -> ScopeResults:
    """Run aggregation, allocation and projection on a fresh snapshot.

    Parameters
    ----------
    score_source : ScoreSource
        Source of participants and jury score rows.
    config_source : PrizeConfigSource
        Source of prize tiers.
    scope : Scope
        Scope to compute.
    tie_precision : Optional[int]
        Decimal places for tie grouping, ``None`` for exact comparison.
        When omitted the value from :func:`default_tie_precision` is used.

    Returns
    -------
    ScopeResults
        The complete, freshly computed snapshot.
    """
    precision = default_tie_precision() if tie_precision is UNSET else tie_precision
    participants = load_scored_participants(score_source, scope)
    tiers = load_prize_tiers(config_source, scope)
    assignment = compute_prize_assignments(participants, tiers, tie_precision=precision)
    return ScopeResults(
        scope=scope,
        participants=participants,
        tiers=tiers,
        assignment=assignment,
        projected=project_results(assignment),
    )


def _title_case(value: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in value.lower().split())


def finalize_scores(
    session: Session,
    scope: Scope,
    winners: Sequence[ScoredParticipant],
) -> list[EventWinner]:
    """Lock every score of ``scope`` and publish its prize winners.

    Participants without a ``prize_level`` are ignored. When at least one
    winner remains, the scope's previously published winners are replaced.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session.
    scope : Scope
        Scope to finalize.
    winners : Sequence[ScoredParticipant]
        Allocator output, typically ``ScopeResults.assignment.participants``.

    Returns
    -------
    list[EventWinner]
        Newly written winner rows.

    Raises
    ------
    ScoresFinalizedError
        If any score in the scope is already finalized.
    """
    already_finalized = session.scalar(
        select(EventScoring.id).where(
            EventScoring.category_id == scope.category_id,
            EventScoring.subcategory_id == scope.subcategory_id,
            EventScoring.finalized.is_(True),
        ).limit(1)
    )
    if already_finalized is not None:
        raise ScoresFinalizedError("Scores for this category are already finalized")

    session.execute(
        update(EventScoring)
        .where(
            EventScoring.category_id == scope.category_id,
            EventScoring.subcategory_id == scope.subcategory_id,
        )
        .values(finalized=True),
        execution_options={"synchronize_session": "fetch"},
    )

    rows = [
        EventWinner(
            event_id=scope.event_id,
            category_id=scope.category_id,
            subcategory_id=scope.subcategory_id,
            participant_name=_title_case(winner.name),
            prize_title=winner.prize_level,
        )
        for winner in winners
        if winner.prize_level
    ]
    if rows:
        session.execute(
            delete(EventWinner).where(
                EventWinner.event_id == scope.event_id,
                EventWinner.category_id == scope.category_id,
                EventWinner.subcategory_id == scope.subcategory_id,
            )
        )
        session.add_all(rows)
    session.flush()
    logger.info(
        f"Finalized scores for {scope.category_id}/{scope.subcategory_id} "
        f"with {len(rows)} winners"
    )
    return rows


__all__ = [
    "PrizeConfigurationError",
    "ScopeResults",
    "ScoreValidationError",
    "ScoresFinalizedError",
    "compute_scope_results",
    "copy_prize_tiers",
    "create_prize_tier",
    "default_tie_precision",
    "delete_prize_tier",
    "finalize_scores",
    "load_prize_tiers",
    "load_scored_participants",
    "normalize_score",
    "submit_score",
    "update_prize_tier",
    "validate_prize_tier",
]
