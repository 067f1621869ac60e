"""Database models for jury scores and their audit trail."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    select,
    text,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from .base import Base
from .id_type import ID_TYPE, new_id

if TYPE_CHECKING:
    from .registration import Registration
    from ..prize_assignment.types import RawScoreRow


class EventScoring(Base):
    """One jury member's score for one registration."""

    __tablename__ = "event_scoring"

    id: Mapped[str] = mapped_column(ID_TYPE, primary_key=True, default=new_id)
    """Primary key."""

    registration_id: Mapped[str] = mapped_column(
        ID_TYPE,
        ForeignKey("registrations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    """Registration (participant) being scored."""

    category_id: Mapped[str] = mapped_column(ID_TYPE, nullable=False, index=True)
    """Denormalized category id so a whole scope can be finalized in one update."""

    subcategory_id: Mapped[str] = mapped_column(ID_TYPE, nullable=False, index=True)
    """Denormalized subcategory id."""

    jury_id: Mapped[str] = mapped_column(ID_TYPE, nullable=False)
    """Identity of the jury member, issued by the external identity provider."""

    jury_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    """Display name of the jury member at scoring time."""

    final_score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    """Score in ``(0, 100]`` with one decimal; ``None`` while a draft."""

    remarks: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    """Free-form comments for the participant."""

    finalized: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    """Set once an administrator locks the scope."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    registration: Mapped["Registration"] = relationship(back_populates="scorings")

    __table_args__ = (
        UniqueConstraint("registration_id", "jury_id", name="uq_event_scoring_jury"),
        Index("ix_event_scoring_scope", "category_id", "subcategory_id"),
    )

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<EventScoring(id={id}, registration_id={reg}, jury_id={jury}, final_score={score}, finalized={fin})>".format(
            id=self.id,
            reg=self.registration_id,
            jury=self.jury_id,
            score=self.final_score,
            fin=self.finalized,
        )

    def to_snapshot(self) -> dict:
        """Return the column values recorded in the scoring history."""
        return {
            "id": self.id,
            "registration_id": self.registration_id,
            "category_id": self.category_id,
            "subcategory_id": self.subcategory_id,
            "jury_id": self.jury_id,
            "jury_name": self.jury_name,
            "final_score": self.final_score,
            "remarks": self.remarks,
            "finalized": self.finalized,
        }

    def to_raw_row(self) -> "RawScoreRow":
        from ..prize_assignment.types import RawScoreRow

        return RawScoreRow(
            id=self.id,
            participant_id=self.registration_id,
            jury_id=self.jury_id,
            jury_name=self.jury_name or "Unknown Jury",
            score=self.final_score,
            finalized=bool(self.finalized),
        )

    @classmethod
    def get_for_jury(
        cls, session: Session, registration_id: str, jury_id: str
    ) -> Optional["EventScoring"]:
        """Return the score row of ``jury_id`` for ``registration_id`` if any."""
        return session.scalar(
            select(cls).where(
                cls.registration_id == registration_id,
                cls.jury_id == jury_id,
            )
        )


class EventScoringHistory(Base):
    """Append-only audit log of changes to scoring rows."""

    __tablename__ = "event_scoring_history"

    id: Mapped[str] = mapped_column(ID_TYPE, primary_key=True, default=new_id)
    table_name: Mapped[str] = mapped_column(String(50), nullable=False)
    record_id: Mapped[str] = mapped_column(ID_TYPE, nullable=False, index=True)
    operation: Mapped[str] = mapped_column(String(10), nullable=False)
    before_data: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    after_data: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    changed_by: Mapped[str] = mapped_column(String(255), nullable=False)
    jury_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    event_id: Mapped[Optional[str]] = mapped_column(ID_TYPE, nullable=True, index=True)
    registration_id: Mapped[Optional[str]] = mapped_column(
        ID_TYPE, nullable=True, index=True
    )
    participant_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    category_id: Mapped[Optional[str]] = mapped_column(ID_TYPE, nullable=True)
    subcategory_id: Mapped[Optional[str]] = mapped_column(ID_TYPE, nullable=True)
    changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        Index("ix_event_scoring_history_changed_at", "changed_at"),
    )


__all__ = ["EventScoring", "EventScoringHistory"]
