from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, select
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from .base import Base
from .id_type import ID_TYPE, new_id

if TYPE_CHECKING:
    from .event import EventSubcategory
    from .scoring import EventScoring
    from ..prize_assignment.types import ParticipantRef


class Registration(Base):
    """A participant entered into one (event, category, subcategory) scope."""

    __tablename__ = "registrations"

    id: Mapped[str] = mapped_column(ID_TYPE, primary_key=True, default=new_id)
    event_id: Mapped[str] = mapped_column(
        ID_TYPE, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    category_id: Mapped[str] = mapped_column(
        ID_TYPE,
        ForeignKey("event_categories.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    subcategory_id: Mapped[str] = mapped_column(
        ID_TYPE,
        ForeignKey("event_subcategories.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    participant_name: Mapped[str] = mapped_column(String(255), nullable=False)
    participant_age: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    song_title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    song_duration: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    status: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )

    subcategory: Mapped["EventSubcategory"] = relationship(
        back_populates="registrations"
    )
    scorings: Mapped[list["EventScoring"]] = relationship(
        back_populates="registration",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<Registration(id={id}, participant_name={name})>".format(
            id=self.id, name=self.participant_name
        )

    def to_participant_ref(self) -> "ParticipantRef":
        """Return the identity the score aggregator works with."""
        from ..prize_assignment.types import ParticipantRef

        return ParticipantRef(
            id=self.id,
            name=self.participant_name,
            piece=self.song_title or "Not specified",
            duration=self.song_duration or "Not specified",
        )

    @classmethod
    def for_scope(
        cls, session: Session, category_id: str, subcategory_id: str
    ) -> list["Registration"]:
        """Return registrations of a scope in registration order."""
        stmt = (
            select(cls)
            .where(
                cls.category_id == category_id,
                cls.subcategory_id == subcategory_id,
            )
            .order_by(cls.created_at.asc(), cls.id.asc())
        )
        return list(session.scalars(stmt).all())


__all__ = ["Registration"]
