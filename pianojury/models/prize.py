"""Database models for prize tiers and recorded winners."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    select,
    text,
)
from sqlalchemy.orm import Mapped, Session, mapped_column

from .base import Base
from .id_type import ID_TYPE, new_id

if TYPE_CHECKING:
    from ..prize_assignment.types import PrizeTierConfig


class PrizeConfiguration(Base):
    """Admin-defined prize band for one (event, category, subcategory) scope."""

    __tablename__ = "event_prize_configurations"

    id: Mapped[str] = mapped_column(ID_TYPE, primary_key=True, default=new_id)
    """Primary key."""

    event_id: Mapped[str] = mapped_column(
        ID_TYPE, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    category_id: Mapped[str] = mapped_column(
        ID_TYPE, ForeignKey("event_categories.id", ondelete="CASCADE"), nullable=False
    )
    subcategory_id: Mapped[str] = mapped_column(
        ID_TYPE,
        ForeignKey("event_subcategories.id", ondelete="CASCADE"),
        nullable=False,
    )

    prize_level: Mapped[str] = mapped_column(String(100), nullable=False)
    """Display label such as ``"1st Place"`` or ``"Honorable Mention"``."""

    max_winners: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    """Cap on winners, overridden only by a leading tie."""

    min_score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    """Inclusive lower bound; ``None`` means unbounded."""

    max_score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    """Inclusive upper bound; ``None`` means unbounded."""

    display_order: Mapped[int] = mapped_column(Integer, nullable=False)
    """Processing rank, lower is processed first."""

    active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true")
    )
    """Inactive tiers are kept for reference but never allocated."""

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

    __table_args__ = (
        UniqueConstraint(
            "event_id",
            "category_id",
            "subcategory_id",
            "display_order",
            name="uq_prize_configuration_display_order",
        ),
    )

    def __init__(
        self,
        *,
        event_id: str,
        category_id: str,
        subcategory_id: str,
        prize_level: str,
        display_order: int,
        max_winners: int = 1,
        min_score: Optional[float] = None,
        max_score: Optional[float] = None,
        active: bool = True,
        id: Optional[str] = None,
    ) -> None:
        if id is not None:
            self.id = id
        self.event_id = event_id
        self.category_id = category_id
        self.subcategory_id = subcategory_id
        self.prize_level = prize_level
        self.display_order = display_order
        self.max_winners = max_winners
        self.min_score = min_score
        self.max_score = max_score
        self.active = active

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<PrizeConfiguration(id={id}, prize_level={level}, display_order={order}, max_winners={cap})>".format(
            id=self.id,
            level=self.prize_level,
            order=self.display_order,
            cap=self.max_winners,
        )

    def to_tier(self) -> "PrizeTierConfig":
        """Return the read-only tier definition consumed by the allocator."""
        from ..prize_assignment.types import PrizeTierConfig

        return PrizeTierConfig(
            id=self.id,
            prize_level=self.prize_level,
            display_order=self.display_order,
            max_winners=self.max_winners,
            min_score=self.min_score,
            max_score=self.max_score,
            active=self.active,
        )

    @classmethod
    def for_scope(
        cls,
        session: Session,
        event_id: str,
        category_id: str,
        subcategory_id: str,
        *,
        active_only: bool = True,
    ) -> list["PrizeConfiguration"]:
        """Return the tiers of a scope ordered by ``display_order``."""
        stmt = select(cls).where(
            cls.event_id == event_id,
            cls.category_id == category_id,
            cls.subcategory_id == subcategory_id,
        )
        if active_only:
            stmt = stmt.where(cls.active.is_(True))
        stmt = stmt.order_by(cls.display_order.asc())
        return list(session.scalars(stmt).all())


class EventWinner(Base):
    """Published winner written when a scope is finalized."""

    __tablename__ = "event_winners"

    id: Mapped[str] = mapped_column(ID_TYPE, primary_key=True, default=new_id)
    event_id: Mapped[str] = mapped_column(
        ID_TYPE, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    category_id: Mapped[str] = mapped_column(ID_TYPE, nullable=False)
    subcategory_id: Mapped[str] = mapped_column(ID_TYPE, nullable=False)
    participant_name: Mapped[str] = mapped_column(String(255), nullable=False)
    prize_title: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )


__all__ = ["PrizeConfiguration", "EventWinner"]
