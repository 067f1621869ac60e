from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    select,
    text,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from .base import Base
from .id_type import ID_TYPE, new_id

if TYPE_CHECKING:
    from .registration import Registration


class Event(Base):
    """A competition, festival or class hosted by the organizer."""

    __tablename__ = "events"

    id: Mapped[str] = mapped_column(ID_TYPE, primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    location: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    type: Mapped[str] = mapped_column(String(20), nullable=False, default="competition")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="upcoming")
    active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    categories: Mapped[list["EventCategory"]] = relationship(
        back_populates="event",
        cascade="all, delete-orphan",
        order_by="EventCategory.order_index",
    )
    juries: Mapped[list["EventJury"]] = relationship(
        back_populates="event",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return f"<Event(id={self.id}, title={self.title})>"

    @classmethod
    def active_events(cls, session: Session) -> list["Event"]:
        """Return active events, most recently created first."""
        stmt = (
            select(cls)
            .where(cls.active.is_(True))
            .order_by(cls.created_at.desc())
        )
        return list(session.scalars(stmt).all())


class EventCategory(Base):
    """Top-level competition category of an event (e.g. "Classical")."""

    __tablename__ = "event_categories"

    id: Mapped[str] = mapped_column(ID_TYPE, primary_key=True, default=new_id)
    event_id: Mapped[str] = mapped_column(
        ID_TYPE, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    event: Mapped["Event"] = relationship(back_populates="categories")
    subcategories: Mapped[list["EventSubcategory"]] = relationship(
        back_populates="category",
        cascade="all, delete-orphan",
        order_by="EventSubcategory.order_index",
    )


class EventSubcategory(Base):
    """Age or level division within a category; prizes are scoped to it."""

    __tablename__ = "event_subcategories"

    id: Mapped[str] = mapped_column(ID_TYPE, primary_key=True, default=new_id)
    category_id: Mapped[str] = mapped_column(
        ID_TYPE,
        ForeignKey("event_categories.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    age_requirement: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    performance_duration: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    order_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    category: Mapped["EventCategory"] = relationship(back_populates="subcategories")
    registrations: Mapped[list["Registration"]] = relationship(
        back_populates="subcategory"
    )

    @property
    def display_name(self) -> str:
        """Combined "Category - Subcategory (age)" label used in listings."""
        label = f"{self.category.name} - {self.name}"
        if self.age_requirement:
            label += f" ({self.age_requirement})"
        return label


class EventJury(Base):
    """Jury member invited to score an event."""

    __tablename__ = "event_jury"

    id: Mapped[str] = mapped_column(ID_TYPE, primary_key=True, default=new_id)
    event_id: Mapped[str] = mapped_column(
        ID_TYPE, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    event: Mapped["Event"] = relationship(back_populates="juries")


__all__ = ["Event", "EventCategory", "EventSubcategory", "EventJury"]
