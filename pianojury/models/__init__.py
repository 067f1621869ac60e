from .base import Base

# import models so Alembic/autoloaders can discover mappers
from .event import Event, EventCategory, EventSubcategory, EventJury  # noqa: F401
from .registration import Registration  # noqa: F401
from .scoring import EventScoring, EventScoringHistory  # noqa: F401
from .prize import PrizeConfiguration, EventWinner  # noqa: F401

__all__ = [
    "Base",
    "Event",
    "EventCategory",
    "EventSubcategory",
    "EventJury",
    "Registration",
    "EventScoring",
    "EventScoringHistory",
    "PrizeConfiguration",
    "EventWinner",
]
