from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import sessionmaker

from pianojury.db.engine import make_engine
from pianojury.models import (
    Base,
    Event,
    EventCategory,
    EventJury,
    EventSubcategory,
    Registration,
)
from pianojury.sources import Scope
from pianojury.workflows import create_prize_tier, submit_score

PARTICIPANTS = [
    # name, piece, scores by jury index
    ("alice tan", "Chopin - Nocturne Op. 9 No. 2", (92.5, 91.0, 93.0)),
    ("ben wong", "Bach - Invention No. 8", (88.0, 89.5, 87.5)),
    ("chloe lim", "Debussy - Clair de Lune", (88.0, 89.5, 87.5)),
    ("daniel ho", "Mozart - Sonata K. 545, I", (84.0, 85.5, 83.0)),
    ("eva ng", "Schumann - Traumerei", (76.5, 78.0, 75.0)),
    ("farah ali", "Grieg - Arietta", None),
]


def main() -> None:
    """Reset the development database and fill it with one scored scope."""
    engine = make_engine()

    # SQLite cannot drop the category/subcategory tables in dependency order
    # while foreign keys are enforced.
    with engine.connect() as conn:
        conn.exec_driver_sql("PRAGMA foreign_keys=OFF")
        Base.metadata.drop_all(bind=conn)
        conn.exec_driver_sql("PRAGMA foreign_keys=ON")

    Base.metadata.create_all(engine)
    Session = sessionmaker(bind=engine)

    now = datetime.now(timezone.utc)

    with Session.begin() as session:
        event = Event(
            title="Spring Piano Competition",
            location="Concert Hall",
            status="ongoing",
        )
        category = EventCategory(name="Classical", order_index=0)
        subcategory = EventSubcategory(
            name="Junior", age_requirement="8-12 years", order_index=0
        )
        category.subcategories.append(subcategory)
        event.categories.append(category)
        juries = [
            EventJury(name="Jury One", title="Professor"),
            EventJury(name="Jury Two", title="Concert Pianist"),
            EventJury(name="Jury Three", title="Teacher"),
        ]
        event.juries.extend(juries)
        session.add(event)
        session.flush()

        scope = Scope(event.id, category.id, subcategory.id)
        create_prize_tier(
            session, scope, prize_level="1st Place", display_order=1, min_score=90
        )
        create_prize_tier(
            session,
            scope,
            prize_level="2nd Place",
            display_order=2,
            max_winners=2,
            min_score=85,
            max_score=89.9,
        )
        create_prize_tier(
            session,
            scope,
            prize_level="Honorable Mention",
            display_order=3,
            max_winners=3,
            min_score=75,
            max_score=84.9,
        )

        for offset, (name, piece, scores) in enumerate(PARTICIPANTS):
            registration = Registration(
                event_id=event.id,
                category_id=category.id,
                subcategory_id=subcategory.id,
                participant_name=name,
                song_title=piece,
                song_duration="3:30",
                status="confirmed",
                created_at=now + timedelta(minutes=offset),
            )
            session.add(registration)
            session.flush()
            if scores is None:
                continue
            for jury, score in zip(juries, scores):
                submit_score(
                    session,
                    registration,
                    jury_id=jury.id,
                    jury_name=jury.name,
                    score=score,
                )

    print("Development database seeded.")


if __name__ == "__main__":
    main()
