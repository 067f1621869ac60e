from __future__ import annotations

from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import func, inspect, select

from pianojury.db.engine import make_engine, session_scope
from pianojury.models import Event, PrizeConfiguration, Registration


def upgrade_db(target_revision: str = "head") -> None:
    """Bring the configured database up to ``target_revision``."""
    project_root = Path(__file__).resolve().parents[1]
    alembic_cfg = Config(str(project_root / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(project_root / "alembic"))
    command.upgrade(alembic_cfg, target_revision)


def report(engine) -> None:
    """Print the tables and a few row counts of the migrated database."""
    tables = sorted(inspect(engine).get_table_names())
    print("Tables:", ", ".join(tables))

    with session_scope(engine) as session:
        for model in (Event, Registration, PrizeConfiguration):
            count = session.scalar(select(func.count()).select_from(model))
            print(f"  {model.__tablename__}: {count} rows")


def main() -> None:
    upgrade_db()
    report(make_engine())


if __name__ == "__main__":
    main()
