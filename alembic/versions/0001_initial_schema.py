"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 00:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ID = sa.String(length=36)


def _timestamps(*names: str) -> list[sa.Column]:
    return [sa.Column(name, sa.DateTime(timezone=True), nullable=False) for name in names]


def upgrade() -> None:
    op.create_table(
        "events",
        sa.Column("id", ID, nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("location", sa.String(length=255), nullable=False),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_events")),
    )
    op.create_table(
        "event_categories",
        sa.Column("id", ID, nullable=False),
        sa.Column("event_id", ID, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("order_index", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ["event_id"], ["events.id"],
            name=op.f("fk_event_categories_event_id_events"), ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_event_categories")),
    )
    op.create_index(op.f("ix_event_categories_event_id"), "event_categories", ["event_id"])
    op.create_table(
        "event_subcategories",
        sa.Column("id", ID, nullable=False),
        sa.Column("category_id", ID, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("age_requirement", sa.String(length=100), nullable=False),
        sa.Column("performance_duration", sa.String(length=50), nullable=True),
        sa.Column("order_index", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ["category_id"], ["event_categories.id"],
            name=op.f("fk_event_subcategories_category_id_event_categories"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_event_subcategories")),
    )
    op.create_index(
        op.f("ix_event_subcategories_category_id"), "event_subcategories", ["category_id"]
    )
    op.create_table(
        "event_jury",
        sa.Column("id", ID, nullable=False),
        sa.Column("event_id", ID, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.ForeignKeyConstraint(
            ["event_id"], ["events.id"],
            name=op.f("fk_event_jury_event_id_events"), ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_event_jury")),
    )
    op.create_index(op.f("ix_event_jury_event_id"), "event_jury", ["event_id"])
    op.create_table(
        "registrations",
        sa.Column("id", ID, nullable=False),
        sa.Column("event_id", ID, nullable=False),
        sa.Column("category_id", ID, nullable=False),
        sa.Column("subcategory_id", ID, nullable=False),
        sa.Column("participant_name", sa.String(length=255), nullable=False),
        sa.Column("participant_age", sa.Integer(), nullable=True),
        sa.Column("song_title", sa.String(length=255), nullable=True),
        sa.Column("song_duration", sa.String(length=50), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["event_id"], ["events.id"],
            name=op.f("fk_registrations_event_id_events"), ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["category_id"], ["event_categories.id"],
            name=op.f("fk_registrations_category_id_event_categories"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["subcategory_id"], ["event_subcategories.id"],
            name=op.f("fk_registrations_subcategory_id_event_subcategories"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_registrations")),
    )
    for column in ("event_id", "category_id", "subcategory_id"):
        op.create_index(op.f(f"ix_registrations_{column}"), "registrations", [column])
    op.create_table(
        "event_scoring",
        sa.Column("id", ID, nullable=False),
        sa.Column("registration_id", ID, nullable=False),
        sa.Column("category_id", ID, nullable=False),
        sa.Column("subcategory_id", ID, nullable=False),
        sa.Column("jury_id", ID, nullable=False),
        sa.Column("jury_name", sa.String(length=255), nullable=True),
        sa.Column("final_score", sa.Float(), nullable=True),
        sa.Column("remarks", sa.Text(), nullable=True),
        sa.Column("finalized", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        *_timestamps("created_at", "updated_at"),
        sa.ForeignKeyConstraint(
            ["registration_id"], ["registrations.id"],
            name=op.f("fk_event_scoring_registration_id_registrations"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_event_scoring")),
        sa.UniqueConstraint("registration_id", "jury_id", name="uq_event_scoring_jury"),
    )
    for column in ("registration_id", "category_id", "subcategory_id"):
        op.create_index(op.f(f"ix_event_scoring_{column}"), "event_scoring", [column])
    op.create_index(
        "ix_event_scoring_scope", "event_scoring", ["category_id", "subcategory_id"]
    )
    op.create_table(
        "event_scoring_history",
        sa.Column("id", ID, nullable=False),
        sa.Column("table_name", sa.String(length=50), nullable=False),
        sa.Column("record_id", ID, nullable=False),
        sa.Column("operation", sa.String(length=10), nullable=False),
        sa.Column("before_data", sa.JSON(), nullable=True),
        sa.Column("after_data", sa.JSON(), nullable=True),
        sa.Column("changed_by", sa.String(length=255), nullable=False),
        sa.Column("jury_name", sa.String(length=255), nullable=True),
        sa.Column("event_id", ID, nullable=True),
        sa.Column("registration_id", ID, nullable=True),
        sa.Column("participant_name", sa.String(length=255), nullable=True),
        sa.Column("category_id", ID, nullable=True),
        sa.Column("subcategory_id", ID, nullable=True),
        *_timestamps("changed_at"),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_event_scoring_history")),
    )
    for column in ("record_id", "event_id", "registration_id"):
        op.create_index(
            op.f(f"ix_event_scoring_history_{column}"), "event_scoring_history", [column]
        )
    op.create_index(
        "ix_event_scoring_history_changed_at", "event_scoring_history", ["changed_at"]
    )
    op.create_table(
        "event_prize_configurations",
        sa.Column("id", ID, nullable=False),
        sa.Column("event_id", ID, nullable=False),
        sa.Column("category_id", ID, nullable=False),
        sa.Column("subcategory_id", ID, nullable=False),
        sa.Column("prize_level", sa.String(length=100), nullable=False),
        sa.Column("max_winners", sa.Integer(), nullable=False),
        sa.Column("min_score", sa.Float(), nullable=True),
        sa.Column("max_score", sa.Float(), nullable=True),
        sa.Column("display_order", sa.Integer(), nullable=False),
        sa.Column("active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        *_timestamps("created_at", "updated_at"),
        sa.ForeignKeyConstraint(
            ["event_id"], ["events.id"],
            name=op.f("fk_event_prize_configurations_event_id_events"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["category_id"], ["event_categories.id"],
            name=op.f("fk_event_prize_configurations_category_id_event_categories"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["subcategory_id"], ["event_subcategories.id"],
            name=op.f("fk_event_prize_configurations_subcategory_id_event_subcategories"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_event_prize_configurations")),
        sa.UniqueConstraint(
            "event_id", "category_id", "subcategory_id", "display_order",
            name="uq_prize_configuration_display_order",
        ),
    )
    op.create_index(
        op.f("ix_event_prize_configurations_event_id"),
        "event_prize_configurations",
        ["event_id"],
    )
    op.create_table(
        "event_winners",
        sa.Column("id", ID, nullable=False),
        sa.Column("event_id", ID, nullable=False),
        sa.Column("category_id", ID, nullable=False),
        sa.Column("subcategory_id", ID, nullable=False),
        sa.Column("participant_name", sa.String(length=255), nullable=False),
        sa.Column("prize_title", sa.String(length=100), nullable=False),
        *_timestamps("created_at"),
        sa.ForeignKeyConstraint(
            ["event_id"], ["events.id"],
            name=op.f("fk_event_winners_event_id_events"), ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_event_winners")),
    )
    op.create_index(op.f("ix_event_winners_event_id"), "event_winners", ["event_id"])


def downgrade() -> None:
    op.drop_table("event_winners")
    op.drop_table("event_prize_configurations")
    op.drop_table("event_scoring_history")
    op.drop_table("event_scoring")
    op.drop_table("registrations")
    op.drop_table("event_jury")
    op.drop_table("event_subcategories")
    op.drop_table("event_categories")
    op.drop_table("events")
