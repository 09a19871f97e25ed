"""check-in schema init

Revision ID: 5c1e7a9b2d40
Revises:
Create Date: 2026-10-17 09:00:00

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "5c1e7a9b2d40"
down_revision = None
branch_labels = None
depends_on = None


def _person_columns():
    return [
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=40), nullable=True),
        sa.Column("alt_phone", sa.String(length=40), nullable=True),
        sa.Column("role", sa.String(length=30), nullable=True),
        sa.Column("gender", sa.String(length=30), nullable=True),
        sa.Column("avatar", sa.String(length=255), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("family_id", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["family_id"], ["families.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    ]


def upgrade() -> None:
    op.create_table(
        "families",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("family_name", sa.String(length=200), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_families_id", "families", ["id"])

    for table in ("users", "elders"):
        op.create_table(table, *_person_columns())
        op.create_index(f"ix_{table}_id", table, ["id"])
        op.create_index(f"ix_{table}_family_id", table, ["family_id"])

    op.create_table(
        "ministries",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_ministries_id", "ministries", ["id"])
    op.create_index("uq_ministries_name_lower", "ministries", [sa.text("lower(name)")], unique=True)

    op.create_table(
        "user_ministries",
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("ministry_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["ministry_id"], ["ministries.id"]),
        sa.PrimaryKeyConstraint("user_id", "ministry_id"),
    )
    op.create_index("ix_user_ministries_ministry_id", "user_ministries", ["ministry_id"])

    op.create_table(
        "elder_ministries",
        sa.Column("elder_id", sa.Integer(), nullable=False),
        sa.Column("ministry_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["elder_id"], ["elders.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["ministry_id"], ["ministries.id"]),
        sa.PrimaryKeyConstraint("elder_id", "ministry_id"),
    )
    op.create_index("ix_elder_ministries_ministry_id", "elder_ministries", ["ministry_id"])

    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("event_date", sa.Date(), nullable=False),
        sa.Column("event_time", sa.Time(), nullable=True),
        sa.Column("location", sa.String(length=200), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_events_id", "events", ["id"])
    op.create_index("ix_events_event_date", "events", ["event_date"])

    op.create_table(
        "check_ins",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("elder_id", sa.Integer(), nullable=True),
        sa.Column("checkin_time", sa.DateTime(), nullable=False),
        sa.Column("is_elder", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.CheckConstraint("(user_id IS NULL) <> (elder_id IS NULL)", name="ck_check_ins_one_person"),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["elder_id"], ["elders.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_check_ins_id", "check_ins", ["id"])
    op.create_index("ix_check_ins_event_id", "check_ins", ["event_id"])
    op.create_index("ix_check_ins_user_id", "check_ins", ["user_id"])
    op.create_index("ix_check_ins_elder_id", "check_ins", ["elder_id"])

    op.create_table(
        "admins",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=40), nullable=True),
        sa.Column("username", sa.String(length=100), nullable=False),
        sa.Column("password_hash", sa.String(length=100), nullable=False),
        sa.Column("role", sa.String(length=30), nullable=False, server_default="admin"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_admins_id", "admins", ["id"])
    op.create_index("ix_admins_username", "admins", ["username"], unique=True)

    op.create_table(
        "kiosks",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("code", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code"),
    )
    op.create_index("ix_kiosks_id", "kiosks", ["id"])


def downgrade() -> None:
    op.drop_table("kiosks")
    op.drop_table("admins")
    op.drop_table("check_ins")
    op.drop_table("events")
    op.drop_table("elder_ministries")
    op.drop_table("user_ministries")
    op.drop_index("uq_ministries_name_lower", table_name="ministries")
    op.drop_table("ministries")
    op.drop_table("elders")
    op.drop_table("users")
    op.drop_table("families")
