"""Initial schema: users, game systems, sessions, participants

Revision ID: 5c1e7a9d2b40
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "5c1e7a9d2b40"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("display_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "game_systems",
        sa.Column("id", sa.String(50), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=True),
    )

    op.create_table(
        "sessions",
        sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column(
            "game_system_id", sa.String(50),
            sa.ForeignKey("game_systems.id"), nullable=False,
        ),
        sa.Column(
            "gm_id", sa.String(64),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("state", sa.String(20), nullable=False, server_default="Published"),
        sa.Column("session_type", sa.String(20), nullable=False, server_default="one-time"),
        sa.Column("planned_sessions", sa.Integer(), server_default="1"),
        sa.Column("date", sa.Date(), nullable=True),
        sa.Column("start_time", sa.Time(), nullable=True),
        sa.Column("end_time", sa.Time(), nullable=True),
        sa.Column("duration", sa.Integer(), nullable=False),
        sa.Column("timezone", sa.String(50), nullable=False, server_default="UTC"),
        sa.Column("decision_date", sa.Date(), nullable=True),
        sa.Column("max_players", sa.Integer(), nullable=False),
        sa.Column("is_online", sa.Boolean(), server_default="false"),
        sa.Column("location", postgresql.JSONB(), nullable=True),
        sa.Column("image_url", sa.String(500), nullable=True),
        sa.Column(
            "character_creation", sa.String(30), nullable=False,
            server_default="pregenerated",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_sessions_date_time", "sessions", ["date", "start_time"])
    op.create_index("ix_sessions_game_system", "sessions", ["game_system_id"])

    op.create_table(
        "time_suggestions",
        sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column(
            "session_id", sa.Integer(),
            sa.ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("time", sa.Time(), nullable=False),
        sa.Column("votes", sa.Integer(), server_default="0"),
    )

    op.create_table(
        "session_participants",
        sa.Column("id", sa.Integer(), autoincrement=True, primary_key=True),
        sa.Column(
            "session_id", sa.Integer(),
            sa.ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "user_id", sa.String(64),
            sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("queue_nr", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(10), nullable=False),
        sa.Column("joined_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("session_id", "queue_nr", name="uq_participants_session_queue"),
    )
    # One live record per (session, user); cancelled rows are history
    op.create_index(
        "ux_participants_live_user",
        "session_participants",
        ["session_id", "user_id"],
        unique=True,
        postgresql_where=sa.text("cancelled_at IS NULL"),
    )
    op.create_index("ix_participants_user", "session_participants", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_participants_user", table_name="session_participants")
    op.drop_index("ux_participants_live_user", table_name="session_participants")
    op.drop_table("session_participants")
    op.drop_table("time_suggestions")
    op.drop_index("ix_sessions_game_system", table_name="sessions")
    op.drop_index("ix_sessions_date_time", table_name="sessions")
    op.drop_table("sessions")
    op.drop_table("game_systems")
    op.drop_table("users")
