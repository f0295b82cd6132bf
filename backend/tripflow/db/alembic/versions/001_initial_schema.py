"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-19

Creates the trip table: phase flags, structured JSON fields, progress
columns and the optimistic concurrency version.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

json_type = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    """Create trip table."""
    op.create_table(
        "trip",
        sa.Column("trip_id", sa.Text(), primary_key=True),
        sa.Column("theme", sa.Text(), nullable=True),
        sa.Column("intake", json_type, nullable=False),
        sa.Column("status", sa.Text(), nullable=False),
        sa.Column("research_destinations", json_type, nullable=True),
        sa.Column("research_summary", json_type, nullable=True),
        sa.Column("destinations_confirmed", sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column("confirmed_destinations", json_type, nullable=False),
        sa.Column("preferences", json_type, nullable=False),
        sa.Column("options", json_type, nullable=True),
        sa.Column("selected_option_index", sa.Integer(), nullable=True),
        sa.Column("itinerary", json_type, nullable=True),
        sa.Column("variants", json_type, nullable=False),
        sa.Column("handoff_payload", json_type, nullable=True),
        sa.Column("progress_step", sa.Text(), nullable=False),
        sa.Column("progress_message", sa.Text(), nullable=False),
        sa.Column("progress_percent", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("version", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("idx_trip_status_updated", "trip", ["status", "updated_at"])


def downgrade() -> None:
    """Drop trip table."""
    op.drop_index("idx_trip_status_updated", table_name="trip")
    op.drop_table("trip")
