"""Homepage campaign sections

Revision ID: 002_sections
Revises: 001_initial
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "002_sections"
down_revision: Union[str, None] = "001_initial"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "sections",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("type", sa.String(10), nullable=False, server_default="image"),
        sa.Column("order", sa.Integer, nullable=False, server_default=sa.text("0")),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("heading", sa.String(255)),
        sa.Column("subheading", sa.String(500)),
        sa.Column("media_url", sa.String(500), nullable=False),
        sa.Column("link", sa.String(500)),
        sa.Column("product_ids", postgresql.JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_sections_order", "sections", ["order"])


def downgrade() -> None:
    op.drop_index("ix_sections_order", table_name="sections")
    op.drop_table("sections")
