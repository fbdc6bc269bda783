"""Teklif sablonlari tablosu

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-19
"""
import sqlalchemy as sa
from alembic import op

revision = "0002"
down_revision = "0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "quote_templates",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(20), nullable=False, server_default="standard"),
        sa.Column("template_data", sa.JSON(), nullable=False),
        sa.Column("owner", sa.String(100), nullable=False, server_default="anonymous"),
        sa.Column("is_shared", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("usage_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_on", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("modified_on", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_quote_templates_category", "quote_templates", ["category"])
    op.create_index("ix_quote_templates_owner", "quote_templates", ["owner"])


def downgrade() -> None:
    op.drop_table("quote_templates")
