"""Teklif, teklif kalemi ve teklif versiyon tablolari

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""
import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "quotes",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("quote_number", sa.String(50), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("customer_kind", sa.String(20), nullable=True),
        sa.Column("customer_id", sa.Uuid(), nullable=True),
        sa.Column("opportunity_id", sa.Uuid(), nullable=True),
        sa.Column("state", sa.String(20), nullable=False, server_default="draft"),
        sa.Column("sub_state", sa.String(20), nullable=False, server_default="in_progress"),
        sa.Column("total_base_amount", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("total_line_amount", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("total_discount", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("total_tax", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("total_amount", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("effective_from", sa.Date(), nullable=True),
        sa.Column("effective_to", sa.Date(), nullable=True),
        sa.Column("closing_notes", sa.Text(), nullable=True),
        sa.Column("closed_on", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by", sa.String(100), nullable=False, server_default="anonymous"),
        sa.Column("created_on", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("modified_on", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint(
            "(customer_kind IS NULL AND customer_id IS NULL) OR "
            "(customer_kind IN ('account', 'contact') AND customer_id IS NOT NULL)",
            name="ck_quotes_customer_ref",
        ),
    )
    op.create_index("ix_quotes_quote_number", "quotes", ["quote_number"], unique=True)
    op.create_index("ix_quotes_customer_id", "quotes", ["customer_id"])
    op.create_index("ix_quotes_opportunity_id", "quotes", ["opportunity_id"])
    op.create_index("ix_quotes_state", "quotes", ["state"])

    op.create_table(
        "quote_lines",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("quote_id", sa.Uuid(), sa.ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("product_id", sa.Uuid(), nullable=True),
        sa.Column("description", sa.String(255), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("manual_discount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("tax", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_quote_lines_quote_id", "quote_lines", ["quote_id"])

    op.create_table(
        "quote_versions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("quote_id", sa.Uuid(), sa.ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("version_number", sa.Integer(), nullable=False),
        sa.Column("change_type", sa.String(30), nullable=False),
        sa.Column("change_description", sa.Text(), nullable=True),
        sa.Column("changed_fields", sa.JSON(), nullable=True),
        sa.Column("change_reason", sa.Text(), nullable=True),
        sa.Column("created_by", sa.String(100), nullable=False, server_default="anonymous"),
        sa.Column("created_on", sa.DateTime(timezone=True), nullable=False),
        sa.Column("version_data", sa.JSON(), nullable=False),
        sa.UniqueConstraint("quote_id", "version_number", name="uq_quote_versions_number"),
    )
    op.create_index("ix_quote_versions_quote_id", "quote_versions", ["quote_id"])
    op.create_index("ix_quote_versions_created_on", "quote_versions", ["created_on"])


def downgrade() -> None:
    op.drop_table("quote_versions")
    op.drop_table("quote_lines")
    op.drop_table("quotes")
