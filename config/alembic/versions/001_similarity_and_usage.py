"""Add ticket similarity cache, support tickets and AI usage log tables.

Revision ID: 001_similarity_usage
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

revision = "001_similarity_usage"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "support_tickets",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("resolution", sa.Text(), nullable=True),
        sa.Column("status", sa.String(32), nullable=False, server_default="open"),
        sa.Column("priority", sa.String(16), nullable=False, server_default="medium"),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_index("ix_support_tickets_status", "support_tickets", ["status"])

    op.create_table(
        "ticket_similarity",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("source_ticket_id", sa.String(), nullable=False),
        sa.Column("similar_ticket_id", sa.String(), nullable=False),
        sa.Column("similarity_score", sa.Integer(), nullable=False),
        sa.Column("match_type", sa.String(16), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.CheckConstraint(
            "match_type IN ('active', 'historical')",
            name="ck_ticket_similarity_valid_match_type",
        ),
        sa.CheckConstraint(
            "similarity_score >= 0 AND similarity_score <= 100",
            name="ck_ticket_similarity_similarity_score_range",
        ),
    )
    op.create_index(
        "ix_ticket_similarity_source_match_type",
        "ticket_similarity",
        ["source_ticket_id", "match_type"],
    )
    op.create_index("ix_ticket_similarity_expires_at", "ticket_similarity", ["expires_at"])

    op.create_table(
        "ai_usage_log",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("operation", sa.String(), nullable=False),
        sa.Column("model", sa.String(), nullable=False),
        sa.Column("prompt_tokens", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("completion_tokens", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_tokens", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("estimated_cost_usd", sa.Float(), nullable=False, server_default="0.0"),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_index("ix_ai_usage_log_operation", "ai_usage_log", ["operation"])


def downgrade() -> None:
    op.drop_index("ix_ai_usage_log_operation")
    op.drop_table("ai_usage_log")
    op.drop_index("ix_ticket_similarity_expires_at")
    op.drop_index("ix_ticket_similarity_source_match_type")
    op.drop_table("ticket_similarity")
    op.drop_index("ix_support_tickets_status")
    op.drop_table("support_tickets")
