"""Membership drafts and payment finalization guard."""

from alembic import op
import sqlalchemy as sa


revision = "0001_membership_workflow"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "membership_drafts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("draft_key", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("club_id", sa.Integer(), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("checkout_session_id", sa.String(length=255), nullable=True),
        sa.Column("payment_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "club_id", name="uq_membership_drafts_user_club"),
        sa.UniqueConstraint("checkout_session_id", name="uq_membership_drafts_checkout_session_id"),
    )
    op.create_index("ix_membership_drafts_draft_key", "membership_drafts", ["draft_key"], unique=True)
    op.create_index("ix_membership_drafts_user_id", "membership_drafts", ["user_id"])
    op.create_index("ix_membership_drafts_club_id", "membership_drafts", ["club_id"])
    op.create_index("ix_membership_drafts_payment_id", "membership_drafts", ["payment_id"])

    op.create_table(
        "membership_finalizations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("payment_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("club_id", sa.Integer(), nullable=False),
        sa.Column("draft_key", sa.String(length=36), nullable=True),
        sa.Column("membership_id", sa.Integer(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="in_progress"),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_membership_finalizations_payment_id", "membership_finalizations", ["payment_id"], unique=True)
    op.create_index("ix_membership_finalizations_user_id", "membership_finalizations", ["user_id"])
    op.create_index("ix_membership_finalizations_club_id", "membership_finalizations", ["club_id"])


def downgrade() -> None:
    op.drop_index("ix_membership_finalizations_club_id", table_name="membership_finalizations")
    op.drop_index("ix_membership_finalizations_user_id", table_name="membership_finalizations")
    op.drop_index("ix_membership_finalizations_payment_id", table_name="membership_finalizations")
    op.drop_table("membership_finalizations")
    op.drop_index("ix_membership_drafts_payment_id", table_name="membership_drafts")
    op.drop_index("ix_membership_drafts_club_id", table_name="membership_drafts")
    op.drop_index("ix_membership_drafts_user_id", table_name="membership_drafts")
    op.drop_index("ix_membership_drafts_draft_key", table_name="membership_drafts")
    op.drop_table("membership_drafts")
