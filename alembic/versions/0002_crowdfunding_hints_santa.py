"""crowdfunding, gift hints and secret santa

Revision ID: 0002_crowdfunding_hints_santa
Revises: 0001_initial
Create Date: 2026-10-19 18:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0002_crowdfunding_hints_santa"
down_revision: Union[str, None] = "0001_initial"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "crowdfunding",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("item_id", sa.Integer(), nullable=False),
        sa.Column("target_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("current_amount", sa.Numeric(12, 2), server_default="0", nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default="true", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("target_amount > 0", name="ck_crowdfunding_target_positive"),
        sa.ForeignKeyConstraint(["item_id"], ["wishlist_items.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("item_id"),
    )
    op.create_index(op.f("ix_crowdfunding_id"), "crowdfunding", ["id"], unique=False)

    op.create_table(
        "crowdfunding_contributors",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("crowdfunding_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.BIGINT(), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("contributed_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("amount > 0", name="ck_crowdfunding_contributors_amount_positive"),
        sa.ForeignKeyConstraint(["crowdfunding_id"], ["crowdfunding.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_crowdfunding_contributors_id"), "crowdfunding_contributors", ["id"], unique=False)
    op.create_index(op.f("ix_crowdfunding_contributors_crowdfunding_id"), "crowdfunding_contributors", ["crowdfunding_id"], unique=False)
    op.create_index(op.f("ix_crowdfunding_contributors_user_id"), "crowdfunding_contributors", ["user_id"], unique=False)

    op.create_table(
        "gift_hints",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.BIGINT(), nullable=False),
        sa.Column("about_user_id", sa.BIGINT(), nullable=True),
        sa.Column("about_name", sa.String(), nullable=False),
        sa.Column("about_username", sa.String(), nullable=True),
        sa.Column("hint_text", sa.Text(), nullable=True),
        sa.Column("message_type", sa.String(), server_default="text", nullable=False),
        sa.Column("media_file_id", sa.String(), nullable=True),
        sa.Column("telegram_message_id", sa.BIGINT(), nullable=True),
        sa.Column("telegram_chat_id", sa.BIGINT(), nullable=True),
        sa.Column("forward_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(), server_default="active", nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_gift_hints_id"), "gift_hints", ["id"], unique=False)
    op.create_index(op.f("ix_gift_hints_user_id"), "gift_hints", ["user_id"], unique=False)
    op.create_index(op.f("ix_gift_hints_status"), "gift_hints", ["status"], unique=False)

    op.create_table(
        "secret_santa",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("organizer_id", sa.BIGINT(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("budget", sa.Numeric(12, 2), nullable=True),
        sa.Column("exchange_date", sa.Date(), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default="true", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["organizer_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_secret_santa_id"), "secret_santa", ["id"], unique=False)
    op.create_index(op.f("ix_secret_santa_organizer_id"), "secret_santa", ["organizer_id"], unique=False)

    op.create_table(
        "secret_santa_participants",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("secret_santa_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.BIGINT(), nullable=False),
        sa.Column("wishlist_id", sa.Integer(), nullable=True),
        sa.Column("assigned_to", sa.BIGINT(), nullable=True),
        sa.Column("has_drawn", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("joined_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["secret_santa_id"], ["secret_santa.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["wishlist_id"], ["wishlists.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["assigned_to"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("secret_santa_id", "user_id", name="uq_secret_santa_participants_santa_user"),
    )
    op.create_index(op.f("ix_secret_santa_participants_id"), "secret_santa_participants", ["id"], unique=False)
    op.create_index(op.f("ix_secret_santa_participants_secret_santa_id"), "secret_santa_participants", ["secret_santa_id"], unique=False)
    op.create_index(op.f("ix_secret_santa_participants_user_id"), "secret_santa_participants", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_table("secret_santa_participants")
    op.drop_table("secret_santa")
    op.drop_table("gift_hints")
    op.drop_table("crowdfunding_contributors")
    op.drop_table("crowdfunding")
