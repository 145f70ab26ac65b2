"""Initial schema: users, subscriptions, fortunes.

Tables that already exist (created by app startup via Base.metadata.create_all)
are skipped, so this is safe on databases created before Alembic was set up.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _has_table(name: str) -> bool:
    return sa.inspect(op.get_bind()).has_table(name)


def upgrade() -> None:
    if not _has_table("users"):
        op.create_table(
            "users",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("email", sa.String(), nullable=False),
            sa.Column("hashed_password", sa.String(), nullable=False, server_default=""),
            sa.Column("google_id", sa.String(), nullable=True),
            sa.Column("apple_id", sa.String(), nullable=True),
            sa.Column("full_name", sa.String(), nullable=True),
            sa.Column("birth_date", sa.Date(), nullable=True),
            sa.Column("relationship_status", sa.String(), nullable=True),
            sa.Column("profession", sa.String(), nullable=True),
            sa.Column("onboarding_completed", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("credits", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("is_premium", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("premium_expires_at", sa.DateTime(), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
            sa.CheckConstraint("credits >= 0", name="ck_users_credits_non_negative"),
        )
        op.create_index("ix_users_id", "users", ["id"])
        op.create_index("ix_users_email", "users", ["email"], unique=True)
        op.create_index("ix_users_google_id", "users", ["google_id"], unique=True)
        op.create_index("ix_users_apple_id", "users", ["apple_id"], unique=True)

    if not _has_table("subscriptions"):
        op.create_table(
            "subscriptions",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
            sa.Column("plan_type", sa.String(), nullable=False),
            sa.Column("status", sa.String(), nullable=False),
            sa.Column("start_date", sa.DateTime(), nullable=False),
            sa.Column("end_date", sa.DateTime(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
        )
        op.create_index("ix_subscriptions_id", "subscriptions", ["id"])
        op.create_index("ix_subscriptions_user_id", "subscriptions", ["user_id"])

    if not _has_table("fortunes"):
        op.create_table(
            "fortunes",
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
            sa.Column("photos", sa.JSON(), nullable=False),
            sa.Column("for_self", sa.Boolean(), nullable=False),
            sa.Column("guest_name", sa.String(), nullable=True),
            sa.Column("guest_gender", sa.String(), nullable=True),
            sa.Column("guest_birth_date", sa.String(), nullable=True),
            sa.Column("guest_relationship_status", sa.String(), nullable=True),
            sa.Column("guest_profession", sa.String(), nullable=True),
            sa.Column("interpretation", sa.Text(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=False),
        )
        op.create_index("ix_fortunes_id", "fortunes", ["id"])
        op.create_index("ix_fortunes_user_id", "fortunes", ["user_id"])
        op.create_index("ix_fortunes_created_at", "fortunes", ["created_at"])


def downgrade() -> None:
    op.drop_table("fortunes")
    op.drop_table("subscriptions")
    op.drop_table("users")
