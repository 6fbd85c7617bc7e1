"""marketplace schema: users, properties, wishlist, offers, reviews, reports

Revision ID: 3c9e1d7a5b20
Revises:
Create Date: 2026-10-19 09:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3c9e1d7a5b20"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=24), primary_key=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("photo_url", sa.String(length=1024), nullable=True),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="user"),
        sa.Column("password_hash", sa.String(length=255), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])

    # References to other tables are plain strings; there are no foreign keys
    op.create_table(
        "properties",
        sa.Column("id", sa.String(length=24), primary_key=True, nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("location", sa.String(length=255), nullable=False),
        sa.Column("image", sa.String(length=1024), nullable=True),
        sa.Column("price_range", sa.String(length=255), nullable=False),
        sa.Column("price_min", sa.Float(), nullable=False, server_default="0"),
        sa.Column("price_max", sa.Float(), nullable=False, server_default="0"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("agent_email", sa.String(length=255), nullable=False),
        sa.Column("agent_name", sa.String(length=255), nullable=True),
        sa.Column("agent_image", sa.String(length=1024), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("advertised", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    op.create_index("ix_properties_agent_email", "properties", ["agent_email"])
    op.create_index("ix_properties_status_created_at", "properties", ["status", "created_at"])
    op.create_index("ix_properties_price_min", "properties", ["price_min"])

    op.create_table(
        "wishlist",
        sa.Column("id", sa.String(length=24), primary_key=True, nullable=False),
        sa.Column("user_email", sa.String(length=255), nullable=False),
        sa.Column("property_id", sa.String(length=24), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("user_email", "property_id", name="uq_wishlist_user_property"),
    )
    op.create_index("ix_wishlist_user_email", "wishlist", ["user_email"])
    op.create_index("ix_wishlist_property_id", "wishlist", ["property_id"])

    op.create_table(
        "offers",
        sa.Column("id", sa.String(length=24), primary_key=True, nullable=False),
        sa.Column("property_id", sa.String(length=24), nullable=False),
        sa.Column("property_title", sa.String(length=255), nullable=True),
        sa.Column("property_location", sa.String(length=255), nullable=True),
        sa.Column("property_image", sa.String(length=1024), nullable=True),
        sa.Column("agent_email", sa.String(length=255), nullable=False),
        sa.Column("agent_name", sa.String(length=255), nullable=True),
        sa.Column("buyer_email", sa.String(length=255), nullable=False),
        sa.Column("buyer_name", sa.String(length=255), nullable=True),
        sa.Column("offered_amount", sa.Float(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("transaction_id", sa.String(length=255), nullable=True),
        sa.Column("payment_date", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_offers_property_id", "offers", ["property_id"])
    op.create_index("ix_offers_agent_email", "offers", ["agent_email"])
    op.create_index("ix_offers_buyer_email", "offers", ["buyer_email"])
    op.create_index("ix_offers_status", "offers", ["status"])

    op.create_table(
        "reviews",
        sa.Column("id", sa.String(length=24), primary_key=True, nullable=False),
        sa.Column("property_id", sa.String(length=24), nullable=False),
        sa.Column("property_title", sa.String(length=255), nullable=True),
        sa.Column("agent_name", sa.String(length=255), nullable=True),
        sa.Column("reviewer_email", sa.String(length=255), nullable=False),
        sa.Column("user_email", sa.String(length=255), nullable=False),
        sa.Column("reviewer_name", sa.String(length=255), nullable=True),
        sa.Column("reviewer_image", sa.String(length=1024), nullable=True),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_reviews_property_id", "reviews", ["property_id"])
    op.create_index("ix_reviews_reviewer_email", "reviews", ["reviewer_email"])
    op.create_index("ix_reviews_user_email", "reviews", ["user_email"])
    op.create_index("ix_reviews_created_at", "reviews", ["created_at"])

    op.create_table(
        "reports",
        sa.Column("id", sa.String(length=24), primary_key=True, nullable=False),
        sa.Column("property_id", sa.String(length=24), nullable=True),
        sa.Column("reporter_email", sa.String(length=255), nullable=False),
        sa.Column("reason", sa.String(length=255), nullable=True),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_reports_property_id", "reports", ["property_id"])


def downgrade() -> None:
    op.drop_index("ix_reports_property_id", table_name="reports")
    op.drop_table("reports")

    for name in ("ix_reviews_created_at", "ix_reviews_user_email", "ix_reviews_reviewer_email", "ix_reviews_property_id"):
        op.drop_index(name, table_name="reviews")
    op.drop_table("reviews")

    for name in ("ix_offers_status", "ix_offers_buyer_email", "ix_offers_agent_email", "ix_offers_property_id"):
        op.drop_index(name, table_name="offers")
    op.drop_table("offers")

    op.drop_index("ix_wishlist_property_id", table_name="wishlist")
    op.drop_index("ix_wishlist_user_email", table_name="wishlist")
    op.drop_table("wishlist")

    for name in ("ix_properties_price_min", "ix_properties_status_created_at", "ix_properties_agent_email"):
        op.drop_index(name, table_name="properties")
    op.drop_table("properties")

    op.drop_index("ix_users_role", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
