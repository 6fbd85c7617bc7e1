# SQLAlchemy ORM models, one table per collection (users, properties, wishlist, offers, reviews, reports).
# Tables reference each other only through denormalized strings (emails, ObjectId hex ids); no foreign keys.
from sqlalchemy import Column, String, Text, Float, Integer, DateTime, Boolean, JSON, Index, UniqueConstraint, func
from sqlalchemy.orm import declarative_mixin

from .db import Base
from .ids import new_object_id

USER_ROLES = ("user", "agent", "admin", "fraud")
PROPERTY_STATUSES = ("pending", "verified", "rejected")
OFFER_STATUSES = ("pending", "accepted", "rejected", "bought")


@declarative_mixin
class TimestampMixin:
    """Common UTC-aware timestamps automatically managed by the database.

    - created_at: set on insert
    - updated_at: set on insert and updated on each modification
    """
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class User(Base, TimestampMixin):
    """Marketplace account.

    Roles:
    - user: browses, wishlists, makes offers, reviews
    - agent: additionally manages own listings and answers offers
    - admin: verifies/rejects/advertises listings and manages users
    - fraud: flagged by an admin; may read but not write
    """
    __tablename__ = "users"

    id = Column(String(24), primary_key=True, default=new_object_id)
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=True)
    photo_url = Column(String(1024), nullable=True)
    role = Column(String(20), nullable=False, default="user", index=True)
    password_hash = Column(String(255), nullable=True)


class Property(Base, TimestampMixin):
    """Listing submitted by an agent (or admin).

    status: pending -> verified | rejected (admin only); advertised is independent of status.
    """
    __tablename__ = "properties"

    id = Column(String(24), primary_key=True, default=new_object_id)
    title = Column(String(255), nullable=False)
    location = Column(String(255), nullable=False)
    image = Column(String(1024), nullable=True)
    price_range = Column(String(255), nullable=False)
    # Parsed from price_range at write time
    price_min = Column(Float, nullable=False, default=0.0)
    price_max = Column(Float, nullable=False, default=0.0)
    description = Column(Text, nullable=True)
    agent_email = Column(String(255), nullable=False, index=True)
    agent_name = Column(String(255), nullable=True)
    agent_image = Column(String(1024), nullable=True)
    status = Column(String(20), nullable=False, default="pending")
    advertised = Column(Boolean, nullable=False, default=False)

    __table_args__ = (
        Index("ix_properties_status_created_at", "status", "created_at"),
        Index("ix_properties_price_min", "price_min"),
    )


class WishlistItem(Base):
    __tablename__ = "wishlist"

    id = Column(String(24), primary_key=True, default=new_object_id)
    user_email = Column(String(255), nullable=False, index=True)
    property_id = Column(String(24), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_email", "property_id", name="uq_wishlist_user_property"),
    )


class Offer(Base, TimestampMixin):
    """Purchase offer from a buyer on a property.

    Status transitions:
    pending -> accepted -> bought
        └── rejected (explicitly, or when a sibling offer is accepted)
    """
    __tablename__ = "offers"

    id = Column(String(24), primary_key=True, default=new_object_id)
    property_id = Column(String(24), nullable=False, index=True)
    property_title = Column(String(255), nullable=True)
    property_location = Column(String(255), nullable=True)
    property_image = Column(String(1024), nullable=True)
    agent_email = Column(String(255), nullable=False, index=True)
    agent_name = Column(String(255), nullable=True)
    buyer_email = Column(String(255), nullable=False, index=True)
    buyer_name = Column(String(255), nullable=True)
    offered_amount = Column(Float, nullable=False)
    status = Column(String(20), nullable=False, default="pending", index=True)
    transaction_id = Column(String(255), nullable=True)
    payment_date = Column(DateTime(timezone=True), nullable=True)


class Review(Base):
    """Review of a property. reviewer_email and user_email hold the same value for older clients."""
    __tablename__ = "reviews"

    id = Column(String(24), primary_key=True, default=new_object_id)
    property_id = Column(String(24), nullable=False, index=True)
    property_title = Column(String(255), nullable=True)
    agent_name = Column(String(255), nullable=True)
    reviewer_email = Column(String(255), nullable=False, index=True)
    user_email = Column(String(255), nullable=False, index=True)
    reviewer_name = Column(String(255), nullable=True)
    reviewer_image = Column(String(1024), nullable=True)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)


class Report(Base):
    __tablename__ = "reports"

    id = Column(String(24), primary_key=True, default=new_object_id)
    property_id = Column(String(24), nullable=True, index=True)
    reporter_email = Column(String(255), nullable=False)
    reason = Column(String(255), nullable=True)
    details = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
