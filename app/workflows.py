# Multi-table state transitions that must land together.
# Each function performs its writes in one transaction: commit on success, rollback and re-raise on failure.
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from . import models

logger = logging.getLogger("estatehub.workflows")


class PropertySoldError(Exception):
    """Raised when a property already has a paid offer and can take no further offers."""


def property_sold(db: Session, property_id: str) -> bool:
    return (
        db.query(models.Offer.id)
        .filter(models.Offer.property_id == property_id, models.Offer.status == "bought")
        .first()
        is not None
    )


def accept_offer(db: Session, offer: models.Offer) -> int:
    """
    Accept `offer` and reject every competing offer on the same property.

    Semantics:
    - The accepted offer and the sibling rejections commit atomically.
    - Raises PropertySoldError, before any write, when another offer on the property is already 'bought'.
    - Idempotent: accepting an already accepted offer re-applies the same state.

    Returns:
    - Number of sibling offers moved to 'rejected'.
    """
    if property_sold(db, offer.property_id):
        raise PropertySoldError(f"property {offer.property_id} has already been sold")

    try:
        now = datetime.now(timezone.utc)
        offer.status = "accepted"
        offer.updated_at = now
        db.add(offer)
        rejected = (
            db.query(models.Offer)
            .filter(
                models.Offer.property_id == offer.property_id,
                models.Offer.id != offer.id,
                models.Offer.status != "bought",
                models.Offer.status != "rejected",
            )
            .update({models.Offer.status: "rejected", models.Offer.updated_at: now}, synchronize_session=False)
        )
        db.commit()
        db.refresh(offer)
    except Exception:
        db.rollback()
        raise
    logger.info("Offer %s accepted on property %s; %d sibling offers rejected", offer.id, offer.property_id, rejected)
    return rejected


def mark_fraud(db: Session, user: models.User, email: Optional[str] = None) -> Tuple[int, int]:
    """
    Flag `user` as fraud and reject every listing they own.

    `email`, when given, must name the same user; a mismatch raises ValueError before any write.
    Listings are matched on the user's stored email, and lose their advertised flag.

    Returns:
    - (users modified, properties rejected)
    """
    if email is not None and email.strip().lower() != user.email:
        raise ValueError(f"email {email!r} does not belong to user {user.id}")

    try:
        now = datetime.now(timezone.utc)
        modified = 0 if user.role == "fraud" else 1
        user.role = "fraud"
        user.updated_at = now
        db.add(user)
        rejected = (
            db.query(models.Property)
            .filter(models.Property.agent_email == user.email)
            .update(
                {
                    models.Property.status: "rejected",
                    models.Property.advertised: False,
                    models.Property.updated_at: now,
                },
                synchronize_session=False,
            )
        )
        db.commit()
        db.refresh(user)
    except Exception:
        db.rollback()
        raise
    logger.info("User %s (%s) marked as fraud; %d properties rejected", user.id, user.email, rejected)
    return modified, rejected
