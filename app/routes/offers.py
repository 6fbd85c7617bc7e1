# Offer endpoints: buyers make offers, the listing's agent accepts or rejects them, buyers complete payment.
# Acceptance rejects competing offers in the same transaction, under a per-property lock.
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..db import get_db
from .. import models, schemas
from ..ids import require_object_id
from ..locks import offer_lock_key, redis_try_lock
from ..rate_limit import rate_limit
from ..workflows import PropertySoldError, accept_offer, property_sold
from .auth import ensure_self_or_admin, get_current_user, require_admin, require_agent_or_admin, require_member
from .properties import load_property

router = APIRouter()

logger = logging.getLogger("estatehub.offers")


def _load_offer(db: Session, offer_id: str) -> models.Offer:
    obj = db.get(models.Offer, require_object_id(offer_id, "offer id"))
    if not obj:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Offer not found")
    return obj


def _ensure_listing_agent(offer: models.Offer, user: models.User) -> None:
    if user.role != "admin" and offer.agent_email != user.email:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed to answer this offer")


def _newest_first(q):
    return q.order_by(models.Offer.created_at.desc(), models.Offer.id.desc())


@router.get("/offers", response_model=List[schemas.OfferRead])
def list_offers(db: Session = Depends(get_db), _: models.User = Depends(require_admin)) -> List[models.Offer]:
    return _newest_first(db.query(models.Offer)).all()


@router.get("/offers/user/{email}", response_model=List[schemas.OfferRead])
def list_buyer_offers(
    email: str, db: Session = Depends(get_db), user: models.User = Depends(get_current_user)
) -> List[models.Offer]:
    ensure_self_or_admin(user, email)
    return _newest_first(db.query(models.Offer).filter(models.Offer.buyer_email == email.strip().lower())).all()


@router.get("/offers/agent/{email}", response_model=List[schemas.OfferRead])
def list_agent_offers(
    email: str, db: Session = Depends(get_db), user: models.User = Depends(get_current_user)
) -> List[models.Offer]:
    ensure_self_or_admin(user, email)
    return _newest_first(db.query(models.Offer).filter(models.Offer.agent_email == email.strip().lower())).all()


@router.post(
    "/offers",
    response_model=schemas.InsertResult,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("write"))],
)
def create_offer(
    payload: schemas.OfferCreate, db: Session = Depends(get_db), user: models.User = Depends(require_member)
) -> schemas.InsertResult:
    """
    Make an offer on a verified listing.

    Listing details (agent, title, location, image) are copied from the property, not taken from the client.
    """
    prop = load_property(db, payload.property_id)
    if prop.status != "verified":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Offers can only be made on verified properties")
    if prop.agent_email == user.email:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Agents cannot make offers on their own properties")
    if property_sold(db, prop.id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Property has already been sold")

    obj = models.Offer(
        property_id=prop.id,
        property_title=prop.title,
        property_location=prop.location,
        property_image=prop.image,
        agent_email=prop.agent_email,
        agent_name=prop.agent_name,
        buyer_email=user.email,
        buyer_name=payload.buyer_name or user.name,
        offered_amount=payload.offered_amount,
        status="pending",
    )
    try:
        db.add(obj)
        db.commit()
        db.refresh(obj)
    except Exception as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to create offer: {exc}")
    return schemas.InsertResult(inserted_id=obj.id)


@router.patch("/offers/accept/{offer_id}", response_model=schemas.OfferAcceptResponse)
def accept(
    offer_id: str, db: Session = Depends(get_db), user: models.User = Depends(require_agent_or_admin)
) -> schemas.OfferAcceptResponse:
    obj = _load_offer(db, offer_id)
    _ensure_listing_agent(obj, user)
    if obj.status == "bought":
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Offer has already been paid for")

    with redis_try_lock(offer_lock_key(obj.property_id), ttl_ms=5000) as locked:
        if not locked:
            # Another process is answering offers on this property; client retries shortly
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail={"error": "busy", "retry_after": 1},
            )
        try:
            rejected = accept_offer(db, obj)
        except PropertySoldError:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Property has already been sold")
        except Exception as exc:
            logger.exception("Offer acceptance failed for %s", offer_id)
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to accept offer: {exc}")
    return schemas.OfferAcceptResponse(message="Offer accepted successfully", rejected_count=rejected)


@router.patch("/offers/reject/{offer_id}", response_model=schemas.UpdateResult)
def reject(
    offer_id: str, db: Session = Depends(get_db), user: models.User = Depends(require_agent_or_admin)
) -> schemas.UpdateResult:
    obj = _load_offer(db, offer_id)
    _ensure_listing_agent(obj, user)
    if obj.status == "bought":
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Offer has already been paid for")
    if obj.status == "rejected":
        return schemas.UpdateResult(matched_count=1, modified_count=0)
    try:
        obj.status = "rejected"
        db.add(obj)
        db.commit()
    except Exception as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to reject offer: {exc}")
    return schemas.UpdateResult(matched_count=1, modified_count=1)


@router.patch("/offers/bought/{offer_id}", response_model=schemas.UpdateResult)
def mark_bought(
    offer_id: str,
    payload: schemas.OfferBought,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> schemas.UpdateResult:
    """Record the payment for an accepted offer. Only the buyer (or an admin) may do this."""
    obj = _load_offer(db, offer_id)
    if user.role != "admin" and obj.buyer_email != user.email:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only the buyer can complete this offer")
    if obj.status != "accepted":
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Only accepted offers can be paid for")
    try:
        obj.status = "bought"
        obj.transaction_id = payload.transaction_id
        obj.payment_date = datetime.now(timezone.utc)
        db.add(obj)
        db.commit()
    except Exception as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to record payment: {exc}")
    logger.info("Offer %s bought (transaction %s)", obj.id, payload.transaction_id)
    return schemas.UpdateResult(matched_count=1, modified_count=1)
