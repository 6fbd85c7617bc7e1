# Property listing endpoints.
# Anyone can browse verified listings; members submit listings, owning agents edit them, admins moderate them.
from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..db import get_db
from .. import models, schemas
from ..ids import require_object_id
from ..pricing import parse_price_range
from ..rate_limit import rate_limit
from .auth import get_current_user, get_current_user_optional, require_admin, require_member

router = APIRouter()

logger = logging.getLogger("estatehub.properties")

ADVERTISED_LIMIT = int(os.getenv("ADVERTISED_LIMIT", "4"))

SortOrder = Literal["price-asc", "price-desc", "newest"]


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def load_property(db: Session, property_id: str) -> models.Property:
    prop = db.get(models.Property, require_object_id(property_id, "property id"))
    if not prop:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Property not found")
    return prop


def _ensure_owner_or_admin(prop: models.Property, user: models.User) -> None:
    if user.role == "admin":
        return
    if user.role == "fraud" or prop.agent_email != user.email:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed to modify this property")


@router.get("/properties", response_model=schemas.PropertyPage)
def list_properties(
    search: Optional[str] = Query(None, max_length=100),
    sort: SortOrder = Query("newest"),
    min_price: Optional[float] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[float] = Query(None, alias="maxPrice", ge=0),
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    status_filter: str = Query("verified", alias="status"),
    db: Session = Depends(get_db),
    user: Optional[models.User] = Depends(get_current_user_optional),
) -> dict:
    """
    Search listings.

    Behavior:
    - search: case-insensitive substring over title, location and description.
    - minPrice/maxPrice: inclusive bounds on the leading figure of the price range.
    - status: 'verified' for everyone; other statuses (or 'all') are admin-only.
    - sort: price-asc by lower bound, price-desc by upper bound, otherwise newest first.
    """
    q = db.query(models.Property)

    if status_filter != "verified":
        if not user or user.role != "admin":
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only admins can list unverified properties")
        if status_filter not in models.PROPERTY_STATUSES and status_filter != "all":
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown status: {status_filter}")
    if status_filter != "all":
        q = q.filter(models.Property.status == status_filter)

    if search and search.strip():
        pattern = f"%{_escape_like(search.strip())}%"
        q = q.filter(
            or_(
                models.Property.title.ilike(pattern, escape="\\"),
                models.Property.location.ilike(pattern, escape="\\"),
                models.Property.description.ilike(pattern, escape="\\"),
            )
        )

    if min_price is not None:
        q = q.filter(models.Property.price_min >= min_price)
    if max_price is not None:
        q = q.filter(models.Property.price_min <= max_price)

    total = q.count()

    if sort == "price-asc":
        q = q.order_by(models.Property.price_min.asc(), models.Property.id.asc())
    elif sort == "price-desc":
        q = q.order_by(models.Property.price_max.desc(), models.Property.id.desc())
    else:
        q = q.order_by(models.Property.created_at.desc(), models.Property.id.desc())

    items = q.offset((page - 1) * limit).limit(limit).all()
    return {"items": items, "total": total, "page": page, "limit": limit}


@router.get("/advertised-properties", response_model=List[schemas.PropertyRead])
def list_advertised(db: Session = Depends(get_db)) -> List[models.Property]:
    return (
        db.query(models.Property)
        .filter(models.Property.status == "verified", models.Property.advertised.is_(True))
        .order_by(models.Property.updated_at.desc(), models.Property.id.desc())
        .limit(ADVERTISED_LIMIT)
        .all()
    )


@router.get("/properties/agent/{email}", response_model=List[schemas.PropertyRead])
def list_agent_properties(
    email: str, db: Session = Depends(get_db), _: models.User = Depends(get_current_user)
) -> List[models.Property]:
    return (
        db.query(models.Property)
        .filter(models.Property.agent_email == email.strip().lower())
        .order_by(models.Property.created_at.desc(), models.Property.id.desc())
        .all()
    )


@router.get("/properties/sold/{email}", response_model=List[schemas.OfferRead])
def list_sold_properties(
    email: str, db: Session = Depends(get_db), _: models.User = Depends(get_current_user)
) -> List[models.Offer]:
    """Bought offers on the agent's listings (the agent's sales history)."""
    return (
        db.query(models.Offer)
        .filter(models.Offer.agent_email == email.strip().lower(), models.Offer.status == "bought")
        .order_by(models.Offer.payment_date.desc(), models.Offer.id.desc())
        .all()
    )


@router.get("/properties/{property_id}", response_model=schemas.PropertyRead)
def get_property(property_id: str, db: Session = Depends(get_db)) -> models.Property:
    return load_property(db, property_id)


@router.post(
    "/properties",
    response_model=schemas.InsertResult,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("write"))],
)
def create_property(
    payload: schemas.PropertyCreate, db: Session = Depends(get_db), user: models.User = Depends(require_member)
) -> schemas.InsertResult:
    """
    Create a listing owned by the caller.

    Admin listings are published immediately ('verified'); everyone else's wait for review ('pending').
    """
    price_min, price_max = parse_price_range(payload.price_range)
    obj = models.Property(
        title=payload.title,
        location=payload.location,
        image=payload.image,
        price_range=payload.price_range,
        price_min=price_min,
        price_max=price_max,
        description=payload.description,
        agent_email=user.email,
        agent_name=payload.agent_name or user.name,
        agent_image=payload.agent_image or user.photo_url,
        status="verified" if user.role == "admin" else "pending",
        advertised=False,
    )
    try:
        db.add(obj)
        db.commit()
        db.refresh(obj)
    except Exception as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to create property: {exc}")
    return schemas.InsertResult(inserted_id=obj.id)


@router.put(
    "/properties/{property_id}",
    response_model=schemas.UpdateResult,
    dependencies=[Depends(rate_limit("write"))],
)
def update_property(
    property_id: str,
    payload: schemas.PropertyUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> schemas.UpdateResult:
    prop = load_property(db, property_id)
    _ensure_owner_or_admin(prop, user)

    price_min, price_max = parse_price_range(payload.price_range)
    try:
        prop.title = payload.title
        prop.location = payload.location
        prop.image = payload.image
        prop.price_range = payload.price_range
        prop.price_min = price_min
        prop.price_max = price_max
        prop.description = payload.description
        prop.updated_at = datetime.now(timezone.utc)
        db.add(prop)
        db.commit()
    except Exception as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to update property: {exc}")
    return schemas.UpdateResult(matched_count=1, modified_count=1)


@router.delete(
    "/properties/{property_id}",
    response_model=schemas.DeleteResult,
    dependencies=[Depends(rate_limit("write"))],
)
def delete_property(
    property_id: str, db: Session = Depends(get_db), user: models.User = Depends(get_current_user)
) -> schemas.DeleteResult:
    """Delete a listing and the wishlist entries pointing at it. Unknown ids report deletedCount 0."""
    property_id = require_object_id(property_id, "property id")
    prop = db.get(models.Property, property_id)
    if not prop:
        return schemas.DeleteResult(deleted_count=0)
    _ensure_owner_or_admin(prop, user)
    try:
        db.query(models.WishlistItem).filter(models.WishlistItem.property_id == property_id).delete(synchronize_session=False)
        db.delete(prop)
        db.commit()
    except Exception as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to delete property: {exc}")
    return schemas.DeleteResult(deleted_count=1)


def _admin_transition(db: Session, property_id: str, **changes) -> schemas.UpdateResult:
    property_id = require_object_id(property_id, "property id")
    prop = db.get(models.Property, property_id)
    if not prop:
        return schemas.UpdateResult(matched_count=0, modified_count=0)
    if all(getattr(prop, k) == v for k, v in changes.items()):
        return schemas.UpdateResult(matched_count=1, modified_count=0)
    try:
        for k, v in changes.items():
            setattr(prop, k, v)
        prop.updated_at = datetime.now(timezone.utc)
        db.add(prop)
        db.commit()
    except Exception as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to update property: {exc}")
    logger.info("Property %s updated by admin: %s", property_id, changes)
    return schemas.UpdateResult(matched_count=1, modified_count=1)


@router.patch("/properties/verify/{property_id}", response_model=schemas.UpdateResult)
def verify_property(property_id: str, db: Session = Depends(get_db), _: models.User = Depends(require_admin)) -> schemas.UpdateResult:
    return _admin_transition(db, property_id, status="verified")


@router.patch("/properties/reject/{property_id}", response_model=schemas.UpdateResult)
def reject_property(property_id: str, db: Session = Depends(get_db), _: models.User = Depends(require_admin)) -> schemas.UpdateResult:
    return _admin_transition(db, property_id, status="rejected")


@router.patch("/properties/advertise/{property_id}", response_model=schemas.UpdateResult)
def advertise_property(property_id: str, db: Session = Depends(get_db), _: models.User = Depends(require_admin)) -> schemas.UpdateResult:
    return _admin_transition(db, property_id, advertised=True)
