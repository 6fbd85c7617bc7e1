# Wishlist endpoints: members bookmark listings; each (user, property) pair is stored once.
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..db import get_db
from .. import models, schemas
from ..ids import require_object_id
from ..rate_limit import rate_limit
from .auth import ensure_self_or_admin, get_current_user, require_member
from .properties import load_property

router = APIRouter()

ALREADY_IN_WISHLIST = {"message": "Property already in wishlist"}


@router.get("/wishlist/{email}", response_model=List[schemas.PropertyRead])
def get_wishlist(
    email: str, db: Session = Depends(get_db), user: models.User = Depends(get_current_user)
) -> List[models.Property]:
    """Properties on the user's wishlist, most recently added first. Entries whose property is gone are skipped."""
    ensure_self_or_admin(user, email)
    rows = (
        db.query(models.Property)
        .join(models.WishlistItem, models.WishlistItem.property_id == models.Property.id)
        .filter(models.WishlistItem.user_email == email.strip().lower())
        .order_by(models.WishlistItem.created_at.desc(), models.WishlistItem.id.desc())
        .all()
    )
    return rows


@router.post(
    "/wishlist",
    response_model=schemas.InsertResult,
    status_code=status.HTTP_201_CREATED,
    responses={200: {"model": schemas.MessageResponse}},
    dependencies=[Depends(rate_limit("write"))],
)
def add_to_wishlist(
    payload: schemas.WishlistCreate, db: Session = Depends(get_db), user: models.User = Depends(require_member)
):
    user_email = payload.user_email or user.email
    ensure_self_or_admin(user, user_email)
    prop = load_property(db, payload.property_id)

    existing = (
        db.query(models.WishlistItem)
        .filter(models.WishlistItem.user_email == user_email, models.WishlistItem.property_id == prop.id)
        .first()
    )
    if existing:
        return JSONResponse(status_code=status.HTTP_200_OK, content=ALREADY_IN_WISHLIST)

    item = models.WishlistItem(user_email=user_email, property_id=prop.id)
    try:
        db.add(item)
        db.commit()
        db.refresh(item)
    except IntegrityError:
        # Concurrent insert of the same pair; the unique constraint kept one row
        db.rollback()
        return JSONResponse(status_code=status.HTTP_200_OK, content=ALREADY_IN_WISHLIST)
    except Exception as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to add to wishlist: {exc}")
    return schemas.InsertResult(inserted_id=item.id)


@router.delete("/wishlist/{email}/{property_id}", response_model=schemas.DeleteResult)
def remove_from_wishlist(
    email: str, property_id: str, db: Session = Depends(get_db), user: models.User = Depends(get_current_user)
) -> schemas.DeleteResult:
    ensure_self_or_admin(user, email)
    property_id = require_object_id(property_id, "property id")
    try:
        deleted = (
            db.query(models.WishlistItem)
            .filter(models.WishlistItem.user_email == email.strip().lower(), models.WishlistItem.property_id == property_id)
            .delete(synchronize_session=False)
        )
        db.commit()
    except Exception as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to remove from wishlist: {exc}")
    return schemas.DeleteResult(deleted_count=deleted)
