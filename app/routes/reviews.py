# Review endpoints. Reviews are created and deleted, never edited.
from __future__ import annotations

import os
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..db import get_db
from .. import models, schemas
from ..ids import require_object_id
from ..rate_limit import rate_limit
from .auth import get_current_user, require_member
from .properties import load_property

router = APIRouter()

LATEST_REVIEWS_LIMIT = int(os.getenv("LATEST_REVIEWS_LIMIT", "3"))


def _newest_first(q):
    return q.order_by(models.Review.created_at.desc(), models.Review.id.desc())


@router.get("/reviews", response_model=List[schemas.ReviewRead])
def latest_reviews(db: Session = Depends(get_db)) -> List[models.Review]:
    return _newest_first(db.query(models.Review)).limit(LATEST_REVIEWS_LIMIT).all()


@router.get("/reviews/property/{property_id}", response_model=List[schemas.ReviewRead])
def property_reviews(property_id: str, db: Session = Depends(get_db)) -> List[models.Review]:
    property_id = require_object_id(property_id, "property id")
    return _newest_first(db.query(models.Review).filter(models.Review.property_id == property_id)).all()


@router.get("/reviews/user/{email}", response_model=List[schemas.ReviewRead])
def user_reviews(email: str, db: Session = Depends(get_db), _: models.User = Depends(get_current_user)) -> List[models.Review]:
    email = email.strip().lower()
    q = db.query(models.Review).filter(or_(models.Review.reviewer_email == email, models.Review.user_email == email))
    return _newest_first(q).all()


@router.post(
    "/reviews",
    response_model=schemas.InsertResult,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("write"))],
)
def create_review(
    payload: schemas.ReviewCreate, db: Session = Depends(get_db), user: models.User = Depends(require_member)
) -> schemas.InsertResult:
    prop = load_property(db, payload.property_id)
    obj = models.Review(
        property_id=prop.id,
        property_title=prop.title,
        agent_name=prop.agent_name,
        reviewer_email=user.email,
        user_email=user.email,
        reviewer_name=payload.reviewer_name or user.name,
        reviewer_image=payload.reviewer_image or user.photo_url,
        rating=payload.rating,
        comment=payload.comment,
    )
    try:
        db.add(obj)
        db.commit()
        db.refresh(obj)
    except Exception as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to create review: {exc}")
    return schemas.InsertResult(inserted_id=obj.id)


@router.delete("/reviews/{review_id}", response_model=schemas.DeleteResult)
def delete_review(
    review_id: str, db: Session = Depends(get_db), user: models.User = Depends(get_current_user)
) -> schemas.DeleteResult:
    review_id = require_object_id(review_id, "review id")
    obj = db.get(models.Review, review_id)
    if not obj:
        return schemas.DeleteResult(deleted_count=0)
    if user.role != "admin" and obj.reviewer_email != user.email:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed to delete this review")
    try:
        db.delete(obj)
        db.commit()
    except Exception as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to delete review: {exc}")
    return schemas.DeleteResult(deleted_count=1)
