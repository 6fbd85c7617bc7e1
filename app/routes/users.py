# User registration and administration.
# Registration is explicit (POST /users); role changes and deletion are admin-only.
from __future__ import annotations

import logging
import os
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..db import get_db
from .. import models, schemas
from ..ids import require_object_id
from ..rate_limit import rate_limit
from ..workflows import mark_fraud
from .auth import ensure_self_or_admin, find_user_by_email, get_current_user, hash_password, require_admin

router = APIRouter()

logger = logging.getLogger("estatehub.users")


# Emails registered with these addresses start as admin (bootstrap for the first administrator)
def _admin_emails() -> set[str]:
    raw = os.getenv("ADMIN_EMAILS", "")
    return {e.strip().lower() for e in raw.split(",") if e.strip()}


def _load_user(db: Session, user_id: str) -> models.User:
    user = db.get(models.User, require_object_id(user_id, "user id"))
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


def _set_role(db: Session, user_id: str, role: str) -> schemas.UpdateResult:
    user_id = require_object_id(user_id, "user id")
    user = db.get(models.User, user_id)
    if not user:
        return schemas.UpdateResult(matched_count=0, modified_count=0)
    if user.role == role:
        return schemas.UpdateResult(matched_count=1, modified_count=0)
    try:
        user.role = role
        db.add(user)
        db.commit()
    except Exception as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to update user role: {exc}")
    logger.info("User %s role set to %s", user_id, role)
    return schemas.UpdateResult(matched_count=1, modified_count=1)


@router.post(
    "/users",
    response_model=schemas.InsertResult,
    status_code=status.HTTP_201_CREATED,
    responses={200: {"model": schemas.MessageResponse}},
    dependencies=[Depends(rate_limit("signup"))],
)
def register_user(payload: schemas.UserCreate, db: Session = Depends(get_db)):
    if find_user_by_email(db, payload.email):
        return JSONResponse(status_code=status.HTTP_200_OK, content={"message": "user already exists"})

    role = "admin" if payload.email in _admin_emails() else "user"
    if role == "admin" and not payload.password:
        # Tokens are minted by email alone for password-less accounts
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="A password is required for administrator accounts")

    user = models.User(
        email=payload.email,
        name=payload.name,
        photo_url=payload.photo_url,
        role=role,
        password_hash=hash_password(payload.password) if payload.password else None,
    )
    try:
        db.add(user)
        db.commit()
        db.refresh(user)
    except IntegrityError:
        # Lost a race with a concurrent registration of the same email
        db.rollback()
        return JSONResponse(status_code=status.HTTP_200_OK, content={"message": "user already exists"})
    except Exception as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to create user: {exc}")
    return schemas.InsertResult(inserted_id=user.id)


@router.get("/users", response_model=List[schemas.UserRead])
def list_users(db: Session = Depends(get_db), _: models.User = Depends(require_admin)) -> List[models.User]:
    return db.query(models.User).order_by(models.User.created_at.desc(), models.User.id.desc()).all()


@router.get("/users/{email}", response_model=schemas.UserRead)
def get_user(email: str, db: Session = Depends(get_db), caller: models.User = Depends(get_current_user)) -> models.User:
    ensure_self_or_admin(caller, email)
    user = find_user_by_email(db, email)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.patch("/users/admin/{user_id}", response_model=schemas.UpdateResult)
def make_admin(user_id: str, db: Session = Depends(get_db), _: models.User = Depends(require_admin)) -> schemas.UpdateResult:
    return _set_role(db, user_id, "admin")


@router.patch("/users/agent/{user_id}", response_model=schemas.UpdateResult)
def make_agent(user_id: str, db: Session = Depends(get_db), _: models.User = Depends(require_admin)) -> schemas.UpdateResult:
    return _set_role(db, user_id, "agent")


@router.patch("/users/fraud/{user_id}", response_model=schemas.FraudResult)
def make_fraud(
    user_id: str,
    payload: Optional[schemas.FraudRequest] = None,
    db: Session = Depends(get_db),
    caller: models.User = Depends(require_admin),
) -> schemas.FraudResult:
    """
    Flag a user as fraud and reject all of their listings in one transaction.

    The optional body email is accepted for older clients but must name the same user.
    """
    user = _load_user(db, user_id)
    if user.id == caller.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Admins cannot flag themselves")
    try:
        modified, rejected = mark_fraud(db, user, payload.email if payload else None)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except Exception as exc:
        logger.exception("Fraud cascade failed for user %s", user_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to mark user as fraud: {exc}")
    return schemas.FraudResult(matched_count=1, modified_count=modified, properties_rejected=rejected)


@router.delete("/users/{user_id}", response_model=schemas.DeleteResult)
def delete_user(user_id: str, db: Session = Depends(get_db), _: models.User = Depends(require_admin)) -> schemas.DeleteResult:
    user_id = require_object_id(user_id, "user id")
    try:
        deleted = db.query(models.User).filter(models.User.id == user_id).delete(synchronize_session=False)
        db.commit()
    except Exception as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to delete user: {exc}")
    return schemas.DeleteResult(deleted_count=deleted)
