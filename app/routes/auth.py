# Identity resolution and role gates.
# Callers are identified by a signed bearer token (default) or, when AUTH_MODE=header, by a plain email header.
from __future__ import annotations

import logging
import os
import time
from typing import Callable, Optional

import jwt
from fastapi import APIRouter, Depends, HTTPException, Header, Request, status
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from ..db import get_db
from .. import models, schemas
from ..rate_limit import rate_limit

router = APIRouter()

logger = logging.getLogger("estatehub.auth")

# Security primitives
JWT_SECRET: str = os.getenv("JWT_SECRET", "dev-secret-change-me")
JWT_ALG: str = "HS256"
JWT_TTL_SECONDS: int = int(os.getenv("JWT_TTL_SECONDS", str(60 * 60)))  # 1 hour
# Use bcrypt_sha256 to avoid bcrypt's 72-byte password limit and handle unicode safely.
pwd_context = CryptContext(schemes=["bcrypt_sha256"], deprecated="auto")


# ----------------
# Helpers
# ----------------
def _truthy(val: Optional[str]) -> bool:
    if val is None:
        return False
    return val.strip().lower() in {"1", "true", "t", "yes", "y", "on"}


# "bearer" (default) or "header"; read per request so deployments and tests can switch it
def auth_mode() -> str:
    mode = os.getenv("AUTH_MODE", "bearer").strip().lower()
    return mode if mode in ("bearer", "header") else "bearer"


def auth_header_name() -> str:
    return os.getenv("AUTH_HEADER_NAME", "X-User-Email")


def auto_provision_enabled() -> bool:
    return _truthy(os.getenv("AUTH_AUTO_PROVISION"))


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_access_token(*, user: models.User) -> str:
    now = int(time.time())
    payload = {
        "sub": user.id,
        "email": user.email,
        "role": user.role,
        "iat": now,
        "exp": now + JWT_TTL_SECONDS,
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALG)


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALG])
    except jwt.ExpiredSignatureError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired") from exc
    except jwt.InvalidTokenError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="unauthorized access") from exc


def find_user_by_email(db: Session, email: str) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.email == email.strip().lower()).first()


# ----------------
# Dependencies
# ----------------
def bearer_token_from_auth_header(authorization: Optional[str]) -> str:
    if not authorization:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="unauthorized access")
    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid Authorization header")
    return parts[1].strip()


def _user_from_bearer(db: Session, authorization: Optional[str]) -> models.User:
    token = bearer_token_from_auth_header(authorization)
    payload = decode_token(token)
    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token payload")
    # Role is always re-read from the store so promotions and fraud flags apply immediately
    user = db.get(models.User, str(user_id))
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user


def _user_from_email_header(db: Session, email: Optional[str]) -> models.User:
    if not email or not email.strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="unauthorized access")
    email = email.strip().lower()
    user = find_user_by_email(db, email)
    if user:
        return user
    if not auto_provision_enabled():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not registered")

    # Upsert-on-read: only when explicitly enabled
    user = models.User(email=email, role="user")
    try:
        db.add(user)
        db.commit()
        db.refresh(user)
    except Exception as exc:
        db.rollback()
        # A concurrent request may have provisioned the same email first
        user = find_user_by_email(db, email)
        if user:
            return user
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to provision user: {exc}")
    logger.warning("Auto-provisioned user %s from identity header", email)
    return user


def get_current_user(request: Request, db: Session = Depends(get_db)) -> models.User:
    if auth_mode() == "header":
        return _user_from_email_header(db, request.headers.get(auth_header_name()))
    return _user_from_bearer(db, request.headers.get("Authorization"))


def get_current_user_optional(request: Request, db: Session = Depends(get_db)) -> Optional[models.User]:
    """
    Returns the current user if valid credentials are present, otherwise None.
    Useful for endpoints that are public but behave differently when authenticated.
    Never provisions a user.
    """
    try:
        if auth_mode() == "header":
            email = request.headers.get(auth_header_name())
            return find_user_by_email(db, email) if email and email.strip() else None
        authorization = request.headers.get("Authorization")
        if not authorization:
            return None
        return _user_from_bearer(db, authorization)
    except HTTPException:
        # Treat invalid/missing credentials as anonymous for optional auth
        return None


def require_roles(*roles: str) -> Callable[..., models.User]:
    """Dependency factory: 403 unless the authenticated caller holds one of `roles`."""
    allowed = frozenset(roles)

    def _dependency(user: models.User = Depends(get_current_user)) -> models.User:
        if user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"forbidden access: requires role {' or '.join(sorted(allowed))}",
            )
        return user

    return _dependency


require_admin = require_roles("admin")
require_agent_or_admin = require_roles("agent", "admin")
# Any registered account that has not been flagged as fraud
require_member = require_roles("user", "agent", "admin")


def ensure_self_or_admin(user: models.User, email: str) -> None:
    if user.role != "admin" and user.email != email.strip().lower():
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="forbidden access")


# ----------------
# Routes
# ----------------
@router.post("/jwt", response_model=schemas.TokenResponse, dependencies=[Depends(rate_limit("token"))])
def issue_token(payload: schemas.TokenRequest, db: Session = Depends(get_db)) -> schemas.TokenResponse:
    user = find_user_by_email(db, payload.email)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not registered")
    if user.password_hash and not (payload.password and verify_password(payload.password, user.password_hash)):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return schemas.TokenResponse(token=create_access_token(user=user))
