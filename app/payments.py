# Payments module: simulated payment intents and purchase history.
# No gateway is called; the client records the returned transaction id with PATCH /offers/bought/{id}.
from __future__ import annotations

import logging
import secrets
import string
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .db import get_db
from . import models, schemas
from .routes.auth import ensure_self_or_admin, get_current_user, require_member

router = APIRouter()

logger = logging.getLogger("estatehub.payments")

_TXN_ALPHABET = string.ascii_lowercase + string.digits


def new_transaction_id() -> str:
    """Synthetic transaction id: 'txn_' followed by 9 lowercase base-36 characters."""
    return "txn_" + "".join(secrets.choice(_TXN_ALPHABET) for _ in range(9))


@router.post("/create-payment-intent", response_model=schemas.PaymentIntentResponse)
def create_payment_intent(
    payload: schemas.PaymentIntentRequest, user: models.User = Depends(require_member)
) -> schemas.PaymentIntentResponse:
    transaction_id = new_transaction_id()
    logger.info("Simulated payment intent %s for %s (amount=%s)", transaction_id, user.email, payload.amount)
    return schemas.PaymentIntentResponse(success=True, transaction_id=transaction_id, amount=payload.amount)


@router.get("/payments/buyer/{email}", response_model=List[schemas.OfferRead])
def purchase_history(
    email: str, db: Session = Depends(get_db), user: models.User = Depends(get_current_user)
) -> List[models.Offer]:
    ensure_self_or_admin(user, email)
    return (
        db.query(models.Offer)
        .filter(models.Offer.buyer_email == email.strip().lower(), models.Offer.status == "bought")
        .order_by(models.Offer.payment_date.desc(), models.Offer.id.desc())
        .all()
    )
