# Free-form reports (e.g. a suspicious listing). Stored as-is; only admins read them.
from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..db import get_db
from .. import models, schemas
from ..ids import require_object_id
from ..rate_limit import rate_limit
from .auth import get_current_user, require_admin

router = APIRouter()


@router.get("/reports", response_model=List[schemas.ReportRead])
def list_reports(db: Session = Depends(get_db), _: models.User = Depends(require_admin)) -> List[models.Report]:
    return db.query(models.Report).order_by(models.Report.created_at.desc(), models.Report.id.desc()).all()


@router.post(
    "/reports",
    response_model=schemas.InsertResult,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("write"))],
)
def create_report(
    payload: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> schemas.InsertResult:
    """
    File a report. The body is free-form JSON; `propertyId` and `reason` are lifted into columns when present.
    """
    property_id = payload.get("propertyId")
    if property_id is not None:
        property_id = require_object_id(str(property_id), "property id")
    reason = payload.get("reason")
    obj = models.Report(
        property_id=property_id,
        reporter_email=user.email,
        reason=str(reason)[:255] if reason is not None else None,
        details=payload,
    )
    try:
        db.add(obj)
        db.commit()
        db.refresh(obj)
    except Exception as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to create report: {exc}")
    return schemas.InsertResult(inserted_id=obj.id)
