# backend/checkin_api/api/checkins.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from checkin_api.dependencies import Principal, authenticate, get_db
from checkin_api.schemas.checkins import BulkCheckout, CheckInCreate, CheckInRead
from checkin_api.services import checkins as checkins_svc

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/checkins", tags=["Check-ins"])


@router.post("", status_code=status.HTTP_201_CREATED)
def create_checkin(payload: CheckInCreate, db: Session = Depends(get_db), _: Principal = Depends(authenticate)):
    try:
        row = checkins_svc.check_in(
            db, user_id=payload.user_id, elder_id=payload.elder_id, event_id=payload.event_id
        )
    except checkins_svc.InvalidCheckIn as e:
        raise HTTPException(status_code=400, detail=str(e))
    except checkins_svc.AlreadyCheckedIn as dup:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={
                "message": str(dup),
                "duplicate": True,
                "user_id": dup.user_id,
                "elder_id": dup.elder_id,
            },
        )
    return {
        "message": "Checked in successfully",
        "checkin": CheckInRead.model_validate(row).model_dump(mode="json"),
    }


@router.get("/all")
def list_all(db: Session = Depends(get_db), _: Principal = Depends(authenticate)):
    return checkins_svc.list_all(db)


@router.get("/event/{event_id}/detailed")
def event_checkins(event_id: int, db: Session = Depends(get_db), _: Principal = Depends(authenticate)):
    return checkins_svc.detailed_for_event(db, event_id)


@router.post("/bulk-checkout")
def bulk_checkout(payload: BulkCheckout, db: Session = Depends(get_db), _: Principal = Depends(authenticate)):
    if not isinstance(payload.ids, list):
        raise HTTPException(status_code=400, detail="Invalid ids array.")
    removed = checkins_svc.bulk_delete(db, payload.ids)
    logger.info("bulk-checkout: removed %s of %s", removed, len(payload.ids))
    return {"success": True, "message": "Bulk check-out complete.", "removed": removed}


@router.delete("/{checkin_id}")
def delete_checkin(checkin_id: int, db: Session = Depends(get_db), _: Principal = Depends(authenticate)):
    if not checkins_svc.delete_checkin(db, checkin_id):
        raise HTTPException(status_code=404, detail="Check-in not found")
    return {"message": "Check-in deleted successfully"}
