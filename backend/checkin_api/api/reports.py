# backend/checkin_api/api/reports.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from checkin_api.dependencies import authenticate, get_db
from checkin_api.services import reports as reports_svc

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["Reports"], dependencies=[Depends(authenticate)])


@router.get("/attendees")
def attendees(db: Session = Depends(get_db)):
    return reports_svc.attendees(db)


@router.get("/ministries")
def report_ministries(db: Session = Depends(get_db)):
    return reports_svc.active_ministries(db)


@router.get("/ministry-attendance/{ministry_id}")
def ministry_attendance(ministry_id: int, event_id: Optional[int] = Query(None), db: Session = Depends(get_db)):
    return reports_svc.ministry_attendance(db, ministry_id, event_id)


@router.get("/ministry-absent/{event_id}")
def ministry_absent(event_id: int, ministry_id: Optional[int] = Query(None), db: Session = Depends(get_db)):
    return reports_svc.ministry_absent(db, event_id, ministry_id)


@router.get("/elder/{elder_id}")
def elder_report(elder_id: int, event_id: Optional[int] = Query(None), db: Session = Depends(get_db)):
    return reports_svc.elder_report(db, elder_id, event_id)


@router.get("/elder-absent/{elder_id}/{event_id}")
def elder_absent(elder_id: int, event_id: int, db: Session = Depends(get_db)):
    return reports_svc.elder_absent(db, elder_id, event_id)


@router.get("/roster/{ministry_id}")
def roster(ministry_id: int, db: Session = Depends(get_db)):
    return reports_svc.roster(db, ministry_id)


@router.get("/users-without-ministry")
def users_without_ministry(active: str = Query("true"), db: Session = Depends(get_db)):
    return reports_svc.users_without_ministry(db, only_active=active == "true")


@router.get("/no-active-ministry")
def no_active_ministry(active_only: str = Query(""), db: Session = Depends(get_db)):
    return reports_svc.no_active_ministry(db, active_only=active_only.lower() == "true")


@router.get("/inactive-members")
def inactive_members(db: Session = Depends(get_db)):
    return reports_svc.inactive_members(db)


@router.post("/generate-all")
def generate_all(body: Optional[Dict[str, Any]] = Body(None), db: Session = Depends(get_db)):
    """ZIP of attendance/absent CSVs for every active ministry."""
    raw_event = (body or {}).get("event_id")
    try:
        event_id = int(raw_event) if raw_event not in (None, "") else None
    except (TypeError, ValueError):
        event_id = None

    zip_buf = reports_svc.build_all_ministries_zip(db, event_id)
    logger.info("generate-all: built ZIP (event_id=%s)", event_id)
    return StreamingResponse(
        zip_buf,
        media_type="application/zip",
        headers={"Content-Disposition": 'attachment; filename="all-ministries-reports.zip"'},
    )
