# backend/checkin_api/api/kiosk.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from checkin_api.dependencies import get_db, kiosk_auth
from checkin_api.schemas.checkins import KioskBulk, KioskCheckIn, KioskSessionStart
from checkin_api.security import create_kiosk_token
from checkin_api.services import kiosk as kiosk_svc
from checkin_api.services.checkins import InvalidCheckIn

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/kiosk", tags=["Kiosk"])


def _event_id(raw: Any) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        value = 0
    return value


@router.post("/session/start")
def start_session(payload: Optional[KioskSessionStart] = None, db: Session = Depends(get_db)):
    code = (payload.kiosk_code if payload else None) or None
    try:
        kiosk_id = kiosk_svc.active_kiosk_id(db, code)
    except kiosk_svc.InvalidKioskCode:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid kiosk code")

    logger.info("kiosk session started (kiosk=%s)", kiosk_id or "anon")
    return {
        "token": create_kiosk_token(kiosk_id),
        "kiosk": {"id": kiosk_id} if kiosk_id else {"id": None, "anonymous": True},
        "events": kiosk_svc.recent_events(db),
    }


@router.get("/events")
def kiosk_events(db: Session = Depends(get_db), _: Dict[str, Any] = Depends(kiosk_auth)):
    return kiosk_svc.recent_events(db)


@router.get("/search")
def kiosk_search(
    q: str = Query(""),
    mode: str = Query("name"),
    event_id: Optional[int] = Query(None),
    limit: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    _: Dict[str, Any] = Depends(kiosk_auth),
):
    return kiosk_svc.search(db, q, mode=mode, event_id=event_id, limit=kiosk_svc.clamp_limit(limit))


@router.post("/checkins", status_code=status.HTTP_201_CREATED)
def kiosk_checkin(payload: KioskCheckIn, db: Session = Depends(get_db), _: Dict[str, Any] = Depends(kiosk_auth)):
    event_id = _event_id(payload.event_id)
    if not event_id or not payload.entity_id:
        raise HTTPException(status_code=400, detail="Missing event_id or entity_id")
    try:
        checkin = kiosk_svc.check_in_one(db, event_id, payload.entity_id)
    except InvalidCheckIn as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"ok": True, "checkin": checkin}


@router.post("/checkins/bulk", status_code=status.HTTP_201_CREATED)
def kiosk_bulk_checkin(payload: KioskBulk, db: Session = Depends(get_db), _: Dict[str, Any] = Depends(kiosk_auth)):
    event_id = _event_id(payload.event_id)
    if not event_id or not payload.entity_ids:
        raise HTTPException(status_code=400, detail="Missing event_id or entity_ids")
    try:
        return kiosk_svc.check_in_many(db, event_id, payload.entity_ids)
    except InvalidCheckIn as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/checkouts/bulk")
def kiosk_bulk_checkout(payload: KioskBulk, db: Session = Depends(get_db), _: Dict[str, Any] = Depends(kiosk_auth)):
    event_id = _event_id(payload.event_id)
    if not event_id or not payload.entity_ids:
        raise HTTPException(status_code=400, detail="Missing event_id or entity_ids")
    return kiosk_svc.check_out_many(db, event_id, payload.entity_ids)
