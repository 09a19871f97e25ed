# backend/checkin_api/api/events.py
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from checkin_api.dependencies import Principal, authenticate, get_db
from checkin_api.schemas.events import EventRead, EventWrite
from checkin_api.services import events as events_svc

router = APIRouter(prefix="/events", tags=["Events"])


@router.get("/upcoming", response_model=List[EventRead])
def upcoming_events(db: Session = Depends(get_db)):
    return [events_svc.event_dict(ev) for ev in events_svc.upcoming(db)]


@router.get("", response_model=List[EventRead])
def list_events(db: Session = Depends(get_db)):
    return [events_svc.event_dict(ev) for ev in events_svc.list_events(db)]


@router.get("/{event_id}", response_model=EventRead)
def get_event(event_id: int, db: Session = Depends(get_db)):
    ev = events_svc.get_event(db, event_id)
    if not ev:
        raise HTTPException(status_code=404, detail="Event not found")
    return events_svc.event_dict(ev)


@router.post("", response_model=EventRead, status_code=status.HTTP_201_CREATED)
def create_event(payload: EventWrite, db: Session = Depends(get_db), _: Principal = Depends(authenticate)):
    try:
        ev = events_svc.create_event(db, payload)
    except events_svc.InvalidEvent as e:
        raise HTTPException(status_code=400, detail=str(e))
    return events_svc.event_dict(ev)


@router.put("/{event_id}", response_model=EventRead)
def update_event(
    event_id: int,
    payload: EventWrite,
    db: Session = Depends(get_db),
    _: Principal = Depends(authenticate),
):
    try:
        ev = events_svc.update_event(db, event_id, payload)
    except events_svc.InvalidEvent as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not ev:
        raise HTTPException(status_code=404, detail="Event not found")
    return events_svc.event_dict(ev)


@router.delete("/{event_id}")
def delete_event(event_id: int, db: Session = Depends(get_db), _: Principal = Depends(authenticate)):
    if not events_svc.delete_event(db, event_id):
        raise HTTPException(status_code=404, detail="Event not found")
    return {"message": "Event deleted successfully"}
