# backend/checkin_api/api/elders.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from checkin_api.dependencies import Principal, authenticate, get_db, require_roles
from checkin_api.models.person import Elder
from checkin_api.schemas.people import ActivePatch, ElderCreate, PersonCreate
from checkin_api.security import ADMIN_ROLES
from checkin_api.services import people as people_svc

router = APIRouter(prefix="/elders", tags=["Elders"])


@router.get("")
def list_elders(db: Session = Depends(get_db), _: Principal = Depends(authenticate)):
    elders = db.execute(select(Elder).order_by(Elder.first_name, Elder.last_name)).scalars().all()
    return [
        {
            "id": e.id, "first_name": e.first_name, "last_name": e.last_name,
            "email": e.email, "phone": e.phone, "alt_phone": e.alt_phone, "role": e.role,
        }
        for e in elders
    ]


@router.post("", status_code=status.HTTP_201_CREATED)
def create_elder(payload: ElderCreate, db: Session = Depends(get_db), _: Principal = Depends(authenticate)):
    if payload.role != "elder":
        raise HTTPException(status_code=400, detail="Role must be 'elder'")
    if not payload.first_name or not payload.last_name:
        raise HTTPException(status_code=400, detail="Missing required fields.")
    try:
        _, elder = people_svc.create_person(db, PersonCreate(**payload.model_dump()))
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Email already exists.")
    return people_svc.person_dict(elder)


@router.get("/{elder_id}/details")
def elder_details(elder_id: int, db: Session = Depends(get_db), _: Principal = Depends(authenticate)):
    details = people_svc.person_details(db, "elder", elder_id)
    if not details:
        raise HTTPException(status_code=404, detail="Elder not found")
    return {"user": details["user"], "ministries": details["ministries"]}


@router.patch("/{elder_id}/active")
def set_elder_active(
    elder_id: int,
    payload: ActivePatch,
    db: Session = Depends(get_db),
    _: Principal = Depends(require_roles(*ADMIN_ROLES)),
):
    if not people_svc.set_active(db, "elder", elder_id, payload.active):
        raise HTTPException(status_code=404, detail="Elder not found")
    return {"success": True}


@router.delete("/{elder_id}")
def delete_elder(
    elder_id: int,
    db: Session = Depends(get_db),
    _: Principal = Depends(require_roles(*ADMIN_ROLES)),
):
    if not people_svc.delete_person(db, "elder", elder_id):
        raise HTTPException(status_code=404, detail="Elder not found")
    return {"message": "Elder deleted successfully"}
