# backend/checkin_api/api/ministries.py
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from checkin_api.dependencies import Principal, authenticate, get_db, require_roles
from checkin_api.schemas.ministries import MinistryRead, MinistryWrite
from checkin_api.security import ADMIN_ROLES
from checkin_api.services import ministries as ministries_svc

router = APIRouter(prefix="/ministries", tags=["Ministries"])

_DUPLICATE = "Ministry name already exists."


def _required_name(payload: MinistryWrite) -> str:
    name = (payload.name or "").strip()
    if not name:
        raise HTTPException(status_code=400, detail="Name is required.")
    return name


@router.get("", response_model=List[MinistryRead])
def list_ministries(db: Session = Depends(get_db), _: Principal = Depends(authenticate)):
    return ministries_svc.list_ministries(db)


@router.post("", response_model=MinistryRead, status_code=status.HTTP_201_CREATED)
def create_ministry(
    payload: MinistryWrite,
    db: Session = Depends(get_db),
    _: Principal = Depends(require_roles(*ADMIN_ROLES)),
):
    name = _required_name(payload)
    try:
        return ministries_svc.create_ministry(db, name, payload.active)
    except (ministries_svc.DuplicateMinistryName, IntegrityError):
        db.rollback()
        raise HTTPException(status_code=409, detail=_DUPLICATE)


@router.put("/{ministry_id}", response_model=MinistryRead)
def update_ministry(
    ministry_id: int,
    payload: MinistryWrite,
    db: Session = Depends(get_db),
    _: Principal = Depends(require_roles(*ADMIN_ROLES)),
):
    name = _required_name(payload)
    try:
        ministry = ministries_svc.update_ministry(db, ministry_id, name, payload.active)
    except (ministries_svc.DuplicateMinistryName, IntegrityError):
        db.rollback()
        raise HTTPException(status_code=409, detail=_DUPLICATE)
    if not ministry:
        raise HTTPException(status_code=404, detail="Ministry not found")
    return ministry


@router.delete("/{ministry_id}")
def delete_ministry(
    ministry_id: int,
    db: Session = Depends(get_db),
    _: Principal = Depends(require_roles(*ADMIN_ROLES)),
):
    if ministries_svc.is_referenced(db, ministry_id):
        raise HTTPException(
            status_code=409, detail="Ministry is assigned to members; remove assignments first."
        )
    if not ministries_svc.delete_ministry(db, ministry_id):
        raise HTTPException(status_code=404, detail="Ministry not found")
    return {"message": "Ministry deleted"}
