# backend/checkin_api/api/families.py
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from checkin_api.dependencies import Principal, authenticate, get_db
from checkin_api.schemas.families import FamilyCreate, FamilyRead
from checkin_api.services import families as families_svc

router = APIRouter(prefix="/families", tags=["Families"])
search_router = APIRouter(prefix="/familySearch", tags=["Families"])


@router.get("", response_model=List[FamilyRead])
def list_families(db: Session = Depends(get_db), _: Principal = Depends(authenticate)):
    return families_svc.list_families(db)


@router.post("", response_model=FamilyRead)
def create_family(payload: FamilyCreate, db: Session = Depends(get_db), _: Principal = Depends(authenticate)):
    if not (payload.family_name or "").strip():
        raise HTTPException(status_code=400, detail="Family name required")
    return families_svc.create_family(db, payload.family_name)


@router.get("/{family_id}/members")
def family_members(family_id: int, db: Session = Depends(get_db), _: Principal = Depends(authenticate)):
    return families_svc.members_of(db, family_id)


@search_router.get("")
def family_search(
    family_id: Optional[int] = Query(None),
    name: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    _: Principal = Depends(authenticate),
):
    """Check-in autocomplete: a whole family by id, or individuals by full name."""
    if family_id:
        return families_svc.members_of(db, family_id)
    if name and name.strip():
        return families_svc.search_by_name(db, name)
    raise HTTPException(status_code=400, detail="Missing search parameters.")
