# backend/checkin_api/api/users.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from checkin_api.dependencies import Principal, authenticate, get_db, require_roles
from checkin_api.schemas.people import ActivePatch, PersonCreate, PersonUpdate
from checkin_api.security import ADMIN_ROLES
from checkin_api.services import people as people_svc

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])

# Static paths are registered before "/{person_id}" so they are not captured by it.


@router.get("/all")
def list_users_with_ministry(db: Session = Depends(get_db), _: Principal = Depends(authenticate)):
    return people_svc.list_users_with_ministry(db)


@router.get("/elders")
def list_elders(db: Session = Depends(get_db), _: Principal = Depends(authenticate)):
    return people_svc.list_elders_brief(db)


@router.get("/lookup")
def lookup_by_phone(
    phone: str = Query(""),
    db: Session = Depends(get_db),
    _: Principal = Depends(authenticate),
):
    return people_svc.lookup_by_phone(db, phone)


@router.get("/masterlist")
def masterlist(db: Session = Depends(get_db), _: Principal = Depends(authenticate)):
    return people_svc.masterlist(db)


@router.get("")
def search_people(
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    _: Principal = Depends(authenticate),
):
    return people_svc.search_people(db, (search or "").strip() or None)


@router.get("/{person_id}/details")
def person_details(person_id: str, db: Session = Depends(get_db), _: Principal = Depends(authenticate)):
    kind, pid = people_svc.parse_person_ref(person_id)
    if pid is None:
        raise HTTPException(status_code=400, detail="Invalid ID format")
    details = people_svc.person_details(db, kind, pid)
    if not details:
        raise HTTPException(status_code=404, detail="User not found")
    return details


@router.post("", status_code=status.HTTP_201_CREATED)
def create_person(payload: PersonCreate, db: Session = Depends(get_db), _: Principal = Depends(authenticate)):
    if not payload.first_name or not payload.last_name or not payload.role:
        raise HTTPException(status_code=400, detail="Missing required fields.")
    if payload.role.strip().lower() not in people_svc.VALID_ROLES:
        raise HTTPException(
            status_code=400, detail="Role must be one of: member, elder, volunteer, or staff."
        )
    try:
        kind, person = people_svc.create_person(db, payload)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Email already exists.")
    row = people_svc.person_dict(person)
    row["kind"] = kind
    return row


@router.put("/{person_id}")
def update_person(
    person_id: str,
    payload: PersonUpdate,
    db: Session = Depends(get_db),
    _: Principal = Depends(require_roles(*ADMIN_ROLES)),
):
    raw = person_id
    # The roster screen sometimes sends "undefined"/"NaN" in the path; the body carries the real id.
    if not any(ch.isdigit() for ch in raw) and payload.id is not None:
        raw = str(payload.id)
    kind, pid = people_svc.parse_person_ref(raw)
    if pid is None:
        raise HTTPException(status_code=400, detail="Invalid ID format")

    try:
        result = people_svc.update_person(db, kind, pid, payload)
    except IntegrityError:
        raise HTTPException(status_code=409, detail="Email already exists.")
    except Exception:
        logger.exception("update_person failed for %s-%s", kind, pid)
        raise HTTPException(status_code=500, detail="Failed to update user")

    if result is None:
        raise HTTPException(status_code=404, detail="User not found")
    new_kind, person = result
    return {
        "message": "User updated successfully",
        "user": people_svc.person_dict(person, prefixed_id=f"{new_kind}-{person.id}"),
    }


@router.patch("/{person_id}/active")
def set_active(
    person_id: str,
    payload: ActivePatch,
    db: Session = Depends(get_db),
    _: Principal = Depends(require_roles(*ADMIN_ROLES)),
):
    kind, pid = people_svc.parse_person_ref(person_id)
    if pid is None:
        raise HTTPException(status_code=400, detail="Invalid id")
    if not people_svc.set_active(db, kind, pid, payload.active):
        raise HTTPException(status_code=404, detail="User not found")
    return {"success": True}


@router.delete("/{person_id}")
def delete_person(
    person_id: str,
    role: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    _: Principal = Depends(require_roles(*ADMIN_ROLES)),
):
    kind, pid = people_svc.parse_person_ref(person_id)
    if role:
        kind = "elder" if role.strip().lower() == "elder" else "user"
    if pid is None:
        raise HTTPException(status_code=400, detail="Invalid ID format")
    if not people_svc.delete_person(db, kind, pid):
        raise HTTPException(status_code=404, detail="Record not found")
    return {"message": f"{kind} deleted successfully"}
