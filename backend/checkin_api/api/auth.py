# backend/checkin_api/api/auth.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from checkin_api.dependencies import Principal, authenticate, get_db
from checkin_api.models.admin import Admin
from checkin_api.schemas.auth import AdminCreate, AdminRead, LoginRequest, LoginResponse, LoginUser
from checkin_api.security import create_staff_token, hash_password, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])
admins_router = APIRouter(prefix="/admins", tags=["Auth"])


@router.post("/login", response_model=LoginResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    username = payload.username.strip().lower()
    admin = db.execute(
        select(Admin).where(func.lower(Admin.username) == username).limit(1)
    ).scalars().first()

    if not admin or not verify_password(payload.password, admin.password_hash):
        logger.info("login failed for %r", username)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    return LoginResponse(
        token=create_staff_token(admin),
        user=LoginUser(
            id=admin.id,
            name=f"{admin.first_name} {admin.last_name}",
            role=admin.role,
            email=admin.username,
        ),
    )


@admins_router.post("", response_model=AdminRead, status_code=status.HTTP_201_CREATED)
def create_admin(payload: AdminCreate, db: Session = Depends(get_db), _: Principal = Depends(authenticate)):
    if not payload.first_name or not payload.last_name or not payload.username or not payload.password:
        raise HTTPException(status_code=400, detail="Missing required fields")

    taken = db.execute(
        select(Admin.id).where(func.lower(Admin.username) == payload.username.strip().lower())
    ).first()
    if taken:
        raise HTTPException(status_code=409, detail="Username already exists")

    admin = Admin(
        first_name=payload.first_name,
        last_name=payload.last_name,
        email=payload.email,
        phone=payload.phone,
        username=payload.username.strip(),
        password_hash=hash_password(payload.password),
        role="admin",
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin
