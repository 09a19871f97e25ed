# backend/checkin_api/api/dashboard.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from checkin_api.dependencies import Principal, authenticate, get_db
from checkin_api.services import dashboard as dashboard_svc

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("")
def dashboard(db: Session = Depends(get_db), _: Principal = Depends(authenticate)):
    return dashboard_svc.summary(db)
