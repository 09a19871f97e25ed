# backend/checkin_api/api/email.py
from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from checkin_api.dependencies import Principal, require_roles
from checkin_api.security import ADMIN_ROLES

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/email", tags=["Email"])


class SendReportsRequest(BaseModel):
    event_id: Optional[Any] = None
    ministries: Optional[Any] = None
    template_id: Optional[Any] = None
    attach: Optional[Any] = None


@router.post("/send-reports")
def send_reports(payload: SendReportsRequest, _: Principal = Depends(require_roles(*ADMIN_ROLES))):
    """Acknowledges the request only; no mail transport is configured."""
    if not payload.event_id:
        raise HTTPException(status_code=400, detail="event_id required")
    logger.info("send-reports requested for event %s", payload.event_id)
    return {"ok": True, "queued": True, **payload.model_dump()}
