# backend/checkin_api/api/imports.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.orm import Session

from checkin_api.dependencies import Principal, authenticate, get_db
from checkin_api.services import importer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/import", tags=["Import"])


@router.post("/users")
async def import_users(
    file: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    _: Principal = Depends(authenticate),
):
    if file is None:
        raise HTTPException(status_code=400, detail="No file uploaded")
    raw = await file.read()
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        text = raw.decode("latin-1")

    try:
        result = importer.import_people(db, text)
    except importer.MissingRequiredColumns as e:
        raise HTTPException(status_code=400, detail=str(e))

    logger.info("import %s: imported=%s skipped=%s", file.filename, result["imported"], result["skipped"])
    return result
