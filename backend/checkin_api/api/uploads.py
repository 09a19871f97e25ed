# backend/checkin_api/api/uploads.py
from __future__ import annotations

import logging
import os
import random
import time
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from checkin_api import config
from checkin_api.dependencies import Principal, authenticate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/uploads", tags=["Uploads"])

ALLOWED_TYPES = {"image/jpeg", "image/png", "image/jpg", "image/webp"}
MAX_AVATAR_BYTES = 2 * 1024 * 1024


def avatar_filename(original: Optional[str]) -> str:
    ext = os.path.splitext(original or "")[1].lower()
    return f"avatar-{int(time.time() * 1000)}-{random.randint(0, 10**9)}{ext}"


@router.post("/avatar")
async def upload_avatar(
    avatar: Optional[UploadFile] = File(None),
    _: Principal = Depends(authenticate),
):
    if avatar is None:
        raise HTTPException(status_code=400, detail="No file uploaded")
    if avatar.content_type not in ALLOWED_TYPES:
        raise HTTPException(status_code=400, detail="Unsupported file type")

    content = await avatar.read()
    if len(content) > MAX_AVATAR_BYTES:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail="File too large (max 2MB)")

    upload_dir = config.upload_dir()
    os.makedirs(upload_dir, exist_ok=True)
    name = avatar_filename(avatar.filename)
    with open(os.path.join(upload_dir, name), "wb") as fh:
        fh.write(content)

    logger.info("avatar stored: %s (%s bytes)", name, len(content))
    return {"url": f"/uploads/{name}"}
