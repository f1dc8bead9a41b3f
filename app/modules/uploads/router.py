from __future__ import annotations

import logging
import os
import uuid

from fastapi import APIRouter, Depends, File, UploadFile

from app.auth.deps import Principal, get_current_principal
from app.core.config import settings
from app.core.rbac import require

logger = logging.getLogger("damage_report.uploads")

router = APIRouter(prefix="/uploads", tags=["uploads"])

_EXTENSIONS = {"image/jpeg": ".jpg", "image/png": ".png", "image/webp": ".webp"}


@router.post("/damage-photo")
async def upload_damage_photo(
    photo: UploadFile = File(...),
    principal: Principal = Depends(get_current_principal),
):
    content_type = (photo.content_type or "").lower()
    require(
        content_type in settings.photo_types(),
        "JPEG, PNG, WEBP 이미지만 업로드할 수 있습니다",
        400,
    )

    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    ext = _EXTENSIONS.get(content_type) or os.path.splitext(photo.filename or "")[1].lower()
    fname = f"damage_{uuid.uuid4().hex}{ext}"
    dest = os.path.join(settings.UPLOAD_DIR, fname)
    max_bytes = int(settings.MAX_UPLOAD_MB) * 1024 * 1024
    size = 0
    too_large = False
    with open(dest, "wb") as out:
        while True:
            chunk = await photo.read(1024 * 1024)
            if not chunk:
                break
            size += len(chunk)
            if size > max_bytes:
                too_large = True
                break
            out.write(chunk)
    if too_large:
        os.remove(dest)
        require(False, f"파일 크기는 최대 {settings.MAX_UPLOAD_MB}MB입니다", 400)

    logger.info("Stored damage photo %s (%d bytes) for %s", fname, size, principal.role.value)
    return {"url": f"/uploads/{fname}"}
