from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import FileResponse
from motor.motor_asyncio import AsyncIOMotorDatabase
from pathlib import Path, PurePosixPath
from pydantic import BaseModel, Field
import aiofiles
import logging

from ..db import get_db
from ..config import get_settings
from ..security import get_current_user
from ..utils import utcnow

logger = logging.getLogger(__name__)

router = APIRouter()

TOO_LARGE = "Object exceeds the maximum allowed size"


class RemoveRequest(BaseModel):
    prefixes: list[str] = Field(..., min_length=1)


def _bucket_or_404(bucket: str) -> str:
    if bucket != get_settings().storage_bucket:
        raise HTTPException(status_code=404, detail="Bucket not found")
    return bucket


def _clean_path(path: str) -> str:
    """Normaliza la ruta del objeto y rechaza rutas que salgan del bucket."""
    parts = PurePosixPath(path.strip("/")).parts
    if not parts or any(p in ("", ".", "..") for p in parts):
        raise HTTPException(status_code=400, detail="Invalid object path")
    return "/".join(parts)


def _owns(path: str, current: dict) -> bool:
    # Cada usuario solo escribe bajo su propio prefijo <user_id>/
    return path.split("/", 1)[0] == current["id"]


def _check_owner(path: str, current: dict) -> None:
    if not _owns(path, current):
        raise HTTPException(status_code=403, detail="Not allowed to access this object")


def _file_for(path: str) -> Path:
    return get_settings().bucket_dir / Path(*path.split("/"))


@router.post("/object/{bucket}/{path:path}")
async def upload_object(
    bucket: str,
    path: str,
    request: Request,
    current=Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    settings = get_settings()
    _bucket_or_404(bucket)
    path = _clean_path(path)
    _check_owner(path, current)

    content_type = request.headers.get("content-type", "")
    if not content_type.startswith("image/"):
        raise HTTPException(status_code=415, detail="Only image uploads are allowed")

    upsert = request.headers.get("x-upsert", "false").lower() == "true"
    cache_control = request.headers.get("cache-control", "3600")

    abs_path = _file_for(path)
    if abs_path.exists() and not upsert:
        raise HTTPException(status_code=409, detail="The resource already exists")

    declared = request.headers.get("content-length", "")
    if declared.isdigit() and int(declared) > settings.max_image_bytes:
        raise HTTPException(status_code=413, detail=TOO_LARGE)

    # se escribe en un .part y solo se mueve al final si todo fue bien
    abs_path.parent.mkdir(parents=True, exist_ok=True)
    part_path = abs_path.with_name(abs_path.name + ".part")
    size = 0
    try:
        async with aiofiles.open(part_path, "wb") as out:
            async for chunk in request.stream():
                size += len(chunk)
                if size > settings.max_image_bytes:
                    raise HTTPException(status_code=413, detail=TOO_LARGE)
                await out.write(chunk)
        if size == 0:
            raise HTTPException(status_code=400, detail="Empty upload")
        part_path.replace(abs_path)
    finally:
        part_path.unlink(missing_ok=True)

    await db.storage_objects.update_one(
        {"bucket": bucket, "path": path},
        {"$set": {
            "owner_id": current["id"],
            "content_type": content_type,
            "cache_control": cache_control,
            "size": size,
            "updated_at": utcnow(),
        }},
        upsert=True,
    )
    logger.info("Stored %s/%s (%d bytes)", bucket, path, size)
    return {"path": path, "key": f"{bucket}/{path}"}


@router.get("/object/public/{bucket}/{path:path}")
async def public_object(
    bucket: str,
    path: str,
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    _bucket_or_404(bucket)
    path = _clean_path(path)
    abs_path = _file_for(path)
    if not abs_path.is_file():
        raise HTTPException(status_code=404, detail="Object not found")

    meta = await db.storage_objects.find_one({"bucket": bucket, "path": path}) or {}
    cache_control = str(meta.get("cache_control") or "3600")
    if cache_control.isdigit():
        cache_control = f"max-age={cache_control}"
    return FileResponse(
        abs_path,
        media_type=meta.get("content_type"),
        headers={"Cache-Control": cache_control},
    )


@router.delete("/object/{bucket}")
async def remove_objects(
    bucket: str,
    payload: RemoveRequest,
    current=Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    _bucket_or_404(bucket)
    paths = [_clean_path(p) for p in payload.prefixes]

    removed = []
    for path in paths:
        # los objetos ajenos se tratan como inexistentes
        if not _owns(path, current):
            logger.warning("User %s cannot remove %s/%s", current["id"], bucket, path)
            continue
        abs_path = _file_for(path)
        # borrar un objeto que no existe no es un error
        if abs_path.is_file():
            abs_path.unlink()
            removed.append({"bucket": bucket, "name": path})
        await db.storage_objects.delete_one({"bucket": bucket, "path": path})
    logger.info("Removed %d object(s) from %s", len(removed), bucket)
    return removed
