from fastapi import APIRouter, Depends, HTTPException, status, Response
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from ..db import get_db
from ..security import get_current_user
from ..config import get_settings
from ..schemas.pet import PetCreate, PetUpdate, Pet
from ..utils import storage_path_from_url, to_id, to_object_id, utcnow
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

# Campos que admiten null explícito en un PATCH
NULLABLE = {"image_url", "notes"}

NEWEST_FIRST = [("created_at", -1), ("_id", -1)]


def _oid(pet_id: str):
    return to_object_id(pet_id, "pet id", status_code=404)


async def _check_image(db: AsyncIOMotorDatabase, image_url, current: dict) -> None:
    """La imagen tiene que ser un objeto del bucket subido por el propio usuario."""
    if image_url is None:
        return
    bucket = get_settings().storage_bucket
    path = storage_path_from_url(image_url, bucket)
    found = None
    if path:
        found = await db.storage_objects.find_one(
            {"bucket": bucket, "path": path, "owner_id": current["id"]}
        )
    if not found:
        raise HTTPException(status_code=400, detail="image_url must point at an uploaded image")


@router.get("", response_model=list[Pet])
async def list_pets(
    current=Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    cursor = db.pets.find({"user_id": current["id"]}, sort=NEWEST_FIRST)
    docs = await cursor.to_list(None)
    return [to_id(d) for d in docs]


@router.post("", response_model=Pet, status_code=status.HTTP_201_CREATED)
async def create_pet(
    payload: PetCreate,
    current=Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    await _check_image(db, payload.image_url, current)
    doc = payload.model_dump()
    doc["user_id"] = current["id"]     # lo pone el backend
    now = utcnow()
    doc["created_at"] = now
    doc["updated_at"] = now
    res = await db.pets.insert_one(doc)
    doc["_id"] = res.inserted_id
    logger.info("Pet %s created by %s", res.inserted_id, current["id"])
    return to_id(doc)


@router.patch("/{pet_id}", response_model=Pet)
async def update_pet(
    pet_id: str,
    payload: PetUpdate,
    current=Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    changes = {
        k: v for k, v in payload.model_dump(exclude_unset=True).items()
        if v is not None or k in NULLABLE
    }
    changes.pop("updated_at", None)
    if not changes:
        raise HTTPException(status_code=400, detail="Nothing to update")
    if "image_url" in changes:
        await _check_image(db, changes["image_url"], current)
    changes["updated_at"] = payload.updated_at or utcnow()

    doc = await db.pets.find_one_and_update(
        {"_id": _oid(pet_id), "user_id": current["id"]},
        {"$set": changes},
        return_document=ReturnDocument.AFTER,
    )
    if not doc:
        raise HTTPException(status_code=404, detail="Pet not found")
    return to_id(doc)


@router.delete("/{pet_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_pet(
    pet_id: str,
    current=Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    result = await db.pets.delete_one({"_id": _oid(pet_id), "user_id": current["id"]})
    if result.deleted_count == 0:
        raise HTTPException(status_code=404, detail="Pet not found")
    logger.info("Pet %s deleted by %s", pet_id, current["id"])
    return Response(status_code=status.HTTP_204_NO_CONTENT)
