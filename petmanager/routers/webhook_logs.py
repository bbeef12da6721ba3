from fastapi import APIRouter, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase
from ..db import get_db
from ..security import get_current_user
from ..schemas.webhook import WebhookLog
from ..utils import to_id

router = APIRouter()

NEWEST_FIRST = [("created_at", -1), ("_id", -1)]


@router.get("", response_model=list[WebhookLog])
async def recent_logs(
    limit: int = Query(10, ge=1, le=100),
    current=Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    """Últimos eventos del usuario, del más reciente al más antiguo"""
    cursor = db.webhook_logs.find({"user_id": current["id"]}, sort=NEWEST_FIRST, limit=limit)
    return [to_id(d) for d in await cursor.to_list(limit)]
