"""
Función de efecto secundario `pet-created-webhook`.

Se invoca desde el cliente después de crear una mascota. Vuelve a validar la
sesión del llamante, construye el envelope de notificación y deja una fila en
`webhook_logs`. No reintenta nada y no entrega el evento a ningún destino
externo.
"""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response
from motor.motor_asyncio import AsyncIOMotorDatabase
from typing import Any, Dict
import json
import logging

from ..db import get_db
from ..security import bearer_token, user_from_token
from ..schemas.webhook import (
    PET_CREATED,
    EnvelopeUser,
    PetPayload,
    WebhookEnvelope,
    WebhookStatus,
)
from ..utils import utcnow

logger = logging.getLogger(__name__)

router = APIRouter()

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}


def _json(content: Dict[str, Any], status_code: int = 200) -> JSONResponse:
    return JSONResponse(content=content, status_code=status_code, headers=CORS_HEADERS)


def build_envelope(user: dict, pet: PetPayload) -> WebhookEnvelope:
    return WebhookEnvelope(
        event=PET_CREATED,
        timestamp=utcnow().isoformat(),
        user=EnvelopeUser(id=user["id"], email=user.get("email")),
        pet=pet,
    )


async def record_webhook_log(
    db: AsyncIOMotorDatabase,
    user_id: str,
    envelope: WebhookEnvelope,
    status: WebhookStatus = "success",
) -> None:
    """Añade una fila al log. Un fallo al escribir solo se registra."""
    try:
        await db.webhook_logs.insert_one({
            "event_type": envelope.event,
            "user_id": user_id,
            "payload": envelope.model_dump(),
            "status": status,
            "created_at": utcnow(),
        })
    except Exception:
        logger.exception("Error logging webhook for user %s", user_id)


@router.options("/pet-created-webhook")
async def pet_created_preflight():
    return Response(status_code=200, headers=CORS_HEADERS)


@router.post("/pet-created-webhook")
async def pet_created_webhook(request: Request, db: AsyncIOMotorDatabase = Depends(get_db)):
    try:
        user = await user_from_token(db, bearer_token(request.headers.get("authorization")))
        if not user:
            return _json({"error": "Unauthorized"}, status_code=401)

        pet = PetPayload.model_validate(json.loads(await request.body()))
        logger.info("Pet created webhook triggered: pet=%s user=%s", pet.id, user["id"])

        envelope = build_envelope(user, pet)
        await record_webhook_log(db, user["id"], envelope, status="success")

        return _json({
            "success": True,
            "message": "Pet created webhook processed successfully",
            "data": envelope.model_dump(),
        })
    except Exception as e:
        logger.exception("Webhook error")
        return _json({"success": False, "error": str(e)}, status_code=500)
