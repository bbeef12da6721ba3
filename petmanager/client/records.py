from typing import Any, Dict, Iterable, List
from pydantic import ValidationError

from ..schemas.pet import Pet
from ..schemas.webhook import WebhookLog
from .errors import RecordParseError


def parse_pet(row: Dict[str, Any]) -> Pet:
    try:
        return Pet.model_validate(row)
    except ValidationError as e:
        raise RecordParseError("pet", str(e)) from e


def parse_pets(rows: Iterable[Dict[str, Any]]) -> List[Pet]:
    return [parse_pet(r) for r in rows]


def parse_webhook_log(row: Dict[str, Any]) -> WebhookLog:
    try:
        return WebhookLog.model_validate(row)
    except ValidationError as e:
        raise RecordParseError("webhook log", str(e)) from e


def parse_webhook_logs(rows: Iterable[Dict[str, Any]]) -> List[WebhookLog]:
    return [parse_webhook_log(r) for r in rows]
