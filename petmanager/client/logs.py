from typing import List, Optional
import logging

from ..config import get_settings
from ..schemas.webhook import WebhookLog
from .backend import BackendClient
from .errors import PetManagerError
from .records import parse_webhook_logs

logger = logging.getLogger(__name__)


class WebhookLogFeed:
    """Últimas entradas del log de la función `pet-created-webhook`, solo lectura."""

    def __init__(self, backend: BackendClient, limit: Optional[int] = None):
        self.backend = backend
        self.limit = limit or get_settings().recent_logs_limit
        self.entries: List[WebhookLog] = []

    async def refresh(self) -> List[WebhookLog]:
        if self.backend.auth.get_user() is None:
            return self.entries
        try:
            self.entries = parse_webhook_logs(await self.backend.webhook_logs.recent(self.limit))
        except PetManagerError as e:
            logger.error("Error fetching webhook logs: %s", e)
        return self.entries

    def clear(self) -> None:
        self.entries = []
