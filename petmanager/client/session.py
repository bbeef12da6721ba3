"""
Puerta de sesión: decide qué vista toca según haya o no sesión y recarga los
datos cuando el usuario entra.
"""
from enum import Enum
from typing import Optional
import logging

from .backend import AuthEvent, BackendClient, Session, SessionUser, Subscription
from .logs import WebhookLogFeed
from .store import PetStore

logger = logging.getLogger(__name__)


class View(str, Enum):
    LOADING = "loading"
    SIGNED_OUT = "signed_out"
    DASHBOARD = "dashboard"


class SessionGate:
    def __init__(self, backend: BackendClient, store: PetStore, logs: WebhookLogFeed):
        self.backend = backend
        self.store = store
        self.logs = logs
        self.view = View.LOADING
        self.user: Optional[SessionUser] = None
        self._subscription: Optional[Subscription] = None

    async def start(self) -> View:
        session = self.backend.auth.get_session()
        await self._apply(session)
        if self._subscription is None:
            self._subscription = self.backend.auth.on_auth_state_change(self._on_auth_change)
        return self.view

    def stop(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    async def reload(self) -> None:
        await self.store.fetch_pets()
        await self.logs.refresh()

    async def _on_auth_change(self, event: AuthEvent, session: Optional[Session]) -> None:
        logger.info("Auth state changed: %s", event.value)
        await self._apply(session)

    async def _apply(self, session: Optional[Session]) -> None:
        self.user = session.user if session else None
        if self.user is None:
            self.view = View.SIGNED_OUT
            self.store.clear()
            self.logs.clear()
            return
        self.view = View.DASHBOARD
        await self.reload()
