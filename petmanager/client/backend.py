"""
Cliente HTTP asíncrono del backend (httpx).

Agrupa los colaboradores externos de la app en sub-clientes: `auth`
(proveedor de identidad), `pets` y `webhook_logs` (almacén de registros),
`storage` (bucket de imágenes) y `functions` (función de efecto secundario).
Cualquier respuesta no 2xx se convierte en `BackendError`; las llamadas que
necesitan sesión fallan con `AuthenticationError` sin tocar la red.
"""
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set
import asyncio
import logging
import time

import httpx
from pydantic import BaseModel

from ..config import get_settings
from .errors import AuthenticationError, BackendError

logger = logging.getLogger(__name__)


class SessionUser(BaseModel):
    id: str
    email: Optional[str] = None


class Session(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    expires_at: float
    user: SessionUser

    @property
    def expired(self) -> bool:
        return time.time() >= self.expires_at


class AuthEvent(str, Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"


AuthListener = Callable[[AuthEvent, Optional[Session]], Awaitable[None]]


class Subscription:
    def __init__(self, listeners: List[AuthListener], listener: AuthListener):
        self._listeners = listeners
        self._listener = listener

    def unsubscribe(self) -> None:
        if self._listener in self._listeners:
            self._listeners.remove(self._listener)


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or resp.reason_phrase
    if isinstance(body, dict):
        for key in ("detail", "error", "message"):
            if body.get(key):
                return str(body[key])
    return resp.reason_phrase


class AuthClient:
    def __init__(self, backend: "BackendClient"):
        self._backend = backend
        self._session: Optional[Session] = None
        self._listeners: List[AuthListener] = []
        self._pending: Set[asyncio.Task] = set()

    async def sign_up(self, email: str, password: str) -> SessionUser:
        resp = await self._backend.request(
            "POST", "/auth/signup", auth=False, json={"email": email, "password": password}
        )
        return SessionUser.model_validate(resp.json())

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        resp = await self._backend.request(
            "POST", "/auth/token", auth=False, json={"email": email, "password": password}
        )
        data = resp.json()
        data["expires_at"] = time.time() + int(data.get("expires_in", 0))
        await self.set_session(Session.model_validate(data))
        return self._session

    async def set_session(self, session: Session) -> None:
        self._session = session
        await self._emit(AuthEvent.SIGNED_IN, session)

    async def sign_out(self) -> None:
        if self._session is None:
            return
        try:
            await self._backend.request("POST", "/auth/logout")
        except BackendError as e:
            # la sesión local se descarta igualmente
            logger.warning("Sign-out request failed: %s", e)
        self._session = None
        await self._emit(AuthEvent.SIGNED_OUT, None)

    def get_session(self) -> Optional[Session]:
        if self._session is not None and self._session.expired:
            logger.info("Session expired for user %s", self._session.user.id)
            self._session = None
            self._emit_later(AuthEvent.SIGNED_OUT)
        return self._session

    def get_user(self) -> Optional[SessionUser]:
        session = self.get_session()
        return session.user if session else None

    def require_session(self) -> Session:
        session = self.get_session()
        if session is None:
            raise AuthenticationError()
        return session

    def on_auth_state_change(self, listener: AuthListener) -> Subscription:
        self._listeners.append(listener)
        return Subscription(self._listeners, listener)

    def _emit_later(self, event: AuthEvent) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # fuera de un bucle el aviso se pierde
            return
        task = loop.create_task(self._emit(event, None))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _emit(self, event: AuthEvent, session: Optional[Session]) -> None:
        for listener in list(self._listeners):
            try:
                await listener(event, session)
            except Exception:
                logger.exception("Auth listener failed on %s", event.value)


class PetsTable:
    def __init__(self, backend: "BackendClient"):
        self._backend = backend

    async def list(self) -> List[Dict[str, Any]]:
        resp = await self._backend.request("GET", "/rest/pets")
        return resp.json()

    async def insert(self, values: Dict[str, Any]) -> Dict[str, Any]:
        resp = await self._backend.request("POST", "/rest/pets", json=values)
        return resp.json()

    async def update(self, pet_id: str, values: Dict[str, Any]) -> Dict[str, Any]:
        resp = await self._backend.request("PATCH", f"/rest/pets/{pet_id}", json=values)
        return resp.json()

    async def delete(self, pet_id: str) -> None:
        await self._backend.request("DELETE", f"/rest/pets/{pet_id}")


class WebhookLogsTable:
    def __init__(self, backend: "BackendClient"):
        self._backend = backend

    async def recent(self, limit: int = 10) -> List[Dict[str, Any]]:
        resp = await self._backend.request("GET", "/rest/webhook_logs", params={"limit": limit})
        return resp.json()


class StorageClient:
    def __init__(self, backend: "BackendClient", bucket: str):
        self._backend = backend
        self.bucket = bucket

    async def upload(
        self,
        path: str,
        data: bytes,
        content_type: str,
        cache_control: str = "3600",
        upsert: bool = False,
    ) -> str:
        resp = await self._backend.request(
            "POST",
            f"/storage/v1/object/{self.bucket}/{path}",
            content=data,
            headers={
                "Content-Type": content_type,
                "Cache-Control": cache_control,
                "x-upsert": "true" if upsert else "false",
            },
        )
        return resp.json()["path"]

    def get_public_url(self, path: str) -> str:
        return f"{self._backend.base_url}/storage/v1/object/public/{self.bucket}/{path}"

    async def remove(self, paths: List[str]) -> List[Dict[str, Any]]:
        resp = await self._backend.request(
            "DELETE", f"/storage/v1/object/{self.bucket}", json={"prefixes": paths}
        )
        return resp.json()


class FunctionsClient:
    def __init__(self, backend: "BackendClient"):
        self._backend = backend

    async def invoke(self, name: str, body: Dict[str, Any]) -> Dict[str, Any]:
        resp = await self._backend.request("POST", f"/functions/v1/{name}", json=body)
        try:
            return resp.json()
        except ValueError as e:
            raise BackendError(f"Invalid response from function {name}: {e}", resp.status_code) from e


class BackendClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        http: Optional[httpx.AsyncClient] = None,
        bucket: Optional[str] = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.backend_url).rstrip("/")
        self.http = http or httpx.AsyncClient(timeout=10.0)
        self.auth = AuthClient(self)
        self.pets = PetsTable(self)
        self.webhook_logs = WebhookLogsTable(self)
        self.storage = StorageClient(self, bucket or settings.storage_bucket)
        self.functions = FunctionsClient(self)

    async def request(self, method: str, path: str, auth: bool = True, **kwargs) -> httpx.Response:
        headers = dict(kwargs.pop("headers", None) or {})
        if auth:
            session = self.auth.require_session()
            headers["Authorization"] = f"Bearer {session.access_token}"

        try:
            resp = await self.http.request(method, f"{self.base_url}{path}", headers=headers, **kwargs)
        except httpx.HTTPError as e:
            raise BackendError(f"Request to {path} failed: {e}") from e

        if resp.is_error:
            raise BackendError(_error_message(resp), resp.status_code)
        return resp

    async def aclose(self) -> None:
        await self.http.aclose()
