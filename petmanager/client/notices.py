from typing import Protocol
import logging

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Avisos para la capa interactiva (toasts en la interfaz)."""

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class LoggingNotifier:
    """Notifier por defecto: deja los avisos en el log."""

    def success(self, message: str) -> None:
        logger.info(message)

    def error(self, message: str) -> None:
        logger.warning(message)
