"""
Errores del lado cliente.

Todas las operaciones que modifican datos relanzan estos errores para que la
capa interactiva decida qué aviso mostrar.
"""
from typing import Optional


class PetManagerError(Exception):
    """Base de todos los errores del cliente."""


class AuthenticationError(PetManagerError):
    def __init__(self, message: str = "User not authenticated"):
        super().__init__(message)


class BackendError(PetManagerError):
    """El backend respondió con un error o no se pudo contactar."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class RecordParseError(PetManagerError):
    """Una fila del backend no encaja con el modelo tipado."""

    def __init__(self, kind: str, detail: str):
        super().__init__(f"Invalid {kind} record: {detail}")
        self.kind = kind
        self.detail = detail


class ImageValidationError(PetManagerError):
    """Archivo rechazado antes de llamar a ningún servicio."""
