"""
Subida y borrado de la imagen de una mascota en el bucket `pet-images`.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional
import logging
import mimetypes
import time

from ..config import get_settings
from ..utils import storage_path_from_url
from .backend import BackendClient
from .errors import ImageValidationError, PetManagerError
from .notices import LoggingNotifier, Notifier

logger = logging.getLogger(__name__)

CACHE_CONTROL = "3600"


@dataclass(frozen=True)
class ImageFile:
    name: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        # sin punto, el nombre entero hace de extensión
        return self.name.rsplit(".", 1)[-1]

    @classmethod
    def from_path(cls, path: str, content_type: Optional[str] = None) -> "ImageFile":
        p = Path(path)
        guessed = content_type or mimetypes.guess_type(p.name)[0] or "application/octet-stream"
        return cls(name=p.name, content_type=guessed, data=p.read_bytes())


def validate_image(file: ImageFile, max_bytes: Optional[int] = None) -> None:
    max_bytes = max_bytes or get_settings().max_image_bytes
    if not (file.content_type or "").startswith("image/"):
        raise ImageValidationError("Please select an image file")
    if file.size > max_bytes:
        raise ImageValidationError("Image size should be less than 5MB")


class ImageUploader:
    def __init__(self, backend: BackendClient, notifier: Optional[Notifier] = None):
        self.backend = backend
        self.notifier = notifier or LoggingNotifier()

    async def upload(self, file: ImageFile) -> str:
        """Valida, sube y devuelve la URL pública del objeto."""
        validate_image(file)
        user = self.backend.auth.require_session().user
        path = f"{user.id}/{int(time.time() * 1000)}.{file.extension}"
        stored = await self.backend.storage.upload(
            path, file.data, file.content_type, cache_control=CACHE_CONTROL, upsert=False
        )
        return self.backend.storage.get_public_url(stored)

    async def remove(self, url: str) -> bool:
        """Borra el objeto de la URL. Devuelve False si la URL no apunta al bucket."""
        path = storage_path_from_url(url, self.backend.storage.bucket)
        if not path:
            return False
        await self.backend.storage.remove([path])
        return True

    async def select_file(self, file: Optional[ImageFile], on_change: Callable[[str], None]) -> Optional[str]:
        if file is None:
            return None
        try:
            validate_image(file)
        except ImageValidationError as e:
            self.notifier.error(str(e))
            return None

        try:
            url = await self.upload(file)
        except PetManagerError as e:
            logger.error("Error uploading image: %s", e)
            self.notifier.error("Failed to upload image")
            return None
        on_change(url)
        self.notifier.success("Image uploaded successfully!")
        return url

    async def remove_image(self, url: Optional[str], on_remove: Callable[[], None]) -> bool:
        if not url:
            return False
        try:
            await self.remove(url)
        except PetManagerError as e:
            logger.error("Error removing image: %s", e)
            self.notifier.error("Failed to remove image")
            return False
        on_remove()
        self.notifier.success("Image removed successfully!")
        return True
