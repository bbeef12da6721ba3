"""
Lógica de la página principal sin presentación: búsqueda, estadísticas y los
handlers de guardar, borrar y cerrar sesión con sus avisos.
"""
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Union
import logging

from ..schemas.pet import Pet, PetCreate
from .backend import BackendClient
from .errors import PetManagerError
from .images import ImageUploader
from .logs import WebhookLogFeed
from .notices import LoggingNotifier, Notifier
from .session import SessionGate
from .store import PetStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PetStats:
    total_pets: int
    total_weight: float
    average_age: float


def filter_pets(pets: Iterable[Pet], query: str) -> List[Pet]:
    """Coincidencia por subcadena, sin distinguir mayúsculas, en nombre, especie o raza."""
    q = (query or "").lower()
    return [
        p for p in pets
        if q in p.name.lower() or q in p.species.lower() or q in p.breed.lower()
    ]


def pet_stats(pets: List[Pet]) -> PetStats:
    total_weight = sum(p.weight for p in pets)
    avg_age = round(sum(p.age for p in pets) / len(pets), 1) if pets else 0
    return PetStats(total_pets=len(pets), total_weight=round(total_weight, 1), average_age=avg_age)


class Dashboard:
    def __init__(self, backend: BackendClient, notifier: Optional[Notifier] = None):
        self.backend = backend
        self.notifier = notifier or LoggingNotifier()
        self.store = PetStore(backend)
        self.logs = WebhookLogFeed(backend)
        self.images = ImageUploader(backend, self.notifier)
        self.gate = SessionGate(backend, self.store, self.logs)
        self.search_query = ""

    @property
    def visible_pets(self) -> List[Pet]:
        return filter_pets(self.store.pets, self.search_query)

    @property
    def stats(self) -> PetStats:
        return pet_stats(self.store.pets)

    async def save_pet(
        self,
        data: Union[PetCreate, Dict[str, Any]],
        editing: Optional[Pet] = None,
    ) -> Optional[Pet]:
        try:
            if editing is not None:
                pet = await self.store.update_pet(editing.id, data)
                self.notifier.success("Pet updated successfully!")
            else:
                pet = await self.store.add_pet(data)
                self.notifier.success("Pet added successfully! Webhook triggered.")
                await self.store.wait_for_side_effects()
                await self.logs.refresh()
        except (PetManagerError, ValueError) as e:
            logger.error("Error saving pet: %s", e)
            self.notifier.error("Failed to save pet")
            return None
        return pet

    async def confirm_delete(self, pet_id: str) -> bool:
        try:
            await self.store.delete_pet(pet_id)
        except PetManagerError as e:
            logger.error("Error deleting pet: %s", e)
            self.notifier.error("Failed to delete pet")
            return False
        self.notifier.success("Pet deleted successfully!")
        return True

    async def sign_out(self) -> None:
        await self.backend.auth.sign_out()
        self.notifier.success("Signed out successfully")
