"""
Espejo en memoria de las mascotas del usuario.

`PetStore` es el único estado mutable del cliente. Cada operación llama
primero al backend y solo toca `pets` cuando el backend confirma; si la
llamada falla el espejo queda como estaba y el error se relanza (salvo
`fetch_pets`, que guarda el mensaje en `error`).
"""
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Set, Union
import asyncio
import logging

from ..schemas.pet import EDITABLE_FIELDS, Pet, PetCreate, PetUpdate
from ..utils import storage_path_from_url
from .backend import BackendClient
from .errors import PetManagerError
from .records import parse_pet, parse_pets

logger = logging.getLogger(__name__)

PET_CREATED_FUNCTION = "pet-created-webhook"

SideEffectObserver = Callable[[Pet, Exception], None]


class PetStore:
    def __init__(
        self,
        backend: BackendClient,
        on_side_effect_error: Optional[SideEffectObserver] = None,
    ):
        self.backend = backend
        self.pets: List[Pet] = []
        self.error: Optional[str] = None
        self.on_side_effect_error = on_side_effect_error
        self._side_effects: Set[asyncio.Task] = set()

    def get_pet(self, pet_id: str) -> Optional[Pet]:
        return next((p for p in self.pets if p.id == pet_id), None)

    def clear(self) -> None:
        self.pets = []
        self.error = None

    async def fetch_pets(self) -> List[Pet]:
        if self.backend.auth.get_user() is None:
            return []
        try:
            pets = parse_pets(await self.backend.pets.list())
        except PetManagerError as e:
            logger.error("Error fetching pets: %s", e)
            self.error = str(e)
            return self.pets
        self.pets = pets
        self.error = None
        return self.pets

    async def add_pet(self, data: Union[PetCreate, Dict[str, Any]]) -> Pet:
        self.backend.auth.require_session()
        values = PetCreate.model_validate(_as_dict(data)).model_dump(mode="json")

        pet = parse_pet(await self.backend.pets.insert(values))
        self.pets = [pet, *self.pets]

        task = asyncio.create_task(self._notify_created(pet))
        self._side_effects.add(task)
        task.add_done_callback(self._side_effects.discard)
        return pet

    async def update_pet(self, pet_id: str, changes: Union[PetUpdate, Dict[str, Any]]) -> Pet:
        self.backend.auth.require_session()
        fields = {k: v for k, v in _as_dict(changes).items() if k in EDITABLE_FIELDS}
        fields["updated_at"] = datetime.now(timezone.utc)
        values = PetUpdate.model_validate(fields).model_dump(mode="json", exclude_unset=True)

        updated = parse_pet(await self.backend.pets.update(pet_id, values))
        self.pets = [updated if p.id == pet_id else p for p in self.pets]
        return updated

    async def delete_pet(self, pet_id: str) -> None:
        self.backend.auth.require_session()
        pet = self.get_pet(pet_id)
        if pet is not None and pet.image_url:
            path = storage_path_from_url(pet.image_url, self.backend.storage.bucket)
            if path:
                await self.backend.storage.remove([path])

        await self.backend.pets.delete(pet_id)
        self.pets = [p for p in self.pets if p.id != pet_id]

    async def wait_for_side_effects(self) -> None:
        if self._side_effects:
            await asyncio.gather(*list(self._side_effects), return_exceptions=True)

    async def _notify_created(self, pet: Pet) -> None:
        try:
            await self.backend.functions.invoke(PET_CREATED_FUNCTION, pet.model_dump(mode="json"))
        except Exception as e:
            # el alta ya está confirmada; el fallo solo se reporta
            logger.error("Error triggering webhook for pet %s: %s", pet.id, e)
            if self.on_side_effect_error is not None:
                self.on_side_effect_error(pet, e)


def _as_dict(data: Union[PetCreate, PetUpdate, Dict[str, Any]]) -> Dict[str, Any]:
    if isinstance(data, (PetCreate, PetUpdate)):
        return data.model_dump(exclude_unset=True)
    return dict(data)
