from datetime import datetime
from pydantic import BaseModel, Field
from typing import Any, Dict, Literal, Optional

PET_CREATED = "pet.created"

WebhookStatus = Literal["success", "failure"]


class PetPayload(BaseModel):
    """Campos públicos de la mascota que se copian al envelope."""
    id: str
    name: str
    species: Optional[str] = None
    breed: Optional[str] = None
    age: Optional[float] = None
    weight: Optional[float] = None
    color: Optional[str] = None
    gender: Optional[str] = None
    image_url: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[str] = None


class EnvelopeUser(BaseModel):
    id: str
    email: Optional[str] = None


class WebhookEnvelope(BaseModel):
    event: str = PET_CREATED
    timestamp: str
    user: EnvelopeUser
    pet: PetPayload


class WebhookLog(BaseModel):
    id: str
    event_type: str
    user_id: str
    payload: Dict[str, Any] = Field(default_factory=dict)
    status: WebhookStatus
    created_at: datetime
