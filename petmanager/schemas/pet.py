from datetime import datetime
from pydantic import BaseModel, Field, field_validator
from typing import Optional, Literal

Gender = Literal["male", "female"]

# Campos que el formulario puede editar; user_id nunca viaja desde el cliente
EDITABLE_FIELDS = ("name", "species", "breed", "age", "weight", "color", "gender", "image_url", "notes")


def _blank_to_none(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    return v or None


class PetCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=80)
    species: str = Field("Dog", max_length=80)
    breed: str = Field("", max_length=80)
    age: float = Field(0, ge=0)
    weight: float = Field(0, ge=0)
    color: str = Field("", max_length=80)
    gender: Gender = "male"
    image_url: Optional[str] = None
    notes: Optional[str] = Field(None, max_length=2000)

    @field_validator("image_url", "notes")
    @classmethod
    def empty_as_none(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)


class PetUpdate(BaseModel):
    """Actualización parcial: solo se aplican los campos enviados."""
    name: Optional[str] = Field(None, min_length=1, max_length=80)
    species: Optional[str] = Field(None, max_length=80)
    breed: Optional[str] = Field(None, max_length=80)
    age: Optional[float] = Field(None, ge=0)
    weight: Optional[float] = Field(None, ge=0)
    color: Optional[str] = Field(None, max_length=80)
    gender: Optional[Gender] = None
    image_url: Optional[str] = None
    notes: Optional[str] = Field(None, max_length=2000)
    updated_at: Optional[datetime] = None

    @field_validator("image_url", "notes")
    @classmethod
    def empty_as_none(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)


class Pet(PetCreate):
    id: str
    user_id: str
    created_at: datetime
    updated_at: Optional[datetime] = None
