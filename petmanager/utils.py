# petmanager/utils.py
from typing import Any, Dict, Optional
from bson import ObjectId
from datetime import datetime, timezone
from fastapi import HTTPException

def to_id(doc: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Convierte _id -> id (str) y todos los ObjectIds a strings.
    También convierte datetime a ISO format strings.
    Si doc es None, devuelve {}.
    """
    if doc is None:
        return {}
    d = dict(doc)

    if "_id" in d:
        d["id"] = str(d.pop("_id"))

    for key, value in d.items():
        if isinstance(value, ObjectId):
            d[key] = str(value)
        elif isinstance(value, datetime):
            d[key] = iso(value)
        elif isinstance(value, dict):
            d[key] = to_id(value)
        elif isinstance(value, list):
            d[key] = [
                str(item) if isinstance(item, ObjectId)
                else iso(item) if isinstance(item, datetime)
                else to_id(item) if isinstance(item, dict)
                else item
                for item in value
            ]

    return d


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def iso(value: datetime) -> str:
    # Mongo devuelve datetimes naive en UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def to_object_id(value: str, field_name: str = "id", status_code: int = 400) -> ObjectId:
    """
    Convierte un string a ObjectId con validación.
    Centraliza la lógica de conversión para evitar duplicación.
    """
    if not ObjectId.is_valid(value):
        raise HTTPException(status_code=status_code, detail=f"Invalid {field_name}: {value}")
    return ObjectId(value)


def storage_path_from_url(url: Optional[str], bucket: str) -> Optional[str]:
    """
    Extrae la ruta del objeto dentro del bucket a partir de su URL pública.
    Devuelve None si la URL no contiene un segmento igual al nombre del bucket.
    """
    if not url:
        return None
    parts = url.split("/")
    try:
        idx = parts.index(bucket)
    except ValueError:
        return None
    return "/".join(parts[idx + 1:])
