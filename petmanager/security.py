from datetime import datetime, timedelta, timezone
from typing import Optional
from fastapi import Depends, HTTPException
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from passlib.context import CryptContext
from motor.motor_asyncio import AsyncIOMotorDatabase
from bson import ObjectId

from .config import get_settings
from .db import get_db
from .utils import to_id

ALGO = "HS256"
pwd = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token")


def hash_password(plain: str) -> str:
    return pwd.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    if not hashed:
        return False
    return pwd.verify(plain, hashed)


def token_ttl_seconds(expires_hours: Optional[int] = None) -> int:
    return int((expires_hours or get_settings().jwt_expires_hours) * 3600)


def create_access_token(user_id: str, expires_hours: Optional[int] = None) -> str:
    expire = datetime.now(timezone.utc) + timedelta(seconds=token_ttl_seconds(expires_hours))
    payload = {"sub": user_id, "exp": expire}
    return jwt.encode(payload, get_settings().jwt_secret, algorithm=ALGO)


def decode_user_id(token: str) -> Optional[str]:
    """Devuelve el `sub` del token o None si no es válido o ha caducado."""
    try:
        payload = jwt.decode(token, get_settings().jwt_secret, algorithms=[ALGO])
    except JWTError:
        return None
    sub = payload.get("sub")
    return str(sub) if sub else None


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def user_from_token(db: AsyncIOMotorDatabase, token: Optional[str]) -> Optional[dict]:
    """Resuelve el usuario de un token; None si el token o el usuario no existen."""
    if not token:
        return None
    user_id = decode_user_id(token)
    if not user_id or not ObjectId.is_valid(user_id):
        return None
    doc = await db.users.find_one({"_id": ObjectId(user_id)})
    if not doc:
        return None
    return public_user(doc)


def public_user(doc: dict) -> dict:
    user = to_id(doc)
    user.pop("password_hash", None)
    return user


async def get_current_user_id(token: str = Depends(oauth2_scheme)) -> str:
    sub = decode_user_id(token)
    if not sub:
        raise HTTPException(status_code=401, detail="Invalid token")
    return sub


async def get_current_user(
    db: AsyncIOMotorDatabase = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    if not ObjectId.is_valid(user_id):
        raise HTTPException(status_code=401, detail="Invalid token")
    doc = await db.users.find_one({"_id": ObjectId(user_id)})
    if not doc:
        raise HTTPException(status_code=401, detail="User not found")
    return public_user(doc)
