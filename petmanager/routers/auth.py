from fastapi import APIRouter, Depends, HTTPException, status, Request, Response
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError
from ..db import get_db
from ..security import (
    hash_password,
    verify_password,
    create_access_token,
    token_ttl_seconds,
    get_current_user,
    public_user,
)
from ..schemas.user import Signup, Credentials, UserOut, TokenOut
from ..utils import utcnow
from ..middleware.rate_limit import apply_rate_limit
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/signup", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def signup(request: Request, payload: Signup, db: AsyncIOMotorDatabase = Depends(get_db)):
    # Rate limiting: máximo 5 registros por minuto por IP
    apply_rate_limit(request, "5/minute")

    email = payload.email.lower()
    if await db.users.find_one({"email": email}):
        raise HTTPException(409, "Email already registered")

    doc = {
        "email": email,
        "password_hash": hash_password(payload.password),
        "created_at": utcnow(),
    }
    try:
        res = await db.users.insert_one(doc)
    except DuplicateKeyError:
        raise HTTPException(409, "Email already registered")
    logger.info("User signed up: %s", res.inserted_id)
    return public_user(await db.users.find_one({"_id": res.inserted_id}))


@router.post("/token", response_model=TokenOut)
async def login(request: Request, payload: Credentials, db: AsyncIOMotorDatabase = Depends(get_db)):
    # Rate limiting: máximo 10 intentos de login por minuto por IP
    apply_rate_limit(request, "10/minute")

    user = await db.users.find_one({"email": payload.email.lower()})
    if not user or not verify_password(payload.password, user.get("password_hash", "")):
        raise HTTPException(401, "Invalid login credentials")
    token = create_access_token(str(user["_id"]))
    return {
        "access_token": token,
        "token_type": "bearer",
        "expires_in": token_ttl_seconds(),
        "user": public_user(user),
    }


@router.get("/user", response_model=UserOut)
async def current_user(current=Depends(get_current_user)):
    return current


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(current=Depends(get_current_user)):
    # Los tokens no tienen estado: el cliente descarta su sesión
    logger.info("User signed out: %s", current["id"])
    return Response(status_code=status.HTTP_204_NO_CONTENT)
