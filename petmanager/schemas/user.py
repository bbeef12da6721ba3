from pydantic import BaseModel, EmailStr, Field
from typing import Optional


class Credentials(BaseModel):
    email: EmailStr = Field(..., description="Email del usuario")
    password: str = Field(..., min_length=1, max_length=128, description="Contraseña")


class Signup(Credentials):
    password: str = Field(..., min_length=6, max_length=128, description="Contraseña (mín. 6 caracteres)")


class UserOut(BaseModel):
    id: str
    email: EmailStr
    created_at: Optional[str] = None


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserOut
