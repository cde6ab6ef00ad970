from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional


class UserCreate(BaseModel):
    name: str = Field(min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(min_length=8, max_length=72)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 3:
            raise ValueError("Name must be at least 3 characters")
        return v


class UserLogin(BaseModel):
    # name or email
    name: str
    password: str


class UserOut(BaseModel):
    id: int
    name: str


class MeOut(UserOut):
    email: Optional[str] = None
    role: str
    created_at: str


class MeResponse(BaseModel):
    data: MeOut


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserOut
