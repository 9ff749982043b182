from __future__ import annotations
from pydantic import BaseModel, EmailStr, Field
from uuid import UUID

class AdminSetupRequest(BaseModel):
    username: str = Field(min_length=3, max_length=64)
    password: str = Field(min_length=8, max_length=72)
    name: str = Field(min_length=1, max_length=120)
    email: EmailStr

class AdminLoginRequest(BaseModel):
    username: str
    password: str

class AdminPublic(BaseModel):
    id: UUID
    username: str
    name: str
    email: EmailStr
    role: str

class AdminLoginResponse(BaseModel):
    success: bool = True
    token: str
    admin: AdminPublic
