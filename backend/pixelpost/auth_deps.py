from __future__ import annotations
from dataclasses import dataclass
import uuid
import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from starlette.concurrency import run_in_threadpool
from sqlalchemy.ext.asyncio import AsyncSession
from pixelpost.db import get_session
from pixelpost.models.admin import Admin
from pixelpost.security import UserTokenVerifier, get_user_token_verifier, decode_admin_token

security = HTTPBearer(auto_error=False)

@dataclass
class CurrentUser:
    user_id: str
    username: str

def _bearer(credentials: HTTPAuthorizationCredentials | None) -> str:
    if not credentials or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Missing access token")
    return credentials.credentials

async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    verifier: UserTokenVerifier = Depends(get_user_token_verifier),
) -> CurrentUser:
    token = _bearer(credentials)
    try:
        # JWKS fetch is blocking I/O on a cache miss
        data = await run_in_threadpool(verifier.decode, token)
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Invalid token")
    sub = data.get("sub")
    if not sub:
        raise HTTPException(status_code=401, detail="Invalid token")
    # entries keep a username snapshot taken from the token
    username = data.get("nickname") or data.get("name") or sub
    return CurrentUser(user_id=sub, username=username)

async def get_current_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    session: AsyncSession = Depends(get_session),
) -> Admin:
    token = _bearer(credentials)
    try:
        data = decode_admin_token(token)
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Invalid token")
    if data.get("type") != "admin":
        raise HTTPException(status_code=401, detail="Wrong token type")
    admin = await session.get(Admin, _admin_id(data.get("sub")))
    if not admin:
        raise HTTPException(status_code=401, detail="Admin not found")
    return admin

def _admin_id(sub) -> uuid.UUID:
    try:
        return uuid.UUID(str(sub))
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid token")
