from __future__ import annotations
from datetime import datetime, timezone as dt_tz
import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from pixelpost.models.admin import Admin
from pixelpost.security import hash_password, verify_password
from pixelpost.services.errors import Conflict

log = structlog.get_logger()

async def setup_first_admin(session: AsyncSession, *, username: str, password: str, name: str, email: str) -> Admin:
    """Bootstrap the single super-admin. Refused once any admin exists."""
    if await session.scalar(select(Admin).limit(1)):
        raise Conflict("Admin already exists. Use login instead.")
    admin = Admin(
        username=username,
        password_hash=hash_password(password),
        name=name,
        email=email,
        role="super-admin",
        created_at=datetime.now(dt_tz.utc),
    )
    session.add(admin)
    await session.commit()
    log.info("admin.created", admin_id=str(admin.id), username=username)
    return admin

async def authenticate(session: AsyncSession, username: str, password: str) -> Admin | None:
    admin = await session.scalar(select(Admin).where(Admin.username == username))
    if not admin or not verify_password(password, admin.password_hash):
        return None
    return admin
