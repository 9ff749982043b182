from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from pixelpost.db import get_session
from pixelpost.auth_deps import get_current_admin
from pixelpost.schemas.admin import AdminSetupRequest, AdminLoginRequest, AdminLoginResponse, AdminPublic
from pixelpost.schemas.contest import ContestCreate, ContestPublic, ContestUpdate, Envelope
from pixelpost.security import make_admin_token
from pixelpost.services.admins import setup_first_admin, authenticate
from pixelpost.services.contests import ContestService
from pixelpost.routes.contests import get_contest_service, expanded_contest
from pixelpost.routes.presenters import contest_public

router = APIRouter(prefix="/admin", tags=["admin"])

@router.post("/setup", response_model=Envelope[None], status_code=201)
async def setup(payload: AdminSetupRequest, session: AsyncSession = Depends(get_session)):
    await setup_first_admin(
        session, username=payload.username, password=payload.password, name=payload.name, email=payload.email,
    )
    return Envelope(message="Admin account created successfully", data=None)

@router.post("/login", response_model=AdminLoginResponse)
async def login(payload: AdminLoginRequest, session: AsyncSession = Depends(get_session)):
    admin = await authenticate(session, payload.username, payload.password)
    if not admin:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return AdminLoginResponse(
        token=make_admin_token(str(admin.id), admin.username, admin.role),
        admin=AdminPublic(id=admin.id, username=admin.username, name=admin.name, email=admin.email, role=admin.role),
    )

@router.get("/contests", response_model=Envelope[list[ContestPublic]], response_model_exclude_none=True)
async def list_contests(svc: ContestService = Depends(get_contest_service), admin=Depends(get_current_admin)):
    return Envelope(data=[contest_public(c) for c in await svc.list_for_admin()])

@router.post("/contests", response_model=Envelope[ContestPublic], status_code=201, response_model_exclude_none=True)
async def create_contest(payload: ContestCreate, svc: ContestService = Depends(get_contest_service), admin=Depends(get_current_admin)):
    contest = await svc.create_contest(
        title=payload.title,
        description=payload.description,
        theme=payload.theme,
        start_date=payload.start_date,
        end_date=payload.end_date,
    )
    return Envelope(data=contest_public(contest))

@router.get("/contests/{contest_id}", response_model=Envelope[ContestPublic], response_model_exclude_none=True)
async def get_contest(contest_id: str, svc: ContestService = Depends(get_contest_service), admin=Depends(get_current_admin)):
    contest = await svc.get_contest(contest_id)
    return Envelope(data=await expanded_contest(svc, contest))

@router.put("/contests/{contest_id}", response_model=Envelope[ContestPublic], response_model_exclude_none=True)
async def update_contest(
    contest_id: str,
    payload: ContestUpdate,
    svc: ContestService = Depends(get_contest_service),
    admin=Depends(get_current_admin),
):
    contest = await svc.update_contest(
        contest_id,
        title=payload.title,
        description=payload.description,
        theme=payload.theme,
        start_date=payload.start_date,
        end_date=payload.end_date,
    )
    return Envelope(data=contest_public(contest))

@router.delete("/contests/{contest_id}", response_model=Envelope[None])
async def delete_contest(contest_id: str, svc: ContestService = Depends(get_contest_service), admin=Depends(get_current_admin)):
    await svc.delete_contest(contest_id)
    return Envelope(message="Contest deleted successfully", data=None)

@router.post("/contests/{contest_id}/calculate-winners", response_model=Envelope[ContestPublic], response_model_exclude_none=True)
async def calculate_winners(contest_id: str, svc: ContestService = Depends(get_contest_service), admin=Depends(get_current_admin)):
    await svc.calculate_winners(contest_id)
    contest = await svc.get_contest(contest_id)
    return Envelope(data=await expanded_contest(svc, contest))
