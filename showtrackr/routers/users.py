"""Account registration and password login."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from showtrackr.db.session import get_session
from showtrackr.schema.show import MessageResponse
from showtrackr.schema.user import CredentialsRequest, UserResponse
from showtrackr.services.credential_store import authenticate, register_user

router = APIRouter(prefix="/api", tags=["users"])


@router.post(
    "/users",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": MessageResponse}},
)
async def register(payload: CredentialsRequest, session: AsyncSession = Depends(get_session)) -> UserResponse:
    user = await register_user(session, payload.email, payload.password)
    await session.commit()
    return UserResponse(id=user.id, email=user.email)


@router.post("/login", response_model=UserResponse, responses={401: {"model": MessageResponse}})
async def login(payload: CredentialsRequest, session: AsyncSession = Depends(get_session)) -> UserResponse:
    user = await authenticate(session, payload.email, payload.password)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password.")
    return UserResponse(id=user.id, email=user.email)
