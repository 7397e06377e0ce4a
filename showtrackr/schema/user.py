"""Pydantic schemas for account endpoints."""

from __future__ import annotations

from pydantic import BaseModel, EmailStr, Field


class CredentialsRequest(BaseModel):
    """Email and plaintext password, used for registration, login and subscriptions."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    id: int
    email: str
