"""User registration and password checks backed by bcrypt."""

from __future__ import annotations

import logging

import bcrypt
from sqlalchemy import inspect, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from showtrackr.core.config import settings
from showtrackr.db.models import User

logger = logging.getLogger(__name__)

# bcrypt only reads the first 72 bytes of a password.
BCRYPT_MAX_BYTES = 72


class CredentialError(RuntimeError):
    """Raised when bcrypt cannot hash or compare a password."""


class EmailTakenError(RuntimeError):
    """Raised when registering an email that already has an account."""

    def __init__(self, email: str) -> None:
        super().__init__(f"{email} already exists.")
        self.email = email


def _encode(plain: str) -> bytes:
    return plain.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(plain: str, *, rounds: int | None = None) -> str:
    try:
        salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
        return bcrypt.hashpw(_encode(plain), salt).decode("utf-8")
    except ValueError as exc:
        raise CredentialError("Unable to hash password") from exc


def verify_password(candidate: str, hashed: str) -> bool:
    """Compare a plaintext candidate with a stored hash; a mismatch is False, a broken hash raises."""

    try:
        return bcrypt.checkpw(_encode(candidate), hashed.encode("utf-8"))
    except ValueError as exc:
        raise CredentialError("Unable to verify password") from exc


def _password_changed(user: User) -> bool:
    state = inspect(user)
    if state.transient or state.pending:
        return True
    return state.attrs.password.history.has_changes()


async def save_user(session: AsyncSession, user: User) -> User:
    """Persist a user, hashing the password only when it is new or was reassigned."""

    if _password_changed(user):
        user.password = hash_password(user.password)
    session.add(user)
    await session.flush()
    return user


async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    return await session.scalar(select(User).where(User.email == email.strip().lower()))


async def register_user(session: AsyncSession, email: str, password: str) -> User:
    normalized = email.strip().lower()
    if await get_user_by_email(session, normalized) is not None:
        raise EmailTakenError(normalized)

    user = User(email=normalized, password=password)
    try:
        await save_user(session, user)
    except IntegrityError as exc:
        await session.rollback()
        raise EmailTakenError(normalized) from exc

    logger.info("Registered user", extra={"user_id": user.id})
    return user


async def authenticate(session: AsyncSession, email: str, password: str) -> User | None:
    """Return the user when the password matches, otherwise None."""

    user = await get_user_by_email(session, email)
    if user is None:
        return None
    if not verify_password(password, user.password):
        logger.info("Password mismatch", extra={"user_id": user.id})
        return None
    return user
