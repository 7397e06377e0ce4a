"""Tests for bcrypt-backed password storage."""

from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from showtrackr.core.config import settings
from showtrackr.db.models import User
from showtrackr.services import credential_store
from showtrackr.services.credential_store import CredentialError, EmailTakenError


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "bcrypt_rounds", 4)


def test_hash_and_verify_round_trip() -> None:
    hashed = credential_store.hash_password("s3cret")

    assert hashed != "s3cret"
    assert hashed.startswith("$2b$04$")
    assert credential_store.verify_password("s3cret", hashed) is True
    assert credential_store.verify_password("s3cret ", hashed) is False


def test_verify_against_broken_hash_is_an_error_not_a_mismatch() -> None:
    with pytest.raises(CredentialError):
        credential_store.verify_password("s3cret", "plaintext-by-mistake")


@pytest.mark.asyncio
async def test_save_user_hashes_new_password(session: AsyncSession) -> None:
    user = await credential_store.save_user(session, User(email="walt@example.com", password="heisenberg"))
    await session.commit()

    assert user.password != "heisenberg"
    assert credential_store.verify_password("heisenberg", user.password)


@pytest.mark.asyncio
async def test_save_user_without_password_change_keeps_hash(session: AsyncSession) -> None:
    user = await credential_store.save_user(session, User(email="walt@example.com", password="heisenberg"))
    await session.commit()
    stored = user.password

    user.email = "walter@example.com"
    await credential_store.save_user(session, user)
    await session.commit()
    assert user.password == stored

    user.password = stored
    await credential_store.save_user(session, user)
    assert user.password == stored


@pytest.mark.asyncio
async def test_save_user_rehashes_changed_password(session: AsyncSession) -> None:
    user = await credential_store.save_user(session, User(email="walt@example.com", password="heisenberg"))
    await session.commit()
    first_hash = user.password

    user.password = "blue-sky"
    await credential_store.save_user(session, user)
    await session.commit()

    assert user.password not in {first_hash, "blue-sky"}
    assert credential_store.verify_password("blue-sky", user.password)
    assert not credential_store.verify_password("heisenberg", user.password)


@pytest.mark.asyncio
async def test_register_and_authenticate(session: AsyncSession) -> None:
    user = await credential_store.register_user(session, "Jesse@Example.com", "yo")
    await session.commit()
    assert user.email == "jesse@example.com"

    assert await credential_store.authenticate(session, "jesse@example.com", "yo") is user
    assert await credential_store.authenticate(session, "JESSE@example.com", "yo") is user
    assert await credential_store.authenticate(session, "jesse@example.com", "nope") is None
    assert await credential_store.authenticate(session, "nobody@example.com", "yo") is None


@pytest.mark.asyncio
async def test_register_duplicate_email(session: AsyncSession) -> None:
    await credential_store.register_user(session, "skyler@example.com", "one")
    await session.commit()

    with pytest.raises(EmailTakenError, match="skyler@example.com already exists."):
        await credential_store.register_user(session, "Skyler@example.com", "two")


@pytest.mark.asyncio
async def test_overlong_password_is_a_mismatch_not_an_error(session: AsyncSession) -> None:
    await credential_store.register_user(session, "marie@example.com", "short")
    await session.commit()

    assert await credential_store.authenticate(session, "marie@example.com", "x" * 100) is None


@pytest.mark.asyncio
async def test_overlong_password_registers_and_authenticates(session: AsyncSession) -> None:
    passphrase = "purple " * 15
    user = await credential_store.register_user(session, "marie@example.com", passphrase)
    await session.commit()

    assert await credential_store.authenticate(session, "marie@example.com", passphrase) is user
    assert await credential_store.authenticate(session, "marie@example.com", "purple") is None
