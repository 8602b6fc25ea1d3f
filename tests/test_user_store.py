import asyncio

import pytest

from app.core.exceptions import DuplicateUser, PasswordMismatch, PasswordTooLong, UserNotFound
from app.core.security import verify_password
from app.models.user import User
from app.services import auth_service, user_details_service, user_store
from conftest import run_with_db


def test_save_assigns_id_and_find_returns_it(tmp_path):
    async def scenario(factory):
        async with factory() as db:
            saved = await user_store.save(User(username="alice", password_hash="h", role="ROLE_USER"), db)
            await db.commit()
        async with factory() as db:
            found = await user_store.find_by_username("alice", db)
            missing = await user_store.find_by_username("nobody", db)
        return saved, found, missing

    saved, found, missing = run_with_db(tmp_path, scenario)
    assert saved.id is not None
    assert found.id == saved.id
    assert missing is None


def test_save_rejects_duplicate_username(tmp_path):
    async def scenario(factory):
        async with factory() as db:
            await user_store.save(User(username="alice", password_hash="h", role="ROLE_USER"), db)
            await db.commit()
        async with factory() as db:
            await user_store.save(User(username="alice", password_hash="h2", role="ROLE_USER"), db)

    with pytest.raises(DuplicateUser):
        run_with_db(tmp_path, scenario)


def test_register_hashes_password_and_assigns_default_role(tmp_path):
    async def scenario(factory):
        async with factory() as db:
            user = await auth_service.register_user("alice", "pw123", "pw123", db, rounds=4)
            await db.commit()
        return user

    user = run_with_db(tmp_path, scenario)
    assert user.role == "ROLE_USER"
    assert user.password_hash != "pw123"
    assert verify_password("pw123", user.password_hash)


def test_register_rejects_mismatched_confirmation(tmp_path):
    async def scenario(factory):
        async with factory() as db:
            await auth_service.register_user("alice", "pw123", "pw124", db, rounds=4)

    with pytest.raises(PasswordMismatch):
        run_with_db(tmp_path, scenario)


def test_register_rejects_password_over_bcrypt_limit(tmp_path):
    async def scenario(factory):
        async with factory() as db:
            with pytest.raises(PasswordTooLong):
                await auth_service.register_user("alice", "p" * 73, "p" * 73, db, rounds=4)
            return await user_store.find_by_username("alice", db)

    assert run_with_db(tmp_path, scenario) is None


def test_concurrent_registration_yields_one_user(tmp_path):
    async def attempt(factory):
        async with factory() as db:
            await auth_service.register_user("alice", "pw123", "pw123", db, rounds=4)
            await db.commit()

    async def scenario(factory):
        results = await asyncio.gather(
            attempt(factory), attempt(factory), return_exceptions=True,
        )
        async with factory() as db:
            stored = await user_store.find_by_username("alice", db)
        return results, stored

    results, stored = run_with_db(tmp_path, scenario)
    assert sum(r is None for r in results) == 1
    assert sum(isinstance(r, DuplicateUser) for r in results) == 1
    assert stored is not None


def test_lookup_wraps_role_as_single_authority(tmp_path):
    async def scenario(factory):
        async with factory() as db:
            await user_store.save(User(username="admin", password_hash="h", role="ROLE_ADMIN"), db)
            await db.commit()
        async with factory() as db:
            return await user_details_service.load_by_username("admin", db)

    identity = run_with_db(tmp_path, scenario)
    assert identity.username == "admin"
    assert identity.password_hash == "h"
    assert identity.authorities == frozenset({"ROLE_ADMIN"})


def test_lookup_of_unknown_user_fails(tmp_path):
    async def scenario(factory):
        async with factory() as db:
            await user_details_service.load_by_username("ghost", db)

    with pytest.raises(UserNotFound):
        run_with_db(tmp_path, scenario)
