"""Shared fixtures: an app wired to a throwaway SQLite file, and HTTP helpers."""

import asyncio

import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.core.database import build_engine, build_session_factory
from app.main import create_app
from app.models import Base


def make_settings(tmp_path, **overrides) -> Settings:
    values = {
        "DATABASE_URL": f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        "CREATE_SCHEMA_ON_STARTUP": True,
        "BCRYPT_ROUNDS": 4,
        "SECRET_KEY": "test-secret",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return make_settings(tmp_path)


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app, follow_redirects=False) as c:
        yield c


def seed(database_url: str, *rows) -> None:
    """Insert rows through a separate engine (schema must already exist)."""

    async def _seed():
        engine = build_engine(database_url)
        factory = build_session_factory(engine)
        async with factory() as session:
            session.add_all(rows)
            await session.commit()
        await engine.dispose()

    asyncio.run(_seed())


def run_with_db(tmp_path, scenario):
    """Run `scenario(session_factory)` against a fresh schema."""

    async def _run():
        engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'store.db'}")
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        try:
            return await scenario(build_session_factory(engine))
        finally:
            await engine.dispose()

    return asyncio.run(_run())


def register(client, username, password, confirm=None):
    return client.post(
        "/registro",
        data={
            "username": username,
            "password": password,
            "confirmPassword": password if confirm is None else confirm,
        },
    )


def login(client, username, password):
    return client.post("/login", data={"username": username, "password": password})
