"""Tests for database client lifecycle."""

import pytest
import pytest_asyncio
from sqlalchemy import text

from src.database import client as db_client


@pytest_asyncio.fixture
async def initialised_db():
    await db_client.init_db()
    yield
    await db_client.close_db()


class TestDatabaseClient:
    def test_engine_requires_init(self):
        with pytest.raises(RuntimeError):
            db_client.get_engine()

    async def test_init_and_close(self):
        await db_client.init_db()
        assert db_client.get_engine() is not None

        await db_client.close_db()
        with pytest.raises(RuntimeError):
            db_client.get_session_factory()

    async def test_session_runs_queries(self, initialised_db):
        async with db_client.get_session() as session:
            result = await session.execute(text("SELECT 1"))
            assert result.scalar_one() == 1

    async def test_session_reraises_errors(self, initialised_db):
        with pytest.raises(ValueError):
            async with db_client.get_session() as session:
                await session.execute(text("SELECT 1"))
                raise ValueError("boom")
