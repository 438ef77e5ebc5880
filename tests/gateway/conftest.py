"""gateway 测试配置 -- 手动装配会话（ASGITransport 不触发 lifespan）"""

from collections.abc import AsyncGenerator
from datetime import UTC
from pathlib import Path

import pytest
import pytest_asyncio
from homie.gateway.main import create_app
from homie.sync import InMemoryRemoteStore, SyncConfig, create_session
from httpx import ASGITransport, AsyncClient


@pytest.fixture
def remote() -> InMemoryRemoteStore:
    return InMemoryRemoteStore()


@pytest_asyncio.fixture
async def app(tmp_path: Path, clock, remote: InMemoryRemoteStore):
    """创建测试用 FastAPI app 实例"""
    application = create_app()
    session = await create_session(
        SyncConfig(account_id="acct-1"),
        db_path=str(tmp_path / "sqlite" / "test.db"),
        remote=remote,
        clock=clock,
        tz=UTC,
    )
    application.state.session = session

    yield application

    await session.close()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """提供 httpx AsyncClient 用于测试"""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
