"""全局 pytest 配置 -- 固定时钟 + TaskStore + 临时 SQLite 数据库 fixture"""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
import pytest_asyncio
from homie.core.store import OfflineCache, TaskStore

# 2024-01-01 是周一
NOW = datetime(2024, 1, 1, 9, 0, tzinfo=UTC)


class FixedClock:
    """可手动推进的测试时钟"""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def store(clock: FixedClock) -> TaskStore:
    """纯本地 TaskStore（UTC 日历，周一为一周起始）"""
    return TaskStore(account_id="acct-1", clock=clock, tz=UTC, week_start=0)


@pytest_asyncio.fixture
async def tmp_db_path(tmp_path: Path) -> Path:
    """提供临时 SQLite 数据库路径"""
    return tmp_path / "sqlite" / "test.db"


@pytest_asyncio.fixture
async def cache(tmp_db_path: Path) -> AsyncGenerator[OfflineCache, None]:
    """提供已初始化的离线缓存"""
    offline_cache = await OfflineCache.open(str(tmp_db_path))
    yield offline_cache
    await offline_cache.close()
