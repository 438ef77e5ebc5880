"""FastAPI 应用主文件

app 创建 + lifespan 管理：会话装配（离线缓存 + 远端 + 协调器）、
后台首次拉取、关闭时发送剩余写入并保存快照。
"""

import asyncio
import contextlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from homie.sync import create_session, load_sync_config

from .middleware.logging_config import setup_logging
from .middleware.logging_mw import LoggingMiddleware
from .routes import health, persons, stream, sync, tasks

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理"""
    config = load_sync_config()
    session = await create_session(config)
    app.state.session = session

    # 首次拉取在后台进行，启动不等待远端
    initial_pull = asyncio.create_task(session.sync())
    app.state.initial_pull = initial_pull
    log.info(
        "gateway_started",
        account_id=config.account_id,
        sync_mode=config.sync_mode,
    )

    yield

    if not initial_pull.done():
        initial_pull.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await initial_pull
    await session.close()


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="Homie Gateway",
        version="0.1.0",
        description="Homie 周期家务任务 API",
        lifespan=lifespan,
    )

    app.add_middleware(LoggingMiddleware)

    # 初始化日志
    setup_logging(load_sync_config())

    # 注册路由（/api/tasks/day 等固定路径先于 /api/tasks/{task_id}）
    app.include_router(tasks.router, tags=["tasks"])
    app.include_router(persons.router, tags=["persons"])
    app.include_router(sync.router, tags=["sync"])
    app.include_router(stream.router, tags=["stream"])
    app.include_router(health.router, tags=["health"])

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()
