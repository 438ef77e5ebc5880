"""SSE 变更流路由

GET /api/stream/changes: 实时推送 Store 变更（StoreChange），心跳保活。
"""

import asyncio

from fastapi import APIRouter, Depends
from sse_starlette.sse import EventSourceResponse

from homie.core.config import SSE_HEARTBEAT_INTERVAL
from homie.core.models import StoreChange
from homie.core.store import TaskStore

from ..deps import get_store

router = APIRouter()


def change_to_sse(change: StoreChange) -> dict:
    """将 StoreChange 转换为 SSE 消息"""
    return {
        "id": str(change.revision),
        "event": change.kind.value,
        "data": change.model_dump_json(),
    }


async def change_events(queue: asyncio.Queue, heartbeat: float = SSE_HEARTBEAT_INTERVAL):
    """从订阅队列持续产出 SSE 消息，空闲时产出心跳注释"""
    while True:
        try:
            change = await asyncio.wait_for(queue.get(), timeout=heartbeat)
            yield change_to_sse(change)
        except TimeoutError:
            yield {"comment": "heartbeat"}


@router.get("/api/stream/changes")
async def stream_changes(store: TaskStore = Depends(get_store)):
    """SSE 变更流端点"""
    hub = store.change_hub
    queue = hub.subscribe()

    async def event_generator():
        try:
            async for message in change_events(queue):
                yield message
        finally:
            hub.unsubscribe(queue)

    return EventSourceResponse(event_generator())
