"""同步路由

POST /api/sync: 立即拉取并合并远端快照
GET  /api/sync/status: 同步状态
"""

from fastapi import APIRouter, Depends
from starlette.responses import JSONResponse

from homie.sync import HomieSession

from ..deps import get_session

router = APIRouter()


@router.post("/api/sync")
async def trigger_sync(session: HomieSession = Depends(get_session)):
    """拉取合并；远端失败返回 502，本地状态不受影响"""
    result = await session.sync()
    if result is None:
        return JSONResponse(
            status_code=502,
            content={
                "error": {
                    "code": "SYNC_FAILED",
                    "message": session.reconciler.last_sync_error or "remote pull failed",
                }
            },
        )
    return {
        "result": result.model_dump(),
        "status": session.reconciler.status().model_dump(mode="json"),
    }


@router.get("/api/sync/status")
async def sync_status(session: HomieSession = Depends(get_session)):
    return session.reconciler.status().model_dump(mode="json")
