"""健康检查路由

GET /health: Liveness 检查，永远返回 200。
GET /ready: Readiness 检查，包含离线缓存连通性与远端可达性。
"""

import structlog
from fastapi import APIRouter, Query, Request
from starlette.responses import JSONResponse

log = structlog.get_logger()

router = APIRouter()


@router.get("/health")
async def health():
    """Liveness 检查 -- 永远返回 200"""
    return {"status": "ok"}


@router.get("/ready")
async def ready(
    request: Request,
    profile: str | None = Query(
        default=None,
        description="检查配置：core（默认）仅离线缓存；full 额外探测远端",
    ),
):
    """Readiness 检查

    检查项：
    1. sqlite: 离线缓存连通性
    2. remote: profile=full 时探测远端，否则 skipped
    3. pending_writes: outbox 中待发送写入数（仅信息）
    """
    effective_profile = profile or "core"
    checks: dict = {}
    all_ok = True

    session = getattr(request.app.state, "session", None)
    if session is None:
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "profile": effective_profile, "checks": {}},
        )

    # 1. SQLite 连通性检查
    try:
        cursor = await session.cache.conn.execute("SELECT 1")
        await cursor.fetchone()
        checks["sqlite"] = "ok"
    except Exception as e:
        checks["sqlite"] = f"error: {str(e)}"
        all_ok = False

    # 2. 远端健康检查
    if effective_profile == "full":
        if await session.remote.health_check():
            checks["remote"] = "ok"
        else:
            log.warning("remote_not_ready", sync_mode=session.config.sync_mode)
            checks["remote"] = "unreachable"
            all_ok = False
    else:
        checks["remote"] = "skipped"

    checks["pending_writes"] = session.reconciler.pending_writes

    return JSONResponse(
        status_code=200 if all_ok else 503,
        content={
            "status": "ready" if all_ok else "not_ready",
            "profile": effective_profile,
            "checks": checks,
        },
    )
