"""依赖注入模块 -- 通过 FastAPI Depends 注入会话组件

HomieSession 通过 app.state 管理，在 lifespan 中初始化/清理。
"""

from fastapi import Request

from homie.core.store import TaskStore
from homie.sync import HomieSession, SyncReconciler


def get_session(request: Request) -> HomieSession:
    """从 app.state 获取 HomieSession 实例"""
    return request.app.state.session


def get_store(request: Request) -> TaskStore:
    return request.app.state.session.store


def get_reconciler(request: Request) -> SyncReconciler:
    return request.app.state.session.reconciler
