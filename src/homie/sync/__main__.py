"""CLI 入口模块 -- python -m homie.sync <command>

支持的命令：
  pull    加载离线缓存，拉取并合并远端快照，写回缓存
  status  显示离线缓存中的任务/成员数量与最后同步时间
"""

import asyncio
import sys

from homie.core.config import get_db_path
from homie.core.store import OfflineCache

from .session import create_session

_USAGE = """用法: python -m homie.sync <command>
命令:
  pull    拉取远端快照并合并到离线缓存
  status  显示离线缓存状态"""


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print(_USAGE)
        sys.exit(1)

    command = sys.argv[1]

    if command == "pull":
        ok = asyncio.run(pull())
        sys.exit(0 if ok else 2)
    elif command == "status":
        asyncio.run(status())
    else:
        print(f"未知命令: {command}")
        print("可用命令: pull, status")
        sys.exit(1)


async def pull() -> bool:
    """执行一次拉取合并"""
    session = await create_session()
    print(f"数据库路径: {get_db_path()}")
    print(f"同步模式: {session.config.sync_mode}")

    try:
        result = await session.sync()
        if result is None:
            print(f"拉取失败: {session.reconciler.last_sync_error}")
            return False
        print(
            f"合并完成: 新增 {len(result.added)}，覆盖 {len(result.replaced)}，"
            f"保留本地 {len(result.kept_local)}，本地优先 {len(result.protected)}"
        )
        return True
    finally:
        await session.close()


async def status() -> None:
    """显示离线缓存状态"""
    db_path = get_db_path()
    cache = await OfflineCache.open(db_path)
    try:
        tasks, persons = await cache.load_snapshot()
        last_sync_at = await cache.get_last_sync_at()
    finally:
        await cache.close()

    roots = sum(1 for t in tasks if t.is_recurrence_root)
    pending = sum(1 for t in tasks if not t.is_completed)
    print(f"数据库路径: {db_path}")
    print(f"任务: {len(tasks)}（周期根任务 {roots}，未完成 {pending}）")
    print(f"成员: {len(persons)}")
    print(f"最后同步: {last_sync_at.isoformat() if last_sync_at else '从未同步'}")


if __name__ == "__main__":
    main()
