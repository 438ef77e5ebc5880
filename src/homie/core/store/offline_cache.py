"""OfflineCache -- 本地快照的 SQLite 持久化

启动时（首次拉取前、离线模式）从缓存恢复本地状态，
合并后与关闭时整体写回。快照替换在同一事务内完成。
"""

from datetime import datetime
from pathlib import Path

import aiosqlite
import structlog

from ..models.person import Person
from ..models.task import Task
from .sqlite_init import init_db

log = structlog.get_logger()

# meta 键：最后一次成功同步时间
META_LAST_SYNC_AT = "last_sync_at"


class OfflineCache:
    """本地任务/成员快照缓存"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    @classmethod
    async def open(cls, db_path: str) -> "OfflineCache":
        """打开（必要时创建）缓存数据库"""
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        conn = await aiosqlite.connect(db_path)
        conn.row_factory = aiosqlite.Row
        await init_db(conn)
        return cls(conn)

    @property
    def conn(self) -> aiosqlite.Connection:
        return self._conn

    async def close(self) -> None:
        await self._conn.close()

    async def save_snapshot(self, tasks: list[Task], persons: list[Person]) -> None:
        """整体替换缓存中的任务与成员"""
        try:
            await self._conn.execute("DELETE FROM tasks")
            await self._conn.execute("DELETE FROM persons")
            await self._conn.executemany(
                """
                INSERT INTO tasks (task_id, name, due_date, is_completed, assigned_to,
                                   notes, repeat_option, parent_task_id, owner_id, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        t.task_id,
                        t.name,
                        t.due_date.isoformat(),
                        int(t.is_completed),
                        t.assigned_to,
                        t.notes,
                        t.repeat_option.value,
                        t.parent_task_id,
                        t.owner_id,
                        t.created_at.isoformat(),
                    )
                    for t in tasks
                ],
            )
            await self._conn.executemany(
                """
                INSERT INTO persons (person_id, name, icon, color, owner_id, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        p.person_id,
                        p.name,
                        p.icon,
                        p.color,
                        p.owner_id,
                        p.created_at.isoformat(),
                    )
                    for p in persons
                ],
            )
            await self._conn.commit()
        except Exception:
            await self._conn.rollback()
            raise
        log.debug("offline_snapshot_saved", task_count=len(tasks), person_count=len(persons))

    async def load_snapshot(self) -> tuple[list[Task], list[Person]]:
        """读取缓存快照"""
        cursor = await self._conn.execute("SELECT * FROM tasks ORDER BY due_date")
        tasks = [self._row_to_task(row) for row in await cursor.fetchall()]
        cursor = await self._conn.execute("SELECT * FROM persons ORDER BY created_at")
        persons = [self._row_to_person(row) for row in await cursor.fetchall()]
        return tasks, persons

    async def get_meta(self, key: str) -> str | None:
        cursor = await self._conn.execute("SELECT value FROM meta WHERE key = ?", (key,))
        row = await cursor.fetchone()
        return None if row is None else row["value"]

    async def set_meta(self, key: str, value: str) -> None:
        await self._conn.execute(
            "INSERT INTO meta (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
            (key, value),
        )
        await self._conn.commit()

    async def get_last_sync_at(self) -> datetime | None:
        raw = await self.get_meta(META_LAST_SYNC_AT)
        return datetime.fromisoformat(raw) if raw else None

    async def set_last_sync_at(self, value: datetime) -> None:
        await self.set_meta(META_LAST_SYNC_AT, value.isoformat())

    @staticmethod
    def _row_to_task(row: aiosqlite.Row) -> Task:
        return Task(
            task_id=row["task_id"],
            name=row["name"],
            due_date=datetime.fromisoformat(row["due_date"]),
            is_completed=bool(row["is_completed"]),
            assigned_to=row["assigned_to"],
            notes=row["notes"],
            repeat_option=row["repeat_option"],
            parent_task_id=row["parent_task_id"],
            owner_id=row["owner_id"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    @staticmethod
    def _row_to_person(row: aiosqlite.Row) -> Person:
        return Person(
            person_id=row["person_id"],
            name=row["name"],
            icon=row["icon"],
            color=row["color"],
            owner_id=row["owner_id"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )
