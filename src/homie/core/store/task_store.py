"""TaskStore -- 当前会话的内存权威任务集合

负责任务/成员的增删改查、周期实例的级联生成/删除/编辑传播，
以及与远端快照的合并。

并发模型：
- 单写者：所有操作必须在同一线程（事件循环线程）内调用
- 本地操作同步完成，外发同步通过 SyncSink 调度，不阻塞调用方
- 未知 ID 视为 no-op，不抛出异常
"""

import threading
from collections.abc import Callable, Iterable
from datetime import UTC, date, datetime, timedelta, tzinfo

import structlog
from ulid import ULID

from ..change_hub import ChangeHub
from ..config import (
    INITIAL_OCCURRENCE_BATCH,
    TOPUP_MIN_PENDING,
    UPCOMING_DEFAULT_DAYS,
    get_timezone,
    get_week_start,
)
from ..generator import generate_occurrences
from ..models.change import MergeResult, StoreChange
from ..models.enums import ChangeKind, RepeatOption
from ..models.person import DEFAULT_PERSON_ICON, Person
from ..models.task import Task, TaskPatch
from ..recurrence import local_day, start_of_day
from .protocols import SyncSink
from .window import WindowMaintainer

log = structlog.get_logger()

Clock = Callable[[], datetime]

# 编辑根任务时向未来实例传播的字段
PROPAGATED_FIELDS = ("name", "assigned_to", "notes")


def _utc_now() -> datetime:
    return datetime.now(UTC)


class TaskStore:
    """内存任务存储"""

    def __init__(
        self,
        *,
        account_id: str = "",
        sync: SyncSink | None = None,
        change_hub: ChangeHub | None = None,
        clock: Clock | None = None,
        tz: tzinfo | None = None,
        week_start: int | None = None,
    ) -> None:
        """
        Args:
            account_id: 当前账号 ID，写入新任务的 owner_id
            sync: 外发同步通道，None 表示纯本地模式
            change_hub: 变更广播器，默认新建
            clock: 当前时间来源（测试可注入固定时钟）
            tz: 日历时区，默认读取 HOMIE_TIMEZONE
            week_start: 一周起始日（0=周一），默认读取 HOMIE_WEEK_START
        """
        self._account_id = account_id
        self._sync = sync
        self.change_hub = change_hub or ChangeHub()
        self._clock = clock or _utc_now
        self._tz = tz or get_timezone()
        self._week_start = get_week_start() if week_start is None else week_start % 7

        self._tasks: dict[str, Task] = {}
        self._persons: dict[str, Person] = {}

        # revision 每次变更 +1；_touched 记录每个 ID 最后一次本地变更时的 revision
        self._revision = 0
        self._touched: dict[str, int] = {}
        self._owner_thread: int | None = None

        self.window = WindowMaintainer(self)

    # ---- 基础属性 ----

    @property
    def account_id(self) -> str:
        return self._account_id

    @property
    def tz(self) -> tzinfo:
        return self._tz

    @property
    def revision(self) -> int:
        return self._revision

    def attach_sync(self, sync: SyncSink | None) -> None:
        """注入（或移除）外发同步通道"""
        self._sync = sync

    def now(self) -> datetime:
        value = self._clock()
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value

    def today(self) -> date:
        return local_day(self.now(), self._tz)

    def start_of_today(self) -> datetime:
        return start_of_day(self.today(), self._tz)

    def touched_since(self, object_id: str, revision: int) -> bool:
        """该 ID 在 revision 之后是否有过本地变更"""
        return self._touched.get(object_id, -1) > revision

    # ---- 内部工具 ----

    def _check_owner(self) -> None:
        ident = threading.get_ident()
        if self._owner_thread is None:
            self._owner_thread = ident
        elif self._owner_thread != ident:
            raise RuntimeError("TaskStore 只能在其所属线程内访问")

    def _bump(self, ids: Iterable[str] = (), *, local: bool = True) -> int:
        self._revision += 1
        if local:
            for object_id in ids:
                self._touched[object_id] = self._revision
        return self._revision

    def notify(
        self,
        kind: ChangeKind,
        task_ids: Iterable[str] = (),
        person_ids: Iterable[str] = (),
    ) -> None:
        self.change_hub.publish(
            StoreChange(
                kind=kind,
                task_ids=list(task_ids),
                person_ids=list(person_ids),
                revision=self._revision,
                ts=self.now(),
            )
        )

    def _schedule_upsert(self, task: Task) -> None:
        if self._sync is not None:
            self._sync.persist_create_or_update(task)

    def _schedule_delete(self, task_id: str) -> None:
        if self._sync is not None:
            self._sync.persist_delete(task_id)

    def _as_day(self, value: date | datetime) -> date:
        if isinstance(value, datetime):
            return local_day(value, self._tz)
        return value

    @staticmethod
    def _sorted(tasks: Iterable[Task]) -> list[Task]:
        return sorted(tasks, key=lambda t: (t.due_date, t.task_id))

    # ---- 查询 ----

    def count_tasks(self) -> int:
        self._check_owner()
        return len(self._tasks)

    def get_task(self, task_id: str) -> Task | None:
        self._check_owner()
        return self._tasks.get(task_id)

    def list_tasks(self) -> list[Task]:
        """全部任务（不触发窗口补齐），按 due_date 升序"""
        self._check_owner()
        return self._sorted(self._tasks.values())

    def roots(self) -> list[Task]:
        """全部周期根任务"""
        self._check_owner()
        return [t for t in self._tasks.values() if t.is_recurrence_root]

    def occurrences_of(self, root_id: str) -> list[Task]:
        """根任务的全部实例，按 due_date 升序"""
        self._check_owner()
        return self._sorted(t for t in self._tasks.values() if t.parent_task_id == root_id)

    def tasks_for_day(self, day: date | datetime) -> list[Task]:
        """某日历日的全部任务（含已完成），按 due_date 升序"""
        self._check_owner()
        target = self._as_day(day)
        self.window.ensure_occurrences_through(
            start_of_day(target + timedelta(days=1), self._tz)
        )
        return self._sorted(
            t for t in self._tasks.values() if local_day(t.due_date, self._tz) == target
        )

    def tasks_for_week(self, starting_from: date | datetime) -> dict[date, list[Task]]:
        """starting_from 所在日历周的 7 天任务，按日期有序"""
        self._check_owner()
        anchor = self._as_day(starting_from)
        week_start = anchor - timedelta(days=(anchor.weekday() - self._week_start) % 7)
        week_end = week_start + timedelta(days=7)
        self.window.ensure_occurrences_through(start_of_day(week_end, self._tz))

        result: dict[date, list[Task]] = {
            week_start + timedelta(days=offset): [] for offset in range(7)
        }
        for task in self._sorted(self._tasks.values()):
            day = local_day(task.due_date, self._tz)
            if day in result:
                result[day].append(task)
        return result

    def upcoming_tasks(self, days: int = UPCOMING_DEFAULT_DAYS) -> list[Task]:
        """[today, today + days] 闭区间内未完成的任务，按 due_date 升序"""
        self._check_owner()
        if days < 0:
            return []
        today = self.today()
        end = today + timedelta(days=days)
        self.window.ensure_occurrences_through(
            start_of_day(end + timedelta(days=1), self._tz)
        )
        return self._sorted(
            t
            for t in self._tasks.values()
            if not t.is_completed and today <= local_day(t.due_date, self._tz) <= end
        )

    def tasks_assigned_to(self, person_id: str) -> list[Task]:
        self._check_owner()
        return self._sorted(t for t in self._tasks.values() if t.assigned_to == person_id)

    def get_person(self, person_id: str) -> Person | None:
        self._check_owner()
        return self._persons.get(person_id)

    def list_persons(self) -> list[Person]:
        self._check_owner()
        return sorted(self._persons.values(), key=lambda p: (p.name.lower(), p.person_id))

    # ---- 任务变更 ----

    def add_task(
        self,
        name: str,
        due_date: datetime,
        *,
        is_completed: bool = False,
        assigned_to: str | None = None,
        notes: str | None = None,
        repeat_option: RepeatOption = RepeatOption.NEVER,
    ) -> str:
        """新增根任务（或非周期任务）

        周期任务立即生成首批实例，近期查询无需等待生成。

        Returns:
            新任务 ID
        """
        self._check_owner()
        task = Task(
            task_id=str(ULID()),
            name=name,
            due_date=due_date,
            is_completed=is_completed,
            assigned_to=assigned_to,
            notes=notes,
            repeat_option=repeat_option,
            parent_task_id=None,
            owner_id=self._account_id,
            created_at=self.now(),
        )
        self._tasks[task.task_id] = task
        self._bump([task.task_id])
        self._schedule_upsert(task)

        generated: list[Task] = []
        if task.repeat_option.is_repeating:
            generated = self._generate_batch(task, INITIAL_OCCURRENCE_BATCH)

        log.info(
            "task_added",
            task_id=task.task_id,
            repeat_option=task.repeat_option.value,
            generated=len(generated),
        )
        self.notify(ChangeKind.TASK_ADDED, [task.task_id, *(t.task_id for t in generated)])
        return task.task_id

    def update_task(self, task_id: str, patch: TaskPatch) -> Task | None:
        """部分更新任务

        仅应用 patch 中显式设置的字段，副作用按顺序执行：
        a. 周期根任务 due_date 变化 -> 删除未来实例并重新生成
        b. 周期任务 is_completed false->true -> 为根任务补齐实例
        c. repeat_option 变化 -> 生成 / 删除 / 按新节奏重建未来实例
        d. 周期根任务 name/assigned_to/notes 变化 -> 传播到未来实例
        e. 调度远端同步

        Returns:
            更新后的任务；未知 ID 返回 None
        """
        self._check_owner()
        current = self._tasks.get(task_id)
        if current is None:
            log.debug("task_update_ignored", task_id=task_id, reason="unknown_id")
            return None

        changed = {
            key: value
            for key, value in patch.changes().items()
            if getattr(current, key) != value
        }
        if not changed:
            return current

        updated = current.model_copy(update=changed)
        self._tasks[task_id] = updated
        self._bump([task_id])
        affected: list[str] = [task_id]

        is_root = updated.parent_task_id is None
        was_repeating = current.repeat_option.is_repeating
        now_repeating = updated.repeat_option.is_repeating

        if is_root:
            # a. 到期日变化（周期规则不变时；规则变化由 c 统一处理）
            if "due_date" in changed and "repeat_option" not in changed and now_repeating:
                affected += self._remove_future_occurrences(task_id)
                affected += [t.task_id for t in self._generate_batch(updated, INITIAL_OCCURRENCE_BATCH)]

        # b. 完成一个周期任务后补齐窗口
        if changed.get("is_completed") is True and now_repeating:
            root = updated if is_root else self._tasks.get(updated.parent_task_id or "")
            if root is not None and root.is_recurrence_root:
                affected += [t.task_id for t in self._top_up(root)]

        if is_root:
            # c. 周期规则变化
            if "repeat_option" in changed:
                if not was_repeating and now_repeating:
                    generated = self._generate_batch(updated, INITIAL_OCCURRENCE_BATCH)
                    affected += [t.task_id for t in generated]
                elif was_repeating and not now_repeating:
                    affected += self._remove_future_occurrences(task_id)
                else:
                    affected += self._remove_future_occurrences(task_id)
                    generated = self._generate_batch(updated, INITIAL_OCCURRENCE_BATCH)
                    affected += [t.task_id for t in generated]

            # d. 传播到未来实例
            propagated = {k: changed[k] for k in PROPAGATED_FIELDS if k in changed}
            if propagated and now_repeating:
                affected += self._propagate_to_future(task_id, propagated)

        # e. 外发同步
        self._schedule_upsert(updated)

        log.info(
            "task_updated",
            task_id=task_id,
            fields=sorted(changed),
            affected=len(affected),
        )
        self.notify(ChangeKind.TASK_UPDATED, dict.fromkeys(affected))
        return updated

    def delete_task(self, task_id: str) -> list[str]:
        """删除任务

        周期根任务先级联删除全部实例，再删除自身；
        单个实例或非周期任务只删除自身。

        Returns:
            被删除的任务 ID 列表；未知 ID 返回空列表
        """
        self._check_owner()
        task = self._tasks.get(task_id)
        if task is None:
            log.debug("task_delete_ignored", task_id=task_id, reason="unknown_id")
            return []

        removed: list[str] = []
        if task.is_recurrence_root:
            for child in self.occurrences_of(task_id):
                del self._tasks[child.task_id]
                removed.append(child.task_id)

        del self._tasks[task_id]
        removed.append(task_id)
        self._bump(removed)

        for object_id in removed:
            self._schedule_delete(object_id)

        log.info("task_deleted", task_id=task_id, cascade=len(removed) - 1)
        self.notify(ChangeKind.TASK_DELETED, removed)
        return removed

    # ---- 周期实例维护 ----

    def insert_occurrences(self, occurrences: list[Task]) -> None:
        """写入新生成的实例并调度同步（不发送变更通知）"""
        for occurrence in occurrences:
            self._tasks[occurrence.task_id] = occurrence
            self._schedule_upsert(occurrence)
        if occurrences:
            self._bump(t.task_id for t in occurrences)

    def _generate_batch(self, root: Task, count: int) -> list[Task]:
        generated = generate_occurrences(
            root,
            self.occurrences_of(root.task_id),
            count=count,
            not_before=self.start_of_today(),
            tz=self._tz,
            created_at=self.now(),
        )
        self.insert_occurrences(generated)
        return generated

    def _top_up(self, root: Task) -> list[Task]:
        now = self.now()
        pending = [
            t
            for t in self.occurrences_of(root.task_id)
            if not t.is_completed and t.due_date > now
        ]
        deficit = TOPUP_MIN_PENDING - len(pending)
        if deficit <= 0:
            return []
        return self._generate_batch(root, deficit)

    def _remove_future_occurrences(self, root_id: str) -> list[str]:
        now = self.now()
        removed = [t.task_id for t in self.occurrences_of(root_id) if t.due_date > now]
        for object_id in removed:
            del self._tasks[object_id]
            self._schedule_delete(object_id)
        if removed:
            self._bump(removed)
        return removed

    def _propagate_to_future(self, root_id: str, fields: dict) -> list[str]:
        now = self.now()
        touched: list[str] = []
        for occurrence in self.occurrences_of(root_id):
            if occurrence.due_date <= now:
                continue
            updated = occurrence.model_copy(update=fields)
            self._tasks[occurrence.task_id] = updated
            self._schedule_upsert(updated)
            touched.append(occurrence.task_id)
        if touched:
            self._bump(touched)
        return touched

    # ---- 成员 ----

    def add_person(
        self,
        name: str,
        color: str = "gray",
        icon: str = DEFAULT_PERSON_ICON,
    ) -> str | None:
        """新增成员；同名（忽略大小写）成员已存在时返回 None"""
        self._check_owner()
        lowered = name.strip().lower()
        if any(p.name.lower() == lowered for p in self._persons.values()):
            log.info("person_add_ignored", name=name, reason="duplicate_name")
            return None

        person = Person(
            person_id=str(ULID()),
            name=name.strip(),
            icon=icon,
            color=color,
            owner_id=self._account_id,
            created_at=self.now(),
        )
        self._persons[person.person_id] = person
        self._bump([person.person_id])
        if self._sync is not None:
            self._sync.persist_person(person)

        log.info("person_added", person_id=person.person_id)
        self.notify(ChangeKind.PERSON_ADDED, person_ids=[person.person_id])
        return person.person_id

    # ---- 快照与合并 ----

    def load_snapshot(self, tasks: Iterable[Task], persons: Iterable[Person] = ()) -> None:
        """用离线缓存替换本地状态（不调度同步）"""
        self._check_owner()
        self._tasks = {t.task_id: t for t in tasks}
        self._persons = {p.person_id: p for p in persons}
        self._bump(local=False)
        log.info(
            "snapshot_loaded",
            task_count=len(self._tasks),
            person_count=len(self._persons),
        )
        self.notify(ChangeKind.SNAPSHOT_LOADED)

    def _is_protected(self, object_id: str, since_revision: int | None) -> bool:
        if since_revision is not None and self.touched_since(object_id, since_revision):
            return True
        return self._sync is not None and self._sync.has_pending(object_id)

    def merge_remote_tasks(
        self,
        remote_tasks: Iterable[Task],
        *,
        since_revision: int | None = None,
    ) -> MergeResult:
        """合并远端任务快照

        按 ID 求并集，远端覆盖本地；仅本地存在的 ID 原样保留。
        since_revision 之后本地变更过的 ID、仍有待发送写入的 ID 不被覆盖。
        """
        self._check_owner()
        result = MergeResult()
        remote_ids: set[str] = set()

        for remote in remote_tasks:
            remote_ids.add(remote.task_id)
            if self._is_protected(remote.task_id, since_revision):
                result.protected.append(remote.task_id)
                continue
            local = self._tasks.get(remote.task_id)
            if local is None:
                result.added.append(remote.task_id)
            elif local != remote:
                result.replaced.append(remote.task_id)
            else:
                result.unchanged.append(remote.task_id)
                continue
            self._tasks[remote.task_id] = remote

        result.kept_local = [tid for tid in self._tasks if tid not in remote_ids]

        if result.changed:
            self._bump(local=False)
            self.notify(ChangeKind.REMOTE_MERGED, result.added + result.replaced)

        log.info(
            "remote_tasks_merged",
            added=len(result.added),
            replaced=len(result.replaced),
            kept_local=len(result.kept_local),
            protected=len(result.protected),
        )
        return result

    def merge_remote_persons(
        self,
        remote_persons: Iterable[Person],
        *,
        since_revision: int | None = None,
    ) -> list[str]:
        """合并远端成员快照（规则同任务）

        Returns:
            新增或被覆盖的成员 ID
        """
        self._check_owner()
        changed: list[str] = []
        for remote in remote_persons:
            if self._is_protected(remote.person_id, since_revision):
                continue
            if self._persons.get(remote.person_id) != remote:
                self._persons[remote.person_id] = remote
                changed.append(remote.person_id)

        if changed:
            self._bump(local=False)
            self.notify(ChangeKind.REMOTE_MERGED, person_ids=changed)
        return changed
