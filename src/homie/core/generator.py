"""OccurrenceGenerator -- 根任务实例生成

从 {root} ∪ existing 中最晚的 due_date 出发逐步推算，
跳过与已知实例同一日历日的候选日期，直到达到数量或 horizon。
仅返回新实例，不写入 Store。
"""

from collections.abc import Callable, Iterable
from datetime import UTC, datetime, tzinfo

import structlog
from ulid import ULID

from .config import MAX_GENERATION_STEPS
from .models.task import Task
from .recurrence import local_day, next_due_date

log = structlog.get_logger()


def _new_id() -> str:
    return str(ULID())


def generate_occurrences(
    root: Task,
    existing: Iterable[Task],
    *,
    count: int | None = None,
    horizon: datetime | None = None,
    not_before: datetime | None = None,
    tz: tzinfo = UTC,
    created_at: datetime | None = None,
    id_factory: Callable[[], str] = _new_id,
) -> list[Task]:
    """为根任务生成缺失的实例

    Args:
        root: 根任务；repeat_option 为 never 时直接返回空列表
        existing: 该根任务已有的实例
        count: 需要新生成的实例数量
        horizon: 候选日期不早于 horizon 时停止
        not_before: 早于该时间的候选日期只推进游标，不生成实例
        tz: 同日判断与推算所用时区
        created_at: 新实例的创建时间（默认当前时间）
        id_factory: 新实例 ID 生成函数

    Returns:
        新生成的实例列表（按 due_date 升序）

    Raises:
        ValueError: count 与 horizon 均未指定
    """
    if count is None and horizon is None:
        raise ValueError("count 或 horizon 至少指定一个")

    rule = root.repeat_option
    if not rule.is_repeating:
        return []
    if count is not None and count <= 0:
        return []

    known = [root, *existing]
    occupied_days = {local_day(t.due_date, tz) for t in known}
    cursor = max(t.due_date for t in known)
    stamp = created_at or datetime.now(UTC)

    generated: list[Task] = []
    for _ in range(MAX_GENERATION_STEPS):
        candidate = next_due_date(cursor, rule, tz)
        if candidate is None:
            break
        if horizon is not None and candidate >= horizon:
            break
        cursor = candidate

        if not_before is not None and candidate < not_before:
            continue

        day = local_day(candidate, tz)
        if day in occupied_days:
            continue

        occupied_days.add(day)
        generated.append(
            Task(
                task_id=id_factory(),
                name=root.name,
                due_date=candidate,
                is_completed=False,
                assigned_to=root.assigned_to,
                notes=root.notes,
                repeat_option=rule,
                parent_task_id=root.task_id,
                owner_id=root.owner_id,
                created_at=stamp,
            )
        )
        if count is not None and len(generated) >= count:
            break
    else:
        log.warning(
            "occurrence_generation_step_limit",
            root_id=root.task_id,
            steps=MAX_GENERATION_STEPS,
            generated=len(generated),
        )

    return generated
