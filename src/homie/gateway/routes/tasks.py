"""任务路由

POST   /api/tasks: 新建任务（周期任务立即生成首批实例）
GET    /api/tasks: 任务列表，支持 assigned_to 筛选
GET    /api/tasks/day: 某日任务
GET    /api/tasks/week: 所在日历周的 7 天任务
GET    /api/tasks/upcoming: [今天, 今天 + N 天] 内未完成的任务
GET    /api/tasks/{task_id}: 任务详情（周期根任务附带实例列表）
PATCH  /api/tasks/{task_id}: 部分更新
DELETE /api/tasks/{task_id}: 删除（周期根任务级联删除实例）
"""

from datetime import date, datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from starlette.responses import JSONResponse

from homie.core.config import UPCOMING_DEFAULT_DAYS
from homie.core.models import RepeatOption, Task, TaskPatch
from homie.core.store import TaskStore

from ..deps import get_store

router = APIRouter()


class TaskCreateRequest(BaseModel):
    """新建任务请求体"""

    name: str = Field(min_length=1, description="任务名称")
    due_date: datetime = Field(description="到期时间（naive 视为 UTC）")
    is_completed: bool = Field(default=False, description="是否已完成")
    assigned_to: str | None = Field(default=None, description="负责人 person_id")
    notes: str | None = Field(default=None, description="备注")
    repeat_option: RepeatOption = Field(default=RepeatOption.NEVER, description="周期规则")


class TaskCreateResponse(BaseModel):
    task_id: str
    generated: int


class TaskListResponse(BaseModel):
    tasks: list[Task]


class DayTasks(BaseModel):
    day: date
    tasks: list[Task]


class WeekResponse(BaseModel):
    start: date
    days: list[DayTasks]


def _task_not_found(task_id: str) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content={
            "error": {
                "code": "TASK_NOT_FOUND",
                "message": f"Task with id {task_id} does not exist",
            }
        },
    )


@router.post("/api/tasks", status_code=201, response_model=TaskCreateResponse)
async def create_task(body: TaskCreateRequest, store: TaskStore = Depends(get_store)):
    task_id = store.add_task(
        body.name,
        body.due_date,
        is_completed=body.is_completed,
        assigned_to=body.assigned_to,
        notes=body.notes,
        repeat_option=body.repeat_option,
    )
    return TaskCreateResponse(task_id=task_id, generated=len(store.occurrences_of(task_id)))


@router.get("/api/tasks", response_model=TaskListResponse)
async def list_tasks(
    assigned_to: str | None = Query(default=None, description="按负责人筛选"),
    store: TaskStore = Depends(get_store),
):
    """任务列表，按 due_date 升序"""
    if assigned_to is not None:
        return TaskListResponse(tasks=store.tasks_assigned_to(assigned_to))
    return TaskListResponse(tasks=store.list_tasks())


@router.get("/api/tasks/day", response_model=TaskListResponse)
async def tasks_for_day(
    day: date = Query(alias="date", description="日历日，YYYY-MM-DD"),
    store: TaskStore = Depends(get_store),
):
    return TaskListResponse(tasks=store.tasks_for_day(day))


@router.get("/api/tasks/week", response_model=WeekResponse)
async def tasks_for_week(
    start: date = Query(description="周内任意一天，YYYY-MM-DD"),
    store: TaskStore = Depends(get_store),
):
    """start 所在日历周（起始日由 HOMIE_WEEK_START 决定）"""
    week = store.tasks_for_week(start)
    return WeekResponse(
        start=next(iter(week)),
        days=[DayTasks(day=day, tasks=tasks) for day, tasks in week.items()],
    )


@router.get("/api/tasks/upcoming", response_model=TaskListResponse)
async def upcoming_tasks(
    days: int = Query(default=UPCOMING_DEFAULT_DAYS, ge=0, le=366, description="天数"),
    store: TaskStore = Depends(get_store),
):
    return TaskListResponse(tasks=store.upcoming_tasks(days))


@router.get("/api/tasks/{task_id}")
async def get_task(task_id: str, store: TaskStore = Depends(get_store)):
    task = store.get_task(task_id)
    if task is None:
        return _task_not_found(task_id)

    occurrences = store.occurrences_of(task_id) if task.is_recurrence_root else []
    return {
        "task": task.model_dump(mode="json"),
        "occurrences": [t.model_dump(mode="json") for t in occurrences],
    }


@router.patch("/api/tasks/{task_id}")
async def update_task(task_id: str, patch: TaskPatch, store: TaskStore = Depends(get_store)):
    """只应用请求体中出现的字段；显式 null 清空 assigned_to / notes"""
    updated = store.update_task(task_id, patch)
    if updated is None:
        return _task_not_found(task_id)
    return {"task": updated.model_dump(mode="json")}


@router.delete("/api/tasks/{task_id}")
async def delete_task(task_id: str, store: TaskStore = Depends(get_store)):
    removed = store.delete_task(task_id)
    if not removed:
        return _task_not_found(task_id)
    return {"deleted": removed}
