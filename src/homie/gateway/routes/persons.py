"""成员路由

GET  /api/persons: 成员列表
POST /api/persons: 新增成员（同名成员已存在时返回 409）
GET  /api/persons/{person_id}: 成员详情
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from starlette.responses import JSONResponse

from homie.core.models import DEFAULT_PERSON_ICON, Person
from homie.core.store import TaskStore

from ..deps import get_store

router = APIRouter()


class PersonCreateRequest(BaseModel):
    """新增成员请求体"""

    name: str = Field(min_length=1, description="显示名称")
    color: str = Field(default="gray", description="颜色标签")
    icon: str = Field(default=DEFAULT_PERSON_ICON, description="图标名称")


class PersonListResponse(BaseModel):
    persons: list[Person]


@router.get("/api/persons", response_model=PersonListResponse)
async def list_persons(store: TaskStore = Depends(get_store)):
    return PersonListResponse(persons=store.list_persons())


@router.post("/api/persons", status_code=201)
async def create_person(body: PersonCreateRequest, store: TaskStore = Depends(get_store)):
    person_id = store.add_person(body.name, color=body.color, icon=body.icon)
    if person_id is None:
        return JSONResponse(
            status_code=409,
            content={
                "error": {
                    "code": "PERSON_NAME_CONFLICT",
                    "message": f"Person named {body.name} already exists",
                }
            },
        )
    return {"person_id": person_id}


@router.get("/api/persons/{person_id}")
async def get_person(person_id: str, store: TaskStore = Depends(get_store)):
    person = store.get_person(person_id)
    if person is None:
        return JSONResponse(
            status_code=404,
            content={
                "error": {
                    "code": "PERSON_NOT_FOUND",
                    "message": f"Person with id {person_id} does not exist",
                }
            },
        )
    return {
        "person": person.model_dump(mode="json"),
        "tasks": [t.model_dump(mode="json") for t in store.tasks_assigned_to(person_id)],
    }
