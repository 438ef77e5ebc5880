"""任务 API 测试

测试内容：
1. 新建周期任务并查询日 / 周 / upcoming
2. PATCH 部分更新与传播
3. DELETE 级联
4. 未知 ID 返回 404
"""

from httpx import AsyncClient

DAILY_DISHES = {
    "name": "Dishes",
    "due_date": "2024-01-01T09:00:00Z",
    "repeat_option": "daily",
    "notes": "green sponge",
}


async def _create(client: AsyncClient, body: dict = DAILY_DISHES) -> str:
    resp = await client.post("/api/tasks", json=body)
    assert resp.status_code == 201
    return resp.json()["task_id"]


class TestCreateAndQuery:
    async def test_create_repeating_task(self, client: AsyncClient):
        resp = await client.post("/api/tasks", json=DAILY_DISHES)

        assert resp.status_code == 201
        assert resp.json()["generated"] == 10

    async def test_create_rejects_missing_name(self, client: AsyncClient):
        resp = await client.post("/api/tasks", json={"due_date": "2024-01-01T09:00:00Z"})
        assert resp.status_code == 422

    async def test_task_detail_lists_occurrences(self, client: AsyncClient):
        root_id = await _create(client)

        resp = await client.get(f"/api/tasks/{root_id}")

        data = resp.json()
        assert data["task"]["task_id"] == root_id
        assert len(data["occurrences"]) == 10
        assert all(o["parent_task_id"] == root_id for o in data["occurrences"])

    async def test_tasks_for_day(self, client: AsyncClient):
        await _create(client)

        resp = await client.get("/api/tasks/day", params={"date": "2024-01-03"})

        tasks = resp.json()["tasks"]
        assert len(tasks) == 1
        assert tasks[0]["due_date"].startswith("2024-01-03")

    async def test_tasks_for_week(self, client: AsyncClient):
        await _create(client)

        resp = await client.get("/api/tasks/week", params={"start": "2024-01-03"})

        data = resp.json()
        assert data["start"] == "2024-01-01"
        assert [d["day"] for d in data["days"]][-1] == "2024-01-07"
        assert all(len(d["tasks"]) == 1 for d in data["days"])

    async def test_upcoming(self, client: AsyncClient):
        await _create(client)

        resp = await client.get("/api/tasks/upcoming", params={"days": 3})

        days = [t["due_date"][:10] for t in resp.json()["tasks"]]
        assert days == ["2024-01-01", "2024-01-02", "2024-01-03", "2024-01-04"]

    async def test_upcoming_rejects_negative_days(self, client: AsyncClient):
        resp = await client.get("/api/tasks/upcoming", params={"days": -1})
        assert resp.status_code == 422

    async def test_list_by_assignee(self, client: AsyncClient):
        await _create(client, {**DAILY_DISHES, "repeat_option": "never", "assigned_to": "p1"})
        await _create(client, {**DAILY_DISHES, "repeat_option": "never", "name": "Vacuum"})

        resp = await client.get("/api/tasks", params={"assigned_to": "p1"})

        assert [t["name"] for t in resp.json()["tasks"]] == ["Dishes"]


class TestUpdate:
    async def test_patch_propagates_name(self, client: AsyncClient):
        root_id = await _create(client)

        resp = await client.patch(f"/api/tasks/{root_id}", json={"name": "Wash up"})
        assert resp.status_code == 200

        detail = (await client.get(f"/api/tasks/{root_id}")).json()
        assert {o["name"] for o in detail["occurrences"]} == {"Wash up"}

    async def test_patch_null_clears_notes(self, client: AsyncClient):
        root_id = await _create(client)

        resp = await client.patch(f"/api/tasks/{root_id}", json={"notes": None})

        task = resp.json()["task"]
        assert task["notes"] is None
        assert task["name"] == "Dishes"

    async def test_patch_unknown_task(self, client: AsyncClient):
        resp = await client.patch("/api/tasks/01JNONEXISTENT0000000000", json={"name": "x"})

        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "TASK_NOT_FOUND"


class TestDelete:
    async def test_delete_root_cascades(self, client: AsyncClient):
        root_id = await _create(client)

        resp = await client.delete(f"/api/tasks/{root_id}")

        assert len(resp.json()["deleted"]) == 11
        assert (await client.get(f"/api/tasks/{root_id}")).status_code == 404
        assert (await client.get("/api/tasks")).json()["tasks"] == []

    async def test_delete_unknown_task(self, client: AsyncClient):
        resp = await client.delete("/api/tasks/01JNONEXISTENT0000000000")
        assert resp.status_code == 404
