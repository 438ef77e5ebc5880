"""RestRemoteStore -- PostgREST 风格远端存储客户端

通过 httpx.AsyncClient 访问 /rest/v1/tasks 与 /rest/v1/profiles。
远端列名为全小写（duedate、iscompleted、userid ...），
在此处与 camelCase 线上格式互相映射。
"""

from typing import Any

import httpx
import structlog

from .exceptions import RemoteAuthError, RemoteDecodeError, RemoteError, RemoteUnreachableError
from .records import PersonRecord, TaskRecord

log = structlog.get_logger()

# 健康检查超时（硬编码，应快速响应）
HEALTH_CHECK_TIMEOUT_S = 5

# 连接类异常类型集合（映射为 RemoteUnreachableError）
_CONNECTION_ERROR_TYPES = (
    ConnectionError,
    OSError,
    TimeoutError,
    httpx.ConnectError,
    httpx.TimeoutException,
    httpx.NetworkError,
)

# camelCase 线上字段 -> 远端列名
_TASK_COLUMNS = {
    "id": "id",
    "ownerId": "userid",
    "name": "name",
    "dueDate": "duedate",
    "isCompleted": "iscompleted",
    "assignedTo": "assignedto",
    "notes": "notes",
    "repeatOption": "repeatoption",
    "parentTaskId": "parenttaskid",
    "createdAt": "createdat",
}

_PERSON_COLUMNS = {
    "id": "id",
    "ownerId": "authuserid",
    "name": "name",
    "icon": "avatarsystemname",
    "color": "color",
    "createdAt": "createdat",
}


def _to_columns(wire: dict[str, Any], columns: dict[str, str]) -> dict[str, Any]:
    return {columns[key]: value for key, value in wire.items() if key in columns}


def _from_columns(row: dict[str, Any], columns: dict[str, str]) -> dict[str, Any]:
    return {key: row[column] for key, column in columns.items() if column in row}


class RestRemoteStore:
    """RemoteStore 的 HTTP 实现"""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout_s: int = 10,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            base_url: 远端基础 URL（不含 /rest/v1）
            api_key: 远端访问密钥，同时作为 apikey 与 Bearer token 发送
            timeout_s: 请求超时（秒）
            transport: 自定义 httpx transport（测试注入 MockTransport）
        """
        self._base_url = base_url.rstrip("/")
        headers = {"Accept": "application/json"}
        if api_key:
            headers["apikey"] = api_key
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = httpx.AsyncClient(
            base_url=f"{self._base_url}/rest/v1",
            headers=headers,
            timeout=timeout_s,
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """发送请求并把失败统一映射为 RemoteError 子类"""
        try:
            resp = await self._client.request(method, path, **kwargs)
        except _CONNECTION_ERROR_TYPES as e:
            log.warning(
                "remote_unreachable",
                method=method,
                path=path,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise RemoteUnreachableError(self._base_url, e) from e

        if resp.status_code in (401, 403):
            raise RemoteAuthError(resp.status_code, resp.text[:200])
        if resp.status_code >= 400:
            raise RemoteError(
                f"远端请求失败: {method} {path} -> HTTP {resp.status_code}",
                recoverable=resp.status_code >= 500,
            )
        return resp

    @staticmethod
    def _json_rows(resp: httpx.Response) -> list[dict[str, Any]]:
        try:
            payload = resp.json()
        except ValueError as e:
            raise RemoteDecodeError("远端返回的不是合法 JSON") from e
        if not isinstance(payload, list) or not all(isinstance(r, dict) for r in payload):
            raise RemoteDecodeError("远端返回的不是记录数组")
        return payload

    async def fetch_tasks(self, account_id: str) -> list[TaskRecord]:
        resp = await self._request(
            "GET",
            "/tasks",
            params={"select": "*", "userid": f"eq.{account_id}"},
        )
        rows = self._json_rows(resp)
        records = [TaskRecord.from_wire(_from_columns(row, _TASK_COLUMNS)) for row in rows]
        log.debug("remote_tasks_fetched", account_id=account_id, count=len(records))
        return records

    async def upsert_task(self, record: TaskRecord) -> None:
        await self._request(
            "POST",
            "/tasks",
            json=_to_columns(record.to_wire(), _TASK_COLUMNS),
            headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
        )

    async def delete_task(self, task_id: str) -> None:
        await self._request("DELETE", "/tasks", params={"id": f"eq.{task_id}"})

    async def fetch_persons(self, account_id: str) -> list[PersonRecord]:
        resp = await self._request(
            "GET",
            "/profiles",
            params={"select": "*", "authuserid": f"eq.{account_id}"},
        )
        rows = self._json_rows(resp)
        return [PersonRecord.from_wire(_from_columns(row, _PERSON_COLUMNS)) for row in rows]

    async def upsert_person(self, record: PersonRecord) -> None:
        await self._request(
            "POST",
            "/profiles",
            json=_to_columns(record.to_wire(), _PERSON_COLUMNS),
            headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
        )

    async def health_check(self) -> bool:
        """检查远端可达性

        注意: 此方法不抛出异常，所有异常内部捕获并返回 False。
        """
        try:
            resp = await self._client.get("/", timeout=HEALTH_CHECK_TIMEOUT_S)
            return resp.status_code < 500
        except Exception as e:
            log.debug("remote_health_check_failed", url=self._base_url, error=str(e))
            return False
