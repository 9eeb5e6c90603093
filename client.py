"""
HTTP storage for the ordering engine.

Talks to this service's REST API so a client-side OptimisticReconciler can
persist its writes. Each call is one request against one row.
"""
import logging
from typing import Any, List, Optional

import httpx

from ordering.errors import NotAuthorized, PersistenceError
from ordering.types import NewTask, Status, Task

logger = logging.getLogger(__name__)


class HttpTaskStorage:
    """Task storage over the /api endpoints."""

    def __init__(
        self,
        base_url: str,
        token: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        self.client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self.headers = {"Authorization": f"Bearer {token}"}

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _request(
        self, method: str, url: str, task_id: Optional[str] = None, **kwargs
    ) -> Any:
        try:
            response = await self.client.request(method, url, headers=self.headers, **kwargs)
        except httpx.HTTPError as e:
            raise PersistenceError(f"{method} {url} failed: {e}", task_id=task_id) from e

        if response.status_code in (401, 403):
            raise NotAuthorized(_detail(response))
        if response.is_error:
            raise PersistenceError(
                f"{method} {url} returned {response.status_code}: {_detail(response)}",
                task_id=task_id,
            )

        body = response.json()
        if not body.get("success"):
            raise PersistenceError(f"{method} {url} was rejected: {body.get('error')}", task_id=task_id)
        return body.get("data")

    async def fetch_tasks(self, board_id: str) -> List[Task]:
        data = await self._request("GET", f"/api/boards/{board_id}/tasks")
        return [Task.from_dict(item) for item in data]

    async def update_task_position(
        self,
        task_id: str,
        status: Status,
        position: float,
        sequence: Optional[int] = None,
    ) -> bool:
        payload = {"status": status.value, "position": position}
        if sequence is not None:
            payload["sequence"] = sequence
        data = await self._request(
            "PATCH", f"/api/tasks/{task_id}/position", task_id=task_id, json=payload
        )
        return bool(data["applied"])

    async def create_task(
        self, fields: NewTask, board_id: str, owner_id: str, position: float
    ) -> Task:
        """Create a task; the server records the token's user as its owner."""
        payload = {
            "title": fields.title,
            "description": fields.description,
            "status": fields.status.value,
            "position": position,
        }
        data = await self._request("POST", f"/api/boards/{board_id}/tasks", json=payload)
        task = Task.from_dict(data)
        if owner_id and task.user_id != owner_id:
            logger.warning("Task %s was created for %s, not %s", task.id, task.user_id, owner_id)
        return task

    async def update_task(
        self, task_id: str, title: str, description: Optional[str]
    ) -> Task:
        payload = {"title": title}
        if description is not None:
            payload["description"] = description
        data = await self._request("PUT", f"/api/tasks/{task_id}", task_id=task_id, json=payload)
        return Task.from_dict(data)

    async def delete_task(self, task_id: str) -> bool:
        await self._request("DELETE", f"/api/tasks/{task_id}", task_id=task_id)
        return True


def _detail(response: httpx.Response) -> str:
    try:
        return str(response.json().get("detail", response.text))
    except ValueError:
        return response.text
