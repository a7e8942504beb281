"""Async client for the Planboard REST API.

Wraps every route of the server. Non-2xx responses raise PlanboardAPIError
carrying the status code and the server's ``message``.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = 30


class PlanboardAPIError(Exception):
    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


class PlanboardClient:
    """Async client for the Planboard API.

    Usage:
        async with PlanboardClient("http://localhost:8000") as client:
            await client.login("ada@example.com", "secret1")
            projects = await client.list_projects()
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: int = _DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.token = token
        self._http = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> PlanboardClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, path: str, json: Any | None = None) -> Any:
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        resp = await self._http.request(method, path, json=json, headers=headers)
        if resp.status_code >= 400:
            try:
                message = resp.json().get("message", resp.text)
            except ValueError:
                message = resp.text
            raise PlanboardAPIError(resp.status_code, message)
        return resp.json()

    # === Auth ===

    async def register(self, name: str, email: str, password: str) -> dict:
        data = await self._request("POST", "/api/auth/register", {"name": name, "email": email, "password": password})
        self.token = data["token"]
        return data

    async def login(self, email: str, password: str) -> dict:
        data = await self._request("POST", "/api/auth/login", {"email": email, "password": password})
        self.token = data["token"]
        return data

    def logout(self) -> None:
        self.token = None

    async def me(self) -> dict:
        return await self._request("GET", "/api/auth/me")

    # === Projects ===

    async def list_projects(self) -> list[dict]:
        return await self._request("GET", "/api/projects")

    async def get_project(self, project_id: str) -> dict:
        return await self._request("GET", f"/api/projects/{project_id}")

    async def create_project(self, name: str, description: str = "", color: str | None = None) -> dict:
        body: dict[str, Any] = {"name": name, "description": description}
        if color:
            body["color"] = color
        return await self._request("POST", "/api/projects", body)

    async def update_project(self, project_id: str, **fields: Any) -> dict:
        return await self._request("PUT", f"/api/projects/{project_id}", fields)

    async def delete_project(self, project_id: str) -> dict:
        return await self._request("DELETE", f"/api/projects/{project_id}")

    async def add_member(self, project_id: str, email: str) -> dict:
        return await self._request("POST", f"/api/projects/{project_id}/members", {"email": email})

    async def remove_member(self, project_id: str, user_id: str) -> dict:
        return await self._request("DELETE", f"/api/projects/{project_id}/members/{user_id}")

    # === Tasks ===

    async def list_tasks(self, project_id: str) -> list[dict]:
        return await self._request("GET", f"/api/tasks/project/{project_id}")

    async def get_task(self, task_id: str) -> dict:
        return await self._request("GET", f"/api/tasks/{task_id}")

    async def create_task(self, project_id: str, title: str, **fields: Any) -> dict:
        return await self._request("POST", "/api/tasks", {"title": title, "project": project_id, **fields})

    async def update_task(self, task_id: str, updates: dict[str, Any]) -> dict:
        return await self._request("PUT", f"/api/tasks/{task_id}", updates)

    async def delete_task(self, task_id: str) -> dict:
        return await self._request("DELETE", f"/api/tasks/{task_id}")

    async def task_stats(self, project_id: str) -> dict:
        return await self._request("GET", f"/api/tasks/stats/{project_id}")

    # === AI ===

    async def generate_tasks(self, project_description: str, context: str = "") -> dict:
        return await self._request(
            "POST", "/api/ai/generate-tasks", {"projectDescription": project_description, "context": context}
        )

    async def generate_subtasks(self, task_title: str, task_description: str = "") -> dict:
        return await self._request(
            "POST", "/api/ai/generate-subtasks", {"taskTitle": task_title, "taskDescription": task_description}
        )

    async def analyze_delays(self, tasks: list[dict], project_context: str = "") -> dict:
        return await self._request(
            "POST", "/api/ai/analyze-delays", {"tasks": tasks, "projectContext": project_context}
        )

    async def chat(self, message: str, context: str = "") -> dict:
        return await self._request("POST", "/api/ai/chat", {"message": message, "context": context})
