"""
Studio Client

Client-side bridge to the Rizz Codes HTTP API. Each fetcher performs one
request and, on success, feeds the result into the `AppState` mirror. On
failure the mirror is left as it was and `StudioAPIError` is raised; nothing
is retried.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from .app_state import AppState
from .models import ChatMessage, File, OpenRouterConfig, Project

logger = logging.getLogger(__name__)


class StudioAPIError(RuntimeError):
    """Request to the Rizz Codes API failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class StudioClient:
    """
    Client for the Rizz Codes API that keeps an `AppState` in sync.
    """

    def __init__(
        self,
        state: AppState,
        base_url: str = "http://localhost:5000",
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the studio client.

        Args:
            state: Mirror updated after successful calls
            base_url: Server root (the '/api' prefix is added per request)
            timeout: Request timeout in seconds (chat completions can be slow)
            transport: Optional httpx transport, e.g. ASGITransport in tests
        """
        self.state = state
        self.base_url = base_url.rstrip("/")
        self.client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    async def _request(self, method: str, path: str, json: Any = None) -> Any:
        try:
            response = await self.client.request(method, f"/api{path}", json=json)
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise StudioAPIError(f"Request failed: {e}") from e

        if not response.is_success:
            try:
                message = response.json().get("error", response.reason_phrase)
            except ValueError:
                message = response.reason_phrase
            logger.warning(f"{method} {path} -> {response.status_code}: {message}")
            raise StudioAPIError(message, status_code=response.status_code)

        if response.status_code == 204:
            return None
        return response.json()

    # Projects

    async def load_projects(self) -> List[Project]:
        data = await self._request("GET", "/projects")
        projects = [Project.model_validate(p) for p in data]
        self.state.set_projects(projects)
        return projects

    async def create_project(self, name: str, mode: str, **fields) -> Project:
        data = await self._request("POST", "/projects", json={"name": name, "mode": mode, **fields})
        project = Project.model_validate(data)
        self.state.add_project(project)
        return project

    async def patch_project(self, project_id: str, patch: Dict[str, Any]) -> Project:
        data = await self._request("PATCH", f"/projects/{project_id}", json=patch)
        project = Project.model_validate(data)
        self.state.update_project(project)
        return project

    async def remove_project(self, project_id: str):
        await self._request("DELETE", f"/projects/{project_id}")
        self.state.delete_project(project_id)

    # Files

    async def load_files(self, project_id: str) -> List[File]:
        data = await self._request("GET", f"/projects/{project_id}/files")
        files = [File.model_validate(f) for f in data]
        self.state.set_files(files)
        return files

    async def create_file(self, project_id: str, path: str, **fields) -> File:
        data = await self._request("POST", "/files", json={"projectId": project_id, "path": path, **fields})
        file = File.model_validate(data)
        self.state.add_file(file)
        return file

    async def patch_file(self, file_id: str, patch: Dict[str, Any]) -> File:
        data = await self._request("PATCH", f"/files/{file_id}", json=patch)
        file = File.model_validate(data)
        self.state.update_file(file)
        return file

    async def remove_file(self, file_id: str):
        await self._request("DELETE", f"/files/{file_id}")
        self.state.delete_file(file_id)

    # Chat

    async def load_chat(self, project_id: str, mode: str) -> List[ChatMessage]:
        data = await self._request("GET", f"/projects/{project_id}/chat/{mode}")
        messages = [ChatMessage.model_validate(m) for m in data]
        self.state.set_chat_messages(messages)
        return messages

    async def send_chat_message(
        self,
        project_id: Optional[str],
        mode: str,
        role: str,
        content: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> ChatMessage:
        payload = {
            "projectId": project_id,
            "mode": mode,
            "role": role,
            "content": content,
            "metadata": metadata or {},
        }
        data = await self._request("POST", "/chat", json=payload)
        message = ChatMessage.model_validate(data)
        self.state.add_chat_message(message)
        return message

    # OpenRouter

    async def load_config(self) -> Optional[OpenRouterConfig]:
        data = await self._request("GET", "/openrouter/config")
        # An unset connector is reported as a bare {"isConnected": false}
        config = OpenRouterConfig.model_validate(data) if "id" in data else None
        self.state.set_openrouter_config(config)
        return config

    async def save_config(self, **fields) -> OpenRouterConfig:
        """Patch the connector config, e.g. `save_config(apiKey="sk-...")`."""
        data = await self._request("PATCH", "/openrouter/config", json=fields)
        config = OpenRouterConfig.model_validate(data)
        self.state.set_openrouter_config(config)
        return config

    async def chat_completion(
        self,
        messages: List[Dict[str, Any]],
        options: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Proxy a completion through the server; returns the OpenRouter body."""
        return await self._request(
            "POST",
            "/openrouter/chat",
            json={"messages": messages, "options": options or {}},
        )

    async def list_models(self) -> Dict[str, Any]:
        return await self._request("GET", "/openrouter/models")

    async def test_connection(self) -> bool:
        try:
            await self.chat_completion([{"role": "user", "content": "Hello"}], {"max_tokens": 10})
            return True
        except StudioAPIError:
            return False

    async def close(self):
        if self.client:
            await self.client.aclose()
