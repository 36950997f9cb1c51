"""
Entity Store

In-memory storage for projects, files, chat messages and the singleton
OpenRouter connector config. State lives for the lifetime of the process only;
a restart clears everything.
"""

import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional

from .config import DEFAULT_MODEL, get_env_api_key
from .models import ChatMessage, File, OpenRouterConfig, Project

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NotFoundError(LookupError):
    """Raised when an update targets an id that is not stored."""

    def __init__(self, kind: str, entity_id: str):
        super().__init__(f"{kind} not found: {entity_id}")
        self.kind = kind
        self.entity_id = entity_id


class MemStorage:
    """
    Authoritative in-memory store.

    Records are keyed by a server-assigned UUID. Deleting a project leaves its
    files and chat messages in place; they are orphaned, not cascaded.
    """

    def __init__(
        self,
        projects: Optional[Iterable[Project]] = None,
        files: Optional[Iterable[File]] = None,
        chat_messages: Optional[Iterable[ChatMessage]] = None,
        openrouter_config: Optional[OpenRouterConfig] = None,
        clock: Callable[[], datetime] = utcnow,
        env_api_key: Callable[[], Optional[str]] = get_env_api_key,
    ):
        """
        Initialize the store.

        Args:
            projects, files, chat_messages: Optional records to seed the store with
            openrouter_config: Optional pre-existing connector config
            clock: Source of timestamps (injectable for tests)
            env_api_key: Resolves the fallback API key at the time it is needed
        """
        self._projects: Dict[str, Project] = {p.id: p for p in projects or ()}
        self._files: Dict[str, File] = {f.id: f for f in files or ()}
        self._chat_messages: Dict[str, ChatMessage] = {m.id: m for m in chat_messages or ()}
        self._openrouter_config = openrouter_config
        self._clock = clock
        self._env_api_key = env_api_key
        self._lock = threading.RLock()

    @staticmethod
    def _new_id() -> str:
        return str(uuid.uuid4())

    def _merge(self, model, existing, patch: Dict[str, Any], **overrides):
        # id and timestamps come from the store, never from the patch
        data = existing.model_dump()
        data.update(patch)
        data.update(overrides)
        return model.model_validate(data)

    # Projects

    def get_project(self, project_id: str) -> Optional[Project]:
        return self._projects.get(project_id)

    def list_projects(self) -> List[Project]:
        return list(self._projects.values())

    def create_project(self, data: Dict[str, Any]) -> Project:
        now = self._clock()
        project = Project.model_validate({
            **data,
            "id": self._new_id(),
            "created_at": now,
            "updated_at": now,
        })
        with self._lock:
            self._projects[project.id] = project
        logger.info(f"Created project {project.id} ({project.name})")
        return project

    def update_project(self, project_id: str, patch: Dict[str, Any]) -> Project:
        """
        Merge `patch` over a stored project.

        Raises:
            NotFoundError: If no project has this id
            pydantic.ValidationError: If the merged record is invalid
        """
        with self._lock:
            existing = self._projects.get(project_id)
            if existing is None:
                raise NotFoundError("Project", project_id)
            project = self._merge(
                Project, existing, patch,
                id=existing.id,
                created_at=existing.created_at,
                updated_at=self._clock(),
            )
            self._projects[project_id] = project
        return project

    def delete_project(self, project_id: str) -> bool:
        with self._lock:
            removed = self._projects.pop(project_id, None) is not None
        if removed:
            logger.info(f"Deleted project {project_id}")
        return removed

    # Files

    def get_file(self, file_id: str) -> Optional[File]:
        return self._files.get(file_id)

    def list_files(self) -> List[File]:
        return list(self._files.values())

    def list_project_files(self, project_id: str) -> List[File]:
        return [f for f in self._files.values() if f.project_id == project_id]

    def create_file(self, data: Dict[str, Any]) -> File:
        now = self._clock()
        file = File.model_validate({
            **data,
            "id": self._new_id(),
            "created_at": now,
            "updated_at": now,
        })
        with self._lock:
            self._files[file.id] = file
        logger.info(f"Created file {file.path} in project {file.project_id}")
        return file

    def update_file(self, file_id: str, patch: Dict[str, Any]) -> File:
        with self._lock:
            existing = self._files.get(file_id)
            if existing is None:
                raise NotFoundError("File", file_id)
            file = self._merge(
                File, existing, patch,
                id=existing.id,
                created_at=existing.created_at,
                updated_at=self._clock(),
            )
            self._files[file_id] = file
        return file

    def delete_file(self, file_id: str) -> bool:
        with self._lock:
            removed = self._files.pop(file_id, None) is not None
        if removed:
            logger.info(f"Deleted file {file_id}")
        return removed

    # Chat messages

    def get_chat_message(self, message_id: str) -> Optional[ChatMessage]:
        return self._chat_messages.get(message_id)

    def list_chat_messages(self) -> List[ChatMessage]:
        return list(self._chat_messages.values())

    def list_project_chat(self, project_id: str, mode: str) -> List[ChatMessage]:
        """Messages of one project and mode, oldest first (stable on ties)."""
        messages = [
            m for m in self._chat_messages.values()
            if m.project_id == project_id and m.mode == mode
        ]
        return sorted(messages, key=lambda m: m.created_at)

    def create_chat_message(self, data: Dict[str, Any]) -> ChatMessage:
        message = ChatMessage.model_validate({
            **data,
            "id": self._new_id(),
            "created_at": self._clock(),
        })
        with self._lock:
            self._chat_messages[message.id] = message
        logger.debug(f"Stored {message.role} message for {message.project_id}/{message.mode}")
        return message

    def update_chat_message(self, message_id: str, patch: Dict[str, Any]) -> ChatMessage:
        with self._lock:
            existing = self._chat_messages.get(message_id)
            if existing is None:
                raise NotFoundError("Chat message", message_id)
            message = self._merge(
                ChatMessage, existing, patch,
                id=existing.id,
                created_at=existing.created_at,
            )
            self._chat_messages[message_id] = message
        return message

    def delete_chat_message(self, message_id: str) -> bool:
        with self._lock:
            return self._chat_messages.pop(message_id, None) is not None

    # OpenRouter config

    def effective_api_key(self) -> Optional[str]:
        """Stored key if set, else the environment key, else None."""
        config = self._openrouter_config
        if config is not None and config.api_key:
            return config.api_key
        return self._env_api_key()

    def get_openrouter_config(self) -> Optional[OpenRouterConfig]:
        """
        Return the connector config, creating it from the environment on first
        access when an environment key exists. Returns None if truly unset.
        """
        with self._lock:
            if self._openrouter_config is None:
                if not self._env_api_key():
                    return None
                return self.update_openrouter_config({})
            self._openrouter_config = self._openrouter_config.model_copy(
                update={"is_connected": bool(self.effective_api_key())}
            )
            return self._openrouter_config

    def update_openrouter_config(self, patch: Dict[str, Any]) -> OpenRouterConfig:
        """
        Create-if-absent-else-merge. `is_connected` is recomputed from the
        effective API key and cannot be set by the caller.
        """
        patch = {k: v for k, v in patch.items() if k != "is_connected"}
        with self._lock:
            existing = self._openrouter_config
            if existing is None:
                data = {
                    "id": self._new_id(),
                    "api_key": self._env_api_key(),
                    "selected_model": DEFAULT_MODEL,
                    "model_configs": {},
                }
                data.update(patch)
                if not data.get("api_key"):
                    data["api_key"] = self._env_api_key()
                logger.info("Initialized OpenRouter config")
            else:
                data = existing.model_dump()
                data.update(patch)
            data["updated_at"] = self._clock()
            config = OpenRouterConfig.model_validate(data)
            config.is_connected = bool(config.api_key or self._env_api_key())
            self._openrouter_config = config
        return config
