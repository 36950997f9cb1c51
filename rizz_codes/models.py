"""
Rizz Codes API Models

Pydantic models for the stored entities, their create/update shapes and the
request/response bodies of the HTTP API. One declarative schema per entity
kind: the update shape is derived from the create shape so the two cannot
drift apart.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, create_model

from .config import DEFAULT_MODEL


Mode = Literal["planner", "architect", "coder", "auto", "debug"]
ProjectStatus = Literal["active", "completed", "paused"]
Role = Literal["user", "assistant"]


def _to_camel(string: str) -> str:
    """Convert snake_case to camelCase."""
    parts = string.split("_")
    return parts[0] + "".join(word.capitalize() for word in parts[1:])


class CamelModel(BaseModel):
    """Base model with camelCase JSON serialization."""

    model_config = ConfigDict(
        alias_generator=_to_camel,
        populate_by_name=True,  # Accept both snake_case and camelCase input
        protected_namespaces=(),
    )

    def to_json(self) -> Dict[str, Any]:
        """Dump to a JSON-ready dict using the camelCase wire names."""
        return self.model_dump(mode="json", by_alias=True)


def partial_model(model: Type[BaseModel], name: str) -> Type[BaseModel]:
    """
    Derive a patch shape from a create shape.

    Every field keeps its type but becomes optional with a None default, so
    `model_dump(exclude_unset=True)` yields exactly the fields the caller sent.
    """
    fields = {
        field_name: (Optional[info.annotation], None)
        for field_name, info in model.model_fields.items()
    }
    return create_model(name, __base__=CamelModel, **fields)


# Project models

class ProjectCreate(CamelModel):
    """Fields a caller may supply when creating a project."""
    name: str = Field(..., description="Project name")
    mode: Mode = Field(..., description="Workflow mode the project was created in")
    description: Optional[str] = Field(None, description="Free-form description")
    status: ProjectStatus = Field("active", description="Lifecycle status")
    config: Dict[str, Any] = Field(default_factory=dict, description="Opaque settings map")


ProjectUpdate = partial_model(ProjectCreate, "ProjectUpdate")


class Project(ProjectCreate):
    """Stored project record."""
    id: str
    created_at: datetime
    updated_at: datetime


# File models

class FileCreate(CamelModel):
    """Fields a caller may supply when creating a file."""
    project_id: Optional[str] = Field(..., description="Owning project id")
    path: str = Field(..., description="Slash-delimited path within the project")
    content: Optional[str] = Field(None, description="File contents")
    language: Optional[str] = Field(None, description="Language hint for the editor")


FileUpdate = partial_model(FileCreate, "FileUpdate")


class File(FileCreate):
    """Stored file record."""
    id: str
    created_at: datetime
    updated_at: datetime


# Chat models

class ChatMessageCreate(CamelModel):
    """Fields a caller may supply when appending a chat message."""
    project_id: Optional[str] = Field(None, description="Owning project id")
    mode: Mode = Field(..., description="Mode whose conversation this belongs to")
    role: Role = Field(..., description="Role: 'user' or 'assistant'")
    content: str = Field(..., description="Message content")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Opaque extra data")


class ChatMessage(ChatMessageCreate):
    """Stored chat message record."""
    id: str
    created_at: datetime


# OpenRouter connector models

class OpenRouterConfigUpdate(CamelModel):
    """Patch for the connector config. `isConnected` is derived, never accepted."""
    api_key: Optional[str] = Field(None, description="OpenRouter API key")
    selected_model: Optional[str] = Field(None, description="Model id used for completions")
    model_configs: Optional[Dict[str, Any]] = Field(None, description="Per-model settings")


class OpenRouterConfig(CamelModel):
    """The singleton connector config."""
    id: str
    api_key: Optional[str] = None
    selected_model: str = DEFAULT_MODEL
    model_configs: Dict[str, Any] = Field(default_factory=dict)
    is_connected: bool = False
    updated_at: datetime


class OpenRouterChatRequest(BaseModel):
    """Body of a proxied chat-completion call."""
    messages: List[Dict[str, Any]] = Field(..., description="Conversation messages")
    options: Dict[str, Any] = Field(default_factory=dict, description="Extra completion parameters")


# File tree models

class FileNode(BaseModel):
    """One node of the project explorer tree."""
    id: str
    name: str
    type: Literal["file", "folder"]
    path: str
    language: Optional[str] = None
    children: Optional[List["FileNode"]] = None


class FileTree(BaseModel):
    """Explorer tree; `placeholder` is True when no real files exist."""
    placeholder: bool = False
    nodes: List[FileNode] = Field(default_factory=list)


# Error response model

class ErrorResponse(BaseModel):
    """Error response."""
    error: str = Field(..., description="Error message")
