"""
Rizz Codes HTTP API

REST resources over the entity store plus the OpenRouter proxy. Every failure
is mapped to a status code and a short `{"error": ...}` body.
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, HTTPException, Request, Response
from fastapi.responses import JSONResponse

from .config import DEFAULT_MODEL
from .file_tree import build_file_tree
from .models import (
    ChatMessage,
    ChatMessageCreate,
    File,
    FileCreate,
    FileTree,
    FileUpdate,
    OpenRouterChatRequest,
    OpenRouterConfigUpdate,
    Project,
    ProjectCreate,
    ProjectUpdate,
)
from .openrouter_client import OpenRouterClient, OpenRouterError
from .storage import MemStorage, NotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def get_storage(request: Request) -> MemStorage:
    return request.app.state.storage


def get_openrouter(request: Request) -> OpenRouterClient:
    return request.app.state.openrouter


@router.get("/health")
async def health_check(storage: MemStorage = Depends(get_storage)):
    """Health check endpoint."""
    return {
        "status": "ok",
        "service": "Rizz Codes",
        "projects": len(storage.list_projects()),
    }


# ============================================================================
# Project Endpoints
# ============================================================================

@router.get("/projects", response_model=List[Project])
async def list_projects(storage: MemStorage = Depends(get_storage)):
    return storage.list_projects()


@router.get("/projects/{project_id}", response_model=Project)
async def get_project(project_id: str, storage: MemStorage = Depends(get_storage)):
    project = storage.get_project(project_id)
    if project is None:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@router.post("/projects", response_model=Project, status_code=201)
async def create_project(
    payload: Dict[str, Any] = Body(...),
    storage: MemStorage = Depends(get_storage),
):
    try:
        data = ProjectCreate.model_validate(payload)
    except ValueError as e:
        logger.warning(f"Project validation error: {e}")
        raise HTTPException(status_code=400, detail="Invalid project data")
    return storage.create_project(data.model_dump())


@router.patch("/projects/{project_id}", response_model=Project)
async def update_project(
    project_id: str,
    payload: Dict[str, Any] = Body(...),
    storage: MemStorage = Depends(get_storage),
):
    try:
        patch = ProjectUpdate.model_validate(payload).model_dump(exclude_unset=True)
        return storage.update_project(project_id, patch)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Project not found")
    except ValueError as e:
        logger.warning(f"Project update rejected: {e}")
        raise HTTPException(status_code=400, detail="Invalid project data")


@router.delete("/projects/{project_id}", status_code=204)
async def delete_project(project_id: str, storage: MemStorage = Depends(get_storage)):
    if not storage.delete_project(project_id):
        raise HTTPException(status_code=404, detail="Project not found")
    return Response(status_code=204)


@router.get("/projects/{project_id}/files", response_model=List[File])
async def list_project_files(project_id: str, storage: MemStorage = Depends(get_storage)):
    return storage.list_project_files(project_id)


@router.get("/projects/{project_id}/tree", response_model=FileTree)
async def get_project_tree(project_id: str, storage: MemStorage = Depends(get_storage)):
    """Explorer tree built from the project's file paths."""
    return build_file_tree(storage.list_project_files(project_id))


@router.get("/projects/{project_id}/chat/{mode}", response_model=List[ChatMessage])
async def list_project_chat(project_id: str, mode: str, storage: MemStorage = Depends(get_storage)):
    return storage.list_project_chat(project_id, mode)


# ============================================================================
# File Endpoints
# ============================================================================

@router.get("/files/{file_id}", response_model=File)
async def get_file(file_id: str, storage: MemStorage = Depends(get_storage)):
    file = storage.get_file(file_id)
    if file is None:
        raise HTTPException(status_code=404, detail="File not found")
    return file


@router.post("/files", response_model=File, status_code=201)
async def create_file(
    payload: Dict[str, Any] = Body(...),
    storage: MemStorage = Depends(get_storage),
):
    try:
        data = FileCreate.model_validate(payload)
    except ValueError as e:
        logger.warning(f"File validation error: {e}")
        raise HTTPException(status_code=400, detail="Invalid file data")
    return storage.create_file(data.model_dump())


@router.patch("/files/{file_id}", response_model=File)
async def update_file(
    file_id: str,
    payload: Dict[str, Any] = Body(...),
    storage: MemStorage = Depends(get_storage),
):
    try:
        patch = FileUpdate.model_validate(payload).model_dump(exclude_unset=True)
        return storage.update_file(file_id, patch)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="File not found")
    except ValueError as e:
        logger.warning(f"File update rejected: {e}")
        raise HTTPException(status_code=400, detail="Invalid file data")


@router.delete("/files/{file_id}", status_code=204)
async def delete_file(file_id: str, storage: MemStorage = Depends(get_storage)):
    if not storage.delete_file(file_id):
        raise HTTPException(status_code=404, detail="File not found")
    return Response(status_code=204)


# ============================================================================
# Chat Message Endpoints
# ============================================================================

@router.post("/chat", response_model=ChatMessage, status_code=201)
async def create_chat_message(
    payload: Dict[str, Any] = Body(...),
    storage: MemStorage = Depends(get_storage),
):
    try:
        data = ChatMessageCreate.model_validate(payload)
    except ValueError as e:
        logger.warning(f"Chat message validation error: {e}")
        raise HTTPException(status_code=400, detail="Invalid chat message data")
    return storage.create_chat_message(data.model_dump())


# ============================================================================
# OpenRouter Endpoints
# ============================================================================

@router.get("/openrouter/config")
async def get_openrouter_config(storage: MemStorage = Depends(get_storage)):
    config = storage.get_openrouter_config()
    if config is None:
        return {"isConnected": False}
    return config.to_json()


@router.patch("/openrouter/config")
async def update_openrouter_config(
    payload: Dict[str, Any] = Body(...),
    storage: MemStorage = Depends(get_storage),
):
    try:
        patch = OpenRouterConfigUpdate.model_validate(payload).model_dump(exclude_unset=True)
        config = storage.update_openrouter_config(patch)
    except ValueError as e:
        logger.warning(f"OpenRouter config rejected: {e}")
        raise HTTPException(status_code=400, detail="Invalid OpenRouter config")
    logger.info(f"OpenRouter config updated (connected={config.is_connected})")
    return config.to_json()


@router.post("/openrouter/chat")
async def openrouter_chat(
    payload: Dict[str, Any] = Body(...),
    storage: MemStorage = Depends(get_storage),
    openrouter: OpenRouterClient = Depends(get_openrouter),
):
    """
    Forward a chat completion to OpenRouter using the stored API key.
    """
    config = storage.get_openrouter_config()
    api_key = storage.effective_api_key()
    if not api_key:
        raise HTTPException(status_code=400, detail="OpenRouter API key not configured")

    try:
        request = OpenRouterChatRequest.model_validate(payload)
    except ValueError as e:
        logger.warning(f"OpenRouter chat request rejected: {e}")
        raise HTTPException(status_code=400, detail="Invalid chat request")

    try:
        data = await openrouter.chat_completion(
            api_key=api_key,
            model=config.selected_model if config else DEFAULT_MODEL,
            messages=request.messages,
            options=request.options,
        )
    except OpenRouterError:
        raise HTTPException(status_code=500, detail="Failed to communicate with OpenRouter API")

    return JSONResponse(content=data)


@router.get("/openrouter/models")
async def openrouter_models(openrouter: OpenRouterClient = Depends(get_openrouter)):
    try:
        data = await openrouter.list_models()
    except OpenRouterError:
        raise HTTPException(status_code=500, detail="Failed to fetch OpenRouter models")
    return JSONResponse(content=data)
