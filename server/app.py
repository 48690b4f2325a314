"""FastAPI server for fillbox application."""

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from core.config import ROUND_CLEAR_DELAY
from core.errors import (
    GameError, NoListSelectedError, EmptyListError, ListNotFoundError,
    InvalidConfigError, InvalidListError, PersistenceError
)
from core.interfaces import Storage
from core.memory_storage import MemoryStorage
from core.models import ContentList, ContentItem
from core.session import GameSession, open_session
from core.utils import new_id

from server.file_storage import FileStorage

logger = logging.getLogger(__name__)


# Pydantic models for API
class ConfigUpdateRequest(BaseModel):
    mode: Optional[str] = None
    boxes_per_round: Optional[int] = None
    sounds_enabled: Optional[bool] = None
    palette: Optional[dict[str, str]] = None
    built_in_theme: Optional[str] = None
    parent_button_position: Optional[str] = None


class ItemModel(BaseModel):
    id: Optional[str] = None
    key: str
    decoration: Optional[str] = None


class ListRequest(BaseModel):
    title: str
    mode: str
    items: list[ItemModel] = []


class EntryRequest(BaseModel):
    value: str


class ImportRequest(BaseModel):
    config: Optional[dict] = None
    lists: Optional[list[dict]] = None
    achievements: Optional[list[dict]] = None


class StateResponse(BaseModel):
    config: dict
    lists: list[dict]
    selected_list_id: Optional[str]
    round: Optional[dict]
    achievements: list[str]
    error: Optional[str]
    degraded: bool


class ValidateResponse(BaseModel):
    correct: bool
    round: Optional[dict]


ERROR_STATUS = {
    NoListSelectedError: 400,
    EmptyListError: 400,
    ListNotFoundError: 404,
    InvalidConfigError: 422,
    InvalidListError: 422,
    PersistenceError: 503,
}


# Global state, created on startup
session: GameSession = None


def create_storage() -> Storage:
    """Pick the storage backend from FILLBOX_STORAGE (file, postgres or memory)."""
    storage_type = os.environ.get('FILLBOX_STORAGE', 'file')
    if storage_type == 'postgres':
        from server.postgres_storage import PostgresStorage
        logger.info("Using PostgreSQL storage")
        return PostgresStorage()
    if storage_type == 'memory':
        logger.info("Using in-memory storage")
        return MemoryStorage()
    logger.info("Using file storage")
    return FileStorage()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the game session on startup and close it on shutdown."""
    global session
    clear_delay = float(os.environ.get('FILLBOX_CLEAR_DELAY', ROUND_CLEAR_DELAY))
    session = await open_session(create_storage(), clear_delay=clear_delay)
    if session.degraded:
        logger.warning("Running without durable storage; progress will not survive a restart")
    try:
        yield
    finally:
        await session.close()
        session = None


app = FastAPI(title="Fillbox API", description="Fill & celebrate typing practice API",
              lifespan=lifespan)


@app.exception_handler(GameError)
async def game_error_handler(request: Request, exc: GameError):
    status = 400
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS:
            status = ERROR_STATUS[cls]
            break
    return JSONResponse(status_code=status, content={'detail': str(exc)})


def get_session() -> GameSession:
    if session is None or not session.initialized:
        raise HTTPException(status_code=503, detail="Session not initialized")
    return session


def build_list(list_id: str, request: ListRequest) -> ContentList:
    items = [ContentItem(item.id or new_id(), item.key, item.decoration) for item in request.items]
    return ContentList(list_id, request.title, request.mode, items)


@app.get("/")
async def root():
    """Health check."""
    return {"service": "fillbox", "status": "ok"}


@app.get("/api/state", response_model=StateResponse)
async def get_state():
    """Everything the board needs to render."""
    return get_session().snapshot()


# Config

@app.get("/api/config")
async def get_config():
    return get_session().config.to_dict()


@app.patch("/api/config")
async def update_config(request: ConfigUpdateRequest):
    updates = request.model_dump(exclude_unset=True)
    config = await get_session().update_config(**updates)
    return config.to_dict()


# Content lists

@app.get("/api/lists")
async def list_lists():
    lists = await get_session().repository.list()
    return {"lists": [l.to_dict() for l in lists]}


@app.post("/api/lists", status_code=201)
async def create_list(request: ListRequest):
    content_list = await get_session().create_list(
        request.title, request.mode,
        [{'key': item.key, 'decoration': item.decoration} for item in request.items]
    )
    return content_list.to_dict()


@app.get("/api/lists/{list_id}")
async def get_list(list_id: str):
    content_list = await get_session().repository.get(list_id)
    if content_list is None:
        raise ListNotFoundError(list_id)
    return content_list.to_dict()


@app.put("/api/lists/{list_id}")
async def replace_list(list_id: str, request: ListRequest):
    content_list = await get_session().update_list(build_list(list_id, request))
    return content_list.to_dict()


@app.delete("/api/lists/{list_id}")
async def delete_list(list_id: str):
    deleted = await get_session().remove_list(list_id)
    if not deleted:
        raise ListNotFoundError(list_id)
    return {"deleted": True}


@app.post("/api/lists/{list_id}/items", status_code=201)
async def add_item(list_id: str, request: ItemModel):
    item = await get_session().add_item(list_id, request.key, request.decoration)
    return item.to_dict()


@app.delete("/api/lists/{list_id}/items/{item_id}")
async def remove_item(list_id: str, item_id: str):
    removed = await get_session().remove_item(list_id, item_id)
    if not removed:
        raise HTTPException(status_code=404, detail=f"Item not found: {item_id}")
    return {"deleted": True}


@app.post("/api/lists/{list_id}/select")
async def select_list(list_id: str):
    current = get_session()
    await current.select_list(list_id)
    return current.snapshot()


# Rounds

@app.get("/api/round")
async def get_round():
    current = get_session().current_round
    return {"round": current.to_dict() if current else None}


@app.post("/api/round", status_code=201)
async def start_round():
    """Start a fresh round, discarding any round in progress."""
    round_state = await get_session().start_round()
    return {"round": round_state.to_dict()}


@app.delete("/api/round")
async def clear_round():
    await get_session().clear_round()
    return {"round": None}


@app.put("/api/round/boxes/{box_id}")
async def update_entry(box_id: str, request: EntryRequest):
    round_state = await get_session().update_entry(box_id, request.value)
    return {"round": round_state.to_dict() if round_state else None}


@app.post("/api/round/boxes/{box_id}/validate", response_model=ValidateResponse)
async def validate_box(box_id: str):
    is_correct, round_state = await get_session().validate_box(box_id)
    return ValidateResponse(
        correct=is_correct,
        round=round_state.to_dict() if round_state else None
    )


# Achievements and bulk data

@app.get("/api/achievements")
async def get_achievements():
    earned = await get_session().tracker.earned()
    return {"achievements": [a.to_dict() for a in earned]}


@app.get("/api/export")
async def export_data():
    return await get_session().export_data()


@app.post("/api/import")
async def import_data(request: ImportRequest):
    current = get_session()
    await current.import_data(request.model_dump(exclude_unset=True))
    return current.snapshot()
