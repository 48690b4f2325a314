"""Game session controller.

A `GameSession` is the single entry point for presentation code. It owns
the configuration and the selected list, and hands every round mutation
to its `RoundEngine`. Use it with an explicit lifecycle:

    session = GameSession(storage)
    await session.initialize()
    ...
    await session.close()
"""

import asyncio
import logging

from .achievements import AchievementTracker
from .catalog import get_built_in_lists, default_list_id_for_mode
from .config import ROUND_CLEAR_DELAY
from .engine import RoundEngine
from .errors import (
    GameError, NoListSelectedError, ListNotFoundError, PersistenceError
)
from .interfaces import Storage
from .memory_storage import MemoryStorage
from .models import AppConfig, ContentItem, ContentList, RoundState
from .persistence import Persistence
from .repository import ContentListRepository
from .utils import new_id

logger = logging.getLogger(__name__)


class GameSession:
    """Owns config, list selection and the round engine for one learner."""

    def __init__(self, storage: Storage, clear_delay: float = ROUND_CLEAR_DELAY,
                 rng=None, seed_lists: list = None):
        self.clear_delay = clear_delay
        self._rng = rng
        self._seed_lists = seed_lists
        self.config = AppConfig()
        self.selected_list_id = None
        self.lists: list[ContentList] = []
        self.achievements: list[str] = []
        self.error = None
        self.degraded = False
        self.initialized = False
        self._observers = []
        self._config_lock = asyncio.Lock()
        self._bind(storage)

    def _bind(self, storage: Storage) -> None:
        self.storage = storage
        self.persistence = Persistence(storage)
        self.repository = ContentListRepository(self.persistence)
        self.tracker = AchievementTracker(self.persistence)
        self.engine = RoundEngine(self.persistence, self.tracker,
                                  clear_delay=self.clear_delay, rng=self._rng)
        self.engine.subscribe(self._on_round_changed)

    @property
    def current_round(self) -> RoundState | None:
        return self.engine.current_round

    # Lifecycle

    async def initialize(self) -> 'GameSession':
        """Load everything from storage, seeding built-in lists on first run.

        If the store cannot be used at all the session falls back to an
        in-memory store and runs degraded: play works, nothing survives a
        restart.
        """
        if not await self.persistence.is_available():
            logger.warning("Storage unavailable, continuing with in-memory storage only")
            self.degraded = True
            self._bind(MemoryStorage())

        seeds = self._seed_lists if self._seed_lists is not None else get_built_in_lists()
        await self.repository.seed(seeds)
        self.config = await self.persistence.load_config() or AppConfig()
        self.selected_list_id = await self.persistence.load_selected_list_id()
        self.lists = await self.repository.list()
        if self.selected_list_id and not self._find_list(self.selected_list_id):
            logger.info(f"Selected list {self.selected_list_id} no longer exists")
            self.selected_list_id = None
        if self.selected_list_id is None:
            self.selected_list_id = self._default_selection(self.config.mode)
        await self.engine.restore()
        # Restoring may finish an interrupted completion and award its badge
        self.achievements = await self.tracker.earned_ids()
        self.initialized = True
        logger.info(f"Session ready: mode={self.config.mode}, "
                    f"list={self.selected_list_id}, lists={len(self.lists)}")
        self._notify()
        return self

    async def close(self) -> None:
        await self.engine.close()
        self._observers.clear()
        self.storage.close()
        self.initialized = False

    # Observers and error channel

    def subscribe(self, callback):
        """Register callback(snapshot); returns a function that unregisters it."""
        self._observers.append(callback)

        def unsubscribe():
            if callback in self._observers:
                self._observers.remove(callback)
        return unsubscribe

    def snapshot(self) -> dict:
        current = self.current_round
        return {
            'config': self.config.to_dict(),
            'lists': [l.to_dict() for l in self.lists],
            'selected_list_id': self.selected_list_id,
            'round': current.to_dict() if current else None,
            'achievements': list(self.achievements),
            'error': self.error,
            'degraded': self.degraded,
        }

    def _notify(self) -> None:
        if not self._observers:
            return
        snapshot = self.snapshot()
        for observer in list(self._observers):
            try:
                observer(snapshot)
            except Exception:
                logger.exception("Session observer failed")

    def _on_round_changed(self, round_state) -> None:
        self._notify()

    def set_error(self, message: str | None) -> None:
        self.error = message
        self._notify()

    def clear_error(self) -> None:
        self.set_error(None)

    async def _guard(self, coro):
        """Await coro, reporting any GameError on the error channel before re-raising."""
        try:
            return await coro
        except GameError as e:
            logger.warning(f"{type(e).__name__}: {e}")
            self.set_error(str(e))
            raise

    # Configuration

    async def update_config(self, **updates) -> AppConfig:
        return await self._guard(self._update_config(updates))

    async def set_mode(self, mode: str) -> AppConfig:
        return await self.update_config(mode=mode)

    async def _update_config(self, updates: dict) -> AppConfig:
        async with self._config_lock:
            new_config = self.config.updated(**updates)
            mode_changed = new_config.mode != self.config.mode
            selected = self._find_list(self.selected_list_id)
            reselect = mode_changed and (selected is None or selected.mode != new_config.mode)
            if reselect:
                # The old mode's round must be gone before the new mode is stored
                await self.engine.clear_round()
            await self.persistence.save_config(new_config)
            self.config = new_config
            if reselect:
                await self._store_selection(self._default_selection(new_config.mode))
        if mode_changed:
            logger.info(f"Mode changed to {new_config.mode}")
        self._notify()
        return new_config

    # List selection

    async def select_list(self, list_id: str) -> None:
        await self._guard(self._select_list(list_id))

    async def _select_list(self, list_id: str) -> None:
        content_list = await self.repository.get(list_id)
        if content_list is None:
            raise ListNotFoundError(list_id)
        if list_id != self.selected_list_id:
            # A round belongs to exactly one list
            await self.engine.clear_round()
            await self._store_selection(list_id)
        if content_list.mode != self.config.mode:
            async with self._config_lock:
                new_config = self.config.updated(mode=content_list.mode)
                await self.persistence.save_config(new_config)
                self.config = new_config
        self._notify()

    async def _store_selection(self, list_id: str | None) -> None:
        await self.persistence.save_selected_list_id(list_id)
        self.selected_list_id = list_id
        logger.info(f"Selected list: {list_id}")

    def _default_selection(self, mode: str) -> str | None:
        default_id = default_list_id_for_mode(mode)
        content_list = self._find_list(default_id)
        if content_list is not None and content_list.mode == mode:
            return default_id
        for content_list in self.lists:
            if content_list.mode == mode:
                return content_list.id
        return None

    def _find_list(self, list_id: str | None) -> ContentList | None:
        if list_id is None:
            return None
        for content_list in self.lists:
            if content_list.id == list_id:
                return content_list
        return None

    # Rounds

    async def start_round(self) -> RoundState:
        return await self._guard(self._start_round())

    async def _start_round(self) -> RoundState:
        if not self.selected_list_id:
            raise NoListSelectedError()
        content_list = await self.repository.get(self.selected_list_id)
        if content_list is None:
            raise NoListSelectedError(f"Selected list {self.selected_list_id} no longer exists")
        round_state = await self.engine.start_round(content_list, self.config)
        self.error = None
        return round_state

    async def update_entry(self, box_id: str, raw_input: str) -> RoundState | None:
        return await self._guard(self.engine.update_entry(box_id, raw_input))

    async def validate_box(self, box_id: str) -> tuple[bool, RoundState | None]:
        is_correct, round_state = await self._guard(self.engine.validate_box(box_id))
        if is_correct and round_state is not None and round_state.completed:
            self.achievements = await self.tracker.earned_ids()
            self._notify()
        return is_correct, round_state

    async def clear_round(self) -> None:
        await self._guard(self.engine.clear_round())

    # List administration

    async def refresh_lists(self) -> list[ContentList]:
        self.lists = await self.repository.list()
        self._notify()
        return self.lists

    async def create_list(self, title: str, mode: str, items=()) -> ContentList:
        return await self._guard(self._create_list(title, mode, items))

    async def _create_list(self, title: str, mode: str, items) -> ContentList:
        content_list = ContentList(new_id(), title, mode)
        for entry in items:
            if isinstance(entry, ContentItem):
                key, decoration = entry.key, entry.decoration
            elif isinstance(entry, dict):
                key, decoration = entry.get('key', ''), entry.get('decoration')
            else:
                key, decoration = entry, None
            content_list.items.append(ContentItem(new_id(), key, decoration))
        await self.repository.put(content_list)
        await self.refresh_lists()
        return content_list

    async def update_list(self, content_list: ContentList) -> ContentList:
        return await self._guard(self._update_list(content_list))

    async def _update_list(self, content_list: ContentList) -> ContentList:
        existing = await self.repository.get(content_list.id)
        if existing is None:
            raise ListNotFoundError(content_list.id)
        content_list.created_at = existing.created_at
        await self.repository.put(content_list)
        await self.refresh_lists()
        return content_list

    async def remove_list(self, list_id: str) -> bool:
        return await self._guard(self._remove_list(list_id))

    async def _remove_list(self, list_id: str) -> bool:
        current = self.current_round
        if current is not None and current.list_id == list_id:
            await self.engine.clear_round()
        if self.selected_list_id == list_id:
            await self._store_selection(None)
        deleted = await self.repository.delete(list_id)
        await self.refresh_lists()
        return deleted

    async def add_item(self, list_id: str, key: str, decoration: str = None) -> ContentItem:
        return await self._guard(self._add_item(list_id, key, decoration))

    async def _add_item(self, list_id: str, key: str, decoration: str | None) -> ContentItem:
        content_list = await self.repository.get(list_id)
        if content_list is None:
            raise ListNotFoundError(list_id)
        item = ContentItem(new_id(), key, decoration)
        content_list.items.append(item)
        await self.repository.put(content_list)
        await self.refresh_lists()
        return item

    async def remove_item(self, list_id: str, item_id: str) -> bool:
        return await self._guard(self._remove_item(list_id, item_id))

    async def _remove_item(self, list_id: str, item_id: str) -> bool:
        content_list = await self.repository.get(list_id)
        if content_list is None:
            raise ListNotFoundError(list_id)
        item = content_list.find_item(item_id)
        if item is None:
            return False
        content_list.items.remove(item)
        await self.repository.put(content_list)
        await self.refresh_lists()
        return True

    # Bulk data

    async def export_data(self) -> dict:
        return await self._guard(self.persistence.export_data())

    async def import_data(self, data: dict) -> None:
        await self._guard(self._import_data(data))

    async def _import_data(self, data: dict) -> None:
        await self.persistence.import_data(data)
        self.config = await self.persistence.load_config() or self.config
        self.lists = await self.repository.list()
        self.achievements = await self.tracker.earned_ids()
        if self.selected_list_id and not self._find_list(self.selected_list_id):
            await self._store_selection(self._default_selection(self.config.mode))
        self._notify()


async def open_session(storage: Storage, **kwargs) -> GameSession:
    """Create and initialize a session, surfacing storage failures."""
    session = GameSession(storage, **kwargs)
    try:
        return await session.initialize()
    except PersistenceError:
        await session.close()
        raise
