"""Keyed CRUD over content lists."""

from __future__ import annotations

import asyncio
import logging

from .models import ContentList
from .persistence import Persistence
from .utils import utc_now

logger = logging.getLogger(__name__)


class ContentListRepository:
    """Content lists stored as one collection under a single key.

    Every read goes back to the store so `get`/`list` always reflect the
    latest `put`/`delete`. Writes are read-modify-write and serialized.
    """

    def __init__(self, persistence: Persistence):
        self.persistence = persistence
        self._lock = asyncio.Lock()

    async def list(self) -> list[ContentList]:
        return await self.persistence.load_lists()

    async def get(self, list_id: str) -> ContentList | None:
        for content_list in await self.persistence.load_lists():
            if content_list.id == list_id:
                return content_list
        return None

    async def put(self, content_list: ContentList) -> ContentList:
        """Insert or replace a list. Replacing bumps updated_at.

        Item keys are filtered by the list's mode before the list is checked.
        """
        content_list.normalize_keys()
        content_list.validate()
        async with self._lock:
            lists = await self.persistence.load_lists()
            for index, existing in enumerate(lists):
                if existing.id == content_list.id:
                    content_list.updated_at = utc_now()
                    lists[index] = content_list
                    logger.info(f"Updated content list '{content_list.id}'")
                    break
            else:
                lists.append(content_list)
                logger.info(f"Created content list '{content_list.id}'")
            await self.persistence.save_lists(lists)
        return content_list

    async def delete(self, list_id: str) -> bool:
        async with self._lock:
            lists = await self.persistence.load_lists()
            remaining = [l for l in lists if l.id != list_id]
            if len(remaining) == len(lists):
                return False
            await self.persistence.save_lists(remaining)
        logger.info(f"Deleted content list '{list_id}'")
        return True

    async def seed(self, lists: list[ContentList]) -> int:
        """Add built-in lists whose id is not stored yet.

        Existing lists are never overwritten, so edits made to a built-in
        list survive restarts. Returns the number of lists added.
        """
        async with self._lock:
            existing = await self.persistence.load_lists()
            existing_ids = {l.id for l in existing}
            missing = [l for l in lists if l.id not in existing_ids]
            if missing:
                await self.persistence.save_lists(existing + missing)
        if missing:
            logger.info(f"Seeded {len(missing)} built-in content list(s)")
        return len(missing)
