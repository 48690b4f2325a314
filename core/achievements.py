"""Durable, append-only set of earned badges."""

import asyncio
import logging

from .models import Achievement
from .persistence import Persistence

logger = logging.getLogger(__name__)


class AchievementTracker:
    """Idempotent badge set.

    Reads always go to the store, so the tracker never holds a stale copy.
    Awards are serialized so two concurrent awards of the same id cannot
    both observe it as missing.
    """

    def __init__(self, persistence: Persistence):
        self.persistence = persistence
        self._lock = asyncio.Lock()

    async def award(self, achievement_id: str) -> bool:
        """Record achievement_id if absent. Returns True when newly earned."""
        async with self._lock:
            achievements = await self.persistence.load_achievements()
            if any(a.id == achievement_id for a in achievements):
                logger.debug(f"Achievement '{achievement_id}' already earned")
                return False
            achievements.append(Achievement(achievement_id))
            await self.persistence.save_achievements(achievements)
        logger.info(f"Achievement earned: {achievement_id}")
        return True

    async def earned(self) -> list[Achievement]:
        return await self.persistence.load_achievements()

    async def earned_ids(self) -> list[str]:
        return [a.id for a in await self.earned()]

    async def has(self, achievement_id: str) -> bool:
        return achievement_id in await self.earned_ids()
