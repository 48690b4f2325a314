"""Asynchronous, typed access to the durable store.

Every game record lives under one logical key (see `STORAGE_KEYS`). The
underlying `Storage` is synchronous, so each call is pushed to the default
executor to keep the event loop free. Any failure of the store surfaces as
`PersistenceError`; records that cannot be decoded are logged and treated
as absent.
"""

import asyncio
import logging

from .config import STORAGE_KEYS
from .errors import GameError, PersistenceError, InvalidConfigError, InvalidListError
from .interfaces import Storage
from .models import AppConfig, ContentList, RoundState, Achievement
from .utils import utc_now

logger = logging.getLogger(__name__)

_MALFORMED = (KeyError, TypeError, ValueError, AttributeError)
_DECODE_ERRORS = _MALFORMED + (GameError,)


class Persistence:
    """Typed get/set/delete per logical key, plus bulk export/import."""

    def __init__(self, storage: Storage):
        self.storage = storage

    async def _run(self, action: str, key: str, func, *args):
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, func, *args)
        except Exception as e:
            logger.error(f"Storage {action} failed for '{key}': {e}")
            raise PersistenceError(f"Failed to {action} {key}", key=key) from e

    async def _get(self, key: str):
        return await self._run('load', key, self.storage.get, key)

    async def _set(self, key: str, value) -> None:
        await self._run('save', key, self.storage.set, key, value)

    async def _delete(self, key: str) -> None:
        await self._run('delete', key, self.storage.delete, key)

    @staticmethod
    def _decode(key: str, raw, decoder):
        if raw is None:
            return None
        try:
            return decoder(raw)
        except _DECODE_ERRORS as e:
            logger.warning(f"Discarding unreadable '{key}' record: {e}")
            return None

    async def is_available(self) -> bool:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.storage.is_available)

    # Config
    async def load_config(self) -> AppConfig | None:
        key = STORAGE_KEYS['config']
        return self._decode(key, await self._get(key), AppConfig.from_dict)

    async def save_config(self, config: AppConfig) -> None:
        await self._set(STORAGE_KEYS['config'], config.to_dict())

    # Content lists
    async def load_lists(self) -> list[ContentList]:
        key = STORAGE_KEYS['lists']
        raw = await self._get(key)
        if not raw:
            return []
        lists = []
        for entry in raw:
            content_list = self._decode(key, entry, ContentList.from_dict)
            if content_list is not None:
                lists.append(content_list)
        return lists

    async def save_lists(self, lists: list[ContentList]) -> None:
        await self._set(STORAGE_KEYS['lists'], [l.to_dict() for l in lists])

    # Active round
    async def load_round(self) -> RoundState | None:
        key = STORAGE_KEYS['round']
        return self._decode(key, await self._get(key), RoundState.from_dict)

    async def save_round(self, round_state: RoundState) -> None:
        await self._set(STORAGE_KEYS['round'], round_state.to_dict())

    async def delete_round(self) -> None:
        await self._delete(STORAGE_KEYS['round'])

    # Achievements
    async def load_achievements(self) -> list[Achievement]:
        key = STORAGE_KEYS['achievements']
        raw = await self._get(key)
        if not raw:
            return []
        return self._decode(key, raw, lambda items: [Achievement.from_dict(a) for a in items]) or []

    async def save_achievements(self, achievements: list[Achievement]) -> None:
        await self._set(STORAGE_KEYS['achievements'], [a.to_dict() for a in achievements])

    # Selected list
    async def load_selected_list_id(self) -> str | None:
        value = await self._get(STORAGE_KEYS['selected_list'])
        return value if isinstance(value, str) else None

    async def save_selected_list_id(self, list_id: str | None) -> None:
        if list_id is None:
            await self._delete(STORAGE_KEYS['selected_list'])
        else:
            await self._set(STORAGE_KEYS['selected_list'], list_id)

    # Bulk
    async def export_data(self) -> dict:
        config = await self.load_config() or AppConfig()
        lists = await self.load_lists()
        achievements = await self.load_achievements()
        return {
            'config': config.to_dict(),
            'lists': [l.to_dict() for l in lists],
            'achievements': [a.to_dict() for a in achievements],
            'exported_at': utc_now(),
        }

    async def import_data(self, data: dict) -> None:
        """Apply each field present in data; absent fields are left alone.

        Everything is decoded before the first write so a malformed field
        does not leave a half-applied import behind. The round is never
        touched.
        """
        if not isinstance(data, dict):
            raise InvalidConfigError("Import data must be an object")
        config = lists = achievements = None
        if data.get('config') is not None:
            try:
                config = AppConfig.from_dict(data['config'])
            except _MALFORMED as e:
                raise InvalidConfigError(f"Invalid config in import data: {e}") from e
        if data.get('lists') is not None:
            try:
                lists = [ContentList.from_dict(entry) for entry in data['lists']]
                list_ids = set()
                for content_list in lists:
                    content_list.normalize_keys()
                    content_list.validate()
                    if content_list.id in list_ids:
                        raise InvalidListError(f"Duplicate content list id in import data: {content_list.id}")
                    list_ids.add(content_list.id)
            except _MALFORMED as e:
                raise InvalidListError(f"Invalid content list in import data: {e}") from e
        if data.get('achievements') is not None:
            try:
                achievements = []
                earned_ids = set()
                for entry in data['achievements']:
                    achievement = Achievement.from_dict(entry)
                    if not isinstance(achievement.id, str):
                        raise InvalidConfigError(f"Invalid achievement id in import data: {achievement.id!r}")
                    # First entry per id wins
                    if achievement.id not in earned_ids:
                        earned_ids.add(achievement.id)
                        achievements.append(achievement)
            except _MALFORMED as e:
                raise InvalidConfigError(f"Invalid achievements in import data: {e}") from e

        if config is not None:
            await self.save_config(config)
        if lists is not None:
            await self.save_lists(lists)
        if achievements is not None:
            await self.save_achievements(achievements)
        logger.info(
            f"Imported data: config={config is not None}, "
            f"lists={len(lists) if lists is not None else '-'}, "
            f"achievements={len(achievements) if achievements is not None else '-'}"
        )
