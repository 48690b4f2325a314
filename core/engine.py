"""Round engine: generation, entry, validation and completion of rounds.

The engine is the only writer of the active `RoundState`. Every mutating
operation runs under one asyncio lock, re-reads the current round once it
holds the lock, and checks its preconditions (box locked? round completed?)
against that state rather than against whatever the caller last saw. That
makes duplicate or stale calls from the UI harmless no-ops.

Writes are persist-then-publish: a new state is built on a copy, saved,
and only then becomes the in-memory round. A failed save raises
`PersistenceError` and leaves the published round untouched.
"""

import asyncio
import logging
import random

from .achievements import AchievementTracker
from .config import ROUND_CLEAR_DELAY, ACHIEVEMENT_ROUND_COMPLETE
from .errors import NoListSelectedError, EmptyListError, UnknownBoxError, PersistenceError
from .models import AppConfig, BoxState, ContentList, RoundState
from .persistence import Persistence
from .utils import new_id, normalize_entry, utc_now

logger = logging.getLogger(__name__)


class RoundEngine:
    """Owns the single active round."""

    def __init__(self, persistence: Persistence, tracker: AchievementTracker,
                 clear_delay: float = ROUND_CLEAR_DELAY, rng: random.Random = None):
        self.persistence = persistence
        self.tracker = tracker
        self.clear_delay = clear_delay
        self._rng = rng or random.Random()
        self._round = None
        self._lock = asyncio.Lock()
        self._clear_tasks: dict[str, asyncio.Task] = {}
        self._listeners = []

    @property
    def current_round(self) -> RoundState | None:
        return self._round

    def subscribe(self, callback):
        """Call callback(round_state_or_None) after every publish."""
        self._listeners.append(callback)

        def unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)
        return unsubscribe

    def _publish(self, round_state: RoundState | None) -> None:
        self._round = round_state
        for listener in list(self._listeners):
            try:
                listener(round_state)
            except Exception:
                logger.exception("Round listener failed")

    async def restore(self) -> RoundState | None:
        """Load the persisted round, if any, after a restart."""
        async with self._lock:
            round_state = await self.persistence.load_round()
            self._publish(round_state)
            if round_state is None:
                return None
            logger.info(f"Restored round {round_state.round_id} "
                        f"({sum(b.correct for b in round_state.box_states.values())}"
                        f"/{len(round_state.box_states)} correct)")
            # A completion interrupted by a failed write or a restart is finished here
            return await self._resume_completion(round_state)

    async def start_round(self, content_list: ContentList | None, config: AppConfig) -> RoundState:
        """Sample a new round from content_list, replacing any current round."""
        if content_list is None:
            raise NoListSelectedError()
        if not content_list.items:
            raise EmptyListError(f"Content list '{content_list.title}' has no items")

        count = min(config.boxes_per_round, len(content_list.items))
        sample = self._rng.sample(content_list.items, count)
        box_states = {
            new_id(): BoxState(item.key, decoration=item.decoration)
            for item in sample
        }
        # Display order is shuffled separately from the content sample
        box_order = list(box_states)
        self._rng.shuffle(box_order)
        round_state = RoundState(new_id(), content_list.id, content_list.mode,
                                 box_order, box_states)

        async with self._lock:
            previous = self._round
            await self.persistence.save_round(round_state)
            self._cancel_clear_tasks()
            self._publish(round_state)
        if previous is not None and not previous.completed:
            logger.info(f"Discarded unfinished round {previous.round_id}")
        logger.info(f"Started round {round_state.round_id} from list '{content_list.id}' "
                    f"with {count} box(es)")
        return round_state

    async def update_entry(self, box_id: str, raw_input: str) -> RoundState | None:
        """Store the mode-normalized input for an editable box."""
        async with self._lock:
            current = self._round
            if current is None or current.completed:
                logger.debug(f"Ignoring entry for {box_id}: no active round")
                return current
            try:
                box = current.box(box_id)
            except UnknownBoxError as e:
                logger.debug(f"Ignoring entry: {e}")
                return current
            if box.locked:
                return current

            value = normalize_entry(current.mode, raw_input)
            if value == box.entered:
                return current
            updated = current.copy()
            updated.box_states[box_id].entered = value
            await self.persistence.save_round(updated)
            self._publish(updated)
            return updated

    async def validate_box(self, box_id: str) -> tuple[bool, RoundState | None]:
        """Check a box's entry against its target.

        Returns (True, new_state) when the box was just solved. Returns
        (False, state) for a wrong answer, which stays editable, and for
        calls that cannot apply (no round, completed round, unknown or
        already locked box).

        Validating again after a failed completion write retries the
        completion, so a locked, all-correct round always gets there.
        """
        async with self._lock:
            current = self._round
            if current is None:
                return False, None
            if current.completed:
                return False, await self._resume_completion(current)
            try:
                box = current.box(box_id)
            except UnknownBoxError as e:
                logger.debug(f"Ignoring validation: {e}")
                return False, current
            if box.locked:
                logger.debug(f"Box {box_id} already locked")
                return False, await self._resume_completion(current)
            if box.entered != box.target:
                return False, current

            updated = current.copy()
            solved = updated.box_states[box_id]
            solved.correct = True
            solved.locked = True
            await self.persistence.save_round(updated)
            self._publish(updated)

            if updated.all_correct() and not updated.completed:
                updated = await self._complete(updated)
            return True, updated

    async def _complete(self, round_state: RoundState) -> RoundState:
        """Mark round_state completed. Caller holds the lock."""
        completed = round_state.copy()
        completed.completed = True
        completed.completed_at = utc_now()
        await self.persistence.save_round(completed)
        self._publish(completed)
        logger.info(f"Round {completed.round_id} completed")
        await self._finish_completion(completed)
        return completed

    async def _finish_completion(self, round_state: RoundState) -> None:
        # The round is only scheduled for removal once its award is stored
        await self.tracker.award(ACHIEVEMENT_ROUND_COMPLETE)
        self._schedule_clear(round_state.round_id)

    async def _resume_completion(self, current: RoundState) -> RoundState:
        """Finish a completion that a failed write cut short. Caller holds the lock."""
        if current.completed:
            if not self.pending_clear(current.round_id):
                logger.info(f"Resuming completion of round {current.round_id}")
                await self._finish_completion(current)
            return current
        if current.all_correct():
            logger.info(f"Resuming completion of round {current.round_id}")
            return await self._complete(current)
        return current

    async def clear_round(self) -> None:
        """Remove the active round from memory and storage.

        Also the abandon path: an unfinished round is dropped without being
        marked complete and without any achievement.
        """
        async with self._lock:
            await self._clear()

    async def _clear(self) -> None:
        current = self._round
        await self.persistence.delete_round()
        self._cancel_clear_tasks()
        self._publish(None)
        if current is None:
            return
        if current.completed:
            logger.info(f"Cleared completed round {current.round_id}")
        else:
            logger.info(f"Abandoned round {current.round_id}")

    def _schedule_clear(self, round_id: str) -> None:
        existing = self._clear_tasks.get(round_id)
        if existing is not None and not existing.done():
            return
        task = asyncio.create_task(self._deferred_clear(round_id))
        self._clear_tasks[round_id] = task

        def _forget(done):
            if self._clear_tasks.get(round_id) is done:
                del self._clear_tasks[round_id]
        task.add_done_callback(_forget)

    async def _deferred_clear(self, round_id: str) -> None:
        await asyncio.sleep(self.clear_delay)
        async with self._lock:
            if self._round is None or self._round.round_id != round_id:
                logger.debug(f"Skipping deferred clear of {round_id}: round replaced")
                return
            try:
                await self._clear()
            except PersistenceError as e:
                # The completed round stays until the next start or clear replaces it
                logger.error(f"Deferred clear of round {round_id} failed: {e}")

    def _cancel_clear_tasks(self) -> None:
        running = asyncio.current_task()
        for round_id, task in list(self._clear_tasks.items()):
            if task is not running:
                task.cancel()
                del self._clear_tasks[round_id]

    def pending_clear(self, round_id: str) -> bool:
        task = self._clear_tasks.get(round_id)
        return task is not None and not task.done()

    async def close(self) -> None:
        """Cancel outstanding deferred clears."""
        tasks = list(self._clear_tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._clear_tasks.clear()
        self._listeners.clear()
