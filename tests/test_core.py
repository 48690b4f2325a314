"""Unit tests for fillbox core module."""

import asyncio
import unittest

from core.achievements import AchievementTracker
from core.catalog import get_built_in_lists, default_list_id_for_mode
from core.config import (
    MODE_WORDS, MODE_NUMBERS, MODE_LETTERS, STORAGE_KEYS, DEFAULT_BOXES_PER_ROUND
)
from core.errors import (
    PersistenceError, UnknownBoxError, InvalidConfigError, InvalidListError
)
from core.models import AppConfig, BoxState, ContentItem, ContentList, RoundState, Achievement
from core.persistence import Persistence
from core.repository import ContentListRepository
from core.utils import normalize_entry

from mocks import MockStorage, make_list


# ============================================================================
# Test Cases
# ============================================================================

class TestNormalizeEntry(unittest.TestCase):
    """Tests for normalize_entry utility function."""

    def test_words_uppercase_letters_only(self):
        self.assertEqual(normalize_entry(MODE_WORDS, 'cat'), 'CAT')
        self.assertEqual(normalize_entry(MODE_WORDS, ' c4t! '), 'CT')

    def test_numbers_digits_only(self):
        self.assertEqual(normalize_entry(MODE_NUMBERS, 'abc123'), '123')
        self.assertEqual(normalize_entry(MODE_NUMBERS, '1a2B3'), '123')
        self.assertEqual(normalize_entry(MODE_NUMBERS, 'xyz'), '')

    def test_letters_single_letter(self):
        self.assertEqual(normalize_entry(MODE_LETTERS, 'abc'), 'A')
        self.assertEqual(normalize_entry(MODE_LETTERS, '9z'), 'Z')
        self.assertEqual(normalize_entry(MODE_LETTERS, ''), '')

    def test_none_input(self):
        self.assertEqual(normalize_entry(MODE_WORDS, None), '')

    def test_unknown_mode(self):
        with self.assertRaises(ValueError):
            normalize_entry('EMOJI', 'x')


class TestModels(unittest.TestCase):

    def test_round_state_round_trip(self):
        boxes = {'a': BoxState('CAT', 'CA'), 'b': BoxState('DOG', 'DOG', True, True, '🐶')}
        round_state = RoundState('r1', 'animals', MODE_WORDS, ['b', 'a'], boxes)
        restored = RoundState.from_dict(round_state.to_dict())
        self.assertEqual(restored.to_dict(), round_state.to_dict())
        self.assertEqual(restored.box_order, ['b', 'a'])
        self.assertEqual(restored.box_states['b'].decoration, '🐶')

    def test_round_state_rejects_inconsistent_order(self):
        data = RoundState('r1', 'l', MODE_WORDS, ['a'], {'a': BoxState('CAT')}).to_dict()
        data['box_order'] = ['a', 'z']
        with self.assertRaises(ValueError):
            RoundState.from_dict(data)

    def test_copy_is_independent(self):
        round_state = RoundState('r1', 'l', MODE_WORDS, ['a'], {'a': BoxState('CAT')})
        clone = round_state.copy()
        clone.box_states['a'].entered = 'C'
        self.assertEqual(round_state.box_states['a'].entered, '')

    def test_box_lookup(self):
        round_state = RoundState('r1', 'l', MODE_WORDS, ['a'], {'a': BoxState('CAT')})
        self.assertEqual(round_state.box('a').target, 'CAT')
        with self.assertRaises(UnknownBoxError):
            round_state.box('missing')

    def test_all_correct(self):
        boxes = {'a': BoxState('CAT', 'CAT', True, True), 'b': BoxState('DOG')}
        round_state = RoundState('r1', 'l', MODE_WORDS, ['a', 'b'], boxes)
        self.assertFalse(round_state.all_correct())
        boxes['b'].correct = True
        self.assertTrue(round_state.all_correct())
        self.assertFalse(RoundState('r2', 'l', MODE_WORDS, [], {}).all_correct())

    def test_config_defaults(self):
        config = AppConfig()
        self.assertEqual(config.mode, MODE_WORDS)
        self.assertEqual(config.boxes_per_round, DEFAULT_BOXES_PER_ROUND)
        self.assertTrue(config.sounds_enabled)

    def test_config_updated_validates(self):
        config = AppConfig()
        self.assertEqual(config.updated(boxes_per_round=3).boxes_per_round, 3)
        self.assertEqual(config.boxes_per_round, DEFAULT_BOXES_PER_ROUND)
        for bad in ({'boxes_per_round': 0}, {'boxes_per_round': True},
                    {'boxes_per_round': '4'}, {'mode': 'EMOJI'},
                    {'sounds_enabled': 'yes'}, {'colour': 'red'},
                    {'parent_button_position': 'bottom'}):
            with self.assertRaises(InvalidConfigError):
                config.updated(**bad)

    def test_content_list_validate(self):
        make_list(['CAT']).validate()
        with self.assertRaises(InvalidListError):
            ContentList('x', 'X', 'EMOJI').validate()
        with self.assertRaises(InvalidListError):
            ContentList('x', ' ', MODE_WORDS).validate()
        duplicate = ContentList('x', 'X', MODE_WORDS,
                                [ContentItem('1', 'CAT'), ContentItem('1', 'DOG')])
        with self.assertRaises(InvalidListError):
            duplicate.validate()

    def test_content_list_validate_rejects_non_text(self):
        with self.assertRaises(InvalidListError):
            ContentList('x', 7, MODE_WORDS).validate()
        with self.assertRaises(InvalidListError):
            ContentList('x', 'X', MODE_WORDS, [ContentItem('1', 5)]).validate()

    def test_normalize_keys(self):
        content_list = ContentList('x', 'X', MODE_WORDS, [ContentItem('1', 'cat'), ContentItem('2', 'Big Dog')])
        content_list.normalize_keys()
        self.assertEqual([i.key for i in content_list.items], ['CAT', 'BIGDOG'])
        with self.assertRaises(InvalidListError):
            ContentList('n', 'N', MODE_NUMBERS, [ContentItem('1', 'ten')]).normalize_keys()

    def test_malformed_palette(self):
        for palette in ('abc', [['bg', '#FFF']], {'bg': 3}):
            with self.assertRaises(InvalidConfigError):
                AppConfig.from_dict({'palette': palette})

    def test_new_list_timestamps(self):
        content_list = ContentList('x', 'X', MODE_WORDS)
        self.assertEqual(content_list.created_at, content_list.updated_at)


class TestCatalog(unittest.TestCase):

    def test_built_in_lists_are_valid(self):
        lists = get_built_in_lists()
        self.assertEqual(
            [l.id for l in lists],
            ['animals-easy', 'colors', 'numbers-1-20', 'letters-a-z']
        )
        for content_list in lists:
            content_list.validate()
            for item in content_list.items:
                self.assertEqual(normalize_entry(content_list.mode, item.key), item.key)

    def test_default_list_per_mode(self):
        self.assertEqual(default_list_id_for_mode(MODE_NUMBERS), 'numbers-1-20')
        self.assertIsNone(default_list_id_for_mode('EMOJI'))


class TestPersistence(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        self.storage = MockStorage()
        self.persistence = Persistence(self.storage)

    async def test_absent_values(self):
        self.assertIsNone(await self.persistence.load_config())
        self.assertEqual(await self.persistence.load_lists(), [])
        self.assertIsNone(await self.persistence.load_round())
        self.assertEqual(await self.persistence.load_achievements(), [])
        self.assertIsNone(await self.persistence.load_selected_list_id())

    async def test_config_round_trip(self):
        await self.persistence.save_config(AppConfig(mode=MODE_LETTERS, boxes_per_round=4))
        config = await self.persistence.load_config()
        self.assertEqual(config.mode, MODE_LETTERS)
        self.assertEqual(config.boxes_per_round, 4)

    async def test_selected_list_none_deletes(self):
        await self.persistence.save_selected_list_id('animals')
        self.assertEqual(await self.persistence.load_selected_list_id(), 'animals')
        await self.persistence.save_selected_list_id(None)
        self.assertIsNone(self.storage.get(STORAGE_KEYS['selected_list']))

    async def test_write_failure_raises_persistence_error(self):
        self.storage.fail_keys.add(STORAGE_KEYS['config'])
        with self.assertRaises(PersistenceError) as ctx:
            await self.persistence.save_config(AppConfig())
        self.assertEqual(ctx.exception.key, STORAGE_KEYS['config'])

    async def test_read_failure_raises_persistence_error(self):
        self.storage.fail_reads = True
        with self.assertRaises(PersistenceError):
            await self.persistence.load_lists()

    async def test_unreadable_records_are_dropped(self):
        self.storage.set(STORAGE_KEYS['config'], {'mode': 'EMOJI'})
        self.storage.set(STORAGE_KEYS['lists'], [make_list(['CAT']).to_dict(), {'title': 'broken'}])
        self.assertIsNone(await self.persistence.load_config())
        lists = await self.persistence.load_lists()
        self.assertEqual([l.id for l in lists], ['animals'])

    async def test_export_shape(self):
        await self.persistence.save_lists([make_list(['CAT'])])
        await self.persistence.save_achievements([Achievement('round-complete')])
        data = await self.persistence.export_data()
        self.assertEqual(set(data), {'config', 'lists', 'achievements', 'exported_at'})
        self.assertEqual(data['config'], AppConfig().to_dict())
        self.assertEqual(data['lists'][0]['id'], 'animals')
        self.assertEqual(data['achievements'][0]['id'], 'round-complete')

    async def test_import_applies_present_fields_only(self):
        await self.persistence.save_lists([make_list(['CAT'])])
        round_state = RoundState('r1', 'animals', MODE_WORDS, ['a'], {'a': BoxState('CAT')})
        await self.persistence.save_round(round_state)

        await self.persistence.import_data({'config': {'mode': MODE_NUMBERS}})

        self.assertEqual((await self.persistence.load_config()).mode, MODE_NUMBERS)
        self.assertEqual(len(await self.persistence.load_lists()), 1)
        self.assertEqual((await self.persistence.load_round()).round_id, 'r1')

    async def test_import_rejects_bad_data_before_writing(self):
        bad = {'config': {'mode': MODE_LETTERS}, 'lists': [{'title': 'no id'}]}
        with self.assertRaises(InvalidListError):
            await self.persistence.import_data(bad)
        self.assertIsNone(await self.persistence.load_config())

    async def test_import_malformed_config(self):
        for config in ({'palette': 'abc'}, 'WORDS', {'boxes_per_round': '6'}):
            with self.assertRaises(InvalidConfigError):
                await self.persistence.import_data({'config': config})
        with self.assertRaises(InvalidConfigError):
            await self.persistence.import_data(['not', 'an', 'object'])
        self.assertIsNone(await self.persistence.load_config())

    async def test_import_malformed_lists(self):
        titled_with_number = make_list(['CAT']).to_dict()
        titled_with_number['title'] = 7
        for lists in ([titled_with_number], 'animals', [make_list(['CAT']).to_dict()] * 2):
            with self.assertRaises(InvalidListError):
                await self.persistence.import_data({'lists': lists})
        self.assertEqual(await self.persistence.load_lists(), [])

    async def test_import_normalizes_item_keys(self):
        numbers = make_list(['1 2', 'x7'], list_id='numbers', mode=MODE_NUMBERS).to_dict()
        await self.persistence.import_data({'lists': [make_list(['cat', 'Dog']).to_dict(), numbers]})
        lists = await self.persistence.load_lists()
        self.assertEqual([i.key for i in lists[0].items], ['CAT', 'DOG'])
        self.assertEqual([i.key for i in lists[1].items], ['12', '7'])

        untypeable = make_list(['ten'], list_id='numbers', mode=MODE_NUMBERS).to_dict()
        with self.assertRaises(InvalidListError):
            await self.persistence.import_data({'lists': [untypeable]})

    async def test_import_keeps_first_achievement_per_id(self):
        await self.persistence.import_data({'achievements': [
            {'id': 'round-complete', 'earned_at': '2024-01-01T00:00:00+00:00'},
            {'id': 'round-complete', 'earned_at': '2024-02-01T00:00:00+00:00'},
            {'id': 'speedy'},
        ]})
        achievements = await self.persistence.load_achievements()
        self.assertEqual([a.id for a in achievements], ['round-complete', 'speedy'])
        self.assertEqual(achievements[0].earned_at, '2024-01-01T00:00:00+00:00')
        with self.assertRaises(InvalidConfigError):
            await self.persistence.import_data({'achievements': [{'id': 3}]})

    async def test_export_then_import_into_fresh_store(self):
        await self.persistence.save_config(AppConfig(boxes_per_round=2))
        await self.persistence.save_lists([make_list(['CAT', 'DOG'])])
        data = await self.persistence.export_data()

        other = Persistence(MockStorage())
        await other.import_data(data)
        self.assertEqual((await other.load_config()).boxes_per_round, 2)
        self.assertEqual([i.key for i in (await other.load_lists())[0].items], ['CAT', 'DOG'])


class TestContentListRepository(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        self.storage = MockStorage()
        self.repository = ContentListRepository(Persistence(self.storage))

    async def test_put_and_get(self):
        await self.repository.put(make_list(['CAT']))
        content_list = await self.repository.get('animals')
        self.assertEqual(content_list.items[0].key, 'CAT')
        self.assertIsNone(await self.repository.get('missing'))

    async def test_insert_preserves_updated_at(self):
        content_list = make_list(['CAT'])
        content_list.updated_at = '2020-01-01T00:00:00+00:00'
        await self.repository.put(content_list)
        stored = await self.repository.get('animals')
        self.assertEqual(stored.updated_at, '2020-01-01T00:00:00+00:00')

    async def test_update_bumps_updated_at(self):
        content_list = make_list(['CAT'])
        content_list.updated_at = '2020-01-01T00:00:00+00:00'
        await self.repository.put(content_list)
        edited = make_list(['CAT', 'DOG'])
        edited.updated_at = '2020-01-01T00:00:00+00:00'
        await self.repository.put(edited)
        stored = await self.repository.get('animals')
        self.assertEqual(len(stored.items), 2)
        self.assertGreater(stored.updated_at, '2020-01-01T00:00:00+00:00')
        self.assertEqual(len(await self.repository.list()), 1)

    async def test_put_normalizes_item_keys(self):
        await self.repository.put(make_list(['cat', 'hot dog']))
        stored = await self.repository.get('animals')
        self.assertEqual([i.key for i in stored.items], ['CAT', 'HOTDOG'])
        with self.assertRaises(InvalidListError):
            await self.repository.put(make_list(['42']))

    async def test_put_rejects_invalid_list(self):
        with self.assertRaises(InvalidListError):
            await self.repository.put(ContentList('x', 'X', 'EMOJI'))

    async def test_delete(self):
        await self.repository.put(make_list(['CAT']))
        self.assertTrue(await self.repository.delete('animals'))
        self.assertFalse(await self.repository.delete('animals'))
        self.assertEqual(await self.repository.list(), [])

    async def test_seed_never_overwrites(self):
        seeds = get_built_in_lists()
        self.assertEqual(await self.repository.seed(seeds), len(seeds))
        edited = await self.repository.get('colors')
        edited.items = edited.items[:1]
        await self.repository.put(edited)

        self.assertEqual(await self.repository.seed(get_built_in_lists()), 0)
        self.assertEqual(len((await self.repository.get('colors')).items), 1)

    async def test_seed_restores_deleted_built_in(self):
        await self.repository.seed(get_built_in_lists())
        await self.repository.delete('colors')
        self.assertEqual(await self.repository.seed(get_built_in_lists()), 1)


class TestAchievementTracker(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        self.storage = MockStorage()
        self.tracker = AchievementTracker(Persistence(self.storage))

    async def test_award_is_idempotent(self):
        self.assertTrue(await self.tracker.award('round-complete'))
        self.assertFalse(await self.tracker.award('round-complete'))
        self.assertEqual(await self.tracker.earned_ids(), ['round-complete'])
        self.assertEqual(self.storage.writes_to(STORAGE_KEYS['achievements']), 1)

    async def test_concurrent_awards(self):
        results = await asyncio.gather(*(self.tracker.award('round-complete') for _ in range(5)))
        self.assertEqual(results.count(True), 1)
        self.assertEqual(len(await self.tracker.earned()), 1)

    async def test_earned_keeps_timestamps(self):
        await self.tracker.award('first')
        await self.tracker.award('second')
        earned = await self.tracker.earned()
        self.assertEqual([a.id for a in earned], ['first', 'second'])
        self.assertTrue(all(a.earned_at for a in earned))
        self.assertTrue(await self.tracker.has('second'))
        self.assertFalse(await self.tracker.has('third'))


if __name__ == '__main__':
    unittest.main()
