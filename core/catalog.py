"""Built-in content lists seeded on first start."""

from .config import MODE_WORDS, MODE_NUMBERS, MODE_LETTERS
from .models import ContentList, ContentItem

# Seeds are fixed so their timestamps and ids are stable across restarts
SEED_TIMESTAMP = '2024-01-01T00:00:00+00:00'

BUILT_IN_LISTS = {
    'animals-easy': {
        'title': 'Animals',
        'mode': MODE_WORDS,
        'items': [
            ('CAT', '🐱'), ('DOG', '🐶'), ('FISH', '🐟'), ('BIRD', '🐦'),
            ('COW', '🐮'), ('PIG', '🐷'), ('DUCK', '🦆'), ('FROG', '🐸'),
            ('LION', '🦁'), ('BEAR', '🐻'), ('OWL', '🦉'), ('FOX', '🦊'),
        ]
    },
    'colors': {
        'title': 'Colors',
        'mode': MODE_WORDS,
        'items': [
            ('RED', '🟥'), ('BLUE', '🟦'), ('GREEN', '🟩'), ('YELLOW', '🟨'),
            ('ORANGE', '🟧'), ('PURPLE', '🟪'), ('BROWN', '🟫'), ('BLACK', '⬛'),
            ('WHITE', '⬜'), ('PINK', '🌸'),
        ]
    },
    'numbers-1-20': {
        'title': 'Numbers 1-20',
        'mode': MODE_NUMBERS,
        'items': [(str(n), None) for n in range(1, 21)],
    },
    'letters-a-z': {
        'title': 'Letters A-Z',
        'mode': MODE_LETTERS,
        'items': [(chr(c), None) for c in range(ord('A'), ord('Z') + 1)],
    },
}

DEFAULT_LIST_FOR_MODE = {
    MODE_WORDS: 'animals-easy',
    MODE_NUMBERS: 'numbers-1-20',
    MODE_LETTERS: 'letters-a-z',
}


def get_built_in_lists() -> list[ContentList]:
    """Build fresh ContentList records for every built-in list."""
    lists = []
    for list_id, data in BUILT_IN_LISTS.items():
        items = [
            ContentItem(f"{list_id}-{index + 1}", key, decoration)
            for index, (key, decoration) in enumerate(data['items'])
        ]
        lists.append(ContentList(list_id, data['title'], data['mode'], items,
                                 SEED_TIMESTAMP, SEED_TIMESTAMP))
    return lists


def default_list_id_for_mode(mode: str) -> str | None:
    return DEFAULT_LIST_FOR_MODE.get(mode)
