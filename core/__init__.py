from .models import ContentItem, ContentList, BoxState, RoundState, AppConfig, Achievement
from .interfaces import Storage
from .memory_storage import MemoryStorage
from .persistence import Persistence
from .repository import ContentListRepository
from .achievements import AchievementTracker
from .engine import RoundEngine
from .session import GameSession, open_session
from .errors import (
    GameError, NoListSelectedError, EmptyListError, ListNotFoundError,
    UnknownBoxError, InvalidConfigError, InvalidListError, PersistenceError
)
from .utils import normalize_entry
from .config import (
    MODE_WORDS, MODE_NUMBERS, MODE_LETTERS, VALID_MODES,
    DEFAULT_BOXES_PER_ROUND, ROUND_CLEAR_DELAY, ACHIEVEMENT_ROUND_COMPLETE
)

__all__ = [
    'ContentItem', 'ContentList', 'BoxState', 'RoundState', 'AppConfig', 'Achievement',
    'Storage', 'MemoryStorage', 'Persistence',
    'ContentListRepository', 'AchievementTracker', 'RoundEngine',
    'GameSession', 'open_session',
    'GameError', 'NoListSelectedError', 'EmptyListError', 'ListNotFoundError',
    'UnknownBoxError', 'InvalidConfigError', 'InvalidListError', 'PersistenceError',
    'normalize_entry',
    'MODE_WORDS', 'MODE_NUMBERS', 'MODE_LETTERS', 'VALID_MODES',
    'DEFAULT_BOXES_PER_ROUND', 'ROUND_CLEAR_DELAY', 'ACHIEVEMENT_ROUND_COMPLETE'
]
