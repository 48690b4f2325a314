"""Domain models for fillbox application."""

from .config import (
    VALID_MODES, DEFAULT_BOXES_PER_ROUND, MAX_BOXES_PER_ROUND,
    DEFAULT_PALETTE, DEFAULT_THEME, PARENT_BUTTON_POSITIONS, MODE_WORDS
)
from .errors import UnknownBoxError, InvalidConfigError, InvalidListError
from .utils import normalize_entry, utc_now


class ContentItem:
    """One target the learner must type, with an optional decoration (emoji)."""

    def __init__(self, id: str, key: str, decoration: str = None):
        self.id = id
        self.key = key
        self.decoration = decoration

    def to_dict(self) -> dict:
        return {'id': self.id, 'key': self.key, 'decoration': self.decoration}

    @classmethod
    def from_dict(cls, data: dict) -> 'ContentItem':
        return cls(data['id'], data['key'], data.get('decoration'))


class ContentList:
    """A named, ordered collection of items usable in one mode."""

    def __init__(self, id: str, title: str, mode: str, items: list = None,
                 created_at: str = None, updated_at: str = None):
        self.id = id
        self.title = title
        self.mode = mode
        self.items = list(items or [])
        now = utc_now()
        self.created_at = created_at or now
        self.updated_at = updated_at or self.created_at

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'title': self.title,
            'mode': self.mode,
            'items': [item.to_dict() for item in self.items],
            'created_at': self.created_at,
            'updated_at': self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'ContentList':
        return cls(
            data['id'],
            data['title'],
            data['mode'],
            [ContentItem.from_dict(item) for item in data.get('items', [])],
            data.get('created_at'),
            data.get('updated_at'),
        )

    def normalize_keys(self) -> None:
        """Filter every item key the way learner input is filtered, so each target is typeable."""
        if self.mode not in VALID_MODES:
            return
        for item in self.items:
            if not isinstance(item.key, str):
                raise InvalidListError(f"List '{self.title}' has a non-text item key: {item.key!r}")
            normalized = normalize_entry(self.mode, item.key)
            if not normalized:
                raise InvalidListError(f"'{item.key}' is not a valid {self.mode.lower()} item")
            item.key = normalized

    def validate(self) -> None:
        if not self.id:
            raise InvalidListError("Content list needs an id")
        if not isinstance(self.title, str) or not self.title.strip():
            raise InvalidListError("Content list needs a title")
        if self.mode not in VALID_MODES:
            raise InvalidListError(f"Invalid mode for list '{self.title}': {self.mode}")
        seen = set()
        for item in self.items:
            if not isinstance(item.key, str) or not item.key:
                raise InvalidListError(f"List '{self.title}' has an item with an empty key")
            if item.id in seen:
                raise InvalidListError(f"List '{self.title}' has duplicate item id {item.id}")
            seen.add(item.id)

    def find_item(self, item_id: str) -> ContentItem | None:
        for item in self.items:
            if item.id == item_id:
                return item
        return None


class BoxState:
    """Entry and validation state of one box.

    `locked` and `correct` are only ever set together, by a successful
    validation; after that `entered` is frozen.
    """

    def __init__(self, target: str, entered: str = '', locked: bool = False,
                 correct: bool = False, decoration: str = None):
        self.target = target
        self.entered = entered
        self.locked = locked
        self.correct = correct
        self.decoration = decoration

    def to_dict(self) -> dict:
        return {
            'target': self.target,
            'entered': self.entered,
            'locked': self.locked,
            'correct': self.correct,
            'decoration': self.decoration,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'BoxState':
        return cls(
            data['target'],
            data.get('entered', ''),
            data.get('locked', False),
            data.get('correct', False),
            data.get('decoration'),
        )


class RoundState:
    """The single active round."""

    def __init__(self, round_id: str, list_id: str, mode: str,
                 box_order: list, box_states: dict,
                 completed: bool = False, started_at: str = None,
                 completed_at: str = None):
        self.round_id = round_id
        self.list_id = list_id
        self.mode = mode
        self.box_order = list(box_order)
        self.box_states = dict(box_states)
        self.completed = completed
        self.started_at = started_at or utc_now()
        self.completed_at = completed_at

    def to_dict(self) -> dict:
        return {
            'round_id': self.round_id,
            'list_id': self.list_id,
            'mode': self.mode,
            'box_order': list(self.box_order),
            'box_states': {box_id: box.to_dict() for box_id, box in self.box_states.items()},
            'completed': self.completed,
            'started_at': self.started_at,
            'completed_at': self.completed_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'RoundState':
        box_states = {
            box_id: BoxState.from_dict(box)
            for box_id, box in data['box_states'].items()
        }
        round_state = cls(
            data['round_id'],
            data['list_id'],
            data.get('mode', MODE_WORDS),
            data['box_order'],
            box_states,
            data.get('completed', False),
            data.get('started_at'),
            data.get('completed_at'),
        )
        if not round_state.order_is_consistent():
            raise ValueError(f"Round {round_state.round_id} box order does not match its boxes")
        return round_state

    def copy(self) -> 'RoundState':
        return RoundState.from_dict(self.to_dict())

    def box(self, box_id: str) -> BoxState:
        """Return a box by id, raising UnknownBoxError if it is not in this round."""
        try:
            return self.box_states[box_id]
        except KeyError:
            raise UnknownBoxError(box_id) from None

    def all_correct(self) -> bool:
        return bool(self.box_states) and all(box.correct for box in self.box_states.values())

    def order_is_consistent(self) -> bool:
        """Check that box_order is a permutation of the box ids."""
        return (len(self.box_order) == len(self.box_states)
                and set(self.box_order) == set(self.box_states))

    def ordered_boxes(self) -> list[tuple[str, BoxState]]:
        return [(box_id, self.box_states[box_id]) for box_id in self.box_order]


class AppConfig:
    """Process-wide learner preferences."""

    FIELDS = ('mode', 'boxes_per_round', 'sounds_enabled', 'palette',
              'built_in_theme', 'parent_button_position')

    def __init__(self, mode: str = MODE_WORDS,
                 boxes_per_round: int = DEFAULT_BOXES_PER_ROUND,
                 sounds_enabled: bool = True, palette: dict = None,
                 built_in_theme: str = DEFAULT_THEME,
                 parent_button_position: str = 'top-right'):
        self.mode = mode
        self.boxes_per_round = boxes_per_round
        self.sounds_enabled = sounds_enabled
        if palette is None:
            palette = DEFAULT_PALETTE
        self.palette = dict(palette) if isinstance(palette, dict) else palette
        self.built_in_theme = built_in_theme
        self.parent_button_position = parent_button_position

    def to_dict(self) -> dict:
        return {
            'mode': self.mode,
            'boxes_per_round': self.boxes_per_round,
            'sounds_enabled': self.sounds_enabled,
            'palette': dict(self.palette),
            'built_in_theme': self.built_in_theme,
            'parent_button_position': self.parent_button_position,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'AppConfig':
        if not isinstance(data, dict):
            raise InvalidConfigError("Config must be an object")
        config = cls(**{k: data[k] for k in cls.FIELDS if k in data})
        config.validate()
        return config

    def updated(self, **updates) -> 'AppConfig':
        """Return a validated copy with the given fields replaced."""
        unknown = set(updates) - set(self.FIELDS)
        if unknown:
            raise InvalidConfigError(f"Unknown config field(s): {', '.join(sorted(unknown))}")
        data = self.to_dict()
        data.update(updates)
        return AppConfig.from_dict(data)

    def validate(self) -> None:
        if self.mode not in VALID_MODES:
            raise InvalidConfigError(f"Invalid mode: {self.mode}")
        if (isinstance(self.boxes_per_round, bool)
                or not isinstance(self.boxes_per_round, int)
                or not 1 <= self.boxes_per_round <= MAX_BOXES_PER_ROUND):
            raise InvalidConfigError(
                f"boxes_per_round must be an integer between 1 and {MAX_BOXES_PER_ROUND}"
            )
        if not isinstance(self.sounds_enabled, bool):
            raise InvalidConfigError("sounds_enabled must be true or false")
        if not isinstance(self.palette, dict) or not all(
                isinstance(k, str) and isinstance(v, str) for k, v in self.palette.items()):
            raise InvalidConfigError("palette must be a mapping of colour names")
        if self.parent_button_position not in PARENT_BUTTON_POSITIONS:
            raise InvalidConfigError(f"Invalid parent button position: {self.parent_button_position}")


class Achievement:
    def __init__(self, id: str, earned_at: str = None):
        self.id = id
        self.earned_at = earned_at or utc_now()

    def to_dict(self) -> dict:
        return {'id': self.id, 'earned_at': self.earned_at}

    @classmethod
    def from_dict(cls, data: dict) -> 'Achievement':
        return cls(data['id'], data.get('earned_at'))
