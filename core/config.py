"""Configuration constants for fillbox application."""

# Practice modes
MODE_WORDS = 'WORDS'
MODE_NUMBERS = 'NUMBERS'
MODE_LETTERS = 'LETTERS'
VALID_MODES = [MODE_WORDS, MODE_NUMBERS, MODE_LETTERS]

# Round generation
DEFAULT_BOXES_PER_ROUND = 6
MAX_BOXES_PER_ROUND = 50

# Seconds a completed round stays visible before it is cleared
ROUND_CLEAR_DELAY = 3.0

# Achievements
ACHIEVEMENT_ROUND_COMPLETE = 'round-complete'

# Logical persistence keys (one value each)
STORAGE_KEYS = {
    'config': 'app_config',
    'lists': 'content_lists',
    'round': 'round_state',
    'achievements': 'achievements',
    'selected_list': 'selected_list',
}

# Display preferences
DEFAULT_PALETTE = {
    'bg': '#F3F7FF',
    'primary': '#2B6CF6',
    'accent': '#FFB400',
    'box_bg': '#FFFFFF',
    'box_border': '#DDE7FF',
}
DEFAULT_THEME = 'animals'
PARENT_BUTTON_POSITIONS = ['top-right', 'top-left']
