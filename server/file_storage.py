"""File-based storage implementation."""

import json
import logging
import os
import re
import tempfile

from core.interfaces import Storage

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r'^[A-Za-z0-9_.-]+$')


class FileStorage(Storage):
    """One JSON file per key inside a state directory."""

    def __init__(self, state_dir: str = None):
        self.state_dir = state_dir or os.environ.get(
            'FILLBOX_STATE_DIR',
            os.path.expanduser('~/.local/share/fillbox')
        )

    def _get_file(self, key: str) -> str:
        """Get the file path for a key."""
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return os.path.join(self.state_dir, f'{key}.json')

    def get(self, key: str):
        path = self._get_file(key)
        if not os.path.exists(path):
            return None
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)

    def set(self, key: str, value) -> None:
        path = self._get_file(key)
        os.makedirs(self.state_dir, exist_ok=True)
        # Write to a temp file and rename so a crash never leaves half a record
        fd, tmp_path = tempfile.mkstemp(dir=self.state_dir, prefix=f'.{key}.', suffix='.tmp')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(value, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, path)
        except Exception:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def delete(self, key: str) -> None:
        path = self._get_file(key)
        if os.path.exists(path):
            os.remove(path)

    def keys(self) -> list[str]:
        if not os.path.isdir(self.state_dir):
            return []
        return sorted(
            filename[:-5]
            for filename in os.listdir(self.state_dir)
            if filename.endswith('.json') and not filename.startswith('.')
        )
