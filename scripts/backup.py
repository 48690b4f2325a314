#!/usr/bin/env python3
"""Export or import a fillbox data snapshot (config, lists, achievements).

Usage:
    python scripts/backup.py export backup.json
    python scripts/backup.py import backup.json

The storage backend is chosen the same way as the server (FILLBOX_STORAGE).
Importing never touches the round in progress.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.errors import GameError
from core.session import open_session
from server.app import create_storage


async def run(action: str, path: Path) -> int:
    session = await open_session(create_storage())
    try:
        if session.degraded:
            print("Error: storage is not available")
            return 1
        if action == 'export':
            data = await session.export_data()
            path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding='utf-8')
            print(f"Exported {len(data['lists'])} lists and "
                  f"{len(data['achievements'])} achievements to {path}")
        else:
            data = json.loads(path.read_text(encoding='utf-8'))
            await session.import_data(data)
            print(f"Imported {path}")
        return 0
    except GameError as e:
        print(f"Error: {e}")
        return 1
    finally:
        await session.close()


def main():
    parser = argparse.ArgumentParser(description='Back up or restore fillbox data')
    parser.add_argument('action', choices=['export', 'import'])
    parser.add_argument('path', type=Path)
    args = parser.parse_args()
    return asyncio.run(run(args.action, args.path))


if __name__ == '__main__':
    sys.exit(main())
