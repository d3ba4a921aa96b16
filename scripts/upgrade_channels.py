#!/usr/bin/env python3
"""
Channel Data Upgrade Script
===========================

Resets the shallow question pool state of one or more channels:
next shallow question to post/save back to 1 and the shallow flag off.

Run with: python scripts/upgrade_channels.py <channel_id> [<channel_id> ...]
Run with no arguments to upgrade every registered channel.
"""

import sys
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))
load_dotenv(PROJECT_ROOT / ".env")

from questionbot.core.config import DATABASE_PATH
from questionbot.services.database import UnknownChannelError, open_store


def main() -> int:
    store = open_store(DATABASE_PATH)
    try:
        channel_ids = [int(arg) for arg in sys.argv[1:]] or store.get_all_channels()
        failed = 0
        for channel_id in channel_ids:
            try:
                store.perform_data_upgrade(channel_id)
                print(f"  [OK] {channel_id}")
            except UnknownChannelError:
                print(f"  [SKIP] {channel_id}: not registered")
                failed += 1
        return 1 if failed else 0
    finally:
        store.db.close()


if __name__ == "__main__":
    sys.exit(main())
