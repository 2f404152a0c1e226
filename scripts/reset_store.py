"""
Reset Ticket Store
Backs up and clears the ticket store (JSON files or SQLite database, per
STORE_BACKEND). Profiles live in the auth service and are not touched.

Usage:
    python scripts/reset_store.py
    python scripts/reset_store.py --no-backup
"""
import argparse
import os
import shutil
import sys
from datetime import datetime
from pathlib import Path

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import config


def create_backup(path, backup_dir):
    """Create timestamped backup of a store file"""
    if not Path(path).exists():
        print(f"⚠️ {path} doesn't exist yet, skipping backup")
        return None

    backup_dir = Path(backup_dir)
    backup_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    source = Path(path)
    backup_path = backup_dir / f"{source.stem}_backup_{timestamp}{source.suffix}"

    shutil.copy2(source, backup_path)
    print(f"✓ Backup created: {backup_path}")
    return str(backup_path)


def store_files(backend=None):
    """Files that make up the configured ticket store"""
    backend = backend or config.STORE_BACKEND
    if backend == 'sqlite':
        return [config.SQLITE_PATH]
    return [config.TICKETS_FILE, config.COMMENTS_FILE]


def reset_store(backend=None, backup=True, backup_dir=None):
    """Remove the store files (after backing them up); returns the removed paths"""
    backup_dir = backup_dir or os.path.join(config.DATA_DIR, 'backups')
    removed = []

    print("\n" + "=" * 70)
    print("  RESETTING TICKET STORE")
    print("=" * 70)

    for path in store_files(backend):
        if backup:
            create_backup(path, backup_dir)
        if Path(path).exists():
            os.remove(path)
            removed.append(path)
            print(f"✓ Deleted: {path}")

    print("=" * 70)
    return removed


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Back up and clear the ticket store')
    parser.add_argument('--backend', choices=['json', 'sqlite'], help='Override STORE_BACKEND')
    parser.add_argument('--no-backup', action='store_true', help='Skip the backup step')
    args = parser.parse_args()

    reset_store(args.backend, backup=not args.no_backup)
