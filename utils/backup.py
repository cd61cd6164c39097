"""
utils/backup.py — Database backups.

Copies the live database into BACKUP_DIR with a timestamped filename,
using sqlite's online backup API so a WAL database is copied consistently.
Backup triggers: before a replace-mode import, and from the export page.
Format: plant_kb_YYYYMMDD_HHMMSS_{reason}.db
"""

import logging
import os
import sqlite3
from datetime import datetime
from typing import Optional, List, Dict, Any

from flask import current_app, has_app_context

from database import get_db, get_db_path

logger = logging.getLogger(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DEFAULT_BACKUP_DIR = os.path.join(BASE_DIR, 'backups')
PREFIX = 'plant_kb_'


def get_backup_dir() -> str:
    if has_app_context() and current_app.config.get('BACKUP_DIR'):
        return current_app.config['BACKUP_DIR']
    return os.environ.get('PLANT_KB_BACKUP_DIR', DEFAULT_BACKUP_DIR)


def backup_db(reason: str = 'manual') -> Optional[str]:
    """
    Copy the current database to the backup directory.

    Args:
        reason: Short tag for the backup trigger (e.g., 'manual', 'pre_import').

    Returns:
        The filename of the created backup, or None if there is nothing to back up.
    """
    if not os.path.exists(get_db_path()):
        return None

    backup_dir = get_backup_dir()
    os.makedirs(backup_dir, exist_ok=True)

    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    safe_reason = reason.replace(' ', '_').replace('/', '_')[:30]
    filename = f'{PREFIX}{timestamp}_{safe_reason}.db'
    dest_path = os.path.join(backup_dir, filename)

    source = get_db()
    dest = sqlite3.connect(dest_path)
    try:
        source.backup(dest)
    except sqlite3.Error:
        logger.exception("Backup to %s failed", dest_path)
        return None
    finally:
        dest.close()
        source.close()

    logger.info("Database backed up to %s", filename)
    return filename


def _size_display(size_bytes: int) -> str:
    if size_bytes < 1024:
        return f'{size_bytes} B'
    if size_bytes < 1024 * 1024:
        return f'{size_bytes / 1024:.1f} KB'
    return f'{size_bytes / (1024 * 1024):.1f} MB'


def list_backups() -> List[Dict[str, Any]]:
    """
    List backup files, newest first.

    Returns:
        List of dicts with keys: filename, timestamp, size_bytes, size_display, reason.
    """
    backup_dir = get_backup_dir()
    if not os.path.isdir(backup_dir):
        return []

    backups = []
    for name in os.listdir(backup_dir):
        if not (name.startswith(PREFIX) and name.endswith('.db')):
            continue

        size_bytes = os.stat(os.path.join(backup_dir, name)).st_size

        # plant_kb_YYYYMMDD_HHMMSS_reason.db
        parts = name[len(PREFIX):-len('.db')].split('_')
        timestamp = ''
        reason = ''
        if len(parts) >= 2:
            day, clock = parts[0], parts[1]
            timestamp = f'{day[:4]}-{day[4:6]}-{day[6:8]} {clock[:2]}:{clock[2:4]}:{clock[4:6]}'
            reason = '_'.join(parts[2:])

        backups.append({
            'filename': name,
            'timestamp': timestamp,
            'size_bytes': size_bytes,
            'size_display': _size_display(size_bytes),
            'reason': reason,
        })

    backups.sort(key=lambda b: b['filename'], reverse=True)
    return backups
