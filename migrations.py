"""
migrations.py — Ordered, recorded schema migrations.

Each migration is (version, description, function). run_migrations() applies
the ones not yet listed in schema_migrations, each inside its own
transaction, and records them. Migration functions are written to be
idempotent column checks so they are safe on databases created from the
current schema as well as on older files.
"""

import logging
import sqlite3
from typing import List

from utils.validators import normalize_name

logger = logging.getLogger(__name__)


def _columns(cursor, table: str) -> List[str]:
    return [row[1] for row in cursor.execute(f"PRAGMA table_info({table})").fetchall()]


def _add_column(cursor, table: str, column: str, definition: str) -> bool:
    if column in _columns(cursor, table):
        return False
    cursor.execute(f"ALTER TABLE {table} ADD COLUMN {column} {definition}")
    return True


def add_plant_genus_species(cursor):
    """Add taxonomy columns and back-fill genus/species from the botanical name."""
    for column in ('genus', 'species', 'variety', 'cultivar'):
        _add_column(cursor, 'plants', column, 'TEXT')

    rows = cursor.execute("""
        SELECT id, botanical_name FROM plants
        WHERE genus IS NULL OR genus = '' OR species IS NULL OR species = ''
    """).fetchall()

    for row in rows:
        parts = (row[1] or '').split()
        genus = parts[0][0].upper() + parts[0][1:] if parts else 'Unknown'
        species = parts[1].lower() if len(parts) > 1 else 'sp.'
        cursor.execute(
            "UPDATE plants SET genus = ?, species = ? WHERE id = ?",
            (genus, species, row[0])
        )

        # A genus on its own becomes "Genus sp." unless that name is taken
        if len(parts) == 1:
            name = f"{genus} {species}"
            taken = cursor.execute(
                "SELECT 1 FROM plants WHERE botanical_name = ? AND id != ?", (name, row[0])
            ).fetchone()
            if not taken:
                cursor.execute("UPDATE plants SET botanical_name = ? WHERE id = ?", (name, row[0]))


def add_botanical_name_norm(cursor):
    """Normalised botanical name for duplicate detection, unique."""
    _add_column(cursor, 'plants', 'botanical_name_norm', 'TEXT')

    rows = cursor.execute(
        "SELECT id, botanical_name FROM plants WHERE botanical_name_norm IS NULL OR botanical_name_norm = ''"
    ).fetchall()
    for row in rows:
        cursor.execute(
            "UPDATE plants SET botanical_name_norm = ? WHERE id = ?",
            (normalize_name(row[1]), row[0])
        )

    cursor.execute("""
        CREATE UNIQUE INDEX IF NOT EXISTS idx_plants_botanical_name_norm
        ON plants(botanical_name_norm)
    """)


def add_plant_mature_size(cursor):
    _add_column(cursor, 'plants', 'height_mature_cm', 'REAL')
    _add_column(cursor, 'plants', 'spread_mature_cm', 'REAL')


def add_ayurvedic_vipaka(cursor):
    _add_column(cursor, 'plant_ayurvedic_properties', 'vipaka_id',
                'INTEGER REFERENCES ayurvedic_vipaka(id)')


MIGRATIONS = [
    (1, 'Add genus and species to plants', add_plant_genus_species),
    (2, 'Add normalised botanical name', add_botanical_name_norm),
    (3, 'Add mature height and spread', add_plant_mature_size),
    (4, 'Add vipaka to Ayurvedic properties', add_ayurvedic_vipaka),
]


def get_applied_versions(conn: sqlite3.Connection) -> List[int]:
    conn.execute("""
        CREATE TABLE IF NOT EXISTS schema_migrations (
            version INTEGER PRIMARY KEY,
            description TEXT NOT NULL,
            applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """)
    conn.commit()
    return [row[0] for row in conn.execute("SELECT version FROM schema_migrations ORDER BY version")]


def run_migrations(conn: sqlite3.Connection) -> List[int]:
    """
    Apply pending migrations in version order.

    Returns:
        List of versions applied by this call (empty when up to date)

    Raises:
        The migration's exception, after rolling its transaction back.
    """
    applied = set(get_applied_versions(conn))
    newly_applied = []

    for version, description, migrate in sorted(MIGRATIONS, key=lambda m: m[0]):
        if version in applied:
            continue

        cursor = conn.cursor()
        try:
            cursor.execute("BEGIN")
            migrate(cursor)
            cursor.execute(
                "INSERT INTO schema_migrations (version, description) VALUES (?, ?)",
                (version, description)
            )
            conn.commit()
        except Exception:
            conn.rollback()
            logger.exception("Migration %s failed: %s", version, description)
            raise

        logger.info("Applied migration %s: %s", version, description)
        newly_applied.append(version)

    return newly_applied
