"""
plant_management/repository.py — Persistence for the Plant aggregate.

PlantRepository is the abstract port used by the application layer;
SqlitePlantRepository implements it over the `plants` table. Each call
opens its own connection, like the rest of the data-access code.
"""

import logging
import sqlite3
from abc import ABC, abstractmethod
from typing import Optional, List, Callable

from database import get_db
from plant_management.entities import Plant, utcnow, format_timestamp
from utils.validators import normalize_name

logger = logging.getLogger(__name__)


PLANT_COLUMNS = (
    'botanical_name', 'botanical_name_norm', 'common_name', 'family', 'genus',
    'species', 'variety', 'cultivar', 'description', 'native_range',
    'growth_habit', 'lifespan', 'hardiness_zones', 'height_mature_cm',
    'spread_mature_cm', 'created_at', 'updated_at',
)


class PlantRepository(ABC):
    """Abstract plant store."""

    @abstractmethod
    def find_by_id(self, plant_id: int) -> Optional[Plant]:
        ...

    @abstractmethod
    def find_by_botanical_name(self, botanical_name: str) -> Optional[Plant]:
        ...

    @abstractmethod
    def find_all(self, limit: Optional[int] = 50, offset: int = 0) -> List[Plant]:
        ...

    @abstractmethod
    def search_by_name(self, term: str, limit: Optional[int] = 50, offset: int = 0) -> List[Plant]:
        ...

    @abstractmethod
    def get_by_family(self, family: str, limit: Optional[int] = 50, offset: int = 0) -> List[Plant]:
        ...

    @abstractmethod
    def count(self, term: Optional[str] = None, family: Optional[str] = None) -> int:
        ...

    @abstractmethod
    def save(self, plant: Plant) -> Plant:
        ...

    @abstractmethod
    def delete(self, plant_id: int) -> bool:
        ...


def _like_pattern(term: str) -> str:
    escaped = term.lower().replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')
    return f'%{escaped}%'


class SqlitePlantRepository(PlantRepository):
    """PlantRepository backed by the application's SQLite database."""

    def __init__(self, connect: Optional[Callable[[], sqlite3.Connection]] = None):
        self._connect = connect or get_db

    def _fetch_one(self, sql: str, params) -> Optional[Plant]:
        conn = self._connect()
        try:
            row = conn.execute(sql, params).fetchone()
            return Plant.from_persistence(row) if row else None
        finally:
            conn.close()

    def _fetch_many(self, where: str, params, limit: Optional[int], offset: int) -> List[Plant]:
        sql = "SELECT * FROM plants"
        if where:
            sql += f" WHERE {where}"
        sql += " ORDER BY botanical_name COLLATE NOCASE LIMIT ? OFFSET ?"
        conn = self._connect()
        try:
            rows = conn.execute(sql, (*params, -1 if limit is None else limit, offset)).fetchall()
            return [Plant.from_persistence(r) for r in rows]
        finally:
            conn.close()

    @staticmethod
    def _filters(term: Optional[str], family: Optional[str]):
        clauses = []
        params = []
        if term and term.strip():
            clauses.append(
                "(LOWER(common_name) LIKE ? ESCAPE '\\' OR LOWER(botanical_name) LIKE ? ESCAPE '\\')"
            )
            pattern = _like_pattern(term.strip())
            params.extend([pattern, pattern])
        if family and family.strip():
            clauses.append("LOWER(family) LIKE ? ESCAPE '\\'")
            params.append(_like_pattern(family.strip()))
        return ' AND '.join(clauses), params

    # --- queries ---

    def find_by_id(self, plant_id: int) -> Optional[Plant]:
        return self._fetch_one("SELECT * FROM plants WHERE id = ?", (plant_id,))

    def find_by_botanical_name(self, botanical_name: str) -> Optional[Plant]:
        """Lookup by normalised name, so case and punctuation do not matter."""
        return self._fetch_one(
            "SELECT * FROM plants WHERE botanical_name_norm = ?",
            (normalize_name(botanical_name),)
        )

    def find_all(self, limit: Optional[int] = 50, offset: int = 0) -> List[Plant]:
        return self._fetch_many('', (), limit, offset)

    def search_by_name(self, term: str, limit: Optional[int] = 50, offset: int = 0) -> List[Plant]:
        """Case-insensitive substring match on common or botanical name."""
        where, params = self._filters(term, None)
        if not where:
            return []
        return self._fetch_many(where, params, limit, offset)

    def get_by_family(self, family: str, limit: Optional[int] = 50, offset: int = 0) -> List[Plant]:
        where, params = self._filters(None, family)
        if not where:
            return []
        return self._fetch_many(where, params, limit, offset)

    def find_filtered(self, term: Optional[str] = None, family: Optional[str] = None,
                      limit: Optional[int] = 50, offset: int = 0) -> List[Plant]:
        """Combined name + family filter used by the listing pages."""
        where, params = self._filters(term, family)
        return self._fetch_many(where, params, limit, offset)

    def count(self, term: Optional[str] = None, family: Optional[str] = None) -> int:
        where, params = self._filters(term, family)
        sql = "SELECT COUNT(*) FROM plants"
        if where:
            sql += f" WHERE {where}"
        conn = self._connect()
        try:
            return conn.execute(sql, params).fetchone()[0]
        finally:
            conn.close()

    # --- commands ---

    def save(self, plant: Plant) -> Plant:
        """
        Insert or update a plant and return the stored version.

        Raises sqlite3.IntegrityError when the botanical name collides with
        another row.
        """
        row = plant.to_persistence()
        row['botanical_name_norm'] = normalize_name(row['botanical_name'])

        conn = self._connect()
        cursor = conn.cursor()
        try:
            existing = None
            if row['id'] is not None:
                existing = cursor.execute(
                    "SELECT id FROM plants WHERE id = ?", (row['id'],)
                ).fetchone()

            if existing:
                row['updated_at'] = format_timestamp(utcnow())
                columns = [c for c in PLANT_COLUMNS if c != 'created_at']
                assignments = ', '.join(f"{c} = ?" for c in columns)
                cursor.execute(
                    f"UPDATE plants SET {assignments} WHERE id = ?",
                    [row[c] for c in columns] + [row['id']]
                )
                plant_id = row['id']
                logger.info("Updated plant %s (%s)", plant_id, row['botanical_name'])
            else:
                placeholders = ', '.join('?' for _ in PLANT_COLUMNS)
                cursor.execute(
                    f"INSERT INTO plants ({', '.join(PLANT_COLUMNS)}) VALUES ({placeholders})",
                    [row[c] for c in PLANT_COLUMNS]
                )
                plant_id = cursor.lastrowid
                logger.info("Created plant %s (%s)", plant_id, row['botanical_name'])

            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

        return self.find_by_id(plant_id)

    def delete(self, plant_id: int) -> bool:
        conn = self._connect()
        try:
            cursor = conn.execute("DELETE FROM plants WHERE id = ?", (plant_id,))
            conn.commit()
            deleted = cursor.rowcount > 0
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

        if deleted:
            logger.info("Deleted plant %s", plant_id)
        return deleted
