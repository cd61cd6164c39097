"""
rotation_engine.py — Family rotation checks for garden beds.

Growing the same botanical family in a bed too soon invites soil-borne
pests and diseases. This module looks back over a bed's history (recorded
crop rotations plus plantings of catalogued plants) and reports families
that come back too early.

Penalty table (years since the family was last grown in the bed):
    same year = -30, 1 year = -20, 2 years = -10, 3 years = -5

Warnings are advisory: callers show them but still save the rotation.
"""

import json
import logging
from typing import Optional, List, Dict, Any, Iterable

from database import get_db

logger = logging.getLogger(__name__)


FAMILY_PENALTY_TABLE = {0: -30, 1: -20, 2: -10, 3: -5}
LOOKBACK_YEARS = 3


def families_in_bed(bed_id: int, since_year: int,
                    exclude_rotation_id: Optional[int] = None) -> Dict[str, Dict[str, Any]]:
    """
    Families grown in a bed from since_year onwards.

    Returns:
        Dict keyed by lower-cased family name:
        {'family': display name, 'last_year': int}
    """
    history = {}

    def record(family: str, year: int):
        if not family or not family.strip():
            return
        key = family.strip().lower()
        entry = history.get(key)
        if entry is None or year > entry['last_year']:
            history[key] = {'family': family.strip(), 'last_year': year}

    conn = get_db()
    try:
        params = [bed_id, since_year]
        sql = "SELECT id, year, plant_families FROM crop_rotations WHERE bed_id = ? AND year >= ?"
        if exclude_rotation_id is not None:
            sql += " AND id != ?"
            params.append(exclude_rotation_id)

        for row in conn.execute(sql, params).fetchall():
            try:
                families = json.loads(row['plant_families'] or '[]')
            except ValueError:
                logger.warning("Crop rotation %s has unreadable families", row['id'])
                continue
            for family in families:
                record(str(family), row['year'])

        plantings = conn.execute("""
            SELECT CAST(substr(pl.planting_date, 1, 4) AS INTEGER) AS year, p.family
            FROM plantings pl
            JOIN plants p ON p.id = pl.plant_id
            WHERE pl.bed_id = ?
            AND CAST(substr(pl.planting_date, 1, 4) AS INTEGER) >= ?
            AND p.family IS NOT NULL AND p.family != ''
        """, (bed_id, since_year)).fetchall()
        for row in plantings:
            record(row['family'], row['year'])
    finally:
        conn.close()

    return history


def check_rotation(bed_id: int, families: Iterable[str], year: int,
                   lookback_years: int = LOOKBACK_YEARS,
                   exclude_rotation_id: Optional[int] = None) -> List[Dict[str, Any]]:
    """
    Warn about families repeated in a bed within the lookback window.

    Args:
        bed_id: Bed being planned
        families: Families planned for the bed
        year: Year of the planned rotation
        lookback_years: How many years back to look
        exclude_rotation_id: Rotation being edited, left out of its own history

    Returns:
        List of warning dicts (family, last_year, years_ago, penalty, message),
        worst penalty first. Empty when the rotation is clean.
    """
    history = families_in_bed(bed_id, year - lookback_years, exclude_rotation_id)

    warnings = []
    seen = set()
    for family in families:
        key = (family or '').strip().lower()
        if not key or key in seen:
            continue
        seen.add(key)

        entry = history.get(key)
        if entry is None or entry['last_year'] > year:
            continue

        years_ago = year - entry['last_year']
        if years_ago > lookback_years:
            continue

        penalty = FAMILY_PENALTY_TABLE.get(years_ago, 0)
        if years_ago == 0:
            when = f"earlier in {entry['last_year']}"
        elif years_ago == 1:
            when = "last year"
        else:
            when = f"{years_ago} years ago ({entry['last_year']})"
        warnings.append({
            'family': family.strip(),
            'last_year': entry['last_year'],
            'years_ago': years_ago,
            'penalty': penalty,
            'message': f"{family.strip()} was already grown in this bed {when}.",
        })

    warnings.sort(key=lambda w: w['penalty'])
    return warnings
