"""
garden_database.py — Plots, beds, plantings and crop rotations.

All write functions take the dict produced by the matching
utils.validators.validate_* helper and return (id, error) or
(success, error) tuples. Read functions return models.py dataclasses.
"""

import json
import logging
import sqlite3
from typing import Optional, List, Dict, Any, Tuple

from database import get_db
from models import Plot, GardenBed, Planting, CropRotation, next_plot_code

logger = logging.getLogger(__name__)


PLOT_FIELDS = ('plot_code', 'name', 'size_sqm', 'orientation', 'sun_exposure',
               'irrigation_type', 'soil_type', 'status', 'notes')
BED_FIELDS = ('plot_id', 'bed_code', 'width_cm', 'length_cm', 'height_cm',
              'soil_type', 'is_raised', 'status', 'notes')
PLANTING_FIELDS = ('plot_id', 'bed_id', 'plant_id', 'planting_date', 'method',
                   'spacing_cm', 'depth_cm', 'quantity', 'area_sqm', 'notes')
ROTATION_FIELDS = ('bed_id', 'season', 'year', 'plant_families', 'notes')


def _insert(table: str, columns, values: Dict[str, Any], label: str) -> Tuple[Optional[int], Optional[str]]:
    conn = get_db()
    try:
        cursor = conn.execute(
            f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({', '.join('?' for _ in columns)})",
            [values.get(c) for c in columns]
        )
        conn.commit()
        new_id = cursor.lastrowid
        logger.info("Created %s %s", label, new_id)
        return new_id, None
    except sqlite3.IntegrityError as e:
        conn.rollback()
        return None, _integrity_message(label, e)
    except Exception as e:
        conn.rollback()
        logger.exception("Failed to create %s", label)
        return None, f"Error: {e}"
    finally:
        conn.close()


def _update(table: str, record_id: int, columns, values: Dict[str, Any], label: str,
            touch: bool = False) -> Tuple[bool, Optional[str]]:
    conn = get_db()
    try:
        assignments = [f"{c} = ?" for c in columns]
        if touch:
            assignments.append("updated_at = CURRENT_TIMESTAMP")
        cursor = conn.execute(
            f"UPDATE {table} SET {', '.join(assignments)} WHERE id = ?",
            [values.get(c) for c in columns] + [record_id]
        )
        if cursor.rowcount == 0:
            return False, f"{label.capitalize()} not found."
        conn.commit()
        logger.info("Updated %s %s", label, record_id)
        return True, None
    except sqlite3.IntegrityError as e:
        conn.rollback()
        return False, _integrity_message(label, e)
    except Exception as e:
        conn.rollback()
        logger.exception("Failed to update %s %s", label, record_id)
        return False, f"Error: {e}"
    finally:
        conn.close()


def _delete(table: str, record_id: int, label: str) -> Tuple[bool, Optional[str]]:
    conn = get_db()
    try:
        cursor = conn.execute(f"DELETE FROM {table} WHERE id = ?", (record_id,))
        conn.commit()
        if cursor.rowcount == 0:
            return False, f"{label.capitalize()} not found."
        logger.info("Deleted %s %s", label, record_id)
        return True, None
    except Exception as e:
        conn.rollback()
        logger.exception("Failed to delete %s %s", label, record_id)
        return False, f"Error: {e}"
    finally:
        conn.close()


def _integrity_message(label: str, error: sqlite3.IntegrityError) -> str:
    text = str(error)
    if 'plots.plot_code' in text:
        return "A plot with this code already exists."
    if 'garden_beds.bed_code' in text:
        return "A bed with this code already exists."
    if 'crop_rotations' in text and 'UNIQUE' in text:
        return "A rotation for this bed, season and year already exists."
    if 'FOREIGN KEY' in text:
        return f"The {label} refers to a record that does not exist."
    return f"Integrity error: {text}"


# ========================================
# Plots
# ========================================

def get_plots() -> List[Plot]:
    conn = get_db()
    try:
        rows = conn.execute("""
            SELECT p.*, (SELECT COUNT(*) FROM garden_beds b WHERE b.plot_id = p.id) AS bed_count
            FROM plots p
            ORDER BY p.plot_code
        """).fetchall()
        return [Plot.from_row(r) for r in rows]
    finally:
        conn.close()


def get_plot(plot_id: int) -> Optional[Plot]:
    conn = get_db()
    try:
        row = conn.execute("""
            SELECT p.*, (SELECT COUNT(*) FROM garden_beds b WHERE b.plot_id = p.id) AS bed_count
            FROM plots p WHERE p.id = ?
        """, (plot_id,)).fetchone()
        return Plot.from_row(row) if row else None
    finally:
        conn.close()


def get_next_plot_code() -> str:
    conn = get_db()
    try:
        codes = [r['plot_code'] for r in conn.execute("SELECT plot_code FROM plots").fetchall()]
    finally:
        conn.close()
    return next_plot_code(codes)


def create_plot(values: Dict[str, Any]) -> Tuple[Optional[int], Optional[str]]:
    return _insert('plots', PLOT_FIELDS, values, 'plot')


def update_plot(plot_id: int, values: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    return _update('plots', plot_id, PLOT_FIELDS, values, 'plot', touch=True)


def delete_plot(plot_id: int) -> Tuple[bool, Optional[str]]:
    """Delete a plot; its beds, plantings and rotations cascade."""
    return _delete('plots', plot_id, 'plot')


# ========================================
# Beds
# ========================================

def get_beds(plot_id: Optional[int] = None) -> List[GardenBed]:
    sql = """
        SELECT b.*, p.plot_code
        FROM garden_beds b
        JOIN plots p ON p.id = b.plot_id
    """
    params = []
    if plot_id is not None:
        sql += " WHERE b.plot_id = ?"
        params.append(plot_id)
    sql += " ORDER BY p.plot_code, b.bed_code"

    conn = get_db()
    try:
        return [GardenBed.from_row(r) for r in conn.execute(sql, params).fetchall()]
    finally:
        conn.close()


def get_bed(bed_id: int) -> Optional[GardenBed]:
    conn = get_db()
    try:
        row = conn.execute("""
            SELECT b.*, p.plot_code
            FROM garden_beds b JOIN plots p ON p.id = b.plot_id
            WHERE b.id = ?
        """, (bed_id,)).fetchone()
        return GardenBed.from_row(row) if row else None
    finally:
        conn.close()


def _bed_values(values: Dict[str, Any]) -> Dict[str, Any]:
    data = dict(values)
    data['is_raised'] = 1 if values.get('is_raised') else 0
    return data


def create_bed(values: Dict[str, Any]) -> Tuple[Optional[int], Optional[str]]:
    return _insert('garden_beds', BED_FIELDS, _bed_values(values), 'bed')


def update_bed(bed_id: int, values: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    return _update('garden_beds', bed_id, BED_FIELDS, _bed_values(values), 'bed')


def delete_bed(bed_id: int) -> Tuple[bool, Optional[str]]:
    return _delete('garden_beds', bed_id, 'bed')


# ========================================
# Plantings
# ========================================

_PLANTING_SELECT = """
    SELECT pl.*, p.plot_code, b.bed_code, pt.botanical_name, pt.common_name
    FROM plantings pl
    JOIN plots p ON p.id = pl.plot_id
    LEFT JOIN garden_beds b ON b.id = pl.bed_id
    LEFT JOIN plants pt ON pt.id = pl.plant_id
"""


def get_plantings(plot_id: Optional[int] = None, bed_id: Optional[int] = None) -> List[Planting]:
    clauses = []
    params = []
    if plot_id is not None:
        clauses.append("pl.plot_id = ?")
        params.append(plot_id)
    if bed_id is not None:
        clauses.append("pl.bed_id = ?")
        params.append(bed_id)

    sql = _PLANTING_SELECT
    if clauses:
        sql += " WHERE " + " AND ".join(clauses)
    sql += " ORDER BY pl.planting_date DESC, pl.id DESC"

    conn = get_db()
    try:
        return [Planting.from_row(r) for r in conn.execute(sql, params).fetchall()]
    finally:
        conn.close()


def get_planting(planting_id: int) -> Optional[Planting]:
    conn = get_db()
    try:
        row = conn.execute(_PLANTING_SELECT + " WHERE pl.id = ?", (planting_id,)).fetchone()
        return Planting.from_row(row) if row else None
    finally:
        conn.close()


def _check_bed_in_plot(values: Dict[str, Any]) -> Optional[str]:
    if not values.get('bed_id'):
        return None
    bed = get_bed(values['bed_id'])
    if bed is None:
        return "Bed not found."
    if bed.plot_id != values.get('plot_id'):
        return "The selected bed does not belong to the selected plot."
    return None


def create_planting(values: Dict[str, Any]) -> Tuple[Optional[int], Optional[str]]:
    error = _check_bed_in_plot(values)
    if error:
        return None, error
    return _insert('plantings', PLANTING_FIELDS, values, 'planting')


def update_planting(planting_id: int, values: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    error = _check_bed_in_plot(values)
    if error:
        return False, error
    return _update('plantings', planting_id, PLANTING_FIELDS, values, 'planting')


def delete_planting(planting_id: int) -> Tuple[bool, Optional[str]]:
    return _delete('plantings', planting_id, 'planting')


# ========================================
# Crop rotations
# ========================================

def get_crop_rotations(bed_id: Optional[int] = None) -> List[CropRotation]:
    sql = """
        SELECT r.*, b.bed_code
        FROM crop_rotations r
        JOIN garden_beds b ON b.id = r.bed_id
    """
    params = []
    if bed_id is not None:
        sql += " WHERE r.bed_id = ?"
        params.append(bed_id)
    sql += " ORDER BY r.year DESC, b.bed_code, r.season"

    conn = get_db()
    try:
        return [CropRotation.from_row(r) for r in conn.execute(sql, params).fetchall()]
    finally:
        conn.close()


def get_crop_rotation(rotation_id: int) -> Optional[CropRotation]:
    conn = get_db()
    try:
        row = conn.execute("""
            SELECT r.*, b.bed_code
            FROM crop_rotations r JOIN garden_beds b ON b.id = r.bed_id
            WHERE r.id = ?
        """, (rotation_id,)).fetchone()
        return CropRotation.from_row(row) if row else None
    finally:
        conn.close()


def _rotation_values(values: Dict[str, Any]) -> Dict[str, Any]:
    data = dict(values)
    data['plant_families'] = json.dumps(values.get('plant_families') or [], ensure_ascii=False)
    return data


def create_crop_rotation(values: Dict[str, Any]) -> Tuple[Optional[int], Optional[str]]:
    return _insert('crop_rotations', ROTATION_FIELDS, _rotation_values(values), 'crop rotation')


def update_crop_rotation(rotation_id: int, values: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    return _update('crop_rotations', rotation_id, ROTATION_FIELDS, _rotation_values(values), 'crop rotation')


def delete_crop_rotation(rotation_id: int) -> Tuple[bool, Optional[str]]:
    return _delete('crop_rotations', rotation_id, 'crop rotation')


# ========================================
# Dashboard
# ========================================

def get_garden_counts() -> Dict[str, int]:
    conn = get_db()
    try:
        return {
            table: conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
            for table in ('plots', 'garden_beds', 'plantings', 'crop_rotations')
        }
    finally:
        conn.close()
