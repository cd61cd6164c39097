"""
plant_database.py — Data access for everything attached to a plant.

Core plant rows go through plant_management (aggregate + repository); this
module manages the rest of the knowledge base:
- One-per-plant detail sections (growing, seed saving, culinary, medicinal,
  TCM, Ayurvedic, western), driven by plant_sections.SECTIONS
- Plant parts, herbal action links and recipes
- The herbal action reference list
- Catalogue statistics and ranked search
- JSON export / import of the whole catalogue

Write functions return (id, error) or (success, error) tuples.
"""

import json
import logging
import sqlite3
from datetime import datetime
from typing import Optional, List, Dict, Any, Tuple

from database import get_db, get_reference_ids_by_name
from plant_management import (
    CreatePlantCommand, CreatePlantCommandHandler, PlantFactory,
    DomainValidationError, PlantAlreadyExistsError, get_plant_repository,
)
from plant_sections import SECTIONS, Section
from utils.validators import normalize_name, parse_section_form

logger = logging.getLogger(__name__)


EXPORT_VERSION = 1

CORE_EXPORT_FIELDS = (
    'botanical_name', 'common_name', 'family', 'genus', 'species', 'variety',
    'cultivar', 'description', 'native_range', 'growth_habit', 'lifespan',
    'hardiness_zones', 'height_mature_cm', 'spread_mature_cm',
)


def _plant_exists(cursor, plant_id: int) -> bool:
    return cursor.execute("SELECT 1 FROM plants WHERE id = ?", (plant_id,)).fetchone() is not None


# ========================================
# Detail sections
# ========================================

def _encode(field, value):
    if field.kind == 'list':
        return json.dumps(value or [], ensure_ascii=False)
    if field.kind == 'dosha':
        return json.dumps(value or {}, ensure_ascii=False)
    if field.kind == 'bool':
        return 1 if value else 0
    return value


def _decode(field, value):
    if field.kind in ('list', 'dosha'):
        empty = [] if field.kind == 'list' else {}
        if not value:
            return empty
        try:
            decoded = json.loads(value)
        except ValueError:
            return empty
        return decoded if isinstance(decoded, type(empty)) else empty
    if field.kind == 'bool':
        return bool(value)
    return value


def _read_section(cursor, plant_id: int, section: Section) -> Optional[Dict[str, Any]]:
    row = cursor.execute(
        f"SELECT * FROM {section.table} WHERE plant_id = ?", (plant_id,)
    ).fetchone()
    if not row:
        return None

    values = {'updated_at': row['updated_at']}
    for field in section.columns:
        values[field.name] = _decode(field, row[field.name])
        if field.kind == 'select' and field.ref and values[field.name] is not None:
            ref = cursor.execute(
                f"SELECT name FROM {field.ref} WHERE id = ?", (values[field.name],)
            ).fetchone()
            values[f"{field.name}_name"] = ref['name'] if ref else None

    for field in section.link_fields:
        linked = cursor.execute(f"""
            SELECT r.id, r.name
            FROM {field.link_table} l
            JOIN {field.ref} r ON r.id = l.{field.link_column}
            WHERE l.plant_id = ?
            ORDER BY r.id
        """, (plant_id,)).fetchall()
        values[field.name] = [r['id'] for r in linked]
        values[f"{field.name}_names"] = [r['name'] for r in linked]

    return values


def _write_section(cursor, plant_id: int, section: Section, values: Dict[str, Any]):
    """Upsert the section row and replace its link-table rows."""
    columns = section.columns
    names = [f.name for f in columns]
    params = [plant_id] + [_encode(f, values.get(f.name)) for f in columns]

    updates = ', '.join(f"{n} = excluded.{n}" for n in names)
    cursor.execute(f"""
        INSERT INTO {section.table} (plant_id, {', '.join(names)})
        VALUES ({', '.join('?' for _ in params)})
        ON CONFLICT(plant_id) DO UPDATE SET {updates}, updated_at = CURRENT_TIMESTAMP
    """, params)

    for field in section.link_fields:
        cursor.execute(f"DELETE FROM {field.link_table} WHERE plant_id = ?", (plant_id,))
        ids = values.get(field.name) or []
        cursor.executemany(
            f"INSERT INTO {field.link_table} (plant_id, {field.link_column}) VALUES (?, ?)",
            [(plant_id, ref_id) for ref_id in ids]
        )


def get_section(plant_id: int, key: str) -> Optional[Dict[str, Any]]:
    """
    Get one detail section of a plant.

    Returns:
        Dict of typed values (JSON columns decoded, link ids plus
        `<field>_names`), or None if the section was never filled in
    """
    section = SECTIONS.get(key)
    if section is None:
        raise KeyError(key)

    conn = get_db()
    try:
        return _read_section(conn.cursor(), plant_id, section)
    finally:
        conn.close()


def get_all_sections(plant_id: int) -> Dict[str, Optional[Dict[str, Any]]]:
    conn = get_db()
    cursor = conn.cursor()
    try:
        return {key: _read_section(cursor, plant_id, section) for key, section in SECTIONS.items()}
    finally:
        conn.close()


def save_section(plant_id: int, key: str, values: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Create or replace one detail section.

    Args:
        plant_id: Plant the section belongs to
        key: Section key from plant_sections.SECTIONS
        values: Typed values, as produced by parse_section_form()

    Returns:
        Tuple of (success, error_message)
    """
    section = SECTIONS.get(key)
    if section is None:
        return False, "Unknown section."

    for field in section.fields:
        if field.required and values.get(field.name) in (None, '', [], {}):
            return False, f"{field.label} is required."

    conn = get_db()
    cursor = conn.cursor()
    try:
        if not _plant_exists(cursor, plant_id):
            return False, "Plant not found."

        _write_section(cursor, plant_id, section, values)
        conn.commit()
        logger.info("Saved %s section for plant %s", key, plant_id)
        return True, None

    except sqlite3.IntegrityError as e:
        conn.rollback()
        if 'FOREIGN KEY' in str(e):
            return False, "One of the selected reference values does not exist."
        return False, f"Integrity error: {e}"
    except Exception as e:
        conn.rollback()
        logger.exception("Failed to save %s section for plant %s", key, plant_id)
        return False, f"Error: {e}"
    finally:
        conn.close()


def delete_section(plant_id: int, key: str) -> Tuple[bool, Optional[str]]:
    section = SECTIONS.get(key)
    if section is None:
        return False, "Unknown section."

    conn = get_db()
    cursor = conn.cursor()
    try:
        deleted = cursor.execute(
            f"DELETE FROM {section.table} WHERE plant_id = ?", (plant_id,)
        ).rowcount
        for field in section.link_fields:
            cursor.execute(f"DELETE FROM {field.link_table} WHERE plant_id = ?", (plant_id,))
        conn.commit()

        if not deleted:
            return False, "Section not found."
        logger.info("Deleted %s section for plant %s", key, plant_id)
        return True, None
    except Exception as e:
        conn.rollback()
        return False, f"Error: {e}"
    finally:
        conn.close()


# ========================================
# Plant parts
# ========================================

def get_parts(plant_id: int) -> List[Dict[str, Any]]:
    conn = get_db()
    try:
        rows = conn.execute(
            "SELECT * FROM plant_parts WHERE plant_id = ? ORDER BY part_name", (plant_id,)
        ).fetchall()
        return [dict(r, edible=bool(r['edible'])) for r in rows]
    finally:
        conn.close()


def get_part(part_id: int) -> Optional[Dict[str, Any]]:
    conn = get_db()
    try:
        row = conn.execute("SELECT * FROM plant_parts WHERE id = ?", (part_id,)).fetchone()
        return dict(row, edible=bool(row['edible'])) if row else None
    finally:
        conn.close()


def add_part(
    plant_id: int,
    part_name: str,
    edible: bool = False,
    harvest_time: Optional[str] = None,
    storage_method: Optional[str] = None,
    processing_notes: Optional[str] = None
) -> Tuple[Optional[int], Optional[str]]:
    """
    Add a part (leaf, root, flower...) to a plant.

    Part names are unique per plant, ignoring case.

    Returns:
        Tuple of (part_id, error_message)
    """
    part_name = (part_name or '').strip()
    if not part_name:
        return None, "Part name is required."

    conn = get_db()
    cursor = conn.cursor()
    try:
        if not _plant_exists(cursor, plant_id):
            return None, "Plant not found."

        existing = cursor.execute(
            "SELECT id FROM plant_parts WHERE plant_id = ? AND part_name = ?",
            (plant_id, part_name)
        ).fetchone()
        if existing:
            return None, f"This plant already has a part named '{part_name}'."

        cursor.execute(
            """INSERT INTO plant_parts
               (plant_id, part_name, edible, harvest_time, storage_method, processing_notes)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (plant_id, part_name, 1 if edible else 0, harvest_time, storage_method, processing_notes)
        )
        part_id = cursor.lastrowid
        conn.commit()
        return part_id, None

    except Exception as e:
        conn.rollback()
        return None, f"Error: {e}"
    finally:
        conn.close()


def update_part(
    part_id: int,
    part_name: str,
    edible: bool = False,
    harvest_time: Optional[str] = None,
    storage_method: Optional[str] = None,
    processing_notes: Optional[str] = None
) -> Tuple[bool, Optional[str]]:
    part_name = (part_name or '').strip()
    if not part_name:
        return False, "Part name is required."

    conn = get_db()
    cursor = conn.cursor()
    try:
        part = cursor.execute("SELECT * FROM plant_parts WHERE id = ?", (part_id,)).fetchone()
        if not part:
            return False, "Part not found."

        dup = cursor.execute(
            "SELECT id FROM plant_parts WHERE plant_id = ? AND part_name = ? AND id != ?",
            (part['plant_id'], part_name, part_id)
        ).fetchone()
        if dup:
            return False, f"This plant already has a part named '{part_name}'."

        cursor.execute(
            """UPDATE plant_parts
               SET part_name = ?, edible = ?, harvest_time = ?, storage_method = ?, processing_notes = ?
               WHERE id = ?""",
            (part_name, 1 if edible else 0, harvest_time, storage_method, processing_notes, part_id)
        )
        conn.commit()
        return True, None

    except Exception as e:
        conn.rollback()
        return False, f"Error: {e}"
    finally:
        conn.close()


def delete_part(part_id: int) -> Tuple[bool, Optional[str]]:
    """Delete a part; herbal action links keep the action but lose the part."""
    conn = get_db()
    try:
        cursor = conn.execute("DELETE FROM plant_parts WHERE id = ?", (part_id,))
        conn.commit()
        if cursor.rowcount == 0:
            return False, "Part not found."
        return True, None
    except Exception as e:
        conn.rollback()
        return False, f"Error: {e}"
    finally:
        conn.close()


# ========================================
# Herbal actions (reference list)
# ========================================

def get_herbal_actions() -> List[Dict[str, Any]]:
    """All herbal actions with the number of plants using each."""
    conn = get_db()
    try:
        rows = conn.execute("""
            SELECT ha.*,
                   (SELECT COUNT(DISTINCT plant_id) FROM plant_actions WHERE action_id = ha.id) AS usage_count
            FROM herbal_actions ha
            ORDER BY ha.name
        """).fetchall()
        return [dict(r) for r in rows]
    finally:
        conn.close()


def get_herbal_action(action_id: int) -> Optional[Dict[str, Any]]:
    conn = get_db()
    try:
        row = conn.execute("SELECT * FROM herbal_actions WHERE id = ?", (action_id,)).fetchone()
        return dict(row) if row else None
    finally:
        conn.close()


def create_herbal_action(name: str, description: Optional[str] = None) -> Tuple[Optional[int], Optional[str]]:
    name = (name or '').strip()
    if not name:
        return None, "Action name is required."

    conn = get_db()
    try:
        cursor = conn.execute(
            "INSERT INTO herbal_actions (name, description) VALUES (?, ?)",
            (name, (description or '').strip() or None)
        )
        conn.commit()
        logger.info("Created herbal action %s", name)
        return cursor.lastrowid, None
    except sqlite3.IntegrityError:
        conn.rollback()
        return None, f"An action named '{name}' already exists."
    except Exception as e:
        conn.rollback()
        return None, f"Error: {e}"
    finally:
        conn.close()


def update_herbal_action(action_id: int, name: str, description: Optional[str] = None) -> Tuple[bool, Optional[str]]:
    name = (name or '').strip()
    if not name:
        return False, "Action name is required."

    conn = get_db()
    try:
        cursor = conn.execute(
            "UPDATE herbal_actions SET name = ?, description = ? WHERE id = ?",
            (name, (description or '').strip() or None, action_id)
        )
        if cursor.rowcount == 0:
            return False, "Action not found."
        conn.commit()
        return True, None
    except sqlite3.IntegrityError:
        conn.rollback()
        return False, f"An action named '{name}' already exists."
    except Exception as e:
        conn.rollback()
        return False, f"Error: {e}"
    finally:
        conn.close()


def delete_herbal_action(action_id: int) -> Tuple[bool, Optional[str]]:
    """Delete an action; refused while any plant still links to it."""
    conn = get_db()
    cursor = conn.cursor()
    try:
        if not cursor.execute("SELECT 1 FROM herbal_actions WHERE id = ?", (action_id,)).fetchone():
            return False, "Action not found."

        linked = cursor.execute(
            "SELECT COUNT(DISTINCT plant_id) FROM plant_actions WHERE action_id = ?", (action_id,)
        ).fetchone()[0]
        if linked:
            return False, f"This action is linked to {linked} plant(s) and cannot be deleted."

        cursor.execute("DELETE FROM herbal_actions WHERE id = ?", (action_id,))
        conn.commit()
        return True, None
    except Exception as e:
        conn.rollback()
        return False, f"Error: {e}"
    finally:
        conn.close()


# ========================================
# Plant ↔ herbal action links
# ========================================

def get_plant_actions(plant_id: int) -> List[Dict[str, Any]]:
    conn = get_db()
    try:
        rows = conn.execute("""
            SELECT pa.*, ha.name AS action_name, pp.part_name
            FROM plant_actions pa
            JOIN herbal_actions ha ON ha.id = pa.action_id
            LEFT JOIN plant_parts pp ON pp.id = pa.plant_part_id
            WHERE pa.plant_id = ?
            ORDER BY pa.strength DESC, ha.name
        """, (plant_id,)).fetchall()
        return [dict(r) for r in rows]
    finally:
        conn.close()


def add_plant_action(
    plant_id: int,
    action_id: int,
    plant_part_id: Optional[int] = None,
    strength: int = 5,
    notes: Optional[str] = None
) -> Tuple[Optional[int], Optional[str]]:
    """
    Link a herbal action to a plant, optionally for one of its parts.

    Strength is 1 (mild) to 10 (strong). A plant can carry each action
    once per part.

    Returns:
        Tuple of (link_id, error_message)
    """
    if strength is None or not 1 <= strength <= 10:
        return None, "Strength must be between 1 and 10."

    conn = get_db()
    cursor = conn.cursor()
    try:
        if not _plant_exists(cursor, plant_id):
            return None, "Plant not found."
        if not cursor.execute("SELECT 1 FROM herbal_actions WHERE id = ?", (action_id,)).fetchone():
            return None, "Action not found."

        if plant_part_id is not None:
            part = cursor.execute(
                "SELECT plant_id FROM plant_parts WHERE id = ?", (plant_part_id,)
            ).fetchone()
            if not part or part['plant_id'] != plant_id:
                return None, "The selected part does not belong to this plant."

        # NULL parts are distinct for UNIQUE, so check explicitly
        dup = cursor.execute(
            "SELECT id FROM plant_actions WHERE plant_id = ? AND action_id = ? AND plant_part_id IS ?",
            (plant_id, action_id, plant_part_id)
        ).fetchone()
        if dup:
            return None, "This action is already linked to the plant for that part."

        cursor.execute(
            """INSERT INTO plant_actions (plant_id, action_id, plant_part_id, strength, notes)
               VALUES (?, ?, ?, ?, ?)""",
            (plant_id, action_id, plant_part_id, strength, notes)
        )
        link_id = cursor.lastrowid
        conn.commit()
        return link_id, None

    except Exception as e:
        conn.rollback()
        return None, f"Error: {e}"
    finally:
        conn.close()


def remove_plant_action(plant_id: int, link_id: int) -> Tuple[bool, Optional[str]]:
    conn = get_db()
    try:
        cursor = conn.execute(
            "DELETE FROM plant_actions WHERE id = ? AND plant_id = ?", (link_id, plant_id)
        )
        conn.commit()
        if cursor.rowcount == 0:
            return False, "Action link not found."
        return True, None
    except Exception as e:
        conn.rollback()
        return False, f"Error: {e}"
    finally:
        conn.close()


# ========================================
# Recipes
# ========================================

def get_recipes(plant_id: int) -> List[Dict[str, Any]]:
    conn = get_db()
    try:
        rows = conn.execute(
            "SELECT * FROM plant_recipes WHERE plant_id = ? ORDER BY name", (plant_id,)
        ).fetchall()
        return [dict(r) for r in rows]
    finally:
        conn.close()


def add_recipe(
    plant_id: int,
    name: str,
    ingredients: str,
    instructions: str,
    preparation_time_minutes: Optional[int] = None,
    servings: Optional[int] = None,
    notes: Optional[str] = None
) -> Tuple[Optional[int], Optional[str]]:
    name = (name or '').strip()
    ingredients = (ingredients or '').strip()
    instructions = (instructions or '').strip()
    if not name or not ingredients or not instructions:
        return None, "Name, ingredients and instructions are required."
    if preparation_time_minutes is not None and preparation_time_minutes <= 0:
        return None, "Preparation time must be a positive number."
    if servings is not None and servings <= 0:
        return None, "Servings must be a positive number."

    conn = get_db()
    cursor = conn.cursor()
    try:
        if not _plant_exists(cursor, plant_id):
            return None, "Plant not found."

        cursor.execute(
            """INSERT INTO plant_recipes
               (plant_id, name, ingredients, instructions, preparation_time_minutes, servings, notes)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (plant_id, name, ingredients, instructions, preparation_time_minutes, servings, notes)
        )
        recipe_id = cursor.lastrowid
        conn.commit()
        return recipe_id, None
    except Exception as e:
        conn.rollback()
        return None, f"Error: {e}"
    finally:
        conn.close()


def delete_recipe(plant_id: int, recipe_id: int) -> Tuple[bool, Optional[str]]:
    conn = get_db()
    try:
        cursor = conn.execute(
            "DELETE FROM plant_recipes WHERE id = ? AND plant_id = ?", (recipe_id, plant_id)
        )
        conn.commit()
        if cursor.rowcount == 0:
            return False, "Recipe not found."
        return True, None
    except Exception as e:
        conn.rollback()
        return False, f"Error: {e}"
    finally:
        conn.close()


# ========================================
# Catalogue statistics
# ========================================

def get_plant_stats() -> Dict[str, Any]:
    """
    Overview numbers for the plants index page.

    Returns:
        Dict with 'total', 'recent' (6 newest plants) and
        'top_families' (5 largest families with counts)
    """
    conn = get_db()
    cursor = conn.cursor()
    try:
        total = cursor.execute("SELECT COUNT(*) FROM plants").fetchone()[0]

        recent = cursor.execute("""
            SELECT id, botanical_name, common_name, family, created_at
            FROM plants
            ORDER BY created_at DESC, id DESC
            LIMIT 6
        """).fetchall()

        families = cursor.execute("""
            SELECT family, COUNT(*) AS count
            FROM plants
            WHERE family IS NOT NULL AND family != ''
            GROUP BY family
            ORDER BY count DESC, family
            LIMIT 5
        """).fetchall()

        return {
            'total': total,
            'recent': [dict(r) for r in recent],
            'top_families': [dict(r) for r in families],
        }
    finally:
        conn.close()


def get_families() -> List[str]:
    conn = get_db()
    try:
        rows = conn.execute("""
            SELECT DISTINCT family FROM plants
            WHERE family IS NOT NULL AND family != ''
            ORDER BY family
        """).fetchall()
        return [r['family'] for r in rows]
    finally:
        conn.close()


def get_plant_choices() -> List[Dict[str, Any]]:
    """Id / label pairs for plant dropdowns."""
    conn = get_db()
    try:
        rows = conn.execute(
            "SELECT id, botanical_name, common_name FROM plants ORDER BY botanical_name"
        ).fetchall()
        return [
            {'id': r['id'], 'label': f"{r['botanical_name']} ({r['common_name']})"}
            for r in rows
        ]
    finally:
        conn.close()


# ========================================
# Search
# ========================================

def search_plants(query: str, limit: int = 20) -> List[Dict[str, Any]]:
    """
    Search plants by botanical name, common name and family.

    Results are ranked: exact matches first, then prefix matches, then
    substring matches. Comparison uses normalize_name(), so case, accents
    and punctuation are ignored. A plant appears once, at its best rank.

    Returns:
        List of result dicts (plant_id, botanical_name, common_name, family,
        matched_name, match_type, ranking)
    """
    query_norm = normalize_name(query)
    if not query_norm or limit < 1:
        return []

    conn = get_db()
    conn.create_function('normalize_name', 1, normalize_name, deterministic=True)
    cursor = conn.cursor()

    results = []
    seen_ids = set()

    fields = (
        ('botanical_name', 'p.botanical_name_norm'),
        ('common_name', 'normalize_name(p.common_name)'),
        ('family', 'normalize_name(p.family)'),
    )
    matchers = (
        ('exact', "{expr} = ?", query_norm),
        ('prefix', "{expr} LIKE ? || '%' AND {expr} != ?", query_norm),
        ('substring', "{expr} LIKE '%' || ? || '%' AND {expr} NOT LIKE ? || '%'", query_norm),
    )

    try:
        for ranking, condition, value in matchers:
            for match_type, expr in fields:
                where = condition.format(expr=expr)
                params = (value,) * where.count('?')
                rows = cursor.execute(f"""
                    SELECT p.id, p.botanical_name, p.common_name, p.family,
                           p.{match_type} AS matched_name
                    FROM plants p
                    WHERE {where}
                    ORDER BY p.botanical_name
                """, params).fetchall()

                for row in rows:
                    if row['id'] in seen_ids:
                        continue
                    seen_ids.add(row['id'])
                    results.append({
                        'plant_id': row['id'],
                        'botanical_name': row['botanical_name'],
                        'common_name': row['common_name'],
                        'family': row['family'],
                        'matched_name': row['matched_name'],
                        'match_type': match_type,
                        'ranking': ranking,
                    })
                    if len(results) >= limit:
                        return results

        return results
    finally:
        conn.close()


# ========================================
# JSON Export / Import
# ========================================

def _export_section(cursor, plant_id: int, section: Section) -> Optional[Dict[str, Any]]:
    """Section values with reference ids replaced by names, for portability."""
    values = _read_section(cursor, plant_id, section)
    if values is None:
        return None

    exported = {}
    for field in section.fields:
        if field.kind == 'select' and field.ref:
            exported[field.name] = values.get(f"{field.name}_name")
        elif field.kind == 'multiselect':
            exported[field.name] = values.get(f"{field.name}_names", [])
        else:
            exported[field.name] = values.get(field.name)
    return exported


def export_plants_json() -> Dict[str, Any]:
    """
    Export the whole catalogue as JSON-serialisable data.

    Returns:
        Dict with 'version', 'exported_at' and 'plants'
    """
    conn = get_db()
    cursor = conn.cursor()
    try:
        plants = cursor.execute("SELECT * FROM plants ORDER BY botanical_name").fetchall()

        result = []
        for plant in plants:
            entry = {f: plant[f] for f in CORE_EXPORT_FIELDS}

            parts = cursor.execute(
                "SELECT * FROM plant_parts WHERE plant_id = ? ORDER BY part_name", (plant['id'],)
            ).fetchall()
            entry['parts'] = [
                {
                    'part_name': p['part_name'],
                    'edible': bool(p['edible']),
                    'harvest_time': p['harvest_time'],
                    'storage_method': p['storage_method'],
                    'processing_notes': p['processing_notes'],
                }
                for p in parts
            ]

            actions = cursor.execute("""
                SELECT ha.name AS action, pp.part_name AS part, pa.strength, pa.notes
                FROM plant_actions pa
                JOIN herbal_actions ha ON ha.id = pa.action_id
                LEFT JOIN plant_parts pp ON pp.id = pa.plant_part_id
                WHERE pa.plant_id = ?
                ORDER BY ha.name
            """, (plant['id'],)).fetchall()
            entry['actions'] = [dict(a) for a in actions]

            recipes = cursor.execute(
                "SELECT * FROM plant_recipes WHERE plant_id = ? ORDER BY name", (plant['id'],)
            ).fetchall()
            entry['recipes'] = [
                {
                    'name': r['name'],
                    'ingredients': r['ingredients'],
                    'instructions': r['instructions'],
                    'preparation_time_minutes': r['preparation_time_minutes'],
                    'servings': r['servings'],
                    'notes': r['notes'],
                }
                for r in recipes
            ]

            sections = {}
            for key, section in SECTIONS.items():
                exported = _export_section(cursor, plant['id'], section)
                if exported is not None:
                    sections[key] = exported
            entry['sections'] = sections

            result.append(entry)

        return {
            'version': EXPORT_VERSION,
            'exported_at': datetime.now().isoformat(timespec='seconds'),
            'plants': result,
        }
    finally:
        conn.close()


def _resolve_section_refs(cursor, section: Section, data: Dict[str, Any],
                          errors: List[str], label: str) -> Dict[str, Any]:
    """Turn exported reference names back into ids."""
    resolved = dict(data)
    for field in section.fields:
        if not field.ref or data.get(field.name) in (None, '', []):
            continue
        ids_by_name = get_reference_ids_by_name(cursor, field.ref)
        if field.kind == 'select':
            ref_id = ids_by_name.get(str(data[field.name]).lower())
            if ref_id is None:
                errors.append(f"{label}: unknown {field.label} '{data[field.name]}'")
            resolved[field.name] = ref_id
        else:
            ids = []
            for name in data[field.name]:
                ref_id = ids_by_name.get(str(name).lower())
                if ref_id is None:
                    errors.append(f"{label}: unknown {field.label} '{name}'")
                else:
                    ids.append(ref_id)
            resolved[field.name] = ids
    return resolved


def _entry_text(entry: Dict[str, Any], key: str) -> Optional[str]:
    """Stripped string value, or None when missing, blank or not a string."""
    value = entry.get(key)
    if not isinstance(value, str):
        return None
    return value.strip() or None


def _import_children(cursor, plant_id: int, plant_data: Dict[str, Any],
                     errors: List[str], label: str):
    for part in plant_data.get('parts') or []:
        if not isinstance(part, dict):
            continue
        part_name = _entry_text(part, 'part_name')
        if part_name is None:
            if not isinstance(part.get('part_name'), (str, type(None))):
                errors.append(f"{label}: part name must be text")
            continue
        cursor.execute(
            """INSERT OR IGNORE INTO plant_parts
               (plant_id, part_name, edible, harvest_time, storage_method, processing_notes)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (plant_id, part_name, 1 if part.get('edible') else 0,
             part.get('harvest_time'), part.get('storage_method'), part.get('processing_notes'))
        )

    for recipe in plant_data.get('recipes') or []:
        if not isinstance(recipe, dict):
            continue
        name, ingredients, instructions = (
            _entry_text(recipe, k) for k in ('name', 'ingredients', 'instructions')
        )
        if not (name and ingredients and instructions):
            errors.append(f"{label}: recipe needs text name, ingredients and instructions")
            continue
        exists = cursor.execute(
            "SELECT 1 FROM plant_recipes WHERE plant_id = ? AND name = ?",
            (plant_id, name)
        ).fetchone()
        if exists:
            continue
        cursor.execute(
            """INSERT INTO plant_recipes
               (plant_id, name, ingredients, instructions, preparation_time_minutes, servings, notes)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (plant_id, name, ingredients, instructions,
             recipe.get('preparation_time_minutes'), recipe.get('servings'), recipe.get('notes'))
        )

    for action in plant_data.get('actions') or []:
        if not isinstance(action, dict):
            continue
        name = _entry_text(action, 'action')
        if name is None:
            if not isinstance(action.get('action'), (str, type(None))):
                errors.append(f"{label}: action name must be text")
            continue
        strength = action.get('strength') or 5
        if not isinstance(strength, int) or not 1 <= strength <= 10:
            errors.append(f"{label}: invalid strength for action '{name}'")
            continue

        cursor.execute("INSERT OR IGNORE INTO herbal_actions (name) VALUES (?)", (name,))
        action_id = cursor.execute(
            "SELECT id FROM herbal_actions WHERE name = ?", (name,)
        ).fetchone()['id']

        part_id = None
        if action.get('part'):
            part = cursor.execute(
                "SELECT id FROM plant_parts WHERE plant_id = ? AND part_name = ?",
                (plant_id, action['part'])
            ).fetchone()
            part_id = part['id'] if part else None

        dup = cursor.execute(
            "SELECT 1 FROM plant_actions WHERE plant_id = ? AND action_id = ? AND plant_part_id IS ?",
            (plant_id, action_id, part_id)
        ).fetchone()
        if not dup:
            cursor.execute(
                """INSERT INTO plant_actions (plant_id, action_id, plant_part_id, strength, notes)
                   VALUES (?, ?, ?, ?, ?)""",
                (plant_id, action_id, part_id, strength, action.get('notes'))
            )

    sections = plant_data.get('sections') or {}
    if not isinstance(sections, dict):
        errors.append(f"{label}: 'sections' must be an object")
        return
    for key, section_data in sections.items():
        section = SECTIONS.get(key)
        if section is None or not isinstance(section_data, dict):
            errors.append(f"{label}: unknown section '{key}'")
            continue
        resolved = _resolve_section_refs(cursor, section, section_data, errors, label)
        values, section_errors = parse_section_form(section, resolved)
        if section_errors:
            errors.extend(f"{label} ({section.title}): {e}" for e in section_errors)
            continue
        _write_section(cursor, plant_id, section, values)


def import_plants_json(
    data: Dict[str, Any],
    mode: str = 'merge'
) -> Tuple[bool, str, Dict[str, int]]:
    """
    Import plants from JSON data (as produced by export_plants_json()).

    Args:
        data: JSON data with 'plants' key
        mode: 'merge' to add/update, 'replace' to back up, clear and replace all

    Returns:
        Tuple of (success, message, stats)
        stats contains: added, updated, skipped, errors
    """
    if not isinstance(data, dict) or 'plants' not in data:
        return False, "Invalid JSON: missing 'plants' key.", {}

    plants_data = data['plants']
    if not isinstance(plants_data, list):
        return False, "Invalid JSON: 'plants' must be a list.", {}

    if mode not in ('merge', 'replace'):
        return False, f"Unknown import mode: {mode}", {}

    if mode == 'replace':
        from utils.backup import backup_db
        backup_db('pre_import')

    stats = {'added': 0, 'updated': 0, 'skipped': 0, 'errors': 0}
    errors = []

    conn = get_db()
    cursor = conn.cursor()

    try:
        if mode == 'replace':
            cursor.execute("DELETE FROM plants")

        for index, plant_data in enumerate(plants_data, 1):
            if not isinstance(plant_data, dict):
                errors.append(f"Entry {index}: not an object")
                continue

            label = plant_data.get('botanical_name') or f"Entry {index}"
            try:
                plant = PlantFactory.create_plant(**{
                    f: plant_data.get(f) for f in CORE_EXPORT_FIELDS
                })
            except (DomainValidationError, TypeError) as e:
                errors.append(f"{label}: {e}")
                continue

            row = plant.to_persistence()
            row['botanical_name_norm'] = normalize_name(row['botanical_name'])

            existing = cursor.execute(
                "SELECT id FROM plants WHERE botanical_name_norm = ?",
                (row['botanical_name_norm'],)
            ).fetchone()

            if existing and mode == 'merge':
                plant_id = existing['id']
                cursor.execute("""
                    UPDATE plants
                    SET common_name = ?,
                        family = COALESCE(NULLIF(?, ''), family),
                        description = COALESCE(NULLIF(?, ''), description),
                        native_range = COALESCE(NULLIF(?, ''), native_range),
                        growth_habit = COALESCE(NULLIF(?, ''), growth_habit),
                        lifespan = COALESCE(NULLIF(?, ''), lifespan),
                        hardiness_zones = COALESCE(NULLIF(?, ''), hardiness_zones),
                        height_mature_cm = COALESCE(?, height_mature_cm),
                        spread_mature_cm = COALESCE(?, spread_mature_cm),
                        updated_at = CURRENT_TIMESTAMP
                    WHERE id = ?
                """, (row['common_name'], row['family'], row['description'], row['native_range'],
                      row['growth_habit'], row['lifespan'], row['hardiness_zones'],
                      row['height_mature_cm'], row['spread_mature_cm'], plant_id))
                stats['updated'] += 1
            elif existing:
                stats['skipped'] += 1
                continue
            else:
                columns = [c for c in row if c != 'id']
                cursor.execute(
                    f"INSERT INTO plants ({', '.join(columns)}) VALUES ({', '.join('?' for _ in columns)})",
                    [row[c] for c in columns]
                )
                plant_id = cursor.lastrowid
                stats['added'] += 1

            _import_children(cursor, plant_id, plant_data, errors, label)

        conn.commit()

    except Exception as e:
        conn.rollback()
        logger.exception("Plant import failed")
        return False, f"Import failed: {e}", stats
    finally:
        conn.close()

    stats['errors'] = len(errors)
    message = (f"Import finished: {stats['added']} added, {stats['updated']} updated, "
               f"{stats['skipped']} skipped, {stats['errors']} errors.")
    if errors:
        message += " " + "; ".join(errors[:5])
        logger.warning("Plant import reported %d problem(s)", len(errors))
    logger.info(message)
    return True, message, stats


# ========================================
# Sample data
# ========================================

SAMPLE_PLANTS = [
    CreatePlantCommand('Ocimum basilicum', 'Basil', family='Lamiaceae',
                       growth_habit='Herb', lifespan='Annual', hardiness_zones='10-11',
                       height_mature_cm=60, spread_mature_cm=45),
    CreatePlantCommand('Mentha piperita', 'Peppermint', family='Lamiaceae',
                       growth_habit='Herb', lifespan='Perennial', hardiness_zones='3-8',
                       height_mature_cm=90, spread_mature_cm=60),
    CreatePlantCommand('Matricaria chamomilla', 'German chamomile', family='Asteraceae',
                       growth_habit='Herb', lifespan='Annual', hardiness_zones='2-9',
                       height_mature_cm=50),
    CreatePlantCommand('Calendula officinalis', 'Pot marigold', family='Asteraceae',
                       growth_habit='Herb', lifespan='Annual', hardiness_zones='2-11'),
    CreatePlantCommand('Echinacea purpurea', 'Purple coneflower', family='Asteraceae',
                       growth_habit='Herb', lifespan='Perennial', hardiness_zones='3-9',
                       height_mature_cm=120, spread_mature_cm=60),
    CreatePlantCommand('Zingiber officinale', 'Ginger', family='Zingiberaceae',
                       growth_habit='Herb', lifespan='Perennial', hardiness_zones='9-12'),
    CreatePlantCommand('Solanum lycopersicum', 'Tomato', family='Solanaceae',
                       growth_habit='Vine', lifespan='Annual', hardiness_zones='10-11',
                       height_mature_cm=180),
]


def seed_sample_plants() -> int:
    """Create the sample plants that are not already present. Returns how many were added."""
    handler = CreatePlantCommandHandler(get_plant_repository())
    added = 0
    for command in SAMPLE_PLANTS:
        try:
            handler.handle(command)
            added += 1
        except PlantAlreadyExistsError:
            continue
    return added
