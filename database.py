"""
database.py — SQLite schema creation, reference data seeding and connections.

One SQLite file holds the whole knowledge base:
- plants and their one-per-plant detail sections (see plant_sections.py)
- plant parts, herbal action links and recipes
- TCM / Ayurvedic / western-herbalism reference tables and link tables
- garden plots, beds, plantings and crop rotations

Uses WAL mode and enforces foreign keys on every connection.
"""

import logging
import os
import sqlite3
from typing import List, Dict, Any

from flask import current_app, has_app_context

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'data', 'plant_kb.db')


def get_db_path() -> str:
    """Database path: app config inside a request/app context, else env var or default."""
    if has_app_context() and current_app.config.get('DATABASE'):
        return current_app.config['DATABASE']
    return os.environ.get('PLANT_KB_DB_PATH', DEFAULT_DB_PATH)


def get_db() -> sqlite3.Connection:
    """Get a database connection with WAL mode and foreign keys enabled."""
    db_path = get_db_path()
    directory = os.path.dirname(db_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    conn = sqlite3.connect(db_path)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    conn.row_factory = sqlite3.Row
    return conn


# ========================================
# Schema
# ========================================

SCHEMA = [
    # --- Core plant table ---
    """
    CREATE TABLE IF NOT EXISTS plants (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        botanical_name TEXT NOT NULL UNIQUE,
        botanical_name_norm TEXT,
        common_name TEXT NOT NULL,
        family TEXT,
        genus TEXT,
        species TEXT,
        variety TEXT,
        cultivar TEXT,
        description TEXT,
        native_range TEXT,
        growth_habit TEXT,
        lifespan TEXT,
        hardiness_zones TEXT,
        height_mature_cm REAL,
        spread_mature_cm REAL,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,

    # --- Plant parts, recipes ---
    """
    CREATE TABLE IF NOT EXISTS plant_parts (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        plant_id INTEGER NOT NULL REFERENCES plants(id) ON DELETE CASCADE,
        part_name TEXT NOT NULL COLLATE NOCASE,
        edible INTEGER NOT NULL DEFAULT 0,
        harvest_time TEXT,
        storage_method TEXT,
        processing_notes TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        UNIQUE(plant_id, part_name)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS plant_recipes (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        plant_id INTEGER NOT NULL REFERENCES plants(id) ON DELETE CASCADE,
        name TEXT NOT NULL,
        ingredients TEXT NOT NULL,
        instructions TEXT NOT NULL,
        preparation_time_minutes INTEGER,
        servings INTEGER,
        notes TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,

    # --- One-per-plant sections ---
    """
    CREATE TABLE IF NOT EXISTS plant_properties (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        plant_id INTEGER NOT NULL UNIQUE REFERENCES plants(id) ON DELETE CASCADE,
        zone_range TEXT,
        soil_ph_min REAL,
        soil_ph_max REAL,
        light_requirements TEXT,
        water_requirements TEXT,
        days_to_maturity INTEGER,
        soil_preferences TEXT,
        cultivation_notes TEXT,
        pest_susceptibility TEXT,
        disease_susceptibility TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS seed_saving_info (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        plant_id INTEGER NOT NULL UNIQUE REFERENCES plants(id) ON DELETE CASCADE,
        pollination_type TEXT,
        isolation_distance_m REAL,
        min_population_size INTEGER,
        seed_viability_years INTEGER,
        seed_cleaning TEXT,
        storage_conditions TEXT,
        notes TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS plant_germination_guide (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        plant_id INTEGER NOT NULL UNIQUE REFERENCES plants(id) ON DELETE CASCADE,
        zone_range TEXT,
        soil_temp_min_c REAL,
        soil_temp_max_c REAL,
        days_to_germination_min INTEGER,
        days_to_germination_max INTEGER,
        planting_depth_cm REAL,
        light_requirement TEXT,
        spring_start_week INTEGER,
        spring_end_week INTEGER,
        fall_start_week INTEGER,
        fall_end_week INTEGER,
        indoor_sowing_weeks_before_frost INTEGER,
        stratification_required INTEGER DEFAULT 0,
        stratification_instructions TEXT,
        scarification_required INTEGER DEFAULT 0,
        scarification_instructions TEXT,
        special_requirements TEXT,
        germination_notes TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS planting_guide (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        plant_id INTEGER NOT NULL UNIQUE REFERENCES plants(id) ON DELETE CASCADE,
        spring_planting_start DATE,
        spring_planting_end DATE,
        fall_planting_start DATE,
        fall_planting_end DATE,
        indoor_sowing_start DATE,
        transplant_ready_weeks INTEGER,
        direct_sow_after_frost INTEGER DEFAULT 0,
        frost_tolerance TEXT,
        heat_tolerance TEXT,
        succession_planting_interval INTEGER,
        companion_plants TEXT DEFAULT '[]',
        incompatible_plants TEXT DEFAULT '[]',
        rotation_group TEXT,
        rotation_interval INTEGER,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS culinary_uses (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        plant_id INTEGER NOT NULL UNIQUE REFERENCES plants(id) ON DELETE CASCADE,
        edible_parts TEXT DEFAULT '[]',
        flavor_profile TEXT,
        cuisines TEXT DEFAULT '[]',
        pairs_with TEXT DEFAULT '[]',
        preparation_methods TEXT,
        nutritional_highlights TEXT,
        notes TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS medicinal_properties (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        plant_id INTEGER NOT NULL UNIQUE REFERENCES plants(id) ON DELETE CASCADE,
        traditional_uses TEXT,
        preparation_methods TEXT,
        dosage TEXT,
        contraindications TEXT,
        drug_interactions TEXT,
        safety_notes TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS plant_tcm_properties (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        plant_id INTEGER NOT NULL UNIQUE REFERENCES plants(id) ON DELETE CASCADE,
        chinese_name TEXT,
        pinyin_name TEXT,
        temperature_id INTEGER REFERENCES tcm_temperatures(id),
        functions TEXT,
        indications TEXT,
        dosage TEXT,
        contraindications TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS plant_ayurvedic_properties (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        plant_id INTEGER NOT NULL UNIQUE REFERENCES plants(id) ON DELETE CASCADE,
        sanskrit_name TEXT,
        virya_id INTEGER REFERENCES ayurvedic_virya(id),
        vipaka_id INTEGER REFERENCES ayurvedic_vipaka(id),
        dosha_effects TEXT DEFAULT '{}',
        indications TEXT,
        contraindications TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS western_medicine (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        plant_id INTEGER NOT NULL UNIQUE REFERENCES plants(id) ON DELETE CASCADE,
        active_compounds TEXT DEFAULT '[]',
        primary_uses TEXT,
        evidence_level TEXT,
        safety_notes TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,

    # --- Reference tables ---
    """
    CREATE TABLE IF NOT EXISTS herbal_actions (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE COLLATE NOCASE,
        description TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS tcm_temperatures (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE COLLATE NOCASE,
        chinese_name TEXT,
        description TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS tcm_tastes (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE COLLATE NOCASE,
        chinese_name TEXT,
        description TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS tcm_meridians (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE COLLATE NOCASE,
        chinese_name TEXT,
        element TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS ayurvedic_rasas (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE COLLATE NOCASE,
        english_name TEXT,
        elements TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS ayurvedic_virya (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE COLLATE NOCASE,
        english_name TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS ayurvedic_vipaka (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE COLLATE NOCASE,
        english_name TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS ayurvedic_gunas (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE COLLATE NOCASE,
        english_name TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS ayurvedic_doshas (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE COLLATE NOCASE,
        elements TEXT,
        description TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS western_medicine_categories (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE COLLATE NOCASE,
        description TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS western_medicine_actions (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE COLLATE NOCASE,
        description TEXT
    )
    """,

    # --- Many-to-many links ---
    """
    CREATE TABLE IF NOT EXISTS plant_actions (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        plant_id INTEGER NOT NULL REFERENCES plants(id) ON DELETE CASCADE,
        action_id INTEGER NOT NULL REFERENCES herbal_actions(id),
        plant_part_id INTEGER REFERENCES plant_parts(id) ON DELETE SET NULL,
        strength INTEGER NOT NULL DEFAULT 5 CHECK (strength BETWEEN 1 AND 10),
        notes TEXT,
        UNIQUE(plant_id, action_id, plant_part_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS plant_tcm_tastes (
        plant_id INTEGER NOT NULL REFERENCES plants(id) ON DELETE CASCADE,
        taste_id INTEGER NOT NULL REFERENCES tcm_tastes(id) ON DELETE CASCADE,
        PRIMARY KEY (plant_id, taste_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS plant_tcm_meridians (
        plant_id INTEGER NOT NULL REFERENCES plants(id) ON DELETE CASCADE,
        meridian_id INTEGER NOT NULL REFERENCES tcm_meridians(id) ON DELETE CASCADE,
        PRIMARY KEY (plant_id, meridian_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS plant_ayurvedic_rasas (
        plant_id INTEGER NOT NULL REFERENCES plants(id) ON DELETE CASCADE,
        rasa_id INTEGER NOT NULL REFERENCES ayurvedic_rasas(id) ON DELETE CASCADE,
        PRIMARY KEY (plant_id, rasa_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS plant_ayurvedic_gunas (
        plant_id INTEGER NOT NULL REFERENCES plants(id) ON DELETE CASCADE,
        guna_id INTEGER NOT NULL REFERENCES ayurvedic_gunas(id) ON DELETE CASCADE,
        PRIMARY KEY (plant_id, guna_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS plant_western_categories (
        plant_id INTEGER NOT NULL REFERENCES plants(id) ON DELETE CASCADE,
        category_id INTEGER NOT NULL REFERENCES western_medicine_categories(id) ON DELETE CASCADE,
        PRIMARY KEY (plant_id, category_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS plant_western_actions (
        plant_id INTEGER NOT NULL REFERENCES plants(id) ON DELETE CASCADE,
        action_id INTEGER NOT NULL REFERENCES western_medicine_actions(id) ON DELETE CASCADE,
        PRIMARY KEY (plant_id, action_id)
    )
    """,

    # --- Garden ---
    """
    CREATE TABLE IF NOT EXISTS plots (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        plot_code TEXT NOT NULL UNIQUE,
        name TEXT,
        size_sqm REAL,
        orientation TEXT,
        sun_exposure TEXT,
        irrigation_type TEXT,
        soil_type TEXT,
        status TEXT NOT NULL DEFAULT 'active',
        notes TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS garden_beds (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        plot_id INTEGER NOT NULL REFERENCES plots(id) ON DELETE CASCADE,
        bed_code TEXT NOT NULL UNIQUE,
        width_cm REAL,
        length_cm REAL,
        height_cm REAL,
        soil_type TEXT,
        is_raised INTEGER NOT NULL DEFAULT 0,
        status TEXT NOT NULL DEFAULT 'active',
        notes TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS plantings (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        plot_id INTEGER NOT NULL REFERENCES plots(id) ON DELETE CASCADE,
        bed_id INTEGER REFERENCES garden_beds(id) ON DELETE SET NULL,
        plant_id INTEGER REFERENCES plants(id) ON DELETE SET NULL,
        planting_date TEXT NOT NULL,
        method TEXT NOT NULL,
        spacing_cm REAL,
        depth_cm REAL,
        quantity INTEGER,
        area_sqm REAL,
        notes TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS crop_rotations (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        bed_id INTEGER NOT NULL REFERENCES garden_beds(id) ON DELETE CASCADE,
        season TEXT NOT NULL,
        year INTEGER NOT NULL,
        plant_families TEXT NOT NULL DEFAULT '[]',
        notes TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        UNIQUE(bed_id, season, year)
    )
    """,
]

# Indexes on columns present in every schema version; the rest are created
# by the migrations that add their columns.
INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_plants_family ON plants(family)",
    "CREATE INDEX IF NOT EXISTS idx_plant_parts_plant ON plant_parts(plant_id)",
    "CREATE INDEX IF NOT EXISTS idx_plant_actions_plant ON plant_actions(plant_id)",
    "CREATE INDEX IF NOT EXISTS idx_plant_recipes_plant ON plant_recipes(plant_id)",
    "CREATE INDEX IF NOT EXISTS idx_garden_beds_plot ON garden_beds(plot_id)",
    "CREATE INDEX IF NOT EXISTS idx_plantings_bed_date ON plantings(bed_id, planting_date)",
    "CREATE INDEX IF NOT EXISTS idx_crop_rotations_bed_year ON crop_rotations(bed_id, year)",
]


def init_db():
    """
    Create all tables, apply pending migrations, create indexes, seed reference data.

    Idempotent: safe to call on every start-up and on an existing database.
    """
    from migrations import run_migrations

    conn = get_db()
    cursor = conn.cursor()
    try:
        for statement in SCHEMA:
            cursor.execute(statement)
        conn.commit()

        run_migrations(conn)

        for statement in INDEXES:
            cursor.execute(statement)
        conn.commit()
    finally:
        conn.close()

    seed_reference_data()


# ========================================
# Reference data
# ========================================

# table -> descriptive columns after `name`
REFERENCE_TABLES = {
    'herbal_actions': ('description',),
    'tcm_temperatures': ('chinese_name', 'description'),
    'tcm_tastes': ('chinese_name', 'description'),
    'tcm_meridians': ('chinese_name', 'element'),
    'ayurvedic_rasas': ('english_name', 'elements'),
    'ayurvedic_virya': ('english_name',),
    'ayurvedic_vipaka': ('english_name',),
    'ayurvedic_gunas': ('english_name',),
    'ayurvedic_doshas': ('elements', 'description'),
    'western_medicine_categories': ('description',),
    'western_medicine_actions': ('description',),
}

REFERENCE_SEEDS = {
    'tcm_temperatures': [
        ('Cold', '寒', 'Clears heat, cools the body'),
        ('Cool', '涼', 'Mildly clears heat'),
        ('Neutral', '平', 'Neither warming nor cooling'),
        ('Warm', '溫', 'Mildly warms, dispels cold'),
        ('Hot', '熱', 'Strongly warms the interior'),
    ],
    'tcm_tastes': [
        ('Sweet', '甘', 'Tonifies and harmonizes'),
        ('Sour', '酸', 'Astringes and consolidates'),
        ('Bitter', '苦', 'Drains and dries'),
        ('Pungent', '辛', 'Disperses and moves'),
        ('Salty', '鹹', 'Softens hardness'),
    ],
    'tcm_meridians': [
        ('Lung', '肺', 'Metal'),
        ('Large Intestine', '大腸', 'Metal'),
        ('Stomach', '胃', 'Earth'),
        ('Spleen', '脾', 'Earth'),
        ('Heart', '心', 'Fire'),
        ('Small Intestine', '小腸', 'Fire'),
        ('Bladder', '膀胱', 'Water'),
        ('Kidney', '腎', 'Water'),
        ('Pericardium', '心包', 'Fire'),
        ('San Jiao', '三焦', 'Fire'),
        ('Gallbladder', '膽', 'Wood'),
        ('Liver', '肝', 'Wood'),
    ],
    'ayurvedic_rasas': [
        ('Madhura', 'Sweet', 'Earth, Water'),
        ('Amla', 'Sour', 'Earth, Fire'),
        ('Lavana', 'Salty', 'Water, Fire'),
        ('Katu', 'Pungent', 'Fire, Air'),
        ('Tikta', 'Bitter', 'Air, Ether'),
        ('Kashaya', 'Astringent', 'Air, Earth'),
    ],
    'ayurvedic_virya': [
        ('Ushna', 'Hot'),
        ('Sheeta', 'Cold'),
    ],
    'ayurvedic_vipaka': [
        ('Madhura', 'Sweet'),
        ('Amla', 'Sour'),
        ('Katu', 'Pungent'),
    ],
    'ayurvedic_gunas': [
        ('Guru', 'Heavy'),
        ('Laghu', 'Light'),
        ('Manda', 'Slow'),
        ('Tikshna', 'Sharp'),
        ('Sheeta', 'Cold'),
        ('Ushna', 'Hot'),
        ('Snigdha', 'Oily'),
        ('Ruksha', 'Dry'),
        ('Slakshna', 'Smooth'),
        ('Khara', 'Rough'),
        ('Mridu', 'Soft'),
        ('Kathina', 'Hard'),
    ],
    'ayurvedic_doshas': [
        ('Vata', 'Air, Ether', 'Movement and circulation'),
        ('Pitta', 'Fire, Water', 'Digestion and metabolism'),
        ('Kapha', 'Earth, Water', 'Structure and lubrication'),
    ],
    'herbal_actions': [
        ('Adaptogen', 'Increases resistance to physical and emotional stress'),
        ('Alterative', 'Gradually restores healthy body function'),
        ('Analgesic', 'Relieves pain'),
        ('Anti-inflammatory', 'Reduces inflammation'),
        ('Antimicrobial', 'Inhibits the growth of microorganisms'),
        ('Antispasmodic', 'Relaxes muscle spasms'),
        ('Astringent', 'Tightens and tones tissues'),
        ('Bitter', 'Stimulates digestive secretions'),
        ('Carminative', 'Relieves gas and bloating'),
        ('Demulcent', 'Soothes irritated mucous membranes'),
        ('Diaphoretic', 'Promotes sweating'),
        ('Diuretic', 'Increases urine flow'),
        ('Expectorant', 'Helps clear mucus from the airways'),
        ('Hepatic', 'Supports liver function'),
        ('Nervine', 'Supports the nervous system'),
        ('Sedative', 'Calms and promotes sleep'),
        ('Tonic', 'Strengthens and nourishes'),
        ('Vulnerary', 'Promotes wound healing'),
    ],
    'western_medicine_categories': [
        ('Cardiovascular', 'Heart and circulation'),
        ('Digestive', 'Digestive tract and liver'),
        ('Immune', 'Immune system support'),
        ('Nervous system', 'Anxiety, sleep, cognition'),
        ('Respiratory', 'Lungs and airways'),
        ('Skin', 'Topical and dermatological use'),
        ('Urinary', 'Kidneys and urinary tract'),
    ],
    'western_medicine_actions': [
        ('Antioxidant', 'Neutralizes free radicals'),
        ('Anti-inflammatory', 'Reduces inflammatory markers'),
        ('Antimicrobial', 'Active against bacteria or fungi'),
        ('Anxiolytic', 'Reduces anxiety'),
        ('Hepatoprotective', 'Protects liver cells'),
        ('Hypotensive', 'Lowers blood pressure'),
        ('Immunomodulator', 'Modulates immune response'),
    ],
}


def _check_reference_table(table: str):
    if table not in REFERENCE_TABLES:
        raise ValueError(f"Unknown reference table: {table}")


def seed_reference_data():
    """Populate reference tables if they are empty. Idempotent."""
    conn = get_db()
    cursor = conn.cursor()
    try:
        for table, rows in REFERENCE_SEEDS.items():
            existing = cursor.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
            if existing:
                continue
            columns = ('name',) + REFERENCE_TABLES[table]
            placeholders = ', '.join('?' for _ in columns)
            cursor.executemany(
                f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})",
                rows
            )
            logger.info("Seeded %d rows into %s", len(rows), table)
        conn.commit()
    finally:
        conn.close()


def _option_label(row: Dict[str, Any]) -> str:
    alt = row.get('english_name') or row.get('chinese_name')
    return f"{row['name']} ({alt})" if alt else row['name']


def get_reference_options(table: str) -> List[Dict[str, Any]]:
    """
    List a reference table as select options.

    Returns:
        List of dicts with id, name, label and the table's descriptive columns
    """
    _check_reference_table(table)
    conn = get_db()
    try:
        rows = conn.execute(f"SELECT * FROM {table} ORDER BY id").fetchall()
        options = []
        for row in rows:
            option = dict(row)
            option['label'] = _option_label(option)
            options.append(option)
        return options
    finally:
        conn.close()


def get_reference_ids_by_name(cursor, table: str) -> Dict[str, int]:
    """Lower-cased name -> id, for resolving names in imported data."""
    _check_reference_table(table)
    rows = cursor.execute(f"SELECT id, name FROM {table}").fetchall()
    return {r['name'].lower(): r['id'] for r in rows}
