"""
tests/test_migrations.py — Schema migrations on fresh and legacy databases.
"""

import sqlite3

import pytest

import migrations
from database import get_db, init_db


LEGACY_SCHEMA = [
    """
    CREATE TABLE plants (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        botanical_name TEXT NOT NULL UNIQUE,
        common_name TEXT NOT NULL,
        family TEXT,
        description TEXT,
        native_range TEXT,
        growth_habit TEXT,
        lifespan TEXT,
        hardiness_zones TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE plant_ayurvedic_properties (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        plant_id INTEGER NOT NULL UNIQUE REFERENCES plants(id) ON DELETE CASCADE,
        sanskrit_name TEXT,
        virya_id INTEGER,
        dosha_effects TEXT DEFAULT '{}',
        indications TEXT,
        contraindications TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
]


def columns(conn, table):
    return [row[1] for row in conn.execute(f"PRAGMA table_info({table})").fetchall()]


@pytest.fixture
def legacy_db(tmp_path, monkeypatch):
    path = str(tmp_path / 'legacy.db')
    monkeypatch.setenv('PLANT_KB_DB_PATH', path)

    conn = sqlite3.connect(path)
    for statement in LEGACY_SCHEMA:
        conn.execute(statement)
    conn.executemany(
        "INSERT INTO plants (botanical_name, common_name, family) VALUES (?, ?, ?)",
        [('Ocimum basilicum', 'Basil', 'Lamiaceae'), ('Mentha', 'Mint', 'Lamiaceae')]
    )
    conn.commit()
    conn.close()
    return path


class TestFreshDatabase:

    def test_all_migrations_recorded(self, db_path):
        conn = get_db()
        try:
            assert migrations.get_applied_versions(conn) == [1, 2, 3, 4]
            assert migrations.run_migrations(conn) == []
        finally:
            conn.close()

    def test_init_db_is_idempotent(self, db_path):
        init_db()
        conn = get_db()
        try:
            count = conn.execute("SELECT COUNT(*) FROM tcm_meridians").fetchone()[0]
        finally:
            conn.close()
        assert count == 12


class TestLegacyDatabase:

    def test_columns_added_and_backfilled(self, legacy_db):
        init_db()

        conn = get_db()
        try:
            plant_columns = columns(conn, 'plants')
            for column in ('genus', 'species', 'variety', 'cultivar', 'botanical_name_norm',
                           'height_mature_cm', 'spread_mature_cm'):
                assert column in plant_columns
            assert 'vipaka_id' in columns(conn, 'plant_ayurvedic_properties')

            rows = {
                r['common_name']: r
                for r in conn.execute("SELECT * FROM plants").fetchall()
            }
        finally:
            conn.close()

        assert (rows['Basil']['genus'], rows['Basil']['species']) == ('Ocimum', 'basilicum')
        assert rows['Basil']['botanical_name_norm'] == 'ocimum basilicum'
        assert (rows['Mint']['genus'], rows['Mint']['species']) == ('Mentha', 'sp.')

    def test_normalised_name_is_unique(self, legacy_db):
        init_db()
        conn = get_db()
        try:
            with pytest.raises(sqlite3.IntegrityError):
                conn.execute(
                    "INSERT INTO plants (botanical_name, botanical_name_norm, common_name) VALUES (?, ?, ?)",
                    ('Ocimum-Basilicum', 'ocimum basilicum', 'Basil again')
                )
        finally:
            conn.close()

    def test_legacy_plants_readable(self, legacy_db):
        from plant_management import get_plant_repository

        init_db()
        plant = get_plant_repository().find_by_botanical_name('ocimum basilicum')
        assert plant.taxonomy.genus == 'Ocimum'
        assert plant.family == 'Lamiaceae'

    def test_genus_only_name_rewritten(self, legacy_db):
        from plant_management import get_plant_repository

        init_db()
        names = [p.botanical_name.value for p in get_plant_repository().find_all()]
        assert names == ['Mentha sp.', 'Ocimum basilicum']

        conn = get_db()
        try:
            row = conn.execute("SELECT botanical_name_norm FROM plants WHERE common_name = 'Mint'").fetchone()
        finally:
            conn.close()
        assert row[0] == 'mentha sp'

    def test_whole_catalogue_lists(self, legacy_db, tmp_path):
        from app import create_app

        app = create_app({
            'TESTING': True,
            'DATABASE': legacy_db,
            'BACKUP_DIR': str(tmp_path / 'backups'),
            'WTF_CSRF_ENABLED': False,
        })
        client = app.test_client()

        rv = client.get('/admin/plants/list')
        assert rv.status_code == 200
        assert b'Mentha sp.' in rv.data

        body = client.get('/api/plants').get_json()
        assert body['total'] == 2
        assert sorted(p['common_name'] for p in body['plants']) == ['Basil', 'Mint']


class TestFailedMigration:

    def test_rolled_back_and_not_recorded(self, db_path, monkeypatch):
        def broken(cursor):
            cursor.execute("ALTER TABLE plants ADD COLUMN broken TEXT")
            raise RuntimeError("boom")

        monkeypatch.setattr(migrations, 'MIGRATIONS', migrations.MIGRATIONS + [(99, 'Broken', broken)])

        conn = get_db()
        try:
            with pytest.raises(RuntimeError):
                migrations.run_migrations(conn)
            assert 'broken' not in columns(conn, 'plants')
            assert 99 not in migrations.get_applied_versions(conn)
        finally:
            conn.close()
