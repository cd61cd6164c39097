"""
Shared fixtures: every test gets its own SQLite file and backup directory.
"""

import pytest

from app import create_app
from database import init_db


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    """Initialised temporary database, selected through the environment."""
    path = str(tmp_path / 'test.db')
    monkeypatch.setenv('PLANT_KB_DB_PATH', path)
    monkeypatch.setenv('PLANT_KB_BACKUP_DIR', str(tmp_path / 'backups'))
    init_db()
    return path


@pytest.fixture
def app(db_path, tmp_path):
    app = create_app({
        'TESTING': True,
        'DATABASE': db_path,
        'BACKUP_DIR': str(tmp_path / 'backups'),
        'WTF_CSRF_ENABLED': False,
        'SECRET_KEY': 'dev-key-for-testing',
    })
    yield app


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


@pytest.fixture
def basil_id(db_path):
    from plant_management import CreatePlantCommand, CreatePlantCommandHandler, get_plant_repository

    return CreatePlantCommandHandler(get_plant_repository()).handle(
        CreatePlantCommand('Ocimum basilicum', 'Basil', family='Lamiaceae',
                           hardiness_zones='10-11', height_mature_cm=60)
    )
