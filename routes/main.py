"""
routes/main.py — Dashboard.

Provides:
- GET / — Catalogue stats, garden counts, last backup
"""

from flask import Blueprint, render_template

from garden_database import get_garden_counts
from plant_database import get_plant_stats
from utils.backup import list_backups

main_bp = Blueprint('main', __name__)


@main_bp.route('/')
def index():
    """Dashboard — plant stats, garden record counts, last backup."""
    stats = get_plant_stats()
    garden_counts = get_garden_counts()

    backups = list_backups()
    last_backup = backups[0] if backups else None

    return render_template(
        'index.html',
        stats=stats,
        garden_counts=garden_counts,
        last_backup=last_backup,
    )
