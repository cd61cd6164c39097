"""
routes/export.py — Catalogue export, import and backup routes.

Provides:
- GET /export/ — Export page (downloads, import form, backup list)
- GET /export/plants.json — Download the catalogue as JSON
- GET /export/plants.xlsx — Download the catalogue as an Excel workbook
- POST /export/import — Import a JSON file (merge or replace)
- POST /export/backup — Take a manual database backup

Auto-backup is triggered before every Excel export and replace-mode import.
"""

import json
import logging
from datetime import datetime

from flask import Blueprint, Response, flash, redirect, render_template, request, send_file, url_for

from plant_database import export_plants_json, import_plants_json
from utils.backup import backup_db, list_backups
from utils.export import generate_plants_excel

logger = logging.getLogger(__name__)

export_bp = Blueprint('export', __name__, url_prefix='/export')


@export_bp.route('/')
def index():
    """Export page with options."""
    return render_template('export.html', backups=list_backups())


@export_bp.route('/plants.json')
def export_json():
    """Download the whole catalogue as JSON."""
    data = export_plants_json()
    filename = f"plants_{datetime.now().strftime('%Y%m%d')}.json"
    return Response(
        json.dumps(data, ensure_ascii=False, indent=2),
        mimetype='application/json',
        headers={'Content-Disposition': f'attachment; filename={filename}'}
    )


@export_bp.route('/plants.xlsx')
def export_excel():
    """Download the catalogue as a multi-sheet Excel workbook."""
    backup_db('export')

    buffer, filename = generate_plants_excel()
    return send_file(
        buffer,
        as_attachment=True,
        download_name=filename,
        mimetype='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
    )


@export_bp.route('/import', methods=['POST'])
def import_json():
    """Import plants from an uploaded JSON file."""
    mode = request.form.get('mode', 'merge')

    file = request.files.get('file')
    if file is None or file.filename == '':
        flash("No file selected.", 'error')
        return redirect(url_for('export.index'))

    try:
        data = json.load(file)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning("Rejected import file %s: %s", file.filename, e)
        flash(f"Invalid JSON file: {e}", 'error')
        return redirect(url_for('export.index'))

    success, message, stats = import_plants_json(data, mode=mode)
    flash(message, 'success' if success else 'error')
    return redirect(url_for('export.index'))


@export_bp.route('/backup', methods=['POST'])
def backup():
    """Take a manual backup."""
    filename = backup_db('manual')
    if filename:
        flash(f"Backup created: {filename}", 'success')
    else:
        flash("Backup failed.", 'error')
    return redirect(url_for('export.index'))
