"""
routes/sections.py — One-per-plant detail sections.

Provides, for every section registered in plant_sections.SECTIONS
(growing, seed_saving, germination, planting_guide, culinary, medicinal, tcm,
ayurvedic, western):
- GET /admin/plants/<id>/<section> — View the section
- GET|POST /admin/plants/<id>/<section>/edit — Create or replace the section
- POST /admin/plants/<id>/<section>/delete — Clear the section
"""

import logging

from flask import Blueprint, render_template, request, redirect, url_for, flash, abort

from database import get_reference_options
from plant_database import get_section, save_section, delete_section
from plant_management import GetPlantByIdQuery, GetPlantByIdQueryHandler, get_plant_repository
from plant_sections import SECTIONS, DOSHAS, DOSHA_EFFECTS
from utils.validators import parse_section_form

logger = logging.getLogger(__name__)

sections_bp = Blueprint('sections', __name__, url_prefix='/admin/plants')


def _load(plant_id: int, section_key: str):
    section = SECTIONS.get(section_key)
    if section is None:
        abort(404)
    plant = GetPlantByIdQueryHandler(get_plant_repository()).handle(GetPlantByIdQuery(plant_id))
    if plant is None:
        logger.warning("Plant %s not found", plant_id)
        abort(404)
    return plant, section


def _options(section):
    """Select options for every reference-backed field of the section."""
    return {f.name: get_reference_options(f.ref) for f in section.fields if f.ref}


@sections_bp.route('/<int:plant_id>/<section_key>')
def view_section(plant_id, section_key):
    plant, section = _load(plant_id, section_key)
    return render_template(
        'plants/section.html',
        plant=plant,
        section=section,
        values=get_section(plant_id, section_key),
    )


@sections_bp.route('/<int:plant_id>/<section_key>/edit', methods=['GET', 'POST'])
def edit_section(plant_id, section_key):
    plant, section = _load(plant_id, section_key)

    if request.method == 'GET':
        return render_template(
            'plants/section_form.html',
            plant=plant,
            section=section,
            values=get_section(plant_id, section_key) or {},
            options=_options(section),
            doshas=DOSHAS,
            dosha_effects=DOSHA_EFFECTS,
        )

    values, errors = parse_section_form(section, request.form)
    if not errors:
        success, error = save_section(plant_id, section_key, values)
        if success:
            flash(f"{section.title} saved.", 'success')
            return redirect(url_for('plants.detail', plant_id=plant_id))
        errors.append(error)

    for error in errors:
        flash(error, 'error')
    logger.warning("Rejected %s section for plant %s: %s", section_key, plant_id, '; '.join(errors))
    return render_template(
        'plants/section_form.html',
        plant=plant,
        section=section,
        values=values,
        options=_options(section),
        doshas=DOSHAS,
        dosha_effects=DOSHA_EFFECTS,
    ), 400


@sections_bp.route('/<int:plant_id>/<section_key>/delete', methods=['POST'])
def remove_section(plant_id, section_key):
    _, section = _load(plant_id, section_key)
    success, error = delete_section(plant_id, section_key)
    if success:
        flash(f"{section.title} cleared.", 'success')
    else:
        flash(error, 'error')
    return redirect(url_for('plants.detail', plant_id=plant_id))
