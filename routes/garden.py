"""
routes/garden.py — Garden admin pages.

Provides:
- GET /admin/garden/plots — Plot list
- GET|POST /admin/garden/plots/new, /plots/<id>/edit; POST /plots/<id>/delete
- GET /admin/garden/beds?plot_id= — Bed list, optionally for one plot
- GET|POST /admin/garden/beds/new, /beds/<id>/edit; POST /beds/<id>/delete
- GET /admin/garden/plantings?plot_id=&bed_id= — Planting list
- GET|POST /admin/garden/plantings/new, /plantings/<id>/edit; POST /plantings/<id>/delete
- GET /admin/garden/crop-rotations?bed_id= — Rotation list
- GET|POST /admin/garden/crop-rotations/new, /crop-rotations/<id>/edit;
  POST /crop-rotations/<id>/delete

Saving a crop rotation runs the family rotation check and flashes a
warning per repeated family; warnings never block the save.
"""

import logging
from dataclasses import asdict

from flask import Blueprint, render_template, request, redirect, url_for, flash, abort

from garden_database import (
    get_plots, get_plot, get_next_plot_code, create_plot, update_plot, delete_plot,
    get_beds, get_bed, create_bed, update_bed, delete_bed,
    get_plantings, get_planting, create_planting, update_planting, delete_planting,
    get_crop_rotations, get_crop_rotation, create_crop_rotation,
    update_crop_rotation, delete_crop_rotation,
)
from plant_database import get_plant_choices
from rotation_engine import check_rotation
from utils.validators import (
    validate_plot, validate_bed, validate_planting, validate_crop_rotation,
    SEASONS, PLANTING_METHODS, RECORD_STATUSES,
)

logger = logging.getLogger(__name__)

garden_bp = Blueprint('garden', __name__, url_prefix='/admin/garden')


def _flash_errors(errors):
    for error in errors:
        flash(error, 'error')


# ========================================
# Plots
# ========================================

@garden_bp.route('/plots')
def plots():
    return render_template('garden/plots.html', plots=get_plots())


def _plot_form(plot, values, status=200):
    return render_template('garden/plot_form.html', plot=plot, values=values,
                           statuses=RECORD_STATUSES), status


@garden_bp.route('/plots/new', methods=['GET', 'POST'])
def new_plot():
    if request.method == 'GET':
        return _plot_form(None, {'plot_code': get_next_plot_code(), 'status': 'active'})

    values, errors = validate_plot(request.form)
    if not errors:
        plot_id, error = create_plot(values)
        if plot_id:
            flash(f"Plot {values['plot_code']} created.", 'success')
            return redirect(url_for('garden.plots'))
        errors.append(error)

    _flash_errors(errors)
    return _plot_form(None, values, 400)


@garden_bp.route('/plots/<int:plot_id>/edit', methods=['GET', 'POST'])
def edit_plot(plot_id):
    plot = get_plot(plot_id)
    if plot is None:
        abort(404)

    if request.method == 'GET':
        return _plot_form(plot, asdict(plot))

    values, errors = validate_plot(request.form)
    if not errors:
        success, error = update_plot(plot_id, values)
        if success:
            flash("Plot updated.", 'success')
            return redirect(url_for('garden.plots'))
        errors.append(error)

    _flash_errors(errors)
    return _plot_form(plot, values, 400)


@garden_bp.route('/plots/<int:plot_id>/delete', methods=['POST'])
def remove_plot(plot_id):
    success, error = delete_plot(plot_id)
    if success:
        flash("Plot deleted, with its beds and plantings.", 'success')
    else:
        flash(error, 'error')
    return redirect(url_for('garden.plots'))


# ========================================
# Beds
# ========================================

@garden_bp.route('/beds')
def beds():
    plot_id = request.args.get('plot_id', type=int)
    return render_template('garden/beds.html', beds=get_beds(plot_id), plots=get_plots(),
                           plot_id=plot_id)


def _bed_form(bed, values, status=200):
    return render_template('garden/bed_form.html', bed=bed, values=values, plots=get_plots(),
                           statuses=RECORD_STATUSES), status


@garden_bp.route('/beds/new', methods=['GET', 'POST'])
def new_bed():
    if request.method == 'GET':
        return _bed_form(None, {'plot_id': request.args.get('plot_id', type=int), 'status': 'active'})

    values, errors = validate_bed(request.form)
    if not errors:
        bed_id, error = create_bed(values)
        if bed_id:
            flash(f"Bed {values['bed_code']} created.", 'success')
            return redirect(url_for('garden.beds', plot_id=values['plot_id']))
        errors.append(error)

    _flash_errors(errors)
    return _bed_form(None, values, 400)


@garden_bp.route('/beds/<int:bed_id>/edit', methods=['GET', 'POST'])
def edit_bed(bed_id):
    bed = get_bed(bed_id)
    if bed is None:
        abort(404)

    if request.method == 'GET':
        return _bed_form(bed, asdict(bed))

    values, errors = validate_bed(request.form)
    if not errors:
        success, error = update_bed(bed_id, values)
        if success:
            flash("Bed updated.", 'success')
            return redirect(url_for('garden.beds', plot_id=values['plot_id']))
        errors.append(error)

    _flash_errors(errors)
    return _bed_form(bed, values, 400)


@garden_bp.route('/beds/<int:bed_id>/delete', methods=['POST'])
def remove_bed(bed_id):
    success, error = delete_bed(bed_id)
    if success:
        flash("Bed deleted.", 'success')
    else:
        flash(error, 'error')
    return redirect(url_for('garden.beds'))


# ========================================
# Plantings
# ========================================

@garden_bp.route('/plantings')
def plantings():
    plot_id = request.args.get('plot_id', type=int)
    bed_id = request.args.get('bed_id', type=int)
    return render_template('garden/plantings.html', plantings=get_plantings(plot_id, bed_id),
                           plot_id=plot_id, bed_id=bed_id)


def _planting_form(planting, values, status=200):
    return render_template(
        'garden/planting_form.html',
        planting=planting,
        values=values,
        plots=get_plots(),
        beds=get_beds(),
        plants=get_plant_choices(),
        methods=PLANTING_METHODS,
    ), status


@garden_bp.route('/plantings/new', methods=['GET', 'POST'])
def new_planting():
    if request.method == 'GET':
        return _planting_form(None, {'plot_id': request.args.get('plot_id', type=int)})

    values, errors = validate_planting(request.form)
    if not errors:
        planting_id, error = create_planting(values)
        if planting_id:
            flash("Planting recorded.", 'success')
            return redirect(url_for('garden.plantings'))
        errors.append(error)

    _flash_errors(errors)
    return _planting_form(None, values, 400)


@garden_bp.route('/plantings/<int:planting_id>/edit', methods=['GET', 'POST'])
def edit_planting(planting_id):
    planting = get_planting(planting_id)
    if planting is None:
        abort(404)

    if request.method == 'GET':
        return _planting_form(planting, asdict(planting))

    values, errors = validate_planting(request.form)
    if not errors:
        success, error = update_planting(planting_id, values)
        if success:
            flash("Planting updated.", 'success')
            return redirect(url_for('garden.plantings'))
        errors.append(error)

    _flash_errors(errors)
    return _planting_form(planting, values, 400)


@garden_bp.route('/plantings/<int:planting_id>/delete', methods=['POST'])
def remove_planting(planting_id):
    success, error = delete_planting(planting_id)
    if success:
        flash("Planting deleted.", 'success')
    else:
        flash(error, 'error')
    return redirect(url_for('garden.plantings'))


# ========================================
# Crop rotations
# ========================================

@garden_bp.route('/crop-rotations')
def crop_rotations():
    bed_id = request.args.get('bed_id', type=int)
    return render_template('garden/rotations.html', rotations=get_crop_rotations(bed_id),
                           bed_id=bed_id)


def _rotation_form(rotation, values, status=200):
    return render_template('garden/rotation_form.html', rotation=rotation, values=values,
                           beds=get_beds(), seasons=SEASONS), status


def _flash_rotation_warnings(values, exclude_rotation_id=None):
    warnings = check_rotation(values['bed_id'], values['plant_families'], values['year'],
                              exclude_rotation_id=exclude_rotation_id)
    for warning in warnings:
        flash(f"{warning['message']} (rotation penalty {warning['penalty']})", 'warning')
    if warnings:
        logger.info("Crop rotation for bed %s saved with %d warning(s)", values['bed_id'], len(warnings))


@garden_bp.route('/crop-rotations/new', methods=['GET', 'POST'])
def new_crop_rotation():
    if request.method == 'GET':
        return _rotation_form(None, {'bed_id': request.args.get('bed_id', type=int),
                                     'plant_families': []})

    values, errors = validate_crop_rotation(request.form)
    if not errors:
        rotation_id, error = create_crop_rotation(values)
        if rotation_id:
            flash("Crop rotation recorded.", 'success')
            _flash_rotation_warnings(values, exclude_rotation_id=rotation_id)
            return redirect(url_for('garden.crop_rotations'))
        errors.append(error)

    _flash_errors(errors)
    return _rotation_form(None, values, 400)


@garden_bp.route('/crop-rotations/<int:rotation_id>/edit', methods=['GET', 'POST'])
def edit_crop_rotation(rotation_id):
    rotation = get_crop_rotation(rotation_id)
    if rotation is None:
        abort(404)

    if request.method == 'GET':
        return _rotation_form(rotation, asdict(rotation))

    values, errors = validate_crop_rotation(request.form)
    if not errors:
        success, error = update_crop_rotation(rotation_id, values)
        if success:
            flash("Crop rotation updated.", 'success')
            _flash_rotation_warnings(values, exclude_rotation_id=rotation_id)
            return redirect(url_for('garden.crop_rotations'))
        errors.append(error)

    _flash_errors(errors)
    return _rotation_form(rotation, values, 400)


@garden_bp.route('/crop-rotations/<int:rotation_id>/delete', methods=['POST'])
def remove_crop_rotation(rotation_id):
    success, error = delete_crop_rotation(rotation_id)
    if success:
        flash("Crop rotation deleted.", 'success')
    else:
        flash(error, 'error')
    return redirect(url_for('garden.crop_rotations'))
