"""
routes/plants.py — Plant catalogue admin pages.

Provides:
- GET /admin/plants/ — Catalogue stats (total, recent plants, top families)
- GET /admin/plants/list — Paginated listing with name search and family filter
- GET|POST /admin/plants/new — Create a plant
- GET /admin/plants/<id> — Plant details with every section, parts, actions, recipes
- GET|POST /admin/plants/<id>/edit — Edit core plant data
- POST /admin/plants/<id>/delete — Delete a plant and everything attached to it
- GET|POST /admin/plants/<id>/parts/new — Add a plant part
- GET|POST /admin/plants/<id>/parts/<part_id>/edit — Edit a plant part
- POST /admin/plants/<id>/parts/<part_id>/delete — Delete a plant part
- POST /admin/plants/<id>/actions/add — Link a herbal action
- POST /admin/plants/<id>/actions/<link_id>/remove — Unlink a herbal action
- GET /admin/plants/<id>/recipes — Recipes for a plant
- GET|POST /admin/plants/<id>/recipes/new — Add a recipe
- POST /admin/plants/<id>/recipes/<recipe_id>/delete — Delete a recipe
"""

import logging
import math

from flask import Blueprint, render_template, request, redirect, url_for, flash, abort, current_app

from plant_database import (
    get_plant_stats, get_families, get_all_sections,
    get_parts, get_part, add_part, update_part, delete_part,
    get_herbal_actions, get_plant_actions, add_plant_action, remove_plant_action,
    get_recipes, add_recipe, delete_recipe,
)
from plant_management import (
    CreatePlantCommand, CreatePlantCommandHandler,
    UpdatePlantCommand, UpdatePlantCommandHandler,
    GetPlantByIdQuery, GetPlantByIdQueryHandler, PlantDto,
    DomainValidationError, PlantAlreadyExistsError, PlantNotFoundError,
    get_plant_repository,
)
from plant_sections import SECTIONS
from utils.validators import get_text, get_int, get_float, get_bool

logger = logging.getLogger(__name__)

plants_bp = Blueprint('plants', __name__, url_prefix='/admin/plants')

PLANT_TEXT_FIELDS = ('botanical_name', 'common_name', 'family', 'variety', 'cultivar',
                     'description', 'native_range', 'growth_habit', 'lifespan', 'hardiness_zones')


def _load_plant(plant_id: int) -> PlantDto:
    plant = GetPlantByIdQueryHandler(get_plant_repository()).handle(GetPlantByIdQuery(plant_id))
    if plant is None:
        logger.warning("Plant %s not found", plant_id)
        abort(404)
    return plant


def _plant_form_values(form):
    """Read the plant form; returns (values, errors) with numbers converted."""
    errors = []
    values = {name: get_text(form, name) for name in PLANT_TEXT_FIELDS}
    values['height_mature_cm'] = get_float(form, 'height_mature_cm', errors, 'Mature height')
    values['spread_mature_cm'] = get_float(form, 'spread_mature_cm', errors, 'Mature spread')
    return values, errors


# ========================================
# Catalogue
# ========================================

@plants_bp.route('/')
def index():
    """Catalogue overview."""
    return render_template('plants/index.html', stats=get_plant_stats())


@plants_bp.route('/list')
def list_plants():
    """Paginated plant listing."""
    term = request.args.get('q', '').strip() or None
    family = request.args.get('family', '').strip() or None
    page = max(request.args.get('page', 1, type=int), 1)
    per_page = current_app.config['PLANTS_PER_PAGE']

    repository = get_plant_repository()
    total = repository.count(term=term, family=family)
    pages = max(math.ceil(total / per_page), 1)
    page = min(page, pages)

    plants = [
        PlantDto.from_plant(p)
        for p in repository.find_filtered(term, family, limit=per_page, offset=(page - 1) * per_page)
    ]

    return render_template(
        'plants/list.html',
        plants=plants,
        families=get_families(),
        q=term or '',
        family=family or '',
        page=page,
        pages=pages,
        total=total,
    )


# ========================================
# Plant CRUD
# ========================================

@plants_bp.route('/new', methods=['GET', 'POST'])
def new_plant():
    """Create a plant."""
    if request.method == 'GET':
        return render_template('plants/form.html', plant=None, values={})

    values, errors = _plant_form_values(request.form)
    if not errors:
        try:
            plant_id = CreatePlantCommandHandler(get_plant_repository()).handle(
                CreatePlantCommand(
                    botanical_name=values['botanical_name'] or '',
                    common_name=values['common_name'] or '',
                    **{k: v for k, v in values.items() if k not in ('botanical_name', 'common_name')}
                )
            )
            logger.info("Created plant %s (%s)", plant_id, values['botanical_name'])
            flash(f"Plant '{values['botanical_name']}' created.", 'success')
            return redirect(url_for('plants.detail', plant_id=plant_id))
        except (DomainValidationError, PlantAlreadyExistsError) as e:
            errors.append(str(e))

    for error in errors:
        flash(error, 'error')
    logger.warning("Rejected new plant: %s", '; '.join(errors))
    return render_template('plants/form.html', plant=None, values=values), 400


@plants_bp.route('/<int:plant_id>')
def detail(plant_id):
    """Plant details with every section."""
    plant = _load_plant(plant_id)
    return render_template(
        'plants/detail.html',
        plant=plant,
        sections=SECTIONS,
        section_values=get_all_sections(plant_id),
        parts=get_parts(plant_id),
        plant_actions=get_plant_actions(plant_id),
        herbal_actions=get_herbal_actions(),
        recipes=get_recipes(plant_id),
    )


@plants_bp.route('/<int:plant_id>/edit', methods=['GET', 'POST'])
def edit_plant(plant_id):
    """Edit core plant data."""
    plant = _load_plant(plant_id)

    if request.method == 'GET':
        return render_template('plants/form.html', plant=plant, values=plant.to_dict())

    values, errors = _plant_form_values(request.form)
    if not errors:
        try:
            UpdatePlantCommandHandler(get_plant_repository()).handle(
                UpdatePlantCommand(
                    plant_id=plant_id,
                    botanical_name=values['botanical_name'] or '',
                    common_name=values['common_name'] or '',
                    **{k: v for k, v in values.items() if k not in ('botanical_name', 'common_name')}
                )
            )
            logger.info("Updated plant %s", plant_id)
            flash("Plant updated.", 'success')
            return redirect(url_for('plants.detail', plant_id=plant_id))
        except PlantNotFoundError:
            abort(404)
        except (DomainValidationError, PlantAlreadyExistsError) as e:
            errors.append(str(e))

    for error in errors:
        flash(error, 'error')
    return render_template('plants/form.html', plant=plant, values=values), 400


@plants_bp.route('/<int:plant_id>/delete', methods=['POST'])
def delete_plant(plant_id):
    """Delete a plant; sections, parts, actions and recipes cascade."""
    plant = _load_plant(plant_id)
    if get_plant_repository().delete(plant_id):
        logger.info("Deleted plant %s (%s)", plant_id, plant.botanical_name)
        flash(f"Plant '{plant.botanical_name}' deleted.", 'success')
    else:
        flash("Plant could not be deleted.", 'error')
    return redirect(url_for('plants.list_plants'))


# ========================================
# Parts
# ========================================

def _part_form(form):
    return {
        'part_name': get_text(form, 'part_name'),
        'edible': get_bool(form, 'edible'),
        'harvest_time': get_text(form, 'harvest_time'),
        'storage_method': get_text(form, 'storage_method'),
        'processing_notes': get_text(form, 'processing_notes'),
    }


@plants_bp.route('/<int:plant_id>/parts/new', methods=['GET', 'POST'])
def new_part(plant_id):
    plant = _load_plant(plant_id)

    if request.method == 'GET':
        return render_template('plants/part_form.html', plant=plant, part=None, values={})

    values = _part_form(request.form)
    part_id, error = add_part(plant_id, **values)
    if part_id:
        flash(f"Part '{values['part_name']}' added.", 'success')
        return redirect(url_for('plants.detail', plant_id=plant_id))

    flash(error, 'error')
    return render_template('plants/part_form.html', plant=plant, part=None, values=values), 400


@plants_bp.route('/<int:plant_id>/parts/<int:part_id>/edit', methods=['GET', 'POST'])
def edit_part(plant_id, part_id):
    plant = _load_plant(plant_id)
    part = get_part(part_id)
    if not part or part['plant_id'] != plant_id:
        abort(404)

    if request.method == 'GET':
        return render_template('plants/part_form.html', plant=plant, part=part, values=part)

    values = _part_form(request.form)
    success, error = update_part(part_id, **values)
    if success:
        flash("Part updated.", 'success')
        return redirect(url_for('plants.detail', plant_id=plant_id))

    flash(error, 'error')
    return render_template('plants/part_form.html', plant=plant, part=part, values=values), 400


@plants_bp.route('/<int:plant_id>/parts/<int:part_id>/delete', methods=['POST'])
def remove_part(plant_id, part_id):
    part = get_part(part_id)
    if not part or part['plant_id'] != plant_id:
        abort(404)

    success, error = delete_part(part_id)
    if success:
        flash(f"Part '{part['part_name']}' deleted.", 'success')
    else:
        flash(error, 'error')
    return redirect(url_for('plants.detail', plant_id=plant_id))


# ========================================
# Herbal actions
# ========================================

@plants_bp.route('/<int:plant_id>/actions/add', methods=['POST'])
def add_action(plant_id):
    _load_plant(plant_id)

    errors = []
    action_id = get_int(request.form, 'action_id', errors, 'Action')
    part_id = get_int(request.form, 'plant_part_id', errors, 'Part')
    strength = get_int(request.form, 'strength', errors, 'Strength')
    if strength is None and not errors:
        strength = 5
    if action_id is None and not errors:
        errors.append("Action is required.")

    if errors:
        for error in errors:
            flash(error, 'error')
        return redirect(url_for('plants.detail', plant_id=plant_id))

    link_id, error = add_plant_action(
        plant_id, action_id, plant_part_id=part_id, strength=strength,
        notes=get_text(request.form, 'notes')
    )
    if link_id:
        flash("Action linked.", 'success')
    else:
        flash(error, 'error')
    return redirect(url_for('plants.detail', plant_id=plant_id))


@plants_bp.route('/<int:plant_id>/actions/<int:link_id>/remove', methods=['POST'])
def remove_action(plant_id, link_id):
    success, error = remove_plant_action(plant_id, link_id)
    if success:
        flash("Action removed.", 'success')
    else:
        flash(error, 'error')
    return redirect(url_for('plants.detail', plant_id=plant_id))


# ========================================
# Recipes
# ========================================

@plants_bp.route('/<int:plant_id>/recipes')
def recipes(plant_id):
    plant = _load_plant(plant_id)
    return render_template('plants/recipes.html', plant=plant, recipes=get_recipes(plant_id))


@plants_bp.route('/<int:plant_id>/recipes/new', methods=['GET', 'POST'])
def new_recipe(plant_id):
    plant = _load_plant(plant_id)

    if request.method == 'GET':
        return render_template('plants/recipe_form.html', plant=plant, values={})

    errors = []
    values = {
        'name': get_text(request.form, 'name'),
        'ingredients': get_text(request.form, 'ingredients'),
        'instructions': get_text(request.form, 'instructions'),
        'preparation_time_minutes': get_int(request.form, 'preparation_time_minutes', errors, 'Preparation time'),
        'servings': get_int(request.form, 'servings', errors, 'Servings'),
        'notes': get_text(request.form, 'notes'),
    }

    if not errors:
        recipe_id, error = add_recipe(plant_id, **values)
        if recipe_id:
            flash(f"Recipe '{values['name']}' added.", 'success')
            return redirect(url_for('plants.recipes', plant_id=plant_id))
        errors.append(error)

    for error in errors:
        flash(error, 'error')
    return render_template('plants/recipe_form.html', plant=plant, values=values), 400


@plants_bp.route('/<int:plant_id>/recipes/<int:recipe_id>/delete', methods=['POST'])
def remove_recipe(plant_id, recipe_id):
    success, error = delete_recipe(plant_id, recipe_id)
    if success:
        flash("Recipe deleted.", 'success')
    else:
        flash(error, 'error')
    return redirect(url_for('plants.recipes', plant_id=plant_id))
