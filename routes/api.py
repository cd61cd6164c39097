"""
routes/api.py — JSON API (CSRF-exempt).

Plants:
- GET /api/plants?q=&family=&limit=&offset= — List plants
- POST /api/plants — Create a plant
- GET /api/plants/search?q=&limit= — Ranked name search
- GET /api/plants/<id> — Plant with sections, parts, actions, recipes
- PUT /api/plants/<id> — Replace a plant's core data
- DELETE /api/plants/<id> — Delete a plant
- GET /api/plants/<id>/companions/<other_id> — Companion compatibility
- GET /api/plants/by-zone/<zone> — Plants hardy in a USDA zone
- GET /api/planting-dates?last_frost=YYYY-MM-DD — Sowing calendar

Garden (same shape for plots, beds, plantings, crop-rotations):
- GET|POST /api/garden/<kind>
- GET|PUT|DELETE /api/garden/<kind>/<id>
- GET /api/garden/plots/next-code
- GET /api/garden/beds/by-plot/<plot_id>

Responses: {'success': True, ...} or {'success': False, 'error': message}
with 400 (invalid input), 404 (missing), 409 (conflict), 500 (unexpected).
"""

import logging

from flask import Blueprint, request, jsonify

import garden_database
from plant_database import search_plants, get_all_sections, get_parts, get_plant_actions, get_recipes
from plant_management import (
    CreatePlantCommand, CreatePlantCommandHandler,
    UpdatePlantCommand, UpdatePlantCommandHandler,
    GetPlantByIdQuery, GetPlantByIdQueryHandler, PlantDto, PlantService,
    DomainValidationError, PlantAlreadyExistsError, PlantNotFoundError,
    get_plant_repository,
)
from rotation_engine import check_rotation
from utils.validators import (
    get_text, get_float,
    validate_plot, validate_bed, validate_planting, validate_crop_rotation,
)

logger = logging.getLogger(__name__)

api_bp = Blueprint('api', __name__, url_prefix='/api')

PLANT_TEXT_FIELDS = ('family', 'variety', 'cultivar', 'description', 'native_range',
                     'growth_habit', 'lifespan', 'hardiness_zones')


def _error(message, status):
    return jsonify({'success': False, 'error': message}), status


def _payload():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else None


def _parse_id(raw):
    """Positive integer id from a URL segment, or None."""
    if not raw.isdigit() or int(raw) < 1:
        return None
    return int(raw)


def _plant_fields(data):
    """Optional plant fields from a JSON body; returns (fields, errors)."""
    errors = []
    fields = {name: get_text(data, name) for name in PLANT_TEXT_FIELDS}
    fields['height_mature_cm'] = get_float(data, 'height_mature_cm', errors, 'Mature height')
    fields['spread_mature_cm'] = get_float(data, 'spread_mature_cm', errors, 'Mature spread')
    return fields, errors


@api_bp.errorhandler(Exception)
def handle_unexpected(error):
    code = getattr(error, 'code', None)
    if isinstance(code, int) and code < 500:
        return _error(getattr(error, 'description', str(error)), code)
    logger.exception("Unexpected API error on %s", request.path)
    return _error('Internal server error', 500)


# ========================================
# Plants
# ========================================

@api_bp.route('/plants', methods=['GET'])
def list_plants():
    limit = request.args.get('limit', 50, type=int)
    offset = request.args.get('offset', 0, type=int)
    if limit < 1 or limit > 500 or offset < 0:
        return _error('limit must be 1-500 and offset must be 0 or more', 400)

    term = request.args.get('q', '').strip() or None
    family = request.args.get('family', '').strip() or None

    repository = get_plant_repository()
    plants = repository.find_filtered(term, family, limit=limit, offset=offset)
    return jsonify({
        'success': True,
        'plants': [PlantDto.from_plant(p).to_dict() for p in plants],
        'total': repository.count(term=term, family=family),
        'limit': limit,
        'offset': offset,
    })


@api_bp.route('/plants', methods=['POST'])
def create_plant():
    data = _payload()
    if data is None:
        return _error('Expected a JSON object', 400)

    fields, errors = _plant_fields(data)
    if errors:
        return _error(' '.join(errors), 400)

    try:
        plant_id = CreatePlantCommandHandler(get_plant_repository()).handle(
            CreatePlantCommand(
                botanical_name=get_text(data, 'botanical_name') or '',
                common_name=get_text(data, 'common_name') or '',
                genus=get_text(data, 'genus'),
                species=get_text(data, 'species'),
                **fields
            )
        )
    except DomainValidationError as e:
        return _error(str(e), 400)
    except PlantAlreadyExistsError as e:
        return _error(str(e), 409)

    logger.info("Created plant %s via API", plant_id)
    plant = GetPlantByIdQueryHandler(get_plant_repository()).handle(GetPlantByIdQuery(plant_id))
    return jsonify({'success': True, 'plant_id': plant_id, 'plant': plant.to_dict()}), 201


@api_bp.route('/plants/search')
def search():
    query = request.args.get('q', '')
    limit = request.args.get('limit', 20, type=int)
    if limit < 1 or limit > 500:
        return _error('limit must be 1-500', 400)
    return jsonify({'success': True, 'results': search_plants(query, limit=limit)})


@api_bp.route('/plants/<plant_id>', methods=['GET'])
def get_plant(plant_id):
    plant_id = _parse_id(plant_id)
    if plant_id is None:
        return _error('Invalid plant ID', 400)

    plant = GetPlantByIdQueryHandler(get_plant_repository()).handle(GetPlantByIdQuery(plant_id))
    if plant is None:
        return _error('Plant not found', 404)

    return jsonify({
        'success': True,
        'plant': plant.to_dict(),
        'sections': get_all_sections(plant_id),
        'parts': get_parts(plant_id),
        'actions': get_plant_actions(plant_id),
        'recipes': get_recipes(plant_id),
    })


@api_bp.route('/plants/<plant_id>', methods=['PUT'])
def update_plant(plant_id):
    plant_id = _parse_id(plant_id)
    if plant_id is None:
        return _error('Invalid plant ID', 400)

    data = _payload()
    if data is None:
        return _error('Expected a JSON object', 400)

    fields, errors = _plant_fields(data)
    if errors:
        return _error(' '.join(errors), 400)

    try:
        plant = UpdatePlantCommandHandler(get_plant_repository()).handle(
            UpdatePlantCommand(
                plant_id=plant_id,
                botanical_name=get_text(data, 'botanical_name') or '',
                common_name=get_text(data, 'common_name') or '',
                **fields
            )
        )
    except PlantNotFoundError as e:
        return _error(str(e), 404)
    except DomainValidationError as e:
        return _error(str(e), 400)
    except PlantAlreadyExistsError as e:
        return _error(str(e), 409)

    logger.info("Updated plant %s via API", plant_id)
    return jsonify({'success': True, 'plant': PlantDto.from_plant(plant).to_dict()})


@api_bp.route('/plants/<plant_id>', methods=['DELETE'])
def delete_plant(plant_id):
    plant_id = _parse_id(plant_id)
    if plant_id is None:
        return _error('Invalid plant ID', 400)

    repository = get_plant_repository()
    plant = repository.find_by_id(plant_id)
    if plant is None:
        return _error('Plant not found', 404)

    repository.delete(plant_id)
    logger.info("Deleted plant %s via API", plant_id)
    return jsonify({
        'success': True,
        'message': f"Plant '{plant.botanical_name.value}' deleted",
    })


@api_bp.route('/plants/<int:plant_id>/companions/<int:other_id>')
def companions(plant_id, other_id):
    repository = get_plant_repository()
    plant_a = repository.find_by_id(plant_id)
    plant_b = repository.find_by_id(other_id)
    if plant_a is None or plant_b is None:
        return _error('Plant not found', 404)

    compatible, reason = PlantService(repository).check_companion_compatibility(plant_a, plant_b)
    return jsonify({
        'success': True,
        'plant_id': plant_id,
        'other_id': other_id,
        'compatible': compatible,
        'reason': reason,
    })


@api_bp.route('/plants/by-zone/<zone>')
def plants_by_zone(zone):
    plants = PlantService(get_plant_repository()).find_plants_by_hardiness_zone(zone)
    return jsonify({
        'success': True,
        'zone': zone,
        'plants': [PlantDto.from_plant(p).to_dict() for p in plants],
    })


@api_bp.route('/planting-dates')
def planting_dates():
    last_frost = request.args.get('last_frost', '').strip()
    if not last_frost:
        return _error('last_frost is required (YYYY-MM-DD)', 400)
    try:
        dates = PlantService(get_plant_repository()).calculate_planting_dates(last_frost)
    except ValueError:
        return _error('last_frost must be a valid date (YYYY-MM-DD)', 400)
    return jsonify({'success': True, 'dates': dates})


# ========================================
# Garden
# ========================================

# kind -> (validator, getters and writers, record label)
GARDEN_KINDS = {
    'plots': (validate_plot, garden_database.get_plots, garden_database.get_plot,
              garden_database.create_plot, garden_database.update_plot,
              garden_database.delete_plot, 'Plot'),
    'beds': (validate_bed, garden_database.get_beds, garden_database.get_bed,
             garden_database.create_bed, garden_database.update_bed,
             garden_database.delete_bed, 'Bed'),
    'plantings': (validate_planting, garden_database.get_plantings, garden_database.get_planting,
                  garden_database.create_planting, garden_database.update_planting,
                  garden_database.delete_planting, 'Planting'),
    'crop-rotations': (validate_crop_rotation, garden_database.get_crop_rotations,
                       garden_database.get_crop_rotation, garden_database.create_crop_rotation,
                       garden_database.update_crop_rotation, garden_database.delete_crop_rotation,
                       'Crop rotation'),
}


def _kind(kind):
    return GARDEN_KINDS.get(kind)


def _write_status(error: str) -> int:
    """Map a data-access error message to an HTTP status."""
    if 'already exists' in error or error.startswith('Integrity error'):
        return 409
    if 'not found' in error.lower():
        return 404
    return 400


def _rotation_warnings(kind, values, record_id):
    if kind != 'crop-rotations':
        return None
    return check_rotation(values['bed_id'], values['plant_families'], values['year'],
                          exclude_rotation_id=record_id)


@api_bp.route('/garden/plots/next-code')
def next_plot_code():
    return jsonify({'success': True, 'plot_code': garden_database.get_next_plot_code()})


@api_bp.route('/garden/beds/by-plot/<int:plot_id>')
def beds_by_plot(plot_id):
    if garden_database.get_plot(plot_id) is None:
        return _error('Plot not found', 404)
    return jsonify({
        'success': True,
        'beds': [b.to_dict() for b in garden_database.get_beds(plot_id)],
    })


@api_bp.route('/garden/<kind>', methods=['GET'])
def list_garden(kind):
    spec = _kind(kind)
    if spec is None:
        return _error('Not found', 404)
    lister = spec[1]

    if kind == 'beds':
        records = lister(request.args.get('plot_id', type=int))
    elif kind == 'plantings':
        records = lister(request.args.get('plot_id', type=int), request.args.get('bed_id', type=int))
    elif kind == 'crop-rotations':
        records = lister(request.args.get('bed_id', type=int))
    else:
        records = lister()

    return jsonify({'success': True, 'items': [r.to_dict() for r in records]})


@api_bp.route('/garden/<kind>', methods=['POST'])
def create_garden(kind):
    spec = _kind(kind)
    if spec is None:
        return _error('Not found', 404)
    validate, _, getter, creator, _, _, label = spec

    data = _payload()
    if data is None:
        return _error('Expected a JSON object', 400)

    values, errors = validate(data)
    if errors:
        return _error(' '.join(errors), 400)

    record_id, error = creator(values)
    if not record_id:
        status = _write_status(error)
        return _error(error, 409 if status == 409 else 400)

    body = {'success': True, 'id': record_id, 'item': getter(record_id).to_dict()}
    warnings = _rotation_warnings(kind, values, record_id)
    if warnings is not None:
        body['warnings'] = warnings
    logger.info("%s %s created via API", label, record_id)
    return jsonify(body), 201


@api_bp.route('/garden/<kind>/<int:record_id>', methods=['GET'])
def get_garden(kind, record_id):
    spec = _kind(kind)
    if spec is None:
        return _error('Not found', 404)
    record = spec[2](record_id)
    if record is None:
        return _error(f'{spec[6]} not found', 404)
    return jsonify({'success': True, 'item': record.to_dict()})


@api_bp.route('/garden/<kind>/<int:record_id>', methods=['PUT'])
def update_garden(kind, record_id):
    spec = _kind(kind)
    if spec is None:
        return _error('Not found', 404)
    validate, _, getter, _, updater, _, label = spec

    if getter(record_id) is None:
        return _error(f'{label} not found', 404)

    data = _payload()
    if data is None:
        return _error('Expected a JSON object', 400)

    values, errors = validate(data)
    if errors:
        return _error(' '.join(errors), 400)

    success, error = updater(record_id, values)
    if not success:
        return _error(error, _write_status(error))

    body = {'success': True, 'item': getter(record_id).to_dict()}
    warnings = _rotation_warnings(kind, values, record_id)
    if warnings is not None:
        body['warnings'] = warnings
    return jsonify(body)


@api_bp.route('/garden/<kind>/<int:record_id>', methods=['DELETE'])
def delete_garden(kind, record_id):
    spec = _kind(kind)
    if spec is None:
        return _error('Not found', 404)

    success, error = spec[5](record_id)
    if not success:
        return _error(error, _write_status(error))
    return jsonify({'success': True, 'message': f'{spec[6]} deleted'})
