"""
utils/validators.py — Input normalisation and form validation helpers.

Validates:
- Plant names (normalised for duplicate detection and search)
- Per-plant section forms (typed values from raw form strings)
- Garden records: plots, beds, plantings, crop rotations

Every validate_* helper accepts either a request.form MultiDict or a plain
dict decoded from JSON, and returns (values, errors). An empty errors list
means the values are ready to be written.
"""

import re
import unicodedata
from datetime import date
from typing import Optional, List, Dict, Any, Tuple

from plant_sections import DOSHAS, DOSHA_EFFECTS


SEASONS = ('Spring', 'Summer', 'Fall', 'Winter')
PLANTING_METHODS = ('direct_sow', 'transplant', 'cutting', 'division', 'bulb')
RECORD_STATUSES = ('active', 'fallow', 'inactive')


# ========================================
# Normalization Helper
# ========================================

def normalize_name(name: str) -> str:
    """
    Normalize a plant name for duplicate detection and searching.

    Rules:
    - lowercase
    - trim whitespace
    - remove diacritics (accents)
    - replace hyphens and punctuation with spaces
    - collapse multiple whitespace to single space

    Examples:
        "Ocimum basilicum" -> "ocimum basilicum"
        "Ocimum-Basilicum" -> "ocimum basilicum"
        "Échinacée" -> "echinacee"
        "  Holy   Basil  " -> "holy basil"
    """
    if not name:
        return ""

    result = name.lower().strip()

    # NFD decomposition separates base characters from combining marks
    result = unicodedata.normalize('NFD', result)
    result = ''.join(c for c in result if unicodedata.category(c) != 'Mn')

    result = re.sub(r'[-_.,;:\'\"()]+', ' ', result)
    result = re.sub(r'\s+', ' ', result)

    return result.strip()


# ========================================
# Raw value coercion
# ========================================

def _raw(data, key: str):
    value = data.get(key)
    if isinstance(value, str):
        value = value.strip()
        return value if value != '' else None
    return value


def get_text(data, key: str) -> Optional[str]:
    """Return a stripped string, or None when missing or blank."""
    value = _raw(data, key)
    if value is None:
        return None
    return str(value)


def get_int(data, key: str, errors: List[str], label: str) -> Optional[int]:
    value = _raw(data, key)
    if value is None:
        return None
    if isinstance(value, bool):
        errors.append(f"{label} must be a whole number.")
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        errors.append(f"{label} must be a whole number.")
        return None


def get_float(data, key: str, errors: List[str], label: str) -> Optional[float]:
    value = _raw(data, key)
    if value is None:
        return None
    if isinstance(value, bool):
        errors.append(f"{label} must be a number.")
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        errors.append(f"{label} must be a number.")
        return None


def get_bool(data, key: str) -> bool:
    """Checkbox semantics: present and not an explicit false value."""
    value = data.get(key)
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in ('1', 'true', 'on', 'yes')


def get_list(data, key: str) -> List[str]:
    """
    Split a comma or newline separated field into a clean list.

    JSON payloads may already carry a list, which is cleaned the same way.
    """
    value = data.get(key)
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        items = [str(v) for v in value]
    else:
        items = re.split(r'[,\n]', str(value))
    return [item.strip() for item in items if item and item.strip()]


def get_id_list(data, key: str, errors: List[str], label: str) -> List[int]:
    if hasattr(data, 'getlist'):
        raw_values = data.getlist(key)
    else:
        raw_values = data.get(key) or []
        if not isinstance(raw_values, (list, tuple)):
            raw_values = [raw_values]

    ids = []
    for raw in raw_values:
        if raw in (None, ''):
            continue
        try:
            ids.append(int(raw))
        except (TypeError, ValueError):
            errors.append(f"{label} contains an invalid selection.")
            return []
    # Keep order, drop duplicates
    return list(dict.fromkeys(ids))


def parse_iso_date(value) -> Optional[date]:
    if isinstance(value, date):
        return value
    if not value:
        return None
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        return None


# ========================================
# Section forms
# ========================================

def parse_section_form(section, data) -> Tuple[Dict[str, Any], List[str]]:
    """
    Convert submitted values into typed values for a plant section.

    Args:
        section: A plant_sections.Section describing the fields
        data: request.form or a JSON dict

    Returns:
        Tuple of (values, errors)
    """
    values = {}
    errors = []

    for field in section.fields:
        if field.kind in ('text', 'textarea'):
            value = get_text(data, field.name)
            if value is not None and field.max_length and len(value) > field.max_length:
                errors.append(f"{field.label} must be {field.max_length} characters or fewer.")
        elif field.kind == 'int':
            value = get_int(data, field.name, errors, field.label)
        elif field.kind == 'float':
            value = get_float(data, field.name, errors, field.label)
        elif field.kind == 'bool':
            value = get_bool(data, field.name)
        elif field.kind == 'date':
            value = get_text(data, field.name)
            if value is not None:
                parsed = parse_iso_date(value)
                if parsed is None:
                    errors.append(f"{field.label} must be a date (YYYY-MM-DD).")
                value = parsed.isoformat() if parsed else None
        elif field.kind == 'list':
            value = get_list(data, field.name)
        elif field.kind == 'select':
            if field.ref:
                value = get_int(data, field.name, errors, field.label)
            else:
                value = get_text(data, field.name)
                if value is not None and value not in field.choices:
                    errors.append(f"{field.label} has an invalid value.")
                    value = None
        elif field.kind == 'multiselect':
            value = get_id_list(data, field.name, errors, field.label)
        elif field.kind == 'dosha':
            value = {}
            nested = data.get(field.name) if isinstance(data.get(field.name), dict) else None
            for dosha in DOSHAS:
                if nested is not None:
                    effect = nested.get(dosha)
                else:
                    effect = get_text(data, f"{field.name}_{dosha.lower()}")
                if not effect:
                    continue
                if effect not in DOSHA_EFFECTS:
                    errors.append(f"{dosha} effect must be one of: {', '.join(DOSHA_EFFECTS)}.")
                    continue
                value[dosha] = effect
        else:
            value = get_text(data, field.name)

        if field.required and value in (None, '', [], {}):
            errors.append(f"{field.label} is required.")

        if field.min_value is not None and isinstance(value, (int, float)) and value < field.min_value:
            errors.append(f"{field.label} must be at least {field.min_value}.")
        if field.max_value is not None and isinstance(value, (int, float)) and value > field.max_value:
            errors.append(f"{field.label} must be at most {field.max_value}.")

        values[field.name] = value

    for low, high in section.ranges:
        if values.get(low) is not None and values.get(high) is not None and values[high] < values[low]:
            errors.append(f"{section.get_field(high).label} cannot be below "
                          f"{section.get_field(low).label}.")

    return values, errors


# ========================================
# Garden forms
# ========================================

def validate_plot(data) -> Tuple[Dict[str, Any], List[str]]:
    """Validate a plot form. The plot code is upper-cased."""
    errors = []
    plot_code = get_text(data, 'plot_code')
    values = {
        'plot_code': plot_code.upper() if plot_code else None,
        'name': get_text(data, 'name'),
        'size_sqm': get_float(data, 'size_sqm', errors, 'Size'),
        'orientation': get_text(data, 'orientation'),
        'sun_exposure': get_text(data, 'sun_exposure'),
        'irrigation_type': get_text(data, 'irrigation_type'),
        'soil_type': get_text(data, 'soil_type'),
        'status': get_text(data, 'status') or 'active',
        'notes': get_text(data, 'notes'),
    }

    if not values['plot_code']:
        errors.append("Plot code is required.")
    if values['size_sqm'] is not None and values['size_sqm'] <= 0:
        errors.append("Size must be a positive number.")
    if values['status'] not in RECORD_STATUSES:
        errors.append(f"Status must be one of: {', '.join(RECORD_STATUSES)}.")

    return values, errors


def validate_bed(data) -> Tuple[Dict[str, Any], List[str]]:
    """Validate a garden bed form; dimensions go through the Dimensions value object."""
    from models import Dimensions
    from plant_management.exceptions import DomainValidationError

    errors = []
    bed_code = get_text(data, 'bed_code')
    values = {
        'plot_id': get_int(data, 'plot_id', errors, 'Plot'),
        'bed_code': bed_code.upper() if bed_code else None,
        'width_cm': get_float(data, 'width_cm', errors, 'Width'),
        'length_cm': get_float(data, 'length_cm', errors, 'Length'),
        'height_cm': get_float(data, 'height_cm', errors, 'Height'),
        'soil_type': get_text(data, 'soil_type'),
        'is_raised': get_bool(data, 'is_raised'),
        'status': get_text(data, 'status') or 'active',
        'notes': get_text(data, 'notes'),
    }

    if not values['plot_id']:
        errors.append("Plot is required.")
    if not values['bed_code']:
        errors.append("Bed code is required.")
    if values['status'] not in RECORD_STATUSES:
        errors.append(f"Status must be one of: {', '.join(RECORD_STATUSES)}.")

    if values['width_cm'] is not None or values['length_cm'] is not None:
        try:
            Dimensions(values['width_cm'] or 0, values['length_cm'] or 0, values['height_cm'])
        except DomainValidationError as e:
            errors.append(str(e))
    elif values['height_cm'] is not None and values['height_cm'] <= 0:
        errors.append("Height must be greater than zero.")

    return values, errors


def validate_planting(data) -> Tuple[Dict[str, Any], List[str]]:
    """
    Validate a planting form.

    Plot, planting date and method are required; spacing, depth,
    quantity and area must be positive when given.
    """
    from models import PlantingDate
    from plant_management.exceptions import DomainValidationError

    errors = []
    values = {
        'plot_id': get_int(data, 'plot_id', errors, 'Plot'),
        'bed_id': get_int(data, 'bed_id', errors, 'Bed'),
        'plant_id': get_int(data, 'plant_id', errors, 'Plant'),
        'planting_date': get_text(data, 'planting_date'),
        'method': get_text(data, 'method'),
        'spacing_cm': get_float(data, 'spacing_cm', errors, 'Spacing'),
        'depth_cm': get_float(data, 'depth_cm', errors, 'Depth'),
        'quantity': get_int(data, 'quantity', errors, 'Quantity'),
        'area_sqm': get_float(data, 'area_sqm', errors, 'Area'),
        'notes': get_text(data, 'notes'),
    }

    if not values['plot_id']:
        errors.append("Plot is required.")

    if not values['planting_date']:
        errors.append("Planting date is required.")
    else:
        parsed = parse_iso_date(values['planting_date'])
        if parsed is None:
            errors.append("Planting date must be a valid date (YYYY-MM-DD).")
        else:
            try:
                values['planting_date'] = PlantingDate(parsed).iso
            except DomainValidationError as e:
                errors.append(str(e))

    if not values['method']:
        errors.append("Planting method is required.")
    elif values['method'] not in PLANTING_METHODS:
        errors.append(f"Planting method must be one of: {', '.join(PLANTING_METHODS)}.")

    for key, label in (('spacing_cm', 'Spacing'), ('depth_cm', 'Depth'),
                       ('quantity', 'Quantity'), ('area_sqm', 'Area')):
        if values[key] is not None and values[key] <= 0:
            errors.append(f"{label} must be a positive number.")

    return values, errors


def validate_crop_rotation(data) -> Tuple[Dict[str, Any], List[str]]:
    """Validate a crop rotation form. Families are de-duplicated, case-insensitively."""
    errors = []
    values = {
        'bed_id': get_int(data, 'bed_id', errors, 'Bed'),
        'season': get_text(data, 'season'),
        'year': get_int(data, 'year', errors, 'Year'),
        'plant_families': [],
        'notes': get_text(data, 'notes'),
    }

    seen = set()
    for family in get_list(data, 'plant_families'):
        key = family.lower()
        if key not in seen:
            seen.add(key)
            values['plant_families'].append(family)

    if not values['bed_id']:
        errors.append("Bed is required.")
    if not values['season']:
        errors.append("Season is required.")
    elif values['season'] not in SEASONS:
        errors.append(f"Season must be one of: {', '.join(SEASONS)}.")
    if values['year'] is None:
        if not any(e.startswith('Year') for e in errors):
            errors.append("Year is required.")
    elif values['year'] < 1900 or values['year'] > 2200:
        errors.append("Year must be between 1900 and 2200.")

    return values, errors
