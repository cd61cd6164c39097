"""
tests/test_garden.py — Garden models, form validation, data access and rotation checks.
"""

from datetime import date

import pytest

import garden_database as gdb
from models import Dimensions, PlantingDate, CropRotation, GardenBed, next_plot_code
from plant_management import (
    CreatePlantCommand, CreatePlantCommandHandler, DomainValidationError, get_plant_repository,
)
from rotation_engine import check_rotation
from utils.validators import validate_plot, validate_bed, validate_planting, validate_crop_rotation


# ========================================
# Value objects and records
# ========================================

class TestDimensions:

    def test_areas(self):
        dims = Dimensions(100, 100, 30)
        assert dims.area_cm2 == 10000
        assert dims.area_sqm == 1.0
        assert dims.width_inches == 39.4
        assert dims.area_sqft == 10.8
        assert dims.volume_cm3 == 300000

    def test_no_height(self):
        dims = Dimensions(120, 240)
        assert dims.area_sqm == 2.88
        assert dims.height_inches is None
        assert dims.volume_cm3 is None

    @pytest.mark.parametrize('width, length, height, message', [
        (0, 100, None, "Width must be greater than zero."),
        (100, -1, None, "Length must be greater than zero."),
        (100, 100, 0, "Height must be greater than zero."),
    ])
    def test_invalid(self, width, length, height, message):
        with pytest.raises(DomainValidationError, match=message):
            Dimensions(width, length, height)


class TestPlantingDate:

    @pytest.mark.parametrize('month, season', [
        (1, 'Winter'), (3, 'Spring'), (7, 'Summer'), (10, 'Fall'), (12, 'Winter'),
    ])
    def test_season(self, month, season):
        assert PlantingDate(date(2024, month, 15)).season == season

    def test_too_far_ahead(self):
        with pytest.raises(DomainValidationError, match="more than 5 years"):
            PlantingDate(date(date.today().year + 6, 1, 1))

    def test_from_string(self):
        assert PlantingDate.from_string(' 2024-05-01 ').iso == '2024-05-01'
        with pytest.raises(DomainValidationError):
            PlantingDate.from_string('May 1st')

    def test_is_past(self):
        assert PlantingDate(date(2024, 5, 1)).is_past(today=date(2024, 6, 1))
        assert not PlantingDate(date(2024, 5, 1)).is_past(today=date(2024, 4, 1))


class TestRecords:

    def test_next_plot_code(self):
        assert next_plot_code([]) == 'PLOT-1'
        assert next_plot_code(['PLOT-1', 'plot-7', 'Kitchen', None]) == 'PLOT-8'

    def test_rotation_families_decoded(self):
        assert CropRotation(plant_families='["Solanaceae"]').plant_families == ['Solanaceae']
        assert CropRotation(plant_families='not json').plant_families == []
        assert CropRotation().plant_families == []

    def test_bed_to_dict_area(self):
        bed = GardenBed(bed_code='B1', width_cm=120, length_cm=240, is_raised=1)
        data = bed.to_dict()
        assert data['is_raised'] is True
        assert data['area_sqm'] == 2.88
        assert GardenBed(bed_code='B2').to_dict()['area_sqm'] is None


# ========================================
# Form validation
# ========================================

class TestValidators:

    def test_plot(self):
        values, errors = validate_plot({'plot_code': ' plot-2 ', 'size_sqm': '12.5'})
        assert errors == []
        assert values['plot_code'] == 'PLOT-2'
        assert values['status'] == 'active'

    def test_plot_errors(self):
        _, errors = validate_plot({'size_sqm': '-3', 'status': 'sold'})
        assert "Plot code is required." in errors
        assert "Size must be a positive number." in errors
        assert errors[-1].startswith("Status must be one of")

    def test_bed(self):
        values, errors = validate_bed({'plot_id': '1', 'bed_code': 'b1', 'width_cm': '120',
                                       'length_cm': '240', 'is_raised': 'on'})
        assert errors == []
        assert values['bed_code'] == 'B1'
        assert values['is_raised'] is True

    def test_bed_errors(self):
        _, errors = validate_bed({'bed_code': 'B1', 'width_cm': '0', 'length_cm': '100'})
        assert "Plot is required." in errors
        assert "Width must be greater than zero." in errors

    def test_planting(self):
        values, errors = validate_planting({'plot_id': 1, 'planting_date': '2024-04-20',
                                            'method': 'transplant', 'quantity': '6'})
        assert errors == []
        assert values['quantity'] == 6

    def test_planting_errors(self):
        _, errors = validate_planting({'plot_id': '1', 'planting_date': '20/04/2024',
                                       'method': 'throw', 'spacing_cm': '0'})
        assert "Planting date must be a valid date (YYYY-MM-DD)." in errors
        assert errors[1].startswith("Planting method must be one of")
        assert "Spacing must be a positive number." in errors

    def test_crop_rotation_dedupes_families(self):
        values, errors = validate_crop_rotation({
            'bed_id': '1', 'season': 'Spring', 'year': '2024',
            'plant_families': 'Solanaceae, solanaceae, Brassicaceae',
        })
        assert errors == []
        assert values['plant_families'] == ['Solanaceae', 'Brassicaceae']

    def test_crop_rotation_errors(self):
        _, errors = validate_crop_rotation({'bed_id': '1', 'season': 'Autumn', 'year': 'soon'})
        assert errors == [
            "Year must be a whole number.",
            "Season must be one of: Spring, Summer, Fall, Winter.",
        ]


# ========================================
# Data access
# ========================================

@pytest.fixture
def plot_id(db_path):
    plot_id, error = gdb.create_plot(validate_plot({'plot_code': 'PLOT-1', 'name': 'Kitchen'})[0])
    assert error is None
    return plot_id


@pytest.fixture
def bed_id(plot_id):
    bed_id, error = gdb.create_bed(validate_bed({'plot_id': plot_id, 'bed_code': 'B1',
                                                 'width_cm': 120, 'length_cm': 240})[0])
    assert error is None
    return bed_id


def _rotation(bed_id, year, families, season='Spring'):
    values, errors = validate_crop_rotation({'bed_id': bed_id, 'season': season, 'year': year,
                                             'plant_families': families})
    assert errors == []
    rotation_id, error = gdb.create_crop_rotation(values)
    assert error is None
    return rotation_id


class TestGardenDatabase:

    def test_plots(self, plot_id):
        assert gdb.get_plot(plot_id).display_name == 'PLOT-1 - Kitchen'
        assert gdb.get_next_plot_code() == 'PLOT-2'
        assert gdb.create_plot({'plot_code': 'PLOT-1', 'status': 'active'}) == \
            (None, "A plot with this code already exists.")

    def test_update_missing_plot(self, db_path):
        assert gdb.update_plot(99, {'plot_code': 'PLOT-9', 'status': 'active'}) == \
            (False, "Plot not found.")

    def test_beds(self, plot_id, bed_id):
        assert gdb.get_plot(plot_id).bed_count == 1
        bed = gdb.get_bed(bed_id)
        assert bed.plot_code == 'PLOT-1'
        assert bed.dimensions.area_sqm == 2.88
        assert [b.bed_code for b in gdb.get_beds(plot_id)] == ['B1']

    def test_bed_errors(self, plot_id, bed_id):
        assert gdb.create_bed({'plot_id': plot_id, 'bed_code': 'B1', 'status': 'active'}) == \
            (None, "A bed with this code already exists.")
        assert gdb.create_bed({'plot_id': 999, 'bed_code': 'B9', 'status': 'active'}) == \
            (None, "The bed refers to a record that does not exist.")

    def test_plantings(self, plot_id, bed_id):
        planting_id, error = gdb.create_planting({
            'plot_id': plot_id, 'bed_id': bed_id, 'planting_date': '2024-04-20', 'method': 'transplant',
        })
        assert error is None
        planting = gdb.get_planting(planting_id)
        assert planting.bed_code == 'B1'
        assert planting.to_dict()['season'] == 'Spring'
        assert len(gdb.get_plantings(bed_id=bed_id)) == 1

    def test_planting_bed_must_be_in_plot(self, plot_id, bed_id):
        other_plot, _ = gdb.create_plot({'plot_code': 'PLOT-2', 'status': 'active'})
        assert gdb.create_planting({
            'plot_id': other_plot, 'bed_id': bed_id, 'planting_date': '2024-04-20', 'method': 'transplant',
        }) == (None, "The selected bed does not belong to the selected plot.")

    def test_rotation_unique_per_season(self, bed_id):
        _rotation(bed_id, 2024, 'Solanaceae')
        values, _ = validate_crop_rotation({'bed_id': bed_id, 'season': 'Spring', 'year': 2024})
        assert gdb.create_crop_rotation(values) == \
            (None, "A rotation for this bed, season and year already exists.")

    def test_rotation_families_stored_as_list(self, bed_id):
        rotation_id = _rotation(bed_id, 2024, 'Solanaceae, Fabaceae')
        assert gdb.get_crop_rotation(rotation_id).plant_families == ['Solanaceae', 'Fabaceae']

    def test_delete_plot_cascades(self, plot_id, bed_id):
        _rotation(bed_id, 2024, 'Solanaceae')
        assert gdb.delete_plot(plot_id) == (True, None)
        assert gdb.get_bed(bed_id) is None
        assert gdb.get_garden_counts() == {'plots': 0, 'garden_beds': 0, 'plantings': 0, 'crop_rotations': 0}
        assert gdb.delete_plot(plot_id) == (False, "Plot not found.")


# ========================================
# Rotation engine
# ========================================

class TestRotationEngine:

    def test_clean_rotation(self, bed_id):
        _rotation(bed_id, 2023, 'Solanaceae')
        assert check_rotation(bed_id, ['Fabaceae'], 2024) == []

    def test_last_year(self, bed_id):
        _rotation(bed_id, 2023, 'Solanaceae')
        warnings = check_rotation(bed_id, ['solanaceae', 'Fabaceae'], 2024)
        assert len(warnings) == 1
        assert warnings[0]['penalty'] == -20
        assert warnings[0]['years_ago'] == 1
        assert warnings[0]['message'] == "solanaceae was already grown in this bed last year."

    def test_outside_lookback(self, bed_id):
        _rotation(bed_id, 2019, 'Solanaceae')
        assert check_rotation(bed_id, ['Solanaceae'], 2024) == []

    def test_worst_penalty_first(self, bed_id):
        _rotation(bed_id, 2022, 'Solanaceae')
        _rotation(bed_id, 2024, 'Brassicaceae')
        warnings = check_rotation(bed_id, ['Solanaceae', 'Brassicaceae'], 2024)
        assert [(w['family'], w['penalty']) for w in warnings] == [
            ('Brassicaceae', -30), ('Solanaceae', -10),
        ]

    def test_edited_rotation_excluded(self, bed_id):
        rotation_id = _rotation(bed_id, 2024, 'Solanaceae')
        assert check_rotation(bed_id, ['Solanaceae'], 2024, exclude_rotation_id=rotation_id) == []

    def test_plantings_count_as_history(self, plot_id, bed_id):
        tomato_id = CreatePlantCommandHandler(get_plant_repository()).handle(
            CreatePlantCommand('Solanum lycopersicum', 'Tomato', family='Solanaceae')
        )
        gdb.create_planting({'plot_id': plot_id, 'bed_id': bed_id, 'plant_id': tomato_id,
                             'planting_date': '2022-05-01', 'method': 'transplant'})
        warnings = check_rotation(bed_id, ['Solanaceae'], 2025)
        assert warnings[0]['penalty'] == -5
        assert warnings[0]['message'] == "Solanaceae was already grown in this bed 3 years ago (2022)."
