"""
tests/test_routes.py — Admin HTML pages: plants, sections, parts, actions, recipes, garden.
"""

import io

from plant_database import (
    get_section, get_parts, get_plant_actions, get_recipes, create_herbal_action, add_part,
)
from plant_management import get_plant_repository


BASIL_FORM = {
    'botanical_name': 'Ocimum basilicum',
    'common_name': 'Basil',
    'family': 'Lamiaceae',
    'height_mature_cm': '60',
}


# ========================================
# Plants
# ========================================

class TestPlantPages:

    def test_catalogue_pages(self, client, basil_id):
        assert client.get('/admin/plants/').status_code == 200
        rv = client.get('/admin/plants/list?q=basil')
        assert rv.status_code == 200
        assert b'Ocimum basilicum' in rv.data

    def test_list_filters_by_family(self, client, basil_id):
        rv = client.get('/admin/plants/list?family=Solanaceae')
        assert b'Ocimum basilicum' not in rv.data

    def test_list_out_of_range_page(self, client, basil_id):
        assert client.get('/admin/plants/list?page=50').status_code == 200

    def test_create(self, client):
        rv = client.post('/admin/plants/new', data=BASIL_FORM)
        assert rv.status_code == 302
        plant = get_plant_repository().find_by_botanical_name('Ocimum basilicum')
        assert rv.headers['Location'].endswith(f'/admin/plants/{plant.id.value}')

    def test_create_invalid(self, client):
        rv = client.post('/admin/plants/new', data=dict(BASIL_FORM, botanical_name='ocimum basilicum'))
        assert rv.status_code == 400
        assert b'Genus must start with an uppercase letter.' in rv.data

    def test_create_bad_height(self, client):
        rv = client.post('/admin/plants/new', data=dict(BASIL_FORM, height_mature_cm='tall'))
        assert rv.status_code == 400
        assert b'Mature height must be a number.' in rv.data

    def test_create_duplicate(self, client, basil_id):
        rv = client.post('/admin/plants/new', data=BASIL_FORM)
        assert rv.status_code == 400
        assert b'already exists' in rv.data

    def test_detail(self, client, basil_id):
        rv = client.get(f'/admin/plants/{basil_id}')
        assert rv.status_code == 200
        assert b'Ocimum basilicum' in rv.data
        assert b'23.6 in' in rv.data

    def test_detail_missing(self, client):
        rv = client.get('/admin/plants/999')
        assert rv.status_code == 404
        assert b'Page not found' in rv.data

    def test_edit(self, client, basil_id):
        assert client.get(f'/admin/plants/{basil_id}/edit').status_code == 200
        rv = client.post(f'/admin/plants/{basil_id}/edit', data=dict(BASIL_FORM, common_name='Sweet basil'),
                         follow_redirects=True)
        assert rv.status_code == 200
        assert b'Plant updated.' in rv.data
        assert get_plant_repository().find_by_id(basil_id).common_name.value == 'Sweet basil'

    def test_edit_missing(self, client):
        assert client.post('/admin/plants/999/edit', data=BASIL_FORM).status_code == 404

    def test_delete(self, client, basil_id):
        rv = client.post(f'/admin/plants/{basil_id}/delete')
        assert rv.status_code == 302
        assert get_plant_repository().find_by_id(basil_id) is None


# ========================================
# Sections
# ========================================

class TestSectionPages:

    def test_view_and_edit_forms(self, client, basil_id):
        for key in ('growing', 'seed_saving', 'germination', 'planting_guide', 'culinary',
                    'medicinal', 'tcm', 'ayurvedic', 'western'):
            assert client.get(f'/admin/plants/{basil_id}/{key}').status_code == 200
            assert client.get(f'/admin/plants/{basil_id}/{key}/edit').status_code == 200

    def test_unknown_section(self, client, basil_id):
        assert client.get(f'/admin/plants/{basil_id}/astrology').status_code == 404

    def test_section_of_missing_plant(self, client):
        assert client.get('/admin/plants/999/growing').status_code == 404

    def test_save(self, client, basil_id):
        rv = client.post(f'/admin/plants/{basil_id}/culinary/edit', data={
            'cuisines': 'Italian, Thai',
            'flavor_profile': 'Sweet',
        })
        assert rv.status_code == 302
        assert get_section(basil_id, 'culinary')['cuisines'] == ['Italian', 'Thai']

    def test_save_multiselect(self, client, basil_id):
        rv = client.post(f'/admin/plants/{basil_id}/western/edit', data={
            'categories': ['1', '2'],
            'evidence_level': 'Moderate',
        })
        assert rv.status_code == 302
        assert get_section(basil_id, 'western')['categories'] == [1, 2]

    def test_save_planting_guide(self, client, basil_id):
        rv = client.post(f'/admin/plants/{basil_id}/planting_guide/edit', data={
            'spring_planting_start': '2024-05-01',
            'spring_planting_end': '2024-06-15',
            'direct_sow_after_frost': 'on',
            'frost_tolerance': 'Low',
            'companion_plants': 'Tomato, Pepper',
        })
        assert rv.status_code == 302
        guide = get_section(basil_id, 'planting_guide')
        assert guide['spring_planting_start'] == '2024-05-01'
        assert guide['direct_sow_after_frost'] is True
        assert guide['companion_plants'] == ['Tomato', 'Pepper']

        view = client.get(f'/admin/plants/{basil_id}/planting_guide')
        assert b'2024-06-15' in view.data

    def test_planting_window_reversed(self, client, basil_id):
        rv = client.post(f'/admin/plants/{basil_id}/planting_guide/edit', data={
            'fall_planting_start': '2024-09-15',
            'fall_planting_end': '2024-08-01',
        })
        assert rv.status_code == 400
        assert b'Fall planting until cannot be below Fall planting from.' in rv.data

    def test_required_field(self, client, basil_id):
        rv = client.post(f'/admin/plants/{basil_id}/medicinal/edit', data={'dosage': '1 cup'})
        assert rv.status_code == 400
        assert b'Traditional uses is required.' in rv.data

    def test_delete(self, client, basil_id):
        client.post(f'/admin/plants/{basil_id}/growing/edit', data={'zone_range': '10-11'})
        rv = client.post(f'/admin/plants/{basil_id}/growing/delete', follow_redirects=True)
        assert b'Growing requirements cleared.' in rv.data
        assert get_section(basil_id, 'growing') is None


# ========================================
# Parts / actions / recipes
# ========================================

class TestPlantChildren:

    def test_add_part(self, client, basil_id):
        assert client.get(f'/admin/plants/{basil_id}/parts/new').status_code == 200
        rv = client.post(f'/admin/plants/{basil_id}/parts/new', data={'part_name': 'Leaf', 'edible': 'on'})
        assert rv.status_code == 302
        assert get_parts(basil_id)[0]['edible'] is True

        rv = client.post(f'/admin/plants/{basil_id}/parts/new', data={'part_name': 'leaf'})
        assert rv.status_code == 400

    def test_edit_part_of_other_plant(self, client, basil_id):
        part_id, _ = add_part(basil_id, 'Leaf')
        other = client.post('/admin/plants/new', data={'botanical_name': 'Mentha piperita',
                                                        'common_name': 'Peppermint'})
        other_id = int(other.headers['Location'].rsplit('/', 1)[1])
        assert client.get(f'/admin/plants/{other_id}/parts/{part_id}/edit').status_code == 404

    def test_link_action(self, client, basil_id):
        action_id, _ = create_herbal_action('Galactagogue')
        rv = client.post(f'/admin/plants/{basil_id}/actions/add',
                         data={'action_id': str(action_id), 'strength': '8'}, follow_redirects=True)
        assert b'Action linked.' in rv.data
        assert get_plant_actions(basil_id)[0]['strength'] == 8

    def test_link_action_bad_strength(self, client, basil_id):
        action_id, _ = create_herbal_action('Galactagogue')
        rv = client.post(f'/admin/plants/{basil_id}/actions/add',
                         data={'action_id': str(action_id), 'strength': '12'}, follow_redirects=True)
        assert b'Strength must be between 1 and 10.' in rv.data
        assert get_plant_actions(basil_id) == []

    def test_recipes(self, client, basil_id):
        rv = client.post(f'/admin/plants/{basil_id}/recipes/new', data={
            'name': 'Pesto', 'ingredients': 'Basil, oil', 'instructions': 'Blend.', 'servings': '4',
        })
        assert rv.status_code == 302
        rv = client.get(f'/admin/plants/{basil_id}/recipes')
        assert b'Pesto' in rv.data

        recipe_id = get_recipes(basil_id)[0]['id']
        client.post(f'/admin/plants/{basil_id}/recipes/{recipe_id}/delete')
        assert get_recipes(basil_id) == []

    def test_recipe_missing_instructions(self, client, basil_id):
        rv = client.post(f'/admin/plants/{basil_id}/recipes/new', data={'name': 'Pesto', 'ingredients': 'Basil'})
        assert rv.status_code == 400


class TestActionPages:

    def test_list_and_create(self, client):
        assert client.get('/admin/actions/').status_code == 200
        rv = client.post('/admin/actions/new', data={'name': 'Galactagogue'}, follow_redirects=True)
        assert b'Galactagogue' in rv.data

    def test_duplicate(self, client):
        rv = client.post('/admin/actions/new', data={'name': 'Carminative'})
        assert rv.status_code == 400

    def test_delete_linked(self, client, basil_id):
        action_id, _ = create_herbal_action('Galactagogue')
        client.post(f'/admin/plants/{basil_id}/actions/add', data={'action_id': str(action_id)})
        rv = client.post(f'/admin/actions/{action_id}/delete', follow_redirects=True)
        assert b'cannot be deleted' in rv.data

    def test_missing(self, client):
        assert client.get('/admin/actions/9999/edit').status_code == 404
        assert client.post('/admin/actions/9999/delete').status_code == 404


# ========================================
# Garden
# ========================================

class TestGardenPages:

    def _plot_and_bed(self, client):
        client.post('/admin/garden/plots/new', data={'plot_code': 'PLOT-1', 'status': 'active'})
        client.post('/admin/garden/beds/new', data={'plot_id': '1', 'bed_code': 'B1', 'status': 'active'})

    def test_list_pages(self, client):
        for url in ('/admin/garden/plots', '/admin/garden/beds', '/admin/garden/plantings',
                    '/admin/garden/crop-rotations', '/admin/garden/beds/new',
                    '/admin/garden/plantings/new', '/admin/garden/crop-rotations/new'):
            assert client.get(url).status_code == 200, url

    def test_new_plot_suggests_code(self, client):
        assert b'PLOT-1' in client.get('/admin/garden/plots/new').data

    def test_plot_validation(self, client):
        rv = client.post('/admin/garden/plots/new', data={'plot_code': '', 'status': 'active'})
        assert rv.status_code == 400
        assert b'Plot code is required.' in rv.data

    def test_plot_and_bed(self, client):
        self._plot_and_bed(client)
        assert b'B1' in client.get('/admin/garden/beds?plot_id=1').data
        assert client.get('/admin/garden/plots/1/edit').status_code == 200
        assert client.get('/admin/garden/beds/1/edit').status_code == 200

    def test_planting(self, client, basil_id):
        self._plot_and_bed(client)
        rv = client.post('/admin/garden/plantings/new', data={
            'plot_id': '1', 'bed_id': '1', 'plant_id': str(basil_id),
            'planting_date': '2024-05-01', 'method': 'transplant',
        }, follow_redirects=True)
        assert b'Planting recorded.' in rv.data

    def test_rotation_warning(self, client):
        self._plot_and_bed(client)
        client.post('/admin/garden/crop-rotations/new', data={
            'bed_id': '1', 'season': 'Spring', 'year': '2023', 'plant_families': 'Solanaceae',
        })
        rv = client.post('/admin/garden/crop-rotations/new', data={
            'bed_id': '1', 'season': 'Spring', 'year': '2024', 'plant_families': 'Solanaceae',
        }, follow_redirects=True)
        assert b'Crop rotation recorded.' in rv.data
        assert b'(rotation penalty -20)' in rv.data

    def test_missing_records(self, client):
        for url in ('/admin/garden/plots/9/edit', '/admin/garden/beds/9/edit',
                    '/admin/garden/plantings/9/edit', '/admin/garden/crop-rotations/9/edit'):
            assert client.get(url).status_code == 404, url


# ========================================
# Export / import / backup
# ========================================

class TestExportPages:

    def test_index(self, client):
        assert client.get('/export/').status_code == 200

    def test_json_download(self, client, basil_id):
        rv = client.get('/export/plants.json')
        assert rv.status_code == 200
        assert rv.mimetype == 'application/json'
        assert 'attachment' in rv.headers['Content-Disposition']
        assert [p['botanical_name'] for p in rv.get_json()['plants']] == ['Ocimum basilicum']

    def test_excel_download_backs_up_first(self, client, basil_id, tmp_path):
        rv = client.get('/export/plants.xlsx')
        assert rv.status_code == 200
        assert rv.mimetype == 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
        assert rv.data[:2] == b'PK'
        backups = list((tmp_path / 'backups').glob('plant_kb_*_export.db'))
        assert len(backups) == 1

    def test_import(self, client):
        payload = b'{"plants": [{"botanical_name": "Mentha piperita", "common_name": "Peppermint"}]}'
        rv = client.post('/export/import', data={
            'mode': 'merge',
            'file': (io.BytesIO(payload), 'plants.json'),
        }, content_type='multipart/form-data', follow_redirects=True)
        assert b'Import finished: 1 added, 0 updated, 0 skipped, 0 errors.' in rv.data
        assert get_plant_repository().find_by_botanical_name('Mentha piperita') is not None

    def test_import_invalid_json(self, client):
        rv = client.post('/export/import', data={
            'file': (io.BytesIO(b'{not json'), 'plants.json'),
        }, content_type='multipart/form-data', follow_redirects=True)
        assert b'Invalid JSON file' in rv.data

    def test_import_without_file(self, client):
        rv = client.post('/export/import', data={'mode': 'merge'}, follow_redirects=True)
        assert b'No file selected.' in rv.data

    def test_backup(self, client):
        rv = client.post('/export/backup', follow_redirects=True)
        assert b'Backup created: plant_kb_' in rv.data
        assert b'manual' in rv.data
