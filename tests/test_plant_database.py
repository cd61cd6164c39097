"""
tests/test_plant_database.py — Tests for the plant database module.

Tests cover:
- Normalization function
- Detail sections (typed values, reference links, required fields)
- Plant parts, herbal actions and recipes
- Search ranking
- Catalogue statistics and sample data
- JSON import/export
"""

import os

import pytest

from database import get_reference_options
from plant_database import (
    get_section, get_all_sections, save_section, delete_section,
    get_parts, get_part, add_part, update_part, delete_part,
    get_herbal_actions, create_herbal_action, update_herbal_action, delete_herbal_action,
    get_plant_actions, add_plant_action, remove_plant_action,
    get_recipes, add_recipe, delete_recipe,
    get_plant_stats, get_families, get_plant_choices,
    search_plants, export_plants_json, import_plants_json, seed_sample_plants,
)
from plant_management import (
    CreatePlantCommand, CreatePlantCommandHandler, get_plant_repository,
)
from plant_sections import SECTIONS
from utils.backup import list_backups
from utils.validators import normalize_name, parse_section_form


def create_plant(botanical_name, common_name, **kwargs):
    return CreatePlantCommandHandler(get_plant_repository()).handle(
        CreatePlantCommand(botanical_name, common_name, **kwargs)
    )


def ref_id(table, name):
    for option in get_reference_options(table):
        if option['name'] == name:
            return option['id']
    raise LookupError(name)


# ========================================
# Normalization Tests
# ========================================

class TestNormalization:
    """Tests for the normalize_name function."""

    def test_basic_lowercase(self):
        assert normalize_name("BASIL") == "basil"
        assert normalize_name("Ocimum Basilicum") == "ocimum basilicum"

    def test_trim_whitespace(self):
        assert normalize_name("  basil  ") == "basil"
        assert normalize_name("\tbasil\n") == "basil"

    def test_collapse_whitespace(self):
        assert normalize_name("holy   basil") == "holy basil"

    def test_remove_diacritics(self):
        assert normalize_name("Échinacée") == "echinacee"
        assert normalize_name("Mélisse") == "melisse"

    def test_remove_hyphens_punctuation(self):
        assert normalize_name("Ocimum-Basilicum") == "ocimum basilicum"
        assert normalize_name("Ocimum basilicum var. thyrsiflora") == "ocimum basilicum var thyrsiflora"
        assert normalize_name("basil (sweet)") == "basil sweet"

    def test_empty_string(self):
        assert normalize_name("") == ""
        assert normalize_name(None) == ""


# ========================================
# Section Tests
# ========================================

class TestSections:

    def test_unfilled_section_is_none(self, basil_id):
        assert get_section(basil_id, 'growing') is None
        assert set(get_all_sections(basil_id)) == set(SECTIONS)

    def test_unknown_section_key(self, basil_id):
        with pytest.raises(KeyError):
            get_section(basil_id, 'astrology')
        assert save_section(basil_id, 'astrology', {}) == (False, "Unknown section.")

    def test_save_and_read_typed_values(self, basil_id):
        values, errors = parse_section_form(SECTIONS['growing'], {
            'zone_range': '10-11',
            'soil_ph_min': '6.0',
            'soil_ph_max': '7.5',
            'light_requirements': 'Full sun',
            'days_to_maturity': '60',
        })
        assert errors == []
        assert save_section(basil_id, 'growing', values) == (True, None)

        growing = get_section(basil_id, 'growing')
        assert growing['soil_ph_min'] == 6.0
        assert growing['days_to_maturity'] == 60
        assert growing['light_requirements'] == 'Full sun'
        assert growing['water_requirements'] is None

    def test_save_replaces_existing(self, basil_id):
        save_section(basil_id, 'culinary', {'cuisines': ['Italian', 'Thai']})
        save_section(basil_id, 'culinary', {'cuisines': ['Thai'], 'flavor_profile': 'Sweet, peppery'})

        culinary = get_section(basil_id, 'culinary')
        assert culinary['cuisines'] == ['Thai']
        assert culinary['edible_parts'] == []
        assert culinary['flavor_profile'] == 'Sweet, peppery'

    def test_reference_links(self, basil_id):
        warm = ref_id('tcm_temperatures', 'Warm')
        pungent = ref_id('tcm_tastes', 'Pungent')
        lung = ref_id('tcm_meridians', 'Lung')
        success, _ = save_section(basil_id, 'tcm', {
            'temperature_id': warm, 'tastes': [pungent], 'meridians': [lung],
        })
        assert success

        tcm = get_section(basil_id, 'tcm')
        assert tcm['temperature_id_name'] == 'Warm'
        assert tcm['tastes'] == [pungent]
        assert tcm['tastes_names'] == ['Pungent']
        assert tcm['meridians_names'] == ['Lung']

    def test_dosha_effects(self, basil_id):
        values, errors = parse_section_form(SECTIONS['ayurvedic'], {
            'dosha_effects_vata': 'Decreases',
            'dosha_effects_pitta': 'Increases',
        })
        assert errors == []
        save_section(basil_id, 'ayurvedic', values)
        assert get_section(basil_id, 'ayurvedic')['dosha_effects'] == {
            'Vata': 'Decreases', 'Pitta': 'Increases',
        }

    def test_invalid_dosha_effect(self):
        _, errors = parse_section_form(SECTIONS['ayurvedic'], {'dosha_effects_kapha': 'Doubles'})
        assert errors and errors[0].startswith('Kapha effect must be one of')

    def test_required_field(self, basil_id):
        assert save_section(basil_id, 'medicinal', {}) == (False, "Traditional uses is required.")

    def test_range_checks(self):
        _, errors = parse_section_form(SECTIONS['growing'], {'soil_ph_max': '15', 'days_to_maturity': 'soon'})
        assert "Soil pH (max) must be at most 14." in errors
        assert "Days to maturity must be a whole number." in errors

    def test_germination_guide(self, basil_id):
        values, errors = parse_section_form(SECTIONS['germination'], {
            'soil_temp_min_c': '18',
            'soil_temp_max_c': '27',
            'days_to_germination_min': '5',
            'days_to_germination_max': '10',
            'light_requirement': 'Needs light',
            'indoor_sowing_weeks_before_frost': '6',
            'stratification_required': 'on',
        })
        assert errors == []
        assert save_section(basil_id, 'germination', values) == (True, None)

        guide = get_section(basil_id, 'germination')
        assert guide['soil_temp_max_c'] == 27.0
        assert guide['days_to_germination_max'] == 10
        assert guide['stratification_required'] is True
        assert guide['scarification_required'] is False

    def test_reversed_ranges(self):
        _, errors = parse_section_form(SECTIONS['germination'], {
            'days_to_germination_min': '14', 'days_to_germination_max': '7',
            'spring_start_week': '60',
        })
        assert errors == [
            "Spring sowing from (week) must be at most 53.",
            "Days to germination (max) cannot be below Days to germination (min).",
        ]

    def test_planting_guide_dates(self):
        values, errors = parse_section_form(SECTIONS['planting_guide'], {
            'indoor_sowing_start': ' 2024-03-01 ',
            'spring_planting_start': '01/05/2024',
        })
        assert values['indoor_sowing_start'] == '2024-03-01'
        assert values['spring_planting_start'] is None
        assert errors == ["Spring planting from must be a date (YYYY-MM-DD)."]

    def test_missing_plant(self, db_path):
        assert save_section(999, 'growing', {}) == (False, "Plant not found.")

    def test_unknown_reference_id(self, basil_id):
        success, error = save_section(basil_id, 'tcm', {'temperature_id': 9999})
        assert not success
        assert error == "One of the selected reference values does not exist."

    def test_delete_section(self, basil_id):
        save_section(basil_id, 'western', {'tastes': [], 'active_compounds': ['Eugenol']})
        assert delete_section(basil_id, 'western') == (True, None)
        assert get_section(basil_id, 'western') is None
        assert delete_section(basil_id, 'western') == (False, "Section not found.")

    def test_sections_removed_with_plant(self, basil_id):
        save_section(basil_id, 'growing', {'zone_range': '10-11'})
        get_plant_repository().delete(basil_id)
        assert get_section(basil_id, 'growing') is None


# ========================================
# Parts / actions / recipes
# ========================================

class TestParts:

    def test_add_and_list(self, basil_id):
        part_id, error = add_part(basil_id, 'Leaf', edible=True, harvest_time='Summer')
        assert error is None
        parts = get_parts(basil_id)
        assert len(parts) == 1
        assert parts[0]['edible'] is True
        assert get_part(part_id)['harvest_time'] == 'Summer'

    def test_name_required(self, basil_id):
        assert add_part(basil_id, '  ') == (None, "Part name is required.")

    def test_duplicate_ignores_case(self, basil_id):
        add_part(basil_id, 'Leaf')
        part_id, error = add_part(basil_id, 'leaf')
        assert part_id is None
        assert error == "This plant already has a part named 'leaf'."

    def test_missing_plant(self, db_path):
        assert add_part(999, 'Leaf') == (None, "Plant not found.")

    def test_update_and_delete(self, basil_id):
        leaf_id, _ = add_part(basil_id, 'Leaf')
        flower_id, _ = add_part(basil_id, 'Flower')

        assert update_part(leaf_id, 'Leaves', edible=True) == (True, None)
        assert get_part(leaf_id)['part_name'] == 'Leaves'
        assert update_part(flower_id, 'leaves')[0] is False
        assert update_part(999, 'Root') == (False, "Part not found.")

        assert delete_part(flower_id) == (True, None)
        assert delete_part(flower_id) == (False, "Part not found.")


class TestHerbalActions:

    def test_reference_list_seeded(self, db_path):
        names = [a['name'] for a in get_herbal_actions()]
        assert 'Carminative' in names
        assert names == sorted(names)

    def test_create_duplicate(self, db_path):
        action_id, error = create_herbal_action('Galactagogue', 'Promotes milk flow')
        assert action_id and error is None
        assert create_herbal_action('galactagogue') == (None, "An action named 'galactagogue' already exists.")
        assert create_herbal_action('') == (None, "Action name is required.")

    def test_update(self, db_path):
        action_id, _ = create_herbal_action('Galactagogue')
        assert update_herbal_action(action_id, 'Galactogogue', 'Spelling variant') == (True, None)
        assert update_herbal_action(9999, 'Anything') == (False, "Action not found.")

    def test_link_rules(self, basil_id):
        action_id, _ = create_herbal_action('Galactagogue')
        leaf_id, _ = add_part(basil_id, 'Leaf')
        other_id = create_plant('Mentha piperita', 'Peppermint')
        mint_leaf_id, _ = add_part(other_id, 'Leaf')

        assert add_plant_action(basil_id, action_id, strength=11) == (None, "Strength must be between 1 and 10.")
        assert add_plant_action(basil_id, action_id, plant_part_id=mint_leaf_id)[1] == \
            "The selected part does not belong to this plant."
        assert add_plant_action(basil_id, 9999)[1] == "Action not found."

        whole_id, error = add_plant_action(basil_id, action_id, strength=7)
        assert error is None
        assert add_plant_action(basil_id, action_id)[1] == \
            "This action is already linked to the plant for that part."
        leaf_link, error = add_plant_action(basil_id, action_id, plant_part_id=leaf_id, strength=3)
        assert error is None

        links = get_plant_actions(basil_id)
        assert [(l['strength'], l['part_name']) for l in links] == [(7, None), (3, 'Leaf')]
        assert links[0]['action_name'] == 'Galactagogue'

        assert remove_plant_action(basil_id, leaf_link) == (True, None)
        assert remove_plant_action(basil_id, leaf_link) == (False, "Action link not found.")

    def test_delete_refused_while_linked(self, basil_id):
        action_id, _ = create_herbal_action('Galactagogue')
        add_plant_action(basil_id, action_id)

        usage = {a['name']: a['usage_count'] for a in get_herbal_actions()}
        assert usage['Galactagogue'] == 1

        assert delete_herbal_action(action_id) == \
            (False, "This action is linked to 1 plant(s) and cannot be deleted.")

        get_plant_repository().delete(basil_id)
        assert delete_herbal_action(action_id) == (True, None)
        assert delete_herbal_action(action_id) == (False, "Action not found.")

    def test_part_deletion_keeps_link(self, basil_id):
        action_id, _ = create_herbal_action('Galactagogue')
        leaf_id, _ = add_part(basil_id, 'Leaf')
        add_plant_action(basil_id, action_id, plant_part_id=leaf_id)

        delete_part(leaf_id)
        links = get_plant_actions(basil_id)
        assert len(links) == 1
        assert links[0]['plant_part_id'] is None


class TestRecipes:

    def test_add_and_delete(self, basil_id):
        recipe_id, error = add_recipe(basil_id, 'Pesto', 'Basil, pine nuts, oil', 'Blend.',
                                      preparation_time_minutes=10, servings=4)
        assert error is None
        assert [r['name'] for r in get_recipes(basil_id)] == ['Pesto']

        assert delete_recipe(basil_id, recipe_id) == (True, None)
        assert delete_recipe(basil_id, recipe_id) == (False, "Recipe not found.")

    def test_validation(self, basil_id):
        assert add_recipe(basil_id, 'Pesto', '', 'Blend.')[1] == \
            "Name, ingredients and instructions are required."
        assert add_recipe(basil_id, 'Pesto', 'Basil', 'Blend.', servings=0)[1] == \
            "Servings must be a positive number."
        assert add_recipe(basil_id, 'Pesto', 'Basil', 'Blend.', preparation_time_minutes=-5)[1] == \
            "Preparation time must be a positive number."
        assert add_recipe(999, 'Pesto', 'Basil', 'Blend.') == (None, "Plant not found.")

    def test_recipe_of_other_plant_not_deleted(self, basil_id):
        recipe_id, _ = add_recipe(basil_id, 'Pesto', 'Basil', 'Blend.')
        other_id = create_plant('Mentha piperita', 'Peppermint')
        assert delete_recipe(other_id, recipe_id) == (False, "Recipe not found.")


# ========================================
# Search Tests
# ========================================

class TestSearch:

    @pytest.fixture
    def catalogue(self, db_path):
        create_plant('Ocimum basilicum', 'Basil', family='Lamiaceae')
        create_plant('Ocimum tenuiflorum', 'Holy basil', family='Lamiaceae')
        create_plant('Mentha piperita', 'Peppermint', family='Lamiaceae')
        create_plant('Echinacea purpurea', 'Échinacée pourpre', family='Asteraceae')

    def test_exact_before_substring(self, catalogue):
        results = search_plants('basil')
        assert [(r['common_name'], r['ranking']) for r in results] == [
            ('Basil', 'exact'),
            ('Holy basil', 'substring'),
        ]
        assert results[0]['match_type'] == 'common_name'

    def test_prefix_on_botanical_name(self, catalogue):
        results = search_plants('OCIMUM')
        assert [r['botanical_name'] for r in results] == ['Ocimum basilicum', 'Ocimum tenuiflorum']
        assert {r['ranking'] for r in results} == {'prefix'}
        assert {r['match_type'] for r in results} == {'botanical_name'}

    def test_family_match(self, catalogue):
        results = search_plants('lamiaceae')
        assert len(results) == 3
        assert {r['match_type'] for r in results} == {'family'}

    def test_accents_ignored(self, catalogue):
        results = search_plants('echinacee')
        assert results[0]['botanical_name'] == 'Echinacea purpurea'
        assert results[0]['ranking'] == 'prefix'

    def test_each_plant_once(self, catalogue):
        ids = [r['plant_id'] for r in search_plants('a')]
        assert len(ids) == len(set(ids))

    def test_limit(self, catalogue):
        assert len(search_plants('lamiaceae', limit=2)) == 2
        assert search_plants('lamiaceae', limit=0) == []

    def test_empty_query(self, catalogue):
        assert search_plants('   ') == []
        assert search_plants('zzz') == []


# ========================================
# Statistics / sample data
# ========================================

class TestCatalogue:

    def test_seed_sample_plants_once(self, db_path):
        assert seed_sample_plants() == 7
        assert seed_sample_plants() == 0

    def test_stats(self, db_path):
        seed_sample_plants()
        stats = get_plant_stats()
        assert stats['total'] == 7
        assert len(stats['recent']) == 6
        assert stats['top_families'][0] == {'family': 'Asteraceae', 'count': 3}

    def test_families_and_choices(self, db_path):
        create_plant('Ocimum basilicum', 'Basil', family='Lamiaceae')
        create_plant('Solanum lycopersicum', 'Tomato', family='Solanaceae')
        create_plant('Allium cepa', 'Onion')

        assert get_families() == ['Lamiaceae', 'Solanaceae']
        assert [c['label'] for c in get_plant_choices()] == [
            'Allium cepa (Onion)', 'Ocimum basilicum (Basil)', 'Solanum lycopersicum (Tomato)',
        ]


# ========================================
# Import/Export Tests
# ========================================

class TestImportExport:

    @pytest.fixture
    def filled(self, basil_id):
        leaf_id, _ = add_part(basil_id, 'Leaf', edible=True)
        action_id, _ = create_herbal_action('Galactagogue')
        add_plant_action(basil_id, action_id, plant_part_id=leaf_id, strength=6, notes='Folk use')
        add_recipe(basil_id, 'Pesto', 'Basil, pine nuts, oil', 'Blend.', servings=4)
        save_section(basil_id, 'tcm', {
            'temperature_id': ref_id('tcm_temperatures', 'Warm'),
            'tastes': [ref_id('tcm_tastes', 'Pungent')],
        })
        save_section(basil_id, 'ayurvedic', {'dosha_effects': {'Vata': 'Decreases'}})
        return basil_id

    def test_export_shape(self, filled):
        data = export_plants_json()
        assert data['version'] == 1
        assert 'exported_at' in data

        plant = data['plants'][0]
        assert plant['botanical_name'] == 'Ocimum basilicum'
        assert plant['parts'][0]['part_name'] == 'Leaf'
        assert plant['parts'][0]['edible'] is True
        assert plant['actions'] == [
            {'action': 'Galactagogue', 'part': 'Leaf', 'strength': 6, 'notes': 'Folk use'},
        ]
        assert plant['recipes'][0]['servings'] == 4
        assert plant['sections']['tcm']['temperature_id'] == 'Warm'
        assert plant['sections']['tcm']['tastes'] == ['Pungent']
        assert 'growing' not in plant['sections']

    def test_export_then_import_restores(self, filled):
        data = export_plants_json()
        get_plant_repository().delete(filled)

        success, message, stats = import_plants_json(data)
        assert success, message
        assert stats == {'added': 1, 'updated': 0, 'skipped': 0, 'errors': 0}

        plant = get_plant_repository().find_by_botanical_name('Ocimum basilicum')
        plant_id = plant.id.value
        assert get_section(plant_id, 'tcm')['tastes_names'] == ['Pungent']
        assert get_section(plant_id, 'ayurvedic')['dosha_effects'] == {'Vata': 'Decreases'}
        assert get_plant_actions(plant_id)[0]['part_name'] == 'Leaf'
        assert [r['name'] for r in get_recipes(plant_id)] == ['Pesto']

    def test_merge_updates_without_duplicates(self, filled):
        data = export_plants_json()
        data['plants'][0]['common_name'] = 'Sweet basil'

        success, message, stats = import_plants_json(data, mode='merge')
        assert success
        assert stats['updated'] == 1
        assert stats['added'] == 0

        assert get_plant_repository().find_by_id(filled).common_name.value == 'Sweet basil'
        assert len(get_parts(filled)) == 1
        assert len(get_recipes(filled)) == 1
        assert len(get_plant_actions(filled)) == 1

    def test_replace_backs_up_and_clears(self, filled, db_path):
        create_plant('Mentha piperita', 'Peppermint')
        data = {'plants': [{'botanical_name': 'Solanum lycopersicum', 'common_name': 'Tomato'}]}

        success, message, stats = import_plants_json(data, mode='replace')
        assert success
        assert stats['added'] == 1

        repository = get_plant_repository()
        assert repository.count() == 1
        assert repository.find_by_botanical_name('Ocimum basilicum') is None
        assert [b['reason'] for b in list_backups()] == ['pre_import']

    def test_invalid_entries_reported(self, db_path):
        data = {'plants': [
            {'botanical_name': 'tomato', 'common_name': 'Tomato'},
            'not a plant',
            {'botanical_name': 'Allium cepa', 'common_name': 'Onion',
             'sections': {'growing': {'light_requirements': 'Moonlight'}}},
        ]}
        success, message, stats = import_plants_json(data)
        assert success
        assert stats['added'] == 1
        assert stats['errors'] == 3
        assert 'Entry 2: not an object' in message

    def test_unknown_reference_name(self, db_path):
        data = {'plants': [{
            'botanical_name': 'Allium cepa', 'common_name': 'Onion',
            'sections': {'tcm': {'tastes': ['Umami']}},
        }]}
        success, message, stats = import_plants_json(data)
        assert success
        assert stats['errors'] == 1
        assert "unknown Tastes 'Umami'" in message

    def test_non_text_child_names_reported(self, db_path):
        data = {'plants': [
            {'botanical_name': 'Allium cepa', 'common_name': 'Onion',
             'recipes': [{'name': 7, 'ingredients': 'Onion', 'instructions': 'Roast.'}],
             'parts': [{'part_name': ['Bulb']}],
             'actions': [{'action': 3}]},
            {'botanical_name': 'Ocimum basilicum', 'common_name': 'Basil',
             'recipes': [{'name': 'Pesto', 'ingredients': 'Basil', 'instructions': 'Blend.'}]},
        ]}
        success, message, stats = import_plants_json(data)
        assert success, message
        assert stats['added'] == 2
        assert stats['errors'] == 3
        assert 'recipe needs text name' in message

        repository = get_plant_repository()
        onion_id = repository.find_by_botanical_name('Allium cepa').id.value
        basil_id = repository.find_by_botanical_name('Ocimum basilicum').id.value
        assert get_recipes(onion_id) == [] and get_parts(onion_id) == []
        assert [r['name'] for r in get_recipes(basil_id)] == ['Pesto']

    def test_missing_plants_key(self, db_path):
        assert import_plants_json({'foo': []}) == (False, "Invalid JSON: missing 'plants' key.", {})

    def test_plants_not_a_list(self, db_path):
        success, message, _ = import_plants_json({'plants': {}})
        assert not success
        assert "'plants' must be a list" in message

    def test_unknown_mode(self, db_path):
        success, message, _ = import_plants_json({'plants': []}, mode='append')
        assert not success
        assert message == "Unknown import mode: append"
        assert not os.path.isdir(os.environ['PLANT_KB_BACKUP_DIR'])
