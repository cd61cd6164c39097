"""
plant_sections.py — Field definitions for the one-per-plant detail sections.

Each Section maps to one table keyed by plant_id (UNIQUE). Field kinds:
- text / textarea: free text
- int / float: numbers, with optional bounds
- bool: checkbox stored as 0/1
- date: ISO date string (YYYY-MM-DD)
- list: JSON-encoded list of strings (entered comma separated)
- select: either a reference-table id (ref) or one of a fixed set of choices
- multiselect: ids stored in a link table (link_table, link_column)
- dosha: JSON object {dosha name: effect}

The forms, the view pages, the JSON export and the schema all read from
this registry, so adding a field means adding it here and in database.py.
"""

from dataclasses import dataclass, field
from typing import Optional, List, Tuple


DOSHAS = ('Vata', 'Pitta', 'Kapha')
DOSHA_EFFECTS = ('Increases', 'Decreases', 'Balances', 'Neutral')

LIGHT_CHOICES = ('Full sun', 'Partial shade', 'Full shade')
WATER_CHOICES = ('Low', 'Moderate', 'High')
POLLINATION_CHOICES = ('Self-pollinated', 'Insect-pollinated', 'Wind-pollinated', 'Mixed')
EVIDENCE_CHOICES = ('Traditional', 'Preliminary', 'Moderate', 'Strong')
GERMINATION_LIGHT_CHOICES = ('Needs light', 'Needs darkness', 'Either')
TOLERANCE_CHOICES = ('Low', 'Moderate', 'High')


@dataclass
class Field:
    name: str
    label: str
    kind: str = 'text'
    required: bool = False
    ref: Optional[str] = None
    choices: Tuple[str, ...] = ()
    link_table: Optional[str] = None
    link_column: Optional[str] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    max_length: Optional[int] = None
    help: str = ''

    @property
    def is_column(self) -> bool:
        """Stored directly on the section row (not in a link table)."""
        return self.kind != 'multiselect'


@dataclass
class Section:
    key: str
    table: str
    title: str
    fields: List[Field] = field(default_factory=list)
    # (low, high) field pairs; high must not be below low when both are set
    ranges: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def columns(self) -> List[Field]:
        return [f for f in self.fields if f.is_column]

    @property
    def link_fields(self) -> List[Field]:
        return [f for f in self.fields if not f.is_column]

    def get_field(self, name: str) -> Optional[Field]:
        for f in self.fields:
            if f.name == name:
                return f
        return None


SECTIONS = {
    'growing': Section('growing', 'plant_properties', 'Growing requirements', [
        Field('zone_range', 'USDA zone range', max_length=50, help='e.g. 5-9'),
        Field('soil_ph_min', 'Soil pH (min)', 'float', min_value=0, max_value=14),
        Field('soil_ph_max', 'Soil pH (max)', 'float', min_value=0, max_value=14),
        Field('light_requirements', 'Light', 'select', choices=LIGHT_CHOICES),
        Field('water_requirements', 'Water', 'select', choices=WATER_CHOICES),
        Field('days_to_maturity', 'Days to maturity', 'int', min_value=1),
        Field('soil_preferences', 'Soil preferences', 'textarea'),
        Field('cultivation_notes', 'Cultivation notes', 'textarea'),
        Field('pest_susceptibility', 'Pest susceptibility', 'textarea'),
        Field('disease_susceptibility', 'Disease susceptibility', 'textarea'),
    ], ranges=[('soil_ph_min', 'soil_ph_max')]),
    'seed_saving': Section('seed_saving', 'seed_saving_info', 'Seed saving', [
        Field('pollination_type', 'Pollination', 'select', choices=POLLINATION_CHOICES),
        Field('isolation_distance_m', 'Isolation distance (m)', 'float', min_value=0),
        Field('min_population_size', 'Minimum population', 'int', min_value=1),
        Field('seed_viability_years', 'Seed viability (years)', 'int', min_value=0),
        Field('seed_cleaning', 'Seed cleaning', 'textarea'),
        Field('storage_conditions', 'Storage conditions', 'textarea'),
        Field('notes', 'Notes', 'textarea'),
    ]),
    'germination': Section('germination', 'plant_germination_guide', 'Germination guide', [
        Field('zone_range', 'USDA zone range', max_length=50, help='e.g. 5-9'),
        Field('soil_temp_min_c', 'Soil temperature (min °C)', 'float', min_value=-10, max_value=50),
        Field('soil_temp_max_c', 'Soil temperature (max °C)', 'float', min_value=-10, max_value=50),
        Field('days_to_germination_min', 'Days to germination (min)', 'int', min_value=0),
        Field('days_to_germination_max', 'Days to germination (max)', 'int', min_value=0),
        Field('planting_depth_cm', 'Planting depth (cm)', 'float', min_value=0),
        Field('light_requirement', 'Light to germinate', 'select', choices=GERMINATION_LIGHT_CHOICES),
        Field('spring_start_week', 'Spring sowing from (week)', 'int', min_value=1, max_value=53),
        Field('spring_end_week', 'Spring sowing until (week)', 'int', min_value=1, max_value=53),
        Field('fall_start_week', 'Fall sowing from (week)', 'int', min_value=1, max_value=53),
        Field('fall_end_week', 'Fall sowing until (week)', 'int', min_value=1, max_value=53),
        Field('indoor_sowing_weeks_before_frost', 'Indoor sowing (weeks before last frost)', 'int',
              min_value=0, max_value=52),
        Field('stratification_required', 'Stratification required', 'bool'),
        Field('stratification_instructions', 'Stratification', 'textarea'),
        Field('scarification_required', 'Scarification required', 'bool'),
        Field('scarification_instructions', 'Scarification', 'textarea'),
        Field('special_requirements', 'Special requirements', 'textarea'),
        Field('germination_notes', 'Notes', 'textarea'),
    ], ranges=[
        ('soil_temp_min_c', 'soil_temp_max_c'),
        ('days_to_germination_min', 'days_to_germination_max'),
    ]),
    'planting_guide': Section('planting_guide', 'planting_guide', 'Planting guide', [
        Field('spring_planting_start', 'Spring planting from', 'date'),
        Field('spring_planting_end', 'Spring planting until', 'date'),
        Field('fall_planting_start', 'Fall planting from', 'date'),
        Field('fall_planting_end', 'Fall planting until', 'date'),
        Field('indoor_sowing_start', 'Indoor sowing from', 'date'),
        Field('transplant_ready_weeks', 'Ready to transplant (weeks)', 'int', min_value=0),
        Field('direct_sow_after_frost', 'Direct sow after last frost', 'bool'),
        Field('frost_tolerance', 'Frost tolerance', 'select', choices=TOLERANCE_CHOICES),
        Field('heat_tolerance', 'Heat tolerance', 'select', choices=TOLERANCE_CHOICES),
        Field('succession_planting_interval', 'Succession interval (days)', 'int', min_value=1),
        Field('companion_plants', 'Companion plants', 'list', help='Comma separated'),
        Field('incompatible_plants', 'Incompatible plants', 'list', help='Comma separated'),
        Field('rotation_group', 'Rotation group', max_length=50),
        Field('rotation_interval', 'Rotation interval (years)', 'int', min_value=1),
    ], ranges=[
        ('spring_planting_start', 'spring_planting_end'),
        ('fall_planting_start', 'fall_planting_end'),
    ]),
    'culinary': Section('culinary', 'culinary_uses', 'Culinary uses', [
        Field('edible_parts', 'Edible parts', 'list', help='Comma separated'),
        Field('flavor_profile', 'Flavor profile', max_length=255),
        Field('cuisines', 'Cuisines', 'list', help='Comma separated'),
        Field('pairs_with', 'Pairs with', 'list', help='Comma separated'),
        Field('preparation_methods', 'Preparation methods', 'textarea'),
        Field('nutritional_highlights', 'Nutritional highlights', 'textarea'),
        Field('notes', 'Notes', 'textarea'),
    ]),
    'medicinal': Section('medicinal', 'medicinal_properties', 'Medicinal properties', [
        Field('traditional_uses', 'Traditional uses', 'textarea', required=True),
        Field('preparation_methods', 'Preparations', 'textarea'),
        Field('dosage', 'Dosage', max_length=255),
        Field('contraindications', 'Contraindications', 'textarea'),
        Field('drug_interactions', 'Drug interactions', 'textarea'),
        Field('safety_notes', 'Safety notes', 'textarea'),
    ]),
    'tcm': Section('tcm', 'plant_tcm_properties', 'Traditional Chinese Medicine', [
        Field('chinese_name', 'Chinese name', max_length=100),
        Field('pinyin_name', 'Pinyin', max_length=100),
        Field('temperature_id', 'Temperature', 'select', ref='tcm_temperatures'),
        Field('tastes', 'Tastes', 'multiselect', ref='tcm_tastes',
              link_table='plant_tcm_tastes', link_column='taste_id'),
        Field('meridians', 'Meridians', 'multiselect', ref='tcm_meridians',
              link_table='plant_tcm_meridians', link_column='meridian_id'),
        Field('functions', 'Functions', 'textarea'),
        Field('indications', 'Indications', 'textarea'),
        Field('dosage', 'Dosage', max_length=255),
        Field('contraindications', 'Contraindications', 'textarea'),
    ]),
    'ayurvedic': Section('ayurvedic', 'plant_ayurvedic_properties', 'Ayurveda', [
        Field('sanskrit_name', 'Sanskrit name', max_length=100),
        Field('rasas', 'Rasa (taste)', 'multiselect', ref='ayurvedic_rasas',
              link_table='plant_ayurvedic_rasas', link_column='rasa_id'),
        Field('gunas', 'Guna (qualities)', 'multiselect', ref='ayurvedic_gunas',
              link_table='plant_ayurvedic_gunas', link_column='guna_id'),
        Field('virya_id', 'Virya (potency)', 'select', ref='ayurvedic_virya'),
        Field('vipaka_id', 'Vipaka (post-digestive effect)', 'select', ref='ayurvedic_vipaka'),
        Field('dosha_effects', 'Dosha effects', 'dosha'),
        Field('indications', 'Indications', 'textarea'),
        Field('contraindications', 'Contraindications', 'textarea'),
    ]),
    'western': Section('western', 'western_medicine', 'Western herbal medicine', [
        Field('categories', 'Categories', 'multiselect', ref='western_medicine_categories',
              link_table='plant_western_categories', link_column='category_id'),
        Field('actions', 'Actions', 'multiselect', ref='western_medicine_actions',
              link_table='plant_western_actions', link_column='action_id'),
        Field('active_compounds', 'Active compounds', 'list', help='Comma separated'),
        Field('primary_uses', 'Primary uses', 'textarea'),
        Field('evidence_level', 'Evidence level', 'select', choices=EVIDENCE_CHOICES),
        Field('safety_notes', 'Safety notes', 'textarea'),
    ]),
}


def get_section(key: str) -> Optional[Section]:
    return SECTIONS.get(key)
