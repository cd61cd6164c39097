"""
utils/export.py — Excel export generation using openpyxl.

Generates one .xlsx workbook for the whole catalogue:
- Plants: one row per plant with taxonomy and growth data
- Parts, Herbal actions, Recipes: one row per child record
- One sheet per detail section that at least one plant has filled in

Every sheet gets a styled, frozen header row.
"""

from io import BytesIO
from datetime import datetime
from typing import List, Tuple, Any

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Alignment, Border, Side
from openpyxl.utils import get_column_letter

from plant_database import export_plants_json
from plant_sections import SECTIONS


HEADER_FONT = Font(name='Calibri', bold=True, color='FFFFFF', size=11)
HEADER_FILL = PatternFill(start_color='2E7D32', end_color='2E7D32', fill_type='solid')
HEADER_ALIGNMENT = Alignment(horizontal='center', vertical='center', wrap_text=True)
HEADER_BORDER = Border(
    bottom=Side(style='thin', color='1B5E20'),
    right=Side(style='thin', color='E2E8F0'),
)
CELL_BORDER = Border(
    bottom=Side(style='thin', color='E2E8F0'),
    right=Side(style='thin', color='E2E8F0'),
)

PLANT_COLUMNS = [
    ('Botanical name', 'botanical_name', 30),
    ('Common name', 'common_name', 22),
    ('Family', 'family', 18),
    ('Genus', 'genus', 14),
    ('Species', 'species', 14),
    ('Variety', 'variety', 14),
    ('Cultivar', 'cultivar', 14),
    ('Growth habit', 'growth_habit', 14),
    ('Lifespan', 'lifespan', 12),
    ('Hardiness zones', 'hardiness_zones', 14),
    ('Height (cm)', 'height_mature_cm', 12),
    ('Spread (cm)', 'spread_mature_cm', 12),
    ('Native range', 'native_range', 24),
    ('Description', 'description', 40),
]


def _cell_value(value: Any) -> Any:
    if isinstance(value, bool):
        return 'Yes' if value else 'No'
    if isinstance(value, list):
        return ', '.join(str(v) for v in value)
    if isinstance(value, dict):
        return ', '.join(f"{k}: {v}" for k, v in value.items())
    return value


def _build_sheet(ws, headers: List[str], rows: List[List[Any]], widths: List[int]):
    """Write a styled header row, the data rows, column widths and a frozen header."""
    for col_idx, name in enumerate(headers, 1):
        cell = ws.cell(row=1, column=col_idx, value=name)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = HEADER_ALIGNMENT
        cell.border = HEADER_BORDER

    for row_idx, row in enumerate(rows, 2):
        for col_idx, value in enumerate(row, 1):
            ws.cell(row=row_idx, column=col_idx, value=_cell_value(value)).border = CELL_BORDER

    for col_idx, width in enumerate(widths, 1):
        ws.column_dimensions[get_column_letter(col_idx)].width = width

    ws.freeze_panes = 'A2'


def generate_plants_excel() -> Tuple[BytesIO, str]:
    """
    Generate the catalogue workbook.

    Returns:
        (BytesIO buffer, filename). An empty catalogue still yields a
        workbook with header rows.
    """
    data = export_plants_json()
    plants = data['plants']

    wb = Workbook()
    ws = wb.active
    ws.title = 'Plants'
    _build_sheet(
        ws,
        [c[0] for c in PLANT_COLUMNS],
        [[p.get(key) for _, key, _ in PLANT_COLUMNS] for p in plants],
        [c[2] for c in PLANT_COLUMNS],
    )

    _build_sheet(
        wb.create_sheet('Parts'),
        ['Plant', 'Part', 'Edible', 'Harvest time', 'Storage', 'Processing notes'],
        [
            [p['botanical_name'], part['part_name'], part['edible'], part['harvest_time'],
             part['storage_method'], part['processing_notes']]
            for p in plants for part in p['parts']
        ],
        [30, 16, 10, 18, 22, 36],
    )

    _build_sheet(
        wb.create_sheet('Herbal actions'),
        ['Plant', 'Action', 'Part', 'Strength', 'Notes'],
        [
            [p['botanical_name'], a['action'], a['part'], a['strength'], a['notes']]
            for p in plants for a in p['actions']
        ],
        [30, 20, 16, 10, 36],
    )

    _build_sheet(
        wb.create_sheet('Recipes'),
        ['Plant', 'Recipe', 'Ingredients', 'Instructions', 'Prep time (min)', 'Servings'],
        [
            [p['botanical_name'], r['name'], r['ingredients'], r['instructions'],
             r['preparation_time_minutes'], r['servings']]
            for p in plants for r in p['recipes']
        ],
        [30, 22, 36, 48, 14, 10],
    )

    for key, section in SECTIONS.items():
        rows = [
            [p['botanical_name']] + [p['sections'][key].get(f.name) for f in section.fields]
            for p in plants if key in p['sections']
        ]
        if not rows:
            continue
        # Sheet titles are limited to 31 characters
        _build_sheet(
            wb.create_sheet(section.title[:31]),
            ['Plant'] + [f.label for f in section.fields],
            rows,
            [30] + [18 for _ in section.fields],
        )

    buffer = BytesIO()
    wb.save(buffer)
    buffer.seek(0)

    filename = f"plants_{datetime.now().strftime('%Y%m%d')}.xlsx"
    return buffer, filename
