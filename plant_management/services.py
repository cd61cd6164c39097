"""
plant_management/services.py — Domain service for rules spanning plants.

- Companion compatibility (same-family pairs compete for nutrients)
- Hardiness zone lookup ("5-9", "5,6,7" and "7" formats)
- Planting calendar from a last-frost date
"""

import re
from datetime import date, timedelta
from typing import Optional, List, Dict, Set, Tuple, Union

from plant_management.entities import Plant
from plant_management.repository import PlantRepository


SAME_FAMILY_REASON = "Plants from the same family often compete for the same nutrients"
COMPATIBLE_REASON = "No known conflicts"

INDOOR_SOWING_OFFSET_DAYS = -42
DIRECT_SOWING_OFFSET_DAYS = 7
TRANSPLANT_OFFSET_DAYS = 14

_ZONE_NUMBER = re.compile(r'^\s*(\d{1,2})')


def _zone_number(text: str) -> Optional[int]:
    match = _ZONE_NUMBER.match(text)
    return int(match.group(1)) if match else None


def parse_hardiness_zones(zones: Optional[str]) -> Set[int]:
    """
    Expand a hardiness zone description into a set of zone numbers.

    "5-9" -> {5, 6, 7, 8, 9}; "5,6,7" -> {5, 6, 7}; "7b" -> {7}.
    Unparseable parts are ignored.
    """
    result = set()
    if not zones:
        return result

    for part in zones.split(','):
        part = part.strip()
        if not part:
            continue
        if '-' in part:
            low_text, _, high_text = part.partition('-')
            low = _zone_number(low_text)
            high = _zone_number(high_text)
            if low is None or high is None:
                continue
            if low > high:
                low, high = high, low
            result.update(range(low, high + 1))
        else:
            number = _zone_number(part)
            if number is not None:
                result.add(number)
    return result


class PlantService:
    """Domain operations that need more than one plant or the whole catalogue."""

    def __init__(self, repository: PlantRepository):
        self.repository = repository

    def check_companion_compatibility(self, plant_a: Plant, plant_b: Plant) -> Tuple[bool, str]:
        family_a = (plant_a.family or '').strip().lower()
        family_b = (plant_b.family or '').strip().lower()
        if family_a and family_a == family_b:
            return False, SAME_FAMILY_REASON
        return True, COMPATIBLE_REASON

    def find_plants_by_hardiness_zone(self, zone: Union[int, str]) -> List[Plant]:
        """Plants whose hardiness zones include the given zone."""
        if isinstance(zone, str):
            zone = _zone_number(zone)
        if zone is None:
            return []

        return [
            plant for plant in self.repository.find_all(limit=None)
            if zone in parse_hardiness_zones(plant.growth_characteristics.hardiness_zones)
        ]

    def calculate_planting_dates(self, last_frost_date: Union[date, str]) -> Dict[str, str]:
        """
        Sowing and transplant dates relative to the last frost.

        Indoor sowing six weeks before, direct sowing one week after,
        transplanting two weeks after. Dates are ISO strings.
        """
        if isinstance(last_frost_date, str):
            last_frost_date = date.fromisoformat(last_frost_date.strip())

        return {
            'last_frost': last_frost_date.isoformat(),
            'indoor_sowing': (last_frost_date + timedelta(days=INDOOR_SOWING_OFFSET_DAYS)).isoformat(),
            'direct_sowing': (last_frost_date + timedelta(days=DIRECT_SOWING_OFFSET_DAYS)).isoformat(),
            'transplant': (last_frost_date + timedelta(days=TRANSPLANT_OFFSET_DAYS)).isoformat(),
        }
