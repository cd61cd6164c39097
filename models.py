"""
models.py — Python dataclasses for the garden side of the knowledge base.

Maps to the plots / garden_beds / plantings / crop_rotations tables in
database.py, plus two value objects used when validating garden input:
Dimensions (bed size) and PlantingDate (date + season).
"""

import json
import re
from dataclasses import dataclass, asdict, fields
from datetime import date
from typing import Optional, List, Dict, Any, Iterable

from plant_management.exceptions import DomainValidationError
from plant_management.value_objects import cm_to_inches


MAX_YEARS_AHEAD = 5


# ========================================
# Value objects
# ========================================

@dataclass(frozen=True)
class Dimensions:
    """Width, length and optional height of a bed, in centimetres."""
    width_cm: float
    length_cm: float
    height_cm: Optional[float] = None

    def __post_init__(self):
        if self.width_cm is None or self.width_cm <= 0:
            raise DomainValidationError("Width must be greater than zero.")
        if self.length_cm is None or self.length_cm <= 0:
            raise DomainValidationError("Length must be greater than zero.")
        if self.height_cm is not None and self.height_cm <= 0:
            raise DomainValidationError("Height must be greater than zero.")

    @property
    def width_inches(self) -> float:
        return cm_to_inches(self.width_cm)

    @property
    def length_inches(self) -> float:
        return cm_to_inches(self.length_cm)

    @property
    def height_inches(self) -> Optional[float]:
        return cm_to_inches(self.height_cm)

    @property
    def area_cm2(self) -> float:
        return self.width_cm * self.length_cm

    @property
    def area_sqm(self) -> float:
        return round(self.area_cm2 / 10000, 2)

    @property
    def area_sqft(self) -> float:
        """Square feet from the rounded inch measurements, one decimal."""
        return round(self.width_inches * self.length_inches / 144 * 10) / 10

    @property
    def volume_cm3(self) -> Optional[float]:
        if self.height_cm is None:
            return None
        return self.width_cm * self.length_cm * self.height_cm


def _years_after(day: date, years: int) -> date:
    try:
        return day.replace(year=day.year + years)
    except ValueError:
        # 29 February
        return day.replace(year=day.year + years, day=28)


@dataclass(frozen=True)
class PlantingDate:
    """A planting date no more than five years ahead of today."""
    value: date

    def __post_init__(self):
        if not isinstance(self.value, date):
            raise DomainValidationError("Planting date must be a valid date.")
        if self.value > _years_after(date.today(), MAX_YEARS_AHEAD):
            raise DomainValidationError(
                f"Planting date cannot be more than {MAX_YEARS_AHEAD} years in the future."
            )

    @classmethod
    def from_string(cls, text: str) -> 'PlantingDate':
        try:
            return cls(date.fromisoformat(text.strip()))
        except (AttributeError, ValueError):
            raise DomainValidationError("Planting date must be a valid date (YYYY-MM-DD).")

    @property
    def season(self) -> str:
        month = self.value.month
        if 3 <= month <= 5:
            return 'Spring'
        if 6 <= month <= 8:
            return 'Summer'
        if 9 <= month <= 11:
            return 'Fall'
        return 'Winter'

    def is_past(self, today: Optional[date] = None) -> bool:
        return self.value < (today or date.today())

    @property
    def iso(self) -> str:
        return self.value.isoformat()


# ========================================
# Records
# ========================================

class _RowMixin:
    """from_row() ignores columns the dataclass does not declare (joined names, etc.)."""

    @classmethod
    def from_row(cls, row):
        data = dict(row)
        names = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in names})

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Plot(_RowMixin):
    """A garden plot (area of land) identified by a PLOT-N code."""
    id: Optional[int] = None
    plot_code: str = ""
    name: Optional[str] = None
    size_sqm: Optional[float] = None
    orientation: Optional[str] = None
    sun_exposure: Optional[str] = None
    irrigation_type: Optional[str] = None
    soil_type: Optional[str] = None
    status: str = "active"
    notes: Optional[str] = None
    bed_count: int = 0
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def display_name(self) -> str:
        return f"{self.plot_code} - {self.name}" if self.name else self.plot_code


@dataclass
class GardenBed(_RowMixin):
    """A bed inside a plot."""
    id: Optional[int] = None
    plot_id: int = 0
    bed_code: str = ""
    width_cm: Optional[float] = None
    length_cm: Optional[float] = None
    height_cm: Optional[float] = None
    soil_type: Optional[str] = None
    is_raised: bool = False
    status: str = "active"
    notes: Optional[str] = None
    plot_code: Optional[str] = None
    created_at: Optional[str] = None

    def __post_init__(self):
        self.is_raised = bool(self.is_raised)

    @property
    def dimensions(self) -> Optional[Dimensions]:
        if not self.width_cm or not self.length_cm:
            return None
        return Dimensions(self.width_cm, self.length_cm, self.height_cm or None)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        dims = self.dimensions
        data['area_sqm'] = dims.area_sqm if dims else None
        data['area_sqft'] = dims.area_sqft if dims else None
        return data


@dataclass
class Planting(_RowMixin):
    """A sowing or transplant event."""
    id: Optional[int] = None
    plot_id: int = 0
    bed_id: Optional[int] = None
    plant_id: Optional[int] = None
    planting_date: str = ""
    method: str = ""
    spacing_cm: Optional[float] = None
    depth_cm: Optional[float] = None
    quantity: Optional[int] = None
    area_sqm: Optional[float] = None
    notes: Optional[str] = None
    plot_code: Optional[str] = None
    bed_code: Optional[str] = None
    botanical_name: Optional[str] = None
    common_name: Optional[str] = None
    created_at: Optional[str] = None

    @property
    def season(self) -> Optional[str]:
        try:
            return PlantingDate(date.fromisoformat(self.planting_date)).season
        except (ValueError, DomainValidationError):
            return None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['season'] = self.season
        return data


@dataclass
class CropRotation(_RowMixin):
    """Families grown in a bed for one season of one year."""
    id: Optional[int] = None
    bed_id: int = 0
    season: str = ""
    year: int = 0
    plant_families: List[str] = None
    notes: Optional[str] = None
    bed_code: Optional[str] = None
    created_at: Optional[str] = None

    def __post_init__(self):
        if self.plant_families is None:
            self.plant_families = []
        elif isinstance(self.plant_families, str):
            try:
                decoded = json.loads(self.plant_families)
            except ValueError:
                decoded = []
            self.plant_families = decoded if isinstance(decoded, list) else []


# ========================================
# Plot codes
# ========================================

_PLOT_CODE = re.compile(r'^PLOT-(\d+)$')


def next_plot_code(existing_codes: Iterable[str]) -> str:
    """
    Next free PLOT-N code: one more than the highest numbered code.

    Codes not matching PLOT-<digits> are ignored.
    """
    highest = 0
    for code in existing_codes:
        match = _PLOT_CODE.match((code or '').strip().upper())
        if match:
            highest = max(highest, int(match.group(1)))
    return f"PLOT-{highest + 1}"
