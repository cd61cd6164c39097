"""
plant_management/entities.py — The Plant aggregate root.

A Plant owns its botanical identity (BotanicalName + Taxonomy), its common
name and its growth characteristics. The botanical name and the taxonomy
are kept in step: changing one rebuilds the other.
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any

from plant_management.exceptions import DomainValidationError
from plant_management.value_objects import (
    PlantId, BotanicalName, CommonName, Taxonomy, GrowthCharacteristics,
)


TIMESTAMP_FORMAT = '%Y-%m-%d %H:%M:%S'


def utcnow() -> datetime:
    """Naive UTC timestamp, matching SQLite's CURRENT_TIMESTAMP."""
    return datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0)


def parse_timestamp(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        return None


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.strftime(TIMESTAMP_FORMAT)


class Plant:
    """Aggregate root for one plant species (or infraspecific taxon)."""

    def __init__(self, botanical_name: BotanicalName, common_name: CommonName,
                 taxonomy: Taxonomy,
                 growth_characteristics: Optional[GrowthCharacteristics] = None,
                 description: Optional[str] = None,
                 native_range: Optional[str] = None,
                 id: Optional[PlantId] = None,
                 created_at: Optional[datetime] = None,
                 updated_at: Optional[datetime] = None):
        now = utcnow()
        self._id = id
        self._botanical_name = botanical_name
        self._common_name = common_name
        self._taxonomy = taxonomy
        self._growth = growth_characteristics or GrowthCharacteristics()
        self._description = description or None
        self._native_range = native_range or None
        self._created_at = created_at or now
        self._updated_at = updated_at or self._created_at

    # --- accessors ---

    @property
    def id(self) -> Optional[PlantId]:
        return self._id

    @property
    def botanical_name(self) -> BotanicalName:
        return self._botanical_name

    @property
    def common_name(self) -> CommonName:
        return self._common_name

    @property
    def taxonomy(self) -> Taxonomy:
        return self._taxonomy

    @property
    def family(self) -> Optional[str]:
        return self._taxonomy.family

    @property
    def growth_characteristics(self) -> GrowthCharacteristics:
        return self._growth

    @property
    def description(self) -> Optional[str]:
        return self._description

    @property
    def native_range(self) -> Optional[str]:
        return self._native_range

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        return self._updated_at

    # --- behaviour ---

    def _touch(self):
        self._updated_at = utcnow()

    def update_botanical_name(self, botanical_name: BotanicalName):
        """Rename the plant; genus and species follow, family/variety/cultivar are kept."""
        self._botanical_name = botanical_name
        self._taxonomy = Taxonomy.create(
            genus=botanical_name.genus,
            species=botanical_name.species,
            family=self._taxonomy.family,
            variety=self._taxonomy.variety,
            cultivar=self._taxonomy.cultivar,
        )
        self._touch()

    def update_taxonomy(self, taxonomy: Taxonomy):
        """Replace the taxonomy; the botanical name is rebuilt from it."""
        self._taxonomy = taxonomy
        self._botanical_name = BotanicalName(taxonomy.full_botanical_name)
        self._touch()

    def update_family(self, family: Optional[str]):
        """Change the family only; the botanical name is untouched."""
        current = self._taxonomy
        self._taxonomy = Taxonomy.create(
            genus=current.genus,
            species=current.species,
            family=family,
            variety=current.variety,
            cultivar=current.cultivar,
        )
        self._touch()

    def update_common_name(self, common_name: CommonName):
        self._common_name = common_name
        self._touch()

    def update_description(self, description: Optional[str]):
        self._description = description or None
        self._touch()

    def update_native_range(self, native_range: Optional[str]):
        self._native_range = native_range or None
        self._touch()

    def update_growth_characteristics(self, growth: GrowthCharacteristics):
        self._growth = growth
        self._touch()

    # --- persistence mapping ---

    def to_persistence(self) -> Dict[str, Any]:
        """Row dict for the plants table (botanical_name_norm is the repository's job)."""
        return {
            'id': self._id.value if self._id else None,
            'botanical_name': self._botanical_name.value,
            'common_name': self._common_name.value,
            'family': self._taxonomy.family,
            'genus': self._taxonomy.genus,
            'species': self._taxonomy.species,
            'variety': self._taxonomy.variety,
            'cultivar': self._taxonomy.cultivar,
            'description': self._description,
            'native_range': self._native_range,
            'growth_habit': self._growth.growth_habit,
            'lifespan': self._growth.lifespan,
            'hardiness_zones': self._growth.hardiness_zones,
            'height_mature_cm': self._growth.height_mature_cm,
            'spread_mature_cm': self._growth.spread_mature_cm,
            'created_at': format_timestamp(self._created_at),
            'updated_at': format_timestamp(self._updated_at),
        }

    @classmethod
    def from_persistence(cls, row) -> 'Plant':
        """
        Rebuild a Plant from a plants row (sqlite3.Row or dict).

        Missing genus/species fall back to "Unknown" / "sp.". A stored name
        that no longer validates (rows written before the naming rules) is
        read as the taxonomy's full botanical name instead.
        """
        data = dict(row)

        def _num(key):
            value = data.get(key)
            return float(value) if value is not None else None

        taxonomy = Taxonomy.create(
            genus=data.get('genus'),
            species=data.get('species'),
            family=data.get('family'),
            variety=data.get('variety'),
            cultivar=data.get('cultivar'),
        )
        try:
            botanical_name = BotanicalName(data['botanical_name'])
        except DomainValidationError:
            botanical_name = BotanicalName(taxonomy.full_botanical_name)

        return cls(
            id=PlantId(data['id']) if data.get('id') else None,
            botanical_name=botanical_name,
            common_name=CommonName(data['common_name']),
            taxonomy=taxonomy,
            growth_characteristics=GrowthCharacteristics(
                growth_habit=data.get('growth_habit'),
                lifespan=data.get('lifespan'),
                hardiness_zones=data.get('hardiness_zones'),
                height_mature_cm=_num('height_mature_cm'),
                spread_mature_cm=_num('spread_mature_cm'),
            ),
            description=data.get('description'),
            native_range=data.get('native_range'),
            created_at=parse_timestamp(data.get('created_at')),
            updated_at=parse_timestamp(data.get('updated_at')),
        )

    def __eq__(self, other):
        if not isinstance(other, Plant):
            return NotImplemented
        if self._id is None or other._id is None:
            return self is other
        return self._id == other._id

    def __hash__(self):
        return hash(self._id) if self._id is not None else id(self)

    def __repr__(self):
        return f"Plant(id={self._id.value if self._id else None}, botanical_name={self._botanical_name.value!r})"
