"""
plant_management/value_objects.py — Immutable, self-validating plant values.

- PlantId: positive integer identity of a saved plant
- BotanicalName: "Genus species ..." with genus capitalised, species lower-case
- CommonName: free-text vernacular name
- Taxonomy: family / genus / species / variety / cultivar
- GrowthCharacteristics: habit, lifespan, hardiness zones, mature size in cm

All of them are frozen dataclasses validated in __post_init__. Cleaning
(whitespace, blank-to-None) happens there too, before the instance is
sealed.
"""

from dataclasses import dataclass, asdict
from typing import Optional, Dict, Any

from markupsafe import Markup

from plant_management.exceptions import DomainValidationError


CM_PER_INCH = 2.54

UNKNOWN_GENUS = 'Unknown'
UNKNOWN_SPECIES = 'sp.'


def cm_to_inches(value_cm: Optional[float]) -> Optional[float]:
    """Convert centimetres to inches, rounded to one decimal."""
    if value_cm is None:
        return None
    return round(value_cm / CM_PER_INCH * 10) / 10


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = ' '.join(str(value).split())
    return value or None


def _starts_upper(word: str) -> bool:
    # Hybrid markers such as "×" have no case and are accepted
    return word[0] == word[0].upper()


def _set(obj, name: str, value):
    """Assign during __post_init__ on a frozen dataclass."""
    object.__setattr__(obj, name, value)


@dataclass(frozen=True)
class PlantId:
    """Identity of a persisted plant. Unsaved plants have no PlantId."""

    value: int

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise DomainValidationError("Plant id must be an integer.")
        if self.value <= 0:
            raise DomainValidationError("Plant id must be a positive integer.")

    def __int__(self):
        return self.value

    def __str__(self):
        return str(self.value)


@dataclass(frozen=True, eq=False)
class BotanicalName:
    """
    Binomial (or longer) scientific name.

    Whitespace is collapsed before validation. The first token is the genus
    and must start with an upper-case letter; the second is the species
    epithet and must be entirely lower-case. Equality ignores case.
    """

    value: str

    MAX_LENGTH = 255

    def __post_init__(self):
        value = self.value
        if isinstance(value, str):
            value = ' '.join(value.split())
            _set(self, 'value', value)

        if not isinstance(value, str) or not value:
            raise DomainValidationError("Botanical name is required.")
        if len(value) > self.MAX_LENGTH:
            raise DomainValidationError(
                f"Botanical name must be {self.MAX_LENGTH} characters or fewer."
            )

        parts = value.split(' ')
        if len(parts) < 2:
            raise DomainValidationError(
                "Botanical name must include both genus and species (e.g. 'Ocimum basilicum')."
            )
        if not _starts_upper(parts[0]):
            raise DomainValidationError("Genus must start with an uppercase letter.")
        if parts[1] != parts[1].lower():
            raise DomainValidationError("Species epithet must be lowercase.")

    @property
    def genus(self) -> str:
        return self.value.split(' ')[0]

    @property
    def species(self) -> str:
        return self.value.split(' ')[1]

    def to_html(self) -> Markup:
        """Italicised, escaped name for templates."""
        return Markup('<i>{}</i>').format(self.value)

    def __eq__(self, other):
        if not isinstance(other, BotanicalName):
            return NotImplemented
        return self.value.lower() == other.value.lower()

    def __hash__(self):
        return hash(('BotanicalName', self.value.lower()))

    def __str__(self):
        return self.value


@dataclass(frozen=True, eq=False)
class CommonName:
    """Vernacular name. Equality ignores case."""

    value: str

    MAX_LENGTH = 255

    def __post_init__(self):
        value = self.value
        if isinstance(value, str):
            value = value.strip()
            _set(self, 'value', value)

        if not isinstance(value, str) or not value:
            raise DomainValidationError("Common name is required.")
        if len(value) > self.MAX_LENGTH:
            raise DomainValidationError(
                f"Common name must be {self.MAX_LENGTH} characters or fewer."
            )

    def __eq__(self, other):
        if not isinstance(other, CommonName):
            return NotImplemented
        return self.value.lower() == other.value.lower()

    def __hash__(self):
        return hash(('CommonName', self.value.lower()))

    def __str__(self):
        return self.value


@dataclass(frozen=True, eq=False)
class Taxonomy:
    """
    Taxonomic placement of a plant.

    Build through Taxonomy.create() to get the normalisation rules: an empty
    genus becomes "Unknown", an empty species becomes "sp.", the genus is
    capitalised and the species lower-cased.
    """

    genus: str
    species: str
    family: Optional[str] = None
    variety: Optional[str] = None
    cultivar: Optional[str] = None

    MAX_LENGTH = 100

    def __post_init__(self):
        for name in ('family', 'variety', 'cultivar'):
            _set(self, name, _clean(getattr(self, name)))

        if self.family and len(self.family) > self.MAX_LENGTH:
            raise DomainValidationError(f"Family must be {self.MAX_LENGTH} characters or fewer.")

        if self.is_unknown:
            return

        genus = self.genus
        species = self.species
        if not genus:
            raise DomainValidationError("Genus is required.")
        if len(genus) > self.MAX_LENGTH:
            raise DomainValidationError(f"Genus must be {self.MAX_LENGTH} characters or fewer.")
        if not _starts_upper(genus):
            raise DomainValidationError("Genus must start with an uppercase letter.")

        if not species:
            raise DomainValidationError("Species is required.")
        if len(species) > self.MAX_LENGTH:
            raise DomainValidationError(f"Species must be {self.MAX_LENGTH} characters or fewer.")
        if species != species.lower():
            raise DomainValidationError("Species epithet must be lowercase.")

    @classmethod
    def create(cls, genus: Optional[str] = None, species: Optional[str] = None,
               family: Optional[str] = None, variety: Optional[str] = None,
               cultivar: Optional[str] = None) -> 'Taxonomy':
        genus = _clean(genus)
        species = _clean(species)
        genus = genus[0].upper() + genus[1:] if genus else UNKNOWN_GENUS
        species = species.lower() if species else UNKNOWN_SPECIES
        return cls(genus, species, family=family, variety=variety, cultivar=cultivar)

    @classmethod
    def unknown(cls) -> 'Taxonomy':
        return cls(UNKNOWN_GENUS, UNKNOWN_SPECIES)

    @property
    def is_unknown(self) -> bool:
        return self.genus == UNKNOWN_GENUS and self.species == UNKNOWN_SPECIES

    @property
    def full_botanical_name(self) -> str:
        """'Genus species var. variety 'Cultivar'' with absent parts omitted."""
        name = f"{self.genus} {self.species}"
        if self.variety:
            name += f" var. {self.variety}"
        if self.cultivar:
            name += f" '{self.cultivar}'"
        return name

    def _key(self):
        return tuple((getattr(self, k) or '').lower()
                     for k in ('family', 'genus', 'species', 'variety', 'cultivar'))

    def __eq__(self, other):
        if not isinstance(other, Taxonomy):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(('Taxonomy', self._key()))

    def __repr__(self):
        return f"Taxonomy({self.full_botanical_name!r}, family={self.family!r})"


@dataclass(frozen=True)
class GrowthCharacteristics:
    """Growth habit, lifespan, hardiness zones and mature size (centimetres)."""

    growth_habit: Optional[str] = None
    lifespan: Optional[str] = None
    hardiness_zones: Optional[str] = None
    height_mature_cm: Optional[float] = None
    spread_mature_cm: Optional[float] = None

    TEXT_LIMITS = (('growth_habit', 'Growth habit', 100),
                   ('lifespan', 'Lifespan', 50),
                   ('hardiness_zones', 'Hardiness zones', 50))

    def __post_init__(self):
        for key, label, limit in self.TEXT_LIMITS:
            value = _clean(getattr(self, key))
            _set(self, key, value)
            if value and len(value) > limit:
                raise DomainValidationError(f"{label} must be {limit} characters or fewer.")

        for key, label in (('height_mature_cm', 'Mature height'),
                           ('spread_mature_cm', 'Mature spread')):
            size = getattr(self, key)
            if size is None:
                continue
            if isinstance(size, bool) or not isinstance(size, (int, float)):
                raise DomainValidationError(f"{label} must be a number.")
            if size < 0:
                raise DomainValidationError(f"{label} cannot be negative.")

    @property
    def height_mature_inches(self) -> Optional[float]:
        return cm_to_inches(self.height_mature_cm)

    @property
    def spread_mature_inches(self) -> Optional[float]:
        return cm_to_inches(self.spread_mature_cm)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
