"""
plant_management/queries.py — Read-side use cases returning flat DTOs.
"""

from dataclasses import dataclass, asdict
from typing import Optional, Dict, Any

from plant_management.entities import Plant, format_timestamp
from plant_management.repository import PlantRepository


@dataclass
class PlantDto:
    id: int
    botanical_name: str
    common_name: str
    family: Optional[str]
    genus: str
    species: str
    variety: Optional[str]
    cultivar: Optional[str]
    full_botanical_name: str
    description: Optional[str]
    native_range: Optional[str]
    growth_habit: Optional[str]
    lifespan: Optional[str]
    hardiness_zones: Optional[str]
    height_mature_cm: Optional[float]
    spread_mature_cm: Optional[float]
    height_mature_inches: Optional[float]
    spread_mature_inches: Optional[float]
    created_at: Optional[str]
    updated_at: Optional[str]

    @classmethod
    def from_plant(cls, plant: Plant) -> 'PlantDto':
        growth = plant.growth_characteristics
        taxonomy = plant.taxonomy
        return cls(
            id=plant.id.value,
            botanical_name=plant.botanical_name.value,
            common_name=plant.common_name.value,
            family=taxonomy.family,
            genus=taxonomy.genus,
            species=taxonomy.species,
            variety=taxonomy.variety,
            cultivar=taxonomy.cultivar,
            full_botanical_name=taxonomy.full_botanical_name,
            description=plant.description,
            native_range=plant.native_range,
            growth_habit=growth.growth_habit,
            lifespan=growth.lifespan,
            hardiness_zones=growth.hardiness_zones,
            height_mature_cm=growth.height_mature_cm,
            spread_mature_cm=growth.spread_mature_cm,
            height_mature_inches=growth.height_mature_inches,
            spread_mature_inches=growth.spread_mature_inches,
            created_at=format_timestamp(plant.created_at),
            updated_at=format_timestamp(plant.updated_at),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class GetPlantByIdQuery:
    plant_id: int


class GetPlantByIdQueryHandler:

    def __init__(self, repository: PlantRepository):
        self.repository = repository

    def handle(self, query: GetPlantByIdQuery) -> Optional[PlantDto]:
        plant = self.repository.find_by_id(query.plant_id)
        if plant is None:
            return None
        return PlantDto.from_plant(plant)
