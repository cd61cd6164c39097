"""
plant_management/commands.py — Write-side use cases for plants.

- CreatePlantCommand → CreatePlantCommandHandler.handle() returns the new id
- UpdatePlantCommand → UpdatePlantCommandHandler.handle() returns the saved Plant
"""

import logging
from dataclasses import dataclass
from typing import Optional

from plant_management.entities import Plant
from plant_management.exceptions import PlantAlreadyExistsError, PlantNotFoundError
from plant_management.factory import PlantFactory
from plant_management.repository import PlantRepository
from plant_management.value_objects import (
    BotanicalName, CommonName, Taxonomy, GrowthCharacteristics,
)

logger = logging.getLogger(__name__)


@dataclass
class CreatePlantCommand:
    botanical_name: str
    common_name: str
    family: Optional[str] = None
    genus: Optional[str] = None
    species: Optional[str] = None
    variety: Optional[str] = None
    cultivar: Optional[str] = None
    description: Optional[str] = None
    native_range: Optional[str] = None
    growth_habit: Optional[str] = None
    lifespan: Optional[str] = None
    hardiness_zones: Optional[str] = None
    height_mature_cm: Optional[float] = None
    spread_mature_cm: Optional[float] = None


@dataclass
class UpdatePlantCommand:
    """Full replacement of a plant's editable fields."""
    plant_id: int
    botanical_name: str
    common_name: str
    family: Optional[str] = None
    variety: Optional[str] = None
    cultivar: Optional[str] = None
    description: Optional[str] = None
    native_range: Optional[str] = None
    growth_habit: Optional[str] = None
    lifespan: Optional[str] = None
    hardiness_zones: Optional[str] = None
    height_mature_cm: Optional[float] = None
    spread_mature_cm: Optional[float] = None


class CreatePlantCommandHandler:

    def __init__(self, repository: PlantRepository):
        self.repository = repository

    def handle(self, command: CreatePlantCommand) -> int:
        """
        Create a plant and return its id.

        Raises:
            DomainValidationError: invalid names or measurements
            PlantAlreadyExistsError: botanical name already in use
        """
        plant = PlantFactory.create_plant(
            botanical_name=command.botanical_name,
            common_name=command.common_name,
            family=command.family,
            genus=command.genus,
            species=command.species,
            variety=command.variety,
            cultivar=command.cultivar,
            description=command.description,
            native_range=command.native_range,
            growth_habit=command.growth_habit,
            lifespan=command.lifespan,
            hardiness_zones=command.hardiness_zones,
            height_mature_cm=command.height_mature_cm,
            spread_mature_cm=command.spread_mature_cm,
        )

        if self.repository.find_by_botanical_name(plant.botanical_name.value):
            raise PlantAlreadyExistsError(plant.botanical_name.value)

        saved = self.repository.save(plant)
        return saved.id.value


class UpdatePlantCommandHandler:

    def __init__(self, repository: PlantRepository):
        self.repository = repository

    def handle(self, command: UpdatePlantCommand) -> Plant:
        plant = self.repository.find_by_id(command.plant_id)
        if plant is None:
            raise PlantNotFoundError(command.plant_id)

        name = BotanicalName(command.botanical_name)
        if name.value != plant.botanical_name.value:
            other = self.repository.find_by_botanical_name(name.value)
            if other is not None and other.id != plant.id:
                raise PlantAlreadyExistsError(name.value)
            plant.update_botanical_name(name)

        current = plant.taxonomy
        taxonomy = Taxonomy.create(
            genus=current.genus,
            species=current.species,
            family=command.family,
            variety=command.variety,
            cultivar=command.cultivar,
        )
        if (taxonomy.variety, taxonomy.cultivar) != (current.variety, current.cultivar):
            plant.update_taxonomy(taxonomy)
        elif taxonomy != current:
            plant.update_family(taxonomy.family)

        common_name = CommonName(command.common_name)
        if common_name.value != plant.common_name.value:
            plant.update_common_name(common_name)

        if (command.description or None) != plant.description:
            plant.update_description(command.description)
        if (command.native_range or None) != plant.native_range:
            plant.update_native_range(command.native_range)

        growth = GrowthCharacteristics(
            growth_habit=command.growth_habit,
            lifespan=command.lifespan,
            hardiness_zones=command.hardiness_zones,
            height_mature_cm=command.height_mature_cm,
            spread_mature_cm=command.spread_mature_cm,
        )
        if growth != plant.growth_characteristics:
            plant.update_growth_characteristics(growth)

        return self.repository.save(plant)
