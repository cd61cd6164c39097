"""
plant_management/factory.py — Builds Plant aggregates from plain values.
"""

from typing import Optional

from plant_management.entities import Plant
from plant_management.value_objects import (
    BotanicalName, CommonName, Taxonomy, GrowthCharacteristics,
)


class PlantFactory:
    """Creates new (unsaved) plants and rehydrates stored ones."""

    @staticmethod
    def create_plant(botanical_name: str, common_name: str,
                     family: Optional[str] = None,
                     genus: Optional[str] = None,
                     species: Optional[str] = None,
                     variety: Optional[str] = None,
                     cultivar: Optional[str] = None,
                     description: Optional[str] = None,
                     native_range: Optional[str] = None,
                     growth_habit: Optional[str] = None,
                     lifespan: Optional[str] = None,
                     hardiness_zones: Optional[str] = None,
                     height_mature_cm: Optional[float] = None,
                     spread_mature_cm: Optional[float] = None) -> Plant:
        """
        Build an unsaved Plant.

        Genus and species default to the first two tokens of the botanical
        name. Raises DomainValidationError on invalid input.
        """
        name = BotanicalName(botanical_name)
        taxonomy = Taxonomy.create(
            genus=genus or name.genus,
            species=species or name.species,
            family=family,
            variety=variety,
            cultivar=cultivar,
        )
        growth = GrowthCharacteristics(
            growth_habit=growth_habit,
            lifespan=lifespan,
            hardiness_zones=hardiness_zones,
            height_mature_cm=height_mature_cm,
            spread_mature_cm=spread_mature_cm,
        )
        return Plant(
            botanical_name=name,
            common_name=CommonName(common_name),
            taxonomy=taxonomy,
            growth_characteristics=growth,
            description=description,
            native_range=native_range,
        )

    @staticmethod
    def create_from_persistence(row) -> Plant:
        return Plant.from_persistence(row)
