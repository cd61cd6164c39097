"""
plant_management — Domain layer around the `plants` table.

Value objects validate botanical naming; the Plant aggregate keeps name and
taxonomy consistent; the repository maps aggregates to rows; command and
query handlers are what the routes call.
"""

from plant_management.commands import (
    CreatePlantCommand, CreatePlantCommandHandler,
    UpdatePlantCommand, UpdatePlantCommandHandler,
)
from plant_management.entities import Plant
from plant_management.exceptions import (
    PlantManagementError, DomainValidationError,
    PlantAlreadyExistsError, PlantNotFoundError,
)
from plant_management.factory import PlantFactory
from plant_management.queries import PlantDto, GetPlantByIdQuery, GetPlantByIdQueryHandler
from plant_management.repository import PlantRepository, SqlitePlantRepository
from plant_management.services import PlantService
from plant_management.value_objects import (
    PlantId, BotanicalName, CommonName, Taxonomy, GrowthCharacteristics,
)


def get_plant_repository() -> SqlitePlantRepository:
    """Repository bound to the current database."""
    return SqlitePlantRepository()
