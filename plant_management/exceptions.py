"""
plant_management/exceptions.py — Errors raised by the plant domain layer.

Messages are written for end users: routes flash or return them as-is.
"""


class PlantManagementError(Exception):
    """Base class for plant domain errors."""


class DomainValidationError(PlantManagementError, ValueError):
    """A value object or aggregate rejected its input."""


class PlantAlreadyExistsError(PlantManagementError):
    """Another plant already uses this botanical name."""

    def __init__(self, botanical_name: str):
        self.botanical_name = botanical_name
        super().__init__(f"A plant with botanical name '{botanical_name}' already exists.")


class PlantNotFoundError(PlantManagementError):
    """No plant with the requested id."""

    def __init__(self, plant_id):
        self.plant_id = plant_id
        super().__init__(f"Plant {plant_id} not found.")
