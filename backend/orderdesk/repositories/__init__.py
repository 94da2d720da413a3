"""Repository layer for database operations."""

from orderdesk.repositories.material_repository import MaterialRepository

__all__ = [
    "MaterialRepository",
]
