# Database models
from orderdesk.models.material import MaterialRecord

__all__ = [
    "MaterialRecord",
]
