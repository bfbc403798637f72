"""
Admin Domain Layer
==================

Contains:
- Entities: User, Category, SLATarget
- Value Objects: GeneralSettings, NotificationSettings

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from helpdesk.admin.domain.entities import User, Category, SLATarget
from helpdesk.admin.domain.value_objects import GeneralSettings, NotificationSettings

__all__ = [
    # Entities
    "User",
    "Category",
    "SLATarget",
    # Value Objects
    "GeneralSettings",
    "NotificationSettings",
]
