"""
Admin Infrastructure Layer
==========================

Infrastructure implementations for the admin module:
- Models: SQLAlchemy ORM models
- Repositories: Data access layer
"""

from helpdesk.admin.infrastructure.models import (
    UserModel, CategoryModel, SLATargetModel, SettingModel
)
from helpdesk.admin.infrastructure.repositories import (
    SQLAlchemyUserRepository,
    SQLAlchemyCategoryRepository,
    SQLAlchemySLATargetRepository,
    SQLAlchemySettingsRepository,
)

__all__ = [
    "UserModel",
    "CategoryModel",
    "SLATargetModel",
    "SettingModel",
    "SQLAlchemyUserRepository",
    "SQLAlchemyCategoryRepository",
    "SQLAlchemySLATargetRepository",
    "SQLAlchemySettingsRepository",
]
