"""
Admin Interfaces Layer
======================

Interface adapters (controllers) for the admin module.

Contains:
- Controllers: FastAPI routers for auth, users, categories, SLA targets
  and settings
"""

from helpdesk.admin.interfaces.controllers import (
    auth_router,
    users_router,
    categories_router,
    sla_config_router,
    settings_router,
)

__all__ = [
    "auth_router",
    "users_router",
    "categories_router",
    "sla_config_router",
    "settings_router",
]
