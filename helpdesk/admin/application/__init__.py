"""
Admin Application Layer
=======================

Contains:
- Services: AdminService for users, categories, SLA targets and settings
- DTOs: Data transfer objects for API serialization
- Repository interfaces implemented by the infrastructure layer

This layer depends on the domain layer and repository interfaces,
but not on concrete infrastructure implementations.
"""

from helpdesk.admin.application.dto import (
    LoginRequest,
    LoginResponse,
    UserCreateRequest,
    UserUpdateRequest,
    UserResponse,
    CapabilitiesResponse,
    CategoryCreateRequest,
    CategoryUpdateRequest,
    CategoryResponse,
    SLATargetUpdateRequest,
    SLATargetResponse,
)
from helpdesk.admin.application.services import (
    AdminService,
    IUserRepository,
    ICategoryRepository,
    ISLATargetRepository,
    ISettingsRepository,
)

__all__ = [
    # DTOs
    "LoginRequest",
    "LoginResponse",
    "UserCreateRequest",
    "UserUpdateRequest",
    "UserResponse",
    "CapabilitiesResponse",
    "CategoryCreateRequest",
    "CategoryUpdateRequest",
    "CategoryResponse",
    "SLATargetUpdateRequest",
    "SLATargetResponse",
    # Services
    "AdminService",
    # Repository Interfaces
    "IUserRepository",
    "ICategoryRepository",
    "ISLATargetRepository",
    "ISettingsRepository",
]
