"""
Admin Controllers (API Routes)
==============================

FastAPI routes for login, users, categories, SLA targets and settings.

Controllers are thin - they delegate to application services.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from helpdesk.admin.application import (
    AdminService,
    IUserRepository, ICategoryRepository,
    ISLATargetRepository, ISettingsRepository,
    LoginRequest, LoginResponse,
    UserCreateRequest, UserUpdateRequest, UserResponse,
    CapabilitiesResponse,
    CategoryCreateRequest, CategoryUpdateRequest, CategoryResponse,
    SLATargetUpdateRequest, SLATargetResponse
)
from helpdesk.admin.application.dto import RoleStr
from helpdesk.admin.domain import User, GeneralSettings, NotificationSettings
from helpdesk.core import IUnitOfWork
from helpdesk.core.permissions import capabilities_for
from helpdesk.dependencies import (
    get_current_actor,
    get_user_repository, get_category_repository,
    get_sla_target_repository, get_settings_repository,
    get_unit_of_work
)
from helpdesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

auth_router = APIRouter(prefix="/auth", tags=["Auth"])
users_router = APIRouter(prefix="/users", tags=["Users"])
categories_router = APIRouter(prefix="/categories", tags=["Categories"])
sla_config_router = APIRouter(prefix="/sla-config", tags=["SLA Targets"])
settings_router = APIRouter(prefix="/settings", tags=["Settings"])


# ========== Dependencies ==========

async def get_admin_service(
    user_repo: IUserRepository = Depends(get_user_repository),
    category_repo: ICategoryRepository = Depends(get_category_repository),
    sla_target_repo: ISLATargetRepository = Depends(get_sla_target_repository),
    settings_repo: ISettingsRepository = Depends(get_settings_repository),
    unit_of_work: IUnitOfWork = Depends(get_unit_of_work)
) -> AdminService:
    """Get admin service instance."""
    return AdminService(
        user_repo, category_repo, sla_target_repo, settings_repo,
        unit_of_work=unit_of_work
    )


# ========== Auth ==========

@auth_router.post(
    "/login",
    response_model=LoginResponse,
    summary="Log in",
    description="""
    Look up a user by email and password and return the profile.

    The returned `id` is sent as `X-User-Id` on later requests.
    """,
    responses={401: {"description": "Invalid email or password"}}
)
async def login(
    request: LoginRequest,
    service: AdminService = Depends(get_admin_service)
):
    user = await service.authenticate(request.email, request.password)
    if user is None:
        logger.info("Login rejected")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )

    logger.info("Login succeeded", extra={"user_id": user.id, "role": user.role})
    return LoginResponse(success=True, user=UserResponse.from_domain(user))


# ========== Users ==========

@users_router.get(
    "/me/capabilities",
    response_model=CapabilitiesResponse,
    summary="Capabilities of the caller",
    description="Which operations the caller's role allows, for hiding controls client-side."
)
async def my_capabilities(actor: User = Depends(get_current_actor)):
    return CapabilitiesResponse(role=actor.role, capabilities=capabilities_for(actor.role))


@users_router.get(
    "",
    response_model=List[UserResponse],
    summary="List users",
    description="Technicians and administrators only. Filter with `role`, e.g. `?role=technician`."
)
async def list_users(
    role: Optional[RoleStr] = Query(None),
    actor: User = Depends(get_current_actor),
    service: AdminService = Depends(get_admin_service)
):
    users = await service.list_users(actor, role)
    return [UserResponse.from_domain(u) for u in users]


@users_router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a user",
    responses={422: {"description": "Invalid payload or email already in use"}}
)
async def create_user(
    request: UserCreateRequest,
    actor: User = Depends(get_current_actor),
    service: AdminService = Depends(get_admin_service)
):
    user = await service.create_user(actor, request)
    return UserResponse.from_domain(user)


@users_router.put(
    "/{user_id}",
    response_model=UserResponse,
    summary="Update a user"
)
async def update_user(
    user_id: str,
    request: UserUpdateRequest,
    actor: User = Depends(get_current_actor),
    service: AdminService = Depends(get_admin_service)
):
    user = await service.update_user(actor, user_id, request)
    return UserResponse.from_domain(user)


# ========== Categories ==========

@categories_router.get(
    "",
    response_model=List[CategoryResponse],
    summary="List categories",
    description="Active categories. Administrators may pass `include_inactive=true`."
)
async def list_categories(
    include_inactive: bool = Query(False),
    actor: User = Depends(get_current_actor),
    service: AdminService = Depends(get_admin_service)
):
    categories = await service.list_categories(actor, include_inactive)
    return [CategoryResponse.from_domain(c) for c in categories]


@categories_router.post(
    "",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a category"
)
async def create_category(
    request: CategoryCreateRequest,
    actor: User = Depends(get_current_actor),
    service: AdminService = Depends(get_admin_service)
):
    category = await service.create_category(actor, request)
    return CategoryResponse.from_domain(category)


@categories_router.put(
    "/{category_id}",
    response_model=CategoryResponse,
    summary="Update a category",
    description="""
    Partial update. A new `sla_hours` applies to tickets created afterwards;
    existing deadlines are not recomputed.
    """
)
async def update_category(
    category_id: str,
    request: CategoryUpdateRequest,
    actor: User = Depends(get_current_actor),
    service: AdminService = Depends(get_admin_service)
):
    category = await service.update_category(actor, category_id, request)
    return CategoryResponse.from_domain(category)


# ========== SLA targets ==========

@sla_config_router.get(
    "",
    response_model=List[SLATargetResponse],
    summary="List SLA targets",
    description="Response and resolution hour targets per priority."
)
async def list_sla_targets(
    actor: User = Depends(get_current_actor),
    service: AdminService = Depends(get_admin_service)
):
    targets = await service.list_sla_targets()
    return [SLATargetResponse.from_domain(t) for t in targets]


@sla_config_router.put(
    "/{target_id}",
    response_model=SLATargetResponse,
    summary="Update an SLA target"
)
async def update_sla_target(
    target_id: str,
    request: SLATargetUpdateRequest,
    actor: User = Depends(get_current_actor),
    service: AdminService = Depends(get_admin_service)
):
    target = await service.update_sla_target(actor, target_id, request)
    return SLATargetResponse.from_domain(target)


# ========== Settings ==========

@settings_router.get("/general", response_model=GeneralSettings, summary="General settings")
async def get_general_settings(
    actor: User = Depends(get_current_actor),
    service: AdminService = Depends(get_admin_service)
):
    return await service.get_general_settings()


@settings_router.put("/general", response_model=GeneralSettings, summary="Save general settings")
async def save_general_settings(
    request: GeneralSettings,
    actor: User = Depends(get_current_actor),
    service: AdminService = Depends(get_admin_service)
):
    return await service.save_general_settings(actor, request)


@settings_router.get(
    "/notifications",
    response_model=NotificationSettings,
    summary="Notification settings"
)
async def get_notification_settings(
    actor: User = Depends(get_current_actor),
    service: AdminService = Depends(get_admin_service)
):
    return await service.get_notification_settings(actor)


@settings_router.put(
    "/notifications",
    response_model=NotificationSettings,
    summary="Save notification settings",
    description="Toggles for the Slack notifications sent on ticket events and SLA risk."
)
async def save_notification_settings(
    request: NotificationSettings,
    actor: User = Depends(get_current_actor),
    service: AdminService = Depends(get_admin_service)
):
    return await service.save_notification_settings(actor, request)
