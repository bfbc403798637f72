"""
Admin Application Services
==========================

Repository interfaces and the AdminService orchestrating user, category,
SLA target and settings management.

Following SOLID principles:
- Single Responsibility: AdminService only manages reference data
- Dependency Inversion: Depend on abstractions (repositories), not concrete implementations
"""

import hmac
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Callable, List, Optional
from uuid import uuid4

from helpdesk.admin.domain import (
    User, Category, SLATarget,
    GeneralSettings, NotificationSettings
)
from helpdesk.admin.application.dto import (
    UserCreateRequest, UserUpdateRequest,
    CategoryCreateRequest, CategoryUpdateRequest,
    SLATargetUpdateRequest
)
from helpdesk.config import Capability
from helpdesk.core import IUnitOfWork, ResourceNotFoundException, ValidationException
from helpdesk.core.permissions import require
from helpdesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


# ========== Repository Interfaces (Dependency Inversion) ==========

class IUserRepository(ABC):
    """Interface for user data access."""

    @abstractmethod
    async def get_by_id(self, user_id: str) -> Optional[User]:
        """Get user by ID."""

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email address."""

    @abstractmethod
    async def list(self, role: Optional[str] = None) -> List[User]:
        """List users, optionally restricted to one role."""

    @abstractmethod
    async def create(self, user: User) -> User:
        """Create new user."""

    @abstractmethod
    async def update(self, user: User) -> User:
        """Update existing user."""


class ICategoryRepository(ABC):
    """Interface for category data access."""

    @abstractmethod
    async def get_by_id(self, category_id: str) -> Optional[Category]:
        """Get category by ID, active or not."""

    @abstractmethod
    async def list(self, include_inactive: bool = False) -> List[Category]:
        """List categories; active ones only unless asked otherwise."""

    @abstractmethod
    async def create(self, category: Category) -> Category:
        """Create new category."""

    @abstractmethod
    async def update(self, category: Category) -> Category:
        """Update existing category."""


class ISLATargetRepository(ABC):
    """Interface for per-priority SLA targets."""

    @abstractmethod
    async def get_by_id(self, target_id: str) -> Optional[SLATarget]:
        """Get SLA target by ID."""

    @abstractmethod
    async def list(self) -> List[SLATarget]:
        """List all SLA targets."""

    @abstractmethod
    async def create(self, target: SLATarget) -> SLATarget:
        """Create new SLA target."""

    @abstractmethod
    async def update(self, target: SLATarget) -> SLATarget:
        """Update existing SLA target."""


class ISettingsRepository(ABC):
    """Interface for keyed JSON settings documents."""

    @abstractmethod
    async def get(self, key: str) -> Optional[dict]:
        """Get the stored document, or None if never saved."""

    @abstractmethod
    async def save(self, key: str, value: dict) -> dict:
        """Create or replace the document."""


# ========== Application Services ==========

class AdminService:
    """
    Service for helpdesk reference data.

    Every mutating method takes the acting user and checks the matching
    capability before touching a repository, and commits before returning.
    """

    def __init__(
        self,
        user_repository: IUserRepository,
        category_repository: ICategoryRepository,
        sla_target_repository: ISLATargetRepository,
        settings_repository: ISettingsRepository,
        clock: Optional[Callable[[], datetime]] = None,
        unit_of_work: Optional[IUnitOfWork] = None
    ):
        self._user_repo = user_repository
        self._category_repo = category_repository
        self._sla_repo = sla_target_repository
        self._settings_repo = settings_repository
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._uow = unit_of_work

    async def _commit(self) -> None:
        if self._uow is not None:
            await self._uow.commit()

    # ---------- Users ----------

    async def authenticate(self, email: str, password: str) -> Optional[User]:
        """Return the user whose email and password match, else None."""
        user = await self._user_repo.get_by_email(email.strip().lower())
        if user is None:
            return None
        if not hmac.compare_digest(user.password.encode(), password.encode()):
            return None
        return user

    async def list_users(self, actor: User, role: Optional[str] = None) -> List[User]:
        require(actor.role, Capability.LIST_USERS)
        return await self._user_repo.list(role)

    async def create_user(self, actor: User, request: UserCreateRequest) -> User:
        require(actor.role, Capability.MANAGE_USERS)

        if await self._user_repo.get_by_email(request.email):
            raise ValidationException(
                f"A user with email '{request.email}' already exists",
                {"email": request.email}
            )

        user = User(
            id=str(uuid4()),
            name=request.name,
            email=request.email,
            password=request.password,
            role=request.role,
            created_at=self._clock(),
            department=request.department,
            position=request.position,
            phone=request.phone
        )
        created = await self._user_repo.create(user)
        await self._commit()
        logger.info("User created", extra={"user_id": created.id, "role": created.role})
        return created

    async def update_user(self, actor: User, user_id: str, request: UserUpdateRequest) -> User:
        require(actor.role, Capability.MANAGE_USERS)

        user = await self._user_repo.get_by_id(user_id)
        if user is None:
            raise ResourceNotFoundException("User", user_id)

        changes = request.model_dump(exclude_unset=True, exclude_none=True)
        if "email" in changes and changes["email"] != user.email:
            if await self._user_repo.get_by_email(changes["email"]):
                raise ValidationException(
                    f"A user with email '{changes['email']}' already exists",
                    {"email": changes["email"]}
                )

        for field_name, value in changes.items():
            setattr(user, field_name, value)

        updated = await self._user_repo.update(user)
        await self._commit()
        logger.info(
            "User updated",
            extra={"user_id": user_id, "fields": sorted(changes)}
        )
        return updated

    # ---------- Categories ----------

    async def list_categories(self, actor: User, include_inactive: bool = False) -> List[Category]:
        if include_inactive:
            require(actor.role, Capability.MANAGE_CATEGORIES)
        return await self._category_repo.list(include_inactive)

    async def create_category(self, actor: User, request: CategoryCreateRequest) -> Category:
        require(actor.role, Capability.MANAGE_CATEGORIES)

        category = Category(
            id=str(uuid4()),
            name=request.name,
            sla_hours=request.sla_hours,
            created_at=self._clock(),
            description=request.description,
            color=request.color,
            is_active=request.is_active
        )
        created = await self._category_repo.create(category)
        await self._commit()
        logger.info(
            "Category created",
            extra={"category_id": created.id, "sla_hours": created.sla_hours}
        )
        return created

    async def update_category(
        self,
        actor: User,
        category_id: str,
        request: CategoryUpdateRequest
    ) -> Category:
        """
        Partially update a category.

        Changing sla_hours only affects tickets created afterwards; existing
        deadlines were fixed at creation.
        """
        require(actor.role, Capability.MANAGE_CATEGORIES)

        category = await self._category_repo.get_by_id(category_id)
        if category is None:
            raise ResourceNotFoundException("Category", category_id)

        changes = request.model_dump(exclude_unset=True, exclude_none=True)
        for field_name, value in changes.items():
            setattr(category, field_name, value)

        updated = await self._category_repo.update(category)
        await self._commit()
        logger.info(
            "Category updated",
            extra={"category_id": category_id, "fields": sorted(changes)}
        )
        return updated

    # ---------- SLA targets ----------

    async def list_sla_targets(self) -> List[SLATarget]:
        return await self._sla_repo.list()

    async def update_sla_target(
        self,
        actor: User,
        target_id: str,
        request: SLATargetUpdateRequest
    ) -> SLATarget:
        require(actor.role, Capability.MANAGE_SLA)

        target = await self._sla_repo.get_by_id(target_id)
        if target is None:
            raise ResourceNotFoundException("SLA target", target_id)

        response_hours = request.response_hours or target.response_hours
        resolution_hours = request.resolution_hours or target.resolution_hours
        if response_hours > resolution_hours:
            raise ValidationException(
                "response_hours cannot exceed resolution_hours",
                {"response_hours": response_hours, "resolution_hours": resolution_hours}
            )

        target.response_hours = response_hours
        target.resolution_hours = resolution_hours
        updated = await self._sla_repo.update(target)
        await self._commit()
        return updated

    # ---------- Settings ----------

    async def get_general_settings(self) -> GeneralSettings:
        stored = await self._settings_repo.get(GeneralSettings.KEY)
        return GeneralSettings(**stored) if stored else GeneralSettings()

    async def save_general_settings(self, actor: User, settings: GeneralSettings) -> GeneralSettings:
        require(actor.role, Capability.MANAGE_SETTINGS)
        await self._settings_repo.save(GeneralSettings.KEY, settings.model_dump())
        await self._commit()
        logger.info("General settings saved")
        return settings

    async def get_notification_settings(self, actor: User) -> NotificationSettings:
        require(actor.role, Capability.MANAGE_SETTINGS)
        stored = await self._settings_repo.get(NotificationSettings.KEY)
        return NotificationSettings(**stored) if stored else NotificationSettings()

    async def save_notification_settings(
        self,
        actor: User,
        settings: NotificationSettings
    ) -> NotificationSettings:
        require(actor.role, Capability.MANAGE_SETTINGS)
        await self._settings_repo.save(NotificationSettings.KEY, settings.model_dump())
        await self._commit()
        logger.info("Notification settings saved", extra=settings.model_dump())
        return settings
