"""
Admin Infrastructure Repositories
=================================

Concrete implementations of the admin repository interfaces using SQLAlchemy.
"""

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from helpdesk.admin.application import (
    IUserRepository, ICategoryRepository,
    ISLATargetRepository, ISettingsRepository
)
from helpdesk.admin.domain import User, Category, SLATarget
from helpdesk.admin.infrastructure.models import (
    UserModel, CategoryModel, SLATargetModel, SettingModel
)
from helpdesk.core import RepositoryException
from helpdesk.infrastructure.database import as_utc, store_operation


def _user_to_entity(model: UserModel) -> User:
    return User(
        id=model.id,
        name=model.name,
        email=model.email,
        password=model.password,
        role=model.role,
        created_at=as_utc(model.created_at),
        department=model.department,
        position=model.position,
        phone=model.phone
    )


def _category_to_entity(model: CategoryModel) -> Category:
    return Category(
        id=model.id,
        name=model.name,
        sla_hours=model.sla_hours,
        created_at=as_utc(model.created_at),
        description=model.description,
        color=model.color,
        is_active=model.is_active
    )


def _sla_target_to_entity(model: SLATargetModel) -> SLATarget:
    return SLATarget(
        id=model.id,
        priority=model.priority,
        response_hours=model.response_hours,
        resolution_hours=model.resolution_hours
    )


class SQLAlchemyUserRepository(IUserRepository):
    """SQLAlchemy implementation of user repository."""

    def __init__(self, session: AsyncSession):
        self._session = session

    @store_operation("user.get")
    async def get_by_id(self, user_id: str) -> Optional[User]:
        model = await self._session.get(UserModel, user_id)
        return _user_to_entity(model) if model else None

    @store_operation("user.get_by_email")
    async def get_by_email(self, email: str) -> Optional[User]:
        stmt = select(UserModel).where(UserModel.email == email)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return _user_to_entity(model) if model else None

    @store_operation("user.list")
    async def list(self, role: Optional[str] = None) -> List[User]:
        stmt = select(UserModel)
        if role:
            stmt = stmt.where(UserModel.role == role)
        stmt = stmt.order_by(UserModel.name.asc())

        result = await self._session.execute(stmt)
        return [_user_to_entity(model) for model in result.scalars().all()]

    @store_operation("user.create")
    async def create(self, user: User) -> User:
        model = UserModel(
            id=user.id,
            name=user.name,
            email=user.email,
            password=user.password,
            department=user.department,
            position=user.position,
            phone=user.phone,
            role=user.role,
            created_at=user.created_at
        )
        self._session.add(model)
        await self._session.flush()
        return _user_to_entity(model)

    @store_operation("user.update")
    async def update(self, user: User) -> User:
        model = await self._session.get(UserModel, user.id)
        if not model:
            raise RepositoryException(f"User {user.id} not found")

        model.name = user.name
        model.email = user.email
        model.password = user.password
        model.department = user.department
        model.position = user.position
        model.phone = user.phone
        model.role = user.role

        await self._session.flush()
        return _user_to_entity(model)


class SQLAlchemyCategoryRepository(ICategoryRepository):
    """SQLAlchemy implementation of category repository."""

    def __init__(self, session: AsyncSession):
        self._session = session

    @store_operation("category.get")
    async def get_by_id(self, category_id: str) -> Optional[Category]:
        model = await self._session.get(CategoryModel, category_id)
        return _category_to_entity(model) if model else None

    @store_operation("category.list")
    async def list(self, include_inactive: bool = False) -> List[Category]:
        stmt = select(CategoryModel)
        if not include_inactive:
            stmt = stmt.where(CategoryModel.is_active.is_(True))
        stmt = stmt.order_by(CategoryModel.name.asc())

        result = await self._session.execute(stmt)
        return [_category_to_entity(model) for model in result.scalars().all()]

    @store_operation("category.create")
    async def create(self, category: Category) -> Category:
        model = CategoryModel(
            id=category.id,
            name=category.name,
            description=category.description,
            color=category.color,
            sla_hours=category.sla_hours,
            is_active=category.is_active,
            created_at=category.created_at
        )
        self._session.add(model)
        await self._session.flush()
        return _category_to_entity(model)

    @store_operation("category.update")
    async def update(self, category: Category) -> Category:
        model = await self._session.get(CategoryModel, category.id)
        if not model:
            raise RepositoryException(f"Category {category.id} not found")

        model.name = category.name
        model.description = category.description
        model.color = category.color
        model.sla_hours = category.sla_hours
        model.is_active = category.is_active

        await self._session.flush()
        return _category_to_entity(model)


class SQLAlchemySLATargetRepository(ISLATargetRepository):
    """SQLAlchemy implementation of SLA target repository."""

    def __init__(self, session: AsyncSession):
        self._session = session

    @store_operation("sla_target.get")
    async def get_by_id(self, target_id: str) -> Optional[SLATarget]:
        model = await self._session.get(SLATargetModel, target_id)
        return _sla_target_to_entity(model) if model else None

    @store_operation("sla_target.list")
    async def list(self) -> List[SLATarget]:
        result = await self._session.execute(select(SLATargetModel))
        return [_sla_target_to_entity(model) for model in result.scalars().all()]

    @store_operation("sla_target.create")
    async def create(self, target: SLATarget) -> SLATarget:
        model = SLATargetModel(
            id=target.id,
            priority=target.priority,
            response_hours=target.response_hours,
            resolution_hours=target.resolution_hours
        )
        self._session.add(model)
        await self._session.flush()
        return _sla_target_to_entity(model)

    @store_operation("sla_target.update")
    async def update(self, target: SLATarget) -> SLATarget:
        model = await self._session.get(SLATargetModel, target.id)
        if not model:
            raise RepositoryException(f"SLA target {target.id} not found")

        model.response_hours = target.response_hours
        model.resolution_hours = target.resolution_hours

        await self._session.flush()
        return _sla_target_to_entity(model)


class SQLAlchemySettingsRepository(ISettingsRepository):
    """Settings documents stored as JSON rows keyed by document name."""

    def __init__(self, session: AsyncSession):
        self._session = session

    @store_operation("settings.get")
    async def get(self, key: str) -> Optional[dict]:
        model = await self._session.get(SettingModel, key)
        return dict(model.value) if model else None

    @store_operation("settings.save")
    async def save(self, key: str, value: dict) -> dict:
        model = await self._session.get(SettingModel, key)
        now = datetime.now(timezone.utc)

        if model is None:
            model = SettingModel(key=key, value=dict(value), updated_at=now)
            self._session.add(model)
        else:
            # Reassign so the JSON column is marked dirty
            model.value = dict(value)
            model.updated_at = now

        await self._session.flush()
        return dict(model.value)
