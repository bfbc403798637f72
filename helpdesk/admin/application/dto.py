"""
Admin Application DTOs
======================

Pydantic models for the admin API: users, categories and SLA targets.

Settings documents (GeneralSettings, NotificationSettings) are value objects
and double as their own request/response bodies.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Dict, Optional, Literal
from datetime import datetime

from helpdesk.admin.domain import User, Category, SLATarget


# ========== Type Aliases for Literals ==========
RoleStr = Literal["user", "technician", "admin"]
PriorityStr = Literal["low", "medium", "high", "critical"]


# ========== Request DTOs ==========

class LoginRequest(BaseModel):
    """Credentials for looking up the acting user."""
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)


class UserCreateRequest(BaseModel):
    """DTO for creating a user."""
    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1)
    department: str = Field(default="", max_length=200)
    position: str = Field(default="", max_length=200)
    phone: str = Field(default="", max_length=50)
    role: RoleStr = Field(default="user")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        if "@" not in v:
            raise ValueError("email must contain '@'")
        return v.strip().lower()


class UserUpdateRequest(BaseModel):
    """Partial update for a user; omitted fields stay unchanged."""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[str] = Field(None, min_length=3, max_length=320)
    password: Optional[str] = Field(None, min_length=1)
    department: Optional[str] = Field(None, max_length=200)
    position: Optional[str] = Field(None, max_length=200)
    phone: Optional[str] = Field(None, max_length=50)
    role: Optional[RoleStr] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        if "@" not in v:
            raise ValueError("email must contain '@'")
        return v.strip().lower()


class CategoryCreateRequest(BaseModel):
    """DTO for creating a category."""
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(default="", max_length=1000)
    color: str = Field(default="#3B82F6", pattern=r"^#[0-9A-Fa-f]{6}$")
    sla_hours: int = Field(default=24, ge=1, le=8760, description="Hours until a new ticket is overdue")
    is_active: bool = True


class CategoryUpdateRequest(BaseModel):
    """Partial update for a category."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    color: Optional[str] = Field(None, pattern=r"^#[0-9A-Fa-f]{6}$")
    sla_hours: Optional[int] = Field(None, ge=1, le=8760)
    is_active: Optional[bool] = None


class SLATargetUpdateRequest(BaseModel):
    """Update the hour fields of one SLA target."""
    response_hours: Optional[int] = Field(None, ge=1, le=8760)
    resolution_hours: Optional[int] = Field(None, ge=1, le=8760)


# ========== Response DTOs ==========

class UserResponse(BaseModel):
    """User profile. Never carries the password."""
    id: str
    name: str
    email: str
    department: str
    position: str
    phone: str
    role: RoleStr
    created_at: datetime

    @classmethod
    def from_domain(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            department=user.department,
            position=user.position,
            phone=user.phone,
            role=user.role,
            created_at=user.created_at
        )


class LoginResponse(BaseModel):
    """Result of a login attempt."""
    success: bool
    user: UserResponse


class CapabilitiesResponse(BaseModel):
    """What the acting user may do, keyed by capability name."""
    role: RoleStr
    capabilities: Dict[str, bool]


class CategoryResponse(BaseModel):
    id: str
    name: str
    description: str
    color: str
    sla_hours: int
    is_active: bool
    created_at: datetime

    @classmethod
    def from_domain(cls, category: Category) -> "CategoryResponse":
        return cls(
            id=category.id,
            name=category.name,
            description=category.description,
            color=category.color,
            sla_hours=category.sla_hours,
            is_active=category.is_active,
            created_at=category.created_at
        )


class SLATargetResponse(BaseModel):
    id: str
    priority: PriorityStr
    response_hours: int
    resolution_hours: int

    @classmethod
    def from_domain(cls, target: SLATarget) -> "SLATargetResponse":
        return cls(
            id=target.id,
            priority=target.priority,
            response_hours=target.response_hours,
            resolution_hours=target.resolution_hours
        )
