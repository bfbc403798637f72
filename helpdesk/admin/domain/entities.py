"""
Admin Domain Entities
=====================

Pure Python entities for the people and reference data the helpdesk runs on:
users (requesters, technicians, administrators), ticket categories and
per-priority SLA targets.
"""

from dataclasses import dataclass
from datetime import datetime

from helpdesk.config import UserRole


@dataclass
class User:
    """
    A person interacting with the helpdesk.

    The role gates which mutations the user may perform
    (see helpdesk.core.permissions).
    """

    id: str
    name: str
    email: str
    password: str
    role: str
    created_at: datetime
    department: str = ""
    position: str = ""
    phone: str = ""

    @property
    def is_staff(self) -> bool:
        """Technicians and administrators work tickets; users only file them."""
        return self.role in (UserRole.TECHNICIAN, UserRole.ADMIN)

    @property
    def is_technician(self) -> bool:
        return self.role == UserRole.TECHNICIAN


@dataclass
class Category:
    """
    Ticket category.

    Supplies the SLA hour budget consumed when a ticket is created.
    Deactivated categories are hidden from ticket creation but stay
    referenced by existing tickets.
    """

    id: str
    name: str
    sla_hours: int
    created_at: datetime
    description: str = ""
    color: str = "#3B82F6"
    is_active: bool = True

    def __post_init__(self):
        if self.sla_hours < 1:
            raise ValueError("sla_hours must be at least 1")


@dataclass
class SLATarget:
    """Response and resolution hour targets for one priority level."""

    id: str
    priority: str
    response_hours: int
    resolution_hours: int

    def __post_init__(self):
        if self.response_hours > self.resolution_hours:
            raise ValueError("response_hours cannot exceed resolution_hours")
