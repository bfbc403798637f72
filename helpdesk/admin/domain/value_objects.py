"""
Admin Value Objects
===================

Settings documents administrators edit from the settings screen.

Each document is stored as one JSON value under a fixed key. A document
that was never saved reads back as its defaults.
"""

from typing import ClassVar

from pydantic import BaseModel, Field


class GeneralSettings(BaseModel):
    """Branding and contact details shown to requesters."""

    KEY: ClassVar[str] = "general"

    company_name: str = Field(default="HelpDesk Pro", min_length=1)
    support_email: str = Field(default="support@example.com", min_length=3)


class NotificationSettings(BaseModel):
    """Which ticket events trigger a Slack notification."""

    KEY: ClassVar[str] = "notifications"

    notify_on_new: bool = Field(default=True, description="Ticket created")
    notify_on_update: bool = Field(default=True, description="Status, priority or assignment changed")
    notify_on_close: bool = Field(default=True, description="Ticket closed")
    notify_on_sla_risk: bool = Field(default=True, description="Ticket near or past its SLA deadline")
