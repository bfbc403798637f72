"""
Configuration Module
====================

Application settings and configuration management using Pydantic.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from functools import lru_cache
from pathlib import Path
from typing import List, Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="helpdesk-service", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root logging level")

    # ========== Server ==========
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port", ge=1, le=65535)

    # ========== Database ==========
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/helpdesk",
        description="Database connection URL (async driver)"
    )
    db_pool_size: int = Field(default=5, description="Database connection pool size", ge=1)
    db_max_overflow: int = Field(default=10, description="Max overflow connections", ge=0)

    # ========== Seed Data ==========
    seed_data_path: Path = Field(
        default=Path("seed_data.yaml"),
        description="Path to the YAML file with initial users, categories and SLA targets"
    )

    # ========== SLA Monitor ==========
    sla_monitor_interval: int = Field(
        default=300,
        description="Seconds between SLA monitor runs (0 disables the monitor)",
        ge=0
    )

    # ========== Slack Integration ==========
    slack_webhook_url: Optional[str] = Field(
        default=None,
        description="Slack webhook URL for ticket notifications"
    )
    slack_channel: str = Field(
        default="#helpdesk",
        description="Slack channel for ticket notifications"
    )
    slack_timeout_seconds: float = Field(
        default=5.0,
        description="Timeout for Slack API calls",
        ge=0.1,
        le=30
    )
    ticket_url_template: str = Field(
        default="https://helpdesk.example.com/tickets/{ticket_id}",
        description="Link used in notifications, formatted with ticket_id"
    )

    # ========== CORS ==========
    cors_origins: List[str] = Field(
        default=["http://localhost:5173", "http://localhost:3000"],
        description="Allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR"}
        if v.upper() not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return v.upper()


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


# ========== Constants ==========

class Priority(str):
    """Ticket priority levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class TicketStatus(str):
    """Ticket lifecycle statuses."""
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    WAITING_USER = "waiting_user"
    RESOLVED = "resolved"
    CLOSED = "closed"


class UserRole(str):
    """Roles gating which mutations a user may perform."""
    USER = "user"
    TECHNICIAN = "technician"
    ADMIN = "admin"


class TimelineEntryType(str):
    """Kinds of audit entries on a ticket timeline."""
    COMMENT = "comment"
    STATUS_CHANGE = "status_change"
    ASSIGNMENT = "assignment"
    PRIORITY_CHANGE = "priority_change"


class SLATimeliness(str):
    """Timeliness of an active ticket against its SLA deadline."""
    ON_TIME = "on_time"
    NEAR_DEADLINE = "near_deadline"
    OVERDUE = "overdue"


class Capability(str):
    """Actions checked against the actor's role."""
    CREATE_TICKET = "create_ticket"
    VIEW_ALL_TICKETS = "view_all_tickets"
    CHANGE_STATUS = "change_status"
    CHANGE_PRIORITY = "change_priority"
    ASSIGN_TICKET = "assign_ticket"
    COMMENT = "comment"
    INTERNAL_COMMENT = "internal_comment"
    DELETE_TICKET = "delete_ticket"
    LIST_USERS = "list_users"
    MANAGE_USERS = "manage_users"
    MANAGE_CATEGORIES = "manage_categories"
    MANAGE_SLA = "manage_sla"
    MANAGE_SETTINGS = "manage_settings"


# ========== Display labels ==========

STATUS_LABELS = {
    TicketStatus.OPEN: "Open",
    TicketStatus.IN_PROGRESS: "In Progress",
    TicketStatus.WAITING_USER: "Waiting for User",
    TicketStatus.RESOLVED: "Resolved",
    TicketStatus.CLOSED: "Closed",
}
PRIORITY_LABELS = {
    Priority.LOW: "Low",
    Priority.MEDIUM: "Medium",
    Priority.HIGH: "High",
    Priority.CRITICAL: "Critical",
}


# ========== Lists for validation ==========

VALID_PRIORITIES = [
    Priority.LOW, Priority.MEDIUM,
    Priority.HIGH, Priority.CRITICAL
]
VALID_STATUSES = [
    TicketStatus.OPEN, TicketStatus.IN_PROGRESS,
    TicketStatus.WAITING_USER, TicketStatus.RESOLVED,
    TicketStatus.CLOSED
]
ACTIVE_STATUSES = [
    TicketStatus.OPEN, TicketStatus.IN_PROGRESS, TicketStatus.WAITING_USER
]
VALID_ROLES = [UserRole.USER, UserRole.TECHNICIAN, UserRole.ADMIN]
VALID_TIMELINE_TYPES = [
    TimelineEntryType.COMMENT, TimelineEntryType.STATUS_CHANGE,
    TimelineEntryType.ASSIGNMENT, TimelineEntryType.PRIORITY_CHANGE
]
VALID_SLA_TIMELINESS = [
    SLATimeliness.ON_TIME, SLATimeliness.NEAR_DEADLINE, SLATimeliness.OVERDUE
]
