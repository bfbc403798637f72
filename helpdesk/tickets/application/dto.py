"""
Ticket Application DTOs
=======================

Data Transfer Objects for the ticket API layer.

These Pydantic models handle serialization/deserialization and validation
for API requests and responses.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Dict, List, Optional, Literal
from datetime import datetime

from helpdesk.tickets.domain import (
    Ticket, TimelineEntry, InternalComment,
    TicketUpdate, DashboardStats
)


# ========== Type Aliases for Literals ==========
PriorityStr = Literal["low", "medium", "high", "critical"]
TicketStatusStr = Literal["open", "in_progress", "waiting_user", "resolved", "closed"]
TimelineTypeStr = Literal["comment", "status_change", "assignment", "priority_change"]
SLATimelinessStr = Literal["on_time", "near_deadline", "overdue"]


# ========== Request DTOs ==========

class TicketCreateRequest(BaseModel):
    """
    DTO for filing a ticket.

    id, timestamps, status, SLA deadline and logs are filled by the server.
    """
    title: str = Field(..., min_length=1, max_length=200, description="Short summary")
    description: str = Field(..., min_length=1, description="What is wrong")
    priority: PriorityStr = Field(default="medium", description="Requested priority")
    category_id: str = Field(..., min_length=1, description="Active category")
    attachments: List[str] = Field(default_factory=list, description="Attachment file names")

    @field_validator("title", "description")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class TicketUpdateRequest(BaseModel):
    """
    Partial update of status, priority and assignee.

    Send "assigned_to": null to unassign; omit the field to leave the
    assignee unchanged.
    """
    status: Optional[TicketStatusStr] = None
    priority: Optional[PriorityStr] = None
    assigned_to: Optional[str] = None

    def to_update(self) -> TicketUpdate:
        return TicketUpdate(
            status=self.status,
            priority=self.priority,
            assigned_to=self.assigned_to or None,
            assignment_given="assigned_to" in self.model_fields_set
        )


class MessageRequest(BaseModel):
    """Body of a comment or internal comment."""
    message: str = Field(..., min_length=1, max_length=10000)

    @field_validator("message")
    @classmethod
    def strip_message(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("message must not be blank")
        return v


# ========== Response DTOs ==========

class TimelineEntryResponse(BaseModel):
    id: str
    ticket_id: str
    user_id: str
    user_name: str
    message: str
    type: TimelineTypeStr
    created_at: datetime

    @classmethod
    def from_domain(cls, entry: TimelineEntry) -> "TimelineEntryResponse":
        return cls(
            id=entry.id,
            ticket_id=entry.ticket_id,
            user_id=entry.user_id,
            user_name=entry.user_name,
            message=entry.message,
            type=entry.type,
            created_at=entry.created_at
        )


class InternalCommentResponse(BaseModel):
    id: str
    ticket_id: str
    technician_id: str
    technician_name: str
    message: str
    created_at: datetime

    @classmethod
    def from_domain(cls, comment: InternalComment) -> "InternalCommentResponse":
        return cls(
            id=comment.id,
            ticket_id=comment.ticket_id,
            technician_id=comment.technician_id,
            technician_name=comment.technician_name,
            message=comment.message,
            created_at=comment.created_at
        )


class TicketSummaryResponse(BaseModel):
    """Ticket without its logs, as shown in lists."""
    id: str
    title: str
    description: str
    priority: PriorityStr
    status: TicketStatusStr
    category_id: str
    user_id: str
    assigned_to: Optional[str] = None
    attachments: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    resolved_at: Optional[datetime] = None
    sla_deadline: datetime
    sla_status: Optional[SLATimelinessStr] = Field(
        None, description="Timeliness against the SLA deadline; null once resolved or closed"
    )

    @classmethod
    def summary_fields(cls, ticket: Ticket, now: datetime) -> dict:
        return {
            "id": ticket.id,
            "title": ticket.title,
            "description": ticket.description,
            "priority": ticket.priority,
            "status": ticket.status,
            "category_id": ticket.category_id,
            "user_id": ticket.user_id,
            "assigned_to": ticket.assigned_to,
            "attachments": list(ticket.attachments),
            "created_at": ticket.created_at,
            "updated_at": ticket.updated_at,
            "resolved_at": ticket.resolved_at,
            "sla_deadline": ticket.sla_deadline,
            "sla_status": ticket.sla_timeliness(now),
        }

    @classmethod
    def from_domain(cls, ticket: Ticket, now: datetime) -> "TicketSummaryResponse":
        return cls(**cls.summary_fields(ticket, now))


class TicketDetailResponse(TicketSummaryResponse):
    """
    Ticket with its timeline.

    internal_comments is null when the viewer may not see them.
    """
    timeline: List[TimelineEntryResponse] = Field(default_factory=list)
    internal_comments: Optional[List[InternalCommentResponse]] = None

    @classmethod
    def from_domain(
        cls,
        ticket: Ticket,
        now: datetime,
        include_internal: bool = False
    ) -> "TicketDetailResponse":
        return cls(
            **cls.summary_fields(ticket, now),
            timeline=[TimelineEntryResponse.from_domain(e) for e in ticket.timeline],
            internal_comments=(
                [InternalCommentResponse.from_domain(c) for c in ticket.internal_comments]
                if include_internal else None
            )
        )


class CountBucketResponse(BaseModel):
    id: str
    name: str
    count: int


class DashboardResponse(BaseModel):
    """Aggregated counters for the dashboard."""
    total_tickets: int
    by_status: Dict[str, int]
    by_priority: Dict[str, int]
    by_category: List[CountBucketResponse]
    by_technician: List[CountBucketResponse]
    sla: Dict[str, int] = Field(..., description="Active tickets by SLA timeliness")
    average_resolution_hours: float

    @classmethod
    def from_domain(cls, stats: DashboardStats) -> "DashboardResponse":
        return cls(
            total_tickets=stats.total_tickets,
            by_status=stats.by_status,
            by_priority=stats.by_priority,
            by_category=[
                CountBucketResponse(id=b.id, name=b.name, count=b.count)
                for b in stats.by_category
            ],
            by_technician=[
                CountBucketResponse(id=b.id, name=b.name, count=b.count)
                for b in stats.by_technician
            ],
            sla=stats.sla,
            average_resolution_hours=round(stats.average_resolution_hours, 2)
        )
