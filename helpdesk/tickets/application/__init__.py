"""
Ticket Application Layer
========================

Application services and DTOs for the ticket lifecycle.
"""

from helpdesk.tickets.application.dto import (
    TicketCreateRequest,
    TicketUpdateRequest,
    MessageRequest,
    TimelineEntryResponse,
    InternalCommentResponse,
    TicketSummaryResponse,
    TicketDetailResponse,
    CountBucketResponse,
    DashboardResponse,
)
from helpdesk.tickets.application.services import (
    ITicketRepository,
    ITicketNotifier,
    TicketService,
    DashboardService,
    SLAMonitorService,
    visibility_filters,
)

__all__ = [
    # DTOs
    "TicketCreateRequest",
    "TicketUpdateRequest",
    "MessageRequest",
    "TimelineEntryResponse",
    "InternalCommentResponse",
    "TicketSummaryResponse",
    "TicketDetailResponse",
    "CountBucketResponse",
    "DashboardResponse",
    # Services
    "ITicketRepository",
    "ITicketNotifier",
    "TicketService",
    "DashboardService",
    "SLAMonitorService",
    "visibility_filters",
]
