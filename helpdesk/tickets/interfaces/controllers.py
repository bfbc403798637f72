"""
Ticket Controllers (API Routes)
===============================

FastAPI routes for the ticket lifecycle and the dashboard.

Controllers are thin - they delegate to application services.
"""

from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from helpdesk.admin.application import ICategoryRepository, IUserRepository
from helpdesk.admin.domain import User
from helpdesk.config import Capability
from helpdesk.core import IUnitOfWork
from helpdesk.core.permissions import can_perform
from helpdesk.dependencies import (
    get_current_actor, get_ticket_repository,
    get_category_repository, get_user_repository,
    get_ticket_notifier, get_unit_of_work
)
from helpdesk.tickets.application import (
    ITicketRepository, ITicketNotifier,
    TicketService, DashboardService,
    TicketCreateRequest, TicketUpdateRequest, MessageRequest,
    TicketSummaryResponse, TicketDetailResponse,
    TimelineEntryResponse, InternalCommentResponse,
    DashboardResponse
)
from helpdesk.tickets.application.dto import PriorityStr, TicketStatusStr
from helpdesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/tickets", tags=["Tickets"])
dashboard_router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


# ========== Example payloads for Swagger ==========

TICKET_CREATE_EXAMPLE = {
    "title": "VPN drops every few minutes",
    "description": "Since this morning the VPN disconnects roughly every five minutes.",
    "priority": "high",
    "category_id": "cat-network",
    "attachments": ["vpn-log.txt"]
}

TICKET_DETAIL_EXAMPLE = {
    "id": "9b2f7c4e-5a61-4f0e-9d0c-2a8f3f0e1b11",
    "title": "VPN drops every few minutes",
    "description": "Since this morning the VPN disconnects roughly every five minutes.",
    "priority": "high",
    "status": "in_progress",
    "category_id": "cat-network",
    "user_id": "user-ana",
    "assigned_to": "tech-marco",
    "attachments": ["vpn-log.txt"],
    "created_at": "2024-01-01T00:00:00Z",
    "updated_at": "2024-01-01T01:00:00Z",
    "resolved_at": None,
    "sla_deadline": "2024-01-02T00:00:00Z",
    "sla_status": "on_time",
    "timeline": [
        {
            "id": "e0d6...",
            "ticket_id": "9b2f7c4e-5a61-4f0e-9d0c-2a8f3f0e1b11",
            "user_id": "tech-marco",
            "user_name": "Marco Silva",
            "message": "Status changed to In Progress",
            "type": "status_change",
            "created_at": "2024-01-01T01:00:00Z"
        }
    ],
    "internal_comments": []
}

GUARD_REJECTION_EXAMPLE = {
    "detail": "Ticket must be assigned to a technician before its status can change",
    "error_type": "ValidationException",
    "correlation_id": "3f1c...",
    "details": {"ticket_id": "9b2f7c4e-5a61-4f0e-9d0c-2a8f3f0e1b11", "status": "in_progress"}
}


# ========== Dependencies ==========

async def get_ticket_service(
    ticket_repo: ITicketRepository = Depends(get_ticket_repository),
    category_repo: ICategoryRepository = Depends(get_category_repository),
    user_repo: IUserRepository = Depends(get_user_repository),
    notifier: Optional[ITicketNotifier] = Depends(get_ticket_notifier),
    unit_of_work: IUnitOfWork = Depends(get_unit_of_work)
) -> TicketService:
    """Get ticket service instance."""
    return TicketService(
        ticket_repo, category_repo, user_repo, notifier, unit_of_work=unit_of_work
    )


async def get_dashboard_service(
    ticket_repo: ITicketRepository = Depends(get_ticket_repository),
    category_repo: ICategoryRepository = Depends(get_category_repository),
    user_repo: IUserRepository = Depends(get_user_repository)
) -> DashboardService:
    """Get dashboard service instance."""
    return DashboardService(ticket_repo, category_repo, user_repo)


def _detail(ticket, actor: User) -> TicketDetailResponse:
    return TicketDetailResponse.from_domain(
        ticket,
        datetime.now(timezone.utc),
        include_internal=can_perform(actor.role, Capability.INTERNAL_COMMENT)
    )


# ========== Route Handlers ==========

@router.get(
    "",
    response_model=List[TicketSummaryResponse],
    summary="List tickets",
    description="""
    List the tickets the caller may see, newest first.

    - **user**: tickets they filed
    - **technician**: tickets assigned to them, unassigned tickets, and their own
    - **admin**: every ticket

    Logs are not included; fetch a single ticket for its timeline.
    """
)
async def list_tickets(
    status_filter: Optional[TicketStatusStr] = Query(None, alias="status"),
    priority: Optional[PriorityStr] = Query(None),
    category_id: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    actor: User = Depends(get_current_actor),
    service: TicketService = Depends(get_ticket_service)
):
    tickets = await service.list_tickets(
        actor,
        status=status_filter,
        priority=priority,
        category_id=category_id,
        limit=limit,
        offset=offset
    )
    now = datetime.now(timezone.utc)
    return [TicketSummaryResponse.from_domain(t, now) for t in tickets]


@router.post(
    "",
    response_model=TicketDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a ticket",
    description="""
    File a new ticket in an active category.

    The server assigns the id, sets status `open`, stamps `created_at` and
    `updated_at`, and fixes `sla_deadline` as `created_at + category.sla_hours`.
    """,
    responses={
        201: {"content": {"application/json": {"example": TICKET_DETAIL_EXAMPLE}}},
        404: {"description": "Unknown category"},
        422: {"description": "Invalid payload or inactive category"}
    },
    openapi_extra={
        "requestBody": {"content": {"application/json": {"example": TICKET_CREATE_EXAMPLE}}}
    }
)
async def create_ticket(
    request: TicketCreateRequest,
    actor: User = Depends(get_current_actor),
    service: TicketService = Depends(get_ticket_service)
):
    ticket = await service.create_ticket(actor, request)
    return _detail(ticket, actor)


@router.get(
    "/{ticket_id}",
    response_model=TicketDetailResponse,
    summary="Get a ticket",
    description="Ticket with its timeline. `internal_comments` is null for end users.",
    responses={
        200: {"content": {"application/json": {"example": TICKET_DETAIL_EXAMPLE}}},
        404: {"description": "Ticket not found or not visible"}
    }
)
async def get_ticket(
    ticket_id: str,
    actor: User = Depends(get_current_actor),
    service: TicketService = Depends(get_ticket_service)
):
    ticket = await service.get_ticket(actor, ticket_id)
    return _detail(ticket, actor)


@router.put(
    "/{ticket_id}",
    response_model=TicketDetailResponse,
    summary="Update status, priority or assignee",
    description="""
    Partial update. Omitted fields are left unchanged; `"assigned_to": null`
    unassigns.

    A ticket can only leave `open` once it has an assignee. Every accepted
    change appends a timeline entry, and fields and entries are committed
    together.
    """,
    responses={
        403: {"description": "Role may not change one of the fields"},
        404: {"description": "Ticket or assignee not found"},
        422: {
            "description": "Transition rejected",
            "content": {"application/json": {"example": GUARD_REJECTION_EXAMPLE}}
        }
    }
)
async def update_ticket(
    ticket_id: str,
    request: TicketUpdateRequest,
    actor: User = Depends(get_current_actor),
    service: TicketService = Depends(get_ticket_service)
):
    ticket = await service.update_ticket(actor, ticket_id, request.to_update())
    return _detail(ticket, actor)


@router.post(
    "/{ticket_id}/start",
    response_model=TicketDetailResponse,
    summary="Start work on a ticket",
    description="Move an assigned ticket to `in_progress`.",
    responses={422: {"description": "Ticket has no assignee"}}
)
async def start_work(
    ticket_id: str,
    actor: User = Depends(get_current_actor),
    service: TicketService = Depends(get_ticket_service)
):
    ticket = await service.start_work(actor, ticket_id)
    return _detail(ticket, actor)


@router.delete(
    "/{ticket_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a ticket",
    description="Delete a ticket with its timeline and internal comments. Administrators only."
)
async def delete_ticket(
    ticket_id: str,
    actor: User = Depends(get_current_actor),
    service: TicketService = Depends(get_ticket_service)
):
    await service.delete_ticket(actor, ticket_id)


@router.get(
    "/{ticket_id}/timeline",
    response_model=List[TimelineEntryResponse],
    summary="Get ticket timeline",
    description="Timeline entries in insertion order."
)
async def list_timeline(
    ticket_id: str,
    actor: User = Depends(get_current_actor),
    service: TicketService = Depends(get_ticket_service)
):
    entries = await service.list_timeline(actor, ticket_id)
    return [TimelineEntryResponse.from_domain(e) for e in entries]


@router.post(
    "/{ticket_id}/timeline",
    response_model=TimelineEntryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Comment on a ticket"
)
async def add_comment(
    ticket_id: str,
    request: MessageRequest,
    actor: User = Depends(get_current_actor),
    service: TicketService = Depends(get_ticket_service)
):
    entry = await service.add_comment(actor, ticket_id, request.message)
    return TimelineEntryResponse.from_domain(entry)


@router.get(
    "/{ticket_id}/internal-comments",
    response_model=List[InternalCommentResponse],
    summary="List internal comments",
    description="Staff-only notes in insertion order. Technicians and administrators only."
)
async def list_internal_comments(
    ticket_id: str,
    actor: User = Depends(get_current_actor),
    service: TicketService = Depends(get_ticket_service)
):
    comments = await service.list_internal_comments(actor, ticket_id)
    return [InternalCommentResponse.from_domain(c) for c in comments]


@router.post(
    "/{ticket_id}/internal-comments",
    response_model=InternalCommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add an internal comment"
)
async def add_internal_comment(
    ticket_id: str,
    request: MessageRequest,
    actor: User = Depends(get_current_actor),
    service: TicketService = Depends(get_ticket_service)
):
    comment = await service.add_internal_comment(actor, ticket_id, request.message)
    return InternalCommentResponse.from_domain(comment)


@dashboard_router.get(
    "",
    response_model=DashboardResponse,
    summary="Dashboard figures",
    description="""
    Counts by status, priority, category and technician, the SLA summary of
    active tickets, and the average resolution time in hours. Computed over
    the tickets the caller may see.
    """
)
async def get_dashboard(
    actor: User = Depends(get_current_actor),
    service: DashboardService = Depends(get_dashboard_service)
):
    stats = await service.get_dashboard(actor)
    return DashboardResponse.from_domain(stats)
