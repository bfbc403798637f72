"""
Ticket Application Services
===========================

Application services orchestrate the ticket lifecycle and coordinate
between domain policies and repositories.

Following SOLID principles:
- Single Responsibility: Each service has one clear purpose
- Dependency Inversion: Depend on abstractions (repositories), not concrete implementations
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional
from uuid import uuid4

from helpdesk.admin.application.services import ICategoryRepository, IUserRepository
from helpdesk.admin.domain import User
from helpdesk.config import (
    Capability, TicketStatus, UserRole, SLATimeliness,
    TimelineEntryType, ACTIVE_STATUSES
)
from helpdesk.core import IUnitOfWork, ResourceNotFoundException, ValidationException
from helpdesk.core.permissions import can_perform, require
from helpdesk.shared.infrastructure.logging import get_logger
from helpdesk.tickets.application.dto import TicketCreateRequest
from helpdesk.tickets.domain import (
    Ticket, TimelineEntry, InternalComment, TicketUpdate,
    SLACalculator, TransitionGuard, DashboardAggregator, DashboardStats,
    can_view_ticket
)

logger = get_logger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ========== Repository Interfaces (Dependency Inversion) ==========

class ITicketRepository(ABC):
    """Interface for ticket data access."""

    @abstractmethod
    async def get_by_id(self, ticket_id: str, with_logs: bool = True) -> Optional[Ticket]:
        """Get ticket by ID, with timeline and internal comments unless told otherwise."""

    @abstractmethod
    async def list(
        self,
        filters: dict,
        limit: Optional[int] = None,
        offset: int = 0
    ) -> List[Ticket]:
        """
        List tickets without their logs, newest first.

        Supported filter keys:
            user_id: tickets filed by this user
            technician_id: tickets assigned to this technician, unassigned
                ones, or ones the technician filed
            status, priority, category_id: exact matches
            statuses: status must be one of these
        """

    @abstractmethod
    async def create(self, ticket: Ticket) -> Ticket:
        """Create new ticket."""

    @abstractmethod
    async def update(self, ticket: Ticket) -> Ticket:
        """Persist the scalar fields of an existing ticket."""

    @abstractmethod
    async def delete(self, ticket_id: str) -> bool:
        """Delete ticket with its logs. False if it did not exist."""

    @abstractmethod
    async def exists(self, ticket_id: str) -> bool:
        """Check if ticket exists."""

    @abstractmethod
    async def append_timeline_entry(self, entry: TimelineEntry) -> TimelineEntry:
        """Insert one timeline entry."""

    @abstractmethod
    async def append_internal_comment(self, comment: InternalComment) -> InternalComment:
        """Insert one internal comment."""

    @abstractmethod
    async def list_timeline(self, ticket_id: str) -> List[TimelineEntry]:
        """Timeline entries in insertion order."""

    @abstractmethod
    async def list_internal_comments(self, ticket_id: str) -> List[InternalComment]:
        """Internal comments in insertion order."""


class ITicketNotifier(ABC):
    """Interface for outbound ticket notifications. Delivery is best-effort."""

    @abstractmethod
    async def ticket_created(self, ticket: Ticket, actor: User) -> None:
        """A ticket was filed."""

    @abstractmethod
    async def ticket_updated(
        self,
        ticket: Ticket,
        actor: User,
        entries: List[TimelineEntry]
    ) -> None:
        """Status, priority or assignee changed."""

    @abstractmethod
    async def ticket_closed(self, ticket: Ticket, actor: User) -> None:
        """A ticket moved to closed."""

    @abstractmethod
    async def sla_risk(self, ticket: Ticket, timeliness: str, now: datetime) -> bool:
        """
        A ticket is near its deadline or overdue.

        Returns:
            True if the alert went out, False if it was skipped or failed
        """


def visibility_filters(actor: User) -> dict:
    """Repository filters restricting a listing to what the actor may see."""
    if can_perform(actor.role, Capability.VIEW_ALL_TICKETS):
        return {}
    if actor.role == UserRole.TECHNICIAN:
        return {"technician_id": actor.id}
    return {"user_id": actor.id}


# ========== Application Services ==========

class TicketService:
    """
    Service for the ticket lifecycle.

    Handles:
    - Creating tickets with a fixed SLA deadline
    - Role-filtered listing and retrieval
    - Guarded status, priority and assignment updates
    - Timeline comments and internal comments
    """

    def __init__(
        self,
        ticket_repository: ITicketRepository,
        category_repository: ICategoryRepository,
        user_repository: IUserRepository,
        notifier: Optional[ITicketNotifier] = None,
        clock: Optional[Callable[[], datetime]] = None,
        unit_of_work: Optional[IUnitOfWork] = None
    ):
        self._ticket_repo = ticket_repository
        self._category_repo = category_repository
        self._user_repo = user_repository
        self._notifier = notifier
        self._clock = clock or utc_now
        self._uow = unit_of_work

    async def _commit(self) -> None:
        # Without a unit of work the caller owns the transaction
        if self._uow is not None:
            await self._uow.commit()

    async def create_ticket(self, actor: User, request: TicketCreateRequest) -> Ticket:
        """
        File a new ticket.

        The SLA deadline is computed once from the category's sla_hours and
        never recomputed.

        Raises:
            ResourceNotFoundException: Unknown category
            ValidationException: Category is inactive
        """
        require(actor.role, Capability.CREATE_TICKET)

        category = await self._category_repo.get_by_id(request.category_id)
        if category is None:
            raise ResourceNotFoundException("Category", request.category_id)
        if not category.is_active:
            raise ValidationException(
                f"Category '{category.name}' is not accepting new tickets",
                {"category_id": category.id}
            )

        now = self._clock()
        ticket = Ticket(
            id=str(uuid4()),
            title=request.title,
            description=request.description,
            priority=request.priority,
            status=TicketStatus.OPEN,
            category_id=category.id,
            user_id=actor.id,
            created_at=now,
            updated_at=now,
            sla_deadline=SLACalculator.compute_deadline(now, category.sla_hours),
            attachments=list(request.attachments)
        )

        created = await self._ticket_repo.create(ticket)
        await self._commit()
        logger.info(
            "Ticket created",
            extra={
                "ticket_id": created.id,
                "priority": created.priority,
                "category_id": created.category_id,
                "sla_deadline": created.sla_deadline.isoformat()
            }
        )

        if self._notifier:
            await self._notifier.ticket_created(created, actor)
        return created

    async def list_tickets(
        self,
        actor: User,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        category_id: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0
    ) -> List[Ticket]:
        filters = visibility_filters(actor)
        if status:
            filters["status"] = status
        if priority:
            filters["priority"] = priority
        if category_id:
            filters["category_id"] = category_id
        return await self._ticket_repo.list(filters, limit=limit, offset=offset)

    async def get_ticket(self, actor: User, ticket_id: str) -> Ticket:
        """
        Get a ticket with its logs.

        Tickets the actor may not see are reported as missing. Internal
        comments are dropped for actors without the internal_comment
        capability.
        """
        ticket = await self._get_visible(actor, ticket_id)
        if not can_perform(actor.role, Capability.INTERNAL_COMMENT):
            ticket.internal_comments = []
        return ticket

    async def update_ticket(self, actor: User, ticket_id: str, update: TicketUpdate) -> Ticket:
        """
        Apply a guarded status/priority/assignment update.

        The field changes and their timeline entries commit together before
        any notification goes out.

        Raises:
            ResourceNotFoundException: Unknown or invisible ticket, unknown assignee
            PermissionDeniedException: Actor may not change a requested field
            ValidationException: Ticket would leave 'open' unassigned, or
                the assignee is not a technician
        """
        ticket = await self._get_visible(actor, ticket_id)
        TransitionGuard.check(actor, ticket, update)

        assignee_name = None
        if update.assignment_given and update.assigned_to:
            assignee = await self._user_repo.get_by_id(update.assigned_to)
            if assignee is None:
                raise ResourceNotFoundException("User", update.assigned_to)
            if not assignee.is_technician:
                raise ValidationException(
                    "Tickets can only be assigned to technicians",
                    {"assigned_to": assignee.id, "role": assignee.role}
                )
            assignee_name = assignee.name

        previous_status = ticket.status
        entries = TransitionGuard.apply(actor, ticket, update, self._clock(), assignee_name)

        await self._ticket_repo.update(ticket)
        for entry in entries:
            await self._ticket_repo.append_timeline_entry(entry)
        ticket.timeline.extend(entries)
        await self._commit()

        logger.info(
            "Ticket updated",
            extra={
                "ticket_id": ticket.id,
                "actor_id": actor.id,
                "status": ticket.status,
                "assigned_to": ticket.assigned_to,
                "timeline_entries": len(entries)
            }
        )

        if self._notifier and entries:
            if ticket.status == TicketStatus.CLOSED and previous_status != TicketStatus.CLOSED:
                await self._notifier.ticket_closed(ticket, actor)
            else:
                await self._notifier.ticket_updated(ticket, actor, entries)

        if not can_perform(actor.role, Capability.INTERNAL_COMMENT):
            ticket.internal_comments = []
        return ticket

    async def start_work(self, actor: User, ticket_id: str) -> Ticket:
        """Move an assigned ticket to in_progress."""
        return await self.update_ticket(
            actor, ticket_id, TicketUpdate(status=TicketStatus.IN_PROGRESS)
        )

    async def delete_ticket(self, actor: User, ticket_id: str) -> None:
        require(actor.role, Capability.DELETE_TICKET)
        if not await self._ticket_repo.delete(ticket_id):
            raise ResourceNotFoundException("Ticket", ticket_id)
        await self._commit()
        logger.info("Ticket deleted", extra={"ticket_id": ticket_id, "actor_id": actor.id})

    async def append_timeline_entry(
        self,
        ticket_id: str,
        author: User,
        message: str,
        entry_type: str = TimelineEntryType.COMMENT
    ) -> TimelineEntry:
        """
        Append one entry to a ticket's timeline.

        Raises:
            ResourceNotFoundException: Unknown ticket
        """
        if not await self._ticket_repo.exists(ticket_id):
            raise ResourceNotFoundException("Ticket", ticket_id)

        entry = TimelineEntry.new(
            ticket_id, author.id, author.name, message, entry_type, self._clock()
        )
        saved = await self._ticket_repo.append_timeline_entry(entry)
        await self._commit()
        return saved

    async def add_comment(self, actor: User, ticket_id: str, message: str) -> TimelineEntry:
        require(actor.role, Capability.COMMENT)
        await self._get_visible(actor, ticket_id, with_logs=False)
        entry = await self.append_timeline_entry(ticket_id, actor, message)
        logger.info("Comment added", extra={"ticket_id": ticket_id, "actor_id": actor.id})
        return entry

    async def list_timeline(self, actor: User, ticket_id: str) -> List[TimelineEntry]:
        await self._get_visible(actor, ticket_id, with_logs=False)
        return await self._ticket_repo.list_timeline(ticket_id)

    async def add_internal_comment(
        self,
        actor: User,
        ticket_id: str,
        message: str
    ) -> InternalComment:
        """
        Append a staff-only note.

        Raises:
            PermissionDeniedException: Actor is not staff
            ResourceNotFoundException: Unknown or invisible ticket
        """
        require(actor.role, Capability.INTERNAL_COMMENT)
        await self._get_visible(actor, ticket_id, with_logs=False)

        comment = InternalComment.new(ticket_id, actor.id, actor.name, message, self._clock())
        saved = await self._ticket_repo.append_internal_comment(comment)
        await self._commit()
        logger.info(
            "Internal comment added",
            extra={"ticket_id": ticket_id, "actor_id": actor.id}
        )
        return saved

    async def list_internal_comments(self, actor: User, ticket_id: str) -> List[InternalComment]:
        require(actor.role, Capability.INTERNAL_COMMENT)
        await self._get_visible(actor, ticket_id, with_logs=False)
        return await self._ticket_repo.list_internal_comments(ticket_id)

    async def _get_visible(self, actor: User, ticket_id: str, with_logs: bool = True) -> Ticket:
        ticket = await self._ticket_repo.get_by_id(ticket_id, with_logs=with_logs)
        if ticket is None or not can_view_ticket(actor, ticket):
            raise ResourceNotFoundException("Ticket", ticket_id)
        return ticket


class DashboardService:
    """Service computing dashboard figures over the tickets an actor may see."""

    def __init__(
        self,
        ticket_repository: ITicketRepository,
        category_repository: ICategoryRepository,
        user_repository: IUserRepository,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self._ticket_repo = ticket_repository
        self._category_repo = category_repository
        self._user_repo = user_repository
        self._clock = clock or utc_now

    async def get_dashboard(self, actor: User) -> DashboardStats:
        tickets = await self._ticket_repo.list(visibility_filters(actor))
        categories = await self._category_repo.list()
        technicians = await self._user_repo.list(role=UserRole.TECHNICIAN)
        return DashboardAggregator.aggregate(tickets, categories, technicians, self._clock())


class SLAMonitorService:
    """
    Periodic SLA sweep over active tickets.

    Sends one alert per ticket per risk state. An alert that was not
    delivered is retried on the next sweep. A ticket that goes back to
    on_time, or stops being active, is forgotten so a later relapse alerts
    again. The alert memory lives in the process.
    """

    RISK_STATES = (SLATimeliness.NEAR_DEADLINE, SLATimeliness.OVERDUE)

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or utc_now
        self._alerted: Dict[str, str] = {}

    async def run_once(self, ticket_repository: ITicketRepository, notifier: ITicketNotifier) -> int:
        """
        Classify every active ticket and alert on new risk states.

        Returns:
            Number of alerts sent
        """
        now = self._clock()
        tickets = await ticket_repository.list({"statuses": list(ACTIVE_STATUSES)})

        sent = 0
        seen = set()
        for ticket in tickets:
            seen.add(ticket.id)
            state = ticket.sla_timeliness(now)

            if state not in self.RISK_STATES:
                self._alerted.pop(ticket.id, None)
                continue
            if self._alerted.get(ticket.id) == state:
                continue

            if not await notifier.sla_risk(ticket, state, now):
                continue
            self._alerted[ticket.id] = state
            sent += 1

        for ticket_id in list(self._alerted):
            if ticket_id not in seen:
                del self._alerted[ticket_id]

        logger.info(
            "SLA sweep finished",
            extra={"active_tickets": len(tickets), "alerts_sent": sent}
        )
        return sent
