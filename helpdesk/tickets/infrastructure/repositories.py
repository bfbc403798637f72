"""
Ticket Infrastructure Repositories
==================================

Concrete implementation of the ticket repository interface using SQLAlchemy.
"""

from typing import List, Optional

from sqlalchemy import select, delete, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from helpdesk.core import RepositoryException
from helpdesk.infrastructure.database import as_utc, store_operation
from helpdesk.tickets.application import ITicketRepository
from helpdesk.tickets.domain import Ticket, TimelineEntry, InternalComment
from helpdesk.tickets.infrastructure.models import (
    TicketModel, TimelineEntryModel, InternalCommentModel
)


def _timeline_to_entity(model: TimelineEntryModel) -> TimelineEntry:
    return TimelineEntry(
        id=model.id,
        ticket_id=model.ticket_id,
        user_id=model.user_id,
        user_name=model.user_name,
        message=model.message,
        type=model.type,
        created_at=as_utc(model.created_at)
    )


def _comment_to_entity(model: InternalCommentModel) -> InternalComment:
    return InternalComment(
        id=model.id,
        ticket_id=model.ticket_id,
        technician_id=model.technician_id,
        technician_name=model.technician_name,
        message=model.message,
        created_at=as_utc(model.created_at)
    )


def _ticket_to_entity(model: TicketModel, with_logs: bool = False) -> Ticket:
    ticket = Ticket(
        id=model.id,
        title=model.title,
        description=model.description,
        priority=model.priority,
        status=model.status,
        category_id=model.category_id,
        user_id=model.user_id,
        created_at=as_utc(model.created_at),
        updated_at=as_utc(model.updated_at),
        sla_deadline=as_utc(model.sla_deadline),
        assigned_to=model.assigned_to,
        resolved_at=as_utc(model.resolved_at),
        attachments=list(model.attachments or [])
    )
    if with_logs:
        ticket.timeline = [_timeline_to_entity(m) for m in model.timeline]
        ticket.internal_comments = [_comment_to_entity(m) for m in model.internal_comments]
    return ticket


class SQLAlchemyTicketRepository(ITicketRepository):
    """
    SQLAlchemy implementation of ticket repository.

    All writes go through the injected session; the caller owns the
    transaction.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    @store_operation("ticket.get")
    async def get_by_id(self, ticket_id: str, with_logs: bool = True) -> Optional[Ticket]:
        stmt = select(TicketModel).where(TicketModel.id == ticket_id)
        if with_logs:
            stmt = stmt.options(
                selectinload(TicketModel.timeline),
                selectinload(TicketModel.internal_comments)
            ).execution_options(populate_existing=True)

        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return _ticket_to_entity(model, with_logs) if model else None

    @store_operation("ticket.list")
    async def list(
        self,
        filters: dict,
        limit: Optional[int] = None,
        offset: int = 0
    ) -> List[Ticket]:
        stmt = select(TicketModel)

        if filters.get("user_id"):
            stmt = stmt.where(TicketModel.user_id == filters["user_id"])
        if filters.get("technician_id"):
            technician_id = filters["technician_id"]
            stmt = stmt.where(or_(
                TicketModel.assigned_to == technician_id,
                TicketModel.assigned_to.is_(None),
                TicketModel.user_id == technician_id
            ))
        if filters.get("status"):
            stmt = stmt.where(TicketModel.status == filters["status"])
        if filters.get("statuses"):
            stmt = stmt.where(TicketModel.status.in_(filters["statuses"]))
        if filters.get("priority"):
            stmt = stmt.where(TicketModel.priority == filters["priority"])
        if filters.get("category_id"):
            stmt = stmt.where(TicketModel.category_id == filters["category_id"])

        stmt = stmt.order_by(TicketModel.created_at.desc()).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)

        result = await self._session.execute(stmt)
        return [_ticket_to_entity(model) for model in result.scalars().all()]

    @store_operation("ticket.create")
    async def create(self, ticket: Ticket) -> Ticket:
        model = TicketModel(
            id=ticket.id,
            title=ticket.title,
            description=ticket.description,
            attachments=list(ticket.attachments),
            priority=ticket.priority,
            status=ticket.status,
            category_id=ticket.category_id,
            user_id=ticket.user_id,
            assigned_to=ticket.assigned_to,
            created_at=ticket.created_at,
            updated_at=ticket.updated_at,
            resolved_at=ticket.resolved_at,
            sla_deadline=ticket.sla_deadline
        )
        self._session.add(model)
        await self._session.flush()
        return _ticket_to_entity(model)

    @store_operation("ticket.update")
    async def update(self, ticket: Ticket) -> Ticket:
        """
        Persist status, priority, assignee and timestamps.

        sla_deadline and created_at are never rewritten.
        """
        model = await self._session.get(TicketModel, ticket.id)
        if not model:
            raise RepositoryException(f"Ticket {ticket.id} not found")

        model.title = ticket.title
        model.description = ticket.description
        model.priority = ticket.priority
        model.status = ticket.status
        model.assigned_to = ticket.assigned_to
        model.resolved_at = ticket.resolved_at
        model.updated_at = ticket.updated_at
        model.attachments = list(ticket.attachments)

        await self._session.flush()
        return _ticket_to_entity(model)

    @store_operation("ticket.delete")
    async def delete(self, ticket_id: str) -> bool:
        # Child rows first; not every backend enforces ON DELETE CASCADE
        await self._session.execute(
            delete(TimelineEntryModel).where(TimelineEntryModel.ticket_id == ticket_id)
        )
        await self._session.execute(
            delete(InternalCommentModel).where(InternalCommentModel.ticket_id == ticket_id)
        )
        result = await self._session.execute(
            delete(TicketModel).where(TicketModel.id == ticket_id)
        )
        return result.rowcount > 0

    @store_operation("ticket.exists")
    async def exists(self, ticket_id: str) -> bool:
        stmt = select(TicketModel.id).where(TicketModel.id == ticket_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none() is not None

    @store_operation("ticket.append_timeline")
    async def append_timeline_entry(self, entry: TimelineEntry) -> TimelineEntry:
        model = TimelineEntryModel(
            id=entry.id,
            ticket_id=entry.ticket_id,
            user_id=entry.user_id,
            user_name=entry.user_name,
            message=entry.message,
            type=entry.type,
            created_at=entry.created_at
        )
        self._session.add(model)
        await self._session.flush()
        return entry

    @store_operation("ticket.append_internal_comment")
    async def append_internal_comment(self, comment: InternalComment) -> InternalComment:
        model = InternalCommentModel(
            id=comment.id,
            ticket_id=comment.ticket_id,
            technician_id=comment.technician_id,
            technician_name=comment.technician_name,
            message=comment.message,
            created_at=comment.created_at
        )
        self._session.add(model)
        await self._session.flush()
        return comment

    @store_operation("ticket.list_timeline")
    async def list_timeline(self, ticket_id: str) -> List[TimelineEntry]:
        stmt = (
            select(TimelineEntryModel)
            .where(TimelineEntryModel.ticket_id == ticket_id)
            .order_by(TimelineEntryModel.seq.asc())
        )
        result = await self._session.execute(stmt)
        return [_timeline_to_entity(m) for m in result.scalars().all()]

    @store_operation("ticket.list_internal_comments")
    async def list_internal_comments(self, ticket_id: str) -> List[InternalComment]:
        stmt = (
            select(InternalCommentModel)
            .where(InternalCommentModel.ticket_id == ticket_id)
            .order_by(InternalCommentModel.seq.asc())
        )
        result = await self._session.execute(stmt)
        return [_comment_to_entity(m) for m in result.scalars().all()]
