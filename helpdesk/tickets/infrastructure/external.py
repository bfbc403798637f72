"""
Ticket External Service Integrations
====================================

External services for ticket notifications:
- Slack webhook client (circuit breaker, exponential backoff)
- Slack-backed ticket notifier honouring the notification settings
- APScheduler wrapper for the background SLA monitor
"""

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from helpdesk.admin.domain import User, NotificationSettings
from helpdesk.config import (
    SLATimeliness, STATUS_LABELS, PRIORITY_LABELS, settings
)
from helpdesk.core import NotificationException
from helpdesk.shared.infrastructure.logging import get_logger
from helpdesk.tickets.application import ITicketNotifier
from helpdesk.tickets.domain import Ticket, TimelineEntry, SLACalculator

logger = get_logger(__name__)


class CircuitState:
    """Circuit breaker states."""
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    """
    Circuit breaker for preventing cascade failures.

    States:
    - CLOSED: Normal operation, requests pass through
    - OPEN: After N failures, reject all requests for M seconds
    - HALF_OPEN: After timeout, allow one test request
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: float = 60.0,
        clock: Callable[[], float] = time.monotonic
    ):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._clock = clock
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._opened_at: Optional[float] = None

    @property
    def state(self) -> str:
        """Get current circuit state."""
        if self._state == CircuitState.OPEN and self._opened_at is not None:
            if self._clock() - self._opened_at >= self.recovery_timeout:
                self._state = CircuitState.HALF_OPEN
        return self._state

    def allow_request(self) -> bool:
        return self.state in (CircuitState.CLOSED, CircuitState.HALF_OPEN)

    def record_success(self) -> None:
        self._failure_count = 0
        self._opened_at = None
        self._state = CircuitState.CLOSED

    def record_failure(self) -> None:
        self._failure_count += 1

        # A failed probe re-opens immediately
        if self._state == CircuitState.HALF_OPEN or self._failure_count >= self.failure_threshold:
            self._state = CircuitState.OPEN
            self._opened_at = self._clock()
            logger.warning(
                "Circuit breaker opened",
                extra={
                    "failure_count": self._failure_count,
                    "recovery_timeout": self.recovery_timeout
                }
            )


@dataclass
class SlackMessage:
    """One Slack notification about a ticket."""
    ticket_id: str
    title: str
    header: str
    emoji: str
    fields: Dict[str, str] = field(default_factory=dict)
    context: str = ""


class SlackClient:
    """
    Slack webhook client with circuit breaker and retry logic.

    Handles sending Block Kit messages to Slack with:
    - Circuit breaker to prevent cascade failures
    - Exponential backoff retry
    - Timeout handling
    """

    def __init__(
        self,
        webhook_url: Optional[str] = None,
        channel: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        ticket_url_template: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        backoff_base: float = 1.0,
        circuit_breaker: Optional[CircuitBreaker] = None
    ):
        self.webhook_url = webhook_url if webhook_url is not None else settings.slack_webhook_url
        self.channel = channel or settings.slack_channel
        self.timeout_seconds = timeout_seconds or settings.slack_timeout_seconds
        self.ticket_url_template = ticket_url_template or settings.ticket_url_template
        self._transport = transport
        self._backoff_base = backoff_base
        self._circuit_breaker = circuit_breaker or CircuitBreaker(
            failure_threshold=5,
            recovery_timeout=60
        )
        self._http_client: Optional[httpx.AsyncClient] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.webhook_url)

    @property
    def circuit_breaker(self) -> CircuitBreaker:
        return self._circuit_breaker

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=self.timeout_seconds,
                transport=self._transport
            )
        return self._http_client

    def ticket_url(self, ticket_id: str) -> str:
        return self.ticket_url_template.format(ticket_id=ticket_id)

    def build_payload(self, message: SlackMessage) -> Dict[str, Any]:
        """Build Slack Block Kit message."""
        ticket_url = self.ticket_url(message.ticket_id)

        fields = [
            {"type": "mrkdwn", "text": f"*Ticket:*\n<{ticket_url}|{message.title}>"}
        ]
        fields.extend(
            {"type": "mrkdwn", "text": f"*{label}:*\n{value}"}
            for label, value in message.fields.items()
        )

        blocks = [
            {
                "type": "header",
                "text": {
                    "type": "plain_text",
                    "text": f"{message.emoji} {message.header}",
                    "emoji": True
                }
            },
            {
                "type": "section",
                "fields": fields
            }
        ]
        if message.context:
            blocks.append({
                "type": "context",
                "elements": [{"type": "mrkdwn", "text": message.context}]
            })

        return {
            "channel": self.channel,
            "text": f"{message.header}: {message.title}",
            "blocks": blocks
        }

    async def _post(self, payload: Dict[str, Any]) -> None:
        client = await self._get_client()
        response = await client.post(self.webhook_url, json=payload)
        if response.status_code != 200:
            raise NotificationException(
                "Slack webhook returned non-200",
                {"status_code": response.status_code}
            )

    async def send(self, message: SlackMessage, max_retries: int = 3) -> bool:
        """
        Send a message to the Slack webhook.

        Returns:
            True if sent successfully, False otherwise
        """
        if not self.is_configured:
            logger.debug("Slack webhook URL not configured, skipping notification")
            return False

        if not self._circuit_breaker.allow_request():
            logger.warning(
                "Circuit breaker open, skipping Slack notification",
                extra={"ticket_id": message.ticket_id}
            )
            return False

        payload = self.build_payload(message)

        for attempt in range(max_retries):
            try:
                await self._post(payload)
                self._circuit_breaker.record_success()
                logger.info(
                    "Slack notification sent",
                    extra={"ticket_id": message.ticket_id, "header": message.header}
                )
                return True
            except (httpx.HTTPError, NotificationException) as e:
                logger.warning(
                    "Slack notification attempt failed",
                    extra={
                        "error": str(e),
                        "attempt": attempt + 1,
                        "ticket_id": message.ticket_id
                    }
                )

            if attempt < max_retries - 1:
                await asyncio.sleep(self._backoff_base * 2 ** attempt)

        self._circuit_breaker.record_failure()
        logger.error(
            "Slack notification failed",
            extra={"ticket_id": message.ticket_id, "attempts": max_retries}
        )
        return False

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None


class SlackTicketNotifier(ITicketNotifier):
    """
    Ticket notifier posting to Slack.

    Each event is gated by its NotificationSettings toggle. When a schedule
    callable is given (FastAPI's BackgroundTasks.add_task), delivery runs
    after the response is sent; otherwise it is awaited inline.
    """

    def __init__(
        self,
        slack_client: SlackClient,
        notification_settings: NotificationSettings,
        schedule: Optional[Callable[..., Any]] = None
    ):
        self._slack = slack_client
        self._settings = notification_settings
        self._schedule = schedule

    async def _dispatch(self, message: SlackMessage) -> bool:
        """True once the message is delivered, or queued when scheduling."""
        if not self._slack.is_configured:
            return False
        if self._schedule is not None:
            self._schedule(self._slack.send, message)
            return True
        return await self._slack.send(message)

    @staticmethod
    def _ticket_fields(ticket: Ticket) -> Dict[str, str]:
        return {
            "Priority": PRIORITY_LABELS.get(ticket.priority, ticket.priority),
            "Status": STATUS_LABELS.get(ticket.status, ticket.status),
        }

    async def ticket_created(self, ticket: Ticket, actor: User) -> None:
        if not self._settings.notify_on_new:
            return
        await self._dispatch(SlackMessage(
            ticket_id=ticket.id,
            title=ticket.title,
            header="New Ticket",
            emoji="🆕",
            fields={**self._ticket_fields(ticket), "Opened by": actor.name},
            context=f"SLA deadline: {ticket.sla_deadline.isoformat()}"
        ))

    async def ticket_updated(
        self,
        ticket: Ticket,
        actor: User,
        entries: List[TimelineEntry]
    ) -> None:
        if not self._settings.notify_on_update:
            return
        await self._dispatch(SlackMessage(
            ticket_id=ticket.id,
            title=ticket.title,
            header="Ticket Updated",
            emoji="✏️",
            fields={**self._ticket_fields(ticket), "Updated by": actor.name},
            context=" | ".join(entry.message for entry in entries)
        ))

    async def ticket_closed(self, ticket: Ticket, actor: User) -> None:
        if not self._settings.notify_on_close:
            return
        await self._dispatch(SlackMessage(
            ticket_id=ticket.id,
            title=ticket.title,
            header="Ticket Closed",
            emoji="✅",
            fields={**self._ticket_fields(ticket), "Closed by": actor.name}
        ))

    async def sla_risk(self, ticket: Ticket, timeliness: str, now: datetime) -> bool:
        if not self._settings.notify_on_sla_risk:
            return False

        overdue = timeliness == SLATimeliness.OVERDUE
        hours = SLACalculator.hours_remaining(ticket.sla_deadline, now)
        return await self._dispatch(SlackMessage(
            ticket_id=ticket.id,
            title=ticket.title,
            header="SLA Breach Alert" if overdue else "SLA Warning Alert",
            emoji="🚨" if overdue else "⚠️",
            fields={
                **self._ticket_fields(ticket),
                "SLA": "🔴 OVERDUE" if overdue else "🟡 NEAR DEADLINE",
                "Assigned": ticket.assigned_to or "Unassigned",
            },
            context=(
                f"Deadline: {ticket.sla_deadline.isoformat()} | "
                f"{'Overdue by' if overdue else 'Remaining'}: {abs(hours):.1f}h"
            )
        ))


class SLAScheduler:
    """
    Wrapper for APScheduler running the SLA monitor in the background.

    Manages the lifecycle of the scheduler and its single job.
    """

    def __init__(self, interval_seconds: int = 300):
        self.interval_seconds = interval_seconds
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._running = False

    async def start(self, job_func: Callable[[], Awaitable[Any]]) -> None:
        """Start the scheduler with the given job function."""
        if self._running:
            logger.warning("SLA scheduler already running")
            return

        self._scheduler = AsyncIOScheduler()

        self._scheduler.add_job(
            job_func,
            "interval",
            seconds=self.interval_seconds,
            id="sla_monitor",
            name="SLA Monitor Job",
            misfire_grace_time=60,
            max_instances=1,
            replace_existing=True
        )

        self._scheduler.start()
        self._running = True

        logger.info(
            "SLA scheduler started",
            extra={"interval_seconds": self.interval_seconds}
        )

    async def stop(self) -> None:
        """Stop the scheduler gracefully."""
        if not self._running:
            return

        if self._scheduler:
            self._scheduler.shutdown(wait=False)

        self._running = False
        logger.info("SLA scheduler stopped")

    @property
    def is_running(self) -> bool:
        return self._running
