"""
Ticket Lifecycle Module
=======================

Bounded Context for helpdesk tickets.

Responsibilities:
- File tickets with an SLA deadline fixed from the category
- Guard status and assignment changes
- Keep the append-only timeline and internal comment logs
- Classify tickets against their SLA deadline
- Aggregate dashboard figures
- Notify Slack on ticket events and SLA risk
"""
