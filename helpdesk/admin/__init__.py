"""
Administration Module
=====================

Bounded Context for helpdesk reference data.

Responsibilities:
- Users, roles and login
- Ticket categories and their SLA hours
- Per-priority SLA targets
- General and notification settings
"""
