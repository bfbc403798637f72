"""
Ticket Interfaces Layer
=======================

Interface adapters (controllers) for the ticket module.

Contains:
- Controllers: FastAPI route handlers for tickets and the dashboard

This is the outermost layer - handles HTTP requests/responses and
delegates to application services.
"""

from helpdesk.tickets.interfaces.controllers import router, dashboard_router

__all__ = ["router", "dashboard_router"]
