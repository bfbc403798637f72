"""
HelpDesk Service
================

Internal helpdesk ticketing with SLA tracking.
"""

__version__ = "1.0.0"
