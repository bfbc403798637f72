"""
Shared Infrastructure
=====================

Database engine and session management used by every module.
"""
