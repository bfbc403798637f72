"""Shared HTTP plumbing: middleware and exception handlers."""
