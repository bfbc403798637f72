"""
Role Capabilities
=================

Single source of truth for what each role may do. Services call
``require`` before mutating anything; the API exposes ``capabilities_for``
so clients can hide actions the actor cannot perform.
"""

from typing import Dict, FrozenSet

from helpdesk.config import Capability, UserRole
from helpdesk.core.exceptions import PermissionDeniedException


_USER_CAPABILITIES = frozenset({
    Capability.CREATE_TICKET,
    Capability.COMMENT,
})

_TECHNICIAN_CAPABILITIES = _USER_CAPABILITIES | frozenset({
    Capability.CHANGE_STATUS,
    Capability.CHANGE_PRIORITY,
    Capability.ASSIGN_TICKET,
    Capability.INTERNAL_COMMENT,
    Capability.LIST_USERS,
})

_ADMIN_CAPABILITIES = _TECHNICIAN_CAPABILITIES | frozenset({
    Capability.VIEW_ALL_TICKETS,
    Capability.DELETE_TICKET,
    Capability.MANAGE_USERS,
    Capability.MANAGE_CATEGORIES,
    Capability.MANAGE_SLA,
    Capability.MANAGE_SETTINGS,
})

ROLE_CAPABILITIES: Dict[str, FrozenSet[str]] = {
    UserRole.USER: _USER_CAPABILITIES,
    UserRole.TECHNICIAN: _TECHNICIAN_CAPABILITIES,
    UserRole.ADMIN: _ADMIN_CAPABILITIES,
}

ALL_CAPABILITIES = sorted(_ADMIN_CAPABILITIES)


def can_perform(role: str, capability: str) -> bool:
    """Check whether a role grants a capability. Unknown roles grant nothing."""
    return capability in ROLE_CAPABILITIES.get(role, frozenset())


def require(role: str, capability: str) -> None:
    """Raise PermissionDeniedException unless the role grants the capability."""
    if not can_perform(role, capability):
        raise PermissionDeniedException(role, capability)


def capabilities_for(role: str) -> Dict[str, bool]:
    """Full capability map for a role, used by presentation layers."""
    return {capability: can_perform(role, capability) for capability in ALL_CAPABILITIES}
