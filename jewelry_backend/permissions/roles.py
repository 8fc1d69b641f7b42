# permissions/roles.py

from __future__ import annotations

from typing import Optional

from rest_framework.permissions import BasePermission


# =========================================================
# ROLE CONSTANTS
# =========================================================
# Kept in sync with users.User.ROLE_CHOICES.
ROLE_OWNER = "owner"
ROLE_MANAGER = "manager"
ROLE_SALES = "sales"
ROLE_TECHNICIAN = "technician"
ROLE_CUSTOMER = "customer"

STAFF_ROLES = {
    ROLE_OWNER,
    ROLE_MANAGER,
    ROLE_SALES,
    ROLE_TECHNICIAN,
}


# =========================================================
# CAPABILITIES (THE REAL PERMISSION LANGUAGE)
# =========================================================
# Views protect capabilities, not raw roles.
CAP_ORDERS_VIEW = "orders.view"
CAP_ORDERS_MANAGE = "orders.manage"

CAP_REPAIRS_MANAGE = "repairs.manage"

CAP_RETURNS_MANAGE = "returns.manage"     # create / approve / reject
CAP_RETURNS_PROCESS = "returns.process"   # money leaves the shop

CAP_NOTIFICATIONS_SEND = "notifications.send"

ALL_CAPABILITIES = {
    CAP_ORDERS_VIEW,
    CAP_ORDERS_MANAGE,
    CAP_REPAIRS_MANAGE,
    CAP_RETURNS_MANAGE,
    CAP_RETURNS_PROCESS,
    CAP_NOTIFICATIONS_SEND,
}


# =========================================================
# ROLE → CAPABILITY MAP
# =========================================================
ROLE_CAPABILITIES: dict[str, set[str]] = {
    ROLE_OWNER: {
        *ALL_CAPABILITIES,
    },
    ROLE_MANAGER: {
        *ALL_CAPABILITIES,
    },
    ROLE_SALES: {
        CAP_ORDERS_VIEW,
        CAP_ORDERS_MANAGE,
        CAP_REPAIRS_MANAGE,
        CAP_RETURNS_MANAGE,
        CAP_NOTIFICATIONS_SEND,
    },
    ROLE_TECHNICIAN: {
        CAP_ORDERS_VIEW,
        CAP_REPAIRS_MANAGE,
    },
    ROLE_CUSTOMER: set(),
}


# =========================================================
# Helpers
# =========================================================
def get_user_role(user) -> Optional[str]:
    return getattr(user, "role", None)


def effective_capabilities_for(user) -> set[str]:
    """
    Capabilities granted by the user's role.
    Superusers get everything regardless of role.
    """
    if getattr(user, "is_superuser", False):
        return set(ALL_CAPABILITIES)

    role = get_user_role(user)
    return set(ROLE_CAPABILITIES.get(role, set()))


# =========================================================
# Base Role Permission (Internal Use)
# =========================================================
class BaseRolePermission(BasePermission):
    """
    Subclasses must define allowed_roles.
    """

    allowed_roles: set[str] = set()

    def has_permission(self, request, view):
        user = request.user

        if not user or not user.is_authenticated:
            return False

        user_role = get_user_role(user)
        if not user_role:
            return False

        return user_role in self.allowed_roles


# =========================================================
# Capability Permissions
# =========================================================
class HasCapability(BasePermission):
    """
    Require a specific capability.

    Usage:
        permission_classes = [IsAuthenticated, HasCapability]
        view.required_capability = CAP_RETURNS_PROCESS
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        required = getattr(view, "required_capability", None)
        if not required:
            # deny-by-default to avoid accidental open endpoints
            return False

        caps = effective_capabilities_for(user)
        return required in caps


class HasAnyCapability(BasePermission):
    """
    Require ANY capability from a list.

    Usage:
        view.required_any_capabilities = {CAP_ORDERS_VIEW, CAP_REPAIRS_MANAGE}
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        required = getattr(view, "required_any_capabilities", None)
        if not required:
            return False

        caps = effective_capabilities_for(user)
        return any(cap in caps for cap in set(required))


class IsStaff(BaseRolePermission):
    allowed_roles = STAFF_ROLES
