from __future__ import annotations

from rest_framework.permissions import BasePermission


ADMIN_ROLES = {"super_admin", "admin", "sub_admin"}


def is_admin_user(user) -> bool:
    if not user or not getattr(user, 'is_authenticated', False):
        return False
    role = getattr(user, 'role', None)
    return (role or '') in ADMIN_ROLES or getattr(user, 'is_superuser', False)


class RequireAdminRole(BasePermission):
    """
    Allow only administrators to access admin endpoints.
    Accepted roles: super_admin, admin, sub_admin (or a Django superuser)
    """

    def has_permission(self, request, view):
        return is_admin_user(getattr(request, 'user', None))


class RequireSuperAdminRole(BasePermission):
    """
    Allow only super_admin (or superuser) for bulk operational endpoints.
    """

    def has_permission(self, request, view):
        user = getattr(request, 'user', None)
        if not user or not getattr(user, 'is_authenticated', False):
            return False
        role = getattr(user, 'role', None)
        return (role or '') in {'super_admin', 'admin'} or getattr(user, 'is_superuser', False)
