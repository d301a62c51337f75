from rest_framework.permissions import BasePermission

from .models import ActorRole


class _RolePermission(BasePermission):
    """
    Allows access only to users whose role matches `role`.
    Keeps role check logic centralized.
    """
    role = None

    def has_permission(self, request, view):
        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            return False
        return getattr(user, "role", None) == self.role


class IsProvider(_RolePermission):
    role = ActorRole.PROVIDER
