from common.choices import ActorRole
from rest_framework.permissions import BasePermission


class IsMarketplaceAdmin(BasePermission):
    """Allow only users acting as marketplace admins."""

    message = "Admin role required."

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.actor_role == ActorRole.ADMIN)


class IsCustomer(BasePermission):
    message = "Only customers can place orders."

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.actor_role == ActorRole.CUSTOMER)
