"""User model carrying the marketplace role.

Authentication itself is handled by Django; orders only consume the
authenticated user's `id` and `role`.
"""

from common.choices import ActiveInactive, ActorRole, UserRole
from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Marketplace account: a customer, a seller, or an admin."""

    ROLE_CUSTOMER = UserRole.CUSTOMER
    ROLE_SELLER = UserRole.SELLER
    ROLE_ADMIN = UserRole.ADMIN

    role = models.CharField(max_length=16, choices=UserRole.choices, default=UserRole.CUSTOMER, db_index=True)
    phone = models.CharField(max_length=20, blank=True)
    shop_name = models.CharField(max_length=120, blank=True)
    seller_status = models.CharField(max_length=16, choices=ActiveInactive.choices, default=ActiveInactive.ACTIVE)

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.username} ({self.role})"

    @property
    def actor_role(self) -> str:
        """Role used for order workflow checks; superusers act as admins."""
        if self.is_superuser:
            return ActorRole.ADMIN
        return ActorRole(self.role)

    @property
    def can_sell(self) -> bool:
        return self.role == UserRole.SELLER and self.seller_status == ActiveInactive.ACTIVE and self.is_active
