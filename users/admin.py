"""Admin registration for the custom User model.

Extends Django's `UserAdmin` with marketplace role and seller status so
admins can moderate sellers from the admin site.
"""

from common.choices import ActiveInactive, UserRole
from django.contrib import admin, messages
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Admin configuration with role, shop and seller status fields."""

    list_display = (
        "username",
        "email",
        "phone",
        "role",
        "shop_name",
        "seller_status",
        "is_active",
        "date_joined",
    )
    list_filter = ("role", "seller_status", "is_staff", "is_active")
    search_fields = ("username", "email", "phone", "shop_name", "first_name", "last_name")
    ordering = ("-date_joined",)
    readonly_fields = ("last_login", "date_joined")

    fieldsets = (
        (None, {"fields": ("username", "password")}),
        ("Personal info", {"fields": ("first_name", "last_name", "email", "phone")}),
        ("Marketplace", {"fields": ("role", "shop_name", "seller_status")}),
        (
            "Permissions",
            {"fields": ("is_active", "is_staff", "is_superuser", "groups", "user_permissions")},
        ),
        ("Important dates", {"fields": ("last_login", "date_joined")}),
    )

    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": ("username", "phone", "role", "password1", "password2"),
            },
        ),
    )

    filter_horizontal = ("groups", "user_permissions")

    actions = ["activate_sellers", "deactivate_sellers"]

    def _set_seller_status(self, request, queryset, status):
        sellers = queryset.filter(role=UserRole.SELLER)
        updated = sellers.update(seller_status=status)
        skipped = queryset.count() - updated
        if updated:
            messages.success(request, f"Marked {updated} seller(s) as {status}.")
        if skipped:
            messages.info(request, f"Skipped {skipped} non-seller account(s).")
        return updated

    @admin.action(description="Activate selected sellers")
    def activate_sellers(self, request, queryset):
        return self._set_seller_status(request, queryset, ActiveInactive.ACTIVE)

    @admin.action(description="Deactivate selected sellers")
    def deactivate_sellers(self, request, queryset):
        # Inactive sellers keep existing orders; checkout refuses new ones.
        return self._set_seller_status(request, queryset, ActiveInactive.INACTIVE)
