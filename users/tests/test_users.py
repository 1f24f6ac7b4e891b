from unittest.mock import patch

import pytest
from common.choices import ActiveInactive, ActorRole
from django.contrib import admin
from users.admin import UserAdmin
from users.models import User
from users.tests.factories import AdminFactory, CustomerFactory, SellerFactory

pytestmark = pytest.mark.django_db


def test_actor_role_follows_marketplace_role():
    assert CustomerFactory().actor_role == ActorRole.CUSTOMER
    assert SellerFactory().actor_role == ActorRole.SELLER
    assert AdminFactory().actor_role == ActorRole.ADMIN
    assert CustomerFactory(is_superuser=True).actor_role == ActorRole.ADMIN


def test_can_sell_requires_active_seller():
    assert SellerFactory().can_sell
    assert not SellerFactory(seller_status=ActiveInactive.INACTIVE).can_sell
    assert not SellerFactory(is_active=False).can_sell
    assert not CustomerFactory().can_sell


def test_admin_actions_toggle_only_sellers(rf):
    seller = SellerFactory()
    customer = CustomerFactory()
    model_admin = UserAdmin(User, admin.site)
    request = rf.post("/admin/users/user/")
    queryset = User.objects.filter(pk__in=[seller.pk, customer.pk])

    with patch("users.admin.messages") as messages:
        assert model_admin.deactivate_sellers(request, queryset) == 1
        messages.success.assert_called_once()
        messages.info.assert_called_once()
    seller.refresh_from_db()
    customer.refresh_from_db()
    assert seller.seller_status == ActiveInactive.INACTIVE
    assert customer.seller_status == ActiveInactive.ACTIVE

    with patch("users.admin.messages"):
        assert model_admin.activate_sellers(request, queryset) == 1
    seller.refresh_from_db()
    assert seller.seller_status == ActiveInactive.ACTIVE
