import factory
from common.choices import ActiveInactive, UserRole
from users.models import User


class UserFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = User

    username = factory.Sequence(lambda n: f"user{n}")
    email = factory.LazyAttribute(lambda o: f"{o.username}@example.com")
    phone = factory.Sequence(lambda n: f"+9198000{n:05d}")
    role = UserRole.CUSTOMER
    password = factory.django.Password("pass1234")


class CustomerFactory(UserFactory):
    role = UserRole.CUSTOMER


class SellerFactory(UserFactory):
    role = UserRole.SELLER
    shop_name = factory.Sequence(lambda n: f"Shop {n}")
    seller_status = ActiveInactive.ACTIVE


class AdminFactory(UserFactory):
    role = UserRole.ADMIN
    is_staff = True
