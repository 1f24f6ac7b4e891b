from django.apps import AppConfig


class OrdersConfig(AppConfig):
    """AppConfig for the orders app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "orders"
    verbose_name = "Orders"
