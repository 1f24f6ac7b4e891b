from django.apps import AppConfig


class UsersConfig(AppConfig):
    """AppConfig for the users app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "users"
    verbose_name = "Users"
