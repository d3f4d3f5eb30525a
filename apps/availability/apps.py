from django.apps import AppConfig  # type: ignore


class AvailabilityConfig(AppConfig):
    name = "apps.availability"
    label = "availability"
    verbose_name = "Availability"
    default_auto_field = "django.db.models.BigAutoField"

    def ready(self) -> None:
        # Registers message bus subscribers
        from . import handlers  # noqa: F401
