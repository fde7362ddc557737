from django.apps import AppConfig


class EstateCoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "estate_core"

    # ensure receivers are registered
    def ready(self):
        import estate_core.signals  # noqa: F401
