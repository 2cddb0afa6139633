from django.apps import AppConfig


class AppQrConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "app_qr"
    verbose_name = "Códigos QR"

    def ready(self):
        from . import signals  # noqa: F401
