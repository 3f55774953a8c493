from django.apps import AppConfig


class MembermanConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "memberman"
    verbose_name = "Memberman - Loyalty & Orders"
