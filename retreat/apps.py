from django.apps import AppConfig


class RetreatConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'retreat'
    verbose_name = 'Retreat Pricing'
