from django.apps import AppConfig


class ChantiersConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.chantiers'
    verbose_name = 'Chantiers'
