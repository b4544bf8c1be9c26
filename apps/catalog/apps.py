from django.apps import AppConfig


class CatalogConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.catalog'
    verbose_name = 'Reference Catalog'

    def ready(self):
        # Fail at startup rather than on the first credit
        from .catalog import get_catalog
        get_catalog()
