from django.apps import AppConfig


class CoreConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'core'

    def ready(self):
        from .paper_config import get_paper_config

        # fail at startup, not on the first request, when paper.yaml is broken
        get_paper_config()
