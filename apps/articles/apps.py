from django.apps import AppConfig


class ArticlesConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.articles'
    verbose_name = 'Articles'

    def ready(self):
        """Connect the worker startup hook."""
        from apps.articles import tasks  # noqa: F401
