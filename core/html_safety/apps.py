from django.apps import AppConfig


class HtmlSafetyConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'core.html_safety'
    verbose_name = 'HTML Safety'
