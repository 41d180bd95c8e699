from django.apps import AppConfig


class DynamicFieldsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'core.dynamic_field'
    label = 'dynamic_field'
    verbose_name = 'Dynamic Fields'
