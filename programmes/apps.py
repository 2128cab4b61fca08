from django.apps import AppConfig


class ProgrammesConfig(AppConfig):
    """Django AppConfig for CSV ingestion and the subject search index."""
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'programmes'
