"""
Django Traceman app configuration.
"""

from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class TracemanConfig(AppConfig):
    """Traceman application configuration."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "traceman"
    verbose_name = _("Production Traceability")

    def ready(self):
        """Import signal handlers when app is ready."""
        # Import handlers to register them
        from traceman.signals import handlers  # noqa: F401
