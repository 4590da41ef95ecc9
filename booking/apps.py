# booking/apps.py

from django.apps import AppConfig
import logging


class BookingConfig(AppConfig):
    """App configuration for the floor plan & reservations application."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'booking'
    verbose_name = "Table Reservations"

    def ready(self):
        """
        Import signal modules when Django app registry is fully loaded.
        This ensures models and channel layers are ready before signal binding.
        """
        try:
            import booking.signals  # noqa: F401  # Import solely for side effects
            logging.getLogger(__name__).info("✅ booking.signals module loaded successfully.")
        except Exception as e:
            logging.getLogger(__name__).exception(f"⚠️ Failed to import booking.signals: {e}")
