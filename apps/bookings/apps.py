from django.apps import AppConfig


class BookingsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.bookings'
    label = 'bookings'
    verbose_name = 'Shortlet bookings'

    def ready(self):
        # subscribe domain event handlers to the message bus
        from . import event_handlers  # noqa: F401
