import os

from celery import Celery
from celery.schedules import crontab  # type: ignore

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("shortlet_engine")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

app.conf.beat_schedule = {
    # Unpaid holds - every minute
    "expire-unpaid-bookings": {
        "task": "bookings.expire_unpaid_bookings",
        "schedule": 60.0,
        "options": {"expires": 50},
    },
    # Requests the host never answered - every 15 minutes
    "expire-unanswered-requests": {
        "task": "bookings.expire_unanswered_requests",
        "schedule": crontab(minute="*/15"),
    },
    # Payments the guest never came back for - every 10 minutes
    "reconcile-stuck-payments": {
        "task": "bookings.reconcile_stuck_payments",
        "schedule": crontab(minute="*/10"),
        "options": {"expires": 540},
    },
    # Stays past check-out - every hour
    "complete-finished-bookings": {
        "task": "bookings.complete_finished_bookings",
        "schedule": crontab(minute=15),
    },
}
