"""Event publishing through the unit of work and the message bus."""

from unittest.mock import MagicMock

from django.test import TestCase

from apps.bookings.domain.events import BookingCancelled, BookingConfirmed, PaymentFlaggedForReview
from apps.bookings.domain.state_machine import BookingStatus
from apps.bookings.event_handlers import (
    alert_payment_review,
    log_booking_cancelled,
    log_booking_lifecycle,
)
from shared.application.message_bus import MessageBus, message_bus
from shared.application.uow import DjangoUnitOfWork

from .factories import make_booking


class MessageBusTests(TestCase):
    def test_booking_handlers_are_subscribed(self):
        self.assertIn(log_booking_lifecycle, message_bus.handlers_for(BookingConfirmed))
        self.assertIn(log_booking_cancelled, message_bus.handlers_for(BookingCancelled))
        self.assertIn(alert_payment_review, message_bus.handlers_for(PaymentFlaggedForReview))

    def test_failing_handler_does_not_stop_the_others(self):
        bus = MessageBus()
        received = []

        def broken(event):
            raise RuntimeError("boom")

        def recorder(event):
            received.append(event)

        bus.register_event_handler(BookingCancelled, broken)
        bus.register_event_handler(BookingCancelled, recorder)
        booking = make_booking(status=BookingStatus.CONFIRMED)
        booking.cancel("test")

        with self.assertLogs("shared.application.message_bus", level="ERROR"):
            bus.publish_events(booking.events)

        self.assertEqual(len(received), 1)

    def test_handler_registered_once(self):
        bus = MessageBus()

        def handler(event):
            pass

        bus.register_event_handler(BookingCancelled, handler)
        bus.register_event_handler(BookingCancelled, handler)
        self.assertEqual(bus.handlers_for(BookingCancelled), [handler])

    def test_cancellation_is_logged(self):
        booking = make_booking(status=BookingStatus.CONFIRMED)
        booking.cancel("guest request")

        with self.assertLogs("apps.bookings.event_handlers", level="INFO") as logs:
            message_bus.publish_events(booking.events)

        self.assertIn("guest request", "\n".join(logs.output))


class UnitOfWorkTests(TestCase):
    def test_events_are_published_after_commit(self):
        bus = MagicMock()
        booking = make_booking(status=BookingStatus.CONFIRMED)

        with self.captureOnCommitCallbacks(execute=True):
            with DjangoUnitOfWork(bus=bus) as uow:
                booking.cancel()
                uow.collect_events(booking)
                bus.publish_events.assert_not_called()

        [events] = bus.publish_events.call_args.args
        self.assertEqual([type(event) for event in events], [BookingCancelled])
        self.assertEqual(booking.events, [])

    def test_events_are_dropped_on_rollback(self):
        bus = MagicMock()
        booking = make_booking(status=BookingStatus.CONFIRMED)

        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            with self.assertRaises(RuntimeError):
                with DjangoUnitOfWork(bus=bus) as uow:
                    booking.cancel()
                    uow.collect_events(booking)
                    raise RuntimeError("write failed")

        self.assertEqual(callbacks, [])
        bus.publish_events.assert_not_called()
