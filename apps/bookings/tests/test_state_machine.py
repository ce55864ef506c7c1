from django.test import SimpleTestCase

from apps.bookings.domain.state_machine import (
    BookingEvent,
    BookingMode,
    BookingStatus,
    PaymentEvent,
    PaymentStatus,
    can_transition,
    is_terminal_booking_status,
    next_booking_status,
    next_payment_status,
    parse_booking_mode,
    parse_booking_status,
    parse_payment_status,
)
from shared.domain.exceptions import IllegalTransitionError


class BookingTransitionTests(SimpleTestCase):
    def test_payment_success_depends_on_mode(self):
        self.assertEqual(
            next_booking_status(BookingStatus.PENDING_PAYMENT, BookingEvent.PAYMENT_SUCCEEDED, BookingMode.INSTANT),
            BookingStatus.CONFIRMED,
        )
        self.assertEqual(
            next_booking_status(BookingStatus.PENDING_PAYMENT, BookingEvent.PAYMENT_SUCCEEDED, BookingMode.REQUEST),
            BookingStatus.PENDING,
        )

    def test_allowed_moves(self):
        table = [
            (BookingStatus.PENDING_PAYMENT, BookingEvent.PAYMENT_WINDOW_ELAPSED, BookingStatus.EXPIRED),
            (BookingStatus.PENDING, BookingEvent.HOST_ACCEPTED, BookingStatus.CONFIRMED),
            (BookingStatus.PENDING, BookingEvent.HOST_DECLINED, BookingStatus.DECLINED),
            (BookingStatus.PENDING, BookingEvent.HOST_RESPONSE_ELAPSED, BookingStatus.EXPIRED),
            (BookingStatus.PENDING, BookingEvent.CANCELLED, BookingStatus.CANCELLED),
            (BookingStatus.CONFIRMED, BookingEvent.CANCELLED, BookingStatus.CANCELLED),
            (BookingStatus.CONFIRMED, BookingEvent.STAY_COMPLETED, BookingStatus.COMPLETED),
        ]
        for current, event, expected in table:
            with self.subTest(current=current, event=event):
                self.assertEqual(next_booking_status(current, event), expected)
                self.assertTrue(can_transition(current, event))

    def test_terminal_statuses_never_move(self):
        for status in (BookingStatus.DECLINED, BookingStatus.CANCELLED, BookingStatus.EXPIRED, BookingStatus.COMPLETED):
            for event in BookingEvent:
                with self.subTest(status=status, event=event):
                    with self.assertRaises(IllegalTransitionError):
                        next_booking_status(status, event)

    def test_rejected_move_is_logged(self):
        with self.assertLogs("apps.bookings.domain.state_machine", level="WARNING"):
            with self.assertRaises(IllegalTransitionError) as ctx:
                next_booking_status(BookingStatus.PENDING_PAYMENT, BookingEvent.HOST_ACCEPTED)
        self.assertIs(ctx.exception.current, BookingStatus.PENDING_PAYMENT)
        self.assertFalse(can_transition(BookingStatus.PENDING_PAYMENT, BookingEvent.CANCELLED))


class PaymentTransitionTests(SimpleTestCase):
    def test_allowed_moves(self):
        self.assertEqual(
            next_payment_status(PaymentStatus.INITIATED, PaymentEvent.PROVIDER_SUCCEEDED),
            PaymentStatus.SUCCEEDED,
        )
        self.assertEqual(
            next_payment_status(PaymentStatus.INITIATED, PaymentEvent.PROVIDER_FAILED),
            PaymentStatus.FAILED,
        )
        self.assertEqual(
            next_payment_status(PaymentStatus.SUCCEEDED, PaymentEvent.REFUNDED),
            PaymentStatus.REFUNDED,
        )
        self.assertEqual(
            next_payment_status(PaymentStatus.FAILED, PaymentEvent.REOPENED),
            PaymentStatus.INITIATED,
        )

    def test_succeeded_cannot_fail(self):
        with self.assertRaises(IllegalTransitionError):
            next_payment_status(PaymentStatus.SUCCEEDED, PaymentEvent.PROVIDER_FAILED)

    def test_failed_cannot_succeed(self):
        with self.assertRaises(IllegalTransitionError):
            next_payment_status(PaymentStatus.FAILED, PaymentEvent.PROVIDER_SUCCEEDED)

    def test_only_failed_payments_reopen(self):
        for status in (PaymentStatus.INITIATED, PaymentStatus.SUCCEEDED, PaymentStatus.REFUNDED):
            with self.assertRaises(IllegalTransitionError):
                next_payment_status(status, PaymentEvent.REOPENED)


class ParsingTests(SimpleTestCase):
    def test_statuses_are_parsed_loosely(self):
        self.assertIs(parse_booking_status(" Confirmed "), BookingStatus.CONFIRMED)
        self.assertIs(parse_payment_status("SUCCEEDED"), PaymentStatus.SUCCEEDED)
        self.assertIsNone(parse_booking_status("on_hold"))
        self.assertIsNone(parse_payment_status(None))

    def test_only_instant_is_instant(self):
        self.assertIs(parse_booking_mode("instant"), BookingMode.INSTANT)
        for value in ("request", "", None, "instantly"):
            self.assertIs(parse_booking_mode(value), BookingMode.REQUEST)

    def test_terminal(self):
        self.assertTrue(is_terminal_booking_status("expired"))
        self.assertFalse(is_terminal_booking_status("pending"))
        self.assertFalse(is_terminal_booking_status("mystery"))
