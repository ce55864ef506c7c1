"""Applying provider verification results to bookings and payments."""

from datetime import datetime, timedelta, timezone as dt_timezone

from django.test import SimpleTestCase

from apps.bookings.domain.events import BookingPaymentSucceeded, BookingRequested
from apps.bookings.domain.reconciliation import reconcile_payment
from apps.bookings.domain.state_machine import BookingMode, BookingStatus, PaymentStatus
from shared.domain.exceptions import MismatchError

from .factories import TOTAL_MINOR, failure, make_booking, make_payment, success

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=dt_timezone.utc)


class ReconcilePaymentTests(SimpleTestCase):
    def test_success_moves_request_booking_to_pending(self):
        booking = make_booking(mode=BookingMode.REQUEST)
        payment = make_payment(booking)

        result = reconcile_payment(booking, payment, success(), now=NOW)

        self.assertTrue(result.transitioned)
        self.assertIs(result.booking_status, BookingStatus.PENDING)
        self.assertIs(payment.status, PaymentStatus.SUCCEEDED)
        self.assertEqual(payment.authorization_code, "AUTH_test")
        self.assertEqual(booking.expires_at, NOW + timedelta(hours=24))
        self.assertEqual(
            [type(event) for event in booking.events],
            [BookingPaymentSucceeded, BookingRequested],
        )

    def test_success_confirms_instant_booking(self):
        booking = make_booking(mode=BookingMode.INSTANT)
        result = reconcile_payment(booking, make_payment(booking), success(), now=NOW)
        self.assertIs(result.booking_status, BookingStatus.CONFIRMED)

    def test_lower_case_currency_matches(self):
        booking = make_booking(mode=BookingMode.INSTANT)
        result = reconcile_payment(booking, make_payment(booking), success(currency="ngn"))
        self.assertTrue(result.transitioned)

    def test_second_run_is_a_no_op(self):
        booking = make_booking(mode=BookingMode.INSTANT)
        payment = make_payment(booking)
        reconcile_payment(booking, payment, success(), now=NOW)
        booking.clear_events()

        result = reconcile_payment(booking, payment, success(), now=NOW + timedelta(minutes=5))

        self.assertTrue(result.already_succeeded)
        self.assertFalse(result.transitioned)
        self.assertEqual(booking.confirmed_at, NOW)
        self.assertEqual(booking.events, [])

    def test_provider_failure_leaves_booking_alone(self):
        booking = make_booking()
        payment = make_payment(booking)

        result = reconcile_payment(booking, payment, failure("abandoned"))

        self.assertIs(payment.status, PaymentStatus.FAILED)
        self.assertEqual(payment.failure_reason, "provider_status:abandoned")
        self.assertIs(result.booking_status, BookingStatus.PENDING_PAYMENT)
        self.assertFalse(result.transitioned)

    def test_repeated_failure_keeps_first_reason(self):
        booking = make_booking()
        payment = make_payment(booking)
        reconcile_payment(booking, payment, failure("abandoned"))
        reconcile_payment(booking, payment, failure("failed"))
        self.assertEqual(payment.failure_reason, "provider_status:abandoned")

    def test_amount_mismatch_fails_payment(self):
        booking = make_booking()
        payment = make_payment(booking)

        with self.assertRaises(MismatchError) as ctx:
            reconcile_payment(booking, payment, success(amount_minor=TOTAL_MINOR - 100))

        self.assertIs(ctx.exception.payment, payment)
        self.assertEqual(ctx.exception.expected_amount_minor, TOTAL_MINOR)
        self.assertEqual(ctx.exception.received_amount_minor, TOTAL_MINOR - 100)
        self.assertIs(payment.status, PaymentStatus.FAILED)
        self.assertEqual(payment.failure_reason, "amount_mismatch")
        self.assertIs(booking.status, BookingStatus.PENDING_PAYMENT)

    def test_currency_mismatch_fails_payment(self):
        booking = make_booking()
        payment = make_payment(booking)

        with self.assertRaises(MismatchError) as ctx:
            reconcile_payment(booking, payment, success(currency="USD"))

        self.assertEqual(ctx.exception.received_currency, "USD")
        self.assertEqual(payment.failure_reason, "currency_mismatch")

    def test_missing_amount_is_invalid(self):
        booking = make_booking()
        payment = make_payment(booking)
        with self.assertRaises(MismatchError):
            reconcile_payment(booking, payment, success(amount_minor=None))
        self.assertEqual(payment.failure_reason, "invalid_amount")

    def test_money_for_closed_booking_requires_refund(self):
        booking = make_booking(status=BookingStatus.EXPIRED)
        payment = make_payment(booking)

        result = reconcile_payment(booking, payment, success())

        self.assertTrue(result.refund_required)
        self.assertTrue(booking.refund_required)
        self.assertIs(booking.status, BookingStatus.EXPIRED)
        self.assertIs(payment.status, PaymentStatus.SUCCEEDED)

    def test_already_paid_booking_is_reported_as_is(self):
        booking = make_booking(status=BookingStatus.CONFIRMED)
        result = reconcile_payment(booking, make_payment(booking), success())
        self.assertFalse(result.transitioned)
        self.assertFalse(result.refund_required)
        self.assertIs(result.booking_status, BookingStatus.CONFIRMED)

    def test_mismatch_seen_twice_is_raised_again(self):
        booking = make_booking()
        payment = make_payment(booking)
        with self.assertRaises(MismatchError):
            reconcile_payment(booking, payment, success(amount_minor=TOTAL_MINOR - 100))
        payment.clear_events()

        with self.assertRaises(MismatchError) as ctx:
            reconcile_payment(booking, payment, success(amount_minor=TOTAL_MINOR - 100))

        self.assertIs(ctx.exception.payment, payment)
        self.assertIs(payment.status, PaymentStatus.FAILED)
        self.assertEqual(payment.failure_reason, "amount_mismatch")
        self.assertEqual(payment.events, [])

    def test_abandoned_then_paid_reference_succeeds(self):
        booking = make_booking(mode=BookingMode.INSTANT)
        payment = make_payment(booking)
        reconcile_payment(booking, payment, failure("ongoing"))
        self.assertIs(payment.status, PaymentStatus.FAILED)

        result = reconcile_payment(booking, payment, success(), now=NOW)

        self.assertTrue(result.transitioned)
        self.assertIs(payment.status, PaymentStatus.SUCCEEDED)
        self.assertEqual(payment.failure_reason, "")
        self.assertIs(booking.status, BookingStatus.CONFIRMED)

    def test_failed_payment_paid_after_booking_expired_requires_refund(self):
        booking = make_booking(status=BookingStatus.EXPIRED)
        payment = make_payment(booking, status=PaymentStatus.FAILED)

        result = reconcile_payment(booking, payment, success())

        self.assertTrue(result.refund_required)
        self.assertIs(payment.status, PaymentStatus.SUCCEEDED)
        self.assertIs(booking.status, BookingStatus.EXPIRED)

    def test_refunded_payment_is_reported_as_is(self):
        booking = make_booking(status=BookingStatus.CANCELLED)
        payment = make_payment(booking, status=PaymentStatus.REFUNDED)

        result = reconcile_payment(booking, payment, failure("reversed"))

        self.assertTrue(result.already_succeeded)
        self.assertIs(payment.status, PaymentStatus.REFUNDED)
