"""Bookings app package.

Shortlet booking lifecycle: overlap detection against booked and blocked
nights, the booking and payment state machines, payment reconciliation
against the provider and the return-page polling rules. Overlapping
active bookings are also rejected by an exclusion constraint when the
database supports it.
"""
