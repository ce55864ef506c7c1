"""Scheduling app package.

Viewing availability for properties: hosts keep weekly availability
rules and per-date exceptions, guests propose viewing times that must
match generated slots.
"""
