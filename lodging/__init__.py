"""Hotel booking application for the SmartLodge backend.

This package contains models, serializers, services, views and route
registrations for hotels, bookings, payments, reviews and user accounts.
"""
