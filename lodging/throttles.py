"""
Per-endpoint rate limits.

Rates live in ``REST_FRAMEWORK['DEFAULT_THROTTLE_RATES']`` under the
scope names below.
"""
from rest_framework.throttling import AnonRateThrottle, UserRateThrottle


class LoginRateThrottle(AnonRateThrottle):
    scope = 'login'


class RegisterRateThrottle(AnonRateThrottle):
    scope = 'register'


class PaymentRateThrottle(UserRateThrottle):
    scope = 'payment'
