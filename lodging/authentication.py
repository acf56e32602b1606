"""
Bearer token authentication.

Local tokens are simplejwt access tokens issued by ``/api/auth/login``.
When an identity provider is configured, RS256 tokens are routed to
:mod:`lodging.services.identity` instead.  Keeping this class out of the
view modules avoids circular imports while DRF loads its settings.
"""
from __future__ import annotations

from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.authentication import JWTAuthentication

from .services import identity


class BearerAuthentication(JWTAuthentication):
    """simplejwt authentication with an optional identity-provider path."""

    def authenticate(self, request):
        header = self.get_header(request)
        if header is None:
            return None
        raw_token = self.get_raw_token(header)
        if raw_token is None:
            return None

        token = raw_token.decode() if isinstance(raw_token, bytes) else raw_token
        if identity.is_enabled() and identity.is_provider_token(token):
            claims = identity.verify_token(token)
            user = identity.user_for_claims(claims)
            if not user.is_active:
                raise AuthenticationFailed('Account is deactivated')
            return user, claims

        return super().authenticate(request)
