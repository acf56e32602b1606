"""
Optional third-party identity provider.

When ``IDENTITY_PROVIDER_JWKS_URL`` is set, RS256 bearer tokens issued by
the provider are verified against its published keys and mapped to a
local user through ``User.external_id``.  Unknown subjects are created on
first sight from the provider's user profile API.
"""
from __future__ import annotations

import logging
from typing import Optional

import jwt
import requests
from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from rest_framework.exceptions import AuthenticationFailed

logger = logging.getLogger(__name__)

User = get_user_model()

_jwk_client: Optional[jwt.PyJWKClient] = None


def is_enabled() -> bool:
    return bool(getattr(settings, 'IDENTITY_PROVIDER_JWKS_URL', ''))


def is_provider_token(raw_token: str) -> bool:
    try:
        header = jwt.get_unverified_header(raw_token)
    except jwt.PyJWTError:
        return False
    return str(header.get('alg', '')).startswith('RS')


def _client() -> jwt.PyJWKClient:
    global _jwk_client
    if _jwk_client is None:
        _jwk_client = jwt.PyJWKClient(settings.IDENTITY_PROVIDER_JWKS_URL)
    return _jwk_client


def verify_token(raw_token: str) -> dict:
    try:
        signing_key = _client().get_signing_key_from_jwt(raw_token)
        return jwt.decode(raw_token, signing_key.key, algorithms=['RS256'], options={'verify_aud': False})
    except jwt.ExpiredSignatureError:
        raise AuthenticationFailed('Token expired')
    except jwt.PyJWTError as e:
        logger.info('Identity provider token rejected: %s', e)
        raise AuthenticationFailed('Invalid token')


def fetch_profile(external_id: str) -> dict:
    url = f"{settings.IDENTITY_PROVIDER_API_URL}/users/{external_id}"
    try:
        resp = requests.get(
            url,
            headers={'Authorization': f'Bearer {settings.IDENTITY_PROVIDER_SECRET_KEY}'},
            timeout=settings.IDENTITY_PROVIDER_TIMEOUT,
        )
        resp.raise_for_status()
        return resp.json()
    except requests.RequestException as e:
        logger.warning('Identity provider profile lookup failed for %s: %s', external_id, e)
        raise AuthenticationFailed('Unable to load user profile from identity provider')


def _primary_email(profile: dict) -> tuple[str, bool]:
    """Return the primary address and whether the provider has verified it."""
    addresses = profile.get('email_addresses') or []
    primary_id = profile.get('primary_email_address_id')
    item = next((a for a in addresses if a.get('id') == primary_id), addresses[0] if addresses else None)
    if item is None:
        return profile.get('email') or '', False
    verified = (item.get('verification') or {}).get('status') == 'verified'
    return item.get('email_address') or '', verified


@transaction.atomic
def user_for_claims(claims: dict):
    """Return the local user for verified provider claims, creating it if needed."""
    external_id = claims.get('sub')
    if not external_id:
        raise AuthenticationFailed('Token has no subject')
    user = User.objects.filter(external_id=external_id).first()
    if user:
        return user

    profile = fetch_profile(external_id)
    email, verified = _primary_email(profile)
    email = email.lower()
    if not email:
        raise AuthenticationFailed('Identity provider profile has no email address')

    user = User.objects.filter(email=email).first()
    if user:
        if not verified:
            logger.warning('Refused to link user %s to identity provider subject %s: email not verified',
                           user.id, external_id)
            raise AuthenticationFailed('Email address is not verified with the identity provider')
        # existing local account signs in through the provider from now on
        user.external_id = external_id
        user.save(update_fields=['external_id', 'updated_at'])
        logger.info('Linked user %s to identity provider subject %s', user.id, external_id)
        return user

    user = User.objects.create_user(
        email=email,
        first_name=(profile.get('first_name') or '')[:50],
        last_name=(profile.get('last_name') or '')[:50],
        external_id=external_id,
        profile_image=profile.get('image_url') or '',
        verification={'email': verified, 'phone': False, 'identity': False},
    )
    logger.info('Created user %s from identity provider subject %s', user.id, external_id)
    return user
