"""
Account emails: password reset links and email verification.

Reset links use Django's ``default_token_generator`` (invalidated by a
password change or a new login); verification links carry a signed,
time-limited token from ``django.core.signing``.
"""
from __future__ import annotations

import logging
from typing import Optional

from django.conf import settings
from django.contrib.auth.tokens import default_token_generator
from django.core import signing
from django.core.mail import send_mail
from django.utils.encoding import force_bytes, force_str
from django.utils.http import urlsafe_base64_decode, urlsafe_base64_encode

from lodging.models import User

logger = logging.getLogger(__name__)

VERIFY_SALT = 'lodging.verify-email'


def password_reset_token(user: User) -> tuple[str, str]:
    return urlsafe_base64_encode(force_bytes(user.pk)), default_token_generator.make_token(user)


def user_for_reset(uid: str, token: str) -> Optional[User]:
    try:
        pk = force_str(urlsafe_base64_decode(uid))
    except (TypeError, ValueError):
        return None
    user = User.objects.filter(pk=pk, is_active=True).first() if pk.isdigit() else None
    if user is None or not default_token_generator.check_token(user, token):
        return None
    return user


def send_password_reset(user: User) -> None:
    uid, token = password_reset_token(user)
    link = f'{settings.FRONTEND_URL}/reset-password?uid={uid}&token={token}'
    send_mail(
        'Reset your SmartLodge password',
        f'Hello {user.first_name},\n\nUse the link below to choose a new password:\n{link}\n\n'
        'If you did not request this, you can ignore this email.',
        settings.DEFAULT_FROM_EMAIL,
        [user.email],
    )
    logger.info('Password reset email sent to user %s', user.id)


def verification_token(user: User) -> str:
    return signing.dumps({'uid': user.pk, 'email': user.email}, salt=VERIFY_SALT)


def user_for_verification(token: str) -> Optional[User]:
    try:
        payload = signing.loads(token, salt=VERIFY_SALT, max_age=settings.EMAIL_VERIFICATION_MAX_AGE)
    except signing.BadSignature:
        return None
    return User.objects.filter(pk=payload.get('uid'), email=payload.get('email')).first()


def send_verification(user: User) -> None:
    link = f'{settings.FRONTEND_URL}/verify-email/{verification_token(user)}'
    send_mail(
        'Verify your SmartLodge email address',
        f'Hello {user.first_name},\n\nPlease confirm your email address:\n{link}\n',
        settings.DEFAULT_FROM_EMAIL,
        [user.email],
    )
    logger.info('Verification email sent to user %s', user.id)
