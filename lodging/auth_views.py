"""
Authentication views: registration, login, token refresh and logout,
password recovery, email verification and account management.

Kept apart from :mod:`lodging.authentication` so that DRF can import the
authentication class while loading settings without pulling in views.
"""
from __future__ import annotations

from django.contrib.auth import authenticate, password_validation
from django.contrib.auth.models import update_last_login
from django.db import transaction
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.exceptions import AuthenticationFailed, ValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.serializers import TokenRefreshSerializer
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken
from rest_framework_simplejwt.tokens import RefreshToken

from lodging.models import User
from lodging.responses import success
from lodging.serializers.auth import (
    ChangePasswordSerializer,
    DeleteAccountSerializer,
    ForgotPasswordSerializer,
    LoginSerializer,
    LogoutSerializer,
    RefreshSerializer,
    RegisterSerializer,
    ResetPasswordSerializer,
)
from lodging.serializers.users import ProfileUpdateSerializer
from lodging.services import notifications
from lodging.services.audit import log_action
from lodging.services.users import serialize_user, update_profile
from lodging.throttles import LoginRateThrottle, RegisterRateThrottle


def _client_ip(request) -> str | None:
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')


def _tokens(user: User) -> dict:
    refresh = RefreshToken.for_user(user)
    return {'token': str(refresh.access_token), 'refreshToken': str(refresh)}


# ---------------------------------------------------------------------
# Register / login
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([RegisterRateThrottle])
def register_view(request):
    s = RegisterSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data

    if User.objects.filter(email=v['email']).exists():
        raise ValidationError('User already exists with this email')

    user = User.objects.create_user(
        email=v['email'],
        password=v['password'],
        first_name=v['firstName'],
        last_name=v['lastName'],
        phone=v.get('phone', ''),
    )
    log_action(user=user, action='register', object_type='user', object_id=user.id,
               detail={'ip': _client_ip(request)})
    notifications.send_verification(user)
    return success({'user': serialize_user(user), **_tokens(user)},
                   message='User registered successfully', status=201)


@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([LoginRateThrottle])
def login_view(request):
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data

    user = authenticate(request, email=v['email'], password=v['password'])
    if not user:
        log_action(user=None, action='login', object_type='user', object_id=None,
                   detail={'result': 'fail', 'email': v['email'], 'ip': _client_ip(request)})
        raise AuthenticationFailed('Invalid credentials')

    update_last_login(None, user)
    log_action(user=user, action='login', object_type='user', object_id=user.id,
               detail={'result': 'ok', 'ip': _client_ip(request)})
    return success({'user': serialize_user(user), **_tokens(user)}, message='Login successful')


# ---------------------------------------------------------------------
# JWT: refresh & logout
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
def refresh_token_view(request):
    """Exchange a refresh token for a new access token; the refresh token rotates."""
    s = RefreshSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    refresh = TokenRefreshSerializer(data={'refresh': s.validated_data['refreshToken']})
    try:
        refresh.is_valid(raise_exception=True)
    except TokenError as e:
        raise InvalidToken(e.args[0])
    data = refresh.validated_data
    return success({'token': data['access'], 'refreshToken': data.get('refresh', s.validated_data['refreshToken'])})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout_view(request):
    """Blacklist the given refresh token, or every outstanding token of the user."""
    s = LogoutSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    raw = s.validated_data.get('refreshToken')
    count = 0
    if raw:
        try:
            RefreshToken(raw).blacklist()
        except TokenError as e:
            raise ValidationError(f'Invalid refresh token: {e}')
        count = 1
    else:
        for token in OutstandingToken.objects.filter(user=request.user):
            _, created = BlacklistedToken.objects.get_or_create(token=token)
            count += int(created)
    log_action(user=request.user, action='logout', object_type='user', object_id=request.user.id,
               detail={'blacklisted': count})
    return success({'blacklisted': count}, message='Logged out successfully')


# ---------------------------------------------------------------------
# Password recovery
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([LoginRateThrottle])
def forgot_password_view(request):
    s = ForgotPasswordSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user = User.objects.filter(email=s.validated_data['email'], is_active=True).first()
    if user and user.has_usable_password():
        notifications.send_password_reset(user)
    return success(message='If an account exists for this email, a reset link has been sent')


@api_view(['POST'])
@permission_classes([AllowAny])
def reset_password_view(request):
    s = ResetPasswordSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    user = notifications.user_for_reset(v['uid'], v['token'])
    if user is None:
        raise ValidationError('Invalid or expired reset token')
    password_validation.validate_password(v['password'], user)
    user.set_password(v['password'])
    user.save(update_fields=['password', 'updated_at'])
    log_action(user=user, action='password_reset', object_type='user', object_id=user.id)
    return success(message='Password has been reset')


# ---------------------------------------------------------------------
# Email verification
# ---------------------------------------------------------------------
@api_view(['GET'])
@permission_classes([AllowAny])
def verify_email_view(request, token):
    user = notifications.user_for_verification(token)
    if user is None:
        raise ValidationError('Invalid or expired verification token')
    user.verification = {**user.verification, 'email': True}
    user.save(update_fields=['verification', 'updated_at'])
    return success(message='Email verified successfully')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def resend_verification_view(request):
    user = request.user
    if user.verification.get('email'):
        raise ValidationError('Email is already verified')
    notifications.send_verification(user)
    return success(message='Verification email sent')


# ---------------------------------------------------------------------
# Profile & account
# ---------------------------------------------------------------------
@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def profile_view(request):
    if request.method == 'GET':
        return success({'user': serialize_user(request.user)})
    s = ProfileUpdateSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    user = update_profile(request.user, s.validated_data)
    return success({'user': serialize_user(user)}, message='Profile updated successfully')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def change_password_view(request):
    s = ChangePasswordSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    user = request.user
    if not user.check_password(v['currentPassword']):
        raise ValidationError('Current password is incorrect')
    password_validation.validate_password(v['newPassword'], user)
    user.set_password(v['newPassword'])
    user.save(update_fields=['password', 'updated_at'])
    log_action(user=user, action='password_change', object_type='user', object_id=user.id)
    return success({'user': serialize_user(user), **_tokens(user)}, message='Password changed successfully')


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def delete_account_view(request):
    s = DeleteAccountSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user = request.user
    if not user.check_password(s.validated_data['password']):
        raise ValidationError('Password is incorrect')
    user_id = user.id
    with transaction.atomic():
        log_action(user=None, action='account_delete', object_type='user', object_id=user_id,
                   detail={'email': user.email})
        user.delete()
    return success(message='Account deleted successfully')
