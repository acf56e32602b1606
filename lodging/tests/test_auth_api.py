"""
Authentication flow: registration, login, JWT refresh/logout, password
recovery, email verification and account management.
"""
import pytest
from django.core import mail
from rest_framework.test import APIClient
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken

from lodging.models import AuditEvent, User
from lodging.services import notifications

from .helpers import PASSWORD

pytestmark = pytest.mark.django_db

NEW_PASSWORD = 'Str0nger-Secret#9'


def register(client, **overrides):
    payload = {
        'email': 'New.Guest@Example.com',
        'password': NEW_PASSWORD,
        'firstName': ' Nia ',
        'lastName': 'Newton',
        'phone': '+44 20 7946 0000',
    }
    payload.update(overrides)
    return client.post('/api/auth/register', payload, format='json')


def login(client, email='guest@example.com', password=PASSWORD):
    return client.post('/api/auth/login', {'email': email, 'password': password}, format='json')


def test_register_issues_tokens_and_sends_verification(api):
    r = register(api)
    assert r.status_code == 201, r.data
    data = r.data['data']
    assert data['user']['email'] == 'new.guest@example.com'
    assert data['user']['firstName'] == 'Nia'
    assert data['user']['role'] == 'user'
    assert data['token'] and data['refreshToken']
    assert len(mail.outbox) == 1
    assert '/verify-email/' in mail.outbox[0].body


def test_register_duplicate_email(api, user):
    r = register(api, email='GUEST@example.com')
    assert r.status_code == 400
    assert r.data['message'] == 'User already exists with this email'


def test_register_rejects_weak_password(api):
    r = register(api, password='123456')
    assert r.status_code == 400
    assert r.data['type'] == 'ValidationError'
    assert 'password' in r.data['errors']
    assert not User.objects.filter(email='new.guest@example.com').exists()


def test_login_and_use_bearer_token(api, user):
    r = login(api)
    assert r.status_code == 200
    assert r.data['message'] == 'Login successful'
    token = r.data['data']['token']

    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
    r = client.get('/api/auth/profile')
    assert r.status_code == 200
    assert r.data['data']['user']['email'] == 'guest@example.com'

    user.refresh_from_db()
    assert user.last_login is not None


def test_login_with_bad_credentials(api, user):
    r = login(api, password='wrong-password')
    assert r.status_code == 401
    assert r.data == {'success': False, 'message': 'Invalid credentials', 'type': 'AuthenticationError'}
    assert AuditEvent.objects.filter(action='login', detail__result='fail').exists()


def test_deactivated_user_cannot_log_in(api, user):
    user.is_active = False
    user.save()
    assert login(api).status_code == 401


def test_refresh_rotates_and_blacklists_old_token(api, user):
    refresh = login(api).data['data']['refreshToken']
    r = api.post('/api/auth/refresh-token', {'refreshToken': refresh}, format='json')
    assert r.status_code == 200
    assert r.data['data']['refreshToken'] != refresh

    r = api.post('/api/auth/refresh-token', {'refreshToken': refresh}, format='json')
    assert r.status_code == 401


def test_logout_blacklists_refresh_token(api, user_api, user):
    refresh = login(api).data['data']['refreshToken']
    r = user_api.post('/api/auth/logout', {'refreshToken': refresh}, format='json')
    assert r.status_code == 200
    assert r.data['data']['blacklisted'] == 1
    assert BlacklistedToken.objects.count() == 1

    r = api.post('/api/auth/refresh-token', {'refreshToken': refresh}, format='json')
    assert r.status_code == 401


def test_forgot_password_does_not_reveal_accounts(api, user):
    r = api.post('/api/auth/forgot-password', {'email': 'nobody@example.com'}, format='json')
    assert r.status_code == 200
    assert mail.outbox == []

    r = api.post('/api/auth/forgot-password', {'email': 'guest@example.com'}, format='json')
    assert r.status_code == 200
    assert len(mail.outbox) == 1
    assert 'reset-password?uid=' in mail.outbox[0].body


def test_reset_password_with_token(api, user):
    uid, token = notifications.password_reset_token(user)
    r = api.post('/api/auth/reset-password', {'uid': uid, 'token': token, 'password': NEW_PASSWORD},
                 format='json')
    assert r.status_code == 200, r.data
    assert login(api, password=NEW_PASSWORD).status_code == 200

    # tokens are single use once the password hash changes
    r = api.post('/api/auth/reset-password', {'uid': uid, 'token': token, 'password': 'An0ther-Secret!'},
                 format='json')
    assert r.status_code == 400
    assert r.data['message'] == 'Invalid or expired reset token'


def test_verify_email(api, user):
    token = notifications.verification_token(user)
    r = api.get(f'/api/auth/verify-email/{token}')
    assert r.status_code == 200
    user.refresh_from_db()
    assert user.verification['email'] is True

    r = api.get('/api/auth/verify-email/garbage')
    assert r.status_code == 400


def test_resend_verification_after_verified(user_api, user):
    assert user_api.post('/api/auth/resend-verification').status_code == 200
    user.verification = {**user.verification, 'email': True}
    user.save()
    r = user_api.post('/api/auth/resend-verification')
    assert r.status_code == 400
    assert r.data['message'] == 'Email is already verified'


def test_profile_update_through_auth_route(user_api, user):
    r = user_api.put('/api/auth/profile', {'lastName': 'Voyager'}, format='json')
    assert r.status_code == 200
    assert r.data['data']['user']['lastName'] == 'Voyager'


def test_change_password(api, user_api, user):
    r = user_api.post('/api/auth/change-password',
                      {'currentPassword': 'not-it', 'newPassword': NEW_PASSWORD}, format='json')
    assert r.status_code == 400
    assert r.data['message'] == 'Current password is incorrect'

    r = user_api.post('/api/auth/change-password',
                      {'currentPassword': PASSWORD, 'newPassword': NEW_PASSWORD}, format='json')
    assert r.status_code == 200
    assert r.data['data']['token']
    assert login(api, password=NEW_PASSWORD).status_code == 200


def test_delete_account_requires_password(user_api, user):
    r = user_api.delete('/api/auth/account', {'password': 'nope'}, format='json')
    assert r.status_code == 400
    assert User.objects.filter(id=user.id).exists()

    r = user_api.delete('/api/auth/account', {'password': PASSWORD}, format='json')
    assert r.status_code == 200
    assert not User.objects.filter(id=user.id).exists()
