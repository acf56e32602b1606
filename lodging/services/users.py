"""
Guest account helpers: profile output, profile edits, preferences,
statistics, admin listing and loyalty grants.
"""
from __future__ import annotations

import logging
from typing import Optional

from django.db import transaction
from django.db.models import Q, Sum
from rest_framework.exceptions import NotFound

from lodging.models import Booking, User
from lodging.services import pricing
from lodging.services.audit import log_action

logger = logging.getLogger(__name__)

PROFILE_FIELDS = {
    'firstName': 'first_name',
    'lastName': 'last_name',
    'phone': 'phone',
    'dateOfBirth': 'date_of_birth',
    'address': 'address',
    'emergencyContact': 'emergency_contact',
    'profileImage': 'profile_image',
}


def serialize_user(user: User) -> dict:
    return {
        'id': user.id,
        'email': user.email,
        'firstName': user.first_name,
        'lastName': user.last_name,
        'fullName': user.full_name,
        'phone': user.phone,
        'dateOfBirth': user.date_of_birth.isoformat() if user.date_of_birth else None,
        'address': user.address,
        'preferences': user.preferences,
        'emergencyContact': user.emergency_contact,
        'role': user.role,
        'isActive': user.is_active,
        'isGuest': user.is_guest,
        'profileImage': user.profile_image or None,
        'verification': user.verification,
        'loyalty': {
            'points': user.loyalty_points,
            'level': user.membership_level,
            'discount': user.discount_percentage,
            'memberSince': user.member_since.isoformat() if user.member_since else None,
        },
        'lastLogin': user.last_login.isoformat() if user.last_login else None,
        'createdAt': user.created_at.isoformat() if user.created_at else None,
    }


def get_user(user_id) -> User:
    user = User.objects.filter(id=user_id).first()
    if not user:
        raise NotFound('User not found')
    return user


def merge_preferences(current: dict, changes: dict) -> dict:
    merged = dict(current or {})
    for key, value in changes.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged


def update_profile(user: User, data: dict) -> User:
    """Apply the editable profile fields from validated camelCase ``data``."""
    changed = []
    for key, field in PROFILE_FIELDS.items():
        if key in data:
            setattr(user, field, data[key])
            changed.append(field)
    if 'preferences' in data:
        user.preferences = merge_preferences(user.preferences, data['preferences'])
        changed.append('preferences')
    if changed:
        user.save(update_fields=[*changed, 'updated_at'])
    return user


def update_preferences(user: User, prefs: dict) -> dict:
    user.preferences = merge_preferences(user.preferences, prefs)
    user.save(update_fields=['preferences', 'updated_at'])
    return user.preferences


def deactivate(user: User, actor: Optional[User] = None) -> User:
    return set_status(user, False, actor or user)


def set_status(user: User, is_active: bool, actor: User) -> User:
    user.is_active = is_active
    user.save(update_fields=['is_active', 'updated_at'])
    log_action(user=actor, action='user_status', object_type='user', object_id=user.id,
               detail={'isActive': is_active})
    return user


def user_stats(user: User) -> dict:
    qs = Booking.objects.filter(user=user)
    total = qs.count()
    spent = qs.exclude(status='cancelled').aggregate(s=Sum('total_amount'))['s'] or 0
    return {
        'totalBookings': total,
        'totalSpent': float(spent),
        'avgBookingValue': round(float(spent) / total, 2) if total else 0,
        'completedBookings': qs.filter(status='checked-out').count(),
        'cancelledBookings': qs.filter(status='cancelled').count(),
        'loyaltyProgram': {
            'points': user.loyalty_points,
            'level': user.membership_level,
            'discount': user.discount_percentage,
            'nextLevel': _next_level(user.membership_level),
        },
        'memberSince': user.member_since.isoformat() if user.member_since else None,
    }


def _next_level(level: str) -> Optional[dict]:
    levels = pricing.MEMBERSHIP_LEVELS
    idx = levels.index(level) if level in levels else 0
    if idx + 1 >= len(levels):
        return None
    name = levels[idx + 1]
    required = next(t for t, lvl in pricing.MEMBERSHIP_THRESHOLDS if lvl == name)
    return {'level': name, 'pointsRequired': required}


def list_users(status: str = 'active'):
    qs = User.objects.all().order_by('-created_at')
    if status == 'active':
        qs = qs.filter(is_active=True)
    elif status == 'inactive':
        qs = qs.filter(is_active=False)
    return qs


def search_users(q: str):
    q = (q or '').strip()
    return User.objects.filter(
        Q(first_name__icontains=q) | Q(last_name__icontains=q) | Q(email__icontains=q)
    ).order_by('last_name', 'first_name')


@transaction.atomic
def add_loyalty_points(user: User, points: int, *, reason: str, actor: Optional[User] = None) -> User:
    user = User.objects.select_for_update().get(id=user.id)
    before = user.membership_level
    user.add_loyalty_points(points)
    if user.membership_level != before:
        logger.info('User %s moved from %s to %s', user.id, before, user.membership_level)
    log_action(user=actor, action='loyalty_points', object_type='user', object_id=user.id,
               detail={'points': points, 'reason': reason, 'total': user.loyalty_points,
                       'level': user.membership_level})
    return user
