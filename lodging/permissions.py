"""
Permission classes and object-scope checks.

The classes plug into ``@permission_classes``; the ``ensure_*`` helpers
are called from views once the object is loaded and raise DRF
``PermissionDenied`` on failure.
"""
from rest_framework.exceptions import NotAuthenticated, PermissionDenied
from rest_framework.permissions import BasePermission, SAFE_METHODS


def is_admin(user) -> bool:
    return bool(user and user.is_authenticated and
                (getattr(user, 'role', None) == 'admin' or getattr(user, 'is_superuser', False)))


def is_hotel_staff(user, hotel_id) -> bool:
    """Admins count as staff of every hotel."""
    if is_admin(user):
        return True
    if not (user and user.is_authenticated):
        return False
    return user.hotel_assignments.filter(hotel_id=hotel_id).exists()


def ensure_hotel_staff(user, hotel_id) -> None:
    if not (user and user.is_authenticated):
        raise NotAuthenticated()
    if not is_hotel_staff(user, hotel_id):
        raise PermissionDenied('Access denied. Hotel staff privileges required.')


def ensure_owner_or_admin(user, obj, message: str = 'Access denied. You can only access your own resources.') -> None:
    if is_admin(user):
        return
    if getattr(obj, 'user_id', None) != getattr(user, 'id', None):
        raise PermissionDenied(message)


class IsAdminRole(BasePermission):
    """Allow access only to administrators."""
    message = 'Access denied. Admin privileges required.'

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return is_admin(getattr(request, 'user', None))


class IsAdminOrReadOnly(BasePermission):
    """Anyone may read; writes need an administrator."""
    message = 'Access denied. Admin privileges required.'

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        if request.method in SAFE_METHODS:
            return True
        return is_admin(getattr(request, 'user', None))
