"""
Guest profile endpoints and the administrator's user management.
"""
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from lodging.permissions import IsAdminRole
from lodging.responses import page_params, paginate, paginated, success
from lodging.serializers.bookings import BookingListQuerySerializer
from lodging.serializers.users import (
    LoyaltyPointsSerializer,
    PreferencesSerializer,
    ProfileUpdateSerializer,
    UserListQuerySerializer,
    UserSearchSerializer,
    UserStatusSerializer,
)
from lodging.services import users as svc
from lodging.services.bookings import bookings_for_user, serialize_booking


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def profile(request):
    user = request.user
    if request.method == 'GET':
        recent = bookings_for_user(user)[:10]
        return success({'user': svc.serialize_user(user), 'bookings': [serialize_booking(b) for b in recent]})
    if request.method == 'DELETE':
        svc.deactivate(user)
        return success(message='Account deactivated successfully')

    s = ProfileUpdateSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    user = svc.update_profile(user, s.validated_data)
    return success({'user': svc.serialize_user(user)}, message='Profile updated successfully')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def my_bookings(request):
    q = BookingListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    page, limit = page_params(request.query_params)
    items, pagination = paginate(bookings_for_user(request.user, q.validated_data.get('status')), page, limit)
    return paginated('bookings', [serialize_booking(b) for b in items], pagination)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def stats(request):
    return success({'stats': svc.user_stats(request.user)})


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def preferences(request):
    s = PreferencesSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    prefs = svc.update_preferences(request.user, s.validated_data)
    return success({'preferences': prefs}, message='Preferences updated successfully')


# ---------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------
@api_view(['GET'])
@permission_classes([IsAdminRole])
def user_list(request):
    q = UserListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    page, limit = page_params(request.query_params, default_limit=20)
    items, pagination = paginate(svc.list_users(q.validated_data['status']), page, limit)
    return paginated('users', [svc.serialize_user(u) for u in items], pagination)


@api_view(['GET'])
@permission_classes([IsAdminRole])
def search(request):
    q = UserSearchSerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    page, limit = page_params(request.query_params, default_limit=20)
    items, pagination = paginate(svc.search_users(q.validated_data['q']), page, limit)
    return paginated('users', [svc.serialize_user(u) for u in items], pagination)


@api_view(['GET'])
@permission_classes([IsAdminRole])
def user_detail(request, user_id):
    user = svc.get_user(user_id)
    return success({'user': svc.serialize_user(user), 'stats': svc.user_stats(user)})


@api_view(['PUT'])
@permission_classes([IsAdminRole])
def user_status(request, user_id):
    user = svc.get_user(user_id)
    s = UserStatusSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    svc.set_status(user, s.validated_data['isActive'], request.user)
    state = 'activated' if user.is_active else 'deactivated'
    return success({'user': svc.serialize_user(user)}, message=f'User {state} successfully')


@api_view(['POST'])
@permission_classes([IsAdminRole])
def loyalty_points(request, user_id):
    user = svc.get_user(user_id)
    s = LoyaltyPointsSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user = svc.add_loyalty_points(user, s.validated_data['points'], reason=s.validated_data['reason'],
                                  actor=request.user)
    return success({'user': svc.serialize_user(user)}, message='Loyalty points added successfully')
