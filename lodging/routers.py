"""
URL mappings for the SmartLodge API.

Every endpoint is registered here as a flat list of ``path()`` entries.
Trailing slashes are omitted (``APPEND_SLASH`` is off) and literal
segments are listed before the ``<int:...>`` captures they could shadow.
"""
from django.urls import path

from . import auth_views
from .views import bookings, health, hotels, payments, reviews, users

urlpatterns = [
    # Service
    path('health', health.health, name='health'),
    path('api', health.api_index, name='api-index'),

    # Auth
    path('api/auth/register', auth_views.register_view, name='auth-register'),
    path('api/auth/login', auth_views.login_view, name='auth-login'),
    path('api/auth/refresh-token', auth_views.refresh_token_view, name='auth-refresh'),
    path('api/auth/logout', auth_views.logout_view, name='auth-logout'),
    path('api/auth/forgot-password', auth_views.forgot_password_view, name='auth-forgot-password'),
    path('api/auth/reset-password', auth_views.reset_password_view, name='auth-reset-password'),
    path('api/auth/verify-email/<str:token>', auth_views.verify_email_view, name='auth-verify-email'),
    path('api/auth/resend-verification', auth_views.resend_verification_view, name='auth-resend-verification'),
    path('api/auth/profile', auth_views.profile_view, name='auth-profile'),
    path('api/auth/change-password', auth_views.change_password_view, name='auth-change-password'),
    path('api/auth/account', auth_views.delete_account_view, name='auth-account'),
    path('api/auth/users', users.user_list, name='auth-users'),

    # Hotels
    path('api/hotels', hotels.hotels, name='hotels'),
    path('api/hotels/search', hotels.search, name='hotels-search'),
    path('api/hotels/featured', hotels.featured, name='hotels-featured'),
    path('api/hotels/location/<str:city>', hotels.by_location, name='hotels-by-city'),
    path('api/hotels/location/<str:city>/<str:country>', hotels.by_location, name='hotels-by-location'),
    path('api/hotels/<int:hotel_id>', hotels.hotel_detail, name='hotel-detail'),
    path('api/hotels/<int:hotel_id>/amenities', hotels.amenities, name='hotel-amenities'),
    path('api/hotels/<int:hotel_id>/room-types', hotels.room_types, name='hotel-room-types'),
    path('api/hotels/<int:hotel_id>/room-types/<int:room_type_id>', hotels.room_type_detail,
         name='hotel-room-type-detail'),
    path('api/hotels/<int:hotel_id>/reviews', reviews.hotel_reviews, name='hotel-reviews'),
    path('api/hotels/<int:hotel_id>/check-availability', hotels.check_availability,
         name='hotel-check-availability'),
    path('api/hotels/<int:hotel_id>/availability', hotels.availability, name='hotel-availability'),
    path('api/hotels/<int:hotel_id>/images', hotels.images, name='hotel-images'),
    path('api/hotels/<int:hotel_id>/status', hotels.hotel_status, name='hotel-status'),

    # Bookings
    path('api/bookings', bookings.bookings, name='bookings'),
    path('api/bookings/my-bookings', bookings.my_bookings, name='bookings-mine'),
    path('api/bookings/stats', bookings.stats, name='bookings-stats'),
    path('api/bookings/reports/generate', bookings.report, name='bookings-report'),
    path('api/bookings/hotel/<int:hotel_id>', bookings.hotel_bookings, name='bookings-hotel'),
    path('api/bookings/hotel/<int:hotel_id>/date/<str:day>', bookings.hotel_bookings_on,
         name='bookings-hotel-date'),
    path('api/bookings/<int:booking_id>', bookings.booking_detail, name='booking-detail'),
    path('api/bookings/<int:booking_id>/cancel', bookings.cancel, name='booking-cancel'),
    path('api/bookings/<int:booking_id>/special-requests', bookings.special_requests,
         name='booking-special-requests'),
    path('api/bookings/<int:booking_id>/special-requests/<int:request_id>', bookings.special_request_detail,
         name='booking-special-request-detail'),
    path('api/bookings/<int:booking_id>/confirm', bookings.confirm, name='booking-confirm'),
    path('api/bookings/<int:booking_id>/checkin', bookings.check_in, name='booking-checkin'),
    path('api/bookings/<int:booking_id>/checkout', bookings.check_out, name='booking-checkout'),
    path('api/bookings/<int:booking_id>/no-show', bookings.no_show, name='booking-no-show'),
    path('api/bookings/<int:booking_id>/communication', bookings.communication, name='booking-communication'),

    # Users
    path('api/users', users.user_list, name='users'),
    path('api/users/profile', users.profile, name='users-profile'),
    path('api/users/bookings', users.my_bookings, name='users-bookings'),
    path('api/users/stats', users.stats, name='users-stats'),
    path('api/users/preferences', users.preferences, name='users-preferences'),
    path('api/users/search', users.search, name='users-search'),
    path('api/users/<int:user_id>', users.user_detail, name='user-detail'),
    path('api/users/<int:user_id>/status', users.user_status, name='user-status'),
    path('api/users/<int:user_id>/loyalty-points', users.loyalty_points, name='user-loyalty-points'),

    # Payments
    path('api/payments', payments.payment_list, name='payments'),
    path('api/payments/create-intent', payments.create_intent, name='payments-create-intent'),
    path('api/payments/confirm', payments.confirm, name='payments-confirm'),
    path('api/payments/stripe/webhook', payments.stripe_webhook, name='payments-webhook'),
    path('api/payments/history', payments.history, name='payments-history'),
    path('api/payments/stats/overview', payments.stats, name='payments-stats'),
    path('api/payments/<int:payment_id>', payments.payment_detail, name='payment-detail'),
    path('api/payments/<int:payment_id>/refund', payments.refund, name='payment-refund'),
    path('api/payments/<int:payment_id>/refunds', payments.refunds, name='payment-refunds'),
    path('api/payments/<int:payment_id>/admin-refund', payments.admin_refund, name='payment-admin-refund'),

    # Reviews
    path('api/reviews', reviews.create, name='reviews'),
    path('api/reviews/hotel/<int:hotel_id>', reviews.hotel_reviews, name='reviews-hotel'),
    path('api/reviews/hotel/<int:hotel_id>/stats', reviews.hotel_stats, name='reviews-hotel-stats'),
    path('api/reviews/my-reviews', reviews.my_reviews, name='reviews-mine'),
    path('api/reviews/eligible-bookings', reviews.eligible_bookings, name='reviews-eligible-bookings'),
    path('api/reviews/<int:review_id>', reviews.review_detail, name='review-detail'),
    path('api/reviews/<int:review_id>/helpful', reviews.helpful, name='review-helpful'),
    path('api/reviews/<int:review_id>/status', reviews.moderate, name='review-status'),
    path('api/reviews/<int:review_id>/response', reviews.respond, name='review-response'),
]
