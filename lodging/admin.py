"""
Django admin registrations for the lodging models.

Hotels carry their room types and staff inline; bookings show their
special requests and messages so front-desk corrections can be made
from ``/admin/``.
"""

from django.contrib import admin

from .models import (
    AuditEvent,
    Booking,
    BookingMessage,
    Hotel,
    HotelStaff,
    Payment,
    Refund,
    Review,
    RoomType,
    SpecialRequest,
    User,
)


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('email', 'first_name', 'last_name', 'role', 'membership_level', 'loyalty_points', 'is_active')
    list_filter = ('role', 'membership_level', 'is_active')
    search_fields = ('email', 'first_name', 'last_name', 'external_id')
    exclude = ('password',)


class RoomTypeInline(admin.TabularInline):
    model = RoomType
    extra = 0
    fields = ('name', 'max_occupancy', 'price_adjustment', 'total_rooms', 'available_rooms')


class HotelStaffInline(admin.TabularInline):
    model = HotelStaff
    extra = 0
    raw_id_fields = ('user',)


@admin.register(Hotel)
class HotelAdmin(admin.ModelAdmin):
    list_display = ('name', 'city', 'country', 'status', 'featured', 'base_price', 'rating_overall', 'review_count')
    list_filter = ('status', 'featured', 'country')
    search_fields = ('name', 'city', 'country')
    inlines = [RoomTypeInline, HotelStaffInline]


class SpecialRequestInline(admin.TabularInline):
    model = SpecialRequest
    extra = 0


class BookingMessageInline(admin.TabularInline):
    model = BookingMessage
    extra = 0
    raw_id_fields = ('sent_by',)


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ('reference', 'user', 'hotel', 'check_in', 'check_out', 'status', 'payment_status',
                    'total_amount', 'paid_amount')
    list_filter = ('status', 'payment_status', 'hotel')
    search_fields = ('reference', 'user__email', 'hotel__name')
    raw_id_fields = ('user', 'hotel', 'room_type')
    date_hierarchy = 'check_in'
    inlines = [SpecialRequestInline, BookingMessageInline]


class RefundInline(admin.TabularInline):
    model = Refund
    extra = 0
    raw_id_fields = ('requested_by',)


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ('intent_id', 'booking', 'user', 'amount', 'currency', 'status', 'refunded_amount', 'created_at')
    list_filter = ('status', 'currency')
    search_fields = ('intent_id', 'booking__reference', 'user__email')
    raw_id_fields = ('booking', 'user')
    inlines = [RefundInline]


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ('title', 'hotel', 'user', 'rating_overall', 'status', 'verified', 'helpful_votes', 'created_at')
    list_filter = ('status', 'verified', 'rating_overall')
    search_fields = ('title', 'comment', 'user__email', 'hotel__name')
    raw_id_fields = ('user', 'hotel', 'booking')


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('action', 'object_type', 'object_id', 'user', 'created_at')
    list_filter = ('action', 'object_type')
    search_fields = ('action', 'user__email')
