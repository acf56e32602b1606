"""
Database models for the SmartLodge backend.

Users, hotels (with their room types and staff), bookings, payments and
reviews.  Nested documents that are always read and written as a whole
(addresses, preferences, images, amenities, seasonal rates, policies)
live in JSON columns; everything that is filtered, joined or counted has
its own column.
"""
from __future__ import annotations

from decimal import Decimal

from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone

from .services import pricing


def default_preferences() -> dict:
    return {
        'currency': 'USD',
        'language': 'en',
        'notifications': {'email': True, 'sms': False, 'marketing': False},
        'accessibility': {'wheelchairAccess': False, 'visualImpairment': False, 'hearingImpairment': False},
    }


def default_verification() -> dict:
    return {'email': False, 'phone': False, 'identity': False}


def default_policies() -> dict:
    return {
        'checkIn': {'time': '15:00', 'instructions': ''},
        'checkOut': {'time': '11:00', 'instructions': ''},
        'cancellation': {'type': 'moderate', 'description': ''},
        'children': {'allowed': True, 'ageLimit': 0},
        'pets': {'allowed': False, 'fee': 0},
        'smoking': {'allowed': False},
    }


class UserManager(BaseUserManager):
    """Manager for the email-keyed user model."""
    use_in_migrations = True

    def _create_user(self, email, password, **extra_fields):
        if not email:
            raise ValueError('The email address must be set')
        email = self.normalize_email(email).lower()
        user = self.model(email=email, **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', False)
        extra_fields.setdefault('is_superuser', False)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('role', 'admin')
        if extra_fields.get('is_staff') is not True:
            raise ValueError('Superuser must have is_staff=True.')
        if extra_fields.get('is_superuser') is not True:
            raise ValueError('Superuser must have is_superuser=True.')
        return self._create_user(email, password, **extra_fields)


class User(AbstractUser):
    """Guest or administrator account, identified by email.

    ``external_id`` links the account to a third-party identity provider
    when one is configured; such accounts have no usable local password.
    """
    ROLE_CHOICES = [
        ('user', 'User'),
        ('admin', 'Administrator'),
    ]
    MEMBERSHIP_CHOICES = [(level, level) for level in pricing.MEMBERSHIP_LEVELS]

    username = None
    email = models.EmailField(unique=True)
    first_name = models.CharField(max_length=50)
    last_name = models.CharField(max_length=50)
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default='user', db_index=True)
    external_id = models.CharField(max_length=128, unique=True, null=True, blank=True)
    phone = models.CharField(max_length=32, blank=True)
    date_of_birth = models.DateField(null=True, blank=True)
    address = models.JSONField(default=dict, blank=True)
    preferences = models.JSONField(default=default_preferences, blank=True)
    emergency_contact = models.JSONField(default=dict, blank=True)
    verification = models.JSONField(default=default_verification, blank=True)
    membership_level = models.CharField(max_length=10, choices=MEMBERSHIP_CHOICES, default='Bronze')
    loyalty_points = models.PositiveIntegerField(default=0)
    member_since = models.DateTimeField(default=timezone.now)
    is_guest = models.BooleanField(default=False)
    profile_image = models.URLField(max_length=500, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['first_name', 'last_name']

    objects = UserManager()

    def __str__(self) -> str:
        return f"{self.email} ({self.role})"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_admin(self) -> bool:
        return self.role == 'admin' or self.is_superuser

    @property
    def discount_percentage(self) -> int:
        return pricing.discount_percentage(self.membership_level)

    def add_loyalty_points(self, points: int) -> None:
        """Add points and move the membership tier up if a threshold is crossed."""
        self.loyalty_points += points
        self.membership_level = pricing.membership_level_for(self.loyalty_points, self.membership_level)
        self.save(update_fields=['loyalty_points', 'membership_level', 'updated_at'])


class Hotel(models.Model):
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('inactive', 'Inactive'),
        ('maintenance', 'Maintenance'),
        ('coming-soon', 'Coming soon'),
    ]

    name = models.CharField(max_length=100)
    description = models.TextField()
    short_description = models.CharField(max_length=200, blank=True)

    address = models.CharField(max_length=255)
    city = models.CharField(max_length=100, db_index=True)
    state = models.CharField(max_length=100, blank=True)
    country = models.CharField(max_length=100, db_index=True)
    zip_code = models.CharField(max_length=20, blank=True)
    latitude = models.FloatField(null=True, blank=True,
                                 validators=[MinValueValidator(-90), MaxValueValidator(90)])
    longitude = models.FloatField(null=True, blank=True,
                                  validators=[MinValueValidator(-180), MaxValueValidator(180)])
    timezone = models.CharField(max_length=64, default='UTC')

    contact = models.JSONField(default=dict, blank=True)
    images = models.JSONField(default=list, blank=True)

    rating_overall = models.FloatField(default=4.0)
    rating_cleanliness = models.FloatField(default=4.0)
    rating_service = models.FloatField(default=4.0)
    rating_location = models.FloatField(default=4.0)
    rating_value = models.FloatField(default=4.0)
    rating_amenities = models.FloatField(default=4.0)
    review_count = models.PositiveIntegerField(default=0)

    base_price = models.DecimalField(max_digits=10, decimal_places=2)
    currency = models.CharField(max_length=3, default='USD')
    tax_rate = models.DecimalField(max_digits=5, decimal_places=4, default=Decimal('0.12'))
    service_charge = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0'))
    seasonal_rates = models.JSONField(default=list, blank=True)

    amenities = models.JSONField(default=list, blank=True)
    policies = models.JSONField(default=default_policies, blank=True)
    sustainability = models.JSONField(default=dict, blank=True)
    owner = models.JSONField(default=dict, blank=True)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active', db_index=True)
    featured = models.BooleanField(default=False, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['city', 'country'], name='hotel_city_country_idx'),
            models.Index(fields=['status', 'featured'], name='hotel_status_featured_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.city})"

    def save(self, *args, **kwargs):
        # first image becomes primary when none is flagged
        if self.images and not any(img.get('isPrimary') for img in self.images):
            self.images[0]['isPrimary'] = True
        super().save(*args, **kwargs)

    @property
    def primary_image(self) -> str | None:
        for img in self.images or []:
            if img.get('isPrimary'):
                return img.get('url')
        return self.images[0].get('url') if self.images else None

    @property
    def current_price(self) -> Decimal:
        return pricing.current_price(self)

    @property
    def rating_breakdown(self) -> dict:
        return {
            'cleanliness': self.rating_cleanliness,
            'service': self.rating_service,
            'location': self.rating_location,
            'value': self.rating_value,
            'amenities': self.rating_amenities,
        }


class RoomType(models.Model):
    hotel = models.ForeignKey(Hotel, on_delete=models.CASCADE, related_name='room_types')
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    max_occupancy = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(20)])
    bed_configuration = models.JSONField(default=list, blank=True)
    size = models.JSONField(default=dict, blank=True)
    amenities = models.JSONField(default=list, blank=True)
    images = models.JSONField(default=list, blank=True)
    price_adjustment = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0'))
    total_rooms = models.PositiveIntegerField(validators=[MinValueValidator(1), MaxValueValidator(1000)])
    available_rooms = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['id']

    def __str__(self) -> str:
        return f"{self.name} @ {self.hotel_id}"

    def save(self, *args, **kwargs):
        self.available_rooms = min(self.available_rooms, self.total_rooms)
        super().save(*args, **kwargs)


class HotelStaff(models.Model):
    """Grants a user staff rights over one hotel."""
    ROLE_CHOICES = [
        ('manager', 'Manager'),
        ('reception', 'Reception'),
        ('housekeeping', 'Housekeeping'),
        ('maintenance', 'Maintenance'),
        ('security', 'Security'),
    ]
    hotel = models.ForeignKey(Hotel, on_delete=models.CASCADE, related_name='staff')
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='hotel_assignments')
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='reception')
    permissions = models.JSONField(default=list, blank=True)

    class Meta:
        unique_together = [('hotel', 'user')]

    def __str__(self) -> str:
        return f"{self.user} at {self.hotel} as {self.role}"


class Booking(models.Model):
    STATUS_CHOICES = [
        ('pending', 'Pending Confirmation'),
        ('confirmed', 'Confirmed'),
        ('checked-in', 'Checked In'),
        ('checked-out', 'Completed'),
        ('cancelled', 'Cancelled'),
        ('no-show', 'No Show'),
    ]
    PAYMENT_STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('processing', 'Processing'),
        ('completed', 'Completed'),
        ('failed', 'Failed'),
        ('refunded', 'Refunded'),
        ('partially-refunded', 'Partially refunded'),
    ]
    PAYMENT_METHOD_CHOICES = [
        ('credit-card', 'Credit card'),
        ('debit-card', 'Debit card'),
        ('paypal', 'PayPal'),
        ('apple-pay', 'Apple Pay'),
        ('google-pay', 'Google Pay'),
        ('bank-transfer', 'Bank transfer'),
        ('cash', 'Cash'),
    ]
    CANCELLATION_REASON_CHOICES = [
        ('guest-request', 'Guest request'),
        ('hotel-issue', 'Hotel issue'),
        ('payment-failed', 'Payment failed'),
        ('force-majeure', 'Force majeure'),
        ('other', 'Other'),
    ]
    ACTIVE_STATUSES = ('pending', 'confirmed', 'checked-in')

    reference = models.CharField(max_length=24, unique=True, editable=False)
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='bookings')
    hotel = models.ForeignKey(Hotel, on_delete=models.PROTECT, related_name='bookings')
    room_type = models.ForeignKey(RoomType, on_delete=models.SET_NULL, null=True, blank=True,
                                  related_name='bookings')
    room_type_name = models.CharField(max_length=100)
    room_max_occupancy = models.PositiveSmallIntegerField(default=1)

    check_in = models.DateField(db_index=True)
    check_out = models.DateField()
    nights = models.PositiveIntegerField(default=1)
    adults = models.PositiveSmallIntegerField(default=1, validators=[MinValueValidator(1), MaxValueValidator(20)])
    children = models.PositiveSmallIntegerField(default=0, validators=[MaxValueValidator(10)])
    infants = models.PositiveSmallIntegerField(default=0, validators=[MaxValueValidator(5)])
    guest_details = models.JSONField(default=dict, blank=True)

    base_price = models.DecimalField(max_digits=10, decimal_places=2)
    room_price = models.DecimalField(max_digits=10, decimal_places=2)
    subtotal = models.DecimalField(max_digits=12, decimal_places=2)
    tax_rate = models.DecimalField(max_digits=5, decimal_places=4, default=Decimal('0'))
    tax_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    fees = models.JSONField(default=list, blank=True)
    discounts = models.JSONField(default=list, blank=True)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3, default='USD')
    paid_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    remaining_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))

    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHOD_CHOICES, null=True, blank=True)
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default='pending')
    transaction_id = models.CharField(max_length=255, blank=True)
    payment_intent_id = models.CharField(max_length=255, blank=True)
    payment_date = models.DateTimeField(null=True, blank=True)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending', db_index=True)
    confirmed_at = models.DateTimeField(null=True, blank=True)
    confirmation_method = models.CharField(max_length=20, blank=True)
    checkin_details = models.JSONField(default=dict, blank=True)
    checkout_details = models.JSONField(default=dict, blank=True)

    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.CharField(max_length=20, choices=CANCELLATION_REASON_CHOICES, blank=True)
    cancellation_fee = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    refund_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))

    points_earned = models.PositiveIntegerField(default=0)
    points_redeemed = models.PositiveIntegerField(default=0)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'status'], name='booking_user_status_idx'),
            models.Index(fields=['hotel', 'check_in', 'check_out'], name='booking_hotel_dates_idx'),
        ]

    def __str__(self) -> str:
        return f"{self.reference} ({self.status})"

    def save(self, *args, **kwargs):
        if not self.reference:
            self.reference = self._unique_reference()
        self.remaining_amount = max(Decimal('0'), Decimal(self.total_amount) - Decimal(self.paid_amount))
        update_fields = kwargs.get('update_fields')
        if update_fields is not None and 'remaining_amount' not in update_fields:
            kwargs['update_fields'] = [*update_fields, 'remaining_amount']
        super().save(*args, **kwargs)

    @classmethod
    def _unique_reference(cls) -> str:
        while True:
            ref = pricing.generate_booking_reference()
            if not cls.objects.filter(reference=ref).exists():
                return ref

    @property
    def total_guests(self) -> int:
        return self.adults + self.children + self.infants

    @property
    def days_until_check_in(self) -> int:
        return (self.check_in - timezone.localdate()).days

    @property
    def status_display(self) -> str:
        return self.get_status_display()


class SpecialRequest(models.Model):
    TYPE_CHOICES = [
        ('accessibility', 'Accessibility'),
        ('dietary', 'Dietary'),
        ('room-preference', 'Room preference'),
        ('celebration', 'Celebration'),
        ('transportation', 'Transportation'),
        ('other', 'Other'),
    ]
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('approved', 'Approved'),
        ('fulfilled', 'Fulfilled'),
        ('denied', 'Denied'),
    ]
    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name='special_requests')
    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    description = models.TextField()
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='pending')
    cost = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0'))
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['id']


class BookingMessage(models.Model):
    """A message sent to the guest about a booking."""
    TYPE_CHOICES = [
        ('email', 'Email'),
        ('sms', 'SMS'),
        ('phone', 'Phone'),
        ('in-app', 'In-app'),
    ]
    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name='communications')
    type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    subject = models.CharField(max_length=200, blank=True)
    message = models.TextField()
    sent_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True,
                                related_name='booking_messages')
    sent_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['sent_at']


class Payment(models.Model):
    """One payment intent at the processor for (part of) a booking."""
    STATUS_CHOICES = [
        ('requires-payment', 'Requires payment'),
        ('processing', 'Processing'),
        ('succeeded', 'Succeeded'),
        ('failed', 'Failed'),
        ('canceled', 'Canceled'),
        ('refunded', 'Refunded'),
        ('partially-refunded', 'Partially refunded'),
    ]
    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name='payments')
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='payments')
    intent_id = models.CharField(max_length=255, unique=True)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3, default='usd')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='processing', db_index=True)
    method = models.CharField(max_length=30, blank=True)
    refunded_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0'))
    failure_message = models.CharField(max_length=500, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self) -> str:
        return f"{self.intent_id} {self.amount} {self.status}"

    @property
    def refundable_amount(self) -> Decimal:
        if self.status not in ('succeeded', 'partially-refunded'):
            return Decimal('0')
        return max(Decimal('0'), self.amount - self.refunded_amount)


class Refund(models.Model):
    payment = models.ForeignKey(Payment, on_delete=models.CASCADE, related_name='refunds')
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    reason = models.CharField(max_length=255, blank=True)
    provider_refund_id = models.CharField(max_length=255, blank=True)
    status = models.CharField(max_length=20, default='pending')
    requested_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True,
                                     related_name='requested_refunds')
    processed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']


class Review(models.Model):
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('approved', 'Approved'),
        ('rejected', 'Rejected'),
        ('hidden', 'Hidden'),
    ]
    RATING_VALIDATORS = [MinValueValidator(1), MaxValueValidator(5)]
    BREAKDOWN_FIELDS = ('cleanliness', 'service', 'location', 'value', 'amenities')

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='reviews')
    hotel = models.ForeignKey(Hotel, on_delete=models.CASCADE, related_name='reviews')
    booking = models.OneToOneField(Booking, on_delete=models.CASCADE, null=True, blank=True,
                                   related_name='review')
    rating_overall = models.PositiveSmallIntegerField(validators=RATING_VALIDATORS)
    rating_cleanliness = models.PositiveSmallIntegerField(null=True, blank=True, validators=RATING_VALIDATORS)
    rating_service = models.PositiveSmallIntegerField(null=True, blank=True, validators=RATING_VALIDATORS)
    rating_location = models.PositiveSmallIntegerField(null=True, blank=True, validators=RATING_VALIDATORS)
    rating_value = models.PositiveSmallIntegerField(null=True, blank=True, validators=RATING_VALIDATORS)
    rating_amenities = models.PositiveSmallIntegerField(null=True, blank=True, validators=RATING_VALIDATORS)
    title = models.CharField(max_length=100)
    comment = models.TextField()
    pros = models.JSONField(default=list, blank=True)
    cons = models.JSONField(default=list, blank=True)
    stay_details = models.JSONField(default=dict, blank=True)
    helpful_votes = models.PositiveIntegerField(default=0)
    verified = models.BooleanField(default=False)
    response = models.JSONField(default=dict, blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='pending', db_index=True)
    moderation_notes = models.TextField(blank=True)
    images = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['hotel', 'status'], name='review_hotel_status_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['user', 'hotel'],
                condition=models.Q(booking__isnull=True),
                name='review_unique_unbooked_per_hotel',
            ),
        ]

    def __str__(self) -> str:
        return f"{self.title} ({self.rating_overall}/5)"

    @property
    def reviewer_initials(self) -> str:
        first = (self.user.first_name or '')[:1]
        last = (self.user.last_name or '')[:1]
        return (first + last).upper() or 'AN'


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.IntegerField(blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='audit_action_created_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='audit_object_created_idx'),
        ]
