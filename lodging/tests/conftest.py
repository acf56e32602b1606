from decimal import Decimal

import pytest
from django.core.cache import cache

from lodging.models import Hotel, HotelStaff, RoomType, User

from .helpers import PASSWORD, FakeStripe, client_for, make_user


@pytest.fixture(autouse=True)
def _fast_and_isolated(settings):
    settings.PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']
    settings.EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'
    settings.STRIPE_SECRET_KEY = 'sk_test_dummy'
    settings.STRIPE_WEBHOOK_SECRET = 'whsec_dummy'
    settings.IDENTITY_PROVIDER_JWKS_URL = ''
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def user(db):
    return make_user('guest@example.com')


@pytest.fixture
def other_user(db):
    return make_user('other@example.com', first_name='Omar', last_name='Other')


@pytest.fixture
def admin_user(db):
    return User.objects.create_superuser(email='admin@example.com', password=PASSWORD,
                                         first_name='Ada', last_name='Admin')


@pytest.fixture
def hotel(db):
    return Hotel.objects.create(
        name='Harbour House',
        description='Quiet rooms by the water.',
        address='1 Quay Street',
        city='Lisbon',
        country='Portugal',
        contact={'phone': '+351 21 000 0000', 'email': 'stay@harbour.example'},
        base_price=Decimal('100.00'),
        tax_rate=Decimal('0.10'),
        service_charge=Decimal('5.00'),
        amenities=[{'name': 'Free WiFi', 'category': 'general', 'isAvailable': True, 'additionalCost': 0},
                   {'name': 'Spa', 'category': 'wellness', 'isAvailable': True, 'additionalCost': 40}],
        images=[{'url': 'https://img.example/harbour.jpg', 'alt': 'Front', 'category': 'exterior'}],
        featured=True,
        rating_overall=4.5,
    )


@pytest.fixture
def room_type(hotel):
    return RoomType.objects.create(hotel=hotel, name='Double', max_occupancy=2,
                                   price_adjustment=Decimal('20.00'), total_rooms=2, available_rooms=2)


@pytest.fixture
def suite(hotel):
    return RoomType.objects.create(hotel=hotel, name='Family Suite', max_occupancy=5,
                                   price_adjustment=Decimal('80.00'), total_rooms=1, available_rooms=1)


@pytest.fixture
def staff_user(hotel):
    u = make_user('desk@example.com', first_name='Dana', last_name='Desk')
    HotelStaff.objects.create(hotel=hotel, user=u, role='reception')
    return u


@pytest.fixture
def api(db):
    return client_for()


@pytest.fixture
def user_api(user):
    return client_for(user)


@pytest.fixture
def other_api(other_user):
    return client_for(other_user)


@pytest.fixture
def admin_api(admin_user):
    return client_for(admin_user)


@pytest.fixture
def staff_api(staff_user):
    return client_for(staff_user)


@pytest.fixture
def fake_stripe(monkeypatch):
    import stripe

    fake = FakeStripe()
    monkeypatch.setattr(stripe.PaymentIntent, 'create', fake.create_intent)
    monkeypatch.setattr(stripe.PaymentIntent, 'retrieve', fake.retrieve_intent)
    monkeypatch.setattr(stripe.PaymentIntent, 'cancel', fake.cancel_intent)
    monkeypatch.setattr(stripe.Refund, 'create', fake.create_refund)
    monkeypatch.setattr(stripe.Webhook, 'construct_event', fake.construct_event)
    return fake
