from io import StringIO

import pytest
from django.core.management import call_command

from lodging.models import Hotel, RoomType, User

from .helpers import make_booking

pytestmark = pytest.mark.django_db


def run(*args, **kwargs):
    out = StringIO()
    call_command(*args, stdout=out, **kwargs)
    return out.getvalue()


def test_seed_hotels_is_idempotent():
    out = run('seed_hotels')
    assert 'ok: Grand Palace Hotel' in out
    hotels = Hotel.objects.count()
    rooms = RoomType.objects.count()
    assert hotels == 3
    assert rooms > hotels

    out = run('seed_hotels')
    assert 'skip: Grand Palace Hotel already exists' in out
    assert Hotel.objects.count() == hotels
    assert RoomType.objects.count() == rooms


def test_seed_clear_keeps_hotels_with_bookings(user, hotel, room_type):
    make_booking(user, hotel, room_type)
    Hotel.objects.create(name='Empty Inn', description='x', address='a', city='Braga', country='Portugal',
                         base_price=50)
    run('seed_hotels', '--clear')
    names = set(Hotel.objects.values_list('name', flat=True))
    assert 'Harbour House' in names
    assert 'Empty Inn' not in names


def test_ensure_admin_creates_then_promotes(user):
    run('ensure_admin', '--email', 'Root@Example.com', '--password', 'Adm1n-Secret!')
    admin = User.objects.get(email='root@example.com')
    assert admin.role == 'admin'
    assert admin.is_superuser

    out = run('ensure_admin', '--email', 'guest@example.com', '--password', 'Promot3d-Secret!')
    assert 'promoted: guest@example.com' in out
    user.refresh_from_db()
    assert user.role == 'admin'
    assert user.check_password('Promot3d-Secret!')
