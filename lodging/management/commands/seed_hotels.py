# lodging/management/commands/seed_hotels.py
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from lodging.models import Hotel, RoomType
from lodging.services.hotels import invalidate_featured


def _amenities(*items):
    return [{'name': name, 'description': '', 'category': category, 'isAvailable': True, 'additionalCost': cost}
            for name, category, cost in items]


def _room(name, description, occupancy, beds, sq_ft, amenities, adjustment, total, available):
    return {
        'name': name,
        'description': description,
        'max_occupancy': occupancy,
        'bed_configuration': [{'type': t, 'count': c} for t, c in beds],
        'size': {'squareFeet': sq_ft, 'squareMeters': round(sq_ft * 0.092903, 1)},
        'amenities': amenities,
        'price_adjustment': Decimal(adjustment),
        'total_rooms': total,
        'available_rooms': available,
    }


SAMPLE_HOTELS = [
    {
        'hotel': {
            'name': 'Grand Palace Hotel',
            'description': ('Experience luxury at its finest in our Grand Palace Hotel. Located in the heart of '
                            'the city, we offer world-class amenities, exceptional service, and breathtaking views.'),
            'short_description': 'Luxury hotel in the city center with world-class amenities and exceptional service.',
            'address': '123 Main Street, Downtown', 'city': 'New York', 'state': 'New York',
            'country': 'United States', 'zip_code': '10001', 'latitude': 40.7128, 'longitude': -74.0060,
            'contact': {'phone': '+1-212-555-0123', 'email': 'info@grandpalacehotel.com',
                        'website': 'https://grandpalacehotel.com'},
            'images': [
                {'url': 'https://images.unsplash.com/photo-1566073771259-6a8506099945?w=800',
                 'alt': 'Grand Palace Hotel Exterior', 'isPrimary': True, 'category': 'exterior'},
                {'url': 'https://images.unsplash.com/photo-1582719478250-c89cae4dc85b?w=800',
                 'alt': 'Luxury Hotel Lobby', 'isPrimary': False, 'category': 'lobby'},
                {'url': 'https://images.unsplash.com/photo-1618773928121-c32242e63f39?w=800',
                 'alt': 'Deluxe Room', 'isPrimary': False, 'category': 'room'},
            ],
            'rating_overall': 4.8, 'rating_cleanliness': 4.9, 'rating_service': 4.8, 'rating_location': 4.7,
            'rating_value': 4.6, 'rating_amenities': 4.9, 'review_count': 1247,
            'base_price': Decimal('299'), 'tax_rate': Decimal('0.12'), 'service_charge': Decimal('25'),
            'amenities': _amenities(
                ('Free WiFi', 'general', 0), ('Fitness Center', 'wellness', 0), ('Swimming Pool', 'wellness', 0),
                ('Spa Services', 'wellness', 100), ('24/7 Room Service', 'general', 0),
                ('Business Center', 'business', 0), ('Valet Parking', 'transportation', 35),
                ('Concierge Service', 'general', 0),
            ),
            'featured': True,
            'owner': {'name': 'Grand Hotels Group',
                      'contact': {'email': 'management@grandhotelsgroup.com', 'phone': '+1-212-555-0100'}},
        },
        'rooms': [
            _room('Standard Queen Room', 'Comfortable room with queen bed and city views', 2, [('queen', 1)], 350,
                  ['Free WiFi', 'Air Conditioning', 'Flat Screen TV', 'Mini Fridge'], 0, 50, 45),
            _room('Deluxe King Suite', 'Spacious suite with king bed and separate living area', 4,
                  [('king', 1), ('sofa-bed', 1)], 650,
                  ['Free WiFi', 'Air Conditioning', 'Flat Screen TV', 'Mini Bar', 'Balcony'], 150, 25, 20),
            _room('Presidential Suite', 'Ultimate luxury with panoramic city views and premium amenities', 6,
                  [('king', 1), ('queen', 2)], 1200,
                  ['Free WiFi', 'Air Conditioning', 'Flat Screen TV', 'Mini Bar', 'Balcony', 'Butler Service'],
                  500, 5, 3),
        ],
    },
    {
        'hotel': {
            'name': 'Ocean Breeze Resort',
            'description': ('Escape to paradise at Ocean Breeze Resort, where pristine beaches meet luxury '
                            'accommodation, with stunning ocean views and world-class dining.'),
            'short_description': 'Beachfront resort with stunning ocean views and tropical luxury.',
            'address': '456 Beach Boulevard', 'city': 'Miami', 'state': 'Florida',
            'country': 'United States', 'zip_code': '33101', 'latitude': 25.7617, 'longitude': -80.1918,
            'contact': {'phone': '+1-305-555-0456', 'email': 'reservations@oceanbreezeresort.com',
                        'website': 'https://oceanbreezeresort.com'},
            'images': [
                {'url': 'https://images.unsplash.com/photo-1571896349842-33c89424de2d?w=800',
                 'alt': 'Ocean Breeze Resort Beachfront', 'isPrimary': True, 'category': 'exterior'},
                {'url': 'https://images.unsplash.com/photo-1520250497591-112f2f40a3f4?w=800',
                 'alt': 'Resort Pool', 'isPrimary': False, 'category': 'amenity'},
                {'url': 'https://images.unsplash.com/photo-1631049307264-da0ec9d70304?w=800',
                 'alt': 'Ocean View Suite', 'isPrimary': False, 'category': 'room'},
            ],
            'rating_overall': 4.6, 'review_count': 892,
            'base_price': Decimal('199'), 'tax_rate': Decimal('0.13'), 'service_charge': Decimal('20'),
            'amenities': _amenities(
                ('Private Beach', 'entertainment', 0), ('Outdoor Pool', 'wellness', 0),
                ('Water Sports', 'entertainment', 50), ('Spa & Wellness Center', 'wellness', 80),
                ('Multiple Restaurants', 'dining', 0), ('Beach Bar', 'dining', 0),
                ('Free WiFi', 'general', 0), ('Fitness Center', 'wellness', 0),
            ),
            'featured': True,
            'owner': {'name': 'Tropical Resorts International',
                      'contact': {'email': 'info@tropicalresorts.com', 'phone': '+1-305-555-0200'}},
        },
        'rooms': [
            _room('Garden View Room', 'Comfortable room overlooking tropical gardens', 2, [('double', 2)], 400,
                  ['Free WiFi', 'Air Conditioning', 'Flat Screen TV'], 0, 60, 55),
            _room('Ocean View Suite', 'Spacious suite with breathtaking ocean views', 4,
                  [('king', 1), ('sofa-bed', 1)], 600,
                  ['Free WiFi', 'Air Conditioning', 'Flat Screen TV', 'Mini Bar', 'Balcony'], 100, 30, 25),
            _room('Beachfront Villa', 'Private villa with direct beach access', 6, [('king', 2)], 1000,
                  ['Free WiFi', 'Air Conditioning', 'Private Terrace', 'Kitchenette'], 300, 10, 8),
        ],
    },
    {
        'hotel': {
            'name': 'Mountain View Lodge',
            'description': ('Nestled in the heart of the Rocky Mountains, Mountain View Lodge offers a perfect '
                            'blend of rustic charm and modern comfort. Enjoy hiking, skiing, and breathtaking '
                            'mountain scenery in this cozy mountain retreat.'),
            'short_description': 'Cozy mountain lodge with rustic charm and outdoor adventures.',
            'address': '789 Mountain Pass Road', 'city': 'Aspen', 'state': 'Colorado',
            'country': 'United States', 'zip_code': '81611', 'latitude': 39.1911, 'longitude': -106.8175,
            'contact': {'phone': '+1-970-555-0789', 'email': 'info@mountainviewlodge.com',
                        'website': 'https://mountainviewlodge.com'},
            'images': [
                {'url': 'https://images.unsplash.com/photo-1613490493576-7fde63acd811?w=800',
                 'alt': 'Mountain View Lodge Exterior', 'isPrimary': True, 'category': 'exterior'},
                {'url': 'https://images.unsplash.com/photo-1578662996442-48f60103fc96?w=800',
                 'alt': 'Fireplace Lounge', 'isPrimary': False, 'category': 'lobby'},
            ],
            'rating_overall': 4.4, 'review_count': 654,
            'base_price': Decimal('159'), 'tax_rate': Decimal('0.08'), 'service_charge': Decimal('15'),
            'amenities': _amenities(
                ('Ski Storage', 'general', 0), ('Hot Tub', 'wellness', 0), ('Fireplace Lounge', 'general', 0),
                ('Equipment Rental', 'entertainment', 40), ('Hiking Trails Access', 'entertainment', 0),
                ('Free WiFi', 'general', 0), ('Restaurant', 'dining', 0), ('Game Room', 'entertainment', 0),
            ),
            'featured': False,
            'owner': {'name': 'Rocky Mountain Hospitality',
                      'contact': {'email': 'reservations@rockymountainhospitality.com',
                                  'phone': '+1-970-555-0300'}},
        },
        'rooms': [
            _room('Standard Mountain Room', 'Cozy room with mountain views and rustic decor', 2, [('queen', 1)], 300,
                  ['Free WiFi', 'Heating', 'Flat Screen TV'], 0, 40, 35),
            _room('Family Cabin', 'Spacious cabin perfect for families with bunk beds', 6,
                  [('queen', 1), ('single', 4)], 500, ['Free WiFi', 'Heating', 'Kitchenette'], 80, 20, 18),
            _room('Luxury Mountain Suite', 'Premium suite with panoramic mountain views', 4, [('king', 1)], 700,
                  ['Free WiFi', 'Fireplace', 'Mini Bar', 'Balcony'], 120, 15, 12),
        ],
    },
]


class Command(BaseCommand):
    help = "Create the sample hotels and their room types (idempotent by hotel name)."

    def add_arguments(self, parser):
        parser.add_argument('--clear', action='store_true',
                            help='Delete existing hotels that have no bookings before seeding.')

    @transaction.atomic
    def handle(self, *args, **opts):
        if opts['clear']:
            deleted, _ = Hotel.objects.filter(bookings__isnull=True).delete()
            self.stdout.write(self.style.WARNING(f"cleared {deleted} row(s)"))

        for sample in SAMPLE_HOTELS:
            fields = sample['hotel']
            hotel, created = Hotel.objects.get_or_create(name=fields['name'], defaults=fields)
            if not created:
                self.stdout.write(f"skip: {hotel.name} already exists")
                continue
            for room in sample['rooms']:
                RoomType.objects.create(hotel=hotel, **room)
            self.stdout.write(self.style.SUCCESS(f"ok: {hotel.name} ({len(sample['rooms'])} room types)"))

        invalidate_featured()
        self.stdout.write(self.style.SUCCESS("Sample hotels ensured."))
