import logging
import time

from django.conf import settings
from django.db import DatabaseError, connections
from django.http import JsonResponse
from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny

from lodging.responses import success

logger = logging.getLogger(__name__)

STARTED_AT = time.monotonic()
API_VERSION = '1.0.0'

ROUTES = {
    'auth': '/api/auth',
    'hotels': '/api/hotels',
    'bookings': '/api/bookings',
    'users': '/api/users',
    'payments': '/api/payments',
    'reviews': '/api/reviews',
    'health': '/health',
    'docs': '/swagger/',
}


def _database_status() -> dict:
    conn = connections['default']
    try:
        with conn.cursor() as c:
            c.execute('SELECT 1')
            row = c.fetchone()
        connected = bool(row and row[0] == 1)
    except DatabaseError as e:
        logger.error('Database health probe failed: %s', e)
        connected = False
    return {'connected': connected, 'vendor': conn.vendor, 'name': str(conn.settings_dict.get('NAME', ''))}


@api_view(['GET'])
@permission_classes([AllowAny])
@throttle_classes([])
def health(request):
    db = _database_status()
    body = {
        'status': 'OK' if db['connected'] else 'DEGRADED',
        'timestamp': timezone.now().isoformat(),
        'uptime': round(time.monotonic() - STARTED_AT, 3),
        'database': db,
        'environment': settings.ENV,
    }
    return JsonResponse(body, status=200 if db['connected'] else 503)


@api_view(['GET'])
@permission_classes([AllowAny])
def api_index(request):
    return success({
        'name': 'SmartLodge API',
        'version': API_VERSION,
        'endpoints': ROUTES,
    }, message='Welcome to the SmartLodge API')


def not_found(request, exception=None):
    return JsonResponse({
        'success': False,
        'message': f'Route {request.method} {request.path} not found',
        'type': 'NotFoundError',
        'availableRoutes': list(ROUTES.values()),
    }, status=404)
