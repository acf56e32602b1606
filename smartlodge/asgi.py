"""
ASGI config for the SmartLodge project.

HTTP only; the API has no WebSocket routes.
"""
import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "smartlodge.settings")

application = get_asgi_application()
