"""
URL configuration for the SmartLodge backend.

The Django admin, the API routes provided by the ``lodging`` app and
the OpenAPI documentation (``/swagger/`` and ``/redoc/``) are mounted
here.  Unknown paths fall through to a JSON 404 handler.
"""
from django.contrib import admin
from django.urls import path, include

from rest_framework import permissions
from drf_yasg.views import get_schema_view
from drf_yasg import openapi

api_info = openapi.Info(
    title="SmartLodge API",
    default_version='v1',
    description="Hotel search, booking, payment and review services.",
)

schema_view = get_schema_view(
    api_info,
    public=True,
    permission_classes=(permissions.AllowAny,),
)

urlpatterns = [
    path('admin/', admin.site.urls),
    path('', include('django_prometheus.urls')),
    path('', include('lodging.routers')),
    path('swagger/', schema_view.with_ui('swagger', cache_timeout=0), name='schema-swagger-ui'),
    path('redoc/', schema_view.with_ui('redoc', cache_timeout=0), name='schema-redoc'),
]

handler404 = 'lodging.views.health.not_found'
