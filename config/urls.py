"""
URL configuration for the attendance API
"""
from django.contrib import admin
from django.urls import path, include
from django.http import JsonResponse
from django.views.decorators.http import require_http_methods
from drf_spectacular.views import (
    SpectacularAPIView,
    SpectacularSwaggerView,
)


@require_http_methods(["GET"])
def health_view(request):
    """Minimal health check for connectivity verification. No auth required."""
    return JsonResponse({'status': 'ok', 'service': 'asistencia'})


@require_http_methods(["GET"])
def system_health_view(request):
    """Database connectivity check for monitoring. No auth required."""
    result = {'db': 'ok'}
    try:
        from django.db import connection
        connection.ensure_connection()
    except Exception as e:
        result['db'] = f'error: {str(e)[:80]}'
    return JsonResponse(result)


urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/health/', health_view, name='api-health'),
    path('api/system/health/', system_health_view, name='api-system-health'),

    # API Schema
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),

    # API endpoints
    path('api/auth/', include('accounts.urls')),
    path('api/', include('core.urls')),
    path('api/', include('students.urls')),
    path('api/', include('groups.urls')),
    path('api/', include('attendance.urls')),
]
