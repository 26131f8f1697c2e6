"""
URL configuration for ELD Driver Log project.

API URL structure:
- /api/v1/ - API root
- /api/v1/health/ - Health check
- /api/v1/drivers/ - Driver management and statistics
- /api/v1/logs/ - Daily logs, routes, grid and compliance
- /api/v1/gps/ - Geocoding and distance helpers
- /api/v1/dashboard/ - Compliance overview
"""

from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    # Admin
    path('admin/', admin.site.urls),

    # Versioned API
    path('api/v1/', include('logs.urls', namespace='logs')),
]
