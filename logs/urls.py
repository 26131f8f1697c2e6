"""
URL configuration for logs app.

Mounted under /api/v1/ by core.urls.
"""

from django.urls import path
from .views import (
    HealthCheckView,
    api_root,

    # Drivers
    DriverListCreateView,
    DriverDetailView,
    DriverLogsView,
    DriverStatsView,

    # Daily logs
    LogListCreateView,
    LogDetailView,
    LogRouteView,
    LogGridView,
    ComplianceCheckView,

    # GPS
    GeocodeView,
    BatchGeocodeView,
    DistanceView,
    RouteDistanceView,

    # Dashboard
    DashboardStatsView,
)

app_name = 'logs'

urlpatterns = [
    path('', api_root, name='api_root'),
    path('health/', HealthCheckView.as_view(), name='health_check'),

    # ==========================================================================
    # Driver Management
    # ==========================================================================
    path('drivers/', DriverListCreateView.as_view(), name='driver_list_create'),
    path('drivers/<uuid:driver_id>/', DriverDetailView.as_view(), name='driver_detail'),
    path('drivers/<uuid:driver_id>/logs/', DriverLogsView.as_view(), name='driver_logs'),
    path('drivers/<uuid:driver_id>/stats/', DriverStatsView.as_view(), name='driver_stats'),

    # ==========================================================================
    # Daily Logs
    # ==========================================================================
    # compliance-check must precede the <uuid> routes
    path('logs/compliance-check/', ComplianceCheckView.as_view(), name='compliance_check'),
    path('logs/', LogListCreateView.as_view(), name='log_list_create'),
    path('logs/<uuid:log_id>/', LogDetailView.as_view(), name='log_detail'),
    path('logs/<uuid:log_id>/route/', LogRouteView.as_view(), name='log_route'),
    path('logs/<uuid:log_id>/grid/', LogGridView.as_view(), name='log_grid'),

    # ==========================================================================
    # GPS Service
    # ==========================================================================
    path('gps/geocode/', GeocodeView.as_view(), name='gps_geocode'),
    path('gps/batch-geocode/', BatchGeocodeView.as_view(), name='gps_batch_geocode'),
    path('gps/calculate-distance/', DistanceView.as_view(), name='gps_distance'),
    path('gps/calculate-route-distance/', RouteDistanceView.as_view(), name='gps_route_distance'),

    # ==========================================================================
    # Dashboard
    # ==========================================================================
    path('dashboard/stats/', DashboardStatsView.as_view(), name='dashboard_stats'),
]
