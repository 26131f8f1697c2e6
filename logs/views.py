"""
Driver Log API Views.

REST API for ELD Driver Logs with:
- Health check
- Driver CRUD operations
- Daily log CRUD with derived hours and HOS compliance
- Route reconstruction and log grid projection
- GPS helpers (geocoding, great-circle distances)
- Dashboard and driver statistics

Every response uses the envelope {"status", "data", "message"}.
"""

import logging
import uuid
from dataclasses import replace
from datetime import timedelta

from django.db.models import Q
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.utils.dateparse import parse_date
from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import Driver
from .repositories import LogRecord, get_log_repository
from .serializers import (
    BatchGeocodeInputSerializer,
    ComplianceCheckInputSerializer,
    DailyLogInputSerializer,
    DistanceInputSerializer,
    DriverSerializer,
    GeocodeInputSerializer,
    HealthCheckSerializer,
    RouteDistanceInputSerializer,
)
from .services import GeocodingService, HOSService, LogGridService, reconstruct_route
from .services.geo import Coordinates, calculate_route_distance, distance, format_coordinate
from .services.hos_service import HOSConfig

logger = logging.getLogger(__name__)

API_VERSION = '1.0.0'

STATS_PERIODS = {
    '7days': 7,
    '30days': 30,
    '90days': 90,
}

# Wire field -> LogRecord attribute for plain header fields
LOG_HEADER_FIELDS = {
    'remarks': 'remarks',
    'shippingDocuments': 'shipping_documents',
    'coDriverName': 'co_driver_name',
    'vehicleNumbers': 'vehicle_numbers',
    'totalMiles': 'total_miles',
    'totalMilesToday': 'total_miles_today',
    'totalMilesYesterday': 'total_miles_yesterday',
}


class QueryParamError(ValueError):
    """Raised for malformed query string parameters."""
    pass


def success_response(data, message='Success', status_code=status.HTTP_200_OK):
    return Response(
        {'status': 'success', 'data': data, 'message': message},
        status=status_code
    )


def error_response(message, errors=None, status_code=status.HTTP_400_BAD_REQUEST):
    body = {'status': 'error', 'data': None, 'message': message}
    if errors:
        body['errors'] = errors
    return Response(body, status=status_code)


def _date_param(request, *names):
    """First present query param among ``names``, parsed as YYYY-MM-DD."""
    for name in names:
        raw = request.query_params.get(name)
        if raw:
            value = parse_date(raw)
            if value is None:
                raise QueryParamError(f"Invalid date for '{name}': {raw}")
            return value
    return None


def _int_param(request, name):
    raw = request.query_params.get(name)
    if raw in (None, ''):
        return None
    try:
        value = int(raw)
    except ValueError:
        raise QueryParamError(f"Invalid integer for '{name}': {raw}")
    if value < 1:
        raise QueryParamError(f"'{name}' must be a positive integer")
    return value


def _bool_param(request, name):
    raw = request.query_params.get(name)
    if raw in (None, ''):
        return None
    if raw.lower() in ('true', '1', 'yes'):
        return True
    if raw.lower() in ('false', '0', 'no'):
        return False
    raise QueryParamError(f"Invalid boolean for '{name}': {raw}")


def _uuid_param(request, *names):
    for name in names:
        raw = request.query_params.get(name)
        if raw:
            try:
                return uuid.UUID(raw)
            except ValueError:
                raise QueryParamError(f"Invalid id for '{name}': {raw}")
    return None


def serialize_log(record, driver=None, hos_service=None):
    """Log record plus derived hours, compliance and driver details."""
    hos_service = hos_service or HOSService(HOSConfig.from_settings())
    summary = hos_service.summarize(record.timeline)
    compliance = hos_service.evaluate(summary)

    return {
        'id': str(record.id),
        'driverId': str(record.driver_id),
        'driver': DriverSerializer(driver).data if driver else None,
        'date': record.log_date.isoformat(),
        'dutyStatuses': record.timeline.to_dicts(),
        'remarks': record.remarks,
        'shippingDocuments': record.shipping_documents,
        'coDriverName': record.co_driver_name,
        'vehicleNumbers': record.vehicle_numbers,
        'totalMiles': record.total_miles,
        'totalMilesToday': record.total_miles_today,
        'totalMilesYesterday': record.total_miles_yesterday,
        'hours': summary.to_dict(),
        'compliance': compliance.to_dict(),
        'created': record.created_at.isoformat() if record.created_at else None,
        'updated': record.updated_at.isoformat() if record.updated_at else None,
    }


def serialize_logs(records, hos_service=None):
    """Serialize many logs with a single driver lookup."""
    hos_service = hos_service or HOSService(HOSConfig.from_settings())
    drivers = Driver.objects.in_bulk({r.driver_id for r in records})
    return [serialize_log(r, drivers.get(r.driver_id), hos_service) for r in records]


def summarize_logs(records, hos_service=None):
    """Aggregate compliance and hour statistics over a set of logs."""
    hos_service = hos_service or HOSService(HOSConfig.from_settings())

    compliant = 0
    driving_hours = 0.0
    on_duty_hours = 0.0
    route_miles = 0.0
    reported_miles = 0.0

    for record in records:
        summary = hos_service.summarize(record.timeline)
        if hos_service.evaluate(summary).is_compliant:
            compliant += 1
        driving_hours += summary.driving
        on_duty_hours += summary.on_duty
        route_miles += reconstruct_route(record.timeline).total_distance_miles
        reported_miles += record.total_miles

    total = len(records)
    return {
        'totalLogs': total,
        'compliantLogs': compliant,
        'violationLogs': total - compliant,
        'complianceRate': round(compliant / total * 100, 1) if total else 0.0,
        'totalDrivingHours': round(driving_hours, 2),
        'totalOnDutyHours': round(on_duty_hours, 2),
        'averageDrivingHours': round(driving_hours / total, 2) if total else 0.0,
        'totalRouteMiles': round(route_miles, 1),
        'totalReportedMiles': round(reported_miles, 1),
    }


class HealthCheckView(APIView):
    """
    Health check endpoint for monitoring and load balancers.

    GET /api/v1/health/
    """

    def get(self, request):
        """Return health status of the API."""
        data = {
            'status': 'healthy',
            'message': 'ELD Driver Log API is running',
            'version': API_VERSION,
            'timestamp': timezone.now()
        }
        serializer = HealthCheckSerializer(data)
        return success_response(serializer.data, 'Service is healthy')


# =============================================================================
# Driver Management - CRUD for /api/v1/drivers/
# =============================================================================

class DriverListCreateView(APIView):
    """
    GET /api/v1/drivers/ - List drivers (optional ?search=)
    POST /api/v1/drivers/ - Create a driver
    """

    def get(self, request):
        drivers = Driver.objects.all()

        search = request.query_params.get('search')
        if search:
            drivers = drivers.filter(
                Q(name__icontains=search)
                | Q(license_number__icontains=search)
                | Q(home_terminal__icontains=search)
            )

        ordering = request.query_params.get('ordering')
        if ordering in ('name', '-name', 'created_at', '-created_at'):
            drivers = drivers.order_by(ordering)

        data = DriverSerializer(drivers, many=True).data
        return success_response({'drivers': data}, f'Retrieved {len(data)} drivers')

    def post(self, request):
        serializer = DriverSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response('Validation failed', serializer.errors)

        driver = serializer.save()
        logger.info(f"Driver {driver.id} created")
        return success_response(
            DriverSerializer(driver).data,
            'Driver created successfully',
            status.HTTP_201_CREATED
        )


class DriverDetailView(APIView):
    """
    GET /api/v1/drivers/{id}/ - Get driver
    PATCH /api/v1/drivers/{id}/ - Update driver
    DELETE /api/v1/drivers/{id}/ - Delete driver and all of their logs
    """

    def get(self, request, driver_id):
        driver = get_object_or_404(Driver, id=driver_id)
        return success_response(DriverSerializer(driver).data)

    def patch(self, request, driver_id):
        driver = get_object_or_404(Driver, id=driver_id)
        serializer = DriverSerializer(driver, data=request.data, partial=True)
        if not serializer.is_valid():
            return error_response('Validation failed', serializer.errors)

        driver = serializer.save()
        return success_response(DriverSerializer(driver).data, 'Driver updated successfully')

    def delete(self, request, driver_id):
        driver = get_object_or_404(Driver, id=driver_id)
        driver_id_str = str(driver.id)
        driver.delete()
        logger.info(f"Driver {driver_id_str} deleted")
        return success_response(None, f'Driver {driver_id_str} deleted successfully')


class DriverLogsView(APIView):
    """
    GET /api/v1/drivers/{id}/logs/
    Logs for one driver, optionally between ?startDate= and ?endDate=.
    """

    def get(self, request, driver_id):
        driver = get_object_or_404(Driver, id=driver_id)

        try:
            start_date = _date_param(request, 'startDate', 'start_date')
            end_date = _date_param(request, 'endDate', 'end_date')
        except QueryParamError as e:
            return error_response(str(e))

        records = get_log_repository().list(
            driver_id=driver.id, start_date=start_date, end_date=end_date
        )
        hos_service = HOSService(HOSConfig.from_settings())
        logs = [serialize_log(r, driver, hos_service) for r in records]
        return success_response({'logs': logs}, f'Retrieved {len(logs)} logs')


class DriverStatsView(APIView):
    """
    GET /api/v1/drivers/{id}/stats/
    Compliance and hours statistics over ?period=7days|30days|90days
    (or an explicit ?startDate=/&endDate= range).
    """

    def get(self, request, driver_id):
        driver = get_object_or_404(Driver, id=driver_id)

        period = request.query_params.get('period', '30days')
        if period not in STATS_PERIODS:
            return error_response(
                f"Invalid period '{period}', expected one of {sorted(STATS_PERIODS)}"
            )

        try:
            end_date = _date_param(request, 'endDate', 'end_date') or timezone.localdate()
            start_date = (
                _date_param(request, 'startDate', 'start_date')
                or end_date - timedelta(days=STATS_PERIODS[period] - 1)
            )
        except QueryParamError as e:
            return error_response(str(e))

        records = get_log_repository().list(
            driver_id=driver.id, start_date=start_date, end_date=end_date
        )

        return success_response({
            'driver': DriverSerializer(driver).data,
            'period': period,
            'startDate': start_date.isoformat(),
            'endDate': end_date.isoformat(),
            **summarize_logs(records),
        })


# =============================================================================
# Daily Logs - CRUD for /api/v1/logs/
# =============================================================================

class LogListCreateView(APIView):
    """
    GET /api/v1/logs/ - List logs (?driver_id=, ?start_date=, ?end_date=, ?compliant=, ?limit=)
    POST /api/v1/logs/ - Create a log
    """

    def get(self, request):
        try:
            start_date = _date_param(request, 'start_date', 'startDate')
            end_date = _date_param(request, 'end_date', 'endDate')
            limit = _int_param(request, 'limit')
            compliant = _bool_param(request, 'compliant')
            driver_id = _uuid_param(request, 'driver_id', 'driverId')
        except QueryParamError as e:
            return error_response(str(e))

        records = get_log_repository().list(
            driver_id=driver_id,
            start_date=start_date,
            end_date=end_date,
            # Compliance is derived, so filtering happens before the limit is applied
            limit=limit if compliant is None else None
        )

        hos_service = HOSService(HOSConfig.from_settings())
        if compliant is not None:
            records = [
                r for r in records
                if hos_service.evaluate(hos_service.summarize(r.timeline)).is_compliant == compliant
            ]
            if limit is not None:
                records = records[:limit]

        logs = serialize_logs(records, hos_service)
        return success_response({'logs': logs}, f'Retrieved {len(logs)} logs')

    def post(self, request):
        """
        Create a daily log.

        Request:
        {
            "driverId": "...",
            "date": "2024-01-15",
            "dutyStatuses": [
                {"status": "off-duty", "startHour": 0, "startMinute": 0, "endHour": 6, "endMinute": 0},
                {"status": "driving", "startHour": 6, "startMinute": 0, "endHour": 12, "endMinute": 0,
                 "location": "Fresno", "coordinates": {"lat": 36.7378, "lng": -119.7871}}
            ],
            "autoGeocode": true
        }
        """
        serializer = DailyLogInputSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response('Validation failed', serializer.errors)

        data = serializer.validated_data

        try:
            timeline = replace(data['dutyStatuses'], log_date=data['date'])
            if data.get('autoGeocode'):
                timeline = GeocodingService().geocode_timeline(timeline)

            record = LogRecord(
                driver_id=data['driverId'],
                log_date=data['date'],
                timeline=timeline,
                **{attr: data[name] for name, attr in LOG_HEADER_FIELDS.items()}
            )
            record = get_log_repository().put(record)

            driver = Driver.objects.get(id=record.driver_id)
            logger.info(f"Log {record.id} created for driver {driver.id} on {record.log_date}")
            return success_response(
                serialize_log(record, driver),
                'Log created successfully',
                status.HTTP_201_CREATED
            )

        except Exception as e:
            logger.exception(f"Log creation failed: {e}")
            return error_response(
                'Log creation failed',
                {'details': str(e)},
                status.HTTP_500_INTERNAL_SERVER_ERROR
            )


class LogDetailView(APIView):
    """
    GET /api/v1/logs/{id}/ - Get log with hours and compliance
    PATCH /api/v1/logs/{id}/ - Update log
    DELETE /api/v1/logs/{id}/ - Delete log
    """

    def get(self, request, log_id):
        record = get_log_repository().get(log_id)
        if record is None:
            return error_response(f'Log {log_id} not found', status_code=status.HTTP_404_NOT_FOUND)

        driver = Driver.objects.filter(id=record.driver_id).first()
        return success_response(serialize_log(record, driver))

    def patch(self, request, log_id):
        repository = get_log_repository()
        record = repository.get(log_id)
        if record is None:
            return error_response(f'Log {log_id} not found', status_code=status.HTTP_404_NOT_FOUND)

        serializer = DailyLogInputSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return error_response('Validation failed', serializer.errors)

        data = serializer.validated_data

        try:
            changes = {attr: data[name] for name, attr in LOG_HEADER_FIELDS.items() if name in data}
            if 'driverId' in data:
                changes['driver_id'] = data['driverId']
            if 'date' in data:
                changes['log_date'] = data['date']

            log_date = changes.get('log_date', record.log_date)
            timeline = data.get('dutyStatuses', record.timeline)
            timeline = replace(timeline, log_date=log_date)
            if data.get('autoGeocode'):
                timeline = GeocodingService().geocode_timeline(timeline)
            changes['timeline'] = timeline

            record = repository.put(replace(record, **changes))

            driver = Driver.objects.filter(id=record.driver_id).first()
            logger.info(f"Log {record.id} updated")
            return success_response(serialize_log(record, driver), 'Log updated successfully')

        except Exception as e:
            logger.exception(f"Log update failed: {e}")
            return error_response(
                'Log update failed',
                {'details': str(e)},
                status.HTTP_500_INTERNAL_SERVER_ERROR
            )

    def delete(self, request, log_id):
        if not get_log_repository().delete(log_id):
            return error_response(f'Log {log_id} not found', status_code=status.HTTP_404_NOT_FOUND)

        logger.info(f"Log {log_id} deleted")
        return success_response(None, f'Log {log_id} deleted successfully')


class LogRouteView(APIView):
    """
    GET /api/v1/logs/{id}/route/
    Driving legs and great-circle mileage reconstructed from the log's GPS fixes.
    """

    def get(self, request, log_id):
        record = get_log_repository().get(log_id)
        if record is None:
            return error_response(f'Log {log_id} not found', status_code=status.HTTP_404_NOT_FOUND)

        route = reconstruct_route(record.timeline)
        driver = Driver.objects.filter(id=record.driver_id).first()

        locations = [
            {
                'sequence': index,
                'status': segment.status.value,
                'location': segment.location,
                'coordinates': segment.coordinates.to_dict(),
                'formatted': format_coordinate(segment.coordinates),
                'startTime': segment.start_time,
                'endTime': segment.end_time,
            }
            for index, segment in enumerate(record.timeline.located_segments(), start=1)
        ]

        message = 'Route reconstructed' if route.has_route_data else 'No route data available'
        return success_response({
            'logId': str(record.id),
            'date': record.log_date.isoformat(),
            'driver': DriverSerializer(driver).data if driver else None,
            'locations': locations,
            'drivingSegments': [leg.to_dict() for leg in route.legs],
            'routeStats': route.to_dict(),
        }, message)


class LogGridView(APIView):
    """
    GET /api/v1/logs/{id}/grid/
    Log grid projection (rows, quarter-hour cells, bars and transitions).
    """

    def get(self, request, log_id):
        record = get_log_repository().get(log_id)
        if record is None:
            return error_response(f'Log {log_id} not found', status_code=status.HTTP_404_NOT_FOUND)

        grid = LogGridService().generate_grid_data(record.timeline)

        return success_response({
            'logId': str(record.id),
            'date': record.log_date.isoformat(),
            'grid': grid,
        })


class ComplianceCheckView(APIView):
    """
    POST /api/v1/logs/compliance-check/
    Evaluate HOS compliance for unsaved duty statuses.
    """

    def post(self, request):
        serializer = ComplianceCheckInputSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response('Validation failed', serializer.errors)

        hos_service = HOSService(HOSConfig.from_settings())
        report = hos_service.check_log(serializer.validated_data['dutyStatuses'])

        message = 'Log is compliant' if report['isCompliant'] else 'HOS violations found'
        return success_response(report, message)


# =============================================================================
# GPS Service
# =============================================================================

class GeocodeView(APIView):
    """
    POST /api/v1/gps/geocode/
    Resolve a place name or "lat, lng" string.
    """

    def post(self, request):
        serializer = GeocodeInputSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response('Validation failed', serializer.errors)

        location = serializer.validated_data['location']
        coords = GeocodingService().resolve_location(location)

        if coords is None:
            return error_response(
                f"Location not found: {location}",
                status_code=status.HTTP_404_NOT_FOUND
            )

        return success_response({
            'location': location,
            'coordinates': coords.to_dict(),
            'formattedAddress': format_coordinate(coords),
        }, 'Location resolved')


class BatchGeocodeView(APIView):
    """
    POST /api/v1/gps/batch-geocode/
    Resolve several locations at once.
    """

    def post(self, request):
        serializer = BatchGeocodeInputSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response('Validation failed', serializer.errors)

        result = GeocodingService().batch_geocode(serializer.validated_data['locations'])
        return success_response(
            result,
            f"Resolved {result['successCount']} of {len(result['results'])} locations"
        )


class DistanceView(APIView):
    """
    POST /api/v1/gps/calculate-distance/
    Great-circle distance between two points.
    """

    def post(self, request):
        serializer = DistanceInputSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response('Validation failed', serializer.errors)

        data = serializer.validated_data
        origin = Coordinates.from_dict(data['origin'])
        destination = Coordinates.from_dict(data['destination'])

        return success_response({
            'distance': round(distance(origin, destination, data['unit']), 1),
            'unit': data['unit'],
            'origin': origin.to_dict(),
            'destination': destination.to_dict(),
        })


class RouteDistanceView(APIView):
    """
    POST /api/v1/gps/calculate-route-distance/
    Great-circle distance through an ordered list of waypoints.
    """

    def post(self, request):
        serializer = RouteDistanceInputSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response('Validation failed', serializer.errors)

        data = serializer.validated_data
        waypoints = [Coordinates.from_dict(w) for w in data['waypoints']]
        return success_response(calculate_route_distance(waypoints, data['unit']))


# =============================================================================
# Dashboard
# =============================================================================

class DashboardStatsView(APIView):
    """
    GET /api/v1/dashboard/stats/
    Fleet-wide compliance overview (?startDate=, ?endDate=).
    """

    RECENT_LOGS = 10

    def get(self, request):
        try:
            start_date = _date_param(request, 'startDate', 'start_date')
            end_date = _date_param(request, 'endDate', 'end_date')
        except QueryParamError as e:
            return error_response(str(e))

        repository = get_log_repository()
        records = repository.list(start_date=start_date, end_date=end_date)
        hos_service = HOSService(HOSConfig.from_settings())

        return success_response({
            'totalDrivers': Driver.objects.count(),
            **summarize_logs(records, hos_service),
            'recentLogs': serialize_logs(records[:self.RECENT_LOGS], hos_service),
            'generatedAt': timezone.now().isoformat(),
        })


@api_view(['GET'])
def api_root(request):
    """
    GET /api/v1/
    API documentation and endpoint listing.
    """
    return success_response({
        'name': 'ELD Driver Log API',
        'version': API_VERSION,
        'description': 'Driver daily logs with HOS compliance and route reconstruction',
        'endpoints': {
            'health': {
                'GET /api/v1/health/': 'Health check'
            },
            'drivers': {
                'GET /api/v1/drivers/': 'List drivers',
                'POST /api/v1/drivers/': 'Create driver',
                'GET /api/v1/drivers/{id}/': 'Get driver',
                'PATCH /api/v1/drivers/{id}/': 'Update driver',
                'DELETE /api/v1/drivers/{id}/': 'Delete driver',
                'GET /api/v1/drivers/{id}/logs/': 'Logs for a driver',
                'GET /api/v1/drivers/{id}/stats/': 'Driver compliance statistics'
            },
            'logs': {
                'GET /api/v1/logs/': 'List logs',
                'POST /api/v1/logs/': 'Create log',
                'GET /api/v1/logs/{id}/': 'Get log with hours and compliance',
                'PATCH /api/v1/logs/{id}/': 'Update log',
                'DELETE /api/v1/logs/{id}/': 'Delete log',
                'GET /api/v1/logs/{id}/route/': 'Reconstructed driving route',
                'GET /api/v1/logs/{id}/grid/': 'Log grid projection',
                'POST /api/v1/logs/compliance-check/': 'Check HOS compliance'
            },
            'gps': {
                'POST /api/v1/gps/geocode/': 'Resolve a location',
                'POST /api/v1/gps/batch-geocode/': 'Resolve several locations',
                'POST /api/v1/gps/calculate-distance/': 'Great-circle distance',
                'POST /api/v1/gps/calculate-route-distance/': 'Great-circle route distance'
            },
            'dashboard': {
                'GET /api/v1/dashboard/stats/': 'Compliance overview'
            }
        }
    }, 'ELD Driver Log API')
