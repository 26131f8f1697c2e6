"""
Serializers for the Driver Log API.

Handles validation of incoming drivers, logs, duty statuses and GPS
requests. Field names follow the camelCase wire format used by the
frontend.
"""

from rest_framework import serializers

from .models import Driver, DutyStatusEntry
from .services.geo import SUPPORTED_UNITS, UNIT_MILES
from .services.timeline import DutyTimeline, ValidationError as TimelineValidationError


class DriverSerializer(serializers.ModelSerializer):
    """
    Model serializer for Driver persistence and output.
    """
    licenseNumber = serializers.CharField(source='license_number', max_length=50)
    homeTerminal = serializers.CharField(
        source='home_terminal', max_length=500, required=False, allow_blank=True
    )
    mainOfficeAddress = serializers.CharField(
        source='main_office_address', max_length=500, required=False, allow_blank=True
    )
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Driver
        fields = [
            'id', 'name', 'licenseNumber', 'homeTerminal',
            'mainOfficeAddress', 'createdAt', 'updatedAt',
        ]
        read_only_fields = ['id']

    def validate_licenseNumber(self, value):
        existing = Driver.objects.filter(license_number=value)
        if self.instance is not None:
            existing = existing.exclude(pk=self.instance.pk)
        if existing.exists():
            raise serializers.ValidationError('A driver with this license number already exists.')
        return value


class CoordinateSerializer(serializers.Serializer):
    """
    Serializer for a GPS fix.
    """
    lat = serializers.FloatField(min_value=-90, max_value=90)
    lng = serializers.FloatField(min_value=-180, max_value=180)


class DutyStatusSerializer(serializers.Serializer):
    """
    Serializer for a single duty status interval.

    Only field types are checked here; clock ranges and positive duration
    are enforced when the timeline is built.
    """
    status = serializers.ChoiceField(choices=DutyStatusEntry.DUTY_STATUS_CHOICES)
    startHour = serializers.IntegerField()
    startMinute = serializers.IntegerField(default=0)
    endHour = serializers.IntegerField()
    endMinute = serializers.IntegerField(default=0)
    location = serializers.CharField(required=False, allow_blank=True, max_length=500)
    coordinates = CoordinateSerializer(required=False, allow_null=True)


class TimelineFieldMixin:
    """Turns a validated ``dutyStatuses`` list into a DutyTimeline."""

    def validate_dutyStatuses(self, value):
        try:
            return DutyTimeline.from_dicts(value)
        except TimelineValidationError as e:
            raise serializers.ValidationError(str(e))


class DailyLogInputSerializer(TimelineFieldMixin, serializers.Serializer):
    """
    Input serializer for creating or updating a daily log.
    """
    driverId = serializers.UUIDField()
    date = serializers.DateField()
    dutyStatuses = DutyStatusSerializer(many=True, allow_empty=False)
    remarks = serializers.CharField(required=False, allow_blank=True, default='')
    shippingDocuments = serializers.CharField(
        required=False, allow_blank=True, max_length=500, default=''
    )
    coDriverName = serializers.CharField(required=False, allow_blank=True, max_length=200, default='')
    vehicleNumbers = serializers.CharField(required=False, allow_blank=True, max_length=200, default='')
    totalMiles = serializers.FloatField(required=False, min_value=0, default=0)
    totalMilesToday = serializers.FloatField(required=False, min_value=0, default=0)
    totalMilesYesterday = serializers.FloatField(required=False, min_value=0, default=0)
    autoGeocode = serializers.BooleanField(
        required=False,
        default=False,
        help_text="Resolve coordinates for duty statuses that only carry location text"
    )

    def validate_driverId(self, value):
        if not Driver.objects.filter(id=value).exists():
            raise serializers.ValidationError(f'Driver {value} does not exist.')
        return value


class ComplianceCheckInputSerializer(TimelineFieldMixin, serializers.Serializer):
    """
    Input serializer for ad-hoc HOS compliance checks.
    """
    dutyStatuses = DutyStatusSerializer(many=True, allow_empty=False)


class GeocodeInputSerializer(serializers.Serializer):
    """
    Input serializer for single location lookups.
    """
    location = serializers.CharField(
        max_length=500,
        help_text="Place name (e.g., 'Fresno') or coordinates (e.g., '36.7378, -119.7871')"
    )


class BatchGeocodeInputSerializer(serializers.Serializer):
    """
    Input serializer for batch location lookups.
    """
    locations = serializers.ListField(
        child=serializers.CharField(max_length=500, allow_blank=True),
        allow_empty=False,
        max_length=100
    )


class DistanceInputSerializer(serializers.Serializer):
    """
    Input serializer for point-to-point great-circle distance.
    """
    origin = CoordinateSerializer()
    destination = CoordinateSerializer()
    unit = serializers.ChoiceField(choices=SUPPORTED_UNITS, default=UNIT_MILES)


class RouteDistanceInputSerializer(serializers.Serializer):
    """
    Input serializer for multi-waypoint great-circle distance.
    """
    waypoints = CoordinateSerializer(many=True)
    unit = serializers.ChoiceField(choices=SUPPORTED_UNITS, default=UNIT_MILES)

    def validate_waypoints(self, value):
        if len(value) < 2:
            raise serializers.ValidationError('At least two waypoints are required.')
        return value


class HealthCheckSerializer(serializers.Serializer):
    """
    Serializer for health check response.
    """
    status = serializers.CharField()
    message = serializers.CharField()
    version = serializers.CharField()
    timestamp = serializers.DateTimeField()
