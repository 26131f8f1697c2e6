"""
Services package for ELD Driver Logs.

Contains the timeline and compliance engine, separated from views for
clean architecture.
"""

from .geo import Coordinates, haversine_miles
from .timeline import (
    DutySegment,
    DutyStatus,
    DutyTimeline,
    ValidationError,
    calculate_duration,
    is_valid_segment,
)
from .hos_service import (
    ComplianceResult,
    HOSService,
    HoursSummary,
    aggregate_hours,
    evaluate_compliance,
)
from .route_service import DrivingLeg, RouteSummary, reconstruct_route
from .geocoding_service import GeocodingService, resolve_location
from .grid_service import LogGridService

__all__ = [
    'Coordinates',
    'haversine_miles',
    'DutySegment',
    'DutyStatus',
    'DutyTimeline',
    'ValidationError',
    'calculate_duration',
    'is_valid_segment',
    'ComplianceResult',
    'HOSService',
    'HoursSummary',
    'aggregate_hours',
    'evaluate_compliance',
    'DrivingLeg',
    'RouteSummary',
    'reconstruct_route',
    'GeocodingService',
    'resolve_location',
    'LogGridService',
]
