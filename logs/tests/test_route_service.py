"""
Tests for Route Reconstruction Service.
"""

import polyline
import pytest

from logs.services.geo import Coordinates, haversine_miles
from logs.services.route_service import RouteSummary, reconstruct_route
from logs.services.timeline import DutySegment, DutyStatus


LOS_ANGELES = Coordinates(34.0522, -118.2437)
BAKERSFIELD = Coordinates(35.3733, -119.0187)
FRESNO = Coordinates(36.7378, -119.7871)


class TestReconstructRoute:
    """Test leg inference from located duty segments."""

    def test_no_located_segments(self):
        route = reconstruct_route([
            DutySegment(DutyStatus.OFF_DUTY, 0, 0, 6, 0),
            DutySegment(DutyStatus.DRIVING, 6, 0, 10, 0, location='Somewhere'),
        ])

        assert route.legs == ()
        assert route.total_distance_miles == 0
        assert not route.has_route_data

    def test_empty_timeline(self):
        assert reconstruct_route([]) == RouteSummary()

    def test_single_located_segment(self):
        route = reconstruct_route([
            DutySegment(DutyStatus.DRIVING, 6, 0, 10, 0, coordinates=FRESNO),
        ])

        assert route.legs == ()
        assert route.total_distance_miles == 0
        assert route.total_locations == 1
        assert route.driving_locations == 1
        assert route.has_route_data

    def test_any_status_can_start_a_leg(self):
        route = reconstruct_route([
            DutySegment(DutyStatus.ON_DUTY, 6, 0, 7, 0, location='Terminal', coordinates=LOS_ANGELES),
            DutySegment(DutyStatus.DRIVING, 7, 0, 12, 0, location='Fresno', coordinates=FRESNO),
        ])

        assert len(route.legs) == 1
        leg = route.legs[0]
        assert leg.start == LOS_ANGELES
        assert leg.end == FRESNO
        assert leg.start_status == DutyStatus.ON_DUTY
        assert leg.end_status == DutyStatus.DRIVING
        assert leg.start_location == 'Terminal'
        assert leg.end_location == 'Fresno'
        assert leg.distance_miles == haversine_miles(LOS_ANGELES, FRESNO)

    def test_non_driving_destination_produces_no_leg(self):
        route = reconstruct_route([
            DutySegment(DutyStatus.DRIVING, 6, 0, 9, 0, coordinates=LOS_ANGELES),
            DutySegment(DutyStatus.ON_DUTY, 9, 0, 10, 0, coordinates=BAKERSFIELD),
        ])

        assert route.legs == ()
        assert route.total_locations == 2

    def test_intermediate_stop_becomes_next_origin(self):
        """A fuel stop between two driving segments splits the route."""
        route = reconstruct_route([
            DutySegment(DutyStatus.ON_DUTY, 6, 0, 7, 0, coordinates=LOS_ANGELES),
            DutySegment(DutyStatus.DRIVING, 7, 0, 9, 0, coordinates=BAKERSFIELD),
            DutySegment(DutyStatus.ON_DUTY, 9, 0, 9, 30, coordinates=BAKERSFIELD),
            DutySegment(DutyStatus.DRIVING, 9, 30, 11, 30, coordinates=FRESNO),
        ])

        assert len(route.legs) == 2
        assert route.legs[1].start_status == DutyStatus.ON_DUTY
        assert route.driving_locations == 2
        assert route.total_locations == 4

    def test_unlocated_segments_are_skipped(self):
        route = reconstruct_route([
            DutySegment(DutyStatus.ON_DUTY, 6, 0, 7, 0, coordinates=LOS_ANGELES),
            DutySegment(DutyStatus.OFF_DUTY, 7, 0, 8, 0),
            DutySegment(DutyStatus.DRIVING, 8, 0, 12, 0, coordinates=FRESNO),
        ])

        assert len(route.legs) == 1
        assert route.legs[0].start_status == DutyStatus.ON_DUTY

    def test_total_rounded_once(self):
        route = reconstruct_route([
            DutySegment(DutyStatus.ON_DUTY, 6, 0, 7, 0, coordinates=LOS_ANGELES),
            DutySegment(DutyStatus.DRIVING, 7, 0, 9, 0, coordinates=BAKERSFIELD),
            DutySegment(DutyStatus.DRIVING, 9, 0, 11, 0, coordinates=FRESNO),
        ])
        raw = haversine_miles(LOS_ANGELES, BAKERSFIELD) + haversine_miles(BAKERSFIELD, FRESNO)

        assert route.total_distance_miles == round(raw, 1) == 204.9
        assert [leg.to_dict()['distance'] for leg in route.legs] == [101.3, 103.6]

    def test_to_dict(self):
        route = reconstruct_route([
            DutySegment(DutyStatus.ON_DUTY, 6, 0, 7, 0, location='Terminal', coordinates=LOS_ANGELES),
            DutySegment(DutyStatus.DRIVING, 7, 0, 12, 0, location='Fresno', coordinates=FRESNO),
        ])
        data = route.to_dict()

        assert data['totalDrivingDistance'] == 204.9
        assert data['totalLocations'] == 2
        assert data['drivingLocations'] == 1
        assert data['drivingSegments'][0] == {
            'start': {'lat': 34.0522, 'lng': -118.2437},
            'startStatus': 'on-duty',
            'startLocation': 'Terminal',
            'end': {'lat': 36.7378, 'lng': -119.7871},
            'endStatus': 'driving',
            'endLocation': 'Fresno',
            'distance': 204.9,
        }

    def test_encoded_polyline(self):
        route = reconstruct_route([
            DutySegment(DutyStatus.ON_DUTY, 6, 0, 7, 0, coordinates=LOS_ANGELES),
            DutySegment(DutyStatus.DRIVING, 7, 0, 12, 0, coordinates=FRESNO),
        ])
        decoded = polyline.decode(route.encoded_polyline)

        assert len(decoded) == 2
        assert decoded[0] == pytest.approx((34.0522, -118.2437), abs=1e-5)
        assert decoded[1] == pytest.approx((36.7378, -119.7871), abs=1e-5)

    def test_empty_polyline(self):
        assert RouteSummary().encoded_polyline == ''
