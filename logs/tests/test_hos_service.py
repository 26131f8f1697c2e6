"""
Tests for FMCSA Hours of Service (HOS) daily log evaluation.

Tests hour aggregation and the three daily limits.
"""

import itertools

import pytest
from django.test import override_settings

from logs.services.geo import Coordinates
from logs.services.hos_service import (
    ComplianceResult,
    HOSConfig,
    HOSService,
    HoursSummary,
    aggregate_hours,
    evaluate_compliance,
)
from logs.services.route_service import reconstruct_route
from logs.services.timeline import DutySegment, DutyStatus, DutyTimeline


TERMINAL = Coordinates(34.05, -118.24)
CITY = Coordinates(36.74, -119.79)


def scenario_a_segments():
    return [
        DutySegment(DutyStatus.OFF_DUTY, 0, 0, 6, 0),
        DutySegment(DutyStatus.ON_DUTY, 6, 0, 7, 0, location='Terminal', coordinates=TERMINAL),
        DutySegment(DutyStatus.DRIVING, 7, 0, 12, 0, location='City', coordinates=CITY),
    ]


class TestHOSConfig:
    """Test HOS configuration defaults."""

    def test_default_config(self):
        config = HOSConfig()

        assert config.max_driving_hours == 11.0
        assert config.max_on_duty_hours == 14.0
        assert config.off_duty_reset_hours == 10.0

    @override_settings(HOS_CONFIG={'MAX_DRIVING_HOURS': 10})
    def test_from_settings_overrides(self):
        config = HOSConfig.from_settings()

        assert config.max_driving_hours == 10.0
        assert config.max_on_duty_hours == 14.0


class TestAggregateHours:
    """Test per-status hour totals."""

    def test_scenario_a_hours(self):
        summary = aggregate_hours(scenario_a_segments())

        assert summary == HoursSummary(off_duty=6.0, sleeper=0.0, driving=5.0, on_duty=1.0, total=24.0)

    def test_empty_timeline(self):
        summary = aggregate_hours([])

        assert summary.recorded_hours == 0
        assert summary.total == 24.0

    def test_accepts_timeline(self):
        timeline = DutyTimeline.build(scenario_a_segments())
        assert aggregate_hours(timeline).driving == 5.0

    def test_wrapped_segment_counts_full_duration(self):
        summary = aggregate_hours([DutySegment(DutyStatus.SLEEPER, 22, 0, 6, 0)])
        assert summary.sleeper == 8.0

    def test_overlaps_are_summed_not_merged(self):
        summary = aggregate_hours([
            DutySegment(DutyStatus.DRIVING, 7, 0, 12, 0),
            DutySegment(DutyStatus.DRIVING, 10, 0, 12, 0),
        ])
        assert summary.driving == 7.0

    def test_total_is_constant(self):
        summary = aggregate_hours([
            DutySegment(DutyStatus.OFF_DUTY, 0, 0, 20, 0),
            DutySegment(DutyStatus.DRIVING, 10, 0, 22, 0),
        ])
        assert summary.total == 24.0
        assert summary.recorded_hours == 32.0

    def test_order_independent(self):
        segments = [
            DutySegment(DutyStatus.OFF_DUTY, 0, 0, 5, 20),
            DutySegment(DutyStatus.ON_DUTY, 5, 20, 6, 10),
            DutySegment(DutyStatus.DRIVING, 6, 10, 9, 35),
            DutySegment(DutyStatus.ON_DUTY, 9, 35, 10, 5),
            DutySegment(DutyStatus.DRIVING, 10, 5, 14, 50),
            DutySegment(DutyStatus.SLEEPER, 21, 15, 0, 0),
        ]
        expected = aggregate_hours(segments)

        for permutation in itertools.permutations(segments):
            assert aggregate_hours(permutation) == expected

    def test_to_dict(self):
        assert aggregate_hours(scenario_a_segments()).to_dict() == {
            'offDuty': 6.0,
            'sleeper': 0.0,
            'driving': 5.0,
            'onDuty': 1.0,
            'total': 24.0,
        }


class TestEvaluateCompliance:
    """Test the three daily HOS rules."""

    def test_compliant_day(self):
        summary = HoursSummary(off_duty=8, sleeper=4, driving=8, on_duty=4)
        result = evaluate_compliance(summary)

        assert result == ComplianceResult(is_compliant=True, violations=())

    def test_limits_are_inclusive(self):
        """Exactly 11h driving, 14h window and 10h rest are allowed."""
        summary = HoursSummary(off_duty=10, sleeper=0, driving=11, on_duty=3)
        assert evaluate_compliance(summary).is_compliant

    def test_driving_limit(self):
        """Scenario B: 12 hours of driving."""
        summary = aggregate_hours([
            DutySegment(DutyStatus.DRIVING, 0, 0, 6, 0),
            DutySegment(DutyStatus.DRIVING, 6, 0, 12, 0),
            DutySegment(DutyStatus.OFF_DUTY, 12, 0, 24, 0),
        ])
        result = evaluate_compliance(summary)

        assert not result.is_compliant
        assert result.violations == ('Driving time (12.0h) exceeds 11-hour limit',)
        assert 'exceeds 11-hour limit' in result.violations[0]

    def test_on_duty_window(self):
        summary = HoursSummary(off_duty=10, driving=8, on_duty=6.5)
        result = evaluate_compliance(summary)

        assert result.violations == ('On-duty time (14.5h) exceeds 14-hour window',)

    def test_rest_requirement(self):
        """Scenario C: four hours of rest, driving and on-duty within limits."""
        summary = HoursSummary(off_duty=4, sleeper=0, driving=8, on_duty=4)
        result = evaluate_compliance(summary)

        assert len(result.violations) == 1
        assert 'less than required 10 hours' in result.violations[0]
        assert result.violations[0] == 'Rest time (4.0h) is less than required 10 hours'

    def test_sleeper_counts_as_rest(self):
        summary = HoursSummary(off_duty=2, sleeper=8, driving=10, on_duty=4)
        assert evaluate_compliance(summary).is_compliant

    def test_all_violations_reported_in_rule_order(self):
        summary = HoursSummary(off_duty=1, driving=12, on_duty=3)
        result = evaluate_compliance(summary)

        assert len(result.violations) == 3
        assert result.violations[0].startswith('Driving time')
        assert result.violations[1].startswith('On-duty time')
        assert result.violations[2].startswith('Rest time')

    @pytest.mark.parametrize('driving', [11.25, 12, 13])
    def test_driving_past_limit_adds_only_rule_one(self, driving):
        base = HoursSummary(off_duty=10, sleeper=0, driving=9, on_duty=1)
        raised = HoursSummary(off_duty=10, sleeper=0, driving=driving, on_duty=1)

        before = evaluate_compliance(base).violations
        after = evaluate_compliance(raised).violations

        assert before == ()
        assert len(after) == 1
        assert after[0].startswith('Driving time')
        assert all(v in after for v in before)

    def test_custom_config(self):
        config = HOSConfig(max_driving_hours=10)
        result = evaluate_compliance(HoursSummary(off_duty=10, driving=10.5, on_duty=1), config)

        assert result.violations == ('Driving time (10.5h) exceeds 10-hour limit',)

    def test_to_dict(self):
        result = ComplianceResult(is_compliant=False, violations=('a', 'b'))
        assert result.to_dict() == {'isCompliant': False, 'violations': ['a', 'b']}


class TestScenarioA:
    """
    Scenario A: off-duty at home, on-duty at the Los Angeles terminal,
    then driving to Fresno.
    """

    def test_hours_and_route(self):
        segments = scenario_a_segments()
        summary = aggregate_hours(segments)
        route = reconstruct_route(segments)

        assert (summary.off_duty, summary.on_duty, summary.driving, summary.sleeper) == (6, 1, 5, 0)
        assert len(route.legs) == 1
        assert route.legs[0].start_status == DutyStatus.ON_DUTY
        assert route.legs[0].distance_miles == pytest.approx(205.35, abs=0.01)
        assert route.total_distance_miles == 205.3

    def test_partial_day_fails_rest_rule(self):
        """Only six hours of the day are off duty, so the rest rule fires."""
        result = evaluate_compliance(aggregate_hours(scenario_a_segments()))

        assert result.violations == ('Rest time (6.0h) is less than required 10 hours',)

    def test_full_day_is_compliant(self):
        segments = scenario_a_segments() + [DutySegment(DutyStatus.OFF_DUTY, 12, 0, 24, 0)]
        result = evaluate_compliance(aggregate_hours(segments))

        assert result.is_compliant
        assert result.violations == ()


class TestHOSService:
    """Test the service wrapper used by the API."""

    def setup_method(self):
        self.service = HOSService()

    def test_check_log_report(self):
        segments = scenario_a_segments() + [DutySegment(DutyStatus.OFF_DUTY, 12, 0, 24, 0)]
        report = self.service.check_log(segments)

        assert report['isCompliant'] is True
        assert report['hours']['offDuty'] == 18.0
        assert report['violations'] == []
        assert report['warnings'] == []

    def test_total_mismatch_warning(self):
        report = self.service.check_log(scenario_a_segments())

        assert report['warnings'] == [{
            'type': 'TOTAL_HOURS_MISMATCH',
            'description': 'Total hours (12.0h) should equal 24 hours',
        }]

    def test_warnings_do_not_affect_compliance(self):
        summary = HoursSummary(off_duty=10, driving=5)
        warnings = self.service.check_warnings(summary)

        assert warnings
        assert self.service.evaluate(summary).is_compliant

    def test_service_uses_config(self):
        service = HOSService(HOSConfig(off_duty_reset_hours=8))
        assert service.evaluate(HoursSummary(off_duty=8, driving=10, on_duty=4)).is_compliant
