"""
FMCSA Hours of Service (HOS) daily log evaluation.

Aggregates a day's duty timeline into per-status hour totals and checks
them against the daily limits for property-carrying drivers.

HOS Rules Evaluated:
====================
1. 11-Hour Driving Limit: Max 11 hours driving
2. 14-Hour On-Duty Window: Driving plus on-duty (not driving) may not exceed 14 hours
3. 10-Hour Off-Duty: Off-duty plus sleeper berth must reach 10 hours

This is a single-day snapshot check. Multi-day cycle rules (60/70 hour),
the 30-minute break and split sleeper pairing are not evaluated.

References:
- https://www.fmcsa.dot.gov/regulations/hours-of-service
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from .timeline import DutySegment, DutyStatus

logger = logging.getLogger(__name__)

HOURS_IN_DAY = 24.0


@dataclass
class HOSConfig:
    """
    Configuration for HOS rules.
    All values can be adjusted for different regulations or testing.
    """
    # Daily limits
    max_driving_hours: float = 11.0
    max_on_duty_hours: float = 14.0

    # Reset requirements
    off_duty_reset_hours: float = 10.0

    @classmethod
    def from_settings(cls) -> 'HOSConfig':
        """Read overrides from ``settings.HOS_CONFIG`` when Django is configured."""
        from django.conf import settings

        overrides = getattr(settings, 'HOS_CONFIG', {}) or {}
        return cls(
            max_driving_hours=float(overrides.get('MAX_DRIVING_HOURS', cls.max_driving_hours)),
            max_on_duty_hours=float(overrides.get('MAX_ON_DUTY_HOURS', cls.max_on_duty_hours)),
            off_duty_reset_hours=float(overrides.get('OFF_DUTY_RESET_HOURS', cls.off_duty_reset_hours)),
        )


@dataclass(frozen=True)
class HoursSummary:
    """
    Per-status hour totals for one log day.

    ``total`` is always the length of a day, not the sum of the buckets.
    Overlapping or gapped segments make the bucket sum differ from it.
    """
    off_duty: float = 0.0
    sleeper: float = 0.0
    driving: float = 0.0
    on_duty: float = 0.0
    total: float = HOURS_IN_DAY

    @property
    def on_duty_window(self) -> float:
        return self.on_duty + self.driving

    @property
    def rest(self) -> float:
        return self.off_duty + self.sleeper

    @property
    def recorded_hours(self) -> float:
        return self.off_duty + self.sleeper + self.driving + self.on_duty

    def to_dict(self) -> Dict[str, float]:
        return {
            'offDuty': self.off_duty,
            'sleeper': self.sleeper,
            'driving': self.driving,
            'onDuty': self.on_duty,
            'total': self.total,
        }


@dataclass(frozen=True)
class ComplianceResult:
    """Outcome of the daily HOS check."""
    is_compliant: bool
    violations: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict:
        return {
            'isCompliant': self.is_compliant,
            'violations': list(self.violations),
        }


# Every DutyStatus member must appear here.
_BUCKETS = {
    DutyStatus.OFF_DUTY: 'off_duty',
    DutyStatus.SLEEPER: 'sleeper',
    DutyStatus.DRIVING: 'driving',
    DutyStatus.ON_DUTY: 'on_duty',
}


def aggregate_hours(segments: Iterable[DutySegment]) -> HoursSummary:
    """
    Sum segment durations into the four duty-status buckets.

    Accepts a DutyTimeline or any iterable of segments. Minutes are summed
    as integers and converted once, so the result does not depend on
    segment order.
    """
    minutes = {bucket: 0 for bucket in _BUCKETS.values()}
    count = 0

    for segment in segments:
        minutes[_BUCKETS[segment.status]] += segment.duration_minutes
        count += 1

    summary = HoursSummary(**{bucket: total / 60 for bucket, total in minutes.items()})
    logger.debug(
        f"Aggregated {count} segments: driving {summary.driving:.2f}h, "
        f"on-duty {summary.on_duty:.2f}h, rest {summary.rest:.2f}h"
    )
    return summary


def evaluate_compliance(
    summary: HoursSummary,
    config: Optional[HOSConfig] = None
) -> ComplianceResult:
    """
    Apply the three daily limits to a summary.

    Every rule is checked; violations are reported in rule order
    (driving, on-duty window, rest).
    """
    config = config or HOSConfig()
    violations: List[str] = []

    # 1. 11-hour driving limit
    if summary.driving > config.max_driving_hours:
        violations.append(
            f"Driving time ({summary.driving:.1f}h) exceeds "
            f"{config.max_driving_hours:g}-hour limit"
        )

    # 2. 14-hour window (on-duty + driving)
    on_duty_window = summary.on_duty_window
    if on_duty_window > config.max_on_duty_hours:
        violations.append(
            f"On-duty time ({on_duty_window:.1f}h) exceeds "
            f"{config.max_on_duty_hours:g}-hour window"
        )

    # 3. 10-hour rest (off-duty + sleeper)
    rest = summary.rest
    if rest < config.off_duty_reset_hours:
        violations.append(
            f"Rest time ({rest:.1f}h) is less than required "
            f"{config.off_duty_reset_hours:g} hours"
        )

    return ComplianceResult(is_compliant=not violations, violations=tuple(violations))


class HOSService:
    """
    Service wrapper around the daily HOS evaluation.

    Binds a HOSConfig so the API layer can evaluate logs against
    configured limits and collect non-blocking warnings.
    """

    def __init__(self, config: Optional[HOSConfig] = None):
        self.config = config or HOSConfig()

    def summarize(self, segments: Iterable[DutySegment]) -> HoursSummary:
        return aggregate_hours(segments)

    def evaluate(self, summary: HoursSummary) -> ComplianceResult:
        result = evaluate_compliance(summary, self.config)
        if not result.is_compliant:
            logger.info(f"HOS check found {len(result.violations)} violation(s)")
        return result

    def check_warnings(self, summary: HoursSummary) -> List[Dict]:
        """
        Non-blocking observations about a summary.

        Warnings never change ``is_compliant``.
        """
        warnings = []
        recorded = round(summary.recorded_hours, 2)

        if recorded != summary.total:
            warnings.append({
                'type': 'TOTAL_HOURS_MISMATCH',
                'description': f"Total hours ({recorded}h) should equal {summary.total:g} hours",
            })

        return warnings

    def check_log(self, segments: Iterable[DutySegment]) -> Dict:
        """
        Full compliance report for one day's segments.

        Returns hours, compliance status, violations and warnings.
        """
        summary = self.summarize(segments)
        result = self.evaluate(summary)

        return {
            'isCompliant': result.is_compliant,
            'hours': summary.to_dict(),
            'violations': list(result.violations),
            'warnings': self.check_warnings(summary),
        }
