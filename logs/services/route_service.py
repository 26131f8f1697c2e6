"""
Route Reconstruction Service.

Infers the driving legs of a log day from its located duty segments and
estimates the miles driven with great-circle distances.

A log records discrete GPS fixes at status changes, not a continuous
track. The only driving distance that can be inferred is therefore the hop
from the last known fix (whatever duty status it belonged to) to each
driving segment's fix. For example, "On-Duty at Terminal -> Driving to
City" yields one leg.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

import polyline

from .geo import Coordinates, haversine_miles
from .timeline import DutySegment, DutyStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DrivingLeg:
    """One inferred hop between consecutive known fixes, ending in a driving segment."""
    start: Coordinates
    end: Coordinates
    distance_miles: float
    start_status: DutyStatus
    end_status: DutyStatus = DutyStatus.DRIVING
    start_location: Optional[str] = None
    end_location: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            'start': self.start.to_dict(),
            'startStatus': self.start_status.value,
            'startLocation': self.start_location,
            'end': self.end.to_dict(),
            'endStatus': self.end_status.value,
            'endLocation': self.end_location,
            'distance': round(self.distance_miles, 1),
        }


@dataclass(frozen=True)
class RouteSummary:
    """
    Legs reconstructed from one log day.

    ``total_distance_miles`` is the sum of the raw leg distances rounded
    once; each leg is rounded separately only when displayed.
    An empty ``legs`` tuple with zero distance means "no route data".
    """
    legs: Tuple[DrivingLeg, ...] = field(default_factory=tuple)
    total_distance_miles: float = 0.0
    total_locations: int = 0
    driving_locations: int = 0
    points: Tuple[Coordinates, ...] = field(default_factory=tuple)

    @property
    def has_route_data(self) -> bool:
        return bool(self.points)

    @property
    def encoded_polyline(self) -> str:
        """Located fixes in timeline order, encoded for map rendering."""
        if not self.points:
            return ''
        return polyline.encode([p.as_tuple() for p in self.points])

    def to_dict(self) -> Dict:
        return {
            'totalDrivingDistance': self.total_distance_miles,
            'totalLocations': self.total_locations,
            'drivingLocations': self.driving_locations,
            'drivingSegments': [leg.to_dict() for leg in self.legs],
            'encodedPolyline': self.encoded_polyline,
        }


def reconstruct_route(segments: Iterable[DutySegment]) -> RouteSummary:
    """
    Rebuild driving legs from located segments, in timeline order.

    Every located segment becomes the origin for the next driving
    segment's leg; the first located segment never produces a leg.
    """
    located = [s for s in segments if s.coordinates is not None]

    legs: List[DrivingLeg] = []
    raw_total = 0.0
    driving_locations = 0
    last_known: Optional[DutySegment] = None

    for segment in located:
        if segment.status == DutyStatus.DRIVING:
            driving_locations += 1

            if last_known is not None:
                miles = haversine_miles(last_known.coordinates, segment.coordinates)
                raw_total += miles
                legs.append(DrivingLeg(
                    start=last_known.coordinates,
                    end=segment.coordinates,
                    distance_miles=miles,
                    start_status=last_known.status,
                    start_location=last_known.location,
                    end_location=segment.location,
                ))
                logger.debug(
                    f"Leg {len(legs)}: {last_known.status.value} -> driving, {miles:.1f} miles"
                )

        last_known = segment

    summary = RouteSummary(
        legs=tuple(legs),
        total_distance_miles=round(raw_total, 1),
        total_locations=len(located),
        driving_locations=driving_locations,
        points=tuple(s.coordinates for s in located),
    )

    if located:
        logger.info(
            f"Route reconstructed: {len(legs)} legs, "
            f"{summary.total_distance_miles:.1f} miles from {len(located)} fixes"
        )
    return summary
