"""
Duty timeline model for a single log day.

A day is an ordered sequence of duty segments. Each segment is a clock
interval on a circular 24-hour dial: an end time earlier than the start
time means the segment runs past midnight.

Segments are kept in the order the caller supplied them. They are never
sorted, merged or checked for overlap; aggregation simply sums whatever
it is given.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .geo import Coordinates

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60


class DutyStatus(Enum):
    """Driver duty status as recorded on the daily log."""
    OFF_DUTY = "off-duty"
    SLEEPER = "sleeper"
    DRIVING = "driving"
    ON_DUTY = "on-duty"


class ValidationError(ValueError):
    """Raised when a duty segment is rejected while building a timeline."""

    def __init__(self, message: str, index: Optional[int] = None):
        super().__init__(message)
        self.index = index


def calculate_duration_minutes(
    start_hour: int,
    start_minute: int,
    end_hour: int,
    end_minute: int
) -> int:
    """Elapsed whole minutes between two clock times, wrapping past midnight."""
    start_minutes = start_hour * 60 + start_minute
    end_minutes = end_hour * 60 + end_minute

    # Crosses midnight. Equal times stay at zero, not a full day.
    if end_minutes < start_minutes:
        end_minutes += MINUTES_PER_DAY

    return end_minutes - start_minutes


def calculate_duration(
    start_hour: int,
    start_minute: int,
    end_hour: int,
    end_minute: int
) -> float:
    """
    Elapsed hours between two clock times.

    ``calculate_duration(23, 0, 1, 0) == 2.0``; identical start and end
    give ``0.0``. Out-of-range fields are not checked here, see
    ``is_valid_segment``.
    """
    return calculate_duration_minutes(start_hour, start_minute, end_hour, end_minute) / 60


@dataclass(frozen=True)
class DutySegment:
    """One interval of a driver's day."""
    status: DutyStatus
    start_hour: int
    start_minute: int
    end_hour: int
    end_minute: int
    location: Optional[str] = None
    coordinates: Optional[Coordinates] = None

    @property
    def duration_minutes(self) -> int:
        return calculate_duration_minutes(
            self.start_hour, self.start_minute, self.end_hour, self.end_minute
        )

    @property
    def duration_hours(self) -> float:
        return calculate_duration(
            self.start_hour, self.start_minute, self.end_hour, self.end_minute
        )

    @property
    def start_of_day_minutes(self) -> int:
        return self.start_hour * 60 + self.start_minute

    @property
    def end_of_day_minutes(self) -> int:
        return self.end_hour * 60 + self.end_minute

    @property
    def crosses_midnight(self) -> bool:
        return self.end_of_day_minutes < self.start_of_day_minutes

    @property
    def is_located(self) -> bool:
        return self.coordinates is not None

    @property
    def start_time(self) -> str:
        return f"{self.start_hour:02d}:{self.start_minute:02d}"

    @property
    def end_time(self) -> str:
        return f"{self.end_hour:02d}:{self.end_minute:02d}"

    def with_coordinates(self, coordinates: Optional[Coordinates]) -> 'DutySegment':
        return replace(self, coordinates=coordinates)

    def to_dict(self) -> Dict:
        data = {
            'status': self.status.value,
            'startHour': self.start_hour,
            'startMinute': self.start_minute,
            'endHour': self.end_hour,
            'endMinute': self.end_minute,
        }
        if self.location:
            data['location'] = self.location
        if self.coordinates is not None:
            data['coordinates'] = self.coordinates.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> 'DutySegment':
        """
        Build a segment from the camelCase wire shape used by the log API.

        Raises ValueError for an unknown status, non-integer clock fields or
        out-of-range coordinates. Range checks on the clock fields are left
        to ``is_valid_segment``.
        """
        status = DutyStatus(data['status'])

        coordinates = None
        raw_coords = data.get('coordinates')
        if raw_coords:
            coordinates = Coordinates.from_dict(raw_coords)

        return cls(
            status=status,
            start_hour=int(data['startHour']),
            start_minute=int(data.get('startMinute', 0)),
            end_hour=int(data['endHour']),
            end_minute=int(data.get('endMinute', 0)),
            location=data.get('location') or None,
            coordinates=coordinates,
        )


def validate_segment(segment: DutySegment) -> List[str]:
    """Return a list of problems with a segment (empty when it is valid)."""
    problems = []

    if not 0 <= segment.start_hour <= 24:
        problems.append(f"startHour {segment.start_hour} must be between 0 and 24")
    if not 0 <= segment.end_hour <= 24:
        problems.append(f"endHour {segment.end_hour} must be between 0 and 24")
    if not 0 <= segment.start_minute <= 59:
        problems.append(f"startMinute {segment.start_minute} must be between 0 and 59")
    if not 0 <= segment.end_minute <= 59:
        problems.append(f"endMinute {segment.end_minute} must be between 0 and 59")

    if segment.duration_minutes <= 0:
        problems.append(
            f"duration from {segment.start_time} to {segment.end_time} must be positive"
        )

    return problems


def is_valid_segment(segment: DutySegment) -> bool:
    """Clock fields in range and a strictly positive duration."""
    return not validate_segment(segment)


@dataclass(frozen=True)
class DutyTimeline:
    """
    The duty segments making up one log day, in caller order.

    Build it with ``DutyTimeline.build`` (or ``from_dicts``) so that every
    segment is validated. The timeline is immutable; helpers that "change"
    it return a new instance.
    """
    segments: Tuple[DutySegment, ...] = field(default_factory=tuple)
    log_date: Optional[date] = None

    @classmethod
    def build(
        cls,
        segments: Iterable[DutySegment],
        log_date: Optional[date] = None
    ) -> 'DutyTimeline':
        segments = tuple(segments)

        for index, segment in enumerate(segments, start=1):
            problems = validate_segment(segment)
            if problems:
                raise ValidationError(
                    f"Duty status {index} is invalid: {'; '.join(problems)}",
                    index=index
                )

        logger.debug(f"Built timeline with {len(segments)} segments for {log_date or 'undated log'}")
        return cls(segments=segments, log_date=log_date)

    @classmethod
    def from_dicts(
        cls,
        items: Iterable[Dict],
        log_date: Optional[date] = None
    ) -> 'DutyTimeline':
        """Parse and validate wire-format duty statuses."""
        segments = []
        for index, item in enumerate(items, start=1):
            try:
                segments.append(DutySegment.from_dict(item))
            except (KeyError, TypeError, ValueError) as e:
                raise ValidationError(f"Duty status {index} is invalid: {e}", index=index) from e
        return cls.build(segments, log_date=log_date)

    def __iter__(self) -> Iterator[DutySegment]:
        return iter(self.segments)

    def __len__(self) -> int:
        return len(self.segments)

    def located_segments(self) -> Tuple[DutySegment, ...]:
        """Segments carrying a GPS fix, in timeline order."""
        return tuple(s for s in self.segments if s.is_located)

    def with_segments(self, segments: Iterable[DutySegment]) -> 'DutyTimeline':
        return DutyTimeline.build(segments, log_date=self.log_date)

    def to_dicts(self) -> List[Dict]:
        return [s.to_dict() for s in self.segments]
