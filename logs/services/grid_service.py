"""
ELD Log Grid Projection Service.

Projects a day's duty timeline onto the paper-log style grid used by the
frontend.

ELD Log Grid Format:
===================
Each day's log is a 24-hour timeline divided into 15-minute increments,
with one row per duty status:
1. Off Duty
2. Sleeper Berth
3. Driving
4. On Duty (Not Driving)

Segments that cross midnight wrap around the dial: they fill the evening
cells and the early-morning cells of the same sheet.
"""

import logging
from typing import Dict, List

from .timeline import MINUTES_PER_DAY, DutySegment, DutyStatus, DutyTimeline

logger = logging.getLogger(__name__)

QUARTER_HOURS = (0, 15, 30, 45)


def format_duration(hours: float) -> str:
    """Render decimal hours as ``"8h 30m"``."""
    total_minutes = int(round(hours * 60))
    h, m = divmod(total_minutes, 60)
    return f"{h}h {m}m"


class LogGridService:
    """
    Service for projecting duty timelines onto the ELD log grid.

    Produces cell activity, positioned bars and status transitions that
    the frontend draws directly.
    """

    # Grid row mapping for duty statuses
    GRID_ROWS = {
        DutyStatus.OFF_DUTY: 1,
        DutyStatus.SLEEPER: 2,
        DutyStatus.DRIVING: 3,
        DutyStatus.ON_DUTY: 4,
    }

    DUTY_STATUS_DISPLAY = {
        DutyStatus.OFF_DUTY: 'Off Duty',
        DutyStatus.SLEEPER: 'Sleeper Berth',
        DutyStatus.DRIVING: 'Driving',
        DutyStatus.ON_DUTY: 'On Duty (Not Driving)',
    }

    ROWS = [
        {'id': 1, 'status': DutyStatus.OFF_DUTY.value, 'label': 'Off Duty', 'short': 'OFF'},
        {'id': 2, 'status': DutyStatus.SLEEPER.value, 'label': 'Sleeper Berth', 'short': 'SB'},
        {'id': 3, 'status': DutyStatus.DRIVING.value, 'label': 'Driving', 'short': 'D'},
        {'id': 4, 'status': DutyStatus.ON_DUTY.value, 'label': 'On Duty (Not Driving)', 'short': 'ON'},
    ]

    @staticmethod
    def covers(segment: DutySegment, minute_of_day: int) -> bool:
        """True when the minute falls inside the segment's circular interval."""
        start = segment.start_of_day_minutes
        end = start + segment.duration_minutes
        return start <= minute_of_day < end or start <= minute_of_day + MINUTES_PER_DAY < end

    def is_active_at(
        self,
        timeline: DutyTimeline,
        hour: int,
        minute: int,
        status: DutyStatus
    ) -> bool:
        """Whether any segment of ``status`` covers the given clock time."""
        minute_of_day = hour * 60 + minute
        return any(
            segment.status == status and self.covers(segment, minute_of_day)
            for segment in timeline
        )

    def quarter_hour_cells(self, timeline: DutyTimeline, status: DutyStatus) -> List[bool]:
        """96 flags, one per 15-minute cell from 00:00 to 23:45."""
        return [
            self.is_active_at(timeline, hour, minute, status)
            for hour in range(24)
            for minute in QUARTER_HOURS
        ]

    def segment_bars(self, timeline: DutyTimeline, status: DutyStatus) -> List[Dict]:
        """
        Horizontal bars for one row, positioned as percentages of the day.

        A segment crossing midnight is split into an evening bar ending at
        24:00 and a morning bar starting at 00:00.
        """
        bars = []

        for segment in timeline:
            if segment.status != status:
                continue

            start = segment.start_of_day_minutes
            end = start + segment.duration_minutes
            pieces = [(start, min(end, MINUTES_PER_DAY))]
            if end > MINUTES_PER_DAY:
                pieces.append((0, end - MINUTES_PER_DAY))

            for piece_start, piece_end in pieces:
                bars.append({
                    'left': round(piece_start / MINUTES_PER_DAY * 100, 4),
                    'width': round((piece_end - piece_start) / MINUTES_PER_DAY * 100, 4),
                    'start_time': segment.start_time,
                    'end_time': segment.end_time,
                    'location': segment.location or '',
                })

        return bars

    def generate_grid_data(self, timeline: DutyTimeline) -> Dict:
        """
        Generate grid data for frontend rendering.

        The grid has:
        - X-axis: 24 hours (0-24), shown in 1-hour increments
        - Y-axis: 4 rows (Off Duty, Sleeper Berth, Driving, On Duty Not Driving)
        - Horizontal lines for each segment
        - Vertical lines at status changes
        """
        grid_segments = []

        for segment in timeline:
            start_x = segment.start_of_day_minutes / 60
            end_x = start_x + segment.duration_hours
            # Draw midnight-crossing segments to the edge of the sheet
            if end_x > 24:
                end_x = 24.0

            grid_segments.append({
                'row': self.GRID_ROWS[segment.status],
                'start_x': round(start_x, 2),
                'end_x': round(end_x, 2),
                'status': segment.status.value,
                'status_display': self.DUTY_STATUS_DISPLAY[segment.status],
                'duration': round(segment.duration_hours, 2),
                'duration_display': format_duration(segment.duration_hours),
                'start_time': segment.start_time,
                'end_time': segment.end_time,
                'location': segment.location or '',
            })

        return {
            'segments': grid_segments,
            'transitions': self._calculate_transitions(timeline),
            'cells': {
                row['status']: self.quarter_hour_cells(timeline, DutyStatus(row['status']))
                for row in self.ROWS
            },
            'bars': {
                row['status']: self.segment_bars(timeline, DutyStatus(row['status']))
                for row in self.ROWS
            },
            'hours': list(range(25)),  # 0 to 24 for grid lines
            'rows': self.ROWS,
        }

    def _calculate_transitions(self, timeline: DutyTimeline) -> List[Dict]:
        """Calculate vertical line positions for status transitions."""
        transitions = []
        segments = timeline.segments

        for i in range(len(segments) - 1):
            current = segments[i]
            next_segment = segments[i + 1]

            if current.status != next_segment.status:
                transitions.append({
                    'x': round(current.end_of_day_minutes / 60, 2),
                    'from_row': self.GRID_ROWS[current.status],
                    'to_row': self.GRID_ROWS[next_segment.status],
                    'from_status': current.status.value,
                    'to_status': next_segment.status.value,
                })

        return transitions
