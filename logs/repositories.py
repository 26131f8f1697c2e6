"""
Daily log repositories.

The API layer reads and writes logs through a LogRepository so that the
timeline engine never touches storage. ``DjangoLogRepository`` is the
production implementation; ``InMemoryLogRepository`` backs tests and
scripts.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Dict, List, Optional

from django.conf import settings
from django.db import transaction
from django.utils import timezone
from django.utils.module_loading import import_string

from .models import DailyLog, DutyStatusEntry
from .services.geo import Coordinates
from .services.timeline import DutySegment, DutyStatus, DutyTimeline

logger = logging.getLogger(__name__)


@dataclass
class LogRecord:
    """A stored daily log: header fields plus its duty timeline."""
    driver_id: uuid.UUID
    log_date: date
    timeline: DutyTimeline = field(default_factory=DutyTimeline)
    id: Optional[uuid.UUID] = None
    remarks: str = ""
    shipping_documents: str = ""
    co_driver_name: str = ""
    vehicle_numbers: str = ""
    total_miles: float = 0.0
    total_miles_today: float = 0.0
    total_miles_yesterday: float = 0.0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class LogRepository(ABC):
    """Storage interface for daily logs."""

    @abstractmethod
    def get(self, log_id: uuid.UUID) -> Optional[LogRecord]:
        """Return the log, or None when it does not exist."""

    @abstractmethod
    def list(
        self,
        driver_id: Optional[uuid.UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: Optional[int] = None
    ) -> List[LogRecord]:
        """Logs newest first, optionally filtered by driver and inclusive date range."""

    @abstractmethod
    def put(self, record: LogRecord) -> LogRecord:
        """Create or replace a log; returns the stored record with id and timestamps set."""

    @abstractmethod
    def delete(self, log_id: uuid.UUID) -> bool:
        """Delete a log; returns False when nothing was deleted."""


class InMemoryLogRepository(LogRepository):
    """Dict-backed repository. Each instance owns its own store."""

    def __init__(self):
        self._records: Dict[uuid.UUID, LogRecord] = {}

    def get(self, log_id):
        record = self._records.get(_as_uuid(log_id))
        return replace(record) if record else None

    def list(self, driver_id=None, start_date=None, end_date=None, limit=None):
        records = [
            r for r in self._records.values()
            if (driver_id is None or r.driver_id == _as_uuid(driver_id))
            and (start_date is None or r.log_date >= start_date)
            and (end_date is None or r.log_date <= end_date)
        ]
        records.sort(key=lambda r: (r.log_date, r.created_at), reverse=True)
        if limit is not None:
            records = records[:limit]
        return [replace(r) for r in records]

    def put(self, record):
        now = timezone.now()
        log_id = _as_uuid(record.id) if record.id else uuid.uuid4()
        existing = self._records.get(log_id)

        stored = replace(
            record,
            id=log_id,
            driver_id=_as_uuid(record.driver_id),
            created_at=existing.created_at if existing else now,
            updated_at=now,
        )
        self._records[log_id] = stored
        return replace(stored)

    def delete(self, log_id):
        return self._records.pop(_as_uuid(log_id), None) is not None


class DjangoLogRepository(LogRepository):
    """Repository backed by the DailyLog and DutyStatusEntry models."""

    def get(self, log_id):
        log = (
            DailyLog.objects
            .filter(id=log_id)
            .prefetch_related('duty_statuses')
            .first()
        )
        return self._to_record(log) if log else None

    def list(self, driver_id=None, start_date=None, end_date=None, limit=None):
        logs = DailyLog.objects.all().prefetch_related('duty_statuses')

        if driver_id is not None:
            logs = logs.filter(driver_id=driver_id)
        if start_date is not None:
            logs = logs.filter(date__gte=start_date)
        if end_date is not None:
            logs = logs.filter(date__lte=end_date)

        logs = logs.order_by('-date', '-created_at')
        if limit is not None:
            logs = logs[:limit]

        return [self._to_record(log) for log in logs]

    @transaction.atomic
    def put(self, record):
        defaults = {
            'driver_id': record.driver_id,
            'date': record.log_date,
            'remarks': record.remarks,
            'shipping_documents': record.shipping_documents,
            'co_driver_name': record.co_driver_name,
            'vehicle_numbers': record.vehicle_numbers,
            'total_miles': record.total_miles,
            'total_miles_today': record.total_miles_today,
            'total_miles_yesterday': record.total_miles_yesterday,
        }

        if record.id:
            log, created = DailyLog.objects.update_or_create(id=record.id, defaults=defaults)
        else:
            log, created = DailyLog.objects.create(**defaults), True

        # Entries are replaced wholesale to keep caller order in `sequence`
        log.duty_statuses.all().delete()
        DutyStatusEntry.objects.bulk_create([
            DutyStatusEntry(
                log=log,
                status=segment.status.value,
                start_hour=segment.start_hour,
                start_minute=segment.start_minute,
                end_hour=segment.end_hour,
                end_minute=segment.end_minute,
                location=segment.location or '',
                latitude=segment.coordinates.latitude if segment.coordinates else None,
                longitude=segment.coordinates.longitude if segment.coordinates else None,
                sequence=index,
            )
            for index, segment in enumerate(record.timeline, start=1)
        ])

        logger.info(f"{'Created' if created else 'Updated'} log {log.id} with {len(record.timeline)} duty statuses")
        return self.get(log.id)

    def delete(self, log_id):
        deleted, _ = DailyLog.objects.filter(id=log_id).delete()
        return deleted > 0

    def _to_record(self, log: DailyLog) -> LogRecord:
        segments = []
        for entry in sorted(log.duty_statuses.all(), key=lambda e: e.sequence):
            coordinates = None
            if entry.latitude is not None and entry.longitude is not None:
                coordinates = Coordinates(latitude=entry.latitude, longitude=entry.longitude)

            segments.append(DutySegment(
                status=DutyStatus(entry.status),
                start_hour=entry.start_hour,
                start_minute=entry.start_minute,
                end_hour=entry.end_hour,
                end_minute=entry.end_minute,
                location=entry.location or None,
                coordinates=coordinates,
            ))

        return LogRecord(
            id=log.id,
            driver_id=log.driver_id,
            log_date=log.date,
            # Stored entries were validated when the log was written
            timeline=DutyTimeline(segments=tuple(segments), log_date=log.date),
            remarks=log.remarks,
            shipping_documents=log.shipping_documents,
            co_driver_name=log.co_driver_name,
            vehicle_numbers=log.vehicle_numbers,
            total_miles=log.total_miles,
            total_miles_today=log.total_miles_today,
            total_miles_yesterday=log.total_miles_yesterday,
            created_at=log.created_at,
            updated_at=log.updated_at,
        )


def get_log_repository() -> LogRepository:
    """Instantiate the repository class named by ``settings.LOG_REPOSITORY``."""
    path = getattr(settings, 'LOG_REPOSITORY', 'logs.repositories.DjangoLogRepository')
    return import_string(path)()


def _as_uuid(value) -> uuid.UUID:
    return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))
