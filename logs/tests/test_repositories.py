"""
Tests for daily log repositories.
"""

import uuid
from datetime import date

from django.test import TestCase, override_settings

from logs.models import DailyLog, Driver, DutyStatusEntry
from logs.repositories import (
    DjangoLogRepository,
    InMemoryLogRepository,
    LogRecord,
    get_log_repository,
)
from logs.services.geo import Coordinates
from logs.services.timeline import DutySegment, DutyStatus, DutyTimeline


def make_timeline(log_date=None):
    return DutyTimeline.build([
        DutySegment(DutyStatus.OFF_DUTY, 0, 0, 6, 0),
        DutySegment(DutyStatus.ON_DUTY, 6, 0, 7, 0, location='Terminal',
                    coordinates=Coordinates(34.0522, -118.2437)),
        DutySegment(DutyStatus.DRIVING, 7, 0, 12, 0, location='Fresno',
                    coordinates=Coordinates(36.7378, -119.7871)),
        DutySegment(DutyStatus.OFF_DUTY, 12, 0, 24, 0),
    ], log_date=log_date)


class TestInMemoryLogRepository:
    """Test the dict-backed repository."""

    def setup_method(self):
        self.repository = InMemoryLogRepository()
        self.driver_id = uuid.uuid4()

    def test_put_assigns_id_and_timestamps(self):
        stored = self.repository.put(LogRecord(
            driver_id=self.driver_id, log_date=date(2024, 1, 15), timeline=make_timeline()
        ))

        assert stored.id is not None
        assert stored.created_at is not None
        assert stored.updated_at == stored.created_at
        assert self.repository.get(stored.id) == stored

    def test_update_keeps_created_at(self):
        stored = self.repository.put(LogRecord(driver_id=self.driver_id, log_date=date(2024, 1, 15)))
        stored.remarks = 'Updated'
        updated = self.repository.put(stored)

        assert updated.id == stored.id
        assert updated.created_at == stored.created_at
        assert self.repository.get(stored.id).remarks == 'Updated'

    def test_returned_records_are_copies(self):
        stored = self.repository.put(LogRecord(driver_id=self.driver_id, log_date=date(2024, 1, 15)))
        stored.remarks = 'Not saved'

        assert self.repository.get(stored.id).remarks == ''

    def test_get_missing(self):
        assert self.repository.get(uuid.uuid4()) is None

    def test_list_filters_and_orders(self):
        other_driver = uuid.uuid4()
        for day in (10, 12, 11):
            self.repository.put(LogRecord(driver_id=self.driver_id, log_date=date(2024, 1, day)))
        self.repository.put(LogRecord(driver_id=other_driver, log_date=date(2024, 1, 11)))

        records = self.repository.list(driver_id=self.driver_id)
        assert [r.log_date.day for r in records] == [12, 11, 10]

        records = self.repository.list(start_date=date(2024, 1, 11), end_date=date(2024, 1, 11))
        assert len(records) == 2

        assert len(self.repository.list(limit=2)) == 2
        assert len(self.repository.list(driver_id=str(other_driver))) == 1

    def test_delete(self):
        stored = self.repository.put(LogRecord(driver_id=self.driver_id, log_date=date(2024, 1, 15)))

        assert self.repository.delete(stored.id) is True
        assert self.repository.delete(stored.id) is False
        assert self.repository.get(stored.id) is None

    def test_instances_do_not_share_state(self):
        self.repository.put(LogRecord(driver_id=self.driver_id, log_date=date(2024, 1, 15)))
        assert InMemoryLogRepository().list() == []


class TestGetLogRepository:

    @override_settings(LOG_REPOSITORY='logs.repositories.InMemoryLogRepository')
    def test_configured_class(self):
        assert isinstance(get_log_repository(), InMemoryLogRepository)

    def test_default_is_django(self):
        assert isinstance(get_log_repository(), DjangoLogRepository)


class TestDjangoLogRepository(TestCase):
    """Test the ORM-backed repository."""

    def setUp(self):
        self.repository = DjangoLogRepository()
        self.driver = Driver.objects.create(name='Jane Doe', license_number='CA-1234567')

    def test_put_and_get_round_trip(self):
        stored = self.repository.put(LogRecord(
            driver_id=self.driver.id,
            log_date=date(2024, 1, 15),
            timeline=make_timeline(date(2024, 1, 15)),
            remarks='Fresno run',
            total_miles=205.0,
        ))

        assert DailyLog.objects.count() == 1
        assert DutyStatusEntry.objects.count() == 4

        loaded = self.repository.get(stored.id)
        assert loaded.driver_id == self.driver.id
        assert loaded.remarks == 'Fresno run'
        assert loaded.total_miles == 205.0
        assert loaded.timeline.log_date == date(2024, 1, 15)
        assert loaded.timeline.segments == make_timeline().segments

    def test_caller_order_preserved(self):
        timeline = DutyTimeline.build([
            DutySegment(DutyStatus.DRIVING, 7, 0, 12, 0),
            DutySegment(DutyStatus.OFF_DUTY, 0, 0, 7, 0),
        ])
        stored = self.repository.put(LogRecord(
            driver_id=self.driver.id, log_date=date(2024, 1, 15), timeline=timeline
        ))

        statuses = [s.status for s in self.repository.get(stored.id).timeline]
        assert statuses == [DutyStatus.DRIVING, DutyStatus.OFF_DUTY]

    def test_update_replaces_entries(self):
        stored = self.repository.put(LogRecord(
            driver_id=self.driver.id, log_date=date(2024, 1, 15), timeline=make_timeline()
        ))
        stored.timeline = DutyTimeline.build([DutySegment(DutyStatus.OFF_DUTY, 0, 0, 24, 0)])
        updated = self.repository.put(stored)

        assert updated.id == stored.id
        assert len(updated.timeline) == 1
        assert DutyStatusEntry.objects.count() == 1

    def test_list_filters(self):
        other = Driver.objects.create(name='John Roe', license_number='TX-7654321')
        for day in (10, 11, 12):
            self.repository.put(LogRecord(driver_id=self.driver.id, log_date=date(2024, 1, day)))
        self.repository.put(LogRecord(driver_id=other.id, log_date=date(2024, 1, 12)))

        records = self.repository.list(driver_id=self.driver.id)
        assert [r.log_date.day for r in records] == [12, 11, 10]
        assert len(self.repository.list(start_date=date(2024, 1, 12))) == 2
        assert len(self.repository.list(end_date=date(2024, 1, 10))) == 1
        assert len(self.repository.list(limit=3)) == 3

    def test_delete(self):
        stored = self.repository.put(LogRecord(
            driver_id=self.driver.id, log_date=date(2024, 1, 15), timeline=make_timeline()
        ))

        assert self.repository.delete(stored.id) is True
        assert self.repository.delete(stored.id) is False
        assert DutyStatusEntry.objects.count() == 0

    def test_driver_delete_cascades(self):
        self.repository.put(LogRecord(
            driver_id=self.driver.id, log_date=date(2024, 1, 15), timeline=make_timeline()
        ))
        self.driver.delete()

        assert self.repository.list() == []
