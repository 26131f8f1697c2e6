"""
Driver Log Models.

Stores drivers, their daily logs and the duty status entries that make up
each log. Hour totals and compliance are never stored; they are derived
from the entries whenever a log is read.
"""

from django.db import models
from django.core.validators import MinValueValidator, MaxValueValidator
import uuid


class Driver(models.Model):
    """
    A commercial driver whose daily logs are tracked.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=200)
    license_number = models.CharField(max_length=50, unique=True)
    home_terminal = models.CharField(max_length=500, blank=True)
    main_office_address = models.CharField(max_length=500, blank=True)

    # Metadata
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']
        verbose_name = 'Driver'
        verbose_name_plural = 'Drivers'

    def __str__(self):
        return f"{self.name} ({self.license_number})"


class DailyLog(models.Model):
    """
    One driver's record of duty status for a single calendar day.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    driver = models.ForeignKey(Driver, on_delete=models.CASCADE, related_name='logs')

    date = models.DateField(help_text="Calendar day covered by this log")

    # Log header
    remarks = models.TextField(blank=True)
    shipping_documents = models.CharField(max_length=500, blank=True)
    co_driver_name = models.CharField(max_length=200, blank=True)
    vehicle_numbers = models.CharField(max_length=200, blank=True)

    # Odometer-style mileage as reported by the driver
    total_miles = models.FloatField(default=0, validators=[MinValueValidator(0)])
    total_miles_today = models.FloatField(default=0, validators=[MinValueValidator(0)])
    total_miles_yesterday = models.FloatField(default=0, validators=[MinValueValidator(0)])

    # Metadata
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-date', '-created_at']
        verbose_name = 'Daily Log'
        verbose_name_plural = 'Daily Logs'

    def __str__(self):
        return f"{self.driver.name} - {self.date}"


class DutyStatusEntry(models.Model):
    """
    A single duty status interval within a daily log.
    """
    DUTY_STATUS_CHOICES = [
        ('off-duty', 'Off Duty'),
        ('sleeper', 'Sleeper Berth'),
        ('driving', 'Driving'),
        ('on-duty', 'On Duty (Not Driving)'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    log = models.ForeignKey(DailyLog, on_delete=models.CASCADE, related_name='duty_statuses')

    status = models.CharField(max_length=20, choices=DUTY_STATUS_CHOICES)

    # Clock interval; an end before the start crosses midnight
    start_hour = models.PositiveSmallIntegerField(validators=[MaxValueValidator(24)])
    start_minute = models.PositiveSmallIntegerField(validators=[MaxValueValidator(59)])
    end_hour = models.PositiveSmallIntegerField(validators=[MaxValueValidator(24)])
    end_minute = models.PositiveSmallIntegerField(validators=[MaxValueValidator(59)])

    # Location
    location = models.CharField(max_length=500, blank=True)
    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)

    # Order within the day (caller order, not clock order)
    sequence = models.IntegerField(help_text="Order within the day")

    class Meta:
        ordering = ['log', 'sequence']
        verbose_name = 'Duty Status Entry'
        verbose_name_plural = 'Duty Status Entries'

    def __str__(self):
        return (
            f"{self.log.date} {self.start_hour:02d}:{self.start_minute:02d}-"
            f"{self.end_hour:02d}:{self.end_minute:02d}: {self.get_status_display()}"
        )
