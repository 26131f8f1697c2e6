"""
Admin configuration for driver log models.
"""

from django.contrib import admin
from .models import Driver, DailyLog, DutyStatusEntry


class DutyStatusEntryInline(admin.TabularInline):
    model = DutyStatusEntry
    extra = 0
    ordering = ['sequence']


@admin.register(Driver)
class DriverAdmin(admin.ModelAdmin):
    list_display = ['name', 'license_number', 'home_terminal', 'created_at']
    search_fields = ['name', 'license_number', 'home_terminal']
    readonly_fields = ['id', 'created_at', 'updated_at']


@admin.register(DailyLog)
class DailyLogAdmin(admin.ModelAdmin):
    list_display = ['driver', 'date', 'total_miles', 'vehicle_numbers', 'updated_at']
    list_filter = ['date']
    search_fields = ['driver__name', 'driver__license_number', 'vehicle_numbers']
    readonly_fields = ['id', 'created_at', 'updated_at']
    inlines = [DutyStatusEntryInline]


@admin.register(DutyStatusEntry)
class DutyStatusEntryAdmin(admin.ModelAdmin):
    list_display = ['log', 'sequence', 'status', 'start_hour', 'start_minute', 'end_hour', 'end_minute', 'location']
    list_filter = ['status']
    search_fields = ['location']
