"""
Domain layer - Pure scheduling logic without I/O.
"""

from .models import (
    Appointment,
    AppointmentStatus,
    BookingSettings,
    Business,
    CapacityMode,
    DayResult,
    Employee,
    RangeResult,
    ScheduleLayer,
    ScheduleSnapshot,
    Service,
    Slot,
    SpecialDate,
    WeeklyRule,
)
from .occupancy import OccupancyChecker
from .rule_resolver import Closed, EffectiveWindow, RuleResolver
from .slot_generator import SlotGenerator
from .time_model import Clock, FixedClock, MinuteInterval, SystemClock

__all__ = [
    "Appointment",
    "AppointmentStatus",
    "BookingSettings",
    "Business",
    "CapacityMode",
    "Clock",
    "Closed",
    "DayResult",
    "EffectiveWindow",
    "Employee",
    "FixedClock",
    "MinuteInterval",
    "OccupancyChecker",
    "RangeResult",
    "RuleResolver",
    "ScheduleLayer",
    "ScheduleSnapshot",
    "Service",
    "Slot",
    "SlotGenerator",
    "SpecialDate",
    "SystemClock",
    "WeeklyRule",
]
