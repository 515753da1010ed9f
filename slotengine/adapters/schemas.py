"""
Pydantic records for schedule data read from fixture files.

This is the validation boundary: records are checked here and converted to
the frozen domain dataclasses, so the engine never sees malformed data.
"""

from typing import List, Optional

import pendulum
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..domain.exceptions import InvalidInputError
from ..domain.models import (
    Appointment,
    AppointmentStatus,
    BookingSettings,
    Business,
    CapacityMode,
    Employee,
    ScheduleLayer,
    Service,
    SpecialDate,
    WeeklyRule,
)
from ..domain.time_model import DEFAULT_TIMEZONE, MinuteInterval, parse_date, parse_time


def _check_time(value: Optional[str]) -> Optional[str]:
    if value is not None:
        try:
            parse_time(value)
        except InvalidInputError as exc:
            raise ValueError(str(exc)) from exc
    return value


def _check_date(value: str) -> str:
    try:
        parse_date(value)
    except InvalidInputError as exc:
        raise ValueError(str(exc)) from exc
    return value


class RecordModel(BaseModel):
    """Accepts both snake_case and the camelCase keys used by the API."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class BreakRecord(RecordModel):
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        return _check_time(value)

    def to_interval(self) -> MinuteInterval:
        return MinuteInterval.parse(self.start_time, self.end_time)


class WeeklyRuleRecord(RecordModel):
    id: str = ""
    day_of_week: int = Field(alias="dayOfWeek")
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")
    is_available: bool = Field(default=True, alias="isAvailable")
    capacity_override: Optional[int] = Field(default=None, alias="capacityOverride")
    breaks: List[BreakRecord] = Field(default_factory=list)

    @field_validator("day_of_week")
    @classmethod
    def validate_day_of_week(cls, value: int) -> int:
        """Weekdays run from 0 (Sunday) to 6 (Saturday)."""
        if value not in range(7):
            raise ValueError(f"dayOfWeek must be between 0 and 6, got {value}")
        return value

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        return _check_time(value)

    @model_validator(mode="after")
    def validate_hours(self) -> "WeeklyRuleRecord":
        """Available rules must open before they close and contain their breaks."""
        start, end = parse_time(self.start_time), parse_time(self.end_time)

        if self.is_available and start >= end:
            raise ValueError(f"startTime {self.start_time} must be before endTime {self.end_time}")

        for record in self.breaks:
            brk = record.to_interval()
            if brk.start < start or brk.end > end:
                raise ValueError(
                    f"Break {brk} must lie within working hours {self.start_time} - {self.end_time}"
                )
        return self

    @property
    def has_hours(self) -> bool:
        return parse_time(self.start_time) < parse_time(self.end_time)

    def to_domain(self) -> WeeklyRule:
        return WeeklyRule(
            id=self.id,
            day_of_week=self.day_of_week,
            hours=MinuteInterval.parse(self.start_time, self.end_time),
            is_available=self.is_available,
            capacity_override=self.capacity_override,
            breaks=tuple(b.to_interval() for b in self.breaks),
        )


class SpecialDateRecord(RecordModel):
    date: str
    is_available: bool = Field(default=False, alias="isAvailable")
    start_time: Optional[str] = Field(default=None, alias="startTime")
    end_time: Optional[str] = Field(default=None, alias="endTime")
    reason: Optional[str] = None
    capacity_override: Optional[int] = Field(default=None, alias="capacityOverride")

    @field_validator("date")
    @classmethod
    def validate_date(cls, value: str) -> str:
        return _check_date(value)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: Optional[str]) -> Optional[str]:
        return _check_time(value)

    @model_validator(mode="after")
    def validate_hours(self) -> "SpecialDateRecord":
        if (self.start_time is None) != (self.end_time is None):
            raise ValueError("Special date hours need both startTime and endTime")
        if self.start_time is not None and parse_time(self.start_time) >= parse_time(self.end_time):
            raise ValueError(f"startTime {self.start_time} must be before endTime {self.end_time}")
        return self

    def to_domain(self) -> SpecialDate:
        hours = None
        if self.start_time is not None:
            hours = MinuteInterval.parse(self.start_time, self.end_time)
        return SpecialDate(
            date=parse_date(self.date),
            is_available=self.is_available,
            hours=hours,
            reason=self.reason,
            capacity_override=self.capacity_override,
        )


class ScheduleLayerRecord(RecordModel):
    weekly_rules: List[WeeklyRuleRecord] = Field(default_factory=list, alias="weeklyRules")
    special_dates: List[SpecialDateRecord] = Field(default_factory=list, alias="specialDates")

    @field_validator("special_dates")
    @classmethod
    def validate_unique_dates(cls, value: List[SpecialDateRecord]) -> List[SpecialDateRecord]:
        """Only one special date per calendar date."""
        seen: set[str] = set()
        for record in value:
            if record.date in seen:
                raise ValueError(f"Duplicate special date detected: {record.date}")
            seen.add(record.date)
        return value

    def to_domain(self) -> ScheduleLayer:
        return ScheduleLayer(
            # Closed rules may carry placeholder hours such as 00:00 - 00:00
            weekly_rules=tuple(rule.to_domain() for rule in self.weekly_rules if rule.has_hours),
            special_dates=tuple(special.to_domain() for special in self.special_dates),
        )


class BookingSettingsRecord(RecordModel):
    """Typed form of the business ``settings`` blob."""
    allow_employee_booking: bool = Field(default=False, alias="allowEmployeeBooking")
    min_booking_notice_hours: int = Field(default=2, ge=0, alias="minBookingNotice")
    max_advance_booking_days: int = Field(default=30, ge=0, alias="maxAdvanceBooking")
    max_appointments_per_day: int = Field(default=0, ge=0, alias="maxAppointmentsPerDay")
    buffer_minutes: int = Field(default=0, ge=0, alias="bufferTime")
    auto_confirm: bool = Field(default=True, alias="autoConfirm")
    require_email_confirmation: bool = Field(default=False, alias="requireEmailConfirmation")

    def to_domain(self) -> BookingSettings:
        return BookingSettings(**self.model_dump(by_alias=False))


class ServiceRecord(RecordModel):
    id: str
    name: str = ""
    duration: int = Field(gt=0)
    custom_capacity: Optional[int] = Field(default=None, ge=0, alias="customCapacity")
    slot_interval: Optional[int] = Field(default=None, gt=0, alias="slotInterval")
    is_active: bool = Field(default=True, alias="isActive")

    def to_domain(self, business_id: str) -> Service:
        return Service(
            id=self.id,
            business_id=business_id,
            name=self.name,
            duration=self.duration,
            custom_capacity=self.custom_capacity,
            slot_interval=self.slot_interval,
            is_active=self.is_active,
        )


class EmployeeRecord(RecordModel):
    id: str
    name: str = ""
    is_active: bool = Field(default=True, alias="isActive")
    service_ids: List[str] = Field(default_factory=list, alias="serviceIds")
    max_daily_appointments: int = Field(default=0, ge=0, alias="maxDailyAppointments")
    schedule: ScheduleLayerRecord = Field(default_factory=ScheduleLayerRecord)

    def to_domain(self, business_id: str) -> Employee:
        return Employee(
            id=self.id,
            business_id=business_id,
            name=self.name,
            is_active=self.is_active,
            service_ids=frozenset(self.service_ids),
            max_daily_appointments=self.max_daily_appointments,
        )


class AppointmentRecord(RecordModel):
    id: str
    service_id: str = Field(alias="serviceId")
    employee_id: Optional[str] = Field(default=None, alias="employeeId")
    date: str = Field(alias="appointmentDate")
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")
    status: AppointmentStatus = AppointmentStatus.PENDING

    @field_validator("date")
    @classmethod
    def validate_date(cls, value: str) -> str:
        return _check_date(value)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        return _check_time(value)

    @model_validator(mode="after")
    def validate_hours(self) -> "AppointmentRecord":
        if parse_time(self.start_time) >= parse_time(self.end_time):
            raise ValueError(
                f"Appointment {self.id}: startTime {self.start_time} must be before endTime {self.end_time}"
            )
        return self

    def to_domain(self, business_id: str) -> Appointment:
        return Appointment(
            id=self.id,
            business_id=business_id,
            service_id=self.service_id,
            employee_id=self.employee_id,
            date=parse_date(self.date),
            interval=MinuteInterval.parse(self.start_time, self.end_time),
            status=self.status,
        )


class BusinessRecord(RecordModel):
    id: str
    name: str = Field(default="", alias="businessName")
    capacity_mode: CapacityMode = Field(default=CapacityMode.SINGLE, alias="capacityMode")
    default_capacity: Optional[int] = Field(default=1, ge=0, alias="defaultCapacity")
    default_slot_interval: int = Field(default=15, gt=0, alias="defaultSlotInterval")
    timezone: str = DEFAULT_TIMEZONE
    settings: BookingSettingsRecord = Field(default_factory=BookingSettingsRecord)
    schedule: ScheduleLayerRecord = Field(default_factory=ScheduleLayerRecord)
    services: List[ServiceRecord] = Field(default_factory=list)
    employees: List[EmployeeRecord] = Field(default_factory=list)
    appointments: List[AppointmentRecord] = Field(default_factory=list)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: Optional[str]) -> str:
        """Empty timezones fall back to the default; others must be valid IANA names."""
        if not value:
            return DEFAULT_TIMEZONE
        try:
            pendulum.timezone(value)
        except Exception as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    def to_domain(self) -> Business:
        return Business(
            id=self.id,
            name=self.name,
            capacity_mode=self.capacity_mode,
            default_capacity=self.default_capacity,
            default_slot_interval=self.default_slot_interval,
            timezone=self.timezone,
            settings=self.settings.to_domain(),
        )


class ScheduleFile(RecordModel):
    """Root of a schedule fixture file."""
    businesses: List[BusinessRecord] = Field(default_factory=list)

    @field_validator("businesses")
    @classmethod
    def validate_unique_ids(cls, value: List[BusinessRecord]) -> List[BusinessRecord]:
        """Ensure business ids are unique."""
        seen: set[str] = set()
        for business in value:
            if business.id in seen:
                raise ValueError(f"Duplicate business id detected: {business.id}")
            seen.add(business.id)
        return value
