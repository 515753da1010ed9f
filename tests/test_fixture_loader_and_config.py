"""
Tests for schedule fixture loading and configuration.
"""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from slotengine.adapters.fixture_loader import SAMPLE_SCHEDULE_FILE, load_schedule_file, parse_schedule_data
from slotengine.config import EngineConfig
from slotengine.domain.exceptions import InvalidInputError, NotFoundError
from slotengine.domain.models import AppointmentStatus, CapacityMode
from slotengine.domain.time_model import MinuteInterval, parse_date


def _business(**overrides) -> dict:
    business = {
        "id": "biz",
        "schedule": {
            "weeklyRules": [
                {"dayOfWeek": 1, "startTime": "09:00", "endTime": "17:00"},
            ]
        },
        "services": [{"id": "haircut", "duration": 30}],
    }
    business.update(overrides)
    return business


class TestSampleSchedule:
    """The bundled sample must load cleanly."""

    def test_loads_both_businesses(self):
        repository = load_schedule_file(SAMPLE_SCHEDULE_FILE)

        assert repository.business_ids == ["studio-lumen", "yoga-loft"]

    def test_studio_lumen_snapshot(self):
        snapshot = load_schedule_file(SAMPLE_SCHEDULE_FILE).get("studio-lumen")

        assert snapshot.business.capacity_mode == CapacityMode.SINGLE
        assert snapshot.business.settings.allow_employee_booking
        assert snapshot.business.settings.max_advance_booking_days == 60
        assert snapshot.services["coloring"].slot_interval == 60
        assert snapshot.employees["ana"].can_perform("coloring")
        assert snapshot.employee_layers["ana"].is_customized
        assert not snapshot.employee_layers["marko"].is_customized
        assert snapshot.appointments[0].status == AppointmentStatus.CONFIRMED

    def test_times_with_seconds(self):
        snapshot = load_schedule_file(SAMPLE_SCHEDULE_FILE).get("studio-lumen")
        friday = next(r for r in snapshot.business_layer.weekly_rules if r.day_of_week == 5)

        assert friday.hours == MinuteInterval.parse("09:00", "15:00")

    def test_special_date(self):
        snapshot = load_schedule_file(SAMPLE_SCHEDULE_FILE).get("studio-lumen")
        special = snapshot.business_layer.special_date_for(parse_date("2026-12-25"))

        assert special is not None
        assert not special.is_available
        assert special.reason == "Holiday"

    def test_unknown_business(self):
        with pytest.raises(NotFoundError):
            load_schedule_file(SAMPLE_SCHEDULE_FILE).get("nope")


class TestParseScheduleData:
    """Validation of raw schedule data."""

    def test_defaults_are_applied(self):
        repository = parse_schedule_data(
            {"businesses": [_business()]}, default_timezone="UTC", default_slot_interval=20
        )
        business = repository.get("biz").business

        assert business.timezone == "UTC"
        assert business.default_slot_interval == 20
        assert business.settings.min_booking_notice_hours == 2
        assert business.settings.max_appointments_per_day == 0

    def test_snake_case_keys_are_accepted(self):
        data = {
            "businesses": [
                {
                    "id": "biz",
                    "capacity_mode": "MULTIPLE",
                    "default_capacity": 4,
                    "services": [{"id": "class", "duration": 60, "custom_capacity": 2}],
                }
            ]
        }

        snapshot = parse_schedule_data(data).get("biz")

        assert snapshot.business.capacity_mode == CapacityMode.MULTIPLE
        assert snapshot.services["class"].custom_capacity == 2

    def test_closed_rule_with_placeholder_hours_is_dropped(self):
        business = _business(
            schedule={
                "weeklyRules": [
                    {"dayOfWeek": 0, "startTime": "00:00", "endTime": "00:00", "isAvailable": False},
                    {"dayOfWeek": 1, "startTime": "09:00", "endTime": "17:00"},
                ]
            }
        )

        layer = parse_schedule_data({"businesses": [business]}).get("biz").business_layer

        assert [rule.day_of_week for rule in layer.weekly_rules] == [1]

    @pytest.mark.parametrize(
        "rule",
        [
            {"dayOfWeek": 7, "startTime": "09:00", "endTime": "17:00"},
            {"dayOfWeek": 1, "startTime": "17:00", "endTime": "09:00"},
            {"dayOfWeek": 1, "startTime": "9am", "endTime": "17:00"},
            {
                "dayOfWeek": 1,
                "startTime": "09:00",
                "endTime": "17:00",
                "breaks": [{"startTime": "16:30", "endTime": "17:30"}],
            },
        ],
    )
    def test_invalid_weekly_rules(self, rule):
        with pytest.raises(InvalidInputError):
            parse_schedule_data({"businesses": [_business(schedule={"weeklyRules": [rule]})]})

    def test_special_date_needs_both_times(self):
        business = _business(
            schedule={"specialDates": [{"date": "2024-12-24", "isAvailable": True, "startTime": "09:00"}]}
        )

        with pytest.raises(InvalidInputError):
            parse_schedule_data({"businesses": [business]})

    def test_duplicate_special_dates(self):
        business = _business(
            schedule={"specialDates": [{"date": "2024-12-24"}, {"date": "2024-12-24"}]}
        )

        with pytest.raises(InvalidInputError):
            parse_schedule_data({"businesses": [business]})

    @pytest.mark.parametrize("start,end", [("11:00", "10:00"), ("10:00", "10:00")])
    def test_appointment_must_end_after_it_starts(self, start, end):
        """A reversed or empty appointment is malformed input, not a crash."""
        business = _business(
            appointments=[
                {
                    "id": "apt-1",
                    "serviceId": "haircut",
                    "appointmentDate": "2024-11-25",
                    "startTime": start,
                    "endTime": end,
                }
            ]
        )

        with pytest.raises(InvalidInputError):
            parse_schedule_data({"businesses": [business]})

    def test_duplicate_business_ids(self):
        with pytest.raises(InvalidInputError):
            parse_schedule_data({"businesses": [_business(), _business()]})

    def test_unknown_timezone(self):
        with pytest.raises(InvalidInputError):
            parse_schedule_data({"businesses": [_business(timezone="Mars/Olympus")]})


class TestLoadScheduleFile:
    """File handling."""

    def test_json_file(self, tmp_path: Path):
        path = tmp_path / "schedule.json"
        path.write_text(json.dumps({"businesses": [_business()]}), encoding="utf-8")

        repository = load_schedule_file(path)

        assert repository.business_ids == ["biz"]

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_schedule_file(tmp_path / "missing.yaml")

    def test_non_mapping_root(self, tmp_path: Path):
        path = tmp_path / "schedule.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")

        with pytest.raises(InvalidInputError):
            load_schedule_file(path)


class TestEngineConfig:
    """Tests for EngineConfig."""

    def test_defaults(self):
        config = EngineConfig()

        assert config.default_timezone == "Europe/Skopje"
        assert config.max_range_days == 30
        assert config.logging.level == "WARNING"

    def test_load_from_yaml(self, tmp_path: Path):
        config_path = tmp_path / "config.yaml"
        config_path.write_text(
            "data_file: data/schedule.yaml\n"
            "default_timezone: UTC\n"
            "logging:\n"
            "  level: debug\n",
            encoding="utf-8",
        )

        config = EngineConfig.load_from_yaml(config_path)

        assert config.default_timezone == "UTC"
        assert config.logging.level == "DEBUG"
        assert config.resolve_data_file(config_path) == tmp_path / "data" / "schedule.yaml"

    def test_missing_config(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            EngineConfig.load_from_yaml(tmp_path / "config.yaml")

    @pytest.mark.parametrize(
        "values",
        [
            {"default_timezone": "Nowhere/City"},
            {"default_slot_interval": 0},
            {"max_range_days": 400},
            {"logging": {"level": "LOUD"}},
        ],
    )
    def test_invalid_values(self, values):
        with pytest.raises(ValidationError):
            EngineConfig(**values)
