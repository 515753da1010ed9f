"""
Tests for the command line interface.
"""

import json

from typer.testing import CliRunner

from slotengine.cli.app import app

runner = CliRunner()

NOW = "2026-10-30T08:00:00+01:00"


def _invoke(*args: str):
    return runner.invoke(app, [*args, "--sample", "--now", NOW])


class TestSlotsCommand:
    """Tests for `slotengine slots`."""

    def test_json_output(self):
        result = _invoke("slots", "studio-lumen", "haircut", "2026-11-02", "--json")

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload["totalSlots"] == 14
        assert payload["availableSlots"] == 13
        booked = [s["startTime"] for s in payload["slots"] if not s["available"]]
        assert booked == ["10:00"]

    def test_table_output(self):
        result = _invoke("slots", "studio-lumen", "haircut", "2026-11-02")

        assert result.exit_code == 0, result.output
        assert "Working hours" in result.output
        assert "13 of 14 slot(s) available" in result.output

    def test_employee_schedule(self):
        """Ana only works 10:00-14:00 on Tuesdays."""
        result = _invoke("slots", "studio-lumen", "haircut", "2026-11-03", "--employee", "ana", "--json")

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload["workingHours"] == {"start": "10:00", "end": "14:00"}
        assert payload["employee"]["id"] == "ana"

    def test_multiple_capacity(self):
        result = _invoke("slots", "yoga-loft", "vinyasa", "2026-10-31", "--json")

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload["capacityMode"] == "MULTIPLE"
        assert payload["slots"][0]["spotsLeft"] == 20

    def test_unknown_business(self):
        result = _invoke("slots", "nope", "haircut", "2026-11-02")

        assert result.exit_code == 1
        assert "Business not found" in result.output

    def test_invalid_date(self):
        result = _invoke("slots", "studio-lumen", "haircut", "02.11.2026")

        assert result.exit_code == 1
        assert "Invalid date" in result.output


class TestRangeCommand:
    """Tests for `slotengine range`."""

    def test_holiday_in_range(self):
        result = _invoke("range", "studio-lumen", "haircut", "2026-12-24", "2026-12-26", "--json")

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload["totalDays"] == 3
        assert [day["available"] for day in payload["days"]] == [True, False, False]
        assert payload["days"][1]["reason"] == "Holiday"

    def test_range_too_long(self):
        result = _invoke("range", "studio-lumen", "haircut", "2026-11-01", "2026-12-31")

        assert result.exit_code == 1
        assert "cannot exceed" in result.output


class TestCheckCommand:
    """Tests for `slotengine check`."""

    def test_conflict(self):
        result = _invoke("check", "studio-lumen", "haircut", "2026-11-02", "10:00", "--json")

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload["outcome"] == "CONFLICT"
        assert payload["httpStatus"] == 409

    def test_reschedule_into_own_slot(self):
        result = _invoke(
            "check", "studio-lumen", "haircut", "2026-11-02", "10:00", "--reschedule", "apt-1", "--json"
        )

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["outcome"] == "OK"

    def test_free_slot(self):
        result = _invoke("check", "studio-lumen", "haircut", "2026-11-02", "10:30")

        assert result.exit_code == 0, result.output
        assert "can be booked" in result.output


def test_businesses_command():
    result = runner.invoke(app, ["businesses", "--sample"])

    assert result.exit_code == 0, result.output
    assert "Businesses" in result.output


def test_version_command():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert "slotengine" in result.output
