"""
Loads schedule fixture files (JSON or YAML) into an in-memory repository.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict

import yaml
from pydantic import ValidationError

from ..domain.exceptions import InvalidInputError
from ..domain.models import ScheduleSnapshot
from ..domain.time_model import DEFAULT_TIMEZONE
from .in_memory import InMemoryScheduleRepository
from .schemas import BusinessRecord, ScheduleFile

logger = logging.getLogger(__name__)

SAMPLE_SCHEDULE_FILE = Path(__file__).parent / "sample_schedule.yaml"


def build_snapshot(record: BusinessRecord) -> ScheduleSnapshot:
    """Convert a validated business record into a domain snapshot."""
    business = record.to_domain()
    services = {s.id: s.to_domain(business.id) for s in record.services}
    employees = {e.id: e.to_domain(business.id) for e in record.employees}

    for appointment in record.appointments:
        if appointment.service_id not in services:
            logger.warning(
                "Appointment %s references unknown service %s", appointment.id, appointment.service_id
            )
        if appointment.employee_id and appointment.employee_id not in employees:
            logger.warning(
                "Appointment %s references unknown employee %s", appointment.id, appointment.employee_id
            )

    return ScheduleSnapshot(
        business=business,
        services=services,
        employees=employees,
        business_layer=record.schedule.to_domain(),
        employee_layers={e.id: e.schedule.to_domain() for e in record.employees},
        appointments=[a.to_domain(business.id) for a in record.appointments],
    )


def _apply_defaults(data: Dict[str, Any], default_timezone: str, default_slot_interval: int) -> None:
    for business in data.get("businesses") or []:
        if not isinstance(business, dict):
            continue
        if not business.get("timezone"):
            business["timezone"] = default_timezone
        if "defaultSlotInterval" not in business and "default_slot_interval" not in business:
            business["defaultSlotInterval"] = default_slot_interval


def parse_schedule_data(
    data: Dict[str, Any],
    default_timezone: str = DEFAULT_TIMEZONE,
    default_slot_interval: int = 15,
) -> InMemoryScheduleRepository:
    """
    Validate raw fixture data and build a repository from it.

    Businesses without a timezone or slot interval get the given defaults.

    Raises:
        InvalidInputError: If the data does not match the fixture schema
    """
    _apply_defaults(data, default_timezone, default_slot_interval)

    try:
        schedule = ScheduleFile.model_validate(data)
    except ValidationError as exc:
        raise InvalidInputError(f"Invalid schedule data: {exc}") from exc

    return InMemoryScheduleRepository(build_snapshot(record) for record in schedule.businesses)


def load_schedule_file(
    path: Path,
    default_timezone: str = DEFAULT_TIMEZONE,
    default_slot_interval: int = 15,
) -> InMemoryScheduleRepository:
    """
    Load a schedule fixture file.

    Args:
        path: Path to a ``.json``, ``.yaml`` or ``.yml`` file
        default_timezone: Timezone for businesses that don't set one
        default_slot_interval: Slot step for businesses that don't set one

    Returns:
        InMemoryScheduleRepository with one snapshot per business

    Raises:
        FileNotFoundError: If the file doesn't exist
        InvalidInputError: If the file cannot be parsed or validated
    """
    if not path.exists():
        raise FileNotFoundError(f"Schedule file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f) or {}
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise InvalidInputError(f"Invalid schedule file {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise InvalidInputError("Schedule file must contain a mapping at the root level.")

    repository = parse_schedule_data(data, default_timezone, default_slot_interval)
    logger.info("Loaded %d business(es) from %s", len(repository.business_ids), path)
    return repository
