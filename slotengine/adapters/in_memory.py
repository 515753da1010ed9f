"""
In-memory schedule repository.

Holds fully built snapshots per business and serves copies restricted to the
requested date range, so every call sees one consistent view of the data.
"""

from dataclasses import replace
from typing import Dict, Iterable, List

from pendulum import Date

from ..domain.exceptions import NotFoundError
from ..domain.models import Appointment, ScheduleSnapshot


class InMemoryScheduleRepository:
    """
    Repository backed by a dict of snapshots, keyed by business id.

    Satisfies ``ScheduleRepositoryProtocol``; also used by the CLI after a
    fixture file has been loaded.
    """

    def __init__(self, snapshots: Iterable[ScheduleSnapshot] = ()):
        self._snapshots: Dict[str, ScheduleSnapshot] = {
            snapshot.business.id: snapshot for snapshot in snapshots
        }

    @property
    def business_ids(self) -> List[str]:
        return sorted(self._snapshots)

    def get(self, business_id: str) -> ScheduleSnapshot:
        try:
            return self._snapshots[business_id]
        except KeyError:
            raise NotFoundError(f"Business not found: {business_id}") from None

    async def load_snapshot(
        self,
        business_id: str,
        start_date: Date,
        end_date: Date,
    ) -> ScheduleSnapshot:
        snapshot = self.get(business_id)
        appointments = [
            appointment for appointment in snapshot.appointments
            if start_date <= appointment.date <= end_date
        ]
        return replace(
            snapshot,
            services=dict(snapshot.services),
            employees=dict(snapshot.employees),
            employee_layers=dict(snapshot.employee_layers),
            appointments=appointments,
        )

    async def add_appointment(self, appointment: Appointment) -> None:
        """Store a new appointment (the write path after a successful check)."""
        snapshot = self.get(appointment.business_id)
        snapshot.appointments.append(appointment)
