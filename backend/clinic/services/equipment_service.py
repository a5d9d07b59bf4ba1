import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from clinic.core.exceptions import InvalidStateTransitionError, NotFoundError
from clinic.core.interfaces.repository_interface import StorageInterface
from clinic.domain.entities import Equipment, MaintenanceRecord
from clinic.services.alert_rules import evaluate_maintenance_scheduled
from clinic.services.derived_status import equipment_summary, is_maintenance_due
from clinic.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


class EquipmentService:
    """Equipment records and their maintenance lifecycle."""

    def __init__(self, storage: StorageInterface):
        self.storage = storage

    # ------------------- equipment -------------------

    def create_equipment(self, data: Dict[str, Any]) -> Equipment:
        equipment = self.storage.equipment.create(data)
        logger.info(
            "Equipment created",
            extra={"context": {"equipment_id": equipment.id, "name": equipment.name}},
        )
        return equipment

    def get_equipment(self, equipment_id: str) -> Equipment:
        equipment = self.storage.equipment.get_by_id(equipment_id)
        if equipment is None:
            raise NotFoundError("Equipment", equipment_id)
        return equipment

    def get_equipment_with_history(
        self, equipment_id: str
    ) -> Tuple[Equipment, List[MaintenanceRecord]]:
        equipment = self.get_equipment(equipment_id)
        return equipment, self.storage.maintenance.list_all(equipment_id=equipment_id)

    def list_equipment(
        self,
        status: Optional[str] = None,
        location: Optional[str] = None,
        maintenance_due: bool = False,
        now: Optional[datetime] = None,
    ) -> List[Equipment]:
        now = now or utcnow()
        equipment = self.storage.equipment.list_all()
        if status and status != "all":
            equipment = [e for e in equipment if e.status == status]
        if location and location != "all":
            equipment = [e for e in equipment if e.location == location]
        if maintenance_due:
            equipment = [e for e in equipment if is_maintenance_due(e, now)]
        return equipment

    def update_equipment(self, equipment_id: str, changes: Dict[str, Any]) -> Equipment:
        equipment = self.storage.equipment.update(equipment_id, changes)
        if equipment is None:
            raise NotFoundError("Equipment", equipment_id)
        logger.info(
            "Equipment updated",
            extra={
                "context": {"equipment_id": equipment_id, "fields": sorted(changes)}
            },
        )
        return equipment

    def delete_equipment(self, equipment_id: str) -> None:
        """Delete equipment with its maintenance history; alerts are kept."""
        with self.storage.atomic():
            if self.storage.equipment.get_by_id(equipment_id) is None:
                raise NotFoundError("Equipment", equipment_id)
            self.storage.maintenance.delete_where(equipment_id=equipment_id)
            self.storage.alerts.update_where(
                {"equipment_id": None}, equipment_id=equipment_id
            )
            self.storage.equipment.delete(equipment_id)
        logger.info("Equipment deleted", extra={"context": {"equipment_id": equipment_id}})

    def summary(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        return equipment_summary(self.storage.equipment.list_all(), now or utcnow())

    # ------------------- maintenance -------------------

    def list_maintenance(
        self,
        status: Optional[str] = None,
        equipment_id: Optional[str] = None,
        maintenance_type: Optional[str] = None,
    ) -> List[MaintenanceRecord]:
        records = self.storage.maintenance.list_all()
        if status and status != "all":
            records = [r for r in records if r.status == status]
        if equipment_id and equipment_id != "all":
            records = [r for r in records if r.equipment_id == equipment_id]
        if maintenance_type and maintenance_type != "all":
            records = [r for r in records if r.maintenance_type == maintenance_type]
        return records

    def schedule_maintenance(
        self, equipment_id: str, data: Dict[str, Any]
    ) -> MaintenanceRecord:
        """Create a scheduled record and its maintenance_due alert together."""
        with self.storage.atomic():
            equipment = self.get_equipment(equipment_id)
            record = self.storage.maintenance.create(
                {**data, "equipment_id": equipment_id, "status": "scheduled"}
            )
            self.storage.alerts.create(
                evaluate_maintenance_scheduled(equipment, record)
            )

        logger.info(
            "Maintenance scheduled",
            extra={
                "context": {
                    "equipment_id": equipment_id,
                    "maintenance_id": record.id,
                    "maintenance_type": record.maintenance_type,
                }
            },
        )
        return record

    def complete_maintenance(
        self,
        maintenance_id: str,
        completed_date: datetime,
        issues_found: Optional[str] = None,
        actions_performed: Optional[str] = None,
        cost: Optional[Decimal] = None,
        next_service_date: Optional[datetime] = None,
        performed_by: Optional[str] = None,
        parts_replaced: Optional[Any] = None,
        attachments: Optional[Any] = None,
    ) -> MaintenanceRecord:
        """Complete a scheduled record and bring its equipment back into service.

        The next service date is the one supplied, else completion plus the
        equipment's service interval, else left as it was.
        """
        with self.storage.atomic():
            record = self.storage.maintenance.get_by_id(maintenance_id)
            if record is None:
                raise NotFoundError("Maintenance record", maintenance_id)
            if record.status == "completed":
                logger.warning(
                    "Maintenance already completed",
                    extra={"context": {"maintenance_id": maintenance_id}},
                )
                raise InvalidStateTransitionError(
                    "Maintenance record", record.status, "completed"
                )

            equipment = self.get_equipment(record.equipment_id)
            if next_service_date is None and equipment.service_interval:
                next_service_date = completed_date + timedelta(
                    days=equipment.service_interval
                )

            record_changes: Dict[str, Any] = {
                "status": "completed",
                "completed_date": completed_date,
                "issues_found": issues_found,
                "actions_performed": actions_performed,
                "cost": cost,
                "next_service_date": next_service_date,
            }
            for key, value in (
                ("performed_by", performed_by),
                ("parts_replaced", parts_replaced),
                ("attachments", attachments),
            ):
                if value is not None:
                    record_changes[key] = value
            record = self.storage.maintenance.update(maintenance_id, record_changes)

            equipment_changes: Dict[str, Any] = {
                "last_service_date": completed_date,
                "status": "operational",
                "maintenance_cost": (equipment.maintenance_cost or Decimal("0"))
                + (cost or Decimal("0")),
            }
            if next_service_date is not None:
                equipment_changes["next_service_date"] = next_service_date
            self.storage.equipment.update(equipment.id, equipment_changes)

        logger.info(
            "Maintenance completed",
            extra={
                "context": {
                    "maintenance_id": maintenance_id,
                    "equipment_id": record.equipment_id,
                    "cost": cost,
                }
            },
        )
        return record
