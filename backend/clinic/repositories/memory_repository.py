"""
In-memory storage used by unit tests and local demos.

Records live in plain dicts keyed by id. atomic() snapshots every table on
entry and restores the snapshot if the block raises.
"""

import copy
import dataclasses
import uuid
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Type

from clinic.core.interfaces.repository_interface import (
    InventoryRepositoryInterface,
    ResourceRepositoryInterface,
    StorageInterface,
)
from clinic.domain import entities
from clinic.utils.time_utils import utcnow

_IMMUTABLE_FIELDS = ("id", "created_at")


class InMemoryRepository(ResourceRepositoryInterface):
    def __init__(self, entity_cls: Type[Any]):
        self.entity_cls = entity_cls
        self._fields = {f.name for f in dataclasses.fields(entity_cls)}
        self.records: Dict[str, Any] = {}

    def create(self, data: Dict[str, Any]) -> Any:
        values = {k: v for k, v in data.items() if k in self._fields}
        now = utcnow()
        values["id"] = str(uuid.uuid4())
        if "created_at" in self._fields:
            values["created_at"] = now
        if "updated_at" in self._fields:
            values["updated_at"] = now
        record = self.entity_cls(**values)
        self.records[record.id] = record
        return copy.deepcopy(record)

    def get_by_id(self, record_id: str) -> Optional[Any]:
        record = self.records.get(record_id)
        return copy.deepcopy(record) if record else None

    def list_all(self, **filters: Any) -> List[Any]:
        matches = [
            record
            for record in reversed(list(self.records.values()))
            if all(getattr(record, k) == v for k, v in filters.items())
        ]
        # Stable sort keeps newest-inserted first for identical timestamps
        matches.sort(key=lambda r: r.created_at, reverse=True)
        return [copy.deepcopy(r) for r in matches]

    def update(self, record_id: str, changes: Dict[str, Any]) -> Optional[Any]:
        record = self.records.get(record_id)
        if record is None:
            return None
        values = {
            k: v
            for k, v in changes.items()
            if k in self._fields and k not in _IMMUTABLE_FIELDS
        }
        if "updated_at" in self._fields:
            values["updated_at"] = utcnow()
        record = dataclasses.replace(record, **values)
        self.records[record_id] = record
        return copy.deepcopy(record)

    def delete(self, record_id: str) -> bool:
        return self.records.pop(record_id, None) is not None

    def delete_where(self, **filters: Any) -> int:
        doomed = [
            record_id
            for record_id, record in self.records.items()
            if all(getattr(record, k) == v for k, v in filters.items())
        ]
        for record_id in doomed:
            del self.records[record_id]
        return len(doomed)

    def update_where(self, changes: Dict[str, Any], **filters: Any) -> int:
        count = 0
        for record_id, record in list(self.records.items()):
            if all(getattr(record, k) == v for k, v in filters.items()):
                values = {k: v for k, v in changes.items() if k in self._fields}
                self.records[record_id] = dataclasses.replace(record, **values)
                count += 1
        return count


class InMemoryInventoryRepository(InMemoryRepository, InventoryRepositoryInterface):
    def compare_and_set_quantity(
        self, item_id: str, expected_version: int, new_quantity: int
    ) -> bool:
        record = self.records.get(item_id)
        if record is None or record.lock_version != expected_version:
            return False
        self.records[item_id] = dataclasses.replace(
            record,
            quantity=new_quantity,
            lock_version=expected_version + 1,
            updated_at=utcnow(),
        )
        return True


class InMemoryStorage(StorageInterface):
    def __init__(self):
        self.clients = InMemoryRepository(entities.Client)
        self.students = InMemoryRepository(entities.Student)
        self.treatments = InMemoryRepository(entities.Treatment)
        self.courses = InMemoryRepository(entities.Course)
        self.bookings = InMemoryRepository(entities.Booking)
        self.enrollments = InMemoryRepository(entities.Enrollment)
        self.assessments = InMemoryRepository(entities.Assessment)
        self.certifications = InMemoryRepository(entities.Certification)
        self.communications = InMemoryRepository(entities.Communication)
        self.consent_templates = InMemoryRepository(entities.ConsentTemplate)
        self.consent_forms = InMemoryRepository(entities.ConsentForm)
        self.inventory = InMemoryInventoryRepository(entities.InventoryItem)
        self.stock_movements = InMemoryRepository(entities.StockMovement)
        self.equipment = InMemoryRepository(entities.Equipment)
        self.maintenance = InMemoryRepository(entities.MaintenanceRecord)
        self.alerts = InMemoryRepository(entities.Alert)
        self.suppliers = InMemoryRepository(entities.Supplier)
        self.purchase_orders = InMemoryRepository(entities.PurchaseOrder)
        self.purchase_order_items = InMemoryRepository(entities.PurchaseOrderItem)
        self.payments = InMemoryRepository(entities.Payment)
        self._depth = 0

    def _repositories(self) -> List[InMemoryRepository]:
        return [v for v in vars(self).values() if isinstance(v, InMemoryRepository)]

    @contextmanager
    def atomic(self) -> Iterator["InMemoryStorage"]:
        snapshot = None
        if self._depth == 0:
            snapshot = [(repo, dict(repo.records)) for repo in self._repositories()]
        self._depth += 1
        try:
            yield self
        except Exception:
            if snapshot is not None:
                for repo, records in snapshot:
                    repo.records = records
            raise
        finally:
            self._depth -= 1
