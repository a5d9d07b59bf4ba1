import dataclasses
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional, Type

from sqlalchemy import delete as sql_delete
from sqlalchemy import select
from sqlalchemy import update as sql_update
from sqlalchemy.orm import Session

from clinic.core.interfaces.repository_interface import (
    InventoryRepositoryInterface,
    ResourceRepositoryInterface,
    StorageInterface,
)
from clinic.db import base as models
from clinic.domain import entities
from clinic.utils.time_utils import as_utc, utcnow

logger = logging.getLogger(__name__)

_IMMUTABLE_COLUMNS = ("id", "created_at")


class SqlResourceRepository(ResourceRepositoryInterface):
    """SQLAlchemy-backed repository mapping one model onto one entity."""

    def __init__(self, storage: "SqlStorage", model: Type[Any], entity_cls: Type[Any]):
        self.storage = storage
        self.model = model
        self.entity_cls = entity_cls
        self._columns = set(model.__table__.columns.keys())
        self._entity_fields = [f.name for f in dataclasses.fields(entity_cls)]

    @property
    def db(self) -> Session:
        return self.storage.db

    def create(self, data: Dict[str, Any]) -> Any:
        db_obj = self.model(**self._column_values(data))
        self.db.add(db_obj)
        self.db.flush()
        self.storage.commit_if_idle()
        return self._to_domain(db_obj)

    def get_by_id(self, record_id: str) -> Optional[Any]:
        db_obj = self._load(record_id)
        return self._to_domain(db_obj) if db_obj else None

    def list_all(self, **filters: Any) -> List[Any]:
        stmt = (
            select(self.model)
            .filter_by(**filters)
            .order_by(self.model.created_at.desc())
            .execution_options(populate_existing=True)
        )
        return [self._to_domain(row) for row in self.db.scalars(stmt)]

    def update(self, record_id: str, changes: Dict[str, Any]) -> Optional[Any]:
        db_obj = self._load(record_id)
        if db_obj is None:
            return None
        for key, value in self._column_values(changes).items():
            if key not in _IMMUTABLE_COLUMNS:
                setattr(db_obj, key, value)
        if "updated_at" in self._columns:
            db_obj.updated_at = utcnow()
        self.db.flush()
        self.storage.commit_if_idle()
        return self._to_domain(db_obj)

    def delete(self, record_id: str) -> bool:
        db_obj = self._load(record_id)
        if db_obj is None:
            return False
        self.db.delete(db_obj)
        self.db.flush()
        self.storage.commit_if_idle()
        return True

    def delete_where(self, **filters: Any) -> int:
        stmt = sql_delete(self.model).filter_by(**filters)
        result = self.db.execute(stmt.execution_options(synchronize_session="fetch"))
        self.storage.commit_if_idle()
        return result.rowcount or 0

    def update_where(self, changes: Dict[str, Any], **filters: Any) -> int:
        stmt = (
            sql_update(self.model)
            .filter_by(**filters)
            .values(**self._column_values(changes))
        )
        result = self.db.execute(stmt.execution_options(synchronize_session="fetch"))
        self.storage.commit_if_idle()
        return result.rowcount or 0

    def _load(self, record_id: str) -> Optional[Any]:
        if not record_id:
            return None
        return self.db.get(self.model, record_id, populate_existing=True)

    def _column_values(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return {k: v for k, v in data.items() if k in self._columns}

    def _to_domain(self, db_obj: Any) -> Any:
        values = {}
        for name in self._entity_fields:
            if name not in self._columns:
                continue
            value = getattr(db_obj, name)
            if isinstance(value, datetime):
                value = as_utc(value)
            values[name] = value
        return self.entity_cls(**values)


class SqlInventoryRepository(SqlResourceRepository, InventoryRepositoryInterface):
    def compare_and_set_quantity(
        self, item_id: str, expected_version: int, new_quantity: int
    ) -> bool:
        stmt = (
            sql_update(self.model)
            .where(
                self.model.id == item_id,
                self.model.lock_version == expected_version,
            )
            .values(
                quantity=new_quantity,
                lock_version=expected_version + 1,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        swapped = result.rowcount == 1
        if swapped:
            self.storage.commit_if_idle()
        return swapped


class SqlStorage(StorageInterface):
    """Storage over one SQLAlchemy session (one per request)."""

    def __init__(self, db: Session):
        self.db = db
        self._depth = 0

        def repo(model, entity_cls):
            return SqlResourceRepository(self, model, entity_cls)

        self.clients = repo(models.Client, entities.Client)
        self.students = repo(models.Student, entities.Student)
        self.treatments = repo(models.Treatment, entities.Treatment)
        self.courses = repo(models.Course, entities.Course)
        self.bookings = repo(models.Booking, entities.Booking)
        self.enrollments = repo(models.Enrollment, entities.Enrollment)
        self.assessments = repo(models.Assessment, entities.Assessment)
        self.certifications = repo(models.Certification, entities.Certification)
        self.communications = repo(models.Communication, entities.Communication)
        self.consent_templates = repo(models.ConsentTemplate, entities.ConsentTemplate)
        self.consent_forms = repo(models.ConsentForm, entities.ConsentForm)
        self.inventory = SqlInventoryRepository(
            self, models.InventoryItem, entities.InventoryItem
        )
        self.stock_movements = repo(models.StockMovement, entities.StockMovement)
        self.equipment = repo(models.Equipment, entities.Equipment)
        self.maintenance = repo(models.MaintenanceRecord, entities.MaintenanceRecord)
        self.alerts = repo(models.Alert, entities.Alert)
        self.suppliers = repo(models.Supplier, entities.Supplier)
        self.purchase_orders = repo(models.PurchaseOrder, entities.PurchaseOrder)
        self.purchase_order_items = repo(
            models.PurchaseOrderItem, entities.PurchaseOrderItem
        )
        self.payments = repo(models.Payment, entities.Payment)

    @contextmanager
    def atomic(self) -> Iterator["SqlStorage"]:
        self._depth += 1
        try:
            yield self
        except Exception:
            self._depth -= 1
            if self._depth == 0:
                self.db.rollback()
                logger.debug("Atomic block rolled back")
            raise
        else:
            self._depth -= 1
            if self._depth == 0:
                self.db.commit()

    def commit_if_idle(self) -> None:
        """Commit immediately unless a surrounding atomic block owns the commit."""
        if self._depth == 0:
            self.db.commit()

    def close(self) -> None:
        self.db.close()
