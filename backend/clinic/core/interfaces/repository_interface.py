"""
Abstract storage contracts.

Services only talk to these interfaces; create_app decides whether the
SQLAlchemy or the in-memory implementation sits behind them.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Any, Dict, Generic, List, Optional, TypeVar

from clinic.domain.entities import InventoryItem

T = TypeVar("T")


class ResourceRepositoryInterface(ABC, Generic[T]):
    """CRUD contract shared by every resource."""

    @abstractmethod
    def create(self, data: Dict[str, Any]) -> T:
        """Persist a new record; id and timestamps are assigned here."""

    @abstractmethod
    def get_by_id(self, record_id: str) -> Optional[T]:
        """Return the record or None. Never raises for a missing id."""

    @abstractmethod
    def list_all(self, **filters: Any) -> List[T]:
        """Return records matching every `attr=value` filter, newest first."""

    @abstractmethod
    def update(self, record_id: str, changes: Dict[str, Any]) -> Optional[T]:
        """Apply only the supplied fields and refresh updated_at.

        Returns None when the record does not exist.
        """

    @abstractmethod
    def delete(self, record_id: str) -> bool:
        """Delete the record. Returns False when it did not exist."""

    @abstractmethod
    def delete_where(self, **filters: Any) -> int:
        """Delete every record matching the filters; returns the count."""

    @abstractmethod
    def update_where(self, changes: Dict[str, Any], **filters: Any) -> int:
        """Apply `changes` to every matching record; returns the count."""


class InventoryRepositoryInterface(ResourceRepositoryInterface[InventoryItem]):
    @abstractmethod
    def compare_and_set_quantity(
        self, item_id: str, expected_version: int, new_quantity: int
    ) -> bool:
        """Write `new_quantity` only if the item is still at `expected_version`.

        Bumps the version on success. Returns False when another writer got
        there first (or the item vanished).
        """


class StorageInterface(ABC):
    """Groups the repositories of one unit of work."""

    clients: ResourceRepositoryInterface
    students: ResourceRepositoryInterface
    treatments: ResourceRepositoryInterface
    courses: ResourceRepositoryInterface
    bookings: ResourceRepositoryInterface
    enrollments: ResourceRepositoryInterface
    assessments: ResourceRepositoryInterface
    certifications: ResourceRepositoryInterface
    communications: ResourceRepositoryInterface
    consent_templates: ResourceRepositoryInterface
    consent_forms: ResourceRepositoryInterface
    inventory: InventoryRepositoryInterface
    stock_movements: ResourceRepositoryInterface
    equipment: ResourceRepositoryInterface
    maintenance: ResourceRepositoryInterface
    alerts: ResourceRepositoryInterface
    suppliers: ResourceRepositoryInterface
    purchase_orders: ResourceRepositoryInterface
    purchase_order_items: ResourceRepositoryInterface
    payments: ResourceRepositoryInterface

    @abstractmethod
    def atomic(self) -> AbstractContextManager:
        """Context manager: every write inside commits together or not at all.

        Nested blocks join the outermost one.
        """

    def close(self) -> None:
        """Release underlying resources (sessions, connections)."""
