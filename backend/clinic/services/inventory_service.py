"""
Inventory service: items and the stock ledger.

Every quantity change goes through _apply_delta, which writes the new
quantity with a compare-and-swap on the item's lock_version, appends the
immutable movement row and evaluates the low-stock rule in one atomic block.
A lost race is retried once before giving up with ConcurrencyConflictError.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from clinic.core.exceptions import (
    ConcurrencyConflictError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from clinic.core.interfaces.repository_interface import StorageInterface
from clinic.domain.entities import (
    INBOUND_MOVEMENT_TYPES,
    MOVEMENT_TYPES,
    InventoryItem,
    StockMovement,
)
from clinic.services.alert_rules import evaluate_stock_level
from clinic.services.derived_status import inventory_summary, is_expired, is_low_stock
from clinic.utils.time_utils import utcnow

logger = logging.getLogger(__name__)

MAX_CAS_ATTEMPTS = 2


class InventoryService:
    def __init__(self, storage: StorageInterface):
        self.storage = storage

    # ------------------- items -------------------

    def create_item(
        self, data: Dict[str, Any], actor_id: Optional[str] = None
    ) -> InventoryItem:
        """Create an item; a positive opening quantity gets an 'in' ledger row."""
        quantity = data.get("quantity") or 0
        with self.storage.atomic():
            item = self.storage.inventory.create({**data, "quantity": quantity})
            if quantity > 0:
                unit_cost = data.get("unit_cost")
                self.storage.stock_movements.create(
                    {
                        "inventory_id": item.id,
                        "movement_type": "in",
                        "quantity": quantity,
                        "previous_quantity": 0,
                        "new_quantity": quantity,
                        "reason": "initial_stock",
                        "user_id": actor_id,
                        "cost": unit_cost * quantity if unit_cost is not None else None,
                        "notes": "Initial stock entry",
                    }
                )

        logger.info(
            "Inventory item created",
            extra={
                "context": {
                    "inventory_id": item.id,
                    "quantity": quantity,
                    "actor_id": actor_id,
                }
            },
        )
        return item

    def get_item(self, item_id: str) -> InventoryItem:
        item = self.storage.inventory.get_by_id(item_id)
        if item is None:
            raise NotFoundError("Inventory item", item_id)
        return item

    def get_item_with_history(
        self, item_id: str
    ) -> Tuple[InventoryItem, List[StockMovement]]:
        item = self.get_item(item_id)
        return item, self.storage.stock_movements.list_all(inventory_id=item_id)

    def list_items(
        self,
        category: Optional[str] = None,
        location: Optional[str] = None,
        low_stock: bool = False,
        expired: bool = False,
        now: Optional[datetime] = None,
    ) -> List[InventoryItem]:
        """All items matching every supplied filter ('all' means no filter)."""
        now = now or utcnow()
        items = self.storage.inventory.list_all()
        if category and category != "all":
            items = [i for i in items if i.category == category]
        if location and location != "all":
            items = [i for i in items if i.location == location]
        if low_stock:
            items = [i for i in items if is_low_stock(i)]
        if expired:
            items = [i for i in items if is_expired(i, now)]
        return items

    def update_item(
        self,
        item_id: str,
        changes: Dict[str, Any],
        actor_id: Optional[str] = None,
    ) -> InventoryItem:
        """Partial update. A changed quantity is booked as an adjustment."""
        changes = dict(changes)
        target_quantity = changes.pop("quantity", None)
        adjustment_note = changes.pop("adjustment_note", None)

        with self.storage.atomic():
            item = self.storage.inventory.update(item_id, changes)
            if item is None:
                raise NotFoundError("Inventory item", item_id)

            if target_quantity is not None and target_quantity != item.quantity:
                delta = target_quantity - item.quantity
                self._apply_delta(
                    item_id,
                    movement_type="adjustment",
                    quantity=abs(delta),
                    delta=delta,
                    reason="manual_adjustment",
                    notes=adjustment_note or "Manual quantity adjustment",
                    actor_id=actor_id,
                )

        logger.info(
            "Inventory item updated",
            extra={
                "context": {
                    "inventory_id": item_id,
                    "fields": sorted(changes),
                    "quantity": target_quantity,
                    "actor_id": actor_id,
                }
            },
        )
        return self.get_item(item_id)

    def delete_item(self, item_id: str) -> None:
        """Delete an item and its ledger. Alerts stay, detached from the item."""
        with self.storage.atomic():
            if self.storage.inventory.get_by_id(item_id) is None:
                raise NotFoundError("Inventory item", item_id)
            removed = self.storage.stock_movements.delete_where(inventory_id=item_id)
            self.storage.alerts.update_where(
                {"inventory_id": None}, inventory_id=item_id
            )
            self.storage.inventory.delete(item_id)

        logger.info(
            "Inventory item deleted",
            extra={"context": {"inventory_id": item_id, "movements_removed": removed}},
        )

    def summary(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        return inventory_summary(self.storage.inventory.list_all(), now or utcnow())

    # ------------------- stock ledger -------------------

    def list_movements(self, item_id: str) -> List[StockMovement]:
        self.get_item(item_id)
        return self.storage.stock_movements.list_all(inventory_id=item_id)

    def record_movement(
        self,
        item_id: str,
        movement_type: str,
        quantity: int,
        reason: Optional[str] = None,
        reference: Optional[str] = None,
        notes: Optional[str] = None,
        cost: Optional[Decimal] = None,
        actor_id: Optional[str] = None,
    ) -> StockMovement:
        """Record a stock movement. 'in' adds, every other type subtracts."""
        if movement_type not in MOVEMENT_TYPES:
            raise ValidationError(
                "Invalid stock movement",
                {"movementType": f"must be one of: {', '.join(MOVEMENT_TYPES)}"},
            )
        if quantity is None or quantity <= 0:
            raise ValidationError(
                "Invalid stock movement", {"quantity": "must be greater than 0"}
            )

        delta = quantity if movement_type in INBOUND_MOVEMENT_TYPES else -quantity
        return self._apply_delta(
            item_id,
            movement_type=movement_type,
            quantity=quantity,
            delta=delta,
            reason=reason,
            reference=reference,
            notes=notes,
            cost=cost,
            actor_id=actor_id,
        )

    def _apply_delta(
        self,
        item_id: str,
        movement_type: str,
        quantity: int,
        delta: int,
        reason: Optional[str] = None,
        reference: Optional[str] = None,
        notes: Optional[str] = None,
        cost: Optional[Decimal] = None,
        actor_id: Optional[str] = None,
    ) -> StockMovement:
        for attempt in range(1, MAX_CAS_ATTEMPTS + 1):
            item = self.get_item(item_id)
            previous_quantity = item.quantity
            new_quantity = previous_quantity + delta

            if new_quantity < 0:
                logger.warning(
                    "Stock movement rejected: insufficient stock",
                    extra={
                        "context": {
                            "inventory_id": item_id,
                            "available": previous_quantity,
                            "requested": quantity,
                            "movement_type": movement_type,
                        }
                    },
                )
                raise InsufficientStockError(item.name, previous_quantity, quantity)

            movement = None
            with self.storage.atomic():
                if self.storage.inventory.compare_and_set_quantity(
                    item_id, item.lock_version, new_quantity
                ):
                    movement = self.storage.stock_movements.create(
                        {
                            "inventory_id": item_id,
                            "movement_type": movement_type,
                            "quantity": quantity,
                            "previous_quantity": previous_quantity,
                            "new_quantity": new_quantity,
                            "reason": reason,
                            "reference": reference,
                            "user_id": actor_id,
                            "cost": cost,
                            "notes": notes,
                        }
                    )
                    alert_data = evaluate_stock_level(item, new_quantity)
                    if alert_data:
                        self.storage.alerts.create(alert_data)

            if movement is not None:
                logger.info(
                    "Stock movement recorded",
                    extra={
                        "context": {
                            "inventory_id": item_id,
                            "movement_id": movement.id,
                            "movement_type": movement_type,
                            "previous_quantity": previous_quantity,
                            "new_quantity": new_quantity,
                            "actor_id": actor_id,
                        }
                    },
                )
                return movement

            logger.warning(
                "Concurrent stock update detected",
                extra={"context": {"inventory_id": item_id, "attempt": attempt}},
            )

        raise ConcurrencyConflictError(
            f"Inventory item {item_id} was modified concurrently, please retry"
        )
