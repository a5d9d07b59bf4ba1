import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from clinic.core.exceptions import InvalidStateTransitionError, NotFoundError
from clinic.core.interfaces.repository_interface import StorageInterface
from clinic.domain.entities import PurchaseOrder
from clinic.services.inventory_service import InventoryService
from clinic.utils.time_utils import utcnow

logger = logging.getLogger(__name__)

RECEIVABLE_STATUSES = ("draft", "sent", "confirmed")


def generate_order_number() -> str:
    return f"PO-{int(utcnow().timestamp() * 1000)}"


class PurchasingService:
    """Purchase orders raised against suppliers, and their receipt into stock."""

    def __init__(self, storage: StorageInterface):
        self.storage = storage
        self.inventory = InventoryService(storage)

    def create_order(
        self,
        data: Dict[str, Any],
        items: List[Dict[str, Any]],
        actor_id: Optional[str] = None,
    ) -> PurchaseOrder:
        """Create an order and its line items; totalAmount is their sum."""
        if self.storage.suppliers.get_by_id(data["supplier_id"]) is None:
            raise NotFoundError("Supplier", data["supplier_id"])
        for line in items:
            inventory_id = line.get("inventory_id")
            if inventory_id and self.storage.inventory.get_by_id(inventory_id) is None:
                raise NotFoundError("Inventory item", inventory_id)

        lines = []
        for line in items:
            total_cost = line.get("total_cost")
            if total_cost is None:
                total_cost = line["unit_cost"] * line["quantity"]
            lines.append({**line, "total_cost": total_cost, "received_quantity": 0})

        with self.storage.atomic():
            order = self.storage.purchase_orders.create(
                {
                    **data,
                    "order_number": generate_order_number(),
                    "order_date": data.get("order_date") or utcnow(),
                    "total_amount": sum(
                        (line["total_cost"] for line in lines), Decimal("0")
                    ),
                    "created_by": actor_id,
                }
            )
            for line in lines:
                self.storage.purchase_order_items.create(
                    {**line, "purchase_order_id": order.id}
                )

        logger.info(
            "Purchase order created",
            extra={
                "context": {
                    "purchase_order_id": order.id,
                    "order_number": order.order_number,
                    "supplier_id": order.supplier_id,
                    "items": len(lines),
                    "actor_id": actor_id,
                }
            },
        )
        return self.get_order(order.id)

    def list_orders(
        self, status: Optional[str] = None, supplier_id: Optional[str] = None
    ) -> List[PurchaseOrder]:
        criteria = {}
        if status and status != "all":
            criteria["status"] = status
        if supplier_id and supplier_id != "all":
            criteria["supplier_id"] = supplier_id
        return self.storage.purchase_orders.list_all(**criteria)

    def get_order(self, order_id: str) -> PurchaseOrder:
        order = self.storage.purchase_orders.get_by_id(order_id)
        if order is None:
            raise NotFoundError("Purchase order", order_id)
        # line items in the order they were entered
        order.items = list(
            reversed(self.storage.purchase_order_items.list_all(purchase_order_id=order_id))
        )
        return order

    def receive_order(self, order_id: str, actor_id: Optional[str] = None) -> PurchaseOrder:
        """Book every outstanding line linked to stock as an 'in' movement.

        Lines without an inventory item are marked received but touch no
        stock. The order ends up delivered.
        """
        with self.storage.atomic():
            order = self.get_order(order_id)
            if order.status not in RECEIVABLE_STATUSES:
                logger.warning(
                    "Purchase order receipt rejected",
                    extra={
                        "context": {"purchase_order_id": order_id, "status": order.status}
                    },
                )
                raise InvalidStateTransitionError(
                    "Purchase order", order.status, "delivered"
                )

            for line in order.items:
                outstanding = line.quantity - (line.received_quantity or 0)
                if outstanding <= 0:
                    continue
                if line.inventory_id:
                    self.inventory.record_movement(
                        line.inventory_id,
                        movement_type="in",
                        quantity=outstanding,
                        reason="purchase_order",
                        reference=order.order_number,
                        cost=line.unit_cost * outstanding,
                        actor_id=actor_id,
                    )
                self.storage.purchase_order_items.update(
                    line.id, {"received_quantity": line.quantity}
                )

            self.storage.purchase_orders.update(
                order_id, {"status": "delivered", "actual_delivery": utcnow()}
            )

        logger.info(
            "Purchase order received",
            extra={"context": {"purchase_order_id": order_id, "actor_id": actor_id}},
        )
        return self.get_order(order_id)
