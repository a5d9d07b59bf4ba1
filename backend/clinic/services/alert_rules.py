"""
Alerting rules.

Pure functions: they look at a record after a change and return the data for
a new alert, or None. Persisting the alert is the caller's job (inside the
same atomic block as the change that triggered it).
"""

from typing import Any, Dict, Optional

from clinic.domain.entities import Equipment, InventoryItem, MaintenanceRecord


def evaluate_stock_level(
    item: InventoryItem, new_quantity: int
) -> Optional[Dict[str, Any]]:
    """Low-stock alert when the quantity reaches the minimum level.

    Severity is critical at zero, high otherwise.
    """
    if new_quantity > (item.min_stock_level or 0):
        return None

    if new_quantity == 0:
        severity = "critical"
        state = "out of stock"
    else:
        severity = "high"
        state = "running low"

    return {
        "inventory_id": item.id,
        "alert_type": "low_stock",
        "severity": severity,
        "message": f"{item.name} is {state} ({new_quantity} remaining)",
        "action_required": "reorder",
    }


def evaluate_maintenance_scheduled(
    equipment: Equipment, record: MaintenanceRecord
) -> Dict[str, Any]:
    """Every scheduled maintenance raises a maintenance_due alert."""
    return {
        "equipment_id": equipment.id,
        "alert_type": "maintenance_due",
        "severity": "medium",
        "message": (
            f"{equipment.name} has scheduled {record.maintenance_type} maintenance"
        ),
        "action_required": "schedule_maintenance",
    }
