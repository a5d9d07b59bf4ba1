"""
Read-time derived fields for inventory and equipment.

Pure functions of a record and the request-time clock; nothing here is
stored.
"""

from collections import Counter
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, Iterable

from clinic.domain.entities import Equipment, InventoryItem
from clinic.utils.time_utils import as_utc, days_until

UNKNOWN_LOCATION = "Unknown"


def stock_status(item: InventoryItem) -> str:
    """'out' at zero, 'low' at or under the minimum level, else 'normal'."""
    if item.quantity == 0:
        return "out"
    if item.quantity <= (item.min_stock_level or 0):
        return "low"
    return "normal"


def is_low_stock(item: InventoryItem) -> bool:
    return item.quantity <= (item.min_stock_level or 0)


def is_expired(item: InventoryItem, now: datetime) -> bool:
    return item.expiry_date is not None and as_utc(item.expiry_date) <= as_utc(now)


def inventory_annotations(item: InventoryItem, now: datetime) -> Dict[str, Any]:
    return {
        "stockStatus": stock_status(item),
        "isExpired": is_expired(item, now),
        "daysToExpiry": days_until(item.expiry_date, now),
    }


def is_maintenance_due(equipment: Equipment, now: datetime) -> bool:
    return equipment.next_service_date is not None and as_utc(
        equipment.next_service_date
    ) <= as_utc(now)


def maintenance_status(equipment: Equipment, now: datetime, due_soon_days: int) -> str:
    """'overdue' when past, 'due_soon' within the window, else 'up_to_date'."""
    next_service = as_utc(equipment.next_service_date)
    if next_service is None:
        return "up_to_date"
    now = as_utc(now)
    if next_service < now:
        return "overdue"
    if next_service <= now + timedelta(days=due_soon_days):
        return "due_soon"
    return "up_to_date"


def equipment_annotations(
    equipment: Equipment, now: datetime, due_soon_days: int
) -> Dict[str, Any]:
    return {
        "maintenanceStatus": maintenance_status(equipment, now, due_soon_days),
        "daysToMaintenance": days_until(equipment.next_service_date, now),
    }


def _location_counts(records: Iterable[Any]) -> Dict[str, int]:
    return dict(Counter(r.location or UNKNOWN_LOCATION for r in records))


def inventory_summary(items: Iterable[InventoryItem], now: datetime) -> Dict[str, Any]:
    items = list(items)
    total_value = sum(
        ((item.unit_cost or Decimal("0")) * item.quantity for item in items),
        Decimal("0"),
    )
    return {
        "totalItems": len(items),
        "totalValue": total_value,
        "lowStockItems": sum(1 for item in items if is_low_stock(item)),
        "expiredItems": sum(1 for item in items if is_expired(item, now)),
        "categorySummary": dict(Counter(item.category for item in items)),
        "locationSummary": _location_counts(items),
    }


def equipment_summary(equipment: Iterable[Equipment], now: datetime) -> Dict[str, Any]:
    equipment = list(equipment)
    statuses = Counter(e.status for e in equipment)
    return {
        "totalEquipment": len(equipment),
        "operationalCount": statuses.get("operational", 0),
        "maintenanceRequiredCount": statuses.get("maintenance_required", 0),
        "outOfServiceCount": statuses.get("out_of_service", 0),
        "maintenanceDueCount": sum(1 for e in equipment if is_maintenance_due(e, now)),
        "statusSummary": dict(statuses),
        "locationSummary": _location_counts(equipment),
    }
