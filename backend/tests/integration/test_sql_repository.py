"""
Integration tests for SqlStorage on in-memory SQLite.
"""

from decimal import Decimal

import pytest

from clinic.core.exceptions import InsufficientStockError
from clinic.services.inventory_service import InventoryService


def test_create_and_read_back(sql_storage):
    supplier = sql_storage.suppliers.create({"name": "Acme", "rating": 4})

    fetched = sql_storage.suppliers.get_by_id(supplier.id)

    assert fetched.name == "Acme"
    assert fetched.rating == 4
    assert fetched.created_at.tzinfo is not None
    assert len(supplier.id) == 36


def test_update_is_partial_and_refreshes_updated_at(sql_storage):
    supplier = sql_storage.suppliers.create({"name": "Acme", "phone": "0100"})

    updated = sql_storage.suppliers.update(supplier.id, {"rating": 5})

    assert updated.phone == "0100"
    assert updated.rating == 5
    assert updated.updated_at >= supplier.updated_at
    assert sql_storage.suppliers.update("missing", {"rating": 1}) is None


def test_delete_and_delete_where(sql_storage):
    a = sql_storage.suppliers.create({"name": "A"})
    sql_storage.suppliers.create({"name": "B", "active": False})
    sql_storage.suppliers.create({"name": "C", "active": False})

    assert sql_storage.suppliers.delete(a.id) is True
    assert sql_storage.suppliers.delete(a.id) is False
    assert sql_storage.suppliers.delete_where(active=False) == 2
    assert sql_storage.suppliers.list_all() == []


def test_compare_and_set_quantity(sql_storage):
    item = sql_storage.inventory.create({"name": "Gloves", "category": "consumable", "quantity": 5})

    assert sql_storage.inventory.compare_and_set_quantity(item.id, 0, 8) is True
    assert sql_storage.inventory.compare_and_set_quantity(item.id, 0, 9) is False

    stored = sql_storage.inventory.get_by_id(item.id)
    assert stored.quantity == 8
    assert stored.lock_version == 1


def test_atomic_rolls_back(sql_storage):
    with pytest.raises(RuntimeError):
        with sql_storage.atomic():
            sql_storage.suppliers.create({"name": "Doomed"})
            raise RuntimeError("boom")

    assert sql_storage.suppliers.list_all() == []


def test_stock_ledger_against_database(sql_storage):
    service = InventoryService(sql_storage)
    item = service.create_item(
        {
            "name": "Needles",
            "category": "consumable",
            "quantity": 15,
            "min_stock_level": 5,
            "unit_cost": Decimal("0.40"),
        }
    )

    service.record_movement(item.id, "out", 11, reason="treatment")
    with pytest.raises(InsufficientStockError):
        service.record_movement(item.id, "out", 20)

    stored = service.get_item(item.id)
    assert stored.quantity == 4
    assert stored.lock_version == 1
    movements = service.list_movements(item.id)
    assert [m.new_quantity for m in movements] == [4, 15]
    (alert,) = sql_storage.alerts.list_all(inventory_id=item.id)
    assert alert.severity == "high"
