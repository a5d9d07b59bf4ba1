"""
Unit tests for InventoryService: the stock ledger, its invariants and the
compare-and-swap retry, run against InMemoryStorage.
"""

import dataclasses
from decimal import Decimal
from unittest.mock import patch

import pytest

from clinic.core.exceptions import (
    ConcurrencyConflictError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from clinic.services.inventory_service import InventoryService


@pytest.fixture
def service(memory_storage):
    return InventoryService(memory_storage)


@pytest.fixture
def item(service):
    return service.create_item(
        {
            "name": "Hyaluronic filler 1ml",
            "category": "product",
            "quantity": 15,
            "min_stock_level": 5,
            "unit_cost": Decimal("80.00"),
        },
        actor_id="staff-1",
    )


def test_create_item_writes_initial_in_movement(service, item):
    movements = service.list_movements(item.id)

    assert len(movements) == 1
    initial = movements[0]
    assert initial.movement_type == "in"
    assert initial.reason == "initial_stock"
    assert initial.previous_quantity == 0
    assert initial.new_quantity == 15
    assert initial.cost == Decimal("1200.00")
    assert initial.user_id == "staff-1"


def test_create_item_with_zero_quantity_has_empty_ledger(service):
    item = service.create_item({"name": "Cannula", "category": "consumable"})

    assert item.quantity == 0
    assert service.list_movements(item.id) == []


def test_out_movement_to_low_stock_raises_one_high_alert(service, memory_storage, item):
    movement = service.record_movement(item.id, "out", 11, reason="treatment")

    assert movement.previous_quantity == 15
    assert movement.new_quantity == 4
    assert service.get_item(item.id).quantity == 4

    alerts = memory_storage.alerts.list_all(inventory_id=item.id)
    assert len(alerts) == 1
    assert alerts[0].alert_type == "low_stock"
    assert alerts[0].severity == "high"


def test_movement_to_zero_raises_critical_alert(service, memory_storage, item):
    service.record_movement(item.id, "damaged", 15, reason="dropped tray")

    (alert,) = memory_storage.alerts.list_all(inventory_id=item.id)
    assert alert.severity == "critical"


def test_alerts_are_appended_for_every_crossing(service, memory_storage, item):
    service.record_movement(item.id, "out", 11)
    service.record_movement(item.id, "out", 1)

    assert len(memory_storage.alerts.list_all(inventory_id=item.id)) == 2


def test_overdraw_is_rejected_without_side_effects(service, memory_storage, item):
    with pytest.raises(InsufficientStockError) as exc_info:
        service.record_movement(item.id, "out", 20)

    assert exc_info.value.available == 15
    assert exc_info.value.requested == 20
    assert service.get_item(item.id).quantity == 15
    assert len(service.list_movements(item.id)) == 1
    assert memory_storage.alerts.list_all() == []


@pytest.mark.parametrize("quantity", [0, -3])
def test_non_positive_quantity_is_rejected(service, item, quantity):
    with pytest.raises(ValidationError):
        service.record_movement(item.id, "in", quantity)

    assert len(service.list_movements(item.id)) == 1


def test_unknown_movement_type_is_rejected(service, item):
    with pytest.raises(ValidationError) as exc_info:
        service.record_movement(item.id, "teleported", 1)

    assert "movementType" in exc_info.value.errors


def test_movement_on_missing_item_is_not_found(service):
    with pytest.raises(NotFoundError):
        service.record_movement("no-such-item", "in", 1)


def test_quantity_matches_ledger_after_mixed_movements(service, item):
    sequence = [("in", 10), ("out", 7), ("expired", 2), ("in", 4), ("adjustment", 1)]
    for movement_type, quantity in sequence:
        service.record_movement(item.id, movement_type, quantity)

    expected = 15 + 10 - 7 - 2 + 4 - 1
    movements = service.list_movements(item.id)
    assert service.get_item(item.id).quantity == expected
    assert movements[0].new_quantity == expected
    for movement in movements:
        sign = 1 if movement.movement_type == "in" else -1
        assert movement.new_quantity == movement.previous_quantity + sign * movement.quantity


def test_update_routes_quantity_change_through_ledger(service, memory_storage, item):
    updated = service.update_item(
        item.id,
        {"quantity": 3, "location": "Fridge B", "adjustment_note": "stock take"},
        actor_id="staff-2",
    )

    assert updated.quantity == 3
    assert updated.location == "Fridge B"
    latest = service.list_movements(item.id)[0]
    assert latest.movement_type == "adjustment"
    assert latest.reason == "manual_adjustment"
    assert latest.notes == "stock take"
    assert latest.quantity == 12
    assert latest.new_quantity == 3
    assert len(memory_storage.alerts.list_all(inventory_id=item.id)) == 1


def test_update_can_raise_quantity(service, item):
    service.update_item(item.id, {"quantity": 40})

    latest = service.list_movements(item.id)[0]
    assert (latest.previous_quantity, latest.new_quantity, latest.quantity) == (15, 40, 25)


def test_update_leaves_other_fields_untouched(service, item):
    before = service.get_item(item.id)

    after = service.update_item(item.id, {"sku": "HF-1ML"})

    assert after.sku == "HF-1ML"
    for field in ("name", "category", "quantity", "min_stock_level", "unit_cost"):
        assert getattr(after, field) == getattr(before, field)
    assert len(service.list_movements(item.id)) == 1


def test_update_missing_item_is_not_found(service):
    with pytest.raises(NotFoundError):
        service.update_item("missing", {"name": "x"})


def test_delete_removes_ledger_and_detaches_alerts(service, memory_storage, item):
    service.record_movement(item.id, "out", 12)

    service.delete_item(item.id)

    assert memory_storage.inventory.get_by_id(item.id) is None
    assert memory_storage.stock_movements.list_all(inventory_id=item.id) == []
    (alert,) = memory_storage.alerts.list_all()
    assert alert.inventory_id is None


def test_list_filters_are_conjunctive(service):
    service.create_item({"name": "A", "category": "consumable", "quantity": 1, "min_stock_level": 5})
    service.create_item({"name": "B", "category": "consumable", "quantity": 9, "min_stock_level": 5})
    service.create_item({"name": "C", "category": "product", "quantity": 1, "min_stock_level": 5})

    result = service.list_items(category="consumable", low_stock=True)

    assert [i.name for i in result] == ["A"]
    assert len(service.list_items(category="all")) == 3


def test_lost_race_is_retried_once(service, memory_storage, item):
    repo = memory_storage.inventory
    real_cas = repo.compare_and_set_quantity
    calls = []

    def racing_cas(item_id, expected_version, new_quantity):
        calls.append(expected_version)
        if len(calls) == 1:
            # another writer takes 5 units first
            record = repo.records[item_id]
            repo.records[item_id] = dataclasses.replace(
                record, quantity=record.quantity - 5, lock_version=record.lock_version + 1
            )
            return False
        return real_cas(item_id, expected_version, new_quantity)

    with patch.object(repo, "compare_and_set_quantity", side_effect=racing_cas):
        movement = service.record_movement(item.id, "out", 2)

    assert len(calls) == 2
    assert movement.previous_quantity == 10
    assert movement.new_quantity == 8
    assert service.get_item(item.id).quantity == 8


def test_second_lost_race_is_a_conflict(service, memory_storage, item):
    with patch.object(
        memory_storage.inventory, "compare_and_set_quantity", return_value=False
    ) as cas:
        with pytest.raises(ConcurrencyConflictError) as exc_info:
            service.record_movement(item.id, "out", 1)

    assert cas.call_count == 2
    assert exc_info.value.status_code == 409
    assert len(service.list_movements(item.id)) == 1


def test_summary(service, item):
    summary = service.summary()

    assert summary["totalItems"] == 1
    assert summary["totalValue"] == Decimal("1200.00")
