"""
Unit tests for the in-memory storage implementation.
"""

import pytest

from clinic.domain.entities import Supplier
from clinic.repositories.memory_repository import InMemoryRepository


def test_reads_return_copies(memory_storage):
    supplier = memory_storage.suppliers.create({"name": "Acme"})

    fetched = memory_storage.suppliers.get_by_id(supplier.id)
    fetched.name = "Mutated"

    assert memory_storage.suppliers.get_by_id(supplier.id).name == "Acme"


def test_list_all_newest_first_with_filters():
    repo = InMemoryRepository(Supplier)
    first = repo.create({"name": "First", "active": True})
    repo.create({"name": "Inactive", "active": False})
    third = repo.create({"name": "Third", "active": True})

    assert [s.id for s in repo.list_all(active=True)] == [third.id, first.id]


def test_update_ignores_immutable_fields():
    repo = InMemoryRepository(Supplier)
    supplier = repo.create({"name": "Acme"})

    updated = repo.update(supplier.id, {"id": "forged", "created_at": None, "rating": 4})

    assert updated.id == supplier.id
    assert updated.created_at == supplier.created_at
    assert updated.rating == 4


def test_missing_records():
    repo = InMemoryRepository(Supplier)

    assert repo.get_by_id("missing") is None
    assert repo.update("missing", {"name": "x"}) is None
    assert repo.delete("missing") is False


def test_compare_and_set_quantity(memory_storage):
    item = memory_storage.inventory.create({"name": "Gloves", "quantity": 5})

    assert memory_storage.inventory.compare_and_set_quantity(item.id, 0, 7) is True
    assert memory_storage.inventory.compare_and_set_quantity(item.id, 0, 9) is False

    stored = memory_storage.inventory.get_by_id(item.id)
    assert (stored.quantity, stored.lock_version) == (7, 1)


def test_atomic_rolls_back_every_repository(memory_storage):
    with pytest.raises(RuntimeError):
        with memory_storage.atomic():
            memory_storage.suppliers.create({"name": "Acme"})
            with memory_storage.atomic():
                memory_storage.alerts.create({"alert_type": "low_stock", "message": "x"})
            raise RuntimeError("boom")

    assert memory_storage.suppliers.list_all() == []
    assert memory_storage.alerts.list_all() == []


def test_atomic_commits_on_success(memory_storage):
    with memory_storage.atomic():
        memory_storage.suppliers.create({"name": "Acme"})

    assert len(memory_storage.suppliers.list_all()) == 1
