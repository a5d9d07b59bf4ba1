"""
Unit tests for the generic ResourceService (validation, reference checks,
owner scoping) over InMemoryStorage.
"""

import pytest

from clinic.core.exceptions import NotFoundError, ValidationError
from clinic.services.resource_service import RESOURCE_DEFINITIONS, ResourceService


@pytest.fixture
def clients(memory_storage):
    return ResourceService(memory_storage, RESOURCE_DEFINITIONS["clients"])


@pytest.fixture
def bookings(memory_storage):
    return ResourceService(memory_storage, RESOURCE_DEFINITIONS["bookings"])


CLIENT_PAYLOAD = {"firstName": "Ada", "lastName": "Lovelace", "email": "ada@example.com"}


def test_ids_are_unique_and_stable(clients):
    created = [clients.create(CLIENT_PAYLOAD, "staff-1") for _ in range(5)]

    ids = {c.id for c in created}
    assert len(ids) == 5
    for record in created:
        assert clients.get(record.id, "staff-1").id == record.id


def test_create_stamps_owner(clients):
    record = clients.create(CLIENT_PAYLOAD, "staff-1")

    assert record.owner_id == "staff-1"
    assert record.consent_status == "pending"


def test_owner_scoping_hides_other_actors_records(clients):
    record = clients.create(CLIENT_PAYLOAD, "staff-1")
    clients.create({**CLIENT_PAYLOAD, "email": "b@example.com"}, "staff-2")

    assert [c.id for c in clients.list("staff-1")] == [record.id]
    with pytest.raises(NotFoundError):
        clients.get(record.id, "staff-2")
    with pytest.raises(NotFoundError):
        clients.delete(record.id, "staff-2")


def test_update_changes_only_supplied_fields(clients):
    record = clients.create({**CLIENT_PAYLOAD, "phone": "0123"}, "staff-1")

    updated = clients.update(record.id, {"allergies": "latex"}, "staff-1")

    assert updated.allergies == "latex"
    assert updated.phone == "0123"
    assert updated.first_name == "Ada"
    assert updated.created_at == record.created_at
    assert updated.updated_at >= record.updated_at


def test_invalid_payload_reports_fields(clients):
    with pytest.raises(ValidationError) as exc_info:
        clients.create({"firstName": "Ada"}, "staff-1")

    assert set(exc_info.value.errors) == {"lastName", "email"}


def test_booking_references_must_exist(bookings, memory_storage):
    treatment = memory_storage.treatments.create({"name": "Microneedling"})

    with pytest.raises(NotFoundError) as exc_info:
        bookings.create(
            {
                "clientId": "missing",
                "treatmentId": treatment.id,
                "scheduledDate": "2026-05-01T10:00:00Z",
            }
        )

    assert exc_info.value.resource == "Client"
    assert memory_storage.bookings.list_all() == []


def test_list_filters_use_query_names(bookings, memory_storage):
    client_a = memory_storage.clients.create({"first_name": "A"})
    client_b = memory_storage.clients.create({"first_name": "B"})
    treatment = memory_storage.treatments.create({"name": "Peel"})
    for client in (client_a, client_b):
        bookings.create(
            {
                "clientId": client.id,
                "treatmentId": treatment.id,
                "scheduledDate": "2026-05-01T10:00:00Z",
            }
        )

    result = bookings.list(filters={"clientId": client_a.id, "unknownFilter": "x"})

    assert [b.client_id for b in result] == [client_a.id]
    assert len(bookings.list(filters={"clientId": "all"})) == 2


def test_delete_unknown_is_not_found(bookings):
    with pytest.raises(NotFoundError):
        bookings.delete("missing")


def test_bookings_follow_their_clients_owner(bookings, clients, memory_storage):
    treatment = memory_storage.treatments.create({"name": "Peel"})
    mine = clients.create(CLIENT_PAYLOAD, "staff-1")
    payload = {
        "clientId": mine.id,
        "treatmentId": treatment.id,
        "scheduledDate": "2026-05-01T10:00:00Z",
    }
    booking = bookings.create(payload, "staff-1")

    with pytest.raises(NotFoundError) as exc_info:
        bookings.create(payload, "staff-2")
    assert exc_info.value.resource == "Client"
    assert bookings.list("staff-2") == []
    with pytest.raises(NotFoundError):
        bookings.get(booking.id, "staff-2")
    with pytest.raises(NotFoundError):
        bookings.delete(booking.id, "staff-2")
    assert [b.id for b in bookings.list("staff-1")] == [booking.id]
