"""
Unit tests for consent form instances and their status transitions.
"""

import pytest

from clinic.core.exceptions import (
    DomainRuleError,
    InvalidStateTransitionError,
    NotFoundError,
)
from clinic.services.consent_service import ConsentService

STAFF = "staff-1"


@pytest.fixture
def service(memory_storage):
    return ConsentService(memory_storage)


@pytest.fixture
def client_record(memory_storage):
    return memory_storage.clients.create(
        {"first_name": "Jo", "last_name": "Bloggs", "email": "jo@example.com", "owner_id": "staff-1"}
    )


@pytest.fixture
def template(memory_storage):
    return memory_storage.consent_templates.create(
        {"name": "Botox consent", "form_type": "treatment", "content": "I consent to..."}
    )


@pytest.fixture
def form(service, template, client_record):
    return service.create_form({"template_id": template.id, "client_id": client_record.id}, STAFF)


def test_form_snapshots_template(service, memory_storage, form, template):
    assert form.status == "pending"
    assert form.signed is False
    assert form.content == "I consent to..."
    assert form.form_type == "treatment"

    memory_storage.consent_templates.update(template.id, {"content": "Rewritten"})

    assert service.get_form(form.id, STAFF).content == "I consent to..."


def test_form_requires_existing_template(service, client_record):
    with pytest.raises(NotFoundError):
        service.create_form({"template_id": "missing", "client_id": client_record.id}, STAFF)


def test_form_requires_existing_client(service, template):
    with pytest.raises(NotFoundError):
        service.create_form({"template_id": template.id, "client_id": "missing"}, STAFF)


def test_sign_marks_form_and_client(service, memory_storage, form, client_record):
    signed = service.sign_form(form.id, "data:image/png;base64,AAAA", STAFF)

    assert signed.status == "signed"
    assert signed.signed is True
    assert signed.signed_date is not None
    assert memory_storage.clients.get_by_id(client_record.id).consent_status == "signed"


def test_signed_form_content_is_frozen(service, form):
    service.sign_form(form.id, "sig", STAFF)

    with pytest.raises(DomainRuleError):
        service.update_form(form.id, {"content": "changed"}, STAFF)

    assert service.get_form(form.id, STAFF).content == "I consent to..."


def test_pending_form_can_be_edited(service, form):
    updated = service.update_form(form.id, {"content": "Amended wording"}, STAFF)

    assert updated.content == "Amended wording"


def test_signed_form_can_expire_and_client_follows(service, memory_storage, form, client_record):
    service.sign_form(form.id, "sig", STAFF)

    expired = service.expire_form(form.id, STAFF)

    assert expired.status == "expired"
    assert memory_storage.clients.get_by_id(client_record.id).consent_status == "expired"


def test_withdrawn_form_is_terminal(service, form):
    service.withdraw_form(form.id, STAFF)

    with pytest.raises(InvalidStateTransitionError):
        service.sign_form(form.id, "sig", STAFF)
    with pytest.raises(InvalidStateTransitionError):
        service.expire_form(form.id, STAFF)


def test_cannot_sign_twice(service, form):
    service.sign_form(form.id, "sig", STAFF)

    with pytest.raises(InvalidStateTransitionError):
        service.sign_form(form.id, "sig again", STAFF)


def test_list_forms_filters(service, form, template, memory_storage):
    other_client = memory_storage.clients.create(
        {"first_name": "Sam", "last_name": "Lee", "email": "sam@example.com", "owner_id": STAFF}
    )
    service.create_form({"template_id": template.id, "client_id": other_client.id}, STAFF)
    service.sign_form(form.id, "sig", STAFF)

    assert [f.id for f in service.list_forms(STAFF, status="signed")] == [form.id]
    assert len(service.list_forms(STAFF, client_id=other_client.id)) == 1
    assert len(service.list_forms(STAFF, client_id="all")) == 2


def test_forms_of_another_actors_client_are_hidden(service, form, template, client_record):
    assert service.list_forms("staff-2") == []
    with pytest.raises(NotFoundError):
        service.get_form(form.id, "staff-2")
    with pytest.raises(NotFoundError):
        service.sign_form(form.id, "sig", "staff-2")
    with pytest.raises(NotFoundError) as exc_info:
        service.create_form({"template_id": template.id, "client_id": client_record.id}, "staff-2")

    assert exc_info.value.resource == "Client"
    assert service.get_form(form.id, STAFF).status == "pending"
