"""
Unit tests for PaymentService and the Stripe gateway adapter.
"""

from decimal import Decimal
from unittest.mock import Mock, patch

import pytest
import stripe

from clinic.core.exceptions import NotFoundError, PaymentProviderError
from clinic.services.payment_service import (
    PaymentService,
    StripePaymentGateway,
    to_minor_units,
)

STAFF = "staff-1"


@pytest.fixture
def gateway():
    gateway = Mock()
    gateway.create_payment_intent.return_value = Mock(
        intent_id="pi_123", client_secret="pi_123_secret_xyz"
    )
    return gateway


@pytest.fixture
def service(memory_storage, gateway):
    return PaymentService(memory_storage, gateway, default_currency="gbp")


@pytest.fixture
def client_record(memory_storage):
    return memory_storage.clients.create(
        {"first_name": "Jo", "last_name": "Bloggs", "email": "jo@example.com", "owner_id": "staff-1"}
    )


@pytest.mark.parametrize(
    "amount, minor",
    [(Decimal("150"), 15000), (Decimal("19.99"), 1999), (Decimal("0.005"), 1)],
)
def test_to_minor_units(amount, minor):
    assert to_minor_units(amount) == minor


def test_intent_then_pending_payment(service, gateway, memory_storage, client_record):
    result = service.create_payment_intent(
        {"amount": Decimal("250.00"), "client_id": client_record.id}, STAFF
    )

    gateway.create_payment_intent.assert_called_once_with(
        25000,
        "gbp",
        {"clientId": client_record.id, "studentId": "", "bookingId": "", "enrollmentId": ""},
    )
    assert result["clientSecret"] == "pi_123_secret_xyz"
    payment = memory_storage.payments.get_by_id(result["paymentId"])
    assert payment.status == "pending"
    assert payment.stripe_payment_intent_id == "pi_123"
    assert payment.amount == Decimal("250.00")
    assert payment.age_verified is False


def test_provider_failure_leaves_no_payment(service, gateway, memory_storage):
    gateway.create_payment_intent.side_effect = PaymentProviderError("declined")

    with pytest.raises(PaymentProviderError):
        service.create_payment_intent({"amount": Decimal("10")}, STAFF)

    assert memory_storage.payments.list_all() == []


def test_unknown_reference_is_not_found(service, gateway):
    with pytest.raises(NotFoundError):
        service.create_payment_intent({"amount": Decimal("10"), "booking_id": "missing"}, STAFF)

    gateway.create_payment_intent.assert_not_called()


def test_list_is_scoped_to_actor(service, memory_storage, client_record):
    stranger = memory_storage.clients.create(
        {"first_name": "X", "last_name": "Y", "email": "x@example.com", "owner_id": "staff-2"}
    )
    service.create_payment_intent({"amount": Decimal("10"), "client_id": client_record.id}, STAFF)
    service.create_payment_intent({"amount": Decimal("20"), "client_id": stranger.id}, "staff-2")

    mine = service.list_payments("staff-1")

    assert [p.amount for p in mine] == [Decimal("10")]
    assert service.list_payments("staff-1", status="completed") == []


def test_verify_age(service, client_record):
    result = service.create_payment_intent(
        {"amount": Decimal("10"), "client_id": client_record.id}, STAFF
    )

    payment = service.verify_age(result["paymentId"], STAFF)

    assert payment.age_verified is True
    with pytest.raises(NotFoundError):
        service.verify_age("missing", STAFF)


def test_payments_of_another_actors_client_are_hidden(service, gateway, client_record):
    result = service.create_payment_intent(
        {"amount": Decimal("10"), "client_id": client_record.id}, STAFF
    )

    with pytest.raises(NotFoundError):
        service.get_payment(result["paymentId"], "staff-2")
    with pytest.raises(NotFoundError):
        service.verify_age(result["paymentId"], "staff-2")
    with pytest.raises(NotFoundError):
        service.create_payment_intent(
            {"amount": Decimal("5"), "client_id": client_record.id}, "staff-2"
        )

    assert gateway.create_payment_intent.call_count == 1
    assert service.get_payment(result["paymentId"], STAFF).age_verified is False


def test_stripe_gateway_calls_payment_intent_create():
    intent = Mock(id="pi_live", client_secret="pi_live_secret")
    with patch.object(stripe.PaymentIntent, "create", return_value=intent) as create:
        result = StripePaymentGateway("sk_test_123").create_payment_intent(
            1999, "gbp", {"clientId": "c1"}
        )

    assert result.intent_id == "pi_live"
    assert result.client_secret == "pi_live_secret"
    kwargs = create.call_args.kwargs
    assert kwargs["amount"] == 1999
    assert kwargs["currency"] == "gbp"
    assert kwargs["metadata"] == {"clientId": "c1"}
    assert kwargs["api_key"] == "sk_test_123"


def test_stripe_errors_become_provider_errors():
    with patch.object(
        stripe.PaymentIntent, "create", side_effect=stripe.StripeError("card_declined")
    ):
        with pytest.raises(PaymentProviderError) as exc_info:
            StripePaymentGateway("sk_test_123").create_payment_intent(100, "gbp", {})

    assert exc_info.value.status_code == 502


def test_missing_stripe_key_is_a_provider_error():
    with pytest.raises(PaymentProviderError):
        StripePaymentGateway("").create_payment_intent(100, "gbp", {})
