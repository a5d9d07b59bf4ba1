"""
Payments through Stripe.

Creating a payment asks the gateway for a PaymentIntent first; the local
Payment row (status pending) is only written once Stripe has answered, so a
provider failure leaves nothing behind. Capture happens client-side with the
returned client secret.
"""

import logging
from abc import ABC, abstractmethod
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional

import stripe

from clinic.core.exceptions import NotFoundError, PaymentProviderError
from clinic.core.interfaces.repository_interface import StorageInterface
from clinic.domain.entities import Payment, PaymentIntentResult
from clinic.services.ownership import is_owned, owned_ids, require_owned

logger = logging.getLogger(__name__)

# attribute -> (repository, label, (owned repository, attribute) or None when owned directly)
REFERENCE_FIELDS = {
    "client_id": ("clients", "Client", None),
    "student_id": ("students", "Student", None),
    "booking_id": ("bookings", "Booking", ("clients", "client_id")),
    "enrollment_id": ("enrollments", "Enrollment", ("students", "student_id")),
}


def to_minor_units(amount: Decimal) -> int:
    """Major currency units to pence/cents, rounding half up."""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PaymentGateway(ABC):
    @abstractmethod
    def create_payment_intent(
        self, amount_minor: int, currency: str, metadata: Dict[str, str]
    ) -> PaymentIntentResult:
        """Create a provider-side intent or raise PaymentProviderError."""


class StripePaymentGateway(PaymentGateway):
    def __init__(self, api_key: str):
        self.api_key = api_key

    def create_payment_intent(
        self, amount_minor: int, currency: str, metadata: Dict[str, str]
    ) -> PaymentIntentResult:
        if not self.api_key:
            raise PaymentProviderError("Payment provider is not configured")
        try:
            intent = stripe.PaymentIntent.create(
                amount=amount_minor,
                currency=currency,
                metadata=metadata,
                automatic_payment_methods={"enabled": True},
                api_key=self.api_key,
            )
        except stripe.StripeError as e:
            logger.error(
                "Stripe PaymentIntent creation failed",
                extra={"context": {"error": str(e), "amount": amount_minor}},
            )
            raise PaymentProviderError(f"Payment provider error: {e}") from e
        return PaymentIntentResult(intent_id=intent.id, client_secret=intent.client_secret)


class PaymentService:
    def __init__(
        self,
        storage: StorageInterface,
        gateway: PaymentGateway,
        default_currency: str = "gbp",
    ):
        self.storage = storage
        self.gateway = gateway
        self.default_currency = default_currency

    def create_payment_intent(
        self, data: Dict[str, Any], actor_id: Optional[str]
    ) -> Dict[str, Any]:
        """Returns {"clientSecret": ..., "paymentId": ...}."""
        self._check_references(data, actor_id)

        amount: Decimal = data["amount"]
        currency = (data.get("currency") or self.default_currency).lower()
        metadata = {
            "clientId": data.get("client_id") or "",
            "studentId": data.get("student_id") or "",
            "bookingId": data.get("booking_id") or "",
            "enrollmentId": data.get("enrollment_id") or "",
        }

        intent = self.gateway.create_payment_intent(
            to_minor_units(amount), currency, metadata
        )
        payment = self.storage.payments.create(
            {
                **{attr: data.get(attr) for attr in REFERENCE_FIELDS},
                "stripe_payment_intent_id": intent.intent_id,
                "amount": amount,
                "currency": currency,
                "status": "pending",
            }
        )
        logger.info(
            "Payment intent created",
            extra={
                "context": {
                    "payment_id": payment.id,
                    "intent_id": intent.intent_id,
                    "amount": str(amount),
                    "currency": currency,
                }
            },
        )
        return {"clientSecret": intent.client_secret, "paymentId": payment.id}

    def list_payments(
        self,
        actor_id: Optional[str],
        client_id: Optional[str] = None,
        student_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[Payment]:
        """Payments belonging to the actor's own clients and students."""
        client_ids = owned_ids(self.storage, "clients", actor_id)
        student_ids = owned_ids(self.storage, "students", actor_id)

        payments = [
            p
            for p in self.storage.payments.list_all()
            if p.client_id in client_ids or p.student_id in student_ids
        ]
        if client_id and client_id != "all":
            payments = [p for p in payments if p.client_id == client_id]
        if student_id and student_id != "all":
            payments = [p for p in payments if p.student_id == student_id]
        if status and status != "all":
            payments = [p for p in payments if p.status == status]
        return payments

    def get_payment(self, payment_id: str, actor_id: Optional[str]) -> Payment:
        payment = self.storage.payments.get_by_id(payment_id)
        if payment is None or not self._visible_to(payment, actor_id):
            raise NotFoundError("Payment", payment_id)
        return payment

    def verify_age(self, payment_id: str, actor_id: Optional[str]) -> Payment:
        self.get_payment(payment_id, actor_id)
        payment = self.storage.payments.update(payment_id, {"age_verified": True})
        logger.info(
            "Payment age verified",
            extra={"context": {"payment_id": payment_id, "actor_id": actor_id}},
        )
        return payment

    def _visible_to(self, payment: Payment, actor_id: Optional[str]) -> bool:
        return is_owned(self.storage, "clients", payment.client_id, actor_id) or is_owned(
            self.storage, "students", payment.student_id, actor_id
        )

    def _check_references(self, data: Dict[str, Any], actor_id: Optional[str]) -> None:
        for attr, (repository, label, owner) in REFERENCE_FIELDS.items():
            ref_id = data.get(attr)
            if not ref_id:
                continue
            if owner is None:
                require_owned(self.storage, repository, ref_id, actor_id)
                continue
            record = getattr(self.storage, repository).get_by_id(ref_id)
            owner_repository, owner_attr = owner
            if record is None or not is_owned(
                self.storage, owner_repository, getattr(record, owner_attr), actor_id
            ):
                raise NotFoundError(label, ref_id)
