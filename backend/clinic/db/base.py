from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from clinic.utils.time_utils import utcnow

from .session import Base


def new_id() -> str:
    return str(uuid.uuid4())


class IdMixin:
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)


class TimestampMixin(IdMixin):
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class CreatedAtMixin(IdMixin):
    """Ledger-style rows only carry a creation timestamp."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


# ------------------- PEOPLE -------------------
class Client(TimestampMixin, Base):
    __tablename__ = "clients"

    owner_id: Mapped[Optional[str]] = mapped_column(String(100), index=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(50))
    date_of_birth: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    medical_history: Mapped[Optional[str]] = mapped_column(Text)
    allergies: Mapped[Optional[str]] = mapped_column(Text)
    current_medications: Mapped[Optional[str]] = mapped_column(Text)
    age_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    consent_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="pending"
    )

    def __repr__(self):
        return f"<Client(id={self.id}, email='{self.email}')>"


class Student(TimestampMixin, Base):
    __tablename__ = "students"

    owner_id: Mapped[Optional[str]] = mapped_column(String(100), index=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(50))
    qualification_level: Mapped[Optional[str]] = mapped_column(String(100))
    prior_experience: Mapped[Optional[str]] = mapped_column(Text)
    cpd_hours: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


# ------------------- CATALOGUE -------------------
class Treatment(TimestampMixin, Base):
    __tablename__ = "treatments"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    duration: Mapped[Optional[int]] = mapped_column(Integer)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    requires_consent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    age_restriction: Mapped[Optional[int]] = mapped_column(Integer, default=18)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class Course(TimestampMixin, Base):
    __tablename__ = "courses"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    level: Mapped[Optional[str]] = mapped_column(String(100))
    duration: Mapped[Optional[int]] = mapped_column(Integer)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    max_students: Mapped[Optional[int]] = mapped_column(Integer)
    ofqual_compliant: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


# ------------------- SCHEDULING & TRAINING -------------------
class Booking(TimestampMixin, Base):
    __tablename__ = "bookings"

    client_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    treatment_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    scheduled_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="scheduled")
    notes: Mapped[Optional[str]] = mapped_column(Text)


class Enrollment(TimestampMixin, Base):
    __tablename__ = "enrollments"

    student_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    course_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    enrollment_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class Assessment(TimestampMixin, Base):
    __tablename__ = "assessments"

    course_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    student_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    assessment_type: Mapped[str] = mapped_column(String(30), nullable=False)
    score: Mapped[Optional[int]] = mapped_column(Integer)
    max_score: Mapped[Optional[int]] = mapped_column(Integer)
    passed: Mapped[Optional[bool]] = mapped_column(Boolean)
    feedback: Mapped[Optional[str]] = mapped_column(Text)
    completed_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))


class Certification(TimestampMixin, Base):
    __tablename__ = "certifications"

    student_id: Mapped[Optional[str]] = mapped_column(String(36), index=True)
    course_id: Mapped[Optional[str]] = mapped_column(String(36), index=True)
    certification_type: Mapped[str] = mapped_column(String(30), nullable=False)
    certificate_number: Mapped[Optional[str]] = mapped_column(String(100))
    issued_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expiry_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    awarding_body: Mapped[Optional[str]] = mapped_column(String(255))
    level: Mapped[Optional[str]] = mapped_column(String(100))
    credits: Mapped[Optional[int]] = mapped_column(Integer)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    digital_signature: Mapped[Optional[str]] = mapped_column(Text)


class Communication(TimestampMixin, Base):
    __tablename__ = "communications"

    sender_id: Mapped[Optional[str]] = mapped_column(String(100), index=True)
    recipient_id: Mapped[Optional[str]] = mapped_column(String(100), index=True)
    type: Mapped[str] = mapped_column(String(30), nullable=False)
    subject: Mapped[Optional[str]] = mapped_column(String(255))
    content: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="sent")
    scheduled_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    sent_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    read_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))


# ------------------- CONSENT -------------------
class ConsentTemplate(TimestampMixin, Base):
    __tablename__ = "consent_templates"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    form_type: Mapped[str] = mapped_column(String(40), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    treatment_id: Mapped[Optional[str]] = mapped_column(String(36), index=True)
    version: Mapped[Optional[str]] = mapped_column(String(20), default="1.0")
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class ConsentForm(TimestampMixin, Base):
    __tablename__ = "consent_forms"

    template_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    client_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    treatment_id: Mapped[Optional[str]] = mapped_column(String(36))
    form_type: Mapped[Optional[str]] = mapped_column(String(40))
    content: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    signed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    signed_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    signature_data: Mapped[Optional[str]] = mapped_column(Text)


# ------------------- INVENTORY -------------------
class InventoryItem(TimestampMixin, Base):
    """Stock-bearing item. `quantity` is only written by the stock ledger."""

    __tablename__ = "inventory_items"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    sku: Mapped[Optional[str]] = mapped_column(String(100), index=True)
    category: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    min_stock_level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_stock_level: Mapped[Optional[int]] = mapped_column(Integer)
    unit_cost: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))
    sell_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))
    supplier: Mapped[Optional[str]] = mapped_column(String(255))
    expiry_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    batch_number: Mapped[Optional[str]] = mapped_column(String(100))
    location: Mapped[Optional[str]] = mapped_column(String(255))
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    # Bumped on every quantity write; used for compare-and-swap
    lock_version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<InventoryItem(id={self.id}, name='{self.name}', quantity={self.quantity})>"


class StockMovement(CreatedAtMixin, Base):
    __tablename__ = "stock_movements"

    inventory_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("inventory_items.id"), nullable=False, index=True
    )
    movement_type: Mapped[str] = mapped_column(String(20), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    previous_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    new_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(String(255))
    reference: Mapped[Optional[str]] = mapped_column(String(255))
    user_id: Mapped[Optional[str]] = mapped_column(String(100))
    cost: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))
    notes: Mapped[Optional[str]] = mapped_column(Text)


# ------------------- EQUIPMENT -------------------
class Equipment(TimestampMixin, Base):
    __tablename__ = "equipment"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    model: Mapped[Optional[str]] = mapped_column(String(255))
    serial_number: Mapped[Optional[str]] = mapped_column(String(100))
    manufacturer: Mapped[Optional[str]] = mapped_column(String(255))
    purchase_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    purchase_cost: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))
    warranty_expiry: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    last_service_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    next_service_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    service_interval: Mapped[Optional[int]] = mapped_column(Integer)
    status: Mapped[str] = mapped_column(
        String(30), nullable=False, default="operational", index=True
    )
    location: Mapped[Optional[str]] = mapped_column(String(255))
    room_id: Mapped[Optional[str]] = mapped_column(String(36))
    maintenance_cost: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0")
    )
    notes: Mapped[Optional[str]] = mapped_column(Text)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class MaintenanceRecord(TimestampMixin, Base):
    __tablename__ = "maintenance_records"

    equipment_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("equipment.id"), nullable=False, index=True
    )
    maintenance_type: Mapped[str] = mapped_column(String(30), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    scheduled_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    completed_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    performed_by: Mapped[Optional[str]] = mapped_column(String(255))
    external_provider: Mapped[Optional[str]] = mapped_column(String(255))
    issues_found: Mapped[Optional[str]] = mapped_column(Text)
    actions_performed: Mapped[Optional[str]] = mapped_column(Text)
    parts_replaced: Mapped[Optional[list]] = mapped_column(JSON)
    attachments: Mapped[Optional[list]] = mapped_column(JSON)
    cost: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))
    next_service_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="scheduled")


class Alert(CreatedAtMixin, Base):
    __tablename__ = "alerts"

    inventory_id: Mapped[Optional[str]] = mapped_column(String(36), index=True)
    equipment_id: Mapped[Optional[str]] = mapped_column(String(36), index=True)
    alert_type: Mapped[str] = mapped_column(String(30), nullable=False, index=True)
    severity: Mapped[str] = mapped_column(String(20), nullable=False, default="medium")
    message: Mapped[str] = mapped_column(Text, nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_dismissed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    action_required: Mapped[Optional[str]] = mapped_column(String(100))


# ------------------- PURCHASING -------------------
class Supplier(TimestampMixin, Base):
    __tablename__ = "suppliers"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_name: Mapped[Optional[str]] = mapped_column(String(255))
    email: Mapped[Optional[str]] = mapped_column(String(255))
    phone: Mapped[Optional[str]] = mapped_column(String(50))
    address: Mapped[Optional[str]] = mapped_column(Text)
    website: Mapped[Optional[str]] = mapped_column(String(255))
    payment_terms: Mapped[Optional[str]] = mapped_column(String(255))
    delivery_time: Mapped[Optional[int]] = mapped_column(Integer)
    minimum_order: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))
    rating: Mapped[Optional[int]] = mapped_column(Integer)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)


class PurchaseOrder(TimestampMixin, Base):
    __tablename__ = "purchase_orders"

    order_number: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    supplier_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft")
    order_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    expected_delivery: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    actual_delivery: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    total_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2))
    notes: Mapped[Optional[str]] = mapped_column(Text)
    created_by: Mapped[Optional[str]] = mapped_column(String(100))


class PurchaseOrderItem(CreatedAtMixin, Base):
    __tablename__ = "purchase_order_items"

    purchase_order_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("purchase_orders.id"), nullable=False, index=True
    )
    inventory_id: Mapped[Optional[str]] = mapped_column(String(36))
    item_name: Mapped[str] = mapped_column(String(255), nullable=False)
    sku: Mapped[Optional[str]] = mapped_column(String(100))
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    received_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    unit_cost: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    total_cost: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)


# ------------------- PAYMENTS -------------------
class Payment(TimestampMixin, Base):
    __tablename__ = "payments"

    client_id: Mapped[Optional[str]] = mapped_column(String(36), index=True)
    student_id: Mapped[Optional[str]] = mapped_column(String(36), index=True)
    booking_id: Mapped[Optional[str]] = mapped_column(String(36))
    enrollment_id: Mapped[Optional[str]] = mapped_column(String(36))
    stripe_payment_intent_id: Mapped[Optional[str]] = mapped_column(
        String(255), unique=True, index=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="gbp")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    age_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
