"""
Domain entities - pure business representation, no framework dependencies.

Repositories map ORM rows (or in-memory records) onto these dataclasses;
controllers serialise them with clinic.core.api_utils.to_json.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional

# Movement types that add to stock; everything else subtracts.
INBOUND_MOVEMENT_TYPES = ("in",)
MOVEMENT_TYPES = ("in", "out", "adjustment", "expired", "damaged")

EQUIPMENT_STATUSES = (
    "operational",
    "maintenance_required",
    "out_of_service",
    "retired",
)
MAINTENANCE_TYPES = ("routine", "repair", "calibration", "inspection")
MAINTENANCE_STATUSES = ("scheduled", "completed")

ALERT_TYPES = ("low_stock", "expiring", "maintenance_due", "warranty_expiring")
ALERT_SEVERITIES = ("low", "medium", "high", "critical")


# ===========================
# People
# ===========================


@dataclass
class Client:
    id: Optional[str] = None
    owner_id: Optional[str] = None
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: Optional[str] = None
    date_of_birth: Optional[datetime] = None
    medical_history: Optional[str] = None
    allergies: Optional[str] = None
    current_medications: Optional[str] = None
    age_verified: bool = False
    consent_status: str = "pending"  # pending, signed, expired
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Student:
    id: Optional[str] = None
    owner_id: Optional[str] = None
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: Optional[str] = None
    qualification_level: Optional[str] = None
    prior_experience: Optional[str] = None
    cpd_hours: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ===========================
# Catalogue
# ===========================


@dataclass
class Treatment:
    id: Optional[str] = None
    name: str = ""
    description: Optional[str] = None
    duration: Optional[int] = None  # minutes
    price: Decimal = Decimal("0")
    requires_consent: bool = True
    age_restriction: Optional[int] = 18
    active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Course:
    id: Optional[str] = None
    name: str = ""
    description: Optional[str] = None
    level: Optional[str] = None
    duration: Optional[int] = None  # days
    price: Decimal = Decimal("0")
    max_students: Optional[int] = None
    ofqual_compliant: bool = True
    active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ===========================
# Scheduling and training records
# ===========================


@dataclass
class Booking:
    id: Optional[str] = None
    client_id: str = ""
    treatment_id: str = ""
    scheduled_date: Optional[datetime] = None
    status: str = "scheduled"  # scheduled, confirmed, completed, cancelled
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Enrollment:
    id: Optional[str] = None
    student_id: str = ""
    course_id: str = ""
    enrollment_date: Optional[datetime] = None
    status: str = "active"  # active, completed, dropped
    progress: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Assessment:
    id: Optional[str] = None
    course_id: str = ""
    student_id: str = ""
    assessment_type: str = ""  # quiz, practical, portfolio, osce
    score: Optional[int] = None
    max_score: Optional[int] = None
    passed: Optional[bool] = None
    feedback: Optional[str] = None
    completed_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Certification:
    id: Optional[str] = None
    student_id: Optional[str] = None
    course_id: Optional[str] = None
    certification_type: str = ""  # completion, competency, cpd
    certificate_number: Optional[str] = None
    issued_date: Optional[datetime] = None
    expiry_date: Optional[datetime] = None
    awarding_body: Optional[str] = None
    level: Optional[str] = None
    credits: Optional[int] = None
    status: str = "active"  # active, expired, revoked
    digital_signature: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Communication:
    id: Optional[str] = None
    sender_id: Optional[str] = None
    recipient_id: Optional[str] = None
    type: str = ""  # email, sms, internal_message, appointment_reminder
    subject: Optional[str] = None
    content: str = ""
    status: str = "sent"  # sent, delivered, read, failed
    scheduled_date: Optional[datetime] = None
    sent_date: Optional[datetime] = None
    read_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ===========================
# Consent
# ===========================


@dataclass
class ConsentTemplate:
    id: Optional[str] = None
    name: str = ""
    form_type: str = ""  # treatment, psychological_screening, medical_history, aftercare
    content: str = ""
    treatment_id: Optional[str] = None
    version: Optional[str] = "1.0"
    active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class ConsentForm:
    """A client's instance of a consent template.

    `content` is a snapshot of the template at creation time so later template
    edits never change what the client signed.
    """

    id: Optional[str] = None
    template_id: str = ""
    client_id: str = ""
    treatment_id: Optional[str] = None
    form_type: Optional[str] = None
    content: Optional[str] = None
    status: str = "pending"  # pending, signed, expired, withdrawn
    signed: bool = False
    signed_date: Optional[datetime] = None
    signature_data: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ===========================
# Inventory
# ===========================


@dataclass
class InventoryItem:
    """Quantity-bearing resource. `quantity` only changes through the ledger."""

    id: Optional[str] = None
    name: str = ""
    description: Optional[str] = None
    sku: Optional[str] = None
    category: str = "consumable"  # consumable, equipment, product
    quantity: int = 0
    min_stock_level: int = 0
    max_stock_level: Optional[int] = None
    unit_cost: Optional[Decimal] = None
    sell_price: Optional[Decimal] = None
    supplier: Optional[str] = None
    expiry_date: Optional[datetime] = None
    batch_number: Optional[str] = None
    location: Optional[str] = None
    active: bool = True
    lock_version: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class StockMovement:
    """Immutable ledger row for one quantity change."""

    id: Optional[str] = None
    inventory_id: str = ""
    movement_type: str = "in"
    quantity: int = 0
    previous_quantity: int = 0
    new_quantity: int = 0
    reason: Optional[str] = None
    reference: Optional[str] = None
    user_id: Optional[str] = None
    cost: Optional[Decimal] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


# ===========================
# Equipment
# ===========================


@dataclass
class Equipment:
    """Maintainable resource."""

    id: Optional[str] = None
    name: str = ""
    model: Optional[str] = None
    serial_number: Optional[str] = None
    manufacturer: Optional[str] = None
    purchase_date: Optional[datetime] = None
    purchase_cost: Optional[Decimal] = None
    warranty_expiry: Optional[datetime] = None
    last_service_date: Optional[datetime] = None
    next_service_date: Optional[datetime] = None
    service_interval: Optional[int] = None  # days
    status: str = "operational"
    location: Optional[str] = None
    room_id: Optional[str] = None
    maintenance_cost: Decimal = Decimal("0")
    notes: Optional[str] = None
    active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class MaintenanceRecord:
    id: Optional[str] = None
    equipment_id: str = ""
    maintenance_type: str = "routine"
    description: str = ""
    scheduled_date: Optional[datetime] = None
    completed_date: Optional[datetime] = None
    performed_by: Optional[str] = None
    external_provider: Optional[str] = None
    issues_found: Optional[str] = None
    actions_performed: Optional[str] = None
    parts_replaced: Optional[List[Any]] = None
    attachments: Optional[List[Any]] = None
    cost: Optional[Decimal] = None
    next_service_date: Optional[datetime] = None
    status: str = "scheduled"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class Alert:
    """Append-only notification. Only is_read/is_dismissed ever change."""

    id: Optional[str] = None
    inventory_id: Optional[str] = None
    equipment_id: Optional[str] = None
    alert_type: str = ""
    severity: str = "medium"
    message: str = ""
    is_read: bool = False
    is_dismissed: bool = False
    action_required: Optional[str] = None
    created_at: Optional[datetime] = None


# ===========================
# Purchasing
# ===========================


@dataclass
class Supplier:
    id: Optional[str] = None
    name: str = ""
    contact_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    website: Optional[str] = None
    payment_terms: Optional[str] = None
    delivery_time: Optional[int] = None  # days
    minimum_order: Optional[Decimal] = None
    rating: Optional[int] = None
    notes: Optional[str] = None
    active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class PurchaseOrderItem:
    id: Optional[str] = None
    purchase_order_id: str = ""
    inventory_id: Optional[str] = None
    item_name: str = ""
    sku: Optional[str] = None
    quantity: int = 0
    received_quantity: int = 0
    unit_cost: Decimal = Decimal("0")
    total_cost: Decimal = Decimal("0")
    created_at: Optional[datetime] = None


@dataclass
class PurchaseOrder:
    id: Optional[str] = None
    order_number: str = ""
    supplier_id: str = ""
    status: str = "draft"  # draft, sent, confirmed, delivered, cancelled
    order_date: Optional[datetime] = None
    expected_delivery: Optional[datetime] = None
    actual_delivery: Optional[datetime] = None
    total_amount: Optional[Decimal] = None
    notes: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    items: List[PurchaseOrderItem] = field(default_factory=list)


# ===========================
# Payments
# ===========================


@dataclass
class Payment:
    id: Optional[str] = None
    client_id: Optional[str] = None
    student_id: Optional[str] = None
    booking_id: Optional[str] = None
    enrollment_id: Optional[str] = None
    stripe_payment_intent_id: Optional[str] = None
    amount: Decimal = Decimal("0")
    currency: str = "gbp"
    status: str = "pending"  # pending, completed, failed, refunded
    age_verified: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class PaymentIntentResult:
    """What the payment gateway hands back after creating an intent."""

    intent_id: str
    client_secret: str
