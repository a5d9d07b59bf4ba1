"""
Input rule tables for every resource.

Each table lists the fields a client may send. Server-owned fields (id,
timestamps, lock counters, ledger quantities, owner/actor ids) are never
listed, so they can't be set from a request body.
"""

from decimal import Decimal

from clinic.core.validation import FieldRule, SchemaValidator
from clinic.domain.entities import (
    EQUIPMENT_STATUSES,
    MAINTENANCE_TYPES,
    MOVEMENT_TYPES,
)

ZERO = Decimal("0")

CLIENT_RULES = (
    FieldRule("firstName", required=True, max_length=100),
    FieldRule("lastName", required=True, max_length=100),
    FieldRule("email", required=True),
    FieldRule("phone", max_length=50),
    FieldRule("dateOfBirth", "datetime"),
    FieldRule("medicalHistory", "text"),
    FieldRule("allergies", "text"),
    FieldRule("currentMedications", "text"),
    FieldRule("ageVerified", "boolean", default=False),
    FieldRule(
        "consentStatus",
        "choice",
        choices=("pending", "signed", "expired"),
        default="pending",
    ),
)

STUDENT_RULES = (
    FieldRule("firstName", required=True, max_length=100),
    FieldRule("lastName", required=True, max_length=100),
    FieldRule("email", required=True),
    FieldRule("phone", max_length=50),
    FieldRule("qualificationLevel", max_length=100),
    FieldRule("priorExperience", "text"),
    FieldRule("cpdHours", "integer", min_value=0, default=0),
)

TREATMENT_RULES = (
    FieldRule("name", required=True),
    FieldRule("description", "text"),
    FieldRule("duration", "integer", min_value=1),
    FieldRule("price", "decimal", required=True, min_value=ZERO),
    FieldRule("requiresConsent", "boolean", default=True),
    FieldRule("ageRestriction", "integer", min_value=0, default=18),
    FieldRule("active", "boolean", default=True),
)

COURSE_RULES = (
    FieldRule("name", required=True),
    FieldRule("description", "text"),
    FieldRule("level", max_length=100),
    FieldRule("duration", "integer", min_value=1),
    FieldRule("price", "decimal", required=True, min_value=ZERO),
    FieldRule("maxStudents", "integer", min_value=1),
    FieldRule("ofqualCompliant", "boolean", default=True),
    FieldRule("active", "boolean", default=True),
)

BOOKING_RULES = (
    FieldRule("clientId", "reference", required=True),
    FieldRule("treatmentId", "reference", required=True),
    FieldRule("scheduledDate", "datetime", required=True),
    FieldRule(
        "status",
        "choice",
        choices=("scheduled", "confirmed", "completed", "cancelled"),
        default="scheduled",
    ),
    FieldRule("notes", "text"),
)

ENROLLMENT_RULES = (
    FieldRule("studentId", "reference", required=True),
    FieldRule("courseId", "reference", required=True),
    FieldRule("enrollmentDate", "datetime"),
    FieldRule(
        "status", "choice", choices=("active", "completed", "dropped"), default="active"
    ),
    FieldRule("progress", "integer", min_value=0, max_value=100, default=0),
)

CONSENT_TEMPLATE_RULES = (
    FieldRule("name", required=True),
    FieldRule(
        "formType",
        "choice",
        required=True,
        choices=("treatment", "psychological_screening", "medical_history", "aftercare"),
    ),
    FieldRule("content", "text", required=True),
    FieldRule("treatmentId", "reference"),
    FieldRule("version", max_length=20, default="1.0"),
    FieldRule("active", "boolean", default=True),
)

# Instances copy form type and content from their template.
CONSENT_FORM_RULES = (
    FieldRule("templateId", "reference", required=True),
    FieldRule("clientId", "reference", required=True),
    FieldRule("treatmentId", "reference"),
)

# Only pending forms may be edited.
CONSENT_FORM_UPDATE_RULES = (
    FieldRule("treatmentId", "reference"),
    FieldRule("content", "text"),
)

CONSENT_SIGNATURE_RULES = (FieldRule("signatureData", "text", required=True),)

ASSESSMENT_RULES = (
    FieldRule("courseId", "reference", required=True),
    FieldRule("studentId", "reference", required=True),
    FieldRule(
        "assessmentType",
        "choice",
        required=True,
        choices=("quiz", "practical", "portfolio", "osce"),
    ),
    FieldRule("score", "integer", min_value=0),
    FieldRule("maxScore", "integer", min_value=1),
    FieldRule("passed", "boolean"),
    FieldRule("feedback", "text"),
    FieldRule("completedDate", "datetime"),
)

CERTIFICATION_RULES = (
    FieldRule("studentId", "reference"),
    FieldRule("courseId", "reference"),
    FieldRule(
        "certificationType",
        "choice",
        required=True,
        choices=("completion", "competency", "cpd"),
    ),
    FieldRule("certificateNumber", max_length=100),
    FieldRule("issuedDate", "datetime", required=True),
    FieldRule("expiryDate", "datetime"),
    FieldRule("awardingBody"),
    FieldRule("level", max_length=100),
    FieldRule("credits", "integer", min_value=0),
    FieldRule(
        "status", "choice", choices=("active", "expired", "revoked"), default="active"
    ),
    FieldRule("digitalSignature", "text"),
)

COMMUNICATION_RULES = (
    FieldRule("recipientId", "reference"),
    FieldRule(
        "type",
        "choice",
        required=True,
        choices=("email", "sms", "internal_message", "appointment_reminder"),
    ),
    FieldRule("subject"),
    FieldRule("content", "text", required=True),
    FieldRule(
        "status",
        "choice",
        choices=("sent", "delivered", "read", "failed"),
        default="sent",
    ),
    FieldRule("scheduledDate", "datetime"),
    FieldRule("sentDate", "datetime"),
    FieldRule("readDate", "datetime"),
)

INVENTORY_RULES = (
    FieldRule("name", required=True),
    FieldRule("description", "text"),
    FieldRule("sku", max_length=100),
    FieldRule(
        "category",
        "choice",
        required=True,
        choices=("consumable", "equipment", "product"),
    ),
    FieldRule("quantity", "integer", min_value=0, default=0),
    FieldRule("minStockLevel", "integer", min_value=0, default=0),
    FieldRule("maxStockLevel", "integer", min_value=0),
    FieldRule("unitCost", "decimal", min_value=ZERO),
    FieldRule("sellPrice", "decimal", min_value=ZERO),
    FieldRule("supplier"),
    FieldRule("expiryDate", "datetime"),
    FieldRule("batchNumber", max_length=100),
    FieldRule("location"),
    FieldRule("active", "boolean", default=True),
)

INVENTORY_UPDATE_RULES = INVENTORY_RULES + (FieldRule("adjustmentNote", "text"),)

STOCK_MOVEMENT_RULES = (
    FieldRule("movementType", "choice", required=True, choices=MOVEMENT_TYPES),
    FieldRule("quantity", "integer", required=True),
    FieldRule("reason", required=True),
    FieldRule("reference"),
    FieldRule("notes", "text"),
    FieldRule("cost", "decimal", min_value=ZERO),
)

EQUIPMENT_RULES = (
    FieldRule("name", required=True),
    FieldRule("model"),
    FieldRule("serialNumber", max_length=100),
    FieldRule("manufacturer"),
    FieldRule("purchaseDate", "datetime"),
    FieldRule("purchaseCost", "decimal", min_value=ZERO),
    FieldRule("warrantyExpiry", "datetime"),
    FieldRule("lastServiceDate", "datetime"),
    FieldRule("nextServiceDate", "datetime"),
    FieldRule("serviceInterval", "integer", min_value=1),
    FieldRule("status", "choice", choices=EQUIPMENT_STATUSES, default="operational"),
    FieldRule("location"),
    FieldRule("roomId", "reference"),
    FieldRule("notes", "text"),
    FieldRule("active", "boolean", default=True),
)

MAINTENANCE_SCHEDULE_RULES = (
    FieldRule("maintenanceType", "choice", required=True, choices=MAINTENANCE_TYPES),
    FieldRule("description", "text", required=True),
    FieldRule("scheduledDate", "datetime"),
    FieldRule("performedBy"),
    FieldRule("externalProvider"),
    FieldRule("cost", "decimal", min_value=ZERO),
    FieldRule("nextServiceDate", "datetime"),
    FieldRule("partsReplaced", "json"),
    FieldRule("attachments", "json"),
)

MAINTENANCE_COMPLETION_RULES = (
    FieldRule("completedDate", "datetime", required=True),
    FieldRule("issuesFound", "text"),
    FieldRule("actionsPerformed", "text"),
    FieldRule("performedBy"),
    FieldRule("cost", "decimal", min_value=ZERO),
    FieldRule("nextServiceDate", "datetime"),
    FieldRule("partsReplaced", "json"),
    FieldRule("attachments", "json"),
)

SUPPLIER_RULES = (
    FieldRule("name", required=True),
    FieldRule("contactName"),
    FieldRule("email"),
    FieldRule("phone", max_length=50),
    FieldRule("address", "text"),
    FieldRule("website"),
    FieldRule("paymentTerms"),
    FieldRule("deliveryTime", "integer", min_value=0),
    FieldRule("minimumOrder", "decimal", min_value=ZERO),
    FieldRule("rating", "integer", min_value=1, max_value=5),
    FieldRule("notes", "text"),
    FieldRule("active", "boolean", default=True),
)

PURCHASE_ORDER_RULES = (
    FieldRule("supplierId", "reference", required=True),
    FieldRule(
        "status",
        "choice",
        choices=("draft", "sent", "confirmed", "delivered", "cancelled"),
        default="draft",
    ),
    FieldRule("orderDate", "datetime"),
    FieldRule("expectedDelivery", "datetime"),
    FieldRule("notes", "text"),
)

PURCHASE_ORDER_ITEM_RULES = (
    FieldRule("inventoryId", "reference"),
    FieldRule("itemName", required=True),
    FieldRule("sku", max_length=100),
    FieldRule("quantity", "integer", required=True, min_value=1),
    FieldRule("unitCost", "decimal", required=True, min_value=ZERO),
    FieldRule("totalCost", "decimal", min_value=ZERO),
)

PAYMENT_INTENT_RULES = (
    FieldRule("amount", "decimal", required=True, min_value=Decimal("0.01")),
    FieldRule("currency", max_length=3),
    FieldRule("clientId", "reference"),
    FieldRule("studentId", "reference"),
    FieldRule("bookingId", "reference"),
    FieldRule("enrollmentId", "reference"),
)


client_validator = SchemaValidator("client", CLIENT_RULES)
student_validator = SchemaValidator("student", STUDENT_RULES)
treatment_validator = SchemaValidator("treatment", TREATMENT_RULES)
course_validator = SchemaValidator("course", COURSE_RULES)
booking_validator = SchemaValidator("booking", BOOKING_RULES)
enrollment_validator = SchemaValidator("enrollment", ENROLLMENT_RULES)
consent_template_validator = SchemaValidator("consent template", CONSENT_TEMPLATE_RULES)
consent_form_validator = SchemaValidator("consent form", CONSENT_FORM_RULES)
consent_form_update_validator = SchemaValidator(
    "consent form", CONSENT_FORM_UPDATE_RULES
)
consent_signature_validator = SchemaValidator("signature", CONSENT_SIGNATURE_RULES)
assessment_validator = SchemaValidator("assessment", ASSESSMENT_RULES)
certification_validator = SchemaValidator("certification", CERTIFICATION_RULES)
communication_validator = SchemaValidator("communication", COMMUNICATION_RULES)
inventory_validator = SchemaValidator("inventory item", INVENTORY_RULES)
inventory_update_validator = SchemaValidator("inventory item", INVENTORY_UPDATE_RULES)
stock_movement_validator = SchemaValidator("stock movement", STOCK_MOVEMENT_RULES)
equipment_validator = SchemaValidator("equipment", EQUIPMENT_RULES)
maintenance_schedule_validator = SchemaValidator(
    "maintenance record", MAINTENANCE_SCHEDULE_RULES
)
maintenance_completion_validator = SchemaValidator(
    "maintenance completion", MAINTENANCE_COMPLETION_RULES
)
supplier_validator = SchemaValidator("supplier", SUPPLIER_RULES)
purchase_order_validator = SchemaValidator("purchase order", PURCHASE_ORDER_RULES)
purchase_order_item_validator = SchemaValidator(
    "purchase order item", PURCHASE_ORDER_ITEM_RULES
)
payment_intent_validator = SchemaValidator("payment intent", PAYMENT_INTENT_RULES)
