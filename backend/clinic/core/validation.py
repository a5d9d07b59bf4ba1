"""
Common validation utilities for the clinic API.

Each resource declares a table of FieldRule entries (see
clinic.schemas.resource_schemas); SchemaValidator walks that table, converts
raw JSON values into Python types and collects every failure before raising
a single ValidationError.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from clinic.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

NO_DEFAULT = object()

FIELD_KINDS = (
    "string",
    "text",
    "integer",
    "decimal",
    "boolean",
    "datetime",
    "choice",
    "reference",
    "json",
)

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def camel_to_snake(name: str) -> str:
    return _CAMEL_RE.sub("_", name).lower()


def snake_to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


@dataclass(frozen=True)
class FieldRule:
    """Declarative rule for one input field.

    `name` is the camelCase key used on the wire; the cleaned value is stored
    under the snake_case attribute name.
    """

    name: str
    kind: str = "string"
    required: bool = False
    min_value: Any = None
    max_value: Any = None
    max_length: Optional[int] = None
    choices: Tuple[str, ...] = ()
    default: Any = NO_DEFAULT

    def __post_init__(self):
        if self.kind not in FIELD_KINDS:
            raise ValueError(f"Unknown field kind: {self.kind}")
        if self.kind == "choice" and not self.choices:
            raise ValueError(f"Choice field {self.name} needs choices")

    @property
    def attr(self) -> str:
        return camel_to_snake(self.name)

    @property
    def has_default(self) -> bool:
        return self.default is not NO_DEFAULT


class ValidationResult:
    """Container for validation results."""

    def __init__(self):
        self.errors: Dict[str, str] = {}
        self.is_valid: bool = True
        self.cleaned_data: Dict[str, Any] = {}

    def add_error(self, message: str, field: str):
        """Add validation error (first error per field wins)."""
        self.errors.setdefault(field, message)
        self.is_valid = False
        logger.debug(f"Validation error: {field}: {message}")


class BaseValidator:
    """Base validator with common conversion methods.

    Every validate_* method returns the converted value, or None after
    recording an error on the result.
    """

    @staticmethod
    def is_blank(value: Any) -> bool:
        return value is None or (isinstance(value, str) and value.strip() == "")

    @staticmethod
    def validate_required_field(
        value: Any, field_name: str, result: ValidationResult
    ) -> bool:
        """Validate that a required field is present and not empty."""
        if BaseValidator.is_blank(value):
            result.add_error("is required", field_name)
            return False
        return True

    @staticmethod
    def validate_string(
        value: Any,
        field_name: str,
        result: ValidationResult,
        max_length: Optional[int] = None,
    ) -> Optional[str]:
        if not isinstance(value, str):
            result.add_error("must be a string", field_name)
            return None

        value = value.strip()
        if max_length is not None and len(value) > max_length:
            result.add_error(f"must be at most {max_length} characters", field_name)
            return None
        return value

    @staticmethod
    def validate_integer(
        value: Any,
        field_name: str,
        result: ValidationResult,
        min_value: Optional[int] = None,
        max_value: Optional[int] = None,
    ) -> Optional[int]:
        """Validate and convert integer field."""
        if isinstance(value, bool):
            result.add_error("must be an integer", field_name)
            return None

        if isinstance(value, int):
            int_value = value
        elif isinstance(value, float) and value.is_integer():
            int_value = int(value)
        elif isinstance(value, str) and re.fullmatch(r"\s*-?\d+\s*", value):
            int_value = int(value)
        else:
            result.add_error("must be an integer", field_name)
            return None

        if min_value is not None and int_value < min_value:
            result.add_error(f"must be at least {min_value}", field_name)
            return None

        if max_value is not None and int_value > max_value:
            result.add_error(f"must be at most {max_value}", field_name)
            return None

        return int_value

    @staticmethod
    def validate_decimal(
        value: Any,
        field_name: str,
        result: ValidationResult,
        min_value: Optional[Decimal] = None,
        max_value: Optional[Decimal] = None,
    ) -> Optional[Decimal]:
        """Validate and convert decimal field."""
        if isinstance(value, bool):
            result.add_error("must be a number", field_name)
            return None

        if isinstance(value, Decimal):
            decimal_value = value
        else:
            try:
                if isinstance(value, str):
                    value = value.strip()
                decimal_value = Decimal(str(value))
            except (InvalidOperation, TypeError, ValueError):
                result.add_error("must be a number", field_name)
                return None

        if not decimal_value.is_finite():
            result.add_error("must be a number", field_name)
            return None

        if min_value is not None and decimal_value < Decimal(str(min_value)):
            result.add_error(f"must be at least {min_value}", field_name)
            return None

        if max_value is not None and decimal_value > Decimal(str(max_value)):
            result.add_error(f"must be at most {max_value}", field_name)
            return None

        return decimal_value

    @staticmethod
    def validate_boolean(
        value: Any, field_name: str, result: ValidationResult
    ) -> Optional[bool]:
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in ("true", "false"):
            return value.strip().lower() == "true"
        result.add_error("must be a boolean", field_name)
        return None

    @staticmethod
    def validate_datetime(
        value: Any, field_name: str, result: ValidationResult
    ) -> Optional[datetime]:
        """Accept ISO 8601 strings (date or date-time); naive values are UTC."""
        if isinstance(value, datetime):
            parsed = value
        elif isinstance(value, date):
            parsed = datetime(value.year, value.month, value.day)
        elif isinstance(value, str):
            raw = value.strip()
            if raw.endswith("Z"):
                raw = raw[:-1] + "+00:00"
            try:
                parsed = datetime.fromisoformat(raw)
            except ValueError:
                result.add_error("must be an ISO 8601 date or date-time", field_name)
                return None
        else:
            result.add_error("must be an ISO 8601 date or date-time", field_name)
            return None

        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)

    @staticmethod
    def validate_choice(
        value: Any,
        field_name: str,
        result: ValidationResult,
        choices: Sequence[str],
    ) -> Optional[str]:
        if not isinstance(value, str) or value not in choices:
            result.add_error(f"must be one of: {', '.join(choices)}", field_name)
            return None
        return value

    @staticmethod
    def validate_reference(
        value: Any, field_name: str, result: ValidationResult
    ) -> Optional[str]:
        if not isinstance(value, str) or not value.strip():
            result.add_error("must be an identifier string", field_name)
            return None
        return value.strip()


class SchemaValidator(BaseValidator):
    """Generic validator driven by a table of FieldRule entries."""

    def __init__(self, entity_name: str, rules: Sequence[FieldRule]):
        self.entity_name = entity_name
        self.rules = tuple(rules)

    @property
    def field_names(self) -> Tuple[str, ...]:
        return tuple(rule.name for rule in self.rules)

    def validate(self, data: Any, partial: bool = False) -> Dict[str, Any]:
        """Return cleaned snake_case data or raise ValidationError.

        With partial=True only supplied fields are checked and no defaults
        are filled in. Keys not covered by a rule are ignored.
        """
        if not isinstance(data, Mapping):
            raise ValidationError(
                "Request body must be a JSON object", {"body": "must be an object"}
            )

        result = ValidationResult()
        for rule in self.rules:
            self._apply_rule(rule, data, result, partial)

        if not result.is_valid:
            logger.warning(
                f"Invalid {self.entity_name} data",
                extra={
                    "context": {"entity": self.entity_name, "errors": result.errors}
                },
            )
            raise ValidationError(f"Invalid {self.entity_name} data", result.errors)
        return result.cleaned_data

    def _apply_rule(
        self,
        rule: FieldRule,
        data: Mapping[str, Any],
        result: ValidationResult,
        partial: bool,
    ) -> None:
        supplied = rule.name in data
        value = data.get(rule.name)

        if not supplied:
            if partial:
                return
            if rule.required:
                result.add_error("is required", rule.name)
            elif rule.has_default:
                result.cleaned_data[rule.attr] = rule.default
            return

        if self.is_blank(value):
            if rule.required:
                result.add_error("is required", rule.name)
            elif rule.has_default:
                # Defaulted fields are stored NOT NULL
                result.add_error("may not be null", rule.name)
            else:
                result.cleaned_data[rule.attr] = None
            return

        converted = self._convert(rule, value, result)
        if converted is not None:
            result.cleaned_data[rule.attr] = converted

    def _convert(self, rule: FieldRule, value: Any, result: ValidationResult) -> Any:
        kind = rule.kind
        if kind == "string":
            return self.validate_string(
                value, rule.name, result, max_length=rule.max_length or 255
            )
        if kind == "text":
            return self.validate_string(
                value, rule.name, result, max_length=rule.max_length
            )
        if kind == "integer":
            return self.validate_integer(
                value, rule.name, result, rule.min_value, rule.max_value
            )
        if kind == "decimal":
            return self.validate_decimal(
                value, rule.name, result, rule.min_value, rule.max_value
            )
        if kind == "boolean":
            return self.validate_boolean(value, rule.name, result)
        if kind == "datetime":
            return self.validate_datetime(value, rule.name, result)
        if kind == "choice":
            return self.validate_choice(value, rule.name, result, rule.choices)
        if kind == "reference":
            return self.validate_reference(value, rule.name, result)
        # json
        if not isinstance(value, (dict, list)):
            result.add_error("must be a JSON object or array", rule.name)
            return None
        return value
