"""
Field-level validation shared by the shipment, address and product validators.

validate_field interprets one RuleDescriptor against one raw value;
validate_record runs a whole rule table over a caller record and builds the
normalized record sent to the broker (absent optional fields are omitted).
"""

import re
from typing import Any, Callable, Mapping

from shared.errors import FailureKind, RuleTableError, ShipmentValidationError
from shared.limits import ServiceLimits, to_number
from shared.rules import FieldKind, RuleDescriptor

_INTEGER_RE = re.compile(r"\d+", re.ASCII)

Refine = Callable[[RuleDescriptor, Any], Any]


def format_number(value: float) -> str:
    """Message rendering: 35.0 -> '35', 9.98 -> '9.98'."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def as_text(raw: Any) -> str:
    if raw is None:
        return ""
    if isinstance(raw, float):
        return format_number(raw)
    return str(raw).strip()


def effective_max_length(rule: RuleDescriptor, limits: ServiceLimits) -> float:
    return limits.field_limit(rule.output_key, rule.default_limit) or 0


def validate_field(
    rule: RuleDescriptor,
    raw: Any,
    limits: ServiceLimits,
    prefix: str = "Field",
    missing_prefix: str | None = None,
) -> str | int | float | None:
    """
    Validate and normalize one field.

    Returns None when the field is empty and optional, the trimmed string for
    STRING fields, int for INTEGER and float for NUMBER.

    Raises:
        ShipmentValidationError: presence, length, type or range violation.
        RuleTableError: the descriptor carries a kind this function cannot handle.
    """
    name = rule.source_key
    value = as_text(raw)
    if not value:
        if rule.required:
            raise ShipmentValidationError(
                FailureKind.MISSING_REQUIRED,
                f"{missing_prefix or prefix} '{name}' cannot be empty.",
                name,
            )
        return None

    if rule.kind == FieldKind.STRING:
        max_length = effective_max_length(rule, limits)
        if max_length > 0 and len(value) > max_length:
            raise ShipmentValidationError(
                FailureKind.TOO_LONG,
                f"{prefix} '{name}' exceeds maximum length of {format_number(max_length)} characters.",
                name,
            )
        return value

    if rule.kind == FieldKind.INTEGER:
        try:
            if not _INTEGER_RE.fullmatch(value):
                raise ValueError(value)
            number: int | float = int(value)
        except ValueError as e:
            raise ShipmentValidationError(
                FailureKind.NOT_INTEGER, f"{prefix} '{name}' must be an integer.", name
            ) from e
    elif rule.kind == FieldKind.NUMBER:
        parsed = to_number(value)
        if parsed is None:
            raise ShipmentValidationError(
                FailureKind.NOT_NUMBER, f"{prefix} '{name}' must be a number.", name
            )
        number = parsed
    else:
        raise RuleTableError(f"Unknown field kind {rule.kind!r} for '{rule.output_key}'")

    if not rule.converted_bounds:
        check_range(rule, number, prefix)
    return number


def check_range(rule: RuleDescriptor, number: float, prefix: str = "Field") -> None:
    name = rule.source_key
    if rule.min is not None and number < rule.min:
        raise ShipmentValidationError(
            FailureKind.OUT_OF_RANGE,
            f"{prefix} '{name}' must be at least {format_number(rule.min)}.",
            name,
        )
    if rule.max is not None and number > rule.max:
        raise ShipmentValidationError(
            FailureKind.OUT_OF_RANGE,
            f"{prefix} '{name}' must be at most {format_number(rule.max)}.",
            name,
        )


def validate_record(
    table: tuple[RuleDescriptor, ...],
    raw: Mapping[str, Any],
    limits: ServiceLimits,
    *,
    prefix: str = "Field",
    missing_prefix: str | None = None,
    refine: Refine | None = None,
) -> dict[str, Any]:
    """Run every rule of a table over raw; stops at the first failure."""
    record: dict[str, Any] = {}
    for rule in table:
        value = validate_field(rule, raw.get(rule.source_key), limits, prefix, missing_prefix)
        if value is None:
            continue
        if refine is not None:
            value = refine(rule, value)
        record[rule.output_key] = value
    return record


def check_supported_country(code: str, limits: ServiceLimits, prefix: str, name: str) -> str:
    """Upper-case code and require it in the service's supported countries."""
    code = code.upper()
    if code not in limits.supported_countries:
        raise ShipmentValidationError(
            FailureKind.UNSUPPORTED_COUNTRY,
            f"{prefix} '{name}' country code '{code}' is not supported for {limits.service} service.",
            name,
        )
    return code


def validate_country(value: str, limits: ServiceLimits, prefix: str, name: str) -> str:
    code = value.upper()
    if len(code) != 2:
        raise ShipmentValidationError(
            FailureKind.INVALID_FORMAT,
            f"{prefix} '{name}' must be a valid 2-letter country code.",
            name,
        )
    return check_supported_country(code, limits, prefix, name)
