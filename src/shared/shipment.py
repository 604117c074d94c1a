"""
Shipment-level validation: reference data, customs identifiers, units, dimensions and weight.

Weight and dimensions may be declared in lb/in; they are converted and re-checked
in kg/cm, and the record always carries WeightUnit="kg" and DimUnit="cm". The
declared units are returned as a UnitState so products can be read the same way.
"""

import re
from datetime import datetime
from functools import partial
from typing import Any, Mapping

from shared.errors import FailureKind, ShipmentValidationError
from shared.fields import as_text, check_supported_country, format_number, validate_record
from shared.limits import ServiceLimits, UnitState
from shared.rules import (
    ALLOWED_DIM_UNITS,
    ALLOWED_LABEL_FORMATS,
    ALLOWED_WEIGHT_UNITS,
    CURRENCIES,
    CUSTOMS_DUTY_TYPES,
    DANGEROUS_GOODS_TYPES,
    DEFAULT_DIM_UNIT,
    DEFAULT_DISPLAY_ID_LENGTH,
    DEFAULT_WEIGHT_UNIT,
    INCH_TO_CM,
    LB_TO_KG,
    MAX_SHIPMENT_DIMENSION,
    SHIPMENT_RULES,
    RuleDescriptor,
    rule_for,
)

PREFIX = "Shipment field"
DIMENSION_KEYS = ("Length", "Width", "Height")

NI_VAT_RE = re.compile(r"^XI\d{9}$", re.ASCII)
EORI_RE = re.compile(r"^[A-Z]{2}\S+$")
IOSS_RE = re.compile(r"^IM[A-Z]{2}\d{12}$", re.ASCII)
_WHITESPACE_RE = re.compile(r"\s+")

_CHOICES = {
    "CustomsDuty": CUSTOMS_DUTY_TYPES,
    "DangerousGoods": DANGEROUS_GOODS_TYPES,
    "LabelFormat": ALLOWED_LABEL_FORMATS,
}


def _invalid(name: str, message: str) -> ShipmentValidationError:
    return ShipmentValidationError(FailureKind.INVALID_FORMAT, f"{PREFIX} '{name}' {message}", name)


def _choice(name: str, value: str, normalized: str, allowed: tuple[str, ...]) -> str:
    if normalized not in allowed:
        raise _invalid(name, f"has invalid value '{value}'. Allowed values: {', '.join(allowed)}")
    return normalized


def _compact(value: str) -> str:
    return _WHITESPACE_RE.sub("", value).upper()


def _refine_shipment_field(rule: RuleDescriptor, value: Any, limits: ServiceLimits) -> Any:
    key = rule.output_key
    name = rule.source_key

    if key == "OrderDate":
        try:
            parsed = datetime.strptime(value, "%Y-%m-%d")
        except ValueError:
            parsed = None
        if parsed is None or parsed.strftime("%Y-%m-%d") != value:
            raise _invalid(name, "must be in 'YYYY-MM-DD' format.")
    elif key == "DisplayId":
        max_length = limits.field_limit("DisplayId", DEFAULT_DISPLAY_ID_LENGTH)
        if len(value) > max_length:
            raise ShipmentValidationError(
                FailureKind.TOO_LONG,
                f"{PREFIX} '{name}' exceeds maximum length of {format_number(max_length)} characters.",
                name,
            )
    elif key == "WeightUnit":
        _choice(name, value, value.lower(), ALLOWED_WEIGHT_UNITS)
        return DEFAULT_WEIGHT_UNIT
    elif key == "DimUnit":
        _choice(name, value, value.lower(), ALLOWED_DIM_UNITS)
        return DEFAULT_DIM_UNIT
    elif key == "Currency":
        if value.upper() not in CURRENCIES:
            raise _invalid(name, f"has invalid value '{value}'. Must be a valid ISO 4217 currency code.")
        return value.upper()
    elif key in _CHOICES:
        return _choice(name, value, value.upper(), _CHOICES[key])
    elif key == "NIVat":
        compact = _compact(value)
        if not NI_VAT_RE.match(compact):
            raise _invalid(name, "must be in the format 'XI123456789'.")
        return compact
    elif key == "EuEori":
        compact = _compact(value)
        if not EORI_RE.match(compact):
            raise _invalid(
                name, "must start with a 2-letter country code followed by alphanumeric characters."
            )
        check_supported_country(compact[:2], limits, PREFIX, name)
        return compact
    elif key == "Ioss":
        compact = _compact(value)
        if not IOSS_RE.match(compact):
            raise _invalid(
                name,
                "must be in the format 'IMXX123456789012' where XX is the 2-letter country code.",
            )
        check_supported_country(compact[2:4], limits, PREFIX, name)
        return compact
    return value


def _check_measure(
    rule: RuleDescriptor, value: float, unit: str, upper: float, converted: str
) -> None:
    if value < rule.min or value > upper:
        raise ShipmentValidationError(
            FailureKind.OUT_OF_RANGE,
            f"Shipment {rule.source_key} '{format_number(value)} {unit}'{converted} must be between "
            f"{format_number(rule.min)} {unit} and {format_number(upper)} {unit}.",
            rule.source_key,
        )


def _declared_units(shipment: Mapping[str, Any]) -> UnitState:
    default = UnitState()
    weight_unit = as_text(shipment.get("weight_unit")).lower() or default.weight_unit
    dim_unit = as_text(shipment.get("dim_unit")).lower() or default.dim_unit
    return UnitState(weight_unit=weight_unit, dim_unit=dim_unit)


def validate_shipment(
    shipment: Mapping[str, Any],
    limits: ServiceLimits,
) -> tuple[dict[str, Any], UnitState]:
    """
    Validate the shipment fields of an order.

    Returns:
        (record, units): the normalized shipment record in kg/cm and the units
        the caller declared, to be passed on to validate_products.

    Raises:
        ShipmentValidationError: on the first rule the shipment breaks.
    """
    record = validate_record(
        SHIPMENT_RULES,
        shipment,
        limits,
        prefix=PREFIX,
        refine=partial(_refine_shipment_field, limits=limits),
    )
    units = _declared_units(shipment)

    if "Value" not in record and "ShipmentValue" not in record:
        raise ShipmentValidationError(
            FailureKind.MISSING_VALUE_FIELD,
            "At least one of the shipment fields 'shipment_value' or 'value' must be provided.",
        )

    _normalize_dimensions(record, units)
    _normalize_weight(record, units, limits)
    return record, units


def _normalize_dimensions(record: dict[str, Any], units: UnitState) -> None:
    present = [key for key in DIMENSION_KEYS if key in record]
    if len(present) in (1, 2):
        raise ShipmentValidationError(
            FailureKind.INCOMPLETE_DIMENSIONS,
            "Three dimensions (length, width, height) must be provided together. Or none of them.",
        )
    if not present:
        return

    converted = ""
    if units.dim_unit == "in":
        converted = f" (Dimension converted from {units.dim_unit} to {DEFAULT_DIM_UNIT})"
    for key in DIMENSION_KEYS:
        value = float(record[key])
        if units.dim_unit == "in":
            value = round(value * INCH_TO_CM, 2)
        rule = rule_for(SHIPMENT_RULES, key)
        _check_measure(rule, value, DEFAULT_DIM_UNIT, rule.max, converted)
        record[key] = value

    dimension_sum = round(record["Length"] + 2 * (record["Width"] + record["Height"]), 2)
    if dimension_sum > MAX_SHIPMENT_DIMENSION:
        raise ShipmentValidationError(
            FailureKind.OUT_OF_RANGE,
            f"Sum of shipment dimensions [L + 2 * (W + H)] = '{format_number(dimension_sum)} "
            f"{DEFAULT_DIM_UNIT}'{converted} exceeds maximum allowed of "
            f"{format_number(MAX_SHIPMENT_DIMENSION)} {DEFAULT_DIM_UNIT}.",
        )


def _normalize_weight(record: dict[str, Any], units: UnitState, limits: ServiceLimits) -> None:
    weight = float(record["Weight"])
    converted = ""
    if units.weight_unit == "lb":
        weight = round(weight * LB_TO_KG, 2)
        converted = f" (Weight converted from {units.weight_unit} to {DEFAULT_WEIGHT_UNIT})"
    _check_measure(
        rule_for(SHIPMENT_RULES, "Weight"), weight, DEFAULT_WEIGHT_UNIT, limits.max_weight_kg, converted
    )
    record["Weight"] = weight
