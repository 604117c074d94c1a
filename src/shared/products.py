"""Line-item validation and the aggregate caps applied across all products of a shipment."""

from dataclasses import replace
from functools import partial
from typing import Any, Mapping, Sequence

from shared.errors import FailureKind, ShipmentValidationError
from shared.fields import format_number, validate_country, validate_record
from shared.limits import ServiceLimits, UnitState
from shared.rules import (
    DEFAULT_WEIGHT_UNIT,
    LB_TO_KG,
    MAX_PRODUCT_COUNT,
    MAX_VALUE,
    PRODUCT_RULES,
    RuleDescriptor,
)


def product_rules(hs_code_required: bool, limits: ServiceLimits) -> tuple[RuleDescriptor, ...]:
    """Product table with the HS-code requirement and the service's per-item weight cap applied."""
    table = []
    for rule in PRODUCT_RULES:
        if rule.output_key == "HsCode":
            rule = replace(rule, required=hs_code_required)
        elif rule.output_key == "Weight":
            rule = replace(rule, max=limits.field_limit("Weight", rule.max))
        table.append(rule)
    return tuple(table)


def _refine_product_field(rule: RuleDescriptor, value: Any, limits: ServiceLimits, prefix: str) -> Any:
    if rule.output_key == "OriginCountry":
        return validate_country(value, limits, prefix, rule.source_key)
    return value


def validate_products(
    items: Sequence[Mapping[str, Any]],
    consignor_country: str,
    consignee_country: str,
    limits: ServiceLimits,
    units: UnitState | None = None,
) -> list[dict[str, Any]]:
    """
    Validate every line item in order, then the totals across all of them.

    HS codes are mandatory when the shipment crosses a border. Weights are read in
    the unit the shipment declared (units.weight_unit) and emitted in kg.

    Raises:
        ShipmentValidationError: first failing item field, or an exceeded aggregate cap.
    """
    units = units or UnitState()
    if not items:
        raise ShipmentValidationError(FailureKind.EMPTY_LIST, "Products array cannot be empty.")

    hs_code_required = (consignor_country or "").upper() != (consignee_country or "").upper()
    table = product_rules(hs_code_required, limits)

    products: list[dict[str, Any]] = []
    for index, item in enumerate(items):
        prefix = f"Product no. {index}: field"
        record = validate_record(
            table,
            item if isinstance(item, Mapping) else {},
            limits,
            prefix=prefix,
            missing_prefix=f"Product no: {index} field:",
            refine=partial(_refine_product_field, limits=limits, prefix=prefix),
        )
        if units.weight_unit == "lb":
            record["Weight"] = round(record["Weight"] * LB_TO_KG, 2)
        products.append(record)

    _check_totals(products, limits, units)
    return products


def _check_totals(products: list[dict[str, Any]], limits: ServiceLimits, units: UnitState) -> None:
    total_quantity = sum(p["Quantity"] for p in products)
    if total_quantity > MAX_PRODUCT_COUNT:
        raise ShipmentValidationError(
            FailureKind.AGGREGATE_LIMIT_EXCEEDED,
            f"Exceeded maximum total quantity of products. Maximum allowed is {MAX_PRODUCT_COUNT}",
        )

    total_value = round(sum(p.get("Value", 0.0) for p in products), 2)
    if total_value > MAX_VALUE:
        raise ShipmentValidationError(
            FailureKind.AGGREGATE_LIMIT_EXCEEDED,
            f"Exceeded maximum total value of products. Maximum allowed is {format_number(MAX_VALUE)} EUR",
        )

    total_weight = round(sum(p["Weight"] * p["Quantity"] for p in products), 2)
    if total_weight > limits.max_weight_kg:
        converted = ""
        if units.weight_unit == "lb":
            converted = f" (Weight converted from lb to {DEFAULT_WEIGHT_UNIT})"
        raise ShipmentValidationError(
            FailureKind.AGGREGATE_LIMIT_EXCEEDED,
            f"Total weight '{format_number(total_weight)} {DEFAULT_WEIGHT_UNIT}'{converted} of products "
            f"exceeds maximum allowed weight {format_number(limits.max_weight_kg)} {DEFAULT_WEIGHT_UNIT} "
            f"for the {limits.service} service.",
        )
