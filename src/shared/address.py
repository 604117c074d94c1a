"""Consignor (sender) and consignee (recipient) address validation."""

import re
from functools import partial
from typing import Any, Mapping

from email_validator import EmailNotValidError, validate_email

from shared.errors import FailureKind, ShipmentValidationError
from shared.fields import effective_max_length, validate_country, validate_record
from shared.limits import ServiceLimits
from shared.rules import CONSIGNEE_RULES, CONSIGNOR_RULES, RuleDescriptor


def _refine_address_field(rule: RuleDescriptor, value: str, limits: ServiceLimits) -> str:
    key = rule.output_key
    name = rule.source_key
    if "Email" in key:
        try:
            validate_email(value, check_deliverability=False)
        except EmailNotValidError as e:
            raise ShipmentValidationError(
                FailureKind.INVALID_FORMAT, f"Field '{name}' must be a valid email address.", name
            ) from e
    if "Phone" in key:
        max_length = int(effective_max_length(rule, limits))
        pattern = rf"\d{{0,{max_length}}}" if max_length > 0 else r"\d*"
        if not re.fullmatch(pattern, value, re.ASCII):
            raise ShipmentValidationError(
                FailureKind.INVALID_FORMAT,
                f"Field '{name}' must be a valid phone number (up to {max_length} digits).",
                name,
            )
    if "Country" in key:
        value = validate_country(value, limits, "Field", name)
    return value


def validate_address(
    table: tuple[RuleDescriptor, ...], address: Mapping[str, Any], limits: ServiceLimits
) -> dict[str, Any]:
    try:
        return validate_record(
            table, address, limits, refine=partial(_refine_address_field, limits=limits)
        )
    except ShipmentValidationError as e:
        if e.kind is FailureKind.TOO_LONG and "_address" in (e.field or ""):
            raise ShipmentValidationError(
                e.kind, f"{e.message} Consider splitting the address into multiple lines.", e.field
            ) from e
        raise


def validate_consignor_address(order: Mapping[str, Any], limits: ServiceLimits) -> dict[str, Any]:
    """Sender address from the sender_* keys of the order."""
    return validate_address(CONSIGNOR_RULES, order, limits)


def validate_consignee_address(order: Mapping[str, Any], limits: ServiceLimits) -> dict[str, Any]:
    """Recipient address from the delivery_* keys of the order."""
    return validate_address(CONSIGNEE_RULES, order, limits)
