"""Failure types raised by the shipment validation core."""

from enum import Enum


class FailureKind(str, Enum):
    MISSING_REQUIRED = "MissingRequired"
    TOO_LONG = "TooLong"
    OUT_OF_RANGE = "OutOfRange"
    NOT_INTEGER = "NotInteger"
    NOT_NUMBER = "NotNumber"
    INVALID_FORMAT = "InvalidFormat"
    UNSUPPORTED_COUNTRY = "UnsupportedCountry"
    INCOMPLETE_DIMENSIONS = "IncompleteDimensions"
    MISSING_VALUE_FIELD = "MissingValueField"
    AGGREGATE_LIMIT_EXCEEDED = "AggregateLimitExceeded"
    EMPTY_LIST = "EmptyList"


class ShipmentValidationError(ValueError):
    """Raised when caller data breaks a business rule. Always maps to HTTP 400."""

    code = 400

    def __init__(self, kind: FailureKind, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.field = field


class RuleTableError(RuntimeError):
    """Raised when a rule table is inconsistent (e.g. unknown field kind)."""

    code = 500

    def __init__(self, detail: str = "") -> None:
        super().__init__("Application error. Contact support.")
        self.detail = detail
