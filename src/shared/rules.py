"""
Declarative rule tables for the records sent to the broker.

Each table is a tuple of RuleDescriptor, one per output field, in the order the
fields are validated and emitted. Output keys are the PascalCase names the
broker API expects; source keys are the caller's snake_case order fields.
"""

from dataclasses import dataclass
from enum import Enum


class FieldKind(str, Enum):
    STRING = "string"
    INTEGER = "int"
    NUMBER = "number"


@dataclass(frozen=True)
class RuleDescriptor:
    """How one field is read, checked and emitted."""

    output_key: str
    source_key: str
    required: bool = False
    kind: FieldKind = FieldKind.STRING
    default_limit: int = 0  # max length for STRING
    min: float | None = None
    max: float | None = None  # None: no upper bound
    # Bounds are expressed in kg/cm and checked after unit conversion.
    converted_bounds: bool = False


MAX_PRODUCT_COUNT = 50
MAX_SHIPMENT_WEIGHT = 30.0  # kg
MAX_VALUE = 5000.0  # EUR
MAX_SHIPMENT_LENGTH = 120.0  # cm
MAX_SHIPMENT_WIDTH = 60.0  # cm
MAX_SHIPMENT_HEIGHT = 60.0  # cm
MAX_SHIPMENT_DIMENSION = 300.0  # cm, length + 2 * (width + height)
MIN_SHIPMENT_MEASURE = 0.01
DEFAULT_DISPLAY_ID_LENGTH = 15
PRODUCT_DESC_MAX_LENGTH = 105

LB_TO_KG = 0.453592
INCH_TO_CM = 2.54

DEFAULT_WEIGHT_UNIT = "kg"
DEFAULT_DIM_UNIT = "cm"
ALLOWED_WEIGHT_UNITS = ("kg", "lb")
ALLOWED_DIM_UNITS = ("cm", "in")

ALLOWED_LABEL_FORMATS = ("PDF", "PNG", "ZPL300", "ZPL600", "ZPL200", "ZPL", "EPL")
CUSTOMS_DUTY_TYPES = ("DDP", "DDU")
DANGEROUS_GOODS_TYPES = ("Y", "N")

CURRENCIES = frozenset({
    "AED", "AFN", "ALL", "AMD", "ANG", "AOA", "ARS", "AUD", "AWG", "AZN",
    "BAM", "BBD", "BDT", "BGN", "BHD", "BIF", "BMD", "BND", "BOB", "BRL",
    "BSD", "BTN", "BWP", "BYN", "BZD", "CAD", "CDF", "CHF", "CLP", "CNY",
    "COP", "CRC", "CUC", "CUP", "CVE", "CZK", "DJF", "DKK", "DOP", "DZD",
    "EGP", "ERN", "ETB", "EUR", "FJD", "FKP", "GBP", "GEL", "GGP", "GHS",
    "GIP", "GMD", "GNF", "GTQ", "GYD", "HKD", "HNL", "HRK", "HTG", "HUF",
    "IDR", "ILS", "IMP", "INR", "IQD", "IRR", "ISK", "JEP", "JMD", "JOD",
    "JPY", "KES", "KGS", "KHR", "KMF", "KPW", "KRW", "KWD", "KYD", "KZT",
    "LAK", "LBP", "LKR", "LRD", "LSL", "LYD", "MAD", "MDL", "MGA", "MKD",
    "MMK", "MNT", "MOP", "MRU", "MUR", "MVR", "MWK", "MXN", "MYR", "MZN",
    "NAD", "NGN", "NIO", "NOK", "NPR", "NZD", "OMR", "PAB", "PEN", "PGK",
    "PHP", "PKR", "PLN", "PYG", "QAR", "RON", "RSD", "RUB", "RWF", "SAR",
    "SBD", "SCR", "SDG", "SEK", "SGD", "SHP", "SLL", "SOS", "SPL", "SRD",
    "STN", "SVC", "SYP", "SZL", "THB", "TJS", "TMT", "TND", "TOP", "TRY",
    "TTD", "TVD", "TWD", "TZS", "UAH", "UGX", "USD", "UYU", "UZS", "VES",
    "VND", "VUV", "WST", "XAF", "XCD", "XDR", "XOF", "XPF", "YER", "ZAR",
    "ZMW", "ZWL",
})


def _address_table(prefix: str, required: set[str]) -> tuple[RuleDescriptor, ...]:
    fields = (
        ("Name", "fullname", 50),
        ("Company", "company", 60),
        ("AddressLine1", "address", 50),
        ("AddressLine2", "address2", 50),
        ("AddressLine3", "address3", 50),
        ("City", "city", 50),
        ("State", "state", 50),
        ("Zip", "postalcode", 20),
        ("Country", "country", 2),
        ("Phone", "phone", 15),
        ("Email", "email", 255),
    )
    return tuple(
        RuleDescriptor(
            output_key=key,
            source_key=f"{prefix}_{suffix}",
            required=key in required,
            default_limit=limit,
        )
        for key, suffix, limit in fields
    )


# Consignor country stays optional; consignee must be fully addressable.
CONSIGNOR_RULES = _address_table("sender", {"AddressLine1", "City", "Zip"})
CONSIGNEE_RULES = _address_table("delivery", {"Name", "AddressLine1", "City", "Zip", "Country"})

PRODUCT_RULES: tuple[RuleDescriptor, ...] = (
    RuleDescriptor("Description", "name", required=True, default_limit=PRODUCT_DESC_MAX_LENGTH),
    RuleDescriptor(
        "Quantity", "quantity", required=True, kind=FieldKind.INTEGER, min=1, max=MAX_PRODUCT_COUNT
    ),
    RuleDescriptor(
        "Weight", "weight", required=True, kind=FieldKind.NUMBER, min=0, max=MAX_SHIPMENT_WEIGHT
    ),
    RuleDescriptor("Value", "value", kind=FieldKind.NUMBER, min=0, max=MAX_VALUE),
    # required flips to True for cross-border shipments
    RuleDescriptor("HsCode", "hs_code", default_limit=255),
    RuleDescriptor("OriginCountry", "origin_country", default_limit=2),
)

SHIPMENT_RULES: tuple[RuleDescriptor, ...] = (
    RuleDescriptor("ShipperReference", "shipper_reference", required=True, default_limit=255),
    RuleDescriptor("OrderReference", "order_reference", default_limit=255),
    RuleDescriptor("OrderDate", "order_date", default_limit=10),
    RuleDescriptor("DisplayId", "display_id", default_limit=255),
    RuleDescriptor("InvoiceNumber", "invoice_number", default_limit=255),
    RuleDescriptor(
        "Weight", "weight", required=True, kind=FieldKind.NUMBER,
        min=MIN_SHIPMENT_MEASURE, max=MAX_SHIPMENT_WEIGHT, converted_bounds=True,
    ),
    RuleDescriptor("WeightUnit", "weight_unit", default_limit=2),
    RuleDescriptor(
        "Length", "length", kind=FieldKind.NUMBER,
        min=MIN_SHIPMENT_MEASURE, max=MAX_SHIPMENT_LENGTH, converted_bounds=True,
    ),
    RuleDescriptor(
        "Width", "width", kind=FieldKind.NUMBER,
        min=MIN_SHIPMENT_MEASURE, max=MAX_SHIPMENT_WIDTH, converted_bounds=True,
    ),
    RuleDescriptor(
        "Height", "height", kind=FieldKind.NUMBER,
        min=MIN_SHIPMENT_MEASURE, max=MAX_SHIPMENT_HEIGHT, converted_bounds=True,
    ),
    RuleDescriptor("DimUnit", "dim_unit", default_limit=2),
    RuleDescriptor("Value", "value", kind=FieldKind.NUMBER, min=MIN_SHIPMENT_MEASURE, max=MAX_VALUE),
    RuleDescriptor(
        "ShipmentValue", "shipment_value", kind=FieldKind.NUMBER, min=MIN_SHIPMENT_MEASURE, max=MAX_VALUE
    ),
    RuleDescriptor("Currency", "currency", default_limit=3),
    RuleDescriptor("CustomsDuty", "customs_duty", default_limit=3),
    RuleDescriptor("Description", "description", default_limit=255),
    RuleDescriptor("DeclarationType", "declaration_type", default_limit=255),
    RuleDescriptor("DangerousGoods", "dangerous_goods", default_limit=1),
    RuleDescriptor("ExportCarrierName", "export_carriername", default_limit=255),
    RuleDescriptor("ExportAWB", "export_awb", default_limit=255),
    RuleDescriptor("NIVat", "ni_vat", default_limit=255),
    RuleDescriptor("EuEori", "eu_eori", default_limit=255),
    RuleDescriptor("Ioss", "ioss", default_limit=255),
    RuleDescriptor("LabelFormat", "label_format", default_limit=10),
)


def rule_for(table: tuple[RuleDescriptor, ...], output_key: str) -> RuleDescriptor:
    for rule in table:
        if rule.output_key == output_key:
            return rule
    raise KeyError(output_key)
