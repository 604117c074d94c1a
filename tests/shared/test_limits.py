import pytest
from pydantic import ValidationError

from shared.limits import ServiceLimits, UnitState, to_number


class TestToNumber:
    """Numeric coercion used for fieldLimits and maxWeight."""

    def test_numbers_and_numeric_strings(self) -> None:
        assert to_number(40) == 40.0
        assert to_number(12.5) == 12.5
        assert to_number("40") == 40.0
        assert to_number(" 7.25 ") == 7.25

    def test_non_numeric_values_are_none(self) -> None:
        assert to_number("abc") is None
        assert to_number(None) is None
        assert to_number(True) is None
        assert to_number(["PL"]) is None

    def test_non_ascii_and_non_finite_values_are_none(self) -> None:
        assert to_number("٤٠") is None
        assert to_number(10 ** 400) is None
        assert to_number("9" * 400) is None
        assert to_number(float("nan")) is None


class TestServiceLimitsFromServiceInfo:
    """ServiceLimits built from the decoded GetServiceInfo body."""

    def test_reads_service_countries_weight_and_limits(self) -> None:
        limits = ServiceLimits.from_service_info({
            "ServiceInfo": {
                "service": "PPTT",
                "maxWeight": 20,
                "fieldLimits": {"SupportedCountries": ["PL", "de"], "Name": 40, "Zip": "12"},
            }
        })
        assert limits.service == "PPTT"
        assert limits.max_weight_kg == 20.0
        assert limits.supported_countries == frozenset({"PL", "DE"})
        assert limits.field_limits == {"Name": 40.0, "Zip": 12.0}

    def test_defaults_when_fields_missing(self) -> None:
        limits = ServiceLimits.from_service_info({"ServiceInfo": {"service": "PPTT"}})
        assert limits.max_weight_kg == 30.0
        assert limits.supported_countries == frozenset()
        assert limits.field_limits == {}

    def test_non_numeric_field_limits_are_ignored(self) -> None:
        limits = ServiceLimits.from_service_info({
            "ServiceInfo": {"fieldLimits": {"Name": "unlimited", "City": 30}}
        })
        assert "Name" not in limits.field_limits
        assert limits.field_limit("Name", 50) == 50
        assert limits.field_limit("City", 50) == 30.0

    def test_empty_body(self) -> None:
        limits = ServiceLimits.from_service_info({})
        assert limits.service == ""
        assert limits.max_weight_kg == 30.0

    def test_limits_are_read_only(self) -> None:
        limits = ServiceLimits(service="PPTT")
        with pytest.raises(ValidationError):
            limits.service = "OTHER"


class TestUnitState:
    def test_defaults_to_kg_and_cm(self) -> None:
        units = UnitState()
        assert units.weight_unit == "kg"
        assert units.dim_unit == "cm"
