"""Per-service limits read from GetServiceInfo, and the unit state of one validation call."""

import math
import re
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from shared.rules import DEFAULT_DIM_UNIT, DEFAULT_WEIGHT_UNIT, MAX_SHIPMENT_WEIGHT

_NUMERIC_RE = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$", re.ASCII)


def to_number(value: Any) -> float | None:
    """Float for ints, floats and numeric strings; None for anything else."""
    if isinstance(value, bool):
        return None
    if not isinstance(value, (int, float)) and not (isinstance(value, str) and _NUMERIC_RE.match(value)):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    return number if math.isfinite(number) else None


class ServiceLimits(BaseModel):
    """
    Read-only view over the ServiceInfo of the chosen broker service.

    supported_countries is a closed list: an empty set accepts no country.
    field_limits maps rule output keys (e.g. "Name", "Weight") to numeric overrides.
    """

    model_config = ConfigDict(frozen=True)

    service: str = ""
    supported_countries: frozenset[str] = frozenset()
    max_weight_kg: float = MAX_SHIPMENT_WEIGHT
    field_limits: dict[str, float] = Field(default_factory=dict)

    @classmethod
    def from_service_info(cls, body: dict[str, Any]) -> "ServiceLimits":
        """Build limits from a decoded GetServiceInfo body ({"ServiceInfo": {...}})."""
        info = (body or {}).get("ServiceInfo") or {}
        raw_limits = info.get("fieldLimits") or {}
        countries = raw_limits.get("SupportedCountries") or []
        if not isinstance(countries, list):
            countries = []
        field_limits: dict[str, float] = {}
        for key, raw in raw_limits.items():
            if key == "SupportedCountries":
                continue
            number = to_number(raw)
            if number is not None:
                field_limits[key] = number
        max_weight = to_number(info.get("maxWeight"))
        return cls(
            service=str(info.get("service") or ""),
            supported_countries=frozenset(str(c).upper() for c in countries),
            max_weight_kg=MAX_SHIPMENT_WEIGHT if max_weight is None else max_weight,
            field_limits=field_limits,
        )

    def field_limit(self, output_key: str, default: float | None) -> float | None:
        return self.field_limits.get(output_key, default)


@dataclass(frozen=True)
class UnitState:
    """Units declared by the shipment; product weights are read in the same unit."""

    weight_unit: str = DEFAULT_WEIGHT_UNIT
    dim_unit: str = DEFAULT_DIM_UNIT
