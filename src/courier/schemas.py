"""DTOs for the courier microservice."""

from typing import Any, Dict
from pydantic import BaseModel, Field, field_validator


class ServiceParams(BaseModel):
    """Service selection for a new package; values are checked against the broker."""

    api_key: str = Field(default="", description="Broker API key")
    label_format: str = Field(default="PDF", description="PDF, PNG, ZPL300, ZPL600, ZPL200, ZPL or EPL")
    service: str = Field(default="", description="Broker service name (GetServices.AllowedServices)")

    @field_validator("api_key", "label_format", "service", mode="before")
    @classmethod
    def strip_text(cls, v):
        return "" if v is None else str(v).strip()


class NewPackageInput(BaseModel):
    """Order with sender/delivery/shipment fields and products, plus service params."""

    order: Dict[str, Any]
    params: ServiceParams
