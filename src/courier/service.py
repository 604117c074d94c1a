"""
Courier service: validates an order against the chosen broker service and creates the shipment.

Sequence for a new package: API key and label format -> GetServices (service name)
-> GetServiceInfo (limits) -> shipment, consignor, consignee, products -> OrderShipment.
"""

import base64
import binascii
from typing import Any

from aws_lambda_powertools import Logger

from shared.address import validate_consignee_address, validate_consignor_address
from shared.broker import (
    BrokerAPIError,
    get_service_info,
    get_services,
    get_shipment_label,
    order_shipment,
)
from shared.errors import FailureKind, RuleTableError, ShipmentValidationError
from shared.limits import ServiceLimits
from shared.products import validate_products
from shared.rules import ALLOWED_LABEL_FORMATS
from shared.shipment import validate_shipment
from schemas import ServiceParams

logger = Logger(service="courier")

CourierError = (ShipmentValidationError, RuleTableError, BrokerAPIError)


def _error(e: Exception) -> dict[str, Any]:
    return {"status": "ERROR", "error_code": getattr(e, "code", 500), "error_message": str(e)}


class CourierService:
    def new_package(self, order: dict[str, Any], params: ServiceParams) -> dict[str, Any]:
        """
        Validate the order and create the shipment at the broker.

        Returns:
            {"status": "SUCCESS", "data": <broker Shipment with TrackingNumber>} or
            {"status": "ERROR", "error_code": 400|5xx, "error_message": "..."}.
        """
        try:
            api_key = self._validate_api_key(params.api_key)
            label_format = self._validate_label_format(params.label_format)
            service = self._validate_service(params.service, api_key)
            limits = ServiceLimits.from_service_info(get_service_info(api_key, service))
            payload = self.build_shipment(order, label_format, service, limits)
            created = order_shipment(api_key, payload)
        except CourierError as e:
            logger.warning("New package rejected", extra={"error_code": getattr(e, "code", 500), "error": str(e)})
            return _error(e)

        logger.info("Shipment created", extra={
            "tracking_number": created.get("TrackingNumber"),
            "service": service,
        })
        return {"status": "SUCCESS", "data": created}

    def build_shipment(
        self,
        order: dict[str, Any],
        label_format: str,
        service: str,
        limits: ServiceLimits,
    ) -> dict[str, Any]:
        """OrderShipment payload: shipment fields plus Service, both addresses and Products."""
        shipment, units = validate_shipment({**order, "label_format": label_format}, limits)
        consignor = validate_consignor_address(order, limits)
        consignee = validate_consignee_address(order, limits)
        products = validate_products(
            order.get("products") or [],
            consignor.get("Country", ""),
            consignee.get("Country", ""),
            limits,
            units,
        )
        return {
            **shipment,
            "Service": service,
            "ConsignorAddress": consignor,
            "ConsigneeAddress": consignee,
            "Products": products,
        }

    def package_label(self, api_key: str, tracking_number: str, label_format: str = "PDF") -> dict[str, Any]:
        """Fetch the label of a created shipment; data holds the decoded label bytes."""
        try:
            api_key = self._validate_api_key(api_key)
            label_format = self._validate_label_format(label_format)
            tracking_number = (tracking_number or "").strip()
            if not tracking_number:
                raise ShipmentValidationError(
                    FailureKind.MISSING_REQUIRED, "Tracking number cannot be empty.", "tracking_number"
                )
            shipment = get_shipment_label(api_key, tracking_number, label_format)
            image = shipment.get("LabelImage")
            if not image:
                raise BrokerAPIError("Label not found in the response.")
            try:
                label = base64.b64decode(image)
            except (binascii.Error, ValueError) as e:
                raise BrokerAPIError("Label in the response is not valid base64.") from e
        except CourierError as e:
            logger.warning("Label retrieval failed", extra={"tracking_number": tracking_number, "error": str(e)})
            return _error(e)

        return {
            "status": "SUCCESS",
            "data": label,
            "label_format": label_format,
            "tracking_number": tracking_number,
        }

    def _validate_api_key(self, api_key: str | None) -> str:
        if not api_key or not api_key.strip():
            raise ShipmentValidationError(FailureKind.MISSING_REQUIRED, "API key cannot be empty.", "api_key")
        return api_key.strip()

    def _validate_label_format(self, label_format: str | None) -> str:
        normalized = (label_format or "").strip().upper()
        if normalized not in ALLOWED_LABEL_FORMATS:
            raise ShipmentValidationError(
                FailureKind.INVALID_FORMAT,
                "Invalid label format. Allowed formats: " + ", ".join(ALLOWED_LABEL_FORMATS),
                "label_format",
            )
        return normalized

    def _validate_service(self, service: str | None, api_key: str) -> str:
        allowed = get_services(api_key)
        normalized = (service or "").strip().upper()
        if normalized not in allowed:
            raise ShipmentValidationError(
                FailureKind.INVALID_FORMAT,
                "Invalid service. Allowed services: " + ", ".join(allowed),
                "service",
            )
        return normalized
