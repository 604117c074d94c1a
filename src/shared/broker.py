"""
Shipping-broker API client: service discovery, shipment creation and label retrieval.

Every call is a JSON POST of {"Apikey", "Command", ...} to a single endpoint.
Optional env: BROKER_API_URL, BROKER_TIMEOUT_SEC.
"""

import os
from typing import Any

import requests
from aws_lambda_powertools import Logger

logger = Logger(service="courier")

DEFAULT_API_URL = "https://developers.baselinker.com/recruitment/api"
DEFAULT_TIMEOUT_SEC = 15


class BrokerAPIError(Exception):
    """Raised when the broker API is unreachable or answers with an error."""

    def __init__(self, message: str, code: int = 500) -> None:
        super().__init__(message)
        self.code = code


def _api_url() -> str:
    return (os.environ.get("BROKER_API_URL") or DEFAULT_API_URL).rstrip("/")


def _timeout() -> float:
    try:
        return float(os.environ.get("BROKER_TIMEOUT_SEC") or DEFAULT_TIMEOUT_SEC)
    except ValueError:
        return DEFAULT_TIMEOUT_SEC


def _run_command(api_key: str, command: str, **fields: Any) -> dict[str, Any]:
    """
    Send one command and return the decoded body.

    Raises:
        BrokerAPIError: On connection/timeout, invalid JSON, HTTP error or a
            non-zero ErrorLevel in the body.
    """
    body = {"Apikey": api_key, "Command": command, **fields}
    try:
        resp = requests.post(
            _api_url(),
            json=body,
            headers={"Content-Type": "application/json", "Accept": "application/json"},
            timeout=_timeout(),
        )
    except requests.Timeout as e:
        raise BrokerAPIError("Timeout connecting to the broker API") from e
    except requests.RequestException as e:
        raise BrokerAPIError("Failed to connect to the broker API") from e

    try:
        data = resp.json() if resp.text else {}
    except ValueError as e:
        logger.warning("Broker response is not valid JSON: %s", resp.text[:300])
        raise BrokerAPIError("Invalid response from the broker API") from e
    if not isinstance(data, dict):
        raise BrokerAPIError("Invalid response from the broker API")

    error_level = data.get("ErrorLevel") or 0
    if resp.status_code != 200 or str(error_level) != "0":
        message = data.get("Error") or "Unknown error occurred."
        logger.warning(
            "Broker command failed",
            extra={"command": command, "http_status": resp.status_code, "error_level": error_level},
        )
        code = resp.status_code if resp.status_code != 200 else 400
        raise BrokerAPIError(str(message), code)
    return data


def get_services(api_key: str) -> list[str]:
    """Names of the services the API key may use (Services.AllowedServices)."""
    data = _run_command(api_key, "GetServices")
    allowed = (data.get("Services") or {}).get("AllowedServices") or []
    return [str(s) for s in allowed]


def get_service_info(api_key: str, service: str) -> dict[str, Any]:
    """Decoded GetServiceInfo body; feeds ServiceLimits.from_service_info."""
    return _run_command(api_key, "GetServiceInfo", Service=service)


def order_shipment(api_key: str, shipment: dict[str, Any]) -> dict[str, Any]:
    """
    Create a shipment.

    Args:
        api_key: Broker API key.
        shipment: Normalized shipment with Service, ConsignorAddress,
                  ConsigneeAddress and Products.

    Returns:
        The Shipment object of the response (TrackingNumber, ...).

    Raises:
        BrokerAPIError: On API error or when no tracking number comes back.
    """
    data = _run_command(api_key, "OrderShipment", Shipment=shipment)
    created = data.get("Shipment") or {}
    if not created.get("TrackingNumber"):
        raise BrokerAPIError("Tracking number not found in the response.")
    return created


def get_shipment_label(api_key: str, tracking_number: str, label_format: str) -> dict[str, Any]:
    """Shipment object with the base64 LabelImage for a tracking number."""
    data = _run_command(
        api_key,
        "GetShipmentLabel",
        Shipment={"TrackingNumber": tracking_number, "LabelFormat": label_format},
    )
    return data.get("Shipment") or {}
