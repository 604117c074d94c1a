"""Unit tests for the courier Lambda handler."""

import base64
import json
from unittest.mock import MagicMock, patch

import pytest

from handler import lambda_handler


@pytest.fixture
def mock_courier_service():
    """Mock CourierService so no broker call is made."""
    with patch("handler.CourierService") as mock_cls:
        mock_instance = MagicMock()
        mock_cls.return_value = mock_instance
        yield mock_instance


def _event(method: str = "POST", body=None, path_params=None, headers=None, query=None, raw_path="") -> dict:
    """API Gateway HTTP API (v2) event."""
    return {
        "requestContext": {"http": {"method": method}},
        "rawPath": raw_path,
        "pathParameters": path_params or {},
        "queryStringParameters": query,
        "headers": headers or {},
        "body": json.dumps(body) if isinstance(body, dict) else body,
    }


def _new_package_body() -> dict:
    return {
        "order": {"shipper_reference": "REF-1", "weight": 1, "value": 10},
        "params": {"api_key": "key-123", "label_format": "PDF", "service": "PPTT"},
    }


def test_options_returns_200(lambda_context) -> None:
    resp = lambda_handler(_event("OPTIONS"), lambda_context)
    assert resp["statusCode"] == 200


def test_post_creates_package(mock_courier_service: MagicMock, lambda_context) -> None:
    """POST with order and params returns 201 and the created shipment."""
    mock_courier_service.new_package.return_value = {
        "status": "SUCCESS",
        "data": {"TrackingNumber": "PP123"},
    }

    resp = lambda_handler(_event("POST", _new_package_body()), lambda_context)

    assert resp["statusCode"] == 201
    assert json.loads(resp["body"])["data"]["TrackingNumber"] == "PP123"
    order, params = mock_courier_service.new_package.call_args.args
    assert order["shipper_reference"] == "REF-1"
    assert params.api_key == "key-123"
    assert params.service == "PPTT"


def test_post_validation_error_returns_400(mock_courier_service: MagicMock, lambda_context) -> None:
    mock_courier_service.new_package.return_value = {
        "status": "ERROR",
        "error_code": 400,
        "error_message": "Shipment weight '35 kg' must be between 0.01 kg and 30 kg.",
    }

    resp = lambda_handler(_event("POST", _new_package_body()), lambda_context)

    assert resp["statusCode"] == 400
    assert json.loads(resp["body"])["error_message"].startswith("Shipment weight")


def test_post_unexpected_error_code_maps_to_502(mock_courier_service: MagicMock, lambda_context) -> None:
    mock_courier_service.new_package.return_value = {
        "status": "ERROR",
        "error_code": 10,
        "error_message": "Broker failure",
    }

    resp = lambda_handler(_event("POST", _new_package_body()), lambda_context)

    assert resp["statusCode"] == 502


@pytest.mark.parametrize("body", [None, "", "not json", {}])
def test_post_without_body_returns_400(mock_courier_service: MagicMock, lambda_context, body) -> None:
    resp = lambda_handler(_event("POST", body), lambda_context)

    assert resp["statusCode"] == 400
    assert json.loads(resp["body"])["error"] == "JSON body with order and params is required"
    mock_courier_service.new_package.assert_not_called()


def test_post_missing_order_returns_400(mock_courier_service: MagicMock, lambda_context) -> None:
    resp = lambda_handler(_event("POST", {"params": {"api_key": "k"}}), lambda_context)

    assert resp["statusCode"] == 400
    assert json.loads(resp["body"])["error"] == "Invalid request"
    mock_courier_service.new_package.assert_not_called()


def test_get_label_returns_binary(mock_courier_service: MagicMock, lambda_context) -> None:
    mock_courier_service.package_label.return_value = {
        "status": "SUCCESS",
        "data": b"%PDF-1.4",
        "label_format": "PDF",
        "tracking_number": "PP123",
    }
    event = _event(
        "GET",
        path_params={"tracking_number": "PP123"},
        headers={"x-api-key": "key-123"},
        query={"label_format": "pdf"},
    )

    resp = lambda_handler(event, lambda_context)

    assert resp["statusCode"] == 200
    assert resp["isBase64Encoded"] is True
    assert base64.b64decode(resp["body"]) == b"%PDF-1.4"
    mock_courier_service.package_label.assert_called_once_with("key-123", "PP123", "pdf")


def test_get_label_via_proxy_path(mock_courier_service: MagicMock, lambda_context) -> None:
    mock_courier_service.package_label.return_value = {
        "status": "SUCCESS",
        "data": b"^XA^XZ",
        "label_format": "ZPL",
        "tracking_number": "PP999",
    }
    event = _event("GET", path_params={"proxy": "packages/PP999/label"}, headers={"X-Api-Key": "k"})

    resp = lambda_handler(event, lambda_context)

    assert resp["statusCode"] == 200
    assert resp["headers"]["Content-Type"] == "text/plain"
    mock_courier_service.package_label.assert_called_once_with("k", "PP999", "PDF")


def test_get_label_error(mock_courier_service: MagicMock, lambda_context) -> None:
    mock_courier_service.package_label.return_value = {
        "status": "ERROR",
        "error_code": 400,
        "error_message": "API key cannot be empty.",
    }

    resp = lambda_handler(_event("GET", path_params={"tracking_number": "PP123"}), lambda_context)

    assert resp["statusCode"] == 400


def test_get_unknown_route_returns_404(mock_courier_service: MagicMock, lambda_context) -> None:
    resp = lambda_handler(_event("GET", raw_path="/packages"), lambda_context)

    assert resp["statusCode"] == 404
    mock_courier_service.package_label.assert_not_called()


def test_other_methods_return_405(mock_courier_service: MagicMock, lambda_context) -> None:
    resp = lambda_handler(_event("DELETE"), lambda_context)

    assert resp["statusCode"] == 405


def test_unexpected_exception_returns_500(mock_courier_service: MagicMock, lambda_context) -> None:
    mock_courier_service.new_package.side_effect = RuntimeError("boom")

    resp = lambda_handler(_event("POST", _new_package_body()), lambda_context)

    assert resp["statusCode"] == 500
    assert json.loads(resp["body"]) == {"error": "Internal error in courier service"}
