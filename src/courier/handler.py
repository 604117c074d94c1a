"""
Handler for the courier microservice.

Routes:
- POST /packages  body { "order": {...}, "params": { "api_key", "label_format", "service" } }
  Validates the order and creates the shipment; returns the broker Shipment (TrackingNumber, ...).
- GET /packages/{tracking_number}/label?label_format=PDF  header x-api-key
  Returns the label as a binary download.
"""

import json
from aws_lambda_powertools import Logger
from aws_lambda_powertools.utilities.parser import parse
from aws_lambda_powertools.utilities.typing import LambdaContext

from shared.responses import http_response, label_response
from schemas import NewPackageInput
from service import CourierService

logger = Logger(service="courier")


@logger.inject_lambda_context
def lambda_handler(event: dict, context: LambdaContext) -> dict:
    method = event.get("requestContext", {}).get("http", {}).get("method")

    if method == "OPTIONS":
        return http_response(200, {})

    try:
        service = CourierService()

        if method == "POST":
            body = _body_json(event)
            if not body:
                return http_response(400, {"error": "JSON body with order and params is required"})
            try:
                payload = parse(event=body, model=NewPackageInput)
            except ValueError as e:
                logger.warning("Validation: %s", e)
                return http_response(400, {"error": "Invalid request", "details": str(e)})
            result = service.new_package(payload.order, payload.params)
            if result["status"] == "ERROR":
                return http_response(_status(result), result)
            return http_response(201, result)

        if method == "GET":
            tracking_number = _tracking_number(event)
            if not tracking_number:
                return http_response(404, {"error": "Route not found"})
            query_params = event.get("queryStringParameters") or {}
            result = service.package_label(
                _api_key(event),
                tracking_number,
                query_params.get("label_format") or "PDF",
            )
            if result["status"] == "ERROR":
                return http_response(_status(result), result)
            return label_response(result["data"], result["label_format"], result["tracking_number"])

        return http_response(405, {"error": "Method not allowed. Use POST or GET."})

    except Exception:
        logger.exception("Error processing courier request")
        return http_response(500, {"error": "Internal error in courier service"})


def _status(result: dict) -> int:
    code = result.get("error_code")
    return code if isinstance(code, int) and 400 <= code <= 599 else 502


def _tracking_number(event: dict) -> str:
    path_params = event.get("pathParameters") or {}
    if path_params.get("tracking_number"):
        return path_params["tracking_number"]
    # /packages/{tracking_number}/label via {proxy+}
    parts = [p for p in (path_params.get("proxy") or event.get("rawPath") or "").split("/") if p]
    if len(parts) >= 2 and parts[-1] == "label":
        return parts[-2]
    return ""


def _api_key(event: dict) -> str:
    headers = event.get("headers") or {}
    return headers.get("x-api-key") or headers.get("X-Api-Key") or ""


def _body_json(event: dict) -> dict:
    body = event.get("body")
    if body is None:
        return {}
    if isinstance(body, str):
        try:
            return json.loads(body) if body else {}
        except json.JSONDecodeError:
            return {}
    return body if isinstance(body, dict) else {}
