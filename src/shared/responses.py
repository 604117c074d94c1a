import base64
import json

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, x-api-key, X-Api-Key",
    "Access-Control-Expose-Headers": "Content-Disposition",
}

LABEL_CONTENT_TYPES = {
    "PDF": "application/pdf",
    "PNG": "image/png",
}


def http_response(status_code: int, body: dict) -> dict:
    headers = {"Content-Type": "application/json", **CORS_HEADERS}
    return {
        "statusCode": status_code,
        "headers": headers,
        "body": json.dumps(body),
    }


def label_response(label: bytes, label_format: str, tracking_number: str) -> dict:
    """
    Binary label download for API Gateway: body base64-encoded with isBase64Encoded.
    ZPL/EPL printer labels are served as text/plain.
    """
    label_format = label_format.upper()
    extension = "pdf" if label_format == "PDF" else "png" if label_format == "PNG" else "txt"
    headers = {
        "Content-Type": LABEL_CONTENT_TYPES.get(label_format, "text/plain"),
        "Content-Disposition": f'attachment; filename="label_{tracking_number}.{extension}"',
        **CORS_HEADERS,
    }
    return {
        "statusCode": 200,
        "headers": headers,
        "body": base64.b64encode(label).decode("ascii"),
        "isBase64Encoded": True,
    }
