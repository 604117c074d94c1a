import sys
from dataclasses import dataclass
from pathlib import Path

import pytest

# src for "shared.*", src/courier for the Lambda's flat imports (schemas, service, handler)
_root = Path(__file__).resolve().parents[1]
for _path in (str(_root / "src" / "courier"), str(_root / "src")):
    if _path in sys.path:
        sys.path.remove(_path)
    sys.path.insert(0, _path)

from shared.limits import ServiceLimits  # noqa: E402


@dataclass
class FakeLambdaContext:
    function_name: str = "courier"
    memory_limit_in_mb: int = 128
    invoked_function_arn: str = "arn:aws:lambda:eu-central-1:123456789012:function:courier"
    aws_request_id: str = "52fdfc07-2182-154f-163f-5f0f9a621d72"


@pytest.fixture
def lambda_context() -> FakeLambdaContext:
    return FakeLambdaContext()


@pytest.fixture
def service_info() -> dict:
    return {
        "ServiceInfo": {
            "service": "TEST_SERVICE",
            "fieldLimits": {
                "SupportedCountries": ["PL", "DE", "FR", "GB", "US", "RO", "CN"],
            },
        }
    }


@pytest.fixture
def limits(service_info) -> ServiceLimits:
    return ServiceLimits.from_service_info(service_info)
