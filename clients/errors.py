"""Error taxonomy for oracle API access.

Every failure of the fetch layer is one of:
- NetworkError: timeout, transport failure, retries exhausted
- ApiError: non-2xx response, carries the status code
- ValidationFailure: response body did not match the expected schema
"""

from __future__ import annotations

from typing import Any, Optional


class ZigmaError(RuntimeError):
    """Base class for oracle access failures."""

    code = "ZIGMA_ERROR"

    def __init__(self, message: str, status_code: Optional[int] = None,
                 details: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class NetworkError(ZigmaError):
    code = "NETWORK_ERROR"

    def __init__(self, message: str, timeout: bool = False,
                 details: Any = None) -> None:
        super().__init__(message, details=details)
        self.timeout = timeout


class ApiError(ZigmaError):
    code = "API_ERROR"

    def __init__(self, message: str, status_code: int,
                 details: Any = None) -> None:
        super().__init__(message, status_code=status_code, details=details)


class ValidationFailure(ZigmaError):
    code = "VALIDATION_ERROR"
