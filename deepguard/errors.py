"""
Exceptions raised across the analysis pipeline
"""

from typing import Any, Optional


class UploadValidationError(ValueError):
    """Rejected upload; status_code is the HTTP status to answer with"""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class VendorError(Exception):
    """A detection vendor call failed"""

    def __init__(self, message: str, status_code: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload


class RateLimitError(VendorError):
    def __init__(self, retry_after: str = "60", payload: Any = None):
        super().__init__(
            f"API rate limit exceeded. Please wait {retry_after} seconds before trying again.",
            status_code=429,
            payload=payload,
        )
        self.retry_after = retry_after


class HistoryError(Exception):
    pass
