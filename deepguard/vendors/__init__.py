"""
Detection vendor clients
Sightengine handles images and videos, Resemble AI handles audio
"""

from deepguard.errors import RateLimitError, VendorError
from deepguard.vendors import resemble, sightengine


def describe_vendor_error(error: Exception) -> str:
    """Short, user-facing explanation of why a vendor call failed"""
    if isinstance(error, VendorError):
        if error.status_code == 400:
            return "Bad request - check file format and size"
        if error.status_code == 401:
            return "Authentication failed - check API credentials"
        if error.status_code == 413:
            return "File too large - exceeds API limits"
        if error.status_code is not None:
            detail = error.message
            if isinstance(error.payload, dict):
                vendor_error = error.payload.get("error")
                if isinstance(vendor_error, dict):
                    detail = vendor_error.get("message") or detail
                elif vendor_error:
                    detail = str(vendor_error)
            return f"HTTP {error.status_code}: {detail}"
        return error.message
    return str(error) or "API call failed"


__all__ = [
    "RateLimitError",
    "VendorError",
    "describe_vendor_error",
    "resemble",
    "sightengine",
]
