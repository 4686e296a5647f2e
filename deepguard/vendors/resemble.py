"""
Resemble AI synthetic voice detection client
"""

import base64
import os
from typing import Dict, Optional, Tuple

import requests

from deepguard import config
from deepguard.errors import RateLimitError, VendorError

# One short burst of 8-bit mono silence, enough for an authenticated round trip
TEST_AUDIO_DATA = (
    "UklGRnoGAABXQVZFZm10IBAAAAABAAEAQB8AAEAfAAABAAgAZGF0YQoGAACBhYqFbF1fdJivrJBhNjVgodDbq2EcBj+a2/LDciUF"
    "LIHO8tiJNwgZaLvt559NEAxQp+PwtmMcBjiR1/LMeSwFJHfH8N2QQAoUXrTp66hVFApGn+DyvmwhBSuBzvLZiTYIG2m98OScTgwO"
    "Uarm7blmGgU7k9n1unEiBC13yO/eizEIHWq+8+OWT"
)


def _headers(api_key: str) -> Dict:
    return {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
        "Accept": "application/json",
    }


def _post_detect(payload: Dict, api_key: str, timeout: int) -> Dict:
    try:
        response = requests.post(
            config.RESEMBLE_DETECT_ENDPOINT,
            headers=_headers(api_key),
            json=payload,
            timeout=timeout,
        )
    except requests.RequestException as e:
        raise VendorError(f"Resemble AI request failed: {e}") from e

    print(f"📥 Resemble AI response status: {response.status_code}")

    try:
        data = response.json()
    except ValueError:
        data = None

    if response.status_code == 429:
        raise RateLimitError(response.headers.get("retry-after", "60"), payload=data)

    if response.status_code not in (200, 201):
        print(f"❌ Response text: {response.text[:500]}")
        raise VendorError(
            f"Resemble AI returned status {response.status_code}",
            status_code=response.status_code,
            payload=data,
        )

    if not isinstance(data, dict):
        raise VendorError("Resemble AI returned a non-JSON response")

    if data.get("success") is False:
        raise VendorError(data.get("message") or "Resemble AI returned unsuccessful status", payload=data)

    return data


def detect_audio(audio_path: str, api_key: str) -> Dict:
    """Submit an audio clip for synthetic voice detection"""
    with open(audio_path, "rb") as f:
        audio_bytes = f.read()

    if not audio_bytes:
        raise VendorError("Uploaded file is empty")

    audio_format = os.path.splitext(audio_path)[1].lstrip(".").lower() or "wav"
    payload = {
        "audio_data": base64.b64encode(audio_bytes).decode("ascii"),
        "audio_format": audio_format,
    }

    print(f"📤 Sending audio to Resemble AI ({len(audio_bytes)} bytes, format: {audio_format})")
    return _post_detect(payload, api_key, config.AUDIO_TIMEOUT)


def audio_score(data: Dict) -> Tuple[float, Optional[bool]]:
    """
    Probability of synthesis and, when the vendor labels the clip, whether it
    was judged fake.

    Raises:
        VendorError: the response carries no usable score
    """
    item = data.get("item") if isinstance(data.get("item"), dict) else data
    metrics = item.get("metrics") if isinstance(item.get("metrics"), dict) else {}

    raw_score = metrics.get("aggregated_score")
    if raw_score is None:
        raw_score = item.get("score", data.get("score"))
    if isinstance(raw_score, list):
        raw_score = max(raw_score) if raw_score else None

    try:
        score = float(raw_score)
    except (TypeError, ValueError):
        raise VendorError("Resemble AI response did not include a detection score", payload=data)

    label = metrics.get("label") or item.get("label")
    is_fake = None
    if isinstance(label, str) and label.lower() in ("fake", "real"):
        is_fake = label.lower() == "fake"

    return score, is_fake


def test_credentials(api_key: str) -> Dict:
    print("📤 Testing Resemble AI API...")
    payload = {"audio_data": TEST_AUDIO_DATA, "audio_format": "wav"}
    return _post_detect(payload, api_key, config.CREDENTIAL_TEST_TIMEOUT)
