"""
Sightengine deepfake detection client
"""

import os
from typing import Dict, List

import numpy as np
import requests

from deepguard import config
from deepguard.errors import RateLimitError, VendorError
from deepguard.media import content_type_for


def _read_json(response: requests.Response):
    try:
        return response.json()
    except ValueError:
        return None


def _section(container: Dict, key: str) -> Dict:
    value = container.get(key)
    return value if isinstance(value, dict) else {}


def _parse_response(response: requests.Response, label: str) -> Dict:
    print(f"📥 {label} response status: {response.status_code}")

    if response.status_code == 429:
        retry_after = response.headers.get("retry-after", "60")
        print(f"❌ {label} rate limit exceeded (retry after {retry_after}s)")
        raise RateLimitError(retry_after, payload=_read_json(response))

    if response.status_code != 200:
        print(f"❌ {label} failed with status {response.status_code}")
        print(f"❌ Response text: {response.text[:500]}")
        raise VendorError(
            f"{label} returned status {response.status_code}",
            status_code=response.status_code,
            payload=_read_json(response),
        )

    data = _read_json(response)
    if not isinstance(data, dict):
        raise VendorError(f"{label} returned a non-JSON response", status_code=response.status_code)

    if data.get("status") != "success":
        error = data.get("error") or {}
        message = error.get("message") if isinstance(error, dict) else str(error)
        raise VendorError(message or f"{label} returned unsuccessful status", payload=data)

    return data


def _post_media(endpoint: str, media_path: str, api_user: str, api_secret: str, timeout: int, label: str) -> Dict:
    if os.path.getsize(media_path) == 0:
        raise VendorError("Uploaded file is empty")

    form = {
        "api_user": api_user,
        "api_secret": api_secret,
        "models": "deepfake",
    }

    print(f"📤 Sending {label} request to: {endpoint}")
    print(f"📤 models: deepfake, api_user: {api_user}, file: {os.path.basename(media_path)}")

    try:
        with open(media_path, "rb") as media:
            files = {"media": (os.path.basename(media_path), media, content_type_for(media_path))}
            response = requests.post(endpoint, data=form, files=files, timeout=timeout)
    except requests.RequestException as e:
        raise VendorError(f"{label} request failed: {e}") from e

    return _parse_response(response, label)


def check_image(image_path: str, api_user: str, api_secret: str) -> Dict:
    """Run the deepfake model on a still image"""
    if os.path.getsize(image_path) > config.MAX_FILE_SIZE:
        raise VendorError("File size exceeds 10MB limit", status_code=413)
    return _post_media(
        config.SIGHTENGINE_IMAGE_ENDPOINT, image_path, api_user, api_secret,
        config.IMAGE_TIMEOUT, "Sightengine image API",
    )


def check_video(video_path: str, api_user: str, api_secret: str) -> Dict:
    """Run the deepfake model over a short video (synchronous endpoint)"""
    return _post_media(
        config.SIGHTENGINE_VIDEO_ENDPOINT, video_path, api_user, api_secret,
        config.VIDEO_TIMEOUT, "Sightengine video API",
    )


def image_score(data: Dict) -> float:
    """Deepfake probability from an image check response"""
    return (
        _section(data, "deepfake").get("prob")
        or _section(data, "type").get("deepfake")
        or 0.0
    )


def video_scores(data: Dict) -> Dict:
    """
    Aggregate per-frame deepfake scores from a video check response.

    The final score is the worst frame, or the summary score if the vendor
    reports a higher one.
    """
    frames = _section(data, "data").get("frames")
    if not isinstance(frames, list):
        frames = []
    # entries that are not objects are not frames
    frames = [frame for frame in frames if isinstance(frame, dict)]

    frame_scores: List[float] = []
    for frame in frames:
        score = _section(frame, "type").get("deepfake", 0)
        if isinstance(score, (int, float)) and not isinstance(score, bool) and score >= 0:
            frame_scores.append(float(score))

    max_frame_score = float(np.max(frame_scores)) if frame_scores else 0.0
    average_score = float(np.mean(frame_scores)) if frame_scores else 0.0

    summary = _section(data, "deepfake").get("prob")
    if summary is None:
        summary = _section(data, "type").get("deepfake")
    summary_score = float(summary) if isinstance(summary, (int, float)) and not isinstance(summary, bool) else 0.0

    return {
        "final_score": max(max_frame_score, summary_score),
        "max_frame_score": max_frame_score,
        "average_score": average_score,
        "summary_score": summary_score,
        "frame_scores": frame_scores,
        "total_frames": len(frames),
    }


def test_credentials(api_user: str, api_secret: str) -> Dict:
    """Check credentials against a public sample image"""
    params = {
        "models": "deepfake",
        "api_user": api_user,
        "api_secret": api_secret,
        "url": config.SIGHTENGINE_TEST_IMAGE_URL,
    }

    print(f"📤 Testing Sightengine API with sample image: {config.SIGHTENGINE_TEST_IMAGE_URL}")

    try:
        response = requests.get(config.SIGHTENGINE_IMAGE_ENDPOINT, params=params, timeout=config.CREDENTIAL_TEST_TIMEOUT)
    except requests.RequestException as e:
        raise VendorError(f"Sightengine test request failed: {e}") from e

    if response.status_code != 200:
        raise VendorError(
            f"Sightengine API error: {response.status_code}",
            status_code=response.status_code,
            payload=_read_json(response) or response.text[:500],
        )

    data = _read_json(response)
    if not isinstance(data, dict):
        raise VendorError("Sightengine test returned a non-JSON response")
    return data
