"""
Local Media Probing
Technical metadata read straight from the uploaded file, used when the vendor
response does not carry it (and for every demo-mode result)
"""

from typing import Dict

import cv2
import soundfile as sf
from PIL import Image


def probe_image(image_path: str) -> Dict:
    """Width, height and container format of an image"""
    try:
        with Image.open(image_path) as img:
            width, height = img.size
            return {
                "width": int(width),
                "height": int(height),
                "format": (img.format or "unknown").lower(),
            }
    except Exception as e:
        print(f"⚠️ Image metadata extraction failed: {e}")
        return {"width": "unknown", "height": "unknown", "format": "unknown"}


def probe_video(video_path: str) -> Dict:
    """Compute basic metadata features from video file"""
    try:
        cap = cv2.VideoCapture(video_path)

        fps = cap.get(cv2.CAP_PROP_FPS)
        frame_count = int(cap.get(cv2.CAP_PROP_FRAME_COUNT))
        width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))

        cap.release()

        if width == 0 or height == 0:
            raise ValueError("no decodable frames")

        duration = frame_count / fps if fps > 0 else 0

        return {
            "duration": round(float(duration), 2),
            "fps": round(float(fps), 2),
            "resolution": f"{width}x{height}",
            "total_frames": frame_count,
        }

    except Exception as e:
        print(f"⚠️ Video metadata extraction failed: {e}")
        return {
            "duration": "unknown",
            "fps": "unknown",
            "resolution": "unknown",
            "total_frames": 0,
        }


def probe_audio(audio_path: str) -> Dict:
    try:
        info = sf.info(audio_path)
        return {
            "duration": round(float(info.duration), 2),
            "sample_rate": int(info.samplerate),
            "channels": int(info.channels),
            "format": info.format.lower(),
        }
    except Exception as e:
        print(f"⚠️ Audio metadata extraction failed: {e}")
        return {
            "duration": "unknown",
            "sample_rate": "unknown",
            "channels": "unknown",
            "format": "unknown",
        }
