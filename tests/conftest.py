import io
import random

import numpy as np
import pytest
import soundfile as sf
from fastapi.testclient import TestClient
from PIL import Image

from deepguard import config, history
from deepguard.server import app

CREDENTIAL_VARS = [
    "SIGHTENGINE_USER",
    "SIGHTENGINE_SECRET",
    "RESEMBLE_API_KEY",
    "SUPABASE_URL",
    "SUPABASE_ANON_KEY",
    "VERCEL",
    "NOW_REGION",
    "SERVERLESS",
]


class FakeResponse:
    """Just enough of requests.Response for the vendor and history clients"""

    def __init__(self, status_code=200, json_data=None, headers=None, text=None):
        self.status_code = status_code
        self._json = json_data
        self.headers = headers or {}
        self.text = text if text is not None else ("" if json_data is None else str(json_data))
        self.content = b"" if json_data is None else b"json"

    def json(self):
        if self._json is None:
            raise ValueError("No JSON object could be decoded")
        return self._json


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    for name in CREDENTIAL_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setattr(config, "HISTORY_DB", str(tmp_path / "history.db"))
    monkeypatch.setattr(config, "BLOCK_SUSPICIOUS_AGENTS", True)
    monkeypatch.setattr(history, "_store", None)


@pytest.fixture
def sightengine_env(monkeypatch):
    monkeypatch.setenv("SIGHTENGINE_USER", "test-user")
    monkeypatch.setenv("SIGHTENGINE_SECRET", "test-secret")


@pytest.fixture
def resemble_env(monkeypatch):
    monkeypatch.setenv("RESEMBLE_API_KEY", "test-key")


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def png_bytes():
    buffer = io.BytesIO()
    Image.new("RGB", (16, 12), color=(120, 30, 200)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def wav_bytes():
    buffer = io.BytesIO()
    sf.write(buffer, np.zeros(8000, dtype="float32"), 8000, format="WAV")
    return buffer.getvalue()


@pytest.fixture
def video_bytes():
    # Not decodable; probing degrades to "unknown" metadata
    return b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 2048
