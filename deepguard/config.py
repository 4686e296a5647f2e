"""
DeepGuard Configuration
"""

import os
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv

from deepguard import __version__

load_dotenv(".env")

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent
FRONTEND_DIST = os.getenv("FRONTEND_DIST", "dist")

API_VERSION = __version__

# Upload limits
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB, matches the vendor limit for images
MAX_REQUEST_SIZE = MAX_FILE_SIZE + 64 * 1024  # room for multipart boundaries and headers
MAX_FILENAME_LENGTH = 255
UPLOAD_CHUNK_SIZE = 1024 * 1024
FILE_RETENTION_HOURS = 24

# Scores strictly above this are classified as deepfakes
DEEPFAKE_THRESHOLD = 0.7

# Vendor endpoints
SIGHTENGINE_IMAGE_ENDPOINT = "https://api.sightengine.com/1.0/check.json"
SIGHTENGINE_VIDEO_ENDPOINT = "https://api.sightengine.com/1.0/video/check-sync.json"
SIGHTENGINE_TEST_IMAGE_URL = "https://sightengine.com/assets/img/examples/example-fac-1000.jpg"
RESEMBLE_DETECT_ENDPOINT = "https://app.resemble.ai/api/v2/detect"

# Vendor timeouts (seconds)
IMAGE_TIMEOUT = 30
VIDEO_TIMEOUT = 60
AUDIO_TIMEOUT = 30
CREDENTIAL_TEST_TIMEOUT = 10
HISTORY_TIMEOUT = 15

# HTTP surface
DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://localhost:8080",
    "http://localhost:8081",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
    "http://127.0.0.1:8080",
    "http://127.0.0.1:8081",
]
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("ALLOWED_ORIGINS", ",".join(DEFAULT_ALLOWED_ORIGINS)).split(",")
    if origin.strip()
]
ALLOWED_METHODS = ["GET", "POST", "DELETE", "OPTIONS"]
BLOCK_SUSPICIOUS_AGENTS = os.getenv("BLOCK_SUSPICIOUS_AGENTS", "true").lower() not in ("0", "false", "no")
PING_MESSAGE = os.getenv("PING_MESSAGE", "ping")


def _env(name: str) -> Optional[str]:
    value = os.getenv(name)
    return value.strip() if value and value.strip() else None


# Credentials are read per call so demo mode follows the live environment
def sightengine_credentials() -> Tuple[Optional[str], Optional[str]]:
    return _env("SIGHTENGINE_USER"), _env("SIGHTENGINE_SECRET")


def resemble_api_key() -> Optional[str]:
    return _env("RESEMBLE_API_KEY")


def supabase_settings() -> Tuple[Optional[str], Optional[str]]:
    url = _env("SUPABASE_URL")
    return (url.rstrip("/") if url else None), _env("SUPABASE_ANON_KEY")


def sightengine_configured() -> bool:
    user, secret = sightengine_credentials()
    return bool(user and secret)


def resemble_configured() -> bool:
    return bool(resemble_api_key())


def supabase_configured() -> bool:
    url, key = supabase_settings()
    return bool(url and key)


def is_serverless() -> bool:
    return os.getenv("VERCEL") == "1" or bool(os.getenv("NOW_REGION")) or bool(os.getenv("SERVERLESS"))


def default_history_db() -> str:
    """SQLite history path; serverless hosts only allow writes under /tmp"""
    return _env("HISTORY_DB") or ("/tmp/deepguard.db" if is_serverless() else "deepguard.db")


HISTORY_DB = default_history_db()


def upload_dir() -> Path:
    """Writable uploads directory (/tmp on serverless hosts)"""
    override = _env("UPLOAD_DIR")
    if override:
        path = Path(override)
    elif is_serverless():
        path = Path("/tmp") / "uploads"
    else:
        path = Path.cwd() / "uploads"
    path.mkdir(parents=True, exist_ok=True)
    return path


def print_environment_check():
    print("=" * 50)
    print("🔍 Environment Variable Check:")
    print(f"   SIGHTENGINE_USER: {'SET' if _env('SIGHTENGINE_USER') else 'MISSING'}")
    print(f"   SIGHTENGINE_SECRET: {'SET' if _env('SIGHTENGINE_SECRET') else 'MISSING'}")
    print(f"   RESEMBLE_API_KEY: {'SET' if resemble_configured() else 'MISSING'}")
    print(f"   SUPABASE: {'SET' if supabase_configured() else 'MISSING (using local SQLite history)'}")
    print(f"   API Status: {'READY' if sightengine_configured() else 'DEMO MODE'}")
    print("=" * 50)
