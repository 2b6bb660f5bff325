"""
DreamLift Admin Client - Centralized Configuration
"""
import os
import logging
from dotenv import load_dotenv
from datetime import datetime
from typing import List
import pytz

logger = logging.getLogger(__name__)

load_dotenv()


def _socket_url_from(api_url: str) -> str:
    if api_url.startswith("https://"):
        return "wss://" + api_url[len("https://"):].rstrip("/") + "/ws"
    if api_url.startswith("http://"):
        return "ws://" + api_url[len("http://"):].rstrip("/") + "/ws"
    return api_url.rstrip("/") + "/ws"


# === API ===
API_BASE_URL = os.getenv("DREAMLIFT_API_URL", "http://localhost:5000").rstrip("/")
SOCKET_URL = os.getenv("DREAMLIFT_SOCKET_URL", _socket_url_from(API_BASE_URL))
API_TOKEN = os.getenv("DREAMLIFT_API_TOKEN", "")
HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "30"))
HTTP_CONNECT_TIMEOUT = float(os.getenv("HTTP_CONNECT_TIMEOUT", "10"))

# === Admin Credentials ===
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "")

# === Admin Panel ===
ADMIN_CACHE_TTL = int(os.getenv("ADMIN_CACHE_TTL", "300"))  # 5 minutes
REPORTS_DIR = os.getenv("REPORTS_DIR", "reports")

# === Live Channel ===
SOCKET_RECONNECT_ATTEMPTS = int(os.getenv("SOCKET_RECONNECT_ATTEMPTS", "5"))
SOCKET_RECONNECT_DELAY = float(os.getenv("SOCKET_RECONNECT_DELAY", "1.0"))

# === Monitoring ===
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# === Timezone ===
TIMEZONE = pytz.timezone(os.getenv("TIMEZONE", "UTC"))


def get_now() -> datetime:
    """Get current time in configured timezone."""
    return datetime.now(TIMEZONE)


def validate_config() -> List[str]:
    """Validate critical settings on startup. Returns list of errors."""
    errors = []

    if not API_BASE_URL:
        errors.append("DREAMLIFT_API_URL must be set")
    if not API_TOKEN and not (ADMIN_EMAIL and ADMIN_PASSWORD):
        errors.append("Either DREAMLIFT_API_TOKEN or ADMIN_EMAIL/ADMIN_PASSWORD must be set")

    # Warnings (non-blocking)
    if API_BASE_URL.startswith("http://") and "localhost" not in API_BASE_URL:
        print("⚠️  WARNING: DREAMLIFT_API_URL is not HTTPS. Tokens will travel in clear text.")
    if ADMIN_CACHE_TTL <= 0:
        print("⚠️  WARNING: ADMIN_CACHE_TTL <= 0. Every dashboard load will hit the network.")

    return errors
