import os
from typing import Optional


def _int_env(name: str, default: int) -> int:
    raw = str(os.getenv(name, str(default))).strip()
    try:
        return int(raw)
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    raw = str(os.getenv(name, str(default))).strip()
    try:
        return float(raw)
    except ValueError:
        return default


def _optional_float_env(name: str) -> Optional[float]:
    raw = str(os.getenv(name, "")).strip()
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if value > 0 else None


def _bool_env(name: str, default: bool = False) -> bool:
    raw = str(os.getenv(name, "true" if default else "false")).strip().lower()
    return raw in {"1", "true", "yes"}


RELAY_API_BASE_URL = str(os.getenv("RELAY_API_BASE_URL", "http://127.0.0.1:5678")).strip()
REFRESH_INTERVAL_SECONDS = _float_env("RELAY_DASHBOARD_REFRESH_SECONDS", 5.0)
# None leaves the timeout to the transport
REQUEST_TIMEOUT_SECONDS = _optional_float_env("RELAY_DASHBOARD_REQUEST_TIMEOUT")
GUI_BIND_HOST = str(os.getenv("RELAY_DASHBOARD_BIND_HOST", "0.0.0.0")).strip()
GUI_PORT = _int_env("RELAY_DASHBOARD_PORT", 5080)
GUI_DEBUG = _bool_env("RELAY_DASHBOARD_DEBUG")
LOG_LEVEL = str(os.getenv("RELAY_DASHBOARD_LOG_LEVEL", "info")).strip()
LOG_FILE = os.getenv("RELAY_DASHBOARD_LOG_FILE") or None
