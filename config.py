import math
import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


def _get(key, default=None):
    """env.yaml first, then the process environment."""
    if key in data:
        return data[key]
    return os.environ.get(key, default)


def _to_number(value):
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def positive_int(value, default: int) -> int:
    number = _to_number(value)
    if number is None or number <= 0:
        return default
    return int(math.floor(number))


def non_negative_int(value, default: int) -> int:
    number = _to_number(value)
    if number is None or number < 0:
        return default
    return int(math.floor(number))


def positive_float(value, default: float) -> float:
    number = _to_number(value)
    if number is None or number <= 0:
        return default
    return number


def as_bool(value, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def as_list(value) -> list:
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return list(value or [])


class ApplicationConfig:
    DB_URI = _get("DB_URI", "sqlite+aiosqlite:///./test.db")
    API_PORT = positive_int(_get("API_PORT"), 8000)
    API_HOST = _get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = as_list(_get("CORS_ORIGINS", []))
    CORS_ALLOW_CREDENTIALS = as_bool(_get("CORS_ALLOW_CREDENTIALS"), True)
    LOG_LEVEL = _get("LOG_LEVEL", "INFO")

    JWT_SECRET = _get("JWT_SECRET", "dev-secret-key-change-in-production")
    JWT_EXPIRES_IN = _get("JWT_EXPIRES_IN", "1d")
    REFRESH_TOKEN_EXPIRES_IN = _get("REFRESH_TOKEN_EXPIRES_IN", "7d")
    MAX_ACTIVE_REFRESH_SESSIONS = positive_int(_get("MAX_ACTIVE_REFRESH_SESSIONS"), 5)

    SESSION_AUDIT_EXPORT_MAX_LIMIT = positive_int(
        _get("SESSION_AUDIT_EXPORT_MAX_LIMIT"), 20000
    )
    SESSION_AUDIT_RETENTION_DAYS = non_negative_int(_get("SESSION_AUDIT_RETENTION_DAYS"), 90)
    SESSION_AUDIT_PRUNE_INTERVAL_MINUTES = non_negative_int(
        _get("SESSION_AUDIT_PRUNE_INTERVAL_MINUTES"), 60
    )
    AUDIT_WRITE_TIMEOUT_SECONDS = positive_float(_get("AUDIT_WRITE_TIMEOUT_SECONDS"), 2.0)

    SECURITY_METRICS_WINDOW_HOURS = positive_int(_get("SECURITY_METRICS_WINDOW_HOURS"), 24)
    SECURITY_METRICS_TOP_N = positive_int(_get("SECURITY_METRICS_TOP_N"), 10)
    SECURITY_METRICS_SNAPSHOT_INTERVAL_MINUTES = non_negative_int(
        _get("SECURITY_METRICS_SNAPSHOT_INTERVAL_MINUTES"), 15
    )
    SECURITY_METRICS_SNAPSHOT_RETENTION_DAYS = non_negative_int(
        _get("SECURITY_METRICS_SNAPSHOT_RETENTION_DAYS"), 30
    )
    SECURITY_METRICS_HISTORY_DEFAULT_POINTS = positive_int(
        _get("SECURITY_METRICS_HISTORY_DEFAULT_POINTS"), 96
    )

    ENABLE_BACKGROUND_JOBS = as_bool(_get("ENABLE_BACKGROUND_JOBS"), False)
