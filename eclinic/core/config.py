import os
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int(value: str | None, default: int) -> int:
    if value is None or not value.strip():
        return default
    return int(value)


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if value is None:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]

APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
SQL_ECHO = _get_bool(os.getenv("SQL_ECHO"), default=False)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./eclinic.db")

CORS_ALLOWED_ORIGINS = _get_list(os.getenv("CORS_ALLOWED_ORIGINS"), ["http://localhost:4200"])

# Weekday names and "HH:mm" strings in stored schedules are interpreted in this zone.
REFERENCE_TIMEZONE = os.getenv("REFERENCE_TIMEZONE", "Europe/Warsaw")
BOOKING_HORIZON_DAYS = _get_int(os.getenv("BOOKING_HORIZON_DAYS"), 7)
SLOT_STEP_MINUTES = _get_int(os.getenv("SLOT_STEP_MINUTES"), 30)
SESSION_DURATIONS = tuple(
    int(item) for item in _get_list(os.getenv("SESSION_DURATIONS"), ["15", "20", "30", "45", "60"])
)

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "60"))


def reference_zone() -> ZoneInfo:
    return ZoneInfo(REFERENCE_TIMEZONE)


def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")

    try:
        reference_zone()
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise RuntimeError(f"REFERENCE_TIMEZONE {REFERENCE_TIMEZONE!r} is not a known timezone.") from exc

    if BOOKING_HORIZON_DAYS < 1:
        raise RuntimeError("BOOKING_HORIZON_DAYS must be at least 1.")

    if SLOT_STEP_MINUTES not in SESSION_DURATIONS:
        raise RuntimeError(f"SLOT_STEP_MINUTES must be one of {SESSION_DURATIONS}.")
