import os
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]

APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./groombook.db")

CORS_ALLOWED_ORIGINS = _get_list(os.getenv("CORS_ALLOWED_ORIGINS"), ["http://localhost:3000"])

# Used for businesses that have no timezone of their own.
DEFAULT_TIMEZONE = os.getenv("DEFAULT_TIMEZONE", "UTC")

DEFAULT_AVAILABILITY_RANGE_DAYS = int(os.getenv("DEFAULT_AVAILABILITY_RANGE_DAYS", "30"))
MAX_AVAILABILITY_RANGE_DAYS = int(os.getenv("MAX_AVAILABILITY_RANGE_DAYS", "120"))
ENFORCE_MAX_BOOKING_ADVANCE = _get_bool(os.getenv("ENFORCE_MAX_BOOKING_ADVANCE"), default=True)


def validate_runtime_config() -> None:
    try:
        ZoneInfo(DEFAULT_TIMEZONE)
    except ZoneInfoNotFoundError as exc:
        raise RuntimeError(f"DEFAULT_TIMEZONE '{DEFAULT_TIMEZONE}' is not a known timezone.") from exc

    if DEFAULT_AVAILABILITY_RANGE_DAYS < 0 or MAX_AVAILABILITY_RANGE_DAYS < DEFAULT_AVAILABILITY_RANGE_DAYS:
        raise RuntimeError("MAX_AVAILABILITY_RANGE_DAYS must cover DEFAULT_AVAILABILITY_RANGE_DAYS.")

    if APP_ENV.lower() == "production" and DATABASE_URL.startswith("sqlite"):
        raise RuntimeError("DATABASE_URL must point at a real database in production.")
