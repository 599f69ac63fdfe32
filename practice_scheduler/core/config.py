import os

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

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./practice_scheduler.db")

CORS_ALLOW_ORIGINS = _get_list(os.getenv("CORS_ALLOW_ORIGINS"), ["http://localhost:3000"])

SLOT_STRIDE_MINUTES = _get_int(os.getenv("SLOT_STRIDE_MINUTES"), 30)
SELECTOR_SNAP_MINUTES = _get_int(os.getenv("SELECTOR_SNAP_MINUTES"), 15)
LIST_PAGE_SIZE = _get_int(os.getenv("LIST_PAGE_SIZE"), 50)

DEFAULT_BUFFER_MINUTES = _get_int(os.getenv("DEFAULT_BUFFER_MINUTES"), 15)
DEFAULT_BOOKING_WINDOW_DAYS = _get_int(os.getenv("DEFAULT_BOOKING_WINDOW_DAYS"), 60)
MAX_APPOINTMENT_NOTES_LENGTH = _get_int(os.getenv("MAX_APPOINTMENT_NOTES_LENGTH"), 600)

def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and DATABASE_URL.startswith("sqlite"):
        raise RuntimeError("DATABASE_URL must point at a server database in production.")
    if SLOT_STRIDE_MINUTES <= 0:
        raise RuntimeError("SLOT_STRIDE_MINUTES must be positive.")
    if LIST_PAGE_SIZE <= 0:
        raise RuntimeError("LIST_PAGE_SIZE must be positive.")
