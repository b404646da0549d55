import os

from dotenv import load_dotenv


load_dotenv()


def _get_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return int(value)


DATABASE_URL = os.getenv("DATABASE_URL", "mongodb://localhost:27017")
DATABASE_NAME = os.getenv("DATABASE_NAME", "libreria")

REFERENCE_CODE_PREFIX = os.getenv("REFERENCE_CODE_PREFIX", "R-")
REFERENCE_CODE_WIDTH = _get_int("REFERENCE_CODE_WIDTH", 4)
REFERENCE_CODE_MAX_ATTEMPTS = _get_int("REFERENCE_CODE_MAX_ATTEMPTS", 50)

RESET_PASSWORD_LENGTH = _get_int("RESET_PASSWORD_LENGTH", 10)
PASSWORD_PEPPER = os.getenv("PASSWORD_PEPPER", "")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def validate_runtime_config() -> None:
    if REFERENCE_CODE_WIDTH < 1:
        raise RuntimeError("REFERENCE_CODE_WIDTH must be at least 1.")
    if REFERENCE_CODE_MAX_ATTEMPTS < 1:
        raise RuntimeError("REFERENCE_CODE_MAX_ATTEMPTS must be at least 1.")
    if RESET_PASSWORD_LENGTH < 6:
        raise RuntimeError("RESET_PASSWORD_LENGTH must be at least 6.")
