"""Configuration for the Zulip event client."""
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# Server and credentials
ZULIP_URI = os.getenv("ZULIP_URI")
ZULIP_USERNAME = os.getenv("ZULIP_USERNAME")
ZULIP_API_KEY = os.getenv("ZULIP_API_KEY")
ZULIP_PASSWORD = os.getenv("ZULIP_PASSWORD")

# Queue registration
ZULIP_EVENT_TYPES = [t.strip() for t in os.getenv("ZULIP_EVENT_TYPES", "").split(",") if t.strip()]

# Transport; unset means no timeout, long-polls are held open by the server
_timeout = os.getenv("REQUEST_TIMEOUT")
REQUEST_TIMEOUT = float(_timeout) if _timeout else None

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_DIR = Path(os.getenv("LOG_DIR")) if os.getenv("LOG_DIR") else None
BETTERSTACK_SOURCE_TOKEN = os.getenv("BETTERSTACK_SOURCE_TOKEN")
BETTERSTACK_INGEST_HOST = os.getenv("BETTERSTACK_INGEST_HOST")


def validate_config():
    """Validate required configuration."""
    errors = []

    if not ZULIP_URI:
        errors.append("ZULIP_URI is required")

    if not ZULIP_USERNAME and (ZULIP_API_KEY or ZULIP_PASSWORD):
        errors.append("ZULIP_USERNAME is required when ZULIP_API_KEY or ZULIP_PASSWORD is set")

    if ZULIP_API_KEY and ZULIP_PASSWORD:
        errors.append("Set only one of ZULIP_API_KEY and ZULIP_PASSWORD")

    if REQUEST_TIMEOUT is not None and REQUEST_TIMEOUT <= 0:
        errors.append(f"REQUEST_TIMEOUT must be positive: {REQUEST_TIMEOUT}")

    if LOG_DIR is not None and not LOG_DIR.is_absolute():
        errors.append(f"LOG_DIR must be absolute: {LOG_DIR}")

    if errors:
        raise ValueError("Config errors:\n  " + "\n  ".join(errors))
