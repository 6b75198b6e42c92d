"""
Configuration
-------------
Settings read from environment variables. A .env file in the working directory
is loaded first, so local overrides don't need to be exported.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    host: str
    port: int
    log_level: str
    system_a_db_path: str
    system_a_seed_csv: Optional[str]
    system_b_base_url: str
    system_b_timeout_seconds: float
    system_b_health_timeout_seconds: float
    mock_api_enabled: bool
    mock_api_max_delay_ms: int


def get_settings() -> Settings:
    """Build the settings from the current environment."""
    port = int(os.environ.get("PORT", 8000))
    return Settings(
        host=os.environ.get("HOST", "0.0.0.0"),
        port=port,
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        system_a_db_path=os.environ.get("SYSTEM_A_DB_PATH", "./data/customers.db"),
        system_a_seed_csv=os.environ.get("SYSTEM_A_SEED_CSV") or None,
        # By default System B is the mock API served by this same process
        system_b_base_url=os.environ.get("SYSTEM_B_BASE_URL", f"http://localhost:{port}/mock-api"),
        system_b_timeout_seconds=float(os.environ.get("SYSTEM_B_TIMEOUT_SECONDS", 5)),
        system_b_health_timeout_seconds=float(os.environ.get("SYSTEM_B_HEALTH_TIMEOUT_SECONDS", 3)),
        mock_api_enabled=_env_bool("MOCK_API_ENABLED", True),
        mock_api_max_delay_ms=int(os.environ.get("MOCK_API_MAX_DELAY_MS", 0)),
    )
