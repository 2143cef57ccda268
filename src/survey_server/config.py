"""Server settings, taken from the environment once at startup.

Every field has a default that works for a local run against
``surveys/example.yaml``.
"""

import os
from dataclasses import dataclass, field

from survey_runtime.constants import SESSION_CACHE_MAX_SIZE, SESSION_CACHE_TTL_SECONDS

# Module-level so the admin routes can use them as Query() bounds.
DEFAULT_PAGE_LIMIT = int(os.getenv("DEFAULT_PAGE_LIMIT", "50"))
MAX_PAGE_LIMIT = int(os.getenv("MAX_PAGE_LIMIT", "500"))

_TRUTHY = frozenset({"1", "true", "yes", "on"})


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in _TRUTHY


def _env_list(name: str, default: str) -> list[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


def _env_optional(name: str) -> str | None:
    return os.getenv(name) or None


@dataclass(frozen=True)
class ServerSettings:
    host: str = "0.0.0.0"
    port: int = 8080
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    # None loads surveys/example.yaml
    survey_config_path: str | None = None
    # Stamped on every response this process creates
    deployment_id: str | None = None

    log_level: str = "INFO"
    session_cache_ttl_seconds: float = SESSION_CACHE_TTL_SECONDS
    session_cache_max_size: int = SESSION_CACHE_MAX_SIZE
    strict_replay: bool = False

    # Unset disables the admin router
    admin_api_key: str | None = None


def load_settings() -> ServerSettings:
    return ServerSettings(
        host=os.getenv("SERVER_HOST", "0.0.0.0"),
        port=int(os.getenv("SERVER_PORT", "8080")),
        cors_origins=_env_list("SERVER_CORS_ORIGINS", "*"),
        survey_config_path=_env_optional("SURVEY_CONFIG_PATH"),
        deployment_id=_env_optional("DEPLOYMENT_ID"),
        log_level=os.getenv("SERVER_LOG_LEVEL", "INFO").upper(),
        strict_replay=_env_flag("STRICT_REPLAY"),
        admin_api_key=_env_optional("ADMIN_API_KEY"),
    )
