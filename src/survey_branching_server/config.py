"""Server configuration read from ``SERVER_*`` environment variables.

Every field has a local-development default, so ``create_app()`` works with
an empty environment.
"""

import os
from dataclasses import dataclass, field


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class ServerSettings:
    """Immutable server configuration, built once at startup."""

    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"

    # Comma-separated in SERVER_CORS_ORIGINS; "*" allows any origin
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    # Where survey YAML lives (None → surveys/ at the repo root)
    survey_dir: str | None = None

    # Refuse to start when a loaded survey has blocking integrity issues.
    # Off by default so a broken survey can still be inspected via
    # GET /branching/validate/{survey_id}.
    strict_surveys: bool = False

    # Shared secret the API gateway sends as X-Proxy-Secret alongside
    # X-User-ID.  None disables the check.
    trusted_proxy_secret: str | None = None


def load_settings() -> ServerSettings:
    """Build ``ServerSettings`` from the process environment."""
    origins = [
        o.strip() for o in os.getenv("SERVER_CORS_ORIGINS", "*").split(",") if o.strip()
    ]
    return ServerSettings(
        host=os.getenv("SERVER_HOST", "0.0.0.0"),
        port=int(os.getenv("SERVER_PORT", "8080")),
        log_level=os.getenv("SERVER_LOG_LEVEL", "INFO").upper(),
        cors_origins=origins,
        survey_dir=os.getenv("SERVER_SURVEY_DIR") or None,
        strict_surveys=_env_flag("SERVER_STRICT_SURVEYS"),
        trusted_proxy_secret=os.getenv("TRUSTED_PROXY_SECRET") or None,
    )
