"""Trendyol proxy configuration: hosts, CORS allow-list, and defaults."""

import os
from dataclasses import dataclass, field
from typing import Mapping

from .errors import ConfigurationError

TRENDYOL_STAGE = {
    "api_base": "https://stageapigw.trendyol.com",
}

TRENDYOL_PRODUCTION = {
    "api_base": "https://api.trendyol.com/sapigw",
}

ENVIRONMENTS = {
    "stage": TRENDYOL_STAGE,
    "production": TRENDYOL_PRODUCTION,
}

ALLOWED_ORIGINS = (
    "https://karhesabi.vercel.app",
    "https://www.karhesabi.vercel.app",
    "https://karhesabi-git-main-mcts-projects-2b8b6936.vercel.app",
    "https://karhesabi-mcts-projects-2b8b6936.vercel.app",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
)

CORS_ALLOW_METHODS = "GET, POST, PUT, DELETE, OPTIONS"
CORS_ALLOW_HEADERS = "Content-Type, Authorization, X-Requested-With"

SELF_INTEGRATION = "SelfIntegration"

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 4000
DEFAULT_STATIC_DIR = "dist"
MAX_BODY_BYTES = 1024 * 1024  # 1 MiB

DEFAULT_PAGE = 0
DEFAULT_PAGE_SIZE = 50


def resolve_environment(trendyol_env: str | None, app_env: str | None) -> str:
    """Pick the marketplace host key from the two environment flags."""
    trendyol_env = (trendyol_env or "").strip().lower()
    if trendyol_env == "production":
        return "production"
    if trendyol_env in ("test", "stage"):
        return "stage"
    return "production" if (app_env or "").strip().lower() == "production" else "stage"


@dataclass(frozen=True)
class ProxySettings:
    """Settings resolved once at startup and passed to every component."""

    environment: str = "stage"
    app_env: str = ""
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    static_dir: str = DEFAULT_STATIC_DIR
    allowed_origins: tuple[str, ...] = field(default=ALLOWED_ORIGINS)
    max_body_bytes: int = MAX_BODY_BYTES

    def __post_init__(self) -> None:
        if self.environment not in ENVIRONMENTS:
            raise ConfigurationError(
                f"Unknown environment: {self.environment}. Use 'stage' or 'production'."
            )

    @property
    def api_base(self) -> str:
        return ENVIRONMENTS[self.environment]["api_base"]

    @property
    def debug(self) -> bool:
        """Stack details are only exposed when APP_ENV=development is set."""
        return self.app_env == "development"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ProxySettings":
        """Build settings from process environment variables."""
        env = os.environ if environ is None else environ
        app_env = env.get("APP_ENV", "").strip().lower()

        raw_port = env.get("PORT", str(DEFAULT_PORT))
        try:
            port = int(raw_port)
        except ValueError:
            raise ConfigurationError(f"Invalid PORT value: {raw_port!r}") from None

        origins = env.get("CORS_ALLOWED_ORIGINS")
        allowed = (
            tuple(o.strip() for o in origins.split(",") if o.strip())
            if origins
            else ALLOWED_ORIGINS
        )

        return cls(
            environment=resolve_environment(env.get("TRENDYOL_ENV"), app_env),
            app_env=app_env,
            host=env.get("HOST", DEFAULT_HOST),
            port=port,
            static_dir=env.get("STATIC_DIR", DEFAULT_STATIC_DIR),
            allowed_origins=allowed,
        )
