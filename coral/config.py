from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from coral.gallery.constants import DEFAULT_BREAKPOINTS, PromotionStrategy


def _env_files() -> list[str]:
    """Load .env from the project root, then a local .env."""
    base = Path(__file__).resolve().parent.parent
    return [str(base / ".env"), ".env"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=_env_files(),
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # ── Runtime ──────────────────────────────────────────────────────────────
    env_name: str = "development"
    log_level: str = ""

    # ── AWS ───────────────────────────────────────────────────────────────────
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    aws_region: str = "us-east-1"
    s3_endpoint_url: str = ""  # S3-compatible stores (MinIO, localstack)

    staging_bucket: str = "coral-staging"
    cdn_bucket: str = "coral-cdn"
    cdn_host: str = ""

    # ── Pipeline ─────────────────────────────────────────────────────────────
    namespace: str = "galleries"
    breakpoints: tuple[int, ...] = DEFAULT_BREAKPOINTS
    index_page_size: int = 100

    # ── Publishing ───────────────────────────────────────────────────────────
    promotion_strategy: PromotionStrategy = PromotionStrategy.MOVE
    redis_url: str = "redis://localhost:6379/0"
    publish_queue: str = "coral:publish"

    # ── CORS ─────────────────────────────────────────────────────────────────
    cors_origins: str = "http://localhost:3000"

    @field_validator("breakpoints")
    @classmethod
    def _sorted_breakpoints(cls, value: tuple[int, ...]) -> tuple[int, ...]:
        if not value or any(bp < 1 for bp in value):
            raise ValueError("breakpoints must be a non-empty list of positive integers")
        return tuple(sorted(set(value)))

    @field_validator("cdn_host")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def effective_log_level(self) -> str:
        if self.log_level:
            return self.log_level.upper()
        return "INFO" if self.env_name == "production" else "DEBUG"

    @property
    def cors_origins_list(self) -> list[str]:
        return [x.strip() for x in self.cors_origins.split(",") if x.strip()]

    def public_ref(self, key: str) -> str:
        """Public reference for a key: prefixed with the CDN host when one is set."""
        return f"{self.cdn_host}/{key}" if self.cdn_host else key


@lru_cache()
def get_settings() -> Settings:
    """Return the process-wide Settings, parsed once."""
    return Settings()
