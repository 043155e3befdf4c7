"""Application settings loaded from environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Caller authentication
    # Comma-separated "api_key=user_id" pairs
    gateway_api_keys: str = "dev-key-1=dev-user"

    # Upstream LLM provider (OpenAI-compatible)
    upstream_base_url: str = "https://api.openai.com"
    upstream_api_key: str = ""
    upstream_model: str = "gpt-4o-mini"
    upstream_max_tokens: int = 8192

    # Admission control
    rate_limit: int = 10  # Generations per window per user
    rate_limit_window_seconds: float = 3600.0
    rate_limit_failure_mode: str = "open"  # open | closed
    rate_limit_store_backend: str = "memory"  # "memory" | "dynamodb"
    rate_limit_sweep_interval_seconds: float = 300.0
    rate_limit_retention_seconds: float = 0.0  # 0 = twice the window
    rate_limit_max_cas_attempts: int = 64

    # Shared window store
    dynamodb_table_name: str = "quotagate-rate-windows"
    aws_region: str = "us-east-1"

    # Logging
    log_level: str = "INFO"
    audit_log_file: str = ""  # Empty = stdout only

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def api_key_users(self) -> dict[str, str]:
        """Parse "key=user" pairs. A bare key maps to itself."""
        users: dict[str, str] = {}
        for pair in self.gateway_api_keys.split(","):
            pair = pair.strip()
            if not pair:
                continue
            key, _, user_id = pair.partition("=")
            key = key.strip()
            if key:
                users[key] = user_id.strip() or key
        return users

    @property
    def sweep_retention_seconds(self) -> float:
        """Retention ceiling for the idle-key sweep, never shorter than the window."""
        window = self.rate_limit_window_seconds
        retention = self.rate_limit_retention_seconds or 2 * window
        return max(retention, window)


@lru_cache
def get_settings() -> Settings:
    return Settings()
