"""
Centralized configuration using pydantic-settings.

How it works:
- Reads environment variables automatically (e.g., POSTGRES_HOST env var → Settings.POSTGRES_HOST)
- Falls back to defaults defined here if env vars are not set
- Can also read from a .env file in the project root

Every module imports `settings` from here instead of hardcoding values.
Values that operators need to change at runtime (without a redeploy) go
through config/provider.py, which layers a database table and a Redis
cache on top of these defaults.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── PostgreSQL ──────────────────────────────────────────────
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "enhance"
    POSTGRES_PASSWORD: str = "enhance"
    POSTGRES_DB: str = "enhance"

    # ── Redis ───────────────────────────────────────────────────
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0

    # ── Worker ──────────────────────────────────────────────────
    WORKER_POOL_SIZE: int = 16         # concurrent execution units
    STEP_DELAY_SECONDS: float = 0.3    # pause between enhancer progress steps
    ENHANCER: str = "passthrough"      # see jobs/registry.py

    # ── Jobs & credits ──────────────────────────────────────────
    JOB_CREDIT_COST: int = 1
    ESTIMATED_JOB_SECONDS: int = 60
    SIGNUP_CREDITS: int = 3

    # ── Notifications ───────────────────────────────────────────
    NOTIFIER: str = "logging"          # "logging" or "push"
    PUSH_GATEWAY_URL: str = ""
    PUSH_GATEWAY_TOKEN: str = ""
    PUSH_TIMEOUT_SECONDS: float = 10.0

    # ── Runtime config cache ────────────────────────────────────
    CONFIG_CACHE_TTL_SECONDS: int = 300

    # ── App ─────────────────────────────────────────────────────
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    @property
    def database_url(self) -> str:
        """Sync connection string (psycopg2) used by the job store."""
        return (
            f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def redis_url(self) -> str:
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# Singleton: import this everywhere
settings = Settings()
