from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PATH = Path(__file__).resolve().parent.parent / ".env.local"

# Values shipped in .env templates that mean "not configured"
PLACEHOLDER_API_KEYS = {"", "your_openai_api_key", "sk-..."}


class Settings(BaseSettings):
    # Environment settings
    environment: str = "development"
    debug: bool = False
    LOG_LEVEL: str = "INFO"

    # Supabase Postgres (brain_items table); pool is skipped when unset
    SUPABASE_DB_URL: str | None = None

    # =================================================================
    # UPSTREAM MODEL SETTINGS
    # =================================================================
    OPENAI_API_KEY: str | None = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENAI_TEMPERATURE: float = 0.3
    OPENAI_TOP_P: float = 0.8
    OPENAI_MAX_TOKENS: int = 512
    AI_TIMEOUT_SECONDS: float = 30.0

    # =================================================================
    # ADMISSION CONTROL - protects the model quota
    # =================================================================
    AI_MAX_CALLS_PER_MINUTE: int = 10
    AI_RATE_WINDOW_SECONDS: float = 60.0
    AI_QUOTA_COOLDOWN_SECONDS: float = 60.0

    # =================================================================
    # ENRICHMENT / QUERY BUDGETS
    # =================================================================
    AI_CONTENT_CHAR_BUDGET: int = 25_000
    QUERY_CONTEXT_MAX_ITEMS: int = 25
    QUERY_EXCERPT_CHARS: int = 150
    QUERY_FETCH_LIMIT: int = 50

    # =================================================================
    # DATABASE POOL SETTINGS
    # =================================================================
    DB_POOL_MIN_SIZE: int = 2
    DB_POOL_MAX_SIZE: int = 10
    DB_POOL_TIMEOUT: float = 30.0
    DB_POOL_MAX_IDLE: float = 600.0  # 10 minutes
    DB_POOL_MAX_LIFETIME: float = 3600.0  # 1 hour

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def ai_configured(self) -> bool:
        """True when an API key that is not a template placeholder is set."""
        key = (self.OPENAI_API_KEY or "").strip()
        return key not in PLACEHOLDER_API_KEYS

    def database_configured(self) -> bool:
        return bool(self.SUPABASE_DB_URL)

    def get_db_pool_config(self) -> dict:
        """
        Get database pool configuration.
        Adjust environment-specific settings based on self.environment.
        """
        config = {
            "min_size": self.DB_POOL_MIN_SIZE,
            "max_size": self.DB_POOL_MAX_SIZE,
            "timeout": self.DB_POOL_TIMEOUT,
            "max_idle": self.DB_POOL_MAX_IDLE,
            "max_lifetime": self.DB_POOL_MAX_LIFETIME,
        }

        if self.environment == "development":
            config.update(
                {
                    "min_size": 1,
                    "max_size": 5,
                    "timeout": 15.0,
                }
            )

        return config


settings = Settings()
