import os
from pydantic import BaseModel

class Settings(BaseModel):
    # Basic
    ENV: str = os.getenv("ENV", "dev")
    DEFAULT_CURRENCY: str = os.getenv("CURRENCY", "EUR")
    CACHE_TTL_SECONDS: int = int(os.getenv("CACHE_TTL_SECONDS", "43200"))

    # Narrative synthesis
    NARRATIVE_PROVIDER: str = os.getenv("NARRATIVE_PROVIDER", "mock")  # mock | openai
    OPENAI_API_KEY: str | None = os.getenv("OPENAI_API_KEY")
    OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    OPENAI_MAX_TOKENS: int = int(os.getenv("OPENAI_MAX_TOKENS", "1024"))

    # Property catalog
    CATALOG_PROVIDER: str = os.getenv("CATALOG_PROVIDER", "mock")      # mock | http
    CATALOG_BASE_URL: str | None = os.getenv("CATALOG_BASE_URL")

    # Macro-market context (NBS regional prices)
    MARKET_CONTEXT_PROVIDER: str = os.getenv("MARKET_CONTEXT_PROVIDER", "static")  # static | http
    MARKET_CONTEXT_BASE_URL: str | None = os.getenv("MARKET_CONTEXT_BASE_URL")

    # Security
    API_KEY: str | None = os.getenv("API_KEY")
    RATE_LIMIT_RPM: int = int(os.getenv("RATE_LIMIT_RPM", "60"))

    # CORS
    ALLOW_ORIGINS: str = os.getenv("ALLOW_ORIGINS", "*")

    # Cache
    USE_REDIS: bool = os.getenv("USE_REDIS", "false").lower() == "true"
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")

    # Metrics
    PROMETHEUS_ENABLED: bool = os.getenv("PROMETHEUS_ENABLED", "true").lower() == "true"

settings = Settings()
