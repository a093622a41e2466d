from typing import List, Optional, Literal
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    # ============================================================
    # APPLICATION INFO
    # ============================================================
    PROJECT_NAME: str = "AIR Discovery Travel Advisor"
    APP_NAME: str = "AIR Discovery"
    API_V1_STR: str = "/api/v1"
    VERSION: str = "1.0.0"
    ENVIRONMENT: Literal["development", "staging", "production", "test"] = "development"
    DEBUG: bool = False

    # ============================================================
    # TEXT GENERATION (LLM)
    # ============================================================
    LLM_PROVIDER: Literal["gemini", "openai"] = "gemini"

    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.0-flash"
    GEMINI_TIMEOUT: float = 60.0
    GEMINI_MAX_RETRIES: int = 4
    GEMINI_BASE_DELAY: float = 0.5
    GEMINI_TEMPERATURE: float = 0.2
    GEMINI_TOP_K: int = 40
    GEMINI_TOP_P: float = 0.8
    GEMINI_MAX_TOKENS: int = 2048

    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4o"
    OPENAI_MAX_TOKENS: int = 2000
    OPENAI_TEMPERATURE: float = 0.3
    OPENAI_MAX_RETRIES: int = 3

    # ============================================================
    # CHAT SESSIONS
    # ============================================================
    USE_REDIS: bool = True
    CHAT_SESSION_TTL: int = 86400  # 24 hours
    MAX_USER_SESSIONS: int = 50
    MAX_MESSAGE_LENGTH: int = 1000

    # ============================================================
    # REDIS (SESSION STORE)
    # ============================================================
    REDIS_URI: str = "redis://localhost:6379/0"
    REDIS_URL: Optional[str] = None  # alias
    REDIS_MAX_CONNECTIONS: int = 50

    @property
    def get_redis_url(self) -> str:
        return self.REDIS_URL or self.REDIS_URI

    # ============================================================
    # TRAVEL RULES
    # ============================================================
    DEFAULT_TRIP_DURATION_DAYS: int = 7
    MIN_BUDGET_PER_PERSON: float = 500.0
    MAX_PASSENGERS: int = 9
    FLIGHT_SEARCH_MAX_RESULTS: int = 50
    FLIGHT_SEARCH_NON_STOP: bool = False

    # ============================================================
    # FRONTEND / CORS
    # ============================================================
    BACKEND_CORS_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])
    FRONTEND_URL: str = "http://localhost:3000"

    # ============================================================
    # LOGGING
    # ============================================================
    LOG_LEVEL: str = "INFO"

    # ============================================================
    # TIMEZONE
    # ============================================================
    DEFAULT_TIMEZONE: str = "America/Sao_Paulo"

    # ============================================================
    # PYDANTIC CONFIG
    # ============================================================
    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )


# ============================================================
# GLOBAL INSTANCE
# ============================================================
settings = Settings()


# ============================================================
# VALIDATION
# ============================================================
def validate_required_settings():
    missing = []

    if settings.LLM_PROVIDER == "gemini" and not settings.GEMINI_API_KEY:
        missing.append("GEMINI_API_KEY")
    if settings.LLM_PROVIDER == "openai" and not settings.OPENAI_API_KEY:
        missing.append("OPENAI_API_KEY")

    if missing:
        raise ValueError(f"Missing required env vars: {', '.join(missing)}")


try:
    validate_required_settings()
except ValueError as e:
    import logging
    logging.warning(f"Config warning: {e}")
