from dotenv import load_dotenv
from pydantic_settings import BaseSettings
from typing import Optional

load_dotenv()


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Calorie Tracker Chat Service"
    API_PREFIX: str = "/api"
    DEBUG: bool = False

    # Local development bypasses bearer-token auth and acts as DEV_USER_ID
    DEV_MODE: bool = False
    DEV_USER_ID: str = "dev-user"

    # Database
    DATABASE_URL: str = "sqlite:///./calorie_tracker.db"

    # Authentication
    TOKEN_SECRET_KEY: str = "change-me"
    TOKEN_ALGORITHM: str = "HS256"

    # LLM provider (OpenAI-compatible, OpenRouter by default)
    OPENROUTER_API_KEY: Optional[str] = None
    OPENROUTER_TOKEN_FILE: str = "~/.openrouter.token"
    LLM_BASE_URL: str = "https://openrouter.ai/api/v1"
    LLM_MODEL: str = "google/gemini-3-flash-preview"
    LLM_TEMPERATURE: float = 0.3
    LLM_MAX_TOKENS: int = 4096
    LLM_REASONING_EFFORT: Optional[str] = "low"
    LLM_TIMEOUT_SECONDS: float = 120.0
    APP_REFERER: str = "http://localhost:3001"

    # Conversation
    MAX_TOOL_ROUNDS: int = 15
    MAX_HISTORY_MESSAGES: int = 100
    USER_FOODS_CONTEXT_LIMIT: int = 50

    # Event streaming
    EVENT_POLL_INTERVAL: float = 0.25
    EVENT_BATCH_LIMIT: int = 200
    EVENT_SINCE_WINDOW_SECONDS: float = 2.0

    # Food search
    OPENFOODFACTS_URL: str = "https://world.openfoodfacts.org/cgi/search.pl"
    FOOD_SEARCH_MAX_RESULTS: int = 8
    FOOD_SEARCH_TIMEOUT_SECONDS: float = 10.0

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = True
    LOG_DIR: Optional[str] = None

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
