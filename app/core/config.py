import os
from pydantic_settings import BaseSettings
from typing import List, Optional
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

class Settings(BaseSettings):
    # App settings
    APP_NAME: str = os.getenv("APP_NAME", "bridge-gateway")
    APP_VERSION: str = os.getenv("APP_VERSION", "0.1.0")
    DEBUG: bool = os.getenv("DEBUG", "False").lower() == "true"
    API_PREFIX: str = os.getenv("API_PREFIX", "/api")
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8080"))
    SHUTDOWN_GRACE_SECONDS: int = int(os.getenv("SHUTDOWN_GRACE_SECONDS", "10"))
    DOCS_ENABLED: bool = os.getenv("DOCS_ENABLED", "False").lower() == "true"
    METRICS_ENABLED: bool = os.getenv("METRICS_ENABLED", "False").lower() == "true"

    # Static files
    PUBLIC_DIR: str = os.getenv("PUBLIC_DIR", "public")
    INDEX_FILE: str = os.getenv("INDEX_FILE", "index.html")

    # CORS settings
    CORS_ORIGIN: str = os.getenv("CORS_ORIGIN", "*")

    # Upstream chat-completion API
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    OPENAI_BASE_URL: str = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
    OPENAI_TIMEOUT_SECONDS: float = float(os.getenv("OPENAI_TIMEOUT_SECONDS", "25"))
    DEFAULT_SYSTEM_PROMPT: str = os.getenv(
        "DEFAULT_SYSTEM_PROMPT",
        "You are a concise, helpful assistant.",
    )
    UPSTREAM_DETAIL_MAX_CHARS: int = int(os.getenv("UPSTREAM_DETAIL_MAX_CHARS", "500"))

    # Optional bearer token required on the chat endpoint
    CHAT_TOKEN: Optional[str] = os.getenv("CHAT_TOKEN")

    # Rate limiting
    RATE_LIMIT_WINDOW_SECONDS: int = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))
    RATE_LIMIT_MAX_REQUESTS: int = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "30"))
    RATE_LIMIT_SWEEP_WINDOWS: int = int(os.getenv("RATE_LIMIT_SWEEP_WINDOWS", "5"))

    # Request body bound (bytes)
    MAX_BODY_BYTES: int = int(os.getenv("MAX_BODY_BYTES", str(128 * 1024)))

    # Logging settings
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_TO_FILE: bool = os.getenv("LOG_TO_FILE", "False").lower() == "true"
    LOG_DIR: str = os.getenv("LOG_DIR", "logs")
    LOG_FORMAT: str = os.getenv("LOG_FORMAT", "text")

    model_config = {
        "env_file": ".env",
        "case_sensitive": True,
        "extra": "ignore",
    }

    @property
    def has_api_key(self) -> bool:
        return bool(self.OPENAI_API_KEY.strip())

    @property
    def public_root(self) -> str:
        return os.path.abspath(self.PUBLIC_DIR)

    def get_cors_origins(self) -> List[str]:
        """Split CORS_ORIGIN into its configured entries."""
        return [origin.strip() for origin in self.CORS_ORIGIN.split(",") if origin.strip()]

settings = Settings()
