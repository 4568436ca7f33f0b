import sys

from pydantic_settings import BaseSettings

_ENV_FILE = None if "pytest" in sys.modules else ".env"


class Settings(BaseSettings):
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    API_BASE_URL: str = "https://nextjs-skill-viewer.vercel.app"
    API_TIMEOUT_SECONDS: float = 30.0
    SIGNIN_PATH: str = "/api/smartphone/auth/signin"
    SIGNUP_PATH: str = "/signup"

    TOKEN_STORE_PATH: str = "~/.skillviewer/storage.json"

    TASK_UPDATE_MAX_ATTEMPTS: int = 2
    TASK_UPDATE_RETRY_DELAY_SECONDS: float = 1.0
    TASK_UPDATE_RETRY_BACKOFF: float = 1.0

    ACTIVITY_PAGE_SIZE: int = 20
    ACTIVITY_STATS_LIMIT: int = 10000

    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    model_config = {
        "env_file": _ENV_FILE,
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
    }


settings = Settings()
