from __future__ import annotations

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    MESSAGING_API_BASE_URL: str = "http://localhost:8000/api/v1/messaging"
    HTTP_TIMEOUT_SECONDS: float = 10.0

    MAX_MESSAGE_LENGTH: int = 1000
    SEARCH_MIN_QUERY_LENGTH: int = 2
    TEMP_ID_PREFIX: str = "temp-"

    DEVSERVER_HOST: str = "127.0.0.1"
    DEVSERVER_PORT: int = 8000

    LOG_LEVEL: str = "info"

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore",
    )


settings = Settings()
