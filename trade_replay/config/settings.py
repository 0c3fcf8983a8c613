"""trade_replay/config/settings.py

Configuration management using Pydantic BaseSettings.
Loads from environment variables and .env file.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Replay settings - every CLI flag falls back to these values"""

    # QuestDB target
    QDB_ADDRS: str = Field(default="questdb:9000")
    QDB_TOKEN: Optional[str] = Field(default=None)
    QDB_USERNAME: Optional[str] = Field(default=None)
    QDB_PASSWORD: Optional[str] = Field(default=None)
    RETRY_TIMEOUT_MS: int = Field(default=360000)

    # Load shape
    TOTAL_EVENTS: int = Field(default=1_000_000)
    DELAY_MS: int = Field(default=50)
    NUM_SENDERS: int = Field(default=10)
    PROGRESS_EVERY: int = Field(default=10_000)

    # Input
    CSV_PATH: str = Field(default="./trades20250728.csv.gz")
    TIMESTAMP_FROM_FILE: bool = Field(default=False)

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE: Optional[str] = Field(default=None)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore"
    }


# Global settings instance
# Priority: CLI arg > environment variable > .env file > default
settings = Settings()
