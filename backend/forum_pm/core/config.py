from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str = "sqlite:///./forum_pm.db"

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None

    # Reply / quote prefill
    reply_prefix: str = "Re: "
    quote_prefix: str = "> "

    # Limits
    title_max_length: int = 255
    body_max_length: int = 20000
    folder_page_size: int = 20

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
