from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    secret_key: str = "dev-secret-change-me"
    database_path: str = "data/lantern.db"
    redis_url: str = "redis://localhost:6379/0"

    # JWT settings
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24  # 24 hours

    # Station signal
    signal_default: int = 100
    signal_threshold: int = 50
    change_percentage: float = 0.2
    signal_max_change: int = 10
    signal_reset_timeout: float = 20.0  # seconds between decay ticks

    # Hacking sessions
    hacking_tries_amount: int = 4
    decoy_display_size: int = 13

    # External boost reporting, disabled while host is empty
    hacking_api_host: str = ""
    hacking_api_key: str = ""
    telemetry_timeout: float = 5.0

    # "inline" ticks inside the web process, "celery" leaves it to celery beat
    decay_backend: Literal["inline", "celery"] = "inline"

    # Admin account created on startup when both are set
    admin_username: str = ""
    admin_password: str = ""

    class Config:
        env_file = ".env"


settings = Settings()

# Ensure data directory exists
Path(settings.database_path).parent.mkdir(parents=True, exist_ok=True)
