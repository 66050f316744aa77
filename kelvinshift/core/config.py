from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="KELVINSHIFT_", extra="ignore")

    app_name: str = "KelvinShift"
    # IANA zone name; empty string means the host's local zone
    timezone: str = ""

    # Engine timers
    tick_seconds: float = 15.0
    demo_fps: float = 60.0
    demo_duration_seconds: float = 10.0

    # Output: "sim" for development, "gammarelay" for wl-gammarelay over D-Bus
    output_mode: str = Field(default="sim")
    busctl_path: str = "busctl"
    busctl_timeout_seconds: float = 2.0

    # Storage
    sqlite_path: str = Field(default="kelvinshift.db")

    # Logging
    log_file: str = "kelvinshift.log"
    log_level: str = "INFO"

    # IP geolocation for solar mode
    geolocation_url: str = "https://ipapi.co/json/"
    geolocation_timeout_seconds: float = 5.0


settings = Settings()
