from pathlib import Path
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class AppConfig(BaseSettings):
    artifacts_dir: Path = Field(default=Path("artifacts"), description="Path to comparison artifacts")

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", env_prefix="VEHICLE_PRICING_")


app_config = AppConfig()
