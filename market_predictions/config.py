from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "MP_", "env_file": ".env", "env_file_encoding": "utf-8"}

    market_data_provider: str = Field(default="polygon", pattern=r"^(polygon|yahoo)$")
    polygon_api_key: str = Field(default="")
    polygon_base_url: str = Field(default="https://api.polygon.io")
    provider_timeout_seconds: float = Field(default=10.0, gt=0)
    rate_limit_max_retries: int = Field(default=2, ge=0)
    rate_limit_backoff_seconds: float = Field(default=1.0, ge=0)
    fetch_months: int = Field(default=5, ge=1, le=60)
    market_timezone: str = Field(default="America/New_York")
    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=False)
    db_path: str = Field(default="market_predictions.db")
    cors_origins: str = Field(default="http://localhost:8081")


settings = Settings()
