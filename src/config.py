"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "fraudscope"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    host: str = "0.0.0.0"
    port: int = 8080

    # Remote fraud-scoring service
    scoring_api_url: str = "http://localhost:8000"
    scoring_timeout_seconds: float = 30.0

    # Batch presentation / export
    preview_rows: int = 5
    export_filename_prefix: str = "fraud_analysis"

    model_config = {"env_prefix": "", "env_file": ".env", "extra": "ignore"}


settings = Settings()
