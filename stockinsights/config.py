from pathlib import Path
from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

# Load .env from repo root for local development and scripts.
ENV_PATH = Path(__file__).resolve().parents[1] / ".env"
load_dotenv(dotenv_path=ENV_PATH)

class Settings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=True, populate_by_name=True)
    anthropic_api_key: str | None = Field(default=None, alias="ANTHROPIC_API_KEY")
    llm_model: str = Field(default="claude-sonnet-4-20250514", alias="LLM_MODEL")
    llm_max_tokens: int = Field(default=4000, alias="LLM_MAX_TOKENS")
    llm_temperature: float = Field(default=0.3, alias="LLM_TEMPERATURE")
    llm_timeout_seconds: float = Field(default=120.0, alias="LLM_TIMEOUT_SECONDS")
    sentiment_max_tokens: int = Field(default=300, alias="SENTIMENT_MAX_TOKENS")
    sentiment_temperature: float = Field(default=0.7, alias="SENTIMENT_TEMPERATURE")
    blob_backend: str = Field(default="gcs", alias="BLOB_BACKEND")
    blob_bucket: str = Field(default="aistocks_data", alias="BLOB_BUCKET")
    blob_local_dir: str = Field(default="./data/snapshots", alias="BLOB_LOCAL_DIR")
    gcs_base_url: str = Field(default="https://storage.googleapis.com", alias="GCS_BASE_URL")
    snapshot_prefix: str = Field(default="tickertape_custom_screener_", alias="SNAPSHOT_PREFIX")
    history_window_days: int = Field(default=183, alias="HISTORY_WINDOW_DAYS")
    screen_result_limit: int = Field(default=10, alias="SCREEN_RESULT_LIMIT")
    http_timeout_seconds: float = Field(default=30.0, alias="HTTP_TIMEOUT_SECONDS")
    known_symbols: str | None = Field(default=None, alias="KNOWN_SYMBOLS")
    known_symbols_file: str | None = Field(default=None, alias="KNOWN_SYMBOLS_FILE")
    prompt_compress_history: bool = Field(default=False, alias="PROMPT_COMPRESS_HISTORY")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_error_file: str | None = Field(default=None, alias="LOG_ERROR_FILE")

settings = Settings()
