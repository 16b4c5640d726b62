from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "docintel"
    db_username: str = "docintel"
    db_password: str = "secret"
    db_pool_min_size: int = 1
    db_pool_max_size: int = 10

    storage_root: str = "/tmp/documents"

    pdf_engine: str = "pdfplumber"

    processing_workers: int = 4
    processing_queue_capacity: int = 32
    recovery_poll_interval_seconds: int = 30
    recovery_stale_after_seconds: int = 300

    llm_provider: str = "openai"
    llm_api_key: str = ""
    llm_model_name: str = "gpt-4o"
    llm_base_url: str = ""
    llm_timeout_seconds: int = 30

    classification_max_chars: int = 2000
