from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    pdf_engine: str = "pdfplumber"

    query_provider: str = "gemini"

    gemini_api_key: str = ""
    gemini_model_name: str = "gemini-2.0-flash-exp"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_timeout_seconds: int = 30

    openai_api_key: str = ""
    openai_model_name: str = "gpt-4o-mini"
    openai_timeout_seconds: int = 30

    stage_settle_delay_seconds: float = 0.5

    citation_target_count: int = 10
    min_citation_coverage: float = 0.7
    length_ratio_min: float = 0.7
    length_ratio_max: float = 1.5
    prohibited_terms: list[str] = ["cure", "guarantee", "miracle", "proven"]
