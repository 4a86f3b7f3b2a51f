"""Application configuration management using Pydantic Settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application Settings
    app_name: str = Field(default="cluster-investigator", alias="APP_NAME")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="text", alias="LOG_FORMAT")

    # OpenTelemetry Settings
    otel_tracing_enabled: bool = Field(default=False, alias="OTEL_TRACING_ENABLED")
    otel_exporter_type: str = Field(default="console", alias="OTEL_EXPORTER_TYPE")
    otel_exporter_otlp_endpoint: str = Field(default="", alias="OTEL_EXPORTER_OTLP_ENDPOINT")
    # Exports questions, answers and tool arguments/results verbatim when enabled
    otel_capture_ai_payloads: bool = Field(default=False, alias="OTEL_CAPTURE_AI_PAYLOADS")

    # LLM Provider Settings
    openai_api_key: str = Field(default="", alias="OPENAI_API_KEY")
    openai_model: str = Field(default="gpt-4o-mini", alias="OPENAI_MODEL")
    llm_temperature: float = Field(default=0.0, alias="LLM_TEMPERATURE")
    llm_max_tokens: int = Field(default=4096, alias="LLM_MAX_TOKENS")

    # Tool Settings
    kubectl_path: str = Field(default="kubectl", alias="KUBECTL_PATH")
    kubectl_timeout_seconds: int = Field(default=30, alias="KUBECTL_TIMEOUT_SECONDS")

    # Planner Settings
    planner_max_steps: int = Field(default=15, alias="PLANNER_MAX_STEPS")
    planner_llm_timeout_seconds: int = Field(default=120, alias="PLANNER_LLM_TIMEOUT_SECONDS")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )


# Global settings instance
settings = Settings()
