from typing import Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    PROJECT_NAME: str = "HeySheets Functions"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    # Spreadsheet gateway (google-sheet function or any service speaking the same protocol)
    SHEETS_SERVICE_URL: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("SHEETS_SERVICE_URL", "GOOGLE_SHEET_FUNCTION_URL"),
    )
    SHEETS_REQUEST_TIMEOUT: float = Field(default=15.0, description="Seconds per read/append call")

    # Ranking collaborator (OpenAI-compatible API, called through the openai SDK)
    RANKING_BASE_URL: str = Field(
        default="https://openrouter.ai/api/v1",
        validation_alias=AliasChoices("RANKING_BASE_URL", "RANKING_API_URL"),
    )
    RANKING_API_KEY: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("RANKING_API_KEY", "OPENROUTER_API_KEY"),
    )
    RANKING_MODEL: str = "anthropic/claude-3.5-haiku"
    RANKING_REQUEST_TIMEOUT: float = 20.0
    RANKING_MAX_CANDIDATES: int = Field(default=50, ge=1, description="Rows sent to the ranker per call")
    RANKING_MAX_PAYLOAD_CHARS: int = Field(default=12000, ge=200, description="Ceiling for the serialized candidate list")

    # Calendar gateway (google-calendar function or any service speaking the same protocol)
    CALENDAR_SERVICE_URL: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("CALENDAR_SERVICE_URL", "GOOGLE_CALENDAR_FUNCTION_URL"),
    )
    CALENDAR_REQUEST_TIMEOUT: float = Field(default=15.0, description="Seconds per calendar call")
    CALENDAR_TIMEZONE: str = "Asia/Hong_Kong"

    # Executor
    FUNCTION_TIMEOUT_MS: Optional[int] = Field(
        default=None,
        description="Overrides every function's own max_execution_time_ms when set",
    )
    LEAD_STATUS_VALUE: str = "new"

    @field_validator("SHEETS_SERVICE_URL", "RANKING_BASE_URL", "CALENDAR_SERVICE_URL")
    @classmethod
    def _strip_trailing_slash(cls, value: Optional[str]) -> Optional[str]:
        if value:
            return value.rstrip("/")
        return value

    def model_post_init(self, __context):
        """
        Validate configuration on startup. In production, fail hard on settings
        that would make every function call fail at request time.
        """
        is_prod = self.ENVIRONMENT.lower() == "production"
        errors = []

        if is_prod and not self.SHEETS_SERVICE_URL:
            errors.append("SHEETS_SERVICE_URL is required in production.")

        if is_prod and self.DEBUG:
            errors.append("DEBUG must be False in production.")

        if self.FUNCTION_TIMEOUT_MS is not None and self.FUNCTION_TIMEOUT_MS <= 0:
            errors.append("FUNCTION_TIMEOUT_MS must be a positive number of milliseconds.")

        if errors:
            error_msg = "Configuration errors:\n" + "\n".join(f"  - {e}" for e in errors)
            raise ValueError(error_msg)


settings = Settings()
