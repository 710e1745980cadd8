"""
Client configuration using pydantic-settings.

Read from UTSAV_* environment variables.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    """Where the client finds the backend and keeps its persisted state."""

    API_URL: str = Field(
        default="http://localhost:8000/api/v1",
        description="Base URL of the REST API",
    )
    FUNCTIONS_URL: str = Field(
        default="http://localhost:8000/functions",
        description="Base URL of the translation functions",
    )
    STORE_PATH: str | None = Field(
        default=None,
        description="JSON file backing the persisted store; memory only when unset",
    )
    TIMEOUT_SECONDS: float = 30.0

    model_config = SettingsConfigDict(
        env_prefix="UTSAV_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )
