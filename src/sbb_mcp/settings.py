"""Server settings."""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """SBB Transport server settings.

    All settings can be configured via environment variables with the prefix SBB_MCP_.
    For example, SBB_MCP_PORT=8080 will set port=8080.
    """

    model_config = SettingsConfigDict(
        env_prefix="SBB_MCP_",
        env_file=".env",
        extra="ignore",
    )

    # Server settings
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # HTTP settings
    host: str = "0.0.0.0"
    port: int = Field(default=3001, ge=0, le=65535)
    sse_path: str = "/sse"
    message_path: str = "/messages"
    public_dir: Path = Path("public")
    """Directory served at / and for static assets."""

    # Outbound API settings
    transport_api_url: str = "http://transport.opendata.ch/v1/connections"
    connection_limit: int = Field(default=3, ge=1)
    """Number of connections requested from the timetable API."""
