"""Pydantic models for bunson configuration validation."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CorsConfig(BaseModel):
    """CORS response headers for the HTTP server.

    Every option that is set produces exactly one Access-Control-* header.
    Options left unset produce nothing; no defaults are injected.

    Example in bunson.json:
        "cors": {
            "origin": "*",
            "methods": ["POST", "OPTIONS"],
            "allowedHeaders": ["Content-Type"],
            "maxAge": 600
        }
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    origin: str | None = None
    """Access-Control-Allow-Origin."""

    methods: list[str] | str | None = None
    """Access-Control-Allow-Methods."""

    allowed_headers: list[str] | str | None = Field(default=None, alias="allowedHeaders")
    """Access-Control-Allow-Headers."""

    exposed_headers: list[str] | str | None = Field(default=None, alias="exposedHeaders")
    """Access-Control-Expose-Headers."""

    credentials: bool | None = None
    """Access-Control-Allow-Credentials."""

    max_age: int | None = Field(default=None, ge=0, alias="maxAge")
    """Access-Control-Max-Age, in seconds."""


class ServerConfig(BaseModel):
    """Configuration for the bunson HTTP server.

    Example in bunson.json:
        "server": {
            "host": "127.0.0.1",
            "port": 8765,
            "log_level": "INFO"
        }
    """

    model_config = ConfigDict(extra="forbid")

    host: str = "127.0.0.1"
    """Host address to bind to."""

    port: int = Field(default=8765, ge=0, le=65535)
    """Port number for the HTTP server (0 picks a free port)."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    """Logging level for server operations."""

    max_concurrent: int = Field(default=32, ge=1)
    """Maximum number of connections handled at once."""

    cors: CorsConfig | None = None
    """Optional CORS headers added to every response."""


class ClientConfig(BaseModel):
    """Configuration for BunsonClient defaults."""

    model_config = ConfigDict(extra="forbid")

    url: str = "http://127.0.0.1:8765"
    """Server URL used when none is given."""

    timeout: float = Field(default=60.0, gt=0)
    """Request timeout in seconds."""

    methods: list[str] = Field(default_factory=list)
    """Methods the client is allowed to call."""

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"url must start with http:// or https://, got: {v!r}")
        return v


class Config(BaseModel):
    """Root configuration model."""

    model_config = ConfigDict(extra="forbid")

    server: ServerConfig = Field(default_factory=ServerConfig)
    client: ClientConfig = Field(default_factory=ClientConfig)
