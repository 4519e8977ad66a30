"""Configuration loading and validation."""

from bunson.config.loader import load_config
from bunson.config.schema import ClientConfig, Config, CorsConfig, ServerConfig

__all__ = [
    "ClientConfig",
    "Config",
    "CorsConfig",
    "ServerConfig",
    "load_config",
]
