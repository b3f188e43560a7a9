"""Configuration models and parser for claudewrap.yaml."""

from claudewrap.config.models import ClientConfig, OAuthCredentials
from claudewrap.config.parser import ConfigError, load_config

__all__ = [
    "ClientConfig",
    "ConfigError",
    "OAuthCredentials",
    "load_config",
]
