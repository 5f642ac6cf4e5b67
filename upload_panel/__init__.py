from .app import create_app
from .config import Config, ConfigError

__all__ = ["create_app", "Config", "ConfigError"]
