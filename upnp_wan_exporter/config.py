"""Configuration management for the UPnP WAN exporter"""

from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from typing import Optional
from datetime import datetime, timezone
import json
import logging
import yaml
import os


DEFAULT_CONFIG_PATH = "config.yaml"
CONFIG_PATH_ENV = "UPNP_WAN_CONFIG"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class ServerConfig(BaseSettings):
    """HTTP server configuration"""
    bind_address: str = "0.0.0.0"
    port: int = 9091


class UpnpConfig(BaseSettings):
    """Gateway discovery and query configuration"""
    discovery_timeout: float = 5.0  # seconds to wait for an SSDP response
    request_timeout: float = 10.0  # per HTTP request to the gateway
    scrape_timeout: float = 30.0  # whole collection; 0 disables


class LoggingConfig(BaseSettings):
    """Logging configuration"""
    level: str = "info"
    json_format: bool = False


class Config(BaseSettings):
    """Main application configuration"""
    server: ServerConfig = ServerConfig()
    upnp: UpnpConfig = UpnpConfig()
    logging: LoggingConfig = LoggingConfig()

    model_config = ConfigDict(
        env_prefix="UPNP_WAN_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # Environment beats the YAML values passed in by from_yaml
        return env_settings, dotenv_settings, init_settings, file_secret_settings

    @classmethod
    def from_yaml(cls, yaml_path: str = DEFAULT_CONFIG_PATH) -> "Config":
        """Load configuration from YAML file"""
        if not os.path.exists(yaml_path):
            # Return default configuration
            return cls()

        with open(yaml_path, "r") as f:
            yaml_data = yaml.safe_load(f)

        if yaml_data is None:
            return cls()

        return cls(**yaml_data)


# Global config instance
config: Optional[Config] = None


def get_config_path() -> str:
    return os.environ.get(CONFIG_PATH_ENV, DEFAULT_CONFIG_PATH)


def get_config() -> Config:
    """Get global configuration instance"""
    global config
    if config is None:
        config = Config.from_yaml(get_config_path())
    return config


def reload_config() -> Config:
    """Reload configuration from file"""
    global config
    config = Config.from_yaml(get_config_path())
    return config


class JsonFormatter(logging.Formatter):
    """Formats each record as a single JSON object"""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def setup_logging(log_config: LoggingConfig) -> None:
    """Configure the root logger from the logging section"""
    level = getattr(logging, log_config.level.upper(), logging.INFO)

    handler = logging.StreamHandler()
    if log_config.json_format:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(LOG_FORMAT))

    logging.basicConfig(level=level, handlers=[handler], force=True)
