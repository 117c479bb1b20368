import logging
import os
import sys
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource


class YamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Load settings from YAML file specified by GALLERY_CONFIG_FILE env var."""

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Get the value for a field from the YAML config."""
        yaml_data = self._load_yaml_config()
        field_value = yaml_data.get(field_name)
        return field_value, field_name, False

    def __call__(self) -> dict[str, Any]:
        """Return all settings from YAML file."""
        return self._load_yaml_config()

    def _load_yaml_config(self) -> dict[str, Any]:
        """Load config from YAML file if specified."""
        config_file = os.environ.get("GALLERY_CONFIG_FILE")
        if config_file:
            path = Path(config_file)
            if path.exists():
                return yaml.safe_load(path.read_text()) or {}
        return {}


class CatalogConfig(BaseModel):
    """Catalog store configuration (nested in Config, uses env_nested_delimiter).

    An empty url selects the in-memory store; anything else is a SQLAlchemy
    async URL (e.g. sqlite+aiosqlite:///~/.gallery/catalog.db).
    """

    table_name: str = "images"
    url: str = ""
    echo: bool = False


class StorageConfig(BaseModel):
    """Object store configuration."""

    root: str = "~/.gallery/objects"
    default_container: str | None = None  # Reaper fallback when only the key survives


class TopicsConfig(BaseModel):
    images: str = "image-topic"  # Metadata and status updates
    uploads: str = "upload-topic"  # Object creation notifications
    status: str = "status-topic"  # StatusChanged events


class QueuesConfig(BaseModel):
    ingestion: str = "ingestion-queue"
    dead_letter: str = "ingestion-dlq"
    max_receive_count: int = 3  # Delivery attempts before dead-lettering
    batch_size: int = 10  # Dead-letter entries the reaper worker receives per poll

    @field_validator("max_receive_count", "batch_size")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be >= 1")
        return value


class IngestionConfig(BaseModel):
    # queue: topic -> ingestion queue -> worker; direct: topic -> validator
    mode: Literal["queue", "direct"] = "queue"
    allowed_extensions: list[str] = [".jpg", ".jpeg", ".png"]


class MailConfig(BaseModel):
    """Mail configuration. An empty api_url only logs outgoing mail."""

    recipient: str = "test@example.com"
    sender: str = "no-reply@example.com"
    api_url: str = ""
    api_token: str = ""
    timeout: float = 10.0


class WorkerConfig(BaseModel):
    """Background worker configuration."""

    poll_interval: float = 0.5  # Seconds between queue polls when idle


class LoggingConfig(BaseModel):
    """Logging configuration (nested in Config, uses env_nested_delimiter)."""

    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"

    @property
    def file(self) -> str | None:
        """Get log file path from GALLERY_LOG_FILE env var."""
        return os.environ.get("GALLERY_LOG_FILE")


class Config(BaseSettings):
    catalog: CatalogConfig = CatalogConfig()
    storage: StorageConfig = StorageConfig()
    topics: TopicsConfig = TopicsConfig()
    queues: QueuesConfig = QueuesConfig()
    ingestion: IngestionConfig = IngestionConfig()
    mail: MailConfig = MailConfig()
    worker: WorkerConfig = WorkerConfig()
    logging: LoggingConfig = LoggingConfig()

    model_config = {
        "env_prefix": "GALLERY_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_nested_delimiter": "__",  # Allows GALLERY_MAIL__RECIPIENT override
    }

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings sources to include YAML config.

        Priority (highest to lowest):
        1. init_settings - values passed to Config()
        2. env_settings - environment variables
        3. dotenv_settings - .env file
        4. yaml_settings - GALLERY_CONFIG_FILE yaml
        5. file_secret_settings - secrets from files
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


def configure_logging(config: LoggingConfig) -> None:
    """Configure Python logging based on config.

    Should be called early in application startup so all loggers pick up
    the configuration.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(config.level)

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(config.format, datefmt=config.date_format)

    if config.file:
        log_path = Path(config.file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(config.level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
    else:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(config.level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    logging.debug("Logging configured: level=%s, file=%s", config.level, config.file)
