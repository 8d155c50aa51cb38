"""
Configuration for the taskflow service.

Configuration is per-project: a ``.env`` file in the working directory is
loaded first, then values are read from the environment. The resulting
``TaskflowConfig`` is built once at process start and handed to the store,
the service container and the app factory.
"""
import os
import logging
import tempfile
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv

from taskflow.exceptions.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.notion.com/v1"
DEFAULT_NOTION_VERSION = "2022-06-28"
DEFAULT_TAG_PROPERTY = "MCP"


def _read_int(name: str, default: int, minimum: int = 1) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got '{raw}'")
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")
    return value


def _read_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got '{raw}'")
    if value < 0:
        raise ConfigurationError(f"{name} must not be negative, got {value}")
    return value


class TaskflowConfig:
    """Settings for the Notion store, retry policy, image cache and server."""

    def __init__(
        self,
        notion_token: str,
        database_id: str,
        api_url: str = DEFAULT_API_URL,
        notion_version: str = DEFAULT_NOTION_VERSION,
        tag_property: str = DEFAULT_TAG_PROPERTY,
        http_timeout: float = 30.0,
        retry_attempts: int = 3,
        retry_base_delay: float = 1.0,
        image_cache_dir: Optional[Union[str, Path]] = None,
        service_port: int = 8004,
    ):
        self.notion_token = notion_token
        self.database_id = database_id
        self.api_url = api_url.rstrip("/")
        self.notion_version = notion_version
        self.tag_property = tag_property
        self.http_timeout = http_timeout
        self.retry_attempts = retry_attempts
        self.retry_base_delay = retry_base_delay
        self.image_cache_dir = Path(image_cache_dir) if image_cache_dir else Path(tempfile.gettempdir()) / "taskflow-images"
        self.service_port = service_port

    @classmethod
    def from_env(cls) -> "TaskflowConfig":
        """
        Build configuration from environment variables.

        Raises:
            ConfigurationError: If NOTION_TOKEN or NOTION_DATABASE_ID is missing,
                or a numeric setting cannot be parsed.
        """
        token = os.getenv("NOTION_TOKEN", "").strip()
        database_id = os.getenv("NOTION_DATABASE_ID", "").strip()

        missing = []
        if not token:
            missing.append("NOTION_TOKEN")
        if not database_id:
            missing.append("NOTION_DATABASE_ID")
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}. "
                "Create a .env file in the project directory with:\n"
                "  NOTION_TOKEN=ntn_xxx\n"
                "  NOTION_DATABASE_ID=xxx\n"
                "Get an integration token from https://www.notion.so/my-integrations"
            )

        return cls(
            notion_token=token,
            database_id=database_id,
            api_url=os.getenv("NOTION_API_URL", DEFAULT_API_URL),
            notion_version=os.getenv("NOTION_VERSION", DEFAULT_NOTION_VERSION),
            tag_property=os.getenv("TASKFLOW_TAG_PROPERTY", DEFAULT_TAG_PROPERTY),
            http_timeout=_read_float("TASKFLOW_HTTP_TIMEOUT", 30.0),
            retry_attempts=_read_int("TASKFLOW_RETRY_ATTEMPTS", 3),
            retry_base_delay=_read_float("TASKFLOW_RETRY_BASE_DELAY", 1.0),
            image_cache_dir=os.getenv("TASKFLOW_IMAGE_CACHE_DIR") or None,
            service_port=_read_int("TASKFLOW_SERVICE_PORT", 8004),
        )

    def __repr__(self) -> str:
        # Never print the token
        return (
            f"TaskflowConfig(database_id={self.database_id!r}, api_url={self.api_url!r}, "
            f"tag_property={self.tag_property!r}, retry_attempts={self.retry_attempts})"
        )


def load_config(env_file: Optional[Union[str, Path]] = None) -> TaskflowConfig:
    """
    Load configuration for the current project.

    Args:
        env_file: Path to a .env file. Defaults to ``.env`` in the working directory.

    Returns:
        TaskflowConfig built from the (possibly .env-augmented) environment.

    Raises:
        ConfigurationError: If required settings are missing or invalid.
    """
    env_path = Path(env_file) if env_file else Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(env_path, override=True)
        logger.info(f"Loaded configuration from {env_path}")
    else:
        logger.debug(f"No .env file at {env_path}, using process environment")
    return TaskflowConfig.from_env()
