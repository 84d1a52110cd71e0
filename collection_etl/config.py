# ==============================================
# Configuration Management
# ==============================================
#
# PURPOSE:
#   Load and validate all configuration from environment
#   variables / .env file. Provides typed config objects
#   to the pipeline and the CLI.
#
# CLASSES:
# --------
# - Namespace (dataclass, frozen)
#     database: str
#     collection: str
#     parse("db.coll") -> Namespace   (ConfigurationError if malformed)
#
# - MongoConfig (dataclass)
#     uri: str                  (default "mongodb://localhost:27017")
#
# - PipelineConfig (dataclass)
#     batch_size: int               (default 20000)
#     read_ahead: int               (default 20000)
#     transform_concurrency: int    (default 8)
#     write_concurrency: int        (default 8)
#     drop_target: bool             (default True)
#     abort_on_write_error: bool    (default True)
#     progress_every: int           (default 1)
#
# - AppConfig (dataclass)
#     mongo: MongoConfig
#     pipeline: PipelineConfig
#     log_level: str            (default "INFO")
#
# FUNCTION:
# ---------
# - get_config() -> AppConfig
#     Load .env using python-dotenv, construct AppConfig.
#     Returns the same singleton on repeated calls.
#
# USAGE:
# ------
#   from collection_etl.config import get_config
#   config = get_config()
#   print(config.pipeline.batch_size)
#
# ==============================================

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from collection_etl.errors import ConfigurationError

DEFAULT_BATCH_SIZE = 20000
DEFAULT_CONCURRENCY = 8

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Namespace:
    """A database.collection pair."""
    database: str
    collection: str

    @classmethod
    def parse(cls, text: str) -> "Namespace":
        """
        Split a "database.collection" string.

        Args:
            text: Namespace string, exactly one "." with both sides non-empty

        Returns:
            Namespace

        Raises:
            ConfigurationError: If the namespace is malformed
        """
        parts = (text or "").split(".")
        if len(parts) != 2 or not parts[0] or not parts[1]:
            raise ConfigurationError(f"namespace is not valid ({text!r}), expected 'database.collection'")
        return cls(database=parts[0], collection=parts[1])

    def __str__(self) -> str:
        return f"{self.database}.{self.collection}"


@dataclass
class MongoConfig:
    """MongoDB connection configuration."""
    uri: str = "mongodb://localhost:27017"


@dataclass
class PipelineConfig:
    """Sizes, concurrency widths and failure policy for one run."""
    batch_size: int = DEFAULT_BATCH_SIZE
    read_ahead: int = DEFAULT_BATCH_SIZE
    transform_concurrency: int = DEFAULT_CONCURRENCY
    write_concurrency: int = DEFAULT_CONCURRENCY
    drop_target: bool = True
    abort_on_write_error: bool = True
    progress_every: int = 1

    def validate(self) -> "PipelineConfig":
        """
        Check that every size and width is usable.

        Returns:
            self, so calls can be chained

        Raises:
            ConfigurationError: On the first non-positive value
        """
        for name in ("batch_size", "read_ahead", "transform_concurrency",
                     "write_concurrency", "progress_every"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")
        return self


@dataclass
class AppConfig:
    """Main application configuration."""
    mongo: MongoConfig = field(default_factory=MongoConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    log_level: str = "INFO"


# Singleton instance
_config_instance: Optional[AppConfig] = None


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {raw!r}")


def get_config() -> AppConfig:
    """
    Load configuration from environment variables / .env file.
    Returns the same singleton instance on repeated calls.

    Returns:
        AppConfig: Application configuration

    Raises:
        ConfigurationError: If an environment value cannot be parsed
    """
    global _config_instance

    if _config_instance is not None:
        return _config_instance

    # Load .env file from project root, then from the working directory
    env_path = Path(__file__).parent.parent / ".env"
    load_dotenv(dotenv_path=env_path)
    load_dotenv()

    mongo_config = MongoConfig(
        uri=os.getenv("MONGO_URI", "mongodb://localhost:27017")
    )

    batch_size = _env_int("ETL_BATCH_SIZE", DEFAULT_BATCH_SIZE)
    pipeline_config = PipelineConfig(
        batch_size=batch_size,
        # Read-ahead follows the batch size unless set explicitly
        read_ahead=_env_int("ETL_READ_AHEAD", batch_size),
        transform_concurrency=_env_int("ETL_TRANSFORM_CONCURRENCY", DEFAULT_CONCURRENCY),
        write_concurrency=_env_int("ETL_WRITE_CONCURRENCY", DEFAULT_CONCURRENCY),
        drop_target=_env_bool("ETL_DROP_TARGET", True),
        abort_on_write_error=_env_bool("ETL_ABORT_ON_WRITE_ERROR", True),
    )

    _config_instance = AppConfig(
        mongo=mongo_config,
        pipeline=pipeline_config,
        log_level=os.getenv("ETL_LOG_LEVEL", "INFO"),
    )

    return _config_instance


def reset_config() -> None:
    """Forget the cached configuration so the next get_config() reloads it."""
    global _config_instance
    _config_instance = None
