import logging
import structlog
import pydantic
from pydantic_settings import BaseSettings, SettingsConfigDict

from .codec import DEFAULT_DATA_FILE

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


class Config(BaseSettings):
    data_file: str = pydantic.Field(
        DEFAULT_DATA_FILE,
        description="Path to the student data file.",
    )
    atomic_writes: bool = pydantic.Field(
        False,
        description="Write the data file via a temporary file and rename.",
    )
    low_stock_threshold: int = pydantic.Field(
        5,
        ge=0,
        description="Books at or below this quantity count as low stock.",
    )
    log_level: str = pydantic.Field(
        "warning",
        description="Logging level.",
    )
    log_file: str = pydantic.Field(
        "STDOUT",
        description="Path to the log file.",
    )
    log_format: str = pydantic.Field(
        "text",
        description="Log format.",
    )
    model_config = SettingsConfigDict(env_prefix="recordbook_")

    @pydantic.field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        value = value.lower()
        if value not in _LEVELS:
            raise ValueError(f"unknown log level {value!r}")
        return value

    @pydantic.field_validator("log_format")
    @classmethod
    def _known_format(cls, value: str) -> str:
        if value not in ("text", "json"):
            raise ValueError(f"unknown log format {value!r}")
        return value


def load_config(**overrides) -> Config:
    config = Config(**overrides)
    # configure log output
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(),
    ]
    if config.log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    if config.log_file == "STDOUT":
        factory = structlog.PrintLoggerFactory()
    else:
        factory = structlog.PrintLoggerFactory(file=open(config.log_file, "a"))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(_LEVELS[config.log_level]),
        logger_factory=factory,
        cache_logger_on_first_use=False,
    )
    return config
