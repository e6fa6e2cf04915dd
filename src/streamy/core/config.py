"""Configuration module for streamy."""

import logging
from importlib import metadata
from typing import Literal

import pydantic_settings


class Settings(pydantic_settings.BaseSettings):
    """Runtime settings, overridable with STREAMY_ prefixed environment variables.

    Attributes:
        LOG_LENGTH_THRESHOLD: A device reporting a log length strictly above this
            many entries is considered to hold an unread log.
        DEFAULT_STRIDE_OFFSET: Samples between consecutive sliding windows when a
            model does not declare its own stride.
        REQUIRE_BUTTON_PRESSES: When splitting logs by button presses, drop all data
            if no press was recorded instead of exporting the unsplit tables.
        START_SIGNAL: The button state that opens a recording range.
    """

    model_config = pydantic_settings.SettingsConfigDict(env_prefix="STREAMY_")

    LOG_LENGTH_THRESHOLD: int = 0
    DEFAULT_STRIDE_OFFSET: int = 10
    REQUIRE_BUTTON_PRESSES: bool = True
    START_SIGNAL: Literal["up", "down"] = "up"


def get_version() -> str:
    """Return streamy version."""
    try:
        return metadata.version("streamy")
    except metadata.PackageNotFoundError:
        return "Version unknown"


def get_logger() -> logging.Logger:
    """Gets the streamy logger."""
    logger = logging.getLogger("streamy")
    if logger.handlers:
        return logger

    logger.setLevel(logging.INFO)
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)s - %(funcName)s - %(message)s",  # noqa: E501
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    return logger


def has_unread_log(log_length: int, threshold: int | None = None) -> bool:
    """Whether a device's reported log length indicates data worth downloading.

    Device firmware revisions disagree on whether an empty log reports a length of
    zero or one, so the threshold is configurable rather than fixed.

    Args:
        log_length: Number of entries the device reports in its log.
        threshold: Lengths strictly greater than this count as an unread log.
            Defaults to Settings().LOG_LENGTH_THRESHOLD.

    Returns:
        True if the log should be downloaded.
    """
    if threshold is None:
        threshold = Settings().LOG_LENGTH_THRESHOLD
    return log_length > threshold
