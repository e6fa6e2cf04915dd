"""Custom exceptions for streamy."""

from streamy.core import config

logger = config.get_logger()


class LoggedException(Exception):
    """Base class that automatically logs messages."""

    def __init__(self, message: str) -> None:
        """Initialize a new instance of the LoggedException class.

        Args:
            message: The message to display.
        """
        logger.exception(message)
        super().__init__(message)


class ExportError(LoggedException):
    """Export files could not be written to the scratch directory."""

    pass


class ModelIncompatibilityError(LoggedException):
    """The device does not provide the channels the model requires."""

    pass


class ModelLoadError(LoggedException):
    """The model could not be found, loaded, or has unsupported parameters."""

    pass


class PredictionError(LoggedException):
    """The model failed to predict or returned malformed output."""

    pass


class InvalidFileTypeError(LoggedException):
    """Streamy did not expect this file extension."""

    pass


class UnknownChannelError(LoggedException):
    """A sensor log could not be matched to a known channel."""

    pass


class EmptyDirectoryError(LoggedException):
    """No sensor logs were found in the directory."""

    pass
