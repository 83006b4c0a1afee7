"""
Custom exceptions for Stockify.

All exceptions inherit from StockifyError for easy catching.
"""


class StockifyError(Exception):
    """Base exception for all Stockify errors."""

    pass


class ConfigurationError(StockifyError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, config_key: str | None = None):
        self.config_key = config_key
        super().__init__(message)


class DataLoadError(StockifyError):
    """Raised when the stock snapshot cannot be read."""

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        super().__init__(message)


class InvalidInputError(StockifyError):
    """
    Raised when the scoring core receives structurally invalid input.

    This is the only fatal precondition of the core: a universe that is not
    a collection of StockRecord objects.
    """

    def __init__(self, message: str, received: str | None = None):
        self.received = received
        super().__init__(message)


class StorageError(StockifyError):
    """Raised when recommendation history cannot be read or written."""

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        super().__init__(message)


class EnrichmentError(StockifyError):
    """
    Raised by the qualitative scoring client when a call fails.

    Never escapes the recommendation assembler: callers degrade to the
    neutral score instead.
    """

    def __init__(
        self,
        message: str,
        source: str | None = None,
        status_code: int | None = None,
    ):
        self.source = source
        self.status_code = status_code
        super().__init__(message)
