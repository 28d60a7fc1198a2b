# tcg_repricer/services/errors.py

"""Exception types raised across the repricing pipeline."""


class RepricerError(Exception):
    """Base class for all tcg_repricer errors."""


class MissingCredentialError(RepricerError):
    """The platform API token is not configured."""


class NetworkError(RepricerError):
    """The HTTP transport failed or the platform returned an error status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthError(NetworkError):
    """The platform rejected the API token."""


class BackupError(RepricerError):
    """The catalog backup could not be written."""


class ConversionError(RepricerError):
    """No exchange rate could be obtained for a currency pair."""
