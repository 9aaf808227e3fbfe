"""Errors raised while fetching and decoding market data."""


class FetchError(Exception):
    """Base class for everything a fetch can fail with."""


class ConfigurationError(FetchError):
    """The API key is missing or the configuration could not be read."""


class InvalidURLError(FetchError):
    """A request URL could not be built from the given inputs."""


class NetworkError(FetchError):
    """Transport failure, timeout or non-success HTTP status."""

    def __init__(self, cause: Exception):
        super().__init__(f"Network error: {cause}")
        self.cause = cause


class DecodingError(FetchError):
    """The response as a whole is unusable (not JSON or missing its payload key)."""


class ApiError(FetchError):
    """The upstream answered with an error message instead of data."""
