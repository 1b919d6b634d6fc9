"""Exception types for vibecheck."""

from typing import Optional


class VibeCheckError(Exception):
    """Base class for all vibecheck errors."""


class ValidationError(VibeCheckError):
    """A structured suggestion block is malformed or has the wrong shape."""


class ProviderError(VibeCheckError):
    """Normalized failure raised by the provider router."""


class ConfigurationError(ProviderError):
    """The selected provider cannot be used as configured."""


class MissingCredentials(ConfigurationError):
    """No API key is available for the selected provider."""


class TransportFailure(ProviderError):
    """The completion request failed or returned something unusable."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
