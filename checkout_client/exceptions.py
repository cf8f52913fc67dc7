"""Custom exception classes for the checkout client.

The reconciliation core never raises for bad frame data; these cover the
edges (configuration files, the Socket.IO transport).
"""

from __future__ import annotations

from typing import Optional


class CheckoutClientError(Exception):
    """Base exception for all checkout client errors."""

    pass


class ConfigError(CheckoutClientError):
    """Base exception for configuration errors."""

    pass


class InvalidConfigError(ConfigError):
    """Raised when a configuration file is invalid or has unknown options."""

    pass


class TransportError(CheckoutClientError):
    """Base exception for backend transport errors."""

    def __init__(self, message: str, backend_url: Optional[str] = None):
        self.backend_url = backend_url
        super().__init__(message)


class TransportConnectionError(TransportError):
    """Raised when the backend connection cannot be established."""

    pass


class ConfigValidationError(InvalidConfigError):
    """Raised when a configuration file fails schema validation."""

    def __init__(self, message: str, validation_errors: Optional[list] = None):
        self.validation_errors = validation_errors or []
        super().__init__(message)
