"""Shared utilities and base classes for services layer.

- HTTPClient: Base class for all external feed clients with retry logic
- HTTPClientError: Exception for HTTP client failures
"""

from .http_client import HTTPClient, HTTPClientError

__all__ = [
    "HTTPClient",
    "HTTPClientError",
]
