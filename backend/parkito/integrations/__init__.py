"""External service integrations for Parkito."""

from .functions_client import FunctionsClient, FunctionsClientError

__all__ = [
    "FunctionsClient",
    "FunctionsClientError",
]
