"""
Translation Service Exceptions

This module contains the exception classes shared by the providers, the
gateway and the configuration loader.
Separated to avoid circular imports between service.py and providers.py.
"""


class TranslationError(Exception):
    """Translation service error with optional code and details."""

    def __init__(self, message: str, code: str = None, details: dict = None):
        super().__init__(message)
        self.code = code
        self.details = details or {}


class ProviderRateLimitError(TranslationError):
    """Transient provider failure (rate limiting, 5xx, timeout); worth retrying."""


class ProviderQuotaError(TranslationError):
    """The provider reports its quota or usage limit as exhausted; never retried."""


class ConfigurationError(TranslationError):
    """Invalid or incomplete configuration; fatal at startup."""
