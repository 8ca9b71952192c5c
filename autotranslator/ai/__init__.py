"""
AI Module

This module provides the translation providers and the gateway around them.
"""

from autotranslator.ai.exceptions import (
    ConfigurationError,
    ProviderQuotaError,
    ProviderRateLimitError,
    TranslationError,
)
from autotranslator.ai.models import ProviderKind, ProviderResult, TranslationOptions
from autotranslator.ai.service import ProviderGateway, RetryPolicy, build_gateway

__all__ = [
    'TranslationError',
    'ProviderRateLimitError',
    'ProviderQuotaError',
    'ConfigurationError',
    'ProviderKind',
    'ProviderResult',
    'TranslationOptions',
    'ProviderGateway',
    'RetryPolicy',
    'build_gateway',
]
