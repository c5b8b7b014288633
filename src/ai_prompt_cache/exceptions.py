"""
Exceptions for the prompt cache middleware.

The request transform itself never raises: prompt caching is an optimization
and must not block the model call. Errors surface only when a configuration
is built.
"""


class PromptCacheError(Exception):
    """Base class for all prompt cache errors."""


class PromptCacheConfigError(PromptCacheError, ValueError):
    """Raised when middleware options cannot be turned into a configuration."""
