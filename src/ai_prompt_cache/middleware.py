"""
PromptCacheMiddleware - Annotates outbound LLM requests for provider prompt caching.

KEY CONCEPT:
Most requests repeat the same leading system instructions:
    [System Instructions] + [Conversation so far] + [New user turn]

Providers can serve that stable prefix from their prompt cache, but only if
the request tells them what the prefix is:
- OpenAI style (key-based): an opaque cache key identifying the prefix
- Anthropic style (marker-based): a cacheControl marker on each prefix message

The middleware runs once per request, before the host sends it:
1. Select the cacheable prefix (selector)
2. Derive a deterministic key from its text (keys)
3. Annotate the request for each enabled provider (providers)

It never blocks a request. Anything it does not understand is passed
through unchanged.
"""

import dataclasses
import logging
from collections.abc import Callable, Mapping
from typing import Any, Optional, TypeVar, Union

from .config import PromptCacheConfig, PromptCacheOptions, resolve_config
from .exceptions import PromptCacheConfigError
from .keys import derive_cache_key
from .providers import apply_anthropic_cache_control, apply_openai_cache_key
from .selector import select_prefix

logger = logging.getLogger(__name__)

# Key of the message list in request params
PROMPT_FIELD = "prompt"

T = TypeVar("T")


def transform_params(params: Mapping[str, Any], config: PromptCacheConfig) -> Mapping[str, Any]:
    """
    Return request params annotated with prompt cache hints.

    `params` itself is never modified. When there is nothing to cache (no
    message list, or a prefix without text) the same object is returned.
    """
    messages = params.get(PROMPT_FIELD) if isinstance(params, Mapping) else None
    if not isinstance(messages, (list, tuple)):
        # e.g. a single prompt string: no messages, no prefix
        return params

    selection = select_prefix(messages, config.select)
    logger.debug(
        "Prefix covers %d of %d messages, %d chars of text",
        selection.upto, len(messages), len(selection.text),
    )
    if not selection.text:
        return params

    cache_key = derive_cache_key(selection.text, config.salt)
    logger.debug("Derived cache key %s...", cache_key[:16])

    result = dict(params)

    if config.enable_openai:
        result = apply_openai_cache_key(result, cache_key)
        logger.debug("Applied OpenAI cache key")

    # upto == 0 leaves nothing to mark
    if config.enable_anthropic and selection.upto > 0:
        result[PROMPT_FIELD] = apply_anthropic_cache_control(messages, selection.upto, config.ttl)
        logger.debug("Applied Anthropic cache control to %d messages", selection.upto)

    return result


class PromptCacheMiddleware:
    """
    Middleware object for LLM clients with transform/generate/stream hooks.

    Usage:
        middleware = with_prompt_cache(anthropic=AnthropicOptions(ttl="1h"))

        params = middleware.transform_params({"prompt": messages})
        response = middleware.wrap_generate(lambda: client.generate(**params))
    """

    def __init__(self, config: Optional[PromptCacheConfig] = None):
        self.config = config or resolve_config()

    def transform_params(self, params: Mapping[str, Any]) -> Mapping[str, Any]:
        """Annotate one request's params with this middleware's config."""
        return transform_params(params, self.config)

    def wrap_generate(self, do_generate: Callable[[], T]) -> T:
        """Run the host's generate call. Responses are not touched."""
        return do_generate()

    def wrap_stream(self, do_stream: Callable[[], T]) -> T:
        """Run the host's stream call. Streams are not touched."""
        return do_stream()

    def __repr__(self) -> str:
        return f"PromptCacheMiddleware({self.config!r})"


def with_prompt_cache(
    options: Optional[Union[PromptCacheOptions, Mapping[str, Any]]] = None,
    **overrides: Any,
) -> PromptCacheMiddleware:
    """
    Build a middleware from options.

    Options can be a PromptCacheOptions, its mapping form, or keyword
    arguments (which override fields of `options`):

        with_prompt_cache()  # both providers, leading system messages
        with_prompt_cache({"openai": {"enable": False}, "extraKeySalt": "v2"})
        with_prompt_cache(select=lambda messages: 1, extra_key_salt="v2")
    """
    if options is None:
        options = PromptCacheOptions()
    elif isinstance(options, Mapping):
        options = PromptCacheOptions.from_dict(options)

    if overrides:
        try:
            options = dataclasses.replace(options, **overrides)
        except TypeError as e:
            raise PromptCacheConfigError(f"Invalid prompt cache option: {e}") from e

    return PromptCacheMiddleware(resolve_config(options))
