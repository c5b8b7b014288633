"""
AI Prompt Cache - Provider prompt-cache hints for outbound LLM requests.

This package marks the stable leading part of a conversation (normally the
system instructions) so that LLM providers can serve it from their prompt
cache instead of reprocessing it on every call.

Main components:
- select_prefix: Picks the cacheable leading messages and their text
- derive_cache_key: Deterministic, salted key for a prefix
- apply_openai_cache_key / apply_anthropic_cache_control: Provider annotations
- PromptCacheMiddleware: Runs the whole pipeline on request params
"""

from .canonicalizer import canonical_json, canonicalize
from .config import (
    AnthropicOptions,
    OpenAIOptions,
    PromptCacheConfig,
    PromptCacheOptions,
    resolve_config,
)
from .exceptions import PromptCacheConfigError, PromptCacheError
from .keys import CACHE_KEY_LENGTH, derive_cache_key, derive_key
from .messages import (
    Message,
    OtherPart,
    Role,
    TextPart,
    merge_provider_options,
)
from .middleware import PromptCacheMiddleware, transform_params, with_prompt_cache
from .providers import apply_anthropic_cache_control, apply_openai_cache_key
from .selector import (
    LeadingSystemPolicy,
    PredicatePolicy,
    PrefixSelection,
    SelectionPolicy,
    select_prefix,
)

__version__ = "0.1.0"

__all__ = [
    # Config
    "AnthropicOptions",
    "OpenAIOptions",
    "PromptCacheConfig",
    "PromptCacheOptions",
    "resolve_config",
    # Errors
    "PromptCacheConfigError",
    "PromptCacheError",
    # Messages
    "Message",
    "OtherPart",
    "Role",
    "TextPart",
    "merge_provider_options",
    # Keys
    "CACHE_KEY_LENGTH",
    "canonical_json",
    "canonicalize",
    "derive_cache_key",
    "derive_key",
    # Selection
    "LeadingSystemPolicy",
    "PredicatePolicy",
    "PrefixSelection",
    "SelectionPolicy",
    "select_prefix",
    # Providers
    "apply_anthropic_cache_control",
    "apply_openai_cache_key",
    # Middleware
    "PromptCacheMiddleware",
    "transform_params",
    "with_prompt_cache",
]
