"""
Configuration classes for the prompt cache middleware.

Two layers:
- PromptCacheOptions: what a host writes. Nested per provider, everything
  optional, both providers enabled by default.
- PromptCacheConfig: the resolved, validated, immutable record one transform
  call runs with.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from .exceptions import PromptCacheConfigError
from .selector import SelectionPolicy, resolve_policy

DEFAULT_SELECT = "system-head"


@dataclass(frozen=True)
class AnthropicOptions:
    """Marker-based caching. `ttl` is passed through to the marker, e.g. "1h"."""
    enable: bool = True
    ttl: Optional[str] = None

    def __post_init__(self):
        # enable=None means "not set", like an omitted field
        if self.enable is None:
            object.__setattr__(self, "enable", True)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AnthropicOptions":
        return cls(enable=data.get("enable"), ttl=data.get("ttl"))


@dataclass(frozen=True)
class OpenAIOptions:
    """Key-based caching."""
    enable: bool = True

    def __post_init__(self):
        if self.enable is None:
            object.__setattr__(self, "enable", True)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "OpenAIOptions":
        return cls(enable=data.get("enable"))


def _provider_options(value: Any, options_cls: type, name: str) -> Any:
    """Coerce None or a mapping into `options_cls`; reject anything else."""
    if value is None:
        return options_cls()
    if isinstance(value, options_cls):
        return value
    if isinstance(value, Mapping):
        return options_cls.from_dict(value)
    raise PromptCacheConfigError(
        f"{name} options must be a mapping or {options_cls.__name__}, got {type(value).__name__}"
    )


@dataclass(frozen=True)
class PromptCacheOptions:
    """
    Host-facing middleware options.

    Provider options may be given as option objects or as mappings:

        PromptCacheOptions(
            anthropic=AnthropicOptions(ttl="1h"),
            openai={"enable": False},
            extra_key_salt="release-2024-06",
        )
    """
    # "system-head" / "leading-system", a callable, or a SelectionPolicy
    select: Union[str, Callable, SelectionPolicy] = DEFAULT_SELECT

    anthropic: AnthropicOptions = field(default_factory=AnthropicOptions)
    openai: OpenAIOptions = field(default_factory=OpenAIOptions)

    # Mixed into every cache key; change it to start a fresh cache namespace
    extra_key_salt: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "anthropic", _provider_options(self.anthropic, AnthropicOptions, "anthropic"))
        object.__setattr__(self, "openai", _provider_options(self.openai, OpenAIOptions, "openai"))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PromptCacheOptions":
        """
        Build options from a plain mapping.

        Accepts the camelCase names used by JavaScript hosts as well as the
        snake_case ones:
            {"select": "system-head",
             "anthropic": {"enable": True, "ttl": "1h"},
             "openai": {"enable": False},
             "extraKeySalt": "v2"}
        """
        return cls(
            select=data.get("select", DEFAULT_SELECT),
            anthropic=data.get("anthropic"),
            openai=data.get("openai"),
            extra_key_salt=data.get("extraKeySalt", data.get("extra_key_salt")),
        )


@dataclass(frozen=True)
class PromptCacheConfig:
    """Resolved configuration for one middleware instance."""
    select: SelectionPolicy
    enable_openai: bool = True
    enable_anthropic: bool = True
    ttl: Optional[str] = None
    salt: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.select, SelectionPolicy):
            object.__setattr__(self, "select", resolve_policy(self.select))
        if self.ttl is not None and not isinstance(self.ttl, str):
            raise PromptCacheConfigError(f"ttl must be a string, got {type(self.ttl).__name__}")
        if self.salt is not None and not isinstance(self.salt, str):
            raise PromptCacheConfigError(f"salt must be a string, got {type(self.salt).__name__}")


def resolve_config(options: Optional[Union[PromptCacheOptions, Mapping[str, Any]]] = None) -> PromptCacheConfig:
    """Resolve host options (or their mapping form) into a PromptCacheConfig."""
    if options is None:
        options = PromptCacheOptions()
    elif isinstance(options, Mapping):
        options = PromptCacheOptions.from_dict(options)

    return PromptCacheConfig(
        select=resolve_policy(options.select),
        enable_openai=bool(options.openai.enable),
        enable_anthropic=bool(options.anthropic.enable),
        ttl=options.anthropic.ttl,
        salt=options.extra_key_salt,
    )
