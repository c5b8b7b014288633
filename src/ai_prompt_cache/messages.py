"""
Message model shared by the selector and the provider annotators.

Hosts hand us conversations in one of two shapes:
- typed `Message` values (built directly or via `Message.from_dict`)
- plain JSON-like mappings in the wire shape
  {"role": ..., "content": ..., "providerOptions": {...}}

Every helper here accepts both and gives back the shape it was given, so a
host never sees its messages change type on the way through. Nothing in this
module mutates its inputs.
"""

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

# Key of the provider side channel in the wire shape
PROVIDER_OPTIONS_FIELD = "providerOptions"


class Role(Enum):
    """Conversation roles. Only SYSTEM takes part in the built-in prefix rule."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass(frozen=True)
class TextPart:
    """A text content part. The only part kind that feeds the cache key."""
    text: str
    type: str = field(default="text", init=False)

    def to_dict(self) -> dict:
        return {"type": self.type, "text": self.text}


@dataclass(frozen=True)
class OtherPart:
    """
    Any non-text content part (image, file, tool call, ...).

    `data` holds the remaining fields of the wire object so the part can be
    written back out unchanged.
    """
    type: str
    data: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {**self.data, "type": self.type}


ContentPart = Union[TextPart, OtherPart]
ProviderOptions = Mapping[str, Mapping[str, Any]]


def part_from_dict(data: Any) -> ContentPart:
    """Build a content part from its wire shape."""
    if not isinstance(data, Mapping):
        return OtherPart(type=type(data).__name__, data={"value": data})

    part_type = data.get("type")
    text = data.get("text")
    if part_type == "text" and isinstance(text, str):
        return TextPart(text)

    rest = {k: v for k, v in data.items() if k != "type"}
    return OtherPart(type=str(part_type), data=rest)


@dataclass(frozen=True)
class Message:
    """
    One entry of the conversation.

    Example:
        Message(Role.SYSTEM, "You are a helpful assistant.")
        Message(Role.USER, [TextPart("Describe this"), OtherPart("image", {"url": "..."})])
    """
    role: Role
    content: Union[str, tuple[ContentPart, ...]] = ""

    # provider name -> provider specific options, e.g. {"anthropic": {"cacheControl": ...}}
    provider_options: ProviderOptions = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.role, Role):
            object.__setattr__(self, "role", Role(self.role))
        if isinstance(self.content, list):
            object.__setattr__(self, "content", tuple(self.content))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Message":
        """
        Parse the wire shape. Raises ValueError for an unknown role.

        Both `providerOptions` and `provider_options` spellings are accepted.
        """
        content = data.get("content", "")
        if isinstance(content, (list, tuple)):
            content = tuple(part_from_dict(part) for part in content)
        elif not isinstance(content, str):
            content = ""

        options = data.get(PROVIDER_OPTIONS_FIELD, data.get("provider_options"))
        if not isinstance(options, Mapping):
            options = {}
        return cls(
            role=Role(data.get("role")),
            content=content,
            provider_options=dict(options),
        )

    def to_dict(self) -> dict:
        """Serialize back to the wire shape. Empty provider options are omitted."""
        if isinstance(self.content, str):
            content: Any = self.content
        else:
            content = [part.to_dict() for part in self.content]

        result = {"role": self.role.value, "content": content}
        if self.provider_options:
            result[PROVIDER_OPTIONS_FIELD] = {
                name: dict(options) if isinstance(options, Mapping) else options
                for name, options in self.provider_options.items()
            }
        return result


def merge_provider_options(
    options: Optional[Mapping[str, Any]],
    provider: str,
    additions: Mapping[str, Any],
) -> dict:
    """
    Return new provider options with `additions` merged into `provider`'s entry.

    Other providers and existing keys for this provider are preserved; keys in
    `additions` win. Neither argument is modified.

    Usage:
        merge_provider_options({"openai": {"user": "u1"}}, "openai", {"promptCacheKey": "k"})
        # Returns: {"openai": {"user": "u1", "promptCacheKey": "k"}}
    """
    existing = options if isinstance(options, Mapping) else {}
    existing_provider = existing.get(provider)
    if not isinstance(existing_provider, Mapping):
        existing_provider = {}

    return {**existing, provider: {**existing_provider, **additions}}


def message_role(message: Any) -> Optional[str]:
    """Role of a typed or wire-shaped message as a plain string, or None."""
    if isinstance(message, Message):
        return message.role.value

    if isinstance(message, Mapping):
        role = message.get("role")
        if isinstance(role, Role):
            return role.value
        if isinstance(role, str):
            return role

    return None


def message_text(message: Any) -> list[str]:
    """
    Text fragments of one message, in order.

    String content is one fragment. For structured content only parts typed
    as text with a string `text` count. Anything else yields nothing.
    """
    if isinstance(message, Message):
        content = message.content
    elif isinstance(message, Mapping):
        content = message.get("content")
    else:
        return []

    if isinstance(content, str):
        return [content]

    fragments = []
    if isinstance(content, (list, tuple)):
        for part in content:
            if isinstance(part, TextPart):
                fragments.append(part.text)
            elif isinstance(part, Mapping) and part.get("type") == "text":
                text = part.get("text")
                if isinstance(text, str):
                    fragments.append(text)
    return fragments


def with_provider_options(message: Any, provider: str, additions: Mapping[str, Any]) -> Any:
    """
    Return a copy of `message` with `additions` merged under `provider`.

    Typed messages come back as typed messages and mappings as new dicts.
    Values that are neither are returned as-is since there is nowhere to put
    the options.
    """
    if isinstance(message, Message):
        merged = merge_provider_options(message.provider_options, provider, additions)
        return dataclasses.replace(message, provider_options=merged)

    if isinstance(message, Mapping):
        merged = merge_provider_options(message.get(PROVIDER_OPTIONS_FIELD), provider, additions)
        return {**message, PROVIDER_OPTIONS_FIELD: merged}

    return message
