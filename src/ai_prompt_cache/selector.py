"""
Prefix selection: which leading messages form the cacheable prefix.

In a typical request:
    [system] [system] [user] [assistant] [user]
     ^^^^^^^^^^^^^^^  cacheable prefix (upto = 2)

The prefix is the stable part repeated verbatim across calls, so it is what
the provider should cache. Two policies decide its length:
- LeadingSystemPolicy: the contiguous run of leading system messages
- PredicatePolicy: a host-supplied function returning the boundary

A custom predicate is outside our control, so its result is clamped into
[0, len(messages)]. A buggy predicate can at worst disable caching for a
request; it can never select an invalid boundary.
"""

import logging
import math
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from numbers import Real
from typing import Any, Union

from .exceptions import PromptCacheConfigError
from .messages import Role, message_role, message_text

logger = logging.getLogger(__name__)

# Separator placed between text fragments of the prefix
TEXT_SEPARATOR = "\n"

# Names accepted for the built-in policy
LEADING_SYSTEM_NAMES = ("system-head", "leading-system")


@dataclass(frozen=True)
class PrefixSelection:
    """Result of prefix selection."""
    # Number of leading messages in the prefix
    upto: int

    # Newline-joined text of those messages
    text: str


class SelectionPolicy(ABC):
    """Strategy deciding how many leading messages are cacheable."""

    @abstractmethod
    def select(self, messages: Sequence[Any]) -> int:
        """Return the prefix boundary, always within [0, len(messages)]."""


class LeadingSystemPolicy(SelectionPolicy):
    """Contiguous leading system messages. Stops at the first other role."""

    def select(self, messages: Sequence[Any]) -> int:
        upto = 0
        while upto < len(messages) and message_role(messages[upto]) == Role.SYSTEM.value:
            upto += 1
        return upto

    def __repr__(self) -> str:
        return "LeadingSystemPolicy()"


class PredicatePolicy(SelectionPolicy):
    """
    Host-supplied boundary function.

    Usage:
        # cache the first three messages, whatever their roles
        policy = PredicatePolicy(lambda messages: 3)
    """

    def __init__(self, predicate: Callable[[Sequence[Any]], Any]):
        self.predicate = predicate

    def select(self, messages: Sequence[Any]) -> int:
        raw = self.predicate(messages)
        upto = clamp_index(raw, len(messages))
        if upto != raw:
            logger.warning(
                "Prefix predicate returned %r for %d messages; using %d",
                raw, len(messages), upto,
            )
        return upto

    def __repr__(self) -> str:
        return f"PredicatePolicy({self.predicate!r})"


def clamp_index(value: Any, length: int) -> int:
    """
    Clamp an arbitrary predicate result into a valid boundary.

    Rules (in order):
    - non-numbers, bools, NaN, infinities and negatives -> 0
    - anything above `length` -> `length`
    - fractions are floored
    """
    if isinstance(value, bool) or not isinstance(value, Real):
        return 0
    if not math.isfinite(value) or value < 0:
        return 0
    if value > length:
        return length
    return math.floor(value)


def resolve_policy(select: Union[str, Callable, SelectionPolicy]) -> SelectionPolicy:
    """
    Turn a policy name, a callable, or a policy into a SelectionPolicy.

    Raises PromptCacheConfigError for anything else.
    """
    if isinstance(select, SelectionPolicy):
        return select
    if isinstance(select, str):
        if select in LEADING_SYSTEM_NAMES:
            return LeadingSystemPolicy()
        raise PromptCacheConfigError(
            f"Unknown selection policy {select!r}. "
            f"Expected one of {', '.join(LEADING_SYSTEM_NAMES)} or a callable"
        )
    if callable(select):
        return PredicatePolicy(select)

    raise PromptCacheConfigError(
        f"Selection policy must be a name, a callable or a SelectionPolicy, "
        f"got {type(select).__name__}"
    )


def extract_text(messages: Sequence[Any]) -> str:
    """Newline-joined text of `messages`. Messages without text add nothing."""
    fragments = []
    for message in messages:
        fragments.extend(message_text(message))
    return TEXT_SEPARATOR.join(fragments)


def select_prefix(
    messages: Sequence[Any],
    policy: Union[str, Callable, SelectionPolicy] = "system-head",
) -> PrefixSelection:
    """
    Compute the prefix boundary and its text.

    Usage:
        selection = select_prefix([
            {"role": "system", "content": "A"},
            {"role": "system", "content": "B"},
            {"role": "user", "content": "Q"},
        ])
        # PrefixSelection(upto=2, text="A\\nB")
    """
    upto = resolve_policy(policy).select(messages)
    return PrefixSelection(upto=upto, text=extract_text(messages[:upto]))
