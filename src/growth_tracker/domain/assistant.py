"""Models for the growth assistant."""

from dataclasses import dataclass
from enum import StrEnum


class ReplySource(StrEnum):
    """Where an assistant reply came from."""

    MODEL = "model"
    GUARDRAIL = "guardrail"
    RATE_LIMITED = "rate_limited"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class AssistantReply:
    """Reply shown to the user."""

    text: str
    source: ReplySource
    topics: tuple[str, ...] = ()


@dataclass(frozen=True)
class TopicVerdict:
    """Result of classifying a prompt against the topic lexicon."""

    allowed: bool
    topics: tuple[str, ...]
    blocked_by: str | None = None
