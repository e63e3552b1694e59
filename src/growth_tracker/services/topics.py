"""Keyword lexicon that keeps the assistant on growth topics."""

import json
import re
from dataclasses import dataclass
from pathlib import Path

from growth_tracker.domain.assistant import TopicVerdict

LEXICON_PATH = Path(__file__).resolve().parents[1] / "data" / "topic_lexicon.json"

_WORD_RE = re.compile(r"[a-z0-9']+")


@dataclass(frozen=True)
class TopicLexicon:
    """Allowed and denied topics, each with its keywords."""

    allow: dict[str, tuple[str, ...]]
    deny: dict[str, tuple[str, ...]]

    @classmethod
    def load(cls, path: Path = LEXICON_PATH) -> "TopicLexicon":
        """Load a lexicon from a JSON data file."""
        payload = json.loads(path.read_text(encoding="utf-8"))
        return cls.from_dict(payload)

    @classmethod
    def from_dict(cls, payload: dict[str, dict[str, list[str]]]) -> "TopicLexicon":
        """Build a lexicon from ``{"allow": {...}, "deny": {...}}``."""
        return cls(
            allow=_normalize_section(payload.get("allow", {})),
            deny=_normalize_section(payload.get("deny", {})),
        )


def classify_topic(
    text: str, lexicon: TopicLexicon, *, strict: bool = False
) -> TopicVerdict:
    """Classify a prompt against the lexicon.

    A denied topic always wins. In strict mode a prompt that matches no allowed
    topic is refused as well.
    """
    words = _WORD_RE.findall(text.lower())
    phrase = f" {' '.join(words)} "
    tokens = set(words)

    for topic, keywords in lexicon.deny.items():
        if _matches(keywords, tokens, phrase):
            return TopicVerdict(allowed=False, topics=(), blocked_by=topic)

    topics = tuple(
        topic
        for topic, keywords in lexicon.allow.items()
        if _matches(keywords, tokens, phrase)
    )
    if strict and not topics:
        return TopicVerdict(allowed=False, topics=(), blocked_by="off_topic")
    return TopicVerdict(allowed=True, topics=topics)


def _matches(keywords: tuple[str, ...], tokens: set[str], phrase: str) -> bool:
    for keyword in keywords:
        if " " in keyword:
            if f" {keyword} " in phrase:
                return True
        elif keyword in tokens:
            return True
    return False


def _normalize_section(section: dict[str, list[str]]) -> dict[str, tuple[str, ...]]:
    return {
        topic: tuple(" ".join(_WORD_RE.findall(word.lower())) for word in words)
        for topic, words in section.items()
    }
