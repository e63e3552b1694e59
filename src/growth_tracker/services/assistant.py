"""Growth assistant backed by a generative-text collaborator."""

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from growth_tracker.domain.assistant import AssistantReply, ReplySource
from growth_tracker.domain.errors import RateLimited, RemoteUnavailable, ValidationError
from growth_tracker.domain.goals import GrowthGoal
from growth_tracker.domain.meals import DailyProgress
from growth_tracker.services.aggregation import completion_rate
from growth_tracker.services.storage import (
    ANONYMOUS_OWNER,
    KeyValueStore,
    commit,
    owner_key,
)
from growth_tracker.services.topics import TopicLexicon, classify_topic

TOPICS_KEY = "assistant-recent-topics"

INSTRUCTIONS = (
    "You are a helpful and motivating AI Growth Assistant for a daily growth "
    "tracking app. You are helping a user who is tracking their calories, tasks, "
    "and goals. Answer questions about personal development, productivity, "
    "habits, goal setting, gym workouts, yoga, running, and nutrition. Keep "
    "responses clear, actionable, and encouraging. Use emojis to make it friendly."
)

GUARDRAIL_REPLY = (
    "I'm here to help with your growth journey: habits, goals, productivity, "
    "workouts and nutrition. Try asking me something about those!"
)
RATE_LIMITED_REPLY = (
    "I'm getting a lot of questions right now. Please try again in a little while."
)
APOLOGY_REPLY = "Sorry, I encountered an error. Please try asking your question again!"
EMPTY_REPLY = "Sorry, I could not generate a response."

_OPEN_GOALS_SHOWN = 5

_logger = logging.getLogger(__name__)


class AssistantClient(Protocol):
    """Interface for the generative-text collaborator."""

    async def generate(
        self,
        *,
        model: str,
        instructions: str,
        prompt: str,
        temperature: float,
        max_output_tokens: int,
    ) -> str:
        """Return generated text for the prompt."""


@dataclass
class TopicMemory:
    """Recently discussed topics for one owner."""

    storage: KeyValueStore
    owner: str = ANONYMOUS_OWNER
    size: int = 5

    def recent(self) -> list[str]:
        """Return remembered topics, most recent last."""
        key = owner_key(self.owner, TOPICS_KEY)
        raw = self.storage.get(key)
        if raw is None:
            return []
        try:
            topics = json.loads(raw)
        except json.JSONDecodeError:
            _logger.warning("Resetting topic memory for owner=%s", self.owner)
            self.storage.remove(key)
            return []
        if not isinstance(topics, list):
            return []
        return [str(topic) for topic in topics]

    def remember(self, topics: Sequence[str]) -> None:
        """Append topics, keeping the newest ``size`` distinct entries."""
        if not topics:
            return
        merged = [topic for topic in self.recent() if topic not in topics]
        merged.extend(topics)
        commit(
            self.storage,
            {owner_key(self.owner, TOPICS_KEY): json.dumps(merged[-self.size :])},
        )


@dataclass
class AssistantService:
    """Builds assistant prompts and degrades failures to local replies."""

    client: AssistantClient | None
    lexicon: TopicLexicon
    model: str
    temperature: float = 0.7
    max_output_tokens: int = 1000
    strict_topics: bool = False

    async def ask(
        self,
        prompt: str,
        *,
        goals: Sequence[GrowthGoal] = (),
        progress: DailyProgress | None = None,
        memory: TopicMemory | None = None,
    ) -> AssistantReply:
        """Answer a user prompt."""
        question = (prompt or "").strip()
        if not question:
            raise ValidationError("Please enter a question!")

        verdict = classify_topic(question, self.lexicon, strict=self.strict_topics)
        if not verdict.allowed:
            _logger.info("Assistant prompt blocked: topic=%s", verdict.blocked_by)
            return AssistantReply(text=GUARDRAIL_REPLY, source=ReplySource.GUARDRAIL)

        recent = memory.recent() if memory else []
        if memory:
            memory.remember(verdict.topics)
        if self.client is None:
            _logger.warning("Assistant client is not configured")
            return AssistantReply(
                text=APOLOGY_REPLY,
                source=ReplySource.UNAVAILABLE,
                topics=verdict.topics,
            )

        context = build_context(goals, progress, recent)
        try:
            text = await self.client.generate(
                model=self.model,
                instructions=INSTRUCTIONS,
                prompt=f"{context}\n\nUser question: {question}",
                temperature=self.temperature,
                max_output_tokens=self.max_output_tokens,
            )
        except RateLimited as exc:
            _logger.warning("Assistant rate limited: %s", exc)
            return AssistantReply(
                text=RATE_LIMITED_REPLY,
                source=ReplySource.RATE_LIMITED,
                topics=verdict.topics,
            )
        except RemoteUnavailable as exc:
            _logger.warning("Assistant request failed: %s", exc)
            return AssistantReply(
                text=APOLOGY_REPLY,
                source=ReplySource.UNAVAILABLE,
                topics=verdict.topics,
            )
        return AssistantReply(
            text=text.strip() or EMPTY_REPLY,
            source=ReplySource.MODEL,
            topics=verdict.topics,
        )


def build_context(
    goals: Sequence[GrowthGoal],
    progress: DailyProgress | None,
    recent_topics: Sequence[str],
) -> str:
    """Summarize the user's state for the model."""
    lines: list[str] = []
    if goals:
        completed = sum(1 for goal in goals if goal.completed)
        lines.append(
            f"Goals: {completed} of {len(goals)} completed "
            f"({completion_rate(goals)}%)."
        )
        open_goals = [goal for goal in goals if not goal.completed]
        if open_goals:
            shown = "; ".join(
                f"{goal.text} ({goal.category})"
                for goal in open_goals[:_OPEN_GOALS_SHOWN]
            )
            lines.append(f"Open goals: {shown}.")
    else:
        lines.append("Goals: none set yet.")
    if progress is not None:
        status = "over goal" if progress.over_goal else f"{progress.remaining} left"
        lines.append(
            f"Calories today: {progress.consumed} of {progress.daily_goal} kcal "
            f"({progress.percentage}%, {status})."
        )
    if recent_topics:
        lines.append(f"Recent topics: {', '.join(recent_topics)}.")
    return "\n".join(lines)
