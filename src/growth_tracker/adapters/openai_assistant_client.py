"""OpenAI Responses API client for the growth assistant."""

from dataclasses import dataclass

import openai
from openai import AsyncOpenAI

from growth_tracker.domain.errors import RateLimited, RemoteUnavailable
from growth_tracker.services.assistant import AssistantClient


@dataclass
class OpenAIAssistantClient(AssistantClient):
    """Assistant client backed by OpenAI Responses API."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str) -> "OpenAIAssistantClient":
        """Create an OpenAI assistant client."""
        return cls(client=AsyncOpenAI(api_key=api_key))

    async def generate(
        self,
        *,
        model: str,
        instructions: str,
        prompt: str,
        temperature: float,
        max_output_tokens: int,
    ) -> str:
        """Call OpenAI Responses API and return the output text."""
        try:
            response = await self.client.responses.create(
                model=model,
                instructions=instructions,
                input=prompt,
                temperature=temperature,
                max_output_tokens=max_output_tokens,
            )
        except openai.RateLimitError as exc:
            raise RateLimited(str(exc)) from exc
        except openai.APIError as exc:
            raise RemoteUnavailable(str(exc)) from exc
        return response.output_text or ""

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()
