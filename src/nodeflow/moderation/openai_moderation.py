"""Moderation through the OpenAI moderation endpoint."""

from typing import Any

from openai import AsyncOpenAI

from nodeflow.errors import ModerationViolation
from nodeflow.moderation.base import Moderation


class OpenAIModeration(Moderation):
    """Reject inputs flagged by OpenAI's moderation model."""

    def __init__(
        self,
        error_message: str,
        api_key: str | None = None,
        base_url: str | None = None,
        client: Any = None,
    ):
        super().__init__(error_message)
        self.client = client or AsyncOpenAI(api_key=api_key, base_url=base_url)

    async def check_for_violations(self, input: str) -> str:
        response = await self.client.moderations.create(input=input)
        if any(result.flagged for result in response.results):
            raise ModerationViolation(self.error_message)
        return input
