"""Input moderation."""

from nodeflow.moderation.base import Moderation, check_inputs, format_response, stream_response
from nodeflow.moderation.openai_moderation import OpenAIModeration
from nodeflow.moderation.simple_prompt import SimplePromptModeration

__all__ = [
    "Moderation",
    "OpenAIModeration",
    "SimplePromptModeration",
    "check_inputs",
    "format_response",
    "stream_response",
]
