"""Chat prompt templates.

Templates use ``{name}`` placeholders; ``{{`` and ``}}`` render as literal
braces. Placeholders without a value are left untouched, so JSON snippets in
system messages survive formatting.
"""

import re
from dataclasses import dataclass
from typing import Any, Union

from nodeflow.llm.client import Message

_TOKEN = re.compile(r"\{\{|\}\}|\{([A-Za-z_][A-Za-z0-9_]*)\}")

_ROLE_ALIASES = {
    "system": "system",
    "human": "user",
    "user": "user",
    "ai": "assistant",
    "assistant": "assistant",
}


def render(template: str, values: dict[str, Any]) -> str:
    """Substitute ``{name}`` placeholders in a single pass."""

    def replace(match: re.Match[str]) -> str:
        token = match.group(0)
        if token == "{{":
            return "{"
        if token == "}}":
            return "}"
        name = match.group(1)
        if name in values:
            return str(values[name])
        return token

    return _TOKEN.sub(replace, template)


def template_variables(template: str) -> list[str]:
    """Names of the placeholders used in a template, in order of appearance."""
    names: list[str] = []
    for match in _TOKEN.finditer(template):
        name = match.group(1)
        if name and name not in names:
            names.append(name)
    return names


@dataclass
class MessageTemplate:
    """A single message whose content is a template."""

    role: str
    template: str

    def format(self, values: dict[str, Any]) -> Message:
        return Message(role=self.role, content=render(self.template, values))


@dataclass
class MessagesPlaceholder:
    """Slot filled with a list of messages at format time."""

    variable_name: str
    optional: bool = True


PromptEntry = Union[MessageTemplate, MessagesPlaceholder]


class ChatPromptTemplate:
    """Ordered message templates plus pre-bound prompt values."""

    def __init__(self, messages: list[PromptEntry], prompt_values: dict[str, Any] | None = None):
        self.messages = messages
        self.prompt_values = dict(prompt_values or {})

    @classmethod
    def from_messages(
        cls, messages: list[PromptEntry | tuple[str, str]]
    ) -> "ChatPromptTemplate":
        """Build a template from entries or ``(role, template)`` tuples.

        Roles may be given as ``system``, ``human``/``user`` or ``ai``/``assistant``.
        """
        entries: list[PromptEntry] = []
        for message in messages:
            if isinstance(message, tuple):
                role, template = message
                if role not in _ROLE_ALIASES:
                    raise ValueError(f"Unknown message role: {role}")
                entries.append(MessageTemplate(role=_ROLE_ALIASES[role], template=template))
            else:
                entries.append(message)
        return cls(entries)

    @property
    def input_variables(self) -> list[str]:
        names: list[str] = []
        for entry in self.messages:
            candidates = (
                template_variables(entry.template)
                if isinstance(entry, MessageTemplate)
                else [entry.variable_name]
            )
            for name in candidates:
                if name not in names and name not in self.prompt_values:
                    names.append(name)
        return names

    def partial(self, **values: Any) -> "ChatPromptTemplate":
        """Return a copy with additional prompt values bound."""
        return ChatPromptTemplate(list(self.messages), {**self.prompt_values, **values})

    def format_messages(self, **values: Any) -> list[Message]:
        """Render every entry into LLM messages.

        Raises:
            KeyError: If a required placeholder has no value
        """
        merged = {**self.prompt_values, **values}
        rendered: list[Message] = []
        for entry in self.messages:
            if isinstance(entry, MessagesPlaceholder):
                history = merged.get(entry.variable_name)
                if history is None:
                    if not entry.optional:
                        raise KeyError(f"Missing messages for placeholder '{entry.variable_name}'")
                    continue
                rendered.extend(history)
            else:
                rendered.append(entry.format(merged))
        return rendered
