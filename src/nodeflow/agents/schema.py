"""Agent step and result types."""

from dataclasses import dataclass, field
from typing import Any

from nodeflow.llm.client import Message


@dataclass
class AgentAction:
    """A tool call decided by the model."""

    tool: str
    tool_input: dict[str, Any]
    tool_call_id: str
    message: Message  # Assistant message that carried the call


@dataclass
class AgentFinish:
    """A final answer."""

    output: str


@dataclass
class AgentStep:
    """An executed action and what the tool returned."""

    action: AgentAction
    observation: str
    source_documents: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class UsedTool:
    """Record of one tool invocation, reported next to the answer."""

    tool: str
    tool_input: dict[str, Any]
    tool_output: str

    def to_dict(self) -> dict[str, Any]:
        return {"tool": self.tool, "toolInput": self.tool_input, "toolOutput": self.tool_output}


@dataclass
class AgentResult:
    """Outcome of one agent invocation."""

    output: str
    source_documents: list[dict[str, Any]] = field(default_factory=list)
    used_tools: list[UsedTool] = field(default_factory=list)
    intermediate_steps: list[AgentStep] | None = None
