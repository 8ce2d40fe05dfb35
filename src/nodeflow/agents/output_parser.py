"""Parse function-calling model output into agent actions."""

from nodeflow.agents.schema import AgentAction, AgentFinish
from nodeflow.llm.client import CompletionResponse, Message


class FunctionsAgentOutputParser:
    """Turns tool calls into actions and plain content into a final answer."""

    def parse(self, response: CompletionResponse) -> list[AgentAction] | AgentFinish:
        if not response.tool_calls:
            return AgentFinish(output=response.content)

        message = Message(role="assistant", content=response.content, tool_calls=response.tool_calls)
        return [
            AgentAction(
                tool=call.name,
                tool_input=call.arguments,
                tool_call_id=call.id,
                message=message,
            )
            for call in response.tool_calls
        ]
