"""Agent loop: plan with the model, run tools, repeat until an answer."""

import logging
from typing import Any

from nodeflow.agents.output_parser import FunctionsAgentOutputParser
from nodeflow.agents.prompt import ChatPromptTemplate
from nodeflow.agents.schema import AgentAction, AgentFinish, AgentResult, AgentStep, UsedTool
from nodeflow.callbacks.base import CallbackManager, ToolEvent
from nodeflow.llm.client import LLMClient, Message
from nodeflow.tools.base import Tool

logger = logging.getLogger(__name__)

EARLY_STOP_MESSAGE = "Agent stopped due to max iterations."
SCRATCHPAD_KEY = "agent_scratchpad"


def format_agent_steps(steps: list[AgentStep]) -> list[Message]:
    """Render executed steps as assistant tool-call messages plus tool results.

    Actions decided in the same model turn share one assistant message, which
    is emitted once, before the first of its tool results.
    """
    messages: list[Message] = []
    emitted: list[Message] = []
    for step in steps:
        action = step.action
        if not any(action.message is m for m in emitted):
            emitted.append(action.message)
            messages.append(action.message)
        messages.append(
            Message(
                role="tool",
                content=step.observation,
                tool_call_id=action.tool_call_id,
                name=action.tool,
            )
        )
    return messages


class RunnableAgent:
    """One planning step: variables -> prompt -> model -> parsed actions."""

    def __init__(
        self,
        llm: LLMClient,
        prompt: ChatPromptTemplate,
        tools: list[Tool],
        output_parser: FunctionsAgentOutputParser | None = None,
    ):
        self.llm = llm
        self.prompt = prompt
        self.output_parser = output_parser or FunctionsAgentOutputParser()
        self.tool_schemas = [tool.schema.to_openai_format() for tool in tools]

    async def plan(
        self,
        inputs: dict[str, Any],
        intermediate_steps: list[AgentStep],
        callbacks: CallbackManager,
    ) -> list[AgentAction] | AgentFinish:
        """Ask the model for the next move.

        Tokens of a streamed round are held until the round turns out to be
        the final answer; text written next to tool calls is never forwarded.
        """
        values = {**inputs, SCRATCHPAD_KEY: format_agent_steps(intermediate_steps)}
        messages = self.prompt.format_messages(**values)
        held: list[str] = []

        async def hold(token: str) -> None:
            held.append(token)

        response = await self.llm.complete(
            messages=messages,
            tools=self.tool_schemas or None,
            on_token=hold if callbacks.streaming else None,
        )
        plan = self.output_parser.parse(response)
        if isinstance(plan, AgentFinish):
            for token in held:
                await callbacks.on_token(token)
        return plan


class AgentExecutor:
    """Runs an agent until it answers or the iteration cap is hit.

    The executor never touches conversation memory; persisting the turn is
    left to the caller.
    """

    def __init__(
        self,
        agent: RunnableAgent,
        tools: list[Tool],
        max_iterations: int | None = 15,
        return_intermediate_steps: bool = False,
        early_stopping_message: str = EARLY_STOP_MESSAGE,
    ):
        """Initialize the executor.

        Args:
            agent: Planner producing actions or a final answer
            tools: Tools the agent may call
            max_iterations: Cap on model round-trips (None = unbounded)
            return_intermediate_steps: Include executed steps in the result
            early_stopping_message: Answer returned when the cap is reached
        """
        self.agent = agent
        self.tools = {tool.name: tool for tool in tools}
        self.max_iterations = max_iterations
        self.return_intermediate_steps = return_intermediate_steps
        self.early_stopping_message = early_stopping_message

    async def invoke(
        self, inputs: dict[str, Any], callbacks: CallbackManager | None = None
    ) -> AgentResult:
        """Run the agent on one input.

        Args:
            inputs: Prompt variables, including the user input
            callbacks: Observers for this invocation

        Returns:
            Final answer with used tools and source documents

        Raises:
            Exception: Model and tool errors propagate after ``on_error``
        """
        callbacks = callbacks or CallbackManager()
        await callbacks.on_start(inputs)
        try:
            result = await self._run(inputs, callbacks)
        except Exception as e:
            await callbacks.on_error(e)
            raise
        await callbacks.on_end({"output": result.output})
        return result

    def _should_continue(self, iterations: int) -> bool:
        return self.max_iterations is None or iterations < self.max_iterations

    async def _run(self, inputs: dict[str, Any], callbacks: CallbackManager) -> AgentResult:
        steps: list[AgentStep] = []
        iterations = 0

        while self._should_continue(iterations):
            plan = await self.agent.plan(inputs, steps, callbacks)
            iterations += 1

            if isinstance(plan, AgentFinish):
                return self._finish(plan.output, steps)

            batch = [await self._take_action(action, callbacks) for action in plan]
            steps.extend(batch)

            if len(batch) == 1:
                tool = self.tools.get(batch[0].action.tool)
                if tool is not None and tool.return_direct:
                    await self._stream_answer(batch[0].observation, callbacks)
                    return self._finish(batch[0].observation, steps)

        logger.warning("Agent stopped after %d iterations", iterations)
        await self._stream_answer(self.early_stopping_message, callbacks)
        return self._finish(self.early_stopping_message, steps)

    async def _stream_answer(self, output: str, callbacks: CallbackManager) -> None:
        # Answers not produced by the model still reach streaming clients
        if callbacks.streaming and output:
            await callbacks.on_token(output)

    async def _take_action(self, action: AgentAction, callbacks: CallbackManager) -> AgentStep:
        tool = self.tools.get(action.tool)
        if tool is None:
            names = ", ".join(self.tools)
            logger.warning("Model requested unknown tool '%s'", action.tool)
            return AgentStep(
                action=action,
                observation=f"{action.tool} is not a valid tool, try one of [{names}].",
            )

        await callbacks.on_tool_event(ToolEvent("start", action.tool, action.tool_input))
        result = await tool.execute(**action.tool_input)
        await callbacks.on_tool_event(
            ToolEvent("end", action.tool, action.tool_input, tool_output=result.text)
        )
        return AgentStep(
            action=action,
            observation=result.text,
            source_documents=list(result.source_documents),
        )

    def _finish(self, output: str, steps: list[AgentStep]) -> AgentResult:
        used_tools = [
            UsedTool(tool=s.action.tool, tool_input=s.action.tool_input, tool_output=s.observation)
            for s in steps
            if s.action.tool in self.tools
        ]
        source_documents = [doc for s in steps for doc in s.source_documents]
        return AgentResult(
            output=output,
            source_documents=source_documents,
            used_tools=used_tools,
            intermediate_steps=list(steps) if self.return_intermediate_steps else None,
        )
