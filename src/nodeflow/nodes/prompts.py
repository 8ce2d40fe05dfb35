"""Prompt nodes."""

from nodeflow.agents.prompt import ChatPromptTemplate
from nodeflow.errors import NodeInputError
from nodeflow.nodes.base import NodeData, NodeDescriptor, NodeParam, RunOptions


class ChatPromptTemplateNode:
    """System + human message templates with bound prompt values."""

    descriptor = NodeDescriptor(
        name="chatPromptTemplate",
        label="Chat Prompt Template",
        type="ChatPromptTemplate",
        category="Prompts",
        description="Schema to represent a chat prompt",
        base_classes=["ChatPromptTemplate", "BasePromptTemplate"],
        inputs=[
            NodeParam(name="systemMessagePrompt", label="System Message", type="string"),
            NodeParam(name="humanMessagePrompt", label="Human Message", type="string"),
            NodeParam(name="promptValues", label="Format Prompt Values", type="json", optional=True),
        ],
    )

    async def init(self, data: NodeData, input: str, options: RunOptions) -> ChatPromptTemplate:
        inputs = data.inputs
        prompt_values = inputs.get("promptValues") or {}
        if not isinstance(prompt_values, dict):
            raise NodeInputError(
                f"Invalid JSON in the ChatPromptTemplate's promptValues: {prompt_values!r}"
            )
        prompt = ChatPromptTemplate.from_messages(
            [("system", inputs["systemMessagePrompt"]), ("human", inputs["humanMessagePrompt"])]
        )
        return prompt.partial(**prompt_values)
