"""Moderation nodes."""

from nodeflow.moderation.openai_moderation import OpenAIModeration
from nodeflow.moderation.simple_prompt import SimplePromptModeration
from nodeflow.nodes.base import NodeData, NodeDescriptor, NodeParam, RunOptions

DEFAULT_ERROR_MESSAGE = "Cannot Process! Input violates content moderation policies."


def _error_message_param(default: str) -> NodeParam:
    return NodeParam(
        name="moderationErrorMessage",
        label="Error Message",
        type="string",
        optional=True,
        default=default,
    )


class SimplePromptModerationNode:
    """Deny-list moderation."""

    def __init__(self, error_message: str = DEFAULT_ERROR_MESSAGE):
        self.descriptor = NodeDescriptor(
            name="inputModerationSimple",
            label="Simple Prompt Moderation",
            type="Moderation",
            category="Moderation",
            description="Check whether input consists of any text from Deny list, and prevent "
            "being sent to LLM",
            version=2.0,
            base_classes=["Moderation"],
            inputs=[
                NodeParam(
                    name="denyList",
                    label="Deny List",
                    type="string",
                    description="An array of string literals (enter one per line) that should "
                    "not appear in the prompt text.",
                ),
                NodeParam(
                    name="model",
                    label="Chat Model",
                    type="BaseChatModel",
                    description="Use LLM to detect if the input is similar to those specified "
                    "in Deny List",
                    optional=True,
                ),
                _error_message_param(error_message),
            ],
        )

    async def init(self, data: NodeData, input: str, options: RunOptions) -> SimplePromptModeration:
        return SimplePromptModeration(
            deny_list=data.inputs["denyList"],
            error_message=data.inputs["moderationErrorMessage"],
            llm=data.inputs.get("model"),
        )


class OpenAIModerationNode:
    """OpenAI moderation endpoint."""

    def __init__(self, error_message: str = DEFAULT_ERROR_MESSAGE):
        self.descriptor = NodeDescriptor(
            name="inputModerationOpenAI",
            label="OpenAI Moderation",
            type="Moderation",
            category="Moderation",
            description="Check whether content complies with OpenAI usage policies.",
            base_classes=["Moderation"],
            inputs=[
                NodeParam(name="openAIApiKey", label="OpenAI Api Key", type="string", optional=True),
                NodeParam(name="basePath", label="Base Path", type="string", optional=True),
                _error_message_param(error_message),
            ],
        )

    async def init(self, data: NodeData, input: str, options: RunOptions) -> OpenAIModeration:
        return OpenAIModeration(
            error_message=data.inputs["moderationErrorMessage"],
            api_key=data.inputs.get("openAIApiKey"),
            base_url=data.inputs.get("basePath"),
        )
