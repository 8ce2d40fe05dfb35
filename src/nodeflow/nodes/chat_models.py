"""Chat model nodes for OpenAI-compatible backends."""

from typing import Any

from openai import AsyncAzureOpenAI

from nodeflow.llm.ollama_functions import DEFAULT_TOOL_SYSTEM_TEMPLATE, OllamaFunctionsClient
from nodeflow.llm.openai_compat import OpenAICompatibleClient
from nodeflow.nodes.base import NodeData, NodeDescriptor, NodeParam, RunOptions

_BASE_CLASSES = ["BaseChatModel", "BaseLanguageModel"]


def _sampling_params() -> list[NodeParam]:
    return [
        NodeParam(name="temperature", label="Temperature", type="number", optional=True, default=0.9),
        NodeParam(
            name="maxTokens", label="Max Tokens", type="number", optional=True, additional_params=True
        ),
        NodeParam(
            name="streaming", label="Streaming", type="boolean", optional=True, default=True,
            additional_params=True,
        ),
        NodeParam(
            name="timeout", label="Timeout", type="number", optional=True, additional_params=True
        ),
    ]


def _client_kwargs(inputs: dict[str, Any]) -> dict[str, Any]:
    kwargs: dict[str, Any] = {
        "temperature": float(inputs["temperature"]),
        "streaming": bool(inputs["streaming"]),
        "max_tokens": int(inputs["maxTokens"]) if inputs.get("maxTokens") else None,
    }
    if inputs.get("timeout"):
        kwargs["timeout"] = int(inputs["timeout"])
    return kwargs


class ChatOpenAINode:
    """OpenAI chat model, or any server exposing the same API via ``basePath``."""

    descriptor = NodeDescriptor(
        name="chatOpenAI",
        label="ChatOpenAI",
        type="ChatOpenAI",
        category="Chat Models",
        description="Wrapper around OpenAI large language models that use the Chat endpoint",
        base_classes=["ChatOpenAI", *_BASE_CLASSES],
        inputs=[
            NodeParam(name="modelName", label="Model Name", type="string", default="gpt-3.5-turbo"),
            NodeParam(name="openAIApiKey", label="OpenAI Api Key", type="string", optional=True),
            NodeParam(
                name="basePath", label="Base Path", type="string", optional=True,
                additional_params=True,
            ),
            *_sampling_params(),
        ],
    )

    async def init(self, data: NodeData, input: str, options: RunOptions) -> OpenAICompatibleClient:
        inputs = data.inputs
        return OpenAICompatibleClient(
            model=inputs["modelName"],
            base_url=inputs.get("basePath"),
            api_key=inputs.get("openAIApiKey") or "none",
            **_client_kwargs(inputs),
        )


class ChatLocalAINode:
    """LocalAI server."""

    descriptor = NodeDescriptor(
        name="chatLocalAI",
        label="ChatLocalAI",
        type="ChatLocalAI",
        category="Chat Models",
        description="Use local LLMs like llama.cpp, gpt4all using LocalAI",
        version=2.0,
        base_classes=["ChatLocalAI", *_BASE_CLASSES],
        inputs=[
            NodeParam(
                name="basePath", label="Base Path", type="string",
                default="http://localhost:8080/v1",
            ),
            NodeParam(name="modelName", label="Model Name", type="string"),
            NodeParam(name="localAIApiKey", label="LocalAI Api Key", type="string", optional=True),
            *_sampling_params(),
        ],
    )

    async def init(self, data: NodeData, input: str, options: RunOptions) -> OpenAICompatibleClient:
        inputs = data.inputs
        return OpenAICompatibleClient(
            model=inputs["modelName"],
            base_url=inputs["basePath"],
            api_key=inputs.get("localAIApiKey") or "none",
            **_client_kwargs(inputs),
        )


class AzureChatOpenAINode:
    """Azure OpenAI deployment."""

    descriptor = NodeDescriptor(
        name="azureChatOpenAI",
        label="Azure ChatOpenAI",
        type="AzureChatOpenAI",
        category="Chat Models",
        description="Wrapper around Azure OpenAI large language models that use the Chat endpoint",
        version=2.0,
        base_classes=["AzureChatOpenAI", *_BASE_CLASSES],
        inputs=[
            NodeParam(name="azureOpenAIApiKey", label="Azure OpenAI Api Key", type="string"),
            NodeParam(
                name="azureOpenAIApiInstanceName", label="Azure OpenAI Api Instance Name",
                type="string",
            ),
            NodeParam(
                name="azureOpenAIApiDeploymentName", label="Azure OpenAI Api Deployment Name",
                type="string",
            ),
            NodeParam(
                name="azureOpenAIApiVersion", label="Azure OpenAI Api Version", type="string",
                default="2024-02-01",
            ),
            *_sampling_params(),
        ],
    )

    async def init(self, data: NodeData, input: str, options: RunOptions) -> OpenAICompatibleClient:
        inputs = data.inputs
        deployment = inputs["azureOpenAIApiDeploymentName"]
        client = AsyncAzureOpenAI(
            azure_endpoint=f"https://{inputs['azureOpenAIApiInstanceName']}.openai.azure.com",
            azure_deployment=deployment,
            api_key=inputs["azureOpenAIApiKey"],
            api_version=inputs["azureOpenAIApiVersion"],
        )
        return OpenAICompatibleClient(model=deployment, client=client, **_client_kwargs(inputs))


class ChatOllamaFunctionNode:
    """Ollama model driven through JSON-mode function calling."""

    descriptor = NodeDescriptor(
        name="chatOllamaFunction",
        label="ChatOllama Function",
        type="ChatOllamaFunction",
        category="Chat Models",
        description="Run open-source function-calling compatible LLM on Ollama",
        base_classes=["ChatOllamaFunction", *_BASE_CLASSES],
        inputs=[
            NodeParam(
                name="baseUrl", label="Base URL", type="string", default="http://localhost:11434"
            ),
            NodeParam(name="modelName", label="Model Name", type="string"),
            NodeParam(
                name="toolSystemPromptTemplate",
                label="Tool System Prompt",
                type="string",
                description="Must include {tools}",
                optional=True,
                default=DEFAULT_TOOL_SYSTEM_TEMPLATE,
                additional_params=True,
            ),
            *_sampling_params(),
        ],
    )

    async def init(self, data: NodeData, input: str, options: RunOptions) -> OllamaFunctionsClient:
        inputs = data.inputs
        llm = OpenAICompatibleClient(
            model=inputs["modelName"],
            base_url=inputs["baseUrl"].rstrip("/") + "/v1",
            api_key="ollama",
            **_client_kwargs(inputs),
        )
        return OllamaFunctionsClient(
            llm,
            model_name=inputs["modelName"],
            tool_system_prompt_template=inputs["toolSystemPromptTemplate"],
        )
