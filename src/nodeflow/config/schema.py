"""Pydantic models for nodeflow.yaml configuration."""

from typing import Any, Literal

from pydantic import BaseModel, Field


class MemoryConfig(BaseModel):
    """Conversation memory configuration."""

    db_path: str = Field(
        default="~/.nodeflow/messages.db",
        description="Path to the SQLite database holding chat messages",
    )
    window_size: int = Field(
        default=4,
        description="Default window size k for buffer window memory",
        ge=1,
    )
    memory_key: str = Field(
        default="chat_history",
        description="Prompt variable that receives the memory window",
    )


class AgentConfig(BaseModel):
    """Agent executor configuration."""

    max_iterations: int | None = Field(
        default=15,
        description="Default cap on model round-trips per turn (None = unbounded)",
        ge=1,
    )
    system_message: str | None = Field(
        default=None,
        description="System message used when a node does not configure one",
    )


class ModerationConfig(BaseModel):
    """Input moderation configuration."""

    error_message: str = Field(
        default="Cannot Process! Input violates content moderation policies.",
        description="Default error message returned when a check fails",
    )


class ServerConfig(BaseModel):
    """API server configuration."""

    host: str = Field(default="127.0.0.1", description="Server bind address")
    port: int = Field(default=3000, description="Server port", ge=1, le=65535)
    cors_origins: list[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins (use ['*'] for development only)",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Root log level"
    )
    format: str = Field(
        default="%(asctime)s %(levelname)s %(name)s: %(message)s",
        description="logging.Formatter format string",
    )


class FlowNodeConfig(BaseModel):
    """A node instance inside a flow."""

    id: str = Field(description="Node id, referenced from other nodes as {{id}}")
    type: str = Field(description="Registered node name, e.g. conversationChain")
    inputs: dict[str, Any] = Field(default_factory=dict, description="Raw node inputs")


class FlowConfig(BaseModel):
    """A flow: wired nodes and the node that answers."""

    id: str = Field(description="Flow id used in the prediction URL")
    nodes: list[FlowNodeConfig] = Field(default_factory=list)
    ending_node: str = Field(description="Id of the node whose run() answers the user")


class NodeflowConfig(BaseModel):
    """Root configuration model."""

    memory: MemoryConfig = Field(default_factory=MemoryConfig)
    agent: AgentConfig = Field(default_factory=AgentConfig)
    moderation: ModerationConfig = Field(default_factory=ModerationConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    flows: list[FlowConfig] = Field(default_factory=list)
    debug: bool = Field(
        default=False,
        description="Log prompt inputs and model outputs at DEBUG level",
    )
