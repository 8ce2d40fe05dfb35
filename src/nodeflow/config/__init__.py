"""Configuration models, YAML loading and logging setup."""

from nodeflow.config.loader import load_config, save_config
from nodeflow.config.log import configure_logging
from nodeflow.config.schema import (
    AgentConfig,
    FlowConfig,
    FlowNodeConfig,
    LoggingConfig,
    MemoryConfig,
    ModerationConfig,
    NodeflowConfig,
    ServerConfig,
)

__all__ = [
    "AgentConfig",
    "FlowConfig",
    "FlowNodeConfig",
    "LoggingConfig",
    "MemoryConfig",
    "ModerationConfig",
    "NodeflowConfig",
    "ServerConfig",
    "configure_logging",
    "load_config",
    "save_config",
]
