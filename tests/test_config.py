"""Tests for configuration loading."""

import logging

import pytest
import yaml
from pydantic import ValidationError

from nodeflow.config import (
    LoggingConfig,
    NodeflowConfig,
    configure_logging,
    load_config,
    save_config,
)
from nodeflow.errors import ConfigError


def test_default_config(default_config):
    assert default_config.memory.window_size == 4
    assert default_config.memory.memory_key == "chat_history"
    assert default_config.agent.max_iterations == 15
    assert default_config.moderation.error_message.startswith("Cannot Process!")
    assert default_config.server.port == 3000
    assert default_config.flows == []
    assert default_config.debug is False


def test_load_missing_file_returns_defaults(tmp_path):
    config = load_config(tmp_path / "missing.yaml")
    assert config == NodeflowConfig()


def test_load_empty_file_returns_defaults(tmp_path):
    path = tmp_path / "nodeflow.yaml"
    path.write_text("")
    assert load_config(path) == NodeflowConfig()


def test_load_config_values(tmp_path):
    path = tmp_path / "nodeflow.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "memory": {"db_path": str(tmp_path / "db.sqlite"), "window_size": 8},
                "agent": {"max_iterations": 3},
                "debug": True,
                "flows": [
                    {
                        "id": "support",
                        "ending_node": "chain",
                        "nodes": [{"id": "chain", "type": "conversationChain"}],
                    }
                ],
            }
        )
    )

    config = load_config(path)

    assert config.memory.window_size == 8
    assert config.agent.max_iterations == 3
    assert config.debug is True
    assert config.flows[0].nodes[0].inputs == {}


def test_invalid_yaml(tmp_path):
    path = tmp_path / "nodeflow.yaml"
    path.write_text("memory: [unclosed")

    with pytest.raises(ConfigError, match="Invalid YAML"):
        load_config(path)


def test_validation_error(tmp_path):
    path = tmp_path / "nodeflow.yaml"
    path.write_text(yaml.safe_dump({"memory": {"window_size": 0}}))

    with pytest.raises(ConfigError, match="validation failed"):
        load_config(path)


def test_invalid_port():
    with pytest.raises(ValidationError):
        NodeflowConfig(server={"port": 70000})


def test_save_and_reload(tmp_path):
    config = NodeflowConfig()
    config.agent.system_message = "Be brief."
    path = tmp_path / "out" / "nodeflow.yaml"

    save_config(config, str(path))

    assert load_config(path).agent.system_message == "Be brief."


def test_configure_logging():
    configure_logging(LoggingConfig(level="DEBUG"))

    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.WARNING
