"""Build and run flows declared in configuration.

Node inputs reference other nodes with ``"{{node_id}}"``. Nodes are
initialised per run, dependencies first, so run options such as the
session id reach every node that needs them.
"""

import logging
import re
from typing import Any

from nodeflow.config.schema import FlowConfig, FlowNodeConfig
from nodeflow.errors import NodeInputError
from nodeflow.nodes.base import EndingNode, NodeData, NodeRegistry, RunOptions

logger = logging.getLogger(__name__)

_REFERENCE = re.compile(r"^\{\{\s*([A-Za-z0-9_\-]+)\s*\}\}$")


class Flow:
    """A configured flow bound to a node registry."""

    def __init__(self, config: FlowConfig, registry: NodeRegistry):
        self.config = config
        self.registry = registry
        self.nodes = {node.id: node for node in config.nodes}
        if config.ending_node not in self.nodes:
            raise NodeInputError(
                f"Flow '{config.id}' has no node '{config.ending_node}' to end with"
            )

    @property
    def id(self) -> str:
        return self.config.id

    async def run(self, question: str, options: RunOptions) -> str | dict[str, Any]:
        """Initialise the flow's nodes and answer ``question`` with the ending node."""
        ending_config = self.nodes[self.config.ending_node]
        ending = self.registry.get_node(ending_config.type)
        if not isinstance(ending, EndingNode):
            raise NodeInputError(f"Node '{ending_config.type}' cannot end a flow")

        built: dict[str, Any] = {}
        data = await self._node_data(ending_config, question, options, built, [])
        logger.info("Running flow %s (ending node %s)", self.id, ending_config.id)
        return await ending.run(data, question, options)

    async def _node_data(
        self,
        config: FlowNodeConfig,
        question: str,
        options: RunOptions,
        built: dict[str, Any],
        path: list[str],
    ) -> NodeData:
        async def resolve(value: Any) -> Any:
            if isinstance(value, list):
                return [await resolve(v) for v in value]
            if isinstance(value, str):
                match = _REFERENCE.match(value)
                if match:
                    return await self._build(match.group(1), question, options, built, path)
            return value

        raw = {name: await resolve(value) for name, value in config.inputs.items()}
        descriptor = self.registry.get_node(config.type).descriptor
        return NodeData.from_raw(descriptor, raw, id=config.id)

    async def _build(
        self,
        node_id: str,
        question: str,
        options: RunOptions,
        built: dict[str, Any],
        path: list[str],
    ) -> Any:
        if node_id in built:
            return built[node_id]
        if node_id in path:
            raise NodeInputError(f"Cycle in flow '{self.id}': {' -> '.join([*path, node_id])}")
        if node_id not in self.nodes:
            raise NodeInputError(f"Flow '{self.id}' references unknown node '{node_id}'")

        config = self.nodes[node_id]
        data = await self._node_data(config, question, options, built, [*path, node_id])
        built[node_id] = await self.registry.get_node(config.type).init(data, question, options)
        return built[node_id]


def load_flows(configs: list[FlowConfig], registry: NodeRegistry) -> dict[str, Flow]:
    return {config.id: Flow(config, registry) for config in configs}
