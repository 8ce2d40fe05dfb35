"""Node descriptors, input resolution and the node registry."""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from nodeflow.callbacks.base import CallbackHandler
from nodeflow.callbacks.sink import EventSink, StreamChannel
from nodeflow.errors import NodeInputError
from nodeflow.memory.schema import FlowMessage

logger = logging.getLogger(__name__)

# Primitive input types; any other type names a component produced by another node
PRIMITIVE_TYPES = {"string", "number", "boolean", "json", "options"}


@dataclass
class NodeParam:
    """One declared input of a node."""

    name: str
    label: str
    type: str
    description: str = ""
    optional: bool = False
    default: Any = None
    list: bool = False
    additional_params: bool = False


def _flatten(value: Any) -> list[Any]:
    if not isinstance(value, (list, tuple)):
        return [value]
    flat: list[Any] = []
    for item in value:
        flat.extend(_flatten(item))
    return flat


@dataclass
class NodeDescriptor:
    """Static description of a node type."""

    name: str
    label: str
    type: str
    category: str
    description: str = ""
    version: float = 1.0
    base_classes: list[str] = field(default_factory=list)
    inputs: list[NodeParam] = field(default_factory=list)

    def resolve_inputs(self, raw: dict[str, Any]) -> dict[str, Any]:
        """Apply defaults, coerce primitive values and check required inputs.

        Args:
            raw: Input values as wired in the flow (strings for primitives)

        Returns:
            Resolved inputs keyed by parameter name; undeclared keys pass through

        Raises:
            NodeInputError: If a required input is missing or cannot be coerced
        """
        resolved = dict(raw)
        for param in self.inputs:
            value = raw.get(param.name)
            if value is None or value == "":
                value = param.default
            if value is None:
                if not param.optional:
                    raise NodeInputError(
                        f"Node '{self.name}' is missing required input '{param.name}'"
                    )
                resolved[param.name] = [] if param.list else None
                continue
            if param.list:
                resolved[param.name] = [self._coerce(param, v) for v in _flatten(value)]
            else:
                resolved[param.name] = self._coerce(param, value)
        return resolved

    def _coerce(self, param: NodeParam, value: Any) -> Any:
        if param.type == "number" and isinstance(value, str):
            try:
                number = float(value)
            except ValueError as e:
                raise NodeInputError(
                    f"Input '{param.name}' of node '{self.name}' is not a number: {value!r}"
                ) from e
            return int(number) if number.is_integer() else number
        if param.type == "boolean" and isinstance(value, str):
            lowered = value.strip().lower()
            if lowered not in ("true", "false"):
                raise NodeInputError(
                    f"Input '{param.name}' of node '{self.name}' is not a boolean: {value!r}"
                )
            return lowered == "true"
        if param.type == "json" and isinstance(value, str):
            try:
                return json.loads(value)
            except json.JSONDecodeError as e:
                raise NodeInputError(
                    f"Invalid JSON in input '{param.name}' of node '{self.name}': {e}"
                ) from e
        return value


@dataclass
class NodeData:
    """A node instance in a flow, with resolved inputs."""

    id: str
    inputs: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_raw(cls, descriptor: NodeDescriptor, raw: dict[str, Any], id: str = "") -> "NodeData":
        return cls(id=id or descriptor.name, inputs=descriptor.resolve_inputs(raw))


@dataclass
class RunOptions:
    """Cross-cutting context of one flow execution."""

    session_id: str = ""
    chatflow_id: str = ""
    chat_id: str | None = None
    logger: logging.Logger | None = None
    sink: EventSink | None = None
    client_id: str | None = None
    prepend_messages: list[FlowMessage] | None = None
    callbacks: list[CallbackHandler] = field(default_factory=list)
    debug: bool = False

    @property
    def stream_channel(self) -> StreamChannel | None:
        """Channel to the client, present only when both sink and client id are set."""
        if self.sink is None or not self.client_id:
            return None
        return StreamChannel(self.sink, self.client_id)


@runtime_checkable
class Node(Protocol):
    """A flow node: builds its backend object from resolved inputs."""

    descriptor: NodeDescriptor

    async def init(self, data: NodeData, input: str, options: RunOptions) -> Any: ...


@runtime_checkable
class EndingNode(Node, Protocol):
    """A node that can terminate a flow and answer the user."""

    async def run(self, data: NodeData, input: str, options: RunOptions) -> str | dict[str, Any]: ...


class NodeRegistry:
    """Node types available to flows, keyed by descriptor name."""

    def __init__(self) -> None:
        self._nodes: dict[str, Node] = {}

    def register_node(self, node: Node) -> None:
        name = node.descriptor.name
        if name in self._nodes:
            raise ValueError(f"Node '{name}' is already registered")
        self._nodes[name] = node
        logger.debug("Registered node %s (%s)", name, node.descriptor.category)

    def get_node(self, name: str) -> Node:
        try:
            return self._nodes[name]
        except KeyError:
            raise NodeInputError(f"Unknown node type: {name}") from None

    def list_nodes(self, category: str | None = None) -> list[NodeDescriptor]:
        return [
            node.descriptor
            for node in self._nodes.values()
            if category is None or node.descriptor.category == category
        ]
