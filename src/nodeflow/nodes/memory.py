"""Memory nodes backed by the message store."""

from nodeflow.memory.buffer import BufferMemory, BufferWindowMemory
from nodeflow.memory.storage import MessageStore
from nodeflow.nodes.base import NodeData, NodeDescriptor, NodeParam, RunOptions

_SESSION_PARAM = NodeParam(
    name="sessionId",
    label="Session Id",
    type="string",
    description="If not specified, the session id of the flow run is used",
    optional=True,
    additional_params=True,
)


class BufferMemoryNode:
    """Full session history."""

    descriptor = NodeDescriptor(
        name="bufferMemory",
        label="Buffer Memory",
        type="BufferMemory",
        category="Memory",
        description="Retrieve chat messages stored in the database",
        version=2.0,
        base_classes=["BufferMemory", "BaseChatMemory", "BaseMemory"],
        inputs=[
            _SESSION_PARAM,
            NodeParam(
                name="memoryKey",
                label="Memory Key",
                type="string",
                default="chat_history",
                additional_params=True,
            ),
        ],
    )

    def __init__(self, store: MessageStore):
        self.store = store

    async def init(self, data: NodeData, input: str, options: RunOptions) -> BufferMemory:
        return BufferMemory(
            self.store,
            chatflow_id=options.chatflow_id,
            session_id=data.inputs.get("sessionId") or options.session_id,
            memory_key=data.inputs["memoryKey"],
        )


class BufferWindowMemoryNode:
    """Session history bounded to the most recent messages."""

    def __init__(self, store: MessageStore, default_k: int = 4):
        self.store = store
        self.descriptor = NodeDescriptor(
            name="bufferWindowMemory",
            label="Buffer Window Memory",
            type="BufferWindowMemory",
            category="Memory",
            description="Uses a window of size k to surface the last k back-and-forth to use as memory",
            version=2.0,
            base_classes=["BufferWindowMemory", "BaseChatMemory", "BaseMemory"],
            inputs=[
                NodeParam(
                    name="k",
                    label="Size",
                    type="number",
                    description="Window of size k to surface the last k back-and-forth to use as memory.",
                    default=default_k,
                ),
                _SESSION_PARAM,
                NodeParam(
                    name="memoryKey",
                    label="Memory Key",
                    type="string",
                    default="chat_history",
                    additional_params=True,
                ),
            ],
        )

    async def init(self, data: NodeData, input: str, options: RunOptions) -> BufferWindowMemory:
        return BufferWindowMemory(
            self.store,
            k=int(data.inputs["k"]),
            chatflow_id=options.chatflow_id,
            session_id=data.inputs.get("sessionId") or options.session_id,
            memory_key=data.inputs["memoryKey"],
        )
