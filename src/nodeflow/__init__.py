"""Nodeflow - conversation-memory and streaming-execution core for LLM flows.

Each node of a flow wraps one capability (chat model, agent, chain, memory,
moderation, tool) behind a typed descriptor and a two-phase ``init``/``run``
lifecycle, so a graph of nodes can be assembled into a running pipeline.

Key modules:

- :mod:`nodeflow.nodes` - Node descriptors, lifecycle contract and built-in nodes
- :mod:`nodeflow.memory` - Per-session message log with windowed retrieval
- :mod:`nodeflow.moderation` - Ordered input checks that short-circuit a turn
- :mod:`nodeflow.callbacks` - Per-invocation observer fan-out and token streaming
- :mod:`nodeflow.agents` - Prompt/memory/tool assembly and the bounded agent executor
- :mod:`nodeflow.llm` - LLM client abstraction (OpenAI-compatible, Ollama functions)
- :mod:`nodeflow.server` - HTTP prediction endpoint with SSE streaming
"""

__version__ = "0.1.0"
