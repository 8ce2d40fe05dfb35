"""FastAPI application factory."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from nodeflow import __version__
from nodeflow.callbacks.sink import QueueSink
from nodeflow.config.schema import NodeflowConfig
from nodeflow.flows import Flow, load_flows
from nodeflow.memory.storage import SQLiteMessageStore
from nodeflow.nodes import default_registry
from nodeflow.server.routes import create_router


def create_app(
    config: NodeflowConfig,
    flows: dict[str, Flow],
    sink: QueueSink | None = None,
) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        config: Nodeflow configuration
        flows: Flows served under ``/api/v1/prediction/{flow_id}``
        sink: Event sink for streamed predictions

    Returns:
        Configured FastAPI app
    """
    app = FastAPI(
        title="Nodeflow",
        description="Flow runtime for composable LLM applications",
        version=__version__,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(create_router(config, flows, sink or QueueSink()))

    return app


def build_app(config: NodeflowConfig) -> FastAPI:
    """Create the app with the bundled nodes and the configured flows.

    Args:
        config: Nodeflow configuration, including flow definitions

    Returns:
        Configured FastAPI app
    """
    store = SQLiteMessageStore(config.memory.db_path)
    registry = default_registry(store, config)
    return create_app(config, load_flows(config.flows, registry))
