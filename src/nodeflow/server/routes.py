"""API routes for the nodeflow server."""

import asyncio
import json
import logging
import uuid
from collections.abc import AsyncIterator
from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field
from sse_starlette.sse import EventSourceResponse

from nodeflow import __version__
from nodeflow.callbacks.sink import QueueSink
from nodeflow.config.schema import NodeflowConfig
from nodeflow.errors import NodeInputError
from nodeflow.flows import Flow
from nodeflow.memory.schema import FlowMessage, MessageType
from nodeflow.nodes.base import RunOptions

logger = logging.getLogger(__name__)

# Server-level events closing a stream
END = "end"
ERROR = "error"


class HistoryMessage(BaseModel):
    """A message prepended to the stored history for one prediction."""

    type: MessageType
    message: str


class PredictionRequest(BaseModel):
    """Request body for the prediction endpoint."""

    question: str
    streaming: bool = False
    session_id: str | None = Field(default=None, alias="sessionId")
    chat_id: str | None = Field(default=None, alias="chatId")
    history: list[HistoryMessage] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    flows: list[str]


def _encode(payload: Any) -> str:
    return payload if isinstance(payload, str) else json.dumps(payload)


def create_router(config: NodeflowConfig, flows: dict[str, Flow], sink: QueueSink) -> APIRouter:
    """Create API router serving the given flows.

    Args:
        config: Nodeflow configuration
        flows: Flows keyed by id
        sink: Event sink feeding streamed responses

    Returns:
        Configured API router
    """
    router = APIRouter()

    @router.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(status="healthy", version=__version__, flows=sorted(flows))

    def run_options(request: PredictionRequest, client_id: str | None) -> RunOptions:
        return RunOptions(
            session_id=request.session_id or str(uuid.uuid4()),
            chatflow_id="",
            chat_id=request.chat_id,
            logger=logging.getLogger("nodeflow.execution"),
            sink=sink if client_id else None,
            client_id=client_id,
            prepend_messages=[FlowMessage(text=m.message, type=m.type) for m in request.history]
            or None,
            debug=config.debug,
        )

    @router.post("/api/v1/prediction/{flow_id}", response_model=None)
    async def predict(flow_id: str, request: PredictionRequest) -> Any:
        """Run a flow on a question.

        Returns the node's answer as JSON, or an SSE stream of ``start``,
        ``token``, ``usedTools`` and ``sourceDocuments`` events closed by
        ``end`` (carrying the answer) or ``error`` when ``streaming`` is set.
        """
        flow = flows.get(flow_id)
        if flow is None:
            raise HTTPException(status_code=404, detail=f"Flow {flow_id} not found")

        if not request.streaming:
            options = run_options(request, None)
            options.chatflow_id = flow_id
            try:
                result = await flow.run(request.question, options)
            except NodeInputError as e:
                raise HTTPException(status_code=400, detail=str(e)) from e
            except Exception as e:
                logger.exception("Prediction failed for flow %s", flow_id)
                raise HTTPException(status_code=500, detail=str(e)) from e
            return {"text": result} if isinstance(result, str) else result

        client_id = str(uuid.uuid4())
        options = run_options(request, client_id)
        options.chatflow_id = flow_id
        queue = sink.open(client_id)

        async def event_generator() -> AsyncIterator[dict[str, str]]:
            task = asyncio.create_task(flow.run(request.question, options))
            try:
                while True:
                    getter = asyncio.ensure_future(queue.get())
                    done, _ = await asyncio.wait(
                        {getter, task}, return_when=asyncio.FIRST_COMPLETED
                    )
                    if getter in done:
                        event, payload = getter.result()
                        yield {"event": event, "data": _encode(payload)}
                        continue
                    getter.cancel()
                    break

                while not queue.empty():
                    event, payload = queue.get_nowait()
                    yield {"event": event, "data": _encode(payload)}

                try:
                    result = task.result()
                except Exception as e:
                    logger.exception("Streamed prediction failed for flow %s", flow_id)
                    yield {"event": ERROR, "data": str(e)}
                    return
                yield {"event": END, "data": _encode(result)}
            finally:
                if not task.done():
                    task.cancel()
                sink.close(client_id)

        return EventSourceResponse(event_generator())

    return router
