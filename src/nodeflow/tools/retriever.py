"""Tools that look up documents and report them as sources."""

from typing import Any, Protocol

from nodeflow.tools.base import Tool, ToolParameter, ToolResult, ToolSchema


class Retriever(Protocol):
    """Anything that returns documents relevant to a query.

    Documents are dicts with ``pageContent`` and ``metadata`` keys.
    """

    async def get_relevant_documents(self, query: str) -> list[dict[str, Any]]: ...


def create_retriever_tool(
    retriever: Retriever,
    name: str,
    description: str,
    return_source_documents: bool = True,
) -> Tool:
    """Wrap a retriever as an agent tool.

    The tool answers with the documents' contents joined by blank lines and,
    when ``return_source_documents`` is set, attaches the documents so they
    surface as ``sourceDocuments`` next to the agent's answer.
    """

    async def retrieve(query: str) -> ToolResult:
        documents = await retriever.get_relevant_documents(query)
        text = "\n\n".join(doc.get("pageContent", "") for doc in documents)
        return ToolResult(text=text, source_documents=documents if return_source_documents else [])

    schema = ToolSchema(
        name=name,
        description=description,
        parameters=[ToolParameter(name="query", type="string", description="query to look up")],
    )
    return Tool(schema=schema, fn=retrieve)
