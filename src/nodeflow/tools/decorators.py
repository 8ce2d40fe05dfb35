"""Build tools from annotated async functions."""

import inspect
import types
from collections.abc import Callable
from typing import Any, Union, get_origin, get_type_hints

from nodeflow.tools.base import Tool, ToolFunction, ToolParameter, ToolSchema


def _python_type_to_json_schema(py_type: Any) -> str:
    """Convert Python type hint to JSON Schema type.

    Args:
        py_type: Python type annotation

    Returns:
        JSON Schema type string
    """
    # Unwrap Optional[...], Union[...] and X | None
    if get_origin(py_type) in (Union, types.UnionType):
        non_none = [arg for arg in py_type.__args__ if arg is not type(None)]
        if non_none:
            py_type = non_none[0]

    type_map = {
        str: "string",
        int: "integer",
        float: "number",
        bool: "boolean",
        list: "array",
        dict: "object",
    }

    return type_map.get(py_type, "string")


def tool(
    description: str,
    name: str | None = None,
    return_direct: bool = False,
) -> Callable[[ToolFunction], Tool]:
    """Decorator turning an async function into a :class:`Tool`.

    Introspects the function signature and docstring to build the schema.

    Args:
        description: Human-readable description of what the tool does
        name: Tool name (defaults to the function name)
        return_direct: Return the tool output as the agent's final answer

    Example:
        @tool(description="Look up the weather for a city")
        async def weather(city: str) -> str:
            '''Args:
                city: City name
            '''
            ...
    """

    def decorator(fn: ToolFunction) -> Tool:
        hints = get_type_hints(fn)
        sig = inspect.signature(fn)

        parameters: list[ToolParameter] = []
        for param_name, param in sig.parameters.items():
            param_desc = f"Parameter {param_name}"
            if fn.__doc__:
                # Simple parsing: look for "param_name: description"
                for line in fn.__doc__.split("\n"):
                    line = line.strip()
                    if line.startswith(f"{param_name}:"):
                        param_desc = line[len(param_name) + 1 :].strip()
                        break

            parameters.append(
                ToolParameter(
                    name=param_name,
                    type=_python_type_to_json_schema(hints.get(param_name, str)),
                    description=param_desc,
                    required=param.default is inspect.Parameter.empty,
                )
            )

        schema = ToolSchema(
            name=name or fn.__name__,
            description=description,
            parameters=parameters,
        )
        return Tool(schema=schema, fn=fn, return_direct=return_direct)

    return decorator
