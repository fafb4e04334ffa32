"""Tool declarations advertised to the generation backend.

Converts the pydantic argument models in :mod:`agentchat.core.tools` into
name/description/JSON-schema declarations.
"""

from typing import Any, Type

from pydantic import BaseModel

from agentchat.core.tools import TOOL_WEB_SEARCH


TOOL_DESCRIPTIONS: dict[str, str] = {
    TOOL_WEB_SEARCH: (
        "Search the web for current information, facts, or real-time data. "
        "Use this function when the user asks about current events, recent news, "
        "statistics, or anything requiring up-to-date information beyond your "
        "training data cutoff."
    ),
}


class ToolDeclaration(BaseModel):
    """Static metadata describing a callable tool."""

    name: str
    description: str
    parameters: dict[str, Any]


def get_json_schema(model: Type[BaseModel]) -> dict[str, Any]:
    """Get the parameter JSON Schema for a tool argument model.

    Args:
        model: The Pydantic model class.

    Returns:
        JSON Schema dictionary of object type.
    """
    schema = model.model_json_schema()

    # Backends don't need the model's class name
    schema.pop("title", None)

    return schema


def build_tool_declaration(
    tool_name: str,
    model: Type[BaseModel],
    description: str | None = None,
) -> ToolDeclaration:
    """Build the declaration for one tool.

    Args:
        tool_name: The name of the tool.
        model: The Pydantic model for tool arguments.
        description: Optional description override.

    Returns:
        The tool declaration.
    """
    return ToolDeclaration(
        name=tool_name,
        description=description or TOOL_DESCRIPTIONS.get(tool_name, ""),
        parameters=get_json_schema(model),
    )


def validate_tool_declaration(declaration: ToolDeclaration) -> bool:
    """Check that a declaration can be advertised to the backend.

    Args:
        declaration: The tool declaration to validate.

    Returns:
        True if valid, False otherwise.
    """
    if not declaration.name or not declaration.description:
        return False

    params = declaration.parameters
    if params.get("type") != "object":
        return False

    required = params.get("required", [])
    properties = params.get("properties", {})
    return all(name in properties for name in required)
