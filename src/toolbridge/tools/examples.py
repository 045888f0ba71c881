"""
Example tools demonstrating parameter descriptions, dropdown providers and the json escape hatch.
"""
import json as jsonlib
from typing import Annotated

from toolbridge.services.registry import Dropdown, tool

COLORS = ["red", "green", "blue", "black", "white"]


@tool(description="Echo description", returns="The echoed arguments")
def echo(
    stringArg: Annotated[str, "stringArg description"],
    intArg: Annotated[int, "intArg description"],
) -> str:
    return f"echo:{stringArg},{intArg}"


@tool(description="Adds a list of numbers")
def add_numbers(values: Annotated[list[float], "Numbers to add"]) -> float:
    return sum(values)


@tool(
    description="Pretty-prints a JSON document",
    returns="The document re-indented with sorted keys",
)
def format_json(
    json: Annotated[str, "JSON text, or a JSON object/array passed as-is"],
    indent: Annotated[int, "Spaces per indentation level"] = 2,
) -> str:
    return jsonlib.dumps(jsonlib.loads(json), indent=indent, sort_keys=True)


def color_options() -> list[str]:
    return list(COLORS)


@tool(description="Picks a color by name")
def pick_color(
    color: Annotated[str, "Color name", Dropdown(color_options)],
    uppercase: Annotated[bool, "Return the name in upper case"] = False,
) -> str:
    if color.lower() not in COLORS:
        raise ValueError(f"Unknown color '{color}'")
    return color.upper() if uppercase else color.lower()
