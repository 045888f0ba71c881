from toolbridge import tool


@tool(description="Lives in a private module")
def private_module_tool() -> str:
    return "nope"
