from .extra import extra_tool

__all__ = ["extra_tool"]
