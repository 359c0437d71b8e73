"""Tool contract.

 A *tool* is the execution unit the model can call.

 - Plugins contribute ``Tool`` objects to each round's preparation snapshot.
 - The completion engine resolves a model tool call by ``Tool.id``, validates
   the arguments through ``Tool.input_schema`` and awaits ``Tool.invoke``.
 - Confirmation is requested through ``Tool.require_approval`` or by raising
   ``ApprovalRequiredError`` from ``invoke``.

 This package exports:

 - ``Tool``: the tool definition.
 - ``ToolInput``: invocation context passed to ``invoke``.
 - ``ApprovalCheck``/``ApprovalHook``: declarative confirmation checks.
 """

from .base import ApprovalCheck, ApprovalHook, Tool, ToolInput

__all__ = [
    "ApprovalCheck",
    "ApprovalHook",
    "Tool",
    "ToolInput",
]
