"""Tool policy.

 - ``ToolPolicy``: allow/block lists and approval requirements by tool id.
 - ``ToolPolicyPlugin``: gating plugin applying a policy to earlier plugins' tools.
 """

from .models import ToolPolicy
from .plugin import ToolPolicyPlugin

__all__ = ["ToolPolicy", "ToolPolicyPlugin"]
