from __future__ import annotations

"""Tool gating plugin.

``ToolPolicyPlugin`` applies a ``ToolPolicy`` to the tools contributed by
plugins registered before it. Register it after the tool providers it should
govern: it only sees what earlier plugins added.
"""

import logging
from typing import Optional

from ..plugins.base import Plugin, PluginPrepareContext
from ..tools.base import ApprovalCheck, Tool
from .models import ToolPolicy

logger = logging.getLogger(__name__)


class ToolPolicyPlugin(Plugin):
    """Prunes disallowed tools and marks policy-listed tools as needing approval."""

    id = "tool-policy"
    name = "Tool policy"
    description = "Applies allow/block lists and approval requirements to tools."

    def __init__(self, policy: Optional[ToolPolicy] = None) -> None:
        self.policy = policy or ToolPolicy()

    def _gate(self, tool: Tool) -> Tool:
        if not self.policy.requires_approval(tool.id):
            return tool
        return tool.with_approval(ApprovalCheck(required=True, reason=self.policy.approval_reason.format(tool=tool.id)))

    async def prepare(self, ctx: PluginPrepareContext) -> None:
        kept = []
        for tool in ctx.tools:
            if not self.policy.allows(tool.id):
                logger.debug(f"Tool '{tool.id}' removed by policy")
                continue
            kept.append(self._gate(tool))
        ctx.tools[:] = kept
