from __future__ import annotations

from typing import Optional

from pydantic import Field

from ..schemas.base import BaseSchema


class ToolPolicy(BaseSchema):
    """
    Configuration for tool allow/deny lists and approval requirements.

    Controls which tools the model is offered and which of them need human
    confirmation. Default behavior is permissive unless lists are configured.
    """

    allowed_tools: Optional[set[str]] = Field(
        default=None,
        description="If set, only tools with these ids are offered to the model.",
    )
    blocked_tools: set[str] = Field(
        default_factory=set,
        description="Tools with these ids are never offered to the model.",
    )
    approval_required_tools: set[str] = Field(
        default_factory=set,
        description="Tools with these ids require human approval before every call.",
    )
    approval_reason: str = Field(
        default="Tool '{tool}' requires approval by policy",
        description="Reason shown in approval requests; '{tool}' is replaced by the tool id.",
    )

    def allows(self, tool_id: str) -> bool:
        """
        Check whether a tool may be offered to the model.

        Args:
            tool_id: The tool id.

        Returns:
            False if the tool is blocked or missing from a configured allow-list.
        """
        if tool_id in self.blocked_tools:
            return False
        if self.allowed_tools is not None and tool_id not in self.allowed_tools:
            return False
        return True

    def requires_approval(self, tool_id: str) -> bool:
        return tool_id in self.approval_required_tools
