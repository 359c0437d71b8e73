from __future__ import annotations

"""Tool definition and invocation data models.

A tool is the concrete execution unit the model may invoke. Plugins contribute
tools to the per-round snapshot; the completion engine resolves a model's tool
call by id, validates the arguments against ``input_schema`` and calls
``invoke`` with a ``ToolInput``.

Tools should:

- declare their arguments as a pydantic model so the engine can publish a JSON
  schema to the model and validate what comes back,
- raise on failure (the engine feeds the error back to the model),
- ask for confirmation either declaratively through ``require_approval`` or by
  raising ``ApprovalRequiredError`` from ``invoke``. In both cases an approved
  re-run receives ``ToolInput.approved=True``.
"""

import inspect
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, Type, Union

from pydantic import BaseModel
from pydantic_ai.tools import ToolDefinition

if TYPE_CHECKING:
    from ..services import Services
    from ..state import State


@dataclass(frozen=True)
class ApprovalCheck:
    """Outcome of a tool's confirmation check."""

    required: bool
    reason: str = ""


@dataclass(frozen=True)
class ToolInput:
    """Invocation context passed to ``Tool.invoke``.

    Attributes
    ----------
    input:
        The validated argument model instance.
    user_id:
        The user owning the prompt.
    state:
        The prompt's plugin state bag; tools may mutate their plugin's slice.
    services:
        The service locator.
    approved:
        True when a human approved this exact call; tools skip their own
        confirmation checks when set.
    """

    input: Any
    user_id: str
    state: "State"
    services: "Services"
    approved: bool = False


ApprovalHook = Callable[[ToolInput], Union[ApprovalCheck, Awaitable[ApprovalCheck]]]


@dataclass(frozen=True)
class Tool:
    """A callable capability the model may invoke."""

    id: str
    description: str
    input_schema: Type[BaseModel]
    invoke: Callable[[ToolInput], Awaitable[Any]]
    output_schema: Optional[Type[BaseModel]] = None
    require_approval: Union[ApprovalCheck, ApprovalHook, None] = None

    def definition(self) -> ToolDefinition:
        """Build the provider-facing tool definition."""
        return ToolDefinition(
            name=self.id,
            description=self.description,
            parameters_json_schema=self.input_schema.model_json_schema(),
        )

    def parse_input(self, arguments: Any) -> BaseModel:
        """
        Validate raw arguments against ``input_schema``.

        Raises:
            pydantic.ValidationError: If the arguments do not match the schema.
        """
        return self.input_schema.model_validate(arguments if arguments is not None else {})

    def serialize_output(self, value: Any) -> Any:
        """
        Convert an ``invoke`` result into its stored JSON form.

        Raises:
            pydantic.ValidationError: If ``output_schema`` is set and ``value`` does not match it.
        """
        if self.output_schema is not None:
            return self.output_schema.model_validate(value).model_dump(mode="json")
        if isinstance(value, BaseModel):
            return value.model_dump(mode="json")
        return value

    async def check_approval(self, tool_input: ToolInput) -> Optional[ApprovalCheck]:
        """Evaluate ``require_approval`` for one call; None when the tool declares no check."""
        check = self.require_approval
        if check is None:
            return None
        if isinstance(check, ApprovalCheck):
            return check
        result = check(tool_input)
        if inspect.isawaitable(result):
            result = await result
        return result

    def with_approval(self, check: Union[ApprovalCheck, ApprovalHook, None]) -> "Tool":
        """Return a copy of this tool with a different confirmation check."""
        return replace(self, require_approval=check)
