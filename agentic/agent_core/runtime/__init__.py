"""Prompt completion runtime.

 - ``CompletionEngine``: runs one prompt's round loop and approval gate.
 - ``CompletionOptions``: engine construction options.
 - ``CompletionEvent``/``EventEmitter``/``EventBus``: event emission.
 - ``build_messages``: prompt to pydantic-ai message conversion.
 """

from .engine import DEFAULT_REJECTION_REASON, CompletionEngine, parse_arguments
from .events import CompletionEvent, EventBus, EventEmitter
from .messages import build_messages, tool_return_content
from .models import CompletionOptions

__all__ = [
    "DEFAULT_REJECTION_REASON",
    "CompletionEngine",
    "CompletionEvent",
    "CompletionOptions",
    "EventBus",
    "EventEmitter",
    "build_messages",
    "parse_arguments",
    "tool_return_content",
]
