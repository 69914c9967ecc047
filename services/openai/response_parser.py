"""Helpers to parse Responses API outputs."""

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from models.action_models import ACTION_ADAPTER, Action
from services.openai.action_schema import TOOL_ACTION_TYPES

LOGGER = logging.getLogger(__name__)


def extract_function_calls(response: Any) -> List[Tuple[str, str]]:
    """Return (name, raw_arguments) for every function_call output item, in order."""
    calls = []
    for item in getattr(response, "output", None) or []:
        if getattr(item, "type", None) == "function_call":
            calls.append((getattr(item, "name", "") or "", getattr(item, "arguments", "") or ""))
    return calls


def extract_text(response: Any) -> str:
    """Return the assistant's plain-text reply, or an empty string."""
    text = getattr(response, "output_text", None)
    if isinstance(text, str) and text.strip():
        return text.strip()
    for item in getattr(response, "output", None) or []:
        if getattr(item, "type", None) != "message":
            continue
        for content in getattr(item, "content", None) or []:
            if getattr(content, "type", None) == "output_text":
                return (getattr(content, "text", "") or "").strip()
    return ""


def parse_action(tool_name: str, raw_arguments: str) -> Optional[Action]:
    """Validate one tool call into an Action, or return None if it is unusable."""
    action_type = TOOL_ACTION_TYPES.get(tool_name)
    if action_type is None:
        LOGGER.warning("Dropping call to unknown tool %r", tool_name)
        return None
    try:
        arguments = json.loads(raw_arguments or "{}")
    except json.JSONDecodeError:
        LOGGER.warning("Dropping %s call with malformed arguments", tool_name)
        return None
    if not isinstance(arguments, dict):
        LOGGER.warning("Dropping %s call whose arguments are not an object", tool_name)
        return None
    try:
        return ACTION_ADAPTER.validate_python({**arguments, "type": action_type})
    except ValidationError as exc:
        LOGGER.warning("Dropping invalid %s call: %s", tool_name, exc.errors(include_url=False))
        return None


def extract_usage(response: Any) -> Dict[str, Optional[int]]:
    """Return token usage information from the response, if present."""
    usage = getattr(response, "usage", None)
    return {
        "input_tokens": getattr(usage, "input_tokens", None) if usage else None,
        "output_tokens": getattr(usage, "output_tokens", None) if usage else None,
    }
