"""
Output formatting for message lines and tool-call metadata blobs.
"""

import json
from typing import Any, Dict, Iterator, List, Optional, Tuple

from chatwise_recall.config.constants import ROLE_ASSISTANT, ROLE_USER


def role_prefix(role: str | None) -> str:
    """Display prefix for a message role."""
    if role == ROLE_USER:
        return "Me: "
    if role == ROLE_ASSISTANT:
        return "AI: "
    return f"[{role or ''}] "


def parse_metadata(meta_raw: str | None) -> Optional[Dict[str, Any]]:
    """Parse a message meta blob, returning None when absent or malformed."""
    if not meta_raw or not meta_raw.strip():
        return None
    try:
        meta = json.loads(meta_raw)
    except (json.JSONDecodeError, TypeError, ValueError):
        return None
    return meta if isinstance(meta, dict) else None


def iter_tool_calls(meta: Dict[str, Any]) -> Iterator[Tuple[str, Any]]:
    """Yield (call_key, call_value) pairs from a parsed toolCall section."""
    calls = meta.get("toolCall")
    if isinstance(calls, dict):
        yield from calls.items()
    elif isinstance(calls, list):
        yield from ((str(i), call) for i, call in enumerate(calls))


def _dump(value: Any, indent: int | None = None) -> str:
    return json.dumps(value, indent=indent, ensure_ascii=False, default=str)


def _pretty_arguments(raw_args: Any) -> str:
    if isinstance(raw_args, str):
        try:
            return _dump(json.loads(raw_args), indent=2)
        except (json.JSONDecodeError, ValueError):
            return raw_args
    try:
        return _dump(raw_args, indent=2)
    except (TypeError, ValueError):
        return str(raw_args)


def _format_tool_call(call_key: str, call_value: Any) -> str:
    if isinstance(call_value, dict):
        server = call_value.get("server_name", call_value.get("server", "")) or ""
        tool = call_value.get("tool_name", call_value.get("tool", "")) or ""
        raw_args = call_value.get("arguments", call_value.get("args", ""))
        if raw_args is None:
            raw_args = ""
        out = f"  <Tool Call> {call_key} server={server} tool={tool}\n"
        pretty_args = _pretty_arguments(raw_args)
        if pretty_args and pretty_args != '""':
            out += f"  <Args>\n{pretty_args}\n"
        return out

    try:
        return f"  <Tool Call> {call_key}: {_dump(call_value)}\n"
    except (TypeError, ValueError):
        return f"  <Tool Call> {call_key}: {call_value}\n"


def _format_tool_result(raw_result: Any) -> str:
    parsed: Any = None
    if isinstance(raw_result, str):
        try:
            parsed = json.loads(raw_result)
        except (json.JSONDecodeError, ValueError):
            parsed = None
    elif isinstance(raw_result, (dict, list)):
        parsed = raw_result

    if isinstance(parsed, dict) and isinstance(parsed.get("content"), list):
        text_parts: List[str] = [
            part["text"]
            for part in parsed["content"]
            if isinstance(part, dict)
            and part.get("type") == "text"
            and isinstance(part.get("text"), str)
        ]
        joined = "\n".join(text_parts)
        if joined:
            return f"  <Tool Result>\n{joined}\n"

    if parsed:
        try:
            return f"  <Tool Result (JSON)> {_dump(parsed, indent=2)}\n"
        except (TypeError, ValueError):
            return "  <Tool Result> [Unparseable]\n"

    if isinstance(raw_result, str) and raw_result.strip():
        return f"  <Tool Result (Raw)> {raw_result}\n"

    return ""


def format_tool_sections(meta_raw: str | None) -> str:
    """Render tool calls and tool results of a meta blob.

    Never raises; absent or malformed metadata yields an empty string.
    """
    meta = parse_metadata(meta_raw)
    if meta is None:
        return ""
    if meta.get("toolCall") is None and "toolResult" not in meta:
        return ""

    out = ""
    if meta.get("toolCall"):
        for call_key, call_value in iter_tool_calls(meta):
            out += _format_tool_call(call_key, call_value)

    if "toolResult" in meta and meta["toolResult"] is not None:
        out += _format_tool_result(meta["toolResult"])

    return out
