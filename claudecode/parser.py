"""Decoding of the JSON lines written by the Claude Code command-line tool."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from .errors import CLIJSONDecodeError, MessageParseError
from .types import (
    AssistantMessage,
    ControlResponse,
    Message,
    ResultMessage,
    StreamMessage,
    SystemMessage,
    UserMessage,
)


def _decode_object(data: bytes | str) -> Mapping[str, Any]:
    text = data.decode("utf-8", errors="replace") if isinstance(data, (bytes, bytearray)) else data
    try:
        value = json.loads(text)
    except ValueError as exc:
        raise CLIJSONDecodeError(text, exc) from exc
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        cause = ValueError(f"expected a JSON object, got {type(value).__name__}")
        raise CLIJSONDecodeError(text, cause) from cause
    return value


def _raw_text(data: bytes | str) -> str:
    return data.decode("utf-8", errors="replace") if isinstance(data, (bytes, bytearray)) else data


def parse_stream_message(data: bytes | str) -> StreamMessage:
    """Decode one output line into its type and message body."""
    value = _decode_object(data)
    msg_type = value.get("type")
    if msg_type is not None and not isinstance(msg_type, str):
        cause = ValueError("field 'type' must be a string")
        raise CLIJSONDecodeError(_raw_text(data), cause) from cause
    return StreamMessage(type=msg_type or "", message=value.get("message"))


def parse_control_response(data: bytes | str) -> ControlResponse:
    """Decode one output line holding a reply to a control request."""
    value = _decode_object(data)
    try:
        return ControlResponse.from_dict(value)
    except ValueError as exc:
        raise CLIJSONDecodeError(_raw_text(data), exc) from exc


def parse_message(msg_type: str, data: Any) -> Message | None:
    """Build a typed message from a decoded body; empty bodies give None."""
    if data is None or (isinstance(data, Mapping) and not data):
        return None
    if msg_type not in ("user", "assistant", "system"):
        cause = ValueError(f"unknown message type: {msg_type}")
        raise MessageParseError(msg_type, data, cause) from cause
    try:
        if msg_type == "user":
            return UserMessage.from_dict(data)
        if msg_type == "assistant":
            return AssistantMessage.from_dict(data)
        if not isinstance(data, Mapping):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")
        subtype = data.get("subtype")
        if subtype is not None and not isinstance(subtype, str):
            raise ValueError("field 'subtype' must be a string")
        if subtype == "result":
            return ResultMessage.from_dict(data)
        return SystemMessage.from_dict(data)
    except ValueError as exc:
        raise MessageParseError(msg_type, data, exc) from exc


def is_control_response(data: bytes | str) -> bool:
    """Tell whether an output line is a reply to a control request."""
    try:
        value = json.loads(data)
    except (ValueError, TypeError):
        return False
    return isinstance(value, Mapping) and value.get("type") == "control_response"