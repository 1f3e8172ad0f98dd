"""Messages, content blocks and options used with the Claude Code command-line tool."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Union


class _StrEnum(str, Enum):
    def __str__(self) -> str:
        return self.value


class PermissionMode(_StrEnum):
    DEFAULT = "default"
    ACCEPT_EDITS = "acceptEdits"
    BYPASS_PERMISSIONS = "bypassPermissions"


class MCPServerType(_StrEnum):
    STDIO = "stdio"
    SSE = "sse"
    HTTP = "http"


class MessageRole(_StrEnum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class SystemMessageSubtype(_StrEnum):
    USAGE = "usage"
    THINKING = "thinking"
    LOOKUP = "lookup"
    CONTROL = "control"
    MODEL_ERROR = "model_error"
    MCP_SERVER_LOG = "mcp_server_log"
    FILE = "file"
    INTERRUPTED = "interrupted"
    USER_PROMPT_SUBMIT_HOOK = "user_prompt_submit_hook"


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _coerce(enum_cls: type[Enum], value: str) -> Any:
    try:
        return enum_cls(value)
    except ValueError:
        return value


def _mapping(raw: Any, what: str) -> Mapping[str, Any]:
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise ValueError(f"{what}: expected a JSON object, got {type(raw).__name__}")
    return raw


def _get(raw: Mapping[str, Any], key: str, kind: type, default: Any) -> Any:
    value = raw.get(key)
    if value is None:
        return default
    if kind is int:
        ok = isinstance(value, int) and not isinstance(value, bool)
    elif kind is float:
        ok = isinstance(value, (int, float)) and not isinstance(value, bool)
        if ok:
            value = float(value)
    else:
        ok = isinstance(value, kind)
    if not ok:
        raise ValueError(f"field {key!r}: expected {kind.__name__}, got {type(value).__name__}")
    return value


def _loose_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _loose_list(value: Any) -> list[str]:
    return [_loose_str(item) for item in value] if isinstance(value, list) else []


def _loose_map(value: Any) -> dict[str, str]:
    if not isinstance(value, Mapping):
        return {}
    return {key: _loose_str(item) for key, item in value.items()}


@dataclass
class MCPServerConfig:
    """How to reach one MCP server."""

    type: MCPServerType | str | None = None
    command: str = ""
    args: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)
    url: str = ""
    api_key: str = ""
    headers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Any) -> MCPServerConfig:
        raw = _mapping(raw, "MCP server config")
        server_type = raw.get("type")
        if not isinstance(server_type, str):
            return cls(
                command=_loose_str(raw.get("command")),
                args=_loose_list(raw.get("args")),
                env=_loose_map(raw.get("env")),
            )
        config = cls(type=_coerce(MCPServerType, server_type))
        if config.type is MCPServerType.STDIO:
            config.command = _loose_str(raw.get("command"))
            config.args = _loose_list(raw.get("args"))
            config.env = _loose_map(raw.get("env"))
        elif config.type in (MCPServerType.SSE, MCPServerType.HTTP):
            config.url = _loose_str(raw.get("url"))
            config.api_key = _loose_str(raw.get("apiKey"))
            config.headers = _loose_map(raw.get("headers"))
        return config


@dataclass
class ClaudeCodeOptions:
    """Settings passed to the command-line tool; empty values are left out."""

    allowed_tools: list[str] = field(default_factory=list)
    max_thinking_tokens: int = 0
    system_prompt: str = ""
    append_system_prompt: str = ""
    mcp_tools: list[str] = field(default_factory=list)
    permission_mode: PermissionMode | str = ""
    continue_conversation: bool = False
    resume: str = ""
    max_turns: int = 0
    disallowed_tools: list[str] = field(default_factory=list)
    model: str = ""
    permission_prompt_tool_name: str = ""
    cwd: str = ""
    api_key_name: str = ""
    base_url: str = ""
    max_tokens: int = 0
    max_background_tokens: int = 0
    max_cost_usd: float = 0.0
    temperature: float = 0.0
    custom_instructions: str = ""
    mode: PermissionMode | str = ""
    assistant_id: str = ""
    only_tools: list[str] = field(default_factory=list)
    mcp_servers: dict[str, MCPServerConfig] = field(default_factory=dict)
    max_file_uploads_bytes: int = 0
    max_image_pixels: int = 0
    session_id: str = ""


@dataclass
class UserMessage:
    content: str = ""
    role: MessageRole | str = MessageRole.USER
    type: ClassVar[str] = "user"

    def to_dict(self) -> dict[str, Any]:
        return {"role": _plain(self.role), "content": self.content}

    @classmethod
    def from_dict(cls, raw: Any) -> UserMessage:
        raw = _mapping(raw, "user message")
        return cls(
            content=_get(raw, "content", str, ""),
            role=_coerce(MessageRole, _get(raw, "role", str, "")),
        )


@dataclass
class TextBlock:
    text: str = ""
    type: ClassVar[str] = "text"

    def to_dict(self) -> dict[str, Any]:
        return {"type": "text", "text": self.text}


@dataclass
class ToolUseBlock:
    id: str = ""
    name: str = ""
    input: dict[str, Any] = field(default_factory=dict)
    type: ClassVar[str] = "tool_use"

    def to_dict(self) -> dict[str, Any]:
        return {"type": "tool_use", "id": self.id, "name": self.name, "input": self.input}


@dataclass
class ToolResultBlock:
    tool_use_id: str = ""
    content: Any = None
    is_error: bool = False
    type: ClassVar[str] = "tool_result"

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"type": "tool_result", "tool_use_id": self.tool_use_id}
        if self.is_error:
            out["is_error"] = True
        out["content"] = self.content
        return out


ContentBlock = Union[TextBlock, ToolUseBlock, ToolResultBlock]


def _block_from_dict(raw: Any) -> ContentBlock | None:
    """Build a content block, or return None for anything unrecognised or malformed."""
    if not isinstance(raw, Mapping):
        return None
    kind = raw.get("type")
    try:
        if kind == "text":
            return TextBlock(text=_get(raw, "text", str, ""))
        if kind == "tool_use":
            return ToolUseBlock(
                id=_get(raw, "id", str, ""),
                name=_get(raw, "name", str, ""),
                input=dict(_get(raw, "input", Mapping, {})),
            )
        if kind == "tool_result":
            return ToolResultBlock(
                tool_use_id=_get(raw, "tool_use_id", str, ""),
                content=raw.get("content"),
                is_error=_get(raw, "is_error", bool, False),
            )
    except ValueError:
        return None
    return None


@dataclass
class AssistantMessage:
    content: list[ContentBlock] = field(default_factory=list)
    role: MessageRole | str = MessageRole.ASSISTANT
    type: ClassVar[str] = "assistant"

    def to_dict(self) -> dict[str, Any]:
        return {
            "role": _plain(self.role),
            "content": [block.to_dict() for block in self.content],
        }

    @classmethod
    def from_dict(cls, raw: Any) -> AssistantMessage:
        raw = _mapping(raw, "assistant message")
        role = _coerce(MessageRole, _get(raw, "role", str, ""))
        blocks = (_block_from_dict(item) for item in _get(raw, "content", list, []))
        return cls(content=[block for block in blocks if block is not None], role=role)


@dataclass
class SystemMessage:
    subtype: SystemMessageSubtype | str = ""
    data: Any = None
    role: MessageRole | str = MessageRole.SYSTEM
    type: ClassVar[str] = "system"

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"role": _plain(self.role), "subtype": _plain(self.subtype)}
        if self.data is not None:
            out["data"] = self.data
        return out

    @classmethod
    def from_dict(cls, raw: Any) -> SystemMessage:
        raw = _mapping(raw, "system message")
        return cls(
            subtype=_coerce(SystemMessageSubtype, _get(raw, "subtype", str, "")),
            data=raw.get("data"),
            role=_coerce(MessageRole, _get(raw, "role", str, "")),
        )


@dataclass
class ResultUsage:
    input_tokens: int = 0
    output_tokens: int = 0
    background_tokens: int = 0
    cache_creation_tokens: int = 0
    cache_read_tokens: int = 0

    @classmethod
    def from_dict(cls, raw: Any) -> ResultUsage:
        raw = _mapping(raw, "usage")
        return cls(
            input_tokens=_get(raw, "inputTokens", int, 0),
            output_tokens=_get(raw, "outputTokens", int, 0),
            background_tokens=_get(raw, "backgroundTokens", int, 0),
            cache_creation_tokens=_get(raw, "cacheCreationTokens", int, 0),
            cache_read_tokens=_get(raw, "cacheReadTokens", int, 0),
        )

    def _to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "inputTokens": self.input_tokens,
            "outputTokens": self.output_tokens,
            "backgroundTokens": self.background_tokens,
        }
        if self.cache_creation_tokens:
            out["cacheCreationTokens"] = self.cache_creation_tokens
        if self.cache_read_tokens:
            out["cacheReadTokens"] = self.cache_read_tokens
        return out


@dataclass
class ResultCost:
    input_token_cost: float = 0.0
    output_token_cost: float = 0.0
    background_token_cost: float = 0.0
    cache_creation_cost: float = 0.0
    cache_read_cost: float = 0.0
    total_cost: float = 0.0

    @classmethod
    def from_dict(cls, raw: Any) -> ResultCost:
        raw = _mapping(raw, "cost")
        return cls(
            input_token_cost=_get(raw, "inputTokenCost", float, 0.0),
            output_token_cost=_get(raw, "outputTokenCost", float, 0.0),
            background_token_cost=_get(raw, "backgroundTokenCost", float, 0.0),
            cache_creation_cost=_get(raw, "cacheCreationCost", float, 0.0),
            cache_read_cost=_get(raw, "cacheReadCost", float, 0.0),
            total_cost=_get(raw, "totalCost", float, 0.0),
        )

    def _to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "inputTokenCost": self.input_token_cost,
            "outputTokenCost": self.output_token_cost,
            "backgroundTokenCost": self.background_token_cost,
        }
        if self.cache_creation_cost:
            out["cacheCreationCost"] = self.cache_creation_cost
        if self.cache_read_cost:
            out["cacheReadCost"] = self.cache_read_cost
        out["totalCost"] = self.total_cost
        return out


@dataclass
class ResultMessageData:
    usage: ResultUsage = field(default_factory=ResultUsage)
    cost: ResultCost = field(default_factory=ResultCost)
    session_id: str = ""
    interrupt_requested: bool = False

    @classmethod
    def from_dict(cls, raw: Any) -> ResultMessageData:
        raw = _mapping(raw, "result data")
        return cls(
            usage=ResultUsage.from_dict(_get(raw, "usage", Mapping, None)),
            cost=ResultCost.from_dict(_get(raw, "cost", Mapping, None)),
            session_id=_get(raw, "sessionId", str, ""),
            interrupt_requested=_get(raw, "interruptRequested", bool, False),
        )

    def _to_dict(self) -> dict[str, Any]:
        return {
            "usage": self.usage._to_dict(),
            "cost": self.cost._to_dict(),
            "sessionId": self.session_id,
            "interruptRequested": self.interrupt_requested,
        }


@dataclass
class ResultMessage:
    """The final message of a session, with token usage and cost."""

    data: ResultMessageData = field(default_factory=ResultMessageData)
    role: ClassVar[MessageRole] = MessageRole.SYSTEM
    type: ClassVar[str] = "result"

    def to_dict(self) -> dict[str, Any]:
        return {"role": "system", "subtype": "result", "data": self.data._to_dict()}

    @classmethod
    def from_dict(cls, raw: Any) -> ResultMessage:
        raw = _mapping(raw, "result message")
        return cls(data=ResultMessageData.from_dict(_get(raw, "data", Mapping, None)))


Message = Union[UserMessage, AssistantMessage, SystemMessage, ResultMessage]


@dataclass
class InputMessage:
    """A line written to the tool's standard input in streaming mode."""

    message: Message
    parent_tool_use_id: str = ""
    session_id: str = ""
    type: str = "user"

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"type": self.type, "message": self.message.to_dict()}
        if self.parent_tool_use_id:
            out["parent_tool_use_id"] = self.parent_tool_use_id
        if self.session_id:
            out["session_id"] = self.session_id
        return out


@dataclass
class ControlRequest:
    request_id: str
    subtype: str = "interrupt"
    type: str = "control_request"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "request_id": self.request_id,
            "request": {"subtype": self.subtype},
        }


@dataclass
class ControlResponse:
    request_id: str = ""
    success: bool = False
    error: str = ""
    type: str = "control_response"

    @classmethod
    def from_dict(cls, raw: Any) -> ControlResponse:
        raw = _mapping(raw, "control response")
        response = _mapping(_get(raw, "response", Mapping, None), "response")
        return cls(
            request_id=_get(raw, "request_id", str, ""),
            success=_get(response, "success", bool, False),
            error=_get(response, "error", str, ""),
            type=_get(raw, "type", str, ""),
        )


@dataclass
class StreamMessage:
    """One line of the tool's output: a type and the decoded message body."""

    type: str = ""
    message: Any = None

    def parse(self) -> Message | None:
        """Build the typed message; unknown types give None."""
        if self.type == "user":
            return UserMessage.from_dict(self.message)
        if self.type == "assistant":
            return AssistantMessage.from_dict(self.message)
        if self.type == "system":
            raw = _mapping(self.message, "system message")
            if _get(raw, "subtype", str, "") == "result":
                return ResultMessage.from_dict(raw)
            return SystemMessage.from_dict(raw)
        return None