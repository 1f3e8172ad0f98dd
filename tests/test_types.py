import pytest

from claudecode.types import (
    AssistantMessage,
    ClaudeCodeOptions,
    ControlRequest,
    ControlResponse,
    InputMessage,
    MCPServerConfig,
    MCPServerType,
    MessageRole,
    PermissionMode,
    ResultCost,
    ResultMessage,
    ResultMessageData,
    ResultUsage,
    StreamMessage,
    SystemMessage,
    SystemMessageSubtype,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
    UserMessage,
)

RESULT_BODY = {
    "role": "system",
    "subtype": "result",
    "data": {
        "usage": {"inputTokens": 10, "outputTokens": 20, "backgroundTokens": 0},
        "cost": {
            "inputTokenCost": 0.001,
            "outputTokenCost": 0.002,
            "backgroundTokenCost": 0,
            "totalCost": 0.003,
        },
        "sessionId": "test-session",
        "interruptRequested": False,
    },
}

TOOLS_BODY = {
    "role": "assistant",
    "content": [
        {"type": "text", "text": "Let me calculate that"},
        {"type": "tool_use", "id": "calc1", "name": "calculator", "input": {"a": 5, "b": 3}},
        {"type": "tool_result", "tool_use_id": "calc1", "content": "8"},
    ],
}


def test_user_message_round_trip():
    msg = UserMessage(content="Hello, Claude!")
    back = UserMessage.from_dict(msg.to_dict())
    assert back == msg
    assert back.role is MessageRole.USER


def test_user_message_rejects_non_string_content():
    with pytest.raises(ValueError):
        UserMessage.from_dict({"role": "user", "content": [{"type": "text"}]})


def test_assistant_message_parses_all_block_kinds():
    msg = AssistantMessage.from_dict(TOOLS_BODY)
    assert msg.role is MessageRole.ASSISTANT
    assert msg.content == [
        TextBlock(text="Let me calculate that"),
        ToolUseBlock(id="calc1", name="calculator", input={"a": 5, "b": 3}),
        ToolResultBlock(tool_use_id="calc1", content="8"),
    ]


def test_assistant_message_skips_unknown_and_malformed_blocks():
    raw = {
        "role": "assistant",
        "content": [
            {"type": "image"},
            "not a block",
            {"type": "text", "text": 5},
            {"type": "text", "text": "kept"},
        ],
    }
    msg = AssistantMessage.from_dict(raw)
    assert msg.content == [TextBlock(text="kept")]


def test_assistant_message_round_trip():
    original = AssistantMessage.from_dict(TOOLS_BODY)
    assert AssistantMessage.from_dict(original.to_dict()) == original


def test_assistant_message_content_must_be_list():
    with pytest.raises(ValueError):
        AssistantMessage.from_dict({"role": "assistant", "content": "text"})


def test_tool_result_to_dict_omits_false_is_error():
    assert "is_error" not in ToolResultBlock(tool_use_id="calc1", content="8").to_dict()
    assert ToolResultBlock(tool_use_id="calc1", is_error=True).to_dict()["is_error"] is True


def test_result_message_from_dict():
    msg = ResultMessage.from_dict(RESULT_BODY)
    assert msg.data.session_id == "test-session"
    assert msg.data.usage.input_tokens == 10
    assert msg.data.usage.output_tokens == 20
    assert msg.data.cost.total_cost == 0.003
    assert msg.data.interrupt_requested is False
    assert msg.type == "result"
    assert msg.role is MessageRole.SYSTEM


def test_result_message_round_trip():
    msg = ResultMessage(
        data=ResultMessageData(
            usage=ResultUsage(input_tokens=5, output_tokens=3, cache_read_tokens=7),
            cost=ResultCost(total_cost=0.0011, cache_creation_cost=0.5),
            session_id="query-session",
            interrupt_requested=True,
        )
    )
    assert ResultMessage.from_dict(msg.to_dict()) == msg


def test_result_usage_rejects_wrong_type():
    with pytest.raises(ValueError):
        ResultUsage.from_dict({"inputTokens": "ten"})


def test_system_message_known_and_unknown_subtypes():
    known = SystemMessage.from_dict({"role": "system", "subtype": "thinking"})
    assert known.subtype is SystemMessageSubtype.THINKING
    unknown = SystemMessage.from_dict({"role": "system", "subtype": "brand_new"})
    assert unknown.subtype == "brand_new"


def test_system_message_to_dict_omits_missing_data():
    msg = SystemMessage(subtype=SystemMessageSubtype.USAGE)
    assert "data" not in msg.to_dict()
    with_data = SystemMessage(subtype=SystemMessageSubtype.FILE, data={"path": "a.go"})
    assert SystemMessage.from_dict(with_data.to_dict()) == with_data


def test_mcp_stdio_config():
    config = MCPServerConfig.from_dict(
        {
            "type": "stdio",
            "command": "mcp-server-filesystem",
            "args": ["/tmp/workspace"],
            "env": {"READ_ONLY": "false"},
        }
    )
    assert config.type is MCPServerType.STDIO
    assert config.command == "mcp-server-filesystem"
    assert config.args == ["/tmp/workspace"]
    assert config.env == {"READ_ONLY": "false"}
    assert config.url == ""


def test_mcp_http_config():
    config = MCPServerConfig.from_dict(
        {
            "type": "http",
            "url": "https://mcp.example.com",
            "apiKey": "placeholder",
            "headers": {"X-Custom-Header": "value"},
            "command": "ignored",
        }
    )
    assert config.type is MCPServerType.HTTP
    assert config.url == "https://mcp.example.com"
    assert config.api_key == "placeholder"
    assert config.headers == {"X-Custom-Header": "value"}
    assert config.command == ""


def test_mcp_config_rejects_non_object():
    with pytest.raises(ValueError):
        MCPServerConfig.from_dict(["stdio"])


def test_options_defaults_are_independent():
    first = ClaudeCodeOptions()
    second = ClaudeCodeOptions(permission_mode=PermissionMode.ACCEPT_EDITS)
    first.allowed_tools.append("bash")
    assert second.allowed_tools == []
    assert second.permission_mode == "acceptEdits"


def test_input_message_to_dict():
    msg = UserMessage(content="hi")
    plain = InputMessage(message=msg).to_dict()
    assert plain == {"type": "user", "message": msg.to_dict()}
    full = InputMessage(message=msg, parent_tool_use_id="calc1", session_id="test-session").to_dict()
    assert full["parent_tool_use_id"] == "calc1"
    assert full["session_id"] == "test-session"


def test_control_request_to_dict():
    assert ControlRequest(request_id="req_1").to_dict() == {
        "type": "control_request",
        "request_id": "req_1",
        "request": {"subtype": "interrupt"},
    }


def test_control_response_from_dict():
    resp = ControlResponse.from_dict(
        {
            "type": "control_response",
            "request_id": "req_1",
            "response": {"success": False, "error": "nothing running"},
        }
    )
    assert resp.request_id == "req_1"
    assert resp.success is False
    assert resp.error == "nothing running"
    assert resp.type == "control_response"


def test_stream_message_parse_dispatches_by_type():
    assert isinstance(StreamMessage("system", RESULT_BODY).parse(), ResultMessage)
    assert isinstance(StreamMessage("assistant", TOOLS_BODY).parse(), AssistantMessage)
    user = StreamMessage("user", {"role": "user", "content": "hi"}).parse()
    assert user == UserMessage(content="hi")
    assert StreamMessage("mystery", {"x": 1}).parse() is None