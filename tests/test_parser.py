import pytest

from claudecode.errors import CLIJSONDecodeError, MessageParseError
from claudecode.parser import (
    is_control_response,
    parse_control_response,
    parse_message,
    parse_stream_message,
)
from claudecode.types import (
    AssistantMessage,
    ResultMessage,
    SystemMessage,
    SystemMessageSubtype,
    TextBlock,
)

ASSISTANT_LINE = (
    '{"type":"assistant","message":{"role":"assistant","content":'
    '[{"type":"text","text":"Response to query"}]}}'
)
MULTI_LINE = (
    '{"type":"assistant","message":{"role":"assistant","content":'
    '[{"type":"text","text":"First part"},{"type":"text","text":"Second part"}]}}'
)
RESULT_LINE = (
    '{"type":"system","message":{"role":"system","subtype":"result","data":'
    '{"usage":{"inputTokens":5,"outputTokens":3,"backgroundTokens":0},'
    '"cost":{"inputTokenCost":0.0005,"outputTokenCost":0.0006,"backgroundTokenCost":0,'
    '"totalCost":0.0011},"sessionId":"query-session","interruptRequested":false}}}'
)
CONTROL_LINE = '{"type":"control_response","request_id":"req_1","response":{"success":true}}'


def _parse_line(line):
    stream = parse_stream_message(line)
    return parse_message(stream.type, stream.message)


def test_parse_stream_message_reads_type_and_body():
    stream = parse_stream_message(ASSISTANT_LINE)
    assert stream.type == "assistant"
    assert stream.message["content"][0]["text"] == "Response to query"


def test_parse_stream_message_accepts_bytes():
    stream = parse_stream_message(ASSISTANT_LINE.encode())
    assert stream.type == "assistant"


def test_parse_stream_message_invalid_json():
    with pytest.raises(CLIJSONDecodeError) as info:
        parse_stream_message("not json at all")
    assert info.value.raw_data == "not json at all"


def test_parse_stream_message_rejects_non_object():
    with pytest.raises(CLIJSONDecodeError):
        parse_stream_message("[1, 2]")


def test_assistant_line_gives_text_block():
    msg = _parse_line(ASSISTANT_LINE)
    assert isinstance(msg, AssistantMessage)
    assert msg.content == [TextBlock(text="Response to query")]


def test_multi_block_line_keeps_order():
    msg = _parse_line(MULTI_LINE)
    assert [block.text for block in msg.content] == ["First part", "Second part"]


def test_result_line_gives_result_message():
    msg = _parse_line(RESULT_LINE)
    assert isinstance(msg, ResultMessage)
    assert msg.data.usage.input_tokens == 5
    assert msg.data.usage.output_tokens == 3
    assert msg.data.cost.total_cost == 0.0011
    assert msg.data.session_id == "query-session"


def test_other_system_subtype_gives_system_message():
    msg = parse_message("system", {"role": "system", "subtype": "thinking"})
    assert isinstance(msg, SystemMessage)
    assert msg.subtype is SystemMessageSubtype.THINKING


@pytest.mark.parametrize("body", [None, {}])
def test_empty_bodies_are_skipped(body):
    assert parse_message("assistant", body) is None


def test_unknown_type_raises():
    with pytest.raises(MessageParseError) as info:
        parse_message("weird", {"x": 1})
    assert info.value.message_type == "weird"
    assert "unknown message type: weird" in str(info.value)


def test_malformed_user_message_raises():
    body = {"role": "user", "content": [{"type": "tool_result"}]}
    with pytest.raises(MessageParseError) as info:
        parse_message("user", body)
    assert info.value.raw_message == body


def test_system_subtype_must_be_string():
    with pytest.raises(MessageParseError):
        parse_message("system", {"subtype": 3})


def test_is_control_response():
    assert is_control_response(CONTROL_LINE) is True
    assert is_control_response(CONTROL_LINE.encode()) is True
    assert is_control_response(ASSISTANT_LINE) is False
    assert is_control_response("{broken") is False


def test_parse_control_response():
    resp = parse_control_response(CONTROL_LINE)
    assert resp.request_id == "req_1"
    assert resp.success is True
    assert resp.error == ""


def test_parse_control_response_invalid():
    with pytest.raises(CLIJSONDecodeError):
        parse_control_response("{oops")
    with pytest.raises(CLIJSONDecodeError):
        parse_control_response('{"type":"control_response","response":{"success":"yes"}}')