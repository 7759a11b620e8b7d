import json

import pytest

from hal_coder.llm import CompletionResponse, Message, Text, ToolCall, ToolResult


def test_user_and_assistant_constructors():
    assert Message.user("hi") == Message(role="user", content=(Text("hi"),))
    assert Message.assistant_text("ok").content == (Text("ok"),)
    call = ToolCall(id="c1", name="read_file", arguments={"path": "a"})
    assert Message.assistant(call).content == (call,)


def test_tool_result_message_is_a_user_turn_keyed_by_call_id():
    msg = Message.tool_result("c1", "contents")

    assert msg.role == "user"
    assert msg.content == (ToolResult(id="c1", content=(Text("contents"),)),)
    assert msg.content[0].text == "contents"


def test_content_lists_are_frozen_into_tuples():
    msg = Message(role="assistant", content=[Text("a"), Text("b")])

    assert isinstance(msg.content, tuple)
    with pytest.raises(AttributeError):
        msg.role = "user"


def test_invalid_roles_and_content_are_rejected():
    with pytest.raises(ValueError):
        Message(role="system", content=(Text("x"),))
    with pytest.raises(ValueError):
        Message(role="user", content=())
    with pytest.raises(TypeError):
        Message(role="user", content=(ToolCall(id="c", name="n"),))
    with pytest.raises(TypeError):
        Message(role="assistant", content=(ToolResult(id="c", content=(Text("x"),)),))


def test_tool_call_arguments_json():
    call = ToolCall(id="c1", name="echo", arguments={"msg": "hi"})

    assert json.loads(call.arguments_json) == {"msg": "hi"}


def test_completion_response_text_skips_tool_calls():
    response = CompletionResponse(choice=[Text("a"), ToolCall(id="c", name="n"), Text("b")])

    assert response.text == "a\nb"
