from types import SimpleNamespace

import pytest

from desktop_bot.actions import COMPUTER_ACTION_TOOL
from desktop_bot.conversation import ImagePart, Turn
from desktop_bot.model import EXECUTED_ACK, NOT_EXECUTED_ACK, ChatSession, ModelReply


def tool_call(call_id, arguments, name="computer_action"):
    return SimpleNamespace(id=call_id, function=SimpleNamespace(name=name, arguments=arguments))


def completion(content=None, tool_calls=None):
    message = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class StubClient:
    def __init__(self, responses):
        self.responses = list(responses)
        self.requests = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs):
        # Snapshot: the session keeps appending to the same list
        kwargs["messages"] = [dict(m) for m in kwargs["messages"]]
        self.requests.append(kwargs)
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def session(client, history=None):
    return ChatSession(client, "test-model", "be helpful", tools=[COMPUTER_ACTION_TOOL], history=history)


def test_text_reply():
    client = StubClient([completion("  I see a desktop.  ")])
    r = session(client).send("hello")
    assert r == ModelReply(text="I see a desktop.", action_calls=[])
    req = client.requests[0]
    assert req["model"] == "test-model"
    assert req["tools"] == [COMPUTER_ACTION_TOOL]
    assert req["tool_choice"] == "auto"
    assert req["messages"] == [
        {"role": "system", "content": "be helpful"},
        {"role": "user", "content": "hello"},
    ]


def test_history_and_image_parts():
    history = [Turn.text("user", "hi"), Turn.text("agent", "hello")]
    client = StubClient([completion("ok")])
    session(client, history).send(["look", ImagePart(b"png", "image/png")])
    msgs = client.requests[0]["messages"]
    assert msgs[1] == {"role": "user", "content": "hi"}
    assert msgs[2] == {"role": "assistant", "content": "hello"}
    assert msgs[3]["content"] == [
        {"type": "text", "text": "look"},
        {"type": "image_url", "image_url": {"url": "data:image/png;base64,cG5n"}},
    ]


def test_tool_calls_parsed_and_acknowledged():
    client = StubClient([
        completion(None, [tool_call("c1", '{"action": "left_click", "coordinate": [1, 2]}')]),
        completion("done"),
    ])
    s = session(client)
    r = s.send("go")
    assert r.text == ""
    assert [(c.id, c.name, c.args) for c in r.action_calls] == [
        ("c1", "computer_action", {"action": "left_click", "coordinate": [1, 2]}),
    ]

    s.mark_executed("c1")
    s.send("next")
    msgs = client.requests[1]["messages"]
    assert msgs[2]["role"] == "assistant"
    assert msgs[2]["tool_calls"][0]["id"] == "c1"
    assert msgs[3] == {"role": "tool", "tool_call_id": "c1", "content": "Action completed."}
    assert msgs[4] == {"role": "user", "content": "next"}


def test_calls_not_marked_executed_are_reported_as_skipped():
    client = StubClient([
        completion(None, [tool_call("c1", '{"action": "key", "text": "a"}'), tool_call("c2", '{"action": "key", "text": "b"}')]),
        completion(None, [tool_call("c3", '{"action": "key", "text": "c"}')]),
        completion("done"),
    ])
    s = session(client)
    s.send("go")
    s.mark_executed("c1")
    s.send("feedback")
    s.send("next")

    second = client.requests[1]["messages"]
    assert second[3] == {"role": "tool", "tool_call_id": "c1", "content": EXECUTED_ACK}
    assert second[4] == {"role": "tool", "tool_call_id": "c2", "content": NOT_EXECUTED_ACK}
    third = client.requests[2]["messages"]
    assert third[7] == {"role": "tool", "tool_call_id": "c3", "content": NOT_EXECUTED_ACK}
    assert third[8] == {"role": "user", "content": "next"}


def test_invalid_arguments_become_empty():
    client = StubClient([completion("", [tool_call("c1", "{not json")])])
    r = session(client).send("go")
    assert r.action_calls[0].args == {}


def test_api_errors_propagate():
    client = StubClient([ConnectionError("reset")])
    with pytest.raises(ConnectionError):
        session(client).send("go")


def test_unsupported_part_type():
    client = StubClient([completion("x")])
    with pytest.raises(TypeError):
        session(client).send([object()])
