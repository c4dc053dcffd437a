# tests/test_llm_client.py

import pytest
import requests

from kg_canvas.llm.client import ChatRequest, LLMClientError, OllamaClient


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        if self._payload is None:
            raise ValueError("no JSON body")
        return self._payload

    def raise_for_status(self):
        if not self.ok:
            raise requests.exceptions.HTTPError(f"{self.status_code}")


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.posts = []
        self.gets = []

    def post(self, url, json=None, timeout=None):
        self.posts.append({"url": url, "json": json, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response

    def get(self, url, timeout=None):
        self.gets.append(url)
        if self.error is not None:
            raise self.error
        return self.response


def test_chat_request_payload_json_mode():
    payload = ChatRequest(
        model="llama3.2:3b",
        system_prompt="sys",
        user_prompt="user",
        temperature=0.2,
        json_mode=True,
    ).to_payload()

    assert payload["model"] == "llama3.2:3b"
    assert payload["messages"] == [
        {"role": "system", "content": "sys"},
        {"role": "user", "content": "user"},
    ]
    assert payload["options"] == {"temperature": 0.2}
    assert payload["stream"] is False
    assert payload["format"] == "json"


def test_chat_posts_to_chat_endpoint_and_returns_content():
    session = FakeSession(FakeResponse(payload={"message": {"role": "assistant", "content": "hello"}}))
    client = OllamaClient(base_url="http://llm:11434/", model="m", session=session)

    assert client.chat("sys", "hi", temperature=0.7) == "hello"

    sent = session.posts[0]
    assert sent["url"] == "http://llm:11434/api/chat"
    assert sent["json"]["model"] == "m"
    assert "format" not in sent["json"]


def test_chat_raises_on_http_error():
    session = FakeSession(FakeResponse(status_code=500, text="boom"))
    client = OllamaClient(base_url="http://llm", session=session)

    with pytest.raises(LLMClientError):
        client.chat("sys", "hi")


def test_chat_raises_on_transport_error():
    session = FakeSession(error=requests.exceptions.ConnectionError("refused"))
    client = OllamaClient(base_url="http://llm", session=session)

    with pytest.raises(LLMClientError):
        client.chat("sys", "hi")


def test_health_helpers_are_lenient():
    down = OllamaClient(
        base_url="http://llm",
        session=FakeSession(error=requests.exceptions.ConnectionError("refused")),
    )
    assert down.check_connection() is False
    assert down.list_models() == []

    up = OllamaClient(
        base_url="http://llm",
        session=FakeSession(FakeResponse(payload={"models": [{"name": "llama3.2:3b"}, {"name": "mistral"}]})),
    )
    assert up.check_connection() is True
    assert up.list_models() == ["llama3.2:3b", "mistral"]
