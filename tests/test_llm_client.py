from types import SimpleNamespace

from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from src.core import llm_client as llm_mod
from src.core.schemas import ChatMessage


class FakeChatModel:
    def __init__(self):
        self.seen = None

    def invoke(self, messages):
        self.seen = messages
        return SimpleNamespace(content=[{"type": "text", "text": " Hello "}, {"type": "text", "text": "there "}])

    def stream(self, messages):
        self.seen = messages
        for piece in ("a", "", "b"):
            yield SimpleNamespace(content=piece)


def _client(monkeypatch):
    model = FakeChatModel()
    monkeypatch.setattr(llm_mod, "get_chat_model", lambda **kw: model)
    return llm_mod.LLMClient(), model


def test_role_mapping():
    out = llm_mod.to_lc_messages(
        [
            ChatMessage(role="system", content="s"),
            ChatMessage(role="user", content="u"),
            ChatMessage(role="assistant", content="a"),
        ]
    )
    assert [type(m) for m in out] == [SystemMessage, HumanMessage, AIMessage]


def test_chat_joins_content_blocks(monkeypatch):
    client, model = _client(monkeypatch)
    resp = client.chat([ChatMessage(role="user", content="hi")])
    assert resp.text == "Hello there"
    assert isinstance(model.seen[0], HumanMessage)


def test_stream_skips_empty_chunks(monkeypatch):
    client, _ = _client(monkeypatch)
    assert list(client.stream([ChatMessage(role="user", content="hi")])) == ["a", "b"]


def test_history_items_from_client():
    assert ChatMessage.from_history_item({"sender": "user", "text": "q"}).role == "user"
    assert ChatMessage.from_history_item({"sender": "ai", "text": "a"}).role == "assistant"
    assert ChatMessage.from_history_item({"role": "assistant", "content": "x"}).content == "x"
