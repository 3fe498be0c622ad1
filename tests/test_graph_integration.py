import pytest

from src.db.repository import RepositoryError
from src.db.seed import DEMO_USER_ID
from src.services.advisor_chat import AdvisorChatService, ContextNotFound
from src.services.context_builder import build_financial_context
from src.workflow.graph import build_graph


def test_graph_builds_context_and_answers(seeded_repo, fake_llm):
    graph = build_graph(seeded_repo, llm=fake_llm)
    out = graph.invoke({"user_id": DEMO_USER_ID, "user_text": "How am I doing?"})

    assert out["final"].answer_md == "Here is my advice."
    assert out["agent_trace"] == ["LoadContextNode", "AdvisorNode"]
    assert out["financial_context"].summary.net_worth == 264500


def test_graph_uses_supplied_context(seeded_repo, fake_llm, monkeypatch):
    ctx = build_financial_context(DEMO_USER_ID, seeded_repo)
    graph = build_graph(seeded_repo, llm=fake_llm)

    from src.workflow import graph as graph_mod

    def no_rebuild(*a, **kw):
        raise AssertionError("context should come from state")

    monkeypatch.setattr(graph_mod, "build_financial_context", no_rebuild)
    out = graph.invoke({"user_id": DEMO_USER_ID, "user_text": "hi", "financial_context": ctx})
    assert out["final"].error is None


def test_chat_service_keeps_history(seeded_repo, fake_llm):
    svc = AdvisorChatService(seeded_repo, llm=fake_llm)
    cid = svc.create_context(DEMO_USER_ID)

    svc.send(cid, DEMO_USER_ID, "first question")
    svc.send(cid, DEMO_USER_ID, "second question")

    history = svc.sessions.history(cid)
    assert [m.role for m in history] == ["user", "assistant", "user", "assistant"]

    # second call: primer pair + two prior turns + new message
    second = fake_llm.calls[1]
    assert [m.content for m in second[2:]] == ["first question", "Here is my advice.", "second question"]


def test_chat_service_stream_records_reply(seeded_repo, fake_llm):
    svc = AdvisorChatService(seeded_repo, llm=fake_llm)
    cid = svc.create_context(DEMO_USER_ID)

    assert "".join(svc.stream(cid, DEMO_USER_ID, "hi")) == "Here is advice."
    last = svc.sessions.history(cid)[-1]
    assert (last.role, last.content) == ("assistant", "Here is advice.")


def test_failed_turn_not_recorded(seeded_repo, fake_llm, monkeypatch):
    svc = AdvisorChatService(seeded_repo, llm=fake_llm)
    cid = svc.create_context(DEMO_USER_ID)

    def boom(messages):
        raise RuntimeError("upstream 503")

    monkeypatch.setattr(fake_llm, "chat", boom)
    resp = svc.send(cid, DEMO_USER_ID, "hi")

    assert resp.error["code"] == "LLM_FAILED"
    assert svc.sessions.history(cid) == []


def test_unknown_or_foreign_context(seeded_repo, fake_llm):
    svc = AdvisorChatService(seeded_repo, llm=fake_llm)
    cid = svc.create_context(DEMO_USER_ID)

    with pytest.raises(ContextNotFound):
        svc.send("missing", DEMO_USER_ID, "hi")
    with pytest.raises(ContextNotFound):
        svc.send(cid, "intruder", "hi")


def test_end_session_clears_everything(seeded_repo, fake_llm):
    svc = AdvisorChatService(seeded_repo, llm=fake_llm)
    cid = svc.create_context(DEMO_USER_ID)
    svc.send(cid, DEMO_USER_ID, "hi")

    svc.end_session(cid)

    assert svc.contexts.get(cid) is None
    assert svc.sessions.history(cid) == []
    with pytest.raises(ContextNotFound):
        svc.send(cid, DEMO_USER_ID, "hi")


def test_create_context_accepts_client_payload(seeded_repo, fake_llm):
    svc = AdvisorChatService(seeded_repo, llm=fake_llm)
    payload = build_financial_context(DEMO_USER_ID, seeded_repo).model_dump(by_alias=True)

    cid = svc.create_context(DEMO_USER_ID, payload)
    assert svc.contexts.get(cid).data.summary.net_worth == 264500


def test_repository_errors_surface_from_graph(seeded_repo, fake_llm, monkeypatch):
    def broken(self, user_id):
        raise RepositoryError("get_profile failed")

    monkeypatch.setattr(type(seeded_repo), "get_profile", broken)
    graph = build_graph(seeded_repo, llm=fake_llm)
    with pytest.raises(RepositoryError):
        graph.invoke({"user_id": DEMO_USER_ID, "user_text": "hi"})
