from src.core.schemas import ChatMessage
from src.utils.cache import ChatSessionCache, ContextCache, TTLCache


class Clock:
    def __init__(self, t=1000.0):
        self.t = t

    def __call__(self):
        return self.t


def _cache(clock, **kw):
    c = TTLCache(**kw)
    c._now = clock
    return c


def test_ttl_cache_expires_entries():
    clock = Clock()
    c = _cache(clock, default_ttl_seconds=60)
    c.set("a", 1)
    assert c.get("a") == 1
    assert "a" in c

    clock.t += 61
    assert c.get("a") is None
    assert "a" not in c


def test_purge_expired():
    clock = Clock()
    c = _cache(clock, default_ttl_seconds=10)
    c.set("a", 1)
    c.set("b", 2, ttl_seconds=100)
    clock.t += 11
    assert c.purge_expired() == 1
    assert len(c) == 1
    assert c.get("b") == 2


def test_eviction_when_full():
    clock = Clock()
    c = _cache(clock, default_ttl_seconds=10, max_items=10)
    for i in range(10):
        c.set(str(i), i, ttl_seconds=10 + i)
    c.set("new", 99)
    assert len(c) == 10
    # the entry closest to expiry went first
    assert c.get("0") is None
    assert c.get("new") == 99


def test_context_cache_store_get_clear():
    contexts = ContextCache(ttl_seconds=60)
    cid = contexts.store("u1", {"summary": {}})
    other = contexts.store("u1", {"summary": {}})
    assert cid != other

    stored = contexts.get(cid)
    assert stored.user_id == "u1"
    assert stored.data == {"summary": {}}

    contexts.clear(cid)
    assert contexts.get(cid) is None
    assert contexts.get(other) is not None


def test_context_cache_expiry():
    clock = Clock()
    contexts = ContextCache(cache=_cache(clock, default_ttl_seconds=3600))
    cid = contexts.store("u1", {})
    clock.t += 3601
    assert contexts.get(cid) is None


def test_chat_session_history_accumulates():
    sessions = ChatSessionCache(ttl_seconds=60)
    assert sessions.history("c1") == []

    sessions.append("c1", ChatMessage(role="user", content="hi"), ChatMessage(role="assistant", content="hello"))
    sessions.append("c1", ChatMessage(role="user", content="again"))

    assert [m.content for m in sessions.history("c1")] == ["hi", "hello", "again"]
    assert sessions.history("c2") == []

    sessions.clear("c1")
    assert sessions.history("c1") == []


def test_history_is_a_copy():
    sessions = ChatSessionCache(ttl_seconds=60)
    sessions.append("c1", ChatMessage(role="user", content="hi"))
    h = sessions.history("c1")
    h.append(ChatMessage(role="user", content="sneaky"))
    assert len(sessions.history("c1")) == 1


def test_store_sweeps_abandoned_contexts():
    clock = Clock()
    raw = _cache(clock, default_ttl_seconds=3600)
    contexts = ContextCache(cache=raw)
    contexts.store("u1", {})
    contexts.store("u2", {})

    clock.t += 3601
    contexts.store("u3", {})
    assert len(raw) == 1
