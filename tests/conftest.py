from __future__ import annotations

from datetime import date
from typing import Iterator, List, Sequence

import pytest

from src.core.llm_client import LLMResponse
from src.core.schemas import ChatMessage
from src.db.repository import SqlFinanceRepository
from src.db.seed import DEMO_USER_ID, seed_demo_user

TODAY = date(2025, 3, 15)


class FakeLLM:
    """Deterministic stand-in for LLMClient; records what it was sent."""

    def __init__(self, reply: str = "Here is my advice.", chunks: Sequence[str] = ("Here ", "is ", "advice.")) -> None:
        self.reply = reply
        self.chunks = list(chunks)
        self.prompts: List[str] = []
        self.calls: List[List[ChatMessage]] = []

    def generate(self, prompt: str) -> LLMResponse:
        self.prompts.append(prompt)
        return LLMResponse(text=self.reply)

    def chat(self, messages: Sequence[ChatMessage]) -> LLMResponse:
        self.calls.append(list(messages))
        return LLMResponse(text=self.reply)

    def stream(self, messages: Sequence[ChatMessage]) -> Iterator[str]:
        self.calls.append(list(messages))
        yield from self.chunks


@pytest.fixture()
def repo(tmp_path) -> SqlFinanceRepository:
    return SqlFinanceRepository.from_url(f"sqlite:///{tmp_path / 'finance.db'}", create_tables=True)


@pytest.fixture()
def seeded_repo(repo) -> SqlFinanceRepository:
    with repo.session() as s:
        seed_demo_user(s, DEMO_USER_ID, today=TODAY)
    return repo


@pytest.fixture()
def fake_llm() -> FakeLLM:
    return FakeLLM()
