from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, List, Sequence

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from src.core.langchain_factory import get_chat_model
from src.core.schemas import ChatMessage


@dataclass
class LLMResponse:
    text: str


def to_lc_messages(messages: Sequence[ChatMessage]) -> List[BaseMessage]:
    out: List[BaseMessage] = []
    for m in messages:
        if m.role == "system":
            out.append(SystemMessage(content=m.content))
        elif m.role == "assistant":
            out.append(AIMessage(content=m.content))
        else:
            out.append(HumanMessage(content=m.content))
    return out


def _text(msg: Any) -> str:
    content = getattr(msg, "content", None)
    if content is None:
        return str(msg)
    if isinstance(content, list):
        # some providers return content blocks
        return "".join(c.get("text", "") if isinstance(c, dict) else str(c) for c in content)
    return str(content)


class LLMClient:
    """Text in, text out. Agents and the statement parser only talk to this."""

    def __init__(self, *, temperature: float | None = None) -> None:
        self._model: Any = get_chat_model(temperature=temperature)

    def generate(self, prompt: str) -> LLMResponse:
        msg = self._model.invoke(prompt)
        return LLMResponse(text=_text(msg).strip())

    def chat(self, messages: Sequence[ChatMessage]) -> LLMResponse:
        msg = self._model.invoke(to_lc_messages(messages))
        return LLMResponse(text=_text(msg).strip())

    def stream(self, messages: Sequence[ChatMessage]) -> Iterator[str]:
        for chunk in self._model.stream(to_lc_messages(messages)):
            text = _text(chunk)
            if text:
                yield text
