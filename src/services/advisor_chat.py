"""Chat sessions against the advisor.

A session starts by snapshotting the user's finances into the context cache;
every turn then runs the load_context -> advisor graph on that snapshot and
appends the exchange to the session history. Both stores expire on their own.
"""

from __future__ import annotations

from typing import Any, Iterator, Optional, Union
from uuid import uuid4

from src.agents.advisor_agent import AdvisorAgent
from src.core.config import SETTINGS
from src.core.llm_client import LLMClient
from src.core.schemas import AgentResponse, ChatMessage, FinancialContext
from src.db.repository import FinanceRepository
from src.services.context_builder import build_financial_context
from src.utils.cache import ChatSessionCache, ContextCache
from src.utils.logging import get_logger, set_log_context
from src.workflow.graph import build_graph, to_agent_request

logger = get_logger("advisor_chat")


class ContextNotFound(Exception):
    """Unknown, expired, or foreign context id."""


class AdvisorChatService:
    def __init__(
        self,
        repository: FinanceRepository,
        *,
        llm: Optional[LLMClient] = None,
        contexts: Optional[ContextCache] = None,
        sessions: Optional[ChatSessionCache] = None,
    ) -> None:
        self.repository = repository
        self.contexts = contexts or ContextCache(ttl_seconds=SETTINGS.cache_ttl_seconds)
        self.sessions = sessions or ChatSessionCache(ttl_seconds=SETTINGS.cache_ttl_seconds)
        self._agent = AdvisorAgent(repository, llm=llm)
        self._graph = build_graph(repository, llm=llm)

    def create_context(self, user_id: str, data: Union[FinancialContext, dict, None] = None) -> str:
        """Snapshot the user's finances (or the supplied data) and return its context id."""
        if data is None:
            context = build_financial_context(user_id, self.repository)
        elif isinstance(data, FinancialContext):
            context = data
        else:
            context = FinancialContext.model_validate(data)

        context_id = self.contexts.store(user_id, context)
        set_log_context(request_id=str(uuid4()), user_id=user_id, context_id=context_id)
        logger.info("chat_context_created")
        return context_id

    def _context(self, context_id: str, user_id: str) -> FinancialContext:
        stored = self.contexts.get(context_id)
        if stored is None or stored.user_id != user_id:
            raise ContextNotFound(context_id)
        return stored.data

    def _state(self, context_id: str, user_id: str, message: str, statement_id: Optional[str]) -> dict:
        history = self.sessions.history(context_id)
        return {
            "request_id": str(uuid4()),
            "session_id": context_id,
            "turn_id": len(history) // 2,
            "user_id": user_id,
            "user_text": message,
            "statement_id": statement_id,
            "messages": history,
            "financial_context": self._context(context_id, user_id),
        }

    def send(self, context_id: str, user_id: str, message: str, *, statement_id: Optional[str] = None) -> AgentResponse:
        state = self._state(context_id, user_id, message, statement_id)
        set_log_context(request_id=state["request_id"], user_id=user_id, context_id=context_id)

        out: Any = self._graph.invoke(state)
        resp: AgentResponse = out["final"]

        if not resp.error:
            self.sessions.append(
                context_id,
                ChatMessage(role="user", content=message),
                ChatMessage(role="assistant", content=resp.answer_md),
            )
        logger.info(f"chat_turn agent={resp.agent_name} turn={state['turn_id']} ok={not resp.error}")
        return resp

    def stream(self, context_id: str, user_id: str, message: str, *, statement_id: Optional[str] = None) -> Iterator[str]:
        """Yield reply chunks; the full reply is recorded once the stream is exhausted."""
        state = self._state(context_id, user_id, message, statement_id)
        set_log_context(request_id=state["request_id"], user_id=user_id, context_id=context_id)

        parts = []
        for chunk in self._agent.stream(to_agent_request(state)):
            parts.append(chunk)
            yield chunk

        self.sessions.append(
            context_id,
            ChatMessage(role="user", content=message),
            ChatMessage(role="assistant", content="".join(parts)),
        )
        logger.info(f"chat_stream_done turn={state['turn_id']} chunks={len(parts)}")

    def end_session(self, context_id: str) -> None:
        self.contexts.clear(context_id)
        self.sessions.clear(context_id)
        logger.info(f"chat_session_ended context_id={context_id}")
