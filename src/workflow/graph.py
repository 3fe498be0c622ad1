from __future__ import annotations

from typing import Any, Dict, Optional
from uuid import uuid4

from langgraph.graph import END, START, StateGraph

from src.agents.advisor_agent import AdvisorAgent
from src.core.llm_client import LLMClient
from src.core.schemas import AgentRequest
from src.db.repository import FinanceRepository
from src.services.context_builder import build_financial_context
from src.utils.logging import get_logger
from src.workflow.state import GraphState

logger = get_logger("workflow")


def _append_trace(state: Dict[str, Any], label: str) -> None:
    trace = state.get("agent_trace") or []
    trace.append(label)
    state["agent_trace"] = trace


def to_agent_request(state: Dict[str, Any]) -> AgentRequest:
    return AgentRequest(
        request_id=state.get("request_id") or str(uuid4()),
        session_id=state.get("session_id", "local"),
        turn_id=state.get("turn_id", 0),
        user_id=state["user_id"],
        user_text=state.get("user_text") or "",
        messages=state.get("messages") or [],
        statement_id=state.get("statement_id"),
        financial_context=state.get("financial_context"),
    )


def build_graph(repository: FinanceRepository, llm: Optional[LLMClient] = None):
    """load_context -> advisor. Repository and statement errors propagate out of invoke()."""
    agent = AdvisorAgent(repository, llm=llm)

    def load_context_node(state: Dict[str, Any]) -> Dict[str, Any]:
        state.setdefault("session_id", "local")
        state.setdefault("turn_id", 0)
        state.setdefault("request_id", str(uuid4()))
        _append_trace(state, "LoadContextNode")

        if state.get("financial_context") is None:
            state["financial_context"] = build_financial_context(state["user_id"], repository)
        return state

    def advisor_node(state: Dict[str, Any]) -> Dict[str, Any]:
        _append_trace(state, "AdvisorNode")
        resp = agent.run(to_agent_request(state))
        state["final"] = resp
        if resp.error:
            logger.warning(f"advisor_failed code={resp.error.get('code')}")
        return state

    g = StateGraph(GraphState)
    g.add_node("load_context", load_context_node)
    g.add_node("advisor", advisor_node)

    g.add_edge(START, "load_context")
    g.add_edge("load_context", "advisor")
    g.add_edge("advisor", END)

    return g.compile()
