from __future__ import annotations

from typing import List, Optional, TypedDict

from src.core.schemas import AgentResponse, ChatMessage, ErrorEnvelope, FinancialContext


class GraphState(TypedDict, total=False):
    """LangGraph state shape for one advisor turn (dict-based)."""
    request_id: str
    session_id: str
    turn_id: int

    user_id: str
    user_text: str
    statement_id: Optional[str]

    # prior turns, oldest first
    messages: List[ChatMessage]

    # cached snapshot; load_context builds one when absent
    financial_context: FinancialContext

    agent_trace: List[str]

    final: AgentResponse
    error: ErrorEnvelope
