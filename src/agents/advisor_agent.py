"""Advisor agent: answers questions with the user's full financial picture in the prompt.

The conversation is primed the same way every turn: the system prompt goes in
as a user turn (JSON snapshot + statements), followed by a short assistant
acknowledgement, then the running history and the new message.

Note: no arithmetic happens here. Numbers come from the context builder.
"""

from __future__ import annotations

import json
from typing import Iterator, List, Optional

from src.agents.base_agent import BaseAgent
from src.core.llm_client import LLMClient
from src.core.schemas import (
    AgentRequest,
    AgentResponse,
    ChatMessage,
    FinancialContext,
    StatementRecord,
    StatementStatus,
)
from src.db.repository import FinanceRepository
from src.services.context_builder import build_financial_context, format_financial_context_for_chat
from src.utils.logging import get_logger

logger = get_logger("advisor_agent")

ACKNOWLEDGEMENT = "Understood. I have the user's financial context. How can I help?"


class StatementNotReady(Exception):
    """The statement under review is missing, someone else's, or not COMPLETED yet."""


def build_system_prompt(context_json: str) -> str:
    return (
        "You are PocketFA, a comprehensive financial advisor with access to the user's complete financial profile.\n\n"
        "Here is the user's complete financial data:\n\n"
        f"```json\n{context_json}\n```\n\n"
        "This data includes:\n"
        "- User profile (age, retirement plans, risk tolerance)\n"
        "- Complete asset portfolio with balances and contribution details\n"
        "- All debts/liabilities with payment schedules\n"
        "- Financial goals with progress tracking\n"
        "- Monthly expense breakdown and spending patterns\n"
        "- Insurance coverage\n"
        "- 30-year financial projections\n"
        "- Current asset allocation\n\n"
        "Use this data to provide personalized, actionable financial advice. When answering questions:\n"
        "- Reference specific numbers from their actual financial data\n"
        "- Provide context-aware recommendations based on their goals, risk tolerance, and current situation\n"
        "- Suggest concrete action items when appropriate\n"
        "- Be encouraging but realistic about their financial progress\n"
    )


def reviewed_statement_section(statement: StatementRecord) -> str:
    return (
        f"\n\nThe user is currently reviewing a specific document from {statement.brokerage_company}. "
        "Here is the data extracted from it:\n\n"
        f"{json.dumps(statement.parsed_data, indent=2)}\n\n"
        "Focus on answering questions about this specific document while keeping their overall financial picture in mind."
    )


def uploaded_statements_section(statements: List[StatementRecord]) -> str:
    if not statements:
        return ""
    payload = [
        {"fileName": s.file_name, "brokerageCompany": s.brokerage_company, "parsedData": s.parsed_data}
        for s in statements
    ]
    return (
        f"\n\nThe user has also uploaded {len(statements)} financial statement(s) with detailed portfolio data:\n\n"
        f"```json\n{json.dumps(payload, indent=2)}\n```"
    )


class AdvisorAgent(BaseAgent):
    name = "advisor_agent"

    def __init__(self, repository: FinanceRepository, llm: Optional[LLMClient] = None) -> None:
        self.repository = repository
        self._llm = llm

    @property
    def llm(self) -> LLMClient:
        if self._llm is None:
            self._llm = LLMClient()
        return self._llm

    def _context(self, req: AgentRequest) -> FinancialContext:
        if req.financial_context is not None:
            return req.financial_context
        return build_financial_context(req.user_id, self.repository)

    def _statements_section(self, req: AgentRequest) -> str:
        if req.statement_id:
            st = self.repository.get_statement(req.statement_id, user_id=req.user_id)
            if st is None or st.status != StatementStatus.COMPLETED or not st.parsed_data:
                raise StatementNotReady(req.statement_id)
            return reviewed_statement_section(st)
        return uploaded_statements_section(self.repository.list_completed_statements(req.user_id))

    def build_messages(self, req: AgentRequest) -> List[ChatMessage]:
        """Everything sent to the model for this turn, in order."""
        context_json = format_financial_context_for_chat(self._context(req))
        system_prompt = build_system_prompt(context_json) + self._statements_section(req)

        return [
            ChatMessage(role="user", content=system_prompt),
            ChatMessage(role="assistant", content=ACKNOWLEDGEMENT),
            *req.messages,
            ChatMessage(role="user", content=req.user_text),
        ]

    def run(self, req: AgentRequest) -> AgentResponse:
        messages = self.build_messages(req)
        try:
            reply = self.llm.chat(messages)
        except Exception as e:
            logger.exception(f"advisor_llm_failed user_id={req.user_id}")
            return self.failed("LLM_FAILED", e, "The advisor is unavailable right now. Please try again.", retriable=True)

        answer_md = (reply.text or "").strip()
        warnings: List[str] = []
        if not answer_md:
            answer_md = "I couldn't generate an answer just now. Please try again or rephrase the question."
            warnings.append("EMPTY_REPLY")

        return AgentResponse(
            agent_name=self.name,
            answer_md=answer_md,
            data={"statement_id": req.statement_id} if req.statement_id else {},
            warnings=warnings,
            confidence="high" if not warnings else "low",
        )

    def stream(self, req: AgentRequest) -> Iterator[str]:
        messages = self.build_messages(req)
        yield from self.llm.stream(messages)
