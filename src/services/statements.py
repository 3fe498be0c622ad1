"""Brokerage statement parsing.

`submit` records the statement as PROCESSING and returns immediately; the LLM
extraction runs on a small thread pool and flips the record to COMPLETED (with
the parsed JSON) or FAILED (with the error message). Callers poll `status`.
There is no retry: a FAILED statement has to be uploaded again.
"""

from __future__ import annotations

import json
import re
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from contextvars import copy_context
from typing import Any, Dict, List, Optional

from src.core.config import SETTINGS
from src.core.llm_client import LLMClient
from src.core.schemas import StatementRecord, StatementStatus
from src.db.repository import FinanceRepository
from src.utils.logging import get_logger

logger = get_logger("statements")

_JSON_FENCE = re.compile(r"```json\s*([\s\S]*?)```", re.S)

EXTRACTION_PROMPT = """
You are an expert financial statement parser for a tool called Pocket Financial Advisor.
Your task is to analyze the statement below and extract its data into a structured JSON format.
It is CRITICAL that you adhere strictly to the following JSON schema for ALL statements, simple or complex.

JSON schema:
{
  "brokerageCompany": "string",
  "statementDate": "YYYY-MM-DD",
  "qualitativeSummary": "string (a brief, one-paragraph summary of the statement's key activities and overall financial picture)",
  "overall_investment_summary": {
    "beginning_value": "number",
    "ending_value": "number",
    "change_in_value": "number",
    "asset_allocation": {
      "asset_class_name": { "value": "number", "percentage": "number" }
    }
  },
  "personal_investment_accounts": [
    {
      "account_name": "string",
      "account_number": "string (masked)",
      "account_holder": "string",
      "total_value": "number",
      "holdings": [
        { "symbol": "string or null", "description": "string", "quantity": "number", "price": "number", "value": "number" }
      ]
    }
  ],
  "retirement_investment_accounts_tax_qualified": [],
  "insurance_accounts": [ { "policy_name": "string", "total_value": "number" } ]
}

Instructions:
1. ALWAYS use this exact structure. If a section or field is not present, return the key with an empty array or null.
2. For every investment account, list all individual positions in the holdings array.
3. Always provide a helpful, concise qualitativeSummary.
4. If the statement is very simple (e.g. a bank statement with no investments), populate the top-level fields and leave the account arrays empty.

Provide ONLY the JSON output.

Statement ({file_name}):
{text}
"""


class StatementParseError(Exception):
    pass


def extract_json(text: str) -> Dict[str, Any]:
    """Parse the model reply; a ```json fence is used when present, else the whole reply."""
    raw = (text or "").strip()
    m = _JSON_FENCE.search(raw)
    payload = m.group(1).strip() if m else raw
    if not payload:
        raise StatementParseError("AI response was empty.")
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        raise StatementParseError(f"AI analysis failed: {e}") from e
    if not isinstance(data, dict):
        raise StatementParseError("AI analysis failed: expected a JSON object")
    return data


class StatementProcessor:
    def __init__(
        self,
        repository: FinanceRepository,
        llm: Optional[LLMClient] = None,
        max_workers: Optional[int] = None,
    ) -> None:
        self.repository = repository
        self._llm = llm
        self._pool = ThreadPoolExecutor(
            max_workers=max_workers or SETTINGS.statement_workers, thread_name_prefix="statement"
        )
        self._lock = threading.Lock()
        self._pending: List[Future] = []

    @property
    def llm(self) -> LLMClient:
        if self._llm is None:
            self._llm = LLMClient()
        return self._llm

    def submit(self, user_id: str, file_name: str, text: str) -> StatementRecord:
        record = self.repository.create_statement(user_id, file_name)
        logger.info(f"statement_submitted id={record.id} user_id={user_id} file={file_name}")

        fut = self._pool.submit(copy_context().run, self._process, record.id, file_name, text)
        with self._lock:
            self._pending = [f for f in self._pending if not f.done()]
            self._pending.append(fut)
        return record

    def _process(self, statement_id: str, file_name: str, text: str) -> None:
        try:
            reply = self.llm.generate(EXTRACTION_PROMPT.replace("{file_name}", file_name).replace("{text}", text))
            parsed = extract_json(reply.text)
            self.repository.update_statement(
                statement_id,
                status=StatementStatus.COMPLETED,
                brokerage_company=parsed.get("brokerageCompany"),
                parsed_data=parsed,
                error=None,
            )
            logger.info(f"statement_completed id={statement_id}")
        except Exception as e:
            logger.exception(f"statement_failed id={statement_id}")
            self.repository.update_statement(statement_id, status=StatementStatus.FAILED, error=str(e))

    def status(self, statement_id: str, user_id: Optional[str] = None) -> Optional[StatementRecord]:
        return self.repository.get_statement(statement_id, user_id=user_id)

    def wait(self, timeout: Optional[float] = None) -> None:
        """Block until every submitted statement has finished (tests, CLI)."""
        with self._lock:
            pending = list(self._pending)
        wait(pending, timeout=timeout)

    def shutdown(self) -> None:
        self._pool.shutdown(wait=True)
