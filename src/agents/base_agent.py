from __future__ import annotations

from abc import ABC, abstractmethod

from src.core.schemas import AgentRequest, AgentResponse, ErrorEnvelope


class BaseAgent(ABC):
    """Agents turn an AgentRequest into an AgentResponse; failures come back as an error envelope."""

    name: str

    @abstractmethod
    def run(self, req: AgentRequest) -> AgentResponse:
        raise NotImplementedError

    def failed(self, code: str, exc: Exception, answer_md: str, *, retriable: bool = False) -> AgentResponse:
        return AgentResponse(
            agent_name=self.name,
            answer_md=answer_md,
            data={},
            warnings=[code],
            confidence="low",
            error=ErrorEnvelope(code=code, message=str(exc), retriable=retriable).model_dump(),
        )
