"""
Responder contract.

Every specialized responder exposes a `name` (used for metrics and logs) and
an async `process()` returning an AgentResult. Responders own their data
retrieval; the dispatcher only depends on this contract.
"""
from typing import Optional, Protocol, Sequence

from worship_assistant.services.ai.schema import AgentResult, ConversationTurn


class Responder(Protocol):
    name: str

    async def process(
        self,
        query: str,
        mentioned_entity: Optional[str] = None,
        history: Sequence[ConversationTurn] = (),
    ) -> AgentResult:
        ...
