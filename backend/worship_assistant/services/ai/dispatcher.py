"""
Agent dispatcher.

Maps a ClassifiedQuery to its responder(s):

- Non-hybrid types: exactly one responder, result returned unchanged.
  The theological responder receives the command-stripped query, the others
  the raw query.
- Hybrid: responders for every requires_* flag, in the fixed order
  theology → music → schedule → user. When theology runs, the music leg is
  skipped (the theological analysis already carries the song context).
  Responses are joined by a blank line, attachments merged by key, usage
  summed. The combined result fails only if every invoked leg failed.

A responder that raises is isolated: it becomes a failed AgentResult and the
remaining hybrid legs still run.
"""
import time
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from worship_assistant.core.logging import get_logger
from worship_assistant.core.metrics import record_agent_invocation
from worship_assistant.services.ai.agents.base import Responder
from worship_assistant.services.ai.schema import (
    AgentResult,
    Attachment,
    ClassifiedQuery,
    ConversationTurn,
    QueryType,
    Usage,
    merge_attachments,
)

logger = get_logger(__name__)

RESPONDER_FAILURE_MESSAGE = (
    "⚠️ Não consegui concluir esta parte da consulta agora. Tente novamente em instantes."
)
HYBRID_EMPTY_MESSAGE = "Não consegui processar esta consulta híbrida."

AGENT_LABELS: Dict[QueryType, str] = {
    QueryType.THEOLOGICAL: "Agente Teológico",
    QueryType.MUSIC_SEARCH: "Agente de Músicas",
    QueryType.SCHEDULE: "Agente de Escalas",
    QueryType.USER_INFO: "Agente de Usuários",
    QueryType.HISTORY: "Agente de História",
    QueryType.HYBRID: "Agente Híbrido",
    QueryType.GENERAL: "Agente Geral",
}


def agent_label(query_type: QueryType) -> str:
    """Name of the agent reported as agent_used."""
    return AGENT_LABELS[query_type]


def unavailable_message(query_type: QueryType) -> str:
    return (
        f"⚠️ O {agent_label(query_type)} não está disponível no momento. "
        "Tente novamente mais tarde."
    )


def _sum_usage(results: Sequence[AgentResult]) -> Optional[Usage]:
    usages = [result.usage for result in results if result.usage is not None]
    if not usages:
        return None
    total = Usage()
    for usage in usages:
        total = total + usage
    return total


class AgentDispatcher:
    """Routes classified queries to the registered responders."""

    def __init__(self, responders: Mapping[QueryType, Responder]):
        if QueryType.HYBRID in responders:
            raise ValueError("HYBRID is composed by the dispatcher and cannot be registered")
        self.responders: Dict[QueryType, Responder] = dict(responders)

    @property
    def registered(self) -> List[QueryType]:
        return list(self.responders)

    async def _invoke(
        self,
        query_type: QueryType,
        query: str,
        mentioned_entity: Optional[str],
        history: Sequence[ConversationTurn],
    ) -> AgentResult:
        responder = self.responders.get(query_type)
        if responder is None:
            record_agent_invocation(query_type.value, "unavailable")
            logger.warning("responder_unavailable", query_type=query_type.value)
            return AgentResult(success=False, response=unavailable_message(query_type))

        start = time.time()
        try:
            result = await responder.process(query, mentioned_entity, history)
        except Exception as exc:
            record_agent_invocation(responder.name, "error")
            logger.error(
                "responder_failed",
                agent=responder.name,
                error=str(exc),
                error_type=type(exc).__name__,
                exc_info=True,
            )
            return AgentResult(success=False, response=RESPONDER_FAILURE_MESSAGE)

        outcome = "success" if result.success else "failure"
        record_agent_invocation(responder.name, outcome)
        logger.info(
            "responder_completed",
            agent=responder.name,
            success=result.success,
            duration_ms=round((time.time() - start) * 1000.0, 1),
        )
        return result

    @staticmethod
    def hybrid_legs(query: ClassifiedQuery) -> List[QueryType]:
        """Responders a hybrid query runs, in invocation order."""
        legs: List[Tuple[bool, QueryType]] = [
            (query.requires_theology, QueryType.THEOLOGICAL),
            (query.requires_music and not query.requires_theology, QueryType.MUSIC_SEARCH),
            (query.requires_schedule, QueryType.SCHEDULE),
            (query.requires_user, QueryType.USER_INFO),
        ]
        return [query_type for required, query_type in legs if required]

    async def dispatch(
        self,
        query: ClassifiedQuery,
        raw_query: str,
        history: Sequence[ConversationTurn] = (),
    ) -> AgentResult:
        """
        Run the responder(s) for a classified query.

        Args:
            query: Classification of raw_query
            raw_query: Query exactly as the user sent it
            history: Conversation history (responders trim it themselves)

        Returns:
            AgentResult; responder exceptions never propagate.
        """
        if query.type != QueryType.HYBRID:
            text = self._query_for(query.type, query, raw_query)
            return await self._invoke(query.type, text, query.mentioned_entity, history)

        legs = self.hybrid_legs(query)
        logger.info("hybrid_dispatch", legs=[leg.value for leg in legs])

        results: List[AgentResult] = []
        attachments: Dict[str, Attachment] = {}
        for leg in legs:
            text = self._query_for(leg, query, raw_query)
            result = await self._invoke(leg, text, query.mentioned_entity, history)
            results.append(result)
            attachments = merge_attachments(attachments, result.attachments)

        responses = [result.response.strip() for result in results if result.response.strip()]
        models = [result.model for result in results if result.model]
        return AgentResult(
            success=any(result.success for result in results),
            response="\n\n".join(responses) or HYBRID_EMPTY_MESSAGE,
            attachments=attachments,
            usage=_sum_usage(results),
            model=models[0] if models else None,
        )

    @staticmethod
    def _query_for(query_type: QueryType, query: ClassifiedQuery, raw_query: str) -> str:
        if query_type == QueryType.THEOLOGICAL:
            return query.cleaned_query or raw_query
        return raw_query
