"""
Chat orchestration entry point.

Responsibilities:
- Validate the incoming query (QueryValidationError for empty input)
- Classify it (rule-based, never fails)
- Bound the conversation history
- Dispatch to the responder(s) and assemble the ChatResult

NON-responsibilities:
- Does NOT retrieve songs, schedules or members (responders do)
- Does NOT call the inference service directly

The caller always receives a success flag and a non-empty response; only
validation errors propagate.
"""
from typing import Optional, Sequence

from worship_assistant.core.config import get_settings
from worship_assistant.core.logging import get_logger
from worship_assistant.services.ai.agents.general import GeneralAgent
from worship_assistant.services.ai.agents.history import HistoryAgent
from worship_assistant.services.ai.agents.music import MusicAgent
from worship_assistant.services.ai.agents.schedule import ScheduleAgent
from worship_assistant.services.ai.agents.users import UserAgent
from worship_assistant.services.ai.dispatcher import AgentDispatcher, agent_label
from worship_assistant.services.ai.errors import QueryValidationError
from worship_assistant.services.ai.history import DEFAULT_MAX_TURNS, trim_history
from worship_assistant.services.ai.llm_client import InferenceClient, get_inference_client
from worship_assistant.services.ai.schema import (
    AgentResult,
    ChatResult,
    ClassifiedQuery,
    ConversationTurn,
    QueryType,
)
from worship_assistant.services.ai.theology import build_theological_responder
from worship_assistant.services.catalog import get_member_source, get_schedule_source, get_song_source
from worship_assistant.services.classification import classify, describe_query_type

logger = get_logger(__name__)

FALLBACK_RESPONSE = (
    "## ⚠️ Não foi possível responder agora\n\n"
    "Ocorreu um erro inesperado ao processar sua pergunta. "
    "Tente novamente em instantes ou reformule a pergunta."
)


class ChatOrchestrationService:
    """Single entry point for one chat turn."""

    def __init__(
        self,
        dispatcher: AgentDispatcher,
        client: Optional[InferenceClient] = None,
        history_max_turns: int = DEFAULT_MAX_TURNS,
    ):
        self.dispatcher = dispatcher
        self.client = client
        self.history_max_turns = history_max_turns

    @property
    def is_configured(self) -> bool:
        return bool(self.client is not None and self.client.is_configured)

    def _result(
        self,
        classification: ClassifiedQuery,
        agent_result: AgentResult,
    ) -> ChatResult:
        return ChatResult(
            success=agent_result.success,
            response=agent_result.response.strip() or FALLBACK_RESPONSE,
            agent_used=agent_label(classification.type),
            query_type=classification.type,
            query_type_label=describe_query_type(classification.type),
            classification=classification,
            usage=agent_result.usage,
            model=agent_result.model,
            is_configured=self.is_configured,
            attachments=agent_result.attachments,
        )

    async def handle(
        self,
        raw_query: str,
        history: Sequence[ConversationTurn] = (),
    ) -> ChatResult:
        """
        Handle one chat turn.

        Raises:
            QueryValidationError: raw_query is not a non-blank string.
        """
        if not isinstance(raw_query, str) or not raw_query.strip():
            raise QueryValidationError("Mensagem inválida")

        classification = classify(raw_query)
        window = trim_history(history, self.history_max_turns)

        try:
            agent_result = await self.dispatcher.dispatch(classification, raw_query, window)
        except Exception as exc:
            logger.error(
                "chat_orchestration_failed",
                query_type=classification.type.value,
                error=str(exc),
                error_type=type(exc).__name__,
                exc_info=True,
            )
            agent_result = AgentResult(success=False, response=FALLBACK_RESPONSE)

        result = self._result(classification, agent_result)
        logger.info(
            "chat_handled",
            query_type=result.query_type.value,
            agent_used=result.agent_used,
            success=result.success,
            model=result.model,
            total_tokens=result.usage.total_tokens if result.usage else None,
            attachments=sorted(result.attachments),
        )
        return result


def build_dispatcher() -> AgentDispatcher:
    """Register every responder available in this process."""
    songs = get_song_source()
    members = get_member_source()
    return AgentDispatcher(
        {
            QueryType.THEOLOGICAL: build_theological_responder(songs),
            QueryType.MUSIC_SEARCH: MusicAgent(songs),
            QueryType.SCHEDULE: ScheduleAgent(get_schedule_source(), members),
            QueryType.USER_INFO: UserAgent(members),
            QueryType.HISTORY: HistoryAgent(),
            QueryType.GENERAL: GeneralAgent(),
        }
    )


_chat_service: Optional[ChatOrchestrationService] = None


def get_chat_service() -> ChatOrchestrationService:
    """Global singleton accessor for the chat orchestration service."""
    global _chat_service
    if _chat_service is None:
        _chat_service = ChatOrchestrationService(
            dispatcher=build_dispatcher(),
            client=get_inference_client(),
            history_max_turns=get_settings().history_max_turns,
        )
    return _chat_service
