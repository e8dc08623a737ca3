"""
Chat endpoint.

POST /chat  {"message": str, "conversation_history": [{"role", "content"}]}
GET  /chat  service status
"""
import time
from typing import List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from worship_assistant.core.logging import get_logger
from worship_assistant.services.ai.errors import QueryValidationError
from worship_assistant.services.ai.orchestration import get_chat_service
from worship_assistant.services.ai.schema import ChatResult, ConversationTurn

logger = get_logger(__name__)

router = APIRouter()

AGENT_NAMES = ["Teológico", "Músicas", "Escalas", "Usuários", "História", "Geral", "Híbrido"]


class ChatRequest(BaseModel):
    """Chat request model."""
    message: Optional[str] = None
    conversation_history: List[ConversationTurn] = Field(default_factory=list)


class ChatStatus(BaseModel):
    status: str
    ai_provider: str
    agents: List[str]
    is_configured: bool
    message: str


@router.post("", response_model=ChatResult)
async def chat(body: ChatRequest):
    """
    Answer one chat message.

    The query is classified, routed to the matching agent(s) and answered.
    Returns 400 for an empty message.
    """
    start_time = time.time()
    service = get_chat_service()
    try:
        result = await service.handle(body.message or "", body.conversation_history)
    except QueryValidationError as exc:
        logger.warning("chat_message_invalid", error=str(exc))
        raise HTTPException(status_code=400, detail=str(exc))

    logger.info(
        "chat_completed",
        query_type=result.query_type.value,
        success=result.success,
        history_turns=len(body.conversation_history),
        latency_ms=int((time.time() - start_time) * 1000),
    )
    return result


@router.get("", response_model=ChatStatus)
async def chat_status():
    """Report whether the assistant is online and the inference service configured."""
    configured = get_chat_service().is_configured
    return ChatStatus(
        status="online",
        ai_provider="DeepSeek",
        agents=AGENT_NAMES,
        is_configured=configured,
        message=(
            "Sistema de agentes online e configurado"
            if configured
            else "Sistema de agentes online (IA teológica em modo fallback)"
        ),
    )
