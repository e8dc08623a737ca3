"""
Async inference client for the theological analysis service.

Design constraints:
- Do NOT use provider-specific SDKs
- Use an HTTP client (httpx) against an OpenAI-compatible /chat/completions API
  (DeepSeek by default)
- Map every failure onto the InferenceError taxonomy so callers can decide
  between degrade-to-batch, per-chunk placeholders and the local fallback

Configuration comes from worship_assistant.core.config (INFERENCE_* variables).
"""
import time
from typing import Any, Dict, List, Optional, Sequence

import httpx

from worship_assistant.core.config import get_settings
from worship_assistant.core.logging import get_logger
from worship_assistant.core.metrics import (
    record_llm_error,
    record_llm_request,
    record_llm_tokens,
)
from worship_assistant.services.ai.errors import (
    InferenceNotConfiguredError,
    InferenceRateLimitError,
    InferenceTimeoutError,
    InferenceTransportError,
)
from worship_assistant.services.ai.schema import ConversationTurn, InferenceResult, Usage

logger = get_logger(__name__)


class InferenceClient:
    """Async HTTP client for the external inference service."""

    def __init__(
        self,
        api_base: str,
        api_key: Optional[str],
        model: str,
        timeout_seconds: float = 50.0,
        temperature: float = 0.5,
        top_p: float = 0.9,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_base = api_base.rstrip("/")
        self.api_key = api_key
        self.model = model
        self.timeout_seconds = timeout_seconds
        self.temperature = temperature
        self.top_p = top_p
        # Injected in tests (httpx.MockTransport)
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    async def _post(
        self,
        path: str,
        json_payload: Dict[str, Any],
        timeout_seconds: float,
    ) -> httpx.Response:
        """Low-level POST helper."""
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }
        url = f"{self.api_base}{path}"
        async with httpx.AsyncClient(
            timeout=timeout_seconds,
            transport=self._transport,
        ) as client:
            return await client.post(url, headers=headers, json=json_payload)

    @staticmethod
    def build_messages(
        system_prompt: str,
        history: Sequence[ConversationTurn],
        user_prompt: str,
    ) -> List[Dict[str, str]]:
        messages = [{"role": "system", "content": system_prompt}]
        messages.extend({"role": turn.role, "content": turn.content} for turn in history)
        messages.append({"role": "user", "content": user_prompt})
        return messages

    async def infer(
        self,
        system_prompt: str,
        history: Sequence[ConversationTurn],
        user_prompt: str,
        max_output_tokens: int,
        timeout_seconds: Optional[float] = None,
        agent: str = "theology",
    ) -> InferenceResult:
        """
        Run one chat completion.

        Args:
            system_prompt: System instructions
            history: Already-trimmed conversation turns
            user_prompt: The prompt for this call
            max_output_tokens: Completion budget
            timeout_seconds: Per-call timeout (defaults to the client timeout)
            agent: Logical caller name for metrics/logs ("theology", "batch", ...)

        Returns:
            InferenceResult with content, model and usage.

        Raises:
            InferenceNotConfiguredError, InferenceTimeoutError,
            InferenceRateLimitError, InferenceTransportError
        """
        if not self.is_configured:
            record_llm_error(agent, InferenceNotConfiguredError.error_type)
            raise InferenceNotConfiguredError("Inference API key not configured", agent=agent)

        timeout = timeout_seconds or self.timeout_seconds
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": self.build_messages(system_prompt, history, user_prompt),
            "temperature": self.temperature,
            "max_tokens": max_output_tokens,
            "top_p": self.top_p,
        }

        start = time.time()
        try:
            response = await self._post("/chat/completions", payload, timeout)
        except httpx.TimeoutException as exc:
            record_llm_error(agent, InferenceTimeoutError.error_type)
            logger.warning(
                "inference_timeout",
                agent=agent,
                timeout_seconds=timeout,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise InferenceTimeoutError(f"Inference call timed out after {timeout}s", agent=agent) from exc
        except httpx.HTTPError as exc:
            record_llm_error(agent, InferenceTransportError.error_type)
            logger.warning(
                "inference_http_error",
                agent=agent,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise InferenceTransportError(str(exc) or type(exc).__name__, agent=agent) from exc
        finally:
            duration_ms = (time.time() - start) * 1000.0
            # Latency is recorded for failed requests too
            record_llm_request(agent, self.model, duration_ms)

        if response.status_code == 429:
            record_llm_error(agent, InferenceRateLimitError.error_type)
            logger.warning("inference_rate_limited", agent=agent)
            raise InferenceRateLimitError(
                "Inference service rate limit reached", agent=agent, status_code=429
            )
        if response.status_code >= 400:
            record_llm_error(agent, "http_status")
            logger.warning(
                "inference_http_status",
                agent=agent,
                status_code=response.status_code,
                body=response.text[:500],
            )
            raise InferenceTransportError(
                f"Inference service answered {response.status_code}",
                agent=agent,
                status_code=response.status_code,
            )

        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            record_llm_error(agent, "invalid_response")
            logger.warning(
                "inference_invalid_response",
                agent=agent,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise InferenceTransportError(
                "Malformed inference response", agent=agent, status_code=response.status_code
            ) from exc

        usage = _parse_usage(data.get("usage"))
        if usage is not None:
            record_llm_tokens(
                agent=agent,
                model=self.model,
                input_tokens=usage.prompt_tokens,
                output_tokens=usage.completion_tokens,
            )

        return InferenceResult(
            content=str(content or "").strip(),
            model=str(data.get("model") or self.model),
            usage=usage,
        )


def _parse_usage(raw: Any) -> Optional[Usage]:
    if not isinstance(raw, dict):
        return None
    prompt = int(raw.get("prompt_tokens") or 0)
    completion = int(raw.get("completion_tokens") or 0)
    total = int(raw.get("total_tokens") or (prompt + completion))
    return Usage(prompt_tokens=prompt, completion_tokens=completion, total_tokens=total)


_inference_client: Optional[InferenceClient] = None


def get_inference_client() -> InferenceClient:
    """Global singleton accessor for the inference client."""
    global _inference_client
    if _inference_client is None:
        settings = get_settings()
        _inference_client = InferenceClient(
            api_base=settings.inference_api_base,
            api_key=settings.inference_api_key,
            model=settings.inference_model,
            timeout_seconds=settings.inference_timeout_seconds,
        )
        if not _inference_client.is_configured:
            logger.warning(
                "inference_not_configured",
                message="INFERENCE_API_KEY not set; theological answers use the local fallback.",
            )
    return _inference_client
