"""
Chunked theological analysis over large candidate sets.

Used when the candidate set is larger than the chunk threshold, or when a
single analysis call timed out. Chunks run sequentially through a
MinIntervalPacer (the inference service has a shared rate limit), each with
its own timeout. A failed chunk never stops the batch; only partitioning
errors are fatal (BatchPartitionError).
"""
import re
import time
from dataclasses import dataclass, field
from typing import Generic, List, Optional, Sequence, Tuple, TypeVar

from worship_assistant.core.logging import get_logger
from worship_assistant.core.metrics import record_batch_chunk, record_batch_run
from worship_assistant.core.pacing import MinIntervalPacer, SleepFunc
from worship_assistant.services.ai.errors import BatchPartitionError, InferenceError
from worship_assistant.services.ai.llm_client import InferenceClient
from worship_assistant.services.ai.prompts import (
    BIBLE_BASED_SYSTEM_PROMPT,
    EMPTY_CHUNK_MARKER,
    MAX_TOKENS_BIBLE_BASED,
    build_chunk_prompt,
)
from worship_assistant.services.ai.schema import Song, Usage, UsageAccumulator

logger = get_logger(__name__)

T = TypeVar("T")

CHUNK_SUCCEEDED = "succeeded"
CHUNK_EMPTY = "empty"
CHUNK_FAILED = "failed"

BATCH_HEADER = "## 🎵 Músicas Relacionadas à Base Bíblica"
CHUNK_DIVIDER = "\n\n---\n\n"
NOTHING_FOUND_MESSAGE = (
    "**Nenhuma música encontrada com relação clara à base bíblica mencionada.**"
)

_CHUNK_HEADER_PATTERN = re.compile(r"## 🎵 Músicas Relacionadas \(Lote \d+/\d+\)")


@dataclass(frozen=True)
class BatchChunk(Generic[T]):
    """Ordered, contiguous slice of a candidate set. index is 0-based."""

    index: int
    items: Tuple[T, ...]

    @property
    def size(self) -> int:
        return len(self.items)


def partition(items: Sequence[T], chunk_size: int) -> List[BatchChunk[T]]:
    """
    Split items into ordered chunks of at most chunk_size.

    Concatenating the chunks' items reproduces the input exactly.

    Raises:
        BatchPartitionError: chunk_size is not a positive integer.
    """
    if isinstance(chunk_size, bool) or not isinstance(chunk_size, int) or chunk_size < 1:
        raise BatchPartitionError(f"chunk_size must be a positive integer, got {chunk_size!r}")
    items = tuple(items)
    return [
        BatchChunk(index=number, items=items[start:start + chunk_size])
        for number, start in enumerate(range(0, len(items), chunk_size))
    ]


@dataclass
class ChunkOutcome:
    index: int
    status: str
    content: str = ""
    usage: Optional[Usage] = None
    error: Optional[str] = None

    @property
    def completed(self) -> bool:
        return self.status != CHUNK_FAILED


@dataclass
class BatchOutcome:
    content: str
    usage: Usage
    model: str
    song_count: int
    chunk_count: int
    outcomes: List[ChunkOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == CHUNK_SUCCEEDED)

    @property
    def empty(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == CHUNK_EMPTY)

    @property
    def failed(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == CHUNK_FAILED)


def is_empty_chunk_answer(content: str) -> bool:
    return not content.strip() or EMPTY_CHUNK_MARKER in content


def merge_chunk_results(
    outcomes: Sequence[ChunkOutcome],
    song_count: int,
    chunk_count: int,
) -> str:
    """Combine chunk answers in chunk order under a single header."""
    lines = [
        BATCH_HEADER,
        "",
        f"*Análise completa de {song_count} músicas processadas em {chunk_count} lote(s)*",
        "",
        "---",
        "",
    ]
    header = "\n".join(lines)

    bodies = [
        _CHUNK_HEADER_PATTERN.sub("", outcome.content).strip()
        for outcome in sorted(outcomes, key=lambda item: item.index)
        if outcome.status == CHUNK_SUCCEEDED
    ]
    bodies = [body for body in bodies if body]
    if not bodies:
        return header + NOTHING_FOUND_MESSAGE + "\n"
    return header + CHUNK_DIVIDER.join(bodies)


class BatchOrchestrator:
    """Runs one logical analysis as a sequence of chunk calls."""

    def __init__(
        self,
        client: InferenceClient,
        chunk_size: int = 15,
        chunk_timeout_seconds: float = 50.0,
        pause_seconds: float = 1.0,
        sleep: Optional[SleepFunc] = None,
    ):
        self.client = client
        self.chunk_size = chunk_size
        self.chunk_timeout_seconds = chunk_timeout_seconds
        self.pause_seconds = pause_seconds
        self._sleep = sleep

    async def _run_chunk(
        self,
        question: str,
        chunk: BatchChunk[Song],
        chunk_total: int,
    ) -> ChunkOutcome:
        chunk_number = chunk.index + 1
        try:
            prompt = build_chunk_prompt(question, chunk.items, chunk_number, chunk_total)
            result = await self.client.infer(
                system_prompt=BIBLE_BASED_SYSTEM_PROMPT,
                history=[],
                user_prompt=prompt,
                max_output_tokens=MAX_TOKENS_BIBLE_BASED,
                timeout_seconds=self.chunk_timeout_seconds,
                agent="batch",
            )
        except InferenceError as exc:
            logger.warning(
                "batch_chunk_failed",
                chunk=chunk_number,
                chunk_total=chunk_total,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return ChunkOutcome(
                index=chunk.index,
                status=CHUNK_FAILED,
                content=f"⚠️ **Erro ao processar lote {chunk_number}/{chunk_total}:** {exc}",
                error=type(exc).__name__,
            )
        except Exception as exc:
            logger.error(
                "batch_chunk_unexpected_error",
                chunk=chunk_number,
                chunk_total=chunk_total,
                error=str(exc),
                error_type=type(exc).__name__,
                exc_info=True,
            )
            return ChunkOutcome(
                index=chunk.index,
                status=CHUNK_FAILED,
                content=f"⚠️ **Erro ao processar lote {chunk_number}/{chunk_total}**",
                error=type(exc).__name__,
            )

        status = CHUNK_EMPTY if is_empty_chunk_answer(result.content) else CHUNK_SUCCEEDED
        logger.info(
            "batch_chunk_completed",
            chunk=chunk_number,
            chunk_total=chunk_total,
            songs=chunk.size,
            status=status,
        )
        return ChunkOutcome(
            index=chunk.index,
            status=status,
            content=result.content,
            usage=result.usage,
        )

    async def run(
        self,
        question: str,
        songs: Sequence[Song],
        chunk_size: Optional[int] = None,
        trigger: str = "size",
    ) -> BatchOutcome:
        """
        Analyze songs chunk by chunk.

        Args:
            question: User question forwarded to every chunk
            songs: Full candidate set
            chunk_size: Override for this run (the degraded path uses a smaller one)
            trigger: "size" or "timeout", for metrics/logs

        Returns:
            BatchOutcome; never raises once partitioning succeeded.

        Raises:
            BatchPartitionError: the candidate set could not be partitioned.
        """
        size = self.chunk_size if chunk_size is None else chunk_size
        chunks = partition(songs, size)
        chunk_total = len(chunks)

        record_batch_run(trigger)
        logger.info(
            "batch_started",
            trigger=trigger,
            songs=len(songs),
            chunk_size=size,
            chunk_total=chunk_total,
        )

        start = time.time()
        pacer = MinIntervalPacer(self.pause_seconds, sleep=self._sleep)
        usage = UsageAccumulator()
        outcomes: List[ChunkOutcome] = []

        for chunk in chunks:
            async with pacer.slot():
                outcome = await self._run_chunk(question, chunk, chunk_total)
            record_batch_chunk(outcome.status)
            if outcome.completed:
                usage.add(outcome.usage)
            outcomes.append(outcome)

        batch_outcome = BatchOutcome(
            content=merge_chunk_results(outcomes, len(songs), chunk_total),
            usage=usage.snapshot(),
            model=self.client.model,
            song_count=len(songs),
            chunk_count=chunk_total,
            outcomes=outcomes,
        )
        logger.info(
            "batch_completed",
            trigger=trigger,
            chunk_total=chunk_total,
            succeeded=batch_outcome.succeeded,
            empty=batch_outcome.empty,
            failed=batch_outcome.failed,
            total_tokens=batch_outcome.usage.total_tokens,
            duration_ms=round((time.time() - start) * 1000.0, 1),
        )
        return batch_outcome
