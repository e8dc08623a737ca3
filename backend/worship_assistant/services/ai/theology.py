"""
Theological analysis of worship songs.

TheologicalAnalyzer owns the degrade protocol for inference calls:

    not configured            → local fallback (no network)
    candidates > threshold    → batch run ("size")
    single call               → one call with trimmed history
      timeout, > 1 candidate  → exactly one batch run with the degraded chunk size
        every chunk failed    → local fallback
      any other failure       → local fallback
    batch partition failure   → local fallback

The local fallback is a deterministic keyword match over the candidates and
is never empty.

TheologicalResponder resolves candidates from the song catalog and turns the
analysis into an AgentResult.
"""
import re
from typing import Dict, List, Optional, Sequence

from worship_assistant.core.config import get_settings
from worship_assistant.core.logging import get_logger
from worship_assistant.core.metrics import record_fallback_response
from worship_assistant.services.ai.batching import BatchOrchestrator
from worship_assistant.services.ai.errors import (
    BatchPartitionError,
    InferenceError,
    InferenceTimeoutError,
)
from worship_assistant.services.ai.history import DEFAULT_MAX_TURNS, trim_history
from worship_assistant.services.ai.llm_client import InferenceClient, get_inference_client
from worship_assistant.services.ai.prompts import (
    MAX_TOKENS_BIBLE_BASED,
    MAX_TOKENS_DEFAULT,
    MAX_TOKENS_SPECIFIC_SONG,
    build_analysis_prompt,
    build_system_prompt,
)
from worship_assistant.services.ai.schema import (
    AgentResult,
    Attachment,
    ConversationTurn,
    InferenceResult,
    MusicAttachment,
    Song,
    SongSummary,
)
from worship_assistant.services.catalog import SongSource, get_song_source, normalize_for_search
from worship_assistant.services.classification.scoring import is_bible_based_music_query

logger = get_logger(__name__)

FALLBACK_MODEL = "fallback-local"
FALLBACK_MATCH_LIMIT = 3
FALLBACK_PREVIEW_CHARS = 200
FALLBACK_MIN_WORD_LENGTH = 3
DEFAULT_CANDIDATE_LIMIT = 5


def build_local_fallback(question: str, songs: Sequence[Song]) -> InferenceResult:
    """Answer from the catalog alone: titles and lyrics matching the question's words."""
    words = [
        word
        for word in re.findall(r"\w+", question.lower())
        if len(word) >= FALLBACK_MIN_WORD_LENGTH
    ]
    relevant = [
        song
        for song in songs
        if any(
            word in song.title.lower() or any(word in stanza.lower() for stanza in song.lyrics)
            for word in words
        )
    ][:FALLBACK_MATCH_LIMIT]

    lines = [
        "## 🎶 Resposta Baseada no Banco de Dados Local",
        "",
        "### 📋 Análise da Pergunta",
        f'> "{question}"',
        "",
    ]
    if relevant:
        lines += ["### 🎵 Músicas Encontradas no Banco de Dados:", ""]
        for position, song in enumerate(relevant, start=1):
            lines.append(f"**{position}. {song.title}**")
            if song.lyrics:
                first = song.lyrics[0]
                suffix = "..." if len(first) > FALLBACK_PREVIEW_CHARS else ""
                lines += [f"> {first[:FALLBACK_PREVIEW_CHARS]}{suffix}", ""]
        lines += [
            "### 📖 Base Bíblica Sugerida",
            '- Salmo 95:1-7 - "Vinde, cantemos ao SENHOR"',
            '- Colossenses 3:16 - "Salmos, hinos e cânticos espirituais"',
            "",
            "### 🙏 Recomendação",
            "As músicas acima foram encontradas em nosso banco de dados. Para uma "
            "análise teológica completa, configure o serviço de IA.",
            "",
        ]
    else:
        lines += [
            "### ⚠️ Nenhuma Música Encontrada",
            "Não encontrei músicas relacionadas no banco de dados.",
            "",
        ]
    lines += [
        "",
        "---",
        "*💡 Nota: Esta é uma resposta básica. Configure INFERENCE_API_KEY para "
        "análises teológicas completas com IA.*",
    ]
    return InferenceResult(content="\n".join(lines), model=FALLBACK_MODEL, usage=None)


class TheologicalAnalyzer:
    """Runs a theological analysis with timeout degradation and local fallback."""

    def __init__(
        self,
        client: InferenceClient,
        batch: BatchOrchestrator,
        chunk_threshold: int = 15,
        degraded_chunk_size: int = 10,
        history_max_turns: int = DEFAULT_MAX_TURNS,
        single_call_timeout_seconds: Optional[float] = None,
    ):
        self.client = client
        self.batch = batch
        self.chunk_threshold = chunk_threshold
        self.degraded_chunk_size = degraded_chunk_size
        self.history_max_turns = history_max_turns
        self.single_call_timeout_seconds = single_call_timeout_seconds

    def _fallback(self, question: str, songs: Sequence[Song], reason: str) -> InferenceResult:
        record_fallback_response(reason)
        logger.info("theology_local_fallback", reason=reason, songs=len(songs))
        return build_local_fallback(question, songs)

    async def _run_batch(
        self,
        question: str,
        songs: Sequence[Song],
        trigger: str,
        chunk_size: Optional[int] = None,
        fallback_when_all_failed: bool = False,
    ) -> InferenceResult:
        try:
            outcome = await self.batch.run(question, songs, chunk_size=chunk_size, trigger=trigger)
        except BatchPartitionError as exc:
            logger.error(
                "batch_partition_failed",
                trigger=trigger,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return self._fallback(question, songs, "batch_failed")
        if fallback_when_all_failed and outcome.succeeded == 0 and outcome.empty == 0:
            logger.warning("batch_all_chunks_failed", trigger=trigger, chunks=outcome.chunk_count)
            return self._fallback(question, songs, "batch_failed")
        return InferenceResult(content=outcome.content, model=outcome.model, usage=outcome.usage)

    async def analyze(
        self,
        question: str,
        songs: Sequence[Song],
        history: Sequence[ConversationTurn] = (),
        specific_song: Optional[Song] = None,
        bible_based: bool = False,
    ) -> InferenceResult:
        """
        Analyze songs for a question.

        Args:
            question: User question (command prefix already removed)
            songs: Candidate set
            history: Raw conversation history (trimmed here)
            specific_song: When set, only this song is analyzed, with full lyrics
            bible_based: Question asks which songs relate to a Bible passage

        Returns:
            InferenceResult; never raises for inference failures.
        """
        candidates: List[Song] = [specific_song] if specific_song else list(songs)

        if not self.client.is_configured:
            return self._fallback(question, candidates, "not_configured")

        if len(candidates) > self.chunk_threshold:
            logger.info("theology_batch_by_size", songs=len(candidates))
            return await self._run_batch(question, candidates, trigger="size")

        if specific_song is not None:
            max_tokens = MAX_TOKENS_SPECIFIC_SONG
        elif bible_based:
            max_tokens = MAX_TOKENS_BIBLE_BASED
        else:
            max_tokens = MAX_TOKENS_DEFAULT

        try:
            return await self.client.infer(
                system_prompt=build_system_prompt(
                    include_lyrics=specific_song is not None,
                    bible_based=bible_based and specific_song is None,
                ),
                history=trim_history(history, self.history_max_turns),
                user_prompt=build_analysis_prompt(
                    question,
                    candidates,
                    specific_song=specific_song is not None,
                    bible_based=bible_based,
                ),
                max_output_tokens=max_tokens,
                timeout_seconds=self.single_call_timeout_seconds,
                agent="theology",
            )
        except InferenceTimeoutError:
            if len(candidates) > 1:
                logger.warning("theology_degrade_to_batch", songs=len(candidates))
                return await self._run_batch(
                    question,
                    candidates,
                    trigger="timeout",
                    chunk_size=self.degraded_chunk_size,
                    fallback_when_all_failed=True,
                )
            return self._fallback(question, candidates, "timeout")
        except InferenceError as exc:
            logger.warning(
                "theology_inference_failed",
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return self._fallback(question, candidates, exc.error_type)


def match_mentioned_titles(content: str, songs: Sequence[Song]) -> List[Song]:
    """
    Catalog songs named in an analysis text, in catalog order.

    A title matches when its normalized form appears in the normalized text.
    When no title matches exactly, a song matches when at least half of its
    title words (longer than 3 characters) appear.
    """
    normalized_content = normalize_for_search(content)
    matched = [
        song
        for song in songs
        if normalize_for_search(song.title)
        and normalize_for_search(song.title) in normalized_content
    ]
    if matched:
        return matched

    loose: List[Song] = []
    for song in songs:
        words = [word for word in normalize_for_search(song.title).split() if len(word) > 3]
        if not words:
            continue
        hits = sum(1 for word in words if word in normalized_content)
        if hits * 2 >= len(words):
            loose.append(song)
    return loose


def song_not_found_message(name: str) -> str:
    return (
        "## ❌ Música Não Encontrada\n\n"
        f'Não encontrei a música **"{name}"** no banco de dados.\n\n'
        "**Sugestões:**\n"
        "- Verifique a ortografia do nome\n"
        "- Tente usar apenas parte do nome\n"
        '- Use "liste todas as músicas" para ver o repertório completo\n\n'
        "💡 **Dica:** Use o formato `@nome da música` para mencionar músicas específicas."
    )


class TheologicalResponder:
    """Responder for theological questions about the song catalog."""

    name = "theology"

    def __init__(self, analyzer: TheologicalAnalyzer, songs: SongSource):
        self.analyzer = analyzer
        self.songs = songs

    async def process(
        self,
        query: str,
        mentioned_entity: Optional[str] = None,
        history: Sequence[ConversationTurn] = (),
    ) -> AgentResult:
        specific_song: Optional[Song] = None
        bible_based = is_bible_based_music_query(query)

        if mentioned_entity:
            specific_song = self.songs.find_by_title(mentioned_entity)
            if specific_song is None:
                logger.info("theology_song_not_found", mentioned_entity=mentioned_entity)
                return AgentResult(success=False, response=song_not_found_message(mentioned_entity))
            candidates = [specific_song]
        elif bible_based:
            candidates = self.songs.list_songs()
        else:
            candidates = self.songs.list_songs(limit=DEFAULT_CANDIDATE_LIMIT)

        logger.info(
            "theology_candidates_resolved",
            songs=len(candidates),
            bible_based=bible_based,
            specific_song=specific_song.title if specific_song else None,
        )

        result = await self.analyzer.analyze(
            query,
            candidates,
            history=history,
            specific_song=specific_song,
            bible_based=bible_based,
        )

        attachments: Dict[str, Attachment] = {}
        related = match_mentioned_titles(result.content, candidates) if candidates else []
        if related:
            attachments["music"] = MusicAttachment(
                songs=[SongSummary.from_song(song) for song in related]
            )

        return AgentResult(
            success=True,
            response=result.content,
            attachments=attachments,
            usage=result.usage,
            model=result.model,
        )


def build_theological_responder(songs: Optional[SongSource] = None) -> TheologicalResponder:
    """Wire a responder from settings and the global singletons."""
    settings = get_settings()
    client = get_inference_client()
    batch = BatchOrchestrator(
        client,
        chunk_size=settings.batch_chunk_size,
        chunk_timeout_seconds=settings.inference_timeout_seconds,
        pause_seconds=settings.batch_pause_seconds,
    )
    analyzer = TheologicalAnalyzer(
        client,
        batch,
        chunk_threshold=settings.batch_chunk_size,
        degraded_chunk_size=settings.batch_degraded_chunk_size,
        history_max_turns=settings.history_max_turns,
        single_call_timeout_seconds=settings.inference_timeout_seconds,
    )
    return TheologicalResponder(analyzer, songs if songs is not None else get_song_source())
