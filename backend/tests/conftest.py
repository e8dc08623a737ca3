"""
Shared stubs for the chat pipeline tests.

No test performs real HTTP calls: inference is replaced by ScriptedInferenceClient
and the song, member and schedule data by in-memory sources.
"""
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import pytest

from worship_assistant.core.config import reset_settings
from worship_assistant.services.ai.schema import (
    Availability,
    ConversationTurn,
    InferenceResult,
    Member,
    ScheduleEntry,
    Song,
    Usage,
)
from worship_assistant.services.catalog import (
    InMemoryMemberSource,
    InMemoryScheduleSource,
    InMemorySongSource,
)

Scripted = Union[InferenceResult, Exception, Callable[[Dict[str, Any]], InferenceResult]]


class ScriptedInferenceClient:
    """Stub InferenceClient that replays scripted results and records every call."""

    def __init__(self, script: Sequence[Scripted] = (), configured: bool = True, model: str = "stub-model"):
        self._script: List[Scripted] = list(script)
        self.configured = configured
        self.model = model
        self.calls: List[Dict[str, Any]] = []

    @property
    def is_configured(self) -> bool:
        return self.configured

    async def infer(
        self,
        system_prompt: str,
        history: Sequence[ConversationTurn],
        user_prompt: str,
        max_output_tokens: int,
        timeout_seconds: Optional[float] = None,
        agent: str = "theology",
    ) -> InferenceResult:
        call = {
            "system_prompt": system_prompt,
            "history": list(history),
            "user_prompt": user_prompt,
            "max_output_tokens": max_output_tokens,
            "timeout_seconds": timeout_seconds,
            "agent": agent,
        }
        self.calls.append(call)
        if not self._script:
            raise AssertionError("ScriptedInferenceClient ran out of scripted results")
        step = self._script.pop(0)
        if isinstance(step, Exception):
            raise step
        if callable(step):
            return step(call)
        return step


def make_result(content: str, tokens: int = 10) -> InferenceResult:
    return InferenceResult(
        content=content,
        model="stub-model",
        usage=Usage(prompt_tokens=tokens, completion_tokens=tokens, total_tokens=2 * tokens),
    )


def make_songs(count: int, prefix: str = "Cântico") -> List[Song]:
    return [
        Song(
            id=f"song-{index:03d}",
            title=f"{prefix} {index:03d}",
            lyrics=[f"Estrofe do {prefix.lower()} {index:03d} sobre a graça de Deus"],
        )
        for index in range(count)
    ]


CATALOG = [
    Song(
        id="pao-da-vida",
        title="Pão da Vida",
        lyrics=["Tu és o pão da vida que desceu do céu", "Quem vem a ti jamais terá fome"],
        chords=["G D Em C"],
        youtube_link="https://youtube.com/watch?v=pao",
    ),
    Song(
        id="benedictus",
        title="Benedictus",
        lyrics=["Bendito seja o Senhor Deus de Israel, que visitou e redimiu o seu povo"],
    ),
    Song(
        id="bondade-de-deus",
        title="Bondade de Deus",
        lyrics=["Te amo, Deus, Tua graça nunca falha", "Todos os dias eu estou em Tuas mãos"],
        chords=["A E F#m D"],
    ),
    Song(
        id="10000-razoes",
        title="10000 Razões",
        lyrics=["Sol vai nascer e um novo dia vai raiar", "Bendiz, ó minha alma, ao Senhor"],
        youtube_link="https://youtube.com/watch?v=razoes",
    ),
    Song(
        id="alfa-e-omega",
        title="Alfa e Ômega",
        lyrics=["Tu és o Alfa e o Ômega, o princípio e o fim"],
    ),
]


@pytest.fixture
def catalog() -> InMemorySongSource:
    return InMemorySongSource(CATALOG)


@pytest.fixture
def scripted_client() -> Callable[..., ScriptedInferenceClient]:
    return ScriptedInferenceClient


@pytest.fixture(autouse=True)
def _clean_settings(monkeypatch):
    """Every test starts from default settings with no inference key."""
    for name in ("INFERENCE_API_KEY", "DEEPSEEK_API_KEY", "CATALOG_PATH", "MEMBERS_PATH", "SCHEDULE_PATH"):
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def result_factory() -> Callable[..., InferenceResult]:
    return make_result


@pytest.fixture
def song_factory() -> Callable[..., List[Song]]:
    return make_songs


# Wednesday; the next Sunday is 2026-10-25
TODAY = date(2026, 10, 21)

MEMBERS = [
    Member(id="ana", name="Ana Souza", role="cantor", birth_date=date(1990, 10, 5)),
    Member(
        id="bruno",
        name="Bruno Lima",
        role="musico",
        instrument="Violão",
        birth_date=date(1988, 3, 14),
        leader=True,
    ),
    Member(id="carla", name="Carla Dias", role="ambos", instrument="Teclado"),
    Member(id="davi", name="Davi Rocha", role="musico", instrument="Contrabaixo", birth_date=date(1995, 10, 30)),
]

SCHEDULE = [
    ScheduleEntry(id="e0", day=date(2026, 10, 18), member_id="davi", function="musico"),
    ScheduleEntry(id="e1", day=date(2026, 10, 25), member_id="ana", function="cantor", order=1),
    ScheduleEntry(id="e2", day=date(2026, 10, 25), member_id="bruno", function="musico", order=2),
    ScheduleEntry(
        id="e3",
        day=date(2026, 10, 25),
        member_id="carla",
        function="solo",
        song_id="bondade-de-deus",
        song_title="Bondade de Deus",
        order=3,
    ),
    ScheduleEntry(id="e4", day=date(2026, 11, 1), member_id="davi", function="musico"),
]

AVAILABILITY = [
    Availability(member_id="ana", day=date(2026, 10, 10), status="indisponivel"),
    Availability(member_id="ana", day=date(2026, 10, 25), status="disponivel"),
    Availability(member_id="bruno", day=date(2026, 11, 1), status="indisponivel"),
]

SERVICE_DAYS = [date(2026, 10, 18), date(2026, 10, 25), date(2026, 11, 1)]


@pytest.fixture
def today() -> Callable[[], date]:
    return lambda: TODAY


@pytest.fixture
def members() -> InMemoryMemberSource:
    return InMemoryMemberSource(MEMBERS)


@pytest.fixture
def schedule() -> InMemoryScheduleSource:
    return InMemoryScheduleSource(SCHEDULE, AVAILABILITY, SERVICE_DAYS)
