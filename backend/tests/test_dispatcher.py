"""
Unit tests for AgentDispatcher.

Tests verify:
- Non-hybrid routing and query text per responder
- Hybrid leg order, music suppression when theology runs
- Exception isolation between legs
- Attachment merge, usage sum and success aggregation
"""
import pytest

from worship_assistant.services.ai.dispatcher import (
    RESPONDER_FAILURE_MESSAGE,
    AgentDispatcher,
    agent_label,
)
from worship_assistant.services.ai.schema import (
    AgentResult,
    ClassifiedQuery,
    MusicAttachment,
    QueryType,
    ScheduleAttachment,
    SongSummary,
    Usage,
)


class RecordingResponder:
    """Responder returning a fixed AgentResult (or raising) and logging calls in a shared list."""

    def __init__(self, name, calls, result=None, error=None):
        self.name = name
        self._calls = calls
        self._result = result or AgentResult(success=True, response=f"resposta {name}")
        self._error = error

    async def process(self, query, mentioned_entity=None, history=()):
        self._calls.append((self.name, query, mentioned_entity))
        if self._error is not None:
            raise self._error
        return self._result


def _summary(song_id):
    return SongSummary(id=song_id, title=song_id.title())


def _hybrid(**flags):
    return ClassifiedQuery(
        type=QueryType.HYBRID,
        intent="hybrid",
        original_query="consulta híbrida",
        cleaned_query="consulta híbrida",
        **flags,
    )


@pytest.mark.asyncio
async def test_single_responder_result_is_unchanged():
    calls = []
    expected = AgentResult(success=True, response="lista de músicas", model="stub-model")
    dispatcher = AgentDispatcher({QueryType.MUSIC_SEARCH: RecordingResponder("music", calls, expected)})
    query = ClassifiedQuery(
        type=QueryType.MUSIC_SEARCH,
        intent="music_search",
        requires_music=True,
        mentioned_entity="Benedictus",
        original_query="tem cifra de @Benedictus?",
        cleaned_query="tem cifra de @Benedictus?",
    )

    result = await dispatcher.dispatch(query, "tem cifra de @Benedictus?")

    assert result == expected
    assert calls == [("music", "tem cifra de @Benedictus?", "Benedictus")]


@pytest.mark.asyncio
async def test_theology_receives_command_free_query():
    calls = []
    dispatcher = AgentDispatcher({QueryType.THEOLOGICAL: RecordingResponder("theology", calls)})
    query = ClassifiedQuery(
        type=QueryType.THEOLOGICAL,
        intent="theological_analysis",
        requires_theology=True,
        original_query="/teologia o que é graça?",
        cleaned_query="o que é graça?",
    )

    await dispatcher.dispatch(query, "/teologia o que é graça?")

    assert calls == [("theology", "o que é graça?", None)]


@pytest.mark.asyncio
async def test_hybrid_order_and_music_suppression():
    calls = []
    dispatcher = AgentDispatcher(
        {
            QueryType.THEOLOGICAL: RecordingResponder("theology", calls),
            QueryType.MUSIC_SEARCH: RecordingResponder("music", calls),
            QueryType.SCHEDULE: RecordingResponder("schedule", calls),
            QueryType.USER_INFO: RecordingResponder("user", calls),
        }
    )
    query = _hybrid(requires_theology=True, requires_music=True, requires_schedule=True, requires_user=True)

    result = await dispatcher.dispatch(query, "consulta híbrida")

    assert [name for name, _, _ in calls] == ["theology", "schedule", "user"]
    assert result.response == "resposta theology\n\nresposta schedule\n\nresposta user"


@pytest.mark.asyncio
async def test_hybrid_music_runs_without_theology():
    calls = []
    dispatcher = AgentDispatcher(
        {
            QueryType.MUSIC_SEARCH: RecordingResponder("music", calls),
            QueryType.SCHEDULE: RecordingResponder("schedule", calls),
        }
    )

    await dispatcher.dispatch(_hybrid(requires_music=True, requires_schedule=True), "consulta híbrida")

    assert [name for name, _, _ in calls] == ["music", "schedule"]


@pytest.mark.asyncio
async def test_raising_leg_does_not_stop_the_others():
    calls = []
    dispatcher = AgentDispatcher(
        {
            QueryType.SCHEDULE: RecordingResponder("schedule", calls, error=RuntimeError("db down")),
            QueryType.USER_INFO: RecordingResponder("user", calls),
        }
    )

    result = await dispatcher.dispatch(_hybrid(requires_schedule=True, requires_user=True), "consulta híbrida")

    assert [name for name, _, _ in calls] == ["schedule", "user"]
    assert result.success
    assert RESPONDER_FAILURE_MESSAGE in result.response
    assert "resposta user" in result.response
    assert "db down" not in result.response


@pytest.mark.asyncio
async def test_hybrid_fails_only_when_every_leg_fails():
    calls = []
    failed = AgentResult(success=False, response="falhou")
    dispatcher = AgentDispatcher(
        {
            QueryType.SCHEDULE: RecordingResponder("schedule", calls, failed),
            QueryType.USER_INFO: RecordingResponder("user", calls, error=ValueError("x")),
        }
    )

    result = await dispatcher.dispatch(_hybrid(requires_schedule=True, requires_user=True), "consulta híbrida")

    assert not result.success
    assert result.response


@pytest.mark.asyncio
async def test_hybrid_merges_attachments_and_usage():
    calls = []
    theology = AgentResult(
        success=True,
        response="análise",
        attachments={"music": MusicAttachment(songs=[_summary("benedictus"), _summary("alfa")])},
        usage=Usage(prompt_tokens=10, completion_tokens=5, total_tokens=15),
        model="stub-model",
    )
    schedule = AgentResult(
        success=True,
        response="escala",
        attachments={
            "music": MusicAttachment(songs=[_summary("alfa"), _summary("bondade")]),
            "schedule": ScheduleAttachment(entries=[{"date": "2026-10-25"}]),
        },
        usage=Usage(prompt_tokens=1, completion_tokens=1, total_tokens=2),
    )
    dispatcher = AgentDispatcher(
        {
            QueryType.THEOLOGICAL: RecordingResponder("theology", calls, theology),
            QueryType.SCHEDULE: RecordingResponder("schedule", calls, schedule),
        }
    )

    result = await dispatcher.dispatch(_hybrid(requires_theology=True, requires_schedule=True), "consulta híbrida")

    assert [song.id for song in result.attachments["music"].songs] == ["benedictus", "alfa", "bondade"]
    assert result.attachments["schedule"].entries == [{"date": "2026-10-25"}]
    assert result.usage == Usage(prompt_tokens=11, completion_tokens=6, total_tokens=17)
    assert result.model == "stub-model"


@pytest.mark.asyncio
async def test_missing_responder_reports_unavailable():
    dispatcher = AgentDispatcher({})
    query = ClassifiedQuery(type=QueryType.SCHEDULE, intent="schedule", requires_schedule=True)

    result = await dispatcher.dispatch(query, "qual a escala?")

    assert not result.success
    assert agent_label(QueryType.SCHEDULE) in result.response


def test_hybrid_cannot_be_registered():
    with pytest.raises(ValueError):
        AgentDispatcher({QueryType.HYBRID: RecordingResponder("hybrid", [])})
