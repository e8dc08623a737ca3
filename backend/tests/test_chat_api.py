"""
Integration tests for the HTTP surface (chat, health, metrics).

The chat service is replaced by one wired with a scripted inference client
and the in-memory test catalog.
"""
import pytest
from fastapi.testclient import TestClient

from worship_assistant.main import app
from worship_assistant.routes import chat as chat_routes
from worship_assistant.routes import health as health_routes
from worship_assistant.services.ai.agents.general import GREETING_RESPONSE, GeneralAgent
from worship_assistant.services.ai.agents.history import HistoryAgent
from worship_assistant.services.ai.agents.music import MusicAgent
from worship_assistant.services.ai.agents.schedule import ScheduleAgent
from worship_assistant.services.ai.agents.users import UserAgent
from worship_assistant.services.ai.batching import BatchOrchestrator
from worship_assistant.services.ai.dispatcher import AgentDispatcher
from worship_assistant.services.ai.orchestration import ChatOrchestrationService
from worship_assistant.services.ai.schema import QueryType
from worship_assistant.services.ai.theology import TheologicalAnalyzer, TheologicalResponder


async def _no_sleep(seconds):
    return None


@pytest.fixture
def inference(scripted_client):
    return scripted_client([], configured=False)


@pytest.fixture
def client(monkeypatch, catalog, members, schedule, today, inference):
    """Test client with the chat service wired to stubs."""
    batch = BatchOrchestrator(inference, pause_seconds=0.0, sleep=_no_sleep)
    service = ChatOrchestrationService(
        AgentDispatcher(
            {
                QueryType.THEOLOGICAL: TheologicalResponder(TheologicalAnalyzer(inference, batch), catalog),
                QueryType.MUSIC_SEARCH: MusicAgent(catalog),
                QueryType.SCHEDULE: ScheduleAgent(schedule, members, today=today),
                QueryType.USER_INFO: UserAgent(members, today=today),
                QueryType.HISTORY: HistoryAgent(),
                QueryType.GENERAL: GeneralAgent(),
            }
        ),
        client=inference,
    )
    monkeypatch.setattr(chat_routes, "get_chat_service", lambda: service)
    monkeypatch.setattr(health_routes, "get_song_source", lambda: catalog)
    return TestClient(app)


class TestChatEndpoint:

    def test_greeting(self, client):
        response = client.post("/chat", json={"message": "Oi"})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["response"] == GREETING_RESPONSE
        assert data["query_type"] == "general"
        assert data["agent_used"] == "Agente Geral"
        assert data["classification"]["intent"] == "greeting"
        assert "X-Trace-ID" in response.headers

    def test_music_question_returns_attachments(self, client):
        response = client.post(
            "/chat",
            json={
                "message": "Qual o link da música Pão da Vida?",
                "conversation_history": [
                    {"role": "user", "content": "oi"},
                    {"role": "assistant", "content": "olá!"},
                ],
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["query_type"] == "music_search"
        assert data["attachments"]["music"]["kind"] == "music"
        assert data["attachments"]["music"]["songs"][0]["title"] == "Pão da Vida"

    def test_theology_without_inference_uses_fallback(self, client, inference):
        response = client.post("/chat", json={"message": "/teologia o que é graça?"})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["model"] == "fallback-local"
        assert data["is_configured"] is False
        assert inference.calls == []

    def test_schedule_question(self, client):
        response = client.post("/chat", json={"message": "Qual a escala do próximo domingo?"})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["query_type"] == "schedule"
        assert data["agent_used"] == "Agente de Escalas"
        assert "Próxima Escala" in data["response"]
        assert data["attachments"]["schedule"]["kind"] == "schedule"

    def test_member_question(self, client):
        response = client.post("/chat", json={"message": "Quem toca violão?"})

        data = response.json()
        assert data["success"] is True
        assert data["query_type"] == "user_info"
        assert data["attachments"]["users"]["members"][0]["name"] == "Bruno Lima"

    def test_schedule_and_member_hybrid(self, client):
        response = client.post("/chat", json={"message": "domingo hoje membro integrante"})

        data = response.json()
        assert data["query_type"] == "hybrid"
        assert data["success"] is True
        assert "Escala de 25 de outubro" in data["response"]
        assert "Informações de Membros" in data["response"]

    @pytest.mark.parametrize("body", [{}, {"message": ""}, {"message": "   "}])
    def test_empty_message_is_rejected(self, client, body):
        response = client.post("/chat", json=body)

        assert response.status_code == 400
        data = response.json()
        assert data["status_code"] == 400
        assert data["trace_id"]

    def test_trace_id_is_propagated(self, client):
        response = client.post("/chat", json={"message": "ajuda"}, headers={"X-Trace-ID": "trace-123"})

        assert response.headers["X-Trace-ID"] == "trace-123"

    def test_status(self, client):
        response = client.get("/chat")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "online"
        assert data["is_configured"] is False
        assert "Teológico" in data["agents"]


class TestHealthAndMetrics:

    def test_health(self, client):
        response = client.get("/health/")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "message": "API is running"}

    def test_inference_health_unconfigured(self, client):
        response = client.get("/health/inference")

        data = response.json()
        assert data["status"] == "degraded"
        assert data["inference_configured"] is False
        assert data["catalog_songs"] == 5

    def test_metrics_endpoint(self, client):
        client.post("/chat", json={"message": "Oi"})

        response = client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert "http_requests_total" in response.text
        assert "query_classifications_total" in response.text
