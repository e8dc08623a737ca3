"""
History responder: questions about the church, its pastors, the worship
ministry leadership and who built the system.
"""
import re
from typing import List, Optional, Sequence

from pydantic import BaseModel, Field

from worship_assistant.services.ai.schema import AgentResult, ConversationTurn

DEVELOPER_PATTERNS = [
    re.compile(r"quem (desenvolveu|te desenvolveu|criou|te criou|fez|te fez)", re.IGNORECASE),
    re.compile(r"quem é (o|a) desenvolvedor", re.IGNORECASE),
    re.compile(r"quem programou", re.IGNORECASE),
]
PASTOR_PATTERNS = [
    re.compile(r"quem (é|são) (o|a|os|as) pastor", re.IGNORECASE),
    re.compile(r"(pastor|pastores) (da|do|da nossa) igreja", re.IGNORECASE),
    re.compile(r"(pastor|pastores) (são|é)", re.IGNORECASE),
    re.compile(r"nome (do|dos) (pastor|pastores)", re.IGNORECASE),
]
CHURCH_PATTERNS = [
    re.compile(r"(qual|de qual) (é|é a|é o) (nossa|a nossa) igreja", re.IGNORECASE),
    re.compile(r"(qual|de qual) igreja", re.IGNORECASE),
    re.compile(r"nome (da|do) igreja", re.IGNORECASE),
    re.compile(r"(somos|é) (de|da) qual igreja", re.IGNORECASE),
]
LEADER_PATTERNS = [
    re.compile(r"(quem|quais) (é|são) (o|a|os|as) líder", re.IGNORECASE),
    re.compile(r"líder(es)? (do|da) (ministério|louvor)", re.IGNORECASE),
    re.compile(r"(quem|quais) lidera (o|a) (ministério|louvor)", re.IGNORECASE),
]

NOT_UNDERSTOOD = (
    "Desculpe, não entendi sua pergunta sobre a história da igreja. Você pode perguntar sobre:\n"
    "- Quem desenvolveu o sistema\n"
    "- Quem são os pastores\n"
    "- Qual é a igreja\n"
    "- Quem são os líderes do ministério de louvor"
)


class ChurchProfile(BaseModel):
    """Institutional facts the history responder answers with."""

    church_name: str = "Igreja Batista Central em Estância - IBCE"
    ministry_name: str = "Ministério de Louvor IBCE"
    pastors: List[str] = Field(default_factory=lambda: ["Pastor Gadiel Lima", "Pastor Daniel Lima"])
    leaders: List[str] = Field(default_factory=lambda: ["Josué Alisson", "Bruno Barros"])
    developer: str = "Josué Alisson"


def _bullets(names: Sequence[str]) -> str:
    return "\n".join(f"- **{name}**" for name in names)


class HistoryAgent:
    """Static answers about the church and the ministry."""

    name = "history"

    def __init__(self, profile: Optional[ChurchProfile] = None):
        self.profile = profile or ChurchProfile()

    def _developer(self) -> str:
        return (
            "## 👨‍💻 Desenvolvedor do Sistema\n\n"
            f"**{self.profile.developer}** desenvolveu este sistema de organização do "
            f"{self.profile.ministry_name}.\n\n"
            "O sistema facilita a gestão de escalas, músicas, membros e disponibilidade, "
            "além de fornecer análises teológicas através de Inteligência Artificial."
        )

    def _pastors(self) -> str:
        return (
            "## 👨‍🦳 Pastores\n\n"
            f"Os pastores da **{self.profile.church_name}** são:\n\n"
            f"{_bullets(self.profile.pastors)}"
        )

    def _church(self) -> str:
        return (
            "## ⛪ Nossa Igreja\n\n"
            f"Somos da **{self.profile.church_name}**, uma igreja comprometida com a "
            "pregação fiel da Palavra de Deus e com a adoração genuína através do "
            "ministério de louvor."
        )

    def _leaders(self) -> str:
        return (
            "## 🎵 Líderes do Ministério de Louvor\n\n"
            f"Os líderes do **{self.profile.ministry_name}** são:\n\n"
            f"{_bullets(self.profile.leaders)}"
        )

    async def process(
        self,
        query: str,
        mentioned_entity: Optional[str] = None,
        history: Sequence[ConversationTurn] = (),
    ) -> AgentResult:
        lower = query.lower().strip()
        if any(pattern.search(lower) for pattern in DEVELOPER_PATTERNS):
            return AgentResult(success=True, response=self._developer())
        if any(pattern.search(lower) for pattern in PASTOR_PATTERNS):
            return AgentResult(success=True, response=self._pastors())
        if any(pattern.search(lower) for pattern in CHURCH_PATTERNS):
            return AgentResult(success=True, response=self._church())
        if any(pattern.search(lower) for pattern in LEADER_PATTERNS):
            return AgentResult(success=True, response=self._leaders())
        return AgentResult(success=False, response=NOT_UNDERSTOOD)
