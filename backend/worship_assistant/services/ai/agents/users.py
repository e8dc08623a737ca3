"""
Member responder.

Handles, in order: instrument questions ("quem toca violão?"), birthdays,
singers/musicians listings, member counts, full listing and questions about a
named member. Answers that name members carry a UserAttachment under the
"users" key.
"""
import re
from datetime import date
from typing import Callable, Dict, List, Optional, Sequence

from worship_assistant.core.logging import get_logger
from worship_assistant.services.ai.agents.dates import day_and_month
from worship_assistant.services.ai.schema import (
    AgentResult,
    Attachment,
    ConversationTurn,
    Member,
    UserAttachment,
)
from worship_assistant.services.catalog import (
    MemberSource,
    get_member_source,
    match_members,
    normalize_for_search,
)

logger = get_logger(__name__)

INSTRUMENT_QUERY = re.compile(
    r"quem toca|toca (o |a )?(violão|guitarra|bateria|teclado|baixo|piano|violino|saxofone|flauta|trompete)"
    r"|instrumentista|músico"
)
BIRTHDAY_QUERY = re.compile(r"anivers[aá]riante|anivers[aá]rio|nascimento|faz aniversário")
ROLE_QUERY = re.compile(r"(lista|quem [eé]|quantos)( de| os| as| dos| das)? (cantor|cantora|m[uú]sico)")
COUNT_QUERY = re.compile(r"quantos? (membros?|pessoas?|usu[aá]rios?)")
LIST_QUERY = re.compile(
    r"(lista|mostre|quais|todos|nomes) (os |as |dos |de )?(membros?|pessoas?|usu[aá]rios?|integrantes?)"
    r"|nomes dos integrantes|quem (são|sao)"
)

# "contrabaixo" is checked before "baixo"
INSTRUMENTS = (
    "violão", "guitarra", "bateria", "teclado", "contrabaixo", "baixo", "piano",
    "violino", "saxofone", "flauta", "trompete", "pandeiro",
)
ROLE_LABELS = {
    "cantor": "🎙️ Cantor(a)",
    "musico": "🎸 Músico(a)",
    "ambos": "🎤🎸 Cantor(a) e Músico(a)",
}


def _plural(count: int, suffix: str = "s") -> str:
    return "" if count == 1 else suffix


def _attachments(members: Sequence[Member]) -> Dict[str, Attachment]:
    return {"users": UserAttachment(members=[member.summary() for member in members])}


def _numbered(members: Sequence[Member]) -> List[str]:
    lines: List[str] = []
    for position, member in enumerate(members, start=1):
        lines += [f"{position}. **{member.display_name}**", f"   - {ROLE_LABELS[member.role]}"]
        if member.instrument:
            lines.append(f"   - Instrumento: {member.instrument}")
        lines.append("")
    return lines


class UserAgent:
    """Looks up ministry members."""

    name = "users"

    def __init__(
        self,
        members: Optional[MemberSource] = None,
        today: Callable[[], date] = date.today,
    ):
        self.members = members if members is not None else get_member_source()
        self.today = today

    async def process(
        self,
        query: str,
        mentioned_entity: Optional[str] = None,
        history: Sequence[ConversationTurn] = (),
    ) -> AgentResult:
        lower = query.lower()
        if INSTRUMENT_QUERY.search(lower):
            return self._by_instrument(lower)
        if BIRTHDAY_QUERY.search(lower):
            return self._birthdays()
        if ROLE_QUERY.search(lower):
            return self._by_role(lower)
        if COUNT_QUERY.search(lower):
            return self._count()
        if LIST_QUERY.search(lower):
            return self._list_all()

        named = match_members(query, self.members.list_members())
        if named:
            return self._details(named)
        return self._general_info()

    def _by_instrument(self, lower_query: str) -> AgentResult:
        instrument = next((name for name in INSTRUMENTS if name in lower_query), None)
        members = [member for member in self.members.list_members() if member.instrument]
        if instrument:
            wanted = normalize_for_search(instrument)
            members = [
                member for member in members if normalize_for_search(member.instrument or "") == wanted
            ]
        logger.debug("members_by_instrument", instrument=instrument, matches=len(members))

        if not members:
            response = (
                f"## 🎸 Músicos de {instrument}\n\n❌ Não há membros cadastrados que tocam {instrument}."
                if instrument
                else "## 🎸 Músicos\n\n❌ Não há músicos cadastrados no momento."
            )
            return AgentResult(success=True, response=response)

        title = f"## 🎸 Músicos que tocam {instrument}" if instrument else "## 🎸 Todos os Músicos"
        lines = [title, "", f"**Total:** {len(members)} pessoa{_plural(len(members))}", "", *_numbered(members)]
        return AgentResult(success=True, response="\n".join(lines).rstrip(), attachments=_attachments(members))

    def _birthdays(self) -> AgentResult:
        members = sorted(
            (member for member in self.members.list_members() if member.birth_date),
            key=lambda member: (member.birth_date.month, member.birth_date.day),
        )
        if not members:
            return AgentResult(
                success=True,
                response="## 🎂 Aniversariantes\n\n❌ Não há informações de aniversários cadastradas.",
            )

        month = self.today().month
        of_month = [member for member in members if member.birth_date.month == month]

        lines = ["## 🎂 Aniversariantes do Mês", ""]
        if of_month:
            lines += [f"**Total:** {len(of_month)} pessoa{_plural(len(of_month))}", ""]
            for member in of_month:
                lines += [f"🎉 **{member.display_name}**", f"   - Data: {day_and_month(member.birth_date)}"]
                if member.instrument:
                    lines.append(f"   - Instrumento: {member.instrument}")
                lines.append("")
        else:
            lines += ["❌ Não há aniversariantes neste mês.", ""]

        lines += ["### 📅 Todos os Aniversários:", ""]
        lines += [f"- {member.display_name}: {member.birth_date.strftime('%d/%m')}" for member in members]
        return AgentResult(
            success=True,
            response="\n".join(lines),
            attachments=_attachments(of_month) if of_month else {},
        )

    def _by_role(self, lower_query: str) -> AgentResult:
        if "cantor" in lower_query:
            role: Optional[str] = "cantor"
        elif "músico" in lower_query or "musico" in lower_query:
            role = "musico"
        else:
            role = None

        members = self.members.list_members()
        if role:
            members = [member for member in members if member.role in (role, "ambos")]
        title = {"cantor": "## 🎙️ Cantores", "musico": "## 🎸 Músicos"}.get(role or "", "## 👥 Todos os Membros")

        if not members:
            plural = {"cantor": "cantores", "musico": "músicos"}.get(role or "", "membros")
            return AgentResult(success=True, response=f"{title}\n\n❌ Não há {plural} cadastrados.")

        lines = [title, "", f"**Total:** {len(members)} pessoa{_plural(len(members))}", "", *_numbered(members)]
        return AgentResult(success=True, response="\n".join(lines).rstrip(), attachments=_attachments(members))

    def _count(self) -> AgentResult:
        members = self.members.list_members()
        total = len(members)
        singers = sum(1 for member in members if member.role in ("cantor", "ambos"))
        musicians = sum(1 for member in members if member.role in ("musico", "ambos"))

        def percent(part: int) -> int:
            return round(part * 100 / total) if total else 0

        response = (
            "## 📊 Estatísticas de Membros\n\n"
            f"**Total de Membros:** {total}\n\n"
            "### Detalhamento:\n"
            f"- 🎙️ Cantores: **{singers}** ({percent(singers)}%)\n"
            f"- 🎸 Músicos: **{musicians}** ({percent(musicians)}%)"
        )
        return AgentResult(success=True, response=response)

    def _list_all(self) -> AgentResult:
        members = self.members.list_members()
        if not members:
            return AgentResult(success=True, response="## 👥 Todos os Membros\n\n❌ Não há membros cadastrados.")
        lines = [
            "## 👥 Todos os Membros",
            "",
            f"**Total:** {len(members)} membro{_plural(len(members))}",
            "",
            *_numbered(members),
        ]
        return AgentResult(success=True, response="\n".join(lines).rstrip(), attachments=_attachments(members))

    def _details(self, members: Sequence[Member]) -> AgentResult:
        names = ", ".join(member.display_name for member in members)
        count = len(members)
        lines = [
            f'## 🔍 Resultado da Busca: "{names}"',
            "",
            f"**Encontrado{_plural(count)}:** {count} pessoa{_plural(count)}",
            "",
        ]
        for position, member in enumerate(members, start=1):
            crown = " 👑" if member.leader else ""
            lines += [f"### {position}. {member.display_name}{crown}", "", f"- **Cargo:** {ROLE_LABELS[member.role]}"]
            if member.instrument:
                lines.append(f"- **Instrumento:** {member.instrument}")
            if member.birth_date:
                lines.append(f"- **Aniversário:** {day_and_month(member.birth_date)}")
            if member.leader:
                lines.append("- **Função:** Líder/Admin")
            lines.append("")
        return AgentResult(success=True, response="\n".join(lines).rstrip(), attachments=_attachments(members))

    def _general_info(self) -> AgentResult:
        response = (
            "## 👥 Informações de Membros\n\n"
            f"**Total de Membros:** {len(self.members.list_members())}\n\n"
            "### O que posso fazer:\n"
            '- "Lista de cantores"\n'
            '- "Quem toca violão?"\n'
            '- "Aniversariantes do mês"\n'
            '- "Quantos membros temos?"\n'
            '- "Informações sobre [nome]"'
        )
        return AgentResult(success=True, response=response)
