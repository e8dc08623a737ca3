"""
Schedule responder.

Answers, in order of precedence: the next scheduled service, this week's and
this month's schedules, the schedule of a given date ("25/10", "dia 25",
"domingo"), member availability, upcoming service days and a general summary.
Answers that list schedule entries carry a ScheduleAttachment under the
"schedule" key.
"""
import calendar
import re
from datetime import date, timedelta
from typing import Callable, Dict, List, Optional, Sequence

from worship_assistant.core.logging import get_logger
from worship_assistant.services.ai.agents.dates import (
    day_and_month,
    long_date,
    month_name,
    short_date,
    weekday_name,
    weekday_short,
)
from worship_assistant.services.ai.schema import (
    AgentResult,
    Attachment,
    ConversationTurn,
    ScheduleAttachment,
    ScheduleEntry,
)
from worship_assistant.services.catalog import (
    MemberSource,
    ScheduleSource,
    get_member_source,
    get_schedule_source,
    match_members,
)

logger = get_logger(__name__)

NEXT_SCHEDULE = re.compile(r"(próxim[ao]s?|next) (escala|culto|louvor|domingo)|escala (de )?hoje")
WEEK_SCHEDULE = re.compile(r"escala (da|desta|dessa) semana|semana|week")
MONTH_SCHEDULE = re.compile(r"escala (do|deste|desse) m[eê]s|mês|month")
SPECIFIC_DATE = re.compile(
    r"\d{1,2}/\d{1,2}|segunda|terça|terca|quarta|quinta|sexta|s[áa]bado|domingo|dia \d{1,2}"
)
AVAILABILITY = re.compile(r"disponibilidade|disponível|indisponível")
UPCOMING_DAYS = re.compile(r"(pr[óo]xim[ao]s|futur[ao]s) dias (de )?atua[çc][ãa]o")

DAY_MONTH = re.compile(r"(\d{1,2})/(\d{1,2})")
DAY_OF_MONTH = re.compile(r"dia (\d{1,2})")
# Matching order matters: "domingo" wins when several day names appear
WEEKDAY_NUMBERS: Dict[str, int] = {
    "domingo": 6, "segunda": 0, "terça": 1, "terca": 1,
    "quarta": 2, "quinta": 3, "sexta": 4, "sábado": 5, "sabado": 5,
}
FUNCTION_LABELS = {"solo": "🎤 Solo", "cantor": "🎙️ Cantor", "musico": "🎸 Músico"}
UPCOMING_DAYS_LIMIT = 10


def _plural(count: int, suffix: str = "s") -> str:
    return "" if count == 1 else suffix


class ScheduleAgent:
    """Reads the ministry schedule."""

    name = "schedule"

    def __init__(
        self,
        schedules: Optional[ScheduleSource] = None,
        members: Optional[MemberSource] = None,
        today: Callable[[], date] = date.today,
    ):
        self.schedules = schedules if schedules is not None else get_schedule_source()
        self.members = members if members is not None else get_member_source()
        self.today = today

    async def process(
        self,
        query: str,
        mentioned_entity: Optional[str] = None,
        history: Sequence[ConversationTurn] = (),
    ) -> AgentResult:
        lower = query.lower()
        today = self.today()

        if NEXT_SCHEDULE.search(lower):
            return self._next_schedule(today)
        if WEEK_SCHEDULE.search(lower):
            return self._week_schedule(today)
        if MONTH_SCHEDULE.search(lower):
            return self._month_schedule(today)
        if SPECIFIC_DATE.search(lower):
            return self._schedule_by_date(lower, today)
        if AVAILABILITY.search(lower):
            return self._availability(query, today)
        if UPCOMING_DAYS.search(lower):
            return self._upcoming_days(today)
        return self._general_info(today)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _next_schedule(self, today: date) -> AgentResult:
        entries = self.schedules.entries_between(today)
        if not entries:
            return AgentResult(
                success=True,
                response="## 📅 Próxima Escala\n\n❌ Não há escalas futuras cadastradas no momento.",
            )
        next_day = entries[0].day
        return self._single_day([entry for entry in entries if entry.day == next_day], "Próxima Escala")

    def _week_schedule(self, today: date) -> AgentResult:
        # Weeks start on Sunday
        start = today - timedelta(days=(today.weekday() + 1) % 7)
        entries = self.schedules.entries_between(start, start + timedelta(days=6))
        if not entries:
            return AgentResult(
                success=True,
                response="## 📅 Escala da Semana\n\n❌ Não há escalas para esta semana.",
            )
        return self._multiple_days(entries, "Escalas da Semana")

    def _month_schedule(self, today: date) -> AgentResult:
        start = today.replace(day=1)
        end = today.replace(day=calendar.monthrange(today.year, today.month)[1])
        entries = self.schedules.entries_between(start, end)
        if not entries:
            return AgentResult(
                success=True,
                response=f"## 📅 Escalas de {month_name(today)}\n\n❌ Não há escalas para este mês.",
            )
        return self._multiple_days(entries, f"Escalas de {month_name(today)} {today.year}")

    def _schedule_by_date(self, lower_query: str, today: date) -> AgentResult:
        try:
            target = self._target_date(lower_query, today)
        except ValueError:
            return AgentResult(
                success=True,
                response="## 📅 Escala\n\n❌ Não reconheci essa data. Use o formato dd/mm, por exemplo 25/10.",
            )

        entries = self.schedules.entries_between(target, target)
        title = f"Escala de {day_and_month(target)}"
        if not entries:
            return AgentResult(
                success=True,
                response=f"## 📅 {title}\n\n❌ Não há escalas cadastradas para esta data.",
            )
        return self._single_day(entries, title)

    @staticmethod
    def _target_date(lower_query: str, today: date) -> date:
        """
        Resolve the date a question refers to.

        Raises:
            ValueError: the day/month given does not exist.
        """
        match = DAY_MONTH.search(lower_query)
        if match:
            return date(today.year, int(match.group(2)), int(match.group(1)))

        match = DAY_OF_MONTH.search(lower_query)
        if match:
            return today.replace(day=int(match.group(1)))

        for name, weekday in WEEKDAY_NUMBERS.items():
            if name in lower_query:
                days_ahead = (weekday - today.weekday()) % 7
                # Same weekday as today means next week's
                return today + timedelta(days=days_ahead or 7)
        return today

    def _availability(self, query: str, today: date) -> AgentResult:
        items = self.schedules.availability_from(today)
        if not items:
            return AgentResult(
                success=True,
                response="## 📊 Disponibilidade\n\n❌ Não há informações de disponibilidade cadastradas.",
            )

        named = match_members(query, self.members.list_members())
        if named:
            wanted = {member.id for member in named}
            items = [item for item in items if item.member_id in wanted]
            names = ", ".join(member.display_name for member in named)
            title = f"## 📊 Disponibilidade de {names}"
            if not items:
                return AgentResult(
                    success=True,
                    response=f"{title}\n\n❌ Não encontrei informações de disponibilidade para esta pessoa.",
                )
        else:
            title = "## 📊 Disponibilidade Geral"

        by_person: Dict[str, List[str]] = {}
        for item in items:
            status = "✅ Disponível" if item.status == "disponivel" else "❌ Indisponível"
            by_person.setdefault(self._member_name(item.member_id), []).append(
                f"- {short_date(item.day)} ({weekday_name(item.day)}): {status}"
            )

        lines = [title, ""]
        for person, rows in by_person.items():
            lines += [f"**{person}:**", *rows, ""]
        return AgentResult(success=True, response="\n".join(lines).rstrip())

    def _upcoming_days(self, today: date) -> AgentResult:
        days = self.schedules.service_days_from(today, limit=UPCOMING_DAYS_LIMIT)
        if not days:
            return AgentResult(
                success=True,
                response="## 📅 Próximos Dias de Atuação\n\n❌ Não há dias de atuação futuros cadastrados.",
            )

        lines = ["## 📅 Próximos Dias de Atuação", "", f"**Total:** {len(days)} dia{_plural(len(days))}", ""]
        for position, day in enumerate(days, start=1):
            lines += [f"{position}. **{weekday_name(day)}, {day_and_month(day)}**", f"   📅 {short_date(day)}", ""]
        return AgentResult(success=True, response="\n".join(lines).rstrip())

    def _general_info(self, today: date) -> AgentResult:
        entries = self.schedules.entries_between(today)
        days = {entry.day for entry in entries}
        response = (
            "## 📊 Informações de Escalas\n\n"
            f"**Total de pessoas escaladas (futuras):** {len(entries)}\n"
            f"**Datas com escalas:** {len(days)}\n\n"
            "### O que posso fazer:\n"
            '- "Qual a próxima escala?"\n'
            '- "Escala da semana"\n'
            '- "Quem está escalado no domingo?"\n'
            '- "Fulano está disponível dia X?"'
        )
        return AgentResult(success=True, response=response)

    # ------------------------------------------------------------------
    # Formatting
    # ------------------------------------------------------------------

    def _member_name(self, member_id: str) -> str:
        member = self.members.get_member(member_id)
        return member.display_name if member else member_id

    def _with_instrument(self, member_id: str) -> str:
        member = self.members.get_member(member_id)
        name = member.display_name if member else member_id
        if member and member.instrument:
            return f"{name} ({member.instrument})"
        return name

    def _attachments(self, entries: Sequence[ScheduleEntry]) -> Dict[str, Attachment]:
        return {
            "schedule": ScheduleAttachment(
                entries=[
                    {
                        "id": entry.id,
                        "date": entry.day.isoformat(),
                        "member": self._member_name(entry.member_id),
                        "function": entry.function,
                        "song_title": entry.song_title,
                    }
                    for entry in entries
                ]
            )
        }

    def _single_day(self, entries: Sequence[ScheduleEntry], title: str) -> AgentResult:
        lines = [f"## 📅 {title}", "", f"**Data:** {long_date(entries[0].day)}", ""]

        by_song: Dict[str, List[ScheduleEntry]] = {}
        general: List[ScheduleEntry] = []
        for entry in entries:
            if entry.song_id or entry.song_title:
                by_song.setdefault(entry.song_title or "Sem título", []).append(entry)
            else:
                general.append(entry)

        if by_song:
            lines += ["### 🎵 Músicas:", ""]
            for song_title, song_entries in by_song.items():
                lines.append(f'**"{song_title}"**')
                for entry in song_entries:
                    lines.append(f"- {FUNCTION_LABELS[entry.function]}: {self._with_instrument(entry.member_id)}")
                lines.append("")

        if general:
            lines += ["### 👥 Escala Geral:", ""]
            singers = [entry for entry in general if entry.function in ("cantor", "solo")]
            musicians = [entry for entry in general if entry.function == "musico"]
            if singers:
                lines.append("**🎙️ Cantores:**")
                lines += [f"- {self._member_name(entry.member_id)}" for entry in singers]
                lines.append("")
            if musicians:
                lines.append("**🎸 Músicos:**")
                lines += [f"- {self._with_instrument(entry.member_id)}" for entry in musicians]

        logger.debug("schedule_day_formatted", day=entries[0].day.isoformat(), entries=len(entries))
        return AgentResult(
            success=True,
            response="\n".join(lines).rstrip(),
            attachments=self._attachments(entries),
        )

    def _multiple_days(self, entries: Sequence[ScheduleEntry], title: str) -> AgentResult:
        by_day: Dict[date, List[str]] = {}
        for entry in entries:
            names = by_day.setdefault(entry.day, [])
            name = self._member_name(entry.member_id)
            if name not in names:
                names.append(name)

        lines = [f"## 📅 {title}", "", f"**Total de datas:** {len(by_day)}", ""]
        for day, names in by_day.items():
            suffix = _plural(len(names))
            lines += [
                f"### {weekday_short(day)}",
                f"**{len(names)} pessoa{suffix} escalada{suffix}:**",
                *[f"- {name}" for name in names],
                "",
            ]
        return AgentResult(
            success=True,
            response="\n".join(lines).rstrip(),
            attachments=self._attachments(entries),
        )
