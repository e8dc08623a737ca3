"""
Member and schedule sources.

Same shape as the song catalog: a read-only protocol for responders plus an
in-memory implementation that can be loaded from JSON (MEMBERS_PATH,
SCHEDULE_PATH).

Members file: a JSON array of members.
Schedule file: {"entries": [...], "availability": [...], "service_days": ["YYYY-MM-DD", ...]}
"""
import json
import re
from datetime import date
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol, Union

from worship_assistant.core.config import get_settings
from worship_assistant.core.logging import get_logger
from worship_assistant.services.ai.schema import Availability, Member, ScheduleEntry
from worship_assistant.services.catalog.songs import normalize_for_search

logger = get_logger(__name__)


class MemberSource(Protocol):
    """Read access to the ministry members."""

    def list_members(self) -> List[Member]:
        ...

    def get_member(self, member_id: str) -> Optional[Member]:
        ...


class ScheduleSource(Protocol):
    """Read access to schedules, availability and service days."""

    def entries_between(self, start: date, end: Optional[date] = None) -> List[ScheduleEntry]:
        ...

    def availability_from(self, start: date) -> List[Availability]:
        ...

    def service_days_from(self, start: date, limit: Optional[int] = None) -> List[date]:
        ...


def _read_json(path: Union[str, Path]) -> Any:
    with open(path, "r", encoding="utf-8") as handle:
        return json.load(handle)


def match_members(text: str, members: Iterable[Member]) -> List[Member]:
    """
    Members named in a free-text question.

    A member matches when their full name appears in the text, or their first
    name (3+ characters) appears as a whole word. Accents and case are ignored.
    """
    normalized_text = " ".join(re.findall(r"\w+", normalize_for_search(text)))
    words = set(normalized_text.split())
    matched: List[Member] = []
    for member in members:
        if not member.name:
            continue
        full_name = " ".join(re.findall(r"\w+", normalize_for_search(member.name)))
        first_name = full_name.split()[0] if full_name else ""
        if full_name and f" {full_name} " in f" {normalized_text} ":
            matched.append(member)
        elif len(first_name) >= 3 and first_name in words:
            matched.append(member)
    return matched


class InMemoryMemberSource:
    """MemberSource over a list held in memory, ordered by display name."""

    def __init__(self, members: Iterable[Member] = ()):
        self._members: List[Member] = sorted(
            members, key=lambda member: normalize_for_search(member.display_name)
        )
        self._by_id: Dict[str, Member] = {member.id: member for member in self._members}

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "InMemoryMemberSource":
        payload = _read_json(path)
        if not isinstance(payload, list):
            raise ValueError(f"Members file {path} must contain a JSON array")
        members = [Member.model_validate(item) for item in payload]
        logger.info("members_loaded", path=str(path), members=len(members))
        return cls(members)

    def __len__(self) -> int:
        return len(self._members)

    def list_members(self) -> List[Member]:
        return list(self._members)

    def get_member(self, member_id: str) -> Optional[Member]:
        return self._by_id.get(member_id)


class InMemoryScheduleSource:
    """ScheduleSource over lists held in memory. Entries are ordered by day, then order."""

    def __init__(
        self,
        entries: Iterable[ScheduleEntry] = (),
        availability: Iterable[Availability] = (),
        service_days: Iterable[date] = (),
    ):
        self._entries = sorted(entries, key=lambda entry: (entry.day, entry.order))
        self._availability = sorted(availability, key=lambda item: item.day)
        self._service_days = sorted(set(service_days))

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "InMemoryScheduleSource":
        payload = _read_json(path)
        if not isinstance(payload, dict):
            raise ValueError(f"Schedule file {path} must contain a JSON object")
        entries = [ScheduleEntry.model_validate(item) for item in payload.get("entries", [])]
        availability = [Availability.model_validate(item) for item in payload.get("availability", [])]
        service_days = [date.fromisoformat(day) for day in payload.get("service_days", [])]
        logger.info(
            "schedule_loaded",
            path=str(path),
            entries=len(entries),
            availability=len(availability),
            service_days=len(service_days),
        )
        return cls(entries, availability, service_days)

    def __len__(self) -> int:
        return len(self._entries)

    def entries_between(self, start: date, end: Optional[date] = None) -> List[ScheduleEntry]:
        return [
            entry
            for entry in self._entries
            if entry.day >= start and (end is None or entry.day <= end)
        ]

    def availability_from(self, start: date) -> List[Availability]:
        return [item for item in self._availability if item.day >= start]

    def service_days_from(self, start: date, limit: Optional[int] = None) -> List[date]:
        days = [day for day in self._service_days if day >= start]
        return days if limit is None else days[:max(limit, 0)]


_member_source: Optional[MemberSource] = None
_schedule_source: Optional[ScheduleSource] = None


def get_member_source() -> MemberSource:
    """Global singleton accessor; loads MEMBERS_PATH when configured, else empty."""
    global _member_source
    if _member_source is None:
        settings = get_settings()
        if settings.members_path:
            _member_source = InMemoryMemberSource.from_json(settings.members_path)
        else:
            logger.warning("members_empty", message="MEMBERS_PATH not set; no members loaded.")
            _member_source = InMemoryMemberSource()
    return _member_source


def set_member_source(source: Optional[MemberSource]) -> None:
    global _member_source
    _member_source = source


def get_schedule_source() -> ScheduleSource:
    """Global singleton accessor; loads SCHEDULE_PATH when configured, else empty."""
    global _schedule_source
    if _schedule_source is None:
        settings = get_settings()
        if settings.schedule_path:
            _schedule_source = InMemoryScheduleSource.from_json(settings.schedule_path)
        else:
            logger.warning("schedule_empty", message="SCHEDULE_PATH not set; no schedules loaded.")
            _schedule_source = InMemoryScheduleSource()
    return _schedule_source


def set_schedule_source(source: Optional[ScheduleSource]) -> None:
    global _schedule_source
    _schedule_source = source
