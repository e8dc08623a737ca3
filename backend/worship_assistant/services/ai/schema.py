"""
Pydantic models shared by the classification and orchestration layers.

- ClassifiedQuery: immutable output of the rule-based classifier
- ConversationTurn: one entry of the caller-supplied history
- Song / Member / ScheduleEntry / Availability: ministry data read by responders
- AgentResult: contract returned by every specialized responder
- Attachments: closed, kind-tagged union of responder domain data
- Usage / UsageAccumulator: token accounting for inference calls
- ChatResult: what the caller-facing entry point returns
"""
from datetime import date
from enum import Enum
from typing import Annotated, Any, Dict, FrozenSet, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class QueryType(str, Enum):
    THEOLOGICAL = "theological"
    MUSIC_SEARCH = "music_search"
    SCHEDULE = "schedule"
    USER_INFO = "user_info"
    HISTORY = "history"
    HYBRID = "hybrid"
    GENERAL = "general"


class ClassifiedQuery(BaseModel):
    """
    Classification decision for one incoming query.

    For HYBRID at least two requires_* flags are true. For a single-category
    result the matching flag is true; others may be true as well when their
    category scored incidentally.
    """

    model_config = ConfigDict(frozen=True)

    type: QueryType
    intent: str
    keywords: FrozenSet[str] = frozenset()
    requires_music: bool = False
    requires_schedule: bool = False
    requires_user: bool = False
    requires_theology: bool = False
    mentioned_entity: Optional[str] = None
    original_query: str = ""
    cleaned_query: str = ""


class ConversationTurn(BaseModel):
    """One turn of the conversation. Roles other than user/assistant are dropped by the trimmer."""

    role: str
    content: str = ""


# ----------------------------------------------------------------------------
# Song catalog
# ----------------------------------------------------------------------------


class Song(BaseModel):
    id: str
    title: str
    lyrics: List[str] = Field(default_factory=list)
    chords: List[str] = Field(default_factory=list)
    youtube_link: Optional[str] = None


class SongSummary(BaseModel):
    """Lightweight song reference handed to the display layer."""

    id: str
    title: str
    has_lyrics: bool = False
    has_chords: bool = False
    youtube_link: Optional[str] = None

    @classmethod
    def from_song(cls, song: Song) -> "SongSummary":
        return cls(
            id=song.id,
            title=song.title,
            has_lyrics=bool(song.lyrics),
            has_chords=bool(song.chords),
            youtube_link=song.youtube_link,
        )


# ----------------------------------------------------------------------------
# Ministry members and schedules
# ----------------------------------------------------------------------------


class Member(BaseModel):
    """Ministry member. role: cantor | musico | ambos."""

    id: str
    name: Optional[str] = None
    email: str = ""
    role: Literal["cantor", "musico", "ambos"] = "cantor"
    instrument: Optional[str] = None
    birth_date: Optional[date] = None
    leader: bool = False

    @property
    def display_name(self) -> str:
        return self.name or self.email or self.id

    def summary(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.display_name,
            "role": self.role,
            "instrument": self.instrument,
        }


class ScheduleEntry(BaseModel):
    """
    One member scheduled on a service day.

    Entries with a song_id belong to that song's arrangement; the rest form
    the general line-up of the day.
    """

    id: str
    day: date
    member_id: str
    function: Literal["cantor", "musico", "solo"] = "cantor"
    song_id: Optional[str] = None
    song_title: Optional[str] = None
    order: int = 0


class Availability(BaseModel):
    member_id: str
    day: date
    status: Literal["disponivel", "indisponivel"] = "disponivel"


# ----------------------------------------------------------------------------
# Attachments (tagged union keyed by responder kind)
# ----------------------------------------------------------------------------


class MusicAttachment(BaseModel):
    kind: Literal["music"] = "music"
    songs: List[SongSummary] = Field(default_factory=list)

    def union(self, other: "MusicAttachment") -> "MusicAttachment":
        seen = {song.id for song in self.songs}
        merged = list(self.songs)
        for song in other.songs:
            if song.id not in seen:
                seen.add(song.id)
                merged.append(song)
        return MusicAttachment(songs=merged)


class ScheduleAttachment(BaseModel):
    kind: Literal["schedule"] = "schedule"
    entries: List[Dict[str, Any]] = Field(default_factory=list)

    def union(self, other: "ScheduleAttachment") -> "ScheduleAttachment":
        merged = list(self.entries)
        merged.extend(entry for entry in other.entries if entry not in merged)
        return ScheduleAttachment(entries=merged)


class UserAttachment(BaseModel):
    kind: Literal["users"] = "users"
    members: List[Dict[str, Any]] = Field(default_factory=list)

    def union(self, other: "UserAttachment") -> "UserAttachment":
        seen = {member.get("id") for member in self.members if member.get("id")}
        merged = list(self.members)
        for member in other.members:
            member_id = member.get("id")
            if member_id and member_id in seen:
                continue
            if member_id:
                seen.add(member_id)
            merged.append(member)
        return UserAttachment(members=merged)


Attachment = Annotated[
    Union[MusicAttachment, ScheduleAttachment, UserAttachment],
    Field(discriminator="kind"),
]


def merge_attachments(
    base: Dict[str, Attachment],
    extra: Dict[str, Attachment],
) -> Dict[str, Attachment]:
    """
    Merge two attachment maps by key.

    A key present in both is never overwritten: both values are unioned.
    """
    merged: Dict[str, Attachment] = dict(base)
    for key, attachment in extra.items():
        existing = merged.get(key)
        if existing is None:
            merged[key] = attachment
        elif type(existing) is type(attachment):
            merged[key] = existing.union(attachment)
        else:
            raise TypeError(
                f"Attachment kind mismatch for key {key!r}: "
                f"{existing.kind} vs {attachment.kind}"
            )
    return merged


# ----------------------------------------------------------------------------
# Usage accounting
# ----------------------------------------------------------------------------


class Usage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    def __add__(self, other: "Usage") -> "Usage":
        return Usage(
            prompt_tokens=self.prompt_tokens + other.prompt_tokens,
            completion_tokens=self.completion_tokens + other.completion_tokens,
            total_tokens=self.total_tokens + other.total_tokens,
        )


class UsageAccumulator:
    """Running usage totals for one batch run. Never reset mid-batch."""

    def __init__(self) -> None:
        self._total = Usage()
        self.calls = 0

    def add(self, usage: Optional[Usage]) -> None:
        if usage is None:
            return
        self._total = self._total + usage
        self.calls += 1

    def snapshot(self) -> Usage:
        return self._total.model_copy()


class InferenceResult(BaseModel):
    """Text produced for one analysis, by the inference service or locally."""

    content: str
    model: str
    usage: Optional[Usage] = None


# ----------------------------------------------------------------------------
# Responder and entry-point contracts
# ----------------------------------------------------------------------------


class AgentResult(BaseModel):
    success: bool
    response: str
    attachments: Dict[str, Attachment] = Field(default_factory=dict)
    usage: Optional[Usage] = None
    model: Optional[str] = None


class ChatResult(BaseModel):
    """Result of one handled chat turn."""

    success: bool
    response: str
    agent_used: str
    query_type: QueryType
    query_type_label: str
    classification: Optional[ClassifiedQuery] = None
    usage: Optional[Usage] = None
    model: Optional[str] = None
    is_configured: bool = False
    attachments: Dict[str, Attachment] = Field(default_factory=dict)
