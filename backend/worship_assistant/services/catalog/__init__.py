"""
Ministry data access.

Responders depend on the SongSource, MemberSource and ScheduleSource
protocols only; the in-memory implementations back tests and single-process
deployments (optionally loaded from CATALOG_PATH, MEMBERS_PATH and
SCHEDULE_PATH).
"""
from worship_assistant.services.catalog.ministry import (
    InMemoryMemberSource,
    InMemoryScheduleSource,
    MemberSource,
    ScheduleSource,
    get_member_source,
    get_schedule_source,
    match_members,
    set_member_source,
    set_schedule_source,
)
from worship_assistant.services.catalog.songs import (
    InMemorySongSource,
    SongSource,
    get_song_source,
    normalize_for_search,
    set_song_source,
)

__all__ = [
    "InMemoryMemberSource",
    "InMemoryScheduleSource",
    "InMemorySongSource",
    "MemberSource",
    "ScheduleSource",
    "SongSource",
    "get_member_source",
    "get_schedule_source",
    "get_song_source",
    "match_members",
    "normalize_for_search",
    "set_member_source",
    "set_schedule_source",
    "set_song_source",
]
