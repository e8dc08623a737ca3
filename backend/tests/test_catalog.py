"""
Tests for the in-memory song catalog, title resolution and the member and
schedule sources.
"""
import json
from datetime import date

import pytest

from worship_assistant.core.config import reset_settings
from worship_assistant.services.catalog import (
    InMemoryMemberSource,
    InMemoryScheduleSource,
    InMemorySongSource,
    get_member_source,
    get_schedule_source,
    get_song_source,
    match_members,
    normalize_for_search,
    set_member_source,
    set_schedule_source,
    set_song_source,
)
from worship_assistant.services.ai.schema import Member, Song


def _source(*titles):
    return InMemorySongSource(
        Song(id=f"id-{index}", title=title) for index, title in enumerate(titles)
    )


def test_normalize_for_search():
    assert normalize_for_search("  Alfa e ÔMEGA ") == "alfa e omega"
    assert normalize_for_search("Pão da Vida") == "pao da vida"


def test_list_songs_is_ordered_by_title(catalog):
    titles = [song.title for song in catalog.list_songs()]

    assert titles == ["10000 Razões", "Alfa e Ômega", "Benedictus", "Bondade de Deus", "Pão da Vida"]
    assert len(catalog.list_songs(limit=2)) == 2


@pytest.mark.parametrize(
    "name,expected",
    [
        ("Pão da Vida", "Pão da Vida"),
        ("pao da vida", "Pão da Vida"),
        ("@Benedictus?", "Benedictus"),
        ("Bondade", "Bondade de Deus"),
        ("alfa omega", "Alfa e Ômega"),
    ],
)
def test_find_by_title(catalog, name, expected):
    assert catalog.find_by_title(name).title == expected


def test_exact_title_beats_longer_match():
    source = _source("Santo Santo Santo", "Santo")

    assert source.find_by_title("santo").title == "Santo"


def test_prefix_beats_substring():
    source = _source("Aquele Grande Amor", "Grande Amor de Deus", "Grande é o Senhor")

    assert source.find_by_title("grande amor").title == "Grande Amor de Deus"


@pytest.mark.parametrize("name", ["", "a", "@", "Xyzzy"])
def test_find_by_title_not_found(catalog, name):
    assert catalog.find_by_title(name) is None


def test_from_json(tmp_path):
    path = tmp_path / "songs.json"
    path.write_text(
        json.dumps([{"id": "1", "title": "Sublime Graça", "lyrics": ["Sublime graça do Senhor"]}]),
        encoding="utf-8",
    )

    source = InMemorySongSource.from_json(path)

    assert len(source) == 1
    assert source.find_by_title("sublime").lyrics == ["Sublime graça do Senhor"]


def test_from_json_rejects_non_array(tmp_path):
    path = tmp_path / "songs.json"
    path.write_text(json.dumps({"title": "x"}), encoding="utf-8")

    with pytest.raises(ValueError):
        InMemorySongSource.from_json(path)


def test_global_source_reads_catalog_path(tmp_path, monkeypatch):
    path = tmp_path / "songs.json"
    path.write_text(json.dumps([{"id": "1", "title": "Sublime Graça"}]), encoding="utf-8")
    monkeypatch.setenv("CATALOG_PATH", str(path))
    reset_settings()
    set_song_source(None)

    try:
        assert len(get_song_source()) == 1
        assert get_song_source() is get_song_source()
    finally:
        set_song_source(None)


# ============================================================================
# Members and schedules
# ============================================================================


def test_members_are_ordered_by_name(members):
    assert [member.id for member in members.list_members()] == ["ana", "bruno", "carla", "davi"]
    assert members.get_member("carla").instrument == "Teclado"
    assert members.get_member("missing") is None


def test_member_display_name_falls_back_to_email():
    member = Member(id="x", email="louvor@igreja.org")

    assert member.display_name == "louvor@igreja.org"


@pytest.mark.parametrize(
    "text, expected",
    [
        ("A Ana está disponível?", ["ana"]),
        ("bruno lima toca hoje?", ["bruno"]),
        ("CARLA e Davi", ["carla", "davi"]),
        ("Anastácia vem?", []),
        ("ninguém", []),
    ],
)
def test_match_members(members, text, expected):
    assert [member.id for member in match_members(text, members.list_members())] == expected


def test_schedule_ranges(schedule):
    assert [entry.id for entry in schedule.entries_between(date(2026, 10, 25), date(2026, 10, 25))] == [
        "e1",
        "e2",
        "e3",
    ]
    assert [entry.id for entry in schedule.entries_between(date(2026, 10, 19))] == ["e1", "e2", "e3", "e4"]
    assert [item.member_id for item in schedule.availability_from(date(2026, 10, 21))] == ["ana", "bruno"]
    assert schedule.service_days_from(date(2026, 10, 19), limit=1) == [date(2026, 10, 25)]


def test_schedule_from_json(tmp_path):
    path = tmp_path / "schedule.json"
    path.write_text(
        json.dumps(
            {
                "entries": [
                    {"id": "b", "day": "2026-10-25", "member_id": "ana", "order": 2},
                    {"id": "a", "day": "2026-10-25", "member_id": "bruno", "function": "musico", "order": 1},
                ],
                "availability": [{"member_id": "ana", "day": "2026-10-25", "status": "indisponivel"}],
                "service_days": ["2026-10-25"],
            }
        ),
        encoding="utf-8",
    )

    source = InMemoryScheduleSource.from_json(path)

    assert [entry.id for entry in source.entries_between(date(2026, 10, 1))] == ["a", "b"]
    assert source.availability_from(date(2026, 10, 1))[0].status == "indisponivel"
    assert source.service_days_from(date(2026, 10, 1)) == [date(2026, 10, 25)]


def test_schedule_from_json_rejects_array(tmp_path):
    path = tmp_path / "schedule.json"
    path.write_text(json.dumps([]), encoding="utf-8")

    with pytest.raises(ValueError):
        InMemoryScheduleSource.from_json(path)


def test_global_ministry_sources_read_paths(tmp_path, monkeypatch):
    members_path = tmp_path / "members.json"
    members_path.write_text(json.dumps([{"id": "ana", "name": "Ana Souza"}]), encoding="utf-8")
    monkeypatch.setenv("MEMBERS_PATH", str(members_path))
    reset_settings()
    set_member_source(None)
    set_schedule_source(None)

    try:
        assert len(get_member_source()) == 1
        assert isinstance(get_member_source(), InMemoryMemberSource)
        assert len(get_schedule_source()) == 0
    finally:
        set_member_source(None)
        set_schedule_source(None)
