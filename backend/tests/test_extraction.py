"""
Unit tests for mention and command extraction.
"""
import pytest

from worship_assistant.services.classification.extraction import (
    extract,
    extract_command,
    extract_mention,
    extract_mentions,
)


def test_mention_stops_before_question():
    """The mention ends where the question around it starts."""
    result = extract("@Pão da Vida qual a base?")

    assert result.mention == "Pão da Vida"
    assert result.command is None
    assert not result.cleaned.startswith("@")
    assert "@" not in result.cleaned


def test_command_and_mention_together():
    """A known command is stripped and the mention is read from the remainder."""
    result = extract("/teologia @Benedictus por que isso?")

    assert result.command == "teologia"
    assert result.mention == "Benedictus"
    assert result.remainder == "@Benedictus por que isso?"
    assert result.cleaned == "Benedictus por que isso?"


def test_command_is_lowercased():
    command, remainder = extract_command("/TEOLOGIA analise esta letra")

    assert command == "teologia"
    assert remainder == "analise esta letra"


def test_unknown_command_stays_in_text():
    """An unrecognized /word is ordinary content."""
    command, remainder = extract_command("/ajuda me mostre as músicas")

    assert command is None
    assert remainder == "/ajuda me mostre as músicas"


def test_command_without_text_is_not_a_command():
    command, remainder = extract_command("/teologia")

    assert command is None
    assert remainder == "/teologia"


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("@Benedictus", "Benedictus"),
        ("@Benedictus!", "Benedictus"),
        ("Fale sobre @Alfa e Ômega, o que significa?", "Alfa e Ômega"),
        ("@10000 Razões. Tem cifra?", "10000 Razões"),
        ("Qual a letra de @Bondade de Deus", "Bondade de Deus"),
    ],
)
def test_mention_trailing_punctuation_is_stripped(raw, expected):
    assert extract_mention(raw) == expected


def test_no_mention():
    assert extract_mention("quais músicas temos?") is None
    assert extract_mention("@ ?") is None


def test_classification_uses_first_mention_only():
    """extract() keeps the first mention; extract_mentions() returns all of them."""
    raw = "compare @Pão da Vida e @Benedictus"

    assert extract(raw).mention == "Pão da Vida"
    assert extract_mentions(raw) == ["Pão da Vida", "Benedictus"]


def test_extract_is_pure():
    raw = "/teologia @Benedictus por que isso?"
    assert extract(raw) == extract(raw)
