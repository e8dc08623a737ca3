"""
Mention and command extraction.

- Commands: a leading "/word" followed by whitespace and more text, e.g.
  "/teologia @Benedictus por que isso?". Only KNOWN_COMMANDS are active;
  an unknown "/word" stays in the text as ordinary content.
- Mentions: "@nome da música" references to a catalog entity. Classification
  only acts on the first mention; extract_mentions() returns all of them for
  display purposes.

Pure functions, no I/O.
"""
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

KNOWN_COMMANDS = frozenset({"teologia"})

_COMMAND_PATTERN = re.compile(r"^/(\w+)\s+(.+)$", re.DOTALL)

# A mention never crosses another "@" or sentence-ending punctuation
_MENTION_BOUNDARY = re.compile(r"[@?!.]")
_TRAILING_PUNCTUATION = "?!.,;:"

# Words that start the question around a mention rather than the name itself
_QUESTION_WORDS = frozenset({
    "qual", "quais", "quem", "como", "onde", "quando",
    "porque", "porquê", "significa",
})
# Two-word openers: ("por", "que") and ("o", "que")
_QUESTION_PAIRS = frozenset({("por", "que"), ("por", "quê"), ("o", "que"), ("o", "quê")})
_DANGLING_WORDS = frozenset({"o", "a", "os", "as", "de", "da", "do", "das", "dos", "e"})


@dataclass(frozen=True)
class Extraction:
    """
    Result of extract().

    remainder: input after command removal (equal to the input without a command)
    cleaned: remainder with the "@" mention markers removed
    """

    mention: Optional[str]
    command: Optional[str]
    remainder: str
    cleaned: str


def extract_command(raw: str) -> Tuple[Optional[str], str]:
    """
    Detect an active command prefix.

    Returns:
        (command, remainder) where command is lower-cased, or (None, raw)
        when no known command is present.
    """
    match = _COMMAND_PATTERN.match(raw.strip())
    if match:
        command = match.group(1).lower()
        if command in KNOWN_COMMANDS:
            return command, match.group(2).strip()
    return None, raw


def _read_mention(text: str, start: int) -> Tuple[Optional[str], int]:
    """Read the mention whose "@" sits at `start`. Returns (name, end_index)."""
    body_start = start + 1
    boundary = _MENTION_BOUNDARY.search(text, body_start)
    end = boundary.start() if boundary else len(text)
    tokens = text[body_start:end].split()

    parts: List[str] = []
    for index, token in enumerate(tokens):
        word = token.lower().rstrip(_TRAILING_PUNCTUATION)
        next_word = (
            tokens[index + 1].lower().rstrip(_TRAILING_PUNCTUATION)
            if index + 1 < len(tokens)
            else ""
        )
        if parts and (word in _QUESTION_WORDS or (word, next_word) in _QUESTION_PAIRS):
            break

        stripped = token.rstrip(_TRAILING_PUNCTUATION)
        if stripped:
            parts.append(stripped)
        if stripped != token:
            break

    while len(parts) > 1 and parts[-1].lower() in _DANGLING_WORDS:
        parts.pop()

    name = " ".join(parts).strip()
    return (name or None), end


def extract_mentions(raw: str) -> List[str]:
    """Return every mention in order of appearance."""
    mentions: List[str] = []
    position = raw.find("@")
    while position != -1:
        name, end = _read_mention(raw, position)
        if name:
            mentions.append(name)
        position = raw.find("@", max(end, position + 1))
    return mentions


def extract_mention(raw: str) -> Optional[str]:
    """Return the first mention, or None."""
    position = raw.find("@")
    while position != -1:
        name, end = _read_mention(raw, position)
        if name:
            return name
        position = raw.find("@", max(end, position + 1))
    return None


def extract(raw: str) -> Extraction:
    """Split a raw query into command, first mention and cleaned text."""
    command, remainder = extract_command(raw)
    mention = extract_mention(remainder)
    cleaned = re.sub(r"@(?=\S)", "", remainder).strip()
    return Extraction(
        mention=mention,
        command=command,
        remainder=remainder,
        cleaned=cleaned,
    )
