"""
Conversation history trimming.

The trimmed window is what every downstream inference call sees. The caller's
current query is sent separately, so a trailing user turn is dropped.
"""
from functools import reduce
from typing import List, Sequence, Tuple

from worship_assistant.services.ai.schema import ConversationTurn

DEFAULT_MAX_TURNS = 4
ALLOWED_ROLES = ("user", "assistant")


def _fold_turn(
    collapsed: Tuple[ConversationTurn, ...],
    turn: ConversationTurn,
) -> Tuple[ConversationTurn, ...]:
    if turn.role not in ALLOWED_ROLES:
        return collapsed
    if collapsed and collapsed[-1].role == turn.role:
        # Same role twice in a row: the later turn replaces the earlier one
        return collapsed[:-1] + (turn,)
    return collapsed + (turn,)


def trim_history(
    history: Sequence[ConversationTurn],
    max_turns: int = DEFAULT_MAX_TURNS,
) -> List[ConversationTurn]:
    """
    Derive the bounded history window.

    - turns with a role other than user/assistant are dropped
    - consecutive same-role turns collapse to the last one
    - a trailing user turn is dropped
    - at most the last `max_turns` turns are kept, oldest first

    The input sequence is never mutated.
    """
    collapsed = reduce(_fold_turn, history or (), ())
    if collapsed and collapsed[-1].role == "user":
        collapsed = collapsed[:-1]
    if max_turns <= 0:
        return []
    return [turn.model_copy() for turn in collapsed[-max_turns:]]
