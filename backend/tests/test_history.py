"""
Unit tests for conversation history trimming.
"""
from worship_assistant.services.ai.history import trim_history
from worship_assistant.services.ai.schema import ConversationTurn


def _turns(*pairs):
    return [ConversationTurn(role=role, content=content) for role, content in pairs]


def _alternating(count, last_role="assistant"):
    roles = ["user", "assistant"] if last_role == "assistant" else ["assistant", "user"]
    return [
        ConversationTurn(role=roles[index % 2], content=f"turn {index}")
        for index in range(count)
    ]


def test_twelve_alternating_turns_keep_last_four():
    history = _alternating(12)
    trimmed = trim_history(history)

    assert len(trimmed) == 4
    assert trimmed[-1].role == "assistant"
    assert [turn.content for turn in trimmed] == ["turn 8", "turn 9", "turn 10", "turn 11"]
    assert all(a.role != b.role for a, b in zip(trimmed, trimmed[1:]))


def test_trailing_user_turn_is_dropped():
    history = _alternating(12, last_role="user")
    trimmed = trim_history(history)

    assert len(trimmed) == 4
    assert trimmed[-1].role == "assistant"
    assert trimmed[-1].content == "turn 10"


def test_consecutive_same_role_collapse_to_last():
    history = _turns(
        ("user", "primeira"),
        ("user", "segunda"),
        ("assistant", "resposta antiga"),
        ("assistant", "resposta nova"),
    )
    trimmed = trim_history(history)

    assert [(turn.role, turn.content) for turn in trimmed] == [
        ("user", "segunda"),
        ("assistant", "resposta nova"),
    ]


def test_other_roles_are_dropped_before_collapsing():
    history = _turns(
        ("user", "pergunta"),
        ("system", "instruções"),
        ("assistant", "a"),
        ("tool", "x"),
        ("assistant", "b"),
    )
    trimmed = trim_history(history)

    assert [(turn.role, turn.content) for turn in trimmed] == [("user", "pergunta"), ("assistant", "b")]


def test_input_is_not_mutated():
    history = _alternating(7, last_role="user")
    snapshot = [turn.model_copy() for turn in history]

    trimmed = trim_history(history)
    trimmed[0].content = "alterado"

    assert history == snapshot


def test_empty_and_custom_limits():
    assert trim_history([]) == []
    assert trim_history(_alternating(6), max_turns=2)[0].content == "turn 4"
    assert trim_history(_alternating(6), max_turns=0) == []
