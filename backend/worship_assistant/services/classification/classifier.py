"""
Rule-based query classifier.

Composes extraction and scoring into a single ClassifiedQuery. Decision
precedence (first match wins):

1. Active command (/teologia) → theological
2. Priority override pattern → theological (theology + music)
3. History pattern → history
4. Greeting → general
5. Help request → general
6. Two or more main categories scoring >= HYBRID_THRESHOLD → hybrid
7. Highest main score, ties by theological > music > schedule > user;
   nothing scored → general

classify() is total and deterministic: every string (including "") maps to
exactly one ClassifiedQuery and identical input yields an identical result.
"""
from typing import Dict, Optional

from worship_assistant.core.logging import get_logger
from worship_assistant.core.metrics import record_query_classification
from worship_assistant.services.ai.schema import ClassifiedQuery, QueryType
from worship_assistant.services.classification.extraction import extract
from worship_assistant.services.classification.scoring import ScoreTable, score

logger = get_logger(__name__)

HYBRID_THRESHOLD = 2

GREETINGS = ("oi", "olá", "ola", "bom dia", "boa tarde", "boa noite", "hey", "e aí", "e ai")
HELP_WORDS = ("ajuda", "help")
HELP_PHRASES = ("o que você faz", "o que voce faz", "como funciona")
# "louvar" must never read as a help request
HELP_EXCLUDED_WORD = "louvar"

COMMAND_OVERRIDES: Dict[str, QueryType] = {
    "teologia": QueryType.THEOLOGICAL,
}

CATEGORY_NAMES: Dict[QueryType, str] = {
    QueryType.THEOLOGICAL: "theological",
    QueryType.MUSIC_SEARCH: "music",
    QueryType.SCHEDULE: "schedule",
    QueryType.USER_INFO: "user",
}

INTENTS: Dict[QueryType, str] = {
    QueryType.THEOLOGICAL: "Análise teológica",
    QueryType.MUSIC_SEARCH: "Busca de músicas",
    QueryType.SCHEDULE: "Informações de escalas",
    QueryType.USER_INFO: "Informações de usuários",
    QueryType.HISTORY: "História da igreja, pastores, líderes ou desenvolvedor",
    QueryType.GENERAL: "Informação geral",
}

QUERY_TYPE_LABELS: Dict[QueryType, str] = {
    QueryType.THEOLOGICAL: "📖 Análise Teológica",
    QueryType.MUSIC_SEARCH: "🎵 Busca de Músicas",
    QueryType.SCHEDULE: "📅 Escalas e Disponibilidade",
    QueryType.USER_INFO: "👥 Informações de Membros",
    QueryType.HISTORY: "📚 História da Igreja",
    QueryType.HYBRID: "🔀 Consulta Múltipla",
    QueryType.GENERAL: "ℹ️ Informação Geral",
}


def describe_query_type(query_type: QueryType) -> str:
    """User-facing label for a query type."""
    return QUERY_TYPE_LABELS[query_type]


def _normalize(text: str) -> str:
    return " ".join(text.lower().split())


def is_greeting(lower_query: str) -> bool:
    bare = lower_query.rstrip("!?.,")
    return any(
        bare == greeting
        or lower_query.startswith(greeting + " ")
        for greeting in GREETINGS
    )


def is_help_request(lower_query: str) -> bool:
    if HELP_EXCLUDED_WORD in lower_query:
        return False
    for word in HELP_WORDS:
        if lower_query in (word, f"{word}?", f"o que é {word}", f"o que e {word}"):
            return True
        if lower_query.startswith(f"{word} "):
            return True
    return any(phrase in lower_query for phrase in HELP_PHRASES)


def _single_category_result(
    query_type: QueryType,
    intent: str,
    table: ScoreTable,
    mention: Optional[str],
    original: str,
    cleaned: str,
) -> ClassifiedQuery:
    return ClassifiedQuery(
        type=query_type,
        intent=intent,
        keywords=frozenset(table.keywords),
        requires_music=table.score_of(QueryType.MUSIC_SEARCH) > 0,
        requires_schedule=table.score_of(QueryType.SCHEDULE) > 0,
        requires_user=table.score_of(QueryType.USER_INFO) > 0,
        requires_theology=table.score_of(QueryType.THEOLOGICAL) > 0,
        mentioned_entity=mention,
        original_query=original,
        cleaned_query=cleaned,
    )


def _decide(raw: str) -> ClassifiedQuery:
    extraction = extract(raw)
    mention = extraction.mention
    cleaned = extraction.remainder

    # 1. Command override
    forced = COMMAND_OVERRIDES.get(extraction.command or "")
    if forced is not None:
        return ClassifiedQuery(
            type=forced,
            intent=f"Análise teológica (comando /{extraction.command})",
            keywords=frozenset({extraction.command, "comando"}),
            requires_music=bool(mention),
            requires_theology=True,
            mentioned_entity=mention,
            original_query=raw,
            cleaned_query=cleaned,
        )

    table = score(cleaned, mention=mention)
    keywords = frozenset(table.keywords)

    # 2. Priority override
    if table.priority_fired:
        return ClassifiedQuery(
            type=QueryType.THEOLOGICAL,
            intent="Análise teológica de músicas com base bíblica",
            keywords=keywords,
            requires_music=True,
            requires_theology=True,
            mentioned_entity=mention,
            original_query=raw,
            cleaned_query=cleaned,
        )

    # 3. History
    if table.history_fired:
        return ClassifiedQuery(
            type=QueryType.HISTORY,
            intent=INTENTS[QueryType.HISTORY],
            keywords=keywords,
            mentioned_entity=mention,
            original_query=raw,
            cleaned_query=cleaned,
        )

    lower = _normalize(cleaned)

    # 4. Greeting
    if is_greeting(lower):
        return ClassifiedQuery(
            type=QueryType.GENERAL,
            intent="greeting",
            keywords=frozenset({"saudação"}),
            mentioned_entity=mention,
            original_query=raw,
            cleaned_query=cleaned,
        )

    # 5. Help
    if is_help_request(lower):
        return ClassifiedQuery(
            type=QueryType.GENERAL,
            intent="help",
            keywords=frozenset({"ajuda"}),
            mentioned_entity=mention,
            original_query=raw,
            cleaned_query=cleaned,
        )

    # 6. Hybrid
    strong = table.strong_categories(HYBRID_THRESHOLD)
    if len(strong) >= 2:
        names = " + ".join(CATEGORY_NAMES[category] for category in strong)
        return _single_category_result(
            QueryType.HYBRID, f"Combina {names}", table, mention, raw, cleaned
        )

    # 7. Highest score
    best = table.best_category()
    if best is not None:
        return _single_category_result(best, INTENTS[best], table, mention, raw, cleaned)

    if table.score_of(QueryType.HISTORY) > 0:
        return ClassifiedQuery(
            type=QueryType.HISTORY,
            intent=INTENTS[QueryType.HISTORY],
            keywords=keywords,
            mentioned_entity=mention,
            original_query=raw,
            cleaned_query=cleaned,
        )

    return _single_category_result(
        QueryType.GENERAL, INTENTS[QueryType.GENERAL], table, mention, raw, cleaned
    )


def classify(raw: Optional[str]) -> ClassifiedQuery:
    """
    Classify a raw user query.

    Args:
        raw: Query as typed by the user (None is treated as "")

    Returns:
        ClassifiedQuery for the query; never raises for string input.
    """
    classification = _decide(raw or "")
    record_query_classification(classification.type.value)
    logger.info(
        "query_classified",
        query_type=classification.type.value,
        intent=classification.intent,
        mentioned_entity=classification.mentioned_entity,
        keywords=sorted(classification.keywords),
    )
    return classification
