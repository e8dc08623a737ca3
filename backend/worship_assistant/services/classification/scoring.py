"""
Weighted keyword/pattern scoring over the five query categories.

Weights:
- keyword substring hit: +1
- category pattern hit: +3 (multi-word idioms such as "base bíblica")
- @mention boost: +5 to THEOLOGICAL when the text asks for interpretation,
  otherwise +5 to MUSIC_SEARCH
- history pattern: +10 to HISTORY
- priority override: +10 to THEOLOGICAL, short-circuits the rest of scoring

Priority overrides catch compound questions such as "quais músicas louvar
tendo como base Mateus capítulo 5" that would otherwise score as a plain
music search.
"""
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Pattern, Set, Tuple

from worship_assistant.services.ai.schema import QueryType

KEYWORD_WEIGHT = 1
PATTERN_WEIGHT = 3
MENTION_BOOST = 5
HISTORY_PATTERN_WEIGHT = 10
PRIORITY_WEIGHT = 10

# Order doubles as tie-break priority
MAIN_CATEGORIES: Tuple[QueryType, ...] = (
    QueryType.THEOLOGICAL,
    QueryType.MUSIC_SEARCH,
    QueryType.SCHEDULE,
    QueryType.USER_INFO,
)
SCORED_CATEGORIES: Tuple[QueryType, ...] = MAIN_CATEGORIES + (QueryType.HISTORY,)

BIBLE_BOOKS = (
    "gênesis", "êxodo", "levítico", "números", "deuteronômio",
    "josué", "juízes", "rute", "samuel", "reis", "crônicas",
    "esdras", "neemias", "ester", "jó", "salmos", "provérbios",
    "eclesiastes", "cantares", "isaías", "jeremias", "lamentações",
    "ezequiel", "daniel", "oséias", "joel", "amós", "obadias",
    "jonas", "miquéias", "naum", "habacuque", "sofonias", "ageu",
    "zacarias", "malaquias", "mateus", "marcos", "lucas", "joão",
    "atos", "romanos", "coríntios", "gálatas", "efésios",
    "filipenses", "colossenses", "tessalonicenses", "timóteo",
    "tito", "filemom", "hebreus", "tiago", "pedro", "judas",
    "apocalipse", "revelação",
)

THEOLOGICAL_KEYWORDS = (
    "teologia", "teológic", "bíblic", "escritur", "doutrina", "doutrinar",
    "reformad", "calvinis", "westminster", "heidelberg", "dort",
    "salmo", "versículo", "passagem", "livro da bíblia",
    "analise", "avalie", "avaliação", "ortodox", "heresia", "heretic",
    "base bíblica", "fundamento", "exegese", "interpretação",
    "confissão de fé", "catecismo", "soberania de deus", "graça",
    "justificação", "santificação", "redenção", "expiação",
    "sermão", "pregação", "mateus 5", "mateus 6", "mateus 7",
    "bem-aventurança", "sal da terra", "luz do mundo",
) + BIBLE_BOOKS

MUSIC_KEYWORDS = (
    "música", "musica", "canção", "cançao", "hino",
    "cifra", "acorde", "tom", "transpor",
    "letra", "verso", "estrofe",
    "youtube", "link", "video", "vídeo", "ouvir", "escutar",
    "compositor", "autor", "cantor",
)

SCHEDULE_KEYWORDS = (
    "escala", "escalado", "escalada",
    "domingo", "sábado", "semana", "mês", "próxim", "hoje",
    "atuação", "culto", "louvor", "ministração",
    "disponibilidade", "disponível", "indisponível",
    "quando", "que dia", "data",
)

USER_KEYWORDS = (
    "quem", "fulano", "membro", "membros", "integrante", "integrantes",
    "cantor", "cantora", "cantores", "pessoas",
    "músico", "musico", "instrumentista",
    "violão", "guitarra", "bateria", "teclado", "baixo", "piano",
    "instrumento", "toca", "canta",
    "aniversariante", "aniversário", "nascimento",
    "lista de", "nomes dos", "nomes de", "quem são",
)

HISTORY_KEYWORDS = (
    "desenvolveu", "desenvolvedor", "criou", "programou", "fez o sistema",
    "pastor", "pastores", "igreja", "nossa igreja",
    "líder", "líderes", "lidera", "ministério de louvor",
)

CATEGORY_KEYWORDS: Dict[QueryType, Tuple[str, ...]] = {
    QueryType.THEOLOGICAL: THEOLOGICAL_KEYWORDS,
    QueryType.MUSIC_SEARCH: MUSIC_KEYWORDS,
    QueryType.SCHEDULE: SCHEDULE_KEYWORDS,
    QueryType.USER_INFO: USER_KEYWORDS,
    QueryType.HISTORY: HISTORY_KEYWORDS,
}

_BOOKS_ALT = "|".join(BIBLE_BOOKS)
_CHAPTER = r"(capítulo|cap|capitulo)"


def _compile(*patterns: str) -> List[Pattern[str]]:
    return [re.compile(p, re.IGNORECASE) for p in patterns]


CATEGORY_PATTERNS: Dict[QueryType, List[Pattern[str]]] = {
    QueryType.THEOLOGICAL: _compile(
        r"analise? (teológic|doutrinar|bíblic)",
        r"(base (bíblica|teológica)|fundamento bíblico)",
        r"(está de acordo|ortodox|heresi)",
        r"(salmo|gênesis|êxodo|apocalipse) \d+",
        r"confissão de (fé|westminster)",
        r"(música|louvor|hino) (sobre|com base|baseado|do) (salmo|sermão|passagem)",
        r"sermão da montanha",
        r"(mateus|marcos|lucas|joão|romanos|apocalipse) \d+",
        r"qual (música|louvor) (para |sobre )?louvar",
        r"estudo (bíblico|teológico)",
        r"(quais|quais são) (as )?música",
        r"música (com|tendo) (como )?base",
        r"música (sobre|baseado|baseada) (em|no|na)",
        r"(quais|quais são) (as )?música.*(com|tendo) (como )?base",
        r"(quais|quais são) (as )?música.*(sobre|baseado|baseada)",
        rf"({_BOOKS_ALT}) {_CHAPTER} \d+",
        r"louvar.*(com|tendo) (como )?base",
    ),
    QueryType.MUSIC_SEARCH: _compile(
        r"(qual|mostre|tem) (o )?link",
        r"link (d[ao]|para) (música|musica)",
        r"(lista|mostre|quais|todas) (as |todas )?música",
        r"quantas (música|cifra|letra)",
        r"(cifra|letra) d[ea]",
    ),
    QueryType.SCHEDULE: _compile(
        r"escala d[aeo]",
        r"quem (está|esta) escalado",
        r"(próxim[ao]|próxim[ao]s) (escala|culto|domingo)",
        r"disponibilidade d[eo]",
        r"está disponível",
        r"dia \d{1,2}/\d{1,2}",
    ),
    QueryType.USER_INFO: _compile(
        r"quem toca",
        r"lista de (cantor|músico|membro|integrante)",
        r"instrumento d[eo]",
        r"aniversariante",
        r"(quais|nomes) (os |dos |de )?(integrante|membro)",
        r"quem (são|sao) (os |as )?",
    ),
}

HISTORY_PATTERNS: List[Pattern[str]] = _compile(
    r"quem (desenvolveu|te desenvolveu|criou|te criou|fez|te fez|programou)",
    r"quem é (o|a) desenvolvedor",
    r"quem (é|são) (o|a|os|as) pastor",
    r"(pastor|pastores) (da|do|da nossa) igreja",
    r"(qual|de qual) (é|é a|é o) (nossa|a nossa) igreja",
    r"(qual|de qual) igreja",
    r"(quem|quais) (é|são) (o|a|os|as) líder",
    r"(quem|quais) (é|são) (o|a) líder (do|da) (ministério|louvor)",
    r"líder (do|da) (ministério|louvor)",
    r"líderes (do|da) (ministério|louvor)",
)

_BIBLE_REF_BOOKS = (
    "gênesis|êxodo|salmo|mateus|marcos|lucas|joão|atos|romanos|coríntios|gálatas|"
    "efésios|filipenses|colossenses|tessalonicenses|timóteo|tito|filemom|hebreus|"
    "tiago|pedro|judas|apocalipse|revelação"
)

# Evaluated in order before ordinary scoring; the first match wins.
PRIORITY_PATTERNS: List[Tuple[Pattern[str], QueryType, int]] = [
    (re.compile(p, re.IGNORECASE | re.DOTALL), QueryType.THEOLOGICAL, PRIORITY_WEIGHT)
    for p in (
        r"(quais|quais são).*música.*(com|tendo).*base",
        r"(quais|quais são).*música.*(sobre|baseado|baseada)",
        r"música.*(com|tendo).*base",
        r"(quais|quais são).*louvar.*(com|tendo).*base",
        r"louvar.*(com|tendo).*base",
        rf"(quais|quais são).*música.*({_BIBLE_REF_BOOKS}).*{_CHAPTER}",
        rf"({_BIBLE_REF_BOOKS}).*{_CHAPTER}.*\d+.*música",
        # bible reference with chapter + music/praise word + "based on", in any order
        (
            rf"^(?=.*(gênesis|êxodo|levítico|números|deuteronômio|{_BIBLE_REF_BOOKS}).*{_CHAPTER})"
            r"(?=.*(música|músicas|louvar|louvor))"
            r"(?=.*((com|tendo).*base|baseado|baseada))"
        ),
    )
]

_ANALYSIS_WORDS = re.compile(r"(base|análise|analise|estudo|teológic|bíblic|doutrin)", re.IGNORECASE)

_MENTIONS_MUSIC = re.compile(r"(quais|quais são|mostre|liste|música|músicas|louvor|louvar)", re.IGNORECASE)
_MENTIONS_BIBLE_BASE = re.compile(
    r"(com|tendo) (como )?base|baseado|baseada|sobre (em|no|na)|fundamento", re.IGNORECASE
)
_MENTIONS_BIBLE_REF = re.compile(
    rf"(gênesis|êxodo|levítico|números|deuteronômio|{_BIBLE_REF_BOOKS}|capítulo|capitulo|cap)",
    re.IGNORECASE,
)
_ASKS_SONGS_WITH_BASE = re.compile(r"(quais|quais são).*música.*(com|tendo).*base", re.IGNORECASE | re.DOTALL)


@dataclass
class ScoreTable:
    """Per-category scores plus the keywords that produced them."""

    scores: Dict[QueryType, int] = field(
        default_factory=lambda: {category: 0 for category in SCORED_CATEGORIES}
    )
    keywords: Set[str] = field(default_factory=set)
    priority_fired: bool = False
    history_fired: bool = False

    def add(self, category: QueryType, weight: int) -> None:
        self.scores[category] = self.scores.get(category, 0) + weight

    def score_of(self, category: QueryType) -> int:
        return self.scores.get(category, 0)

    def strong_categories(self, threshold: int) -> List[QueryType]:
        """Main categories scoring at least `threshold`, in tie-break order."""
        return [c for c in MAIN_CATEGORIES if self.score_of(c) >= threshold]

    def best_category(self) -> Optional[QueryType]:
        """Highest-scoring main category (ties by MAIN_CATEGORIES order), None if all zero."""
        best: Optional[QueryType] = None
        best_score = 0
        for category in MAIN_CATEGORIES:
            value = self.score_of(category)
            if value > best_score:
                best, best_score = category, value
        return best


def is_bible_based_music_query(text: str) -> bool:
    """True for questions asking which songs are based on a scripture passage."""
    lower = text.lower()
    if _ASKS_SONGS_WITH_BASE.search(lower):
        return True
    return bool(
        _MENTIONS_MUSIC.search(lower)
        and _MENTIONS_BIBLE_BASE.search(lower)
        and _MENTIONS_BIBLE_REF.search(lower)
    )


def score(text: str, mention: Optional[str] = None) -> ScoreTable:
    """
    Score a (command-free) query against every category.

    Args:
        text: Query after command removal
        mention: First @mention extracted from the query, if any

    Returns:
        ScoreTable; priority_fired is set when a priority override matched,
        in which case scoring stopped early.
    """
    table = ScoreTable()
    lower = text.lower()
    history_pattern = any(pattern.search(text) for pattern in HISTORY_PATTERNS)

    for category, keywords in CATEGORY_KEYWORDS.items():
        # A history pattern replaces the generic history keywords
        if category == QueryType.HISTORY and history_pattern:
            continue
        for keyword in keywords:
            if keyword in lower:
                table.add(category, KEYWORD_WEIGHT)
                table.keywords.add(keyword)

    for pattern, category, weight in PRIORITY_PATTERNS:
        if pattern.search(text):
            table.add(category, weight)
            table.priority_fired = True
            return table

    if history_pattern:
        table.add(QueryType.HISTORY, HISTORY_PATTERN_WEIGHT)
        table.history_fired = True

    if mention:
        if table.score_of(QueryType.THEOLOGICAL) > 0 or _ANALYSIS_WORDS.search(text):
            table.add(QueryType.THEOLOGICAL, MENTION_BOOST)
        else:
            table.add(QueryType.MUSIC_SEARCH, MENTION_BOOST)

    for category, patterns in CATEGORY_PATTERNS.items():
        for pattern in patterns:
            if pattern.search(lower):
                table.add(category, PATTERN_WEIGHT)

    return table
