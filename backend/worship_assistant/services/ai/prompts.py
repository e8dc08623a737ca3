"""
Prompt builders for theological analysis.

Prompt text is Portuguese (the assistant answers in pt-BR). Builders are pure
functions; the analyzer decides which one applies.
"""
from typing import List, Sequence

from worship_assistant.services.ai.schema import Song

# Output budgets per call shape
MAX_TOKENS_BIBLE_BASED = 3000
MAX_TOKENS_SPECIFIC_SONG = 2000
MAX_TOKENS_DEFAULT = 800

DEFAULT_CONTEXT_LIMIT = 5
STANZA_TRUNCATE_CHARS = 500
PREVIEW_CHARS = 300

NO_SONGS_CONTEXT = "Nenhuma música disponível."
NO_LYRICS = "Letra não disponível"

# A chunk answers with exactly this sentence when none of its songs relate
EMPTY_CHUNK_MARKER = "Nenhuma música relacionada neste lote"

BIBLE_BASED_SYSTEM_PROMPT = (
    "Assistente teológico reformado. Identifique músicas cristãs relacionadas a "
    "passagens bíblicas específicas.\n\n"
    "Analise TODAS as músicas fornecidas e identifique quais têm relação "
    "teológica/bíblica com a passagem mencionada.\n\n"
    "Para cada música relacionada, forneça:\n"
    "- Conexão bíblica clara\n"
    "- Trechos específicos da letra que demonstram a conexão\n"
    "- Análise teológica breve\n\n"
    "Seja específico e cite trechos exatos das letras."
)

_RELATED_SONG_FORMAT = (
    "### 🎶 [Nome da Música EXATO como aparece no banco]\n\n"
    "**📖 Conexão Bíblica:**\n"
    "- [Como a música se relaciona com a passagem]\n\n"
    "**📝 Trechos Relevantes:**\n"
    '- "[Trecho da letra]" - [Explicação da conexão]\n\n'
    "**🧾 Análise Teológica:**\n"
    "- [Análise breve da conexão doutrinária]\n\n"
    "---\n\n"
    "CRÍTICO: Use o NOME EXATO da música como aparece no banco de dados."
)


def build_system_prompt(include_lyrics: bool = False, bible_based: bool = False) -> str:
    """System prompt for a single analysis call."""
    if bible_based:
        return BIBLE_BASED_SYSTEM_PROMPT

    sections = [
        "Assistente teológico reformado. Analise músicas cristãs segundo Westminster/Heidelberg.",
        "",
        "Formato Markdown:",
        "## 🎶 [Título]",
    ]
    if include_lyrics:
        sections += [
            "### 📝 Trechos da Música",
            "Inclua trechos relevantes da letra da música ao longo da análise, "
            "conectando-os com a base bíblica e doutrina.",
        ]
    sections += [
        "### 📖 Base Bíblica",
        "- [Ref] - Explicação",
        "### 🧾 Doutrina",
        "- **Nome**: [Doutrina]",
        "- **CFW**: [Citação breve]",
        "### 🔍 Análise",
        "**Pontos Fortes**: [Lista]",
        "**Fragilidades**: [Lista]",
        "### 🙏 Aplicação",
        "[Uso litúrgico]",
        "",
        "Seja conciso. Max 2 refs bíblicas.",
    ]
    prompt = "\n".join(sections)
    if include_lyrics:
        prompt += (
            "\n\nIMPORTANTE: Quando analisar uma música específica, sempre inclua "
            "trechos da letra conectando-os com a análise teológica."
        )
    return prompt


def _truncate(text: str, limit: int) -> str:
    return text[:limit] + "..." if len(text) > limit else text


def build_music_context(songs: Sequence[Song], full_lyrics: bool = False) -> str:
    """
    Render songs as prompt context.

    - one song with full_lyrics: the complete lyrics
    - many songs with full_lyrics: every song, long stanzas truncated
    - otherwise: first DEFAULT_CONTEXT_LIMIT songs with a short preview
    """
    if not songs:
        return NO_SONGS_CONTEXT

    if full_lyrics and len(songs) == 1:
        song = songs[0]
        context = f'"{song.title}"\n\n'
        if song.lyrics:
            context += "LETRA COMPLETA:\n" + "\n\n---\n\n".join(song.lyrics) + "\n"
        else:
            context += f"{NO_LYRICS}.\n"
        return context

    if full_lyrics:
        blocks: List[str] = []
        for position, song in enumerate(songs, start=1):
            lyrics = (
                "\n\n---\n\n".join(_truncate(stanza, STANZA_TRUNCATE_CHARS) for stanza in song.lyrics)
                if song.lyrics
                else NO_LYRICS
            )
            blocks.append(f'{position}. "{song.title}"\nLETRA:\n{lyrics}\n---')
        return "\n\n".join(blocks)

    blocks = []
    for position, song in enumerate(songs[:DEFAULT_CONTEXT_LIMIT], start=1):
        preview = _truncate(song.lyrics[0], PREVIEW_CHARS) if song.lyrics else NO_LYRICS
        blocks.append(f'{position}. "{song.title}"\n{preview}\n---')
    return "\n".join(blocks)


def build_analysis_prompt(
    question: str,
    songs: Sequence[Song],
    specific_song: bool = False,
    bible_based: bool = False,
) -> str:
    """User prompt for the single (non-chunked) analysis call."""
    context = build_music_context(songs, full_lyrics=specific_song or bible_based)
    prompt = f"MÚSICAS:\n{context}\n\nPERGUNTA: {question}\n\nForneça análise teológica reformada."

    if specific_song and songs:
        prompt += (
            f'\n\nIMPORTANTE: Esta é uma análise específica da música "{songs[0].title}". '
            "Inclua trechos da letra ao longo da análise, conectando-os com a base "
            "bíblica e doutrina reformada."
        )
    elif bible_based:
        prompt += (
            "\n\nIMPORTANTE: O usuário está perguntando sobre músicas que têm relação "
            "com a base bíblica mencionada.\n\n"
            "Analise TODAS as músicas fornecidas e identifique quais têm relação com a "
            "passagem bíblica mencionada.\n\n"
            "Formato da resposta:\n"
            "## 🎵 Músicas Relacionadas a [Base Bíblica]\n\n"
            "Para cada música relacionada, forneça:\n\n"
            f"{_RELATED_SONG_FORMAT}\n\n"
            "Se nenhuma música tiver relação clara, informe isso claramente."
        )
    return prompt


def chunk_header(chunk_number: int, chunk_total: int) -> str:
    return f"## 🎵 Músicas Relacionadas (Lote {chunk_number}/{chunk_total})"


def build_chunk_prompt(
    question: str,
    songs: Sequence[Song],
    chunk_number: int,
    chunk_total: int,
) -> str:
    """User prompt for one batch chunk. chunk_number is 1-based."""
    context = build_music_context(songs, full_lyrics=True)
    return (
        f"MÚSICAS (Lote {chunk_number} de {chunk_total} - {len(songs)} músicas):\n"
        f"{context}\n\n"
        f"PERGUNTA: {question}\n\n"
        "IMPORTANTE: O usuário está perguntando sobre músicas que têm relação com a "
        "base bíblica mencionada.\n\n"
        "Analise TODAS as músicas deste lote e identifique quais têm relação com a "
        "passagem bíblica mencionada.\n\n"
        "Formato da resposta:\n"
        f"{chunk_header(chunk_number, chunk_total)}\n\n"
        "Para cada música relacionada, forneça:\n\n"
        f"{_RELATED_SONG_FORMAT}\n\n"
        "Se nenhuma música deste lote tiver relação clara, responda apenas: "
        f'"{EMPTY_CHUNK_MARKER}."'
    )
