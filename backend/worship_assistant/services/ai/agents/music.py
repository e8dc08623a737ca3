"""
Music responder over the song catalog.

Handles, in order: a mentioned song (details, lyrics or chords), YouTube link
requests, full listing, counts, quoted titles and a generic keyword search
over titles and lyrics. Every answer that names songs carries a
MusicAttachment under the "music" key.
"""
import re
from typing import Dict, List, Optional, Sequence

from worship_assistant.core.logging import get_logger
from worship_assistant.services.ai.schema import (
    AgentResult,
    Attachment,
    ConversationTurn,
    MusicAttachment,
    Song,
    SongSummary,
)
from worship_assistant.services.catalog import SongSource, get_song_source, normalize_for_search

logger = get_logger(__name__)

LINK_QUERY = re.compile(r"link|youtube|ouvir|escutar|video|vídeo")
LIST_QUERY = re.compile(r"(lista|liste|mostre|quais) (as |todas )?(as )?música|todas as música")
COUNT_QUERY = re.compile(r"quantas? (música|cifra|letra)")
CHORDS_QUERY = re.compile(r"cifra|acorde")
LYRICS_QUERY = re.compile(r"letra|verso|estrofe")
QUOTED_TITLE = re.compile(r"[\"']([^\"']+)[\"']")

LINK_WORDS = frozenset({
    "link", "links", "youtube", "ouvir", "escutar", "video", "vídeo", "videos", "vídeos",
})
SEARCH_STOP_WORDS = frozenset({
    "música", "musica", "músicas", "musicas", "sobre", "qual", "quais",
    "mostre", "lista", "liste", "para", "com", "sem", "tem", "temos",
})
LINK_RESULT_LIMIT = 10
QUOTED_RESULT_LIMIT = 5


def _summaries(songs: Sequence[Song]) -> Dict[str, Attachment]:
    return {"music": MusicAttachment(songs=[SongSummary.from_song(song) for song in songs])}


def _found_header(count: int) -> str:
    return "## 🎵 Música Encontrada" if count == 1 else f"## 🎵 {count} Músicas Encontradas"


def _check(flag: bool) -> str:
    return "✅" if flag else "❌"


class MusicAgent:
    """Looks songs up in the catalog."""

    name = "music"

    def __init__(self, songs: Optional[SongSource] = None):
        self.songs = songs if songs is not None else get_song_source()

    async def process(
        self,
        query: str,
        mentioned_entity: Optional[str] = None,
        history: Sequence[ConversationTurn] = (),
    ) -> AgentResult:
        lower = query.lower()
        if mentioned_entity:
            return self._mentioned(mentioned_entity, lower)
        if LINK_QUERY.search(lower):
            return self._links(lower)
        if LIST_QUERY.search(lower):
            return self._list_all()
        if COUNT_QUERY.search(lower):
            return self._count()
        quoted = QUOTED_TITLE.search(query)
        if quoted:
            return self._search_title(quoted.group(1).strip())
        return self._keyword_search(lower)

    def _mentioned(self, name: str, lower_query: str) -> AgentResult:
        song = self.songs.find_by_title(name)
        if song is None:
            clean = name.rstrip("?!.,;:").strip()
            return AgentResult(
                success=True,
                response=(
                    "## 🎵 Música Não Encontrada\n\n"
                    f'Não encontrei a música **"{clean}"** no banco de dados.\n\n'
                    "**Sugestões:**\n- Verifique a ortografia\n- Tente usar apenas parte do nome\n"
                    '- Use "liste todas as músicas" para ver o repertório completo'
                ),
            )
        if CHORDS_QUERY.search(lower_query):
            return self._chords(song)
        if LYRICS_QUERY.search(lower_query):
            return self._lyrics(song)
        return self._details([song])

    def _chords(self, song: Song) -> AgentResult:
        lines = [f"## 🎸 Cifra: **{song.title}**", ""]
        if song.chords:
            lines += [f"**Cifras disponíveis:** {len(song.chords)} versão(ões)", ""]
            for position, chord_sheet in enumerate(song.chords, start=1):
                lines += [f"**Versão {position}:**", "```", chord_sheet, "```", ""]
        else:
            lines.append("❌ Esta música não possui cifras cadastradas no banco de dados.")
        return AgentResult(success=True, response="\n".join(lines), attachments=_summaries([song]))

    def _lyrics(self, song: Song) -> AgentResult:
        lines = [f"## 📝 Letra: **{song.title}**", ""]
        if song.lyrics:
            lines += [f"**Letras disponíveis:** {len(song.lyrics)} versão(ões)", ""]
            for position, stanza in enumerate(song.lyrics, start=1):
                lines += [f"**Versão {position}:**", "```", stanza, "```", ""]
        else:
            lines.append("❌ Esta música não possui letras cadastradas no banco de dados.")
        return AgentResult(success=True, response="\n".join(lines), attachments=_summaries([song]))

    def _details(self, songs: Sequence[Song]) -> AgentResult:
        lines = [_found_header(len(songs)), ""]
        for position, song in enumerate(songs, start=1):
            lines += [
                f"### {position}. **{song.title}**",
                "",
                "**📋 Conteúdo Disponível:**",
                f"- {_check(bool(song.lyrics))} Letras: {len(song.lyrics)} versão(ões)",
                f"- {_check(bool(song.chords))} Cifras: {len(song.chords)} versão(ões)",
            ]
            if song.youtube_link:
                lines.append("- ✅ Link do YouTube disponível")
            lines.append("")
        lines.append('💡 **Dica:** Use os botões "▶️ Ver Música" para abrir letra, cifra e player!')
        return AgentResult(success=True, response="\n".join(lines), attachments=_summaries(songs))

    def _links(self, lower_query: str) -> AgentResult:
        # Words left after dropping the link vocabulary name the song
        term_words = [
            word
            for word in re.findall(r"\w+", lower_query)
            if len(word) > 2 and word not in LINK_WORDS and word not in SEARCH_STOP_WORDS
        ]
        songs = self.songs.list_songs()
        if term_words:
            normalized_terms = [normalize_for_search(word) for word in term_words]
            songs = [
                song
                for song in songs
                if any(term in normalize_for_search(song.title) for term in normalized_terms)
            ]
        songs = songs[:LINK_RESULT_LIMIT]

        if not songs:
            return AgentResult(
                success=True,
                response=(
                    "## 🎵 Nenhuma Música Encontrada\n\n"
                    "Não encontrei músicas com esse nome no banco de dados.\n\n"
                    'Tente:\n- Verificar a ortografia\n- Usar parte do nome\n- Perguntar "liste todas as músicas"'
                ),
            )

        lines = [_found_header(len(songs)), ""]
        for position, song in enumerate(songs, start=1):
            lines += [f"### {position}. **{song.title}**", ""]
            if song.youtube_link:
                lines.append(f"**🎬 YouTube:** `{song.youtube_link}`")
            else:
                lines.append("*Sem links do YouTube cadastrados*")
            lines += ["", "---", ""]
        return AgentResult(success=True, response="\n".join(lines), attachments=_summaries(songs))

    def _list_all(self) -> AgentResult:
        songs = self.songs.list_songs()
        if not songs:
            return AgentResult(
                success=True,
                response="## 🎵 Nenhuma Música Cadastrada\n\nO banco de dados ainda não possui músicas cadastradas.",
            )
        plural = "s" if len(songs) != 1 else ""
        lines = ["## 🎵 Todas as Músicas Cadastradas", "", f"**Total:** {len(songs)} música{plural}", "", "---", ""]
        for position, song in enumerate(songs, start=1):
            lines += [
                f"**{position}. {song.title}**",
                f"- {_check(bool(song.lyrics))} Letras ({len(song.lyrics)})",
                f"- {_check(bool(song.chords))} Cifras ({len(song.chords)})",
                f"- {_check(bool(song.youtube_link))} Link YouTube",
                "",
            ]
        return AgentResult(success=True, response="\n".join(lines), attachments=_summaries(songs))

    def _count(self) -> AgentResult:
        songs = self.songs.list_songs()
        total = len(songs)
        with_lyrics = sum(1 for song in songs if song.lyrics)
        with_chords = sum(1 for song in songs if song.chords)

        def percent(part: int) -> int:
            return round(part * 100 / total) if total else 0

        response = (
            "## 📊 Estatísticas de Músicas\n\n"
            f"**Total de Músicas:** {total}\n\n"
            "### Detalhamento:\n"
            f"- 📝 Com Letras: **{with_lyrics}** ({percent(with_lyrics)}%)\n"
            f"- 🎸 Com Cifras: **{with_chords}** ({percent(with_chords)}%)"
        )
        return AgentResult(success=True, response=response)

    def _search_title(self, term: str) -> AgentResult:
        normalized = normalize_for_search(term)
        songs = [
            song for song in self.songs.list_songs() if normalized in normalize_for_search(song.title)
        ][:QUOTED_RESULT_LIMIT]
        if not songs:
            return AgentResult(
                success=True,
                response=(
                    f'## 🔍 Busca: "{term}"\n\n❌ Nenhuma música encontrada com esse nome.\n\n'
                    '**Sugestões:**\n- Verifique a ortografia\n- Tente usar apenas parte do nome\n'
                    '- Use "liste todas as músicas" para ver o repertório completo'
                ),
            )
        return self._details(songs)

    def _keyword_search(self, lower_query: str) -> AgentResult:
        words: List[str] = [
            word
            for word in re.findall(r"\w+", lower_query)
            if len(word) > 3 and word not in SEARCH_STOP_WORDS
        ]
        if not words:
            return self._list_all()

        matches = [
            song
            for song in self.songs.list_songs()
            if any(word in song.title.lower() for word in words)
            or any(word in stanza.lower() for stanza in song.lyrics for word in words)
        ]
        logger.debug("music_keyword_search", words=words, matches=len(matches))
        if not matches:
            return AgentResult(
                success=True,
                response=(
                    f'## 🔍 Busca: "{lower_query}"\n\n'
                    "❌ Não encontrei músicas com essas palavras-chave.\n\n"
                    '**Dica:** Para ver todas as músicas, pergunte "liste todas as músicas"'
                ),
            )
        return self._details(matches)
