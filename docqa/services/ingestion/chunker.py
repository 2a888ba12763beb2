"""Sentence-aware, overlapping, page-annotated text chunker.

Splits cleaned document text into chunks suitable for embedding and BM25
indexing.  Three rules drive the output:

1. **Sentences are never split** unless a sentence does not fit behind the
   overlap prefix inside the target; boundaries are found with one regex
   scan plus an abbreviation guard ("Dr.", "Jan.", "U.S.A." do not end a
   sentence).
2. **Every chunk after the first starts with the exact last
   ``overlap_chars`` characters of the previous chunk**, so concatenating
   chunk 0 with ``chunk[overlap_chars:]`` of every later chunk rebuilds
   the text (modulo whitespace).  The overlap prefix is never shortened.
3. **No chunk is longer than ``target_chars``.**  The length accounting
   counts the overlap prefix, the single space after it, and the single
   spaces between sentences.

When a page map is supplied, each chunk records the page of its first
character (shifted back by the overlap length, which belongs to the
previous region) and the page of its last character, and the chunk id gets
a ``_p{start}-{end}`` suffix.
"""

from __future__ import annotations

import re
import unicodedata

import structlog

from docqa.models.rag import Chunk
from docqa.utils.errors import InvalidInputError

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_TARGET_CHARS = 2000
DEFAULT_OVERLAP_CHARS = 200

# Whitespace run after a terminal mark.  The character after the run is
# checked separately: it must be an uppercase letter or a quote.
_BOUNDARY = re.compile(r"(?<=[.!?])[ \t\n\x0b\f\r]+")
_SENTENCE_OPENERS = frozenset("\"'")

_ABBREVIATION = re.compile(
    r"\b(?:Dr|Mr|Mrs|Ms|Prof|Sr|Jr|Inc|Ltd|Corp|Co|St|Ave|Blvd|Rd|etc|vs|eg|ie|cf|ca|approx"
    r"|Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec"
    r"|Mon|Tue|Wed|Thu|Fri|Sat|Sun"
    r"|U\.S\.A|U\.K|U\.N)\.$"
)
# How far back from a candidate boundary the abbreviation guard looks.
_ABBREVIATION_WINDOW = 20

Span = tuple[int, int]


def _opens_sentence(char: str) -> bool:
    return char in _SENTENCE_OPENERS or unicodedata.category(char) == "Lu"


def _tail(text: str, n: int) -> str:
    if n <= 0 or not text:
        return ""
    return text if len(text) <= n else text[-n:]


def _prefix_len(overlap: str) -> int:
    """Characters an overlap prefix occupies, including its trailing space."""
    return len(overlap) + 1 if overlap else 0


class SentenceChunker:
    """Packs sentences greedily into bounded chunks with an exact overlap prefix.

    Stateless after construction, so a single instance is safe to share.

    Parameters
    ----------
    target_chars:
        Hard upper bound on a chunk's text length.  Must be positive.
    overlap_chars:
        Number of trailing characters of each chunk copied to the front of
        the next one.  Must satisfy ``0 <= overlap_chars < target_chars``.
    """

    def __init__(
        self,
        target_chars: int = DEFAULT_TARGET_CHARS,
        overlap_chars: int = DEFAULT_OVERLAP_CHARS,
    ) -> None:
        if target_chars <= 0:
            raise InvalidInputError("target_chars must be positive")
        if overlap_chars < 0 or overlap_chars >= target_chars:
            raise InvalidInputError(
                "overlap_chars must be non-negative and less than target_chars"
            )
        self._target = target_chars
        self._overlap = overlap_chars

    @property
    def target_chars(self) -> int:
        return self._target

    @property
    def overlap_chars(self) -> int:
        return self._overlap

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def chunk(
        self,
        doc_id: str,
        text: str,
        page_map: list[int] | None = None,
    ) -> list[Chunk]:
        """Split *text* into ordered chunks belonging to *doc_id*.

        Parameters
        ----------
        doc_id:
            Owning document id, non-blank.  Prefix of every chunk id.
        text:
            Cleaned document text.  Blank text yields ``[]``.
        page_map:
            Optional 1-based page number per character of *text*.

        Returns
        -------
        list[Chunk]
            Chunks with zero-based, strictly increasing sequence numbers.

        Raises
        ------
        InvalidInputError
            If *doc_id* is blank, *text* is ``None``, or *page_map* has a
            different length than *text*.
        """
        if doc_id is None or not doc_id.strip():
            raise InvalidInputError("doc_id cannot be blank")
        if text is None:
            raise InvalidInputError("text cannot be None")
        if page_map is not None and len(page_map) != len(text):
            raise InvalidInputError("page_map length must match text length")

        if not text.strip():
            return []

        chunks: list[Chunk] = []
        current: list[Span] = []
        current_len = 0
        overlap = ""

        for start, end in self.split_sentences(text):
            s_len = end - start

            projected = _prefix_len(overlap) + current_len + (1 if current else 0) + s_len
            if current and projected > self._target:
                overlap = self._emit(chunks, doc_id, text, page_map, current, overlap)
                current = []
                current_len = 0

            if not current and _prefix_len(overlap) + s_len > self._target:
                # The sentence does not fit behind the full overlap prefix.
                overlap = self._emit_windows(chunks, doc_id, text, page_map, start, end, overlap)
                continue

            current.append((start, end))
            current_len += s_len if len(current) == 1 else 1 + s_len

        if current:
            self._emit(chunks, doc_id, text, page_map, current, overlap)

        logger.debug(
            "chunking_complete",
            doc_id=doc_id,
            input_chars=len(text),
            chunks=len(chunks),
        )
        return chunks

    @staticmethod
    def split_sentences(text: str) -> list[Span]:
        """Return half-open ``(start, end)`` spans of the sentences in *text*.

        A boundary is a whitespace run that follows ``.``, ``!`` or ``?`` and
        precedes an uppercase letter or a quote, unless the 20 characters
        before it end in a known abbreviation.  Spans exclude surrounding
        whitespace; empty spans are dropped.
        """
        raw: list[Span] = []
        last_end = 0
        for match in _BOUNDARY.finditer(text):
            next_start = match.end()
            if next_start >= len(text) or not _opens_sentence(text[next_start]):
                continue
            split = match.start()
            before = text[max(0, split - _ABBREVIATION_WINDOW):split].strip()
            if _ABBREVIATION.search(before):
                continue
            if split > last_end:
                raw.append((last_end, split))
            last_end = next_start
        if last_end < len(text):
            raw.append((last_end, len(text)))

        spans: list[Span] = []
        for start, end in raw:
            while start < end and text[start].isspace():
                start += 1
            while end > start and text[end - 1].isspace():
                end -= 1
            if end > start:
                spans.append((start, end))
        return spans

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _emit(
        self,
        chunks: list[Chunk],
        doc_id: str,
        text: str,
        page_map: list[int] | None,
        sentences: list[Span],
        overlap: str,
    ) -> str:
        """Materialize one packed chunk and return the next overlap prefix."""
        body = " ".join(text[start:end] for start, end in sentences)
        chunk_text = f"{overlap} {body}" if overlap else body
        abs_start = max(0, sentences[0][0] - len(overlap))
        abs_end = sentences[-1][1]
        chunks.append(self._make_chunk(doc_id, len(chunks), chunk_text, page_map, abs_start, abs_end))
        return _tail(chunk_text, self._overlap)

    def _emit_windows(
        self,
        chunks: list[Chunk],
        doc_id: str,
        text: str,
        page_map: list[int] | None,
        start: int,
        end: int,
        overlap: str,
    ) -> str:
        """Hard-split one sentence that does not fit behind the overlap prefix.

        The first window is ``overlap + " " + piece``, like a packed chunk.
        Every later window is the previous window's exact tail followed
        directly by the next ``target_chars - overlap_chars`` characters of
        the sentence, so consecutive windows overlap exactly even when a
        window is shorter than the overlap.  When ``overlap_chars`` is
        ``target_chars - 1`` the first window drops the separating space.
        """
        prefix = overlap
        sep = " " if prefix and _prefix_len(prefix) < self._target else ""
        pos = start
        chunk_text = ""
        while pos < end:
            piece_end = min(pos + self._target - len(prefix) - len(sep), end)
            chunk_text = f"{prefix}{sep}{text[pos:piece_end]}"
            abs_start = max(0, pos - len(prefix) - len(sep))
            chunks.append(
                self._make_chunk(doc_id, len(chunks), chunk_text, page_map, abs_start, piece_end)
            )
            pos = piece_end
            prefix = _tail(chunk_text, self._overlap)
            sep = ""
        return _tail(chunk_text, self._overlap)

    @staticmethod
    def _make_chunk(
        doc_id: str,
        sequence: int,
        chunk_text: str,
        page_map: list[int] | None,
        abs_start: int,
        abs_end: int,
    ) -> Chunk:
        page_start = _page_of(page_map, abs_start)
        page_end = _page_of(page_map, max(abs_end - 1, abs_start))
        return Chunk(
            doc_id=doc_id,
            chunk_id=build_chunk_id(doc_id, sequence, page_start, page_end),
            text=chunk_text,
            page_start=page_start,
            page_end=page_end,
        )


def _page_of(page_map: list[int] | None, index: int) -> int:
    if not page_map:
        return -1
    return page_map[min(max(index, 0), len(page_map) - 1)]


def build_chunk_id(doc_id: str, sequence: int, page_start: int, page_end: int) -> str:
    """Return ``{doc_id}_{sequence:05d}`` plus ``_p{start}-{end}`` when both pages are known."""
    chunk_id = f"{doc_id}_{sequence:05d}"
    if page_start >= 1 and page_end >= 1:
        chunk_id += f"_p{page_start}-{page_end}"
    return chunk_id
