"""Text normalisation that keeps a character-to-page map aligned.

Extracted document text is full of artefacts: hard line breaks, zero-width
joiners, soft hyphens, bidi marks and stray control bytes.  The cleaner
removes them in a fixed order while carrying a parallel list holding the
page number of every surviving character:

    1. CR / LF                         -> space
    2. U+200B, U+200C, U+200D, U+FEFF  -> space
    3. U+00A0 (no-break space)         -> space
    4. U+00AD (soft hyphen)            -> removed
    5. other Unicode category Cf       -> space
    6. Unicode category Cc             -> removed
    7. whitespace runs                 -> one space (first char's page kept)
    8. leading / trailing whitespace   -> removed

A replaced character keeps its page entry and a removed one drops it, so
``len(result.clean_text) == len(result.page_map)`` after every step.
Steps 1-6 each look at a single character, so they run as one pass.
"""

from __future__ import annotations

import unicodedata

import structlog

from docqa.models.rag import CleaningResult
from docqa.utils.errors import InvalidInputError

logger = structlog.get_logger(logger_name=__name__)

_LINE_BREAKS = frozenset("\r\n")
_ZERO_WIDTH = frozenset("\u200b\u200c\u200d\ufeff")
_NO_BREAK_SPACE = "\u00a0"
_SOFT_HYPHEN = "\u00ad"


def _translate(char: str) -> str | None:
    """Apply steps 1-6 to one character; ``None`` means drop it."""
    if char in _LINE_BREAKS or char in _ZERO_WIDTH or char == _NO_BREAK_SPACE:
        return " "
    if char == _SOFT_HYPHEN:
        return None
    category = unicodedata.category(char)
    if category == "Cf":
        return " "
    if category == "Cc":
        return None
    return char


class TextCleaner:
    """Stateless cleaner; one instance can be shared by any number of callers."""

    def clean(self, text: str | None) -> str:
        """Return the cleaned form of *text* (no page tracking)."""
        return self.clean_with_page_map(text).clean_text

    def clean_with_page_map(
        self,
        text: str | None,
        page_map: list[int] | None = None,
    ) -> CleaningResult:
        """Clean *text* and realign *page_map* to the cleaned characters.

        Parameters
        ----------
        text:
            Raw extracted text.  ``None`` or empty yields an empty result.
        page_map:
            Page number per character of *text*.  When omitted the result's
            page map is empty.

        Raises
        ------
        InvalidInputError
            If *page_map* is given and its length differs from ``len(text)``.
        """
        if not text:
            return CleaningResult(clean_text="", page_map=[])

        if page_map is None:
            cleaned, _ = self._clean(text, [0] * len(text))
            return CleaningResult(clean_text=cleaned, page_map=[])

        if len(text) != len(page_map):
            raise InvalidInputError(
                f"Text length ({len(text)}) must equal page map length ({len(page_map)})"
            )

        cleaned, pages = self._clean(text, page_map)
        logger.debug(
            "text_cleaned",
            input_chars=len(text),
            output_chars=len(cleaned),
        )
        return CleaningResult(clean_text=cleaned, page_map=pages)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _clean(text: str, page_map: list[int]) -> tuple[str, list[int]]:
        out_chars: list[str] = []
        out_pages: list[int] = []
        last_was_space = False

        for char, page in zip(text, page_map):
            translated = _translate(char)
            if translated is None:
                continue
            # Step 7: only the first whitespace of a run survives, as " ".
            if translated.isspace():
                if last_was_space:
                    continue
                out_chars.append(" ")
                out_pages.append(page)
                last_was_space = True
            else:
                out_chars.append(translated)
                out_pages.append(page)
                last_was_space = False

        # Step 8: after collapsing, at most one space sits at either end.
        start = 0
        end = len(out_chars)
        if end and out_chars[0] == " ":
            start = 1
        if end > start and out_chars[end - 1] == " ":
            end -= 1

        return "".join(out_chars[start:end]), out_pages[start:end]
