"""Citation models: page intervals and per-document citations."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class PageInterval(BaseModel):
    """An inclusive page range ``[from_page, to_page]``.

    The model does not reject ``from_page > to_page`` itself; the merger and
    citation resolver do, so callers get an ``InvalidInputError`` rather than
    a pydantic ``ValidationError``.
    """

    model_config = ConfigDict(frozen=True)

    from_page: int
    to_page: int

    def is_valid(self) -> bool:
        return self.from_page <= self.to_page

    def as_string(self) -> str:
        """Render as ``"3"`` for a single page or ``"3-5"`` for a range."""
        if self.from_page == self.to_page:
            return str(self.from_page)
        return f"{self.from_page}-{self.to_page}"


class Citation(BaseModel):
    """One source document cited by an answer, with its merged page ranges.

    Two citations are equal when they refer to the same document.
    """

    model_config = ConfigDict(frozen=True)

    doc_id: str
    title: str
    page_intervals: list[PageInterval] = Field(default_factory=list)

    def as_string(self) -> str:
        """Render as ``"Title p. 1-5, 7"`` or just ``"Title"`` without pages."""
        if not self.page_intervals:
            return self.title
        pages = ", ".join(interval.as_string() for interval in self.page_intervals)
        return f"{self.title} p. {pages}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Citation):
            return NotImplemented
        return self.doc_id == other.doc_id

    def __hash__(self) -> int:
        return hash(self.doc_id)
