"""Citation resolution: ranked evidence -> one citation per source document.

Groups the page ranges of the reranked passages by document (in order of
first appearance), looks each document up in the catalog for its title,
and merges each document's ranges with :class:`IntervalMerger`.  Passages
without page info still cite their document, just without a page range.

A passage whose document has no catalog record is a hard failure: the
index and the catalog disagree, and masking that would cite a document
the user can no longer open.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

import structlog

from docqa.models.citation import Citation, PageInterval
from docqa.services.interval_merger import IntervalMerger
from docqa.utils.errors import DocumentNotFoundError, InvalidInputError

if TYPE_CHECKING:
    from docqa.interfaces.catalog_provider import ICatalogProvider
    from docqa.models.rag import RerankResult

logger = structlog.get_logger(logger_name=__name__)


class CitationResolver:
    """Builds :class:`Citation` objects from reranked passages.

    Parameters
    ----------
    catalog:
        Source of document titles.
    merger:
        Interval merger; a default instance is created when omitted.
    """

    def __init__(
        self,
        catalog: ICatalogProvider,
        merger: IntervalMerger | None = None,
    ) -> None:
        self._catalog = catalog
        self._merger = merger or IntervalMerger()

    async def resolve(self, results: Sequence[RerankResult]) -> list[Citation]:
        """Return one citation per distinct document, in first-seen order.

        Raises
        ------
        InvalidInputError
            If a result carries ``from_page > to_page``.
        DocumentNotFoundError
            If a result's document is missing from the catalog.
        """
        grouped: dict[str, list[PageInterval]] = {}
        for result in results:
            interval = PageInterval(from_page=result.from_page, to_page=result.to_page)
            if not interval.is_valid():
                raise InvalidInputError(
                    f"Invalid page interval for chunk {result.chunk_id}: "
                    f"{result.from_page} > {result.to_page}"
                )
            intervals = grouped.setdefault(result.doc_id, [])
            # -1 marks a chunk without page info: cite the document, not a page.
            if interval.from_page >= 1:
                intervals.append(interval)

        citations: list[Citation] = []
        for doc_id, intervals in grouped.items():
            record = await self._catalog.find_by_id(doc_id)
            if record is None:
                raise DocumentNotFoundError(
                    f"Document not found: {doc_id}",
                    provider_name=self._catalog.get_provider_name(),
                )
            citations.append(
                Citation(
                    doc_id=doc_id,
                    title=record.title,
                    page_intervals=self._merger.merge(intervals),
                )
            )

        logger.debug("citations_resolved", documents=len(citations), passages=len(results))
        return citations
