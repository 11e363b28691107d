"""Search, sort and paginate a snapshot of document records. Pure functions."""

from __future__ import annotations

from typing import Sequence

from ..exceptions import InvalidQueryError
from .models import Document, DocumentPage, DocumentQuery, SortOrder


def matches(doc: Document, text: str | None) -> bool:
    """Case-insensitive substring test. Only an empty or absent filter matches all."""
    if not text:
        return True
    return text.casefold() in doc.title.casefold()


def sort_documents(docs: Sequence[Document], order: SortOrder = SortOrder.DESC) -> list[Document]:
    # sorted() is stable with reverse=True too, so equal dates keep input order
    return sorted(docs, key=lambda d: d.upload_date, reverse=order is SortOrder.DESC)


def query_documents(records: Sequence[Document], query: DocumentQuery) -> DocumentPage:
    if query.page < 1:
        raise InvalidQueryError(f"page must be >= 1, got {query.page}")
    if query.page_size < 1:
        raise InvalidQueryError(f"page_size must be >= 1, got {query.page_size}")

    filtered = [d for d in records if matches(d, query.text)]
    ordered = sort_documents(filtered, SortOrder(query.sort_order))

    start = (query.page - 1) * query.page_size
    return DocumentPage(
        documents=ordered[start : start + query.page_size],
        page=query.page,
        page_size=query.page_size,
        total=len(filtered),
        total_pages=DocumentPage.count_pages(len(filtered), query.page_size),
    )
