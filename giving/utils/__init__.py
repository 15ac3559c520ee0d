"""Utility modules."""

from giving.utils.downloads import attachment, csv_attachment, pdf_attachment
from giving.utils.pagination import PaginationParams, get_pagination, paginate_query

__all__ = [
    # Downloads
    "attachment",
    "csv_attachment",
    "pdf_attachment",
    # Pagination
    "PaginationParams",
    "get_pagination",
    "paginate_query",
]
