"""Chunked reads for stores that cap the rows returned per request."""
import logging
from typing import Callable, List, TypeVar

from src.utils.exceptions import StoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")

CHUNK_SIZE = 1000
MAX_ROWS = 10000


def fetch_all(
    fetch_page: Callable[[int, int], List[T]],
    chunk_size: int = CHUNK_SIZE,
    max_rows: int = MAX_ROWS,
) -> List[T]:
    """
    Read a result set page by page.

    Args:
        fetch_page: Called with an inclusive (start, end) row range
        chunk_size: Rows requested per page
        max_rows: Stop once this many rows have been gathered

    Returns:
        Concatenated rows, in page order

    Behavior:
        - Stops on an empty page or a page shorter than chunk_size
        - Stops once the total reaches max_rows; the last page is kept
          whole, so the result may exceed max_rows by less than a page
        - A StoreError on any page is logged and ends the loop; rows
          fetched before it are returned
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")

    rows: List[T] = []
    start = 0
    end = chunk_size - 1

    while True:
        try:
            page = fetch_page(start, end)
        except StoreError as e:
            logger.error("Error fetching rows %d-%d: %s", start, end, e.message)
            break

        if not page:
            break

        rows.extend(page)

        if len(page) < chunk_size or len(rows) >= max_rows:
            break

        start += chunk_size
        end += chunk_size

    return rows
