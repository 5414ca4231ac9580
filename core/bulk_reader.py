# core/bulk_reader.py
"""
Assemble full result sets from a page source that truncates every request.
"""
import logging
from typing import Any

from core.errors import DataAccessError, ValidationError
from core.store import Descriptor, PageSource, describe

logger = logging.getLogger(__name__)


async def read_all(source: PageSource, descriptor: Descriptor, max_records: int) -> list[Any]:
    """
    Read every row matching ``descriptor``, up to ``max_records``.

    Pages of ``source.page_size`` rows are fetched one after another at
    offsets ``0, P, 2P, ...``. Reading stops at the first short page (end of
    data) or once ``max_records`` rows are collected, in which case the
    result is cut to exactly ``max_records``. Nothing is cached between calls.

    Raises:
        ValidationError: If ``max_records`` is below 1
        DataAccessError: If any page fetch fails; no partial result is returned
    """
    if max_records < 1:
        raise ValidationError(f"max_records must be at least 1, got {max_records}")

    page_size = source.page_size
    rows: list[Any] = []
    page_index = 0

    while True:
        offset = page_index * page_size
        try:
            page = await source.query(descriptor, limit=page_size, offset=offset)
        except DataAccessError:
            raise
        except Exception as exc:
            raise DataAccessError(
                f"Page {page_index} of {describe(descriptor)} failed"
            ) from exc

        logger.debug("Fetched page %d (%d rows) for %s", page_index, len(page), describe(descriptor))
        rows.extend(page)

        if len(rows) >= max_records:
            if len(page) == page_size:
                logger.info(
                    "Read of %s stopped at ceiling of %d rows",
                    describe(descriptor),
                    max_records,
                )
            return rows[:max_records]
        if len(page) < page_size:
            return rows

        page_index += 1
