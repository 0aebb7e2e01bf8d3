"""Retrieval of published spreadsheets as raw rows.

A sheet is fetched as CSV text over HTTP (aiohttp) and parsed with pandas into
a list of RawRow dicts. All values are read as text so that type inference
happens in one place, the converter; empty cells become None.
"""
from __future__ import annotations

import asyncio
import io
from typing import Awaitable, Callable

import aiohttp
import pandas as pd

from sheetmapper.config import (
    DOCUMENT_SHEET_CSV_URL,
    DOCUMENT_SHEET_VIEW_URL,
    FETCH_TIMEOUT_SECONDS,
    PUBLISHED_SHEET_CSV_URL,
    PUBLISHED_SHEET_ID_PREFIX,
    PUBLISHED_SHEET_VIEW_URL,
)
from sheetmapper.exceptions import FetchError
from sheetmapper.typevars import RawValue
from sheetmapper.utils.logging import get_logger

logger = get_logger(__name__)

TextFetcher = Callable[[str], Awaitable[str]]


def sheet_csv_url(sheet_id: str) -> str:
    """
    CSV export URL for a Google Sheet id.

    Ids of sheets published to the web ('2PACX-...') use the publish endpoint,
    any other id is treated as a document id and uses the export endpoint.
    """
    if not sheet_id or not sheet_id.strip():
        raise FetchError('No sheet ID provided')
    sheet_id = sheet_id.strip()
    if sheet_id.startswith(PUBLISHED_SHEET_ID_PREFIX):
        return PUBLISHED_SHEET_CSV_URL.format(sheet_id=sheet_id)
    return DOCUMENT_SHEET_CSV_URL.format(sheet_id=sheet_id)


def sheet_view_url(sheet_id: str) -> str:
    sheet_id = sheet_id.strip()
    if sheet_id.startswith(PUBLISHED_SHEET_ID_PREFIX):
        return PUBLISHED_SHEET_VIEW_URL.format(sheet_id=sheet_id)
    return DOCUMENT_SHEET_VIEW_URL.format(sheet_id=sheet_id)


async def fetch_text(url: str, timeout: float = FETCH_TIMEOUT_SECONDS) -> str:
    """
    GET url and return the body as text.

    Raises:
        FetchError: On connection problems, timeouts, non-2xx responses and
            bodies that cannot be decoded with the declared charset.
    """
    try:
        async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=timeout)) as session:
            async with session.get(url) as resp:
                if resp.status >= 400:
                    raise FetchError(f'HTTP {resp.status} while fetching {url}', url=url)
                return await resp.text()
    except aiohttp.ClientError as e:
        raise FetchError(f'Could not fetch {url}: {e}', url=url) from e
    except asyncio.TimeoutError as e:
        raise FetchError(f'Timed out after {timeout}s fetching {url}', url=url) from e
    except UnicodeDecodeError as e:
        raise FetchError(f'Response from {url} is not valid {e.encoding} text: {e.reason}', url=url) from e


def parse_csv_rows(csv_text: str) -> list[dict[str, RawValue]]:
    """
    Parse delimited text with a header row into RawRows.

    Blank lines are skipped, every value is kept as text and empty cells become None.

    Raises:
        FetchError: If the text cannot be parsed as CSV.
    """
    if not csv_text or not csv_text.strip():
        return []
    try:
        df = pd.read_csv(
            io.StringIO(csv_text),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise FetchError(f'Could not parse CSV data: {e}') from e

    df = df.loc[~(df == '').all(axis=1)]
    records = df.to_dict(orient='records')
    return [{k: (v if v != '' else None) for k, v in record.items()} for record in records]


class SheetSource:
    """
    Fetches and parses a spreadsheet into RawRows.

    Args:
        fetcher: Coroutine function url -> text; defaults to an aiohttp GET.

    Example:

        >>> source = SheetSource()
        >>> rows = await source.rows_from_sheet_id('2PACX-1vSCTGg...')
    """

    def __init__(self, fetcher: TextFetcher | None = None):
        self._fetcher = fetcher or fetch_text

    async def rows_from_url(self, url: str) -> list[dict[str, RawValue]]:
        logger.info(f'Fetching sheet data from {url}')
        text = await self._fetcher(url)
        rows = parse_csv_rows(text)
        logger.info(f'Parsed {len(rows)} rows')
        return rows

    async def rows_from_sheet_id(self, sheet_id: str) -> list[dict[str, RawValue]]:
        return await self.rows_from_url(sheet_csv_url(sheet_id))
