import asyncio

import pytest

from sheetmapper.exceptions import FetchError
from sheetmapper.io import SheetSource, fetch_text, parse_csv_rows, sheet_csv_url, sheet_view_url

from conftest import serving

CSV_TEXT = (
    'Name,Latitude,Longitude,Notes\n'
    'Cafe,18.52,73.85,\n'
    '\n'
    ',,,\n'
    '"Park, north",18.53,73.86,shady\n'
)


def test_parse_csv_rows_keeps_text_and_skips_blank_lines():
    rows = parse_csv_rows(CSV_TEXT)
    assert rows == [
        {'Name': 'Cafe', 'Latitude': '18.52', 'Longitude': '73.85', 'Notes': None},
        {'Name': 'Park, north', 'Latitude': '18.53', 'Longitude': '73.86', 'Notes': 'shady'},
    ]


def test_parse_csv_rows_without_data():
    assert parse_csv_rows('') == []
    assert parse_csv_rows('Name,Latitude,Longitude\n') == []


def test_published_and_document_urls():
    assert sheet_csv_url('2PACX-abc') == (
        'https://docs.google.com/spreadsheets/d/e/2PACX-abc/pub?single=true&output=csv'
    )
    assert sheet_csv_url(' 1AbC ') == 'https://docs.google.com/spreadsheets/d/1AbC/export?format=csv'
    assert sheet_view_url('2PACX-abc').endswith('/d/e/2PACX-abc/pubhtml')


def test_missing_sheet_id():
    with pytest.raises(FetchError):
        sheet_csv_url('')


def test_source_uses_injected_fetcher():
    requested = []

    async def fetcher(url):
        requested.append(url)
        return CSV_TEXT

    rows = asyncio.run(SheetSource(fetcher).rows_from_sheet_id('2PACX-abc'))
    assert len(rows) == 2
    assert requested == [sheet_csv_url('2PACX-abc')]


def test_fetch_errors_propagate():
    async def fetcher(url):
        raise FetchError('HTTP 404', url=url)

    with pytest.raises(FetchError) as exc_info:
        asyncio.run(SheetSource(fetcher).rows_from_url('https://example.com/data.csv'))
    assert exc_info.value.url == 'https://example.com/data.csv'


def test_fetch_text_over_http():
    async def _run():
        async with serving(CSV_TEXT.encode('utf-8')) as url:
            return await fetch_text(url)

    assert asyncio.run(_run()) == CSV_TEXT


def test_undecodable_body_is_a_fetch_error():
    async def _run():
        async with serving(b'Name,Latitude,Longitude\n\xff\xfe,1,1\n') as url:
            return await fetch_text(url)

    with pytest.raises(FetchError) as exc_info:
        asyncio.run(_run())
    assert isinstance(exc_info.value.__cause__, UnicodeDecodeError)
