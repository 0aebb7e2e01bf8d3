from sheetmapper.io.sheet_source import SheetSource, fetch_text, parse_csv_rows, sheet_csv_url, sheet_view_url
from sheetmapper.io.geojson_export import dumps_geojson, export_filename, export_geojson, read_geojson

__all__ = [
    'SheetSource',
    'fetch_text',
    'parse_csv_rows',
    'sheet_csv_url',
    'sheet_view_url',
    'dumps_geojson',
    'export_filename',
    'export_geojson',
    'read_geojson',
]
