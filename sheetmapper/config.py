"""
Configuration for SheetMapper.

Module level constants hold values shared by every viewer (URL templates,
geodesic constants, display thresholds). Per-instance settings live in the
dataclass configs below; both support ``merge`` to overlay non-None values
from another config or a plain dict.
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from urllib.parse import parse_qs

from sheetmapper.enums import RowNumbering
from sheetmapper.typevars import ConfigType
from sheetmapper.utils.str_to_bool import str_to_bool

# =============================================================================
# SOURCE URLS
# =============================================================================

PUBLISHED_SHEET_CSV_URL = 'https://docs.google.com/spreadsheets/d/e/{sheet_id}/pub?single=true&output=csv'
DOCUMENT_SHEET_CSV_URL = 'https://docs.google.com/spreadsheets/d/{sheet_id}/export?format=csv'
PUBLISHED_SHEET_VIEW_URL = 'https://docs.google.com/spreadsheets/d/e/{sheet_id}/pubhtml'
DOCUMENT_SHEET_VIEW_URL = 'https://docs.google.com/spreadsheets/d/{sheet_id}/pubhtml'
PUBLISHED_SHEET_ID_PREFIX = '2PACX-'
GOOGLE_MAPS_SEARCH_URL = 'https://www.google.com/maps/search/?api=1&query={lat},{lon}'

FETCH_TIMEOUT_SECONDS = 30

# =============================================================================
# COORDINATES
# =============================================================================

DEFAULT_LATITUDE_FIELD = 'Latitude'
DEFAULT_LONGITUDE_FIELD = 'Longitude'
LATITUDE_ALIASES = ('latitude', 'lat', 'y')
LONGITUDE_ALIASES = ('longitude', 'lon', 'lng', 'x')
ROW_NUMBER_FIELD = 'row_number'

LAT_MIN, LAT_MAX = -90.0, 90.0
LON_MIN, LON_MAX = -180.0, 180.0

# =============================================================================
# PROXIMITY
# =============================================================================

EARTH_RADIUS_KM = 6371.0088
AT_LOCATION_THRESHOLD_KM = 0.01
KILOMETER_DISPLAY_THRESHOLD_KM = 1.0

# =============================================================================
# RENDER LAYER
# =============================================================================

DEFAULT_SOURCE_ID = 'sheet-data'
DEFAULT_LAYER_ID = 'sheet-data'
DEFAULT_STROKE_LAYER_ID = 'sheet-data-stroke'
HOVER_LINE_SOURCE_ID = 'hover-line'
DEFAULT_EXPORT_FILENAME = 'map-data.geojson'
DEFAULT_NUM_FILTER_FIELDS = 4
FLY_TO_ZOOM = 14


@dataclass
class BaseConfig:

    def merge(self: ConfigType, other: ConfigType | dict | None) -> ConfigType:
        if other is None:
            return self

        merged_config = self.__class__(**{f.name: getattr(self, f.name) for f in fields(self)})

        if isinstance(other, dict):
            for key, value in other.items():
                if value is not None:
                    setattr(merged_config, key, value)
            return merged_config

        for f in fields(other):
            other_value = getattr(other, f.name)
            if other_value is not None:
                setattr(merged_config, f.name, other_value)

        return merged_config


@dataclass
class ConverterConfig(BaseConfig):
    """
    Settings for turning raw spreadsheet rows into a FeatureCollection.

    Attributes:
        latitude_field: Designated latitude column, used when detect_aliases is False.
        longitude_field: Designated longitude column, used when detect_aliases is False.
        detect_aliases: Resolve the coordinate columns by case-insensitive alias match
            instead of using the designated names.
        latitude_aliases: Accepted latitude column names for alias detection.
        longitude_aliases: Accepted longitude column names for alias detection.
        row_numbering: Convention for the synthetic row_number identifier.
    """
    latitude_field: str = DEFAULT_LATITUDE_FIELD
    longitude_field: str = DEFAULT_LONGITUDE_FIELD
    detect_aliases: bool = False
    latitude_aliases: tuple[str, ...] = LATITUDE_ALIASES
    longitude_aliases: tuple[str, ...] = LONGITUDE_ALIASES
    row_numbering: RowNumbering = RowNumbering.SHEET_ROW


@dataclass
class ViewerOptions(BaseConfig):
    """
    Host page options, usually read from the page's query string.

    Example:

        >>> options = ViewerOptions.from_query_string('sheetId=abc&display_fields=Name, City&show_header=false')
        >>> options.display_fields
        ['Name', 'City']
        >>> options.show_header
        False
    """
    sheet_id: str | None = None
    display_fields: list[str] | None = None
    show_header: bool = True
    data_filter: str | None = None
    num_filter_fields: int = DEFAULT_NUM_FILTER_FIELDS
    source_id: str = DEFAULT_SOURCE_ID
    layer_id: str = DEFAULT_LAYER_ID
    export_filename: str = DEFAULT_EXPORT_FILENAME
    converter: ConverterConfig = field(default_factory=ConverterConfig)

    @classmethod
    def from_query_string(cls, query: str) -> ViewerOptions:
        params = parse_qs(query.lstrip('?'), keep_blank_values=True)

        def _first(key: str) -> str | None:
            values = params.get(key)
            return values[0] if values else None

        display_fields = _first('display_fields')
        show_header = _first('show_header')
        return cls(
            sheet_id=_first('sheetId') or None,
            display_fields=(
                [f.strip() for f in display_fields.split(',') if f.strip()]
                if display_fields else None
            ),
            show_header=str_to_bool(show_header) if show_header else True,
            data_filter=_first('data_filter') or None,
        )
