from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from sheetmapper.config import ConverterConfig, LAT_MIN, LAT_MAX, LON_MIN, LON_MAX
from sheetmapper.conversion.type_inference import to_number, is_empty
from sheetmapper.exceptions import MissingCoordinateFieldsError
from sheetmapper.typevars import RawValue


@dataclass(frozen=True)
class CoordinateFields:
    latitude: str
    longitude: str


class CoordinateFieldResolver:
    """
    Finds the latitude / longitude columns of a dataset.

    Two modes are supported:
        - designated: the configured latitude_field / longitude_field must exist verbatim
        - alias detection: the first column whose lower-cased name is one of the
          configured aliases is used, e.g. 'Lat', 'LNG' or 'x'

    Example:

        >>> resolver = CoordinateFieldResolver(ConverterConfig(detect_aliases=True))
        >>> resolver.resolve(['Name', 'LAT', 'Lng'])
        CoordinateFields(latitude='LAT', longitude='Lng')
    """

    def __init__(self, config: ConverterConfig | None = None):
        self.config = config or ConverterConfig()

    def resolve(self, columns: Sequence[str]) -> CoordinateFields:
        columns = list(columns)
        if self.config.detect_aliases:
            lat_field = self._find_alias(columns, self.config.latitude_aliases)
            lon_field = self._find_alias(columns, self.config.longitude_aliases)
            lat_candidates = self.config.latitude_aliases
            lon_candidates = self.config.longitude_aliases
        else:
            lat_field = self.config.latitude_field if self.config.latitude_field in columns else None
            lon_field = self.config.longitude_field if self.config.longitude_field in columns else None
            lat_candidates = (self.config.latitude_field, )
            lon_candidates = (self.config.longitude_field, )

        if lat_field is None or lon_field is None:
            raise MissingCoordinateFieldsError(columns, lat_candidates, lon_candidates)
        return CoordinateFields(latitude=lat_field, longitude=lon_field)

    @staticmethod
    def _find_alias(columns: list[str], aliases: Sequence[str]) -> str | None:
        accepted = {a.lower() for a in aliases}
        for column in columns:
            if str(column).strip().lower() in accepted:
                return column
        return None


def validate_coordinates(
        row: dict[str, RawValue],
        fields: CoordinateFields
) -> tuple[tuple[float, float] | None, str | None]:
    """
    Check one row's coordinates.

    Returns:
        ((lon, lat), None) for a valid row, (None, reason) otherwise.
    """
    raw_lat = row.get(fields.latitude)
    raw_lon = row.get(fields.longitude)
    if is_empty(raw_lat) or is_empty(raw_lon):
        return None, 'missing coordinates'

    lat = to_number(raw_lat)
    lon = to_number(raw_lon)
    if lat is None or lon is None:
        return None, f'unparseable coordinates ({raw_lat!r}, {raw_lon!r})'
    if not LAT_MIN <= lat <= LAT_MAX:
        return None, f'latitude {lat} out of range [{LAT_MIN}, {LAT_MAX}]'
    if not LON_MIN <= lon <= LON_MAX:
        return None, f'longitude {lon} out of range [{LON_MIN}, {LON_MAX}]'
    return (lon, lat), None
