from __future__ import annotations

import datetime
import json
import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator

from shapely import Point, MultiPoint

from sheetmapper.config import ROW_NUMBER_FIELD
from sheetmapper.enums import FieldType
from sheetmapper.typevars import FeatureId, RawValue


@dataclass(frozen=True)
class InvalidRow:
    """
    A source row that failed coordinate validation.

    The row is kept verbatim (a shallow copy of the raw mapping) so that it can be
    reported back for correction in the spreadsheet. Only the row itself is written
    to GeoJSON; row_index and reason are diagnostics of the conversion run.
    """
    row: dict[str, RawValue]
    row_index: int | None = None
    reason: str | None = None


@dataclass(frozen=True)
class FeatureCollectionMetadata:
    field_types: dict[str, FieldType]
    invalid_rows: tuple[InvalidRow, ...] = ()
    total_row_count: int = 0
    valid_row_count: int = 0

    @property
    def invalid_row_count(self) -> int:
        return len(self.invalid_rows)

    def to_dict(self) -> dict:
        return {
            'fieldTypes': {name: ftype.value for name, ftype in self.field_types.items()},
            'invalidRows': [{k: _to_json_value(v) for k, v in r.row.items()} for r in self.invalid_rows],
            'totalRowCount': self.total_row_count,
            'validRowCount': self.valid_row_count,
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> FeatureCollectionMetadata:
        data = data or {}
        return cls(
            field_types={k: FieldType(v) for k, v in data.get('fieldTypes', {}).items()},
            invalid_rows=tuple(InvalidRow(row=dict(r)) for r in data.get('invalidRows', [])),
            total_row_count=data.get('totalRowCount', 0),
            valid_row_count=data.get('validRowCount', 0),
        )


@dataclass(frozen=True)
class GeoFeature:
    """One geolocated spreadsheet row: a point geometry plus its typed property bag."""
    geometry: Point
    properties: dict[str, Any] = field(default_factory=dict)

    @property
    def longitude(self) -> float:
        return self.geometry.x

    @property
    def latitude(self) -> float:
        return self.geometry.y

    @property
    def row_number(self) -> FeatureId:
        return self.properties[ROW_NUMBER_FIELD]

    def to_geojson_dict(self) -> dict:
        return {
            'type': 'Feature',
            'geometry': {
                'type': 'Point',
                'coordinates': [self.longitude, self.latitude],
            },
            'properties': {k: _to_json_value(v) for k, v in self.properties.items()},
        }

    @classmethod
    def from_geojson_dict(cls, data: dict, field_types: dict[str, FieldType] | None = None) -> GeoFeature:
        lon, lat = data['geometry']['coordinates'][:2]
        properties = dict(data.get('properties') or {})
        for name, ftype in (field_types or {}).items():
            if ftype == FieldType.DATE and isinstance(properties.get(name), str):
                properties[name] = datetime.datetime.fromisoformat(properties[name])
        return cls(geometry=Point(lon, lat), properties=properties)


@dataclass(frozen=True)
class FeatureCollection:
    """
    Immutable set of GeoFeatures with the metadata of the conversion that produced it.

    A collection is created once per data load. Filtered views are new
    FeatureCollection objects built via ``with_features`` and carry the
    original metadata unchanged.

    Example:

        >>> collection = SheetToGeoJSONConverter().convert(rows)
        >>> parks = collection.with_features(f for f in collection if f.properties['Category'] == 'Park')
        >>> parks.metadata is collection.metadata
        True
    """
    features: tuple[GeoFeature, ...]
    metadata: FeatureCollectionMetadata

    def __post_init__(self):
        if not isinstance(self.features, tuple):
            object.__setattr__(self, 'features', tuple(self.features))

    def __len__(self) -> int:
        return len(self.features)

    def __iter__(self) -> Iterator[GeoFeature]:
        return iter(self.features)

    @property
    def row_numbers(self) -> list[FeatureId]:
        return [f.row_number for f in self.features]

    @property
    def columns(self) -> list[str]:
        if not self.features:
            return list(self.metadata.field_types.keys())
        return list(self.features[0].properties.keys())

    @property
    def bounds(self) -> tuple[float, float, float, float] | None:
        """(west, south, east, north) of all features, or None for an empty collection."""
        if not self.features:
            return None
        return MultiPoint([f.geometry for f in self.features]).bounds

    def get_feature(self, row_number: FeatureId) -> GeoFeature | None:
        for feature in self.features:
            if feature.row_number == row_number:
                return feature
        return None

    def with_features(self, features: Iterable[GeoFeature]) -> FeatureCollection:
        return FeatureCollection(features=tuple(features), metadata=self.metadata)

    def to_geojson_dict(self) -> dict:
        return {
            'type': 'FeatureCollection',
            'features': [f.to_geojson_dict() for f in self.features],
            'metadata': self.metadata.to_dict(),
        }

    def to_json(self, indent: int | None = None) -> str:
        return json.dumps(self.to_geojson_dict(), indent=indent, ensure_ascii=False, allow_nan=False)

    @classmethod
    def from_geojson_dict(cls, data: dict) -> FeatureCollection:
        if data.get('type') != 'FeatureCollection':
            raise ValueError(f"Expected a GeoJSON FeatureCollection, got type {data.get('type')!r}")
        metadata = FeatureCollectionMetadata.from_dict(data.get('metadata'))
        features = tuple(
            GeoFeature.from_geojson_dict(f, metadata.field_types)
            for f in data.get('features', [])
        )
        return cls(features=features, metadata=metadata)


def _to_json_value(value: Any) -> Any:
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, (datetime.datetime, datetime.date)):
        return value.isoformat()
    return value
