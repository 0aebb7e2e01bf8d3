"""Filtered, proximity-sorted views of a FeatureCollection.

The engine owns the FilterState and derives read-only views from the
FeatureCollection it was given. It reacts to three independent inputs:

    - per-column equality filters (AND-combined),
    - the 'within current map bounds' toggle together with the current bounds,
    - the reference point (usually the map center) used for sorting.

Every change is followed by a synchronous ``recompute`` from the host; there is
no caching of intermediate results, so the output always reflects the inputs.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator

from sheetmapper.config import DEFAULT_NUM_FILTER_FIELDS, ROW_NUMBER_FIELD
from sheetmapper.features import FeatureCollection, GeoFeature
from sheetmapper.filtering.filter_state import FilterState, MapBounds, is_unconstrained
from sheetmapper.filtering.proximity import ProximityAnnotation, annotate_features
from sheetmapper.typevars import FeatureId
from sheetmapper.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ProximityListing:
    """
    Filtered features sorted by distance, with their display annotations.

    ``collection`` is a new FeatureCollection carrying the source metadata;
    ``annotations`` is aligned with ``collection.features``.
    """
    collection: FeatureCollection
    annotations: tuple[ProximityAnnotation, ...]

    def __len__(self) -> int:
        return len(self.collection)

    def __iter__(self) -> Iterator[tuple[GeoFeature, ProximityAnnotation]]:
        return iter(zip(self.collection.features, self.annotations))

    @property
    def is_empty(self) -> bool:
        return len(self.collection) == 0

    def annotation_for(self, row_number: FeatureId) -> ProximityAnnotation | None:
        for annotation in self.annotations:
            if annotation.row_number == row_number:
                return annotation
        return None


class FilterProximityEngine:
    """
    Derives the visible subset of a FeatureCollection and sorts it by proximity.

    Args:
        collection: The full FeatureCollection of the current data load.
        num_filter_fields: Number of leading property columns offered as filters.
        display_fields: Optional allowlist of columns; when given, filter fields
            are taken from it (in its order) instead of the leading columns.

    Example:

        >>> rows = [
        ...     {'Name': 'far', 'Latitude': '1', 'Longitude': '0'},
        ...     {'Name': 'near', 'Latitude': '0.001', 'Longitude': '0'},
        ... ]
        >>> engine = FilterProximityEngine(SheetToGeoJSONConverter().convert(rows))
        >>> engine.set_reference_point(0.0, 0.0)
        >>> listing = engine.recompute()
        >>> [a.label for a in listing.annotations]
        ['↑ 111 m away', '↑ 111.2 km away']
    """

    def __init__(
            self,
            collection: FeatureCollection,
            num_filter_fields: int = DEFAULT_NUM_FILTER_FIELDS,
            display_fields: list[str] | None = None,
    ):
        self.num_filter_fields = num_filter_fields
        self.display_fields = display_fields
        self._collection = collection
        self._state = FilterState()
        self._bounds: MapBounds | None = None
        self._reference_point: tuple[float, float] | None = None
        self._state.clear(self.filter_fields)

    @property
    def collection(self) -> FeatureCollection:
        return self._collection

    @property
    def filter_state(self) -> FilterState:
        return self._state

    @property
    def active_filters(self) -> dict[str, Any]:
        return self._state.active_filters

    @property
    def use_map_bounds(self) -> bool:
        return self._state.use_map_bounds

    @property
    def bounds(self) -> MapBounds | None:
        return self._bounds

    @property
    def has_active_constraints(self) -> bool:
        return self._state.has_active_filters or self._state.use_map_bounds

    @property
    def reference_point(self) -> tuple[float, float]:
        """(lon, lat) used for sorting; falls back to the bounds center, then the data center."""
        if self._reference_point is not None:
            return self._reference_point
        if self._bounds is not None:
            return self._bounds.center
        data_bounds = self._collection.bounds
        if data_bounds is None:
            return 0.0, 0.0
        west, south, east, north = data_bounds
        return (west + east) / 2, (south + north) / 2

    @property
    def filter_fields(self) -> list[str]:
        columns = [c for c in self._collection.columns if c != ROW_NUMBER_FIELD]
        if self.display_fields:
            columns = [c for c in self.display_fields if c in columns]
        return columns[:self.num_filter_fields]

    def filter_options(self) -> dict[str, list[Any]]:
        """Distinct non-empty values per filter field, in order of first appearance."""
        options = {}
        for column in self.filter_fields:
            values = []
            for feature in self._collection:
                value = feature.properties.get(column)
                if not is_unconstrained(value) and value not in values:
                    values.append(value)
            options[column] = values
        return options

    def set_filter(self, column: str, value: Any) -> None:
        if column not in self._collection.columns:
            raise KeyError(f"Column '{column}' not found in data. Available: {self._collection.columns}")
        self._state.set_filter(column, value)

    def set_filters(self, filters: dict[str, Any]) -> None:
        for column, value in filters.items():
            self.set_filter(column, value)

    def set_use_map_bounds(self, use_map_bounds: bool) -> None:
        self._state.use_map_bounds = bool(use_map_bounds)

    def set_bounds(self, west: float, south: float, east: float, north: float) -> None:
        self._bounds = MapBounds(west, south, east, north)

    def set_reference_point(self, lon: float, lat: float) -> None:
        self._reference_point = (lon, lat)

    def reset(self) -> None:
        """Clear every column filter and switch the bounds constraint off."""
        self._state.clear(self.filter_fields)

    def update_data(self, collection: FeatureCollection) -> None:
        self._collection = collection
        self._state = FilterState()
        self._state.clear(self.filter_fields)

    def filtered_collection(self, apply_bounds: bool = True) -> FeatureCollection:
        features = [f for f in self._collection if self._state.matches(f.properties)]

        if apply_bounds and self._state.use_map_bounds:
            if self._bounds is None:
                logger.warning('Map bounds constraint is active but no bounds are known; ignoring it')
            else:
                features = [f for f in features if self._bounds.contains(f.geometry)]

        return self._collection.with_features(features)

    def recompute(self, filtered: FeatureCollection | None = None) -> ProximityListing:
        """
        Sort the filtered features by distance from the reference point.

        Args:
            filtered: Result of filtered_collection() if the caller already has it.
        """
        if filtered is None:
            filtered = self.filtered_collection()
        origin_lon, origin_lat = self.reference_point
        annotations = annotate_features(filtered.features, origin_lon, origin_lat)

        order = sorted(range(len(annotations)), key=lambda i: annotations[i].distance_km)
        listing = ProximityListing(
            collection=filtered.with_features(filtered.features[i] for i in order),
            annotations=tuple(annotations[i] for i in order),
        )
        logger.debug(
            f'Recomputed listing: {len(listing)} of {len(self._collection)} features '
            f'(filters={self.active_filters}, use_map_bounds={self.use_map_bounds})'
        )
        return listing

    def filter_expression(self) -> list:
        """Render-layer filter for the active column filters."""
        return ['all', *[['==', ['get', column], value] for column, value in self.active_filters.items()]]
