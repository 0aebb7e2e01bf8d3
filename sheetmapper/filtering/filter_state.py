from __future__ import annotations

from dataclasses import dataclass, field
from functools import cached_property
from typing import Any

import shapely
from shapely import Point, Polygon, MultiPolygon, box


def is_unconstrained(value: Any) -> bool:
    return value is None or value == ''


@dataclass(frozen=True)
class MapBounds:
    """
    Rectangular viewport in geographic coordinates.

    A viewport crossing the antimeridian has west > east; it is then represented
    as the union of the two rectangles left and right of the 180th meridian.
    """
    west: float
    south: float
    east: float
    north: float

    def to_polygon(self) -> Polygon | MultiPolygon:
        if self.west <= self.east:
            return box(self.west, self.south, self.east, self.north)
        return MultiPolygon([
            box(self.west, self.south, 180.0, self.north),
            box(-180.0, self.south, self.east, self.north),
        ])

    @cached_property
    def polygon(self) -> Polygon | MultiPolygon:
        """Prepared viewport geometry, built once per MapBounds."""
        polygon = self.to_polygon()
        shapely.prepare(polygon)
        return polygon

    def contains(self, point: Point) -> bool:
        """Point-in-viewport test; points on the edge count as inside."""
        return self.polygon.covers(point)

    @property
    def center(self) -> tuple[float, float]:
        """(lon, lat) of the viewport center."""
        east = self.east if self.west <= self.east else self.east + 360.0
        lon = (self.west + east) / 2
        if lon > 180.0:
            lon -= 360.0
        return lon, (self.south + self.north) / 2


@dataclass
class FilterState:
    """
    Per-column equality filters plus the 'constrain to map bounds' toggle.

    A column mapped to None (or '') places no constraint on the data.
    """
    column_filters: dict[str, Any] = field(default_factory=dict)
    use_map_bounds: bool = False

    @property
    def active_filters(self) -> dict[str, Any]:
        return {k: v for k, v in self.column_filters.items() if not is_unconstrained(v)}

    @property
    def has_active_filters(self) -> bool:
        return bool(self.active_filters)

    def set_filter(self, column: str, value: Any) -> None:
        self.column_filters[column] = None if is_unconstrained(value) else value

    def clear(self, columns: list[str] | None = None) -> None:
        self.column_filters = {c: None for c in (columns if columns is not None else self.column_filters)}
        self.use_map_bounds = False

    def matches(self, properties: dict[str, Any]) -> bool:
        return all(properties.get(column) == value for column, value in self.active_filters.items())

    def snapshot(self) -> dict[str, Any]:
        return dict(self.column_filters)
