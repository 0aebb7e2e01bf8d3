"""UI events consumed by SheetMapSession.handle and the view updates it produces.

Events are plain immutable values; the map/page adapter translates the host's
callbacks (pointer move, click, move end, select change, ...) into them.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from sheetmapper.features import FeatureCollection
from sheetmapper.filtering import ProximityListing
from sheetmapper.state import InteractionState
from sheetmapper.typevars import FeatureId


class ViewEvent:
    pass


@dataclass(frozen=True)
class PointerMove(ViewEvent):
    """
    Pointer moved over the feature layer.

    candidate_ids are the features the host found under / near the pointer
    (e.g. rendered features in a box around it); None means every visible feature.
    """
    lon: float
    lat: float
    candidate_ids: tuple[FeatureId, ...] | None = None


@dataclass(frozen=True)
class PointerLeave(ViewEvent):
    pass


@dataclass(frozen=True)
class ListItemHover(ViewEvent):
    feature_id: FeatureId


@dataclass(frozen=True)
class ListItemLeave(ViewEvent):
    pass


@dataclass(frozen=True)
class FeatureClick(ViewEvent):
    """Click on a map feature or a list item; None clears the selection."""
    feature_id: FeatureId | None


@dataclass(frozen=True)
class MapMoveEnd(ViewEvent):
    center_lon: float
    center_lat: float
    west: float
    south: float
    east: float
    north: float


@dataclass(frozen=True)
class FilterChange(ViewEvent):
    column: str
    value: Any = None


@dataclass(frozen=True)
class BoundsToggle(ViewEvent):
    enabled: bool


@dataclass(frozen=True)
class ResetFilters(ViewEvent):
    pass


@dataclass(frozen=True)
class FilterSummary:
    """Payload announced after every filter change."""
    filters: dict[str, Any]
    filtered_collection: FeatureCollection
    use_map_bounds: bool


@dataclass(frozen=True)
class ViewUpdate:
    """
    Everything the view composer needs to refresh after one event.

    Attributes:
        changed: Whether any state changed as a result of the event.
        interaction: Hover / selection after the event.
        listing: New proximity-sorted list, or None if the list is unaffected.
        filter_summary: Set when filters or the bounds toggle changed.
        hover_line: GeoJSON FeatureCollection for the pointer-to-feature line.
        fly_to: (lon, lat, zoom) the map should move to, if any.
    """
    changed: bool = False
    interaction: InteractionState = field(default_factory=InteractionState)
    listing: ProximityListing | None = None
    filter_summary: FilterSummary | None = None
    hover_line: dict | None = None
    fly_to: tuple[float, float, float] | None = None
