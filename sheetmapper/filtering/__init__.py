from sheetmapper.filtering.filter_state import FilterState, MapBounds
from sheetmapper.filtering.proximity import (
    ProximityAnnotation,
    annotate_features,
    bearing_to_octant,
    format_distance,
    haversine_distance_km,
    initial_bearing_deg,
)
from sheetmapper.filtering.filter_engine import FilterProximityEngine, ProximityListing

__all__ = [
    'FilterState',
    'MapBounds',
    'ProximityAnnotation',
    'annotate_features',
    'bearing_to_octant',
    'format_distance',
    'haversine_distance_km',
    'initial_bearing_deg',
    'FilterProximityEngine',
    'ProximityListing',
]
