"""Great-circle distance, initial bearing and their display formatting.

Distances use the haversine formula on a sphere with the mean Earth radius;
bearings are initial (forward azimuth) bearings in degrees clockwise from north.
Both are vectorised over numpy arrays so a whole collection is annotated at once.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from sheetmapper.config import (
    EARTH_RADIUS_KM,
    AT_LOCATION_THRESHOLD_KM,
    KILOMETER_DISPLAY_THRESHOLD_KM,
)
from sheetmapper.enums import CompassOctant
from sheetmapper.features import GeoFeature
from sheetmapper.typevars import FeatureId

_OCTANTS_CLOCKWISE = [
    CompassOctant.N,
    CompassOctant.NE,
    CompassOctant.E,
    CompassOctant.SE,
    CompassOctant.S,
    CompassOctant.SW,
    CompassOctant.W,
    CompassOctant.NW,
]


@dataclass(frozen=True)
class ProximityAnnotation:
    """Distance and direction of one feature as seen from the reference point."""
    row_number: FeatureId
    distance_km: float
    bearing_deg: float
    octant: CompassOctant
    formatted_distance: str

    @property
    def direction_symbol(self) -> str:
        return self.octant.arrow

    @property
    def label(self) -> str:
        return f'{self.direction_symbol} {self.formatted_distance} away'


def haversine_distance_km(
        origin_lon: float,
        origin_lat: float,
        lons: np.ndarray | Sequence[float],
        lats: np.ndarray | Sequence[float],
) -> np.ndarray:
    lat1 = np.deg2rad(origin_lat)
    lat2 = np.deg2rad(np.asarray(lats, dtype=float))
    d_lat = lat2 - lat1
    d_lon = np.deg2rad(np.asarray(lons, dtype=float) - origin_lon)

    a = np.sin(d_lat / 2) ** 2 + np.sin(d_lon / 2) ** 2 * np.cos(lat1) * np.cos(lat2)
    return 2 * EARTH_RADIUS_KM * np.arctan2(np.sqrt(a), np.sqrt(1 - a))


def initial_bearing_deg(
        origin_lon: float,
        origin_lat: float,
        lons: np.ndarray | Sequence[float],
        lats: np.ndarray | Sequence[float],
) -> np.ndarray:
    """Initial bearing in degrees, range (-180, 180], 0 = north, 90 = east."""
    lat1 = np.deg2rad(origin_lat)
    lat2 = np.deg2rad(np.asarray(lats, dtype=float))
    d_lon = np.deg2rad(np.asarray(lons, dtype=float) - origin_lon)

    y = np.sin(d_lon) * np.cos(lat2)
    x = np.cos(lat1) * np.sin(lat2) - np.sin(lat1) * np.cos(lat2) * np.cos(d_lon)
    return np.rad2deg(np.arctan2(y, x))


def bearing_to_octant(bearing_deg: float) -> CompassOctant:
    """
    Bucket a bearing into one of 8 compass octants of 45 degrees each.

    North covers [337.5, 22.5), north-east [22.5, 67.5) and so on clockwise.

    Example:

        >>> bearing_to_octant(-30.0)
        <CompassOctant.NW: 'NW'>
        >>> bearing_to_octant(22.5)
        <CompassOctant.NE: 'NE'>
    """
    normalized = (bearing_deg + 360.0) % 360.0
    index = int(((normalized + 22.5) % 360.0) // 45.0)
    return _OCTANTS_CLOCKWISE[index]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def format_distance(distance_km: float) -> str:
    """'<n> m' below one kilometer, '<x.y> km' from there on."""
    if distance_km < KILOMETER_DISPLAY_THRESHOLD_KM:
        return f'{_round_half_up(distance_km * 1000)} m'
    return f'{_round_half_up(distance_km * 10) / 10:.1f} km'


def annotate_features(
        features: Sequence[GeoFeature],
        origin_lon: float,
        origin_lat: float,
) -> list[ProximityAnnotation]:
    """Proximity annotations for features, in input order."""
    if not features:
        return []
    lons = np.fromiter((f.longitude for f in features), dtype=float, count=len(features))
    lats = np.fromiter((f.latitude for f in features), dtype=float, count=len(features))
    distances = haversine_distance_km(origin_lon, origin_lat, lons, lats)
    bearings = initial_bearing_deg(origin_lon, origin_lat, lons, lats)

    annotations = []
    for feature, distance, bearing in zip(features, distances, bearings):
        distance = float(distance)
        bearing = float(bearing)
        if distance < AT_LOCATION_THRESHOLD_KM:
            octant = CompassOctant.AT_LOCATION
        else:
            octant = bearing_to_octant(bearing)
        annotations.append(
            ProximityAnnotation(
                row_number=feature.row_number,
                distance_km=distance,
                bearing_deg=bearing,
                octant=octant,
                formatted_distance=format_distance(distance),
            )
        )
    return annotations
