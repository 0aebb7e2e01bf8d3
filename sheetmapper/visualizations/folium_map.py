from __future__ import annotations

from typing import Any, Callable, Iterable

import folium
from shapely import MultiPoint, Point

from sheetmapper.config import (
    DEFAULT_LAYER_ID,
    DEFAULT_SOURCE_ID,
    DEFAULT_STROKE_LAYER_ID,
    HOVER_LINE_SOURCE_ID,
    ROW_NUMBER_FIELD,
)
from sheetmapper.filtering import ProximityListing
from sheetmapper.state import FeatureStateCoordinator, PaintStyle
from sheetmapper.typevars import FeatureId

DEFAULT_CIRCLE_COLOR = 'grey'
DEFAULT_CIRCLE_RADIUS = 3.0
DEFAULT_TILES = 'CartoDB Positron'


def evaluate_expression(expression: Any, properties: dict, state: dict[str, bool]) -> Any:
    """
    Evaluate the subset of map style expressions the core emits.

    Supported operators: 'all', '==', 'get', 'boolean', 'feature-state', 'case'.
    Anything that is not an operator list evaluates to itself.

    Example:

        >>> expr = ['case', ['boolean', ['feature-state', 'hover'], False], 'yellow', '#000000']
        >>> evaluate_expression(expr, {}, {'hover': True})
        'yellow'
    """
    if not isinstance(expression, list) or not expression or not isinstance(expression[0], str):
        return expression

    operator, *args = expression
    if operator == 'all':
        return all(evaluate_expression(a, properties, state) for a in args)
    if operator == '==':
        return evaluate_expression(args[0], properties, state) == evaluate_expression(args[1], properties, state)
    if operator == 'get':
        return properties.get(args[0])
    if operator == 'feature-state':
        return state.get(args[0])
    if operator == 'boolean':
        value = evaluate_expression(args[0], properties, state)
        return bool(value) if value is not None else args[1]
    if operator == 'case':
        *branches, fallback = args
        for condition, output in zip(branches[::2], branches[1::2]):
            if evaluate_expression(condition, properties, state):
                return evaluate_expression(output, properties, state)
        return evaluate_expression(fallback, properties, state)
    raise ValueError(f'Unsupported expression operator {operator!r}')


def _circle_radius(properties: dict) -> float:
    radius = properties.get('circle-radius')
    if isinstance(radius, (int, float)) and not isinstance(radius, bool):
        return float(radius)
    return DEFAULT_CIRCLE_RADIUS


def _tooltip(properties: dict) -> str:
    for key, value in properties.items():
        if key != ROW_NUMBER_FIELD:
            return '' if value is None else str(value)
    return ''


def add_circle_markers(
        feature_group: folium.FeatureGroup,
        features: Iterable[tuple[float, float, dict]],
        paint: dict[str, Any],
        state_for: Callable[[FeatureId], dict[str, bool]],
) -> int:
    """
    Add one CircleMarker per (lon, lat, properties) to feature_group.

    Stroke colour and width are the paint expressions evaluated against the
    feature's state, fill colour and radius come from the feature's own
    'circle-color' and 'circle-radius' properties.

    Returns:
        Number of markers added.
    """
    count = 0
    for lon, lat, props in features:
        state = state_for(props.get(ROW_NUMBER_FIELD))
        folium.CircleMarker(
            location=(lat, lon),
            tooltip=_tooltip(props),
            radius=_circle_radius(props),
            color=evaluate_expression(paint['circle-stroke-color'], props, state),
            weight=evaluate_expression(paint['circle-stroke-width'], props, state),
            fill=True,
            fillColor=props.get('circle-color') or DEFAULT_CIRCLE_COLOR,
            fillOpacity=1.0,
        ).add_to(feature_group)
        count += 1
    return count


def _fit_to_points(m: folium.Map, points: list[tuple[float, float]]) -> None:
    if not points:
        return
    west, south, east, north = MultiPoint([Point(lon, lat) for lon, lat in points]).bounds
    m.fit_bounds([(south, west), (north, east)])


def render_folium_map(
        listing: ProximityListing,
        coordinator: FeatureStateCoordinator | None = None,
        style: PaintStyle | None = None,
        tiles: str = DEFAULT_TILES,
) -> folium.Map:
    """
    Draw a proximity listing as a folium map.

    Args:
        listing: Features to draw, usually the session's current listing.
        coordinator: Source of hover / selected state; without it every
            feature gets the default stroke.
        style: Stroke colours and widths per state.
        tiles: folium tile layer name.

    Example:

        >>> m = render_folium_map(session.listing, session.coordinator)
        >>> m.save('map.html')
    """
    paint = FeatureStateCoordinator.paint_properties(style)
    state_for = coordinator.get_state if coordinator is not None else (lambda _: {})

    m = folium.Map(tiles=tiles, zoom_start=2)
    fg = folium.FeatureGroup(name=DEFAULT_SOURCE_ID)
    features = [(f.longitude, f.latitude, f.properties) for f in listing.collection]
    add_circle_markers(fg, features, paint, state_for)
    fg.add_to(m)
    _fit_to_points(m, [(lon, lat) for lon, lat, _ in features])
    return m


class FoliumRenderLayer:
    """
    RenderLayer that records what the core pushes and draws it with folium.

    Data, filters, paint properties and feature state are stored as received.
    ``to_map`` renders the current picture: the source's features passing the
    layer filter, styled by the recorded paint expressions and feature state,
    plus the hover line if one is set.

    Example:

        >>> render_layer = FoliumRenderLayer()
        >>> session = SheetMapSession(render_layer)
        >>> ...
        >>> render_layer.to_map().save('map.html')
    """

    def __init__(
            self,
            source_id: str = DEFAULT_SOURCE_ID,
            layer_id: str = DEFAULT_LAYER_ID,
            stroke_layer_id: str = DEFAULT_STROKE_LAYER_ID,
    ):
        self.source_id = source_id
        self.layer_id = layer_id
        self.stroke_layer_id = stroke_layer_id
        self.data: dict[str, dict] = {}
        self.feature_states: dict[str, dict[FeatureId, dict[str, bool]]] = {}
        self.filters: dict[str, list] = {}
        self.paint_properties: dict[str, dict[str, Any]] = {}

    def set_feature_state(self, source_id: str, feature_id: FeatureId, state: dict[str, bool]) -> None:
        self.feature_states.setdefault(source_id, {})[feature_id] = dict(state)

    def remove_feature_state(self, source_id: str, feature_id: FeatureId | None = None) -> None:
        if feature_id is None:
            self.feature_states.pop(source_id, None)
        else:
            self.feature_states.get(source_id, {}).pop(feature_id, None)

    def set_data(self, source_id: str, geojson: dict) -> None:
        self.data[source_id] = geojson

    def set_filter(self, layer_id: str, expression: list) -> None:
        self.filters[layer_id] = expression

    def set_paint_property(self, layer_id: str, name: str, value: Any) -> None:
        self.paint_properties.setdefault(layer_id, {})[name] = value

    def visible_features(self) -> list[dict]:
        features = self.data.get(self.source_id, {}).get('features', [])
        expression = self.filters.get(self.layer_id)
        if expression is None:
            return list(features)
        return [f for f in features if evaluate_expression(expression, f['properties'], {})]

    def to_map(self, tiles: str = DEFAULT_TILES) -> folium.Map:
        paint = {
            **FeatureStateCoordinator.paint_properties(),
            **self.paint_properties.get(self.stroke_layer_id, {}),
        }
        states = self.feature_states.get(self.source_id, {})

        m = folium.Map(tiles=tiles, zoom_start=2)
        fg = folium.FeatureGroup(name=self.source_id)
        features = [
            (*f['geometry']['coordinates'][:2], f['properties'])
            for f in self.visible_features()
        ]
        add_circle_markers(fg, features, paint, lambda fid: states.get(fid, {}))
        fg.add_to(m)

        for line in self.data.get(HOVER_LINE_SOURCE_ID, {}).get('features', []):
            folium.PolyLine(
                locations=[(lat, lon) for lon, lat in line['geometry']['coordinates']],
                color='#000',
                weight=1,
                dash_array='2,2',
            ).add_to(m)

        _fit_to_points(m, [(lon, lat) for lon, lat, _ in features])
        return m
