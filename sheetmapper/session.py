"""Glue between data loading, the filter engine, the feature state coordinator and the map.

SheetMapSession is created once per map. It
    - loads data (sheet id, URL or rows) as the only suspending operation,
      guarded by a monotonic load generation so that a newer load always wins,
    - waits once for the render layer to report readiness before pushing data,
    - turns UI events into state changes and returns a ViewUpdate per event.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable

from shapely import LineString
from shapely.geometry import mapping

from sheetmapper.config import (
    DEFAULT_STROKE_LAYER_ID,
    FLY_TO_ZOOM,
    HOVER_LINE_SOURCE_ID,
    ViewerOptions,
)
from sheetmapper.conversion import SheetToGeoJSONConverter
from sheetmapper.enums import LoadStatus
from sheetmapper.events import (
    BoundsToggle,
    FeatureClick,
    FilterChange,
    FilterSummary,
    ListItemHover,
    ListItemLeave,
    MapMoveEnd,
    PointerLeave,
    PointerMove,
    ResetFilters,
    ViewEvent,
    ViewUpdate,
)
from sheetmapper.exceptions import SheetMapperError
from sheetmapper.features import FeatureCollection, GeoFeature
from sheetmapper.filtering import FilterProximityEngine, ProximityListing, haversine_distance_km
from sheetmapper.io import SheetSource, export_geojson
from sheetmapper.state import FeatureStateCoordinator, RenderLayer
from sheetmapper.typevars import RawValue
from sheetmapper.utils.logging import get_logger

logger = get_logger(__name__)

EMPTY_FEATURE_COLLECTION = {'type': 'FeatureCollection', 'features': []}


@dataclass(frozen=True)
class LoadOutcome:
    status: LoadStatus
    generation: int
    collection: FeatureCollection | None = None
    listing: ProximityListing | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.status == LoadStatus.LOADED


class SheetMapSession:
    """
    One viewer: current data, filters, interaction state and the map it drives.

    Args:
        render_layer: Map adapter implementing the RenderLayer protocol.
        options: Viewer options (source/layer ids, filter fields, converter config).
        source: Sheet fetcher; replace it to load from somewhere other than HTTP.

    Example:

        >>> session = SheetMapSession(render_layer, ViewerOptions.from_query_string(query))
        >>> session.mark_ready()  # called by the map adapter once the style is loaded
        >>> outcome = await session.load_sheet(session.options.sheet_id)
        >>> update = session.handle(FilterChange('Category', 'Park'))
        >>> {f.properties['Category'] for f, _ in update.listing}
        {'Park'}
    """

    def __init__(
            self,
            render_layer: RenderLayer,
            options: ViewerOptions | None = None,
            source: SheetSource | None = None,
    ):
        self.render_layer = render_layer
        self.options = options or ViewerOptions()
        self.source = source or SheetSource()
        self.converter = SheetToGeoJSONConverter(self.options.converter)
        self.coordinator = FeatureStateCoordinator(render_layer, self.options.source_id)
        self.engine: FilterProximityEngine | None = None
        self._generation = 0
        self._is_ready = False
        self._ready: asyncio.Future | None = None
        self._listing: ProximityListing | None = None
        self._handlers: dict[type, Callable[[ViewEvent], ViewUpdate]] = {
            PointerMove: self._on_pointer_move,
            PointerLeave: self._on_pointer_leave,
            ListItemHover: self._on_list_item_hover,
            ListItemLeave: self._on_pointer_leave,
            FeatureClick: self._on_feature_click,
            MapMoveEnd: self._on_map_move_end,
            FilterChange: self._on_filter_change,
            BoundsToggle: self._on_bounds_toggle,
            ResetFilters: self._on_reset_filters,
        }

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def collection(self) -> FeatureCollection | None:
        return self.engine.collection if self.engine is not None else None

    @property
    def listing(self) -> ProximityListing | None:
        return self._listing

    # ------------------------------------------------------------------
    # readiness

    def mark_ready(self) -> None:
        """Mark the map as ready and release pending loads; works with or without a running loop."""
        self._is_ready = True
        future, self._ready = self._ready, None
        if future is not None and not future.done() and not future.get_loop().is_closed():
            future.set_result(True)

    @property
    def is_ready(self) -> bool:
        return self._is_ready

    async def wait_ready(self) -> None:
        if self._is_ready:
            return
        loop = asyncio.get_running_loop()
        if self._ready is None or self._ready.done() or self._ready.get_loop() is not loop:
            self._ready = loop.create_future()
        await asyncio.shield(self._ready)

    # ------------------------------------------------------------------
    # loading

    async def load_sheet(self, sheet_id: str) -> LoadOutcome:
        return await self._load(lambda: self.source.rows_from_sheet_id(sheet_id))

    async def load_url(self, url: str) -> LoadOutcome:
        return await self._load(lambda: self.source.rows_from_url(url))

    async def load_rows(self, rows: list[dict[str, RawValue]]) -> LoadOutcome:
        async def _rows():
            return rows
        return await self._load(_rows)

    async def _load(self, get_rows: Callable[[], Awaitable[list[dict[str, RawValue]]]]) -> LoadOutcome:
        self._generation += 1
        generation = self._generation
        logger.info(f'Starting data load #{generation}')

        try:
            rows = await get_rows()
            collection = self.converter.convert(rows)
        except SheetMapperError as e:
            if generation != self._generation:
                return self._stale(generation)
            logger.error(f'Data load #{generation} failed: {e}')
            return LoadOutcome(status=LoadStatus.FAILED, generation=generation, error=e)

        await self.wait_ready()
        if generation != self._generation:
            return self._stale(generation)

        listing = self._install(collection)
        logger.info(f'Data load #{generation} finished with {len(collection)} features')
        return LoadOutcome(
            status=LoadStatus.LOADED,
            generation=generation,
            collection=collection,
            listing=listing,
        )

    def _stale(self, generation: int) -> LoadOutcome:
        logger.info(f'Discarding result of data load #{generation}; load #{self._generation} superseded it')
        return LoadOutcome(status=LoadStatus.STALE, generation=generation)

    def _install(self, collection: FeatureCollection) -> ProximityListing:
        if self.engine is None:
            self.engine = FilterProximityEngine(
                collection,
                num_filter_fields=self.options.num_filter_fields,
                display_fields=self.options.display_fields,
            )
        else:
            self.engine.update_data(collection)
        self.coordinator.clear_all()

        self.render_layer.set_data(self.options.source_id, collection.to_geojson_dict())
        self.render_layer.set_data(HOVER_LINE_SOURCE_ID, EMPTY_FEATURE_COLLECTION)
        self.render_layer.set_filter(self.options.layer_id, self.engine.filter_expression())
        self.coordinator.apply_paint_properties(DEFAULT_STROKE_LAYER_ID)
        self._listing = self.engine.recompute()
        return self._listing

    # ------------------------------------------------------------------
    # events

    def handle(self, event: ViewEvent) -> ViewUpdate:
        handler = self._handlers.get(type(event))
        if handler is None:
            raise TypeError(f'Unsupported event type {type(event).__name__}')
        if self.engine is None:
            logger.debug(f'Ignoring {type(event).__name__}: no data loaded')
            return ViewUpdate(interaction=self.coordinator.interaction_state)
        return handler(event)

    def _update(self, changed: bool, **kwargs) -> ViewUpdate:
        return ViewUpdate(changed=changed, interaction=self.coordinator.interaction_state, **kwargs)

    def _visible_features(self) -> tuple[GeoFeature, ...]:
        if self._listing is not None:
            return self._listing.collection.features
        return self.engine.collection.features

    def _on_pointer_move(self, event: PointerMove) -> ViewUpdate:
        candidates = self._visible_features()
        if event.candidate_ids is not None:
            wanted = set(event.candidate_ids)
            candidates = tuple(f for f in candidates if f.row_number in wanted)

        if not candidates:
            changed = self.coordinator.set_hovered(None)
            return self._update(changed, hover_line=EMPTY_FEATURE_COLLECTION)

        distances = haversine_distance_km(
            event.lon, event.lat,
            [f.longitude for f in candidates],
            [f.latitude for f in candidates],
        )
        nearest = candidates[int(distances.argmin())]
        changed = self.coordinator.set_hovered(nearest.row_number)

        line = LineString([(event.lon, event.lat), (nearest.longitude, nearest.latitude)])
        hover_line = {
            'type': 'FeatureCollection',
            'features': [{'type': 'Feature', 'geometry': mapping(line), 'properties': {}}],
        }
        return self._update(changed, hover_line=hover_line)

    def _on_pointer_leave(self, event: ViewEvent) -> ViewUpdate:
        changed = self.coordinator.set_hovered(None)
        return self._update(changed, hover_line=EMPTY_FEATURE_COLLECTION)

    def _on_list_item_hover(self, event: ListItemHover) -> ViewUpdate:
        return self._update(self.coordinator.set_hovered(event.feature_id))

    def _on_feature_click(self, event: FeatureClick) -> ViewUpdate:
        changed = self.coordinator.set_selected(event.feature_id)
        if event.feature_id is None:
            return self._update(changed)
        feature = self.engine.collection.get_feature(event.feature_id)
        if feature is None:
            logger.warning(f'Clicked feature {event.feature_id!r} is not part of the current data')
            return self._update(changed)
        return self._update(changed, fly_to=(feature.longitude, feature.latitude, FLY_TO_ZOOM))

    def _on_map_move_end(self, event: MapMoveEnd) -> ViewUpdate:
        self.engine.set_bounds(event.west, event.south, event.east, event.north)
        self.engine.set_reference_point(event.center_lon, event.center_lat)
        if self.engine.use_map_bounds:
            return self._apply_filters()
        self._listing = self.engine.recompute()
        return self._update(True, listing=self._listing)

    def _on_filter_change(self, event: FilterChange) -> ViewUpdate:
        self.engine.set_filter(event.column, event.value)
        return self._apply_filters()

    def _on_bounds_toggle(self, event: BoundsToggle) -> ViewUpdate:
        self.engine.set_use_map_bounds(event.enabled)
        return self._apply_filters()

    def _on_reset_filters(self, event: ResetFilters) -> ViewUpdate:
        self.engine.reset()
        return self._apply_filters()

    def _apply_filters(self) -> ViewUpdate:
        filtered = self.engine.filtered_collection()
        self._listing = self.engine.recompute(filtered)

        self.render_layer.set_filter(self.options.layer_id, self.engine.filter_expression())
        render_data = filtered if self.engine.has_active_constraints else self.engine.collection
        self.render_layer.set_data(self.options.source_id, render_data.to_geojson_dict())

        summary = FilterSummary(
            filters=self.engine.filter_state.snapshot(),
            filtered_collection=filtered,
            use_map_bounds=self.engine.use_map_bounds,
        )
        return self._update(True, listing=self._listing, filter_summary=summary)

    # ------------------------------------------------------------------
    # export

    def current_data(self) -> FeatureCollection | None:
        """What the map currently shows: the filtered data if any constraint is active, else everything."""
        if self.engine is None:
            return None
        if self.engine.has_active_constraints:
            return self.engine.filtered_collection()
        return self.engine.collection

    def export(self, path: str | Path) -> Path:
        data = self.current_data()
        if data is None:
            raise SheetMapperError('Nothing to export: no data loaded')
        return export_geojson(data, path, self.options.export_filename)
