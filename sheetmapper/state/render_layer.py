from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from sheetmapper.typevars import FeatureId


@runtime_checkable
class RenderLayer(Protocol):
    """
    What the core expects from the map library that draws the features.

    Feature state is keyed by source id and the feature's row_number (the
    source's promoted id). Filter expressions are boolean property-match
    expressions of the form ['all', ['==', ['get', column], value], ...].
    """

    def set_feature_state(self, source_id: str, feature_id: FeatureId, state: dict[str, bool]) -> None:
        ...

    def remove_feature_state(self, source_id: str, feature_id: FeatureId | None = None) -> None:
        ...

    def set_data(self, source_id: str, geojson: dict) -> None:
        ...

    def set_filter(self, layer_id: str, expression: list) -> None:
        ...

    def set_paint_property(self, layer_id: str, name: str, value: Any) -> None:
        ...
