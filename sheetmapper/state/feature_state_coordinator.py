from __future__ import annotations

from dataclasses import dataclass, replace

from sheetmapper.config import DEFAULT_SOURCE_ID
from sheetmapper.enums import FeatureStateFlag
from sheetmapper.state.render_layer import RenderLayer
from sheetmapper.typevars import FeatureId
from sheetmapper.utils.logging import get_logger

logger = get_logger(__name__)

HOVER = FeatureStateFlag.HOVER.value
SELECTED = FeatureStateFlag.SELECTED.value


@dataclass(frozen=True)
class InteractionState:
    """Which feature is hovered and which is selected; at most one of each."""
    hovered_id: FeatureId | None = None
    selected_id: FeatureId | None = None

    def with_hovered(self, feature_id: FeatureId | None) -> InteractionState:
        return replace(self, hovered_id=feature_id)

    def with_selected(self, feature_id: FeatureId | None) -> InteractionState:
        return replace(self, selected_id=feature_id)


@dataclass(frozen=True)
class PaintStyle:
    hover_color: str = 'yellow'
    selected_color: str = 'blue'
    default_color: str = '#000000'
    hover_width: float = 10
    selected_width: float = 12
    default_width: float = 1


class FeatureStateCoordinator:
    """
    Single authority for the hover / selected state of map features.

    The coordinator keeps a record of the flags it last pushed for every feature
    and compares against it before each push, so the render layer only receives
    writes that actually change something. One coordinator is created per map
    instance and handed to the event handlers.

    Args:
        render_layer: Map adapter receiving feature state writes.
        source_id: Id of the data source whose features are addressed.

    Example:

        >>> coordinator = FeatureStateCoordinator(render_layer, 'sheet-data')
        >>> coordinator.set_hovered(5)
        True
        >>> coordinator.set_hovered(5)  # already hovered, nothing is pushed
        False
        >>> coordinator.set_hovered(6)  # clears 5, sets 6
        True
        >>> coordinator.get_state(5)
        {'hover': False}
    """

    def __init__(self, render_layer: RenderLayer, source_id: str = DEFAULT_SOURCE_ID):
        self.render_layer = render_layer
        self.source_id = source_id
        self._states: dict[FeatureId, dict[str, bool]] = {}
        self._interaction = InteractionState()

    @property
    def interaction_state(self) -> InteractionState:
        return self._interaction

    @property
    def hovered_id(self) -> FeatureId | None:
        return self._interaction.hovered_id

    @property
    def selected_id(self) -> FeatureId | None:
        return self._interaction.selected_id

    def set_hovered(self, feature_id: FeatureId | None) -> bool:
        """
        Move the hover flag to feature_id, or clear it with None.

        Returns:
            False if feature_id already was the hovered feature, True otherwise.
        """
        if self._interaction.hovered_id == feature_id:
            return False
        self._move_flag(HOVER, self._interaction.hovered_id, feature_id)
        self._interaction = self._interaction.with_hovered(feature_id)
        return True

    def set_selected(self, feature_id: FeatureId | None) -> bool:
        """
        Move the selected flag to feature_id, or clear it with None.

        Independent of hover: a feature may be hovered and selected at once.

        Returns:
            False if feature_id already was the selected feature, True otherwise.
        """
        if self._interaction.selected_id == feature_id:
            return False
        self._move_flag(SELECTED, self._interaction.selected_id, feature_id)
        self._interaction = self._interaction.with_selected(feature_id)
        return True

    def get_state(self, feature_id: FeatureId) -> dict[str, bool]:
        return dict(self._states.get(feature_id, {}))

    def set_feature_state(self, feature_id: FeatureId, **flags: bool) -> bool:
        """
        Merge flags into the feature's state and push it if it changed.

        Returns:
            Whether a write was sent to the render layer.
        """
        current = self._states.get(feature_id, {})
        new_state = {**current, **flags}
        if new_state == current:
            return False
        self._states[feature_id] = new_state
        self.render_layer.set_feature_state(self.source_id, feature_id, dict(new_state))
        return True

    def clear_state(self, feature_id: FeatureId) -> None:
        if feature_id not in self._states:
            return
        del self._states[feature_id]
        if self._interaction.hovered_id == feature_id:
            self._interaction = self._interaction.with_hovered(None)
        if self._interaction.selected_id == feature_id:
            self._interaction = self._interaction.with_selected(None)
        self.render_layer.remove_feature_state(self.source_id, feature_id)

    def clear_all(self) -> None:
        self._states.clear()
        self._interaction = InteractionState()
        self.render_layer.remove_feature_state(self.source_id)
        logger.debug(f'Cleared all feature states of source {self.source_id!r}')

    def _move_flag(self, flag: str, previous_id: FeatureId | None, new_id: FeatureId | None) -> None:
        if previous_id is not None:
            self.set_feature_state(previous_id, **{flag: False})
        if new_id is not None:
            self.set_feature_state(new_id, **{flag: True})

    @staticmethod
    def paint_properties(style: PaintStyle | None = None) -> dict[str, list]:
        """Data-driven stroke expressions: selected wins over hover, hover over default."""
        style = style or PaintStyle()
        return {
            'circle-stroke-width': [
                'case',
                ['boolean', ['feature-state', SELECTED], False],
                style.selected_width,
                ['boolean', ['feature-state', HOVER], False],
                style.hover_width,
                style.default_width,
            ],
            'circle-stroke-color': [
                'case',
                ['boolean', ['feature-state', SELECTED], False],
                style.selected_color,
                ['boolean', ['feature-state', HOVER], False],
                style.hover_color,
                style.default_color,
            ],
        }

    def apply_paint_properties(self, layer_id: str, style: PaintStyle | None = None) -> None:
        for name, expression in self.paint_properties(style).items():
            self.render_layer.set_paint_property(layer_id, name, expression)
