from sheetmapper.state.render_layer import RenderLayer
from sheetmapper.state.feature_state_coordinator import FeatureStateCoordinator, InteractionState, PaintStyle

__all__ = [
    'RenderLayer',
    'FeatureStateCoordinator',
    'InteractionState',
    'PaintStyle',
]
