from sheetmapper.visualizations.folium_map import (
    FoliumRenderLayer,
    add_circle_markers,
    evaluate_expression,
    render_folium_map,
)
from sheetmapper.visualizations.sidebar import SidebarListRenderer

__all__ = [
    'FoliumRenderLayer',
    'add_circle_markers',
    'evaluate_expression',
    'render_folium_map',
    'SidebarListRenderer',
]
