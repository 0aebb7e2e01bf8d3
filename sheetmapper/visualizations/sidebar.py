from __future__ import annotations

from html import escape
from typing import Any

from sheetmapper.config import GOOGLE_MAPS_SEARCH_URL, ROW_NUMBER_FIELD
from sheetmapper.features import GeoFeature
from sheetmapper.filtering import ProximityAnnotation, ProximityListing
from sheetmapper.typevars import FeatureId

MISSING_VALUE = 'N/A'
NUM_DETAIL_FIELDS = 3


def _display(value: Any) -> str:
    if value is None or value == '':
        return MISSING_VALUE
    if hasattr(value, 'isoformat'):
        return value.isoformat()
    return str(value)


class SidebarListRenderer:
    """
    HTML for the proximity-sorted list shown next to the map.

    Each item shows the first field as its title, the distance label, the next
    three fields as 'field: value' lines, an 'Open' link when the feature has a
    'url' property and a Google Maps link for its coordinates.

    Args:
        display_fields: Fields to show, in order; defaults to all property columns.
        show_header: Whether to render the 'Nearest Locations (n)' header.

    Example:

        >>> renderer = SidebarListRenderer(display_fields=['Name', 'Category'])
        >>> html = renderer.render(session.listing, selected_id=session.coordinator.selected_id)
    """

    def __init__(self, display_fields: list[str] | None = None, show_header: bool = True):
        self.display_fields = display_fields
        self.show_header = show_header

    def fields_for(self, feature: GeoFeature) -> list[str]:
        columns = [c for c in feature.properties if c != ROW_NUMBER_FIELD]
        if self.display_fields:
            return [c for c in self.display_fields if c in columns]
        return columns

    def render_item(
            self,
            feature: GeoFeature,
            annotation: ProximityAnnotation,
            selected: bool = False,
    ) -> str:
        props = feature.properties
        fields = self.fields_for(feature)
        title = _display(props.get(fields[0])) if fields else MISSING_VALUE
        css_class = 'sidebar-item selected' if selected else 'sidebar-item'

        html = (
            f'<div class="{css_class}" data-lng="{feature.longitude}" '
            f'data-lat="{feature.latitude}" data-row="{escape(str(feature.row_number))}">\n'
        )
        html += f'    <h4>{escape(title)}</h4>\n'
        html += f'    <span class="distance">{escape(annotation.label)}</span>\n'
        for name in fields[1:1 + NUM_DETAIL_FIELDS]:
            html += f'    <p>{escape(name)}: {escape(_display(props.get(name)))}</p>\n'

        html += '    <div class="links">\n'
        if props.get('url'):
            html += f'        <a href="{escape(str(props["url"]))}" target="_blank">Open</a>\n'
        maps_url = GOOGLE_MAPS_SEARCH_URL.format(lat=feature.latitude, lon=feature.longitude)
        html += f'        <a href="{escape(maps_url)}" target="_blank">View in Google Maps</a>\n'
        html += '    </div>\n'
        html += '</div>\n'
        return html

    def render(self, listing: ProximityListing, selected_id: FeatureId | None = None) -> str:
        html = '<div class="sidebar">\n'
        if self.show_header:
            html += f'<h2>Nearest Locations ({len(listing)})</h2>\n'
        if listing.is_empty:
            html += '<p class="empty">No locations match the current filters.</p>\n'
        for feature, annotation in listing:
            html += self.render_item(feature, annotation, selected=feature.row_number == selected_id)
        html += '</div>'
        return html
