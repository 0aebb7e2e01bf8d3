import folium

from sheetmapper.filtering import FilterProximityEngine
from sheetmapper.session import SheetMapSession
from sheetmapper.events import FeatureClick, FilterChange
from sheetmapper.state import FeatureStateCoordinator, RenderLayer
from sheetmapper.visualizations import (
    FoliumRenderLayer,
    SidebarListRenderer,
    evaluate_expression,
    render_folium_map,
)
from sheetmapper.conversion import SheetToGeoJSONConverter

from test_session import load


def _markers(m):
    markers = []
    for child in m._children.values():
        if isinstance(child, folium.FeatureGroup):
            markers.extend(c for c in child._children.values() if isinstance(c, folium.CircleMarker))
    return markers


def test_evaluate_stroke_expression():
    paint = FeatureStateCoordinator.paint_properties()
    color = paint['circle-stroke-color']
    assert evaluate_expression(color, {}, {}) == '#000000'
    assert evaluate_expression(color, {}, {'hover': True}) == 'yellow'
    assert evaluate_expression(color, {}, {'hover': True, 'selected': True}) == 'blue'
    assert evaluate_expression(paint['circle-stroke-width'], {}, {'selected': True}) == 12


def test_evaluate_filter_expression():
    expression = ['all', ['==', ['get', 'Category'], 'Park']]
    assert evaluate_expression(expression, {'Category': 'Park'}, {})
    assert not evaluate_expression(expression, {'Category': 'Shop'}, {})
    assert evaluate_expression(['all'], {}, {})


def test_render_folium_map(collection):
    engine = FilterProximityEngine(collection)
    engine.set_filter('Category', 'Park')
    m = render_folium_map(engine.recompute())
    assert isinstance(m, folium.Map)
    assert len(_markers(m)) == 3


def test_folium_render_layer_follows_session_state(rows):
    render_layer = FoliumRenderLayer()
    assert isinstance(render_layer, RenderLayer)
    session = SheetMapSession(render_layer)
    load(session, rows)
    session.handle(FilterChange('Category', 'Park'))
    session.handle(FeatureClick(3))

    assert len(render_layer.visible_features()) == 3
    assert render_layer.feature_states['sheet-data'][3] == {'selected': True}

    markers = _markers(render_layer.to_map())
    assert len(markers) == 3
    colors = sorted(marker.options['color'] for marker in markers)
    assert colors == ['#000000', '#000000', 'blue']


def test_marker_style_from_properties():
    rows = [{'Name': 'A', 'Latitude': '0', 'Longitude': '0', 'circle-color': 'red', 'circle-radius': '6'}]
    listing = FilterProximityEngine(SheetToGeoJSONConverter().convert(rows)).recompute()
    marker = _markers(render_folium_map(listing))[0]
    assert marker.options['fillColor'] == 'red'
    assert marker.options['radius'] == 6.0


def test_sidebar_item(collection):
    listing = FilterProximityEngine(collection).recompute()
    renderer = SidebarListRenderer()
    html = renderer.render(listing, selected_id=2)

    assert '<h2>Nearest Locations (10)</h2>' in html
    assert '<h4>Place 0</h4>' in html
    assert '<p>Category: Park</p>' in html
    assert '<p>Latitude: 0.0</p>' in html
    assert 'View in Google Maps' in html
    assert 'https://www.google.com/maps/search/?api=1&amp;query=0.0,0.0' in html
    assert '>Open</a>' not in html
    assert html.count('sidebar-item selected') == 1


def test_sidebar_display_fields_and_links():
    rows = [{
        'Name': '<b>Cafe</b>',
        'Latitude': '1',
        'Longitude': '2',
        'City': 'Pune',
        'url': 'https://example.com/cafe',
    }]
    listing = FilterProximityEngine(SheetToGeoJSONConverter().convert(rows)).recompute()
    renderer = SidebarListRenderer(display_fields=['Name', 'City'], show_header=False)
    html = renderer.render(listing)

    assert 'Nearest Locations' not in html
    assert '<h4>&lt;b&gt;Cafe&lt;/b&gt;</h4>' in html
    assert '<p>City: Pune</p>' in html
    assert 'Latitude:' not in html
    assert '<a href="https://example.com/cafe" target="_blank">Open</a>' in html


def test_sidebar_empty_listing(collection):
    engine = FilterProximityEngine(collection)
    engine.set_filter('Name', 'nowhere')
    html = SidebarListRenderer().render(engine.recompute())
    assert 'Nearest Locations (0)' in html
    assert 'No locations match' in html
