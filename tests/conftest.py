from __future__ import annotations

import contextlib

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from sheetmapper.conversion import SheetToGeoJSONConverter


class RecordingRenderLayer:
    """Render layer double that records every call in order."""

    def __init__(self):
        self.calls = []
        self.feature_states = {}
        self.data = {}
        self.filters = {}
        self.paint = {}

    def set_feature_state(self, source_id, feature_id, state):
        self.calls.append(('set_feature_state', source_id, feature_id, dict(state)))
        self.feature_states[(source_id, feature_id)] = dict(state)

    def remove_feature_state(self, source_id, feature_id=None):
        self.calls.append(('remove_feature_state', source_id, feature_id))
        if feature_id is None:
            self.feature_states = {k: v for k, v in self.feature_states.items() if k[0] != source_id}
        else:
            self.feature_states.pop((source_id, feature_id), None)

    def set_data(self, source_id, geojson):
        self.calls.append(('set_data', source_id))
        self.data[source_id] = geojson

    def set_filter(self, layer_id, expression):
        self.calls.append(('set_filter', layer_id, expression))
        self.filters[layer_id] = expression

    def set_paint_property(self, layer_id, name, value):
        self.calls.append(('set_paint_property', layer_id, name))
        self.paint[(layer_id, name)] = value

    def calls_named(self, name):
        return [c for c in self.calls if c[0] == name]


@pytest.fixture
def render_layer():
    return RecordingRenderLayer()


def make_rows(n_park=3, n_other=7):
    """Rows along the equator, one per 0.1 degree of longitude, the first n_park are parks."""
    rows = []
    for i in range(n_park + n_other):
        rows.append({
            'Name': f'Place {i}',
            'Category': 'Park' if i < n_park else 'Shop',
            'Latitude': '0',
            'Longitude': f'{i * 0.1:.1f}',
        })
    return rows


@pytest.fixture
def rows():
    return make_rows()


@pytest.fixture
def collection(rows):
    return SheetToGeoJSONConverter().convert(rows)


@contextlib.asynccontextmanager
async def serving(body: bytes, charset: str = 'utf-8'):
    """Serve body as a CSV document on a local test server and yield its URL."""
    async def handler(request):
        return web.Response(body=body, content_type='text/csv', charset=charset)

    app = web.Application()
    app.router.add_get('/sheet.csv', handler)
    server = TestServer(app)
    await server.start_server()
    try:
        yield str(server.make_url('/sheet.csv'))
    finally:
        await server.close()
