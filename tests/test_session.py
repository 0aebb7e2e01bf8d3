import asyncio

import pytest

from sheetmapper.config import ViewerOptions
from sheetmapper.enums import LoadStatus
from sheetmapper.events import (
    BoundsToggle,
    FeatureClick,
    FilterChange,
    ListItemHover,
    ListItemLeave,
    MapMoveEnd,
    PointerLeave,
    PointerMove,
    ResetFilters,
    ViewEvent,
)
from sheetmapper.exceptions import FetchError, NoValidRowsError, SheetMapperError
from sheetmapper.io import SheetSource
from sheetmapper.session import SheetMapSession

from conftest import make_rows, serving

CSV_TEXT = 'Name,Latitude,Longitude\nA,0,0\nB,0,1\n'


def load(session, rows):
    async def _run():
        session.mark_ready()
        return await session.load_rows(rows)
    return asyncio.run(_run())


@pytest.fixture
def session(render_layer, rows):
    session = SheetMapSession(render_layer)
    outcome = load(session, rows)
    assert outcome.ok
    render_layer.calls.clear()
    return session


def test_load_pushes_data_filter_and_paint(render_layer, rows):
    session = SheetMapSession(render_layer)
    outcome = load(session, rows)

    assert outcome.status == LoadStatus.LOADED
    assert outcome.generation == 1
    assert len(outcome.collection) == 10
    assert len(outcome.listing) == 10
    assert render_layer.data['sheet-data']['features'][0]['properties']['row_number'] == 2
    assert render_layer.data['hover-line']['features'] == []
    assert render_layer.filters['sheet-data'] == ['all']
    assert ('sheet-data-stroke', 'circle-stroke-color') in render_layer.paint


def test_nothing_is_pushed_before_the_map_is_ready(render_layer, rows):
    session = SheetMapSession(render_layer)

    async def _run():
        task = asyncio.create_task(session.load_rows(rows))
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        pushed_before_ready = list(render_layer.calls)
        session.mark_ready()
        outcome = await task
        return pushed_before_ready, outcome

    pushed_before_ready, outcome = asyncio.run(_run())
    assert pushed_before_ready == []
    assert outcome.ok
    assert render_layer.calls_named('set_data')


def test_newer_load_wins_over_slower_older_one(render_layer):
    async def _run():
        release_first = asyncio.Event()

        async def fetcher(url):
            if url.endswith('first.csv'):
                await release_first.wait()
                return 'Name,Latitude,Longitude\nOld,0,0\n'
            return CSV_TEXT

        session = SheetMapSession(render_layer, source=SheetSource(fetcher))
        session.mark_ready()
        first = asyncio.create_task(session.load_url('https://example.com/first.csv'))
        await asyncio.sleep(0)
        second = await session.load_url('https://example.com/second.csv')
        release_first.set()
        return session, await first, second

    session, first, second = asyncio.run(_run())
    assert first.status == LoadStatus.STALE
    assert second.status == LoadStatus.LOADED
    assert (first.generation, second.generation) == (1, 2)
    assert [f.properties['Name'] for f in session.collection] == ['A', 'B']


def test_failed_load_keeps_previous_data(session, render_layer):
    async def _run():
        return await session.load_rows([{'Latitude': '100', 'Longitude': '0'}])

    outcome = asyncio.run(_run())
    assert outcome.status == LoadStatus.FAILED
    assert isinstance(outcome.error, NoValidRowsError)
    assert len(session.collection) == 10
    assert render_layer.calls == []


def test_fetch_failure_is_reported(render_layer):
    async def fetcher(url):
        raise FetchError('HTTP 500', url=url)

    session = SheetMapSession(render_layer, source=SheetSource(fetcher))

    async def _run():
        session.mark_ready()
        return await session.load_sheet('2PACX-abc')

    outcome = asyncio.run(_run())
    assert not outcome.ok
    assert isinstance(outcome.error, FetchError)
    assert session.collection is None


def test_reload_resets_filters_and_interaction(session, render_layer, rows):
    session.handle(FilterChange('Category', 'Park'))
    session.handle(FeatureClick(2))
    outcome = load(session, rows)

    assert outcome.generation == 2
    assert session.engine.active_filters == {}
    assert session.coordinator.selected_id is None
    assert ('remove_feature_state', 'sheet-data', None) in render_layer.calls


def test_events_before_any_data_are_ignored(render_layer):
    session = SheetMapSession(render_layer)
    update = session.handle(PointerMove(0.0, 0.0))
    assert update.changed is False
    assert render_layer.calls == []


def test_unknown_event_type(session):
    class Zoom(ViewEvent):
        pass

    with pytest.raises(TypeError):
        session.handle(Zoom())


def test_pointer_move_hovers_nearest_feature_and_draws_line(session, render_layer):
    update = session.handle(PointerMove(0.31, 0.01))
    assert update.changed
    assert update.interaction.hovered_id == 5  # Place 3, sheet row 5
    assert update.hover_line['features'][0]['geometry']['coordinates'] == ((0.31, 0.01), (0.3, 0.0))

    assert session.handle(PointerMove(0.305, 0.0)).changed is False


def test_pointer_move_limited_to_candidates(session):
    update = session.handle(PointerMove(0.0, 0.0, candidate_ids=(8, 9)))
    assert update.interaction.hovered_id == 8

    update = session.handle(PointerMove(0.0, 0.0, candidate_ids=()))
    assert update.interaction.hovered_id is None
    assert update.hover_line['features'] == []


def test_pointer_leave_and_list_hover(session, render_layer):
    session.handle(ListItemHover(3))
    assert session.coordinator.hovered_id == 3
    update = session.handle(ListItemLeave())
    assert update.interaction.hovered_id is None
    assert render_layer.feature_states[('sheet-data', 3)] == {'hover': False}

    assert session.handle(PointerLeave()).changed is False


def test_click_selects_and_flies_to_feature(session):
    update = session.handle(FeatureClick(4))
    assert update.interaction.selected_id == 4
    assert update.fly_to == (0.2, 0.0, 14)

    update = session.handle(FeatureClick(None))
    assert update.interaction.selected_id is None
    assert update.fly_to is None


def test_filter_change_updates_map_and_summary(session, render_layer):
    update = session.handle(FilterChange('Category', 'Park'))

    assert len(update.listing) == 3
    assert update.filter_summary.filters == {'Name': None, 'Category': 'Park', 'Latitude': None, 'Longitude': None}
    assert len(update.filter_summary.filtered_collection) == 3
    assert render_layer.filters['sheet-data'] == ['all', ['==', ['get', 'Category'], 'Park']]
    assert len(render_layer.data['sheet-data']['features']) == 3

    update = session.handle(ResetFilters())
    assert len(update.listing) == 10
    assert len(render_layer.data['sheet-data']['features']) == 10


def test_map_move_resorts_and_applies_bounds_when_enabled(session):
    update = session.handle(MapMoveEnd(0.9, 0.0, 0.55, -1.0, 1.0, 1.0))
    assert update.filter_summary is None
    assert update.listing.collection.features[0].properties['Name'] == 'Place 9'
    assert len(update.listing) == 10

    update = session.handle(BoundsToggle(True))
    assert [f.properties['Name'] for f, _ in update.listing] == ['Place 9', 'Place 8', 'Place 7', 'Place 6']
    assert update.filter_summary.use_map_bounds is True

    update = session.handle(MapMoveEnd(0.0, 0.0, -0.05, -1.0, 0.05, 1.0))
    assert [f.properties['Name'] for f, _ in update.listing] == ['Place 0']


def test_options_from_query_string_drive_filter_fields(render_layer, rows):
    options = ViewerOptions.from_query_string('sheetId=2PACX-x&display_fields=Category')
    session = SheetMapSession(render_layer, options)
    load(session, rows)
    assert session.engine.filter_fields == ['Category']


def test_export_current_data(session, tmp_path):
    session.handle(FilterChange('Category', 'Shop'))
    path = session.export(tmp_path)
    assert path.name == 'map-data.geojson'
    assert '"Place 3"' in path.read_text(encoding='utf-8')
    assert '"Place 0"' not in path.read_text(encoding='utf-8')


def test_export_without_data(render_layer, tmp_path):
    with pytest.raises(SheetMapperError):
        SheetMapSession(render_layer).export(tmp_path)


def test_current_data_without_constraints(session):
    assert session.current_data() is session.collection
    assert len(make_rows()) == len(session.current_data())


def test_undecodable_sheet_is_a_failed_load(render_layer):
    session = SheetMapSession(render_layer)

    async def _run():
        session.mark_ready()
        async with serving(b'Name,Latitude,Longitude\n\xff\xfe,0,0\n') as url:
            return await session.load_url(url)

    outcome = asyncio.run(_run())
    assert outcome.status == LoadStatus.FAILED
    assert isinstance(outcome.error, FetchError)
    assert session.collection is None
    assert render_layer.calls == []


def test_mark_ready_before_the_event_loop_runs(render_layer, rows):
    session = SheetMapSession(render_layer)
    session.mark_ready()
    assert session.is_ready

    outcome = asyncio.run(session.load_rows(rows))
    assert outcome.ok
    assert render_layer.calls_named('set_data')


def test_loads_waiting_in_an_earlier_loop_do_not_block_a_later_one(render_layer, rows):
    session = SheetMapSession(render_layer)

    async def _abandoned():
        task = asyncio.create_task(session.load_rows(rows))
        await asyncio.sleep(0)
        task.cancel()

    asyncio.run(_abandoned())

    async def _run():
        task = asyncio.create_task(session.load_rows(rows))
        await asyncio.sleep(0)
        session.mark_ready()
        return await task

    outcome = asyncio.run(_run())
    assert outcome.ok
    assert outcome.generation == 2


def test_filter_change_filters_the_collection_once(session, monkeypatch):
    calls = []
    filtered_collection = session.engine.filtered_collection

    def counting(*args, **kwargs):
        calls.append(args)
        return filtered_collection(*args, **kwargs)

    monkeypatch.setattr(session.engine, 'filtered_collection', counting)
    update = session.handle(FilterChange('Category', 'Park'))

    assert len(calls) == 1
    assert len(update.listing) == 3
    assert len(update.filter_summary.filtered_collection) == 3


def test_cancelled_waiter_does_not_cancel_readiness(render_layer):
    session = SheetMapSession(render_layer)

    async def _run():
        abandoned = asyncio.create_task(session.wait_ready())
        waiting = asyncio.create_task(session.wait_ready())
        await asyncio.sleep(0)
        abandoned.cancel()
        await asyncio.sleep(0)
        session.mark_ready()
        await asyncio.wait_for(waiting, timeout=1)
        return abandoned.cancelled()

    assert asyncio.run(_run())
